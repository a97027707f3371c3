# ERP FinSight - Cost & Profitability engine for small-business ERPs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Dataset repositories.

The engine never knows where data lives: callers obtain a `Dataset`
snapshot from a repository and pass it to the calculation functions.

Three implementations are provided:

- InMemoryRepository : wraps an existing Dataset (tests, embedding).
- CsvRepository      : reads a directory of CSV files (see io.py).
- SQLiteRepository   : reads the application database (see db.py).

`repository_from_config()` picks the implementation configured in the
[data] section of the TOML file.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from .dataset import Dataset
from .db import DatabaseConfig, load_dataset
from .io import read_dataset_csv

if TYPE_CHECKING:
    from .config import AppConfig


class DatasetRepository(Protocol):
    """Anything able to produce a consistent Dataset snapshot."""

    def load(self) -> Dataset: ...


class InMemoryRepository:
    def __init__(self, dataset: Dataset | None = None) -> None:
        self._dataset = dataset if dataset is not None else Dataset.empty()

    def load(self) -> Dataset:
        return self._dataset


class CsvRepository:
    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def load(self) -> Dataset:
        return read_dataset_csv(self.directory)


class SQLiteRepository:
    def __init__(self, cfg: DatabaseConfig) -> None:
        self.cfg = cfg

    def load(self) -> Dataset:
        return load_dataset(self.cfg)


def repository_from_config(config: AppConfig) -> DatasetRepository:
    """
    Build the repository configured in ``[data].source``.

    Raises:
        ValueError: if the source is neither "csv" nor "sqlite".
    """
    source = config.data_source
    if source == "csv":
        return CsvRepository(config.csv_dir)
    if source == "sqlite":
        return SQLiteRepository(config.database)
    raise ValueError(f"Unknown data source: {source!r}. Expected 'csv' or 'sqlite'.")
