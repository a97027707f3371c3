# ERP FinSight - Cost & Profitability engine for small-business ERPs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for ERP FinSight.

This module reads the ERP collections from CSV files and normalizes them
into the canonical structure expected by the engine (see dataset.py).

Expected layout
---------------
A data directory holds one CSV file per collection, named after it:

    ingredients.csv, products.csv, recipe_lines.csv, sales.csv,
    employees.csv, salary_adjustments.csv, expenses.csv,
    monthly_bills.csv, bill_payments.csv, owners.csv

- Column names are case-insensitive.
- A missing file gives an empty collection.
- Extra columns are ignored.
- ``sales.amount`` may be omitted or left blank: it is derived as
  quantity * unit_price.

Example (sales.csv)
-------------------
    id,product_id,product_name,quantity,unit_price,date,customer_name
    1,1,Espresso,2,2.50,2025-01-10,Alice

If a file does not match its collection structure (missing required
columns, non-numeric amounts, invalid dates), a clear ValueError is raised.
"""

import dataclasses
import os
from pathlib import Path
from typing import Union

import pandas as pd

from .dataset import (
    COLLECTIONS,
    Dataset,
    generated_id_collections,
    normalize_collection,
)
from .logging_config import get_logger

logger = get_logger("io")

PathLike = Union[str, "os.PathLike[str]"]


def _read_raw_csv(path: PathLike) -> pd.DataFrame:
    # Keep text columns as written (month keys, names, ...).
    return pd.read_csv(path, dtype=str, keep_default_na=False)


def _normalize_file(name: str, df: pd.DataFrame, path: PathLike) -> pd.DataFrame:
    try:
        return normalize_collection(name, df)
    except ValueError as exc:
        raise ValueError(f"{Path(path).name}: {exc}") from exc


def read_collection_csv(name: str, path: PathLike) -> pd.DataFrame:
    """
    Read one collection from a CSV file and normalize it.

    Parameters
    ----------
    name:
        Collection name (one of COLLECTIONS).
    path:
        Path to the CSV file.

    Returns
    -------
    pandas.DataFrame
        The normalized collection.

    Raises
    ------
    ValueError
        If the CSV structure or values do not match the collection.
    """
    return _normalize_file(name, _read_raw_csv(path), path)


def read_dataset_csv(directory: PathLike) -> Dataset:
    """
    Read every collection from a directory of CSV files.

    Files without an ``id`` column get positional ids and are listed in
    ``Dataset.generated_ids``.

    Raises
    ------
    FileNotFoundError
        If `directory` does not exist.
    ValueError
        If one of the files is invalid.
    """
    base = Path(directory)
    if not base.is_dir():
        raise FileNotFoundError(f"Data directory not found: {base}")

    raw_frames: dict[str, pd.DataFrame] = {}
    frames: dict[str, pd.DataFrame] = {}
    for name in COLLECTIONS:
        csv_path = base / f"{name}.csv"
        if not csv_path.is_file():
            logger.debug("No %s.csv in %s, using an empty collection", name, base)
            continue
        raw_frames[name] = _read_raw_csv(csv_path)
        frames[name] = _normalize_file(name, raw_frames[name], csv_path)

    dataset = dataclasses.replace(
        Dataset.from_frames(**frames),
        generated_ids=generated_id_collections(raw_frames),
    )
    logger.info("Loaded dataset from %s: %s", base, dataset.counts())
    return dataset


def write_dataset_csv(dataset: Dataset, directory: PathLike) -> list[Path]:
    """
    Write every collection of `dataset` as CSV files into `directory`.

    Dates are written as ISO strings. The directory is created if needed.

    Returns
    -------
    list[Path]
        The written file paths, in collection order.
    """
    base = Path(directory)
    base.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for name in COLLECTIONS:
        out_path = base / f"{name}.csv"
        getattr(dataset, name).to_csv(out_path, index=False, date_format="%Y-%m-%d")
        written.append(out_path)
    return written
