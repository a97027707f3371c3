# ERP FinSight - Cost & Profitability engine for small-business ERPs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for ERP FinSight.

This module is responsible for:
- loading the application configuration from a TOML file,
- turning the [costing] section into the CostingRules used by the engine,
- exposing typed dataclasses used by the rest of the application.
"""

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from .allocation import ALLOCATION_POLICIES
from .db import DatabaseConfig
from .logging_config import resolve_level
from .rules import DEFAULT_PRORATION_DAYS, DEFAULT_VARIABLE_EXPENSE_TYPES, CostingRules

DEFAULT_CONFIG_FILE = "erp_finsight_config.toml"

DATA_SOURCES = ("csv", "sqlite")
DISPLAY_MODES = ("table", "csv", "both")


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for ERP FinSight.

    This aggregates:
    - the company name and presentation currency,
    - where the ERP data is read from (CSV directory or database),
    - the database configuration,
    - the costing rules applied by the engine,
    - display options for tables,
    - the log level.
    """

    company_name: str
    currency: str
    data_source: str
    csv_dir: Path
    database: DatabaseConfig
    costing: CostingRules
    display_mode: str
    decimals: int
    log_level: str


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, Mapping):
        return {}
    return section


def _parse_costing(costing_section: Mapping[str, Any]) -> CostingRules:
    """
    Build CostingRules from the [costing] table.

    Raises:
        ValueError: if a value has the wrong type or is out of range.
    """
    raw_days = costing_section.get("proration_days", DEFAULT_PRORATION_DAYS)
    try:
        proration_days = int(raw_days)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            "Invalid value for 'costing.proration_days' in the configuration. "
            "Expected an integer."
        ) from exc

    raw_types = costing_section.get(
        "variable_expense_types", list(DEFAULT_VARIABLE_EXPENSE_TYPES)
    )
    if not isinstance(raw_types, (list, tuple)):
        raise ValueError(
            "Invalid value for 'costing.variable_expense_types' in the "
            "configuration. Expected a list of expense types."
        )
    variable_types = tuple(str(t).strip().lower() for t in raw_types)

    method = str(costing_section.get("allocation_method", "unit")).lower()
    if method not in ALLOCATION_POLICIES:
        raise ValueError(
            f"Invalid value for 'costing.allocation_method': {method!r}. "
            f"Expected one of: {', '.join(sorted(ALLOCATION_POLICIES))}."
        )

    return CostingRules(
        variable_expense_types=variable_types,
        proration_days=proration_days,
        allocation_method=method,
    )


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the ERP FinSight application configuration from a TOML file.

    Expected top-level sections in the TOML file
    --------------------------------------------
    [company]
        Company name and presentation currency.

    [data]
        Where the ERP collections are read from: ``source = "csv"`` (a
        directory of CSV files, ``csv_dir``) or ``source = "sqlite"`` (the
        database configured in [database]).

    [database]
        Database engine and SQLite file path.

    [costing]
        Costing conventions: ``proration_days`` (flat month length used to
        prorate monthly overhead), ``variable_expense_types`` and
        ``allocation_method`` ("unit" or "revenue").

    [display]
        Display options for the CLI (``mode`` and ``decimals``).

    [logging]
        ``level`` of the package logger.

    Every section is optional. All file paths in the TOML are resolved
    relative to the directory of the TOML file itself.

    Parameters
    ----------
    config_path : str, optional
        Path to the TOML configuration file. Defaults to
        ``erp_finsight_config.toml`` in the current directory.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If a value is invalid.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    # 1) Company section
    company_section = _section(raw, "company")
    company_name = str(company_section.get("name") or "")
    currency = str(company_section.get("currency") or "USD")

    # 2) Data section
    data_section = _section(raw, "data")
    data_source = str(data_section.get("source") or "csv").lower()
    if data_source not in DATA_SOURCES:
        raise ValueError(
            f"Invalid value for 'data.source': {data_source!r}. "
            "Expected 'csv' or 'sqlite'."
        )
    csv_dir = (base_dir / str(data_section.get("csv_dir") or "data/sample")).resolve()

    # 3) Database section
    database_section = _section(raw, "database")
    db_engine = str(database_section.get("engine") or "sqlite")
    db_path_raw = database_section.get("path") or "data/db/erp_finsight.sqlite"
    db_path = (base_dir / str(db_path_raw)).resolve()

    database_config = DatabaseConfig(engine=db_engine, path=db_path)

    # 4) Costing rules
    costing = _parse_costing(_section(raw, "costing"))

    # 5) Display options
    display_section = _section(raw, "display")
    display_mode = str(display_section.get("mode", "table"))
    if display_mode not in DISPLAY_MODES:
        raise ValueError(
            f"Invalid value for 'display.mode': {display_mode!r}. "
            "Expected 'table', 'csv' or 'both'."
        )
    try:
        decimals = int(display_section.get("decimals", 2))
    except (TypeError, ValueError):
        decimals = 2

    # 6) Logging
    logging_section = _section(raw, "logging")
    log_level = str(logging_section.get("level", "WARNING")).upper()
    resolve_level(log_level)

    return AppConfig(
        company_name=company_name,
        currency=currency,
        data_source=data_source,
        csv_dir=csv_dir,
        database=database_config,
        costing=costing,
        display_mode=display_mode,
        decimals=decimals,
        log_level=log_level,
    )
