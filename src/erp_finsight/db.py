# ERP FinSight - Cost & Profitability engine for small-business ERPs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Database layer for ERP FinSight.

This module stores the ERP collections in a SQLite database and loads them
back as a consistent `Dataset` snapshot for the engine. It is responsible
for:

- Initializing the database schema (one table per collection).
- Importing a Dataset, either replacing the stored data or upserting rows
  by id, and recording each import in `import_batches`.
- Loading every collection in a single read transaction.

------------------------------------------------------------------------------
Schema Overview
------------------------------------------------------------------------------

1) import_batches
   One row per import, representing the origin of the stored data.

   Columns:
   - id             INTEGER PRIMARY KEY AUTOINCREMENT
   - created_at     TEXT    NOT NULL (ISO datetime, UTC)
   - source_type    TEXT    NOT NULL  -- "csv" | "records" | "api"
   - source_label   TEXT    NOT NULL  -- directory path, connector name, etc.
   - mode           TEXT    NOT NULL  -- "replace" | "append"
   - rows_inserted  INTEGER NOT NULL

2) One table per collection (ingredients, products, recipe_lines, sales,
   employees, salary_adjustments, expenses, monthly_bills, bill_payments,
   owners), with the columns of the collection schema (see dataset.py):

   - ids and integers   -> INTEGER
   - money amounts      -> INTEGER, stored in cents in a `<column>_cents`
                           column (selling_price_cents, amount_cents, ...)
   - other numbers      -> REAL (unit costs, quantities per unit,
                           percentages)
   - booleans           -> INTEGER (0/1)
   - dates              -> TEXT, ISO "YYYY-MM-DD HH:MM:SS"
   - text               -> TEXT

   `recipe_lines` has no business id: its rows are keyed by an
   autoincremented `line_no`, which preserves recipe order.

------------------------------------------------------------------------------
SQLite Notes
------------------------------------------------------------------------------

- All timestamps are stored as ISO-8601 text.
- Foreign key enforcement is explicitly enabled (no foreign keys are
  declared between collections: dangling references are a data quality
  issue reported by validation.py, not a storage error).
- Money is converted with round(amount * 100) on write and / 100.0 on read.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal

import pandas as pd

from .dataset import COLLECTIONS, SCHEMAS, Dataset, normalize_collection
from .logging_config import get_logger

logger = get_logger("db")

# Money columns are stored as integer cents.
MONEY_COLUMNS: dict[str, frozenset[str]] = {
    "ingredients": frozenset(),
    "products": frozenset({"selling_price"}),
    "recipe_lines": frozenset(),
    "sales": frozenset({"unit_price", "amount"}),
    "employees": frozenset({"base_salary"}),
    "salary_adjustments": frozenset({"amount"}),
    "expenses": frozenset({"amount"}),
    "monthly_bills": frozenset({"estimated_amount"}),
    "bill_payments": frozenset({"actual_amount"}),
    "owners": frozenset({"share_capital"}),
}

_SQL_TYPES = {
    "id": "INTEGER",
    "int": "INTEGER",
    "float": "REAL",
    "bool": "INTEGER",
    "date": "TEXT",
    "str": "TEXT",
}

ImportMode = Literal["replace", "append"]
SourceType = Literal["csv", "records", "api"]


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Database configuration for ERP FinSight.

    Attributes
    ----------
    engine:
        Database engine identifier. Only "sqlite" is supported.
    path:
        Path to the SQLite database file.
    """

    engine: str
    path: Path


@dataclass(frozen=True)
class ImportStats:
    """
    Summary of an import into the database.

    Attributes
    ----------
    batch_id:
        Identifier of the batch row in `import_batches`.
    rows_inserted:
        Number of rows written, per collection.
    """

    batch_id: int
    rows_inserted: dict[str, int]

    @property
    def total(self) -> int:
        return sum(self.rows_inserted.values())


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _ensure_sqlite(cfg: DatabaseConfig) -> None:
    """Raise if the configuration does not refer to a supported engine."""
    if cfg.engine.lower() != "sqlite":
        msg = (
            f"Unsupported database engine: {cfg.engine!r}. "
            "Only 'sqlite' is supported for now."
        )
        raise ValueError(msg)


def _connect(cfg: DatabaseConfig) -> sqlite3.Connection:
    """
    Open a SQLite connection with foreign keys enabled.

    The caller is responsible for closing the connection.
    """
    _ensure_sqlite(cfg)
    conn = sqlite3.connect(cfg.path)
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def _storage_column(name: str, column: str) -> str:
    """Name of the table column storing `column` of collection `name`."""
    if column in MONEY_COLUMNS[name]:
        return f"{column}_cents"
    return column


def _storage_columns(name: str) -> list[str]:
    return [_storage_column(name, col) for col in SCHEMAS[name]]


def _create_table_sql(name: str) -> str:
    lines = []
    if name == "recipe_lines":
        lines.append("line_no INTEGER PRIMARY KEY AUTOINCREMENT")
    for col, kind in SCHEMAS[name].items():
        stored = _storage_column(name, col)
        sql_type = "INTEGER" if stored != col else _SQL_TYPES[kind]
        if col == "id":
            lines.append(f"{stored} INTEGER PRIMARY KEY")
        else:
            lines.append(f"{stored} {sql_type}")
    body = ",\n            ".join(lines)
    return f"CREATE TABLE IF NOT EXISTS {name} (\n            {body}\n        );"


def _create_schema_if_needed(conn: sqlite3.Connection) -> None:
    """
    Create tables if they do not exist yet.

    This function is idempotent and can be called multiple times safely.
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS import_batches (
            id            INTEGER PRIMARY KEY AUTOINCREMENT,
            created_at    TEXT    NOT NULL,
            source_type   TEXT    NOT NULL,
            source_label  TEXT    NOT NULL,
            mode          TEXT    NOT NULL,
            rows_inserted INTEGER NOT NULL DEFAULT 0
        );
        """
    )

    for name in COLLECTIONS:
        conn.execute(_create_table_sql(name))

    conn.execute("CREATE INDEX IF NOT EXISTS idx_sales_date ON sales(date);")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_expenses_date ON expenses(date);")

    conn.commit()


def _to_db_value(kind: str, value: Any, money: bool) -> Any:
    """Convert a normalized DataFrame value to its SQLite representation."""
    if kind == "date":
        if pd.isna(value):
            return None
        return pd.Timestamp(value).strftime("%Y-%m-%d %H:%M:%S")
    if money:
        return int(round(float(value) * 100))
    if kind in ("id", "int"):
        return int(value)
    if kind == "bool":
        return 1 if bool(value) else 0
    if kind == "float":
        return float(value)
    return None if value is None else str(value)


def _collection_rows(name: str, df: pd.DataFrame) -> list[tuple]:
    schema = SCHEMAS[name]
    money = MONEY_COLUMNS[name]
    rows = []
    for record in df[list(schema)].itertuples(index=False):
        rows.append(
            tuple(
                _to_db_value(kind, value, col in money)
                for (col, kind), value in zip(schema.items(), record)
            )
        )
    return rows


def _now_utc_iso() -> str:
    """Return the current UTC datetime as ISO string."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def init_database(cfg: DatabaseConfig) -> None:
    """
    Initialize the database schema if needed.

    - Creates the SQLite file if it does not exist.
    - Creates the import_batches table and one table per collection if
      they are missing.
    - This function is idempotent: calling it multiple times is safe.

    Raises
    ------
    ValueError
        If cfg.engine is not supported.
    sqlite3.Error
        If schema creation fails.
    """
    cfg.path.parent.mkdir(parents=True, exist_ok=True)

    conn = _connect(cfg)
    try:
        _create_schema_if_needed(conn)
    finally:
        conn.close()


def import_dataset(
    dataset: Dataset,
    cfg: DatabaseConfig,
    *,
    mode: ImportMode = "replace",
    source_type: SourceType = "csv",
    source_label: str = "",
    imported_at: datetime | None = None,
) -> ImportStats:
    """
    Store every collection of a Dataset in the database.

    Parameters
    ----------
    dataset:
        Normalized snapshot to store.
    cfg:
        Database configuration.
    mode:
        - "replace": every collection table is emptied first, so the
          database ends up holding exactly `dataset`.
        - "append": rows are upserted by id (an existing row with the same
          id is overwritten); recipe lines are appended. Collections listed
          in `dataset.generated_ids` had no ids in their source, so their
          rows are renumbered after the current MAX(id) and never
          overwrite stored rows.
    source_type, source_label:
        Origin of the data, stored in import_batches.
    imported_at:
        Timestamp of the import. If None, uses the current UTC time.

    Returns
    -------
    ImportStats
        Batch id and number of rows written per collection.

    Raises
    ------
    ValueError
        If `mode` is unknown or cfg.engine is not supported.
    sqlite3.Error
        If database operations fail (the import is rolled back).
    """
    if mode not in ("replace", "append"):
        raise ValueError(f"Unknown import mode: {mode!r}. Expected 'replace' or 'append'.")

    init_database(cfg)

    if imported_at is None:
        imported_at_iso = _now_utc_iso()
    else:
        imported_at_iso = imported_at.isoformat(timespec="seconds")

    conn = _connect(cfg)
    try:
        cur = conn.cursor()

        # 1) Create import_batch row
        cur.execute(
            """
            INSERT INTO import_batches (
                created_at, source_type, source_label, mode, rows_inserted
            )
            VALUES (?, ?, ?, ?, 0);
            """,
            (imported_at_iso, source_type, source_label, mode),
        )
        batch_id = cur.lastrowid

        # 2) Write each collection
        rows_inserted: dict[str, int] = {}
        for name in COLLECTIONS:
            if mode == "replace":
                cur.execute(f"DELETE FROM {name};")

            columns = _storage_columns(name)
            placeholders = ", ".join("?" for _ in columns)
            verb = "INSERT OR REPLACE" if "id" in SCHEMAS[name] else "INSERT"
            df = getattr(dataset, name)
            if mode == "append" and name in dataset.generated_ids:
                # Positional ids are renumbered after the stored ones.
                cur.execute(f"SELECT COALESCE(MAX(id), 0) FROM {name};")
                max_id = int(cur.fetchone()[0])
                df = df.assign(id=df["id"] + max_id)
                logger.debug("Appending %s with ids starting after %d", name, max_id)
            rows = _collection_rows(name, df)
            cur.executemany(
                f"{verb} INTO {name} ({', '.join(columns)}) VALUES ({placeholders});",
                rows,
            )
            rows_inserted[name] = len(rows)

        # 3) Update rows_inserted in import_batches
        cur.execute(
            "UPDATE import_batches SET rows_inserted = ? WHERE id = ?;",
            (sum(rows_inserted.values()), batch_id),
        )

        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        raise
    finally:
        conn.close()

    logger.info(
        "Imported dataset into %s (batch %s, mode %s): %s",
        cfg.path,
        batch_id,
        mode,
        rows_inserted,
    )
    return ImportStats(batch_id=batch_id, rows_inserted=rows_inserted)


def load_dataset(cfg: DatabaseConfig) -> Dataset:
    """
    Load every collection from the database as a Dataset.

    All tables are read inside one read transaction, so the snapshot is
    consistent even if another process imports data concurrently. Money
    columns are reconstructed from cents.

    Notes
    -----
    - Empty tables give empty collections.
    - This function initializes the schema if needed.
    """
    init_database(cfg)

    frames: dict[str, pd.DataFrame] = {}
    conn = _connect(cfg)
    try:
        conn.execute("BEGIN;")
        for name in COLLECTIONS:
            order = "line_no" if name == "recipe_lines" else "id"
            df = pd.read_sql_query(
                f"SELECT {', '.join(_storage_columns(name))} FROM {name} ORDER BY {order};",
                conn,
            )
            for col in MONEY_COLUMNS[name]:
                df[col] = df.pop(f"{col}_cents").astype(float) / 100.0
            frames[name] = df
        conn.commit()
    finally:
        conn.close()

    normalized = {name: normalize_collection(name, df) for name, df in frames.items()}
    dataset = Dataset(**normalized)
    logger.info("Loaded dataset from %s: %s", cfg.path, dataset.counts())
    return dataset


def has_data(cfg: DatabaseConfig) -> bool:
    """
    Return True if at least one collection table holds a row.

    Useful to warn the user when a report is requested on an empty DB.
    """
    init_database(cfg)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        for name in COLLECTIONS:
            cur.execute(f"SELECT 1 FROM {name} LIMIT 1;")
            if cur.fetchone() is not None:
                return True
        return False
    finally:
        conn.close()


def list_import_batches(cfg: DatabaseConfig) -> pd.DataFrame:
    """
    Return the list of import batches stored in the database.

    Columns:
    - id
    - created_at
    - source_type
    - source_label
    - mode
    - rows_inserted
    """
    init_database(cfg)

    columns = ["id", "created_at", "source_type", "source_label", "mode", "rows_inserted"]

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(
            f"SELECT {', '.join(columns)} FROM import_batches ORDER BY id DESC;"
        )
        rows = cur.fetchall()
    finally:
        conn.close()

    if not rows:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(rows, columns=columns)
    df["created_at"] = pd.to_datetime(df["created_at"])
    return df
