# ERP FinSight - Cost & Profitability engine for small-business ERPs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Entity snapshot for ERP FinSight.

The calculation engine never reads from a database or a file directly.
Instead, every calculation receives a `Dataset`: a frozen bundle of pandas
DataFrames, one per entity collection of the ERP:

    ingredients         id, name, unit_cost, unit, stock_quantity
    products            id, name, selling_price, category
    recipe_lines        product_id, ingredient_id, quantity_per_unit
    sales               id, product_id, product_name, quantity, unit_price,
                        amount, date, customer_name
    employees           id, name, position, base_salary, salary_type
    salary_adjustments  id, employee_id, amount, type, month, reason,
                        created_at
    expenses            id, type, description, amount, date, category
    monthly_bills       id, name, estimated_amount, category, is_active,
                        bill_type, due_day
    bill_payments       id, bill_id, bill_name, actual_amount, paid_date,
                        month
    owners              id, name, share_capital, profit_share_percent

Normalization rules
-------------------
Whatever the origin of the data (CSV files, SQLite, Python records), each
collection goes through `normalize_collection()`, which:

- lowercases and strips column names,
- checks that the required columns are present,
- adds optional columns with neutral defaults,
- converts numeric columns strictly (invalid values raise ValueError),
- converts date columns to datetime64[ns] (invalid values raise ValueError),
- derives `sales.amount` as quantity * unit_price when the column or a
  cell is blank,
- assigns 1-based positional ids to collections that have no id column.

The engine treats the resulting frames as read-only.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import pandas as pd

from .logging_config import get_logger

logger = get_logger("dataset")

# ---------------------------------------------------------------------------
# Collection schemas
# ---------------------------------------------------------------------------

COLLECTIONS: tuple[str, ...] = (
    "ingredients",
    "products",
    "recipe_lines",
    "sales",
    "employees",
    "salary_adjustments",
    "expenses",
    "monthly_bills",
    "bill_payments",
    "owners",
)

# Column -> kind ("id", "int", "float", "str", "bool", "date").
# Column order is the canonical output order.
SCHEMAS: dict[str, dict[str, str]] = {
    "ingredients": {
        "id": "id",
        "name": "str",
        "unit_cost": "float",
        "unit": "str",
        "stock_quantity": "float",
    },
    "products": {
        "id": "id",
        "name": "str",
        "selling_price": "float",
        "category": "str",
    },
    "recipe_lines": {
        "product_id": "id",
        "ingredient_id": "id",
        "quantity_per_unit": "float",
    },
    "sales": {
        "id": "id",
        "product_id": "id",
        "product_name": "str",
        "quantity": "int",
        "unit_price": "float",
        "amount": "float",
        "date": "date",
        "customer_name": "str",
    },
    "employees": {
        "id": "id",
        "name": "str",
        "position": "str",
        "base_salary": "float",
        "salary_type": "str",
    },
    "salary_adjustments": {
        "id": "id",
        "employee_id": "id",
        "amount": "float",
        "type": "str",
        "month": "str",
        "reason": "str",
        "created_at": "date",
    },
    "expenses": {
        "id": "id",
        "type": "str",
        "description": "str",
        "amount": "float",
        "date": "date",
        "category": "str",
    },
    "monthly_bills": {
        "id": "id",
        "name": "str",
        "estimated_amount": "float",
        "category": "str",
        "is_active": "bool",
        "bill_type": "str",
        "due_day": "int",
    },
    "bill_payments": {
        "id": "id",
        "bill_id": "id",
        "bill_name": "str",
        "actual_amount": "float",
        "paid_date": "date",
        "month": "str",
    },
    "owners": {
        "id": "id",
        "name": "str",
        "share_capital": "float",
        "profit_share_percent": "float",
    },
}

REQUIRED_COLUMNS: dict[str, frozenset[str]] = {
    "ingredients": frozenset({"id", "unit_cost"}),
    "products": frozenset({"id", "selling_price"}),
    "recipe_lines": frozenset({"product_id", "ingredient_id", "quantity_per_unit"}),
    "sales": frozenset({"product_id", "quantity", "unit_price", "date"}),
    "employees": frozenset({"id", "base_salary"}),
    "salary_adjustments": frozenset({"employee_id", "amount", "type", "month"}),
    "expenses": frozenset({"type", "amount", "date"}),
    "monthly_bills": frozenset({"id", "estimated_amount"}),
    "bill_payments": frozenset({"bill_id", "actual_amount", "month"}),
    "owners": frozenset({"id", "profit_share_percent"}),
}

# Defaults for optional columns, by kind.
_DEFAULTS: dict[str, Any] = {
    "str": "",
    "float": 0.0,
    "int": 0,
    "bool": True,
    "date": pd.NaT,
}

_TRUE_STRINGS = {"1", "true", "yes", "y", "t"}
_FALSE_STRINGS = {"0", "false", "no", "n", "f", ""}


def _empty_frame(name: str) -> pd.DataFrame:
    """Return an empty, correctly typed DataFrame for a collection."""
    schema = SCHEMAS[name]
    data: dict[str, pd.Series] = {}
    for col, kind in schema.items():
        if kind in ("id", "int"):
            data[col] = pd.Series([], dtype="int64")
        elif kind == "float":
            data[col] = pd.Series([], dtype="float64")
        elif kind == "bool":
            data[col] = pd.Series([], dtype="bool")
        elif kind == "date":
            data[col] = pd.Series([], dtype="datetime64[ns]")
        else:
            data[col] = pd.Series([], dtype="object")
    return pd.DataFrame(data)


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return False
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


def has_id_column(df: pd.DataFrame | None) -> bool:
    """True when a raw frame carries its own ``id`` column."""
    if df is None:
        return False
    return any(str(c).strip().lower() == "id" for c in df.columns)


def generated_id_collections(frames: Mapping[str, pd.DataFrame | None]) -> frozenset[str]:
    """Names of the raw frames whose ids will be assigned by position."""
    return frozenset(
        name
        for name, frame in frames.items()
        if name in SCHEMAS
        and "id" in SCHEMAS[name]
        and frame is not None
        and len(frame) > 0
        and not has_id_column(frame)
    )


def normalize_collection(name: str, df: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize a raw DataFrame into the canonical shape of a collection.

    Parameters
    ----------
    name:
        Collection name (one of COLLECTIONS).
    df:
        Raw DataFrame (from CSV, SQLite or Python records). It is not
        modified.

    Returns
    -------
    pandas.DataFrame
        A new DataFrame with exactly the schema columns, in schema order.

    Raises
    ------
    ValueError
        If the collection is unknown, a required column is missing, or a
        numeric/date/boolean value cannot be parsed.
    """
    if name not in SCHEMAS:
        raise ValueError(f"Unknown collection: {name!r}")

    schema = SCHEMAS[name]

    if df is None or (df.empty and len(df.columns) == 0):
        return _empty_frame(name)

    d = df.copy()
    d.columns = [str(c).strip().lower() for c in d.columns]
    cols = set(d.columns)

    # sales.amount is derived when absent, so it is not strictly required.
    missing = REQUIRED_COLUMNS[name] - cols
    if missing:
        raise ValueError(
            f"Invalid '{name}' structure: missing required column(s) "
            f"{', '.join(sorted(missing))}."
        )

    if d.empty:
        return _empty_frame(name)

    # Rows without an explicit id get a 1-based positional id.
    if "id" in schema and "id" not in cols:
        d["id"] = range(1, len(d) + 1)

    for col, kind in schema.items():
        if name == "sales" and col == "amount":
            continue
        if col not in d.columns:
            if kind == "date":
                d[col] = pd.Series(pd.NaT, index=d.index, dtype="datetime64[ns]")
            else:
                d[col] = _DEFAULTS.get(kind, "")
            continue

        if kind in ("id", "int", "float"):
            converted = pd.to_numeric(d[col], errors="coerce")
            if converted.isna().any():
                raise ValueError(f"Invalid numeric values in '{name}.{col}' column.")
            if kind in ("id", "int"):
                if (converted != converted.round()).any():
                    raise ValueError(
                        f"Invalid integer values in '{name}.{col}' column."
                    )
                d[col] = converted.astype("int64")
            else:
                d[col] = converted.astype("float64")
        elif kind == "date":
            try:
                d[col] = pd.to_datetime(d[col], errors="raise", format="ISO8601")
            except Exception as exc:  # noqa: BLE001
                raise ValueError(
                    f"Invalid values in '{name}.{col}' date column."
                ) from exc
            if getattr(d[col].dt, "tz", None) is not None:
                d[col] = d[col].dt.tz_localize(None)
            d[col] = d[col].astype("datetime64[ns]")
        elif kind == "bool":
            d[col] = d[col].map(_to_bool).astype("bool")
        else:
            d[col] = d[col].fillna("").astype(str).str.strip()

    if name == "sales":
        derived = d["quantity"] * d["unit_price"]
        if "amount" not in d.columns:
            d["amount"] = derived.astype("float64")
        else:
            raw = d["amount"].map(lambda v: v.strip() if isinstance(v, str) else v)
            blank = raw.isna() | (raw == "")
            converted = pd.to_numeric(raw.where(~blank), errors="coerce")
            if converted[~blank].isna().any():
                raise ValueError("Invalid numeric values in 'sales.amount' column.")
            d["amount"] = converted.fillna(derived).astype("float64")

    out = d[list(schema)].reset_index(drop=True)
    logger.debug("Normalized %s: %d row(s)", name, len(out))
    return out


# ---------------------------------------------------------------------------
# Dataset
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class Dataset:
    """
    Read-only snapshot of every ERP collection used by the engine.

    Build instances through `Dataset.from_frames()`, `Dataset.from_records()`
    or `Dataset.empty()` so that every frame is normalized.

    `generated_ids` names the collections whose ids were assigned by
    position because the source rows had none. An append import
    renumbers those rows after the ids already stored.
    """

    ingredients: pd.DataFrame
    products: pd.DataFrame
    recipe_lines: pd.DataFrame
    sales: pd.DataFrame
    employees: pd.DataFrame
    salary_adjustments: pd.DataFrame
    expenses: pd.DataFrame
    monthly_bills: pd.DataFrame
    bill_payments: pd.DataFrame
    owners: pd.DataFrame
    generated_ids: frozenset[str] = frozenset()

    @classmethod
    def empty(cls) -> Dataset:
        """Dataset with every collection empty."""
        return cls(**{name: _empty_frame(name) for name in COLLECTIONS})

    @classmethod
    def from_frames(cls, **frames: pd.DataFrame) -> Dataset:
        """
        Build a Dataset from raw DataFrames keyed by collection name.

        Collections that are not provided are empty.

        Raises
        ------
        ValueError
            If an unknown collection name is given or a frame is invalid.
        """
        unknown = set(frames) - set(COLLECTIONS)
        if unknown:
            raise ValueError(f"Unknown collection(s): {', '.join(sorted(unknown))}")

        normalized = {
            name: normalize_collection(name, frames.get(name)) for name in COLLECTIONS
        }
        return cls(**normalized, generated_ids=generated_id_collections(frames))

    @classmethod
    def from_records(cls, **records: Iterable[Mapping[str, Any]]) -> Dataset:
        """
        Build a Dataset from lists of dictionaries.

        Products may carry their recipe inline, under a ``recipe`` key:

            {"id": 1, "name": "Latte", "selling_price": 5.0,
             "recipe": [{"ingredient_id": 1, "quantity_per_unit": 0.02}]}

        Inline recipes are flattened into ``recipe_lines`` after any
        explicitly provided recipe lines.
        """
        rows = {name: [dict(r) for r in value] for name, value in records.items()}

        products = rows.get("products", [])
        recipe_lines = rows.setdefault("recipe_lines", [])
        for product in products:
            recipe = product.pop("recipe", None) or []
            for line in recipe:
                recipe_lines.append(
                    {
                        "product_id": product["id"],
                        "ingredient_id": line["ingredient_id"],
                        "quantity_per_unit": line["quantity_per_unit"],
                    }
                )

        frames = {name: pd.DataFrame(value) for name, value in rows.items()}
        return cls.from_frames(**frames)

    def replace(self, **frames: pd.DataFrame) -> Dataset:
        """Return a new Dataset with some collections replaced (normalized)."""
        current = {name: getattr(self, name) for name in COLLECTIONS}
        for name, frame in frames.items():
            if name not in current:
                raise ValueError(f"Unknown collection: {name!r}")
            current[name] = normalize_collection(name, frame)
        generated = (self.generated_ids - set(frames)) | generated_id_collections(frames)
        return Dataset(**current, generated_ids=generated)

    def counts(self) -> dict[str, int]:
        """Number of rows per collection."""
        return {name: len(getattr(self, name)) for name in COLLECTIONS}
