# ERP FinSight - Cost & Profitability engine for small-business ERPs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Overhead allocation policies.

An allocation policy spreads a period cost pool (variable expenses or
prorated fixed overhead) over the units of one product sold during that
period, and returns the resulting overhead *per unit* of that product.

Available policies
------------------
- ``unit`` (default):
    Each unit sold, whatever the product, carries the same overhead:

        pool * (product_units / total_units) / product_units
        == pool / total_units

- ``revenue``:
    The product receives a share of the pool proportional to its revenue,
    spread over its own units:

        pool * (product_revenue / total_revenue) / product_units

Every policy returns 0 when the product sold no unit in the period or when
the denominator of its share is 0.
"""

from collections.abc import Callable
from typing import Any

import pandas as pd

# pool, product_id, period sales -> overhead per unit of that product
AllocationPolicy = Callable[[float, Any, pd.DataFrame], float]


def _product_units(period_sales: pd.DataFrame, product_id: Any) -> int:
    if period_sales.empty:
        return 0
    mask = period_sales["product_id"] == product_id
    return int(period_sales.loc[mask, "quantity"].sum())


def allocate_by_units(pool: float, product_id: Any, period_sales: pd.DataFrame) -> float:
    """Flat per-unit allocation across the whole catalog."""
    total_units = int(period_sales["quantity"].sum()) if not period_sales.empty else 0
    product_units = _product_units(period_sales, product_id)

    if total_units == 0 or product_units == 0:
        return 0.0

    return float(pool) * (product_units / total_units) / product_units


def allocate_by_revenue(
    pool: float, product_id: Any, period_sales: pd.DataFrame
) -> float:
    """Revenue-weighted allocation, expressed per unit of the product."""
    product_units = _product_units(period_sales, product_id)
    if product_units == 0:
        return 0.0

    total_revenue = float(period_sales["amount"].sum())
    if total_revenue == 0:
        return 0.0

    mask = period_sales["product_id"] == product_id
    product_revenue = float(period_sales.loc[mask, "amount"].sum())

    return float(pool) * (product_revenue / total_revenue) / product_units


ALLOCATION_POLICIES: dict[str, AllocationPolicy] = {
    "unit": allocate_by_units,
    "revenue": allocate_by_revenue,
}


def get_allocation_policy(method: str) -> AllocationPolicy:
    """
    Return the allocation policy registered under `method`.

    Raises:
        ValueError: if no policy is registered under that name.
    """
    try:
        return ALLOCATION_POLICIES[method]
    except KeyError as exc:
        raise ValueError(
            f"Unknown allocation method: {method!r}. "
            f"Expected one of: {', '.join(sorted(ALLOCATION_POLICIES))}."
        ) from exc
