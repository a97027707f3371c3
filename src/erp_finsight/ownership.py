# ERP FinSight - Cost & Profitability engine for small-business ERPs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Owner profit distribution.

Net profit is split across owners according to their configured
percentage. Percentages are applied as given: when they do not sum to 100
the distribution simply does not reconcile to the net profit (see
validation.py for the corresponding warning).
"""

from typing import Optional

import pandas as pd

from .costing import calculate_monthly_overhead
from .dataset import Dataset
from .periods import Period, filter_by_period

OWNER_PROFIT_COLUMNS = [
    "id",
    "name",
    "share_capital",
    "profit_share_percent",
    "profit_share",
]


def calculate_distributable_profit(
    dataset: Dataset, month: str, period: Optional[Period] = None
) -> float:
    """
    Net profit distributed to owners.

        net_profit = sales revenue - (monthly_overhead(month) + expenses)

    Without `period`, revenue and expenses are all-time totals. With a
    `period`, only sales and expenses dated within it are counted; the
    overhead of `month` is used in both cases.
    """
    sales = dataset.sales
    expenses = dataset.expenses
    if period is not None:
        sales = filter_by_period(sales, "date", period)
        expenses = filter_by_period(expenses, "date", period)

    revenue = float(sales["amount"].sum()) if not sales.empty else 0.0
    expenses_total = float(expenses["amount"].sum()) if not expenses.empty else 0.0

    return revenue - (calculate_monthly_overhead(dataset, month) + expenses_total)


def calculate_owner_profits(
    dataset: Dataset, month: str, period: Optional[Period] = None
) -> pd.DataFrame:
    """
    Profit share of every owner.

    Returns:
        DataFrame with the owner columns plus ``profit_share`` =
        net_profit * profit_share_percent / 100, in owner order.
    """
    owners = dataset.owners
    if owners.empty:
        return pd.DataFrame(columns=OWNER_PROFIT_COLUMNS)

    net_profit = calculate_distributable_profit(dataset, month, period)

    out = owners[["id", "name", "share_capital", "profit_share_percent"]].copy()
    out["profit_share"] = net_profit * out["profit_share_percent"] / 100
    return out.reset_index(drop=True)
