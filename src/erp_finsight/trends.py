# ERP FinSight - Cost & Profitability engine for small-business ERPs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Multi-period trends for revenue, costs and profit.

This module computes the period result (revenue, total costs, profit and
margin) for a series of periods in a single pass and returns it as one
long-format DataFrame, ready for time-series display or CSV export.

Workflow
--------
For a list of Period objects, `compute_trends()`:

1. Computes the global [min(start), max(end)] range of all periods and
   narrows sales and expenses to it *once*.

2. For each Period:
   - derives the month key used for payroll and bills overhead from the
     period start (a calendar-month period uses its own month),
   - computes total revenue and total costs with aggregation.py,
   - records one row tagged with the period label.

3. Concatenates the rows in period order.

Resulting columns: period_label, start, end, revenue, costs, profit,
profit_margin.
"""

from typing import Any

import pandas as pd

from .aggregation import calculate_total_costs, calculate_total_revenue
from .dataset import Dataset
from .periods import Period, filter_by_period, month_key, period_for_month, shift_month
from .rules import DEFAULT_RULES, CostingRules

TREND_COLUMNS = [
    "period_label",
    "start",
    "end",
    "revenue",
    "costs",
    "profit",
    "profit_margin",
]


def monthly_periods(end_month: str, count: int) -> list[Period]:
    """
    Calendar-month periods ending with `end_month`, oldest first.

    Raises
    ------
    ValueError
        If `count` is not positive or `end_month` is not a "YYYY-MM" key.
    """
    if count <= 0:
        raise ValueError("monthly_periods requires a positive number of months.")
    return [
        period_for_month(shift_month(end_month, offset))
        for offset in range(-(count - 1), 1)
    ]


def compute_trends(
    dataset: Dataset,
    periods: list[Period],
    rules: CostingRules = DEFAULT_RULES,
) -> pd.DataFrame:
    """
    Revenue, costs and profit for each period.

    Parameters
    ----------
    dataset :
        Entity snapshot.
    periods :
        Periods to compute, in display order.
    rules :
        Costing conventions.

    Returns
    -------
    pandas.DataFrame
        One row per period, columns TREND_COLUMNS.

    Raises
    ------
    ValueError
        If no periods are provided.
    """
    if not periods:
        raise ValueError("compute_trends requires at least one Period.")

    # 1) Narrow the dated collections once to the global range.
    global_range = Period(
        start=min(p.start for p in periods),
        end=max(p.end for p in periods),
        label="",
    )
    narrowed = Dataset(
        ingredients=dataset.ingredients,
        products=dataset.products,
        recipe_lines=dataset.recipe_lines,
        sales=filter_by_period(dataset.sales, "date", global_range),
        employees=dataset.employees,
        salary_adjustments=dataset.salary_adjustments,
        expenses=filter_by_period(dataset.expenses, "date", global_range),
        monthly_bills=dataset.monthly_bills,
        bill_payments=dataset.bill_payments,
        owners=dataset.owners,
        generated_ids=dataset.generated_ids,
    )

    # 2) One row per period.
    rows: list[dict[str, Any]] = []
    for period in periods:
        month = month_key(period.start)
        revenue = calculate_total_revenue(narrowed, period).total_revenue
        costs = calculate_total_costs(narrowed, period, month, rules).total_costs
        profit = revenue - costs
        rows.append(
            {
                "period_label": period.label,
                "start": period.start,
                "end": period.end,
                "revenue": revenue,
                "costs": costs,
                "profit": profit,
                "profit_margin": profit / revenue * 100 if revenue else 0.0,
            }
        )

    return pd.DataFrame(rows, columns=TREND_COLUMNS)
