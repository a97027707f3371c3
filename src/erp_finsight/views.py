# ERP FinSight - Cost & Profitability engine for small-business ERPs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for ERP FinSight.

The engine returns frozen dataclasses (CostSummary, RevenueSummary,
ProfitMetrics, ...) and long-format DataFrames. This module turns them
into display-ready DataFrames for console tables and CSV export:

- summaries become "metric tables" with the columns
  key, label, value, unit (one row per figure),
- listings (per product, per category, per owner, per bill) are rounded
  to the configured number of decimals.

No calculation happens here.
"""

import pandas as pd

from .aggregation import BillSummary, CostSummary, RevenueSummary
from .profitability import PeriodResult, PortfolioTotals, ProfitMetrics

METRIC_COLUMNS = ["key", "label", "value", "unit"]

# (key, label, unit)
_COST_ROWS = [
    ("direct_material_costs", "Direct material costs", "amount"),
    ("variable_expenses", "Variable expenses", "amount"),
    ("allocated_fixed_costs", "Allocated fixed costs", "amount"),
    ("total_costs", "Total costs", "amount"),
    ("actual_bill_payments", "Bill payments (paid)", "amount"),
    ("salary_adjustments", "Salary adjustments (net)", "amount"),
]

_REVENUE_ROWS = [
    ("total_revenue", "Total revenue", "amount"),
    ("total_units", "Units sold", "count"),
    ("total_orders", "Orders", "count"),
    ("avg_order_value", "Average order value", "amount"),
    ("avg_revenue_per_unit", "Average revenue per unit", "amount"),
    ("daily_average", "Daily average revenue", "amount"),
]

_PROFIT_ROWS = [
    ("total_revenue", "Revenue", "amount"),
    ("total_quantity_sold", "Units sold", "count"),
    ("average_selling_price", "Average selling price", "amount"),
    ("direct_material_cost", "Direct material cost per unit", "amount"),
    ("variable_overhead", "Variable overhead per unit", "amount"),
    ("fixed_overhead", "Fixed overhead per unit", "amount"),
    ("total_cost_per_unit", "Full cost per unit", "amount"),
    ("total_cost_for_period", "Total cost for period", "amount"),
    ("gross_profit", "Gross profit", "amount"),
    ("profit_per_unit", "Profit per unit", "amount"),
    ("avg_profit_per_unit", "Average profit per unit", "amount"),
    ("gross_profit_margin", "Gross profit margin", "percent"),
    ("markup_percentage", "Markup", "percent"),
    ("contribution_margin", "Contribution margin", "amount"),
    ("contribution_margin_percentage", "Contribution margin %", "percent"),
    ("sales_count", "Number of sales", "count"),
    ("average_order_size", "Average order size", "units"),
    ("roi", "ROI", "percent"),
]

_PORTFOLIO_ROWS = [
    ("total_revenue", "Total revenue", "amount"),
    ("total_cost", "Total cost", "amount"),
    ("total_profit", "Total profit", "amount"),
    ("total_units", "Units sold", "count"),
    ("avg_profit_per_unit", "Average profit per unit", "amount"),
    ("portfolio_margin", "Portfolio margin", "percent"),
    ("portfolio_roi", "Portfolio ROI", "percent"),
]

_PERIOD_RESULT_ROWS = [
    ("revenue", "Revenue", "amount"),
    ("costs", "Total costs", "amount"),
    ("net_profit", "Net profit", "amount"),
    ("profit_margin", "Profit margin", "percent"),
    ("roi", "ROI", "percent"),
]

_BILL_SUMMARY_ROWS = [
    ("total_estimated", "Estimated", "amount"),
    ("total_paid", "Paid", "amount"),
    ("total_unpaid", "Unpaid (estimated)", "amount"),
]


def _metric_table(
    values: dict[str, float], rows: list[tuple[str, str, str]], decimals: int
) -> pd.DataFrame:
    records = [
        {
            "key": key,
            "label": label,
            "value": round(float(values[key]), decimals),
            "unit": unit,
        }
        for key, label, unit in rows
    ]
    return pd.DataFrame(records, columns=METRIC_COLUMNS)


def round_frame(df: pd.DataFrame, decimals: int) -> pd.DataFrame:
    """Return a copy of `df` with every float column rounded."""
    out = df.copy()
    float_cols = out.select_dtypes(include="float").columns
    out[float_cols] = out[float_cols].round(decimals)
    return out


def cost_summary_to_dataframe(summary: CostSummary, decimals: int) -> pd.DataFrame:
    values = {key: getattr(summary, key) for key, _, _ in _COST_ROWS}
    return _metric_table(values, _COST_ROWS, decimals)


def revenue_summary_to_dataframe(
    summary: RevenueSummary, decimals: int
) -> pd.DataFrame:
    values = {key: getattr(summary, key) for key, _, _ in _REVENUE_ROWS}
    return _metric_table(values, _REVENUE_ROWS, decimals)


def profit_metrics_to_dataframe(metrics: ProfitMetrics, decimals: int) -> pd.DataFrame:
    """
    Metric table for one product.

    The cost breakdown is inlined (one row per unit cost component), see
    ProfitMetrics.to_row().
    """
    return _metric_table(metrics.to_row(), _PROFIT_ROWS, decimals)


def portfolio_totals_to_dataframe(
    totals: PortfolioTotals, decimals: int
) -> pd.DataFrame:
    values = {key: getattr(totals, key) for key, _, _ in _PORTFOLIO_ROWS}
    return _metric_table(values, _PORTFOLIO_ROWS, decimals)


def period_result_to_dataframe(result: PeriodResult, decimals: int) -> pd.DataFrame:
    values = {key: getattr(result, key) for key, _, _ in _PERIOD_RESULT_ROWS}
    return _metric_table(values, _PERIOD_RESULT_ROWS, decimals)


def bill_summary_to_dataframe(summary: BillSummary, decimals: int) -> pd.DataFrame:
    values = {key: getattr(summary, key) for key, _, _ in _BILL_SUMMARY_ROWS}
    return _metric_table(values, _BILL_SUMMARY_ROWS, decimals)


def portfolio_products_view(products: pd.DataFrame, decimals: int) -> pd.DataFrame:
    """Compact per-product portfolio table, most profitable first."""
    columns = [
        "product_id",
        "name",
        "category",
        "total_quantity_sold",
        "total_revenue",
        "total_cost_per_unit",
        "gross_profit",
        "gross_profit_margin",
        "roi",
    ]
    if products.empty:
        return pd.DataFrame(columns=columns)
    df = products[columns].sort_values("gross_profit", ascending=False, kind="stable")
    return round_frame(df.reset_index(drop=True), decimals)
