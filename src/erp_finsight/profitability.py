# ERP FinSight - Cost & Profitability engine for small-business ERPs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Profitability metrics for ERP FinSight.

This module combines the revenue of a product over a period with its full
unit cost (costing.py) to derive margins, markup, contribution margin and
ROI, then rolls those metrics up over the whole catalog ("portfolio").

Metric definitions (per product, over a period)
-----------------------------------------------
- gross_profit            = revenue - total_cost_per_unit * quantity_sold
- profit_per_unit         = gross_profit / quantity_sold
                            (selling_price - total_cost_per_unit if nothing
                            was sold)
- gross_profit_margin     = gross_profit / revenue * 100
- markup_percentage       = (selling_price - unit_cost) / unit_cost * 100
- contribution_margin     = revenue - (direct_material + variable_overhead)
                            * quantity_sold  (fixed overhead excluded)
- roi                     = profit_per_unit / unit_cost * 100

Every ratio with a zero denominator is 0.0.
"""

from dataclasses import asdict, dataclass
from typing import Any

import pandas as pd

from .aggregation import calculate_total_costs, calculate_total_revenue
from .costing import CostContext, UnitCostBreakdown, build_cost_context
from .dataset import Dataset
from .periods import Period, period_for_month
from .rules import DEFAULT_RULES, CostingRules


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


@dataclass(frozen=True)
class ProfitMetrics:
    """Profitability of one product over a period."""

    product_id: Any
    total_revenue: float
    total_quantity_sold: int
    average_selling_price: float
    cost_breakdown: UnitCostBreakdown
    total_cost_for_period: float
    gross_profit: float
    profit_per_unit: float
    avg_profit_per_unit: float
    gross_profit_margin: float
    markup_percentage: float
    contribution_margin: float
    contribution_margin_percentage: float
    sales_count: int
    average_order_size: float
    roi: float

    def to_row(self) -> dict[str, Any]:
        """Flat dictionary, with the cost breakdown inlined."""
        row = asdict(self)
        row.update(row.pop("cost_breakdown"))
        return row


@dataclass(frozen=True)
class PortfolioTotals:
    """Catalog-wide profitability over a period."""

    total_revenue: float
    total_profit: float
    total_cost: float
    total_units: int
    avg_profit_per_unit: float
    portfolio_margin: float
    portfolio_roi: float


@dataclass(frozen=True, eq=False)
class PortfolioSummary:
    """
    Profitability of every product plus catalog totals.

    `products` has one row per catalog product: the product's id, name,
    category and selling price followed by its flattened ProfitMetrics.
    """

    products: pd.DataFrame
    portfolio: PortfolioTotals


@dataclass(frozen=True)
class PeriodResult:
    """Net result of a period: revenue against total costs."""

    revenue: float
    costs: float
    net_profit: float
    profit_margin: float
    roi: float


def _product_row(dataset: Dataset, product_id: Any) -> Any:
    products = dataset.products
    match = products.loc[products["id"] == product_id]
    if match.empty:
        return None
    return match.iloc[0]


def _profit_metrics(
    context: CostContext, product_id: Any, selling_price: float
) -> ProfitMetrics:
    sales = context.sales
    if sales.empty:
        product_sales = sales
    else:
        product_sales = sales.loc[sales["product_id"] == product_id]

    quantity = int(product_sales["quantity"].sum()) if not product_sales.empty else 0
    revenue = float(product_sales["amount"].sum()) if not product_sales.empty else 0.0
    sales_count = len(product_sales)

    costs = context.unit_cost(product_id)
    unit_cost = costs.total_cost_per_unit
    total_cost = unit_cost * quantity

    gross_profit = revenue - total_cost
    if quantity > 0:
        profit_per_unit = gross_profit / quantity
    else:
        profit_per_unit = selling_price - unit_cost

    variable_cost_per_unit = costs.direct_material_cost + costs.variable_overhead
    contribution_margin = revenue - variable_cost_per_unit * quantity

    return ProfitMetrics(
        product_id=product_id,
        total_revenue=revenue,
        total_quantity_sold=quantity,
        average_selling_price=revenue / quantity if quantity > 0 else selling_price,
        cost_breakdown=costs,
        total_cost_for_period=total_cost,
        gross_profit=gross_profit,
        profit_per_unit=profit_per_unit,
        avg_profit_per_unit=_ratio(gross_profit, quantity),
        gross_profit_margin=_ratio(gross_profit, revenue) * 100,
        markup_percentage=_ratio(selling_price - unit_cost, unit_cost) * 100,
        contribution_margin=contribution_margin,
        contribution_margin_percentage=_ratio(contribution_margin, revenue) * 100,
        sales_count=sales_count,
        average_order_size=_ratio(quantity, sales_count),
        roi=_ratio(profit_per_unit, unit_cost) * 100,
    )


def calculate_profit_metrics(
    dataset: Dataset,
    product_id: Any,
    period: Period,
    month: str,
    rules: CostingRules = DEFAULT_RULES,
) -> ProfitMetrics:
    """
    Profitability of one product over a period.

    An unknown product is treated as a product with a selling price of 0
    and no recipe; its metrics are therefore all zero unless sales
    reference it.
    """
    product = _product_row(dataset, product_id)
    selling_price = float(product["selling_price"]) if product is not None else 0.0
    context = build_cost_context(dataset, period, month, rules)
    return _profit_metrics(context, product_id, selling_price)


def calculate_portfolio_metrics(
    dataset: Dataset,
    period: Period,
    month: str,
    rules: CostingRules = DEFAULT_RULES,
) -> PortfolioSummary:
    """Profit metrics for every catalog product and their totals."""
    context = build_cost_context(dataset, period, month, rules)

    rows: list[dict[str, Any]] = []
    for product in dataset.products.itertuples(index=False):
        metrics = _profit_metrics(context, product.id, float(product.selling_price))
        row = {
            "name": product.name,
            "category": product.category,
            "selling_price": float(product.selling_price),
        }
        row.update(metrics.to_row())
        rows.append(row)

    if rows:
        products_df = pd.DataFrame(rows)
        leading = ["product_id", "name", "category", "selling_price"]
        products_df = products_df[
            leading + [c for c in products_df.columns if c not in leading]
        ]
    else:
        products_df = pd.DataFrame(columns=["product_id", "name", "category"])

    total_revenue = sum(r["total_revenue"] for r in rows)
    total_profit = sum(r["gross_profit"] for r in rows)
    total_cost = sum(r["total_cost_for_period"] for r in rows)
    total_units = sum(r["total_quantity_sold"] for r in rows)

    return PortfolioSummary(
        products=products_df,
        portfolio=PortfolioTotals(
            total_revenue=float(total_revenue),
            total_profit=float(total_profit),
            total_cost=float(total_cost),
            total_units=int(total_units),
            avg_profit_per_unit=_ratio(total_profit, total_units),
            portfolio_margin=_ratio(total_profit, total_revenue) * 100,
            portfolio_roi=_ratio(total_profit, total_cost) * 100,
        ),
    )


def calculate_product_cost(
    dataset: Dataset,
    product_id: Any,
    month: str,
    rules: CostingRules = DEFAULT_RULES,
) -> float:
    """Full cost of one unit of a product over the calendar month `month`."""
    period = period_for_month(month)
    return build_cost_context(dataset, period, month, rules).unit_cost(
        product_id
    ).total_cost_per_unit


def calculate_profit_margin(
    dataset: Dataset,
    product_id: Any,
    month: str,
    rules: CostingRules = DEFAULT_RULES,
) -> float:
    """Margin on selling price: (price - full unit cost) / price * 100."""
    product = _product_row(dataset, product_id)
    if product is None:
        return 0.0
    price = float(product["selling_price"])
    cost = calculate_product_cost(dataset, product_id, month, rules)
    return _ratio(price - cost, price) * 100


def calculate_period_result(
    dataset: Dataset,
    period: Period,
    month: str,
    rules: CostingRules = DEFAULT_RULES,
) -> PeriodResult:
    """Revenue, total costs, net profit, margin and ROI of a period."""
    revenue = calculate_total_revenue(dataset, period).total_revenue
    costs = calculate_total_costs(dataset, period, month, rules).total_costs
    net_profit = revenue - costs
    return PeriodResult(
        revenue=revenue,
        costs=costs,
        net_profit=net_profit,
        profit_margin=_ratio(net_profit, revenue) * 100,
        roi=_ratio(net_profit, costs) * 100,
    )
