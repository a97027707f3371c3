# ERP FinSight - Cost & Profitability engine for small-business ERPs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period aggregation for ERP FinSight.

Given a reporting period, this module filters the relevant collections of
a Dataset and produces the period summaries consumed by dashboards and
reports:

1. Total costs (`calculate_total_costs`)
   - direct material costs of the units sold in the period,
   - variable expenses of the period,
   - monthly overhead prorated to the period (flat 30-day month),
   - informational figures: bill payments actually paid and net salary
     adjustments recorded during the period (not part of total costs).

2. Total revenue (`calculate_total_revenue`)
   - totals (revenue, units, orders) and averages,
   - a per-product breakdown (every catalog product, sorted by revenue),
   - a per-category breakdown.

3. Monthly bills status (`calculate_bill_status`, `summarize_bills`)
   - estimated vs actually paid amounts for a month, with variance and
     paid / pending / overdue status.

All ratios guard against zero denominators by returning 0.0.
"""

from calendar import monthrange
from dataclasses import dataclass
from datetime import date

import pandas as pd

from .costing import (
    calculate_monthly_overhead,
    direct_material_costs,
    period_sales,
    period_variable_expenses,
    prorate_monthly_amount,
)
from .dataset import Dataset
from .periods import Period, days_in_period, filter_by_period, parse_month
from .rules import DEFAULT_RULES, CostingRules, signed_adjustment_amounts

UNCATEGORIZED = "Other"

BY_PRODUCT_COLUMNS = [
    "product_id",
    "name",
    "category",
    "revenue",
    "units",
    "orders",
    "avg_order_value",
    "revenue_share",
]
BY_CATEGORY_COLUMNS = ["category", "revenue", "units", "orders", "share"]
BILL_STATUS_COLUMNS = [
    "bill_id",
    "name",
    "category",
    "bill_type",
    "due_date",
    "estimated_amount",
    "actual_amount",
    "variance",
    "status",
]


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


# ---------------------------------------------------------------------------
# Costs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CostBreakdown:
    """Cost components of a period, for charting."""

    materials: float
    variable: float
    fixed: float
    bills: float
    adjustments: float


@dataclass(frozen=True)
class CostSummary:
    """
    Total costs of a period.

    Attributes
    ----------
    direct_material_costs:
        Material cost of every unit sold in the period.
    variable_expenses:
        Period expenses classified as variable.
    allocated_fixed_costs:
        Monthly overhead prorated to the period.
    actual_bill_payments:
        Cash paid against monthly bills during the period (informational).
    salary_adjustments:
        Net salary adjustments created during the period (informational).
    total_costs:
        direct_material_costs + variable_expenses + allocated_fixed_costs.
    breakdown:
        The same figures grouped for charting.
    """

    direct_material_costs: float
    variable_expenses: float
    allocated_fixed_costs: float
    actual_bill_payments: float
    salary_adjustments: float
    total_costs: float
    breakdown: CostBreakdown


def calculate_total_costs(
    dataset: Dataset,
    period: Period,
    month: str,
    rules: CostingRules = DEFAULT_RULES,
) -> CostSummary:
    """
    Compute the total costs of a period.

    Args:
        dataset: Entity snapshot.
        period: Reporting period (inclusive bounds).
        month: Month key ("YYYY-MM") whose overhead is prorated.
        rules: Costing conventions.
    """
    sales = period_sales(dataset, period)

    # 1) Direct materials: unit material cost of each sold product * quantity.
    #    Sales of unknown products contribute 0.
    if sales.empty:
        materials = 0.0
    else:
        unit_material = sales["product_id"].map(direct_material_costs(dataset))
        materials = float((unit_material.fillna(0.0) * sales["quantity"]).sum())

    # 2) Variable expenses of the period.
    variable = period_variable_expenses(dataset, period, rules)

    # 3) Monthly overhead prorated to the period length.
    fixed = prorate_monthly_amount(calculate_monthly_overhead(dataset, month), period, rules)

    # 4) Bill payments actually paid during the period.
    payments = filter_by_period(dataset.bill_payments, "paid_date", period)
    bills_paid = float(payments["actual_amount"].sum()) if not payments.empty else 0.0

    # 5) Salary adjustments created during the period.
    adjustments = filter_by_period(dataset.salary_adjustments, "created_at", period)
    adjustments_total = (
        float(signed_adjustment_amounts(adjustments).sum())
        if not adjustments.empty
        else 0.0
    )

    return CostSummary(
        direct_material_costs=materials,
        variable_expenses=variable,
        allocated_fixed_costs=fixed,
        actual_bill_payments=bills_paid,
        salary_adjustments=adjustments_total,
        total_costs=materials + variable + fixed,
        breakdown=CostBreakdown(
            materials=materials,
            variable=variable,
            fixed=fixed,
            bills=bills_paid,
            adjustments=adjustments_total,
        ),
    )


# ---------------------------------------------------------------------------
# Revenue
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class RevenueSummary:
    """
    Revenue of a period.

    `by_product` has one row per catalog product (columns
    BY_PRODUCT_COLUMNS), sorted by revenue in descending order.
    `by_category` groups those rows by product category (columns
    BY_CATEGORY_COLUMNS), in order of first appearance.
    """

    total_revenue: float
    total_units: int
    total_orders: int
    avg_order_value: float
    avg_revenue_per_unit: float
    daily_average: float
    by_product: pd.DataFrame
    by_category: pd.DataFrame


def _revenue_by_product(
    dataset: Dataset, sales: pd.DataFrame, total_revenue: float
) -> pd.DataFrame:
    products = dataset.products
    if products.empty:
        return pd.DataFrame(columns=BY_PRODUCT_COLUMNS)

    if sales.empty:
        grouped = pd.DataFrame(columns=["revenue", "units", "orders"])
    else:
        grouped = sales.groupby("product_id").agg(
            revenue=("amount", "sum"),
            units=("quantity", "sum"),
            orders=("amount", "count"),
        )

    df = pd.DataFrame(
        {
            "product_id": products["id"],
            "name": products["name"],
            "category": products["category"].where(
                products["category"] != "", UNCATEGORIZED
            ),
        }
    )
    df["revenue"] = df["product_id"].map(grouped["revenue"]).fillna(0.0).astype(float)
    df["units"] = df["product_id"].map(grouped["units"]).fillna(0).astype("int64")
    df["orders"] = df["product_id"].map(grouped["orders"]).fillna(0).astype("int64")
    df["avg_order_value"] = [
        _ratio(rev, orders) for rev, orders in zip(df["revenue"], df["orders"])
    ]
    df["revenue_share"] = [_ratio(rev, total_revenue) * 100 for rev in df["revenue"]]

    df = df.sort_values("revenue", ascending=False, kind="stable")
    return df.reset_index(drop=True)[BY_PRODUCT_COLUMNS]


def _revenue_by_category(by_product: pd.DataFrame, total_revenue: float) -> pd.DataFrame:
    if by_product.empty:
        return pd.DataFrame(columns=BY_CATEGORY_COLUMNS)

    df = by_product.groupby("category", sort=False, as_index=False).agg(
        revenue=("revenue", "sum"),
        units=("units", "sum"),
        orders=("orders", "sum"),
    )
    df["share"] = [_ratio(rev, total_revenue) * 100 for rev in df["revenue"]]
    return df[BY_CATEGORY_COLUMNS]


def calculate_total_revenue(dataset: Dataset, period: Period) -> RevenueSummary:
    """
    Compute the revenue of a period with product and category breakdowns.

    Sales of products absent from the catalog count in the totals but do
    not appear in the breakdowns.
    """
    sales = period_sales(dataset, period)

    total_revenue = float(sales["amount"].sum()) if not sales.empty else 0.0
    total_units = int(sales["quantity"].sum()) if not sales.empty else 0
    total_orders = len(sales)

    by_product = _revenue_by_product(dataset, sales, total_revenue)
    by_category = _revenue_by_category(by_product, total_revenue)

    return RevenueSummary(
        total_revenue=total_revenue,
        total_units=total_units,
        total_orders=total_orders,
        avg_order_value=_ratio(total_revenue, total_orders),
        avg_revenue_per_unit=_ratio(total_revenue, total_units),
        daily_average=total_revenue / max(1, days_in_period(period)),
        by_product=by_product,
        by_category=by_category,
    )


# ---------------------------------------------------------------------------
# Monthly bills
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BillSummary:
    """Estimated, paid and unpaid totals of monthly bills for a month."""

    month: str
    total_estimated: float
    total_paid: float
    total_unpaid: float


def _due_date(month: str, due_day: int) -> date:
    year, mon = parse_month(month)
    last_day = monthrange(year, mon)[1]
    return date(year, mon, min(max(1, int(due_day)), last_day))


def calculate_bill_status(dataset: Dataset, month: str, as_of: date) -> pd.DataFrame:
    """
    Payment status of every active bill for a month.

    A bill is 'paid' when at least one payment is recorded for it in that
    month; its actual amount is the sum of those payments and its variance
    is actual - estimated. Otherwise it is 'overdue' when `as_of` is after
    its due date, 'pending' if not, with actual amount and variance at 0.
    Due days beyond the end of the month fall on the month's last day.

    Raises:
        ValueError: if `month` is not a valid "YYYY-MM" key.
    """
    parse_month(month)

    bills = dataset.monthly_bills.loc[dataset.monthly_bills["is_active"]]
    if bills.empty:
        return pd.DataFrame(columns=BILL_STATUS_COLUMNS)

    payments = dataset.bill_payments
    of_month = payments.loc[payments["month"] == month]
    paid_by_bill = of_month.groupby("bill_id")["actual_amount"].sum()

    rows = []
    for bill in bills.itertuples(index=False):
        due = _due_date(month, bill.due_day)
        if bill.id in paid_by_bill.index:
            actual = float(paid_by_bill.loc[bill.id])
            variance = actual - float(bill.estimated_amount)
            status = "paid"
        else:
            actual = 0.0
            variance = 0.0
            status = "overdue" if as_of > due else "pending"

        rows.append(
            {
                "bill_id": bill.id,
                "name": bill.name,
                "category": bill.category,
                "bill_type": bill.bill_type,
                "due_date": due,
                "estimated_amount": float(bill.estimated_amount),
                "actual_amount": actual,
                "variance": variance,
                "status": status,
            }
        )

    return pd.DataFrame(rows, columns=BILL_STATUS_COLUMNS)


def summarize_bills(dataset: Dataset, month: str) -> BillSummary:
    """
    Totals of monthly bills for a month.

    - total_estimated: estimated amounts of active bills,
    - total_paid: every payment recorded for the month,
    - total_unpaid: estimated amounts of active bills without a payment.
    """
    bills = dataset.monthly_bills.loc[dataset.monthly_bills["is_active"]]
    payments = dataset.bill_payments
    of_month = payments.loc[payments["month"] == month]

    unpaid = bills.loc[~bills["id"].isin(of_month["bill_id"])]

    return BillSummary(
        month=month,
        total_estimated=float(bills["estimated_amount"].sum()),
        total_paid=float(of_month["actual_amount"].sum()),
        total_unpaid=float(unpaid["estimated_amount"].sum()),
    )
