# ERP FinSight - Cost & Profitability engine for small-business ERPs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Cost allocation for ERP FinSight.

This module computes what one unit of a product costs over a period. The
full unit cost is the sum of three components:

1. Direct material cost
   ---------------------
   Sum over the product recipe of ``ingredient.unit_cost *
   quantity_per_unit``. A recipe line pointing to an unknown ingredient
   contributes 0.

2. Variable overhead per unit
   ---------------------------
   Variable expenses of the period (by default: utilities, maintenance,
   marketing and other, rent excluded) spread over the units sold in the
   period with the configured allocation policy (see allocation.py).

3. Fixed overhead per unit
   ------------------------
   The monthly overhead (active bills' estimated amounts + effective
   salaries of the month) prorated to the period with a flat 30-day month:

       period_overhead = monthly_overhead / 30 * days_in_period

   then spread over the units sold with the same allocation policy.

Every function is a pure read of the Dataset it receives: the month used
for payroll and the period are always explicit arguments, and zero
denominators or missing references degrade to 0 instead of raising.

`build_cost_context()` computes the period-wide ingredients (period sales,
cost pools, material costs) once, so that callers iterating over the
catalog (profitability.py) do not recompute them for every product.
"""

from dataclasses import dataclass
from typing import Any

import pandas as pd

from .allocation import AllocationPolicy, get_allocation_policy
from .dataset import Dataset
from .logging_config import get_logger
from .periods import Period, days_in_period, filter_by_period
from .rules import DEFAULT_RULES, CostingRules, signed_adjustment_amounts

logger = get_logger("costing")


@dataclass(frozen=True)
class UnitCostBreakdown:
    """Full cost of one unit of a product, split by component."""

    direct_material_cost: float
    variable_overhead: float
    fixed_overhead: float
    total_cost_per_unit: float


# ---------------------------------------------------------------------------
# Direct materials
# ---------------------------------------------------------------------------


def direct_material_costs(dataset: Dataset) -> pd.Series:
    """
    Direct material cost per unit, for every product.

    Returns:
        Float Series indexed by product id. Products without a recipe have
        a cost of 0.0; recipe lines of products absent from the catalog are
        still costed.
    """
    product_ids = dataset.products["id"].drop_duplicates()
    costs = pd.Series(0.0, index=pd.Index(product_ids, name="product_id"))

    lines = dataset.recipe_lines
    if lines.empty:
        return costs

    unit_costs = dataset.ingredients.drop_duplicates("id").set_index("id")["unit_cost"]
    line_unit_cost = lines["ingredient_id"].map(unit_costs)

    missing = line_unit_cost.isna()
    if missing.any():
        logger.debug(
            "%d recipe line(s) reference unknown ingredients and are costed at 0: %s",
            int(missing.sum()),
            sorted(set(lines.loc[missing, "ingredient_id"].tolist())),
        )

    line_cost = line_unit_cost.fillna(0.0) * lines["quantity_per_unit"]
    per_product = line_cost.groupby(lines["product_id"]).sum()

    return costs.add(per_product, fill_value=0.0).astype("float64")


def calculate_direct_material_cost(dataset: Dataset, product_id: Any) -> float:
    """Direct material cost of one unit of a product (0.0 if unknown)."""
    return float(direct_material_costs(dataset).get(product_id, 0.0))


# ---------------------------------------------------------------------------
# Payroll & monthly overhead
# ---------------------------------------------------------------------------


def effective_salaries(dataset: Dataset, month: str) -> pd.Series:
    """
    Effective salary of every employee for a month.

    effective = base_salary + sum(adjustments of that month), where
    deductions are subtracted and bonuses, overtime and allowances added.

    Returns:
        Float Series indexed by employee id.
    """
    employees = dataset.employees
    base = pd.Series(
        employees["base_salary"].to_numpy(dtype="float64"),
        index=pd.Index(employees["id"], name="employee_id"),
    )
    if base.empty:
        return base

    adjustments = dataset.salary_adjustments
    of_month = adjustments.loc[adjustments["month"] == month]
    if of_month.empty:
        return base

    totals = signed_adjustment_amounts(of_month).groupby(of_month["employee_id"]).sum()
    extra = totals.reindex(base.index, fill_value=0.0).to_numpy(dtype="float64")
    return pd.Series(base.to_numpy() + extra, index=base.index)


def calculate_effective_salary(dataset: Dataset, employee_id: Any, month: str) -> float:
    """Effective salary of one employee for a month (0.0 if unknown)."""
    employees = dataset.employees
    match = employees.loc[employees["id"] == employee_id]
    if match.empty:
        return 0.0

    base_salary = float(match["base_salary"].iloc[0])

    adjustments = dataset.salary_adjustments
    mask = (adjustments["employee_id"] == employee_id) & (adjustments["month"] == month)
    total = float(signed_adjustment_amounts(adjustments.loc[mask]).sum())

    return base_salary + total


def calculate_monthly_overhead(dataset: Dataset, month: str) -> float:
    """
    Monthly overhead: estimated amounts of active bills plus the effective
    salaries of all employees for `month`.
    """
    bills = dataset.monthly_bills
    bills_total = float(bills.loc[bills["is_active"], "estimated_amount"].sum())
    salaries_total = float(effective_salaries(dataset, month).sum())
    return bills_total + salaries_total


def prorate_monthly_amount(
    amount: float, period: Period, rules: CostingRules = DEFAULT_RULES
) -> float:
    """Prorate a monthly amount to a period with a flat month length."""
    return float(amount) / rules.proration_days * days_in_period(period)


# ---------------------------------------------------------------------------
# Period pools
# ---------------------------------------------------------------------------


def period_sales(dataset: Dataset, period: Period) -> pd.DataFrame:
    """Sales dated within the period (inclusive bounds)."""
    return filter_by_period(dataset.sales, "date", period)


def period_variable_expenses(
    dataset: Dataset, period: Period, rules: CostingRules = DEFAULT_RULES
) -> float:
    """Total of the period's expenses classified as variable by `rules`."""
    expenses = filter_by_period(dataset.expenses, "date", period)
    if expenses.empty:
        return 0.0
    return float(expenses.loc[rules.variable_mask(expenses), "amount"].sum())


@dataclass(frozen=True, eq=False)
class CostContext:
    """Period-wide inputs shared by every per-product cost calculation."""

    period: Period
    month: str
    sales: pd.DataFrame
    material_costs: pd.Series
    variable_pool: float
    monthly_overhead: float
    fixed_pool: float
    policy: AllocationPolicy

    def direct_material_cost(self, product_id: Any) -> float:
        return float(self.material_costs.get(product_id, 0.0))

    def variable_overhead_per_unit(self, product_id: Any) -> float:
        return self.policy(self.variable_pool, product_id, self.sales)

    def fixed_overhead_per_unit(self, product_id: Any) -> float:
        return self.policy(self.fixed_pool, product_id, self.sales)

    def unit_cost(self, product_id: Any) -> UnitCostBreakdown:
        dmc = self.direct_material_cost(product_id)
        variable = self.variable_overhead_per_unit(product_id)
        fixed = self.fixed_overhead_per_unit(product_id)
        return UnitCostBreakdown(
            direct_material_cost=dmc,
            variable_overhead=variable,
            fixed_overhead=fixed,
            total_cost_per_unit=dmc + variable + fixed,
        )


def build_cost_context(
    dataset: Dataset,
    period: Period,
    month: str,
    rules: CostingRules = DEFAULT_RULES,
) -> CostContext:
    """
    Compute the shared inputs of the cost allocation for a period.

    Args:
        dataset: Entity snapshot.
        period: Reporting period (inclusive bounds).
        month: Month key ("YYYY-MM") used for payroll and bills overhead.
        rules: Costing conventions.
    """
    monthly_overhead = calculate_monthly_overhead(dataset, month)
    return CostContext(
        period=period,
        month=month,
        sales=period_sales(dataset, period),
        material_costs=direct_material_costs(dataset),
        variable_pool=period_variable_expenses(dataset, period, rules),
        monthly_overhead=monthly_overhead,
        fixed_pool=prorate_monthly_amount(monthly_overhead, period, rules),
        policy=get_allocation_policy(rules.allocation_method),
    )


# ---------------------------------------------------------------------------
# Per-unit overheads & full cost
# ---------------------------------------------------------------------------


def calculate_variable_overhead_per_unit(
    dataset: Dataset,
    product_id: Any,
    period: Period,
    rules: CostingRules = DEFAULT_RULES,
) -> float:
    """
    Variable overhead carried by one unit of a product over a period.

    With the default unit policy this equals
    total_variable_expenses / total_units_sold. Returns 0.0 if the product
    or the catalog sold nothing in the period.
    """
    policy = get_allocation_policy(rules.allocation_method)
    pool = period_variable_expenses(dataset, period, rules)
    return policy(pool, product_id, period_sales(dataset, period))


def calculate_fixed_overhead_per_unit(
    dataset: Dataset,
    product_id: Any,
    period: Period,
    month: str,
    rules: CostingRules = DEFAULT_RULES,
) -> float:
    """
    Fixed overhead carried by one unit of a product over a period.

    The monthly overhead of `month` is prorated to the period with a flat
    30-day month, then allocated over units sold. Returns 0.0 if the
    product or the catalog sold nothing in the period.
    """
    policy = get_allocation_policy(rules.allocation_method)
    pool = prorate_monthly_amount(calculate_monthly_overhead(dataset, month), period, rules)
    return policy(pool, product_id, period_sales(dataset, period))


def calculate_full_cost_per_unit(
    dataset: Dataset,
    product_id: Any,
    period: Period,
    month: str,
    rules: CostingRules = DEFAULT_RULES,
) -> UnitCostBreakdown:
    """Direct material + variable overhead + fixed overhead for one unit."""
    return build_cost_context(dataset, period, month, rules).unit_cost(product_id)
