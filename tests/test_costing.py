from datetime import date

import pytest

from erp_finsight.costing import (
    build_cost_context,
    calculate_direct_material_cost,
    calculate_effective_salary,
    calculate_fixed_overhead_per_unit,
    calculate_full_cost_per_unit,
    calculate_monthly_overhead,
    calculate_variable_overhead_per_unit,
    direct_material_costs,
    effective_salaries,
    prorate_monthly_amount,
)
from erp_finsight.dataset import Dataset
from erp_finsight.periods import Period
from erp_finsight.rules import CostingRules


def test_direct_material_cost_single_ingredient_line():
    """8.50 per kg * 0.02 kg per unit -> 0.17."""
    ds = Dataset.from_records(
        ingredients=[{"id": 1, "unit_cost": 8.50}],
        products=[
            {
                "id": 1,
                "selling_price": 4.5,
                "recipe": [{"ingredient_id": 1, "quantity_per_unit": 0.02}],
            }
        ],
    )
    assert calculate_direct_material_cost(ds, 1) == pytest.approx(0.17)


def test_direct_material_cost_full_recipe(coffee_dataset):
    # 8.50*0.02 + 3.20*0.15 + 2.10*0.01
    assert calculate_direct_material_cost(coffee_dataset, 1) == pytest.approx(0.671)
    assert calculate_direct_material_cost(coffee_dataset, 2) == pytest.approx(0.831)


def test_direct_material_cost_empty_recipe_and_unknown_product(coffee_dataset):
    assert calculate_direct_material_cost(coffee_dataset, 3) == 0.0
    assert calculate_direct_material_cost(coffee_dataset, 999) == 0.0


def test_direct_material_cost_missing_ingredient_contributes_zero():
    ds = Dataset.from_records(
        ingredients=[{"id": 1, "unit_cost": 8.50}],
        products=[
            {
                "id": 1,
                "selling_price": 4.5,
                "recipe": [
                    {"ingredient_id": 1, "quantity_per_unit": 0.02},
                    {"ingredient_id": 42, "quantity_per_unit": 1.0},
                ],
            }
        ],
    )
    assert calculate_direct_material_cost(ds, 1) == pytest.approx(0.17)


def test_direct_material_costs_series_covers_catalog(coffee_dataset):
    costs = direct_material_costs(coffee_dataset)
    assert set(costs.index) == {1, 2, 3}
    assert costs.loc[3] == 0.0


def test_effective_salary_with_bonus_and_deduction(coffee_dataset):
    assert calculate_effective_salary(coffee_dataset, 1, "2025-01") == pytest.approx(2700)
    assert calculate_effective_salary(coffee_dataset, 2, "2025-01") == pytest.approx(1400)


def test_effective_salary_other_month_is_base(coffee_dataset):
    assert calculate_effective_salary(coffee_dataset, 1, "2025-02") == pytest.approx(2500)


def test_effective_salary_deduction_only():
    ds = Dataset.from_records(
        employees=[{"id": 1, "base_salary": 2500}],
        salary_adjustments=[
            {"employee_id": 1, "amount": 100, "type": "deduction", "month": "2025-01"}
        ],
    )
    assert calculate_effective_salary(ds, 1, "2025-01") == pytest.approx(2400)


def test_effective_salary_unknown_employee_is_zero(coffee_dataset):
    assert calculate_effective_salary(coffee_dataset, 99, "2025-01") == 0.0


def test_effective_salaries_match_single_lookups(coffee_dataset):
    salaries = effective_salaries(coffee_dataset, "2025-01")
    for employee_id, value in salaries.items():
        assert value == pytest.approx(
            calculate_effective_salary(coffee_dataset, employee_id, "2025-01")
        )


def test_monthly_overhead_ignores_inactive_bills(coffee_dataset):
    # Active bills 1000 + 300, salaries 2700 + 1400.
    assert calculate_monthly_overhead(coffee_dataset, "2025-01") == pytest.approx(5400)
    assert calculate_monthly_overhead(coffee_dataset, "2025-02") == pytest.approx(5300)


def test_monthly_overhead_empty_dataset():
    assert calculate_monthly_overhead(Dataset.empty(), "2025-01") == 0.0


def test_prorate_monthly_amount_flat_month(january):
    assert prorate_monthly_amount(3000, january) == pytest.approx(3000)

    week = Period(start=date(2025, 1, 1), end=date(2025, 1, 8), label="week")
    assert prorate_monthly_amount(3000, week) == pytest.approx(700)

    rules = CostingRules(proration_days=28)
    assert prorate_monthly_amount(2800, week, rules) == pytest.approx(700)


def test_prorate_inverted_period_is_zero():
    inverted = Period(start=date(2025, 1, 31), end=date(2025, 1, 1), label="inverted")
    assert prorate_monthly_amount(3000, inverted) == 0.0


def test_variable_overhead_per_unit(coffee_dataset, january):
    # 200 of variable expenses over 20 units sold.
    assert calculate_variable_overhead_per_unit(coffee_dataset, 1, january) == pytest.approx(10)
    assert calculate_variable_overhead_per_unit(coffee_dataset, 2, january) == pytest.approx(10)
    # Nothing sold -> 0.
    assert calculate_variable_overhead_per_unit(coffee_dataset, 3, january) == 0.0


def test_variable_overhead_custom_expense_types(coffee_dataset, january):
    rules = CostingRules(variable_expense_types=("utilities",))
    assert calculate_variable_overhead_per_unit(
        coffee_dataset, 1, january, rules
    ) == pytest.approx(6)


def test_variable_overhead_custom_predicate(coffee_dataset, january):
    rules = CostingRules(variable_expense_predicate=lambda df: df["amount"] >= 1000)
    assert calculate_variable_overhead_per_unit(
        coffee_dataset, 1, january, rules
    ) == pytest.approx(50)


def test_fixed_overhead_per_unit(coffee_dataset, january):
    # 5400 over 20 units.
    assert calculate_fixed_overhead_per_unit(
        coffee_dataset, 1, january, "2025-01"
    ) == pytest.approx(270)
    assert calculate_fixed_overhead_per_unit(coffee_dataset, 3, january, "2025-01") == 0.0


def test_overheads_are_zero_without_expenses_bills_or_staff():
    ds = Dataset.from_records(
        products=[{"id": 1, "selling_price": 4.5}],
        sales=[
            {"product_id": 1, "quantity": 2, "unit_price": 4.5, "date": "2025-01-10"},
            {"product_id": 1, "quantity": 3, "unit_price": 4.5, "date": "2025-01-20"},
        ],
    )
    jan = Period(start=date(2025, 1, 1), end=date(2025, 1, 31), label="Jan")
    assert calculate_variable_overhead_per_unit(ds, 1, jan) == 0.0
    assert calculate_fixed_overhead_per_unit(ds, 1, jan, "2025-01") == 0.0


def test_full_cost_per_unit_breakdown(coffee_dataset, january):
    cost = calculate_full_cost_per_unit(coffee_dataset, 1, january, "2025-01")
    assert cost.direct_material_cost == pytest.approx(0.671)
    assert cost.variable_overhead == pytest.approx(10)
    assert cost.fixed_overhead == pytest.approx(270)
    assert cost.total_cost_per_unit == pytest.approx(280.671)


def test_revenue_allocation_policy(coffee_dataset, january):
    rules = CostingRules(allocation_method="revenue")
    # Cappuccino: 67.5 of 92.5 revenue, 15 units.
    expected = 200 * (67.5 / 92.5) / 15
    assert calculate_variable_overhead_per_unit(
        coffee_dataset, 1, january, rules
    ) == pytest.approx(expected)


def test_cost_context_matches_single_functions(coffee_dataset, january):
    context = build_cost_context(coffee_dataset, january, "2025-01")
    assert context.variable_pool == pytest.approx(200)
    assert context.monthly_overhead == pytest.approx(5400)
    assert context.fixed_pool == pytest.approx(5400)
    assert context.unit_cost(2) == calculate_full_cost_per_unit(
        coffee_dataset, 2, january, "2025-01"
    )


def test_calculations_are_idempotent(coffee_dataset, january):
    first = calculate_full_cost_per_unit(coffee_dataset, 1, january, "2025-01")
    second = calculate_full_cost_per_unit(coffee_dataset, 1, january, "2025-01")
    assert first == second
