from datetime import date

import pytest

from erp_finsight.aggregation import (
    BILL_STATUS_COLUMNS,
    UNCATEGORIZED,
    calculate_bill_status,
    calculate_total_costs,
    calculate_total_revenue,
    summarize_bills,
)
from erp_finsight.dataset import Dataset
from erp_finsight.periods import Period


def test_total_costs_components(coffee_dataset, january):
    summary = calculate_total_costs(coffee_dataset, january, "2025-01")

    # 15 Cappuccino * 0.671 + 5 Latte * 0.831
    assert summary.direct_material_costs == pytest.approx(14.22)
    assert summary.variable_expenses == pytest.approx(200)
    assert summary.allocated_fixed_costs == pytest.approx(5400)
    assert summary.total_costs == pytest.approx(5614.22)


def test_total_costs_is_sum_of_its_parts(coffee_dataset):
    period = Period(start=date(2025, 1, 3), end=date(2025, 2, 10), label="custom")
    summary = calculate_total_costs(coffee_dataset, period, "2025-01")
    assert summary.total_costs == pytest.approx(
        summary.direct_material_costs
        + summary.variable_expenses
        + summary.allocated_fixed_costs
    )


def test_thirty_day_period_allocates_the_whole_monthly_overhead(coffee_dataset, january):
    summary = calculate_total_costs(coffee_dataset, january, "2025-01")
    assert summary.allocated_fixed_costs == pytest.approx(5400)


def test_total_costs_informational_figures(coffee_dataset, january):
    summary = calculate_total_costs(coffee_dataset, january, "2025-01")

    assert summary.actual_bill_payments == pytest.approx(1000)
    # +200 bonus, -100 deduction.
    assert summary.salary_adjustments == pytest.approx(100)

    assert summary.breakdown.materials == summary.direct_material_costs
    assert summary.breakdown.bills == summary.actual_bill_payments
    assert summary.breakdown.adjustments == summary.salary_adjustments


def test_total_costs_unknown_product_sale_contributes_no_material(coffee_dataset, january):
    ds = coffee_dataset.replace(
        sales=coffee_dataset.sales.assign(product_id=[1, 2, 99, 2])
    )
    summary = calculate_total_costs(ds, january, "2025-01")
    assert summary.direct_material_costs == pytest.approx(10 * 0.671 + 5 * 0.831)


def test_total_revenue_totals(coffee_dataset, january):
    summary = calculate_total_revenue(coffee_dataset, january)

    assert summary.total_revenue == pytest.approx(92.5)
    assert summary.total_units == 20
    assert summary.total_orders == 3
    assert summary.avg_order_value == pytest.approx(92.5 / 3)
    assert summary.avg_revenue_per_unit == pytest.approx(92.5 / 20)
    assert summary.daily_average == pytest.approx(92.5 / 30)


def test_total_revenue_by_product(coffee_dataset, january):
    by_product = calculate_total_revenue(coffee_dataset, january).by_product

    assert by_product["name"].tolist() == ["Cappuccino", "Latte", "Croissant"]
    assert by_product["revenue"].tolist() == pytest.approx([67.5, 25.0, 0.0])
    assert by_product["units"].tolist() == [15, 5, 0]
    assert by_product["orders"].tolist() == [2, 1, 0]
    assert by_product["revenue_share"].sum() == pytest.approx(100.0)
    # Products without a category are grouped under "Other".
    assert by_product["category"].iloc[2] == UNCATEGORIZED


def test_total_revenue_by_category(coffee_dataset, january):
    by_category = calculate_total_revenue(coffee_dataset, january).by_category

    assert by_category["category"].tolist() == ["Coffee", UNCATEGORIZED]
    assert by_category["revenue"].tolist() == pytest.approx([92.5, 0.0])
    assert by_category["share"].tolist() == pytest.approx([100.0, 0.0])


def test_total_revenue_without_sales(coffee_dataset):
    march = Period(start=date(2025, 3, 1), end=date(2025, 3, 31), label="March")
    summary = calculate_total_revenue(coffee_dataset, march)

    assert summary.total_revenue == 0.0
    assert summary.total_units == 0
    assert summary.total_orders == 0
    assert summary.avg_order_value == 0.0
    assert summary.daily_average == 0.0
    assert (summary.by_product["revenue_share"] == 0.0).all()


def test_total_revenue_empty_dataset(january):
    summary = calculate_total_revenue(Dataset.empty(), january)
    assert summary.total_revenue == 0.0
    assert summary.by_product.empty
    assert summary.by_category.empty


def test_same_day_period_daily_average_uses_one_day(coffee_dataset):
    day = Period(start=date(2025, 1, 10), end=date(2025, 1, 10), label="day")
    summary = calculate_total_revenue(coffee_dataset, day)
    assert summary.total_revenue == pytest.approx(45.0)
    assert summary.daily_average == pytest.approx(45.0)


def test_bill_status_paid_pending_overdue(coffee_dataset):
    before_due = calculate_bill_status(coffee_dataset, "2025-01", date(2025, 1, 10))
    assert list(before_due.columns) == BILL_STATUS_COLUMNS
    # Inactive bills are not listed.
    assert before_due["bill_id"].tolist() == [1, 2]

    rent = before_due.iloc[0]
    assert rent["status"] == "paid"
    assert rent["actual_amount"] == pytest.approx(1000)
    assert rent["variance"] == pytest.approx(0)

    electricity = before_due.iloc[1]
    assert electricity["status"] == "pending"
    assert electricity["due_date"] == date(2025, 1, 15)
    assert electricity["actual_amount"] == 0.0

    after_due = calculate_bill_status(coffee_dataset, "2025-01", date(2025, 1, 20))
    assert after_due.iloc[1]["status"] == "overdue"


def test_bill_status_sums_partial_payments_and_clamps_due_day():
    ds = Dataset.from_records(
        monthly_bills=[{"id": 1, "name": "Water", "estimated_amount": 150, "due_day": 31}],
        bill_payments=[
            {"bill_id": 1, "actual_amount": 100, "paid_date": "2025-02-10", "month": "2025-02"},
            {"bill_id": 1, "actual_amount": 70, "paid_date": "2025-02-20", "month": "2025-02"},
        ],
    )
    status = calculate_bill_status(ds, "2025-02", date(2025, 3, 1))
    row = status.iloc[0]
    assert row["due_date"] == date(2025, 2, 28)
    assert row["actual_amount"] == pytest.approx(170)
    assert row["variance"] == pytest.approx(20)
    assert row["status"] == "paid"


def test_bill_status_invalid_month(coffee_dataset):
    with pytest.raises(ValueError):
        calculate_bill_status(coffee_dataset, "2025-13", date(2025, 1, 1))


def test_summarize_bills(coffee_dataset):
    summary = summarize_bills(coffee_dataset, "2025-01")
    assert summary.total_estimated == pytest.approx(1300)
    assert summary.total_paid == pytest.approx(1000)
    assert summary.total_unpaid == pytest.approx(300)
