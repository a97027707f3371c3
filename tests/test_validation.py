from datetime import date

from erp_finsight.dataset import Dataset
from erp_finsight.periods import Period
from erp_finsight.validation import (
    ISSUE_COLUMNS,
    validate_dataset,
    validate_month,
    validate_period,
)


def _broken_dataset() -> Dataset:
    return Dataset.from_records(
        ingredients=[{"id": 1, "unit_cost": 8.5}],
        products=[
            {
                "id": 1,
                "name": "Espresso",
                "selling_price": 0,
                "recipe": [{"ingredient_id": 99, "quantity_per_unit": 0.02}],
            }
        ],
        sales=[
            {"id": 10, "product_id": 7, "quantity": 2, "unit_price": 3.0, "date": "2025-01-10"},
            {
                "id": 11,
                "product_id": 1,
                "quantity": 0,
                "unit_price": 3.0,
                "amount": 5.0,
                "date": "2025-01-11",
            },
        ],
        employees=[{"id": 1, "base_salary": 2000}],
        salary_adjustments=[
            {"id": 5, "employee_id": 2, "amount": 50, "type": "bonus", "month": "2025-1"}
        ],
        monthly_bills=[{"id": 1, "estimated_amount": 100}],
        bill_payments=[{"id": 3, "bill_id": 9, "actual_amount": 100, "month": "2025-01"}],
        owners=[
            {"id": 1, "profit_share_percent": 60},
            {"id": 2, "profit_share_percent": 30},
        ],
    )


def test_clean_dataset_has_no_issue(coffee_dataset):
    report = validate_dataset(coffee_dataset)
    assert report.ok
    assert report.issues == ()
    assert report.to_dataframe().empty


def test_broken_dataset_reports_every_problem():
    report = validate_dataset(_broken_dataset())

    assert report.codes() == {
        "missing_ingredient",
        "missing_product",
        "missing_employee",
        "missing_bill",
        "non_positive_price",
        "non_positive_quantity",
        "amount_mismatch",
        "invalid_month",
        "owner_shares_total",
    }
    assert not report.ok
    assert {i.code for i in report.warnings} == {"amount_mismatch", "owner_shares_total"}


def test_issue_record_ids():
    report = validate_dataset(_broken_dataset())
    by_code = {i.code: i for i in report.issues}

    # Recipe lines have no id of their own: the product is reported.
    assert by_code["missing_ingredient"].record_id == 1
    assert by_code["missing_product"].record_id == 10
    assert by_code["non_positive_quantity"].record_id == 11
    assert by_code["missing_bill"].record_id == 3
    assert by_code["owner_shares_total"].record_id is None


def test_amount_within_tolerance_is_not_reported():
    ds = Dataset.from_records(
        products=[{"id": 1, "selling_price": 3.0}],
        sales=[
            {"product_id": 1, "quantity": 3, "unit_price": 1.1, "amount": 3.3, "date": "2025-01-10"}
        ],
    )
    assert "amount_mismatch" not in validate_dataset(ds).codes()


def test_report_to_dataframe_and_merge():
    report = validate_dataset(_broken_dataset())
    df = report.to_dataframe()
    assert list(df.columns) == ISSUE_COLUMNS
    assert len(df) == len(report.issues)

    merged = report.merge(validate_month("2025-13"))
    assert len(merged.issues) == len(report.issues) + 1


def test_validate_period():
    ok = Period(start=date(2025, 1, 1), end=date(2025, 1, 31), label="Jan")
    inverted = Period(start=date(2025, 1, 31), end=date(2025, 1, 1), label="bad")

    assert validate_period(ok).ok
    report = validate_period(inverted)
    assert report.codes() == {"inverted_period"}
    assert report.errors[0].record_id == "bad"


def test_validate_month():
    assert validate_month("2025-01").ok
    assert validate_month("2025-00").codes() == {"invalid_month"}
    assert not validate_month("January").ok
