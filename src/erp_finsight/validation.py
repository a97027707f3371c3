# ERP FinSight - Cost & Profitability engine for small-business ERPs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Data quality checks for ERP FinSight.

The calculation functions never raise on dangling references, zero
denominators or inverted periods: they degrade to 0. This module reports
those situations explicitly, so that a zero in a report can be told apart
from a zero caused by invalid input.

Issue codes
-----------
errors:
    missing_ingredient      recipe line -> unknown ingredient
    missing_product         sale -> unknown product
    missing_employee        salary adjustment -> unknown employee
    missing_bill            bill payment -> unknown bill
    non_positive_quantity   sale quantity <= 0
    non_positive_price      product selling price <= 0
    invalid_month           month key that is not "YYYY-MM"
    inverted_period         period end before its start
warnings:
    amount_mismatch         sale amount != quantity * unit_price
    owner_shares_total      owner percentages do not sum to 100
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Literal, Optional

import pandas as pd

from .dataset import Dataset
from .periods import Period, is_valid_month

Severity = Literal["error", "warning"]

ISSUE_COLUMNS = ["code", "severity", "collection", "record_id", "message"]

# Absolute tolerance when comparing money amounts.
AMOUNT_TOLERANCE = 0.005


@dataclass(frozen=True)
class ValidationIssue:
    """One data quality finding."""

    code: str
    severity: Severity
    collection: str
    record_id: Optional[Any]
    message: str


@dataclass(frozen=True)
class ValidationReport:
    """Ordered collection of validation issues."""

    issues: tuple[ValidationIssue, ...] = field(default_factory=tuple)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == "warning"]

    @property
    def ok(self) -> bool:
        """True when no error was found (warnings are allowed)."""
        return not self.errors

    def codes(self) -> set[str]:
        return {i.code for i in self.issues}

    def merge(self, other: "ValidationReport") -> "ValidationReport":
        return ValidationReport(issues=self.issues + other.issues)

    def to_dataframe(self) -> pd.DataFrame:
        if not self.issues:
            return pd.DataFrame(columns=ISSUE_COLUMNS)
        return pd.DataFrame([asdict(i) for i in self.issues], columns=ISSUE_COLUMNS)


def _dangling(
    df: pd.DataFrame,
    ref_column: str,
    targets: pd.Series,
    *,
    code: str,
    collection: str,
    target_label: str,
    id_column: Optional[str] = "id",
) -> list[ValidationIssue]:
    if df.empty:
        return []
    missing = df.loc[~df[ref_column].isin(targets)]
    issues = []
    for _, row in missing.iterrows():
        record_id = row[id_column] if id_column else row[ref_column]
        issues.append(
            ValidationIssue(
                code=code,
                severity="error",
                collection=collection,
                record_id=record_id,
                message=f"{ref_column} {row[ref_column]} does not match any {target_label}.",
            )
        )
    return issues


def _invalid_months(df: pd.DataFrame, collection: str) -> list[ValidationIssue]:
    issues = []
    for _, row in df.iterrows():
        if not is_valid_month(row["month"]):
            issues.append(
                ValidationIssue(
                    code="invalid_month",
                    severity="error",
                    collection=collection,
                    record_id=row["id"],
                    message=f"Invalid month {row['month']!r}, expected YYYY-MM.",
                )
            )
    return issues


def validate_dataset(dataset: Dataset) -> ValidationReport:
    """
    Check references, amounts and business rules of a Dataset.

    The dataset itself is not modified; every finding is returned as a
    ValidationIssue, in collection order.
    """
    issues: list[ValidationIssue] = []

    # 1) Dangling references.
    issues += _dangling(
        dataset.recipe_lines,
        "ingredient_id",
        dataset.ingredients["id"],
        code="missing_ingredient",
        collection="recipe_lines",
        target_label="ingredient",
        id_column="product_id",
    )
    issues += _dangling(
        dataset.sales,
        "product_id",
        dataset.products["id"],
        code="missing_product",
        collection="sales",
        target_label="product",
    )
    issues += _dangling(
        dataset.salary_adjustments,
        "employee_id",
        dataset.employees["id"],
        code="missing_employee",
        collection="salary_adjustments",
        target_label="employee",
    )
    issues += _dangling(
        dataset.bill_payments,
        "bill_id",
        dataset.monthly_bills["id"],
        code="missing_bill",
        collection="bill_payments",
        target_label="monthly bill",
    )

    # 2) Products and sales business rules.
    for _, row in dataset.products.iterrows():
        if row["selling_price"] <= 0:
            issues.append(
                ValidationIssue(
                    code="non_positive_price",
                    severity="error",
                    collection="products",
                    record_id=row["id"],
                    message=f"Selling price must be positive, got {row['selling_price']}.",
                )
            )

    for _, row in dataset.sales.iterrows():
        if row["quantity"] <= 0:
            issues.append(
                ValidationIssue(
                    code="non_positive_quantity",
                    severity="error",
                    collection="sales",
                    record_id=row["id"],
                    message=f"Quantity must be positive, got {row['quantity']}.",
                )
            )
        expected = row["quantity"] * row["unit_price"]
        if abs(row["amount"] - expected) > AMOUNT_TOLERANCE:
            issues.append(
                ValidationIssue(
                    code="amount_mismatch",
                    severity="warning",
                    collection="sales",
                    record_id=row["id"],
                    message=(
                        f"Amount {row['amount']:.2f} differs from quantity * "
                        f"unit price ({expected:.2f})."
                    ),
                )
            )

    # 3) Month keys.
    issues += _invalid_months(dataset.salary_adjustments, "salary_adjustments")
    issues += _invalid_months(dataset.bill_payments, "bill_payments")

    # 4) Ownership percentages.
    if not dataset.owners.empty:
        total = float(dataset.owners["profit_share_percent"].sum())
        if abs(total - 100.0) > 1e-9:
            issues.append(
                ValidationIssue(
                    code="owner_shares_total",
                    severity="warning",
                    collection="owners",
                    record_id=None,
                    message=f"Owner profit shares sum to {total:g}%, not 100%.",
                )
            )

    return ValidationReport(issues=tuple(issues))


def validate_period(period: Period) -> ValidationReport:
    """Report an inverted period (end before start)."""
    if period.end < period.start:
        return ValidationReport(
            issues=(
                ValidationIssue(
                    code="inverted_period",
                    severity="error",
                    collection="period",
                    record_id=period.label,
                    message=f"Period ends ({period.end}) before it starts ({period.start}).",
                ),
            )
        )
    return ValidationReport()


def validate_month(month: str) -> ValidationReport:
    """Report a month key that is not "YYYY-MM"."""
    if is_valid_month(month):
        return ValidationReport()
    return ValidationReport(
        issues=(
            ValidationIssue(
                code="invalid_month",
                severity="error",
                collection="month",
                record_id=month,
                message=f"Invalid month {month!r}, expected YYYY-MM.",
            ),
        )
    )
