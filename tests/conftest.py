from datetime import date

import pytest

from erp_finsight.dataset import Dataset
from erp_finsight.periods import Period


def build_coffee_dataset() -> Dataset:
    """
    Small coffee shop used across the test-suite.

    January 2025 figures (period 2025-01-01 → 2025-01-31, 30 days):
    - revenue 92.50 for 20 units (Cappuccino 15, Latte 5) in 3 sales,
    - variable expenses 200 (rent 1000 is excluded),
    - monthly overhead 5400 = active bills 1300 + salaries 2700 + 1400.
    """
    return Dataset.from_records(
        ingredients=[
            {"id": 1, "name": "Coffee Beans", "unit_cost": 8.50, "unit": "kg"},
            {"id": 2, "name": "Milk", "unit_cost": 3.20, "unit": "liter"},
            {"id": 3, "name": "Sugar", "unit_cost": 2.10, "unit": "kg"},
        ],
        products=[
            {
                "id": 1,
                "name": "Cappuccino",
                "selling_price": 4.50,
                "category": "Coffee",
                "recipe": [
                    {"ingredient_id": 1, "quantity_per_unit": 0.02},
                    {"ingredient_id": 2, "quantity_per_unit": 0.15},
                    {"ingredient_id": 3, "quantity_per_unit": 0.01},
                ],
            },
            {
                "id": 2,
                "name": "Latte",
                "selling_price": 5.00,
                "category": "Coffee",
                "recipe": [
                    {"ingredient_id": 1, "quantity_per_unit": 0.02},
                    {"ingredient_id": 2, "quantity_per_unit": 0.2},
                    {"ingredient_id": 3, "quantity_per_unit": 0.01},
                ],
            },
            {"id": 3, "name": "Croissant", "selling_price": 3.00, "category": ""},
        ],
        sales=[
            {"id": 1, "product_id": 1, "quantity": 10, "unit_price": 4.50, "date": "2025-01-10"},
            {"id": 2, "product_id": 2, "quantity": 5, "unit_price": 5.00, "date": "2025-01-15"},
            {"id": 3, "product_id": 1, "quantity": 5, "unit_price": 4.50, "date": "2025-01-20"},
            {"id": 4, "product_id": 2, "quantity": 4, "unit_price": 5.00, "date": "2025-02-03"},
        ],
        employees=[
            {"id": 1, "name": "John", "position": "Barista", "base_salary": 2500},
            {"id": 2, "name": "Jane", "position": "Assistant", "base_salary": 1500},
        ],
        salary_adjustments=[
            {
                "id": 1,
                "employee_id": 1,
                "amount": 200,
                "type": "bonus",
                "month": "2025-01",
                "created_at": "2025-01-05",
            },
            {
                "id": 2,
                "employee_id": 2,
                "amount": 100,
                "type": "deduction",
                "month": "2025-01",
                "created_at": "2025-01-06",
            },
        ],
        expenses=[
            {"id": 1, "type": "rent", "amount": 1000, "date": "2025-01-01"},
            {"id": 2, "type": "utilities", "amount": 120, "date": "2025-01-05"},
            {"id": 3, "type": "marketing", "amount": 80, "date": "2025-01-12"},
        ],
        monthly_bills=[
            {"id": 1, "name": "Rent", "estimated_amount": 1000, "is_active": True, "due_day": 1},
            {
                "id": 2,
                "name": "Electricity",
                "estimated_amount": 300,
                "is_active": True,
                "bill_type": "variable",
                "due_day": 15,
            },
            {"id": 3, "name": "Old lease", "estimated_amount": 50, "is_active": False, "due_day": 10},
        ],
        bill_payments=[
            {
                "id": 1,
                "bill_id": 1,
                "bill_name": "Rent",
                "actual_amount": 1000,
                "paid_date": "2025-01-01",
                "month": "2025-01",
            },
        ],
        owners=[
            {"id": 1, "name": "Ahmed", "share_capital": 50000, "profit_share_percent": 60},
            {"id": 2, "name": "Sara", "share_capital": 30000, "profit_share_percent": 40},
        ],
    )


@pytest.fixture
def coffee_dataset() -> Dataset:
    return build_coffee_dataset()


@pytest.fixture
def january() -> Period:
    return Period(start=date(2025, 1, 1), end=date(2025, 1, 31), label="2025-01")
