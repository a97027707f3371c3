# ERP FinSight - Cost & Profitability engine for small-business ERPs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Classification rules used by the costing engine.

`CostingRules` gathers the few business conventions the calculations rely
on, so that they are configurable (from TOML, see config.py) instead of
being hard-coded in each function:

- which expense types count as *variable* expenses (rent is excluded by
  default: it flows through monthly bills instead),
- the flat number of days used to prorate monthly overhead,
- the allocation method used to spread overhead over units sold.

A custom predicate can replace the type list entirely for callers who
classify expenses on other fields (category, description, ...).
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

import pandas as pd

from .allocation import get_allocation_policy

DEFAULT_VARIABLE_EXPENSE_TYPES: tuple[str, ...] = (
    "utilities",
    "maintenance",
    "marketing",
    "other",
)

EXPENSE_TYPES: tuple[str, ...] = (
    "rent",
    "utilities",
    "marketing",
    "maintenance",
    "depreciation",
    "other",
)

ADJUSTMENT_TYPES: tuple[str, ...] = ("bonus", "overtime", "allowance", "deduction")
DEDUCTION_TYPE = "deduction"

DEFAULT_PRORATION_DAYS = 30

# Vectorized predicate: expenses DataFrame -> boolean Series (same index).
ExpensePredicate = Callable[[pd.DataFrame], pd.Series]


@dataclass(frozen=True)
class CostingRules:
    """
    Business conventions applied by the costing engine.

    Attributes
    ----------
    variable_expense_types:
        Expense types counted as variable expenses.
    proration_days:
        Flat month length used to prorate monthly overhead to a period.
    allocation_method:
        Name of the overhead allocation policy ('unit' or 'revenue').
    variable_expense_predicate:
        Optional custom classifier. When set, it replaces the type list.
    """

    variable_expense_types: tuple[str, ...] = DEFAULT_VARIABLE_EXPENSE_TYPES
    proration_days: int = DEFAULT_PRORATION_DAYS
    allocation_method: str = "unit"
    variable_expense_predicate: Optional[ExpensePredicate] = None

    def __post_init__(self) -> None:
        if self.proration_days <= 0:
            raise ValueError("proration_days must be a positive number of days.")
        get_allocation_policy(self.allocation_method)

    def variable_mask(self, expenses: pd.DataFrame) -> pd.Series:
        """Boolean mask selecting the variable expenses of `expenses`."""
        if self.variable_expense_predicate is not None:
            return self.variable_expense_predicate(expenses).astype(bool)
        return expenses["type"].isin(self.variable_expense_types)


DEFAULT_RULES = CostingRules()


def signed_adjustment_amounts(adjustments: pd.DataFrame) -> pd.Series:
    """Adjustment amounts with deductions negated, all other types added."""
    return adjustments["amount"].where(
        adjustments["type"] != DEDUCTION_TYPE, -adjustments["amount"]
    )
