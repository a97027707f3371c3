# ERP FinSight - Cost & Profitability engine for small-business ERPs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
ERP FinSight
------------

A Python cost and profitability engine for small-business ERPs (coffee
shops, bakeries, small manufacturers). It turns the raw records of the
ERP (recipes, sales, payroll, recurring bills, expenses, owners) into
period-bounded cost, revenue and profitability figures.

Main capabilities:
- direct material cost per product from its recipe,
- effective salaries and monthly overhead,
- variable and fixed overhead allocation per unit (pluggable policy),
- period total costs and total revenue with product/category breakdowns,
- per-product profit metrics and portfolio roll-up,
- owner profit distribution,
- monthly bills status (paid / pending / overdue),
- multi-month trends,
- data quality validation,
- CSV and SQLite storage behind an injectable repository.

ERP FinSight separates computation (pure functions over a Dataset),
configuration (TOML) and presentation (CLI).


Version: 0.1.0

Usage:
    python -m erp_finsight.cli --help
"""

__all__ = [
    "aggregation",
    "costing",
    "dataset",
    "ownership",
    "profitability",
    "views",
]

__version__ = "0.1.0"
