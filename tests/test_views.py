import pandas as pd
import pytest

from erp_finsight.aggregation import calculate_total_costs, calculate_total_revenue
from erp_finsight.profitability import calculate_portfolio_metrics, calculate_profit_metrics
from erp_finsight.views import (
    METRIC_COLUMNS,
    cost_summary_to_dataframe,
    portfolio_products_view,
    profit_metrics_to_dataframe,
    revenue_summary_to_dataframe,
    round_frame,
)


def test_cost_summary_metric_table(coffee_dataset, january):
    summary = calculate_total_costs(coffee_dataset, january, "2025-01")
    df = cost_summary_to_dataframe(summary, decimals=2)

    assert list(df.columns) == METRIC_COLUMNS
    values = dict(zip(df["key"], df["value"]))
    assert values["total_costs"] == pytest.approx(5614.22)
    assert values["actual_bill_payments"] == pytest.approx(1000)


def test_revenue_summary_is_rounded(coffee_dataset, january):
    summary = calculate_total_revenue(coffee_dataset, january)
    df = revenue_summary_to_dataframe(summary, decimals=1)
    values = dict(zip(df["key"], df["value"]))
    # 92.5 / 30 days
    assert values["daily_average"] == 3.1
    assert values["total_units"] == 20


def test_profit_metrics_table_inlines_unit_costs(coffee_dataset, january):
    metrics = calculate_profit_metrics(coffee_dataset, 1, january, "2025-01")
    df = profit_metrics_to_dataframe(metrics, decimals=3)
    values = dict(zip(df["key"], df["value"]))
    assert values["direct_material_cost"] == pytest.approx(0.671)
    assert values["total_cost_per_unit"] == pytest.approx(280.671)
    assert set(df["unit"]) <= {"amount", "percent", "count", "units"}


def test_profit_metrics_labels_are_unique(coffee_dataset, january):
    metrics = calculate_profit_metrics(coffee_dataset, 1, january, "2025-01")
    df = profit_metrics_to_dataframe(metrics, decimals=2)

    assert df["label"].is_unique
    labels = dict(zip(df["key"], df["label"]))
    assert labels["contribution_margin"] == "Contribution margin"
    assert labels["contribution_margin_percentage"] == "Contribution margin %"


def test_portfolio_products_view_sorted_by_profit(coffee_dataset, january):
    summary = calculate_portfolio_metrics(coffee_dataset, january, "2025-01")
    view = portfolio_products_view(summary.products, decimals=2)
    # Croissant (nothing sold) has no loss, Latte loses less than Cappuccino.
    assert view["name"].tolist() == ["Croissant", "Latte", "Cappuccino"]


def test_round_frame_leaves_input_untouched():
    df = pd.DataFrame({"name": ["a"], "value": [1.23456], "count": [3]})
    out = round_frame(df, 2)
    assert out["value"].iloc[0] == 1.23
    assert df["value"].iloc[0] == 1.23456
    assert out["count"].iloc[0] == 3
