from datetime import date

import pytest

from erp_finsight.periods import Period, period_for_month
from erp_finsight.trends import TREND_COLUMNS, compute_trends, monthly_periods


def test_monthly_periods_oldest_first():
    periods = monthly_periods("2025-01", 3)
    assert [p.label for p in periods] == ["2024-11", "2024-12", "2025-01"]
    assert periods[0].start == date(2024, 11, 1)
    assert periods[-1].end == date(2025, 1, 31)


def test_monthly_periods_requires_positive_count():
    with pytest.raises(ValueError):
        monthly_periods("2025-01", 0)
    with pytest.raises(ValueError):
        monthly_periods("2025-1", 3)


def test_compute_trends_matches_single_period_results(coffee_dataset):
    periods = [period_for_month("2025-01"), period_for_month("2025-02")]
    df = compute_trends(coffee_dataset, periods)

    assert list(df.columns) == TREND_COLUMNS
    assert df["period_label"].tolist() == ["2025-01", "2025-02"]
    assert df["revenue"].tolist() == pytest.approx([92.5, 20.0])
    assert df["costs"].tolist() == pytest.approx([5614.22, 4773.324])
    assert df["profit"].tolist() == pytest.approx([92.5 - 5614.22, 20.0 - 4773.324])
    assert df["profit_margin"].iloc[0] == pytest.approx((92.5 - 5614.22) / 92.5 * 100)


def test_compute_trends_empty_month_has_zero_margin(coffee_dataset):
    df = compute_trends(coffee_dataset, [period_for_month("2024-12")])
    row = df.iloc[0]
    assert row["revenue"] == 0.0
    assert row["profit_margin"] == 0.0
    # Overhead still applies: bills 1300 + base salaries 4000.
    assert row["costs"] == pytest.approx(5300)


def test_compute_trends_uses_period_start_month(coffee_dataset):
    custom = Period(start=date(2025, 1, 1), end=date(2025, 1, 31), label="Jan")
    df = compute_trends(coffee_dataset, [custom])
    assert df["costs"].iloc[0] == pytest.approx(5614.22)


def test_compute_trends_requires_periods(coffee_dataset):
    with pytest.raises(ValueError):
        compute_trends(coffee_dataset, [])
