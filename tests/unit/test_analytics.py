from datetime import datetime

from fitstat.shared.analytics import days_ago, month_key, monthly_series, months_ago

NOW = datetime(2024, 3, 15, 12, 0)


def test_months_ago_crosses_year_boundary():
    assert months_ago(1, NOW) == datetime(2024, 3, 1)
    assert months_ago(3, NOW) == datetime(2024, 1, 1)
    assert months_ago(12, NOW) == datetime(2023, 4, 1)


def test_days_ago():
    assert days_ago(7, NOW) == datetime(2024, 3, 8, 12, 0)


def test_monthly_series_fills_gaps():
    rows = [
        (datetime(2024, 3, 2), 20),
        (datetime(2024, 3, 9), 30.5),
        (datetime(2024, 1, 20), 10),
        (datetime(2023, 1, 1), 99),
        (None, 5),
    ]

    series = monthly_series(rows, months=3, now=NOW)

    assert series == [
        {"month": "2024-01", "count": 1, "total": 10.0},
        {"month": "2024-02", "count": 0, "total": 0.0},
        {"month": "2024-03", "count": 2, "total": 50.5},
    ]


def test_month_key():
    assert month_key(datetime(2024, 7, 4)) == "2024-07"
