from __future__ import annotations

import logging
from datetime import datetime

import pytest

from journal_analytics.metrics.monthly import aggregate_monthly, estimate_monthly_balance
from journal_analytics.models import Trade


def test_buckets_are_chronological_and_zeroed(now):
    buckets = aggregate_monthly([], 6, now=now)
    assert [bucket.month_label for bucket in buckets] == [
        "Oct 23",
        "Nov 23",
        "Dec 23",
        "Jan 24",
        "Feb 24",
        "Mar 24",
    ]
    assert all(bucket.total == 0 for bucket in buckets)


def test_non_positive_month_count_yields_no_buckets(make_account, now):
    assert aggregate_monthly([make_account()], 0, now=now) == []
    assert aggregate_monthly([make_account()], -3, now=now) == []


def test_pnl_lands_in_category_of_its_account(make_trade, make_account, now):
    real = make_account(
        [
            make_trade(datetime(2024, 3, 2, 12, 0), 100.0),
            make_trade(datetime(2024, 3, 9, 12, 0), -40.0),
            make_trade(datetime(2023, 9, 30, 12, 0), 999.0),
        ],
        account_id="real",
    )
    demo = make_account([make_trade(datetime(2024, 2, 14, 12, 0), 50.0)], account_id="demo", category="demo")
    prop = make_account(
        [
            make_trade(datetime(2024, 1, 20, 12, 0), -30.0),
            make_trade(datetime(2024, 4, 1, 12, 0), 500.0),
        ],
        account_id="prop",
        category="prop",
    )

    buckets = {bucket.month_label: bucket for bucket in aggregate_monthly([real, demo, prop], 6, now=now)}

    assert buckets["Mar 24"].real == pytest.approx(60.0)
    assert buckets["Feb 24"].demo == pytest.approx(50.0)
    assert buckets["Jan 24"].prop == pytest.approx(-30.0)
    assert buckets["Mar 24"].prop == 0
    assert sum(bucket.real for bucket in buckets.values()) == pytest.approx(60.0)
    assert sum(bucket.prop for bucket in buckets.values()) == pytest.approx(-30.0)


def test_window_crosses_year_boundary(make_trade, make_account, now):
    account = make_account([make_trade(datetime(2023, 12, 31, 12, 0), 25.0)], category="demo")
    buckets = aggregate_monthly([account], 4, now=now)
    assert [bucket.month_label for bucket in buckets] == ["Dec 23", "Jan 24", "Feb 24", "Mar 24"]
    assert buckets[0].demo == pytest.approx(25.0)


def test_unknown_category_and_malformed_trades_are_skipped(make_trade, make_account, now, caplog):
    odd = make_account([make_trade(datetime(2024, 3, 1, 12, 0), 10.0)], account_id="odd", category="crypto")
    real = make_account(
        [make_trade(datetime(2024, 3, 1, 12, 0), 10.0), make_trade(None, 5.0)],
        account_id="real",
    )
    with caplog.at_level(logging.WARNING):
        buckets = aggregate_monthly([odd, real], 2, now=now)
    assert buckets[-1].real == pytest.approx(10.0)
    assert buckets[-1].total == pytest.approx(10.0)
    assert "odd" in caplog.text


def test_out_of_range_timestamp_does_not_abort_the_window(make_trade, make_account, now):
    real = make_account(
        [
            make_trade(datetime(2024, 3, 1, 12, 0), 10.0),
            Trade(trade_id="far", timestamp_seconds=500_000_000_000, profit_and_loss=25.0),
        ]
    )
    buckets = aggregate_monthly([real], 2, now=now)
    assert [bucket.real for bucket in buckets] == [0.0, pytest.approx(10.0)]


def test_windows_longer_than_a_century_keep_every_month(make_trade, make_account, now):
    real = make_account([make_trade(datetime(2024, 3, 1, 12, 0), 10.0)])
    buckets = aggregate_monthly([real], 1300, now=now)
    assert len(buckets) == 1300
    assert buckets[0].month_label == "Dec 15"
    # "Mar 24" names both March 1924 and March 2024.
    assert buckets[-1201].month_label == "Mar 24"
    assert buckets[-1201].real == 0.0
    assert buckets[-1].month_label == "Mar 24"
    assert buckets[-1].real == pytest.approx(10.0)


def test_monthly_balance_walks_back_from_current(make_trade, make_account, now):
    real = make_account(
        [
            make_trade(datetime(2024, 3, 5, 12, 0), 500.0),
            make_trade(datetime(2024, 2, 5, 12, 0), 1_000.0),
        ],
        current_balance=12_000.0,
    )
    demo = make_account(
        [make_trade(datetime(2024, 3, 5, 12, 0), 9_999.0)],
        account_id="demo",
        category="demo",
        current_balance=50_000.0,
    )

    balances = estimate_monthly_balance([real, demo], 3, now=now)

    assert [item.month_label for item in balances] == ["Jan 24", "Feb 24", "Mar 24"]
    assert [item.balance for item in balances] == pytest.approx([10_500.0, 11_500.0, 12_000.0])


def test_monthly_balance_is_clamped_and_flat_without_trades(make_trade, make_account, now):
    small = make_account([make_trade(datetime(2024, 3, 5, 12, 0), 500.0)], current_balance=100.0)
    assert [item.balance for item in estimate_monthly_balance([small], 2, now=now)] == [0.0, 100.0]

    idle = make_account(current_balance=7_000.0)
    assert [item.balance for item in estimate_monthly_balance([idle], 3, now=now)] == [7_000.0] * 3
    assert estimate_monthly_balance([idle], 0, now=now) == []
