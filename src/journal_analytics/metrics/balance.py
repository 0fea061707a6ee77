from __future__ import annotations

from datetime import date, datetime, timedelta, tzinfo

from journal_analytics.metrics.calendar import (
    TIMEFRAME_DAYS,
    TIMEFRAME_MONTH,
    Timeframe,
    day_label,
    iter_days,
    local_date,
    parse_timeframe,
    resolve_now,
    start_of_day,
)
from journal_analytics.metrics.stats import split_valid_trades
from journal_analytics.models import Account, ChartPoint

RECONCILE_EPSILON = 0.01

START_LABEL = "Start"
CURRENT_LABEL = "Current"


def reconstruct_balance_history(
    account: Account,
    timeframe: Timeframe = TIMEFRAME_MONTH,
    max_points: int | None = None,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
    epsilon: float = RECONCILE_EPSILON,
) -> list[ChartPoint]:
    """Daily balance curve from the account's starting balance through today.

    The curve opens at the earlier of the oldest trade's day and the start of
    the timeframe, has one point per calendar day, and its last point is
    pinned to ``current_balance``; deposits, withdrawals and fees never show
    up in trade P/L. ``max_points`` does not trim the series, use
    ``downsample_points`` for that when rendering.
    """
    trade_list, _ = split_valid_trades(account.trades)
    if not trade_list:
        return _start_and_current(account)

    reference = resolve_now(now, tz)
    window_days = TIMEFRAME_DAYS[parse_timeframe(timeframe)]
    oldest_day = local_date(min(trade.timestamp_seconds for trade in trade_list), tz)
    window_day = (reference - timedelta(days=window_days)).date()
    start_day = min(oldest_day, window_day)
    start = start_of_day(start_day, tz)
    if start > reference:
        return _start_and_current(account)

    start_ts = start.timestamp()
    end_ts = reference.timestamp()
    daily_pnl: dict[date, float] = {}
    for trade in sorted(trade_list, key=lambda item: item.timestamp_seconds):
        if trade.timestamp_seconds < start_ts or trade.timestamp_seconds > end_ts:
            continue
        day = local_date(trade.timestamp_seconds, tz)
        daily_pnl[day] = daily_pnl.get(day, 0.0) + trade.profit_and_loss

    points: list[ChartPoint] = []
    running = account.initial_balance
    for day in iter_days(start_day, reference.date()):
        running += daily_pnl.get(day, 0.0)
        points.append(ChartPoint(label=day_label(day), value=running))

    return reconcile_final_point(points, account.current_balance, epsilon=epsilon)


def reconcile_final_point(
    points: list[ChartPoint],
    current_balance: float,
    *,
    epsilon: float = RECONCILE_EPSILON,
) -> list[ChartPoint]:
    if not points:
        return points
    last = points[-1]
    if abs(last.value - current_balance) > epsilon:
        points[-1] = ChartPoint(label=last.label, value=current_balance)
    return points


def downsample_points(points: list[ChartPoint], max_points: int | None) -> list[ChartPoint]:
    if max_points is None or max_points <= 0 or len(points) <= max_points:
        return points
    stride = max(1, -(-len(points) // max_points))
    sampled = points[::stride]
    if sampled[-1] is not points[-1]:
        if len(sampled) >= max_points:
            sampled[-1] = points[-1]
        else:
            sampled.append(points[-1])
    return sampled


def _start_and_current(account: Account) -> list[ChartPoint]:
    return [
        ChartPoint(label=START_LABEL, value=account.initial_balance),
        ChartPoint(label=CURRENT_LABEL, value=account.current_balance),
    ]
