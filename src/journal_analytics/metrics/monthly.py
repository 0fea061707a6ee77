from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from typing import Iterable

from journal_analytics.metrics.calendar import (
    local_date,
    month_label,
    month_window,
    months_between,
    resolve_now,
)
from journal_analytics.metrics.stats import split_valid_trades
from journal_analytics.models import (
    CATEGORIES,
    CATEGORY_REAL,
    Account,
    MonthlyBalance,
    MonthlyBucket,
)

logger = logging.getLogger(__name__)


def aggregate_monthly(
    accounts: Iterable[Account],
    month_count: int = 6,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> list[MonthlyBucket]:
    """Signed P/L per calendar month and account category, oldest month first."""
    reference = resolve_now(now, tz).date()
    totals: dict[tuple[int, int], dict[str, float]] = {
        key: {category: 0.0 for category in CATEGORIES} for key in month_window(reference, month_count)
    }

    for account in accounts:
        if account.category not in CATEGORIES:
            logger.warning(
                "Skipping account %s with unknown category %r", account.account_id, account.category
            )
            continue
        trade_list, _ = split_valid_trades(account.trades)
        for trade in trade_list:
            day = local_date(trade.timestamp_seconds, tz)
            months_ago = months_between(reference, day)
            if months_ago < 0 or months_ago >= month_count:
                continue
            bucket = totals[(day.year, day.month)]
            bucket[account.category] += trade.profit_and_loss

    return [
        MonthlyBucket(
            month_label=month_label(year, month),
            real=values["real"],
            demo=values["demo"],
            prop=values["prop"],
        )
        for (year, month), values in totals.items()
    ]


def estimate_monthly_balance(
    accounts: Iterable[Account],
    month_count: int = 6,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> list[MonthlyBalance]:
    """Estimated end-of-month balance of the real accounts, oldest month first.

    Starts from today's combined balance and walks back one month at a time,
    removing the P/L booked in the later month.
    """
    reference = resolve_now(now, tz).date()
    window = month_window(reference, month_count)
    if not window:
        return []

    real_accounts = [account for account in accounts if account.category == CATEGORY_REAL]
    month_pnl: dict[tuple[int, int], float] = {}
    for account in real_accounts:
        trade_list, _ = split_valid_trades(account.trades)
        for trade in trade_list:
            day = local_date(trade.timestamp_seconds, tz)
            key = (day.year, day.month)
            month_pnl[key] = month_pnl.get(key, 0.0) + trade.profit_and_loss

    running = sum(account.current_balance for account in real_accounts)
    balances: list[MonthlyBalance] = []
    for year, month in reversed(window):
        balances.append(MonthlyBalance(month_label=month_label(year, month), balance=max(0.0, running)))
        running -= month_pnl.get((year, month), 0.0)
    balances.reverse()
    return balances

