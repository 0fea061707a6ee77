from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, tzinfo
from typing import Iterable

from journal_analytics.metrics.calendar import local_date, resolve_now
from journal_analytics.models import (
    CATEGORY_PROP,
    CATEGORY_REAL,
    Account,
    AccountSummary,
    ChallengeProgress,
    DerivedStats,
    PortfolioStats,
    Trade,
)

logger = logging.getLogger(__name__)

PROFIT_FACTOR_INFINITE = math.inf


def split_valid_trades(trades: Iterable[Trade]) -> tuple[list[Trade], int]:
    """Separate usable trades from records missing a numeric P/L or timestamp."""
    valid: list[Trade] = []
    skipped = 0
    for trade in trades:
        if _is_number(getattr(trade, "profit_and_loss", None)) and _is_timestamp(
            getattr(trade, "timestamp_seconds", None)
        ):
            valid.append(trade)
            continue
        skipped += 1
        logger.warning(
            "Skipping malformed trade %s: missing profit_and_loss or usable timestamp_seconds",
            getattr(trade, "trade_id", "<unknown>"),
        )
    return valid, skipped


def compute_stats(
    trades: Iterable[Trade],
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> DerivedStats:
    trade_list, skipped = split_valid_trades(trades)
    today = resolve_now(now, tz).date()

    winners = [trade.profit_and_loss for trade in trade_list if trade.profit_and_loss > 0]
    non_winners = [trade.profit_and_loss for trade in trade_list if trade.profit_and_loss <= 0]
    total_trades = len(trade_list)

    win_rate = 0.0
    if total_trades:
        win_rate = len(winners) / total_trades * 100

    gross_wins = sum(winners)
    gross_losses = sum(abs(value) for value in non_winners)

    return DerivedStats(
        total_trades=total_trades,
        wins=len(winners),
        losses=len(non_winners),
        win_rate=win_rate,
        gross_wins=gross_wins,
        gross_losses=gross_losses,
        profit_factor=profit_factor(gross_wins, gross_losses),
        net_pnl=sum(trade.profit_and_loss for trade in trade_list),
        today_pnl=sum(
            trade.profit_and_loss
            for trade in trade_list
            if local_date(trade.timestamp_seconds, tz) == today
        ),
        skipped=skipped,
    )


def profit_factor(gross_wins: float, gross_losses: float) -> float:
    if gross_losses > 0:
        return gross_wins / gross_losses
    if gross_wins > 0:
        return PROFIT_FACTOR_INFINITE
    return 0.0


def compute_max_drawdown_pct(trades: Iterable[Trade]) -> float:
    """Largest drop of cumulative P/L from its running peak, as a percentage of that peak."""
    trade_list, _ = split_valid_trades(trades)
    ordered = sorted(trade_list, key=lambda trade: trade.timestamp_seconds)
    peak = 0.0
    equity = 0.0
    max_dd = 0.0
    for trade in ordered:
        equity += trade.profit_and_loss
        if equity > peak:
            peak = equity
        if peak <= 0:
            continue
        drawdown = (peak - equity) / peak * 100
        if drawdown > max_dd:
            max_dd = drawdown
    return max_dd


def compute_account_summary(
    account: Account,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> AccountSummary:
    stats = compute_stats(account.trades, now=now, tz=tz)
    return AccountSummary(
        account_id=account.account_id,
        name=account.name,
        category=account.category,
        variant=account.variant,
        balance=account.current_balance,
        total_trades=stats.total_trades,
        win_rate=stats.win_rate,
        today_pnl=stats.today_pnl,
        net_pnl=stats.net_pnl,
    )


def compute_portfolio_stats(
    accounts: Iterable[Account],
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> PortfolioStats:
    """Dashboard totals across accounts.

    Win rate and trade count cover every account. P/L figures and the
    balance leave out prop-firm challenge accounts, and today's P/L and the
    balance only count real and prop accounts.
    """
    account_list = list(accounts)
    reference = resolve_now(now, tz)

    everything = compute_stats(
        (trade for account in account_list for trade in account.trades), now=reference, tz=tz
    )
    funded = [account for account in account_list if not account.is_challenge]
    funded_stats = compute_stats(
        (trade for account in funded for trade in account.trades), now=reference, tz=tz
    )
    balance_accounts = [
        account for account in funded if account.category in (CATEGORY_REAL, CATEGORY_PROP)
    ]
    today_pnl = compute_stats(
        (trade for account in balance_accounts for trade in account.trades), now=reference, tz=tz
    ).today_pnl

    stats = DerivedStats(
        total_trades=everything.total_trades,
        wins=everything.wins,
        losses=everything.losses,
        win_rate=everything.win_rate,
        gross_wins=funded_stats.gross_wins,
        gross_losses=funded_stats.gross_losses,
        profit_factor=funded_stats.profit_factor,
        net_pnl=funded_stats.net_pnl,
        today_pnl=today_pnl,
        skipped=everything.skipped,
    )
    return PortfolioStats(
        stats=stats,
        total_balance=sum(account.current_balance for account in balance_accounts),
        accounts=[compute_account_summary(account, now=reference, tz=tz) for account in account_list],
    )


def compute_challenge_progress(
    account: Account,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> ChallengeProgress:
    reference = resolve_now(now, tz)
    stats = compute_stats(account.trades, now=reference, tz=tz)

    pnl_pct = 0.0
    if account.initial_balance > 0:
        pnl_pct = stats.net_pnl / account.initial_balance * 100

    days_remaining = None
    if account.start_timestamp is not None and account.time_limit_days is not None:
        deadline = datetime.fromtimestamp(account.start_timestamp, reference.tzinfo) + timedelta(
            days=account.time_limit_days
        )
        days_remaining = math.ceil((deadline - reference) / timedelta(days=1))

    max_drawdown_pct = compute_max_drawdown_pct(account.trades)
    # Both rule fields are percentages of the starting balance.
    target_reached = bool(account.profit_target) and pnl_pct >= account.profit_target
    max_loss_breached = bool(account.max_loss_limit) and max_drawdown_pct >= account.max_loss_limit

    return ChallengeProgress(
        account_id=account.account_id,
        name=account.name,
        pnl_pct=pnl_pct,
        max_drawdown_pct=max_drawdown_pct,
        days_remaining=days_remaining,
        profit_target=account.profit_target,
        target_reached=target_reached,
        max_loss_limit=account.max_loss_limit,
        max_loss_breached=max_loss_breached,
        stats=stats,
    )


def compute_challenge_progresses(
    accounts: Iterable[Account],
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> list[ChallengeProgress]:
    return [
        compute_challenge_progress(account, now=now, tz=tz)
        for account in accounts
        if account.is_challenge
    ]


def _is_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _is_timestamp(value: object) -> bool:
    if not _is_number(value):
        return False
    # Finite numbers past the platform's datetime range cannot be bucketed.
    try:
        local_date(value)
    except (ValueError, OverflowError, OSError):
        return False
    return True
