from __future__ import annotations

from typing import Any

from journal_analytics.models import (
    AccountSummary,
    ChallengeProgress,
    ChartPoint,
    DerivedStats,
    MonthlyBalance,
    MonthlyBucket,
    PortfolioStats,
)


def stats_payload(stats: DerivedStats) -> dict[str, Any]:
    # JSON has no infinity; the flag carries it instead.
    infinite = stats.profit_factor_is_infinite
    return {
        "total_trades": stats.total_trades,
        "wins": stats.wins,
        "losses": stats.losses,
        "win_rate": stats.win_rate,
        "gross_wins": stats.gross_wins,
        "gross_losses": stats.gross_losses,
        "profit_factor": None if infinite else stats.profit_factor,
        "profit_factor_infinite": infinite,
        "net_pnl": stats.net_pnl,
        "today_pnl": stats.today_pnl,
        "skipped": stats.skipped,
    }


def account_summary_payload(summary: AccountSummary) -> dict[str, Any]:
    return {
        "account_id": summary.account_id,
        "name": summary.name,
        "category": summary.category,
        "variant": summary.variant,
        "balance": summary.balance,
        "total_trades": summary.total_trades,
        "win_rate": summary.win_rate,
        "today_pnl": summary.today_pnl,
        "net_pnl": summary.net_pnl,
    }


def portfolio_payload(portfolio: PortfolioStats) -> dict[str, Any]:
    return {
        "stats": stats_payload(portfolio.stats),
        "total_balance": portfolio.total_balance,
        "accounts": [account_summary_payload(item) for item in portfolio.accounts],
    }


def challenge_payload(progress: ChallengeProgress) -> dict[str, Any]:
    return {
        "account_id": progress.account_id,
        "name": progress.name,
        "pnl_pct": progress.pnl_pct,
        "max_drawdown_pct": progress.max_drawdown_pct,
        "days_remaining": progress.days_remaining,
        "profit_target": progress.profit_target,
        "target_reached": progress.target_reached,
        "max_loss_limit": progress.max_loss_limit,
        "max_loss_breached": progress.max_loss_breached,
        "stats": stats_payload(progress.stats),
    }


def points_payload(points: list[ChartPoint]) -> list[dict[str, Any]]:
    return [{"label": point.label, "value": point.value} for point in points]


def monthly_payload(buckets: list[MonthlyBucket]) -> list[dict[str, Any]]:
    return [
        {"month": bucket.month_label, "real": bucket.real, "demo": bucket.demo, "prop": bucket.prop}
        for bucket in buckets
    ]


def monthly_balance_payload(balances: list[MonthlyBalance]) -> list[dict[str, Any]]:
    return [{"month": item.month_label, "real": item.balance} for item in balances]
