from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, HTTPException

from journal_analytics.config.app_config import AppConfig, load_app_config
from journal_analytics.ingest.journal import JournalLoadResult, load_journal
from journal_analytics.metrics.balance import downsample_points, reconstruct_balance_history
from journal_analytics.metrics.calendar import parse_timeframe
from journal_analytics.metrics.monthly import aggregate_monthly, estimate_monthly_balance
from journal_analytics.metrics.stats import (
    compute_challenge_progress,
    compute_challenge_progresses,
    compute_portfolio_stats,
    compute_stats,
)
from journal_analytics.models import Account
from journal_analytics.payloads import (
    challenge_payload,
    monthly_balance_payload,
    monthly_payload,
    points_payload,
    portfolio_payload,
    stats_payload,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Journal Analytics")


@app.get("/api/stats")
def stats_api(account: str | None = None) -> dict[str, Any]:
    app_config, journal = _load_state()
    accounts = journal.accounts
    if account:
        accounts = [_find_account(accounts, account)]
    stats = compute_stats(
        (trade for item in accounts for trade in item.trades),
        tz=app_config.analytics.tzinfo,
    )
    return stats_payload(stats)


@app.get("/api/portfolio")
def portfolio_api() -> dict[str, Any]:
    app_config, journal = _load_state()
    portfolio = compute_portfolio_stats(journal.accounts, tz=app_config.analytics.tzinfo)
    payload = portfolio_payload(portfolio)
    payload["skipped_records"] = journal.skipped
    return payload


@app.get("/api/accounts/{account_id}/balance-history")
def balance_history_api(
    account_id: str,
    timeframe: str | None = None,
    max_points: int | None = None,
) -> dict[str, Any]:
    app_config, journal = _load_state()
    settings = app_config.analytics
    account = _find_account(journal.accounts, account_id)
    try:
        resolved = parse_timeframe(timeframe, default=settings.default_timeframe)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    points = reconstruct_balance_history(
        account,
        resolved,
        tz=settings.tzinfo,
        epsilon=settings.reconcile_epsilon,
    )
    limit = settings.max_points if max_points is None else max_points
    return {
        "account_id": account.account_id,
        "timeframe": resolved,
        "points": points_payload(downsample_points(points, limit)),
    }


@app.get("/api/accounts/{account_id}/challenge")
def challenge_api(account_id: str) -> dict[str, Any]:
    app_config, journal = _load_state()
    account = _find_account(journal.accounts, account_id)
    if not account.is_challenge:
        raise HTTPException(status_code=404, detail=f"Account '{account_id}' is not a challenge account.")
    return challenge_payload(compute_challenge_progress(account, tz=app_config.analytics.tzinfo))


@app.get("/api/challenges")
def challenges_api() -> list[dict[str, Any]]:
    app_config, journal = _load_state()
    progresses = compute_challenge_progresses(journal.accounts, tz=app_config.analytics.tzinfo)
    return [challenge_payload(item) for item in progresses]


@app.get("/api/monthly-pnl")
def monthly_pnl_api(months: int | None = None) -> list[dict[str, Any]]:
    app_config, journal = _load_state()
    settings = app_config.analytics
    month_count = settings.month_count if months is None else months
    return monthly_payload(aggregate_monthly(journal.accounts, month_count, tz=settings.tzinfo))


@app.get("/api/monthly-balance")
def monthly_balance_api(months: int | None = None) -> list[dict[str, Any]]:
    app_config, journal = _load_state()
    settings = app_config.analytics
    month_count = settings.month_count if months is None else months
    return monthly_balance_payload(
        estimate_monthly_balance(journal.accounts, month_count, tz=settings.tzinfo)
    )


def _load_state() -> tuple[AppConfig, JournalLoadResult]:
    app_config = load_app_config()
    journal_path = app_config.app.journal_path
    if not journal_path.exists():
        return app_config, JournalLoadResult(accounts=[])
    try:
        journal = load_journal(journal_path)
    except ValueError as exc:
        raise HTTPException(status_code=500, detail=f"Failed to parse journal: {exc}") from exc
    if journal.skipped:
        logger.warning("Skipped %s journal records from %s", journal.skipped, journal_path)
    return app_config, journal


def _find_account(accounts: list[Account], account_id: str) -> Account:
    for account in accounts:
        if account.account_id == account_id:
            return account
    raise HTTPException(status_code=404, detail=f"Unknown account '{account_id}'.")


def main() -> None:
    import uvicorn

    app_config = load_app_config()
    uvicorn.run(
        "journal_analytics.web.app:app",
        host=app_config.app.host,
        port=app_config.app.port,
        reload=app_config.app.reload,
    )


if __name__ == "__main__":
    main()
