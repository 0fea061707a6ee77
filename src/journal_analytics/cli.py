from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from journal_analytics.config.app_config import AppConfig, load_app_config
from journal_analytics.ingest.journal import load_journal
from journal_analytics.metrics.balance import downsample_points, reconstruct_balance_history
from journal_analytics.metrics.calendar import TIMEFRAME_DAYS
from journal_analytics.metrics.monthly import aggregate_monthly, estimate_monthly_balance
from journal_analytics.metrics.stats import (
    compute_challenge_progresses,
    compute_portfolio_stats,
    compute_stats,
)
from journal_analytics.models import Account, DerivedStats
from journal_analytics.payloads import (
    challenge_payload,
    monthly_balance_payload,
    monthly_payload,
    points_payload,
    portfolio_payload,
    stats_payload,
)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    app_config = load_app_config(args.config)
    journal_path = args.journal or app_config.app.journal_path
    if not journal_path.exists():
        print(f"Journal file not found: {journal_path}", file=sys.stderr)
        return 1

    try:
        result = load_journal(journal_path)
    except ValueError as exc:
        print(f"Failed to parse journal {journal_path}: {exc}", file=sys.stderr)
        return 1
    if result.skipped:
        print(f"Skipped {result.skipped} journal records during normalization.", file=sys.stderr)

    try:
        payload, text = _run_command(args, result.accounts, app_config)
    except LookupError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    output = json.dumps(payload, indent=2, sort_keys=True) if args.json else text
    if args.out is None:
        print(output)
    else:
        args.out.parent.mkdir(parents=True, exist_ok=True)
        args.out.write_text(output + "\n", encoding="utf-8")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Trade journal performance analytics.")
    parser.add_argument("--journal", type=Path, default=None, help="Journal export (JSON).")
    parser.add_argument("--config", type=Path, default=None, help="Path to app.toml.")
    parser.add_argument("--json", action="store_true", help="Print JSON output.")
    parser.add_argument("--out", type=Path, default=None, help="Write output to a file instead of stdout.")
    parser.add_argument("--log-level", default="warning", help="Logging level (default: warning).")
    commands = parser.add_subparsers(dest="command", required=True)

    stats = commands.add_parser("stats", help="Win rate, profit factor and P/L.")
    stats.add_argument("--account", type=str, default=None, help="Limit to one account id.")

    commands.add_parser("accounts", help="Per-account summaries and portfolio totals.")

    balance = commands.add_parser("balance", help="Reconstructed daily balance of one account.")
    balance.add_argument("account", type=str, help="Account id.")
    balance.add_argument("--timeframe", choices=sorted(TIMEFRAME_DAYS), default=None)
    balance.add_argument("--max-points", type=int, default=None, help="Downsample to at most N points.")

    monthly = commands.add_parser("monthly", help="Monthly P/L by account category.")
    monthly.add_argument("--months", type=int, default=None)

    monthly_balance = commands.add_parser("monthly-balance", help="Estimated month-end real balance.")
    monthly_balance.add_argument("--months", type=int, default=None)

    commands.add_parser("challenges", help="Prop-firm challenge progress.")
    return parser


def _run_command(args: argparse.Namespace, accounts: list[Account], app_config: AppConfig) -> tuple[Any, str]:
    settings = app_config.analytics
    tz = settings.tzinfo

    if args.command == "stats":
        selected = accounts
        if args.account:
            selected = [_find_account(accounts, args.account)]
        stats = compute_stats((trade for account in selected for trade in account.trades), tz=tz)
        return stats_payload(stats), _format_stats(stats)

    if args.command == "accounts":
        portfolio = compute_portfolio_stats(accounts, tz=tz)
        lines = [_format_stats(portfolio.stats), f"total_balance {_format_float(portfolio.total_balance)}"]
        for summary in portfolio.accounts:
            lines.append(
                f"{summary.account_id} {summary.category} {_format_float(summary.balance)} "
                f"trades={summary.total_trades} win_rate={_format_float(summary.win_rate)} "
                f"today={_format_float(summary.today_pnl)} net={_format_float(summary.net_pnl)}"
            )
        return portfolio_payload(portfolio), "\n".join(lines)

    if args.command == "balance":
        account = _find_account(accounts, args.account)
        points = reconstruct_balance_history(
            account,
            args.timeframe or settings.default_timeframe,
            tz=tz,
            epsilon=settings.reconcile_epsilon,
        )
        points = downsample_points(points, args.max_points)
        lines = [f"{point.label} {_format_float(point.value)}" for point in points]
        return points_payload(points), "\n".join(lines)

    month_count = settings.month_count
    if getattr(args, "months", None) is not None:
        month_count = args.months

    if args.command == "monthly":
        buckets = aggregate_monthly(accounts, month_count, tz=tz)
        lines = ["month real demo prop"]
        for bucket in buckets:
            lines.append(
                f"{bucket.month_label} {_format_float(bucket.real)} "
                f"{_format_float(bucket.demo)} {_format_float(bucket.prop)}"
            )
        return monthly_payload(buckets), "\n".join(lines)

    if args.command == "monthly-balance":
        balances = estimate_monthly_balance(accounts, month_count, tz=tz)
        lines = [f"{item.month_label} {_format_float(item.balance)}" for item in balances]
        return monthly_balance_payload(balances), "\n".join(lines)

    progresses = compute_challenge_progresses(accounts, tz=tz)
    if not progresses:
        return [], "No challenge accounts."
    lines = []
    for progress in progresses:
        days = "na" if progress.days_remaining is None else str(progress.days_remaining)
        lines.append(
            f"{progress.account_id} pnl_pct={_format_float(progress.pnl_pct)} "
            f"max_drawdown_pct={_format_float(progress.max_drawdown_pct)} days_remaining={days} "
            f"target_reached={progress.target_reached} max_loss_breached={progress.max_loss_breached}"
        )
    return [challenge_payload(item) for item in progresses], "\n".join(lines)


def _find_account(accounts: list[Account], account_id: str) -> Account:
    for account in accounts:
        if account.account_id == account_id:
            return account
    raise LookupError(f"Unknown account '{account_id}'.")


def _format_stats(stats: DerivedStats) -> str:
    profit_factor = "inf" if stats.profit_factor_is_infinite else _format_float(stats.profit_factor)
    lines = [
        f"total_trades {stats.total_trades}",
        f"wins {stats.wins}",
        f"losses {stats.losses}",
        f"win_rate {_format_float(stats.win_rate)}",
        f"gross_wins {_format_float(stats.gross_wins)}",
        f"gross_losses {_format_float(stats.gross_losses)}",
        f"profit_factor {profit_factor}",
        f"net_pnl {_format_float(stats.net_pnl)}",
        f"today_pnl {_format_float(stats.today_pnl)}",
    ]
    if stats.skipped:
        lines.append(f"skipped {stats.skipped}")
    return "\n".join(lines)


def _format_float(value: float | None) -> str:
    return "na" if value is None else f"{value:.6g}"


if __name__ == "__main__":
    raise SystemExit(main())
