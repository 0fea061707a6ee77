from __future__ import annotations

import json
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping

from journal_analytics.models import (
    CATEGORY_DEMO,
    CATEGORY_PROP,
    CATEGORY_REAL,
    DIRECTION_LONG,
    DIRECTION_SHORT,
    Account,
    Trade,
)

_CATEGORY_ALIASES = {
    "real": CATEGORY_REAL,
    "live": CATEGORY_REAL,
    "demo": CATEGORY_DEMO,
    "prop": CATEGORY_PROP,
    "propfirm": CATEGORY_PROP,
    "prop_firm": CATEGORY_PROP,
}


@dataclass(frozen=True)
class JournalLoadResult:
    accounts: list[Account]
    skipped: int = 0


def load_journal(path: str | Path) -> JournalLoadResult:
    source_path = Path(path)
    if source_path.suffix.lower() != ".json":
        raise ValueError(f"Unsupported file type: {source_path.suffix}")
    with source_path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    return load_journal_payload(payload)


def load_journal_payload(payload: Any) -> JournalLoadResult:
    records = _extract_accounts(payload)
    accounts: list[Account] = []
    skipped = 0
    for index, raw in enumerate(records):
        if not isinstance(raw, Mapping):
            skipped += 1
            continue
        try:
            account, trade_skips = _normalize_account(raw, index)
        except ValueError:
            skipped += 1
            continue
        accounts.append(account)
        skipped += trade_skips
    return JournalLoadResult(accounts=accounts, skipped=skipped)


def _extract_accounts(payload: Any) -> Iterable[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, Mapping):
        for key in ("accounts", "data"):
            if key in payload and isinstance(payload[key], list):
                return payload[key]
        if isinstance(payload.get("user"), Mapping):
            return _extract_accounts(payload["user"])
    raise ValueError("Unsupported JSON format for journal payload")


def _normalize_account(raw: Mapping[str, Any], index: int) -> tuple[Account, int]:
    category = _normalize_category(_pick(raw, "category", "type"))
    initial = _to_float(_pick(raw, "initialBalance", "initial_balance", "accountSize", "account_size"))
    current = _to_float(
        _pick(raw, "currentBalance", "current_balance", "balance"),
        default=initial,
    )
    account_id = _pick(raw, "id", "accountId", "account_id")

    trades: list[Trade] = []
    skipped = 0
    raw_trades = raw.get("trades") or []
    if not isinstance(raw_trades, list):
        raise ValueError("Trades must be a list")
    for trade_index, raw_trade in enumerate(raw_trades):
        if not isinstance(raw_trade, Mapping):
            skipped += 1
            continue
        trades.append(_normalize_trade(raw_trade, trade_index))

    return (
        Account(
            account_id=str(account_id) if account_id is not None else f"account-{index}",
            category=category,
            initial_balance=initial,
            current_balance=current,
            trades=trades,
            name=_optional_str(_pick(raw, "name", "broker")),
            variant=_optional_str(_pick(raw, "variant")),
            profit_target=_optional_float(_pick(raw, "profitTarget", "profit_target")),
            max_loss_limit=_optional_float(_pick(raw, "maxLossLimit", "max_loss_limit")),
            start_timestamp=_optional_timestamp(_pick(raw, "startDate", "start_date", "startTimestamp")),
            time_limit_days=_optional_int(_pick(raw, "timeLimit", "time_limit", "timeLimitDays")),
        ),
        skipped,
    )


def _normalize_trade(raw: Mapping[str, Any], index: int) -> Trade:
    trade_id = _pick(raw, "id", "tradeId", "trade_id")
    return Trade(
        trade_id=str(trade_id) if trade_id is not None else f"trade-{index}",
        timestamp_seconds=_optional_timestamp(
            _pick(raw, "timestampSeconds", "timestamp_seconds", "date", "timestamp", "time")
        ),
        profit_and_loss=_optional_float(_pick(raw, "profitAndLoss", "profit_and_loss", "pnl")),
        direction=_normalize_direction(_pick(raw, "direction", "type", "side")),
        entry_price=_optional_float(_pick(raw, "entryPrice", "entry_price", "entry")) or 0.0,
        exit_price=_optional_float(_pick(raw, "exitPrice", "exit_price", "exit")) or 0.0,
        size=_optional_float(_pick(raw, "size", "quantity", "qty")) or 0.0,
        symbol=_optional_str(_pick(raw, "symbol", "instrument")),
        notes=_optional_str(_pick(raw, "notes", "note")),
    )


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw and raw[key] not in (None, ""):
            return raw[key]
    return None


def _normalize_category(value: Any) -> str:
    if value is None:
        raise ValueError("Missing account category")
    text = str(value).strip().lower().replace("-", "_").replace(" ", "_")
    if text not in _CATEGORY_ALIASES:
        raise ValueError(f"Unknown account category: {value}")
    return _CATEGORY_ALIASES[text]


def _normalize_direction(value: Any) -> str:
    text = str(value or "").strip().lower()
    if text in {"short", "sell", "s"}:
        return DIRECTION_SHORT
    return DIRECTION_LONG


def _to_float(value: Any, default: float | None = None) -> float:
    if value is None:
        if default is None:
            raise ValueError("Missing numeric field")
        return default
    parsed = _optional_float(value)
    if parsed is None:
        raise ValueError("Invalid numeric field")
    return parsed


def _optional_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return parsed if math.isfinite(parsed) else None


def _optional_int(value: Any) -> int | None:
    parsed = _optional_float(value)
    return int(parsed) if parsed is not None else None


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_timestamp(value: Any) -> int | None:
    try:
        return _parse_timestamp(value)
    except ValueError:
        return None


def _parse_timestamp(value: Any) -> int:
    if value is None or isinstance(value, bool):
        raise ValueError("Missing timestamp")

    # Document-store timestamps arrive as {"seconds": ..., "nanoseconds": ...}.
    if isinstance(value, Mapping):
        seconds = _pick(value, "seconds", "_seconds")
        if seconds is None:
            raise ValueError("Timestamp mapping without seconds")
        return _timestamp_from_number(_to_float(seconds))

    if isinstance(value, (int, float)):
        return _timestamp_from_number(float(value))

    text = str(value).strip()
    try:
        return _timestamp_from_number(float(text))
    except ValueError:
        pass

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValueError("Unsupported timestamp format") from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def _timestamp_from_number(value: float) -> int:
    if not math.isfinite(value):
        raise ValueError("Invalid timestamp")
    seconds = value / 1000.0 if value > 1e12 else value
    try:
        datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (ValueError, OverflowError, OSError) as exc:
        raise ValueError("Timestamp out of range") from exc
    return int(seconds)
