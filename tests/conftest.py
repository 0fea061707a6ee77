from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

import pytest

from journal_analytics.models import Account, Trade

# Wall-clock reference for every engine test; naive values are system-local time.
NOW = datetime(2024, 3, 15, 18, 0)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_trade() -> Callable[..., Trade]:
    counter = {"value": 0}

    def _make(when: datetime | None, pnl: float | None, **kwargs: Any) -> Trade:
        counter["value"] += 1
        return Trade(
            trade_id=kwargs.pop("trade_id", f"t{counter['value']}"),
            timestamp_seconds=int(when.timestamp()) if when is not None else None,
            profit_and_loss=pnl,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_account() -> Callable[..., Account]:
    def _make(
        trades: list[Trade] | None = None,
        *,
        account_id: str = "acc-1",
        category: str = "real",
        initial_balance: float = 10_000.0,
        current_balance: float | None = None,
        **kwargs: Any,
    ) -> Account:
        return Account(
            account_id=account_id,
            category=category,
            initial_balance=initial_balance,
            current_balance=initial_balance if current_balance is None else current_balance,
            trades=list(trades or []),
            **kwargs,
        )

    return _make


@pytest.fixture
def journal_file(tmp_path: Path) -> Callable[[Any], Path]:
    def _write(payload: Any) -> Path:
        path = tmp_path / "journal.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write


def epoch(when: datetime) -> int:
    return int(when.timestamp())


@pytest.fixture
def sample_journal() -> dict[str, Any]:
    """User document in the shape the document store keeps it."""
    return {
        "accounts": [
            {
                "id": "real-1",
                "broker": "IC Markets",
                "type": "real",
                "initialBalance": 10000,
                "currentBalance": 10500,
                "trades": [
                    {
                        "id": "r1",
                        "symbol": "EURUSD",
                        "date": {"seconds": epoch(datetime(2024, 1, 10, 12, 0)), "nanoseconds": 0},
                        "type": "long",
                        "entry": 1.1,
                        "exit": 1.2,
                        "size": 1,
                        "pnl": 300,
                    },
                    {
                        "id": "r2",
                        "symbol": "EURUSD",
                        "date": {"seconds": epoch(datetime(2024, 1, 12, 12, 0)), "nanoseconds": 0},
                        "type": "short",
                        "entry": 1.2,
                        "exit": 1.25,
                        "size": 1,
                        "pnl": -100,
                    },
                ],
            },
            {
                "id": "demo-1",
                "broker": "Demo Broker",
                "type": "demo",
                "initialBalance": 5000,
                "currentBalance": 5000,
                "trades": [],
            },
            {
                "id": "prop-1",
                "broker": "FTMO",
                "type": "prop",
                "variant": "challenge",
                "accountSize": 100000,
                "balance": 101000,
                "profitTarget": 10,
                "maxLossLimit": 10,
                "trades": [
                    {
                        "id": "p1",
                        "symbol": "NAS100",
                        "date": {"seconds": epoch(datetime(2024, 1, 11, 12, 0)), "nanoseconds": 0},
                        "type": "long",
                        "entry": 100,
                        "exit": 110,
                        "size": 100,
                        "pnl": 1000,
                    }
                ],
            },
        ]
    }
