from __future__ import annotations

import math
from dataclasses import dataclass, field

Direction = str
Category = str

DIRECTION_LONG: Direction = "long"
DIRECTION_SHORT: Direction = "short"

CATEGORY_REAL: Category = "real"
CATEGORY_DEMO: Category = "demo"
CATEGORY_PROP: Category = "prop"
CATEGORIES: tuple[Category, ...] = (CATEGORY_REAL, CATEGORY_DEMO, CATEGORY_PROP)

VARIANT_CHALLENGE = "challenge"
VARIANT_LIVE = "live"


@dataclass(frozen=True)
class Trade:
    # timestamp_seconds / profit_and_loss are None when the stored record lacks them.
    trade_id: str
    timestamp_seconds: int | None
    profit_and_loss: float | None
    direction: Direction = DIRECTION_LONG
    entry_price: float = 0.0
    exit_price: float = 0.0
    size: float = 0.0
    symbol: str | None = None
    notes: str | None = None

    @property
    def is_win(self) -> bool:
        return self.profit_and_loss is not None and self.profit_and_loss > 0


@dataclass(frozen=True)
class Account:
    account_id: str
    category: Category
    initial_balance: float
    current_balance: float
    trades: list[Trade] = field(default_factory=list)
    name: str | None = None
    variant: str | None = None
    profit_target: float | None = None
    max_loss_limit: float | None = None
    start_timestamp: int | None = None
    time_limit_days: int | None = None

    @property
    def is_challenge(self) -> bool:
        return self.category == CATEGORY_PROP and self.variant == VARIANT_CHALLENGE


@dataclass(frozen=True)
class DerivedStats:
    total_trades: int
    wins: int
    losses: int
    win_rate: float
    gross_wins: float
    gross_losses: float
    profit_factor: float
    net_pnl: float
    today_pnl: float
    skipped: int = 0

    @property
    def profit_factor_is_infinite(self) -> bool:
        return math.isinf(self.profit_factor)


@dataclass(frozen=True)
class ChartPoint:
    label: str
    value: float


@dataclass(frozen=True)
class MonthlyBucket:
    month_label: str
    real: float = 0.0
    demo: float = 0.0
    prop: float = 0.0

    @property
    def total(self) -> float:
        return self.real + self.demo + self.prop


@dataclass(frozen=True)
class MonthlyBalance:
    month_label: str
    balance: float


@dataclass(frozen=True)
class AccountSummary:
    account_id: str
    name: str | None
    category: Category
    variant: str | None
    balance: float
    total_trades: int
    win_rate: float
    today_pnl: float
    net_pnl: float


@dataclass(frozen=True)
class PortfolioStats:
    stats: DerivedStats
    total_balance: float
    accounts: list[AccountSummary]


@dataclass(frozen=True)
class ChallengeProgress:
    account_id: str
    name: str | None
    pnl_pct: float
    max_drawdown_pct: float
    days_remaining: int | None
    profit_target: float | None
    target_reached: bool
    max_loss_limit: float | None
    max_loss_breached: bool
    stats: DerivedStats
