"""Core financial data models.

Persisted records (institutions, accounts, bundles) and the read models
derived from them (performance series, rankings, portfolio summaries).
Everything here is plain data; generation and aggregation live elsewhere.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum, StrEnum

from demofolio.core.exceptions import InvalidInputError

SCHEMA_VERSION = 1

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    """Coerce ints, floats and strings to Decimal without float artifacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class AssetCategory(Enum):
    CASH = "Cash"
    STOCKS = "Stocks"
    CRYPTO = "Crypto"
    OTHER = "Other"


class PortfolioAccountType(Enum):
    CHECKING = "Checking"
    SAVINGS = "Savings"
    INVESTMENT = "Investment"
    CRYPTO = "Crypto"
    CREDIT_CARD = "Credit Card"
    LOAN = "Loan"

    @property
    def asset_category(self) -> AssetCategory:
        return _ASSET_CATEGORIES[self]


_ASSET_CATEGORIES: dict[PortfolioAccountType, AssetCategory] = {
    PortfolioAccountType.CHECKING: AssetCategory.CASH,
    PortfolioAccountType.SAVINGS: AssetCategory.CASH,
    PortfolioAccountType.INVESTMENT: AssetCategory.STOCKS,
    PortfolioAccountType.CRYPTO: AssetCategory.CRYPTO,
    PortfolioAccountType.CREDIT_CARD: AssetCategory.OTHER,
    PortfolioAccountType.LOAN: AssetCategory.OTHER,
}


class AccountKind(StrEnum):
    """Kind of a catalog account. Values are the persisted form."""

    CHECKING = "checking"
    SAVINGS = "savings"
    INVESTMENT = "investment"
    RETIREMENT = "retirement"
    CRYPTO = "crypto"
    CREDIT_CARD = "creditCard"
    LOAN = "loan"

    @property
    def is_liability(self) -> bool:
        return self in (AccountKind.CREDIT_CARD, AccountKind.LOAN)

    @property
    def portfolio_type(self) -> PortfolioAccountType:
        return _PORTFOLIO_TYPES[self]

    @classmethod
    def parse(cls, value: str) -> AccountKind:
        """Accept raw values plus snake/kebab/space spellings ("credit card")."""
        normalized = value.strip().replace("_", "").replace("-", "").replace(" ", "").lower()
        for kind in cls:
            if kind.value.lower() == normalized:
                return kind
        raise InvalidInputError(f"Unknown account kind: {value!r}")


_PORTFOLIO_TYPES: dict[AccountKind, PortfolioAccountType] = {
    AccountKind.CHECKING: PortfolioAccountType.CHECKING,
    AccountKind.SAVINGS: PortfolioAccountType.SAVINGS,
    AccountKind.INVESTMENT: PortfolioAccountType.INVESTMENT,
    AccountKind.RETIREMENT: PortfolioAccountType.INVESTMENT,
    AccountKind.CRYPTO: PortfolioAccountType.CRYPTO,
    AccountKind.CREDIT_CARD: PortfolioAccountType.CREDIT_CARD,
    AccountKind.LOAN: PortfolioAccountType.LOAN,
}


class Timeframe(StrEnum):
    """Chart timeframes. Values feed seed strings, so never rename them."""

    DAY = "D"
    WEEK = "W"
    MONTH = "M"
    YEAR = "Y"
    ALL = "ALL"

    @property
    def readable_label(self) -> str:
        return _READABLE_LABELS[self]

    @classmethod
    def parse(cls, value: str | Timeframe) -> Timeframe:
        if isinstance(value, Timeframe):
            return value
        key = value.strip().lower()
        for tf in cls:
            if key in (tf.value.lower(), tf.name.lower()):
                return tf
        raise InvalidInputError(f"Unknown timeframe: {value!r}")


_READABLE_LABELS: dict[Timeframe, str] = {
    Timeframe.DAY: "today",
    Timeframe.WEEK: "this week",
    Timeframe.MONTH: "this month",
    Timeframe.YEAR: "this year",
    Timeframe.ALL: "overall",
}


class ConnectionStatus(Enum):
    ACTIVE = "Active"
    NEEDS_ATTENTION = "Needs Attention"
    EXPIRED = "Expired"
    SYNCING = "Syncing"


class TransactionCategory(Enum):
    INCOME = "income"
    INVESTMENT = "investment"
    GROCERIES = "groceries"
    TRANSPORT = "transport"
    UTILITIES = "utilities"
    DINING = "dining"

    @property
    def is_credit(self) -> bool:
        return self in (TransactionCategory.INCOME, TransactionCategory.INVESTMENT)


class PerformanceMetric(Enum):
    CURRENCY = "currency"
    PERCENTAGE = "percentage"


class RankingState(Enum):
    LOADED = "loaded"
    INSUFFICIENT_DATA = "insufficient_data"
    ALL_NEGATIVE = "all_negative"
    NO_ACCOUNTS = "no_accounts"


# ---------------------------------------------------------------------------
# Persisted catalog
# ---------------------------------------------------------------------------


@dataclass
class Institution:
    """A financial institution an account belongs to.

    Attributes:
        id: Unique within a bundle.
        name: Display name, e.g. "Chase".
        logo_ref: Symbol or asset name for the logo.
        brand_color_hex: e.g. "#117ACA".
    """

    id: str
    name: str
    logo_ref: str
    brand_color_hex: str


@dataclass
class Account:
    """A linked account. ``current_balance`` is negative for liabilities.

    Attributes:
        id: External account id (the string id the linking flow produced).
        institution_id: Foreign key to Institution in the same bundle.
        institution_name: Denormalized institution name.
        display_name: Human-readable account name.
        kind: AccountKind.
        masked_number: e.g. "••••4521".
        current_balance: Anchor value for every generated series.
        currency_code: ISO currency code.
        created_at: When the account entered the bundle.
    """

    id: str
    institution_id: str
    institution_name: str
    display_name: str
    kind: AccountKind
    masked_number: str
    current_balance: Decimal
    currency_code: str
    created_at: datetime

    def __post_init__(self):
        self.current_balance = to_decimal(self.current_balance)
        if not isinstance(self.kind, AccountKind):
            self.kind = AccountKind(self.kind)
        if not self.display_name:
            raise ValueError("Account name cannot be empty")

    @property
    def last_four_digits(self) -> str:
        digits = self.masked_number.replace("•", "")
        if len(digits) >= 4:
            return digits[-4:]
        # Wallet-style accounts may carry no digits at all.
        return "••••" if self.masked_number == "••••" else ""


@dataclass
class Bundle:
    """Everything persisted for one user."""

    schema_version: int
    user_key: str
    created_at: datetime
    base_seed: int
    institutions: list[Institution] = field(default_factory=list)
    accounts: list[Account] = field(default_factory=list)

    def institution(self, institution_id: str) -> Institution | None:
        return next((i for i in self.institutions if i.id == institution_id), None)

    def account(self, account_id: str) -> Account | None:
        return next((a for a in self.accounts if a.id == account_id), None)

    @property
    def account_ids(self) -> list[str]:
        return [a.id for a in self.accounts]

    @property
    def total_balance(self) -> Decimal:
        return sum((a.current_balance for a in self.accounts), ZERO)


# ---------------------------------------------------------------------------
# Linking inputs
# ---------------------------------------------------------------------------


@dataclass
class InstitutionDescriptor:
    """Bank chosen in the linking flow."""

    id: str
    name: str
    logo_ref: str = "building.columns.fill"
    brand_color_hex: str = "#007AFF"


@dataclass
class AccountDescriptor:
    """Account selected in the linking flow. ``available_balance`` may be unknown."""

    id: str
    name: str
    kind: AccountKind
    masked_number: str = "••••"
    available_balance: Decimal | None = None
    currency_code: str = "USD"

    def __post_init__(self):
        if not self.id or not self.name:
            raise InvalidInputError(f"Linked account needs an id and a name, got {self.id!r} / {self.name!r}")
        if not isinstance(self.kind, AccountKind):
            self.kind = AccountKind.parse(str(self.kind))
        if self.available_balance is not None:
            self.available_balance = to_decimal(self.available_balance)


# ---------------------------------------------------------------------------
# Performance
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimeSeriesPoint:
    timestamp: datetime
    value: Decimal
    is_interpolated: bool = False


@dataclass
class AccountContribution:
    """An account's share of a portfolio change (a "key mover")."""

    account_name: str
    institution_name: str
    kind: PortfolioAccountType
    contribution: Decimal
    percent_of_total_change: Decimal
    is_positive: bool


@dataclass
class PerformanceSummary:
    timeframe: Timeframe
    start_value: Decimal
    end_value: Decimal
    points: list[TimeSeriesPoint] = field(default_factory=list)
    key_movers: list[AccountContribution] = field(default_factory=list)

    @classmethod
    def empty(cls, timeframe: Timeframe) -> PerformanceSummary:
        return cls(timeframe=timeframe, start_value=ZERO, end_value=ZERO)

    @property
    def absolute_change(self) -> Decimal:
        return self.end_value - self.start_value

    @property
    def percentage_change(self) -> Decimal:
        if self.start_value == 0:
            return ZERO
        return self.absolute_change / self.start_value * HUNDRED

    @property
    def is_positive(self) -> bool:
        return self.absolute_change >= 0

    @property
    def context_label(self) -> str:
        """Short wording for the size of the move, e.g. "Minor pullback"."""
        pct = abs(self.percentage_change)
        change = self.absolute_change
        if change > 0:
            if pct >= 5:
                return "Strong growth"
            if pct >= 2:
                return "Solid growth"
            if pct >= Decimal("0.5"):
                return "Steady gains"
            return "Slight uptick"
        if change < 0:
            if pct >= 5:
                return "Significant decline"
            if pct >= 2:
                return "Notable dip"
            if pct >= Decimal("0.5"):
                return "Minor pullback"
            return "Slight dip"
        return "No change"

    @property
    def insight_summary(self) -> str:
        label = self.timeframe.readable_label
        change = self.absolute_change
        if change == 0:
            return f"Your portfolio value stayed flat {label}."

        pct = abs(self.percentage_change)
        if pct >= 5:
            magnitude = "significantly"
        elif pct >= 2:
            magnitude = "noticeably"
        elif pct >= Decimal("0.5"):
            magnitude = "modestly"
        else:
            magnitude = "slightly"
        direction = "grew" if change > 0 else "declined"
        return f"Your portfolio {direction} {magnitude} {label}, {pct:.1f}% overall."


# ---------------------------------------------------------------------------
# Rankings
# ---------------------------------------------------------------------------


@dataclass
class RankedAccount:
    id: str
    account_name: str
    institution_name: str
    institution_logo_ref: str
    brand_color: str
    current_balance: Decimal
    previous_balance: Decimal
    absolute_gain: Decimal
    percentage_gain: Decimal
    history: list[Decimal] = field(default_factory=list)
    has_insufficient_data: bool = False

    @property
    def is_positive(self) -> bool:
        return self.absolute_gain >= 0


# ---------------------------------------------------------------------------
# Portfolio
# ---------------------------------------------------------------------------


@dataclass
class PortfolioAccount:
    id: uuid.UUID
    institution_name: str
    account_name: str
    account_type: PortfolioAccountType
    balance: Decimal
    last_four_digits: str
    last_sync_date: datetime
    is_active: bool = True
    has_error: bool = False

    @property
    def is_negative(self) -> bool:
        return self.balance < 0


@dataclass
class AssetAllocation:
    cash: Decimal = ZERO
    stocks: Decimal = ZERO
    crypto: Decimal = ZERO
    other: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.cash + self.stocks + self.crypto + self.other

    def amount(self, category: AssetCategory) -> Decimal:
        return {
            AssetCategory.CASH: self.cash,
            AssetCategory.STOCKS: self.stocks,
            AssetCategory.CRYPTO: self.crypto,
            AssetCategory.OTHER: self.other,
        }[category]

    def percentage(self, category: AssetCategory) -> float:
        """Fraction of the total in ``category`` (0.0 when the total is not positive)."""
        total = self.total
        if total <= 0:
            return 0.0
        return float(self.amount(category) / total)

    def active_categories(self) -> list[tuple[AssetCategory, float, Decimal]]:
        return [(c, self.percentage(c), self.amount(c)) for c in AssetCategory if self.amount(c) > 0]


@dataclass(frozen=True)
class BalancePoint:
    timestamp: datetime
    value: Decimal


@dataclass(frozen=True)
class BalanceChange:
    amount: Decimal
    percentage: Decimal
    period: Timeframe = Timeframe.WEEK

    @property
    def is_positive(self) -> bool:
        return self.amount >= 0


@dataclass
class Transaction:
    id: uuid.UUID
    title: str
    category: TransactionCategory
    amount: Decimal
    timestamp: datetime
    account_name: str
    is_pending: bool = False

    @property
    def is_debit(self) -> bool:
        return self.amount < 0


STALE_AFTER = timedelta(hours=24)


@dataclass
class PortfolioSummary:
    total_balance: Decimal
    invested_capital: Decimal
    last_sync_date: datetime
    balance_history: list[BalancePoint] = field(default_factory=list)
    asset_allocation: AssetAllocation = field(default_factory=AssetAllocation)
    accounts: list[PortfolioAccount] = field(default_factory=list)
    recent_transactions: list[Transaction] = field(default_factory=list)

    @classmethod
    def empty(cls, now: datetime) -> PortfolioSummary:
        return cls(total_balance=ZERO, invested_capital=ZERO, last_sync_date=now)

    @property
    def balance_change(self) -> BalanceChange:
        if len(self.balance_history) < 2:
            return BalanceChange(amount=ZERO, percentage=ZERO)
        oldest = self.balance_history[0].value
        newest = self.balance_history[-1].value
        change = newest - oldest
        pct = change / oldest * HUNDRED if oldest != 0 else ZERO
        return BalanceChange(amount=change, percentage=pct)

    def is_stale(self, now: datetime) -> bool:
        return now - self.last_sync_date > STALE_AFTER


# ---------------------------------------------------------------------------
# Synchronized institutions
# ---------------------------------------------------------------------------


@dataclass
class SynchronizedAccount:
    id: str
    name: str
    kind: AccountKind
    masked_number: str
    balance: Decimal
    currency_code: str
    is_active: bool = True


@dataclass
class SynchronizedInstitution:
    id: str
    name: str
    logo_ref: str
    brand_color_hex: str
    accounts: list[SynchronizedAccount]
    connection_status: ConnectionStatus
    last_sync_date: datetime
    requires_reauthentication: bool = False

    @property
    def total_balance(self) -> Decimal:
        return sum((a.balance for a in self.accounts), ZERO)

    @property
    def needs_attention(self) -> bool:
        return self.connection_status in (ConnectionStatus.NEEDS_ATTENTION, ConnectionStatus.EXPIRED)

    def minutes_since_sync(self, now: datetime) -> int:
        return int((now - self.last_sync_date).total_seconds() // 60)
