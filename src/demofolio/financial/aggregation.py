"""Aggregation and ranking over a bundle.

Everything here is a pure function of ``(user_key, bundle, now)`` plus
generator settings: portfolio totals, allocation, performance summaries
with key movers, per-account rankings, synchronized institutions and the
recent-activity feed. Screens that show the same number always agree
because they all derive it from the same series.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from decimal import Decimal

from loguru import logger

from .deterministic import SeededRNG, hash64, minutes_ago, stable_id
from .models import (
    HUNDRED,
    ZERO,
    Account,
    AccountContribution,
    AssetAllocation,
    AssetCategory,
    BalancePoint,
    Bundle,
    ConnectionStatus,
    PerformanceMetric,
    PerformanceSummary,
    PortfolioAccount,
    PortfolioAccountType,
    PortfolioSummary,
    RankedAccount,
    RankingState,
    SynchronizedAccount,
    SynchronizedInstitution,
    Timeframe,
    Transaction,
    TransactionCategory,
)
from .series import PORTFOLIO_SCOPE, GeneratorSettings, generate_series

KEY_MOVER_LIMIT = 3
DEFAULT_BRAND_COLOR = "#777777"
DEFAULT_LOGO_REF = "building.columns.fill"
PORTFOLIO_SYNC_LAG = timedelta(minutes=30)

MERCHANTS: tuple[tuple[str, TransactionCategory], ...] = (
    ("Apple Inc.", TransactionCategory.INVESTMENT),
    ("Whole Foods Market", TransactionCategory.GROCERIES),
    ("Monthly Salary", TransactionCategory.INCOME),
    ("Uber", TransactionCategory.TRANSPORT),
    ("Netflix", TransactionCategory.UTILITIES),
    ("Starbucks", TransactionCategory.DINING),
)
TRANSACTION_COUNT = 6
CENTS = Decimal("0.01")


# ---------------------------------------------------------------------------
# Scope resolution
# ---------------------------------------------------------------------------


def find_account(user_key: str, bundle: Bundle, account_id: uuid.UUID | str | None) -> Account | None:
    """Resolve an account by stable UUID or by its string id."""
    if account_id is None:
        return None
    if isinstance(account_id, str):
        match = bundle.account(account_id)
        if match is not None:
            return match
        try:
            account_id = uuid.UUID(account_id)
        except ValueError:
            return None
    return next((a for a in bundle.accounts if stable_id(user_key, a.id) == account_id), None)


def account_series(
    user_key: str,
    account: Account,
    timeframe: Timeframe,
    now: datetime,
    settings: GeneratorSettings | None = None,
):
    return generate_series(
        user_key,
        timeframe,
        now,
        account.current_balance,
        scope=account.id,
        kind=account.kind,
        settings=settings,
    )


# ---------------------------------------------------------------------------
# Performance
# ---------------------------------------------------------------------------


def performance_summary(
    user_key: str,
    bundle: Bundle,
    timeframe: Timeframe,
    account_id: uuid.UUID | str | None,
    now: datetime,
    settings: GeneratorSettings | None = None,
) -> PerformanceSummary:
    """Performance of the whole portfolio or of one account.

    Unknown ``account_id`` values fall back to the portfolio scope.
    """
    account = find_account(user_key, bundle, account_id)
    if account_id is not None and account is None:
        logger.warning(f"Unknown account {account_id} for {user_key}; using portfolio scope")

    if account is not None:
        points = account_series(user_key, account, timeframe, now, settings)
    else:
        points = generate_series(user_key, timeframe, now, bundle.total_balance, PORTFOLIO_SCOPE, None, settings)

    start = points[0].value if points else ZERO
    end = points[-1].value if points else ZERO

    movers: list[AccountContribution] = []
    if account is None:
        movers = key_movers(user_key, bundle, timeframe, now, start, end, settings)

    return PerformanceSummary(timeframe=timeframe, start_value=start, end_value=end, points=points, key_movers=movers)


def key_movers(
    user_key: str,
    bundle: Bundle,
    timeframe: Timeframe,
    now: datetime,
    portfolio_start: Decimal,
    portfolio_end: Decimal,
    settings: GeneratorSettings | None = None,
) -> list[AccountContribution]:
    """Top accounts by absolute change, as a share of the total absolute change.

    Account series are generated independently of the portfolio series, so
    the denominator is the larger of the portfolio's absolute change and the
    sum of the accounts' absolute changes. That keeps every share within
    ``[0, 100]``.
    """
    portfolio_abs = abs(portfolio_end - portfolio_start)
    if portfolio_abs <= 0:
        return []

    changes: list[tuple[Account, Decimal]] = []
    for account in bundle.accounts:
        points = account_series(user_key, account, timeframe, now, settings)
        changes.append((account, points[-1].value - points[0].value))

    total_abs = max(portfolio_abs, sum((abs(change) for _, change in changes), ZERO))

    # sorted() is stable, so ties keep catalog order.
    ranked = sorted(changes, key=lambda pair: abs(pair[1]), reverse=True)[:KEY_MOVER_LIMIT]

    return [
        AccountContribution(
            account_name=account.display_name,
            institution_name=account.institution_name,
            kind=account.kind.portfolio_type,
            contribution=change,
            percent_of_total_change=abs(change) / total_abs * HUNDRED,
            is_positive=change >= 0,
        )
        for account, change in ranked
    ]


# ---------------------------------------------------------------------------
# Rankings
# ---------------------------------------------------------------------------


def ranked_accounts(
    user_key: str,
    bundle: Bundle,
    timeframe: Timeframe,
    now: datetime,
    settings: GeneratorSettings | None = None,
) -> list[RankedAccount]:
    """Per-account gains over ``timeframe``, in catalog order.

    Sorting and insufficient-data bucketing are left to :func:`rank_accounts`.
    """
    results = []
    for account in bundle.accounts:
        points = account_series(user_key, account, timeframe, now, settings)
        start = points[0].value if points else account.current_balance
        end = points[-1].value if points else account.current_balance
        gain = end - start
        pct = gain / start * HUNDRED if start != 0 else ZERO

        inst = bundle.institution(account.institution_id)
        history = [p.value for p in points] or [start, end]

        results.append(
            RankedAccount(
                id=account.id,
                account_name=account.display_name,
                institution_name=account.institution_name,
                institution_logo_ref=inst.logo_ref if inst else DEFAULT_LOGO_REF,
                brand_color=inst.brand_color_hex if inst else DEFAULT_BRAND_COLOR,
                current_balance=end,
                previous_balance=start,
                absolute_gain=gain,
                percentage_gain=pct,
                history=history,
            )
        )
    return results


def rank_accounts(
    accounts: list[RankedAccount],
    metric: PerformanceMetric = PerformanceMetric.PERCENTAGE,
) -> tuple[list[RankedAccount], list[RankedAccount]]:
    """Sort best-first by ``metric`` and split off insufficient-data rows.

    Returns:
        ``(ranked, insufficient)``.
    """
    if metric is PerformanceMetric.PERCENTAGE:
        ordered = sorted(accounts, key=lambda a: a.percentage_gain, reverse=True)
    else:
        ordered = sorted(accounts, key=lambda a: a.absolute_gain, reverse=True)
    ranked = [a for a in ordered if not a.has_insufficient_data]
    insufficient = [a for a in ordered if a.has_insufficient_data]
    return ranked, insufficient


def ranking_state(accounts: list[RankedAccount]) -> RankingState:
    if not accounts:
        return RankingState.NO_ACCOUNTS
    ranked, _ = rank_accounts(accounts)
    if not ranked:
        return RankingState.INSUFFICIENT_DATA
    if all(a.absolute_gain < 0 for a in ranked):
        return RankingState.ALL_NEGATIVE
    return RankingState.LOADED


# ---------------------------------------------------------------------------
# Portfolio
# ---------------------------------------------------------------------------


def portfolio_accounts(user_key: str, bundle: Bundle, now: datetime) -> list[PortfolioAccount]:
    return [
        PortfolioAccount(
            id=stable_id(user_key, account.id),
            institution_name=account.institution_name,
            account_name=account.display_name,
            account_type=account.kind.portfolio_type,
            balance=account.current_balance,
            last_four_digits=account.last_four_digits,
            last_sync_date=now - timedelta(minutes=minutes_ago(user_key, account.id)),
        )
        for account in bundle.accounts
    ]


def asset_allocation(accounts: list[PortfolioAccount]) -> AssetAllocation:
    totals = {category: ZERO for category in AssetCategory}
    for account in accounts:
        totals[account.account_type.asset_category] += account.balance
    return AssetAllocation(
        cash=totals[AssetCategory.CASH],
        stocks=totals[AssetCategory.STOCKS],
        crypto=totals[AssetCategory.CRYPTO],
        other=totals[AssetCategory.OTHER],
    )


def invested_capital(accounts: list[PortfolioAccount]) -> Decimal:
    invested_types = (PortfolioAccountType.INVESTMENT, PortfolioAccountType.CRYPTO)
    return sum((max(ZERO, a.balance) for a in accounts if a.account_type in invested_types), ZERO)


def recent_transactions(user_key: str, accounts: list[PortfolioAccount], now: datetime) -> list[Transaction]:
    """Deterministic activity feed; reshuffles once per day of the month."""
    if not accounts:
        return []
    rng = SeededRNG.from_text(f"tx|{user_key}|{now.day}")

    transactions = []
    for idx in range(TRANSACTION_COUNT):
        title, category = MERCHANTS[rng.next_index(len(MERCHANTS))]
        account = accounts[rng.next_index(len(accounts))]
        base = Decimal(repr(rng.next_double(12.0, 420.0))).quantize(CENTS)
        days_back = rng.next_index(4)
        transactions.append(
            Transaction(
                id=stable_id(user_key, f"tx|{now.date().isoformat()}|{idx}"),
                title=title,
                category=category,
                amount=base if category.is_credit else -base,
                timestamp=now - timedelta(days=days_back),
                account_name=f"{account.institution_name} {account.account_name}",
                is_pending=idx == 0 and not category.is_credit,
            )
        )
    transactions.sort(key=lambda t: t.timestamp, reverse=True)
    return transactions


def portfolio_summary(
    user_key: str,
    bundle: Bundle,
    now: datetime,
    settings: GeneratorSettings | None = None,
) -> PortfolioSummary:
    accounts = portfolio_accounts(user_key, bundle, now)
    total = sum((a.balance for a in accounts), ZERO)

    # Same series the performance screen shows for the week, so both agree.
    week = performance_summary(user_key, bundle, Timeframe.WEEK, None, now, settings)
    history = [BalancePoint(timestamp=p.timestamp, value=p.value) for p in week.points]

    return PortfolioSummary(
        total_balance=total,
        invested_capital=invested_capital(accounts),
        last_sync_date=now - PORTFOLIO_SYNC_LAG,
        balance_history=history,
        asset_allocation=asset_allocation(accounts),
        accounts=accounts,
        recent_transactions=recent_transactions(user_key, accounts, now),
    )


# ---------------------------------------------------------------------------
# Synchronized institutions
# ---------------------------------------------------------------------------


def synchronized_institutions(user_key: str, bundle: Bundle, now: datetime) -> list[SynchronizedInstitution]:
    """Institutions with their accounts; empty institutions are omitted."""
    by_institution: dict[str, list[Account]] = {}
    for account in bundle.accounts:
        by_institution.setdefault(account.institution_id, []).append(account)

    results = []
    for inst in bundle.institutions:
        accounts = by_institution.get(inst.id, [])
        if not accounts:
            continue

        # Roughly one in five institutions asks for attention, stable per user.
        needs_attention = hash64(f"attention|{user_key}|{inst.id}") % 5 == 0
        lag = 30 + hash64(f"sync|{user_key}|{inst.id}") % 90

        results.append(
            SynchronizedInstitution(
                id=inst.id,
                name=inst.name,
                logo_ref=inst.logo_ref,
                brand_color_hex=inst.brand_color_hex,
                accounts=[
                    SynchronizedAccount(
                        id=a.id,
                        name=a.display_name,
                        kind=a.kind,
                        masked_number=a.masked_number,
                        balance=a.current_balance,
                        currency_code=a.currency_code,
                    )
                    for a in accounts
                ],
                connection_status=ConnectionStatus.NEEDS_ATTENTION if needs_attention else ConnectionStatus.ACTIVE,
                last_sync_date=now - timedelta(minutes=lag),
                requires_reauthentication=needs_attention,
            )
        )
    return results
