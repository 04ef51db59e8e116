"""Account/institution catalog rules.

Builds the fixed seed bundle every new user starts with and merges
accounts coming out of the (simulated) bank-linking flow. These functions
only shape in-memory bundles; persistence and locking belong to
:class:`~demofolio.financial.persistence.BundleRepository`.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

from loguru import logger

from .deterministic import SeededRNG, hash64
from .models import (
    SCHEMA_VERSION,
    Account,
    AccountDescriptor,
    AccountKind,
    Bundle,
    Institution,
    InstitutionDescriptor,
)

CENTS = Decimal("0.01")

SEED_INSTITUTIONS: tuple[Institution, ...] = (
    Institution(id="chase_001", name="Chase", logo_ref="building.columns.fill", brand_color_hex="#117ACA"),
    Institution(id="fidelity_001", name="Fidelity", logo_ref="chart.line.uptrend.xyaxis", brand_color_hex="#4E8542"),
    Institution(id="amex_001", name="American Express", logo_ref="creditcard.fill", brand_color_hex="#2E77BB"),
)

# (id, institution index, name, kind, masked number, balance, age in days)
# The liability row is mandatory: adding debt later must be able to pull the
# aggregate balance down.
_SEED_ACCOUNTS: tuple[tuple[str, int, str, AccountKind, str, str, int], ...] = (
    ("chase_checking", 0, "Primary Checking", AccountKind.CHECKING, "••••4521", "12450.32", 40),
    ("chase_savings", 0, "High-Yield Savings", AccountKind.SAVINGS, "••••7832", "45230.00", 70),
    ("fidelity_investment", 1, "Investment Portfolio", AccountKind.INVESTMENT, "••••9104", "156789.45", 420),
    ("amex_gold", 2, "Gold Card", AccountKind.CREDIT_CARD, "••••1029", "-3280.14", 180),
)

# Inclusive ranges for balances of linked accounts that arrive without one.
BALANCE_RANGES: dict[AccountKind, tuple[float, float]] = {
    AccountKind.CHECKING: (800.0, 18_500.0),
    AccountKind.SAVINGS: (2_000.0, 85_000.0),
    AccountKind.INVESTMENT: (8_000.0, 240_000.0),
    AccountKind.RETIREMENT: (8_000.0, 240_000.0),
    AccountKind.CRYPTO: (500.0, 40_000.0),
    AccountKind.CREDIT_CARD: (200.0, 9_500.0),
    AccountKind.LOAN: (5_000.0, 120_000.0),
}


def normalize_user_key(user_key: str) -> str:
    return user_key.strip().lower()


def build_seed_bundle(user_key: str, now: datetime) -> Bundle:
    """Fresh bundle with the fixed seed catalog for ``user_key``."""
    key = normalize_user_key(user_key)
    institutions = [
        Institution(id=i.id, name=i.name, logo_ref=i.logo_ref, brand_color_hex=i.brand_color_hex)
        for i in SEED_INSTITUTIONS
    ]
    accounts = []
    for account_id, inst_idx, name, kind, masked, balance, age_days in _SEED_ACCOUNTS:
        inst = institutions[inst_idx]
        accounts.append(
            Account(
                id=account_id,
                institution_id=inst.id,
                institution_name=inst.name,
                display_name=name,
                kind=kind,
                masked_number=masked,
                current_balance=Decimal(balance),
                currency_code="USD",
                created_at=now - timedelta(days=age_days),
            )
        )

    return Bundle(
        schema_version=SCHEMA_VERSION,
        user_key=key,
        created_at=now,
        base_seed=hash64(f"seed|{key}"),
        institutions=institutions,
        accounts=accounts,
    )


def institution_id_for(descriptor: InstitutionDescriptor) -> str:
    """Bundle-local institution id derived from the external id and a name hash."""
    return f"{descriptor.id}_{hash64(descriptor.name) % 1000}"


def seeded_balance(user_key: str, salt: str, kind: AccountKind) -> Decimal:
    """Plausible, reproducible balance for an account linked without one.

    Liabilities come back negative.
    """
    rng = SeededRNG.from_text(f"bal|{user_key}|{salt}|{kind.value}")
    lo, hi = BALANCE_RANGES[kind]
    amount = Decimal(repr(rng.next_double(lo, hi))).quantize(CENTS)
    return -amount if kind.is_liability else amount


def merge_linked_accounts(
    bundle: Bundle,
    institution: InstitutionDescriptor,
    accounts: list[AccountDescriptor],
    now: datetime,
) -> list[str]:
    """Merge linked accounts into ``bundle`` in place.

    The institution is appended only when its derived id is new. Accounts
    whose id already exists are skipped (first write wins, no overwrite),
    which keeps retried link calls idempotent.

    Returns:
        Ids of the accounts that were actually appended.
    """
    inst_id = institution_id_for(institution)
    if bundle.institution(inst_id) is None:
        bundle.institutions.append(
            Institution(
                id=inst_id,
                name=institution.name,
                logo_ref=institution.logo_ref,
                brand_color_hex=institution.brand_color_hex,
            )
        )

    added: list[str] = []
    for desc in accounts:
        if not desc.id or not desc.name:
            logger.warning(f"Skipping linked account without id or name at {institution.name}")
            continue
        if bundle.account(desc.id) is not None:
            continue
        balance = desc.available_balance
        if balance is None:
            balance = seeded_balance(bundle.user_key, desc.id, desc.kind)
        bundle.accounts.append(
            Account(
                id=desc.id,
                institution_id=inst_id,
                institution_name=institution.name,
                display_name=desc.name,
                kind=desc.kind,
                masked_number=desc.masked_number,
                current_balance=balance,
                currency_code=desc.currency_code,
                created_at=now,
            )
        )
        added.append(desc.id)
    return added
