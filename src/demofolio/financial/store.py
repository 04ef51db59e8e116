"""DemoDataStore: the service object the presentation layer talks to.

Construct one per process and hand it to whoever needs portfolio data:

    store = DemoDataStore(LocalStorage("~/.demofolio-data/storage"))
    store.ensure_seeded("alice@example.com")
    summary = store.portfolio_summary("alice@example.com")

Reads are pure functions of the persisted bundle, the user key and the
clock. None of the operations raise for missing or malformed data.
"""

from __future__ import annotations

import os
import uuid
from datetime import UTC, datetime

from loguru import logger

from demofolio.core.config import Config
from demofolio.core.exceptions import ConfigurationError
from demofolio.core.storage import LocalStorage, MemoryStorage, StorageBackend

from . import aggregation
from .catalog import build_seed_bundle, merge_linked_accounts, normalize_user_key
from .models import (
    AccountDescriptor,
    Bundle,
    InstitutionDescriptor,
    PerformanceSummary,
    PortfolioSummary,
    RankedAccount,
    SynchronizedInstitution,
    Timeframe,
)
from .persistence import BundleRepository
from .series import GeneratorSettings


def _now() -> datetime:
    return datetime.now(UTC)


class DemoDataStore:
    """Deterministic demo data for every portfolio screen."""

    def __init__(self, storage: StorageBackend, settings: GeneratorSettings | None = None) -> None:
        self.repository = BundleRepository(storage)
        self.settings = settings or GeneratorSettings()

    @classmethod
    def from_config(cls, config: Config) -> DemoDataStore:
        """Build a store from ``storage.*`` and ``series.*`` config keys."""
        backend = str(config.get("storage.backend", "local")).lower()
        if backend == "memory":
            storage: StorageBackend = MemoryStorage()
        elif backend == "local":
            storage_dir = config.get("paths.storage_dir") or os.path.join(config.get_data_dir(), "storage")
            storage = LocalStorage(base_path=storage_dir, compress=config.get_bool("storage.compress", False))
        else:
            raise ConfigurationError(f"Unknown storage backend: {backend!r}")

        settings = GeneratorSettings(liability_floor=config.get_bool("series.liability_floor", True))
        return cls(storage, settings)

    # -- writes ---------------------------------------------------------------

    def ensure_seeded(self, user_key: str) -> None:
        """Create the seed bundle once; later calls only backfill the gate."""
        key = normalize_user_key(user_key)
        with self.repository.lock(key):
            existing = self.repository.load(key)
            if existing is not None:
                if not self.repository.linked_account_ids():
                    logger.debug(f"Backfilling linked account ids for {key}")
                    self.repository.set_linked_account_ids(existing.account_ids)
                return

            bundle = build_seed_bundle(key, _now())
            self.repository.save(bundle)
            self.repository.set_linked_account_ids(bundle.account_ids)
            logger.info(f"Seeded demo bundle for {key} with {len(bundle.accounts)} accounts")

    def upsert_linked_accounts(
        self,
        user_key: str,
        institution: InstitutionDescriptor,
        accounts: list[AccountDescriptor],
    ) -> list[str]:
        """Persist accounts from the bank-linking flow.

        Existing account ids are left untouched, so retries are safe.

        Returns:
            Ids of the accounts that were added by this call.
        """
        key = normalize_user_key(user_key)
        with self.repository.lock(key):
            self.ensure_seeded(key)
            bundle = self.repository.load(key)
            if bundle is None:
                # Unreadable even right after seeding; nothing sensible to merge into.
                logger.warning(f"No bundle available for {key}; skipping upsert")
                return []

            added = merge_linked_accounts(bundle, institution, accounts, _now())
            self.repository.save(bundle)
            self.repository.merge_linked_account_ids(bundle.account_ids)

        if added:
            logger.info(f"Linked {len(added)} account(s) at {institution.name} for {key}")
        else:
            logger.debug(f"No new accounts linked at {institution.name} for {key}")
        return added

    # -- reads ----------------------------------------------------------------

    def bundle(self, user_key: str) -> Bundle | None:
        return self.repository.load(user_key)

    def linked_account_ids(self) -> list[str]:
        return self.repository.linked_account_ids()

    def current_user_key(self) -> str | None:
        """User key of the stored signed-in user, if any."""
        email = self.repository.stored_user_key()
        return normalize_user_key(email) if email else None

    def set_current_user(self, user_key: str) -> None:
        self.repository.set_stored_user(normalize_user_key(user_key))

    def portfolio_summary(self, user_key: str, now: datetime | None = None) -> PortfolioSummary:
        now = now or _now()
        key = normalize_user_key(user_key)
        bundle = self.repository.load(key)
        if bundle is None:
            return PortfolioSummary.empty(now)
        return aggregation.portfolio_summary(key, bundle, now, self.settings)

    def synchronized_institutions(self, user_key: str, now: datetime | None = None) -> list[SynchronizedInstitution]:
        now = now or _now()
        key = normalize_user_key(user_key)
        bundle = self.repository.load(key)
        if bundle is None:
            return []
        return aggregation.synchronized_institutions(key, bundle, now)

    def performance_summary(
        self,
        user_key: str,
        timeframe: Timeframe | str,
        account_id: uuid.UUID | str | None = None,
        now: datetime | None = None,
    ) -> PerformanceSummary:
        now = now or _now()
        timeframe = Timeframe.parse(timeframe)
        key = normalize_user_key(user_key)
        bundle = self.repository.load(key)
        if bundle is None:
            return PerformanceSummary.empty(timeframe)
        return aggregation.performance_summary(key, bundle, timeframe, account_id, now, self.settings)

    def ranked_accounts(
        self,
        user_key: str,
        timeframe: Timeframe | str,
        now: datetime | None = None,
    ) -> list[RankedAccount]:
        now = now or _now()
        timeframe = Timeframe.parse(timeframe)
        key = normalize_user_key(user_key)
        bundle = self.repository.load(key)
        if bundle is None:
            return []
        return aggregation.ranked_accounts(key, bundle, timeframe, now, self.settings)
