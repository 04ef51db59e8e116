"""Bundle persistence on top of a key-value storage backend.

Layout::

    demo_bundle_v1_<quoted user key>   # one JSON bundle per normalized user
    linked_account_ids                 # flat JSON list, the UI unlock gate
    stored_user                        # optional {"email": ...} record

Absent and malformed payloads both read back as ``None``; availability wins
over strict validation. ``schema_version`` is written but not yet checked.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Iterable
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any
from urllib.parse import quote

from loguru import logger

from demofolio.core.storage import StorageBackend, StorageError, StorageKeyError

from .catalog import normalize_user_key
from .models import Account, AccountKind, Bundle, Institution

BUNDLE_KEY_PREFIX = "demo_bundle_v1_"
LINKED_ACCOUNT_IDS_KEY = "linked_account_ids"
STORED_USER_KEY = "stored_user"
CONTENT_TYPE = "application/json"


def bundle_storage_key(user_key: str) -> str:
    return BUNDLE_KEY_PREFIX + quote(normalize_user_key(user_key), safe="@.+-_")


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def bundle_to_dict(bundle: Bundle) -> dict[str, Any]:
    return {
        "schema_version": bundle.schema_version,
        "user_key": bundle.user_key,
        "created_at": bundle.created_at.isoformat(),
        "base_seed": bundle.base_seed,
        "institutions": [
            {
                "id": i.id,
                "name": i.name,
                "logo_ref": i.logo_ref,
                "brand_color_hex": i.brand_color_hex,
            }
            for i in bundle.institutions
        ],
        "accounts": [
            {
                "id": a.id,
                "institution_id": a.institution_id,
                "institution_name": a.institution_name,
                "display_name": a.display_name,
                "kind": a.kind.value,
                "masked_number": a.masked_number,
                "current_balance": str(a.current_balance),
                "currency_code": a.currency_code,
                "created_at": a.created_at.isoformat(),
            }
            for a in bundle.accounts
        ],
    }


def bundle_from_dict(data: dict[str, Any]) -> Bundle:
    """Rebuild a Bundle. Raises KeyError/TypeError/ValueError on bad input."""
    institutions = [
        Institution(
            id=i["id"],
            name=i["name"],
            logo_ref=i["logo_ref"],
            brand_color_hex=i["brand_color_hex"],
        )
        for i in data["institutions"]
    ]
    accounts = [
        Account(
            id=a["id"],
            institution_id=a["institution_id"],
            institution_name=a["institution_name"],
            display_name=a["display_name"],
            kind=AccountKind(a["kind"]),
            masked_number=a["masked_number"],
            current_balance=Decimal(a["current_balance"]),
            currency_code=a["currency_code"],
            created_at=datetime.fromisoformat(a["created_at"]),
        )
        for a in data["accounts"]
    ]
    return Bundle(
        schema_version=int(data["schema_version"]),
        user_key=data["user_key"],
        created_at=datetime.fromisoformat(data["created_at"]),
        base_seed=int(data["base_seed"]),
        institutions=institutions,
        accounts=accounts,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class BundleRepository:
    """Loads and saves bundles and the linked-accounts gate."""

    def __init__(self, storage: StorageBackend) -> None:
        self.storage = storage
        self._locks_guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    @contextmanager
    def lock(self, user_key: str):
        """Serialize read-modify-write sequences for one user."""
        key = normalize_user_key(user_key)
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
        with lock:
            yield

    # -- bundles --------------------------------------------------------------

    def load(self, user_key: str) -> Bundle | None:
        payload = self._read_json(bundle_storage_key(user_key))
        if payload is None:
            return None
        try:
            return bundle_from_dict(payload)
        except (KeyError, TypeError, ValueError, InvalidOperation) as e:
            logger.warning(f"Ignoring malformed bundle for {normalize_user_key(user_key)!r}: {e}")
            return None

    def save(self, bundle: Bundle) -> None:
        self._write_json(bundle_storage_key(bundle.user_key), bundle_to_dict(bundle))

    # -- linked accounts gate -------------------------------------------------

    def linked_account_ids(self) -> list[str]:
        payload = self._read_json(LINKED_ACCOUNT_IDS_KEY)
        if not isinstance(payload, list):
            return []
        return [str(item) for item in payload]

    def set_linked_account_ids(self, ids: Iterable[str]) -> None:
        self._write_json(LINKED_ACCOUNT_IDS_KEY, list(dict.fromkeys(ids)))

    def merge_linked_account_ids(self, ids: Iterable[str]) -> list[str]:
        """Set union with the stored gate, keeping first-seen order."""
        merged = list(dict.fromkeys([*self.linked_account_ids(), *ids]))
        self._write_json(LINKED_ACCOUNT_IDS_KEY, merged)
        return merged

    # -- stored user ----------------------------------------------------------

    def stored_user_key(self) -> str | None:
        payload = self._read_json(STORED_USER_KEY)
        if not isinstance(payload, dict):
            return None
        email = payload.get("email")
        return email if isinstance(email, str) and email.strip() else None

    def set_stored_user(self, email: str) -> None:
        self._write_json(STORED_USER_KEY, {"email": email})

    # -- raw IO ---------------------------------------------------------------

    def _read_json(self, key: str) -> Any | None:
        try:
            raw = self.storage.load(key)
        except StorageKeyError:
            return None
        except StorageError as e:
            logger.warning(f"Cannot read {key}: {e}")
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable payload at {key}: {e}")
            return None

    def _write_json(self, key: str, payload: Any) -> None:
        data = json.dumps(payload, ensure_ascii=False, sort_keys=True).encode("utf-8")
        self.storage.save(key, data, content_type=CONTENT_TYPE)
