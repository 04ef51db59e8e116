"""Shared setup logic for CLI commands."""

from __future__ import annotations

import dataclasses
import json
import uuid
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

import click


def load_store(ctx: click.Context):
    """Build config, logging and a DemoDataStore from the group options."""
    from demofolio.core.config import Config
    from demofolio.core.exceptions import ConfigurationError
    from demofolio.core.utils.logging import setup_logging
    from demofolio.financial.store import DemoDataStore

    opts = ctx.find_root().obj or {}
    try:
        config = Config(config_file=opts.get("config_file"), data_dir=opts.get("data_dir"))
        level = opts.get("log_level") or config.get("logging.level", "WARNING")
        setup_logging(
            level=str(level),
            log_file=config.get("logging.file") or None,
            log_dir=config.get("paths.log_dir"),
            rotation=str(config.get("logging.rotation", "10 MB")),
            retention=str(config.get("logging.retention", "7 days")),
        )
        return DemoDataStore.from_config(config)
    except ConfigurationError as e:
        raise click.UsageError(str(e)) from e


def resolve_user(store, user: str | None) -> str:
    """USER argument, or the signed-in user remembered by ``seed --sign-in``."""
    if user:
        return user
    stored = store.current_user_key()
    if not stored:
        raise click.UsageError("No USER given and no signed-in user stored (see `demofolio seed --sign-in`).")
    return stored


def resolve_now(ctx: click.Context) -> datetime:
    text = (ctx.find_root().obj or {}).get("now_text")
    if not text:
        return datetime.now(UTC)
    try:
        now = datetime.fromisoformat(text)
    except ValueError as e:
        raise click.BadParameter(f"not an ISO-8601 timestamp: {text!r}", param_hint="--now") from e
    return now if now.tzinfo else now.replace(tzinfo=UTC)


def _default(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, uuid.UUID):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value
    raise TypeError(f"Cannot serialize {type(obj).__name__}")


def to_jsonable(obj: Any) -> Any:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, list):
        return [to_jsonable(item) for item in obj]
    return obj


def echo_json(obj: Any) -> None:
    click.echo(json.dumps(to_jsonable(obj), default=_default, indent=2, ensure_ascii=False))
