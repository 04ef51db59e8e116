"""Shared test fixtures for demofolio."""

import os
import tempfile
from datetime import UTC, datetime

import pytest

from demofolio.core.storage import MemoryStorage
from demofolio.financial.catalog import build_seed_bundle
from demofolio.financial.store import DemoDataStore


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def tmp_config_file(tmp_dir):
    """Create a temporary YAML config file."""
    import yaml

    config_data = {
        "paths": {
            "data_dir": os.path.join(tmp_dir, "data"),
            "storage_dir": os.path.join(tmp_dir, "storage"),
        },
        "storage": {"backend": "local", "compress": True},
    }
    config_path = os.path.join(tmp_dir, "config.yaml")
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


@pytest.fixture
def now():
    """A fixed, timezone-aware clock reading."""
    return datetime(2026, 3, 15, 10, 30, tzinfo=UTC)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return DemoDataStore(storage)


@pytest.fixture
def seeded_store(store):
    store.ensure_seeded("alice@example.com")
    return store


@pytest.fixture
def bundle(now):
    return build_seed_bundle("alice@example.com", now)
