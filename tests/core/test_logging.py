"""Tests for demofolio.core.utils.logging."""

import os
import sys

import pytest
from loguru import logger

from demofolio.core.utils.logging import resolve_log_file, setup_logging


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    logger.remove()
    logger.add(sys.stderr)


class TestResolveLogFile:
    def test_no_file(self):
        assert resolve_log_file(None, "/var/log/demofolio") is None
        assert resolve_log_file("", "/var/log/demofolio") is None

    def test_relative_goes_under_log_dir(self, tmp_dir):
        assert resolve_log_file("demofolio.log", tmp_dir) == os.path.join(tmp_dir, "demofolio.log")

    def test_absolute_is_kept(self, tmp_dir):
        path = os.path.join(tmp_dir, "elsewhere.log")
        assert resolve_log_file(path, "/var/log/demofolio") == path


class TestSetupLogging:
    def test_stderr_only(self):
        assert setup_logging(level="debug") is None

    def test_file_sink(self, tmp_dir):
        log_dir = os.path.join(tmp_dir, "logs")
        path = setup_logging(level="info", log_file="demofolio.log", log_dir=log_dir, rotation="1 MB", retention="1 day")
        assert path == os.path.join(log_dir, "demofolio.log")

        logger.info("seeded bundle")
        logger.debug("filtered out")
        logger.remove()

        with open(path) as f:
            content = f.read()
        assert "seeded bundle" in content
        assert "filtered out" not in content
