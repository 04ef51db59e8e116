"""Tests for the CLI entry point."""

import json
import sys

import pytest
from click.testing import CliRunner
from loguru import logger

from demofolio.core.cli import main

NOW = "2026-03-15T10:30:00+00:00"


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    # setup_logging() bound a sink to the runner's captured stderr.
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def invoke(tmp_path):
    runner = CliRunner()

    def _invoke(*args):
        return runner.invoke(
            main, ["--data-dir", str(tmp_path / "data"), "--log-level", "ERROR", "--now", NOW, *args]
        )

    return _invoke


class TestCliGroup:
    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Demofolio" in result.output
        for command in ("seed", "link", "summary", "performance", "rankings", "institutions"):
            assert command in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_missing_config_file(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["--config", str(tmp_path / "absent.yaml"), "seed", "a@b.c"])
        assert result.exit_code == 2
        assert "not found" in result.output

    def test_bad_now(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["--data-dir", str(tmp_path), "--now", "yesterday", "summary", "a@b.c"])
        assert result.exit_code == 2


class TestSeedCommand:
    def test_seed(self, invoke):
        result = invoke("seed", "Alice@Example.com")
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["user_key"] == "alice@example.com"
        assert data["accounts"] == ["chase_checking", "chase_savings", "fidelity_investment", "amex_gold"]
        assert data["linked_account_ids"] == data["accounts"]
        assert data["signed_in"] is None

    def test_sign_in_makes_user_optional(self, invoke):
        assert invoke("seed", "alice@example.com", "--sign-in").exit_code == 0
        result = invoke("summary")
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["total_balance"] == "211189.63"

    def test_no_user_and_no_sign_in(self, invoke):
        result = invoke("summary")
        assert result.exit_code == 2
        assert "signed-in" in result.output


class TestLinkCommand:
    def test_link_twice(self, invoke):
        args = ("link", "alice@example.com", "--bank-id", "revolut", "--bank-name", "Revolut")
        first = invoke(*args, "--account", "rev_1:Main:checking:250.50:••••0001")
        assert first.exit_code == 0, first.output
        assert json.loads(first.output) == {"added": ["rev_1"], "account_count": 5}

        second = invoke(*args, "--account", "rev_1:Main:checking:250.50")
        assert json.loads(second.output) == {"added": [], "account_count": 5}

    @pytest.mark.parametrize("spec", ["rev_1", "rev_1:Main:boat", "rev_1:Main:loan:lots"])
    def test_bad_account_spec(self, invoke, spec):
        result = invoke("link", "a@b.c", "--bank-id", "x", "--bank-name", "X", "--account", spec)
        assert result.exit_code == 2


class TestReportCommands:
    def test_summary(self, invoke):
        invoke("seed", "alice@example.com")
        data = json.loads(invoke("summary", "alice@example.com").output)
        assert data["total_balance"] == "211189.63"
        assert data["invested_capital"] == "156789.45"
        assert len(data["accounts"]) == 4
        assert len(data["recent_transactions"]) == 6
        assert data["balance_history"][-1]["value"] == "211189.63"

    def test_summary_unknown_user_is_empty(self, invoke):
        result = invoke("summary", "ghost@example.com")
        assert result.exit_code == 0
        assert json.loads(result.output)["accounts"] == []

    def test_performance_account(self, invoke):
        invoke("seed", "alice@example.com")
        result = invoke("performance", "alice@example.com", "-t", "M", "--account", "amex_gold")
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["timeframe"] == "M"
        assert data["end_value"] == "-3280.14"
        assert len(data["points"]) == 30
        assert data["key_movers"] == []

    def test_performance_is_reproducible(self, invoke):
        invoke("seed", "alice@example.com")
        first = invoke("performance", "alice@example.com", "-t", "year")
        second = invoke("performance", "alice@example.com", "-t", "Y")
        assert first.output == second.output

    def test_rankings(self, invoke):
        invoke("seed", "alice@example.com")
        data = json.loads(invoke("rankings", "alice@example.com", "--metric", "currency").output)
        assert data["state"] in ("loaded", "all_negative")
        gains = [float(row["absolute_gain"]) for row in data["ranked"]]
        assert len(gains) == 4
        assert gains == sorted(gains, reverse=True)
        assert data["insufficient_data"] == []

    def test_rankings_without_accounts(self, invoke):
        data = json.loads(invoke("rankings", "ghost@example.com").output)
        assert data["state"] == "no_accounts"

    def test_institutions(self, invoke):
        invoke("seed", "alice@example.com")
        data = json.loads(invoke("institutions", "alice@example.com").output)
        assert [i["name"] for i in data] == ["Chase", "Fidelity", "American Express"]
        assert data[2]["accounts"][0]["kind"] == "creditCard"
