"""Tests for demofolio.financial.series."""

from datetime import timedelta
from decimal import Decimal

import pytest
from dateutil.relativedelta import relativedelta

from demofolio.financial.deterministic import hash64
from demofolio.financial.models import AccountKind, Timeframe
from demofolio.financial.series import (
    GeneratorSettings,
    generate_series,
    series_seed,
    time_bucket,
)

EXPECTED_COUNTS = {
    Timeframe.DAY: 24,
    Timeframe.WEEK: 7,
    Timeframe.MONTH: 30,
    Timeframe.YEAR: 52,
    Timeframe.ALL: 36,
}

ASSET_KINDS = [None, AccountKind.CHECKING, AccountKind.SAVINGS, AccountKind.INVESTMENT, AccountKind.CRYPTO]


@pytest.mark.smoke
@pytest.mark.parametrize("timeframe", list(Timeframe))
def test_deterministic(timeframe, now):
    first = generate_series("alice", timeframe, now, Decimal("211189.63"))
    second = generate_series("alice", timeframe, now, Decimal("211189.63"))
    assert first == second


@pytest.mark.smoke
@pytest.mark.parametrize("timeframe", list(Timeframe))
@pytest.mark.parametrize("kind", ASSET_KINDS + [AccountKind.RETIREMENT, AccountKind.CREDIT_CARD, AccountKind.LOAN])
def test_anchored_at_current_value(timeframe, kind, now):
    current = Decimal("-3280.14") if kind is not None and kind.is_liability else Decimal("12450.32")
    points = generate_series("alice", timeframe, now, current, scope="acct", kind=kind)
    assert points[-1].value == current
    assert points[-1].timestamp == now


@pytest.mark.parametrize("timeframe", list(Timeframe))
def test_count_and_ordering(timeframe, now):
    points = generate_series("alice", timeframe, now, Decimal("1000"))
    assert len(points) == EXPECTED_COUNTS[timeframe]
    stamps = [p.timestamp for p in points]
    assert all(a < b for a, b in zip(stamps, stamps[1:]))


def test_step_units(now):
    day = generate_series("alice", Timeframe.DAY, now, Decimal("1000"))
    assert day[0].timestamp == now - timedelta(hours=23)

    month = generate_series("alice", Timeframe.MONTH, now, Decimal("1000"))
    assert month[0].timestamp == now - timedelta(days=29)

    year = generate_series("alice", Timeframe.YEAR, now, Decimal("1000"))
    assert year[0].timestamp == now - timedelta(weeks=51)

    everything = generate_series("alice", Timeframe.ALL, now, Decimal("1000"))
    assert everything[0].timestamp == now - relativedelta(months=35)


@pytest.mark.parametrize("timeframe", list(Timeframe))
@pytest.mark.parametrize("kind", ASSET_KINDS)
def test_non_negative(timeframe, kind, now):
    points = generate_series("alice", timeframe, now, Decimal("12450.32"), scope="acct", kind=kind)
    assert all(p.value >= 0 for p in points)


def test_generated_values_rounded_to_cents(now):
    points = generate_series("alice", Timeframe.YEAR, now, Decimal("156789.4512"))
    for p in points[:-1]:
        assert p.value == p.value.quantize(Decimal("0.01"))
    assert points[-1].value == Decimal("156789.4512")


def test_month_gap_markers(now):
    points = generate_series("alice", Timeframe.MONTH, now, Decimal("1000"))
    flagged = [i for i, p in enumerate(points) if p.is_interpolated]
    # backward indices 12..14 land at 15..17 once reversed
    assert flagged == [15, 16, 17]


@pytest.mark.parametrize("timeframe", [Timeframe.DAY, Timeframe.WEEK, Timeframe.YEAR, Timeframe.ALL])
def test_no_gap_markers_outside_month(timeframe, now):
    points = generate_series("alice", timeframe, now, Decimal("1000"))
    assert not any(p.is_interpolated for p in points)


class TestTimeBucket:
    def test_buckets(self, now):
        assert time_bucket(Timeframe.DAY, now) == 10
        assert time_bucket(Timeframe.WEEK, now) == 15
        assert time_bucket(Timeframe.MONTH, now) == 15
        assert time_bucket(Timeframe.YEAR, now) == 3
        assert time_bucket(Timeframe.ALL, now) == 3

    def test_seed_string(self):
        assert series_seed("alice", "portfolio", Timeframe.WEEK, 15) == hash64("perf|alice|portfolio|W|15")

    def test_stable_within_bucket(self, now):
        a = generate_series("alice", Timeframe.WEEK, now, Decimal("5000"))
        b = generate_series("alice", Timeframe.WEEK, now + timedelta(hours=3), Decimal("5000"))
        assert [p.value for p in a] == [p.value for p in b]

    def test_changes_across_buckets(self, now):
        a = generate_series("alice", Timeframe.DAY, now, Decimal("5000"))
        b = generate_series("alice", Timeframe.DAY, now + timedelta(hours=1), Decimal("5000"))
        assert [p.value for p in a] != [p.value for p in b]


class TestScopes:
    def test_scope_changes_series(self, now):
        a = generate_series("alice", Timeframe.WEEK, now, Decimal("5000"), scope="a")
        b = generate_series("alice", Timeframe.WEEK, now, Decimal("5000"), scope="b")
        assert [p.value for p in a] != [p.value for p in b]

    def test_user_changes_series(self, now):
        a = generate_series("alice", Timeframe.WEEK, now, Decimal("5000"))
        b = generate_series("bob", Timeframe.WEEK, now, Decimal("5000"))
        assert [p.value for p in a] != [p.value for p in b]

    def test_zero_value_stays_zero(self, now):
        points = generate_series("alice", Timeframe.YEAR, now, Decimal("0"))
        assert all(p.value == 0 for p in points)


class TestLiabilityFloor:
    def test_default_floor_lifts_history_to_zero(self, now):
        points = generate_series(
            "alice", Timeframe.WEEK, now, Decimal("-3280.14"), scope="amex_gold", kind=AccountKind.CREDIT_CARD
        )
        assert points[-1].value == Decimal("-3280.14")
        assert all(p.value >= 0 for p in points[:-1])

    def test_disabled_floor_keeps_debt_negative(self, now):
        points = generate_series(
            "alice",
            Timeframe.WEEK,
            now,
            Decimal("-3280.14"),
            scope="amex_gold",
            kind=AccountKind.CREDIT_CARD,
            settings=GeneratorSettings(liability_floor=False),
        )
        assert points[-1].value == Decimal("-3280.14")
        assert all(p.value <= 0 for p in points)
        assert any(p.value < 0 for p in points[:-1])

    def test_setting_ignored_for_assets(self, now):
        default = generate_series("alice", Timeframe.WEEK, now, Decimal("900"), kind=AccountKind.SAVINGS)
        relaxed = generate_series(
            "alice",
            Timeframe.WEEK,
            now,
            Decimal("900"),
            kind=AccountKind.SAVINGS,
            settings=GeneratorSettings(liability_floor=False),
        )
        assert default == relaxed
