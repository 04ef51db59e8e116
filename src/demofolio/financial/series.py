"""Deterministic balance/performance series.

Series are generated backwards from ``now`` so the newest point is always
the scope's real current value. The RNG seed folds in a coarse time bucket,
which keeps a chart stable across repeated calls yet lets it drift slowly
as real time passes, without ever storing a generated point.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from .deterministic import SeededRNG, hash64
from .models import AccountKind, Timeframe, TimeSeriesPoint

PORTFOLIO_SCOPE = "portfolio"

CENTS = Decimal("0.01")

# timeframe -> (step between points, number of points)
STEPS: dict[Timeframe, tuple[relativedelta, int]] = {
    Timeframe.DAY: (relativedelta(hours=1), 24),
    Timeframe.WEEK: (relativedelta(days=1), 7),
    Timeframe.MONTH: (relativedelta(days=1), 30),
    Timeframe.YEAR: (relativedelta(weeks=1), 52),
    Timeframe.ALL: (relativedelta(months=1), 36),
}

BASE_VOLATILITY: dict[Timeframe, float] = {
    Timeframe.DAY: 0.002,
    Timeframe.WEEK: 0.008,
    Timeframe.MONTH: 0.010,
    Timeframe.YEAR: 0.020,
    Timeframe.ALL: 0.028,
}

KIND_MULTIPLIER: dict[AccountKind | None, float] = {
    AccountKind.INVESTMENT: 1.25,
    AccountKind.CRYPTO: 1.60,
    AccountKind.CREDIT_CARD: 0.55,
    AccountKind.LOAN: 0.55,
    AccountKind.CHECKING: 0.35,
    AccountKind.SAVINGS: 0.35,
    AccountKind.RETIREMENT: 0.90,
    None: 1.0,
}

SHOCK_RANGE = (-1.05, 1.20)
DRIFT_RANGE = (-0.9, 1.1)
DRIFT_SCALE = 0.0006
LIABILITY_DRIFT_BIAS = -0.0003

# Backward indices flagged as a simulated data gap on monthly charts.
MONTH_GAP_INDICES = frozenset({12, 13, 14})


@dataclass
class GeneratorSettings:
    """Tunables for series generation.

    Attributes:
        liability_floor: Apply the ``max(0, ...)`` floor to liability series
            too. With ``False`` liability walks are capped at zero from above
            instead, so debt can stay negative throughout the history.
    """

    liability_floor: bool = True


def step_for(timeframe: Timeframe) -> tuple[relativedelta, int]:
    return STEPS[timeframe]


def time_bucket(timeframe: Timeframe, now: datetime) -> int:
    """Coarse index of ``now`` at the timeframe's refresh cadence."""
    if timeframe is Timeframe.DAY:
        return now.hour
    if timeframe in (Timeframe.WEEK, Timeframe.MONTH):
        return now.day
    return now.month


def series_seed(user_key: str, scope: str, timeframe: Timeframe, bucket: int) -> int:
    return hash64(f"perf|{user_key}|{scope}|{timeframe.value}|{bucket}")


def generate_series(
    user_key: str,
    timeframe: Timeframe,
    now: datetime,
    current_value: Decimal,
    scope: str = PORTFOLIO_SCOPE,
    kind: AccountKind | None = None,
    settings: GeneratorSettings | None = None,
) -> list[TimeSeriesPoint]:
    """Generate a series ordered oldest to newest.

    Args:
        user_key: Normalized user key.
        timeframe: Chart timeframe; fixes step size and point count.
        now: Timestamp of the newest point.
        current_value: Value of the newest point, returned exactly.
        scope: ``"portfolio"`` or an account id.
        kind: Account kind for account scopes, None for the portfolio.
        settings: Generator tunables.

    Returns:
        ``count`` points for the timeframe, the last one anchored at
        ``current_value``.
    """
    settings = settings or GeneratorSettings()
    step, count = STEPS[timeframe]
    rng = SeededRNG(series_seed(user_key, scope, timeframe, time_bucket(timeframe, now)))

    volatility = BASE_VOLATILITY[timeframe] * KIND_MULTIPLIER[kind]
    is_liability = kind is not None and kind.is_liability

    drift = rng.next_double(*DRIFT_RANGE) * DRIFT_SCALE
    if is_liability:
        # Debt tends to worsen slightly over short horizons.
        drift += LIABILITY_DRIFT_BIAS

    clamp = min if (is_liability and not settings.liability_floor) else max

    value = float(current_value)
    backwards: list[TimeSeriesPoint] = []
    for i in range(count):
        recorded = current_value if i == 0 else Decimal(repr(value)).quantize(CENTS)
        backwards.append(
            TimeSeriesPoint(
                timestamp=now - step * i,
                value=recorded,
                is_interpolated=timeframe is Timeframe.MONTH and i in MONTH_GAP_INDICES,
            )
        )
        # Invert a plausible forward move to get the previous value.
        shock = rng.next_double(*SHOCK_RANGE)
        step_move = value * volatility * shock
        mean_revert = value * drift
        value = clamp(0.0, value - step_move - mean_revert)

    backwards.reverse()
    return backwards
