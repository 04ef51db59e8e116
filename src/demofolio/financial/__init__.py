"""Deterministic demo portfolio data: catalog, series, aggregation and storage."""

from .deterministic import SeededRNG, hash64, stable_id
from .models import (
    Account,
    AccountDescriptor,
    AccountKind,
    Bundle,
    Institution,
    InstitutionDescriptor,
    PerformanceSummary,
    PortfolioSummary,
    RankedAccount,
    SynchronizedInstitution,
    Timeframe,
    TimeSeriesPoint,
)
from .series import GeneratorSettings, generate_series
from .store import DemoDataStore

__all__ = [
    "Account",
    "AccountDescriptor",
    "AccountKind",
    "Bundle",
    "DemoDataStore",
    "GeneratorSettings",
    "Institution",
    "InstitutionDescriptor",
    "PerformanceSummary",
    "PortfolioSummary",
    "RankedAccount",
    "SeededRNG",
    "SynchronizedInstitution",
    "TimeSeriesPoint",
    "Timeframe",
    "generate_series",
    "hash64",
    "stable_id",
]
