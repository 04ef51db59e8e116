"""demofolio: deterministic demo data for personal-finance apps."""

__version__ = "0.1.0"
