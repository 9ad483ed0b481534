"""Treasury reconciliation and matching engine."""

__version__ = "1.0.0"
