"""Data models for the treasury reconciliation system."""

from .enums import (
    AgingKind,
    AuditAction,
    Criticality,
    ExtractionStatus,
    Family,
    FlowType,
    ForecastConfidence,
    ForecastKind,
    MatchOutcomeKind,
    MatchType,
    ReconciliationStatus,
    ReferenceVariant,
    RiskTier,
    TransactionDirection,
)
from .transaction import Transaction
from .reference import (
    ReferenceRecord,
    AgingEntry,
    ForecastEntry,
    PayrollEntry,
    IntercompanyRecord,
    CashForecastEntry,
    DepositPlacement,
    RECORD_TYPES,
)
from .reconciliation import (
    Match,
    MatchOutcome,
    ReconciliationItem,
    AuditEntry,
    ExtractionResult,
    ExtractionReport,
    ReconciliationSummary,
)
from .investment import (
    Obligation,
    InvestmentScenario,
    InvestmentSuggestion,
    LiquidityImpact,
    WeekendConsideration,
    DEFAULT_SCENARIOS,
)

__all__ = [
    # Enums
    "AgingKind",
    "AuditAction",
    "Criticality",
    "ExtractionStatus",
    "Family",
    "FlowType",
    "ForecastConfidence",
    "ForecastKind",
    "MatchOutcomeKind",
    "MatchType",
    "ReconciliationStatus",
    "ReferenceVariant",
    "RiskTier",
    "TransactionDirection",
    # Transactions
    "Transaction",
    # Reference records
    "ReferenceRecord",
    "AgingEntry",
    "ForecastEntry",
    "PayrollEntry",
    "IntercompanyRecord",
    "CashForecastEntry",
    "DepositPlacement",
    "RECORD_TYPES",
    # Reconciliation
    "Match",
    "MatchOutcome",
    "ReconciliationItem",
    "AuditEntry",
    "ExtractionResult",
    "ExtractionReport",
    "ReconciliationSummary",
    # Investment planning
    "Obligation",
    "InvestmentScenario",
    "InvestmentSuggestion",
    "LiquidityImpact",
    "WeekendConsideration",
    "DEFAULT_SCENARIOS",
]
