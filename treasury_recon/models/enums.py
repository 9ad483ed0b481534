"""Enumerations for the treasury reconciliation system."""

from enum import Enum


class ReconciliationStatus(str, Enum):
    """
    Lifecycle status of a reconciliation item.

    PENDING: Extracted, not yet resolved (may carry a review suggestion)
    AUTO_MATCHED: Engine accepted a candidate above the auto-accept threshold
    MANUALLY_MATCHED: A user picked the candidate (confidence 1.0)
    UNKNOWN: No candidate scored above zero, needs manual action
    CONFIRMED: Verified by a user, terminal
    """
    PENDING = "pending"
    AUTO_MATCHED = "auto_matched"
    MANUALLY_MATCHED = "manually_matched"
    UNKNOWN = "unknown"
    CONFIRMED = "confirmed"


class Family(str, Enum):
    """Reconciliation family, one orchestrator per family."""
    CREDIT_TRANSACTIONS = "credit_transactions"
    DEBIT_TRANSACTIONS = "debit_transactions"
    HR_PAYMENTS = "hr_payments"
    INTERCOMPANY_TRANSFERS = "intercompany_transfers"
    TIME_DEPOSITS = "time_deposits"

    @property
    def event_prefix(self) -> str:
        return self.value.upper()


class ReferenceVariant(str, Enum):
    """Variant tag of a reference record."""
    AGING = "aging"
    FORECAST = "forecast"
    PAYROLL = "payroll"
    INTERCOMPANY = "intercompany"
    CASH_FORECAST = "cash_forecast"
    DEPOSIT = "deposit"


class TransactionDirection(str, Enum):
    """Side of the bank statement."""
    DEBIT = "debit"        # Money out
    CREDIT = "credit"      # Money in


class AgingKind(str, Enum):
    RECEIVABLE = "receivable"
    PAYABLE = "payable"


class ForecastKind(str, Enum):
    COLLECTION = "collection"
    PAYMENT = "payment"


class FlowType(str, Enum):
    INFLOW = "inflow"
    OUTFLOW = "outflow"


class ForecastConfidence(str, Enum):
    """Confidence tier of a forecast."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class MatchOutcomeKind(str, Enum):
    """Classification of a matcher run."""
    ACCEPTED = "accepted"
    NEEDS_REVIEW = "needs_review"
    NO_MATCH = "no_match"


class MatchType(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"


class ExtractionStatus(str, Enum):
    """Per-transaction result of a batch extraction."""
    CREATED = "created"
    DUPLICATE = "duplicate"  # already extracted, no-op
    SKIPPED = "skipped"      # not applicable to the family
    FAILED = "failed"


class Criticality(str, Enum):
    """Criticality of an upcoming obligation."""
    CRITICAL = "critical"
    HIGH = "high"
    NORMAL = "normal"


class RiskTier(str, Enum):
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


class AuditAction(str, Enum):
    """Type of audit action."""
    ITEM_EXTRACTED = "item_extracted"
    AUTO_RECONCILED = "auto_reconciled"
    REVIEW_SUGGESTED = "review_suggested"
    MARKED_UNKNOWN = "marked_unknown"
    MANUAL_RECONCILIATION = "manual_reconciliation"
    TRANSACTION_CONFIRMED = "transaction_confirmed"
    ITEM_AMENDED = "item_amended"
    ITEM_REOPENED = "item_reopened"
