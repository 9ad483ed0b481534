"""Reference record variants that bank transactions are reconciled against."""

from dataclasses import dataclass, field, fields
from datetime import date, timedelta
from enum import Enum
from typing import ClassVar, Optional, Dict, Any
from uuid import uuid4

from .enums import (
    AgingKind,
    FlowType,
    ForecastConfidence,
    ForecastKind,
    ReferenceVariant,
    TransactionDirection,
)


@dataclass
class ReferenceRecord:
    """
    Base model for an expected business record.
    All monetary amounts are stored in CENTS.
    """
    variant: ClassVar[ReferenceVariant]
    is_ledger_backed: ClassVar[bool] = True

    id: str = field(default_factory=lambda: str(uuid4()))
    amount_cents: int = 0

    @property
    def label(self) -> str:
        """Identifying name (customer, employee, counterparty)."""
        return ""

    @property
    def reference_number(self) -> Optional[str]:
        return None

    @property
    def relevant_date(self) -> Optional[date]:
        return None

    def relevant_date_for(self, direction: TransactionDirection) -> Optional[date]:
        return self.relevant_date

    def expected_amount_for(self, direction: TransactionDirection) -> int:
        return self.amount_cents

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReferenceRecord":
        """
        Build a record from plain JSON values.

        Fields ending in _date are parsed from ISO strings and enum fields
        are coerced to the enum type of their default. Unknown keys raise
        TypeError.
        """
        kwargs = dict(data)
        for f in fields(cls):
            value = kwargs.get(f.name)
            if value is None:
                continue
            if f.name.endswith("_date") and isinstance(value, str):
                kwargs[f.name] = date.fromisoformat(value)
            elif isinstance(f.default, Enum):
                kwargs[f.name] = type(f.default)(value)
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "variant": self.variant.value,
            "amount_cents": self.amount_cents,
            "label": self.label,
            "reference_number": self.reference_number,
            "relevant_date": self.relevant_date.isoformat() if self.relevant_date else None,
        }


@dataclass
class AgingEntry(ReferenceRecord):
    """Open receivable or payable, the most authoritative target."""
    variant: ClassVar[ReferenceVariant] = ReferenceVariant.AGING

    counterparty_id: Optional[str] = None
    counterparty_name: str = ""
    invoice_number: str = ""
    due_date: Optional[date] = None
    aging_days: int = 0
    kind: AgingKind = AgingKind.RECEIVABLE
    status: str = "pending"

    @property
    def label(self) -> str:
        return self.counterparty_name

    @property
    def reference_number(self) -> Optional[str]:
        return self.invoice_number or None

    @property
    def relevant_date(self) -> Optional[date]:
        return self.due_date


@dataclass
class ForecastEntry(ReferenceRecord):
    """Soft, not-yet-contractual collection or payment."""
    variant: ClassVar[ReferenceVariant] = ReferenceVariant.FORECAST
    is_ledger_backed: ClassVar[bool] = False

    counterparty_id: Optional[str] = None
    counterparty_name: str = ""
    expected_date: Optional[date] = None
    confidence: ForecastConfidence = ForecastConfidence.MEDIUM
    kind: ForecastKind = ForecastKind.COLLECTION
    notes: str = ""

    @property
    def label(self) -> str:
        return self.counterparty_name or (self.counterparty_id or "")

    @property
    def relevant_date(self) -> Optional[date]:
        return self.expected_date


@dataclass
class PayrollEntry(ReferenceRecord):
    """Payroll register line. amount_cents holds the net amount."""
    variant: ClassVar[ReferenceVariant] = ReferenceVariant.PAYROLL

    employee_id: Optional[str] = None
    employee_name: str = ""
    gross_amount_cents: int = 0
    pay_date: Optional[date] = None
    department: Optional[str] = None

    @property
    def net_amount_cents(self) -> int:
        return self.amount_cents

    @property
    def label(self) -> str:
        return self.employee_name

    @property
    def relevant_date(self) -> Optional[date]:
        return self.pay_date


@dataclass
class IntercompanyRecord(ReferenceRecord):
    """Intercompany ledger entry with a sister entity."""
    variant: ClassVar[ReferenceVariant] = ReferenceVariant.INTERCOMPANY

    counterparty_entity: str = ""
    due_date: Optional[date] = None
    direction: TransactionDirection = TransactionDirection.CREDIT
    reference: Optional[str] = None
    status: str = "pending"

    @property
    def label(self) -> str:
        return self.counterparty_entity

    @property
    def reference_number(self) -> Optional[str]:
        return self.reference

    @property
    def relevant_date(self) -> Optional[date]:
        return self.due_date


@dataclass
class CashForecastEntry(ReferenceRecord):
    """Line of the cash forecast."""
    variant: ClassVar[ReferenceVariant] = ReferenceVariant.CASH_FORECAST
    is_ledger_backed: ClassVar[bool] = False

    forecast_date: Optional[date] = None
    category: str = "intercompany"
    flow_type: FlowType = FlowType.INFLOW
    confidence: ForecastConfidence = ForecastConfidence.MEDIUM
    description: str = ""

    @property
    def label(self) -> str:
        return self.description

    @property
    def relevant_date(self) -> Optional[date]:
        return self.forecast_date


@dataclass
class DepositPlacement(ReferenceRecord):
    """
    Time deposit placement. amount_cents holds the principal.

    Debit transactions reconcile against the placement leg, credit
    transactions against the maturity leg (principal plus interest).
    """
    variant: ClassVar[ReferenceVariant] = ReferenceVariant.DEPOSIT

    deposit_number: str = ""
    bank_name: str = ""
    interest_rate: float = 0.0  # percent per annum
    placement_date: Optional[date] = None
    maturity_date: Optional[date] = None
    status: str = "active"

    @property
    def label(self) -> str:
        return self.bank_name

    @property
    def reference_number(self) -> Optional[str]:
        return self.deposit_number or None

    @property
    def relevant_date(self) -> Optional[date]:
        return self.maturity_date

    @property
    def term_days(self) -> int:
        if self.placement_date is None or self.maturity_date is None:
            return 0
        return (self.maturity_date - self.placement_date).days

    @property
    def maturity_amount_cents(self) -> int:
        """Principal plus simple interest for the term."""
        interest = self.amount_cents * self.interest_rate * self.term_days / (365 * 100)
        return self.amount_cents + int(round(interest))

    def relevant_date_for(self, direction: TransactionDirection) -> Optional[date]:
        if direction == TransactionDirection.DEBIT:
            return self.placement_date
        return self.maturity_date

    def expected_amount_for(self, direction: TransactionDirection) -> int:
        if direction == TransactionDirection.DEBIT:
            return self.amount_cents
        return self.maturity_amount_cents

    @classmethod
    def from_term(
        cls,
        placement_date: date,
        term_days: int,
        **kwargs: Any,
    ) -> "DepositPlacement":
        return cls(
            placement_date=placement_date,
            maturity_date=placement_date + timedelta(days=term_days),
            **kwargs,
        )


RECORD_TYPES: Dict[ReferenceVariant, type] = {
    ReferenceVariant.AGING: AgingEntry,
    ReferenceVariant.FORECAST: ForecastEntry,
    ReferenceVariant.PAYROLL: PayrollEntry,
    ReferenceVariant.INTERCOMPANY: IntercompanyRecord,
    ReferenceVariant.CASH_FORECAST: CashForecastEntry,
    ReferenceVariant.DEPOSIT: DepositPlacement,
}
