"""Bank transaction model fed into extraction."""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Dict, Any
from uuid import uuid4

from .enums import TransactionDirection


@dataclass(frozen=True)
class Transaction:
    """
    A bank statement line as delivered by the transaction feed.
    All monetary amounts are stored in CENTS (integer) to avoid floating point errors.
    Immutable once extracted.
    """
    id: str = field(default_factory=lambda: str(uuid4()))
    transaction_date: Optional[date] = None
    description: str = ""

    # Separate debit/credit columns as on the statement
    debit_cents: int = 0
    credit_cents: int = 0
    balance_cents: Optional[int] = None

    reference: Optional[str] = None
    account_id: Optional[str] = None

    @property
    def is_credit(self) -> bool:
        return self.credit_cents > 0

    @property
    def direction(self) -> TransactionDirection:
        if self.is_credit:
            return TransactionDirection.CREDIT
        return TransactionDirection.DEBIT

    @property
    def amount_cents(self) -> int:
        """Unsigned amount of the movement."""
        return self.credit_cents if self.is_credit else self.debit_cents

    @property
    def amount(self) -> float:
        """Return amount in standard currency units."""
        return self.amount_cents / 100.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "transaction_date": self.transaction_date.isoformat() if self.transaction_date else None,
            "description": self.description,
            "debit_cents": self.debit_cents,
            "credit_cents": self.credit_cents,
            "balance_cents": self.balance_cents,
            "reference": self.reference,
            "account_id": self.account_id,
        }
