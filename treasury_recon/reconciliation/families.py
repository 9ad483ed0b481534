"""
Reconciliation family definitions.

A family decides which transactions it owns, which reference variants it
searches (in priority order, each with its own auto-accept threshold),
which candidates are eligible for a given item and what extra details are
pulled out of the description at extraction time.
"""

import re
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..config import Settings, get_settings
from ..models import (
    AgingEntry,
    AgingKind,
    CashForecastEntry,
    Family,
    ForecastEntry,
    ForecastKind,
    ReferenceRecord,
    ReferenceVariant,
    Transaction,
)
from .scoring import Scorable

Eligibility = Callable[[Scorable, ReferenceRecord], bool]


HR_KEYWORDS = (
    "payroll", "salary", "wage", "employee", "staff", "bonus", "overtime",
    "commission", "allowance", "reimbursement", "expense", "benefits",
    "pension", "final settlement", "severance", "gratuity",
)

INTERCOMPANY_KEYWORDS = (
    "intercompany", "interco", "transfer", "subsidiary", "sister company",
    "branch", "head office", "funding", "allocation", "loan", "advance",
    "repayment",
)

DEPOSIT_KEYWORDS = (
    "time deposit", "deposit placement", "investment", "fixed deposit",
    "term deposit", "maturity", "placement", "rollover",
)

_COUNTERPARTY_PATTERNS = (
    re.compile(r"subsidiary\s+([a-z][a-z\s-]*)", re.I),
    re.compile(r"sister\s+company\s+([a-z][a-z\s-]*)", re.I),
    re.compile(r"branch\s+([a-z][a-z\s-]*)", re.I),
    re.compile(r"([a-z][a-z\s]*?)\s+branch", re.I),
    re.compile(r"\bto\s+([a-z][a-z\s-]*)", re.I),
    re.compile(r"\bfrom\s+([a-z][a-z\s-]*)", re.I),
)

_PURPOSE_PATTERNS = (
    re.compile(r"purpose[:\s]+([^,\n]+)", re.I),
    re.compile(r"\bfor[:\s]+([^,\n]+)", re.I),
    re.compile(r"\b(funding|loan|advance|repayment|allocation)\b", re.I),
)

_DEPOSIT_NUMBER_PATTERNS = (
    re.compile(r"\b(td-?\d[a-z0-9-]*)", re.I),
    re.compile(r"\bdeposit\s*(?:no\.?|number|#)?[:\s#-]*([a-z0-9-]*\d[a-z0-9-]*)", re.I),
)
_RATE = re.compile(r"(\d+(?:\.\d+)?)\s*%")
_MATURITY_DATE = re.compile(r"(?:matur\w*|due)[:\s]*(\d{4}-\d{2}-\d{2})", re.I)


def has_keyword(text: str, keywords: Tuple[str, ...]) -> bool:
    lowered = (text or "").lower()
    return any(k in lowered for k in keywords)


@dataclass
class CandidateTier:
    """A reference variant searched by a family, with its eligibility rule."""
    variant: ReferenceVariant
    threshold: float
    eligible: Optional[Eligibility] = None

    def filter_for(self, subject: Scorable) -> Optional[Callable[[ReferenceRecord], bool]]:
        if self.eligible is None:
            return None
        return lambda record: self.eligible(subject, record)


@dataclass
class FamilyDefinition:
    family: Family
    prefix: str
    applies: Callable[[Transaction], bool]
    tiers: List[CandidateTier]
    enrich: Callable[[Transaction], Dict[str, Any]] = field(default=lambda t: {})

    def item_id(self, transaction_id: str) -> str:
        return f"{self.prefix}_{transaction_id}"

    def tier_for(self, variant: ReferenceVariant) -> Optional[CandidateTier]:
        for tier in self.tiers:
            if tier.variant == variant:
                return tier
        return None


# Eligibility rules

def _aging_kind(kind: AgingKind) -> Eligibility:
    def eligible(subject: Scorable, record: AgingEntry) -> bool:
        return record.kind == kind and record.status != "paid"
    return eligible


def _forecast_kind(kind: ForecastKind) -> Eligibility:
    def eligible(subject: Scorable, record: ForecastEntry) -> bool:
        return record.kind == kind
    return eligible


def _intercompany_forecast(subject: Scorable, record: CashForecastEntry) -> bool:
    return record.category == "intercompany"


# Enrichers

def extract_counterparty(description: str) -> str:
    for pattern in _COUNTERPARTY_PATTERNS:
        match = pattern.search(description or "")
        if match and match.group(1).strip():
            return match.group(1).strip()
    words = (description or "").split()
    if len(words) >= 2:
        return f"{words[0]} {words[1]}"
    return "Unknown Entity"


def extract_purpose(description: str) -> str:
    for pattern in _PURPOSE_PATTERNS:
        match = pattern.search(description or "")
        if match:
            return match.group(1).strip()
    return re.sub(r"[^a-zA-Z0-9\s]", "", description or "").strip()


def enrich_intercompany(transaction: Transaction) -> Dict[str, Any]:
    return {
        "counterparty_entity": extract_counterparty(transaction.description),
        "purpose": extract_purpose(transaction.description),
        "transfer_direction": "inbound" if transaction.is_credit else "outbound",
    }


def deposit_enricher(settings: Settings) -> Callable[[Transaction], Dict[str, Any]]:
    """Pull deposit number, rate and maturity out of a deposit line."""

    def enrich(transaction: Transaction) -> Dict[str, Any]:
        description = transaction.description or ""
        lowered = description.lower()

        is_maturity = (
            "maturity" in lowered
            or "matured" in lowered
            or (transaction.is_credit and "deposit" in lowered)
        )
        details: Dict[str, Any] = {
            "movement_type": "maturity" if is_maturity else "placement",
        }

        for pattern in _DEPOSIT_NUMBER_PATTERNS:
            number = pattern.search(description)
            if number:
                details["deposit_number"] = number.group(1).upper()
                break

        rate = _RATE.search(description)
        details["interest_rate"] = float(rate.group(1)) if rate else settings.default_interest_rate

        if not is_maturity:
            maturity = _MATURITY_DATE.search(description)
            if maturity:
                details["expected_maturity_date"] = maturity.group(1)
            elif transaction.transaction_date:
                details["expected_maturity_date"] = (
                    transaction.transaction_date
                    + timedelta(days=settings.default_deposit_term_days)
                ).isoformat()

        return details

    return enrich


def build_family_definitions(settings: Optional[Settings] = None) -> Dict[Family, FamilyDefinition]:
    """Build the five family definitions from settings."""
    settings = settings or get_settings()

    def threshold(variant: ReferenceVariant) -> float:
        return settings.auto_accept_threshold(variant.value)

    def is_intercompany(t: Transaction) -> bool:
        return (
            has_keyword(t.description, INTERCOMPANY_KEYWORDS)
            and t.amount_cents > settings.intercompany_min_amount_cents
        )

    def is_deposit(t: Transaction) -> bool:
        return (
            has_keyword(t.description, DEPOSIT_KEYWORDS)
            and t.amount_cents >= settings.minimum_investment_cents
        )

    definitions = [
        FamilyDefinition(
            family=Family.CREDIT_TRANSACTIONS,
            prefix="CR",
            applies=lambda t: t.credit_cents > 0,
            tiers=[
                CandidateTier(
                    ReferenceVariant.AGING,
                    threshold(ReferenceVariant.AGING),
                    _aging_kind(AgingKind.RECEIVABLE),
                ),
                CandidateTier(
                    ReferenceVariant.FORECAST,
                    threshold(ReferenceVariant.FORECAST),
                    _forecast_kind(ForecastKind.COLLECTION),
                ),
            ],
        ),
        FamilyDefinition(
            family=Family.DEBIT_TRANSACTIONS,
            prefix="DR",
            applies=lambda t: t.debit_cents > 0,
            tiers=[
                CandidateTier(
                    ReferenceVariant.AGING,
                    threshold(ReferenceVariant.AGING),
                    _aging_kind(AgingKind.PAYABLE),
                ),
                CandidateTier(
                    ReferenceVariant.FORECAST,
                    threshold(ReferenceVariant.FORECAST),
                    _forecast_kind(ForecastKind.PAYMENT),
                ),
            ],
        ),
        FamilyDefinition(
            family=Family.HR_PAYMENTS,
            prefix="HR",
            applies=lambda t: t.debit_cents > 0 and has_keyword(t.description, HR_KEYWORDS),
            tiers=[
                CandidateTier(ReferenceVariant.PAYROLL, threshold(ReferenceVariant.PAYROLL)),
            ],
        ),
        FamilyDefinition(
            family=Family.INTERCOMPANY_TRANSFERS,
            prefix="IC",
            applies=is_intercompany,
            tiers=[
                CandidateTier(
                    ReferenceVariant.INTERCOMPANY,
                    threshold(ReferenceVariant.INTERCOMPANY),
                ),
                CandidateTier(
                    ReferenceVariant.CASH_FORECAST,
                    threshold(ReferenceVariant.CASH_FORECAST),
                    _intercompany_forecast,
                ),
            ],
            enrich=enrich_intercompany,
        ),
        FamilyDefinition(
            family=Family.TIME_DEPOSITS,
            prefix="TD",
            applies=is_deposit,
            tiers=[
                CandidateTier(ReferenceVariant.DEPOSIT, threshold(ReferenceVariant.DEPOSIT)),
            ],
            enrich=deposit_enricher(settings),
        ),
    ]
    return {d.family: d for d in definitions}
