"""Investment planning models for the time-deposit family."""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, List, Dict, Any
from uuid import uuid4

from .enums import Criticality, RiskTier


@dataclass
class Obligation:
    """An upcoming outflow that must stay covered."""
    amount_cents: int
    due_date: date
    criticality: Criticality = Criticality.NORMAL
    description: str = ""


@dataclass(frozen=True)
class InvestmentScenario:
    """A (term, share of investable cash, risk tier) combination to evaluate."""
    term_days: int
    percentage: int
    risk_tier: RiskTier


DEFAULT_SCENARIOS = (
    InvestmentScenario(term_days=30, percentage=60, risk_tier=RiskTier.CONSERVATIVE),
    InvestmentScenario(term_days=60, percentage=70, risk_tier=RiskTier.MODERATE),
    InvestmentScenario(term_days=90, percentage=50, risk_tier=RiskTier.MODERATE),
)


@dataclass
class LiquidityImpact:
    available_after_investment_cents: int
    buffer_cents: int
    critical_obligations: List[Obligation] = field(default_factory=list)


@dataclass
class WeekendConsideration:
    """Maturity calendar check for a suggestion."""
    maturity_date: date
    lands_on_non_banking_day: bool
    adjusted_maturity_date: date
    alternate_term_days: Optional[int] = None
    alternate_maturity_date: Optional[date] = None
    alternate_suggestion: Optional[str] = None


@dataclass
class InvestmentSuggestion:
    """A ranked placement suggestion."""
    account_id: str
    as_of: date
    scenario: InvestmentScenario
    investable_cents: int
    suggested_amount_cents: int
    interest_rate: float
    projected_return_cents: int
    liquidity: LiquidityImpact
    weekend: WeekendConsideration
    reasoning: str = ""
    rank: int = 0
    id: str = field(default_factory=lambda: str(uuid4()))

    @property
    def term_days(self) -> int:
        return self.scenario.term_days

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "rank": self.rank,
            "account_id": self.account_id,
            "as_of": self.as_of.isoformat(),
            "term_days": self.scenario.term_days,
            "percentage": self.scenario.percentage,
            "risk_tier": self.scenario.risk_tier.value,
            "investable_cents": self.investable_cents,
            "suggested_amount_cents": self.suggested_amount_cents,
            "interest_rate": self.interest_rate,
            "projected_return_cents": self.projected_return_cents,
            "reasoning": self.reasoning,
            "liquidity": {
                "available_after_investment_cents": self.liquidity.available_after_investment_cents,
                "buffer_cents": self.liquidity.buffer_cents,
                "critical_obligations": [
                    {
                        "amount_cents": o.amount_cents,
                        "due_date": o.due_date.isoformat(),
                        "description": o.description,
                    }
                    for o in self.liquidity.critical_obligations
                ],
            },
            "weekend": {
                "maturity_date": self.weekend.maturity_date.isoformat(),
                "lands_on_non_banking_day": self.weekend.lands_on_non_banking_day,
                "adjusted_maturity_date": self.weekend.adjusted_maturity_date.isoformat(),
                "alternate_term_days": self.weekend.alternate_term_days,
                "alternate_maturity_date": (
                    self.weekend.alternate_maturity_date.isoformat()
                    if self.weekend.alternate_maturity_date else None
                ),
                "alternate_suggestion": self.weekend.alternate_suggestion,
            },
        }
