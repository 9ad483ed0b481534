"""
Investment Suggestion Engine - time-deposit placement planning.

For each scenario:
1. Investable cash = balance - obligations in horizon - buffer
2. Suggested amount = investable x scenario share (capped)
3. Rate from risk tier plus term premium, simple-interest return
4. Maturity checked against the business calendar

Read-only with respect to reconciliation state.
"""

from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

import structlog

from ..config import Settings, get_settings
from ..models import (
    DEFAULT_SCENARIOS,
    Criticality,
    InvestmentScenario,
    InvestmentSuggestion,
    LiquidityImpact,
    Obligation,
    RiskTier,
    WeekendConsideration,
)
from ..storage import EventBus
from .calendar import BusinessCalendar

logger = structlog.get_logger()

BASE_RATES: Dict[RiskTier, float] = {
    RiskTier.CONSERVATIVE: 3.5,
    RiskTier.MODERATE: 4.0,
    RiskTier.AGGRESSIVE: 4.5,
}


def interest_rate_for(term_days: int, risk_tier: RiskTier) -> float:
    """Annual rate in percent for a term and risk tier."""
    rate = BASE_RATES[risk_tier]
    if term_days >= 90:
        rate += 0.5
    elif term_days >= 60:
        rate += 0.25
    return rate


def projected_return_cents(amount_cents: int, rate: float, term_days: int) -> int:
    return int(round(amount_cents * rate * term_days / (365 * 100)))


def _money(cents: int) -> str:
    return f"{cents / 100:,.2f}"


class InvestmentSuggestionEngine:
    """Ranks placement scenarios against liquidity and the calendar."""

    def __init__(
        self,
        calendar: Optional[BusinessCalendar] = None,
        scenarios: Sequence[InvestmentScenario] = DEFAULT_SCENARIOS,
        event_bus: Optional[EventBus] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.calendar = calendar or BusinessCalendar(self.settings.weekend_days)
        self.scenarios = list(scenarios)
        self.event_bus = event_bus

    def obligations_in_horizon(
        self,
        obligations: Sequence[Obligation],
        as_of: date,
    ) -> int:
        """Total of obligations due up to the horizon. Overdue ones count."""
        horizon = as_of + timedelta(days=self.settings.obligation_horizon_days)
        return sum(o.amount_cents for o in obligations if o.due_date <= horizon)

    def investable_cents(
        self,
        balance_cents: int,
        obligations: Sequence[Obligation],
        as_of: date,
        buffer_cents: Optional[int] = None,
    ) -> int:
        if buffer_cents is None:
            buffer_cents = self.settings.minimum_buffer_cents
        committed = self.obligations_in_horizon(obligations, as_of)
        return max(0, balance_cents - committed - buffer_cents)

    def generate(
        self,
        account_id: str,
        balance_cents: int,
        obligations: Sequence[Obligation] = (),
        as_of: Optional[date] = None,
        buffer_cents: Optional[int] = None,
    ) -> List[InvestmentSuggestion]:
        """
        Build ranked suggestions.

        Args:
            account_id: Account the cash sits on
            balance_cents: Current balance
            obligations: Upcoming outflows (amount, due date, criticality)
            as_of: Planning date, defaults to today
            buffer_cents: Minimum buffer, defaults to settings

        Returns:
            Suggestions best first (projected return desc, then term asc)
        """
        as_of = as_of or date.today()
        if buffer_cents is None:
            buffer_cents = self.settings.minimum_buffer_cents

        investable = self.investable_cents(balance_cents, obligations, as_of, buffer_cents)
        minimum = self.settings.minimum_investment_cents

        if investable < minimum:
            logger.info(
                "Insufficient investable cash",
                account_id=account_id,
                investable_cents=investable,
                minimum_cents=minimum,
            )
            return []

        suggestions = []
        for scenario in self.scenarios:
            suggestion = self._build(
                account_id, scenario, investable, balance_cents, buffer_cents, obligations, as_of
            )
            if suggestion is None:
                logger.debug(
                    "Scenario below minimum investment",
                    term_days=scenario.term_days,
                    percentage=scenario.percentage,
                )
                continue
            suggestions.append(suggestion)

        suggestions.sort(key=lambda s: (-s.projected_return_cents, s.term_days))
        for rank, suggestion in enumerate(suggestions, start=1):
            suggestion.rank = rank

        if suggestions and self.event_bus is not None:
            try:
                self.event_bus.emit("INVESTMENT_SUGGESTIONS_GENERATED", {
                    "account_id": account_id,
                    "count": len(suggestions),
                    "total_suggested_amount_cents": sum(
                        s.suggested_amount_cents for s in suggestions
                    ),
                })
            except Exception as e:
                logger.error("Event emission failed", event_name="INVESTMENT_SUGGESTIONS_GENERATED", error=str(e))

        logger.info(
            "Investment suggestions generated",
            account_id=account_id,
            investable_cents=investable,
            count=len(suggestions),
        )
        return suggestions

    def _build(
        self,
        account_id: str,
        scenario: InvestmentScenario,
        investable: int,
        balance_cents: int,
        buffer_cents: int,
        obligations: Sequence[Obligation],
        as_of: date,
    ) -> Optional[InvestmentSuggestion]:
        percentage = min(scenario.percentage, self.settings.maximum_investment_percentage)
        amount = investable * percentage // 100
        if amount < self.settings.minimum_investment_cents:
            return None

        rate = interest_rate_for(scenario.term_days, scenario.risk_tier)
        projected = projected_return_cents(amount, rate, scenario.term_days)
        weekend = self.check_maturity(as_of, scenario.term_days)

        remaining = balance_cents - amount
        critical = [
            o for o in obligations
            if o.criticality == Criticality.CRITICAL
            and o.due_date <= weekend.adjusted_maturity_date
        ]

        reasoning = (
            f"Suggested {scenario.term_days}-day placement of {_money(amount)} at {rate}% interest. "
            f"This leaves {_money(remaining)} available for operations while generating "
            f"approximately {_money(projected)} in interest income."
        )

        return InvestmentSuggestion(
            account_id=account_id,
            as_of=as_of,
            scenario=scenario,
            investable_cents=investable,
            suggested_amount_cents=amount,
            interest_rate=rate,
            projected_return_cents=projected,
            liquidity=LiquidityImpact(
                available_after_investment_cents=remaining,
                buffer_cents=buffer_cents,
                critical_obligations=critical,
            ),
            weekend=weekend,
            reasoning=reasoning,
        )

    def check_maturity(self, placement_date: date, term_days: int) -> WeekendConsideration:
        """Flag non-banking maturities and find a shorter term that avoids them."""
        maturity = placement_date + timedelta(days=term_days)
        if self.calendar.is_banking_day(maturity):
            return WeekendConsideration(
                maturity_date=maturity,
                lands_on_non_banking_day=False,
                adjusted_maturity_date=maturity,
            )

        alternate_maturity = self.calendar.previous_banking_day(maturity)
        alternate_term = (alternate_maturity - placement_date).days
        if alternate_term <= 0:
            alternate_term, alternate_maturity = None, None
            suggestion = None
        else:
            suggestion = f"Consider a {alternate_term} day term to avoid a non-banking maturity"

        return WeekendConsideration(
            maturity_date=maturity,
            lands_on_non_banking_day=True,
            adjusted_maturity_date=self.calendar.next_banking_day(maturity),
            alternate_term_days=alternate_term,
            alternate_maturity_date=alternate_maturity,
            alternate_suggestion=suggestion,
        )
