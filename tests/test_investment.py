"""
Tests for the business calendar and investment suggestions.
"""

import pytest
from datetime import date, timedelta
from unittest.mock import MagicMock

from treasury_recon.models import (
    Criticality,
    InvestmentScenario,
    Obligation,
    RiskTier,
)
from treasury_recon.planning import (
    BusinessCalendar,
    InvestmentSuggestionEngine,
    interest_rate_for,
    projected_return_cents,
)


@pytest.fixture
def calendar():
    return BusinessCalendar(weekend_days=[4, 5])


@pytest.fixture
def engine(calendar, bus, settings):
    return InvestmentSuggestionEngine(calendar=calendar, event_bus=bus, settings=settings)


class TestBusinessCalendar:
    """Test suite for banking-day arithmetic."""

    def test_friday_and_saturday_are_weekend(self, calendar):
        """Test the default Friday/Saturday weekend."""
        assert calendar.is_weekend(date(2024, 3, 29))      # Friday
        assert calendar.is_weekend(date(2024, 3, 30))      # Saturday
        assert calendar.is_banking_day(date(2024, 3, 31))  # Sunday

    def test_holidays_are_not_banking_days(self):
        """Test holidays are excluded from banking days."""
        holiday = date(2024, 4, 10)
        calendar = BusinessCalendar(weekend_days=[4, 5], holidays=[holiday])

        assert not calendar.is_weekend(holiday)
        assert not calendar.is_banking_day(holiday)

    def test_next_and_previous_banking_day(self, calendar):
        """Test moving to the nearest banking day in both directions."""
        friday = date(2024, 3, 29)

        assert calendar.next_banking_day(friday) == date(2024, 3, 31)
        assert calendar.previous_banking_day(friday) == date(2024, 3, 28)
        assert calendar.next_banking_day(date(2024, 3, 28)) == date(2024, 3, 28)

    def test_default_weekend_from_settings(self, settings):
        """Test the calendar picks up weekend days from settings."""
        assert BusinessCalendar().weekend_days == frozenset(settings.weekend_days)

    def test_all_week_weekend_is_rejected(self):
        """Test a calendar with no banking days is rejected."""
        with pytest.raises(ValueError):
            BusinessCalendar(weekend_days=range(7))


class TestRates:
    """Test suite for rate and return arithmetic."""

    @pytest.mark.parametrize("term,tier,expected", [
        (30, RiskTier.CONSERVATIVE, 3.5),
        (59, RiskTier.MODERATE, 4.0),
        (60, RiskTier.MODERATE, 4.25),
        (90, RiskTier.MODERATE, 4.5),
        (90, RiskTier.AGGRESSIVE, 5.0),
    ])
    def test_term_premium(self, term, tier, expected):
        """Test rates by term and risk tier."""
        assert interest_rate_for(term, tier) == expected

    def test_simple_interest_in_cents(self):
        """Test simple interest on a 365-day year in cents."""
        assert projected_return_cents(120_000_000, 3.5, 30) == 345_205


class TestSuggestions:
    """Test suite for suggestion generation."""

    @pytest.fixture
    def obligations(self, base_date):
        return [
            Obligation(
                amount_cents=200_000_000,
                due_date=base_date + timedelta(days=20),
                criticality=Criticality.CRITICAL,
                description="Supplier settlement",
            ),
        ]

    def test_scenarios_are_ranked_by_return(self, engine, obligations, base_date):
        """5,000,000 balance, 2,000,000 obligations, 1,000,000 buffer."""
        suggestions = engine.generate(
            "ACC-1", 500_000_000, obligations, as_of=base_date, buffer_cents=100_000_000
        )

        assert [s.term_days for s in suggestions] == [90, 60, 30]
        assert [s.rank for s in suggestions] == [1, 2, 3]
        assert all(s.investable_cents == 200_000_000 for s in suggestions)

        by_term = {s.term_days: s for s in suggestions}
        assert by_term[30].suggested_amount_cents == 120_000_000
        assert by_term[60].suggested_amount_cents == 140_000_000
        assert by_term[90].suggested_amount_cents == 100_000_000
        assert by_term[30].interest_rate == 3.5
        assert by_term[60].interest_rate == 4.25
        assert by_term[90].interest_rate == 4.5
        assert by_term[90].projected_return_cents == 1_109_589
        assert by_term[60].projected_return_cents == 978_082
        assert by_term[30].projected_return_cents == 345_205

    def test_liquidity_impact(self, engine, obligations, base_date):
        """Test remaining liquidity and reasoning text."""
        suggestions = engine.generate(
            "ACC-1", 500_000_000, obligations, as_of=base_date, buffer_cents=100_000_000
        )

        thirty = next(s for s in suggestions if s.term_days == 30)
        assert thirty.liquidity.available_after_investment_cents == 380_000_000
        assert thirty.liquidity.buffer_cents == 100_000_000
        assert thirty.liquidity.critical_obligations == obligations
        assert "30-day placement of 1,200,000.00" in thirty.reasoning

    def test_weekend_maturity_gets_alternate_term(self, engine, obligations, base_date):
        """Test a weekend maturity gets an adjusted date and alternate term."""
        suggestions = engine.generate(
            "ACC-1", 500_000_000, obligations, as_of=base_date, buffer_cents=100_000_000
        )

        ninety = next(s for s in suggestions if s.term_days == 90)
        assert ninety.weekend.maturity_date == date(2024, 6, 8)  # Saturday
        assert ninety.weekend.lands_on_non_banking_day is True
        assert ninety.weekend.adjusted_maturity_date == date(2024, 6, 9)
        assert ninety.weekend.alternate_term_days == 88

        thirty = next(s for s in suggestions if s.term_days == 30)
        assert thirty.weekend.lands_on_non_banking_day is False
        assert thirty.weekend.alternate_suggestion is None

    def test_insufficient_cash_returns_nothing(self, engine, base_date, bus):
        """Test no suggestions when obligations and buffer use all cash."""
        obligations = [Obligation(amount_cents=60_000_000, due_date=base_date)]

        suggestions = engine.generate(
            "ACC-1", 200_000_000, obligations, as_of=base_date, buffer_cents=100_000_000
        )

        assert suggestions == []
        assert bus.events_named("INVESTMENT_SUGGESTIONS_GENERATED") == []

    def test_scenario_below_minimum_is_dropped(self, engine, base_date):
        """Test scenarios under the minimum investment are dropped."""
        suggestions = engine.generate("ACC-1", 180_000_000, as_of=base_date, buffer_cents=100_000_000)

        assert len(suggestions) == 1
        assert suggestions[0].term_days == 60
        assert suggestions[0].suggested_amount_cents == 56_000_000
        assert suggestions[0].rank == 1

    def test_share_is_capped(self, calendar, settings, base_date):
        """Test scenario amounts are capped at the maximum share."""
        greedy = InvestmentScenario(term_days=30, percentage=95, risk_tier=RiskTier.AGGRESSIVE)
        engine = InvestmentSuggestionEngine(calendar=calendar, scenarios=[greedy], settings=settings)

        suggestions = engine.generate("ACC-1", 300_000_000, as_of=base_date, buffer_cents=100_000_000)

        assert suggestions[0].suggested_amount_cents == 160_000_000

    def test_obligation_horizon(self, engine, base_date):
        """Test obligations past the horizon are ignored."""
        obligations = [
            Obligation(amount_cents=10_000_000, due_date=base_date - timedelta(days=5)),
            Obligation(amount_cents=20_000_000, due_date=base_date + timedelta(days=90)),
            Obligation(amount_cents=40_000_000, due_date=base_date + timedelta(days=91)),
        ]

        assert engine.obligations_in_horizon(obligations, base_date) == 30_000_000

    def test_default_buffer_from_settings(self, engine, settings, base_date):
        """Test the buffer defaults to the configured minimum."""
        investable = engine.investable_cents(500_000_000, [], base_date)

        assert investable == 500_000_000 - settings.minimum_buffer_cents

    def test_event_is_emitted(self, engine, obligations, base_date, bus):
        """Test one event summarises the suggestions."""
        engine.generate("ACC-1", 500_000_000, obligations, as_of=base_date, buffer_cents=100_000_000)

        events = bus.events_named("INVESTMENT_SUGGESTIONS_GENERATED")
        assert len(events) == 1
        assert events[0].payload["count"] == 3
        assert events[0].payload["total_suggested_amount_cents"] == 360_000_000

    def test_event_failure_does_not_block(self, calendar, settings, base_date):
        """Test a failing event bus does not block suggestions."""
        bus = MagicMock()
        bus.emit.side_effect = RuntimeError("broker down")
        engine = InvestmentSuggestionEngine(calendar=calendar, event_bus=bus, settings=settings)

        suggestions = engine.generate("ACC-1", 500_000_000, as_of=base_date, buffer_cents=100_000_000)

        assert len(suggestions) == 3


class TestMaturityCheck:
    """Test suite for maturity calendar checks."""

    def test_friday_maturity(self, engine):
        """Test a Friday maturity suggests a shorter term."""
        result = engine.check_maturity(date(2024, 2, 28), 30)

        assert result.maturity_date == date(2024, 3, 29)
        assert result.lands_on_non_banking_day is True
        assert result.adjusted_maturity_date == date(2024, 3, 31)
        assert result.alternate_term_days == 29
        assert result.alternate_maturity_date == date(2024, 3, 28)
        assert result.alternate_suggestion == "Consider a 29 day term to avoid a non-banking maturity"

    def test_holiday_maturity(self, settings, base_date):
        """Test a holiday maturity is moved to the next banking day."""
        calendar = BusinessCalendar(weekend_days=[4, 5], holidays=[date(2024, 4, 9)])
        engine = InvestmentSuggestionEngine(calendar=calendar, settings=settings)

        result = engine.check_maturity(base_date, 30)

        assert result.lands_on_non_banking_day is True
        assert result.adjusted_maturity_date == date(2024, 4, 10)
        assert result.alternate_term_days == 29

    def test_no_alternate_for_very_short_terms(self, engine):
        """Test no alternate term is offered for very short deposits."""
        # Thursday placement, one-day term lands on Friday
        result = engine.check_maturity(date(2024, 3, 28), 1)

        assert result.lands_on_non_banking_day is True
        assert result.alternate_term_days is None
        assert result.alternate_suggestion is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
