"""
Tests for candidate selection and tier search.
"""

import pytest
from datetime import timedelta
from unittest.mock import MagicMock

from treasury_recon.models import (
    AgingEntry,
    ForecastConfidence,
    ForecastEntry,
    MatchOutcomeKind,
    ReferenceVariant,
)
from treasury_recon.reconciliation import Matcher, MatchTier, ScoredCandidate, build_scorers
from treasury_recon.reconciliation.scoring import ScoreResult


@pytest.fixture
def matcher(settings):
    return Matcher(build_scorers(settings))


def _receivable(id, amount_cents, due_date, name="ABC Corporation", invoice=""):
    return AgingEntry(
        id=id,
        amount_cents=amount_cents,
        counterparty_name=name,
        invoice_number=invoice,
        due_date=due_date,
    )


class TestMatcher:
    """Test suite for single-tier matching."""

    def test_no_candidates_is_no_match(self, matcher, credit_txn):
        """Test an empty candidate list."""
        outcome = matcher.match(credit_txn(), ReferenceVariant.AGING, [], 0.8)

        assert outcome.kind == MatchOutcomeKind.NO_MATCH
        assert outcome.match is None

    def test_all_zero_scores_is_no_match(self, matcher, credit_txn, base_date):
        """Test candidates that all score zero."""
        candidates = [
            _receivable("ar-1", 99_000_000, base_date + timedelta(days=200), name="Zeta Holdings"),
        ]

        outcome = matcher.match(credit_txn(description="Cash deposit"), ReferenceVariant.AGING, candidates, 0.8)

        assert outcome.kind == MatchOutcomeKind.NO_MATCH
        assert outcome.candidates_evaluated == 1

    def test_accepted_above_threshold(self, matcher, credit_txn, abc_receivable):
        """Test acceptance at or above the threshold."""
        outcome = matcher.match(credit_txn(), ReferenceVariant.AGING, [abc_receivable], 0.8)

        assert outcome.kind == MatchOutcomeKind.ACCEPTED
        assert outcome.candidate is abc_receivable
        assert outcome.match.candidate_id == "ar-001"
        assert outcome.score >= 0.8

    def test_needs_review_below_threshold(self, matcher, credit_txn, base_date):
        """Test a positive score under the threshold needs review."""
        # 8% off, name only, two weeks apart
        candidate = _receivable("ar-2", 2_700_000, base_date + timedelta(days=14))

        outcome = matcher.match(credit_txn(), ReferenceVariant.AGING, [candidate], 0.8)

        assert outcome.kind == MatchOutcomeKind.NEEDS_REVIEW
        assert 0 < outcome.score < 0.8
        assert outcome.threshold == 0.8

    def test_tie_broken_by_date_distance(self, matcher, credit_txn, base_date):
        """Test equal scores resolve to the closer date."""
        near = _receivable("ar-b", 2_500_000, base_date + timedelta(days=1))
        far = _receivable("ar-a", 2_500_000, base_date + timedelta(days=5))

        ranked = matcher.rank(credit_txn(), ReferenceVariant.AGING, [far, near])

        assert ranked[0].result.value == ranked[1].result.value
        assert ranked[0].candidate.id == "ar-b"

    def test_tie_broken_by_lowest_id(self, matcher, credit_txn, base_date):
        """Test equal scores and dates resolve to the lowest id."""
        first = _receivable("ar-1", 2_500_000, base_date)
        second = _receivable("ar-2", 2_500_000, base_date)

        outcome = matcher.match(credit_txn(), ReferenceVariant.AGING, [second, first], 0.8)

        assert outcome.match.candidate_id == "ar-1"

    def test_ledger_backed_sorts_before_forecast(self, base_date):
        """Test ledger-backed candidates sort ahead of forecasts."""
        same = ScoreResult(value=0.75, reasons=[], date_distance_days=2)
        ledger = ScoredCandidate(_receivable("z-ledger", 1, base_date), same)
        forecast = ScoredCandidate(ForecastEntry(id="a-forecast", amount_cents=1), same)

        ordered = sorted([forecast, ledger], key=lambda s: s.sort_key)

        assert ordered[0] is ledger


class TestMatchTiers:
    """Test suite for ledger-first tier search."""

    def test_first_accepted_tier_short_circuits(self, settings, credit_txn, abc_receivable, base_date):
        """Test later tiers are not scored after an acceptance."""
        scorers = build_scorers(settings)
        forecast_scorer = MagicMock()
        forecast_scorer.score.return_value = ScoreResult(value=1.0)
        scorers[ReferenceVariant.FORECAST] = forecast_scorer
        matcher = Matcher(scorers)

        tiers = [
            MatchTier(ReferenceVariant.AGING, [abc_receivable], 0.8),
            MatchTier(ReferenceVariant.FORECAST, [ForecastEntry(id="fc-1", amount_cents=2_500_000)], 0.7),
        ]

        outcome = matcher.match_tiers(credit_txn(), tiers)

        assert outcome.kind == MatchOutcomeKind.ACCEPTED
        assert outcome.match.variant == ReferenceVariant.AGING
        forecast_scorer.score.assert_not_called()

    def test_falls_through_to_forecast(self, matcher, credit_txn, base_date):
        """Test the forecast tier is searched when the ledger tier does not accept."""
        weak_receivable = _receivable("ar-9", 2_700_000, base_date + timedelta(days=14))
        forecast = ForecastEntry(
            id="fc-1",
            amount_cents=2_500_000,
            counterparty_name="ABC Corporation",
            expected_date=base_date,
            confidence=ForecastConfidence.HIGH,
        )

        outcome = matcher.match_tiers(credit_txn(), [
            MatchTier(ReferenceVariant.AGING, [weak_receivable], 0.8),
            MatchTier(ReferenceVariant.FORECAST, [forecast], 0.7),
        ])

        assert outcome.kind == MatchOutcomeKind.ACCEPTED
        assert outcome.match.variant == ReferenceVariant.FORECAST
        assert outcome.match.is_ledger_backed is False
        assert outcome.candidates_evaluated == 2

    def test_best_review_across_tiers(self, matcher, credit_txn, base_date):
        """Test the strongest review candidate across tiers is surfaced."""
        weak_receivable = _receivable("ar-9", 2_700_000, base_date + timedelta(days=14))
        weaker_forecast = ForecastEntry(
            id="fc-2",
            amount_cents=3_000_000,
            counterparty_name="ABC Corporation",
            expected_date=base_date + timedelta(days=10),
            confidence=ForecastConfidence.LOW,
        )

        outcome = matcher.match_tiers(credit_txn(), [
            MatchTier(ReferenceVariant.AGING, [weak_receivable], 0.8),
            MatchTier(ReferenceVariant.FORECAST, [weaker_forecast], 0.7),
        ])

        assert outcome.kind == MatchOutcomeKind.NEEDS_REVIEW
        assert outcome.match.candidate_id == "ar-9"

    @staticmethod
    def _stub_scorers(settings, aging_result, forecast_result):
        scorers = build_scorers(settings)
        for variant, result in (
            (ReferenceVariant.AGING, aging_result),
            (ReferenceVariant.FORECAST, forecast_result),
        ):
            stub = MagicMock()
            stub.score.return_value = result
            scorers[variant] = stub
        return scorers

    def test_review_tie_across_tiers_prefers_closer_date(self, settings, credit_txn, base_date):
        """Test a forecast tying a receivable on score wins when it is closer in date."""
        matcher = Matcher(self._stub_scorers(
            settings,
            ScoreResult(value=0.3, date_distance_days=20),
            ScoreResult(value=0.3, date_distance_days=0),
        ))

        outcome = matcher.match_tiers(credit_txn(), [
            MatchTier(ReferenceVariant.AGING, [_receivable("ar-1", 2_685_000, base_date + timedelta(days=20))], 0.8),
            MatchTier(ReferenceVariant.FORECAST, [ForecastEntry(id="fc-1", amount_cents=2_500_000)], 0.7),
        ])

        assert outcome.kind == MatchOutcomeKind.NEEDS_REVIEW
        assert outcome.match.candidate_id == "fc-1"
        assert outcome.threshold == 0.7
        assert outcome.candidates_evaluated == 2

    def test_review_tie_across_tiers_prefers_ledger(self, settings, credit_txn, base_date):
        """Test equal score and date distance resolve to the ledger-backed candidate."""
        same = ScoreResult(value=0.4, date_distance_days=3)
        matcher = Matcher(self._stub_scorers(settings, same, same))

        outcome = matcher.match_tiers(credit_txn(), [
            MatchTier(ReferenceVariant.FORECAST, [ForecastEntry(id="a-forecast", amount_cents=2_500_000)], 0.7),
            MatchTier(ReferenceVariant.AGING, [_receivable("z-ledger", 2_500_000, base_date)], 0.8),
        ])

        assert outcome.match.candidate_id == "z-ledger"
        assert outcome.match.is_ledger_backed is True
        assert outcome.threshold == 0.8

    def test_no_match_across_empty_tiers(self, matcher, credit_txn):
        """Test empty tiers give no match."""
        outcome = matcher.match_tiers(credit_txn(), [
            MatchTier(ReferenceVariant.AGING, [], 0.8),
            MatchTier(ReferenceVariant.FORECAST, [], 0.7),
        ])

        assert outcome.kind == MatchOutcomeKind.NO_MATCH


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
