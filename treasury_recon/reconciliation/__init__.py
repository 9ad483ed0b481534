"""Reconciliation engine modules."""

from .scoring import (
    Scorer,
    ScoreResult,
    AgingScorer,
    ForecastScorer,
    PayrollScorer,
    IntercompanyScorer,
    CashForecastScorer,
    DepositScorer,
    build_scorers,
)
from .matcher import Matcher, MatchTier, ScoredCandidate
from .families import CandidateTier, FamilyDefinition, build_family_definitions
from .state_machine import ALLOWED_TRANSITIONS, can_transition, ensure_transition
from .orchestrator import ReconciliationOrchestrator

__all__ = [
    "Scorer",
    "ScoreResult",
    "AgingScorer",
    "ForecastScorer",
    "PayrollScorer",
    "IntercompanyScorer",
    "CashForecastScorer",
    "DepositScorer",
    "build_scorers",
    "Matcher",
    "MatchTier",
    "ScoredCandidate",
    "CandidateTier",
    "FamilyDefinition",
    "build_family_definitions",
    "ALLOWED_TRANSITIONS",
    "can_transition",
    "ensure_transition",
    "ReconciliationOrchestrator",
]
