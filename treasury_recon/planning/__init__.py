"""Time-deposit investment planning."""

from .calendar import BusinessCalendar
from .suggestions import InvestmentSuggestionEngine, interest_rate_for, projected_return_cents

__all__ = [
    "BusinessCalendar",
    "InvestmentSuggestionEngine",
    "interest_rate_for",
    "projected_return_cents",
]
