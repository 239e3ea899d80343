"""Scoring and filtering strategies."""
from .filters import matches_filters
from .scoring import FilterBoostStrategy, ScoringStrategy, TimeDecayStrategy

__all__ = [
    "matches_filters",
    "FilterBoostStrategy",
    "ScoringStrategy",
    "TimeDecayStrategy",
]
