"""Heuristic filtering of retrieved code chunks."""

from .negative_filter import (
    FilterBreakdown,
    FilterResult,
    NegativeFilter,
    NegativeFilterOptions,
    SearchCandidate,
    calculate_code_quality,
)

__all__ = [
    'FilterBreakdown', 'FilterResult', 'NegativeFilter', 'NegativeFilterOptions',
    'SearchCandidate', 'calculate_code_quality',
]
