"""Suggestion mapping, deduplication, ranking and the TES client."""

from addressflow.suggestions.conflicts import SuggestionConflictDetector, SuggestionConflicts
from addressflow.suggestions.merger import SuggestionMerger
from addressflow.suggestions.models import (
    PROVIDER_PRIORITY,
    MatchLevel,
    ProviderShape,
    ProviderSource,
    Suggestion,
)
from addressflow.suggestions.normalizer import SuggestionNormalizer
from addressflow.suggestions.ranker import SuggestionRanker

__all__ = [
    "PROVIDER_PRIORITY",
    "MatchLevel",
    "ProviderShape",
    "ProviderSource",
    "Suggestion",
    "SuggestionConflictDetector",
    "SuggestionConflicts",
    "SuggestionMerger",
    "SuggestionNormalizer",
    "SuggestionRanker",
]
