"""
Relationship scoring package.

Provides the decay curves, per-interaction signal extraction and the
composite scorer that the reminder rules consume.
"""

from .decay import (
    DecayConfig,
    apply_decay,
    as_utc,
    days_between,
    days_since,
    exponential_decay,
    linear_decay,
    power_law_decay,
)
from .service import (
    RelationshipScorer,
    ScorerConfig,
    calculate_relationship_score,
    calculate_relationship_scores_batch,
    combine_scores,
    relationship_scorer,
)
from .signals import (
    classify_interaction_type,
    extract_context_tags,
    extract_quality_score,
    extract_signals,
    extract_signals_batch,
    with_quality,
)
from .summary import summarize_relationships, trend_breakdown

__all__ = [
    "DecayConfig",
    "RelationshipScorer",
    "ScorerConfig",
    "apply_decay",
    "as_utc",
    "calculate_relationship_score",
    "calculate_relationship_scores_batch",
    "classify_interaction_type",
    "combine_scores",
    "days_between",
    "days_since",
    "exponential_decay",
    "extract_context_tags",
    "extract_quality_score",
    "extract_signals",
    "extract_signals_batch",
    "linear_decay",
    "power_law_decay",
    "relationship_scorer",
    "summarize_relationships",
    "trend_breakdown",
    "with_quality",
]
