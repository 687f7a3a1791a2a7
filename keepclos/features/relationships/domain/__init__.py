"""
Domain subpackage for the relationships feature.
"""

from .models import (
    INTERACTION_TYPES,
    Contact,
    Interaction,
    InteractionType,
    RelationshipGraph,
    RelationshipScore,
    SignalExtractionResult,
    Trend,
    TrendBreakdown,
)

__all__ = [
    "INTERACTION_TYPES",
    "Contact",
    "Interaction",
    "InteractionType",
    "RelationshipGraph",
    "RelationshipScore",
    "SignalExtractionResult",
    "Trend",
    "TrendBreakdown",
]
