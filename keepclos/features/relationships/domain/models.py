"""
Domain models for the relationships feature.

These lightweight dataclasses describe the records the contact store hands
to the engine and the scores the engine hands back. They intentionally
avoid business logic so they can be reused by the scorer, the rule engine
and whatever host persists them.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal

InteractionType = Literal["call", "message", "meeting", "email", "other"]
Trend = Literal["improving", "stable", "declining"]

INTERACTION_TYPES: tuple[str, ...] = ("call", "message", "meeting", "email", "other")


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class Contact:
    """A person the user keeps in touch with. Owned by the contact store."""

    id: str
    name: str
    tags: frozenset[str] = frozenset()
    notes: str = ""
    last_contacted_at: datetime | None = None
    email: str | None = None
    phone: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if not isinstance(self.tags, frozenset):
            self.tags = frozenset(self.tags)


@dataclass(frozen=True, slots=True)
class Interaction:
    """One logged touchpoint with a contact. Immutable once created."""

    id: str
    contact_id: str
    type: InteractionType
    timestamp: datetime
    duration: float | None = None  # minutes
    notes: str | None = None
    quality: float | None = None  # 0-100, extracted when not supplied


@dataclass(slots=True)
class RelationshipScore:
    """Composite relationship health for one contact. Produced by the scorer only."""

    contact_id: str
    overall: float
    recency: float
    frequency: float
    engagement: float
    trend: Trend
    last_updated: datetime

    def to_dict(self) -> dict:
        return {
            "contact_id": self.contact_id,
            "overall": round(self.overall, 2),
            "recency": round(self.recency, 2),
            "frequency": round(self.frequency, 2),
            "engagement": round(self.engagement, 2),
            "trend": self.trend,
            "last_updated": self.last_updated.isoformat(),
        }


@dataclass(slots=True)
class SignalExtractionResult:
    interaction_type: str
    context_tags: frozenset[str]
    quality_score: float
    confidence: float  # 0-1 completeness heuristic


@dataclass(slots=True)
class RelationshipGraph:
    """Portfolio-level view over a set of scored contacts."""

    node_count: int
    edge_count: int
    avg_score: float
    highest_score: float
    lowest_score: float
    at_risk_contacts: list[Contact]
    strong_relationships: list[Contact]


@dataclass(slots=True)
class TrendBreakdown:
    improving: int = 0
    stable: int = 0
    declining: int = 0
    excellent: int = 0
    good: int = 0
    fair: int = 0
    at_risk: int = 0
    total: int = 0

    def to_dict(self) -> dict:
        return {
            "trends": {
                "improving": self.improving,
                "stable": self.stable,
                "declining": self.declining,
            },
            "by_score": {
                "excellent": self.excellent,
                "good": self.good,
                "fair": self.fair,
                "at_risk": self.at_risk,
            },
            "total_contacts": self.total,
        }
