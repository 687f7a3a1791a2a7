"""
Relationship scoring service - combines recency, frequency and engagement
into a composite 0-100 health score with a trend classification.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from keepclos.config import settings
from keepclos.errors import InvalidParameterError
from keepclos.features.relationships.domain.models import (
    Contact,
    Interaction,
    RelationshipScore,
    Trend,
)
from keepclos.infrastructure.observability.logging import get_logger

from .decay import as_utc, days_since, exponential_decay
from .signals import extract_quality_score

logger = get_logger(__name__)

TREND_WINDOW_DAYS = 45
IMPROVING_RATIO = 1.2
DECLINING_RATIO = 0.8

# 0.1 interactions/day maps to 100; one a week (~0.14/day) is already maxed out
FREQUENCY_SCALE = 1000.0


@dataclass(frozen=True, slots=True)
class ScorerConfig:
    recency_weight: float = 0.4
    frequency_weight: float = 0.3
    engagement_weight: float = 0.3
    half_life: float = 30.0  # days
    frequency_window: float = 90.0  # days

    def __post_init__(self) -> None:
        for name in ("recency_weight", "frequency_weight", "engagement_weight"):
            if getattr(self, name) < 0:
                raise InvalidParameterError(f"{name} must not be negative", parameter=name)
        if self.total_weight <= 0:
            raise InvalidParameterError("At least one scoring weight must be positive")
        if self.half_life <= 0:
            raise InvalidParameterError("half_life must be positive", parameter="half_life")
        if self.frequency_window <= 0:
            raise InvalidParameterError(
                "frequency_window must be positive", parameter="frequency_window"
            )

    @property
    def total_weight(self) -> float:
        return self.recency_weight + self.frequency_weight + self.engagement_weight


DEFAULT_SCORER_CONFIG = ScorerConfig()


def calculate_recency_score(
    contact: Contact, half_life: float, now: datetime | None = None
) -> float:
    if contact.last_contacted_at is None:
        return 0.0
    return exponential_decay(days_since(contact.last_contacted_at, now), half_life)


def calculate_frequency_score(interactions: Sequence[Interaction], window_days: float) -> float:
    """Score the interaction rate inside the window (the caller filters to the window)."""
    if not interactions:
        return 0.0
    per_day = len(interactions) / window_days
    return max(0.0, min(100.0, per_day * FREQUENCY_SCALE))


def _quality_of(interaction: Interaction) -> float:
    if interaction.quality is not None:
        return interaction.quality
    return extract_quality_score(interaction)


def calculate_engagement_score(interactions: Sequence[Interaction]) -> float:
    if not interactions:
        return 0.0
    average = sum(_quality_of(i) for i in interactions) / len(interactions)
    return max(0.0, min(100.0, average))


def combine_scores(
    recency: float,
    frequency: float,
    engagement: float,
    config: ScorerConfig = DEFAULT_SCORER_CONFIG,
) -> float:
    """Weighted sum with weights normalized to 1.0, so callers may pass any ratio."""
    total = config.total_weight
    combined = (
        recency * (config.recency_weight / total)
        + frequency * (config.frequency_weight / total)
        + engagement * (config.engagement_weight / total)
    )
    return max(0.0, min(100.0, combined))


def calculate_trend(interactions: Iterable[Interaction], now: datetime | None = None) -> Trend:
    """Compare interaction counts after vs. at-or-before the 45-day cutoff."""
    now = as_utc(now or datetime.now(UTC))
    cutoff = now - timedelta(days=TREND_WINDOW_DAYS)

    recent_count = 0
    older_count = 0
    for interaction in interactions:
        if as_utc(interaction.timestamp) > cutoff:
            recent_count += 1
        else:
            older_count += 1

    # Can't decline from nothing
    if older_count == 0:
        return "improving"

    ratio = recent_count / older_count
    if ratio > IMPROVING_RATIO:
        return "improving"
    if ratio < DECLINING_RATIO:
        return "declining"
    return "stable"


def calculate_relationship_score(
    contact: Contact,
    interactions: Sequence[Interaction],
    config: ScorerConfig = DEFAULT_SCORER_CONFIG,
    now: datetime | None = None,
) -> RelationshipScore:
    """
    Score one contact.

    Args:
        contact: Contact to score
        interactions: Full interaction history with this contact
        config: Weights and windows
        now: Reference time (defaults to the current time)

    Returns:
        RelationshipScore stamped with ``now``
    """
    now = as_utc(now or datetime.now(UTC))
    window_start = now - timedelta(days=config.frequency_window)
    windowed = [i for i in interactions if as_utc(i.timestamp) > window_start]

    recency = calculate_recency_score(contact, config.half_life, now)
    frequency = calculate_frequency_score(windowed, config.frequency_window)
    engagement = calculate_engagement_score(interactions)

    return RelationshipScore(
        contact_id=contact.id,
        overall=combine_scores(recency, frequency, engagement, config),
        recency=recency,
        frequency=frequency,
        engagement=engagement,
        trend=calculate_trend(interactions, now),
        last_updated=now,
    )


def calculate_relationship_scores_batch(
    contacts: Iterable[Contact],
    interactions_by_contact: Mapping[str, Sequence[Interaction]],
    config: ScorerConfig = DEFAULT_SCORER_CONFIG,
    now: datetime | None = None,
) -> list[RelationshipScore]:
    now = now or datetime.now(UTC)
    return [
        calculate_relationship_score(
            contact, interactions_by_contact.get(contact.id, []), config, now
        )
        for contact in contacts
    ]


class RelationshipScorer:
    """Scorer bound to a configuration, used by the reminder scheduler."""

    def __init__(self, config: ScorerConfig | None = None):
        self.config = config or DEFAULT_SCORER_CONFIG

    def score(
        self,
        contact: Contact,
        interactions: Sequence[Interaction],
        now: datetime | None = None,
    ) -> RelationshipScore:
        result = calculate_relationship_score(contact, interactions, self.config, now)
        logger.debug(
            "Relationship scored",
            contact_id=contact.id,
            overall=round(result.overall, 2),
            trend=result.trend,
            interactions=len(interactions),
        )
        return result

    def score_all(
        self,
        contacts: Iterable[Contact],
        interactions_by_contact: Mapping[str, Sequence[Interaction]],
        now: datetime | None = None,
    ) -> dict[str, RelationshipScore]:
        scores = calculate_relationship_scores_batch(
            contacts, interactions_by_contact, self.config, now
        )
        logger.info("Relationship scores calculated", contacts=len(scores))
        return {score.contact_id: score for score in scores}


relationship_scorer = RelationshipScorer(settings.get_scorer_config())
