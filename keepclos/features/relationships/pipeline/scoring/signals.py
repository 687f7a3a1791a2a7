"""
Signal extraction - turns a single interaction into a quality score and
context tags that the scorer and reminder rules can use.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable

from keepclos.features.relationships.domain.models import (
    Interaction,
    InteractionType,
    SignalExtractionResult,
)

# Effortful, synchronous contact is worth more than async text
BASE_QUALITY_BY_TYPE = {
    "meeting": 80.0,
    "call": 75.0,
    "message": 40.0,
    "email": 35.0,
    "other": 20.0,
}
UNKNOWN_TYPE_QUALITY = 25.0
SYNCHRONOUS_TYPES = {"call", "meeting"}

MAX_DURATION_BONUS = 20.0
MINUTES_PER_DURATION_POINT = 5.0
MAX_NOTES_BONUS = 15.0
CHARS_PER_NOTES_POINT = 50.0

BUSINESS_HOURS = range(9, 17)

CONTEXT_KEYWORDS: dict[str, tuple[str, ...]] = {
    "professional": ("project", "work"),
    "personal": ("personal", "family"),
    "milestone": ("birthday", "anniversary"),
    "urgent": ("emergency", "urgent"),
}

# Evaluated in order; the first family with a matching keyword wins.
TYPE_KEYWORDS: tuple[tuple[InteractionType, tuple[str, ...]], ...] = (
    ("call", ("call", "phone", "spoke")),
    ("meeting", ("meeting", "met", "discuss")),
    ("message", ("message", "text", "sms")),
    ("email", ("email", "sent")),
)


def extract_quality_score(interaction: Interaction) -> float:
    """
    Score the depth of an interaction on a 0-100 scale.

    Base value comes from the interaction type; calls and meetings earn up to
    20 points for duration (1 per 5 minutes) and any interaction earns up to
    15 points for notes (1 per 50 characters).
    """
    score = BASE_QUALITY_BY_TYPE.get(interaction.type, UNKNOWN_TYPE_QUALITY)

    if interaction.type in SYNCHRONOUS_TYPES and interaction.duration is not None:
        score += min(MAX_DURATION_BONUS, interaction.duration / MINUTES_PER_DURATION_POINT)

    if interaction.notes:
        score += min(MAX_NOTES_BONUS, len(interaction.notes) / CHARS_PER_NOTES_POINT)

    return max(0.0, min(100.0, score))


def _duration_bucket(duration: float) -> str:
    if duration > 60:
        return "duration:long"
    if duration > 15:
        return "duration:medium"
    return "duration:short"


def extract_context_tags(interaction: Interaction) -> frozenset[str]:
    """Categorize an interaction by type, time of day, length and note keywords."""
    tags = {f"type:{interaction.type}"}

    if interaction.timestamp.hour in BUSINESS_HOURS:
        tags.add("time:business-hours")
    else:
        tags.add("time:after-hours")

    if interaction.duration is not None:
        tags.add(_duration_bucket(interaction.duration))

    if interaction.notes:
        lowered = interaction.notes.lower()
        for family, keywords in CONTEXT_KEYWORDS.items():
            if any(keyword in lowered for keyword in keywords):
                tags.add(f"context:{family}")

    return frozenset(tags)


def extract_signals(interaction: Interaction) -> SignalExtractionResult:
    quality_score = extract_quality_score(interaction)
    context_tags = extract_context_tags(interaction)

    # Completeness heuristic, not a statistical estimate
    confidence = 0.5
    if interaction.notes:
        confidence += 0.2
    if interaction.duration is not None:
        confidence += 0.2
    if len(context_tags) > 3:
        confidence += 0.1

    return SignalExtractionResult(
        interaction_type=interaction.type,
        context_tags=context_tags,
        quality_score=quality_score,
        confidence=min(1.0, confidence),
    )


def extract_signals_batch(interactions: Iterable[Interaction]) -> list[SignalExtractionResult]:
    return [extract_signals(interaction) for interaction in interactions]


def classify_interaction_type(description: str) -> InteractionType:
    """Guess the interaction type from a free-text description."""
    lowered = description.lower()
    for interaction_type, keywords in TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return interaction_type
    return "other"


def with_quality(interaction: Interaction) -> Interaction:
    """Return the interaction with ``quality`` filled in when the caller did not supply one."""
    if interaction.quality is not None:
        return interaction
    return dataclasses.replace(interaction, quality=extract_quality_score(interaction))
