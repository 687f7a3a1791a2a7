"""
Time decay curves used to weight recent contact more heavily.

Every curve maps elapsed days to a 0-100 score. The functions are pure and
safe to call from any number of callers without synchronization.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from keepclos.errors import InvalidParameterError, UnknownDecayTypeError

SECONDS_PER_DAY = 24 * 60 * 60

DEFAULT_HALF_LIFE_DAYS = 30.0
DEFAULT_MAX_AGE_DAYS = 365.0
DEFAULT_CURVE = 0.5


@dataclass(frozen=True, slots=True)
class DecayConfig:
    type: str  # "exponential", "linear" or "custom" (power law)
    half_life: float | None = None
    max_age: float | None = None
    curve: float | None = None


def _clamp(score: float) -> float:
    return max(0.0, min(100.0, score))


def exponential_decay(days_since: float, half_life: float) -> float:
    """
    Halve the score every ``half_life`` days.

    Formula: ``100 * 0.5 ** (days_since / half_life)``

    Raises:
        InvalidParameterError: If half_life is not positive
    """
    if half_life <= 0:
        raise InvalidParameterError("half_life must be positive", parameter="half_life")
    if days_since <= 0:
        return 100.0
    return _clamp(100.0 * 0.5 ** (days_since / half_life))


def linear_decay(days_since: float, max_age: float) -> float:
    """
    Fall linearly to zero over ``max_age`` days.

    Raises:
        InvalidParameterError: If max_age is not positive
    """
    if max_age <= 0:
        raise InvalidParameterError("max_age must be positive", parameter="max_age")
    if days_since < 0:
        return 100.0
    return _clamp(100.0 * (1 - days_since / max_age))


def power_law_decay(days_since: float, curve: float) -> float:
    """
    Long-tailed decay: ``100 * (1 + days_since) ** -curve``.

    Raises:
        InvalidParameterError: If curve is not positive
    """
    if curve <= 0:
        raise InvalidParameterError("curve must be positive", parameter="curve")
    if days_since < 0:
        return 100.0
    return _clamp(100.0 * (1 + days_since) ** (-curve))


def apply_decay(days_since: float, config: DecayConfig) -> float:
    """Dispatch to the curve named by ``config.type``, filling in its default parameter."""
    if config.type == "exponential":
        half_life = config.half_life if config.half_life is not None else DEFAULT_HALF_LIFE_DAYS
        return exponential_decay(days_since, half_life)
    if config.type == "linear":
        max_age = config.max_age if config.max_age is not None else DEFAULT_MAX_AGE_DAYS
        return linear_decay(days_since, max_age)
    if config.type == "custom":
        curve = config.curve if config.curve is not None else DEFAULT_CURVE
        return power_law_decay(days_since, curve)
    raise UnknownDecayTypeError(config.type)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes; aware values are returned unchanged."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from ``start`` to ``end`` (negative if end is earlier)."""
    return (as_utc(end) - as_utc(start)).total_seconds() / SECONDS_PER_DAY


def days_since(when: datetime, now: datetime | None = None) -> float:
    """Fractional days elapsed from ``when`` until ``now`` (defaults to the current time)."""
    return days_between(when, now or datetime.now(UTC))
