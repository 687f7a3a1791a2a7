"""
Domain models for the reminders feature.

Rule configurations are a closed tagged variant: one pydantic model per
rule type, discriminated on ``type``. Validation happens once, when a rule
is created, so the rule engine can trust every config it evaluates.
"""

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

RuleType = Literal["inactivity", "recurring", "date", "decay"]
ReminderStatus = Literal["pending", "sent", "dismissed"]

RULE_TYPES: tuple[str, ...] = ("inactivity", "recurring", "date", "decay")
REMINDER_STATUSES: tuple[str, ...] = ("pending", "sent", "dismissed")

# "MM-DD", optionally followed by a time or free text ("06-15 09:00", "06-15T09:00", "06-15 birthday")
DATE_PATTERN_RE = re.compile(r"^(\d{1,2})-(\d{1,2})(?:[^\d-].*)?$")


def parse_month_day(pattern: str) -> tuple[int, int] | None:
    """Return (month, day) from a date pattern, or None when it is malformed."""
    match = DATE_PATTERN_RE.match(pattern.strip())
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def is_valid_date_pattern(pattern: str) -> bool:
    """Range check only: "02-30" passes because no calendar validation is done."""
    parsed = parse_month_day(pattern)
    if parsed is None:
        return False
    month, day = parsed
    return 1 <= month <= 12 and 1 <= day <= 31


class RuleConfigBase(BaseModel):
    """Gate fields shared by every rule type."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    tags: frozenset[str] = Field(
        default_factory=frozenset, description="Apply only to contacts with any of these tags"
    )
    min_relationship_score: float | None = Field(
        default=None, ge=0, le=100, description="Apply only at or above this score"
    )


class InactivityRuleConfig(RuleConfigBase):
    type: Literal["inactivity"] = "inactivity"
    inactivity_days: float = Field(default=30, gt=0, description="Days without contact")


class RecurringRuleConfig(RuleConfigBase):
    type: Literal["recurring"] = "recurring"
    recurring_days: float = Field(default=14, gt=0, description="Days between check-ins")


class DateRuleConfig(RuleConfigBase):
    type: Literal["date"] = "date"
    date_pattern: str | None = Field(default=None, description="Annual date as MM-DD")

    @field_validator("date_pattern")
    @classmethod
    def _check_pattern(cls, value: str | None) -> str | None:
        if value is not None and not is_valid_date_pattern(value):
            raise ValueError('date_pattern must be in MM-DD format (e.g., "06-15")')
        return value

    def month_day(self) -> tuple[int, int] | None:
        if self.date_pattern is None:
            return None
        return parse_month_day(self.date_pattern)


class DecayRuleConfig(RuleConfigBase):
    type: Literal["decay"] = "decay"
    score_threshold: float = Field(default=30, ge=0, le=100, description="Remind below this score")


RuleConfig = Annotated[
    Union[InactivityRuleConfig, RecurringRuleConfig, DateRuleConfig, DecayRuleConfig],
    Field(discriminator="type"),
]

rule_config_adapter: TypeAdapter[RuleConfig] = TypeAdapter(RuleConfig)

# Field each rule type must state explicitly at creation time
REQUIRED_CONFIG_FIELDS: dict[str, str] = {
    "inactivity": "inactivity_days",
    "recurring": "recurring_days",
    "date": "date_pattern",
    "decay": "score_threshold",
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class Rule:
    """A reminder rule. Build through ``create_rule`` so the config is validated."""

    id: str
    name: str
    config: RuleConfig
    description: str = ""
    enabled: bool = True
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def type(self) -> RuleType:
        return self.config.type


@dataclass(slots=True)
class Reminder:
    """A prompt to reach out. Status transitions belong to the reminder store."""

    id: str
    contact_id: str
    message: str
    due_date: datetime
    status: ReminderStatus = "pending"
    rule: Rule | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    sent_at: datetime | None = None

    @property
    def cooldown_key(self) -> str | None:
        if self.rule is None:
            return None
        return cooldown_key(self.contact_id, self.rule.id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "contact_id": self.contact_id,
            "message": self.message,
            "due_date": self.due_date.isoformat(),
            "status": self.status,
            "rule_id": self.rule.id if self.rule else None,
            "rule_type": self.rule.type if self.rule else None,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
        }


def cooldown_key(contact_id: str, rule_id: str) -> str:
    """Key of the existing-reminders lookup: one entry per (contact, rule) pair."""
    return f"{contact_id}:{rule_id}"
