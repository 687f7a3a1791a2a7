"""
Reminder rule engine - decides whether a rule fires for a contact.

Each rule type has exactly one predicate. Gates (tag filter, minimum
relationship score) run first and short-circuit before the predicate.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from keepclos.errors import InvalidRuleConfigError
from keepclos.features.relationships.domain.models import Contact, Interaction
from keepclos.features.relationships.pipeline.scoring.decay import as_utc, days_since
from keepclos.features.reminders.domain.models import (
    REQUIRED_CONFIG_FIELDS,
    RULE_TYPES,
    RuleConfigBase,
    Rule,
    rule_config_adapter,
)
from keepclos.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

RulePredicate = Callable[[Contact, Rule, Sequence[Interaction], float, datetime], bool]
MessageTemplate = Callable[[Contact, Rule], str]


@dataclass(slots=True)
class RuleEvaluation:
    triggered: bool
    message: str | None = None
    skipped_reason: str | None = None  # gate that blocked the rule, if any


def evaluate_inactivity_rule(
    contact: Contact,
    rule: Rule,
    interactions: Sequence[Interaction],
    current_score: float,
    now: datetime,
) -> bool:
    if contact.last_contacted_at is None:
        return True  # Never contacted = always trigger
    return days_since(contact.last_contacted_at, now) >= rule.config.inactivity_days


def evaluate_recurring_rule(
    contact: Contact,
    rule: Rule,
    interactions: Sequence[Interaction],
    current_score: float,
    now: datetime,
) -> bool:
    if contact.last_contacted_at is None:
        return True

    reference = contact.last_contacted_at
    if interactions:
        reference = max(interactions, key=lambda i: as_utc(i.timestamp)).timestamp
    return days_since(reference, now) >= rule.config.recurring_days


def evaluate_date_rule(
    contact: Contact,
    rule: Rule,
    interactions: Sequence[Interaction],
    current_score: float,
    now: datetime,
) -> bool:
    month_day = rule.config.month_day()
    if month_day is None:
        return False
    return (now.month, now.day) == month_day


def evaluate_decay_rule(
    contact: Contact,
    rule: Rule,
    interactions: Sequence[Interaction],
    current_score: float,
    now: datetime,
) -> bool:
    return current_score < rule.config.score_threshold


def _format_days(days: float) -> str:
    return str(int(days)) if float(days).is_integer() else f"{days:g}"


def _inactivity_message(contact: Contact, rule: Rule) -> str:
    days = _format_days(rule.config.inactivity_days)
    return f"Time to reach out to {contact.name}! You haven't connected in {days} days."


def _recurring_message(contact: Contact, rule: Rule) -> str:
    days = _format_days(rule.config.recurring_days)
    return f"Regular check-in with {contact.name} (every {days} days)"


def _date_message(contact: Contact, rule: Rule) -> str:
    pattern = (rule.config.date_pattern or "").lower()
    if "birthday" in pattern or "birthday" in contact.notes.lower():
        return f"Birthday reminder: {contact.name}!"
    return f"Scheduled reminder: {contact.name}"


def _decay_message(contact: Contact, rule: Rule) -> str:
    threshold = _format_days(rule.config.score_threshold)
    return (
        f"Your relationship with {contact.name} needs attention "
        f"(score dropping below {threshold})"
    )


PREDICATES: dict[str, RulePredicate] = {
    "inactivity": evaluate_inactivity_rule,
    "recurring": evaluate_recurring_rule,
    "date": evaluate_date_rule,
    "decay": evaluate_decay_rule,
}

MESSAGE_TEMPLATES: dict[str, MessageTemplate] = {
    "inactivity": _inactivity_message,
    "recurring": _recurring_message,
    "date": _date_message,
    "decay": _decay_message,
}

# Adding a rule type means adding a predicate and a message here.
for _table in (PREDICATES, MESSAGE_TEMPLATES):
    if set(_table) != set(RULE_TYPES):
        raise RuntimeError(f"Rule dispatch table out of sync with RULE_TYPES: {sorted(_table)}")


def rule_applies_to_contact(contact: Contact, rule: Rule) -> bool:
    """Tag gate: a rule with a tag filter applies to contacts sharing at least one tag."""
    tags = rule.config.tags
    if not tags:
        return True
    return not tags.isdisjoint(contact.tags)


def passes_score_gate(rule: Rule, current_score: float) -> bool:
    minimum = rule.config.min_relationship_score
    if minimum is None:
        return True
    return current_score >= minimum


def evaluate(
    contact: Contact,
    rule: Rule,
    interactions: Sequence[Interaction],
    current_score: float,
    now: datetime | None = None,
) -> RuleEvaluation:
    """
    Run gates and the type-specific predicate for one (contact, rule) pair.

    Returns:
        RuleEvaluation with the reminder message when the rule triggers
    """
    if not rule_applies_to_contact(contact, rule):
        return RuleEvaluation(triggered=False, skipped_reason="tag_filter")
    if not passes_score_gate(rule, current_score):
        return RuleEvaluation(triggered=False, skipped_reason="min_relationship_score")

    now = now or datetime.now(UTC)
    if not PREDICATES[rule.type](contact, rule, interactions, current_score, now):
        return RuleEvaluation(triggered=False)
    return RuleEvaluation(triggered=True, message=generate_reminder_message(contact, rule))


def evaluate_rule(
    contact: Contact,
    rule: Rule,
    interactions: Sequence[Interaction],
    current_score: float,
    now: datetime | None = None,
) -> bool:
    return evaluate(contact, rule, interactions, current_score, now).triggered


def generate_reminder_message(contact: Contact, rule: Rule) -> str:
    return MESSAGE_TEMPLATES[rule.type](contact, rule)


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error.get("loc", ()) if part not in RULE_TYPES)
    message = error.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


def create_rule(
    rule_type: str,
    name: str,
    config: Mapping[str, Any] | RuleConfigBase | None = None,
    *,
    description: str = "",
    enabled: bool = True,
    rule_id: str | None = None,
) -> Rule:
    """
    Create a rule, validating its config once for the declared type.

    Args:
        rule_type: One of inactivity, recurring, date, decay
        name: Display name
        config: Mapping of config fields, or an already-built config model
        description: Optional description
        enabled: Whether the scheduler should evaluate it
        rule_id: Explicit id (generated when omitted)

    Raises:
        InvalidRuleConfigError: If the type is unknown or the config is invalid for it
    """
    if rule_type not in RULE_TYPES:
        raise InvalidRuleConfigError(f"Unknown rule type '{rule_type}'", rule_type=rule_type)

    required = REQUIRED_CONFIG_FIELDS[rule_type]

    if isinstance(config, RuleConfigBase):
        if getattr(config, "type", None) != rule_type:
            raise InvalidRuleConfigError(
                f"Config of type '{getattr(config, 'type', None)}' given for a {rule_type} rule",
                rule_type=rule_type,
            )
        parsed = config
        if getattr(parsed, required) is None:
            raise InvalidRuleConfigError(f"{required} is required", rule_type=rule_type)
    else:
        data = dict(config or {})
        if data.get(required) is None:
            raise InvalidRuleConfigError(f"{required} is required", rule_type=rule_type)
        data["type"] = rule_type
        try:
            parsed = rule_config_adapter.validate_python(data)
        except ValidationError as exc:
            raise InvalidRuleConfigError(_first_error(exc), rule_type=rule_type) from exc

    now = datetime.now(UTC)
    rule = Rule(
        id=rule_id or str(uuid.uuid4()),
        name=name,
        config=parsed,
        description=description,
        enabled=enabled,
        created_at=now,
        updated_at=now,
    )
    logger.debug("Reminder rule created", rule_id=rule.id, rule_type=rule_type, name=name)
    return rule
