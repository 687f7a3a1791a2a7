"""
Domain subpackage for the reminders feature.
"""

from .models import (
    REMINDER_STATUSES,
    RULE_TYPES,
    DateRuleConfig,
    DecayRuleConfig,
    InactivityRuleConfig,
    RecurringRuleConfig,
    Reminder,
    ReminderStatus,
    Rule,
    RuleConfig,
    RuleType,
    cooldown_key,
    is_valid_date_pattern,
)

__all__ = [
    "REMINDER_STATUSES",
    "RULE_TYPES",
    "DateRuleConfig",
    "DecayRuleConfig",
    "InactivityRuleConfig",
    "RecurringRuleConfig",
    "Reminder",
    "ReminderStatus",
    "Rule",
    "RuleConfig",
    "RuleType",
    "cooldown_key",
    "is_valid_date_pattern",
]
