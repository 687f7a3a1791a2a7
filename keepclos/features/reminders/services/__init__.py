"""
Service layer for the reminders feature.
"""

from .rule_engine import create_rule, evaluate, evaluate_rule, generate_reminder_message
from .scheduler import (
    EvaluationMetrics,
    ReminderScheduler,
    SchedulerConfig,
    SchedulerContext,
    batch_contacts,
    evaluate_all_contacts,
    evaluate_contact,
)

__all__ = [
    "EvaluationMetrics",
    "ReminderScheduler",
    "SchedulerConfig",
    "SchedulerContext",
    "batch_contacts",
    "create_rule",
    "evaluate",
    "evaluate_all_contacts",
    "evaluate_contact",
    "evaluate_rule",
    "generate_reminder_message",
]
