"""
Reminders feature package.

Rule definitions, the rule engine that evaluates them against scored
contacts, and the periodic scheduler that emits reminder candidates.
"""

# Re-export the primary building blocks for easy access.
from .domain.models import Reminder, Rule  # noqa: F401
from .services.rule_engine import create_rule, evaluate_rule  # noqa: F401
from .services.scheduler import ReminderScheduler, SchedulerContext  # noqa: F401
