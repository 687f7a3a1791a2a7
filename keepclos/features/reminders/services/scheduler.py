"""
Reminder scheduler - periodically evaluates every enabled rule against every
contact and hands newly triggered reminders to a caller-supplied sink.

Duplicate suppression uses a cooldown keyed by ``"contact_id:rule_id"``.
The scheduler is a two-state machine (idle/running) driving one asyncio
task; cycles never overlap and each one works on the context snapshot it
started with.
"""

from __future__ import annotations

import asyncio
import dataclasses
import inspect
import uuid
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal

from keepclos.errors import InvalidParameterError
from keepclos.features.relationships.domain.models import (
    Contact,
    Interaction,
    RelationshipScore,
)
from keepclos.features.relationships.pipeline.scoring.decay import as_utc
from keepclos.features.relationships.pipeline.scoring.service import (
    RelationshipScorer,
    relationship_scorer,
)
from keepclos.features.reminders.domain.models import Reminder, Rule, cooldown_key
from keepclos.infrastructure.observability.logging import get_logger, log_evaluation_cycle

from .rule_engine import evaluate

logger = get_logger(__name__)

DEFAULT_COOLDOWN_HOURS = 24.0
DATE_RULE_LOOKAHEAD_YEARS = 8  # covers the gap between leap years

SchedulerState = Literal["idle", "running"]
ReminderSink = Callable[[list[Reminder]], Awaitable[None] | None]


@dataclass(frozen=True, slots=True)
class SchedulerConfig:
    evaluation_interval_ms: int = 5 * 60 * 1000
    batch_size: int = 100
    enable_logging: bool = False
    cooldown_hours: float = DEFAULT_COOLDOWN_HOURS

    def __post_init__(self) -> None:
        if self.evaluation_interval_ms <= 0:
            raise InvalidParameterError(
                "evaluation_interval_ms must be positive", parameter="evaluation_interval_ms"
            )
        if self.batch_size <= 0:
            raise InvalidParameterError("batch_size must be positive", parameter="batch_size")
        if self.cooldown_hours <= 0:
            raise InvalidParameterError(
                "cooldown_hours must be positive", parameter="cooldown_hours"
            )


@dataclass(frozen=True, slots=True)
class SchedulerContext:
    """Everything one evaluation cycle reads. Replaced wholesale, never mutated."""

    contacts: Sequence[Contact] = ()
    interactions: Mapping[str, Sequence[Interaction]] = field(default_factory=dict)
    rules: Sequence[Rule] = ()
    relationship_scores: Mapping[str, RelationshipScore] = field(default_factory=dict)
    existing_reminders: Mapping[str, Reminder] = field(default_factory=dict)


class EvaluationMetrics:
    """Metrics tracking for a single evaluation cycle."""

    def __init__(self):
        self.reset()

    def reset(self):
        """Reset all metrics for a new cycle."""
        self.start_time = datetime.now(UTC)
        self.contacts_evaluated = 0
        self.rules_evaluated = 0
        self.rules_gated = 0
        self.cooldown_suppressed = 0
        self.scores_computed = 0
        self.reminders_generated = 0
        self.contact_errors = 0
        self.cycle_error: str | None = None
        self.total_duration_seconds = 0.0
        self.errors: list[dict] = []

    def record_contact_error(self, contact_id: str, error: Exception):
        self.contact_errors += 1
        self.errors.append(
            {
                "contact_id": contact_id,
                "error": str(error),
                "error_type": type(error).__name__,
                "timestamp": datetime.now(UTC).isoformat(),
            }
        )

    def record_cycle_error(self, error: Exception):
        self.cycle_error = f"{type(error).__name__}: {error}"

    def finalize(self):
        self.total_duration_seconds = (datetime.now(UTC) - self.start_time).total_seconds()

    def to_dict(self) -> dict:
        return {
            "start_time": self.start_time.isoformat(),
            "total_duration_seconds": round(self.total_duration_seconds, 3),
            "contacts_evaluated": self.contacts_evaluated,
            "rules_evaluated": self.rules_evaluated,
            "rules_gated": self.rules_gated,
            "cooldown_suppressed": self.cooldown_suppressed,
            "scores_computed": self.scores_computed,
            "reminders_generated": self.reminders_generated,
            "contact_errors": self.contact_errors,
            "cycle_error": self.cycle_error,
            "errors": self.errors,
        }


def is_dismissed_or_old(
    reminder: Reminder, now: datetime | None = None, hours_old: float = DEFAULT_COOLDOWN_HOURS
) -> bool:
    """True when a prior reminder no longer blocks its rule from firing again."""
    if reminder.status == "dismissed":
        return True
    now = as_utc(now or datetime.now(UTC))
    age_hours = (now - as_utc(reminder.created_at)).total_seconds() / 3600
    return age_hours >= hours_old


def calculate_due_date(rule: Rule, now: datetime | None = None) -> datetime:
    """
    Due date for a freshly triggered reminder.

    Inactivity, recurring and decay reminders are due immediately. Date
    reminders are due on the next occurrence of their month/day, keeping the
    current time of day.
    """
    now = now or datetime.now(UTC)
    if rule.type != "date":
        return now

    month_day = rule.config.month_day()
    if month_day is None:
        return now
    month, day = month_day

    for year in range(now.year, now.year + DATE_RULE_LOOKAHEAD_YEARS + 1):
        try:
            candidate = now.replace(year=year, month=month, day=day)
        except ValueError:
            # e.g. 02-29 outside leap years, or 02-30 which never exists
            continue
        if candidate >= now:
            return candidate
    return now


def create_reminder(
    contact: Contact, rule: Rule, message: str, now: datetime | None = None
) -> Reminder:
    now = now or datetime.now(UTC)
    return Reminder(
        id=str(uuid.uuid4()),
        contact_id=contact.id,
        message=message,
        due_date=calculate_due_date(rule, now),
        status="pending",
        rule=rule,
        created_at=now,
        updated_at=now,
    )


def _current_score(
    contact: Contact,
    context: SchedulerContext,
    interactions: Sequence[Interaction],
    scorer: RelationshipScorer,
    now: datetime,
    metrics: EvaluationMetrics | None,
) -> float:
    score = context.relationship_scores.get(contact.id)
    if score is None:
        score = scorer.score(contact, interactions, now)
        if metrics is not None:
            metrics.scores_computed += 1
    return score.overall


def evaluate_contact(
    contact: Contact,
    context: SchedulerContext,
    now: datetime | None = None,
    *,
    cooldown_hours: float = DEFAULT_COOLDOWN_HOURS,
    scorer: RelationshipScorer | None = None,
    metrics: EvaluationMetrics | None = None,
) -> list[Reminder]:
    """
    Evaluate every enabled rule for one contact.

    Args:
        contact: Contact to evaluate
        context: Snapshot of contacts, interactions, rules, scores and recent reminders
        now: Reference time (defaults to the current time)
        cooldown_hours: How long a prior reminder blocks its rule for this contact
        scorer: Used when the context has no precomputed score for the contact
        metrics: Optional cycle metrics to update

    Returns:
        Newly triggered reminders (not yet persisted)
    """
    now = as_utc(now or datetime.now(UTC))
    scorer = scorer or relationship_scorer
    interactions = context.interactions.get(contact.id, [])
    current_score: float | None = None
    reminders: list[Reminder] = []

    for rule in context.rules:
        if not rule.enabled:
            continue

        recent = context.existing_reminders.get(cooldown_key(contact.id, rule.id))
        if recent is not None and not is_dismissed_or_old(recent, now, cooldown_hours):
            if metrics is not None:
                metrics.cooldown_suppressed += 1
            continue

        if current_score is None:
            current_score = _current_score(contact, context, interactions, scorer, now, metrics)

        result = evaluate(contact, rule, interactions, current_score, now)
        if metrics is not None:
            metrics.rules_evaluated += 1
            if result.skipped_reason:
                metrics.rules_gated += 1

        if result.triggered:
            reminders.append(create_reminder(contact, rule, result.message, now))

    return reminders


def evaluate_all_contacts(
    context: SchedulerContext,
    now: datetime | None = None,
    *,
    cooldown_hours: float = DEFAULT_COOLDOWN_HOURS,
    scorer: RelationshipScorer | None = None,
    metrics: EvaluationMetrics | None = None,
) -> list[Reminder]:
    """
    Evaluate every contact independently and concatenate the candidates.

    A contact whose evaluation raises is logged and skipped so the rest of
    the batch still gets evaluated.
    """
    now = as_utc(now or datetime.now(UTC))
    reminders: list[Reminder] = []

    for contact in context.contacts:
        try:
            found = evaluate_contact(
                contact,
                context,
                now,
                cooldown_hours=cooldown_hours,
                scorer=scorer,
                metrics=metrics,
            )
        except Exception as e:
            logger.warning(
                "Contact evaluation failed",
                contact_id=contact.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            if metrics is not None:
                metrics.record_contact_error(contact.id, e)
            continue

        if metrics is not None:
            metrics.contacts_evaluated += 1
            metrics.reminders_generated += len(found)
        reminders.extend(found)

    return reminders


def batch_contacts(contacts: Sequence[Contact], batch_size: int) -> list[list[Contact]]:
    """Split contacts into consecutive chunks of ``batch_size``."""
    if batch_size <= 0:
        raise InvalidParameterError("batch_size must be positive", parameter="batch_size")
    return [list(contacts[i : i + batch_size]) for i in range(0, len(contacts), batch_size)]


def with_reminders(context: SchedulerContext, reminders: Iterable[Reminder]) -> SchedulerContext:
    """New context whose cooldown lookup includes ``reminders``."""
    existing = dict(context.existing_reminders)
    for reminder in reminders:
        key = reminder.cooldown_key
        if key is not None:
            existing[key] = reminder
    return dataclasses.replace(context, existing_reminders=existing)


class ReminderScheduler:
    """
    Periodic reminder evaluation.

    ``start`` moves idle -> running, runs a cycle immediately and then one
    every ``evaluation_interval_ms``. ``stop`` moves running -> idle; a cycle
    already in flight is allowed to finish.
    """

    def __init__(
        self,
        context: SchedulerContext | None = None,
        config: SchedulerConfig | None = None,
        scorer: RelationshipScorer | None = None,
    ):
        self._context = context or SchedulerContext()
        self.config = config or SchedulerConfig()
        self._scorer = scorer or relationship_scorer
        self._state: SchedulerState = "idle"
        self._task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None
        self._cycle_in_progress = False
        self.last_run_time: datetime | None = None
        self.last_metrics: dict | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def context(self) -> SchedulerContext:
        return self._context

    def is_active(self) -> bool:
        return self._state == "running"

    def start(self, callback: ReminderSink) -> None:
        """
        Start periodic evaluation. No-op when already running.

        Must be called from inside a running event loop.
        """
        if self._state == "running":
            return

        loop = asyncio.get_running_loop()
        self._state = "running"
        self._stop_event = asyncio.Event()
        self._task = loop.create_task(self._run_loop(callback, self._stop_event))

        if self.config.enable_logging:
            logger.info(
                "Reminder scheduler started",
                interval_ms=self.config.evaluation_interval_ms,
                contacts=len(self._context.contacts),
                rules=len(self._context.rules),
            )

    def stop(self) -> None:
        """Stop scheduling future cycles. Does not interrupt a cycle in flight."""
        if self._stop_event is not None:
            self._stop_event.set()
        if self._state == "running" and self.config.enable_logging:
            logger.info("Reminder scheduler stopped")
        self._state = "idle"

    async def wait_stopped(self) -> None:
        """Wait until the loop task of the last ``start`` has exited."""
        if self._task is not None:
            await self._task

    def update_context(self, **changes) -> None:
        """Replace the context for the next cycle; a cycle in flight keeps its snapshot."""
        self._context = dataclasses.replace(self._context, **changes)

    def record_reminders(self, reminders: Iterable[Reminder]) -> None:
        """Add persisted reminders to the cooldown lookup for future cycles."""
        self._context = with_reminders(self._context, reminders)

    async def run_cycle(self, callback: ReminderSink) -> dict:
        """
        Run a single evaluation cycle.

        Returns:
            Dict: Cycle metrics, or a skip marker when a cycle is already in flight
        """
        if self._cycle_in_progress:
            if self.config.enable_logging:
                logger.warning("Reminder evaluation already running, skipping this cycle")
            return {"skipped": True, "reason": "already_running"}

        self._cycle_in_progress = True
        context = self._context
        metrics = EvaluationMetrics()
        try:
            reminders = evaluate_all_contacts(
                context,
                cooldown_hours=self.config.cooldown_hours,
                scorer=self._scorer,
                metrics=metrics,
            )
            if reminders:
                if self.config.enable_logging:
                    logger.info("Generated reminders", count=len(reminders))
                result = callback(reminders)
                if inspect.isawaitable(result):
                    await result
        except Exception as e:
            metrics.record_cycle_error(e)
            if self.config.enable_logging:
                logger.error(
                    "Reminder evaluation cycle failed", error=str(e), error_type=type(e).__name__
                )
        finally:
            metrics.finalize()
            self._cycle_in_progress = False
            self.last_run_time = datetime.now(UTC)

        summary = metrics.to_dict()
        self.last_metrics = summary
        if self.config.enable_logging:
            log_evaluation_cycle(summary)
        return summary

    async def _run_loop(self, callback: ReminderSink, stop_event: asyncio.Event) -> None:
        loop = asyncio.get_running_loop()
        interval = self.config.evaluation_interval_ms / 1000
        next_tick = loop.time()

        while not stop_event.is_set():
            await self.run_cycle(callback)
            if stop_event.is_set():
                break

            next_tick += interval
            now = loop.time()
            if now > next_tick:
                # Cycle overran the interval: drop the ticks it covered
                missed = int((now - next_tick) // interval) + 1
                next_tick += missed * interval
                if self.config.enable_logging:
                    logger.warning("Reminder evaluation overran its interval", skipped_ticks=missed)

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=next_tick - now)
            except TimeoutError:
                continue
