from datetime import UTC, datetime, timedelta

import pytest

from keepclos.errors import InvalidRuleConfigError
from keepclos.features.reminders.domain.models import (
    DecayRuleConfig,
    InactivityRuleConfig,
    is_valid_date_pattern,
)
from keepclos.features.reminders.services.rule_engine import (
    create_rule,
    evaluate,
    evaluate_rule,
    generate_reminder_message,
)


def test_inactivity_rule_threshold(make_contact, now):
    rule = create_rule("inactivity", "Monthly", {"inactivity_days": 30})
    stale = make_contact(last_contacted_at=now - timedelta(days=31))
    fresh = make_contact(last_contacted_at=now - timedelta(days=29))

    assert evaluate_rule(stale, rule, [], 50, now) is True
    assert evaluate_rule(fresh, rule, [], 50, now) is False


def test_inactivity_rule_triggers_for_never_contacted(make_contact, now):
    rule = create_rule("inactivity", "Monthly", {"inactivity_days": 30})
    assert evaluate_rule(make_contact(), rule, [], 0, now) is True


def test_recurring_rule_prefers_latest_interaction(make_contact, make_interaction, now):
    rule = create_rule("recurring", "Fortnightly", {"recurring_days": 14})
    contact = make_contact(last_contacted_at=now - timedelta(days=40))

    assert evaluate_rule(contact, rule, [], 50, now) is True
    recent = [make_interaction(days_ago=30), make_interaction(days_ago=3)]
    assert evaluate_rule(contact, rule, recent, 50, now) is False


def test_recurring_rule_triggers_for_never_contacted(make_contact, make_interaction, now):
    rule = create_rule("recurring", "Fortnightly", {"recurring_days": 14})
    assert evaluate_rule(make_contact(), rule, [make_interaction(days_ago=1)], 50, now) is True


@pytest.mark.parametrize(
    "today, expected",
    [
        (datetime(2026, 6, 15, 8, 0, tzinfo=UTC), True),
        (datetime(2031, 6, 15, 23, 59, tzinfo=UTC), True),
        (datetime(2026, 6, 14, 12, 0, tzinfo=UTC), False),
        (datetime(2026, 7, 15, 12, 0, tzinfo=UTC), False),
    ],
)
def test_date_rule_matches_month_and_day(make_contact, today, expected):
    rule = create_rule("date", "Birthday", {"date_pattern": "06-15"})
    assert evaluate_rule(make_contact(), rule, [], 50, today) is expected


def test_date_rule_ignores_trailing_time(make_contact):
    rule = create_rule("date", "Anniversary", {"date_pattern": "06-15 09:30"})
    assert evaluate_rule(make_contact(), rule, [], 50, datetime(2027, 6, 15, tzinfo=UTC))


def test_date_rule_accepts_iso_style_time_suffix(make_contact):
    rule = create_rule("date", "Call at lunch", {"date_pattern": "06-15T09:30"})

    assert rule.config.month_day() == (6, 15)
    assert evaluate_rule(make_contact(), rule, [], 50, datetime(2027, 6, 15, tzinfo=UTC))


def test_decay_rule_is_strict(make_contact, now):
    rule = create_rule("decay", "Fading", {"score_threshold": 30})

    assert evaluate_rule(make_contact(), rule, [], 29, now) is True
    assert evaluate_rule(make_contact(), rule, [], 30, now) is False


def test_tag_gate_short_circuits(make_contact, now):
    rule = create_rule("decay", "Family", {"score_threshold": 50, "tags": ["family", "close"]})

    tagged = evaluate(make_contact(tags={"family", "school"}), rule, [], 10, now)
    untagged = evaluate(make_contact(tags={"work"}), rule, [], 10, now)

    assert tagged.triggered is True
    assert untagged.triggered is False
    assert untagged.skipped_reason == "tag_filter"


def test_min_score_gate(make_contact, now):
    rule = create_rule(
        "inactivity", "Strong ties", {"inactivity_days": 7, "min_relationship_score": 40}
    )
    contact = make_contact()

    assert evaluate_rule(contact, rule, [], 40, now) is True
    blocked = evaluate(contact, rule, [], 39.9, now)
    assert blocked.triggered is False
    assert blocked.skipped_reason == "min_relationship_score"


def test_triggered_evaluation_carries_message(make_contact, now):
    rule = create_rule("inactivity", "Monthly", {"inactivity_days": 30})

    result = evaluate(make_contact(name="Grace"), rule, [], 0, now)

    assert result.message == "Time to reach out to Grace! You haven't connected in 30 days."


def test_messages_per_rule_type(make_contact):
    contact = make_contact(name="Alan")

    recurring = create_rule("recurring", "r", {"recurring_days": 14})
    decay = create_rule("decay", "d", {"score_threshold": 25.5})
    date = create_rule("date", "d", {"date_pattern": "03-01"})

    assert generate_reminder_message(contact, recurring) == "Regular check-in with Alan (every 14 days)"
    assert "below 25.5" in generate_reminder_message(contact, decay)
    assert generate_reminder_message(contact, date) == "Scheduled reminder: Alan"


def test_birthday_flavored_date_message(make_contact):
    by_pattern = create_rule("date", "b", {"date_pattern": "03-01 birthday"})
    plain = create_rule("date", "b", {"date_pattern": "03-01"})

    assert generate_reminder_message(make_contact(name="Alan"), by_pattern) == "Birthday reminder: Alan!"
    noted = make_contact(name="Joan", notes="Her birthday is in March")
    assert generate_reminder_message(noted, plain) == "Birthday reminder: Joan!"


@pytest.mark.parametrize(
    "rule_type, config",
    [
        ("inactivity", {"inactivity_days": 0}),
        ("inactivity", {}),
        ("recurring", {"recurring_days": -3}),
        ("date", {"date_pattern": "13-01"}),
        ("date", {"date_pattern": "06-32"}),
        ("date", {"date_pattern": "June 15"}),
        ("date", {"date_pattern": "06-15-2020"}),
        ("date", {"date_pattern": "06-1509"}),
        ("date", {}),
        ("decay", {"score_threshold": 101}),
        ("decay", {"score_threshold": -1}),
        ("decay", {"score_threshold": 30, "min_relationship_score": 120}),
        ("decay", {"score_threshold": 30, "unexpected": True}),
    ],
)
def test_create_rule_rejects_invalid_config(rule_type, config):
    with pytest.raises(InvalidRuleConfigError) as exc_info:
        create_rule(rule_type, "bad", config)

    assert exc_info.value.rule_type == rule_type


def test_create_rule_rejects_unknown_type():
    with pytest.raises(InvalidRuleConfigError):
        create_rule("weekly", "bad", {})


def test_impossible_calendar_dates_pass_validation():
    assert is_valid_date_pattern("02-30")
    rule = create_rule("date", "Leap-ish", {"date_pattern": "02-30"})
    assert rule.type == "date"


def test_create_rule_accepts_config_model():
    rule = create_rule("decay", "Fading", DecayRuleConfig(score_threshold=20), rule_id="r-1")

    assert rule.id == "r-1"
    assert rule.enabled is True
    assert rule.config.score_threshold == 20


def test_create_rule_rejects_mismatched_config_model():
    with pytest.raises(InvalidRuleConfigError):
        create_rule("decay", "Wrong", InactivityRuleConfig(inactivity_days=3))
