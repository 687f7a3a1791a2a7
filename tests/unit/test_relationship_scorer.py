from datetime import timedelta

import pytest

from keepclos.errors import InvalidParameterError
from keepclos.features.relationships.pipeline.scoring.service import (
    RelationshipScorer,
    ScorerConfig,
    calculate_engagement_score,
    calculate_frequency_score,
    calculate_recency_score,
    calculate_relationship_score,
    calculate_relationship_scores_batch,
    calculate_trend,
    combine_scores,
)


def test_recency_is_zero_without_contact_history(make_contact, now):
    assert calculate_recency_score(make_contact(), 30, now) == 0


def test_recency_decays_from_last_contact(make_contact, now):
    contact = make_contact(last_contacted_at=now - timedelta(days=30))
    assert calculate_recency_score(contact, 30, now) == pytest.approx(50)


def test_frequency_score(make_interaction):
    assert calculate_frequency_score([], 90) == 0
    nine = [make_interaction(days_ago=d) for d in range(9)]
    assert calculate_frequency_score(nine, 90) == pytest.approx(100)
    three = nine[:3]
    assert calculate_frequency_score(three, 90) == pytest.approx(100 / 3)


def test_engagement_averages_quality(make_interaction):
    interactions = [make_interaction(quality=90), make_interaction(quality=50)]

    assert calculate_engagement_score([]) == 0
    assert calculate_engagement_score(interactions) == pytest.approx(70)


def test_engagement_extracts_missing_quality(make_interaction):
    interactions = [make_interaction(type="meeting"), make_interaction(quality=40)]
    assert calculate_engagement_score(interactions) == pytest.approx(60)


@pytest.mark.parametrize(
    "weights",
    [(0.4, 0.3, 0.3), (1, 1, 1), (0, 0, 5), (10, 0, 1)],
)
def test_combine_scores_is_bounded_and_scale_invariant(weights):
    config = ScorerConfig(*weights)
    scaled = ScorerConfig(*(w * 7 for w in weights))

    combined = combine_scores(100, 40, 10, config)

    assert 0 <= combined <= 100
    assert combine_scores(100, 40, 10, scaled) == pytest.approx(combined)


def test_combine_scores_uses_normalized_default_weights():
    assert combine_scores(100, 0, 0) == pytest.approx(40)
    assert combine_scores(100, 100, 100) == pytest.approx(100)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"recency_weight": -0.1},
        {"recency_weight": 0, "frequency_weight": 0, "engagement_weight": 0},
        {"half_life": 0},
        {"frequency_window": -5},
    ],
)
def test_invalid_scorer_config_fails_fast(kwargs):
    with pytest.raises(InvalidParameterError):
        ScorerConfig(**kwargs)


def test_trend_improving_without_older_interactions(make_interaction, now):
    interactions = [make_interaction(days_ago=d) for d in (1, 2, 3, 4, 5)]
    assert calculate_trend(interactions, now) == "improving"
    assert calculate_trend([], now) == "improving"


def test_trend_classification(make_interaction, now):
    def history(recent, older):
        return [make_interaction(days_ago=10) for _ in range(recent)] + [
            make_interaction(days_ago=60) for _ in range(older)
        ]

    assert calculate_trend(history(3, 2), now) == "improving"
    assert calculate_trend(history(2, 2), now) == "stable"
    assert calculate_trend(history(1, 2), now) == "declining"


def test_trend_cutoff_counts_as_older(make_interaction, now):
    on_cutoff = make_interaction(days_ago=45)
    recent = make_interaction(days_ago=1)

    # 1 recent vs 1 older: ratio 1.0
    assert calculate_trend([on_cutoff, recent], now) == "stable"


def test_calculate_relationship_score(make_contact, make_interaction, now):
    contact = make_contact(id="contact-1", last_contacted_at=now)
    interactions = [
        make_interaction(days_ago=5, quality=80),
        make_interaction(days_ago=20, quality=60),
        make_interaction(days_ago=200, quality=10),
    ]

    score = calculate_relationship_score(contact, interactions, now=now)

    assert score.contact_id == "contact-1"
    assert score.recency == 100
    # only two interactions fall inside the 90-day window
    assert score.frequency == pytest.approx(2 / 90 * 1000)
    # engagement uses the full history
    assert score.engagement == pytest.approx(50)
    assert score.overall == pytest.approx(0.4 * 100 + 0.3 * (2 / 90 * 1000) + 0.3 * 50)
    assert score.trend == "improving"
    assert score.last_updated == now


def test_never_contacted_contact_scores_zero(make_contact, now):
    score = calculate_relationship_score(make_contact(), [], now=now)

    assert score.overall == 0
    assert score.trend == "improving"


def test_batch_defaults_missing_interactions(make_contact, make_interaction, now):
    first = make_contact(id="a", last_contacted_at=now)
    second = make_contact(id="b")
    history = {"a": [make_interaction(contact_id="a", quality=70)]}

    scores = calculate_relationship_scores_batch([first, second], history, now=now)

    assert [s.contact_id for s in scores] == ["a", "b"]
    assert scores[0].engagement == pytest.approx(70)
    assert scores[1].overall == 0


def test_scorer_service_keys_scores_by_contact(make_contact, now):
    scorer = RelationshipScorer(ScorerConfig(recency_weight=1, frequency_weight=0, engagement_weight=0))
    contact = make_contact(id="a", last_contacted_at=now - timedelta(days=30))

    scores = scorer.score_all([contact], {}, now=now)

    assert scores["a"].overall == pytest.approx(50)


def test_engagement_is_floored_at_zero(make_interaction):
    interactions = [make_interaction(quality=-80), make_interaction(quality=20)]
    assert calculate_engagement_score(interactions) == 0


def test_naive_reference_time_is_treated_as_utc(make_contact, make_interaction, now):
    naive_now = now.replace(tzinfo=None)
    contact = make_contact(id="contact-1", last_contacted_at=naive_now - timedelta(days=30))
    interactions = [make_interaction(days_ago=5), make_interaction(days_ago=60, reference=naive_now)]

    score = calculate_relationship_score(contact, interactions, now=naive_now)
    expected = calculate_relationship_score(contact, interactions, now=now)

    assert score.overall == pytest.approx(expected.overall)
    assert score.frequency == pytest.approx(2 / 90 * 1000)
    assert score.last_updated == now
    assert calculate_trend(interactions, naive_now) == "stable"
