"""
Portfolio summaries over a set of relationship scores.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from keepclos.features.relationships.domain.models import (
    Contact,
    Interaction,
    RelationshipGraph,
    RelationshipScore,
    TrendBreakdown,
)

AT_RISK_THRESHOLD = 30.0
STRONG_THRESHOLD = 80.0
GOOD_THRESHOLD = 60.0


def summarize_relationships(
    contacts: Iterable[Contact],
    scores: Iterable[RelationshipScore],
    interactions_by_contact: Mapping[str, Sequence[Interaction]],
) -> RelationshipGraph:
    """
    Build the relationship graph view: contacts are nodes, interactions are edges.

    Scores whose contact is not in ``contacts`` still count toward the
    aggregates but are left out of the at-risk and strong lists.
    """
    contacts_by_id = {contact.id: contact for contact in contacts}
    score_list = list(scores)
    overall = [score.overall for score in score_list]

    at_risk = [
        contacts_by_id[score.contact_id]
        for score in score_list
        if score.overall < AT_RISK_THRESHOLD and score.contact_id in contacts_by_id
    ]
    strong = [
        contacts_by_id[score.contact_id]
        for score in score_list
        if score.overall > STRONG_THRESHOLD and score.contact_id in contacts_by_id
    ]

    return RelationshipGraph(
        node_count=len(contacts_by_id),
        edge_count=sum(len(items) for items in interactions_by_contact.values()),
        avg_score=sum(overall) / len(overall) if overall else 0.0,
        highest_score=max(overall) if overall else 0.0,
        lowest_score=min(overall) if overall else 0.0,
        at_risk_contacts=at_risk,
        strong_relationships=strong,
    )


def trend_breakdown(scores: Iterable[RelationshipScore]) -> TrendBreakdown:
    breakdown = TrendBreakdown()
    for score in scores:
        breakdown.total += 1
        if score.trend == "improving":
            breakdown.improving += 1
        elif score.trend == "declining":
            breakdown.declining += 1
        else:
            breakdown.stable += 1

        if score.overall >= STRONG_THRESHOLD:
            breakdown.excellent += 1
        elif score.overall >= GOOD_THRESHOLD:
            breakdown.good += 1
        elif score.overall >= AT_RISK_THRESHOLD:
            breakdown.fair += 1
        else:
            breakdown.at_risk += 1
    return breakdown
