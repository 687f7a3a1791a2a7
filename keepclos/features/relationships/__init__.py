"""
Relationships feature package.

Keeps the contact/interaction domain records and the scoring pipeline
co-located so the reminder feature depends on one import surface.
"""

from .domain.models import Contact, Interaction, RelationshipScore  # noqa: F401
from .pipeline.scoring import RelationshipScorer, relationship_scorer  # noqa: F401
