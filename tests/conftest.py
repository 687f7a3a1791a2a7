from datetime import UTC, datetime, timedelta
from itertools import count

import pytest

from keepclos.features.relationships.domain.models import Contact, Interaction

FIXED_NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def make_contact():
    ids = count(1)

    def _make(**overrides):
        data = {
            "id": f"contact-{next(ids)}",
            "name": "Ada Lovelace",
            "tags": frozenset(),
            "notes": "",
            "last_contacted_at": None,
        }
        data.update(overrides)
        return Contact(**data)

    return _make


@pytest.fixture
def make_interaction():
    ids = count(1)

    def _make(days_ago: float = 0, reference: datetime = FIXED_NOW, **overrides):
        data = {
            "id": f"interaction-{next(ids)}",
            "contact_id": "contact-1",
            "type": "call",
            "timestamp": reference - timedelta(days=days_ago),
            "duration": None,
            "notes": None,
            "quality": None,
        }
        data.update(overrides)
        return Interaction(**data)

    return _make
