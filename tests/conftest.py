"""
Shared fixtures: in-memory repositories with zero latency and a fixed clock.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from leadscore.data.models import Contact, Deal, EngagementEvent
from leadscore.data.repositories import (
    InMemoryContactDirectory, InMemoryDealDirectory, InMemoryEngagementStore
)
from leadscore.services.lead_scoring_service import LeadScoringService

PROJECT_ROOT = Path(__file__).parent.parent
MOCK_DATA_DIR = PROJECT_ROOT / "data" / "mock"
CONFIG_DIR = PROJECT_ROOT / "config"

NOW = datetime(2024, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return NOW


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


def make_event(event_id: int, contact_id: int, event_type: str, timestamp: datetime) -> EngagementEvent:
    return EngagementEvent(id=event_id, contact_id=contact_id, type=event_type, timestamp=timestamp)


def make_service(contacts=(), deals=(), events=(), scoring_config=None,
                 engagements=None, deal_directory=None) -> LeadScoringService:
    return LeadScoringService(
        InMemoryContactDirectory(contacts),
        deal_directory or InMemoryDealDirectory(deals),
        engagements or InMemoryEngagementStore(events, clock=fixed_clock),
        scoring_config,
        clock=fixed_clock
    )


@pytest.fixture
def contacts():
    """Four contacts whose live scores are 115 (hot), 78 (warm), 3 (cold) and 40 (cold)."""
    return [
        Contact(id=1, name="Alice Morgan", company="Acme Corp", lead_score=20, temperature="cold"),
        Contact(id=2, name="Bob Lee", company="Globex"),
        Contact(id=3, name="Carol Diaz", company="Initech"),
        Contact(id=4, name="Dan Wu", company="Umbrella"),
    ]


@pytest.fixture
def deals():
    return [
        Deal(id=1, contact_id=1, value=40000),
        Deal(id=2, contact_id=1, value=60000),
        Deal(id=3, contact_id=4, value=100000),
    ]


@pytest.fixture
def events():
    return [
        # Alice: 2 opens, 1 visit, 1 form, all recent, across 3 distinct days
        make_event(1, 1, "email_open", days_ago(1)),
        make_event(2, 1, "email_open", days_ago(2)),
        make_event(3, 1, "website_visit", days_ago(3)),
        make_event(4, 1, "form_submission", days_ago(3)),
        # Bob: 3 forms on one day, a month ago
        make_event(5, 2, "form_submission", days_ago(30)),
        make_event(6, 2, "form_submission", days_ago(30)),
        make_event(7, 2, "form_submission", days_ago(30)),
        # Dan: one recent open
        make_event(8, 4, "email_open", days_ago(2)),
    ]


@pytest.fixture
def service(contacts, deals, events):
    return make_service(contacts, deals, events)
