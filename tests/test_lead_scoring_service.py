"""Tests for engagement tracking and score persistence on the service."""

import pytest

from leadscore.core.exceptions import ContactNotFoundError
from leadscore.data.models import Temperature
from leadscore.data.repositories import InMemoryDealDirectory

from .conftest import NOW, days_ago, make_event, make_service


class TestTrackEngagement:
    """Tests for LeadScoringService.track_engagement."""

    @pytest.mark.asyncio
    async def test_assigns_next_identifier(self, service, events):
        event = await service.track_engagement(3, "website_visit", {"page": "/pricing"})

        assert event.id > max(e.id for e in events)
        assert event.id == 9
        assert event.contact_id == 3
        assert event.type == "website_visit"
        assert event.details == {"page": "/pricing"}
        assert event.source == "system"
        assert event.timestamp == NOW

    @pytest.mark.asyncio
    async def test_identifiers_keep_increasing(self, service):
        first = await service.track_engagement(1, "email_open")
        second = await service.track_engagement(2, "email_open")
        assert second.id == first.id + 1

    @pytest.mark.asyncio
    async def test_identifier_follows_maximum_not_count(self):
        service = make_service(events=[make_event(50, 1, "email_open", days_ago(3))])

        event = await service.track_engagement(1, "email_open")
        assert event.id == 51

    @pytest.mark.asyncio
    async def test_first_event_in_empty_store(self):
        event = await make_service().track_engagement(1, "email_open")
        assert event.id == 1

    @pytest.mark.asyncio
    async def test_tracked_event_affects_live_score(self, service):
        before = await service.calculate_lead_score(3)
        await service.track_engagement(3, "form_submission")
        after = await service.calculate_lead_score(3)

        # form weight plus the recency bonus for an event tracked now
        assert after == before + 25 + 20

    @pytest.mark.asyncio
    async def test_details_default_to_empty(self, service):
        event = await service.track_engagement(1, "email_open")
        assert event.details == {}


class TestUpdateContactScore:
    """Tests for LeadScoringService.update_contact_score."""

    @pytest.mark.asyncio
    async def test_persists_score_temperature_and_timestamp(self, service):
        contact = await service.update_contact_score(2, 78, "warm")

        assert contact.lead_score == 78
        assert contact.temperature == Temperature.WARM
        assert contact.last_score_update == NOW
        assert (await service.contacts.get(2)).lead_score == 78

    @pytest.mark.asyncio
    async def test_temperature_derived_when_omitted(self, service):
        contact = await service.update_contact_score(3, 92)
        assert contact.temperature == Temperature.HOT

    @pytest.mark.asyncio
    async def test_inconsistent_temperature_rejected(self, service):
        with pytest.raises(ValueError):
            await service.update_contact_score(3, 92, Temperature.COLD)

        contact = await service.contacts.get(3)
        assert contact.lead_score == 0

    @pytest.mark.asyncio
    async def test_unknown_contact(self, service):
        with pytest.raises(ContactNotFoundError) as exc_info:
            await service.update_contact_score(404, 10)
        assert exc_info.value.contact_id == 404

    @pytest.mark.asyncio
    async def test_last_write_wins(self, service):
        await service.update_contact_score(1, 10)
        await service.update_contact_score(1, 85)
        contact = await service.contacts.get(1)
        assert contact.lead_score == 85
        assert contact.temperature == Temperature.HOT


class TestDealSizePotential:

    @pytest.mark.asyncio
    async def test_potential_for_contact_with_deals(self, service):
        potential = await service.get_deal_size_potential(1)

        assert potential.avg_deal_size == 50000
        assert potential.max_deal_size == 60000
        assert potential.potential_value == pytest.approx(60000)

    @pytest.mark.asyncio
    async def test_default_potential_without_deals(self):
        potential = await InMemoryDealDirectory().deal_size_potential(7)

        assert potential.avg_deal_size == 25000
        assert potential.potential_value == 25000
        assert potential.max_deal_size is None
