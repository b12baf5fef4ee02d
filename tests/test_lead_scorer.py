"""Tests for the lead score calculator."""

import logging
from datetime import timedelta

import pytest

from leadscore.core.exceptions import DependencyFailure, PrioritizationError
from leadscore.data.repositories import DealDirectory, InMemoryEngagementStore
from leadscore.scoring.lead_scorer import LeadScorer, round_half_up

from .conftest import NOW, days_ago, fixed_clock, make_event, make_service


class FailingDealDirectory(DealDirectory):
    """Deal directory whose reads always fail."""

    async def list_by_contact(self, contact_id):
        raise DependencyFailure("deal directory")

    async def list_all(self):
        raise DependencyFailure("deal directory")


class BrokenDealDirectory(DealDirectory):
    """Deal directory with a programming error rather than an outage."""

    async def list_by_contact(self, contact_id):
        raise RuntimeError("unexpected deal payload")

    async def list_all(self):
        return []


class TestCalculateLeadScore:
    """Tests for LeadScorer.calculate_lead_score."""

    @pytest.mark.asyncio
    async def test_no_engagement_and_no_deals_scores_default_deal_size(self):
        """A contact with nothing scores round(25000 * 0.0001) = 3 and is cold."""
        service = make_service()
        score = await service.calculate_lead_score(42)
        assert score == 3
        assert service.get_lead_temperature(score).value == "cold"

    @pytest.mark.asyncio
    async def test_example_scenario(self, service):
        """2 opens, 1 visit, 1 form, $50k average deal, recent, 3 days -> 115."""
        breakdown = await service.explain_lead_score(1)

        assert breakdown.email_open_score == 20
        assert breakdown.website_visit_score == 15
        assert breakdown.form_submission_score == 25
        assert breakdown.deal_size_score == pytest.approx(5)
        assert breakdown.recency_bonus == 20
        assert breakdown.frequency_bonus == 30
        assert breakdown.total == 115

        temperature = service.get_lead_temperature(breakdown.total)
        assert temperature.value == "hot"
        assert service.calculate_priority(breakdown.total, temperature) == 1

    @pytest.mark.asyncio
    async def test_recency_bonus_applied_once(self):
        """Many recent events still earn a single recency bonus."""
        events = [make_event(i, 1, "page_view", days_ago(0.1 * i)) for i in range(1, 6)]
        service = make_service(events=events)

        breakdown = await service.explain_lead_score(1)

        assert breakdown.recency_bonus == 20
        assert breakdown.total == 23

    @pytest.mark.asyncio
    async def test_recency_boundary_is_inclusive(self):
        """An event exactly 7 days old is recent; a second older is not."""
        on_boundary = make_service(events=[make_event(1, 1, "email_open", NOW - timedelta(days=7))])
        past_boundary = make_service(
            events=[make_event(1, 1, "email_open", NOW - timedelta(days=7, seconds=1))]
        )

        assert (await on_boundary.explain_lead_score(1)).recency_bonus == 20
        assert (await past_boundary.explain_lead_score(1)).recency_bonus == 0

    @pytest.mark.asyncio
    async def test_recency_uses_fractional_days(self):
        """7.5 days ago is outside the window even though it truncates to 7."""
        service = make_service(events=[make_event(1, 1, "email_open", days_ago(7.5))])
        assert (await service.explain_lead_score(1)).recency_bonus == 0

    @pytest.mark.asyncio
    async def test_frequency_requires_distinct_days(self):
        """Five events on one calendar day do not earn the frequency bonus."""
        same_day = NOW.replace(hour=1)
        events = [make_event(i, 1, "email_open", same_day + timedelta(minutes=i)) for i in range(1, 6)]
        service = make_service(events=events)

        breakdown = await service.explain_lead_score(1)

        assert breakdown.frequency_bonus == 0
        assert breakdown.total == 50 + 3 + 20

    @pytest.mark.asyncio
    async def test_frequency_bonus_for_three_distinct_days(self):
        """Three events on three distinct days earn the frequency bonus."""
        events = [make_event(i, 1, "email_open", days_ago(10 + i)) for i in range(1, 4)]
        service = make_service(events=events)

        breakdown = await service.explain_lead_score(1)

        assert breakdown.frequency_bonus == 30
        assert breakdown.recency_bonus == 0
        assert breakdown.total == 30 + 3 + 30

    @pytest.mark.asyncio
    async def test_form_submission_never_decreases_score(self, events, deals):
        """Adding a form submission raises the score by its weight."""
        before = await make_service(deals=deals, events=events).calculate_lead_score(2)

        extra = make_event(99, 2, "form_submission", days_ago(30))
        after = await make_service(deals=deals, events=events + [extra]).calculate_lead_score(2)

        assert after >= before
        assert after - before == 25

    @pytest.mark.asyncio
    async def test_unknown_engagement_type_carries_no_weight(self):
        """Extensible types count toward recency and frequency but add no weight."""
        service = make_service(events=[make_event(1, 1, "webinar_attendance", days_ago(40))])
        breakdown = await service.explain_lead_score(1)

        assert breakdown.email_open_score == 0
        assert breakdown.website_visit_score == 0
        assert breakdown.form_submission_score == 0
        assert breakdown.total == 3

    @pytest.mark.asyncio
    async def test_deal_directory_failure_drops_deal_term(self, events, caplog):
        """A failing deal read contributes 0 and is logged, not raised."""
        service = make_service(events=events, deal_directory=FailingDealDirectory())

        with caplog.at_level(logging.WARNING, logger="leadscore.scoring.lead_scorer"):
            breakdown = await service.explain_lead_score(1)

        assert breakdown.deal_size_score == 0
        assert breakdown.total == 110
        assert "deal size score" in caplog.text

    @pytest.mark.asyncio
    async def test_other_deal_directory_errors_propagate(self, contacts, events):
        """Only an unavailable deal directory is recovered; other errors fail the pass."""
        service = make_service(contacts, events=events, deal_directory=BrokenDealDirectory())

        with pytest.raises(RuntimeError):
            await service.explain_lead_score(1)
        with pytest.raises(PrioritizationError):
            await service.get_prioritized_leads()

    @pytest.mark.asyncio
    async def test_total_is_rounded_sum_of_terms(self, service):
        breakdown = await service.explain_lead_score(2)

        assert breakdown.raw_total == pytest.approx(77.5)
        assert breakdown.total == round_half_up(breakdown.raw_total) == 78

    @pytest.mark.asyncio
    async def test_average_deal_value_is_used(self, deals):
        """Deal size is the mean of the contact's deal values."""
        service = make_service(deals=deals)
        breakdown = await service.explain_lead_score(1)
        assert breakdown.deal_size_score == pytest.approx(5.0)

    @pytest.mark.asyncio
    async def test_weights_come_from_configuration(self, events):
        """Configured weights override the defaults."""
        service = make_service(
            events=events,
            scoring_config={'weights': {'email_opens': 100, 'recency': 0, 'frequency': 0}}
        )
        breakdown = await service.explain_lead_score(4)
        assert breakdown.email_open_score == 100
        assert breakdown.total == 103


class TestRounding:
    """Scores round halves upward."""

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(77.5) == 78
        assert round_half_up(2.49) == 2
        assert round_half_up(0) == 0


class TestScorerConfiguration:

    def test_scoring_info_reports_defaults(self):
        scorer = LeadScorer(InMemoryEngagementStore(), FailingDealDirectory(), clock=fixed_clock)
        info = scorer.get_scoring_info()

        assert info['weights']['form_submissions'] == 25
        assert info['thresholds'] == {'hot': 80, 'warm': 50}
        assert info['recency_days'] == 7
        assert info['frequency_min_days'] == 3
        assert info['default_deal_size'] == 25000
