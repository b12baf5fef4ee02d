"""Tests for aggregation reporting."""

import pandas as pd
import pytest

from leadscore.data.models import Contact

from .conftest import days_ago, make_service


class TestLeadScoreDistribution:
    """Tests for get_lead_score_distribution."""

    @pytest.mark.asyncio
    async def test_counts_and_average(self, service, contacts):
        distribution = await service.get_lead_score_distribution()

        assert distribution.hot == 1
        assert distribution.warm == 1
        assert distribution.cold == 2
        assert distribution.total == len(contacts)
        assert distribution.average_score == pytest.approx((115 + 78 + 40 + 3) / 4)

    @pytest.mark.asyncio
    async def test_zero_contacts_average_is_zero(self):
        distribution = await make_service().get_lead_score_distribution()

        assert distribution.total == 0
        assert distribution.average_score == 0.0

    @pytest.mark.asyncio
    async def test_average_covers_every_lead(self):
        contacts = [Contact(id=i, name=f"Contact {i}") for i in range(1, 6)]
        distribution = await make_service(contacts=contacts).get_lead_score_distribution()

        assert distribution.cold == 5
        assert distribution.average_score == pytest.approx(3.0)


class TestEngagementSummary:

    @pytest.mark.asyncio
    async def test_summary_counts_by_type(self, service):
        summary = await service.get_engagement_summary(1)

        assert summary.total_engagements == 4
        assert summary.email_opens == 2
        assert summary.website_visits == 1
        assert summary.form_submissions == 1
        assert summary.last_engagement == days_ago(1)

    @pytest.mark.asyncio
    async def test_summary_without_events(self, service):
        summary = await service.get_engagement_summary(3)

        assert summary.total_engagements == 0
        assert summary.last_engagement is None
        assert summary.to_dict()['last_engagement'] is None


class TestPriorityReport:

    @pytest.mark.asyncio
    async def test_report_structure(self, service):
        report = await service.generate_priority_report()

        assert report['total_leads'] == 4
        assert report['temperature_distribution']['counts'] == {'hot': 1, 'warm': 1, 'cold': 2}
        assert report['temperature_distribution']['percentages']['cold'] == 50.0
        assert report['score_statistics']['cold']['max'] == 40.0
        assert report['top_leads_by_temperature']['hot'][0]['id'] == 1
        assert report['summary']['max_score'] == 115
        assert report['summary']['average_score'] == pytest.approx(59.0)

    @pytest.mark.asyncio
    async def test_empty_report(self):
        report = await make_service().generate_priority_report()

        assert report['total_leads'] == 0
        assert report['temperature_distribution']['counts'] == {'hot': 0, 'warm': 0, 'cold': 0}
        assert report['summary']['average_score'] == 0.0


class TestExportPrioritizedLists:

    @pytest.mark.asyncio
    async def test_one_csv_per_non_empty_temperature(self, service, tmp_path):
        file_paths = await service.export_prioritized_lists(str(tmp_path / "lists"))

        assert set(file_paths) == {'hot', 'warm', 'cold'}

        cold = pd.read_csv(file_paths['cold'])
        assert cold['id'].tolist() == [4, 3]
        assert cold['score'].tolist() == [40, 3]
        assert (cold['priority'] == 3).all()

    @pytest.mark.asyncio
    async def test_empty_temperatures_are_skipped(self, tmp_path):
        contacts = [Contact(id=1, name="Cold One")]
        file_paths = await make_service(contacts=contacts).export_prioritized_lists(str(tmp_path))

        assert list(file_paths) == ['cold']
        assert (tmp_path / "cold_leads.csv").exists()
        assert not (tmp_path / "hot_leads.csv").exists()
