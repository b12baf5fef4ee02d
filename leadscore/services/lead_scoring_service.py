"""
Lead scoring service for the LeadScore system.
Single entry point for scoring, prioritization, reporting and engagement tracking.
"""

import logging
from datetime import datetime
from typing import Dict, Any, List, Optional, Callable, Union

from ..core.config_manager import ConfigManager, get_config
from ..data.data_loader import DataLoader
from ..data.data_validator import DataValidator
from ..data.models import (
    Contact, DealSizePotential, EngagementEvent, EngagementSummary, ScoreBreakdown,
    ScoreDistribution, ScoredLead, Temperature, utc_now
)
from ..data.repositories import ContactDirectory, DealDirectory, EngagementStore
from ..scoring.lead_scorer import LeadScorer
from ..scoring.prioritizer import LeadPrioritizer
from ..scoring.reporting import LeadReporter

logger = logging.getLogger(__name__)

SYSTEM_SOURCE = 'system'


class LeadScoringService:
    """
    High-level service that wires the scorer, prioritizer and reporter to the
    contact, deal and engagement repositories.
    """

    def __init__(self, contacts: ContactDirectory, deals: DealDirectory,
                 engagements: EngagementStore,
                 scoring_config: Optional[Dict[str, Any]] = None,
                 clock: Callable[[], datetime] = utc_now):
        """
        Initialize the service.

        Args:
            contacts: Contact directory
            deals: Deal directory
            engagements: Engagement store
            scoring_config: The 'scoring' section of the configuration
            clock: Current-time source for recency and score timestamps
        """
        self.contacts = contacts
        self.deals = deals
        self.engagements = engagements
        self.clock = clock

        self.lead_scorer = LeadScorer(engagements, deals, scoring_config, clock=clock)
        self.prioritizer = LeadPrioritizer(contacts, self.lead_scorer)
        self.reporter = LeadReporter(self.prioritizer, engagements)

    @classmethod
    def from_config(cls, config_manager: Optional[ConfigManager] = None,
                    data_path: Optional[str] = None) -> "LeadScoringService":
        """
        Build a service over in-memory repositories seeded from mock data.

        Args:
            config_manager: Configuration manager (defaults to the global one)
            data_path: Override for the mock data directory

        Returns:
            LeadScoringService instance
        """
        config = config_manager or get_config()
        scoring_config = config.get_scoring_config()

        loader = DataLoader(config.get_data_config(), DataValidator(scoring_config))
        repositories = loader.build_repositories(
            data_path=data_path,
            latency_ms=config.get('repositories.latency_ms', 0)
        )

        return cls(
            repositories.contacts,
            repositories.deals,
            repositories.engagements,
            scoring_config
        )

    # Scoring

    async def calculate_lead_score(self, contact_id: int) -> int:
        return await self.lead_scorer.calculate_lead_score(contact_id)

    async def explain_lead_score(self, contact_id: int) -> ScoreBreakdown:
        return await self.lead_scorer.explain_score(contact_id)

    def get_lead_temperature(self, score: float) -> Temperature:
        return self.lead_scorer.get_lead_temperature(score)

    def calculate_priority(self, score: float, temperature: Union[Temperature, str]) -> int:
        return self.lead_scorer.calculate_priority(score, temperature)

    async def get_deal_size_potential(self, contact_id: int) -> DealSizePotential:
        return await self.deals.deal_size_potential(contact_id)

    # Prioritization

    async def get_prioritized_leads(self) -> List[ScoredLead]:
        return await self.prioritizer.get_prioritized_leads()

    async def get_top_performing_leads(self, limit: int = 10) -> List[ScoredLead]:
        return await self.prioritizer.get_top_performing_leads(limit)

    async def refresh_contact_scores(self) -> List[ScoredLead]:
        return await self.prioritizer.refresh_contact_scores()

    # Reporting

    async def get_lead_score_distribution(self) -> ScoreDistribution:
        return await self.reporter.get_lead_score_distribution()

    async def get_engagement_summary(self, contact_id: int) -> EngagementSummary:
        return await self.reporter.get_engagement_summary(contact_id)

    async def generate_priority_report(self) -> Dict[str, Any]:
        leads = await self.prioritizer.get_prioritized_leads()
        return self.reporter.generate_priority_report(leads)

    async def export_prioritized_lists(self, output_dir: str) -> Dict[str, str]:
        leads = await self.prioritizer.get_prioritized_leads()
        return self.reporter.export_prioritized_lists(leads, output_dir)

    # Mutations

    async def track_engagement(self, contact_id: int, engagement_type: str,
                               details: Optional[Dict[str, Any]] = None) -> EngagementEvent:
        """
        Record an engagement event for a contact.

        Args:
            contact_id: Contact identifier
            engagement_type: Event type, e.g. 'email_open'
            details: Free-form event payload

        Returns:
            The stored event, with its new identifier and timestamp
        """
        event = await self.engagements.append(
            contact_id, engagement_type, details or {}, source=SYSTEM_SOURCE
        )
        logger.info(f"Tracked {engagement_type} for contact {contact_id} (engagement {event.id})")
        return event

    async def update_contact_score(self, contact_id: int, score: int,
                                   temperature: Optional[Union[Temperature, str]] = None) -> Contact:
        """
        Persist a score onto a contact together with its temperature.

        Args:
            contact_id: Contact identifier
            score: Lead score to store
            temperature: Optional temperature; derived from the score when omitted

        Returns:
            The updated contact

        Raises:
            ValueError: If the temperature disagrees with the score
            ContactNotFoundError: If the contact does not exist
        """
        expected = self.get_lead_temperature(score)
        if temperature is not None and Temperature(temperature) != expected:
            raise ValueError(
                f"Temperature '{Temperature(temperature).value}' does not match score {score} "
                f"(expected '{expected.value}')"
            )

        return await self.contacts.update(
            contact_id,
            lead_score=int(score),
            temperature=expected,
            last_score_update=self.clock()
        )
