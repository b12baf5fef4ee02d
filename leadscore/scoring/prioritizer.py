"""
Prioritization module for the LeadScore engine.
Scores every contact in the directory concurrently and ranks the results.
"""

import asyncio
import time
from typing import List
import logging

from ..core.exceptions import PrioritizationError
from ..data.models import Contact, ScoredLead
from ..data.repositories import ContactDirectory
from .lead_scorer import LeadScorer

logger = logging.getLogger(__name__)


class LeadPrioritizer:
    """
    Ranks all contacts by live lead score.

    Every contact is scored, including contacts with no engagement. A pass is
    all-or-nothing: if any contact fails to score, the whole pass fails.
    """

    def __init__(self, contacts: ContactDirectory, lead_scorer: LeadScorer):
        """
        Initialize LeadPrioritizer.

        Args:
            contacts: Contact directory to rank
            lead_scorer: Scorer used for each contact
        """
        self.contacts = contacts
        self.lead_scorer = lead_scorer

    async def _score_contact(self, contact: Contact) -> ScoredLead:
        score = await self.lead_scorer.calculate_lead_score(contact.id)
        temperature = self.lead_scorer.get_lead_temperature(score)
        return ScoredLead(
            contact=contact,
            score=score,
            temperature=temperature,
            priority=self.lead_scorer.calculate_priority(score, temperature)
        )

    async def get_prioritized_leads(self) -> List[ScoredLead]:
        """
        Score, classify and rank every contact.

        Contacts are scored concurrently; the result is sorted by score
        descending only (the priority tier is attached, not sorted on), and the
        sort is stable so ties keep directory order.

        Returns:
            One ScoredLead per contact, highest score first

        Raises:
            PrioritizationError: If the directory cannot be read or any contact fails to score
        """
        start_time = time.time()

        try:
            contacts = await self.contacts.list_all()
            scored_leads = await asyncio.gather(
                *(self._score_contact(contact) for contact in contacts)
            )
        except Exception as e:
            logger.error(f"Lead prioritization failed: {str(e)}")
            raise PrioritizationError() from e

        ranked = sorted(scored_leads, key=lambda lead: lead.score, reverse=True)

        logger.info(
            f"Prioritized {len(ranked)} leads in {time.time() - start_time:.3f}s"
        )
        return ranked

    async def get_top_performing_leads(self, limit: int = 10) -> List[ScoredLead]:
        """
        Get the highest scoring leads.

        Args:
            limit: Maximum number of leads to return

        Returns:
            The first ``limit`` entries of the full ranking
        """
        if limit < 0:
            raise ValueError("limit must be non-negative")

        prioritized_leads = await self.get_prioritized_leads()
        return prioritized_leads[:limit]

    async def refresh_contact_scores(self) -> List[ScoredLead]:
        """
        Recompute every score and persist it onto the contact directory.

        This is the only path that writes live scores back to contacts; plain
        prioritization never does.

        Returns:
            The ranked leads that were persisted
        """
        leads = await self.get_prioritized_leads()
        updated_at = self.lead_scorer.clock()

        for lead in leads:
            await self.contacts.update(
                lead.contact_id,
                lead_score=lead.score,
                temperature=lead.temperature,
                last_score_update=updated_at
            )

        logger.info(f"Persisted scores for {len(leads)} contacts")
        return leads
