"""
Lead scoring engine for the LeadScore system.
Turns a contact's engagement history and deal history into a numeric score.
"""

import math
from dataclasses import replace
from collections import Counter
from datetime import datetime
from typing import Dict, Any, Optional, Callable, List
import logging

from ..core.exceptions import DependencyFailure
from ..data.models import (
    EngagementEvent, EngagementType, ScoreBreakdown, Temperature, utc_now
)
from ..data.repositories import DealDirectory, EngagementStore
from .temperature import DEFAULT_THRESHOLDS, calculate_priority, classify_temperature, validate_thresholds

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 60 * 60 * 24

DEFAULT_WEIGHTS = {
    'email_opens': 10,
    'website_visits': 15,
    'form_submissions': 25,
    'deal_size': 0.0001,
    'recency': 20,
    'frequency': 30
}


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves upward (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


class LeadScorer:
    """
    Weighted-sum lead scorer.

    A score is built from engagement counts per type, the average value of the
    contact's deals, a one-off recency bonus for activity inside the recency
    window, and a one-off frequency bonus for activity on enough distinct days.
    """

    def __init__(self, engagements: EngagementStore, deals: DealDirectory,
                 config: Optional[Dict[str, Any]] = None,
                 clock: Callable[[], datetime] = utc_now):
        """
        Initialize LeadScorer.

        Args:
            engagements: Engagement store to read events from
            deals: Deal directory to read deal values from
            config: Scoring configuration (weights, thresholds, windows)
            clock: Returns the current time; recency is measured against it
        """
        self.config = config or {}
        self.engagements = engagements
        self.deals = deals
        self.clock = clock

        self.weights = dict(DEFAULT_WEIGHTS)
        self.weights.update(self.config.get('weights', {}))
        self.thresholds = validate_thresholds(
            {**DEFAULT_THRESHOLDS, **self.config.get('thresholds', {})}
        )
        self.recency_days = self.config.get('recency_days', 7)
        self.frequency_min_days = self.config.get('frequency_min_days', 3)
        self.default_deal_size = self.config.get('default_deal_size', 25000)

    async def calculate_lead_score(self, contact_id: int) -> int:
        """
        Score a single contact.

        Args:
            contact_id: Contact identifier; unknown identifiers score as a
                contact with no engagement and no deals

        Returns:
            Integer score (non-negative for non-negative inputs)
        """
        breakdown = await self.explain_score(contact_id)
        return breakdown.total

    async def explain_score(self, contact_id: int) -> ScoreBreakdown:
        """
        Score a contact and keep every term of the sum.

        Args:
            contact_id: Contact identifier

        Returns:
            ScoreBreakdown whose ``total`` is the rounded score
        """
        events = await self.engagements.list_by_contact(contact_id)
        now = self.clock()

        type_counts = Counter(e.type for e in events)
        email_open_score = type_counts[EngagementType.EMAIL_OPEN.value] * self.weights['email_opens']
        website_visit_score = type_counts[EngagementType.WEBSITE_VISIT.value] * self.weights['website_visits']
        form_submission_score = type_counts[EngagementType.FORM_SUBMISSION.value] * self.weights['form_submissions']

        deal_size_score = await self._deal_size_score(contact_id)

        recency_bonus = self.weights['recency'] if self._has_recent_activity(events, now) else 0
        frequency_bonus = self.weights['frequency'] if self._is_frequent(events) else 0

        breakdown = ScoreBreakdown(
            contact_id=contact_id,
            email_open_score=email_open_score,
            website_visit_score=website_visit_score,
            form_submission_score=form_submission_score,
            deal_size_score=deal_size_score,
            recency_bonus=recency_bonus,
            frequency_bonus=frequency_bonus
        )
        breakdown = replace(breakdown, total=round_half_up(breakdown.raw_total))
        logger.debug(f"Scored contact {contact_id}: {breakdown}")
        return breakdown

    async def _deal_size_score(self, contact_id: int) -> float:
        """Average deal value times the deal-size weight; 0 when the deal directory is unavailable."""
        try:
            contact_deals = await self.deals.list_by_contact(contact_id)
        except DependencyFailure as e:
            logger.warning(f"Error calculating deal size score for contact {contact_id}: {e}")
            return 0.0

        if contact_deals:
            avg_deal_size = sum(deal.value for deal in contact_deals) / len(contact_deals)
        else:
            avg_deal_size = self.default_deal_size

        return avg_deal_size * self.weights['deal_size']

    def _has_recent_activity(self, events: List[EngagementEvent], now: datetime) -> bool:
        """At least one event no more than ``recency_days`` (fractional) before now."""
        return any(
            (now - e.timestamp).total_seconds() / SECONDS_PER_DAY <= self.recency_days
            for e in events
        )

    def _is_frequent(self, events: List[EngagementEvent]) -> bool:
        """Events fall on at least ``frequency_min_days`` distinct calendar dates (UTC)."""
        unique_days = {e.timestamp.date() for e in events}
        return len(unique_days) >= self.frequency_min_days

    def get_lead_temperature(self, score: float) -> Temperature:
        """Classify a score with this scorer's thresholds."""
        return classify_temperature(score, self.thresholds)

    def calculate_priority(self, score: float, temperature: Temperature) -> int:
        return calculate_priority(score, temperature)

    def get_scoring_info(self) -> Dict[str, Any]:
        """
        Get the weights, thresholds and windows in use.

        Returns:
            Dictionary with scoring configuration
        """
        return {
            'weights': dict(self.weights),
            'thresholds': dict(self.thresholds),
            'recency_days': self.recency_days,
            'frequency_min_days': self.frequency_min_days,
            'default_deal_size': self.default_deal_size
        }
