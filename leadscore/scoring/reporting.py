"""
Aggregation reporting for prioritized leads.
Produces distribution summaries, engagement summaries and per-temperature exports.
"""

import pandas as pd
from collections import Counter
from typing import Dict, Any, List
import logging
from pathlib import Path

from ..data.models import (
    EngagementSummary, EngagementType, ScoreDistribution, ScoredLead, Temperature
)
from ..data.repositories import EngagementStore
from .prioritizer import LeadPrioritizer

logger = logging.getLogger(__name__)

TEMPERATURE_ORDER = [t.value for t in Temperature]


def summarize_distribution(leads: List[ScoredLead]) -> ScoreDistribution:
    """
    Count leads per temperature and average their scores.

    An empty list averages to 0.0.
    """
    counts = Counter(lead.temperature for lead in leads)
    average_score = sum(lead.score for lead in leads) / len(leads) if leads else 0.0

    return ScoreDistribution(
        hot=counts[Temperature.HOT],
        warm=counts[Temperature.WARM],
        cold=counts[Temperature.COLD],
        average_score=average_score
    )


def leads_to_dataframe(leads: List[ScoredLead]) -> pd.DataFrame:
    """Flatten scored leads into one row each, ranking order preserved."""
    columns = ['id', 'name', 'company', 'email', 'score', 'temperature', 'priority']
    if not leads:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame([lead.to_dict() for lead in leads])
    return df[columns + [c for c in df.columns if c not in columns]]


class LeadReporter:
    """
    Derives summary views from prioritization output and engagement history.
    """

    def __init__(self, prioritizer: LeadPrioritizer, engagements: EngagementStore):
        """
        Initialize LeadReporter.

        Args:
            prioritizer: Prioritization engine
            engagements: Engagement store for per-contact summaries
        """
        self.prioritizer = prioritizer
        self.engagements = engagements

    async def get_lead_score_distribution(self) -> ScoreDistribution:
        """Run a full prioritization pass and summarize it by temperature."""
        leads = await self.prioritizer.get_prioritized_leads()
        return summarize_distribution(leads)

    async def get_engagement_summary(self, contact_id: int) -> EngagementSummary:
        """
        Summarize a contact's engagement history.

        Args:
            contact_id: Contact identifier

        Returns:
            Totals, per-type counts and the most recent event timestamp
        """
        events = await self.engagements.list_by_contact(contact_id)
        type_counts = Counter(e.type for e in events)

        return EngagementSummary(
            contact_id=contact_id,
            total_engagements=len(events),
            email_opens=type_counts[EngagementType.EMAIL_OPEN.value],
            website_visits=type_counts[EngagementType.WEBSITE_VISIT.value],
            form_submissions=type_counts[EngagementType.FORM_SUBMISSION.value],
            last_engagement=max((e.timestamp for e in events), default=None)
        )

    def generate_priority_report(self, leads: List[ScoredLead]) -> Dict[str, Any]:
        """
        Generate a temperature distribution report.

        Args:
            leads: Ranked leads from the prioritizer

        Returns:
            Dictionary with counts, percentages, score statistics and top leads
        """
        df = leads_to_dataframe(leads)
        distribution = summarize_distribution(leads)

        if df.empty:
            return {
                'total_leads': 0,
                'temperature_distribution': {
                    'counts': {t: 0 for t in TEMPERATURE_ORDER},
                    'percentages': {t: 0.0 for t in TEMPERATURE_ORDER}
                },
                'score_statistics': {},
                'top_leads_by_temperature': {},
                'summary': distribution.to_dict()
            }

        counts = df['temperature'].value_counts().reindex(TEMPERATURE_ORDER, fill_value=0)
        percentages = (counts / len(df) * 100).round(2)

        score_stats = df.groupby('temperature')['score'].agg(
            ['count', 'mean', 'min', 'max', 'median']
        ).round(2)

        top_leads = {}
        for temperature in TEMPERATURE_ORDER:
            bucket = df[df['temperature'] == temperature]
            if len(bucket) > 0:
                top_leads[temperature] = bucket.nlargest(5, 'score')[
                    ['id', 'name', 'score', 'priority']
                ].to_dict('records')

        return {
            'total_leads': len(df),
            'temperature_distribution': {
                'counts': {k: int(v) for k, v in counts.items()},
                'percentages': {k: float(v) for k, v in percentages.items()}
            },
            'score_statistics': {
                temperature: {stat: float(value) for stat, value in row.items()}
                for temperature, row in score_stats.to_dict('index').items()
            },
            'top_leads_by_temperature': top_leads,
            'summary': {
                **distribution.to_dict(),
                'median_score': float(df['score'].median()),
                'max_score': int(df['score'].max()),
                'min_score': int(df['score'].min())
            }
        }

    def export_prioritized_lists(self, leads: List[ScoredLead], output_dir: str) -> Dict[str, str]:
        """
        Export a CSV file for each temperature.

        Args:
            leads: Ranked leads from the prioritizer
            output_dir: Directory to write the lists to

        Returns:
            Dictionary with file paths for each non-empty temperature
        """
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        df = leads_to_dataframe(leads)
        file_paths = {}

        for temperature in TEMPERATURE_ORDER:
            bucket = df[df['temperature'] == temperature]
            if len(bucket) == 0:
                continue

            bucket = bucket.sort_values('score', ascending=False, kind='stable')
            file_path = output_path / f"{temperature}_leads.csv"
            bucket.to_csv(file_path, index=False)

            file_paths[temperature] = str(file_path)
            logger.info(f"Exported {len(bucket)} {temperature} leads to {file_path}")

        return file_paths
