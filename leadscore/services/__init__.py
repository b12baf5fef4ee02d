"""
Service layer for the LeadScore engine.
"""

from .lead_scoring_service import LeadScoringService

__all__ = ['LeadScoringService']
