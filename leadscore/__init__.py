"""
LeadScore - CRM Lead Scoring & Prioritization

Scores CRM contacts from engagement events and deal history, classifies them
as hot, warm or cold, and ranks them for follow-up.
"""

__version__ = "1.0.0"
__author__ = "LeadScore Team"
__description__ = "Lead scoring and prioritization engine for CRM contacts"

# Core modules
from . import data
from . import scoring
from . import services

# Main classes for easy import
from .data import DataLoader, DataValidator, Contact, Deal, EngagementEvent, Temperature
from .scoring import LeadScorer, LeadPrioritizer, LeadReporter, classify_temperature
from .services import LeadScoringService

__all__ = [
    # Modules
    'data',
    'scoring',
    'services',
    # Classes
    'DataLoader',
    'DataValidator',
    'Contact',
    'Deal',
    'EngagementEvent',
    'Temperature',
    'LeadScorer',
    'LeadPrioritizer',
    'LeadReporter',
    'classify_temperature',
    'LeadScoringService'
]
