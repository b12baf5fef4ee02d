"""
Lead scoring module for the LeadScore engine.
"""

from .lead_scorer import LeadScorer
from .prioritizer import LeadPrioritizer
from .reporting import LeadReporter
from .temperature import classify_temperature, calculate_priority

__all__ = ['LeadScorer', 'LeadPrioritizer', 'LeadReporter', 'classify_temperature', 'calculate_priority']
