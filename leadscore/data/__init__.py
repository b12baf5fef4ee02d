"""
Data module for the LeadScore engine: records, repositories, loading and validation.
"""

from .models import Contact, Deal, EngagementEvent, EngagementType, ScoredLead, Temperature
from .repositories import (
    ContactDirectory, DealDirectory, EngagementStore,
    InMemoryContactDirectory, InMemoryDealDirectory, InMemoryEngagementStore
)
from .data_loader import DataLoader
from .data_validator import DataValidator

__all__ = [
    'Contact', 'Deal', 'EngagementEvent', 'EngagementType', 'ScoredLead', 'Temperature',
    'ContactDirectory', 'DealDirectory', 'EngagementStore',
    'InMemoryContactDirectory', 'InMemoryDealDirectory', 'InMemoryEngagementStore',
    'DataLoader', 'DataValidator'
]
