"""
Error taxonomy for the LeadScore engine.
"""

from typing import Any, Dict, List, Optional


class LeadScoreError(Exception):
    """Base class for all LeadScore errors."""


class ConfigurationError(LeadScoreError, ValueError):
    """Raised when scoring configuration is inconsistent."""


class DataValidationError(LeadScoreError, ValueError):
    """Raised when mock CRM records fail validation and cannot be loaded."""

    def __init__(self, validation_errors: Dict[str, List[str]]):
        self.validation_errors = validation_errors
        problems = {kind: errors for kind, errors in validation_errors.items() if errors}
        super().__init__(f"Invalid CRM data: {problems}")


class ContactNotFoundError(LeadScoreError, LookupError):
    """Raised when a directory operation references an unknown contact."""

    def __init__(self, contact_id: Any):
        self.contact_id = contact_id
        super().__init__(f"Contact with ID {contact_id} not found")


class DependencyFailure(LeadScoreError):
    """
    Raised by a collaborator (deal directory, engagement store) when a read fails.

    Repository implementations backed by a remote service wrap their transport
    errors in this class. The score calculator recovers from it locally for
    deal reads; any other exception is treated as a bug and propagates.
    """

    def __init__(self, dependency: str, message: Optional[str] = None):
        self.dependency = dependency
        super().__init__(message or f"{dependency} is unavailable")


class PrioritizationError(LeadScoreError):
    """Raised when a prioritization pass cannot score every contact."""

    def __init__(self, message: str = "Failed to calculate lead priorities"):
        super().__init__(message)
