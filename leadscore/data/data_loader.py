"""
Data loading module for the LeadScore engine.
Loads the CRM's mock contacts, deals and engagement events and seeds the
in-memory repositories with them.
"""

import pandas as pd
from dataclasses import dataclass
from typing import Optional, Dict, Any, List
import logging
from pathlib import Path

from ..core.exceptions import DataValidationError
from .data_validator import DataValidator
from .models import Contact, Deal, EngagementEvent
from .repositories import (
    InMemoryContactDirectory, InMemoryDealDirectory, InMemoryEngagementStore
)

logger = logging.getLogger(__name__)


@dataclass
class Repositories:
    """The three collaborators the scoring engine reads from."""

    contacts: InMemoryContactDirectory
    deals: InMemoryDealDirectory
    engagements: InMemoryEngagementStore


class DataLoader:
    """
    Handles loading mock CRM records into repositories.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 validator: Optional[DataValidator] = None):
        """
        Initialize DataLoader with configuration.

        Args:
            config: Data configuration with path and file names
            validator: Validator used before seeding (defaults to DataValidator())
        """
        self.config = config or {}
        self.data_path = self.config.get('path', 'data/mock/')
        self.validator = validator or DataValidator()

    def load_records(self, file_path: str) -> pd.DataFrame:
        """
        Load a JSON or CSV file of records.

        Args:
            file_path: Path to the file

        Returns:
            DataFrame with one row per record
        """
        try:
            logger.info(f"Loading records from {file_path}")

            if str(file_path).endswith('.csv'):
                df = pd.read_csv(file_path)
            else:
                df = pd.read_json(file_path, orient='records', dtype=False, convert_dates=False)

            logger.info(f"Successfully loaded {len(df)} records with {len(df.columns)} columns")
            return df

        except (OSError, ValueError) as e:
            logger.error(f"Error loading data from {file_path}: {str(e)}")
            raise

    @staticmethod
    def to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
        """Convert a frame to plain records, with missing cells as None."""
        cleaned = df.astype(object).where(df.notna(), None)
        return cleaned.to_dict('records')

    def load_frames(self, data_path: Optional[str] = None) -> Dict[str, pd.DataFrame]:
        """
        Load contacts, deals and engagements from the configured directory.

        Missing files yield empty frames so that a directory without deals or
        engagement history still loads.
        """
        base = Path(data_path or self.data_path)
        files = {
            'contacts': self.config.get('contacts_file', 'contacts.json'),
            'deals': self.config.get('deals_file', 'deals.json'),
            'engagements': self.config.get('engagement_file', 'engagementData.json')
        }

        frames = {}
        for kind, file_name in files.items():
            path = base / file_name
            if path.exists():
                frames[kind] = self.load_records(str(path))
            else:
                logger.warning(f"No {kind} file at {path}, starting empty")
                frames[kind] = pd.DataFrame()
        return frames

    def build_repositories(self, data_path: Optional[str] = None, latency_ms: int = 0) -> Repositories:
        """
        Load, validate and seed the in-memory repositories.

        Args:
            data_path: Directory holding the mock data files
            latency_ms: Simulated latency per repository call

        Returns:
            Repositories bundle

        Raises:
            DataValidationError: If the records fail validation
        """
        frames = self.load_frames(data_path)

        non_empty = {kind: df for kind, df in frames.items() if not df.empty}
        is_valid, validation_errors = self.validator.validate_all(non_empty)
        if not is_valid:
            logger.error(f"Data validation issues: {validation_errors}")
            raise DataValidationError(validation_errors)

        try:
            contacts = [Contact.from_record(r) for r in self.to_records(frames['contacts'])]
            deals = [Deal.from_record(r) for r in self.to_records(frames['deals'])]
            engagements = [EngagementEvent.from_record(r) for r in self.to_records(frames['engagements'])]
        except (KeyError, TypeError, ValueError) as e:
            raise DataValidationError({'records': [str(e)]}) from e

        logger.info(
            f"Seeded {len(contacts)} contacts, {len(deals)} deals, "
            f"{len(engagements)} engagement events"
        )

        return Repositories(
            contacts=InMemoryContactDirectory(contacts, latency_ms=latency_ms),
            deals=InMemoryDealDirectory(deals, latency_ms=latency_ms),
            engagements=InMemoryEngagementStore(engagements, latency_ms=latency_ms)
        )

    def get_data_summary(self, frames: Dict[str, pd.DataFrame]) -> Dict[str, Any]:
        """
        Get a summary of the loaded data.

        Args:
            frames: Frames returned by load_frames

        Returns:
            Dictionary with record counts and engagement date range
        """
        engagements = frames.get('engagements', pd.DataFrame())
        timestamps = (
            pd.to_datetime(engagements['timestamp'], errors='coerce', utc=True)
            if 'timestamp' in engagements.columns else pd.Series(dtype='datetime64[ns, UTC]')
        )

        return {
            'record_counts': {kind: len(df) for kind, df in frames.items()},
            'engagement_types': (
                engagements['type'].value_counts().to_dict() if 'type' in engagements.columns else {}
            ),
            'date_range': {
                'min_date': timestamps.min() if len(timestamps) else None,
                'max_date': timestamps.max() if len(timestamps) else None
            }
        }
