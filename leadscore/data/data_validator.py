"""
Data validation module for the LeadScore engine.
Checks mock CRM records for consistency before they are loaded into repositories.
"""

import pandas as pd
from typing import Dict, List, Any, Optional, Tuple
import logging

from .models import EngagementType

logger = logging.getLogger(__name__)


class DataValidator:
    """
    Validates contact, deal and engagement records for lead scoring.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize DataValidator.

        Args:
            config: Scoring configuration (thresholds are used for temperature checks)
        """
        self.config = config or {}
        self.validation_rules = self._get_default_validation_rules()

    def _get_default_validation_rules(self) -> Dict[str, Any]:
        """
        Get default validation rules for CRM records.

        Returns:
            Dictionary with validation rules
        """
        thresholds = self.config.get('thresholds', {})
        return {
            'required_columns': {
                'contacts': ['Id', 'name'],
                'deals': ['Id', 'contactId', 'value'],
                'engagements': ['Id', 'contactId', 'type', 'timestamp']
            },
            'engagement_types': [t.value for t in EngagementType],
            'temperatures': ['hot', 'warm', 'cold'],
            'thresholds': {
                'hot': thresholds.get('hot', 80),
                'warm': thresholds.get('warm', 50)
            }
        }

    def validate_schema(self, df: pd.DataFrame, kind: str) -> Tuple[bool, List[str]]:
        """
        Validate DataFrame schema against required columns.

        Args:
            df: DataFrame to validate
            kind: One of 'contacts', 'deals', 'engagements'

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        errors = []
        required_columns = self.validation_rules['required_columns'][kind]

        missing_columns = [col for col in required_columns if col not in df.columns]
        if missing_columns:
            errors.append(f"Missing required columns: {missing_columns}")

        if 'Id' in df.columns and df['Id'].duplicated().any():
            duplicates = df.loc[df['Id'].duplicated(), 'Id'].tolist()
            errors.append(f"Duplicate identifiers: {duplicates}")

        return len(errors) == 0, errors

    def validate_deals(self, df: pd.DataFrame) -> Tuple[bool, List[str]]:
        """Deal values must be numeric and non-negative."""
        is_valid, errors = self.validate_schema(df, 'deals')
        if 'value' not in df.columns:
            return is_valid, errors

        values = pd.to_numeric(df['value'], errors='coerce')
        non_numeric = df.loc[values.isna() & df['value'].notna(), 'Id'].tolist()
        if non_numeric:
            errors.append(f"Non-numeric deal values for deals: {non_numeric}")

        negative = df.loc[values < 0, 'Id'].tolist()
        if negative:
            errors.append(f"Negative deal values for deals: {negative}")

        return len(errors) == 0, errors

    def validate_engagements(self, df: pd.DataFrame) -> Tuple[bool, List[str]]:
        """
        Engagement timestamps must parse; unknown types are accepted but reported.
        """
        is_valid, errors = self.validate_schema(df, 'engagements')
        if not is_valid:
            return is_valid, errors

        timestamps = pd.to_datetime(df['timestamp'], errors='coerce', utc=True)
        bad_timestamps = df.loc[timestamps.isna(), 'Id'].tolist()
        if bad_timestamps:
            errors.append(f"Unparseable timestamps for engagements: {bad_timestamps}")

        known_types = self.validation_rules['engagement_types']
        unknown = sorted(set(df['type'].dropna()) - set(known_types))
        if unknown:
            logger.warning(f"Engagement types without scoring weight: {unknown}")

        return len(errors) == 0, errors

    def validate_contacts(self, df: pd.DataFrame) -> Tuple[bool, List[str]]:
        """
        Cached lead scores must agree with their stored temperature.
        """
        is_valid, errors = self.validate_schema(df, 'contacts')
        if 'temperature' not in df.columns:
            return is_valid, errors

        allowed = self.validation_rules['temperatures']
        temperatures = df['temperature'].dropna()
        invalid = df.loc[temperatures[~temperatures.isin(allowed)].index, 'Id'].tolist()
        if invalid:
            errors.append(f"Invalid temperature values for contacts: {invalid}")

        if 'leadScore' in df.columns:
            scored = df.dropna(subset=['leadScore', 'temperature'])
            scored = scored[scored['temperature'].isin(allowed)]
            expected = scored['leadScore'].apply(self._expected_temperature)
            stale = scored.loc[expected != scored['temperature'], 'Id'].tolist()
            if stale:
                errors.append(f"Temperature does not match leadScore for contacts: {stale}")

        return len(errors) == 0, errors

    def _expected_temperature(self, score: float) -> str:
        thresholds = self.validation_rules['thresholds']
        if score >= thresholds['hot']:
            return 'hot'
        if score >= thresholds['warm']:
            return 'warm'
        return 'cold'

    def validate_all(self, frames: Dict[str, pd.DataFrame]) -> Tuple[bool, Dict[str, List[str]]]:
        """
        Run every validation against the loaded frames.

        Args:
            frames: Mapping of 'contacts', 'deals', 'engagements' to DataFrames

        Returns:
            Tuple of (overall_valid, errors_by_kind)
        """
        validators = {
            'contacts': self.validate_contacts,
            'deals': self.validate_deals,
            'engagements': self.validate_engagements
        }

        all_errors = {}
        for kind, df in frames.items():
            _, errors = validators[kind](df)
            all_errors[kind] = errors

        overall_valid = all(len(errors) == 0 for errors in all_errors.values())

        if overall_valid:
            logger.info("All data validation checks passed")
        else:
            logger.warning("Data validation failed with errors")

        return overall_valid, all_errors
