"""
Temperature classification and priority tiers for scored leads.
"""

from typing import Dict, Optional, Union

from ..core.exceptions import ConfigurationError
from ..data.models import Temperature

DEFAULT_THRESHOLDS = {
    'hot': 80,
    'warm': 50
}

PRIORITY_BY_TEMPERATURE = {
    Temperature.HOT: 1,
    Temperature.WARM: 2,
    Temperature.COLD: 3
}


def validate_thresholds(thresholds: Dict[str, float]) -> Dict[str, float]:
    """
    Check that both lower bounds are present and ordered hot >= warm.

    Returns:
        The thresholds, unchanged

    Raises:
        ConfigurationError: If a bound is missing or the order is inverted
    """
    missing = [name for name in ('hot', 'warm') if thresholds.get(name) is None]
    if missing:
        raise ConfigurationError(f"Missing temperature thresholds: {missing}")
    if thresholds['warm'] > thresholds['hot']:
        raise ConfigurationError(
            f"Warm threshold ({thresholds['warm']}) must not exceed hot threshold ({thresholds['hot']})"
        )
    return thresholds


def classify_temperature(score: float, thresholds: Optional[Dict[str, float]] = None) -> Temperature:
    """
    Classify a lead score into a temperature.

    Lower bounds are inclusive and evaluated hottest first.

    Args:
        score: Lead score
        thresholds: Dictionary with 'hot' and 'warm' lower bounds

    Returns:
        Temperature (hot/warm/cold)
    """
    thresholds = thresholds or DEFAULT_THRESHOLDS

    if score >= thresholds['hot']:
        return Temperature.HOT
    elif score >= thresholds['warm']:
        return Temperature.WARM
    else:
        return Temperature.COLD


def calculate_priority(score: float, temperature: Union[Temperature, str]) -> int:
    """
    Priority tier for a lead: 1 for hot, 2 for warm, 3 for cold.

    Only the temperature decides the tier; ``score`` is accepted so callers
    can pass a lead's full classification.
    """
    return PRIORITY_BY_TEMPERATURE[Temperature(temperature)]
