"""
Record types shared by the repositories and the scoring engine.
"""

from dataclasses import dataclass, field, fields, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union


class Temperature(str, Enum):
    """Lead temperature buckets, hottest first."""
    HOT = "hot"
    WARM = "warm"
    COLD = "cold"


class EngagementType(str, Enum):
    """Engagement event types that carry scoring weight."""
    EMAIL_OPEN = "email_open"
    WEBSITE_VISIT = "website_visit"
    FORM_SUBMISSION = "form_submission"


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Normalize a timestamp to a timezone-aware UTC datetime.

    Naive values are taken to already be in UTC. ISO strings with a trailing
    ``Z`` (as written by the web client) are accepted.
    """
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        value = datetime.fromisoformat(text)
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class EngagementEvent:
    """A single engagement signal recorded against a contact. Append-only."""

    id: int
    contact_id: int
    type: str
    timestamp: datetime
    details: Mapping[str, Any] = field(default_factory=dict)
    source: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'timestamp', parse_timestamp(self.timestamp))

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "EngagementEvent":
        """Build an event from a mock-data record (``Id``/``contactId`` keys)."""
        return cls(
            id=int(record.get('Id', record.get('id'))),
            contact_id=int(record.get('contactId', record.get('contact_id'))),
            type=str(record['type']),
            timestamp=record['timestamp'],
            details=dict(record.get('details') or {}),
            source=record.get('source')
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'contact_id': self.contact_id,
            'type': self.type,
            'timestamp': _isoformat(self.timestamp),
            'details': dict(self.details),
            'source': self.source
        }


@dataclass(frozen=True)
class Deal:
    """A deal owned by a contact. Only its value matters for scoring."""

    id: int
    contact_id: int
    value: float
    title: Optional[str] = None
    stage: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Deal":
        return cls(
            id=int(record.get('Id', record.get('id'))),
            contact_id=int(record.get('contactId', record.get('contact_id'))),
            value=float(record.get('value') or 0),
            title=record.get('title'),
            stage=record.get('stage')
        )


_CONTACT_KEYS = {
    'Id': 'id',
    'leadScore': 'lead_score',
    'lastScoreUpdate': 'last_score_update',
}


@dataclass(frozen=True)
class Contact:
    """
    A CRM contact.

    ``lead_score``, ``temperature`` and ``last_score_update`` are the cached
    values last persisted through the directory. A live prioritization pass
    may disagree with them until the caller persists the new score.
    """

    id: int
    name: str
    email: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None
    position: Optional[str] = None
    status: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    lead_score: int = 0
    temperature: Temperature = Temperature.COLD
    last_score_update: Optional[datetime] = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'temperature', Temperature(self.temperature))
        object.__setattr__(self, 'last_score_update', parse_timestamp(self.last_score_update))

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Contact":
        """Build a contact from a mock-data record; unknown keys land in ``extra``."""
        known = {f.name for f in fields(cls)} - {'extra'}
        values: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in record.items():
            name = _CONTACT_KEYS.get(key, key)
            if name in known:
                values[name] = value
            else:
                extra[key] = value
        values['id'] = int(values['id'])
        values.setdefault('name', '')
        if values.get('tags') is None:
            values['tags'] = []
        values['lead_score'] = int(values.get('lead_score') or 0)
        if values.get('temperature') is None:
            values['temperature'] = Temperature.COLD
        return cls(extra=extra, **values)

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self) if f.name != 'extra'}
        data['tags'] = list(self.tags)
        data['temperature'] = self.temperature.value
        data['last_score_update'] = _isoformat(self.last_score_update)
        data.update(self.extra)
        return data


@dataclass(frozen=True)
class ScoredLead:
    """A contact with its live score, temperature and priority tier. Never persisted."""

    contact: Contact
    score: int
    temperature: Temperature
    priority: int

    @property
    def contact_id(self) -> int:
        return self.contact.id

    def to_dict(self) -> Dict[str, Any]:
        data = self.contact.to_dict()
        data.update({
            'score': self.score,
            'temperature': self.temperature.value,
            'priority': self.priority
        })
        return data


@dataclass(frozen=True)
class ScoreBreakdown:
    """Itemised contributions that add up to a lead score."""

    contact_id: int
    email_open_score: float = 0.0
    website_visit_score: float = 0.0
    form_submission_score: float = 0.0
    deal_size_score: float = 0.0
    recency_bonus: float = 0.0
    frequency_bonus: float = 0.0
    total: int = 0

    @property
    def raw_total(self) -> float:
        return (
            self.email_open_score + self.website_visit_score + self.form_submission_score
            + self.deal_size_score + self.recency_bonus + self.frequency_bonus
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ScoreDistribution:
    hot: int = 0
    warm: int = 0
    cold: int = 0
    average_score: float = 0.0

    @property
    def total(self) -> int:
        return self.hot + self.warm + self.cold

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class EngagementSummary:
    contact_id: int
    total_engagements: int = 0
    email_opens: int = 0
    website_visits: int = 0
    form_submissions: int = 0
    last_engagement: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['last_engagement'] = _isoformat(self.last_engagement)
        return data


@dataclass(frozen=True)
class DealSizePotential:
    """Average, largest and projected deal value for a contact."""

    avg_deal_size: float
    potential_value: float
    max_deal_size: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
