"""
Repository interfaces for the collaborators the scoring engine reads from,
plus in-memory implementations backed by plain lists.

The in-memory stores optionally sleep before each call to simulate the
latency of the CRM's mock services. They rely on the single-threaded asyncio
model: no locks, no step is preempted mid-way.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..core.exceptions import ContactNotFoundError
from .models import (
    Contact, Deal, DealSizePotential, EngagementEvent, utc_now
)

logger = logging.getLogger(__name__)

DEFAULT_DEAL_SIZE = 25000
DEAL_GROWTH_FACTOR = 1.2


class EngagementStore(ABC):
    """Append-only store of engagement events."""

    @abstractmethod
    async def list_by_contact(self, contact_id: int) -> List[EngagementEvent]:
        ...

    @abstractmethod
    async def list_all(self) -> List[EngagementEvent]:
        ...

    @abstractmethod
    async def append(self, contact_id: int, engagement_type: str,
                     details: Optional[Dict[str, Any]] = None,
                     source: Optional[str] = None) -> EngagementEvent:
        """Record a new event, assigning its identifier and timestamp."""


class ContactDirectory(ABC):

    @abstractmethod
    async def list_all(self) -> List[Contact]:
        ...

    @abstractmethod
    async def get(self, contact_id: int) -> Contact:
        """Raises ContactNotFoundError for an unknown identifier."""

    @abstractmethod
    async def update(self, contact_id: int, **fields: Any) -> Contact:
        """Overwrite fields on a contact. Raises ContactNotFoundError."""


class DealDirectory(ABC):
    """
    Read access to deals. Implementations raise DependencyFailure when the
    backing service cannot be reached.
    """

    @abstractmethod
    async def list_by_contact(self, contact_id: int) -> List[Deal]:
        ...

    @abstractmethod
    async def list_all(self) -> List[Deal]:
        ...

    async def deal_size_potential(self, contact_id: int) -> DealSizePotential:
        """
        Average, largest and projected (20% growth) deal value for a contact.

        Contacts without deals get the default expected deal size.
        """
        deals = await self.list_by_contact(contact_id)
        if not deals:
            return DealSizePotential(
                avg_deal_size=DEFAULT_DEAL_SIZE,
                potential_value=DEFAULT_DEAL_SIZE
            )

        avg_deal_size = sum(deal.value for deal in deals) / len(deals)
        return DealSizePotential(
            avg_deal_size=avg_deal_size,
            potential_value=avg_deal_size * DEAL_GROWTH_FACTOR,
            max_deal_size=max(deal.value for deal in deals)
        )


class _SimulatedLatency:
    """Mixin that delays each repository call by a fixed number of milliseconds."""

    latency_ms: int = 0

    async def _delay(self):
        if self.latency_ms > 0:
            await asyncio.sleep(self.latency_ms / 1000)


class InMemoryEngagementStore(_SimulatedLatency, EngagementStore):

    def __init__(self, events: Optional[Iterable[EngagementEvent]] = None,
                 latency_ms: int = 0, clock: Callable = utc_now):
        self._events: List[EngagementEvent] = list(events or [])
        self.latency_ms = latency_ms
        self._clock = clock

    async def list_by_contact(self, contact_id: int) -> List[EngagementEvent]:
        await self._delay()
        return [e for e in self._events if e.contact_id == contact_id]

    async def list_all(self) -> List[EngagementEvent]:
        await self._delay()
        return list(self._events)

    async def append(self, contact_id: int, engagement_type: str,
                     details: Optional[Dict[str, Any]] = None,
                     source: Optional[str] = None) -> EngagementEvent:
        await self._delay()
        # Identifier and append happen without an await in between
        next_id = max((e.id for e in self._events), default=0) + 1
        event = EngagementEvent(
            id=next_id,
            contact_id=contact_id,
            type=engagement_type,
            timestamp=self._clock(),
            details=dict(details or {}),
            source=source
        )
        self._events.append(event)
        logger.debug(f"Tracked engagement {event.id} ({event.type}) for contact {contact_id}")
        return event


class InMemoryContactDirectory(_SimulatedLatency, ContactDirectory):

    def __init__(self, contacts: Optional[Iterable[Contact]] = None, latency_ms: int = 0):
        self._contacts: List[Contact] = list(contacts or [])
        self.latency_ms = latency_ms

    def _index_of(self, contact_id: int) -> int:
        for index, contact in enumerate(self._contacts):
            if contact.id == contact_id:
                return index
        raise ContactNotFoundError(contact_id)

    async def list_all(self) -> List[Contact]:
        await self._delay()
        return list(self._contacts)

    async def get(self, contact_id: int) -> Contact:
        await self._delay()
        return self._contacts[self._index_of(contact_id)]

    async def update(self, contact_id: int, **fields: Any) -> Contact:
        await self._delay()
        index = self._index_of(contact_id)
        fields.pop('id', None)
        updated = replace(self._contacts[index], **fields)
        self._contacts[index] = updated
        return updated


class InMemoryDealDirectory(_SimulatedLatency, DealDirectory):

    def __init__(self, deals: Optional[Iterable[Deal]] = None, latency_ms: int = 0):
        self._deals: List[Deal] = list(deals or [])
        self.latency_ms = latency_ms

    async def list_by_contact(self, contact_id: int) -> List[Deal]:
        await self._delay()
        return [d for d in self._deals if d.contact_id == contact_id]

    async def list_all(self) -> List[Deal]:
        await self._delay()
        return list(self._deals)
