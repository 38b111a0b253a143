"""
Base Domain Classes

Building blocks shared by the domain layers of every app:
- ValueObject: Immutable objects compared by value
- Aggregate: Consistency boundary that records domain events
- DomainEvent: Something that happened and is published after commit

Nothing in here touches Django; aggregates are loaded and saved by
repositories in the app layer.
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List
from uuid import UUID, uuid4


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects

    Value objects are immutable and have no identity.
    Two value objects are equal if all their attributes are equal.
    """
    pass


@dataclass
class Aggregate(ABC):
    """
    Base class for aggregate roots

    Aggregates collect domain events while a use case runs. The unit of
    work takes them over and publishes them once the transaction commits.
    """
    id: UUID = field(default_factory=uuid4)
    _events: List['DomainEvent'] = field(default_factory=list, repr=False, init=False, compare=False)

    def add_event(self, event: 'DomainEvent'):
        """Add a domain event to be published"""
        self._events.append(event)

    def clear_events(self):
        """Clear all collected events (called after publishing)"""
        self._events.clear()

    @property
    def events(self) -> List['DomainEvent']:
        """Get copy of collected events"""
        return self._events.copy()


@dataclass
class DomainEvent:
    """
    Base class for domain events

    Events are plain data. Handlers must not assume they run inside the
    transaction that produced the event.
    """
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=utcnow)
