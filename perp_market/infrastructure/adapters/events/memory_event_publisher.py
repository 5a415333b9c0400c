"""
InMemoryEventPublisher - Records published events (tests, simulations).
"""
from typing import List, Sequence, Type

from perp_market.application.ports.outbound.event_publisher_port import EventPublisherPort
from perp_market.domain.events import DomainEvent


class InMemoryEventPublisher(EventPublisherPort):
    """Keeps every published event in order."""

    def __init__(self):
        self.events: List[DomainEvent] = []

    def clear(self):
        self.events.clear()

    def of_type(self, event_type: Type[DomainEvent]) -> List[DomainEvent]:
        return [event for event in self.events if isinstance(event, event_type)]

    async def publish(self, events: Sequence[DomainEvent]) -> None:
        self.events.extend(events)


class CompositeEventPublisher(EventPublisherPort):
    """Fans events out to several publishers in order."""

    def __init__(self, *publishers: EventPublisherPort):
        self.publishers = list(publishers)

    async def publish(self, events: Sequence[DomainEvent]) -> None:
        for publisher in self.publishers:
            await publisher.publish(events)
