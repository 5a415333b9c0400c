"""
EventPublisherPort - Interface for delivering domain events to observers.

Called once per operation, after its state changes have committed, with the
events in emission order.
"""
from abc import ABC, abstractmethod
from typing import Sequence

from perp_market.domain.events import DomainEvent


class EventPublisherPort(ABC):
    """Port interface for domain event delivery."""

    @abstractmethod
    async def publish(self, events: Sequence[DomainEvent]) -> None:
        """
        Deliver events in order.

        Args:
            events: Events of one committed operation
        """
        pass
