"""
Post-commit event delivery.
"""
import logging
from typing import Optional, Sequence

from perp_market.application.ports.outbound.event_publisher_port import EventPublisherPort
from perp_market.domain.events import DomainEvent

logger = logging.getLogger(__name__)


async def publish_events(
    publisher: Optional[EventPublisherPort],
    events: Sequence[DomainEvent],
) -> None:
    """
    Deliver committed events to observers.

    The operation has already committed, so a publisher failure is logged
    and not raised; the caller still receives the events in its result.
    """
    if publisher is None or not events:
        return
    try:
        await publisher.publish(list(events))
    except Exception:
        logger.exception(f"Failed to publish {len(events)} event(s): {[e.name for e in events]}")
