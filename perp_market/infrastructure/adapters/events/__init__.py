from perp_market.infrastructure.adapters.events.memory_event_publisher import (
    CompositeEventPublisher,
    InMemoryEventPublisher,
)
from perp_market.infrastructure.adapters.events.prometheus_event_publisher import PrometheusEventPublisher

__all__ = ["CompositeEventPublisher", "InMemoryEventPublisher", "PrometheusEventPublisher"]
