# Outbound ports (external system interfaces)
from perp_market.application.ports.outbound.identity_port import IdentityPort
from perp_market.application.ports.outbound.custody_port import CustodyPort
from perp_market.application.ports.outbound.oracle_port import OraclePort
from perp_market.application.ports.outbound.price_feed_port import PriceFeedPort, PriceFeedUpdate
from perp_market.application.ports.outbound.time_provider_port import (
    TimeProviderPort,
    SystemTimeAdapter,
    FixedTimeAdapter,
)
from perp_market.application.ports.outbound.state_store_port import StateStorePort
from perp_market.application.ports.outbound.event_publisher_port import EventPublisherPort

__all__ = [
    "IdentityPort",
    "CustodyPort",
    "OraclePort",
    "PriceFeedPort",
    "PriceFeedUpdate",
    "TimeProviderPort",
    "SystemTimeAdapter",
    "FixedTimeAdapter",
    "StateStorePort",
    "EventPublisherPort",
]
