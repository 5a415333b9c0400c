"""Application ports (interfaces)."""
from perp_market.application.ports.outbound import (
    CustodyPort,
    EventPublisherPort,
    IdentityPort,
    OraclePort,
    PriceFeedPort,
    StateStorePort,
    TimeProviderPort,
)

__all__ = [
    "CustodyPort",
    "EventPublisherPort",
    "IdentityPort",
    "OraclePort",
    "PriceFeedPort",
    "StateStorePort",
    "TimeProviderPort",
]
