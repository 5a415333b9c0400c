"""
PrometheusEventPublisher - Venue metrics derived from domain events.

Metrics live on their own CollectorRegistry so several venues (or test
cases) can run in one process.
"""
import logging
from typing import Optional, Sequence

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest

from perp_market.application.ports.outbound.event_publisher_port import EventPublisherPort
from perp_market.domain.events import (
    CollateralConfigured,
    KEEPER_FEE_TRANSFER,
    DomainEvent,
    MarketConfigured,
    MarketCreated,
    OrderCanceled,
    OrderCommitted,
    OrderSettled,
    Transfer,
)
from perp_market.domain.value_objects.identifiers import LEDGER_ADDRESS

logger = logging.getLogger(__name__)


class PrometheusEventPublisher(EventPublisherPort):
    """Counts orders, transfers and fees per market."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()

        # --- Orders ---
        self.orders_committed_total = Counter(
            'perp_orders_committed_total',
            'Total committed orders',
            ['market_id', 'side'],
            registry=self.registry,
        )
        self.orders_settled_total = Counter(
            'perp_orders_settled_total',
            'Total settled orders',
            ['market_id', 'side'],
            registry=self.registry,
        )
        self.orders_canceled_total = Counter(
            'perp_orders_canceled_total',
            'Total expired or cancelled orders',
            ['market_id', 'state'],
            registry=self.registry,
        )

        # --- Fees ---
        self.order_fees_usd = Counter(
            'perp_order_fees_usd_total',
            'Total order fees in USD',
            ['market_id'],
            registry=self.registry,
        )
        self.keeper_fees_usd = Counter(
            'perp_keeper_fees_usd_total',
            'Total keeper fees in USD',
            ['market_id'],
            registry=self.registry,
        )

        # --- Margin and Registry ---
        self.transfers_total = Counter(
            'perp_margin_transfers_total',
            'Total margin transfers',
            ['market_id', 'direction'],
            registry=self.registry,
        )
        self.configured_collaterals = Gauge(
            'perp_configured_collaterals',
            'Number of whitelisted collateral types',
            registry=self.registry,
        )
        self.markets_total = Counter(
            'perp_markets_created_total',
            'Total created markets',
            registry=self.registry,
        )
        self.market_configurations_total = Counter(
            'perp_market_configurations_total',
            'Total market configuration changes',
            ['market_id'],
            registry=self.registry,
        )

    async def publish(self, events: Sequence[DomainEvent]) -> None:
        for event in events:
            self._record(event)

    def _record(self, event: DomainEvent) -> None:
        if isinstance(event, OrderCommitted):
            side = 'long' if event.size_delta > 0 else 'short'
            self.orders_committed_total.labels(market_id=str(event.market_id), side=side).inc()
        elif isinstance(event, OrderSettled):
            market_id = str(event.market_id)
            side = 'long' if event.size_delta > 0 else 'short'
            self.orders_settled_total.labels(market_id=market_id, side=side).inc()
            self.order_fees_usd.labels(market_id=market_id).inc(float(event.order_fee))
            self.keeper_fees_usd.labels(market_id=market_id).inc(float(event.keeper_fee))
        elif isinstance(event, OrderCanceled):
            self.orders_canceled_total.labels(
                market_id=str(event.market_id), state=event.state.value
            ).inc()
        elif isinstance(event, Transfer):
            if event.kind == KEEPER_FEE_TRANSFER:
                direction = 'keeper_payout'
            elif event.to_address == LEDGER_ADDRESS:
                direction = 'deposit'
            else:
                direction = 'withdraw'
            self.transfers_total.labels(market_id=str(event.market_id), direction=direction).inc()
        elif isinstance(event, CollateralConfigured):
            self.configured_collaterals.set(event.count)
        elif isinstance(event, MarketCreated):
            self.markets_total.inc()
        elif isinstance(event, MarketConfigured):
            self.market_configurations_total.labels(market_id=str(event.market_id)).inc()
        else:
            logger.debug(f"No metric for event {event.name}")

    def render(self) -> bytes:
        """Exposition-format dump of the registry."""
        return generate_latest(self.registry)
