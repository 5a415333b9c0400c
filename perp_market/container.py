"""
Dependency Injection Container.

This module provides a central container for wiring dependencies
following the Dependency Inversion Principle.

Usage:
    # Embedding in a venue
    container = Container(
        identity_port=identity,
        custody_port=custody,
        oracle_port=oracle,
    )
    pipeline = container.get_order_pipeline_use_case()

    # Testing
    container = Container.create_for_testing()
    # or with custom mocks
    container = Container.create_for_testing(custody_port=mock_custody)
"""
from typing import Optional

from perp_market.application.ports.outbound.custody_port import CustodyPort
from perp_market.application.ports.outbound.event_publisher_port import EventPublisherPort
from perp_market.application.ports.outbound.identity_port import IdentityPort
from perp_market.application.ports.outbound.oracle_port import OraclePort
from perp_market.application.ports.outbound.price_feed_port import PriceFeedPort
from perp_market.application.ports.outbound.state_store_port import StateStorePort
from perp_market.application.ports.outbound.time_provider_port import (
    FixedTimeAdapter,
    SystemTimeAdapter,
    TimeProviderPort,
)
from perp_market.application.services.access_guard import AccessGuard
from perp_market.application.services.margin_service import MarginService
from perp_market.application.services.price_oracle import PriceOracleService
from perp_market.application.use_cases.account_queries import AccountQueriesUseCase
from perp_market.application.use_cases.configure_collateral import CollateralRegistryUseCase
from perp_market.application.use_cases.configure_market import MarketRegistryUseCase
from perp_market.application.use_cases.order_pipeline import OrderPipelineUseCase
from perp_market.application.use_cases.transfer_margin import MarginLedgerUseCase
from perp_market.exceptions import ConfigurationError

# Default clock of test containers (2024-01-01T00:00:00Z)
TEST_START_TIME = 1_704_067_200
TEST_OWNER_ADDRESS = "0x" + "a" * 40


class Container:
    """
    Dependency Injection Container.

    Manages the creation and wiring of application dependencies.
    Port instances and use cases are created once and cached.
    """

    def __init__(
        self,
        state_store: Optional[StateStorePort] = None,
        identity_port: Optional[IdentityPort] = None,
        custody_port: Optional[CustodyPort] = None,
        oracle_port: Optional[OraclePort] = None,
        price_feed_port: Optional[PriceFeedPort] = None,
        time_provider: Optional[TimeProviderPort] = None,
        event_publisher: Optional[EventPublisherPort] = None,
    ):
        """
        Initialize container with optional port overrides.

        Args:
            state_store: Venue state (in-memory store if None)
            identity_port: Account/ownership checks (required)
            custody_port: Funds movements (required)
            oracle_port: Oracle manager (required)
            price_feed_port: Pyth update decoder (JSON codec if None)
            time_provider: Clock (wall clock if None)
            event_publisher: Event sink (Prometheus metrics if None)
        """
        self._state_store = state_store
        self._identity_port = identity_port
        self._custody_port = custody_port
        self._oracle_port = oracle_port
        self._price_feed_port = price_feed_port
        self._time_provider = time_provider
        self._event_publisher = event_publisher

        # Cached services
        self._price_oracle_service: Optional[PriceOracleService] = None
        self._margin_service: Optional[MarginService] = None
        self._access_guard: Optional[AccessGuard] = None

        # Cached use cases
        self._collateral_registry_use_case: Optional[CollateralRegistryUseCase] = None
        self._market_registry_use_case: Optional[MarketRegistryUseCase] = None
        self._margin_ledger_use_case: Optional[MarginLedgerUseCase] = None
        self._order_pipeline_use_case: Optional[OrderPipelineUseCase] = None
        self._account_queries_use_case: Optional[AccountQueriesUseCase] = None

    @classmethod
    def create_for_testing(
        cls,
        owner: str = TEST_OWNER_ADDRESS,
        start_time: int = TEST_START_TIME,
        **overrides,
    ) -> "Container":
        """
        Create container with in-memory adapters for testing.

        Args:
            owner: System owner (administrator) address
            start_time: Initial time of the pinned clock
            **overrides: Port overrides (same names as __init__)

        Returns:
            Container with test adapters
        """
        from perp_market.infrastructure.adapters.custody.memory_custody_adapter import InMemoryCustodyAdapter
        from perp_market.infrastructure.adapters.events.memory_event_publisher import InMemoryEventPublisher
        from perp_market.infrastructure.adapters.identity.memory_identity_adapter import InMemoryIdentityAdapter
        from perp_market.infrastructure.adapters.oracle.pyth_price_feed_adapter import PythPriceFeedAdapter
        from perp_market.infrastructure.adapters.oracle.static_oracle_adapter import StaticOracleAdapter
        from perp_market.infrastructure.adapters.persistence.memory_state_store import InMemoryStateStore

        ports = dict(
            state_store=InMemoryStateStore(),
            identity_port=InMemoryIdentityAdapter(owner=owner),
            custody_port=InMemoryCustodyAdapter(),
            oracle_port=StaticOracleAdapter(),
            price_feed_port=PythPriceFeedAdapter(),
            time_provider=FixedTimeAdapter(start_time),
            event_publisher=InMemoryEventPublisher(),
        )
        ports.update(overrides)
        return cls(**ports)

    # --- Port Getters ---

    def get_state_store(self) -> StateStorePort:
        """Get state store implementation."""
        if self._state_store is None:
            from perp_market.infrastructure.adapters.persistence.memory_state_store import InMemoryStateStore
            self._state_store = InMemoryStateStore()
        return self._state_store

    def get_identity_port(self) -> IdentityPort:
        """Get identity port implementation."""
        if self._identity_port is None:
            raise ConfigurationError("identity_port", "no identity adapter configured")
        return self._identity_port

    def get_custody_port(self) -> CustodyPort:
        """Get custody port implementation."""
        if self._custody_port is None:
            raise ConfigurationError("custody_port", "no custody adapter configured")
        return self._custody_port

    def get_oracle_port(self) -> OraclePort:
        """Get oracle port implementation."""
        if self._oracle_port is None:
            raise ConfigurationError("oracle_port", "no oracle adapter configured")
        return self._oracle_port

    def get_price_feed_port(self) -> PriceFeedPort:
        """Get price feed port implementation."""
        if self._price_feed_port is None:
            from perp_market.infrastructure.adapters.oracle.pyth_price_feed_adapter import PythPriceFeedAdapter
            self._price_feed_port = PythPriceFeedAdapter()
        return self._price_feed_port

    def get_time_provider(self) -> TimeProviderPort:
        """Get clock implementation."""
        if self._time_provider is None:
            self._time_provider = SystemTimeAdapter()
        return self._time_provider

    def get_event_publisher(self) -> EventPublisherPort:
        """Get event publisher implementation."""
        if self._event_publisher is None:
            from perp_market.infrastructure.adapters.events.prometheus_event_publisher import PrometheusEventPublisher
            self._event_publisher = PrometheusEventPublisher()
        return self._event_publisher

    # --- Service Getters ---

    def get_price_oracle_service(self) -> PriceOracleService:
        if self._price_oracle_service is None:
            self._price_oracle_service = PriceOracleService(
                oracle=self.get_oracle_port(),
                price_feed=self.get_price_feed_port(),
                time_provider=self.get_time_provider(),
            )
        return self._price_oracle_service

    def get_margin_service(self) -> MarginService:
        if self._margin_service is None:
            self._margin_service = MarginService(
                store=self.get_state_store(),
                price_oracle=self.get_price_oracle_service(),
            )
        return self._margin_service

    def get_access_guard(self) -> AccessGuard:
        if self._access_guard is None:
            self._access_guard = AccessGuard(self.get_identity_port())
        return self._access_guard

    # --- Use Case Getters ---

    def get_collateral_registry_use_case(self) -> CollateralRegistryUseCase:
        """Get CollateralRegistryUseCase instance."""
        if self._collateral_registry_use_case is None:
            self._collateral_registry_use_case = CollateralRegistryUseCase(
                store=self.get_state_store(),
                custody=self.get_custody_port(),
                access=self.get_access_guard(),
                publisher=self.get_event_publisher(),
            )
        return self._collateral_registry_use_case

    def get_market_registry_use_case(self) -> MarketRegistryUseCase:
        """Get MarketRegistryUseCase instance."""
        if self._market_registry_use_case is None:
            self._market_registry_use_case = MarketRegistryUseCase(
                store=self.get_state_store(),
                price_oracle=self.get_price_oracle_service(),
                access=self.get_access_guard(),
                publisher=self.get_event_publisher(),
            )
        return self._market_registry_use_case

    def get_margin_ledger_use_case(self) -> MarginLedgerUseCase:
        """Get MarginLedgerUseCase instance."""
        if self._margin_ledger_use_case is None:
            self._margin_ledger_use_case = MarginLedgerUseCase(
                store=self.get_state_store(),
                custody=self.get_custody_port(),
                price_oracle=self.get_price_oracle_service(),
                margin=self.get_margin_service(),
                access=self.get_access_guard(),
                publisher=self.get_event_publisher(),
            )
        return self._margin_ledger_use_case

    def get_order_pipeline_use_case(self) -> OrderPipelineUseCase:
        """Get OrderPipelineUseCase instance."""
        if self._order_pipeline_use_case is None:
            self._order_pipeline_use_case = OrderPipelineUseCase(
                store=self.get_state_store(),
                custody=self.get_custody_port(),
                price_oracle=self.get_price_oracle_service(),
                margin=self.get_margin_service(),
                access=self.get_access_guard(),
                time_provider=self.get_time_provider(),
                publisher=self.get_event_publisher(),
            )
        return self._order_pipeline_use_case

    def get_account_queries_use_case(self) -> AccountQueriesUseCase:
        """Get AccountQueriesUseCase instance."""
        if self._account_queries_use_case is None:
            self._account_queries_use_case = AccountQueriesUseCase(
                store=self.get_state_store(),
                price_oracle=self.get_price_oracle_service(),
                margin=self.get_margin_service(),
            )
        return self._account_queries_use_case
