"""Application use cases."""
from perp_market.application.use_cases.account_queries import AccountQueriesUseCase
from perp_market.application.use_cases.configure_collateral import CollateralRegistryUseCase
from perp_market.application.use_cases.configure_market import MarketRegistryUseCase
from perp_market.application.use_cases.order_pipeline import OrderPipelineUseCase
from perp_market.application.use_cases.transfer_margin import MarginLedgerUseCase

__all__ = [
    "AccountQueriesUseCase",
    "CollateralRegistryUseCase",
    "MarketRegistryUseCase",
    "OrderPipelineUseCase",
    "MarginLedgerUseCase",
]
