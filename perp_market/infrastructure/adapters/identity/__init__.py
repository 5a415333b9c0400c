from perp_market.infrastructure.adapters.identity.memory_identity_adapter import InMemoryIdentityAdapter

__all__ = ["InMemoryIdentityAdapter"]
