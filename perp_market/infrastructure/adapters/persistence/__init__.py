from perp_market.infrastructure.adapters.persistence.memory_state_store import InMemoryStateStore

__all__ = ["InMemoryStateStore"]
