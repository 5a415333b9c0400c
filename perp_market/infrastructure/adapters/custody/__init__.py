from perp_market.infrastructure.adapters.custody.memory_custody_adapter import InMemoryCustodyAdapter

__all__ = ["InMemoryCustodyAdapter"]
