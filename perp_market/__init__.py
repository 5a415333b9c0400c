"""
perp_market - risk and settlement core of a perpetual-futures venue.

Multi-collateral margin ledger, commit/settle order pipeline driven by a
delayed Pyth-style price feed, and a deterministic position risk evaluator.
"""
__version__ = "0.1.0"
