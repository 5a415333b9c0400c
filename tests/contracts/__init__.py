"""
Contracts - venue-wide guarantees

A failing test here means funds or risk limits can be violated.

Core contracts:
- Collateral cap: no ledger entry exceeds its collateral's max_allowable
- Pending order lock: no margin transfer while an order is pending
- Settlement timing: orders settle only inside [min_order_age, max_order_age]
  with a price published inside the publish-time band
- Margin safety: no operation leaves a position liquidatable
- Atomicity: a failed operation changes nothing
- Fee accounting: market custody = ledger + retained order fees
"""
