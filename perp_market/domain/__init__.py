"""
Domain Layer - Pure Business Logic

Margin, order and risk rules with zero external dependencies.

Structure:
- entities/: CollateralType, MarginLedgerEntry, Market, Order, Position
- value_objects/: fixed-point helpers, Percentage, identifiers
- services/: PositionRiskEvaluator, FeeCalculator, order rules
- events.py: domain events emitted by every mutating operation
- exceptions.py: domain-specific exceptions
"""
