"""Domain services."""
from perp_market.domain.services.fee_calculator import FeeCalculator, SettlementFees
from perp_market.domain.services.risk_evaluator import (
    LiquidationMargin,
    PositionRiskEvaluator,
    RiskAssessment,
)
from perp_market.domain.services import order_rules

__all__ = [
    "FeeCalculator",
    "SettlementFees",
    "LiquidationMargin",
    "PositionRiskEvaluator",
    "RiskAssessment",
    "order_rules",
]
