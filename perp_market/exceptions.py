"""
Infrastructure-level exceptions (configuration, external collaborators).

Domain rule violations live in perp_market.domain.exceptions.
"""
from typing import Optional


class PerpInfrastructureError(Exception):
    """Base exception for failures outside the domain rules."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        """
        Args:
            message: Error message
            error_code: Machine readable error code (optional)
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class ConfigurationError(PerpInfrastructureError):
    """Invalid environment configuration."""

    def __init__(self, config_key: str, reason: str):
        """
        Args:
            config_key: Offending configuration key
            reason: Why the value was rejected
        """
        message = f"Configuration error ({config_key}): {reason}"
        super().__init__(message, error_code="CONFIGURATION_ERROR")
        self.config_key = config_key
        self.reason = reason


class CustodyError(PerpInfrastructureError):
    """Upstream custody collaborator refused a funds movement."""

    def __init__(self, operation: str, collateral_type_id: str, reason: str):
        """
        Args:
            operation: Custody operation name (e.g. 'pull', 'withdraw')
            collateral_type_id: Collateral being moved
            reason: Failure reason reported by custody
        """
        message = f"Custody {operation} failed ({collateral_type_id}): {reason}"
        super().__init__(message, error_code="CUSTODY_FAILED")
        self.operation = operation
        self.collateral_type_id = collateral_type_id
        self.reason = reason


class PriceFeedDecodeError(PerpInfrastructureError):
    """Price update blob could not be decoded."""

    def __init__(self, reason: str):
        super().__init__(f"Malformed price update: {reason}", error_code="PRICE_FEED_DECODE")
        self.reason = reason
