"""
Domain Exceptions

Every rule violation of the margin ledger, collateral registry and order
pipeline. Each error aborts the whole operation and carries the offending
values as attributes.
"""
from decimal import Decimal
from typing import Optional


class PerpMarketError(Exception):
    """Base exception for domain errors."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        """
        Args:
            message: Error message
            error_code: Stable error code for callers
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code


# --- Authorization ---

class UnauthorizedError(PerpMarketError):
    """Caller lacks the capability required by the operation."""

    def __init__(self, caller: str, action: str):
        super().__init__(f"Unauthorized: {caller} cannot {action}", error_code="UNAUTHORIZED")
        self.caller = caller
        self.action = action


# --- Input validation ---

class ZeroAddressError(PerpMarketError):
    """A required identifier is null or the zero address."""

    def __init__(self, field_name: str = "id"):
        super().__init__(f"Zero address supplied for {field_name}", error_code="ZERO_ADDRESS")
        self.field_name = field_name


class DuplicateCollateralError(PerpMarketError):
    """The same collateral type appears twice in a configuration."""

    def __init__(self, collateral_type_id: str):
        super().__init__(
            f"Duplicate collateral type: {collateral_type_id}",
            error_code="DUPLICATE_COLLATERAL",
        )
        self.collateral_type_id = collateral_type_id


class InvalidCollateralConfigurationError(PerpMarketError):
    """Collateral entry has an invalid parameter."""

    def __init__(self, collateral_type_id: str, reason: str):
        super().__init__(
            f"Invalid collateral configuration ({collateral_type_id}): {reason}",
            error_code="INVALID_COLLATERAL_CONFIGURATION",
        )
        self.collateral_type_id = collateral_type_id
        self.reason = reason


class InvalidMarketConfigurationError(PerpMarketError):
    """Market configuration breaks one of its invariants."""

    def __init__(self, reason: str):
        super().__init__(
            f"Invalid market configuration: {reason}",
            error_code="INVALID_MARKET_CONFIGURATION",
        )
        self.reason = reason


class UnsupportedCollateralError(PerpMarketError):
    """Collateral type is not whitelisted."""

    def __init__(self, collateral_type_id: str):
        super().__init__(
            f"Unsupported collateral: {collateral_type_id}",
            error_code="UNSUPPORTED_COLLATERAL",
        )
        self.collateral_type_id = collateral_type_id


class AccountNotFoundError(PerpMarketError):
    """Account does not exist."""

    def __init__(self, account_id: int):
        super().__init__(f"Account not found: {account_id}", error_code="ACCOUNT_NOT_FOUND")
        self.account_id = account_id


class MarketNotFoundError(PerpMarketError):
    """Market does not exist."""

    def __init__(self, market_id: int):
        super().__init__(f"Market not found: {market_id}", error_code="MARKET_NOT_FOUND")
        self.market_id = market_id


class OrderFoundError(PerpMarketError):
    """A pending order already exists for (account, market)."""

    def __init__(self, account_id: int, market_id: int):
        super().__init__(
            f"Pending order found for account {account_id} in market {market_id}",
            error_code="ORDER_FOUND",
        )
        self.account_id = account_id
        self.market_id = market_id


class OrderNotFoundError(PerpMarketError):
    """No pending order exists for (account, market)."""

    def __init__(self, account_id: int, market_id: int):
        super().__init__(
            f"No pending order for account {account_id} in market {market_id}",
            error_code="ORDER_NOT_FOUND",
        )
        self.account_id = account_id
        self.market_id = market_id


class NilOrderError(PerpMarketError):
    """Order size delta is zero."""

    def __init__(self):
        super().__init__("Order size delta must be non-zero", error_code="NIL_ORDER")


class InvalidOrderError(PerpMarketError):
    """Order parameter out of range (limit price, keeper fee buffer)."""

    def __init__(self, reason: str):
        super().__init__(f"Invalid order: {reason}", error_code="INVALID_ORDER")
        self.reason = reason


class OrderNotExpiredError(PerpMarketError):
    """Order cannot be cancelled before it has expired."""

    def __init__(self, commitment_time: int, now: int, max_order_age: int):
        super().__init__(
            f"Order not expired: committed at {commitment_time}, now {now}, "
            f"max order age {max_order_age}s",
            error_code="ORDER_NOT_EXPIRED",
        )
        self.commitment_time = commitment_time
        self.now = now
        self.max_order_age = max_order_age


# --- Resource limits ---

class MaxCollateralExceededError(PerpMarketError):
    """Deposit would exceed the collateral's maximum allowable amount."""

    def __init__(self, collateral_type_id: str, available: Decimal, amount: Decimal, max_allowable: Decimal):
        super().__init__(
            f"Max collateral exceeded ({collateral_type_id}): "
            f"{available} + {amount} > {max_allowable}",
            error_code="MAX_COLLATERAL_EXCEEDED",
        )
        self.collateral_type_id = collateral_type_id
        self.available = available
        self.amount = amount
        self.max_allowable = max_allowable


class InsufficientCollateralError(PerpMarketError):
    """Withdrawal larger than the available collateral."""

    def __init__(self, collateral_type_id: str, available: Decimal, amount: Decimal):
        super().__init__(
            f"Insufficient collateral ({collateral_type_id}): "
            f"available {available}, requested {amount}",
            error_code="INSUFFICIENT_COLLATERAL",
        )
        self.collateral_type_id = collateral_type_id
        self.available = available
        self.amount = amount


class MaxMarketSizeExceededError(PerpMarketError):
    """Open interest on one side would exceed the market cap."""

    def __init__(self, market_id: int, side_size: Decimal, max_market_size: Decimal):
        super().__init__(
            f"Max market size exceeded in market {market_id}: "
            f"{side_size} > {max_market_size}",
            error_code="MAX_MARKET_SIZE_EXCEEDED",
        )
        self.market_id = market_id
        self.side_size = side_size
        self.max_market_size = max_market_size


class ArithmeticOverflowError(PerpMarketError):
    """Fixed-point arithmetic left the representable range."""

    def __init__(self, operation: str, value: Decimal):
        super().__init__(f"Arithmetic overflow in {operation}: {value}", error_code="ARITHMETIC_OVERFLOW")
        self.operation = operation
        self.value = value


# --- Risk violations ---

class InsufficientMarginError(PerpMarketError):
    """Margin does not cover the requirement after the operation."""

    def __init__(self, margin_usd: Decimal, required_usd: Decimal):
        super().__init__(
            f"Insufficient margin: {margin_usd} < required {required_usd}",
            error_code="INSUFFICIENT_MARGIN",
        )
        self.margin_usd = margin_usd
        self.required_usd = required_usd


class CanLiquidatePositionError(PerpMarketError):
    """Position is (or would become) liquidatable."""

    def __init__(self, account_id: int, market_id: int, margin_usd: Decimal, threshold_usd: Decimal):
        super().__init__(
            f"Position can be liquidated (account {account_id}, market {market_id}): "
            f"margin {margin_usd} < threshold {threshold_usd}",
            error_code="CAN_LIQUIDATE_POSITION",
        )
        self.account_id = account_id
        self.market_id = market_id
        self.margin_usd = margin_usd
        self.threshold_usd = threshold_usd


class LimitPriceExceededError(PerpMarketError):
    """Fill price is worse than the trader's limit."""

    def __init__(self, fill_price: Decimal, limit_price: Decimal):
        super().__init__(
            f"Limit price exceeded: fill {fill_price}, limit {limit_price}",
            error_code="LIMIT_PRICE_EXCEEDED",
        )
        self.fill_price = fill_price
        self.limit_price = limit_price


# --- Timing violations ---

class OrderTooEarlyError(PerpMarketError):
    """Settlement before the minimum order age."""

    def __init__(self, order_age: int, min_order_age: int):
        super().__init__(
            f"Order too early: age {order_age}s < min {min_order_age}s",
            error_code="ORDER_TOO_EARLY",
        )
        self.order_age = order_age
        self.min_order_age = min_order_age


class OrderExpiredError(PerpMarketError):
    """Settlement after the maximum order age."""

    def __init__(self, order_age: int, max_order_age: int):
        super().__init__(
            f"Order expired: age {order_age}s > max {max_order_age}s",
            error_code="ORDER_EXPIRED",
        )
        self.order_age = order_age
        self.max_order_age = max_order_age


class StalePriceError(PerpMarketError):
    """Price publish time falls outside the accepted window."""

    def __init__(self, publish_time: int, window_start: int, window_end: int, error_code: str = "STALE_PRICE"):
        super().__init__(
            f"Price published at {publish_time} outside window [{window_start}, {window_end}]",
            error_code=error_code,
        )
        self.publish_time = publish_time
        self.window_start = window_start
        self.window_end = window_end


class PriceTooFreshError(StalePriceError):
    """Price was published too close to (or after) settlement."""

    def __init__(self, publish_time: int, window_start: int, window_end: int):
        super().__init__(publish_time, window_start, window_end, error_code="PRICE_TOO_FRESH")


# --- Price validation ---

class InvalidPriceError(PerpMarketError):
    """Oracle or feed returned a non-positive price."""

    def __init__(self, source: str, price: Decimal):
        super().__init__(f"Invalid price from {source}: {price}", error_code="INVALID_PRICE")
        self.source = source
        self.price = price


class PriceFeedMismatchError(PerpMarketError):
    """Update belongs to a different feed than the market expects."""

    def __init__(self, expected_feed_id: str, actual_feed_id: str):
        super().__init__(
            f"Price feed mismatch: expected {expected_feed_id}, got {actual_feed_id}",
            error_code="PRICE_FEED_MISMATCH",
        )
        self.expected_feed_id = expected_feed_id
        self.actual_feed_id = actual_feed_id
