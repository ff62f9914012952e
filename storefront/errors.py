"""
Error taxonomy.

    ValidationFailed    — malformed input, caught before any side effect
    BusinessRuleError   — stock, coupon, total mismatch; caller can self-correct
    UpstreamError       — datastore / payment gateway failures
    ConfigError         — missing environment configuration

Best-effort side-effect failures are never raised; see storefront.steps.
"""

from __future__ import annotations


class StorefrontError(Exception):
    """Base error. `code` is stable, `message` is safe to show to the caller."""

    code = "STOREFRONT_ERROR"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


# ═══════════════════════════════════════════════════════════════════════════════
# Validation
# ═══════════════════════════════════════════════════════════════════════════════


class ValidationFailed(StorefrontError):
    code = "VALIDATION_FAILED"


# ═══════════════════════════════════════════════════════════════════════════════
# Business Rules
# ═══════════════════════════════════════════════════════════════════════════════


class BusinessRuleError(StorefrontError):
    code = "BUSINESS_RULE"


class ProductNotFound(BusinessRuleError):
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str, product_name: str | None = None) -> None:
        self.product_id = product_id
        self.product_name = product_name
        super().__init__(f"Product {product_name or product_id} not found")


class InsufficientStock(BusinessRuleError):
    code = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        product_id: str,
        product_name: str,
        requested: int,
        available: int,
    ) -> None:
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {product_name}. Only {available} available."
        )


class TotalMismatch(BusinessRuleError):
    code = "TOTAL_MISMATCH"

    def __init__(self, expected: float, provided: float) -> None:
        self.expected = expected
        self.provided = provided
        super().__init__("Order total validation failed")


class PriceMismatch(BusinessRuleError):
    code = "PRICE_MISMATCH"

    def __init__(self, product_id: str, product_name: str, expected: float, provided: float) -> None:
        self.product_id = product_id
        self.product_name = product_name
        self.expected = expected
        self.provided = provided
        super().__init__(f"Price for {product_name} has changed. Please refresh your cart.")


class PaymentNotConfirmed(BusinessRuleError):
    code = "PAYMENT_NOT_CONFIRMED"

    def __init__(self, order_id: str, invoice_status: str | None = None) -> None:
        self.order_id = order_id
        self.invoice_status = invoice_status
        super().__init__("Payment has not been confirmed")


class CouponRejected(BusinessRuleError):
    code = "COUPON_REJECTED"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class CouponNotFound(CouponRejected):
    code = "COUPON_NOT_FOUND"

    def __init__(self, coupon_code: str) -> None:
        self.coupon_code = coupon_code
        super().__init__("Invalid coupon code")


class OrderNotFound(BusinessRuleError):
    code = "ORDER_NOT_FOUND"

    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        super().__init__("Order not found")


class InvalidTransition(BusinessRuleError):
    code = "INVALID_TRANSITION"

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot change order status from {current} to {target}")


# ═══════════════════════════════════════════════════════════════════════════════
# Upstream
# ═══════════════════════════════════════════════════════════════════════════════


class UpstreamError(StorefrontError):
    code = "UPSTREAM"

    def __init__(self, message: str = "Internal server error", *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class StoreFailure(UpstreamError):
    code = "STORE_FAILURE"


class GatewayError(UpstreamError):
    """Payment gateway failure. `message` never contains the upstream body."""

    code = "GATEWAY_ERROR"

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 502,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.status_code = status_code


class InvoiceCreationFailed(UpstreamError):
    """Checkout step 4 failed; the pending order is retained for retry."""

    code = "INVOICE_CREATION_FAILED"

    def __init__(self, order_id: str, cause: GatewayError) -> None:
        super().__init__(cause.message, cause=cause)
        self.order_id = order_id
        self.status_code = cause.status_code


# ═══════════════════════════════════════════════════════════════════════════════
# Configuration
# ═══════════════════════════════════════════════════════════════════════════════


class ConfigError(StorefrontError):
    code = "CONFIG_ERROR"

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Missing required configuration: {', '.join(missing)}")


__all__ = (
    "StorefrontError",
    "ValidationFailed",
    "BusinessRuleError",
    "ProductNotFound",
    "InsufficientStock",
    "TotalMismatch",
    "PriceMismatch",
    "PaymentNotConfirmed",
    "CouponRejected",
    "CouponNotFound",
    "OrderNotFound",
    "InvalidTransition",
    "UpstreamError",
    "StoreFailure",
    "GatewayError",
    "InvoiceCreationFailed",
    "ConfigError",
)
