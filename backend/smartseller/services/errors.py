# Overview: Domain error taxonomy shared by the fulfillment services and the routes.

"""
Every error carries a message, a structured ``details`` dict and the HTTP
status the API layer renders it with. Raising any of them inside a unit of
work rolls the whole operation back.
"""

from __future__ import annotations


class FulfillmentError(Exception):
    """Base class for business-rule, not-found and conflict errors."""
    status_code = 400
    retryable = False

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": str(self), "details": self.details}
        if self.retryable:
            body["retryable"] = True
        return body


# =============================================================================
# NOT FOUND (404)
# =============================================================================

class NotFoundError(FulfillmentError):
    status_code = 404


class OrderNotFound(NotFoundError):
    pass


class ProductNotFound(NotFoundError):
    pass


class ComboNotFound(NotFoundError):
    pass


class MarketItemNotFound(NotFoundError):
    pass


class ReportSessionNotFound(NotFoundError):
    pass


# =============================================================================
# BUSINESS RULES
# =============================================================================

class BusinessRuleError(FulfillmentError):
    status_code = 400


class EmptyOrder(BusinessRuleError):
    pass


class InvalidCombo(BusinessRuleError):
    pass


class DiscountExceeded(BusinessRuleError):
    pass


class IncompatibleDebtCredit(BusinessRuleError):
    pass


class DuplicateIngredient(BusinessRuleError):
    pass


class InsufficientStock(BusinessRuleError):
    status_code = 409

    @property
    def shortfalls(self) -> list[dict]:
        return self.details.get("insufficient", [])


class ComboInUse(BusinessRuleError):
    status_code = 409


class ProductInUse(BusinessRuleError):
    status_code = 409


class NotDelivered(BusinessRuleError):
    status_code = 409


class WrongStatus(BusinessRuleError):
    status_code = 409


# =============================================================================
# CONFLICT (retryable)
# =============================================================================

class StockConflict(FulfillmentError):
    """A concurrent operation consumed stock between validation and decrement."""
    status_code = 409
    retryable = True
