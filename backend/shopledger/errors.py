# Overview: Error taxonomy shared by the core services and the HTTP layer.

"""
Shop Ledger Errors

WHY: Every failure in the sale/purchase/credit/shift engines aborts its
enclosing transaction and is reported to the caller with a stable code and
a human-readable message. Routes translate these into JSON responses.

CATEGORIES:
- ValidationError (400): missing/malformed input, nothing was written
- BusinessRuleError (409): input is well-formed but a shop rule refuses it
- NotFoundError (404): entity absent *in the caller's shop* (cross-shop
  lookups look exactly like missing rows)
- ConflictError (409): integrity conflicts (duplicate names, unique keys)
"""

from __future__ import annotations


class ShopLedgerError(Exception):
    """Base class for all domain errors raised by the services."""

    status_code = 400
    code = "ERROR"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


# =============================================================================
# CATEGORY BASES
# =============================================================================

class ValidationError(ShopLedgerError):
    status_code = 400
    code = "VALIDATION_ERROR"


class BusinessRuleError(ShopLedgerError):
    status_code = 409
    code = "BUSINESS_RULE_VIOLATION"


class NotFoundError(ShopLedgerError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(ShopLedgerError):
    status_code = 409
    code = "CONFLICT"


# =============================================================================
# VALIDATION
# =============================================================================

class InvalidPayload(ValidationError):
    code = "INVALID_PAYLOAD"


class EmptyCart(ValidationError):
    code = "EMPTY_CART"

    def __init__(self, message: str = "At least one item is required."):
        super().__init__(message)


class InvalidPaymentMethod(ValidationError):
    code = "INVALID_PAYMENT_METHOD"

    def __init__(self, payment_type=None):
        super().__init__(
            "Payment type must be cash, credit, mpesa, or sacco.",
            details={"payment_type": payment_type},
        )


class InvalidAmount(ValidationError):
    code = "INVALID_AMOUNT"

    def __init__(self, message: str = "Payment amount must be greater than 0."):
        super().__init__(message)


class SupplierRequired(ValidationError):
    code = "SUPPLIER_REQUIRED"

    def __init__(self, message: str = "Supplier information is required."):
        super().__init__(message)


# =============================================================================
# BUSINESS RULES
# =============================================================================

class InsufficientStock(BusinessRuleError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, item_id: int, item_name: str, available: int, requested: int):
        super().__init__(
            f'Insufficient stock for "{item_name}". Available: {available}, Requested: {requested}',
            details={
                "item_id": item_id,
                "item_name": item_name,
                "available": available,
                "requested": requested,
            },
        )


class CustomerRequiredForCredit(BusinessRuleError):
    code = "CUSTOMER_REQUIRED_FOR_CREDIT"

    def __init__(self):
        super().__init__("Customer name is required for credit sales.")


class AlreadyVoided(BusinessRuleError):
    code = "ALREADY_VOIDED"

    def __init__(self, receipt_number: str | None = None):
        super().__init__(
            "Sale already voided.",
            details={"receipt_number": receipt_number} if receipt_number else None,
        )


class EntryVoided(BusinessRuleError):
    code = "ENTRY_VOIDED"

    def __init__(self, entry_id: int):
        super().__init__("Credit entry was voided and cannot take payments.", details={"ledger_id": entry_id})


class ShiftAlreadyOpen(BusinessRuleError):
    code = "SHIFT_ALREADY_OPEN"

    def __init__(self, shift_id: int):
        super().__init__("You already have an open shift.", details={"shift_id": shift_id})


class NoOpenShift(BusinessRuleError):
    code = "NO_OPEN_SHIFT"

    def __init__(self):
        super().__init__("No open shift found.")


# =============================================================================
# NOT FOUND
# =============================================================================

class ItemNotFound(NotFoundError):
    code = "ITEM_NOT_FOUND"

    def __init__(self, item_id=None):
        super().__init__(f"Item not found: {item_id}" if item_id is not None else "Item not found.")


class SaleNotFound(NotFoundError):
    code = "SALE_NOT_FOUND"

    def __init__(self):
        super().__init__("Sale not found.")


class EntryNotFound(NotFoundError):
    code = "ENTRY_NOT_FOUND"

    def __init__(self):
        super().__init__("Credit entry not found.")


class CustomerNotFound(NotFoundError):
    code = "CUSTOMER_NOT_FOUND"

    def __init__(self):
        super().__init__("Customer not found.")


class SupplierNotFound(NotFoundError):
    code = "SUPPLIER_NOT_FOUND"

    def __init__(self):
        super().__init__("Supplier not found.")


# =============================================================================
# CONFLICTS
# =============================================================================

class DuplicateName(ConflictError):
    code = "DUPLICATE_NAME"


class IntegrityConflict(ConflictError):
    code = "INTEGRITY_CONFLICT"

    def __init__(self, message: str = "The operation conflicted with a concurrent change. Please retry."):
        super().__init__(message)
