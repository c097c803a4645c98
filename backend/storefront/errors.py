# Overview: Error taxonomy shared by services and routes.

"""
Storefront errors.

Every workflow failure is raised as one of these. Routes translate them with
``jsonify(err.to_dict()), err.status_code``; nothing here is retried.

Stock conflicts (InsufficientStock) and missing catalog entries
(ProductNotFound) carry structured details so clients can tell
"3 available" apart from "item removed from catalog".
"""

from __future__ import annotations


class StorefrontError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 400
    code = "error"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(StorefrontError):
    """400-level input problem."""

    status_code = 400
    code = "validation_error"


class EmptyInputError(ValidationError):
    """A request that needs line items arrived without any."""

    code = "empty_input"


class AuthenticationError(StorefrontError):
    status_code = 401
    code = "unauthenticated"


class Forbidden(StorefrontError):
    """Caller's role does not allow the operation."""

    status_code = 403
    code = "forbidden"


class NotFound(StorefrontError):
    """Missing order, request or account."""

    status_code = 404
    code = "not_found"


class ProductNotFound(NotFound):
    code = "product_not_found"

    def __init__(self, product_ids):
        ids = sorted(set(product_ids))
        label = ", ".join(str(i) for i in ids)
        super().__init__(
            f"Product not found: {label}",
            details={"product_ids": ids},
        )
        self.product_ids = ids


class InsufficientStock(StorefrontError):
    status_code = 409
    code = "insufficient_stock"

    def __init__(self, items: list[dict]):
        # items: [{"product_id", "requested_quantity", "available"}]
        if len(items) == 1:
            message = f"insufficient stock: {items[0]['available']} available"
        else:
            message = f"insufficient stock for {len(items)} products"
        super().__init__(message, details={"items": items})
        self.items = items


class DuplicateAccount(StorefrontError):
    status_code = 409
    code = "duplicate_account"


class InvalidTransition(StorefrontError):
    status_code = 409
    code = "invalid_transition"


class ConflictError(StorefrontError):
    """409-level business rule conflict (e.g., deleting a referenced product)."""

    status_code = 409
    code = "conflict"


class InternalError(StorefrontError):
    """Storage failure that could not be resolved."""

    status_code = 500
    code = "internal"
