# Overview: Role-based permission table and the single authorization predicate.

"""
Authorization for the storefront.

Roles are fixed at account creation (admin, seller, customer). Every
workflow entry point and every protected route asks the same question:
does this role hold this permission? The answer comes from ROLE_PERMISSIONS
and nowhere else.
"""

from __future__ import annotations

from .errors import Forbidden


ROLE_ADMIN = "admin"
ROLE_SELLER = "seller"
ROLE_CUSTOMER = "customer"

ROLES = (ROLE_ADMIN, ROLE_SELLER, ROLE_CUSTOMER)


PERMISSIONS = {
    "MANAGE_PRODUCTS": "Create, edit and delete catalog products",
    "VIEW_ORDERS": "View every customer order",
    "MANAGE_ORDERS": "Change order and payment status, delete orders",
    "LOG_SALE": "Record a direct sale",
    "VIEW_SALES": "View every sale record",
    "REQUEST_STOCK": "Ask the store for more stock of a product",
    "MANAGE_REQUESTS": "Review and complete product requests",
    "MANAGE_ACCOUNTS": "List accounts, create sellers, delete accounts",
    "VIEW_ANALYTICS": "View sales analytics",
}


ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    ROLE_ADMIN: frozenset({
        "MANAGE_PRODUCTS",
        "VIEW_ORDERS",
        "MANAGE_ORDERS",
        "LOG_SALE",
        "VIEW_SALES",
        "MANAGE_REQUESTS",
        "MANAGE_ACCOUNTS",
        "VIEW_ANALYTICS",
    }),
    ROLE_SELLER: frozenset({
        "LOG_SALE",
        "REQUEST_STOCK",
    }),
    ROLE_CUSTOMER: frozenset(),
}


def has_permission(role: str | None, permission_code: str) -> bool:
    if permission_code not in PERMISSIONS:
        raise KeyError(f"Unknown permission: {permission_code}")
    return permission_code in ROLE_PERMISSIONS.get(role or "", frozenset())


def authorize(role: str | None, permission_code: str) -> None:
    """Raise Forbidden unless ``role`` holds ``permission_code``."""
    if not has_permission(role, permission_code):
        raise Forbidden(
            "Permission denied",
            details={"required_permission": permission_code, "role": role},
        )
