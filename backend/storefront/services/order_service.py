# Overview: Service-layer order placement and order status management.

"""
Order Service

Checkout runs as a single unit of work:
  1. resolve the owner (authenticated caller, or a new customer account for
     a guest who supplied a password)
  2. re-price every line from the locked Product row
  3. DEBIT stock through inventory_service
  4. insert the Order (PENDING / UNPAID) with frozen snapshots
  5. insert the paired ONLINE SaleRecord
  6. remember addresses on the account; issue a token for a new account
and commits once. Any failure rolls back everything, including a freshly
created account, so there is never an account without its order or a stock
change without its order.

Order status and payment status are independent; see
ORDER_STATUS_PAYMENT_RULES for the hook that can couple them.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..errors import DuplicateAccount, Forbidden, NotFound, ValidationError
from ..extensions import db
from ..models import (
    ORDER_STATUSES,
    PAYMENT_STATUSES,
    SOURCE_ONLINE,
    Order,
    OrderLine,
    SaleRecord,
    SaleRecordLine,
    User,
)
from ..permissions import authorize, has_permission
from ..validation import parse_choice, parse_line_items, require_object, require_text
from . import auth_service, inventory_service, session_service
from .concurrency import begin_write, run_with_retry


# Order status -> payment statuses it may be combined with.
# Empty means the two axes are independent (current policy).
ORDER_STATUS_PAYMENT_RULES: dict[str, frozenset[str]] = {}


@dataclass
class PlacedOrder:
    order: Order
    user: User | None = None
    token: str | None = None

    def to_dict(self) -> dict:
        payload = {"order": self.order.to_dict()}
        if self.user is not None:
            payload["user"] = self.user.to_dict()
        if self.token is not None:
            payload["token"] = self.token
        return payload


@dataclass(frozen=True)
class CheckoutRequest:
    customer_name: str
    customer_email: str
    lines: list[tuple[int, int]]
    shipping_address: dict
    billing_requested: bool
    billing_details: dict | None
    user_id: int | None
    password: str | None


def parse_checkout(payload: dict) -> CheckoutRequest:
    """Validate a POST /orders body. Client prices and totals are ignored."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    customer_name = require_text(payload, "customer_name")
    customer_email = auth_service.normalize_email(payload.get("customer_email"))
    lines = parse_line_items(payload.get("items"))
    shipping_address = require_object(payload, "shipping_address")

    billing_requested = payload.get("billing_requested", False)
    if not isinstance(billing_requested, bool):
        raise ValidationError("billing_requested must be true or false")

    billing_details = None
    if billing_requested:
        billing_details = payload.get("billing_details") or {}
        if not isinstance(billing_details, dict):
            raise ValidationError("billing_details must be an object")

    user_id = payload.get("user_id")
    if user_id is not None:
        if isinstance(user_id, bool) or not isinstance(user_id, (int, str)) or not str(user_id).isdigit():
            raise ValidationError("user_id must be an integer")
        user_id = int(user_id)

    password = payload.get("password") or None
    if password is not None and not isinstance(password, str):
        raise ValidationError("password must be a string")

    return CheckoutRequest(
        customer_name=customer_name,
        customer_email=customer_email,
        lines=lines,
        shipping_address=shipping_address,
        billing_requested=billing_requested,
        billing_details=billing_details,
        user_id=user_id,
        password=password,
    )


def _resolve_owner_id(checkout: CheckoutRequest, actor_id: int | None) -> int | None:
    if checkout.user_id is not None and checkout.user_id != actor_id:
        raise Forbidden("user_id does not match the authenticated session")
    return actor_id


def _price_lines(lines: list[tuple[int, int]]):
    products = inventory_service.lock_products(pid for pid, _ in lines)
    priced = []
    for product_id, quantity in lines:
        product = products[product_id]
        unit_price = product.price_cents
        priced.append((product, quantity, unit_price, unit_price * quantity))
    return priced


def place_order(payload: dict, actor_id: int | None = None) -> PlacedOrder:
    """
    Place an order from a checkout payload.

    Args:
        payload: request body (see parse_checkout)
        actor_id: authenticated account id, if any

    Raises:
        ValidationError, Forbidden, DuplicateAccount, ProductNotFound,
        InsufficientStock
    """
    checkout = parse_checkout(payload)
    owner_id = _resolve_owner_id(checkout, actor_id)

    if owner_id is None and checkout.password:
        # Cheap check before hashing; repeated under the write lock below
        auth_service.validate_password_strength(checkout.password)

    def _op():
        begin_write()

        new_user = None
        owner = db.session.get(User, owner_id) if owner_id is not None else None
        if owner_id is not None and owner is None:
            raise NotFound(f"User {owner_id} not found")

        if owner is None and checkout.password:
            if auth_service.email_exists(checkout.customer_email):
                raise DuplicateAccount(
                    "An account with this email already exists. "
                    "Please log in to place your order or use a different email address.",
                    details={"email": checkout.customer_email},
                )
            new_user = auth_service.create_account(
                email=checkout.customer_email,
                password=checkout.password,
                name=checkout.customer_name,
                commit=False,
            )
            owner = new_user

        priced = _price_lines(checkout.lines)
        inventory_service.adjust_stock(checkout.lines, inventory_service.DEBIT)

        order = Order(
            user_id=owner.id if owner else None,
            customer_name=checkout.customer_name,
            customer_email=checkout.customer_email,
            total_amount_cents=sum(line_total for *_, line_total in priced),
            status="PENDING",
            payment_status="UNPAID",
            shipping_address=checkout.shipping_address,
            billing_requested=checkout.billing_requested,
            billing_details=checkout.billing_details,
        )
        for product, quantity, unit_price, line_total in priced:
            order.lines.append(OrderLine(
                product_id=product.id,
                product_name=product.name,
                quantity=quantity,
                unit_price_cents=unit_price,
                line_total_cents=line_total,
            ))
        db.session.add(order)
        db.session.flush()

        sale = SaleRecord(
            order_id=order.id,
            source=SOURCE_ONLINE,
            total_amount_cents=order.total_amount_cents,
        )
        for line in order.lines:
            sale.lines.append(SaleRecordLine(
                product_id=line.product_id,
                product_name=line.product_name,
                quantity=line.quantity,
                unit_price_cents=line.unit_price_cents,
                line_total_cents=line.line_total_cents,
            ))
        db.session.add(sale)

        token = None
        if owner is not None:
            owner.default_shipping_address = checkout.shipping_address
            if new_user is not None:
                owner.default_billing_details = checkout.billing_details
                token = session_service.issue(new_user, commit=False)
            elif checkout.billing_details:
                owner.default_billing_details = checkout.billing_details

        db.session.commit()
        return PlacedOrder(order=order, user=new_user, token=token)

    placed = run_with_retry(_op)
    current_app.logger.info(
        "Order %s placed: %d line(s), total_cents=%d, owner=%s%s",
        placed.order.id,
        len(placed.order.lines),
        placed.order.total_amount_cents,
        placed.order.user_id,
        " (new account)" if placed.user else "",
    )
    return placed


def list_orders() -> list[Order]:
    return db.session.query(Order).order_by(Order.created_at.desc(), Order.id.desc()).all()


def list_orders_for_user(user_id: int) -> list[Order]:
    return (
        db.session.query(Order)
        .filter(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def get_order(order_id: int, actor: User) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFound(f"Order {order_id} not found")
    if order.user_id != actor.id and not has_permission(actor.role, "VIEW_ORDERS"):
        raise Forbidden("You can only view your own orders")
    return order


def _check_status_pair(status: str, payment_status: str) -> None:
    allowed = ORDER_STATUS_PAYMENT_RULES.get(status)
    if allowed is not None and payment_status not in allowed:
        raise ValidationError(
            f"Order status {status} requires payment status in {sorted(allowed)}"
        )


def update_order(
    order_id: int,
    actor: User,
    *,
    status: str | None = None,
    payment_status: str | None = None,
) -> Order:
    """Admin update of order status and/or payment status."""
    authorize(actor.role, "MANAGE_ORDERS")

    if status is None and payment_status is None:
        raise ValidationError("No update data provided.")
    new_status = parse_choice("status", status, ORDER_STATUSES) if status is not None else None
    new_payment = (
        parse_choice("payment_status", payment_status, PAYMENT_STATUSES)
        if payment_status is not None else None
    )

    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFound(f"Order {order_id} not found")

    _check_status_pair(new_status or order.status, new_payment or order.payment_status)

    if new_status is not None:
        order.status = new_status
    if new_payment is not None:
        order.payment_status = new_payment
    db.session.commit()

    current_app.logger.info(
        "Order %s updated by user %s: status=%s payment_status=%s",
        order.id, actor.id, order.status, order.payment_status,
    )
    return order


def delete_order(order_id: int, actor: User) -> None:
    """Delete an order and its lines. The paired sale record is kept."""
    authorize(actor.role, "MANAGE_ORDERS")

    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFound(f"Order {order_id} not found")

    db.session.delete(order)
    db.session.commit()
    current_app.logger.info("Order %s deleted by user %s", order_id, actor.id)
