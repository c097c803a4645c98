# Overview: Service-layer operations for seller product requests and their restock side effect.

from __future__ import annotations

from flask import current_app

from ..errors import InvalidTransition, NotFound, ProductNotFound, ValidationError
from ..extensions import db
from ..models import (
    REQUEST_STATUSES,
    TERMINAL_REQUEST_STATUSES,
    Product,
    ProductRequest,
    User,
)
from ..permissions import authorize
from ..time_utils import utcnow
from ..validation import MAX_QUANTITY, coerce_int, parse_choice
from . import inventory_service
from .concurrency import begin_write, lock_for_update, run_with_retry


def create_request(
    actor: User,
    product_id,
    quantity_requested,
    notes: str | None = None,
) -> ProductRequest:
    """Seller asks for more stock of an existing product."""
    authorize(actor.role, "REQUEST_STOCK")

    if product_id is None or quantity_requested is None:
        raise ValidationError("product_id and quantity_requested are required")
    product_id = coerce_int("product_id", product_id)
    quantity = coerce_int("quantity_requested", quantity_requested)
    if quantity <= 0:
        raise ValidationError("quantity_requested must be a positive number")
    if quantity > MAX_QUANTITY:
        raise ValidationError(f"quantity_requested cannot exceed {MAX_QUANTITY}")
    if notes is not None and not isinstance(notes, str):
        raise ValidationError("notes must be a string")

    if db.session.get(Product, product_id) is None:
        raise ProductNotFound([product_id])

    request = ProductRequest(
        requested_by_id=actor.id,
        product_id=product_id,
        quantity_requested=quantity,
        notes=notes.strip() if notes else None,
        status="PENDING",
    )
    db.session.add(request)
    db.session.commit()
    current_app.logger.info(
        "Product request %s created by seller %s: product=%s qty=%s",
        request.id, actor.id, product_id, quantity,
    )
    return request


def update_request_status(
    request_id: int,
    actor: User,
    status: str,
    admin_notes: str | None = None,
) -> ProductRequest:
    """
    Move a request to a new status.

    COMPLETED and CANCELLED are terminal: any change once reached raises
    InvalidTransition. The first move into COMPLETED credits the requested
    quantity to stock in the same transaction, under a lock on the request
    row, so a request restocks exactly once.
    """
    authorize(actor.role, "MANAGE_REQUESTS")

    new_status = parse_choice("status", status, REQUEST_STATUSES)
    if admin_notes is not None and not isinstance(admin_notes, str):
        raise ValidationError("admin_notes must be a string")

    def _op():
        begin_write()
        query = db.session.query(ProductRequest).filter_by(id=request_id).populate_existing()
        request = lock_for_update(query).first()
        if request is None:
            raise NotFound(f"Product request {request_id} not found")

        if request.status in TERMINAL_REQUEST_STATUSES:
            raise InvalidTransition(
                f"Request {request_id} is already {request.status}",
                details={"current_status": request.status, "requested_status": new_status},
            )

        restocked = False
        if new_status == "COMPLETED" and request.restocked_at is None:
            inventory_service.adjust_stock(
                [(request.product_id, request.quantity_requested)],
                inventory_service.CREDIT,
            )
            request.restocked_at = utcnow()
            restocked = True

        request.status = new_status
        if admin_notes is not None:
            request.admin_notes = admin_notes.strip() or None

        db.session.commit()
        return request, restocked

    request, restocked = run_with_retry(_op)
    if restocked:
        current_app.logger.info(
            "Product request %s completed: restocked product %s by %s",
            request.id, request.product_id, request.quantity_requested,
        )
    else:
        current_app.logger.info("Product request %s moved to %s", request.id, request.status)
    return request


def list_requests(status: str | None = None) -> list[ProductRequest]:
    query = db.session.query(ProductRequest)
    if status:
        query = query.filter(ProductRequest.status == parse_choice("status", status, REQUEST_STATUSES))
    return query.order_by(ProductRequest.created_at.desc(), ProductRequest.id.desc()).all()


def list_requests_for_seller(seller_id: int) -> list[ProductRequest]:
    return (
        db.session.query(ProductRequest)
        .filter(ProductRequest.requested_by_id == seller_id)
        .order_by(ProductRequest.created_at.desc(), ProductRequest.id.desc())
        .all()
    )
