"""
Sales Service - seller-direct sale logging

A direct sale takes the same path as checkout minus the Order: re-price
from the catalog, DEBIT stock, and write one SELLER_DIRECT SaleRecord, all
in one unit of work.
"""

from __future__ import annotations

from flask import current_app

from ..errors import ValidationError
from ..extensions import db
from ..models import SOURCE_SELLER_DIRECT, SaleRecord, SaleRecordLine, User
from ..permissions import authorize
from ..validation import coerce_int, parse_line_items
from . import inventory_service
from .concurrency import begin_write, run_with_retry


def log_sale(
    actor: User,
    items,
    *,
    notes: str | None = None,
    total_amount_cents=None,
) -> SaleRecord:
    """
    Record a direct sale by a seller (or admin).

    Client-provided unit prices and totals are advisory: lines are priced
    from the catalog at the moment of sale. A mismatching client total is
    logged and the server total is stored.

    Raises:
        Forbidden: actor lacks LOG_SALE
        EmptyInputError: no line items
        ProductNotFound, InsufficientStock
    """
    authorize(actor.role, "LOG_SALE")

    lines = parse_line_items(items)
    if notes is not None and not isinstance(notes, str):
        raise ValidationError("notes must be a string")
    client_total = None
    if total_amount_cents is not None:
        client_total = coerce_int("total_amount_cents", total_amount_cents)

    seller_id = actor.id

    def _op():
        begin_write()
        products = inventory_service.lock_products(pid for pid, _ in lines)
        inventory_service.adjust_stock(lines, inventory_service.DEBIT)

        sale = SaleRecord(
            seller_id=seller_id,
            source=SOURCE_SELLER_DIRECT,
            notes=notes.strip() if notes else None,
            total_amount_cents=0,
        )
        total = 0
        for product_id, quantity in lines:
            product = products[product_id]
            line_total = product.price_cents * quantity
            total += line_total
            sale.lines.append(SaleRecordLine(
                product_id=product.id,
                product_name=product.name,
                quantity=quantity,
                unit_price_cents=product.price_cents,
                line_total_cents=line_total,
            ))
        sale.total_amount_cents = total

        db.session.add(sale)
        db.session.commit()
        return sale

    sale = run_with_retry(_op)

    if client_total is not None and client_total != sale.total_amount_cents:
        current_app.logger.warning(
            "Sale %s: client total %s differs from catalog total %s",
            sale.id, client_total, sale.total_amount_cents,
        )
    current_app.logger.info(
        "Sale %s logged by seller %s: total_cents=%d",
        sale.id, seller_id, sale.total_amount_cents,
    )
    return sale


def list_sales(source: str | None = None) -> list[SaleRecord]:
    query = db.session.query(SaleRecord)
    if source:
        query = query.filter(SaleRecord.source == source)
    return query.order_by(SaleRecord.created_at.desc(), SaleRecord.id.desc()).all()


def list_sales_for_seller(seller_id: int) -> list[SaleRecord]:
    return (
        db.session.query(SaleRecord)
        .filter(SaleRecord.seller_id == seller_id)
        .order_by(SaleRecord.created_at.desc(), SaleRecord.id.desc())
        .all()
    )
