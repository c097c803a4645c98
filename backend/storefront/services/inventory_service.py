# Overview: Service-layer inventory primitive; checks and applies stock adjustments as one unit.

# backend/storefront/services/inventory_service.py
"""
Storefront Inventory Invariants (authoritative)

Stock model:
- Product.stock is the persisted on-hand count; it is never negative.
- DEBIT decreases stock (orders, direct sales); CREDIT increases it
  (completed product requests).

Adjustment rules:
- All demands of one call succeed together or none are applied.
- Any unknown product id fails the whole call with ProductNotFound.
- DEBIT checks every product before changing any; shortfalls fail the whole
  call with InsufficientStock listing each short product.
- Checks read the persisted row under lock (populate_existing), never a copy
  loaded earlier in the request.

Transactions:
- adjust_stock() never commits. Callers open the unit of work with
  concurrency.begin_write(), run it under concurrency.run_with_retry(), and
  commit once their own records are written.
- This module knows nothing about orders, sales or requests.
"""

from __future__ import annotations

from typing import Iterable

from ..errors import EmptyInputError, InsufficientStock, ProductNotFound, ValidationError
from ..extensions import db
from ..models import Product
from .concurrency import lock_for_update


DEBIT = "DEBIT"
CREDIT = "CREDIT"
DIRECTIONS = (DEBIT, CREDIT)


def _coerce_quantity(value) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("quantity must be a positive integer")
    if value <= 0:
        raise ValidationError("quantity must be a positive integer")
    return value


def _coerce_product_id(value) -> int:
    if isinstance(value, bool):
        raise ValidationError("product_id must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError("product_id must be an integer")


def aggregate_demands(demands: Iterable[tuple]) -> dict[int, int]:
    """Sum quantities per product, preserving first-seen order."""
    totals: dict[int, int] = {}
    for product_id, quantity in demands:
        pid = _coerce_product_id(product_id)
        totals[pid] = totals.get(pid, 0) + _coerce_quantity(quantity)
    return totals


def lock_products(product_ids: Iterable[int]) -> dict[int, Product]:
    """
    Load and lock product rows by id.

    Rows are locked in id order so concurrent callers touching overlapping
    products acquire locks in the same sequence.

    Raises ProductNotFound naming every id that does not exist.
    """
    ids = sorted({_coerce_product_id(pid) for pid in product_ids})
    if not ids:
        return {}

    query = (
        db.session.query(Product)
        .filter(Product.id.in_(ids))
        .order_by(Product.id.asc())
        .populate_existing()
    )
    products = {p.id: p for p in lock_for_update(query).all()}

    missing = [pid for pid in ids if pid not in products]
    if missing:
        raise ProductNotFound(missing)
    return products


def adjust_stock(demands: Iterable[tuple], direction: str) -> dict[int, Product]:
    """
    Apply (product_id, quantity) demands in one direction, all or nothing.

    Returns the locked Product rows keyed by id, with stock already changed
    and flushed (not committed).
    """
    if direction not in DIRECTIONS:
        raise ValueError(f"unknown direction: {direction}")

    totals = aggregate_demands(demands)
    if not totals:
        raise EmptyInputError("At least one line item is required")

    products = lock_products(totals.keys())

    if direction == DEBIT:
        short = [
            {
                "product_id": pid,
                "requested_quantity": qty,
                "available": products[pid].stock,
            }
            for pid, qty in totals.items()
            if products[pid].stock < qty
        ]
        if short:
            raise InsufficientStock(short)

    sign = -1 if direction == DEBIT else 1
    for pid, qty in totals.items():
        products[pid].stock = products[pid].stock + sign * qty

    db.session.flush()
    return products


def get_stock(product_id: int) -> int:
    stock = db.session.query(Product.stock).filter(Product.id == product_id).scalar()
    if stock is None:
        raise ProductNotFound([product_id])
    return int(stock)
