# backend/storefront/services/products_service.py
"""
Catalog Service

Public reads, admin writes. Admin edits may set stock directly; every other
stock change goes through inventory_service.
"""
from __future__ import annotations

from flask import current_app

from ..errors import ConflictError, NotFound
from ..extensions import db
from ..models import OrderLine, Product, ProductRequest, SaleRecordLine
from .concurrency import begin_write, run_with_retry

PRODUCT_MUTABLE_FIELDS = {"name", "description", "price_cents", "stock", "image_url"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def list_products(page: int | None = None, per_page: int | None = None) -> dict:
    """
    Catalog listing with optional pagination.

    Args:
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)
    """
    base_query = db.session.query(Product).order_by(Product.name.asc(), Product.id.asc())

    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = min(per_page or 20, 100)
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFound(f"Product {product_id} not found")
    return product


def create_product(*, patch: dict) -> Product:
    """Create product from a validated patch dict."""
    p = Product(stock=0)
    apply_product_patch(p, patch)
    db.session.add(p)
    db.session.commit()
    current_app.logger.info("Product %s created (%s)", p.id, p.name)
    return p


def update_product(*, product_id: int, patch: dict) -> Product:
    """
    Update a product.

    Runs as a write unit of work so a stock edit cannot interleave with an
    order's check-then-decrement.
    """
    def _op():
        begin_write()
        p = db.session.get(Product, product_id, with_for_update=True, populate_existing=True)
        if p is None:
            raise NotFound(f"Product {product_id} not found")
        apply_product_patch(p, patch)
        db.session.commit()
        return p

    return run_with_retry(_op)


def delete_product(*, product_id: int) -> None:
    """
    Delete a product that nothing references.

    Order lines, sale lines and product requests keep product_id; a referenced
    product cannot be removed.
    """
    p = db.session.get(Product, product_id)
    if p is None:
        raise NotFound(f"Product {product_id} not found")

    referenced = (
        db.session.query(OrderLine.id).filter(OrderLine.product_id == product_id).first()
        or db.session.query(SaleRecordLine.id).filter(SaleRecordLine.product_id == product_id).first()
        or db.session.query(ProductRequest.id).filter(ProductRequest.product_id == product_id).first()
    )
    if referenced:
        raise ConflictError(
            "Cannot delete product because it is referenced by existing orders, sales or requests."
        )

    db.session.delete(p)
    db.session.commit()
    current_app.logger.info("Product %s deleted", product_id)
