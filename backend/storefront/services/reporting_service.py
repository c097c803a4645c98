# Overview: Service-layer read-only analytics over the sale record trail and catalog.

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from ..errors import ValidationError
from ..extensions import db
from ..models import SALE_SOURCES, Product, SaleRecord, SaleRecordLine, User
from ..permissions import ROLE_SELLER
from ..time_utils import days_ago, parse_iso_datetime, to_utc_z


DEFAULT_LOW_STOCK_THRESHOLD = 5


def _parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError as exc:
        raise ValidationError(str(exc))
    if start_dt and end_dt and start_dt > end_dt:
        raise ValidationError("start must be before end")
    return start_dt, end_dt


def sales_summary(days: int = 7) -> dict:
    """
    Headline numbers for the last ``days`` days: sale count, revenue, average
    ticket, revenue split by source and the three best sellers by units.
    """
    if days <= 0:
        raise ValidationError("days must be > 0")
    since = days_ago(days)

    totals = db.session.query(
        func.count(SaleRecord.id),
        func.coalesce(func.sum(SaleRecord.total_amount_cents), 0),
    ).filter(SaleRecord.created_at >= since).one()
    sales_count = int(totals[0] or 0)
    revenue = int(totals[1] or 0)

    by_source = {source: {"sales_count": 0, "revenue_cents": 0} for source in SALE_SOURCES}
    rows = db.session.query(
        SaleRecord.source,
        func.count(SaleRecord.id),
        func.coalesce(func.sum(SaleRecord.total_amount_cents), 0),
    ).filter(SaleRecord.created_at >= since).group_by(SaleRecord.source).all()
    for source, count, amount in rows:
        by_source[source] = {"sales_count": int(count or 0), "revenue_cents": int(amount or 0)}

    top = db.session.query(
        SaleRecordLine.product_id,
        SaleRecordLine.product_name,
        func.sum(SaleRecordLine.quantity).label("units"),
        func.sum(SaleRecordLine.line_total_cents).label("revenue"),
    ).join(
        SaleRecord, SaleRecordLine.sale_record_id == SaleRecord.id
    ).filter(
        SaleRecord.created_at >= since
    ).group_by(
        SaleRecordLine.product_id, SaleRecordLine.product_name
    ).order_by(
        func.sum(SaleRecordLine.quantity).desc(), SaleRecordLine.product_id.asc()
    ).limit(3).all()

    return {
        "days": days,
        "since": to_utc_z(since),
        "sales_count": sales_count,
        "revenue_cents": revenue,
        "average_sale_cents": revenue // sales_count if sales_count else 0,
        "by_source": by_source,
        "top_products": [
            {
                "product_id": row.product_id,
                "product_name": row.product_name,
                "units_sold": int(row.units or 0),
                "revenue_cents": int(row.revenue or 0),
            }
            for row in top
        ],
    }


def sales_report(
    *,
    start: str | None = None,
    end: str | None = None,
    group_by: str = "day",
) -> dict:
    start_dt, end_dt = _parse_range(start, end)

    if group_by == "day":
        period_expr = func.strftime("%Y-%m-%d", SaleRecord.created_at)
    elif group_by == "week":
        period_expr = func.strftime("%Y-W%W", SaleRecord.created_at)
    elif group_by == "month":
        period_expr = func.strftime("%Y-%m", SaleRecord.created_at)
    else:
        raise ValidationError("group_by must be day, week, or month")

    # Lines and totals aggregated separately so a multi-line record is not
    # counted once per line.
    lines_subq = db.session.query(
        SaleRecordLine.sale_record_id.label("sale_record_id"),
        func.sum(SaleRecordLine.quantity).label("units"),
    ).group_by(SaleRecordLine.sale_record_id).subquery()

    query = db.session.query(
        period_expr.label("period"),
        func.count(SaleRecord.id).label("sales_count"),
        func.coalesce(func.sum(lines_subq.c.units), 0).label("items_sold"),
        func.coalesce(func.sum(SaleRecord.total_amount_cents), 0).label("gross_sales_cents"),
    ).outerjoin(lines_subq, lines_subq.c.sale_record_id == SaleRecord.id)

    if start_dt:
        query = query.filter(SaleRecord.created_at >= start_dt)
    if end_dt:
        query = query.filter(SaleRecord.created_at <= end_dt)

    rows = query.group_by("period").order_by("period").all()
    return {
        "group_by": group_by,
        "start": to_utc_z(start_dt) if start_dt else None,
        "end": to_utc_z(end_dt) if end_dt else None,
        "rows": [
            {
                "period": row.period,
                "sales_count": int(row.sales_count or 0),
                "items_sold": int(row.items_sold or 0),
                "gross_sales_cents": int(row.gross_sales_cents or 0),
            }
            for row in rows
        ],
    }


def seller_performance(*, start: str | None = None, end: str | None = None) -> dict:
    """Direct sales per seller; sellers with no sales in range report zero."""
    start_dt, end_dt = _parse_range(start, end)

    conditions = [SaleRecord.seller_id == User.id]
    if start_dt:
        conditions.append(SaleRecord.created_at >= start_dt)
    if end_dt:
        conditions.append(SaleRecord.created_at <= end_dt)

    rows = db.session.query(
        User.id,
        User.name,
        User.username,
        func.count(SaleRecord.id).label("sales_count"),
        func.coalesce(func.sum(SaleRecord.total_amount_cents), 0).label("revenue_cents"),
    ).outerjoin(
        SaleRecord, db.and_(*conditions)
    ).filter(
        User.role == ROLE_SELLER
    ).group_by(
        User.id, User.name, User.username
    ).order_by(
        func.coalesce(func.sum(SaleRecord.total_amount_cents), 0).desc(), User.id.asc()
    ).all()

    return {
        "start": to_utc_z(start_dt) if start_dt else None,
        "end": to_utc_z(end_dt) if end_dt else None,
        "rows": [
            {
                "seller_id": row.id,
                "name": row.name,
                "username": row.username,
                "sales_count": int(row.sales_count or 0),
                "revenue_cents": int(row.revenue_cents or 0),
            }
            for row in rows
        ],
    }


def low_stock(threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> dict:
    if threshold < 0:
        raise ValidationError("threshold must be >= 0")
    products = db.session.query(Product).filter(
        Product.stock <= threshold
    ).order_by(Product.stock.asc(), Product.name.asc()).all()
    return {
        "threshold": threshold,
        "items": [
            {"product_id": p.id, "name": p.name, "stock": p.stock}
            for p in products
        ],
    }
