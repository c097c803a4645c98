from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import StorefrontError
from ..services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/sales-summary")
@require_auth
@require_permission("VIEW_ANALYTICS")
def sales_summary():
    days = request.args.get("days", default=7, type=int)
    try:
        return jsonify(reporting_service.sales_summary(days)), 200
    except StorefrontError as exc:
        return jsonify(exc.to_dict()), exc.status_code


@reports_bp.get("/sales")
@require_auth
@require_permission("VIEW_ANALYTICS")
def sales_report():
    try:
        report = reporting_service.sales_report(
            start=request.args.get("start"),
            end=request.args.get("end"),
            group_by=request.args.get("group_by", "day"),
        )
        return jsonify(report), 200
    except StorefrontError as exc:
        return jsonify(exc.to_dict()), exc.status_code


@reports_bp.get("/sellers")
@require_auth
@require_permission("VIEW_ANALYTICS")
def seller_performance():
    try:
        report = reporting_service.seller_performance(
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
        return jsonify(report), 200
    except StorefrontError as exc:
        return jsonify(exc.to_dict()), exc.status_code


@reports_bp.get("/low-stock")
@require_auth
@require_permission("VIEW_ANALYTICS")
def low_stock():
    threshold = request.args.get(
        "threshold", default=reporting_service.DEFAULT_LOW_STOCK_THRESHOLD, type=int
    )
    try:
        return jsonify(reporting_service.low_stock(threshold)), 200
    except StorefrontError as exc:
        return jsonify(exc.to_dict()), exc.status_code
