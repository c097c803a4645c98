# Overview: Flask API routes for direct sale logging; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_permission
from ..errors import StorefrontError, ValidationError
from ..models import SALE_SOURCES
from ..services import sales_service


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@require_auth
@require_permission("LOG_SALE")
def log_sale_route():
    """
    Body:
    {
        "items": [{"product_id": 1, "quantity": 2}],
        "notes": "...",                (optional)
        "total_amount_cents": 1998     (optional, checked against catalog prices)
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        sale = sales_service.log_sale(
            g.current_user,
            data.get("items"),
            notes=data.get("notes"),
            total_amount_cents=data.get("total_amount_cents"),
        )
    except StorefrontError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to log sale")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(sale.to_dict()), 201


@sales_bp.get("")
@require_auth
@require_permission("VIEW_SALES")
def list_sales_route():
    source = request.args.get("source")
    if source:
        source = source.strip().upper()
        if source not in SALE_SOURCES:
            err = ValidationError(f"Invalid source '{source}'. Allowed: {', '.join(SALE_SOURCES)}")
            return jsonify(err.to_dict()), err.status_code

    sales = sales_service.list_sales(source=source)
    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)}), 200


@sales_bp.get("/my")
@require_auth
@require_permission("LOG_SALE")
def my_sales_route():
    sales = sales_service.list_sales_for_seller(g.current_user.id)
    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)}), 200
