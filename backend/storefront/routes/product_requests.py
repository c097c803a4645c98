# Overview: Flask API routes for seller product requests; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_permission
from ..errors import StorefrontError
from ..services import product_request_service


product_requests_bp = Blueprint("product_requests", __name__, url_prefix="/api/product-requests")


@product_requests_bp.post("")
@require_auth
@require_permission("REQUEST_STOCK")
def create_request_route():
    """Body: {product_id, quantity_requested, notes?}"""
    data = request.get_json(silent=True) or {}

    try:
        created = product_request_service.create_request(
            g.current_user,
            data.get("product_id"),
            data.get("quantity_requested"),
            notes=data.get("notes"),
        )
    except StorefrontError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product request")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(created.to_dict()), 201


@product_requests_bp.get("")
@require_auth
@require_permission("MANAGE_REQUESTS")
def list_requests_route():
    try:
        requests = product_request_service.list_requests(status=request.args.get("status"))
    except StorefrontError as e:
        return jsonify(e.to_dict()), e.status_code
    return jsonify({"items": [r.to_dict() for r in requests], "count": len(requests)}), 200


@product_requests_bp.get("/my")
@require_auth
@require_permission("REQUEST_STOCK")
def my_requests_route():
    requests = product_request_service.list_requests_for_seller(g.current_user.id)
    return jsonify({"items": [r.to_dict() for r in requests], "count": len(requests)}), 200


@product_requests_bp.put("/<int:request_id>/status")
@require_auth
@require_permission("MANAGE_REQUESTS")
def update_request_status_route(request_id: int):
    """
    Body: {status, admin_notes?}

    Moving to COMPLETED restocks the product once. COMPLETED and CANCELLED
    requests cannot change again (409).
    """
    data = request.get_json(silent=True) or {}

    try:
        updated = product_request_service.update_request_status(
            request_id,
            g.current_user,
            data.get("status"),
            admin_notes=data.get("admin_notes"),
        )
    except StorefrontError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update product request %s", request_id)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(updated.to_dict()), 200
