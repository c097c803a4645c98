# Overview: Flask API routes for orders; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_permission, optional_auth
from ..errors import StorefrontError
from ..services import order_service


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.post("")
@optional_auth
def place_order_route():
    """
    Place an order (guest or logged in).

    Body:
    {
        "customer_name": "...",
        "customer_email": "...",
        "items": [{"product_id": 1, "quantity": 2}],
        "shipping_address": {...},
        "billing_requested": false,
        "billing_details": {...},      (optional)
        "user_id": 7,                  (optional, must match the token)
        "password": "..."              (optional, guest account creation)
    }

    Returns 201 {order, user?, token?}
    """
    payload = request.get_json(silent=True)
    actor_id = g.current_user.id if g.current_user else None

    try:
        placed = order_service.place_order(payload, actor_id=actor_id)
    except StorefrontError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to place order")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(placed.to_dict()), 201


@orders_bp.get("")
@require_auth
@require_permission("VIEW_ORDERS")
def list_orders_route():
    orders = order_service.list_orders()
    return jsonify({"items": [o.to_dict() for o in orders], "count": len(orders)}), 200


@orders_bp.get("/my")
@require_auth
def my_orders_route():
    orders = order_service.list_orders_for_user(g.current_user.id)
    return jsonify({"items": [o.to_dict() for o in orders], "count": len(orders)}), 200


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order_route(order_id: int):
    try:
        order = order_service.get_order(order_id, g.current_user)
    except StorefrontError as e:
        return jsonify(e.to_dict()), e.status_code
    return jsonify(order.to_dict()), 200


@orders_bp.put("/<int:order_id>")
@require_auth
@require_permission("MANAGE_ORDERS")
def update_order_route(order_id: int):
    """Body: {status?, payment_status?}"""
    data = request.get_json(silent=True) or {}

    try:
        order = order_service.update_order(
            order_id,
            g.current_user,
            status=data.get("status"),
            payment_status=data.get("payment_status"),
        )
    except StorefrontError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update order %s", order_id)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(order.to_dict()), 200


@orders_bp.delete("/<int:order_id>")
@require_auth
@require_permission("MANAGE_ORDERS")
def delete_order_route(order_id: int):
    try:
        order_service.delete_order(order_id, g.current_user)
    except StorefrontError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete order %s", order_id)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"ok": True}), 200
