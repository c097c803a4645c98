# Overview: Flask API routes for profiles and admin account management.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_permission
from ..errors import StorefrontError
from ..services import auth_service, user_service


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("/me")
@require_auth
def get_profile_route():
    return jsonify(g.current_user.to_dict()), 200


@users_bp.put("/me")
@require_auth
def update_profile_route():
    """Body: any of {name, default_shipping_address, default_billing_details}"""
    data = request.get_json(silent=True)
    try:
        user = user_service.update_profile(g.current_user, data if data is not None else {})
    except StorefrontError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update profile")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(user.to_dict()), 200


@users_bp.get("/check-email")
def check_email_route():
    """Used by checkout to suggest logging in instead of creating an account."""
    try:
        exists = user_service.check_email(request.args.get("email"))
    except StorefrontError as e:
        return jsonify(e.to_dict()), e.status_code
    return jsonify({"exists": exists}), 200


@users_bp.get("")
@require_auth
@require_permission("MANAGE_ACCOUNTS")
def list_users_route():
    try:
        users = user_service.list_accounts(role=request.args.get("role"))
    except StorefrontError as e:
        return jsonify(e.to_dict()), e.status_code
    return jsonify({"items": [u.to_dict() for u in users], "count": len(users)}), 200


@users_bp.post("/sellers")
@require_auth
@require_permission("MANAGE_ACCOUNTS")
def create_seller_route():
    """Body: {email, password, name, username}"""
    data = request.get_json(silent=True) or {}
    try:
        seller = auth_service.create_seller(
            email=data.get("email"),
            password=data.get("password"),
            name=data.get("name"),
            username=data.get("username"),
        )
    except StorefrontError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create seller")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info("Seller %s created by user %s", seller.id, g.current_user.id)
    return jsonify(seller.to_dict()), 201


@users_bp.delete("/<int:user_id>")
@require_auth
@require_permission("MANAGE_ACCOUNTS")
def delete_user_route(user_id: int):
    try:
        user_service.delete_account(user_id, g.current_user)
    except StorefrontError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete user %s", user_id)
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"ok": True}), 200
