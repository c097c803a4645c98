# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/storefront/routes/auth.py
"""
Authentication API routes

- Customers self-register; sellers are created by an admin
- Login accepts an email or a username
- Tokens are returned once and sent back as "Authorization: Bearer <token>"
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..errors import StorefrontError
from ..services import auth_service
from ..services import session_service
from ..decorators import require_auth
from ..time_utils import to_utc_z


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    """
    Create a customer account and log it in.

    Body: {email, password, name}
    Returns 201 {user, token}
    """
    data = request.get_json(silent=True) or {}
    try:
        user = auth_service.register_customer(
            email=data.get("email"),
            password=data.get("password"),
            name=data.get("name"),
        )
        token = session_service.issue(user)
    except StorefrontError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info("Customer %s registered", user.id)
    return jsonify({"user": user.to_dict(), "token": token}), 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and create a session token.

    Body: {email | username | identifier, password}
    """
    data = request.get_json(silent=True) or {}
    identifier = data.get("email") or data.get("username") or data.get("identifier")
    password = data.get("password")

    try:
        user = auth_service.authenticate(identifier, password)
        token = session_service.issue(user)
    except StorefrontError as e:
        if e.status_code == 401:
            current_app.logger.warning("Failed login for %r from %s", identifier, request.remote_addr)
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"user": user.to_dict(), "token": token}), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    try:
        session_service.revoke(g.token, reason="User logout")
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Logged out successfully"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    context = g.session_context
    return jsonify({
        "user": g.current_user.to_dict(),
        "expires_at": to_utc_z(context.session.expires_at),
    }), 200
