# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .permissions import has_permission
from .services import session_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def _is_authenticated() -> bool:
    return getattr(g, "current_user", None) is not None


def require_auth(f):
    """
    Require a valid bearer token.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.session_context: The full SessionContext object
    - g.token: The plaintext bearer token (for logout)

    Returns 401 if the Authorization header is missing or the token is
    unknown, expired or revoked.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Authentication required", "code": "unauthenticated"}), 401

        context = session_service.verify(token)
        if not context:
            return jsonify({"error": "Invalid or expired token", "code": "unauthenticated"}), 401

        g.current_user = context.user
        g.session_context = context
        g.token = token

        return f(*args, **kwargs)

    return decorated_function


def optional_auth(f):
    """
    Attach the caller's identity when a valid token is sent.

    Anonymous requests pass through with g.current_user = None. A token that
    is sent but invalid is still rejected, so a stale client session is never
    silently treated as a guest.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.current_user = None
        g.session_context = None

        token = _bearer_token()
        if token:
            context = session_service.verify(token)
            if not context:
                return jsonify({"error": "Invalid or expired token", "code": "unauthenticated"}), 401
            g.current_user = context.user
            g.session_context = context
            g.token = token

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """
    Require a specific permission. Must be stacked under @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required", "code": "unauthenticated"}), 401

            user = g.current_user
            if not has_permission(user.role, permission_code):
                current_app.logger.warning(
                    "Permission denied: user=%s role=%s permission=%s %s %s",
                    user.id, user.role, permission_code, request.method, request.path,
                )
                return jsonify({
                    "error": "Permission denied",
                    "code": "forbidden",
                    "required_permission": permission_code,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
