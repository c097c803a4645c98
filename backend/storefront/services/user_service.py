# Overview: Service-layer operations for account profiles and admin account management.

from __future__ import annotations

from flask import current_app

from ..errors import ConflictError, Forbidden, NotFound, ValidationError
from ..extensions import db
from ..models import Order, ProductRequest, SaleRecord, User
from ..permissions import ROLE_ADMIN, ROLES
from . import auth_service


PROFILE_FIELDS = {"name", "default_shipping_address", "default_billing_details"}


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound(f"User {user_id} not found")
    return user


def update_profile(user: User, payload: dict) -> User:
    """
    Update the caller's own profile.

    Only name and the remembered checkout defaults are editable here. Email,
    username and role are fixed after creation.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    unknown = sorted(k for k in payload if k not in PROFILE_FIELDS)
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(unknown)}")
    if not payload:
        raise ValidationError("No update data provided.")

    if "name" in payload:
        name = payload["name"]
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("name cannot be blank")
        user.name = name.strip()

    for key in ("default_shipping_address", "default_billing_details"):
        if key in payload:
            value = payload[key]
            if value is not None and not isinstance(value, dict):
                raise ValidationError(f"{key} must be an object")
            setattr(user, key, value or None)

    db.session.commit()
    return user


def check_email(email) -> bool:
    return auth_service.email_exists(email)


def list_accounts(role: str | None = None) -> list[User]:
    query = db.session.query(User)
    if role:
        if role not in ROLES:
            raise ValidationError(f"Unknown role: {role}")
        query = query.filter(User.role == role)
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def delete_account(user_id: int, actor: User) -> None:
    """
    Delete a customer or seller account and its sessions.

    Accounts that own orders, sales or product requests are kept so the
    history stays attributable.
    """
    user = get_user(user_id)
    if user.role == ROLE_ADMIN:
        raise Forbidden("Administrator accounts cannot be deleted")
    if user.id == actor.id:
        raise Forbidden("You cannot delete your own account")

    owns_records = (
        db.session.query(Order.id).filter(Order.user_id == user.id).first()
        or db.session.query(SaleRecord.id).filter(SaleRecord.seller_id == user.id).first()
        or db.session.query(ProductRequest.id).filter(ProductRequest.requested_by_id == user.id).first()
    )
    if owns_records:
        raise ConflictError(
            "Cannot delete account because it has orders, sales or product requests.",
            details={"user_id": user.id},
        )

    db.session.delete(user)
    db.session.commit()
    current_app.logger.info("Account %s (%s) deleted by user %s", user_id, user.role, actor.id)
