# Overview: Service-layer operations for accounts and credentials.

"""
Authentication Service

Passwords are hashed with bcrypt; the cost factor comes from the
BCRYPT_ROUNDS setting. Email is the unique account key; username is
optional and also unique when set (sellers log in with it).

Account creation helpers flush but do not commit when commit=False, so
guest checkout can create the customer inside the order transaction.
"""

import re

import bcrypt
from flask import current_app

from ..errors import AuthenticationError, DuplicateAccount, ValidationError
from ..extensions import db
from ..models import User
from ..permissions import ROLE_ADMIN, ROLE_CUSTOMER, ROLE_SELLER, ROLES
from ..time_utils import utcnow


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""


MIN_PASSWORD_LENGTH = 8

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+$")


def validate_password_strength(password: str) -> None:
    """
    Requirements:
    - Minimum 8 characters
    - At least one letter
    - At least one digit
    """
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    if not re.search(r"[A-Za-z]", password):
        raise PasswordValidationError("Password must contain at least one letter")
    if not re.search(r"\d", password):
        raise PasswordValidationError("Password must contain at least one digit")


def normalize_email(email) -> str:
    if not isinstance(email, str) or not _EMAIL_RE.match(email.strip()):
        raise ValidationError("A valid email is required")
    return email.strip().lower()


def hash_password(password: str) -> str:
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def email_exists(email: str) -> bool:
    email = normalize_email(email)
    return db.session.query(User.id).filter(User.email == email).first() is not None


def create_account(
    *,
    email: str,
    password: str,
    name: str,
    role: str = ROLE_CUSTOMER,
    username: str | None = None,
    commit: bool = True,
) -> User:
    """
    Create an account with a hashed password.

    Raises:
        ValidationError: bad email, name, role or weak password
        DuplicateAccount: email (or username) already registered
    """
    if role not in ROLES:
        raise ValidationError(f"Unknown role: {role}")

    email = normalize_email(email)
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")

    if db.session.query(User.id).filter(User.email == email).first():
        raise DuplicateAccount(
            "An account with this email already exists. Please log in instead.",
            details={"email": email},
        )

    if username is not None:
        username = str(username).strip()
        if len(username) < 3:
            raise ValidationError("username must be at least 3 characters")
        if db.session.query(User.id).filter(User.username == username).first():
            raise DuplicateAccount(
                "This username is already taken.",
                details={"username": username},
            )

    user = User(
        role=role,
        email=email,
        username=username,
        name=name.strip(),
        password_hash=hash_password(password),
    )
    db.session.add(user)
    db.session.flush()

    if commit:
        db.session.commit()
    return user


def register_customer(*, email: str, password: str, name: str) -> User:
    return create_account(email=email, password=password, name=name, role=ROLE_CUSTOMER)


def create_seller(*, email: str, password: str, name: str, username: str) -> User:
    if not username:
        raise ValidationError("username is required for sellers")
    return create_account(
        email=email,
        password=password,
        name=name,
        role=ROLE_SELLER,
        username=username,
    )


def ensure_admin(*, email: str, password: str, name: str = "Admin User") -> tuple[User, bool]:
    """Create the seed admin unless an account with that email exists."""
    existing = db.session.query(User).filter(User.email == normalize_email(email)).first()
    if existing:
        return existing, False
    user = create_account(
        email=email,
        password=password,
        name=name,
        role=ROLE_ADMIN,
        username="admin",
    )
    return user, True


def authenticate(identifier: str, password: str) -> User:
    """
    Authenticate by email or username.

    Raises AuthenticationError with the same message for unknown accounts and
    wrong passwords.
    """
    if not identifier or not password:
        raise ValidationError("email/username and password required")

    ident = str(identifier).strip()
    user = (
        db.session.query(User)
        .filter(db.or_(User.email == ident.lower(), User.username == ident))
        .first()
    )
    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid credentials")

    user.last_login_at = utcnow()
    db.session.commit()
    return user
