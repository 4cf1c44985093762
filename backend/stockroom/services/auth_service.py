# Overview: Service-layer operations for auth; password hashing, strength rules and credential checks.

"""
Authentication Service

WHY: Every write is attributable to a user. Passwords are hashed with
bcrypt and must meet a minimum strength on creation and change.

SECURITY NOTES:
- bcrypt cost factor from BCRYPT_ROUNDS (12 by default)
- Minimum 8 characters with upper, lower, digit and special character
- Login failures are indistinguishable (unknown email, wrong password,
  inactive account all return None)
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User
from ..validation import ValidationError
from . import session_service


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=rounds))
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() compares in constant time.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed stored hash
        return False


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate a user by email and password.

    Returns the User on success, None on any failure.
    """
    user = db.session.query(User).filter_by(email=normalize_email(email)).first()
    if not user:
        return None
    if not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def change_password(
    *,
    user: User,
    current_password: str,
    new_password: str,
    keep_session_id: int | None = None,
) -> None:
    """
    Change a user's own password.

    Every other session of the user is revoked so a leaked token stops
    working once the password is rotated.

    Raises:
        ValidationError: current password wrong or new password missing
        PasswordValidationError: new password too weak
    """
    if not current_password or not new_password:
        raise ValidationError("Current password and new password are required")
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect")

    user.password_hash = hash_password(new_password)
    db.session.commit()

    session_service.revoke_all_user_sessions(
        user.id,
        reason="Password changed",
        keep_session_id=keep_session_id,
    )
