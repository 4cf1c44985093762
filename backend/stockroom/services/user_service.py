# Overview: Service-layer operations for user accounts; admin CRUD and self-service profile edits.

import re

from ..extensions import db
from ..models import User
from ..models.auth import ROLE_LEVELS, ROLE_VIEWER, USER_ACTIVE, USER_INACTIVE
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    validate_payload,
)
from . import session_service
from .auth_service import hash_password, normalize_email


_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

USER_POLICY = ModelValidationPolicy(
    fields={
        "name": "name",
        "email": "email",
        "phone": "phone",
        "address": "address",
        "role": "role",
        "status": "status",
    },
    required_on_create=frozenset({"name", "email"}),
    labels={"name": "Name", "email": "Email", "role": "Role", "status": "Status"},
)

PROFILE_POLICY = ModelValidationPolicy(
    fields={"name": "name", "email": "email", "phone": "phone", "address": "address"},
    labels={"name": "Name", "email": "Email"},
)


def _check_patch(patch: dict, *, user_id: int | None = None) -> None:
    if "email" in patch:
        patch["email"] = normalize_email(patch["email"])
        if not _EMAIL.match(patch["email"]):
            raise ValidationError("Email is not a valid address")
        query = db.session.query(User).filter(User.email == patch["email"])
        if user_id is not None:
            query = query.filter(User.id != user_id)
        if query.first():
            raise ConflictError("Email already exists")

    if "role" in patch and patch["role"] not in ROLE_LEVELS:
        raise ValidationError(f"Role must be one of: {', '.join(ROLE_LEVELS)}")

    if "status" in patch and patch["status"] not in (USER_ACTIVE, USER_INACTIVE):
        raise ValidationError("Status must be active or inactive")


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def create_user(payload: dict) -> User:
    """
    Create a user account.

    payload keys: name, email, password (required), phone, address,
    role (default viewer), status (default active).

    Raises:
        ValidationError / PasswordValidationError: bad input
        ConflictError: email already registered
    """
    payload = payload or {}
    password = payload.get("password")
    if not password:
        raise ValidationError("Password is required")

    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=False)
    _check_patch(patch)

    patch.setdefault("role", ROLE_VIEWER)
    patch.setdefault("status", USER_ACTIVE)

    user = User(password_hash=hash_password(password), **patch)
    db.session.add(user)
    db.session.commit()
    return user


def update_user(user_id: int, payload: dict, *, acting_user_id: int | None = None) -> User:
    """
    Admin edit of any account. A password in the payload resets it and
    signs the user out everywhere. Deactivation does the same.
    """
    user = get_user(user_id)
    payload = payload or {}

    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=True)
    _check_patch(patch, user_id=user.id)

    if acting_user_id == user.id:
        if patch.get("status") == USER_INACTIVE:
            raise ValidationError("You cannot deactivate your own account")
        if "role" in patch and patch["role"] != user.role:
            raise ValidationError("You cannot change your own role")

    password = payload.get("password")
    revoke_reason = None
    if password:
        user.password_hash = hash_password(password)
        revoke_reason = "Password reset by administrator"
    if patch.get("status") == USER_INACTIVE and user.status != USER_INACTIVE:
        revoke_reason = "User account deactivated"

    for key, value in patch.items():
        setattr(user, key, value)
    db.session.commit()

    if revoke_reason:
        session_service.revoke_all_user_sessions(user.id, reason=revoke_reason)
    return user


def update_profile(user: User, payload: dict) -> User:
    """Self-service edit: name, email, phone, address only."""
    patch = validate_payload(model=User, payload=payload or {}, policy=PROFILE_POLICY, partial=True)
    _check_patch(patch, user_id=user.id)
    for key, value in patch.items():
        setattr(user, key, value)
    db.session.commit()
    return user


def delete_user(user_id: int, *, acting_user_id: int | None = None) -> None:
    user = get_user(user_id)
    if acting_user_id == user.id:
        raise ValidationError("You cannot delete your own account")
    db.session.delete(user)
    db.session.commit()
