# Overview: Service-layer operations for staff accounts; creation, profile edits and soft deletion.

"""
User Service

Users are soft-deleted only: is_active goes to False and every open
session is revoked, but the row stays so free-text attributions on sales,
returns and payments keep pointing at a real account.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User
from ..models.auth import USER_ROLES, ROLE_ADMIN, ROLE_USER
from ..validation import ConflictError, NotFoundError, ValidationError
from warehouse.time_utils import utcnow
from .auth_service import hash_password
from . import session_service


PROFILE_FIELDS = {"full_name", "email", "phone"}


def _validate_role(role: str) -> str:
    if role not in USER_ROLES:
        raise ValidationError(f"Invalid role: {role}. Allowed: {', '.join(USER_ROLES)}")
    return role


def list_users(include_inactive: bool = False) -> list[User]:
    query = db.session.query(User)
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))
    return query.order_by(User.created_at.asc(), User.id.asc()).all()


def get_user_by_id(user_id: int) -> User | None:
    return db.session.get(User, user_id)


def get_user_by_username(username: str) -> User | None:
    return db.session.query(User).filter(User.username == username).first()


def create_user(
    username: str,
    password: str,
    role: str = ROLE_USER,
    full_name: str | None = None,
    email: str | None = None,
    phone: str | None = None,
) -> User:
    """
    Create a user with a bcrypt-hashed password.

    Raises ValidationError (missing fields, bad role), PasswordValidationError
    (weak password) or ConflictError (username taken, including by a
    deactivated account).
    """
    username = (username or "").strip()
    if not username or not password:
        raise ValidationError("Username and password are required")
    role = _validate_role(role or ROLE_USER)

    if get_user_by_username(username) is not None:
        raise ConflictError("اسم المستخدم موجود مسبقاً")

    user = User(
        username=username,
        password_hash=hash_password(password),
        role=role,
        full_name=full_name,
        email=email,
        phone=phone,
        is_active=True,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("اسم المستخدم موجود مسبقاً")
    return user


def update_user(user_id: int, *, role: str | None = None, **profile) -> User:
    user = get_user_by_id(user_id)
    if user is None or not user.is_active:
        raise NotFoundError("المستخدم غير موجود")

    for key, value in profile.items():
        if key not in PROFILE_FIELDS:
            raise ValidationError(f"Field not allowed: {key}")
        setattr(user, key, value)

    if role is not None and role != user.role:
        _validate_role(role)
        if user.role == ROLE_ADMIN:
            _ensure_other_admin_exists(user.id)
        user.role = role

    db.session.commit()
    return user


def change_password(user_id: int, new_password: str) -> User:
    """Replace the password hash and sign the user out everywhere."""
    user = get_user_by_id(user_id)
    if user is None or not user.is_active:
        raise NotFoundError("المستخدم غير موجود")

    user.password_hash = hash_password(new_password)
    session_service.revoke_all_user_sessions(user.id, reason="Password changed", commit=False)
    db.session.commit()
    return user


def _ensure_other_admin_exists(user_id: int) -> None:
    others = db.session.query(User).filter(
        User.role == ROLE_ADMIN,
        User.is_active.is_(True),
        User.id != user_id,
    ).count()
    if not others:
        raise ConflictError("Cannot remove the last active admin")


def delete_user(user_id: int) -> bool:
    """Soft delete: deactivate and revoke sessions. Returns False if not found."""
    user = get_user_by_id(user_id)
    if user is None or not user.is_active:
        return False

    if user.role == ROLE_ADMIN:
        _ensure_other_admin_exists(user.id)

    user.is_active = False
    session_service.revoke_all_user_sessions(user.id, reason="User deactivated", commit=False)
    db.session.commit()
    return True


def update_last_login(user_id: int) -> User:
    user = get_user_by_id(user_id)
    if user is None:
        raise NotFoundError("المستخدم غير موجود")
    user.last_login = utcnow()
    db.session.commit()
    return user


def create_default_admin_if_needed() -> User | None:
    """
    Create the first-run admin account when no users exist at all.

    Credentials come from DEFAULT_ADMIN_USERNAME / DEFAULT_ADMIN_PASSWORD.
    Returns the created user, or None if any user already exists.
    """
    if db.session.query(User).count():
        return None

    config = current_app.config
    user = create_user(
        username=config["DEFAULT_ADMIN_USERNAME"],
        password=config["DEFAULT_ADMIN_PASSWORD"],
        role=ROLE_ADMIN,
        full_name=config.get("DEFAULT_ADMIN_FULL_NAME"),
    )
    current_app.logger.info("Created default admin account '%s'", user.username)
    return user
