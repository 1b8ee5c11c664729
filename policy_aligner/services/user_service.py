from __future__ import annotations

import logging

from sqlalchemy import func, or_, select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from policy_aligner.exceptions import ConflictError, ForbiddenError, NotFoundError
from policy_aligner.models import User
from policy_aligner.schemas import UserRole
from policy_aligner.services.security import hash_password, verify_password

logger = logging.getLogger(__name__)

BOOTSTRAP_ADMIN_ID = 1


class AuthenticationError(Exception):
    """Raised when credentials do not match an account."""


class InactiveUserError(Exception):
    """Raised when a deactivated account attempts to sign in."""


def ensure_bootstrap_admin(db: Session, *, username: str, email: str, password: str) -> User | None:
    """Create the protected admin account when the user table is empty."""

    existing = db.scalar(select(func.count()).select_from(User)) or 0
    if existing:
        return None

    admin = User(
        id=BOOTSTRAP_ADMIN_ID,
        username=username,
        email=email.strip().lower(),
        password_hash=hash_password(password),
        role=UserRole.ADMIN.value,
        is_active=True,
    )
    db.add(admin)
    db.flush()
    if db.get_bind().dialect.name == "postgresql":
        # Explicit ids do not advance the serial sequence.
        db.execute(text("SELECT setval(pg_get_serial_sequence('users', 'id'), (SELECT MAX(id) FROM users))"))
    db.commit()
    db.refresh(admin)
    logger.info("Created bootstrap admin account '%s'", admin.username)
    return admin


def register_user(db: Session, *, username: str, email: str, password: str) -> User:
    normalized_email = email.strip().lower()
    duplicate = db.execute(
        select(User.id).where(or_(User.username == username, User.email == normalized_email)).limit(1)
    ).first()
    if duplicate:
        raise ConflictError("Username or email already exists")

    user = User(
        username=username,
        email=normalized_email,
        password_hash=hash_password(password),
        role=UserRole.ANALYST.value,
        is_active=True,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Username or email already exists") from exc

    db.refresh(user)
    return user


def authenticate(db: Session, *, username: str, password: str) -> User:
    login = username.strip()
    user = db.execute(
        select(User).where(or_(User.username == login, User.email == login.lower())).limit(1)
    ).scalars().first()
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt for '%s'", login)
        raise AuthenticationError("Invalid credentials")
    if not user.is_active:
        raise InactiveUserError("Account is deactivated")
    return user


def list_users(db: Session) -> list[User]:
    return list(db.execute(select(User).order_by(User.created_at.desc(), User.id.desc())).scalars())


def _get_user_or_raise(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def _ensure_not_bootstrap_admin(user_id: int, message: str) -> None:
    if user_id == BOOTSTRAP_ADMIN_ID:
        raise ForbiddenError(message)


def delete_user(db: Session, user_id: int) -> None:
    _ensure_not_bootstrap_admin(user_id, "Main admin cannot be deleted")
    user = _get_user_or_raise(db, user_id)
    db.delete(user)
    db.commit()


def set_user_role(db: Session, user_id: int, role: UserRole) -> User:
    _ensure_not_bootstrap_admin(user_id, "Main admin role cannot be changed")
    user = _get_user_or_raise(db, user_id)
    user.role = role.value
    db.commit()
    db.refresh(user)
    return user


def set_user_status(db: Session, user_id: int, is_active: bool) -> User:
    _ensure_not_bootstrap_admin(user_id, "Main admin cannot be disabled")
    user = _get_user_or_raise(db, user_id)
    user.is_active = is_active
    db.commit()
    db.refresh(user)
    return user
