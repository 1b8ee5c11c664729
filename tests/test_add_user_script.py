from __future__ import annotations

from sqlalchemy import delete
from sqlalchemy.orm import Session

from policy_aligner.config import get_settings
from policy_aligner.models import User
from policy_aligner.services.security import verify_password
from scripts.add_user import create_user


def test_create_user_script_adds_and_skips_existing(db_session: Session, capsys) -> None:
    factory = lambda: db_session  # noqa: E731

    user = create_user("operator", "Operator@Example.com", "s3cret", role="admin", session_factory=factory)

    assert user is not None
    stored = db_session.get(User, user.id)
    assert stored.role == "admin"
    assert stored.email == "operator@example.com"
    assert verify_password("s3cret", stored.password_hash)

    assert create_user("operator", "other@example.com", "x", session_factory=factory) is None
    assert "already exists" in capsys.readouterr().out


def test_create_user_on_empty_database_keeps_id_one_for_admin(db_session: Session) -> None:
    db_session.execute(delete(User))
    db_session.commit()

    user = create_user(
        "first-analyst", "first@example.com", "s3cret", session_factory=lambda: db_session
    )

    admin = db_session.get(User, 1)
    assert admin is not None
    assert admin.role == "admin"
    assert admin.username == get_settings().admin_username
    assert user is not None
    assert user.id != 1
    assert user.role == "analyst"
