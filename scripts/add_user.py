import argparse

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError

from policy_aligner.config import get_settings
from policy_aligner.database import Base, SessionLocal, engine
from policy_aligner.models import User
from policy_aligner.schemas import UserRole
from policy_aligner.services.security import hash_password
from policy_aligner.services.user_service import ensure_bootstrap_admin


def create_user(
    username: str,
    email: str,
    password: str,
    role: str = UserRole.ANALYST.value,
    session_factory=SessionLocal,
) -> User | None:
    settings = get_settings()
    with session_factory() as session:
        # Id 1 is reserved for the protected admin, so create it before anyone else.
        ensure_bootstrap_admin(
            session,
            username=settings.admin_username,
            email=settings.admin_email,
            password=settings.admin_password,
        )

        existing = session.execute(
            select(User).where(or_(User.username == username, User.email == email.strip().lower()))
        ).scalars().first()
        if existing:
            print(f"User already exists: {existing.id} ({existing.username})")
            return None

        user = User(
            username=username,
            email=email.strip().lower(),
            password_hash=hash_password(password),
            role=role,
            is_active=True,
        )
        session.add(user)

        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise RuntimeError(f"Failed to create user due to integrity error: {exc}") from exc

        session.refresh(user)
        print(f"Created {user.role} user {user.id} ({user.username})")
        return user


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a policy aligner user in the database.")
    parser.add_argument("--username", required=True, help="Login name of the user")
    parser.add_argument("--email", required=True, help="Email for the new user")
    parser.add_argument("--password", required=True, help="Initial password")
    parser.add_argument(
        "--role",
        default=UserRole.ANALYST.value,
        choices=[role.value for role in UserRole],
        help="Optional role for the user",
    )

    args = parser.parse_args()
    try:
        hash_password(args.password)
    except ValueError as exc:
        parser.error(str(exc))

    Base.metadata.create_all(bind=engine)
    create_user(username=args.username, email=args.email, password=args.password, role=args.role)


if __name__ == "__main__":
    main()
