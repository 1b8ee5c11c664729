import os
import sys
from pathlib import Path

from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

TEST_DATABASE_URL = "sqlite://"
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET", "test-secret")

from policy_aligner.config import get_settings  # noqa: E402
from policy_aligner.database import Base, create_database_engine, get_db  # noqa: E402
from policy_aligner.dependencies import get_document_storage  # noqa: E402
from policy_aligner.main import app  # noqa: E402
from policy_aligner.models import User  # noqa: E402
from policy_aligner.services.document_storage import DocumentStorage  # noqa: E402
from policy_aligner.services.reference_data import seed_domains, seed_tags  # noqa: E402
from policy_aligner.services.security import create_access_token  # noqa: E402
from policy_aligner.services.user_service import ensure_bootstrap_admin, register_user  # noqa: E402

ADMIN_PASSWORD = "admin-password"
ANALYST_PASSWORD = "analyst-password"


def _create_test_sessionmaker(bind):
    return sessionmaker(bind=bind, autocommit=False, autoflush=False, future=True)


@pytest.fixture(scope="session")
def engine():
    engine = create_database_engine(TEST_DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    connection = engine.connect()

    TestingSessionLocal = _create_test_sessionmaker(connection)
    session = TestingSessionLocal()

    # Every flow needs the framework domains and the protected admin account.
    seed_domains(session)
    seed_tags(session)
    ensure_bootstrap_admin(session, username="admin", email="admin@qc2m2.com", password=ADMIN_PASSWORD)

    try:
        yield session
    finally:
        session.close()
        connection.close()


@pytest.fixture()
def storage(tmp_path: Path) -> DocumentStorage:
    return DocumentStorage(tmp_path / "uploads")


class PrefixedTestClient(TestClient):
    api_prefix = "/api"

    def request(self, method: str, url: str, *args, **kwargs):  # type: ignore[override]
        if url.startswith("/"):
            url = f"{self.api_prefix}{url}"
        return super().request(method, url, *args, **kwargs)


@pytest.fixture()
def client(db_session: Session, storage: DocumentStorage) -> Generator[TestClient, None, None]:
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_document_storage] = lambda: storage

    client = PrefixedTestClient(app)
    try:
        yield client
    finally:
        app.dependency_overrides.pop(get_db, None)
        app.dependency_overrides.pop(get_document_storage, None)


def _auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user.id, user.username, user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_user(db_session: Session) -> User:
    return db_session.get(User, 1)


@pytest.fixture()
def admin_headers(admin_user: User) -> dict[str, str]:
    return _auth_headers(admin_user)


@pytest.fixture()
def analyst_user(db_session: Session) -> User:
    return register_user(db_session, username="analyst", email="analyst@example.com", password=ANALYST_PASSWORD)


@pytest.fixture()
def analyst_headers(analyst_user: User) -> dict[str, str]:
    return _auth_headers(analyst_user)


@pytest.fixture()
def upload_text(client: TestClient, admin_headers: dict[str, str]) -> Callable[..., dict]:
    """Upload a plain-text policy document and return the response payload."""

    def _upload(name: str = "policy.txt", text: str = "Assets are inventoried. Access is reviewed.", **form):
        response = client.post(
            "/documents/upload",
            files={"document": (name, text.encode("utf-8"), "text/plain")},
            data=form,
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _upload


@pytest.fixture()
def create_mapping(client: TestClient, admin_headers: dict[str, str]) -> Callable[..., dict]:
    def _create(document_id: int, domain_id: int, alignment_status: str, **overrides):
        payload = {
            "document_id": document_id,
            "domain_id": domain_id,
            "maturity_level": overrides.pop("maturity_level", 2),
            "alignment_status": alignment_status,
            **overrides,
        }
        response = client.post("/mappings", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture()
def sectioned_document(
    client: TestClient,
    admin_headers: dict[str, str],
    upload_text: Callable[..., dict],
    monkeypatch: pytest.MonkeyPatch,
) -> Callable[..., tuple[dict, list[int]]]:
    """Upload a document split into one section per sentence; return it with its section ids."""

    def _upload(name: str = "sectioned.txt", sentences: int = 6):
        monkeypatch.setattr(get_settings(), "max_section_length", 30)
        text = " ".join(f"Control number {index:02d} is enforced." for index in range(sentences))
        document = upload_text(name, text)
        detail = client.get(f"/documents/{document['id']}", headers=admin_headers).json()
        section_ids = [section["id"] for section in detail["sections"]]
        assert len(section_ids) == sentences
        return document, section_ids

    return _upload
