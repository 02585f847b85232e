"""Shared pytest fixtures for the test suite.

The environment is configured before the application is imported so the
engine binds to an in-memory SQLite database and SMTP passwords are
encrypted with a throwaway key.

Fixture overview
----------------
db              session on a freshly created schema (dropped after each test)
client          FastAPI TestClient
auth_headers    bearer headers for an arbitrary identity
user / admin    provisioned accounts; ``user_headers`` / ``admin_headers``
sent_emails     SMTP and Resend sends captured instead of delivered
"""

import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["SMTP_ENCRYPTION_KEY"] = "MDEyMzQ1Njc4OTAxMjM0NTY3ODkwMTIzNDU2Nzg5MDE="
os.environ["LOCALES_DIR"] = tempfile.mkdtemp(prefix="pianomanager-locales-")
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ.pop("RESEND_API_KEY", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from pianomanager import email_service  # noqa: E402
from pianomanager.database import Base, SessionLocal, engine  # noqa: E402
from pianomanager.main import app  # noqa: E402
from pianomanager.models import Client, User  # noqa: E402
from pianomanager.security_utils import create_jwt_token  # noqa: E402


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def make_headers(uid: str, email: str, name: str = "") -> dict:
    token = create_jwt_token({"sub": uid, "email": email, "name": name})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    return make_headers


def _create_user(db, uid: str, email: str, name: str, role: str = "user") -> User:
    user = User(auth_uid=uid, email=email, name=name, role=role, partner_id=1)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def user(db):
    return _create_user(db, "uid-tech", "tech@example.com", "Ana Técnica")


@pytest.fixture
def other_user(db):
    return _create_user(db, "uid-other", "other@example.com", "Otro Técnico")


@pytest.fixture
def admin(db):
    return _create_user(db, "uid-admin", "admin@example.com", "Admin", role="admin")


@pytest.fixture
def user_headers(user):
    return make_headers(user.auth_uid, user.email, user.name)


@pytest.fixture
def other_headers(other_user):
    return make_headers(other_user.auth_uid, other_user.email, other_user.name)


@pytest.fixture
def admin_headers(admin):
    return make_headers(admin.auth_uid, admin.email, admin.name)


@pytest.fixture
def sample_client(db, user):
    record = Client(
        user_id=user.id,
        partner_id=user.partner_id,
        name="María García",
        email="maria@example.com",
        city="Madrid",
        client_type="particular",
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def sent_emails(monkeypatch):
    """Capture outgoing mail; MJML is passed through uncompiled"""
    sent = []

    def fake_smtp(user, to, subject, html_content, from_address=None):
        sent.append({"via": "smtp", "to": to, "subject": subject, "html": html_content})
        return {"id": f"smtp-{len(sent)}", "success": True}

    def fake_resend(params):
        sent.append({"via": "resend", "to": params["to"], "subject": params["subject"], "html": params["html"]})
        return {"id": f"resend-{len(sent)}"}

    monkeypatch.setattr(email_service, "compile_mjml_to_html", lambda mjml: mjml)
    monkeypatch.setattr(email_service, "send_via_custom_smtp", fake_smtp)
    monkeypatch.setattr(email_service.resend.Emails, "send", fake_resend)
    monkeypatch.setattr(email_service, "RESEND_API_KEY", "re_test")
    return sent
