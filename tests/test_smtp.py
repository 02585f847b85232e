import smtplib

import pytest

from pianomanager import email_service
from pianomanager.models import User
from pianomanager.security_utils import decrypt_password

SETTINGS = {"host": "smtp.example.com", "port": 587, "user": "tech@example.com", "password": "app-password"}


@pytest.fixture
def configured(client, user_headers):
    response = client.post("/smtp/setup", json={**SETTINGS, "fromName": "Afinaciones Ana"}, headers=user_headers)
    assert response.status_code == 200
    return response.json()


def test_setup_stores_encrypted_password(db, user, configured):
    assert configured["enabled"] is True
    assert configured["status"] is None

    db.expire_all()
    stored = db.get(User, user.id)
    assert stored.smtp_password != "app-password"
    assert decrypt_password(stored.smtp_password) == "app-password"


def test_successful_test_marks_smtp_live(client, user_headers, configured, monkeypatch):
    calls = []
    monkeypatch.setattr("pianomanager.routes.smtp.send_smtp_test_email", lambda user, password: calls.append(password))

    body = client.post("/smtp/test", headers=user_headers).json()

    assert body["success"] is True
    assert body["status"] == "live"
    assert calls == ["app-password"]
    assert client.get("/smtp/status", headers=user_headers).json()["lastTestAt"] is not None


def test_authentication_failure_is_reported(client, user_headers, configured, monkeypatch):
    def reject(user, password):
        raise smtplib.SMTPAuthenticationError(535, b"Bad credentials")

    monkeypatch.setattr("pianomanager.routes.smtp.send_smtp_test_email", reject)

    body = client.post("/smtp/test", headers=user_headers).json()
    assert body["success"] is False
    assert body["status"] == "failed"
    assert body["message"] == "Authentication failed. Check username and password."

    status = client.get("/smtp/status", headers=user_headers).json()
    assert status["errorMessage"] == body["message"]


def test_test_without_configuration(client, user_headers):
    assert client.post("/smtp/test", headers=user_headers).status_code == 404


def test_disable(client, user_headers, configured):
    assert client.post("/smtp/disable", headers=user_headers).status_code == 200

    status = client.get("/smtp/status", headers=user_headers).json()
    assert status["status"] == "disabled"
    assert status["enabled"] is False


def test_toggle_notification_emails(client, user_headers):
    response = client.put("/smtp/notifications", json={"enabled": False}, headers=user_headers)
    assert response.json()["notificationEmailEnabled"] is False
    assert client.get("/users/me", headers=user_headers).json()["notificationEmailEnabled"] is False


class TestDelivery:
    def test_live_smtp_is_preferred(self, db, user, sent_emails):
        user.smtp_host, user.smtp_user, user.smtp_password, user.smtp_status = (
            "smtp.example.com",
            "tech@example.com",
            "x",
            "live",
        )
        db.commit()

        email_service.deliver_email("cliente@example.com", "Hola", "<mjml/>", user=user)
        assert sent_emails[0]["via"] == "smtp"

    def test_untested_smtp_falls_back_to_resend(self, db, user, sent_emails):
        user.smtp_host, user.smtp_user, user.smtp_password = "smtp.example.com", "tech@example.com", "x"
        db.commit()

        email_service.deliver_email("cliente@example.com", "Hola", "<mjml/>", user=user)
        assert sent_emails[0]["via"] == "resend"

    def test_failing_smtp_falls_back_to_resend(self, db, user, sent_emails, monkeypatch):
        user.smtp_host, user.smtp_user, user.smtp_password, user.smtp_status = (
            "smtp.example.com",
            "tech@example.com",
            "x",
            "live",
        )
        db.commit()

        def down(*args, **kwargs):
            raise Exception("Custom SMTP failed: connection refused")

        monkeypatch.setattr(email_service, "send_via_custom_smtp", down)

        email_service.deliver_email("cliente@example.com", "Hola", "<mjml/>", user=user)
        assert [e["via"] for e in sent_emails] == ["resend"]

    def test_no_provider_configured(self, monkeypatch):
        monkeypatch.setattr(email_service, "compile_mjml_to_html", lambda mjml: mjml)
        monkeypatch.setattr(email_service, "RESEND_API_KEY", None)

        with pytest.raises(Exception, match="Email service not configured"):
            email_service.deliver_email("cliente@example.com", "Hola", "<mjml/>")
