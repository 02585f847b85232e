from datetime import datetime, timedelta

import pytest

from pianomanager.models import Notification, User
from pianomanager.models_license import ActivationCode, License
from pianomanager.models_workflow import Workflow, WorkflowExecution, WorkflowNode
from pianomanager.security_utils import encrypt_password
from pianomanager.services.approval_notifier import check_pending_approvals_and_notify
from pianomanager.services.license_expiration import expire_licenses_and_codes


def configure_smtp(db, user):
    user.smtp_host = "smtp.example.com"
    user.smtp_port = 587
    user.smtp_user = "tech@example.com"
    user.smtp_password = encrypt_password("app-password")
    user.smtp_status = "live"
    db.commit()


@pytest.fixture
def stale_execution(db, user):
    workflow = Workflow(user_id=user.id, name="Presupuestos", trigger_type="manual", status="active")
    workflow.nodes.append(WorkflowNode(node_type="approval", node_config={}))
    db.add(workflow)
    db.commit()

    paused_at = datetime.utcnow() - timedelta(hours=30)
    execution = WorkflowExecution(
        workflow_id=workflow.id,
        user_id=user.id,
        status="pending_approval",
        trigger_data={},
        variables={},
        current_node_id=workflow.nodes[0].id,
        pending_approval_data={"message": "¿Enviar presupuesto?", "nodeId": workflow.nodes[0].id},
        paused_at=paused_at,
        started_at=paused_at,
    )
    db.add(execution)
    db.commit()

    db.add(
        Notification(
            user_id=user.id,
            type="approval_pending",
            title="Approval required: Presupuestos",
            data={"workflowId": workflow.id, "executionId": execution.id},
            workflow_execution_id=execution.id,
        )
    )
    db.commit()
    return execution


def approval_notifications(db, execution):
    db.expire_all()
    return db.query(Notification).filter(Notification.workflow_execution_id == execution.id).all()


class TestApprovalNotifier:
    def test_stale_approval_is_emailed_once(self, db, user, stale_execution, sent_emails):
        configure_smtp(db, user)

        assert check_pending_approvals_and_notify(db) == {"total": 1, "sent": 1, "failed": 0}
        assert sent_emails[0]["via"] == "smtp"
        assert sent_emails[0]["to"] == "tech@example.com"
        assert sent_emails[0]["subject"] == "Pending approval: Presupuestos"

        [notification] = approval_notifications(db, stale_execution)
        assert notification.data["emailSent"] is True
        assert "emailSentAt" in notification.data

        assert check_pending_approvals_and_notify(db) == {"total": 1, "sent": 0, "failed": 0}
        assert len(sent_emails) == 1

    def test_recent_approvals_are_left_alone(self, db, user, stale_execution, sent_emails):
        configure_smtp(db, user)

        result = check_pending_approvals_and_notify(db, now=stale_execution.paused_at + timedelta(hours=1))
        assert result["total"] == 0

    def test_users_without_smtp_count_as_failed(self, db, stale_execution, sent_emails):
        assert check_pending_approvals_and_notify(db) == {"total": 1, "sent": 0, "failed": 1}
        assert sent_emails == []

        [notification] = approval_notifications(db, stale_execution)
        assert "emailSent" not in notification.data

    def test_disabled_notifications_count_as_failed(self, db, user, stale_execution, sent_emails):
        configure_smtp(db, user)
        user.notification_email_enabled = False
        db.commit()

        assert check_pending_approvals_and_notify(db)["failed"] == 1

    def test_missing_notification_is_recreated(self, db, user, stale_execution, sent_emails):
        configure_smtp(db, user)
        db.query(Notification).delete()
        db.commit()

        assert check_pending_approvals_and_notify(db)["sent"] == 1

        [notification] = approval_notifications(db, stale_execution)
        assert notification.type == "approval_pending"
        assert notification.data["emailSent"] is True


class TestLicenseExpiration:
    def test_expired_licenses_and_codes(self, db, client, user, admin_headers, sent_emails):
        partner = client.post(
            "/partners", json={"name": "Ibérica", "slug": "iberica", "email": "v@iberica.es"}, headers=admin_headers
        ).json()

        now = datetime.utcnow()
        db.add_all(
            [
                License(user_id=user.id, license_type="direct", status="active", expires_at=now - timedelta(days=1)),
                License(user_id=user.id, license_type="direct", status="active", expires_at=now + timedelta(days=30)),
                ActivationCode(partner_id=partner["id"], code="IBER-AAAA-BBBB-CCCC", expires_at=now - timedelta(hours=1)),
                ActivationCode(partner_id=partner["id"], code="IBER-DDDD-EEEE-FFFF", expires_at=None),
            ]
        )
        db.commit()

        result = expire_licenses_and_codes(db, now=now)

        assert result == {"licenses_expired": 1, "codes_expired": 1, "emails_sent": 1, "emails_failed": 0}
        db.expire_all()
        assert sorted(lic.status for lic in db.query(License).all()) == ["active", "expired"]
        assert {c.code: c.status for c in db.query(ActivationCode).all()} == {
            "IBER-AAAA-BBBB-CCCC": "expired",
            "IBER-DDDD-EEEE-FFFF": "active",
        }
        assert db.query(Notification).filter(Notification.type == "license").count() == 1
        assert sent_emails[0]["to"] == ["tech@example.com"]

    def test_email_failures_are_counted(self, db, user, monkeypatch):
        db.add(License(user_id=user.id, license_type="direct", status="active", expires_at=datetime(2020, 1, 1)))
        db.commit()

        def broken(*args, **kwargs):
            raise Exception("Email service not configured")

        monkeypatch.setattr("pianomanager.services.license_expiration.deliver_email", broken)

        result = expire_licenses_and_codes(db)
        assert result["licenses_expired"] == 1
        assert result["emails_failed"] == 1

    def test_users_without_email_are_not_emailed(self, db, sent_emails):
        silent = User(auth_uid="uid-silent", email=None, name="Sin correo")
        db.add(silent)
        db.commit()
        db.add(License(user_id=silent.id, license_type="direct", status="active", expires_at=datetime(2020, 1, 1)))
        db.commit()

        result = expire_licenses_and_codes(db)
        assert result["licenses_expired"] == 1
        assert result["emails_sent"] == 0
        assert sent_emails == []
