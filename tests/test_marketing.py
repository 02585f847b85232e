from datetime import datetime

import pytest

from pianomanager.domain.marketing.service import invalid_variables
from pianomanager.models import Client
from pianomanager.models_marketing import CampaignRecipient

REMINDER = "Hola {{cliente_nombre}}, su {{piano_marca}} no se afina desde el {{ultimo_servicio}}."


@pytest.fixture
def template(client, user_headers):
    response = client.post(
        "/marketing/templates",
        json={"type": "maintenance_reminder", "name": "Mantenimiento", "emailSubject": "Su piano", "content": REMINDER},
        headers=user_headers,
    )
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def serviced_client(client, user_headers, sample_client):
    piano = client.post(
        "/pianos", json={"clientId": sample_client.id, "brand": "Yamaha", "model": "U1", "pianoType": "upright"},
        headers=user_headers,
    ).json()
    client.post(
        "/services",
        json={"pianoId": piano["id"], "serviceType": "tuning", "date": "2024-01-10T10:00:00", "cost": 80},
        headers=user_headers,
    )
    return sample_client


def _campaign(client, headers, template_id, filters=None):
    response = client.post(
        "/marketing/campaigns",
        json={"name": "Primavera", "templateId": template_id, "recipientFilters": filters or {}},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    return response.json()


class TestTemplates:
    def test_invalid_variables(self):
        assert invalid_variables("{{cliente_nombre}} {{foo}} {{foo}}", "birthday") == ["foo"]
        assert invalid_variables("{{numero_factura}}", "custom") == []

    def test_create_template(self, template):
        assert template["channel"] == "email"
        assert "piano_marca" in template["availableVariables"]

    def test_unknown_variable_is_rejected(self, client, user_headers):
        response = client.post(
            "/marketing/templates",
            json={"type": "birthday", "name": "Cumple", "content": "Feliz día {{edad}}"},
            headers=user_headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid template variables: {{edad}}"

    def test_html_content_is_sanitized(self, client, user_headers):
        response = client.post(
            "/marketing/templates",
            json={
                "type": "custom",
                "name": "Boletín",
                "content": "Hola {{cliente_nombre}}",
                "htmlContent": "<p>Hola</p><script>alert(1)</script>",
            },
            headers=user_headers,
        )
        assert "<script>" not in response.json()["htmlContent"]

    def test_default_catalogue(self, client, user_headers):
        defaults = client.get("/marketing/templates/defaults", headers=user_headers).json()
        assert len(defaults) == 10
        assert {d["type"] for d in defaults} >= {"welcome", "reactivation", "custom"}

    def test_initialize_defaults_is_idempotent(self, client, user_headers):
        first = client.post("/marketing/templates/initialize-defaults", headers=user_headers).json()
        second = client.post("/marketing/templates/initialize-defaults", headers=user_headers).json()

        assert first == {"success": True, "count": 10}
        assert second == {"success": True, "count": 0}
        assert len(client.get("/marketing/templates", headers=user_headers).json()) == 10

    def test_update_checks_variables(self, client, user_headers, template):
        response = client.patch(
            f"/marketing/templates/{template['id']}", json={"content": "{{descuento}}"}, headers=user_headers
        )
        assert response.status_code == 400

        response = client.patch(f"/marketing/templates/{template['id']}", json={"isActive": False}, headers=user_headers)
        assert response.json()["isActive"] is False

    def test_preview_personalises_for_a_client(self, client, user_headers, template, serviced_client):
        preview = client.get(
            f"/marketing/templates/{template['id']}/preview",
            params={"clientId": serviced_client.id},
            headers=user_headers,
        ).json()

        assert preview["content"] == "Hola María, su Yamaha no se afina desde el 10/01/2024."
        assert preview["subject"] == "Su piano"
        assert preview["variables"]["importe"] == "80.00 €"

    def test_templates_are_private(self, client, other_headers, template):
        assert client.get(f"/marketing/templates/{template['id']}", headers=other_headers).status_code == 404

    def test_template_in_use_cannot_be_deleted(self, client, user_headers, template):
        _campaign(client, user_headers, template["id"])

        assert client.delete(f"/marketing/templates/{template['id']}", headers=user_headers).status_code == 409


class TestCampaigns:
    def test_create_campaign(self, client, user_headers, template):
        campaign = _campaign(client, user_headers, template["id"], {"city": "Madrid", "requireEmail": True})

        assert campaign["status"] == "draft"
        assert campaign["recipientFilters"] == {"city": "Madrid", "requireEmail": True}

    def test_unknown_client_type_filter(self, client, user_headers, template):
        response = client.post(
            "/marketing/campaigns",
            json={"name": "x", "templateId": template["id"], "recipientFilters": {"clientTypes": ["alien"]}},
            headers=user_headers,
        )
        assert response.status_code == 422

    def test_calculate_recipients(self, client, db, user, user_headers, template, serviced_client):
        db.add_all(
            [
                Client(user_id=user.id, name="Beatriz Ruiz", email="bea@example.com", city="madrid"),
                Client(user_id=user.id, name="Carlos Sin Email", city="Madrid"),
                Client(user_id=user.id, name="Diego Lejos", email="diego@example.com", city="Bilbao"),
            ]
        )
        db.commit()
        campaign = _campaign(client, user_headers, template["id"], {"city": "Madrid", "requireEmail": True})

        result = client.post(f"/marketing/campaigns/{campaign['id']}/calculate-recipients", headers=user_headers).json()
        assert result == {"success": True, "totalRecipients": 2}

        recipients = client.get(f"/marketing/campaigns/{campaign['id']}/recipients", headers=user_headers).json()
        assert [(r["clientName"], r["queueOrder"], r["status"]) for r in recipients] == [
            ("Beatriz Ruiz", 1, "pending"),
            ("María García", 2, "pending"),
        ]
        assert recipients[1]["generatedMessage"].startswith("Hola María, su Yamaha")

        detail = client.get(f"/marketing/campaigns/{campaign['id']}", headers=user_headers).json()
        assert detail["totalRecipients"] == 2
        assert detail["recipientCounts"]["pending"] == 2

    def test_recalculation_replaces_the_queue(self, client, user_headers, template, sample_client):
        campaign = _campaign(client, user_headers, template["id"])
        url = f"/marketing/campaigns/{campaign['id']}/calculate-recipients"

        client.post(url, headers=user_headers)
        client.post(url, headers=user_headers)

        recipients = client.get(f"/marketing/campaigns/{campaign['id']}/recipients", headers=user_headers).json()
        assert len(recipients) == 1

    def test_last_service_filters(self, client, db, user, user_headers, template, serviced_client):
        db.add(Client(user_id=user.id, name="Nunca Atendido", email="nunca@example.com"))
        db.commit()

        overdue = _campaign(client, user_headers, template["id"], {"lastServiceBefore": "2024-06-01T00:00:00"})
        recent = _campaign(client, user_headers, template["id"], {"lastServiceAfter": "2023-12-01T00:00:00"})

        for campaign in (overdue, recent):
            client.post(f"/marketing/campaigns/{campaign['id']}/calculate-recipients", headers=user_headers)

        def names(campaign):
            recipients = client.get(f"/marketing/campaigns/{campaign['id']}/recipients", headers=user_headers).json()
            return [r["clientName"] for r in recipients]

        assert names(overdue) == ["María García", "Nunca Atendido"]
        assert names(recent) == ["María García"]

    def test_status_changes_and_stats(self, client, user_headers, template):
        first = _campaign(client, user_headers, template["id"])
        second = _campaign(client, user_headers, template["id"])
        _campaign(client, user_headers, template["id"])

        started = client.patch(
            f"/marketing/campaigns/{first['id']}", json={"status": "in_progress"}, headers=user_headers
        ).json()
        assert started["startedAt"] is not None

        finished = client.patch(
            f"/marketing/campaigns/{second['id']}", json={"status": "completed"}, headers=user_headers
        ).json()
        assert finished["completedAt"] is not None

        stats = client.get("/marketing/campaigns/stats", headers=user_headers).json()
        assert stats == {"total": 3, "draft": 1, "active": 1, "completed": 1}

    def test_invalid_status(self, client, user_headers, template):
        campaign = _campaign(client, user_headers, template["id"])
        response = client.patch(f"/marketing/campaigns/{campaign['id']}", json={"status": "lost"}, headers=user_headers)
        assert response.status_code == 422


class TestMessageHistory:
    @pytest.fixture
    def queued(self, client, db, user, user_headers, template, serviced_client):
        db.add(Client(user_id=user.id, name="Beatriz Ruiz", email="bea@example.com"))
        db.commit()
        campaign = _campaign(client, user_headers, template["id"])
        client.post(f"/marketing/campaigns/{campaign['id']}/calculate-recipients", headers=user_headers)

        maria = db.query(CampaignRecipient).filter(CampaignRecipient.client_id == serviced_client.id).one()
        maria.status = "sent"
        maria.sent_at = datetime(2099, 1, 1, 10, 0)
        db.commit()
        return campaign

    def test_newest_first_across_campaigns(self, client, user_headers, queued):
        history = client.get("/marketing/messages", headers=user_headers).json()

        assert [(m["clientName"], m["status"]) for m in history] == [("María García", "sent"), ("Beatriz Ruiz", "pending")]
        assert history[0]["campaignName"] == "Primavera"
        assert history[0]["channel"] == "email"
        assert history[0]["generatedMessage"].startswith("Hola María, su Yamaha")

    def test_filters(self, client, user_headers, serviced_client, queued):
        by_client = client.get(
            "/marketing/messages", params={"clientId": serviced_client.id}, headers=user_headers
        ).json()
        assert [m["clientId"] for m in by_client] == [serviced_client.id]

        assert client.get("/marketing/messages", params={"channel": "sms"}, headers=user_headers).json() == []
        assert len(client.get("/marketing/messages", params={"channel": "email"}, headers=user_headers).json()) == 2
        assert client.get("/marketing/messages", params={"channel": "fax"}, headers=user_headers).status_code == 400

        page = client.get("/marketing/messages", params={"limit": 1, "offset": 1}, headers=user_headers).json()
        assert [m["clientName"] for m in page] == ["Beatriz Ruiz"]

    def test_history_is_private(self, client, other_headers, queued):
        assert client.get("/marketing/messages", headers=other_headers).json() == []
