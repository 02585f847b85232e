import pytest

MAY = {"startDate": "2024-05-01T00:00:00", "endDate": "2024-05-31T23:59:59"}


def _log_services(client, headers, name, services):
    customer = client.post("/clients", json={"name": name}, headers=headers).json()
    piano = client.post(
        "/pianos", json={"clientId": customer["id"], "brand": "Steinway", "pianoType": "grand", "category": "grand"},
        headers=headers,
    ).json()
    for date, duration, cost in services:
        response = client.post(
            "/services",
            json={"pianoId": piano["id"], "serviceType": "tuning", "date": date, "duration": duration, "cost": cost},
            headers=headers,
        )
        assert response.status_code == 200
    return customer


@pytest.fixture
def may_activity(client, user_headers, other_headers):
    customer = _log_services(
        client,
        user_headers,
        "Conservatorio Real",
        [("2024-05-10T09:00:00", 60, 80), ("2024-05-20T09:00:00", 120, 150), ("2024-08-01T09:00:00", 90, 95)],
    )
    _log_services(client, other_headers, "Escuela Allegro", [("2024-05-15T16:00:00", 45, 60)])

    created = [
        client.post(
            "/appointments",
            json={"clientId": customer["id"], "title": title, "date": date},
            headers=user_headers,
        ).json()
        for title, date in (("Afinación", "2024-05-10T09:00:00"), ("Revisión", "2024-05-28T12:00:00"))
    ]
    client.put(f"/appointments/{created[0]['id']}/status", json={"status": "completed"}, headers=user_headers)
    client.put(f"/appointments/{created[1]['id']}/status", json={"status": "cancelled"}, headers=user_headers)


def test_technician_sees_own_figures(client, user, user_headers, may_activity):
    body = client.get("/metrics/technicians", params=MAY, headers=user_headers).json()

    assert body["technicians"] == [
        {
            "technicianId": user.id,
            "technicianName": "Ana Técnica",
            "appointmentsScheduled": 2,
            "appointmentsCompleted": 1,
            "appointmentsCancelled": 1,
            "servicesCompleted": 2,
            "totalWorkMinutes": 180,
            "averageServiceDuration": 90.0,
            "totalRevenue": 230.0,
        }
    ]
    assert body["summary"]["technicians"] == 1


def test_admin_sees_the_whole_partner(client, admin_headers, user, other_user, may_activity):
    body = client.get("/metrics/technicians", params=MAY, headers=admin_headers).json()

    assert [t["technicianId"] for t in body["technicians"]] == sorted([user.id, other_user.id])
    summary = body["summary"]
    assert summary["servicesCompleted"] == 3
    assert summary["totalWorkMinutes"] == 225
    assert summary["averageServiceDuration"] == 75.0
    assert summary["totalRevenue"] == 290.0


def test_empty_period(client, user_headers, may_activity):
    body = client.get(
        "/metrics/technicians",
        params={"startDate": "2023-01-01T00:00:00", "endDate": "2023-01-31T00:00:00"},
        headers=user_headers,
    ).json()
    assert body["technicians"] == []
    assert body["summary"]["servicesCompleted"] == 0


def test_inverted_range(client, user_headers):
    response = client.get(
        "/metrics/technicians",
        params={"startDate": "2024-06-01T00:00:00", "endDate": "2024-05-01T00:00:00"},
        headers=user_headers,
    )
    assert response.status_code == 400


class TestRanking:
    def test_default_orders_by_revenue(self, client, admin_headers, user, other_user, may_activity):
        ranking = client.get("/metrics/technicians/ranking", params=MAY, headers=admin_headers).json()

        assert [(t["position"], t["technicianId"], t["totalRevenue"]) for t in ranking] == [
            (1, user.id, 230.0),
            (2, other_user.id, 60.0),
        ]
        assert ranking[0]["completionRate"] == 50.0

    def test_efficiency_is_completion_rate(self, client, admin_headers, other_headers, user, other_user, may_activity):
        customer = client.post("/clients", json={"name": "Coro Municipal"}, headers=other_headers).json()
        appointment = client.post(
            "/appointments",
            json={"clientId": customer["id"], "title": "Afinación", "date": "2024-05-22T10:00:00"},
            headers=other_headers,
        ).json()
        client.put(f"/appointments/{appointment['id']}/status", json={"status": "completed"}, headers=other_headers)

        ranking = client.get(
            "/metrics/technicians/ranking", params={**MAY, "sortBy": "efficiency"}, headers=admin_headers
        ).json()

        assert [(t["technicianId"], t["completionRate"]) for t in ranking] == [(other_user.id, 100.0), (user.id, 50.0)]

    def test_unknown_sort(self, client, user_headers):
        response = client.get("/metrics/technicians/ranking", params={"sortBy": "rating"}, headers=user_headers)
        assert response.status_code == 400


class TestComparison:
    def test_keeps_requested_order_and_zeroes_idle(self, client, admin, admin_headers, user, other_user, may_activity):
        response = client.get(
            "/metrics/technicians/comparison",
            params={**MAY, "technicianIds": [other_user.id, admin.id, user.id]},
            headers=admin_headers,
        )
        assert response.status_code == 200
        rows = response.json()

        assert [r["technicianId"] for r in rows] == [other_user.id, admin.id, user.id]
        assert rows[0]["totalWorkMinutes"] == 45
        assert rows[1]["servicesCompleted"] == 0
        assert rows[1]["completionRate"] == 0.0
        assert rows[2]["totalWorkHours"] == 3.0

    def test_technician_compares_only_self(self, client, user, user_headers, other_user, may_activity):
        own = client.get(
            "/metrics/technicians/comparison", params={**MAY, "technicianIds": [user.id]}, headers=user_headers
        )
        assert own.json()[0]["totalRevenue"] == 230.0

        response = client.get(
            "/metrics/technicians/comparison",
            params={**MAY, "technicianIds": [user.id, other_user.id]},
            headers=user_headers,
        )
        assert response.status_code == 403

    def test_unknown_technician(self, client, admin_headers):
        response = client.get(
            "/metrics/technicians/comparison", params={"technicianIds": [99999]}, headers=admin_headers
        )
        assert response.status_code == 404
