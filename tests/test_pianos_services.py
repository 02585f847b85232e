import pytest
from sqlalchemy import text


@pytest.fixture
def piano(client, user_headers, sample_client):
    response = client.post(
        "/pianos",
        json={"clientId": sample_client.id, "brand": "Yamaha", "model": "U3", "pianoType": "upright", "year": 1998},
        headers=user_headers,
    )
    assert response.status_code == 200
    return response.json()


def test_register_piano(piano, sample_client):
    assert piano["clientId"] == sample_client.id
    assert piano["category"] == "vertical"
    assert piano["tuningIntervalDays"] == 180


def test_piano_needs_an_owned_client(client, other_headers, sample_client):
    response = client.post(
        "/pianos",
        json={"clientId": sample_client.id, "brand": "Kawai", "pianoType": "grand"},
        headers=other_headers,
    )
    assert response.status_code == 404


def test_piano_validation(client, user_headers, sample_client):
    base = {"clientId": sample_client.id, "brand": "Kawai", "pianoType": "grand"}
    assert client.post("/pianos", json={**base, "category": "digital"}, headers=user_headers).status_code == 422
    assert client.post("/pianos", json={**base, "year": 1500}, headers=user_headers).status_code == 422


def test_list_pianos_by_client(client, user_headers, piano, sample_client):
    pianos = client.get("/pianos", params={"clientId": sample_client.id}, headers=user_headers).json()
    assert [p["id"] for p in pianos] == [piano["id"]]


def test_log_service(client, user, user_headers, piano, sample_client):
    response = client.post(
        "/services",
        json={
            "pianoId": piano["id"],
            "serviceType": "tuning",
            "date": "2024-05-10T10:00:00",
            "cost": 85.5,
            "duration": 90,
            "tasks": [{"name": "Afinar a 440 Hz", "completed": True}],
        },
        headers=user_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["clientId"] == sample_client.id
    assert body["technicianId"] == user.id
    assert body["tasks"][0]["name"] == "Afinar a 440 Hz"


def test_service_history_newest_first(client, user_headers, piano):
    for day in ("2023-01-10", "2024-02-01", "2023-06-15"):
        client.post(
            "/services",
            json={"pianoId": piano["id"], "serviceType": "tuning", "date": f"{day}T09:00:00"},
            headers=user_headers,
        )

    history = client.get("/services", params={"pianoId": piano["id"]}, headers=user_headers).json()
    assert [s["date"][:10] for s in history] == ["2024-02-01", "2023-06-15", "2023-01-10"]


def test_unknown_service_type(client, user_headers, piano):
    response = client.post(
        "/services",
        json={"pianoId": piano["id"], "serviceType": "painting", "date": "2024-05-10T10:00:00"},
        headers=user_headers,
    )
    assert response.status_code == 422


def test_deleting_piano_removes_its_history(client, user_headers, piano):
    service = client.post(
        "/services",
        json={"pianoId": piano["id"], "serviceType": "repair", "date": "2024-05-10T10:00:00"},
        headers=user_headers,
    ).json()

    assert client.delete(f"/pianos/{piano['id']}", headers=user_headers).status_code == 200
    assert client.get(f"/services/{service['id']}", headers=user_headers).status_code == 404


@pytest.fixture
def foreign_keys(db):
    """Enforce foreign keys on the shared SQLite connection, as Postgres does"""
    db.execute(text("PRAGMA foreign_keys=ON"))
    yield
    db.execute(text("PRAGMA foreign_keys=OFF"))


def test_deleting_piano_keeps_its_appointments(client, user_headers, sample_client, piano, foreign_keys):
    appointment = client.post(
        "/appointments",
        json={"clientId": sample_client.id, "pianoId": piano["id"], "title": "Afinación", "date": "2024-06-03T10:00:00"},
        headers=user_headers,
    ).json()

    assert client.delete(f"/pianos/{piano['id']}", headers=user_headers).status_code == 200

    kept = client.get(f"/appointments/{appointment['id']}", headers=user_headers)
    assert kept.status_code == 200
    assert kept.json()["pianoId"] is None
