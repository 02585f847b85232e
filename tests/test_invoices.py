from datetime import datetime

import pytest

from pianomanager.domain.invoices.calculations import calculate_totals, parse_sequence


def _items():
    return [
        {"description": "Afinación", "quantity": 1, "unitPrice": 80},
        {"description": "Cuerdas", "quantity": 3, "unitPrice": 12.5, "taxRate": 10},
    ]


def _create(client, headers, client_id, **extra):
    return client.post("/invoices", json={"clientId": client_id, "items": _items(), **extra}, headers=headers)


def test_totals():
    totals = calculate_totals(_items())
    assert totals == {"subtotal": 117.5, "tax_amount": 20.55, "total": 138.05}


def test_parse_sequence():
    assert parse_sequence("INV-2024-0042") == 42
    assert parse_sequence("legacy") == 0


def test_create_invoice_snapshots_client(client, user_headers, sample_client):
    response = _create(client, user_headers, sample_client.id, date="2024-03-01T00:00:00")

    assert response.status_code == 200
    body = response.json()
    assert body["invoiceNumber"] == "INV-2024-0001"
    assert body["status"] == "draft"
    assert body["clientName"] == "María García"
    assert body["total"] == 138.05


def test_numbers_are_sequential_per_year(client, user_headers, sample_client):
    numbers = [
        _create(client, user_headers, sample_client.id, date=date).json()["invoiceNumber"]
        for date in ("2024-01-10T00:00:00", "2024-02-10T00:00:00", "2025-01-05T00:00:00")
    ]
    assert numbers == ["INV-2024-0001", "INV-2024-0002", "INV-2025-0001"]


def test_invoice_needs_items(client, user_headers, sample_client):
    response = client.post("/invoices", json={"clientId": sample_client.id, "items": []}, headers=user_headers)
    assert response.status_code == 422


def test_edit_recalculates_totals(client, user_headers, sample_client):
    invoice = _create(client, user_headers, sample_client.id).json()

    response = client.patch(
        f"/invoices/{invoice['id']}",
        json={"items": [{"description": "Reparación", "quantity": 2, "unitPrice": 50, "taxRate": 21}]},
        headers=user_headers,
    )

    assert response.status_code == 200
    assert response.json()["subtotal"] == 100
    assert response.json()["total"] == 121


def test_paid_invoice_lifecycle(client, user_headers, sample_client):
    invoice = _create(client, user_headers, sample_client.id).json()
    url = f"/invoices/{invoice['id']}"

    assert client.put(f"{url}/status", json={"status": "paid"}, headers=user_headers).status_code == 400
    assert client.put(f"{url}/status", json={"status": "sent"}, headers=user_headers).status_code == 200

    assert client.patch(url, json={"notes": "x"}, headers=user_headers).json()["detail"] == (
        "Only draft invoices can be edited"
    )

    paid = client.put(f"{url}/status", json={"status": "paid"}, headers=user_headers).json()
    assert paid["status"] == "paid"
    assert datetime.fromisoformat(paid["paidAt"])

    response = client.delete(url, headers=user_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Paid invoices cannot be deleted"


@pytest.mark.parametrize("status", ["draft", "archived"])
def test_invalid_target_status(client, user_headers, sample_client, status):
    invoice = _create(client, user_headers, sample_client.id).json()
    response = client.put(f"/invoices/{invoice['id']}/status", json={"status": status}, headers=user_headers)
    assert response.status_code == 400
