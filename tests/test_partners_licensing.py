from datetime import datetime

import pytest

from pianomanager.domain.licensing.codes import generate_code
from pianomanager.models import Partner


@pytest.fixture
def partner(client, admin_headers):
    response = client.post(
        "/partners",
        json={
            "name": "Pianos Ibérica",
            "slug": "iberica",
            "email": "ventas@iberica.es",
            "contactEmail": "contacto@iberica.es",
            "ecommerceUrl": "https://iberica.es/tienda",
        },
        headers=admin_headers,
    )
    assert response.status_code == 200
    return response.json()


def _buy(client, headers, partner_id, quantity):
    return client.post(f"/partners/{partner_id}/licenses", json={"quantity": quantity}, headers=headers)


def _generate(client, headers, partner_id, **overrides):
    payload = {"partnerId": partner_id, "quantity": 1, "codeType": "single_use"}
    payload.update(overrides)
    return client.post("/activation-codes/generate", json=payload, headers=headers)


def test_code_format():
    code = generate_code("iber")
    prefix, *groups = code.split("-")
    assert prefix == "IBER"
    assert [len(g) for g in groups] == [4, 4, 4]
    assert all(c.isupper() or c.isdigit() for c in "".join(groups))


def test_duplicate_slug(client, admin_headers, partner):
    response = client.post(
        "/partners", json={"name": "Otro", "slug": "iberica", "email": "x@iberica.es"}, headers=admin_headers
    )
    assert response.status_code == 409


def test_buying_licenses_fills_the_pool(client, admin_headers, partner):
    body = _buy(client, admin_headers, partner["id"], 5).json()
    assert body["totalLicensesPurchased"] == 5
    assert body["licensesAvailable"] == 5


def test_cannot_generate_more_codes_than_available(client, admin_headers, partner):
    _buy(client, admin_headers, partner["id"], 2)

    response = _generate(client, admin_headers, partner["id"], quantity=3)
    assert response.status_code == 400
    assert response.json()["detail"] == "Partner only has 2 licenses available"


def test_generated_codes_are_unique(client, admin_headers, partner):
    _buy(client, admin_headers, partner["id"], 20)

    codes = _generate(client, admin_headers, partner["id"], quantity=20).json()["codes"]
    values = [c["code"] for c in codes]
    assert len(set(values)) == 20
    assert all(v.startswith("IBER-") for v in values)


def test_single_use_code_activation(client, db, admin_headers, user_headers, other_headers, partner):
    _buy(client, admin_headers, partner["id"], 3)
    code = _generate(client, admin_headers, partner["id"]).json()["codes"][0]["code"]

    verify = client.get("/activation-codes/verify", params={"code": code}, headers=user_headers).json()
    assert verify["valid"] is True
    assert verify["partner"]["name"] == "Pianos Ibérica"

    response = client.post("/licenses/activate", json={"code": code}, headers=user_headers)
    assert response.status_code == 200
    license = response.json()
    assert license["licenseType"] == "partner"
    assert license["status"] == "active"
    assert license["storeUrl"] == "https://iberica.es/tienda"

    again = client.post("/licenses/activate", json={"code": code}, headers=other_headers)
    assert again.status_code == 400
    assert again.json()["detail"] == "This code is used"

    db.expire_all()
    stored = db.get(Partner, partner["id"])
    assert stored.licenses_available == 2
    assert stored.licenses_assigned == 1


def test_multi_use_code_respects_max_uses(client, admin_headers, auth_headers, partner):
    _buy(client, admin_headers, partner["id"], 10)
    code = _generate(client, admin_headers, partner["id"], codeType="multi_use", maxUses=2).json()["codes"][0]["code"]

    results = [
        client.post("/licenses/activate", json={"code": code}, headers=auth_headers(f"uid-{i}", f"t{i}@example.com"))
        for i in range(3)
    ]
    assert [r.status_code for r in results] == [200, 200, 400]


def test_activation_fails_when_pool_is_empty(client, db, admin_headers, user_headers, partner):
    _buy(client, admin_headers, partner["id"], 1)
    code = _generate(client, admin_headers, partner["id"], codeType="multi_use", maxUses=5).json()["codes"][0]["code"]

    db.query(Partner).filter(Partner.id == partner["id"]).update({Partner.licenses_available: 0})
    db.commit()

    response = client.post("/licenses/activate", json={"code": code}, headers=user_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "The partner has no licenses available"

    # The code use was rolled back with the failed activation
    verify = client.get("/activation-codes/verify", params={"code": code}, headers=user_headers).json()
    assert verify["valid"] is True
    assert verify["code"]["usesCount"] == 0


def test_invalid_and_revoked_codes(client, admin_headers, user_headers, partner):
    assert client.post("/licenses/activate", json={"code": "NOPE-0000"}, headers=user_headers).status_code == 404

    _buy(client, admin_headers, partner["id"], 1)
    created = _generate(client, admin_headers, partner["id"]).json()["codes"][0]
    client.post(f"/activation-codes/{created['id']}/revoke", headers=admin_headers)

    response = client.post("/licenses/activate", json={"code": created["code"]}, headers=user_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "This code is revoked"


def test_code_stats(client, admin_headers, user_headers, partner):
    _buy(client, admin_headers, partner["id"], 3)
    codes = _generate(client, admin_headers, partner["id"], quantity=3).json()["codes"]
    client.post("/licenses/activate", json={"code": codes[0]["code"]}, headers=user_headers)

    stats = client.get(f"/activation-codes/partner/{partner['id']}/stats", headers=admin_headers).json()
    assert stats == {"total": 3, "active": 2, "used": 1}


def test_direct_license_renew_and_cancel(client, admin_headers, user, user_headers):
    created = client.post(
        "/licenses/direct", json={"userId": user.id, "price": 9.99, "durationMonths": 1}, headers=admin_headers
    ).json()
    assert created["licenseType"] == "direct"

    first_expiry = datetime.fromisoformat(created["expiresAt"])
    renewed = client.post(
        f"/licenses/{created['id']}/renew", json={"durationMonths": 12}, headers=user_headers
    ).json()
    assert (datetime.fromisoformat(renewed["expiresAt"]) - first_expiry).days >= 365

    cancelled = client.post(f"/licenses/{created['id']}/cancel", headers=user_headers)
    assert cancelled.json()["status"] == "cancelled"
    assert client.post(f"/licenses/{created['id']}/cancel", headers=user_headers).status_code == 400

    transactions = client.get(f"/licenses/{created['id']}/transactions", headers=user_headers).json()
    assert sorted(t["transactionType"] for t in transactions) == ["cancellation", "purchase", "renewal"]


def test_users_only_see_their_own_licenses(client, admin_headers, user, other_headers):
    created = client.post(
        "/licenses/direct", json={"userId": user.id, "price": 9.99}, headers=admin_headers
    ).json()
    assert client.post(f"/licenses/{created['id']}/cancel", headers=other_headers).status_code == 404
