from pianomanager.models import User


def test_missing_token_is_401(client):
    response = client.get("/users/me")
    assert response.status_code == 401


def test_malformed_token_is_401(client):
    response = client.get("/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert "Invalid token format" in response.json()["detail"]


def test_unknown_identity_is_provisioned(client, db, auth_headers):
    headers = auth_headers("uid-new", "new@example.com", "Nuevo")
    response = client.get("/users/me", headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["email"] == "new@example.com"
    assert body["role"] == "user"
    assert body["partnerId"] == 1
    assert db.query(User).filter(User.auth_uid == "uid-new").count() == 1


def test_same_email_relinks_existing_account(client, db, user, auth_headers):
    response = client.get("/users/me", headers=auth_headers("uid-another-provider", user.email))

    assert response.status_code == 200
    assert response.json()["id"] == user.id
    db.expire_all()
    assert db.get(User, user.id).auth_uid == "uid-another-provider"


def test_update_profile(client, user_headers):
    response = client.patch("/users/me", json={"name": "Ana", "preferredLanguage": "en"}, headers=user_headers)

    assert response.status_code == 200
    assert response.json()["name"] == "Ana"
    assert response.json()["preferredLanguage"] == "en"


def test_unsupported_language_is_rejected(client, user_headers):
    response = client.patch("/users/me", json={"preferredLanguage": "xx"}, headers=user_headers)
    assert response.status_code == 422


def test_admin_routes_require_admin(client, user_headers, admin_headers):
    assert client.get("/partners", headers=user_headers).status_code == 403
    assert client.get("/partners", headers=admin_headers).status_code == 200


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
