USER_PAYLOAD = {"email": "user1@example.com", "password": "Passw0rd!", "name": "User One"}


def test_register_login_and_me(identity_client):
    register = identity_client.post("/users/register", json=USER_PAYLOAD)
    assert register.status_code == 201
    body = register.json()
    assert body["email"] == "user1@example.com"
    assert "hashed_password" not in body

    login = identity_client.post(
        "/users/login",
        data={"username": "USER1@example.com", "password": "Passw0rd!"},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert login.status_code == 200
    token = login.json()["access_token"]
    assert login.json()["token_type"] == "bearer"

    me = identity_client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json() == {"user_id": body["id"], "label": "user1@example.com", "role": "user"}


def test_duplicate_registration_conflicts(identity_client):
    assert identity_client.post("/users/register", json=USER_PAYLOAD).status_code == 201
    duplicate = identity_client.post("/users/register", json={**USER_PAYLOAD, "email": "User1@Example.com"})
    assert duplicate.status_code == 409


def test_login_with_wrong_password(identity_client):
    identity_client.post("/users/register", json=USER_PAYLOAD)
    response = identity_client.post(
        "/users/login",
        data={"username": USER_PAYLOAD["email"], "password": "nope-nope"},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert response.status_code == 401


def test_register_validation(identity_client):
    short_password = identity_client.post("/users/register", json={**USER_PAYLOAD, "password": "short"})
    assert short_password.status_code == 400
    bad_email = identity_client.post("/users/register", json={**USER_PAYLOAD, "email": "nobody"})
    assert bad_email.status_code == 400


def test_me_requires_token(identity_client):
    response = identity_client.get("/users/me")
    assert response.status_code == 401
    assert response.json()["error"] == "authentication_required"


def test_health(identity_client):
    response = identity_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "identity"}
