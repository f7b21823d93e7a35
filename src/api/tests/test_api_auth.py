from src.api.auth.jwt_handler import create_access_token


def _register(client, username="alice", email="alice@example.com", password="secret123"):
    return client.post("/api/v1/auth/register", json={"username": username, "email": email, "password": password})


def test_register_and_login(client):
    response = _register(client)
    assert response.status_code == 201
    body = response.json()
    assert body["username"] == "alice"
    assert "hashed_password" not in body

    response = client.post("/api/v1/auth/login", json={"username": "alice", "password": "secret123"})
    assert response.status_code == 200
    token = response.json()["access_token"]
    assert response.json()["token_type"] == "bearer"

    response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["username"] == "alice"


def test_register_duplicate(client):
    _register(client)

    response = _register(client, email="second@example.com")

    assert response.status_code == 400


def test_login_wrong_password(client):
    _register(client)

    response = client.post("/api/v1/auth/login", json={"username": "alice", "password": "nope"})

    assert response.status_code == 401


def test_protected_route_requires_token(client):
    response = client.get("/api/v1/portfolio/positions")

    assert response.status_code in (401, 403)


def test_invalid_token_rejected(client):
    response = client.get("/api/v1/portfolio/positions", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_token_for_missing_user(client):
    token = create_access_token({"sub": "ghost", "user_id": 999})

    response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
