from fastapi.testclient import TestClient

from backend.app.main import app
from backend.app.models.user import User


def test_successful_login_returns_token(factory):
    client = TestClient(app)
    factory.user("login@example.com", password="secret")
    response = client.post("/auth/login", json={"email": "login@example.com", "password": "secret"})
    assert response.status_code == 200
    data = response.json()
    assert data.get("token_type") == "bearer"
    assert isinstance(data.get("access_token"), str) and data["access_token"]


def test_login_email_is_case_insensitive(factory):
    client = TestClient(app)
    factory.user("mixed@example.com", password="secret")
    response = client.post("/auth/login", json={"email": "Mixed@Example.com", "password": "secret"})
    assert response.status_code == 200


def test_wrong_password_returns_400(factory):
    client = TestClient(app)
    factory.user("wrongpw@example.com", password="secret")
    response = client.post("/auth/login", json={"email": "wrongpw@example.com", "password": "bad"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid credentials"}


def test_missing_hash_returns_400_not_500(db, factory):
    client = TestClient(app)
    user = factory.user("badhash@example.com", password="secret")
    user.hashed_password = None
    db.commit()
    response = client.post("/auth/login", json={"email": "badhash@example.com", "password": "secret"})
    assert response.status_code == 400


def test_inactive_user_cannot_login(db, factory):
    client = TestClient(app)
    user = factory.user("inactive@example.com", password="secret")
    user.is_active = False
    db.commit()
    response = client.post("/auth/login", json={"email": "inactive@example.com", "password": "secret"})
    assert response.status_code == 400
    assert response.json()["error"] == "User is inactive"


def test_nonexistent_user_returns_400():
    client = TestClient(app)
    response = client.post("/auth/login", json={"email": "nosuch@example.com", "password": "secret"})
    assert response.status_code == 400


def test_me_returns_current_user(factory):
    client = TestClient(app)
    user = factory.user("me@example.com")
    response = client.get("/auth/me", headers=factory.headers(user))
    assert response.status_code == 200
    assert response.json()["email"] == "me@example.com"


def test_me_requires_token():
    client = TestClient(app)
    response = client.get("/auth/me")
    assert response.status_code == 401


def test_me_rejects_token_for_deleted_user(db, factory):
    client = TestClient(app)
    user = factory.user("gone@example.com")
    headers = factory.headers(user)
    db.query(User).filter(User.id == user.id).delete()
    db.commit()
    response = client.get("/auth/me", headers=headers)
    assert response.status_code == 401


def test_check_email(factory):
    client = TestClient(app)
    factory.user("known@example.com")
    assert client.post("/auth/check-email", json={"email": "KNOWN@example.com"}).json() == {"exists": True}
    assert client.post("/auth/check-email", json={"email": "other@example.com"}).json() == {"exists": False}
