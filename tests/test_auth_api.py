"""Registration, login, logout and the session principal over HTTP."""
from nexaro.config import get_settings
from nexaro.models import Organization, User, UserRole, UserSession

from conftest import DEFAULT_PASSWORD, create_user, login

settings = get_settings()


def register(client, name="Alice Founder", email="alice@example.com", password=DEFAULT_PASSWORD, **extra):
    return client.post("/api/register", json={"name": name, "email": email, "password": password, **extra})


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Request-ID"]


def test_incoming_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_register_creates_organization_and_founder(client, db):
    response = register(client, email="Alice@Example.com")

    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "alice@example.com"
    assert body["role"] == "founder"
    assert body["organizationId"] is not None
    assert "passwordHash" not in body
    assert settings.SESSION_COOKIE_NAME in response.cookies

    organization = db.get(Organization, body["organizationId"])
    assert organization.name == "Alice Founder's Organization"


def test_register_with_organization_name(client, db):
    response = register(client, organizationName="Alice Studio")

    assert response.status_code == 201
    assert db.get(Organization, response.json()["organizationId"]).name == "Alice Studio"


def test_register_duplicate_email_is_case_insensitive(client):
    assert register(client).status_code == 201

    response = register(client, email="ALICE@example.com")

    assert response.status_code == 400
    assert response.json()["type"] == "EmailAlreadyRegistered"


def test_register_validation_error(client):
    response = client.post("/api/register", json={"name": "A", "email": "not-an-email", "password": "123"})

    assert response.status_code == 400
    body = response.json()
    assert body["type"] == "ValidationError"
    assert body["detail"] == "Invalid input"
    assert body["errors"]


def test_session_principal_after_register(client):
    register(client)

    response = client.get("/api/user")

    assert response.status_code == 200
    assert response.json()["email"] == "alice@example.com"


def test_user_requires_session(client):
    response = client.get("/api/user")

    assert response.status_code == 401
    assert response.json()["type"] == "NotAuthenticated"


def test_garbage_cookie_is_not_a_session(client):
    client.cookies.set(settings.SESSION_COOKIE_NAME, "garbage")

    assert client.get("/api/user").status_code == 401


def test_login_success_and_last_login(client, db, founder):
    response = client.post("/api/login", json={"email": "FOUNDER@acme.example.com", "password": DEFAULT_PASSWORD})

    assert response.status_code == 200
    assert response.json()["id"] == founder.id
    assert response.json()["lastLoginAt"] is not None
    assert client.get("/api/user").json()["id"] == founder.id


def test_login_failures_look_the_same(client, founder):
    wrong_password = client.post("/api/login", json={"email": "founder@acme.example.com", "password": "nope-nope"})
    unknown_user = client.post("/api/login", json={"email": "nobody@acme.example.com", "password": "nope-nope"})

    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.json() == unknown_user.json()


def test_corrupt_stored_hash_is_a_server_error(client, db, organization):
    user = create_user(db, "broken@acme.example.com", UserRole.STAFF, organization)
    user.password_hash = "abc.def"
    db.commit()

    response = client.post("/api/login", json={"email": "broken@acme.example.com", "password": DEFAULT_PASSWORD})

    assert response.status_code == 500
    assert response.json()["type"] == "internal_error"


def test_logout_revokes_session_server_side(client, db, founder):
    login(client, "founder@acme.example.com")
    cookie = client.cookies.get(settings.SESSION_COOKIE_NAME)

    response = client.post("/api/logout")

    assert response.status_code == 200
    assert db.query(UserSession).filter(UserSession.user_id == founder.id).count() == 0

    # Replaying the old cookie does not bring the session back
    client.cookies.set(settings.SESSION_COOKIE_NAME, cookie)
    assert client.get("/api/user").status_code == 401


def test_logout_without_session_is_harmless(client):
    assert client.post("/api/logout").status_code == 200


def test_role_change_is_visible_on_next_request(client, db, staff):
    login(client, "staff@acme.example.com")
    assert client.get("/api/user").json()["role"] == "staff"

    stored = db.get(User, staff.id)
    stored.role = UserRole.ADMIN
    db.commit()

    assert client.get("/api/user").json()["role"] == "admin"


def test_sessions_are_independent(make_client, founder, staff):
    founder_client = login(make_client(), "founder@acme.example.com")
    staff_client = login(make_client(), "staff@acme.example.com")

    assert founder_client.get("/api/user").json()["id"] == founder.id
    assert staff_client.get("/api/user").json()["id"] == staff.id
