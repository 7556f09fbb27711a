"""
Common test fixtures.

The environment is configured before the application is imported:
settings are cached on first use and the scrypt cost is baked into the
password context at import time.
"""
import asyncio
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["FRONTEND_URL"] = "http://frontend.test"

from typing import List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from nexaro.core.security import get_password_hash
from nexaro.database import Base, get_db
from nexaro.main import app
from nexaro.models import Organization, User, UserRole
from nexaro.services.email import DeliveryResult, get_email_sender
from nexaro.services.invitations import normalize_email

DEFAULT_PASSWORD = "password123"


def _in_event_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


class StubEmailSender:
    """Records invitations instead of sending them."""

    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.sent: List[Tuple[str, str]] = []
        self.sent_from_event_loop: List[bool] = []

    def send_invitation(self, recipient: str, registration_link: str) -> DeliveryResult:
        self.sent.append((recipient, registration_link))
        self.sent_from_event_loop.append(_in_event_loop())
        if self.succeed:
            return DeliveryResult(success=True)
        return DeliveryResult(success=False, error="SMTP connection refused")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    """Session for arranging and inspecting test data."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def email_sender():
    return StubEmailSender()


@pytest.fixture
def make_client(session_factory, email_sender):
    """
    Factory for TestClients sharing the test database.

    Each client has its own cookie jar, i.e. its own session.
    """

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_sender] = lambda: email_sender

    clients = []

    def factory() -> TestClient:
        client = TestClient(app)
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.close()
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client):
    return make_client()


def create_organization(db, name: str = "Acme Studio", email: str = "hello@acme.example.com") -> Organization:
    organization = Organization(name=name, email=email)
    db.add(organization)
    db.commit()
    return organization


def create_user(
    db,
    email: str,
    role: UserRole = UserRole.STAFF,
    organization: Optional[Organization] = None,
    password: str = DEFAULT_PASSWORD,
    name: str = "Test User",
) -> User:
    user = User(
        name=name,
        email=normalize_email(email),
        password_hash=get_password_hash(password),
        role=role,
        organization_id=organization.id if organization is not None else None,
    )
    db.add(user)
    db.commit()
    return user


def login(client: TestClient, email: str, password: str = DEFAULT_PASSWORD) -> TestClient:
    response = client.post("/api/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return client


@pytest.fixture
def organization(db):
    return create_organization(db)


@pytest.fixture
def founder(db, organization):
    return create_user(db, "founder@acme.example.com", UserRole.FOUNDER, organization, name="Fiona Founder")


@pytest.fixture
def admin(db, organization):
    return create_user(db, "admin@acme.example.com", UserRole.ADMIN, organization, name="Adam Admin")


@pytest.fixture
def staff(db, organization):
    return create_user(db, "staff@acme.example.com", UserRole.STAFF, organization, name="Stacy Staff")


@pytest.fixture
def other_organization(db):
    return create_organization(db, name="Globex", email="hello@globex.example.com")


@pytest.fixture
def other_founder(db, other_organization):
    return create_user(db, "founder@globex.example.com", UserRole.FOUNDER, other_organization, name="Gus Globex")
