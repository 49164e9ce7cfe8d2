import os

# Configure the app for tests before any propdesk module reads the environment
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
for key in ("REDIS_URL", "REDIS_HOST", "RESEND_API_KEY"):
    os.environ.pop(key, None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from propdesk import email_service, rate_limiter
from propdesk.cache import cache
from propdesk.database import Base, get_db
from propdesk.main import app
from propdesk.models import ExternalAgency, User
from propdesk.models_property import Condominium, Unit
from propdesk.security_utils import create_access_token, hash_password

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TEST_PASSWORD = "correct-horse-battery"
HASHED_PASSWORD = hash_password(TEST_PASSWORD)


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_rate_limits():
    rate_limiter.memory_cache.clear()
    yield
    rate_limiter.memory_cache.clear()


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Capture outgoing email instead of calling Resend"""
    outbox = []

    async def fake_send_email(to, subject, mjml_content, from_address=None):
        outbox.append({"to": to, "subject": subject, "body": mjml_content})
        return {"id": f"test-{len(outbox)}"}

    monkeypatch.setattr(email_service, "send_email", fake_send_email)
    return outbox


class FakeRedis:
    """Just enough of the redis client for the Cache wrapper"""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value

    def scan_iter(self, match):
        prefix = match.rstrip("*")
        return [k for k in list(self.store) if k.startswith(prefix)]

    def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)


@pytest.fixture()
def redis_cache(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(cache, "redis_client", fake)
    return fake


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def agency(db):
    agency = ExternalAgency(name="Tulum Rentals", slug="tulum-rentals", contact_email="hola@tulumrentals.mx")
    db.add(agency)
    db.commit()
    db.refresh(agency)
    return agency


@pytest.fixture()
def other_agency(db):
    agency = ExternalAgency(name="Playa Homes", slug="playa-homes")
    db.add(agency)
    db.commit()
    db.refresh(agency)
    return agency


@pytest.fixture()
def make_user(db):
    counter = {"n": 0}

    def _make_user(role: str, agency: ExternalAgency = None, full_name: str = None, **extra) -> User:
        counter["n"] += 1
        user = User(
            email=extra.pop("email", f"{role}{counter['n']}@example.com"),
            hashed_password=HASHED_PASSWORD,
            full_name=full_name or f"{role.replace('_', ' ').title()} {counter['n']}",
            role=role,
            external_agency_id=agency.id if agency else None,
            **extra,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def admin(make_user, agency):
    return make_user("external_agency_admin", agency)


@pytest.fixture()
def seller(make_user, agency):
    return make_user("external_agency_seller", agency)


@pytest.fixture()
def maintenance(make_user, agency):
    return make_user("external_agency_maintenance", agency)


@pytest.fixture()
def tenant(make_user):
    return make_user("tenant")


@pytest.fixture()
def owner(make_user):
    return make_user("owner")


@pytest.fixture()
def platform_admin(make_user):
    return make_user("master")


@pytest.fixture()
def condominium(db, agency):
    condo = Condominium(agency_id=agency.id, name="Aldea Zama Residences", zone="Aldea Zama")
    db.add(condo)
    db.commit()
    db.refresh(condo)
    return condo


@pytest.fixture()
def unit(db, agency, condominium, owner, tenant):
    unit = Unit(
        agency_id=agency.id,
        condominium_id=condominium.id,
        owner_id=owner.id,
        tenant_id=tenant.id,
        name="Torre A - 302",
        zone="Aldea Zama",
        bedrooms=2,
        bathrooms=2,
        monthly_rent=25000,
        status="rented",
        is_published=False,
    )
    db.add(unit)
    db.commit()
    db.refresh(unit)
    return unit
