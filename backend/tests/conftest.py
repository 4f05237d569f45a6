"""
Pytest configuration and fixtures for backend tests.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rest_api.core.dependencies import get_ledger
from rest_api.main import app
from rest_api.models import Base, Category, Product, Table, Tenant, User
from rest_api.services import Ledger
from shared.config.settings import settings
from shared.infrastructure.db import get_db


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


def make_token(user_id: int, tenant_id: int, **overrides) -> str:
    """Sign an access token the way the auth service does."""
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "tenant_id": tenant_id,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + timedelta(minutes=15),
    }
    claims.update(overrides)
    return jwt.encode(claims, settings.jwt_secret, algorithm="HS256")


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.

    Ledger calls commit through their own sessions; call
    db_session.refresh(obj) before asserting on an object loaded here.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal(expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def ledger(db_session):
    """Ledger bound to the test database with its own slots and publisher."""
    return Ledger(session_factory=TestingSessionLocal)


@pytest.fixture
def events(ledger, seed_tenant):
    """Every event committed by the seed tenant, in order."""
    received = []
    ledger.subscribe(seed_tenant.id, received.append)
    return received


@pytest.fixture
def client(db_session, ledger):
    """
    Test client with database and ledger overrides.

    Each request gets its own session, like in production.
    """
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ledger] = lambda: ledger

    yield TestClient(app)

    app.dependency_overrides.clear()


# =============================================================================
# Seed data
# =============================================================================


@pytest.fixture
def seed_tenant(db_session):
    tenant = Tenant(id=1, name="Test Restaurant", slug="test", plan="PRO")
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture
def seed_user(db_session, seed_tenant):
    user = User(id=1, tenant_id=seed_tenant.id, email="owner@test.com", name="Owner", role="OWNER")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def other_tenant(db_session):
    """A second restaurant on the BASIC plan, with its own user and table."""
    tenant = Tenant(id=2, name="Other Restaurant", slug="other", plan="BASIC")
    db_session.add(tenant)
    db_session.flush()
    db_session.add(User(id=2, tenant_id=tenant.id, email="owner@other.com", role="OWNER"))
    db_session.add(Table(tenant_id=tenant.id, number="1", capacity=2))
    db_session.commit()
    return tenant


@pytest.fixture
def seed_category(db_session, seed_tenant):
    category = Category(tenant_id=seed_tenant.id, name="Principales", order=1)
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture
def stocked_product(db_session, seed_category):
    """Stock-controlled product with 10 units."""
    product = Product(
        tenant_id=seed_category.tenant_id,
        category_id=seed_category.id,
        name="Milanesa",
        sku="MIL-01",
        price_cents=1000,
        stock_enabled=True,
        stock_quantity=10,
        stock_min=3,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture
def unlimited_product(db_session, seed_category):
    """Product without stock control."""
    product = Product(
        tenant_id=seed_category.tenant_id,
        category_id=seed_category.id,
        name="Agua",
        price_cents=500,
        stock_enabled=False,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture
def seed_table(db_session, seed_tenant):
    table = Table(tenant_id=seed_tenant.id, number="5", capacity=4, zone="Salón")
    db_session.add(table)
    db_session.commit()
    return table


@pytest.fixture
def auth_headers(seed_user):
    return {"Authorization": f"Bearer {make_token(seed_user.id, seed_user.tenant_id)}"}


@pytest.fixture
def other_auth_headers(other_tenant):
    return {"Authorization": f"Bearer {make_token(2, other_tenant.id)}"}


@pytest.fixture
def token_for():
    """Build a bearer token with arbitrary claims."""
    return make_token
