"""
Pytest configuration and shared fixtures
"""
import os

# Settings are read at import time; pin them before the app is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTO_CREATE_DB"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SESSION_SECRET"] = "test-secret"
os.environ["GOOGLE_MAPS_API_KEY"] = "test-maps-key"
os.environ["TZ_DEFAULT"] = "America/Chicago"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hvacpro.auth.security import get_password_hash
from hvacpro.db import Base, enable_sqlite_foreign_keys, get_db
from hvacpro.main import app
from hvacpro.models.models import Company, Customer, Technician, User, UserRole
from hvacpro.services.tenancy import TenantContext


PASSWORD = "demo123"


@pytest.fixture
def engine():
    """Fresh in-memory database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client_factory(session_factory):
    """Build TestClients that share the test database"""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield lambda: TestClient(app)
    app.dependency_overrides.clear()


def add_company(db, name: str, slug: str) -> Company:
    company = Company(name=name, slug=slug, city="Austin", state="TX", phone="(512) 555-0100", email=f"info@{slug}.example")
    db.add(company)
    db.commit()
    return company


def add_user(db, username: str, company=None, role: str = "owner", user_role=None, password: str = PASSWORD, is_active: bool = True) -> User:
    user = User(
        username=username,
        password_hash=get_password_hash(password),
        name=username.title(),
        email=f"{username}@example.com",
        role=user_role or role,
        is_active=is_active,
    )
    db.add(user)
    db.flush()
    if company is not None:
        db.add(UserRole(user_id=user.id, company_id=company.id, role=role))
    db.commit()
    return user


def add_customer(db, company, name: str = "Jane Homeowner", **fields) -> Customer:
    customer = Customer(company_id=company.id, name=name, address="100 Congress Ave", city="Austin", state="TX", zip_code="78701", **fields)
    db.add(customer)
    db.commit()
    return customer


def add_technician(db, company, name: str = "Tech One", **fields) -> Technician:
    fields.setdefault("status", "active")
    tech = Technician(company_id=company.id, name=name, specialties=["AC Repair"], **fields)
    db.add(tech)
    db.commit()
    return tech


def login(client: TestClient, username: str, password: str = PASSWORD) -> TestClient:
    response = client.post("/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return client


def tenant_for(user: User, company: Company, role: str = "owner") -> TenantContext:
    return TenantContext(user=user, company_id=company.id, role=role, slug=company.slug)


@pytest.fixture
def companies(db):
    a = add_company(db, "Quick Fix HVAC", "quick-fix-hvac")
    b = add_company(db, "City Climate Control", "city-climate-control")
    return a, b


@pytest.fixture
def owners(db, companies):
    a, b = companies
    return add_user(db, "owner1", a), add_user(db, "owner2", b)


@pytest.fixture
def client_a(client_factory, owners):
    """Logged in as owner1 of quick-fix-hvac"""
    return login(client_factory(), "owner1")


@pytest.fixture
def client_b(client_factory, owners):
    """Logged in as owner2 of city-climate-control"""
    return login(client_factory(), "owner2")


@pytest.fixture
def anon(client_factory):
    return client_factory()
