import os

os.environ.setdefault("TESTING", "true")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import uuid
from datetime import date, timedelta

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from rentflow.core.deps import get_current_user
from rentflow.database import get_db
from rentflow.db.base import Base
from rentflow.main import app
from rentflow.models import (
    Company, CompanyMembership, CompanyRole, Lease, LeaseStatus,
    Property, TenantProfile, TenantStatus, Unit, UnitStatus, User,
)
from rentflow.services.authorization import CompanyMember, SuperAdmin
from rentflow.services.lease_lifecycle import LeaseLifecycleOrchestrator
from rentflow.services.store import EntityStore

TEST_DATABASE_URL = "sqlite://"

# Fixed "today" for the lifecycle engine so date rules are deterministic
TODAY = date(2026, 3, 15)


@pytest.fixture
def engine():
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return EntityStore(db)


@pytest.fixture
def lifecycle(store):
    return LeaseLifecycleOrchestrator(store, today=lambda: TODAY)


class Factory:
    """Inserts fully-formed rows; every helper commits."""

    def __init__(self, db: Session):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        return obj

    def company(self, name="Acme Homes"):
        slug = f"{name.lower().replace(' ', '-')}-{uuid.uuid4().hex[:6]}"
        return self._save(Company(name=name, slug=slug))

    def user(self, full_name="Jane Doe", is_super_admin=False):
        email = f"{uuid.uuid4().hex[:10]}@example.com"
        return self._save(User(email=email, full_name=full_name, is_super_admin=is_super_admin))

    def member(self, company, role=CompanyRole.COMPANY_ADMIN, user=None, is_active=True):
        user = user or self.user(full_name=f"{role.value.title()} User")
        self._save(CompanyMembership(user_id=user.id, company_id=company.id, role=role, is_active=is_active))
        return user

    def unit(self, company, status=UnitStatus.AVAILABLE, number=None, is_active=True):
        prop = self._save(Property(company_id=company.id, name="Riverside Court", address="1 River Rd"))
        return self._save(Unit(
            property_id=prop.id,
            company_id=company.id,
            unit_number=number or f"A-{uuid.uuid4().hex[:4]}",
            monthly_rent=1500,
            status=status,
            is_active=is_active,
        ))

    def tenant(self, company, status=TenantStatus.PENDING, user=None):
        user = user or self.user(full_name="Tenant Person")
        return self._save(TenantProfile(user_id=user.id, company_id=company.id, status=status))

    def lease(self, unit, tenant, status=LeaseStatus.DRAFT, start=None, end=None, **fields):
        start = start or TODAY
        end = end or start + timedelta(days=365)
        return self._save(Lease(
            tenant_id=tenant.user_id,
            unit_id=unit.id,
            company_id=unit.company_id,
            lease_number=fields.pop("lease_number", f"LEASE-TEST-{uuid.uuid4().hex[:4]}"),
            status=status,
            start_date=start,
            end_date=end,
            monthly_rent=fields.pop("monthly_rent", 1500),
            currency=fields.pop("currency", "KES"),
            **fields,
        ))

    def active_lease(self, unit, tenant, **fields):
        """An ACTIVE lease with its unit OCCUPIED and tenant ACTIVE, as the engine leaves them."""
        lease = self.lease(unit, tenant, status=LeaseStatus.ACTIVE, **fields)
        unit.status = UnitStatus.OCCUPIED
        tenant.status = TenantStatus.ACTIVE
        self.db.commit()
        return lease


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def company(factory):
    return factory.company()


@pytest.fixture
def admin(factory, company):
    return factory.member(company, CompanyRole.COMPANY_ADMIN)


@pytest.fixture
def admin_actor(admin, company):
    return CompanyMember(user_id=admin.id, roles_by_company={company.id: CompanyRole.COMPANY_ADMIN})


@pytest.fixture
def super_actor():
    return SuperAdmin(user_id=uuid.uuid4())


@pytest.fixture
def actor_for():
    """CompanyMember holding `role` in `company`."""
    def _actor(company, role, user_id=None):
        return CompanyMember(user_id=user_id or uuid.uuid4(), roles_by_company={company.id: role})
    return _actor


@pytest.fixture
def today():
    return TODAY


# ==================== HTTP ====================


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login():
    """Make `user` the caller for subsequent requests."""
    def _login(user):
        user_id = user.id

        def override_get_current_user(db: Session = Depends(get_db)):
            return db.query(User).filter(User.id == user_id).first()

        app.dependency_overrides[get_current_user] = override_get_current_user
    return _login
