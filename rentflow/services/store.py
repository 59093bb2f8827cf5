"""
Entity Store
Transactional access to leases, units and tenant profiles over one SQLAlchemy Session.
The session is created with autoflush=False, so every write flushes explicitly:
count queries issued afterwards in the same transaction must see it.
"""
import logging
from contextlib import contextmanager
from datetime import date
from typing import Iterator, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from rentflow.models.lease import Lease, LeaseStatus
from rentflow.models.property import Unit
from rentflow.models.tenant import TenantProfile
from rentflow.services.errors import LeaseNotFound, UnitNotFound

logger = logging.getLogger(__name__)


class EntityStore:
    def __init__(self, db: Session):
        self.db = db

    # ─────────────────────── Unit of work ───────────────────────

    @contextmanager
    def transaction(self) -> Iterator["EntityStore"]:
        """Commit on success; roll back and re-raise on any error."""
        try:
            yield self
            self.db.commit()
        except Exception as exc:
            self.db.rollback()
            logger.debug(f"[DB] Transaction rolled back: {type(exc).__name__}")
            raise

    # ─────────────────────── Reads ───────────────────────

    def find_lease(self, lease_id: UUID, for_update: bool = False, refresh: bool = False) -> Optional[Lease]:
        query = self.db.query(Lease).filter(Lease.id == lease_id)
        if for_update:
            query = query.with_for_update()
        if refresh:
            query = query.populate_existing()
        return query.first()

    def get_lease(self, lease_id: UUID, for_update: bool = False, refresh: bool = False) -> Lease:
        lease = self.find_lease(lease_id, for_update=for_update, refresh=refresh)
        if lease is None:
            raise LeaseNotFound(lease_id)
        return lease

    def get_unit(self, unit_id: UUID, for_update: bool = False) -> Unit:
        query = self.db.query(Unit).filter(Unit.id == unit_id)
        if for_update:
            # Row lock is held until the surrounding transaction ends
            query = query.with_for_update().populate_existing()
        unit = query.first()
        if unit is None:
            raise UnitNotFound(unit_id)
        return unit

    def get_tenant_profile(self, user_id: UUID, company_id: UUID) -> Optional[TenantProfile]:
        return (
            self.db.query(TenantProfile)
            .filter(TenantProfile.user_id == user_id, TenantProfile.company_id == company_id)
            .first()
        )

    def find_tenant_profile(self, tenant_ref: UUID, company_id: UUID) -> Optional[TenantProfile]:
        """Look a tenant up by profile id, then by user id, within one company."""
        profile = (
            self.db.query(TenantProfile)
            .filter(TenantProfile.id == tenant_ref, TenantProfile.company_id == company_id)
            .first()
        )
        if profile is None:
            profile = self.get_tenant_profile(tenant_ref, company_id)
        return profile

    def count_where(self, model, *criteria) -> int:
        return self.db.query(func.count(model.id)).filter(*criteria).scalar() or 0

    def active_lease_on_unit(self, unit_id: UUID, exclude_lease_id: Optional[UUID] = None) -> Optional[Lease]:
        query = self.db.query(Lease).filter(
            Lease.unit_id == unit_id,
            Lease.status == LeaseStatus.ACTIVE,
            Lease.is_active == True,  # noqa: E712
        )
        if exclude_lease_id is not None:
            query = query.filter(Lease.id != exclude_lease_id)
        return query.first()

    def count_active_leases_for_tenant(
        self,
        tenant_user_id: UUID,
        company_id: UUID,
        exclude_lease_id: Optional[UUID] = None,
    ) -> int:
        criteria = [
            Lease.tenant_id == tenant_user_id,
            Lease.company_id == company_id,
            Lease.status == LeaseStatus.ACTIVE,
            Lease.is_active == True,  # noqa: E712
        ]
        if exclude_lease_id is not None:
            criteria.append(Lease.id != exclude_lease_id)
        return self.count_where(Lease, *criteria)

    def count_company_leases(self, company_id: UUID) -> int:
        return self.count_where(Lease, Lease.company_id == company_id)

    def expiring_lease_ids(self, today: date) -> List[UUID]:
        rows = (
            self.db.query(Lease.id)
            .filter(
                Lease.status == LeaseStatus.ACTIVE,
                Lease.end_date < today,
                Lease.is_active == True,  # noqa: E712
            )
            .order_by(Lease.end_date)
            .all()
        )
        return [row.id for row in rows]

    def leases_for_unit(self, unit_id: UUID) -> List[Lease]:
        return (
            self.db.query(Lease)
            .filter(Lease.unit_id == unit_id, Lease.is_active == True)  # noqa: E712
            .order_by(Lease.start_date.desc(), Lease.created_at.desc())
            .all()
        )

    def leases_for_tenant(self, tenant_user_id: UUID, company_ids: Optional[List[UUID]] = None) -> List[Lease]:
        query = self.db.query(Lease).filter(
            Lease.tenant_id == tenant_user_id,
            Lease.is_active == True,  # noqa: E712
        )
        if company_ids is not None:
            query = query.filter(Lease.company_id.in_(company_ids))
        return query.order_by(Lease.start_date.desc(), Lease.created_at.desc()).all()

    # ─────────────────────── Writes ───────────────────────

    def add(self, entity):
        self.db.add(entity)
        self.db.flush()
        return entity

    def update(self, entity, **fields):
        for name, value in fields.items():
            setattr(entity, name, value)
        self.db.flush()
        return entity
