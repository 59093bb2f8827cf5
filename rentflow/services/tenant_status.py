"""
Tenant Status Resolver
A tenant is ACTIVE while they hold at least one ACTIVE lease in the company,
FORMER once that count drops back to zero, PENDING before their first lease.
"""
import logging
from typing import Optional
from uuid import UUID

from rentflow.models.tenant import TenantProfile, TenantStatus
from rentflow.services.store import EntityStore

logger = logging.getLogger(__name__)


class TenantStatusResolver:
    def __init__(self, store: EntityStore):
        self.store = store

    @staticmethod
    def status_for(current: TenantStatus, active_lease_count: int) -> TenantStatus:
        if active_lease_count > 0:
            return TenantStatus.ACTIVE
        if current == TenantStatus.ACTIVE:
            return TenantStatus.FORMER
        return current

    def resolve(self, tenant_user_id: UUID, company_id: UUID, active_lease_count: int) -> Optional[TenantStatus]:
        profile = self.store.get_tenant_profile(tenant_user_id, company_id)
        if profile is None:
            return None
        return self.status_for(profile.status, active_lease_count)

    def apply(self, tenant_user_id: UUID, company_id: UUID, active_lease_count: int) -> Optional[TenantProfile]:
        """Persist the resolved status; writes only when it changed."""
        profile = self.store.get_tenant_profile(tenant_user_id, company_id)
        if profile is None:
            logger.warning(
                f"[TENANT] No profile for user {tenant_user_id} in company {company_id}; status not updated"
            )
            return None

        new_status = self.status_for(profile.status, active_lease_count)
        if new_status != profile.status:
            old_status = profile.status
            self.store.update(profile, status=new_status)
            logger.info(
                f"[TENANT] Tenant {tenant_user_id} status {old_status.value} -> {new_status.value} "
                f"(active leases: {active_lease_count})"
            )
        return profile

    def recompute(self, tenant_user_id: UUID, company_id: UUID, exclude_lease_id: Optional[UUID] = None):
        """Count the tenant's active leases now, after the caller's flushed write, and apply."""
        count = self.store.count_active_leases_for_tenant(
            tenant_user_id, company_id, exclude_lease_id=exclude_lease_id
        )
        return self.apply(tenant_user_id, company_id, count)
