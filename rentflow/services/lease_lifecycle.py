"""
Lease Lifecycle Orchestrator
Composes the state machine, the unit availability gate and the tenant status
resolver into the operations callers use.

Every public operation runs in one store transaction:
    load → authorize → validate → mutate lease → mutate unit → recompute tenant
Precondition failures raise before any write; any other failure rolls the
whole transaction back.

Lock order is always unit row(s) first, then the lease row.
"""
import logging
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from rentflow.core.config import settings
from rentflow.models.lease import Lease, LeaseStatus
from rentflow.schemas.lease import (
    LeaseCreate, LeaseUpdate, RenewLeaseRequest, TerminateLeaseRequest, TransferLeaseRequest,
)
from rentflow.services import errors
from rentflow.services.authorization import (
    EDIT_ROLES, TRANSITION_ROLES, AuthorizationContext, SuperAdmin,
    is_company_member, require_role,
)
from rentflow.services.lease_state_machine import LeaseStateMachine
from rentflow.services.store import EntityStore
from rentflow.services.tenant_status import TenantStatusResolver
from rentflow.services.unit_availability import UnitAvailabilityGate

logger = logging.getLogger(__name__)

# Terms carried from one lease to its renewal or transfer successor
CARRIED_TERMS = (
    "landlord_user_id",
    "lease_type",
    "monthly_rent",
    "security_deposit",
    "pet_deposit",
    "pet_rent",
    "late_fee_amount",
    "utilities_included",
    "utility_costs",
    "currency",
    "prorated_first_month",
    "grace_period_days",
    "lease_term",
    "renewal_options",
    "notice_period",
    "pet_policy",
    "smoking_policy",
    "terms",
    "co_tenants",
    "guarantor_info",
    "documents",
    "notes",
    "tags",
)

MONEY_FIELDS = frozenset({
    "monthly_rent",
    "security_deposit",
    "pet_deposit",
    "pet_rent",
    "late_fee_amount",
    "utility_costs",
})

# Columns that cannot be cleared by a partial update
REQUIRED_TERMS = frozenset({
    "lease_type",
    "start_date",
    "end_date",
    "monthly_rent",
    "currency",
    "prorated_first_month",
    "grace_period_days",
    "utilities_included",
})

TRANSFER_REASON = "Lease transferred"


def _money(value) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value)).quantize(Decimal("0.01"))


def _with_money(values: dict) -> dict:
    return {k: _money(v) if k in MONEY_FIELDS else v for k, v in values.items()}


@dataclass
class ExpirySweepReport:
    run_date: date
    expired: List[UUID] = field(default_factory=list)
    skipped: List[UUID] = field(default_factory=list)
    failed: Dict[UUID, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "run_date": self.run_date,
            "expired": self.expired,
            "skipped": self.skipped,
            "failed": {str(k): v for k, v in self.failed.items()},
        }


class LeaseLifecycleOrchestrator:
    def __init__(self, store: EntityStore, today: Callable[[], date] = date.today):
        self.store = store
        self.gate = UnitAvailabilityGate(store)
        self.tenants = TenantStatusResolver(store)
        self.machine = LeaseStateMachine
        self._today = today

    # ═══════════════════════ CREATE / EDIT ═══════════════════════

    def create(self, payload: LeaseCreate, actor: AuthorizationContext) -> Lease:
        """Draft a new lease for a tenant on a unit."""
        with self.store.transaction():
            unit = self.store.get_unit(payload.unit_id)
            if not unit.is_active:
                raise errors.UnitNotFound(payload.unit_id)
            require_role(actor, unit.company_id, EDIT_ROLES, "create lease")

            profile = self.store.find_tenant_profile(payload.tenant_id, unit.company_id)
            if profile is None:
                raise errors.TenantNotFound(payload.tenant_id, unit.company_id)

            self.gate.assert_no_active_lease(unit.id)
            if payload.end_date <= payload.start_date:
                raise errors.InvalidLeaseDates(payload.start_date, payload.end_date)

            terms = payload.model_dump(exclude={"tenant_id", "unit_id", "lease_number"})
            terms["currency"] = terms.get("currency") or settings.DEFAULT_CURRENCY
            lease = Lease(
                **_with_money(terms),
                tenant_id=profile.user_id,
                unit_id=unit.id,
                company_id=unit.company_id,
                lease_number=payload.lease_number or self._next_lease_number(unit.company_id),
                status=self.machine.initial,
                created_by=actor.user_id,
            )
            self.store.add(lease)

        logger.info(
            f"[LEASE] Created {lease.lease_number} ({lease.id}) for tenant {lease.tenant_id} "
            f"on unit {lease.unit_id}"
        )
        return lease

    def update(self, lease_id: UUID, changes: LeaseUpdate, actor: AuthorizationContext) -> Lease:
        """
        Edit lease terms. DRAFT leases take any term; ACTIVE leases only take the
        operational fields (notes, tags, documents, move/notice dates, landlord).
        """
        with self.store.transaction():
            lease = self._get_visible(lease_id)
            require_role(actor, lease.company_id, EDIT_ROLES, "update lease")
            lease = self.store.get_lease(lease_id, for_update=True, refresh=True)
            if not lease.is_active:
                raise errors.LeaseNotFound(lease_id)

            editable = self.machine.editable_fields(lease.status)
            if not editable:
                raise errors.InvalidLeaseState(lease.id, lease.status)

            data = _with_money(changes.model_dump(exclude_unset=True))
            if lease.status == LeaseStatus.ACTIVE:
                for name, value in data.items():
                    if name not in editable and getattr(lease, name) != value:
                        raise errors.CannotUpdateActiveLeaseField(lease.id, name)
                data = {k: v for k, v in data.items() if k in editable}
            else:
                data = {k: v for k, v in data.items() if v is not None or k not in REQUIRED_TERMS}
                start = data.get("start_date", lease.start_date)
                end = data.get("end_date", lease.end_date)
                if end <= start:
                    raise errors.InvalidLeaseDates(start, end)

            self.store.update(lease, **data)

        logger.info(f"[LEASE] Updated lease {lease_id}: {sorted(data)}")
        return lease

    def delete(self, lease_id: UUID, actor: AuthorizationContext) -> Lease:
        """
        Soft-delete a DRAFT lease. Deleting the pending successor of a renewed
        lease releases the unit the renewed lease was still holding.
        """
        with self.store.transaction():
            lease = self._get_visible(lease_id)
            require_role(actor, lease.company_id, TRANSITION_ROLES, "delete lease")
            if not self.machine.can_delete(lease.status):
                raise errors.LeaseNotDraft(lease.id, lease.status)

            # Unit before lease, same order as activate
            self.store.get_unit(lease.unit_id, for_update=True)
            lease = self.store.get_lease(lease_id, for_update=True, refresh=True)
            if not lease.is_active:
                raise errors.LeaseNotFound(lease_id)
            if not self.machine.can_delete(lease.status):
                raise errors.LeaseNotDraft(lease.id, lease.status)
            self.store.update(lease, is_active=False)

            if self._held_by_predecessor(lease):
                if self.store.active_lease_on_unit(lease.unit_id) is None:
                    self.gate.on_vacated(lease.unit_id)

        logger.info(f"[LEASE] Deleted draft lease {lease_id}")
        return lease

    # ═══════════════════════ TRANSITIONS ═══════════════════════

    def activate(self, lease_id: UUID, actor: AuthorizationContext) -> Lease:
        """DRAFT → ACTIVE; unit becomes OCCUPIED, tenant becomes ACTIVE."""
        with self.store.transaction():
            lease = self._get_visible(lease_id)
            require_role(actor, lease.company_id, TRANSITION_ROLES, "activate lease")
            self._check_activatable(lease)

            self.gate.assert_activatable(
                lease.unit_id, lease.id, held_by_renewed_lease=self._held_by_predecessor(lease)
            )
            lease = self.store.get_lease(lease_id, for_update=True, refresh=True)
            self._check_activatable(lease)

            # A failed flush leaves the session unreadable until rollback
            unit_id = lease.unit_id
            try:
                self.store.update(
                    lease,
                    status=LeaseStatus.ACTIVE,
                    move_in_date=lease.move_in_date or self._today(),
                )
            except IntegrityError as exc:
                # Another transaction activated a lease on this unit first
                raise errors.UnitAlreadyLeased(unit_id) from exc

            self.gate.on_activated(lease.unit_id)
            self.tenants.recompute(lease.tenant_id, lease.company_id)

        logger.info(f"[LEASE] Activated lease {lease_id} on unit {lease.unit_id}")
        return lease

    def terminate(
        self,
        lease_id: UUID,
        request: TerminateLeaseRequest,
        actor: AuthorizationContext,
    ) -> Lease:
        """ACTIVE → TERMINATED; unit becomes AVAILABLE, tenant recomputed."""
        with self.store.transaction():
            lease = self._get_visible(lease_id)
            require_role(actor, lease.company_id, TRANSITION_ROLES, "terminate lease")
            self._check_active(lease, LeaseStatus.TERMINATED)

            self.store.get_unit(lease.unit_id, for_update=True)
            lease = self.store.get_lease(lease_id, for_update=True, refresh=True)
            self._check_active(lease, LeaseStatus.TERMINATED)

            self._terminate(
                lease,
                reason=request.reason,
                notes=request.notes,
                actual_date=request.actual_termination_date,
                actor_id=actor.user_id,
            )

        logger.info(f"[LEASE] Terminated lease {lease_id}: {request.reason}")
        return lease

    def renew(self, lease_id: UUID, request: RenewLeaseRequest, actor: AuthorizationContext) -> Lease:
        """
        ACTIVE/EXPIRED → RENEWED, drafting a successor lease with the new terms.
        The successor starts in DRAFT; occupancy does not change until it is activated.
        Returns the new lease.
        """
        with self.store.transaction():
            old = self._get_visible(lease_id)
            require_role(actor, old.company_id, TRANSITION_ROLES, "renew lease")
            self._check_active(old, LeaseStatus.RENEWED)
            if request.end_date <= request.start_date:
                raise errors.InvalidLeaseDates(request.start_date, request.end_date)

            old = self.store.get_lease(lease_id, for_update=True, refresh=True)
            self._check_active(old, LeaseStatus.RENEWED)

            terms = self._carried_terms(old)
            terms.update(
                lease_type=request.lease_type or old.lease_type,
                monthly_rent=_money(request.monthly_rent),
                security_deposit=_money(request.security_deposit)
                if request.security_deposit is not None else old.security_deposit,
                prorated_first_month=request.prorated_first_month or False,
                grace_period_days=request.grace_period_days
                if request.grace_period_days is not None else old.grace_period_days,
                notes=request.notes if request.notes is not None else old.notes,
            )
            new = Lease(
                **terms,
                tenant_id=old.tenant_id,
                unit_id=old.unit_id,
                company_id=old.company_id,
                lease_number=self._next_lease_number(old.company_id),
                status=self.machine.initial,
                start_date=request.start_date,
                end_date=request.end_date,
                renewed_from_lease_id=old.id,
                created_by=actor.user_id,
            )
            self.store.add(new)
            self.store.update(old, renewed_to_lease_id=new.id, status=LeaseStatus.RENEWED)
            self.tenants.recompute(old.tenant_id, old.company_id)

        logger.info(f"[LEASE] Renewed lease {lease_id} -> {new.id} ({new.lease_number})")
        return new

    def transfer(
        self,
        lease_id: UUID,
        request: TransferLeaseRequest,
        actor: AuthorizationContext,
    ) -> Lease:
        """
        Terminate an ACTIVE lease and draft its successor for a new tenant
        and/or a new unit. Returns the new lease.
        """
        if request.new_tenant_id is None and request.new_unit_id is None:
            raise errors.ValidationError(
                "Either new_tenant_id or new_unit_id must be provided",
                fields=["new_tenant_id", "new_unit_id"],
            )

        with self.store.transaction():
            old = self._get_visible(lease_id)
            require_role(actor, old.company_id, TRANSITION_ROLES, "transfer lease")
            self._check_active(old, LeaseStatus.TERMINATED)

            today = self._today()
            if old.end_date <= today:
                raise errors.InvalidLeaseDates(today, old.end_date)

            target_unit_id = request.new_unit_id or old.unit_id
            for unit_id in sorted({old.unit_id, target_unit_id}, key=str):
                self.store.get_unit(unit_id, for_update=True)

            target_unit = self.store.get_unit(target_unit_id)
            if not target_unit.is_active or target_unit.company_id != old.company_id:
                raise errors.UnitNotFound(target_unit_id)
            self.gate.assert_no_active_lease(target_unit_id, exclude_lease_id=old.id)

            tenant_user_id = old.tenant_id
            if request.new_tenant_id is not None:
                profile = self.store.find_tenant_profile(request.new_tenant_id, old.company_id)
                if profile is None:
                    raise errors.TenantNotFound(request.new_tenant_id, old.company_id)
                tenant_user_id = profile.user_id

            old = self.store.get_lease(lease_id, for_update=True, refresh=True)
            self._check_active(old, LeaseStatus.TERMINATED)

            if request.new_tenant_id is not None:
                notes = f"Transferred to new tenant: {tenant_user_id}"
            else:
                notes = f"Transferred to new unit: {target_unit_id}"
            self._terminate(old, reason=TRANSFER_REASON, notes=notes, actual_date=None, actor_id=actor.user_id)

            terms = self._carried_terms(old)
            terms["notes"] = f"Transferred from lease {old.lease_number}"
            new = Lease(
                **terms,
                tenant_id=tenant_user_id,
                unit_id=target_unit_id,
                company_id=old.company_id,
                lease_number=self._next_lease_number(old.company_id),
                status=self.machine.initial,
                start_date=today,
                end_date=old.end_date,
                created_by=actor.user_id,
            )
            self.store.add(new)

        logger.info(
            f"[LEASE] Transferred lease {lease_id} -> {new.id} "
            f"(tenant {new.tenant_id}, unit {new.unit_id})"
        )
        return new

    # ═══════════════════════ EXPIRY SWEEP ═══════════════════════

    def check_and_expire_leases(self, today: Optional[date] = None) -> ExpirySweepReport:
        """
        Expire every ACTIVE lease whose end date has passed.
        Each lease runs in its own transaction; a failing lease is logged,
        reported and does not stop the sweep.
        """
        run_date = today or self._today()
        report = ExpirySweepReport(run_date=run_date)
        candidates = self.store.expiring_lease_ids(run_date)
        logger.info(f"[LEASE][SWEEP] {len(candidates)} lease(s) past end date as of {run_date}")

        for lease_id in candidates:
            try:
                with self.store.transaction():
                    expired = self._expire_one(lease_id, run_date)
            except Exception as exc:
                logger.exception(f"[LEASE][SWEEP] Failed to expire lease {lease_id}")
                report.failed[lease_id] = str(exc)
                continue
            if expired:
                report.expired.append(lease_id)
            else:
                report.skipped.append(lease_id)

        logger.info(
            f"[LEASE][SWEEP] Done: {len(report.expired)} expired, "
            f"{len(report.skipped)} skipped, {len(report.failed)} failed"
        )
        return report

    def _expire_one(self, lease_id: UUID, run_date: date) -> bool:
        lease = self.store.find_lease(lease_id)
        if lease is None:
            return False
        self.store.get_unit(lease.unit_id, for_update=True)
        lease = self.store.get_lease(lease_id, for_update=True, refresh=True)
        eligible = (
            lease.is_active
            and lease.end_date < run_date
            and self.machine.can_transition(lease.status, LeaseStatus.EXPIRED)
        )
        if not eligible:
            return False

        self.store.update(lease, status=LeaseStatus.EXPIRED)
        self.gate.on_vacated(lease.unit_id)
        self.tenants.recompute(lease.tenant_id, lease.company_id, exclude_lease_id=lease.id)
        logger.info(f"[LEASE][SWEEP] Expired lease {lease_id} (ended {lease.end_date})")
        return True

    # ═══════════════════════ QUERIES ═══════════════════════

    def get(self, lease_id: UUID, actor: AuthorizationContext) -> Lease:
        """Leases outside the caller's reach are reported as not found."""
        lease = self._get_visible(lease_id)
        if isinstance(actor, SuperAdmin):
            return lease
        if lease.tenant_id == actor.user_id or is_company_member(actor, lease.company_id):
            return lease
        raise errors.LeaseNotFound(lease_id)

    def history_for_unit(self, unit_id: UUID, actor: AuthorizationContext) -> List[Lease]:
        """Outside the unit's company the unit is reported as not found."""
        unit = self.store.get_unit(unit_id)
        if not is_company_member(actor, unit.company_id):
            raise errors.UnitNotFound(unit_id)
        return self.store.leases_for_unit(unit_id)

    def history_for_tenant(self, tenant_id: UUID, actor: AuthorizationContext) -> List[Lease]:
        """Leases of one tenant (by user id), limited to companies the caller administers or manages."""
        if isinstance(actor, SuperAdmin) or actor.user_id == tenant_id:
            return self.store.leases_for_tenant(tenant_id)
        company_ids = [
            company_id
            for company_id, role in actor.roles_by_company.items()
            if role in TRANSITION_ROLES
        ]
        if not company_ids:
            raise errors.InsufficientPermissions("view tenant lease history")
        return self.store.leases_for_tenant(tenant_id, company_ids=company_ids)

    def renewal_chain(self, lease_id: UUID, actor: AuthorizationContext) -> List[Lease]:
        """All leases linked to this one by renewal, oldest first."""
        lease = self.get(lease_id, actor)
        seen = {lease.id}

        earlier = []
        current = lease
        while current.renewed_from_lease_id and current.renewed_from_lease_id not in seen:
            current = self.store.find_lease(current.renewed_from_lease_id)
            if current is None:
                break
            seen.add(current.id)
            earlier.append(current)

        later = []
        current = lease
        while current.renewed_to_lease_id and current.renewed_to_lease_id not in seen:
            current = self.store.find_lease(current.renewed_to_lease_id)
            if current is None:
                break
            seen.add(current.id)
            later.append(current)

        return list(reversed(earlier)) + [lease] + later

    # ═══════════════════════ HELPERS ═══════════════════════

    def _get_visible(self, lease_id: UUID) -> Lease:
        lease = self.store.get_lease(lease_id)
        if not lease.is_active:
            raise errors.LeaseNotFound(lease_id)
        return lease

    def _check_activatable(self, lease: Lease) -> None:
        if lease.status == LeaseStatus.ACTIVE:
            raise errors.LeaseAlreadyActive(lease.id)
        if not self.machine.can_transition(lease.status, LeaseStatus.ACTIVE):
            raise errors.LeaseNotDraft(lease.id, lease.status)

    def _check_active(self, lease: Lease, target: LeaseStatus) -> None:
        if not self.machine.can_transition(lease.status, target):
            raise errors.LeaseNotActive(lease.id, lease.status)

    def _held_by_predecessor(self, lease: Lease) -> bool:
        if lease.renewed_from_lease_id is None:
            return False
        predecessor = self.store.find_lease(lease.renewed_from_lease_id)
        return (
            predecessor is not None
            and predecessor.unit_id == lease.unit_id
            and predecessor.status == LeaseStatus.RENEWED
        )

    def _terminate(
        self,
        lease: Lease,
        reason: str,
        notes: Optional[str],
        actual_date: Optional[date],
        actor_id: Optional[UUID],
    ) -> None:
        end = actual_date or self._today()
        self.store.update(
            lease,
            status=LeaseStatus.TERMINATED,
            termination_reason=reason,
            terminated_by=actor_id,
            termination_notes=notes,
            actual_termination_date=end,
            move_out_date=end,
        )
        self.gate.on_vacated(lease.unit_id)
        self.tenants.recompute(lease.tenant_id, lease.company_id, exclude_lease_id=lease.id)

    def _carried_terms(self, lease: Lease) -> dict:
        return {name: deepcopy(getattr(lease, name)) for name in CARRIED_TERMS}

    def _next_lease_number(self, company_id: UUID) -> str:
        # Best effort: two concurrent creates can draw the same number
        count = self.store.count_company_leases(company_id)
        return f"{settings.LEASE_NUMBER_PREFIX}-{self._today().year}-{count + 1:03d}"
