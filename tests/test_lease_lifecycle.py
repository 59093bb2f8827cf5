import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import update

from rentflow.models.company import CompanyRole
from rentflow.models.lease import Lease, LeaseStatus, LeaseType
from rentflow.models.property import UnitStatus
from rentflow.models.tenant import TenantStatus
from rentflow.schemas.lease import (
    LeaseCreate, LeaseUpdate, RenewLeaseRequest, TerminateLeaseRequest, TransferLeaseRequest,
)
from rentflow.services import errors


def _refresh(db, *objs):
    for obj in objs:
        db.refresh(obj)


# ==================== activate / terminate ====================


def test_activate_then_terminate_propagates_to_unit_and_tenant(lifecycle, factory, company, admin_actor, db, today):
    unit = factory.unit(company)
    tenant = factory.tenant(company)
    lease = factory.lease(unit, tenant)

    lifecycle.activate(lease.id, admin_actor)
    _refresh(db, lease, unit, tenant)
    assert lease.status == LeaseStatus.ACTIVE
    assert lease.move_in_date == today
    assert unit.status == UnitStatus.OCCUPIED
    assert tenant.status == TenantStatus.ACTIVE

    lifecycle.terminate(lease.id, TerminateLeaseRequest(reason="expired"), admin_actor)
    _refresh(db, lease, unit, tenant)
    assert lease.status == LeaseStatus.TERMINATED
    assert lease.termination_reason == "expired"
    assert lease.terminated_by == admin_actor.user_id
    assert lease.actual_termination_date == today
    assert lease.move_out_date == today
    assert unit.status == UnitStatus.AVAILABLE
    assert tenant.status == TenantStatus.FORMER


def test_activate_keeps_existing_move_in_date(lifecycle, factory, company, admin_actor, today):
    unit = factory.unit(company)
    earlier = today - timedelta(days=3)
    lease = factory.lease(unit, factory.tenant(company), move_in_date=earlier)

    activated = lifecycle.activate(lease.id, admin_actor)

    assert activated.move_in_date == earlier


def test_activate_conflicting_lease_changes_nothing(lifecycle, factory, company, admin_actor, db):
    unit = factory.unit(company)
    factory.active_lease(unit, factory.tenant(company))
    tenant = factory.tenant(company)
    lease = factory.lease(unit, tenant)

    with pytest.raises(errors.UnitAlreadyLeased):
        lifecycle.activate(lease.id, admin_actor)

    _refresh(db, lease, unit, tenant)
    assert lease.status == LeaseStatus.DRAFT
    assert lease.move_in_date is None
    assert unit.status == UnitStatus.OCCUPIED
    assert tenant.status == TenantStatus.PENDING


def test_activate_unavailable_unit(lifecycle, factory, company, admin_actor):
    unit = factory.unit(company, status=UnitStatus.MAINTENANCE)
    lease = factory.lease(unit, factory.tenant(company))

    with pytest.raises(errors.CannotActivateUnavailableUnit):
        lifecycle.activate(lease.id, admin_actor)


def test_activate_requires_draft(lifecycle, factory, company, admin_actor):
    unit = factory.unit(company)
    active = factory.active_lease(unit, factory.tenant(company))
    terminated = factory.lease(factory.unit(company), factory.tenant(company), status=LeaseStatus.TERMINATED)

    with pytest.raises(errors.LeaseAlreadyActive):
        lifecycle.activate(active.id, admin_actor)
    with pytest.raises(errors.LeaseNotDraft):
        lifecycle.activate(terminated.id, admin_actor)


def test_activate_maps_store_conflict_to_unit_already_leased(lifecycle, factory, company, admin_actor, store, monkeypatch, db):
    # Simulates a concurrent activation that slipped past the read check
    unit = factory.unit(company)
    factory.lease(unit, factory.tenant(company), status=LeaseStatus.ACTIVE)
    lease = factory.lease(unit, factory.tenant(company))
    monkeypatch.setattr(store, "active_lease_on_unit", lambda unit_id, exclude_lease_id=None: None)

    with pytest.raises(errors.UnitAlreadyLeased) as exc_info:
        lifecycle.activate(lease.id, admin_actor)

    assert exc_info.value.status_code == 409
    assert exc_info.value.details["unit_id"] == unit.id
    db.refresh(lease)
    assert lease.status == LeaseStatus.DRAFT


def test_freed_unit_can_be_leased_again(lifecycle, factory, company, admin_actor, db):
    unit = factory.unit(company)
    first = factory.lease(unit, factory.tenant(company))
    lifecycle.activate(first.id, admin_actor)
    lifecycle.terminate(first.id, TerminateLeaseRequest(reason="moved out"), admin_actor)

    second = factory.lease(unit, factory.tenant(company))
    lifecycle.activate(second.id, admin_actor)

    _refresh(db, second, unit)
    assert second.status == LeaseStatus.ACTIVE
    assert unit.status == UnitStatus.OCCUPIED


def test_terminate_twice_fails_without_changes(lifecycle, factory, company, admin_actor, db, today):
    unit = factory.unit(company)
    tenant = factory.tenant(company)
    lease = factory.active_lease(unit, tenant)
    lifecycle.terminate(
        lease.id,
        TerminateLeaseRequest(reason="first", actual_termination_date=today - timedelta(days=1)),
        admin_actor,
    )
    _refresh(db, lease, unit, tenant)
    snapshot = (lease.termination_reason, lease.actual_termination_date, lease.updated_at, unit.status, tenant.status)

    with pytest.raises(errors.LeaseNotActive):
        lifecycle.terminate(lease.id, TerminateLeaseRequest(reason="second"), admin_actor)

    _refresh(db, lease, unit, tenant)
    assert (lease.termination_reason, lease.actual_termination_date, lease.updated_at,
            unit.status, tenant.status) == snapshot
    assert lease.actual_termination_date == today - timedelta(days=1)


def test_terminate_keeps_tenant_active_with_other_lease(lifecycle, factory, company, admin_actor, db):
    tenant = factory.tenant(company)
    first = factory.active_lease(factory.unit(company), tenant)
    factory.active_lease(factory.unit(company), tenant)

    lifecycle.terminate(first.id, TerminateLeaseRequest(reason="downsizing", notes="keeps flat B"), admin_actor)

    _refresh(db, first, tenant)
    assert first.termination_notes == "keeps flat B"
    assert tenant.status == TenantStatus.ACTIVE


@pytest.mark.parametrize("role", [CompanyRole.LANDLORD, CompanyRole.STAFF, CompanyRole.TENANT])
def test_transitions_require_admin_or_manager(lifecycle, factory, company, actor_for, db, role):
    unit = factory.unit(company)
    lease = factory.lease(unit, factory.tenant(company))

    with pytest.raises(errors.InsufficientPermissions):
        lifecycle.activate(lease.id, actor_for(company, role))

    db.refresh(lease)
    assert lease.status == LeaseStatus.DRAFT


def test_manager_of_other_company_cannot_terminate(lifecycle, factory, company, actor_for):
    lease = factory.active_lease(factory.unit(company), factory.tenant(company))
    outsider = actor_for(factory.company("Elsewhere"), CompanyRole.MANAGER)

    with pytest.raises(errors.InsufficientPermissions):
        lifecycle.terminate(lease.id, TerminateLeaseRequest(reason="x"), outsider)


def test_super_admin_can_activate_anywhere(lifecycle, factory, company, super_actor):
    lease = factory.lease(factory.unit(company), factory.tenant(company))

    assert lifecycle.activate(lease.id, super_actor).status == LeaseStatus.ACTIVE


def test_unknown_lease(lifecycle, admin_actor):
    with pytest.raises(errors.LeaseNotFound):
        lifecycle.activate(uuid.uuid4(), admin_actor)


# ==================== renew ====================


def _renewal(today, **overrides):
    data = dict(
        start_date=today + timedelta(days=365),
        end_date=today + timedelta(days=730),
        monthly_rent=1650,
    )
    data.update(overrides)
    return RenewLeaseRequest(**data)


def test_renew_links_both_ways_and_drafts_successor(lifecycle, factory, company, admin_actor, db, today):
    unit = factory.unit(company)
    tenant = factory.tenant(company)
    old = factory.active_lease(
        unit, tenant,
        security_deposit=3000, pet_deposit=200, grace_period_days=5, tags=["corner"],
        terms="No subletting", lease_type=LeaseType.MONTH_TO_MONTH,
    )

    new = lifecycle.renew(old.id, _renewal(today), admin_actor)

    _refresh(db, old, new, unit)
    assert new.status == LeaseStatus.DRAFT
    assert new.renewed_from_lease_id == old.id
    assert old.renewed_to_lease_id == new.id
    assert old.status == LeaseStatus.RENEWED
    assert (new.tenant_id, new.unit_id, new.company_id) == (old.tenant_id, old.unit_id, old.company_id)
    assert new.monthly_rent == Decimal("1650")
    assert new.security_deposit == Decimal("3000")
    assert new.pet_deposit == Decimal("200")
    assert new.grace_period_days == 5
    assert new.tags == ["corner"]
    assert new.terms == "No subletting"
    assert new.lease_type == LeaseType.MONTH_TO_MONTH
    assert new.prorated_first_month is False
    assert new.created_by == admin_actor.user_id
    assert new.lease_number.startswith(f"LEASE-{today.year}-")
    assert new.lease_number != old.lease_number
    # Paperwork only: the unit stays with the renewed lease
    assert unit.status == UnitStatus.OCCUPIED
    assert db.query(Lease).filter(Lease.renewed_from_lease_id == old.id).count() == 1


def test_renew_overrides_terms(lifecycle, factory, company, admin_actor, today):
    old = factory.active_lease(factory.unit(company), factory.tenant(company), security_deposit=3000)

    new = lifecycle.renew(
        old.id,
        _renewal(today, security_deposit=3500, lease_type=LeaseType.COMMERCIAL,
                 prorated_first_month=True, grace_period_days=10),
        admin_actor,
    )

    assert new.security_deposit == Decimal("3500")
    assert new.lease_type == LeaseType.COMMERCIAL
    assert new.prorated_first_month is True
    assert new.grace_period_days == 10


def test_renewal_of_active_lease_can_be_activated(lifecycle, factory, company, admin_actor, db, today):
    unit = factory.unit(company)
    tenant = factory.tenant(company)
    old = factory.active_lease(unit, tenant)

    new = lifecycle.renew(old.id, _renewal(today), admin_actor)
    db.refresh(tenant)
    assert tenant.status == TenantStatus.FORMER

    lifecycle.activate(new.id, admin_actor)
    _refresh(db, new, unit, tenant)
    assert new.status == LeaseStatus.ACTIVE
    assert unit.status == UnitStatus.OCCUPIED
    assert tenant.status == TenantStatus.ACTIVE


def test_renew_expired_lease(lifecycle, factory, company, admin_actor, db, today):
    unit = factory.unit(company)
    old = factory.lease(unit, factory.tenant(company), status=LeaseStatus.EXPIRED,
                        start=today - timedelta(days=400), end=today - timedelta(days=35))

    new = lifecycle.renew(old.id, _renewal(today, start_date=today, end_date=today + timedelta(days=365)), admin_actor)
    lifecycle.activate(new.id, admin_actor)

    _refresh(db, old, new, unit)
    assert old.status == LeaseStatus.RENEWED
    assert new.status == LeaseStatus.ACTIVE
    assert unit.status == UnitStatus.OCCUPIED


@pytest.mark.parametrize("status", [LeaseStatus.DRAFT, LeaseStatus.TERMINATED, LeaseStatus.RENEWED])
def test_renew_requires_active_or_expired(lifecycle, factory, company, admin_actor, today, status):
    lease = factory.lease(factory.unit(company), factory.tenant(company), status=status)

    with pytest.raises(errors.LeaseNotActive):
        lifecycle.renew(lease.id, _renewal(today), admin_actor)


def test_renew_twice_fails(lifecycle, factory, company, admin_actor, db, today):
    old = factory.active_lease(factory.unit(company), factory.tenant(company))
    lifecycle.renew(old.id, _renewal(today), admin_actor)

    with pytest.raises(errors.LeaseNotActive):
        lifecycle.renew(old.id, _renewal(today), admin_actor)
    assert db.query(Lease).filter(Lease.renewed_from_lease_id == old.id).count() == 1


def test_renew_rejects_bad_dates(lifecycle, factory, company, admin_actor, db, today):
    old = factory.active_lease(factory.unit(company), factory.tenant(company))

    with pytest.raises(errors.InvalidLeaseDates):
        lifecycle.renew(old.id, _renewal(today, start_date=today, end_date=today), admin_actor)

    db.refresh(old)
    assert old.status == LeaseStatus.ACTIVE
    assert old.renewed_to_lease_id is None


# ==================== transfer ====================


def test_transfer_into_occupied_unit_fails_before_terminate(lifecycle, factory, company, admin_actor, db):
    unit = factory.unit(company)
    tenant = factory.tenant(company)
    lease = factory.active_lease(unit, tenant)
    busy_unit = factory.unit(company)
    factory.active_lease(busy_unit, factory.tenant(company))
    before = db.query(Lease).count()

    with pytest.raises(errors.UnitAlreadyLeased):
        lifecycle.transfer(lease.id, TransferLeaseRequest(new_unit_id=busy_unit.id), admin_actor)

    _refresh(db, lease, unit, tenant)
    assert lease.status == LeaseStatus.ACTIVE
    assert lease.termination_reason is None
    assert unit.status == UnitStatus.OCCUPIED
    assert tenant.status == TenantStatus.ACTIVE
    assert db.query(Lease).count() == before


def test_transfer_to_new_unit(lifecycle, factory, company, admin_actor, db, today):
    unit = factory.unit(company)
    tenant = factory.tenant(company)
    old = factory.active_lease(unit, tenant, end=today + timedelta(days=200), pet_rent=50)
    target = factory.unit(company)

    new = lifecycle.transfer(old.id, TransferLeaseRequest(new_unit_id=target.id), admin_actor)

    _refresh(db, old, new, unit, target, tenant)
    assert old.status == LeaseStatus.TERMINATED
    assert old.termination_reason == "Lease transferred"
    assert old.termination_notes == f"Transferred to new unit: {target.id}"
    assert unit.status == UnitStatus.AVAILABLE
    assert new.status == LeaseStatus.DRAFT
    assert new.unit_id == target.id
    assert new.tenant_id == old.tenant_id
    assert new.start_date == today
    assert new.end_date == old.end_date
    assert new.pet_rent == Decimal("50")
    assert new.notes == f"Transferred from lease {old.lease_number}"
    assert target.status == UnitStatus.AVAILABLE
    assert tenant.status == TenantStatus.FORMER


def test_transfer_to_new_tenant_by_profile_id(lifecycle, factory, company, admin_actor, db):
    unit = factory.unit(company)
    old = factory.active_lease(unit, factory.tenant(company))
    incoming = factory.tenant(company)

    new = lifecycle.transfer(old.id, TransferLeaseRequest(new_tenant_id=incoming.id), admin_actor)

    _refresh(db, old, new)
    assert new.tenant_id == incoming.user_id
    assert new.unit_id == unit.id
    assert old.termination_notes == f"Transferred to new tenant: {incoming.user_id}"

    lifecycle.activate(new.id, admin_actor)
    _refresh(db, new, incoming)
    assert new.status == LeaseStatus.ACTIVE
    assert incoming.status == TenantStatus.ACTIVE


def test_transfer_needs_a_target(lifecycle, factory, company, admin_actor):
    lease = factory.active_lease(factory.unit(company), factory.tenant(company))

    with pytest.raises(errors.ValidationError):
        lifecycle.transfer(lease.id, TransferLeaseRequest(), admin_actor)


def test_transfer_to_unknown_tenant(lifecycle, factory, company, admin_actor, db):
    lease = factory.active_lease(factory.unit(company), factory.tenant(company))

    with pytest.raises(errors.TenantNotFound):
        lifecycle.transfer(lease.id, TransferLeaseRequest(new_tenant_id=uuid.uuid4()), admin_actor)

    db.refresh(lease)
    assert lease.status == LeaseStatus.ACTIVE


def test_transfer_to_unit_of_other_company(lifecycle, factory, company, admin_actor):
    lease = factory.active_lease(factory.unit(company), factory.tenant(company))
    foreign_unit = factory.unit(factory.company("Other"))

    with pytest.raises(errors.UnitNotFound):
        lifecycle.transfer(lease.id, TransferLeaseRequest(new_unit_id=foreign_unit.id), admin_actor)


def test_transfer_requires_active_lease(lifecycle, factory, company, admin_actor):
    lease = factory.lease(factory.unit(company), factory.tenant(company))

    with pytest.raises(errors.LeaseNotActive):
        lifecycle.transfer(lease.id, TransferLeaseRequest(new_unit_id=factory.unit(company).id), admin_actor)


# ==================== create / update / delete ====================


def _create_payload(unit, tenant_ref, today, **overrides):
    data = dict(
        tenant_id=tenant_ref,
        unit_id=unit.id,
        start_date=today,
        end_date=today + timedelta(days=365),
        monthly_rent=1500,
        security_deposit=3000,
    )
    data.update(overrides)
    return LeaseCreate(**data)


def test_create_draft_lease(lifecycle, factory, company, admin_actor, today):
    unit = factory.unit(company)
    tenant = factory.tenant(company)

    lease = lifecycle.create(_create_payload(unit, tenant.id, today), admin_actor)

    assert lease.status == LeaseStatus.DRAFT
    assert lease.tenant_id == tenant.user_id
    assert lease.company_id == company.id
    assert lease.lease_number == f"LEASE-{today.year}-001"
    assert lease.currency == "KES"
    assert lease.security_deposit == Decimal("3000")
    assert lease.created_by == admin_actor.user_id


def test_create_resolves_tenant_by_user_id(lifecycle, factory, company, actor_for, today):
    unit = factory.unit(company)
    tenant = factory.tenant(company)
    landlord = actor_for(company, CompanyRole.LANDLORD)

    lease = lifecycle.create(_create_payload(unit, tenant.user_id, today, currency="usd"), landlord)

    assert lease.tenant_id == tenant.user_id
    assert lease.currency == "USD"


def test_create_numbers_follow_company_count(lifecycle, factory, company, admin_actor, today):
    tenant = factory.tenant(company)
    factory.lease(factory.unit(company), tenant)

    lease = lifecycle.create(_create_payload(factory.unit(company), tenant.id, today), admin_actor)

    assert lease.lease_number == f"LEASE-{today.year}-002"


def test_create_validations(lifecycle, factory, company, admin_actor, actor_for, today):
    unit = factory.unit(company)
    tenant = factory.tenant(company)

    with pytest.raises(errors.TenantNotFound):
        lifecycle.create(_create_payload(unit, uuid.uuid4(), today), admin_actor)
    with pytest.raises(errors.InvalidLeaseDates):
        lifecycle.create(_create_payload(unit, tenant.id, today, end_date=today), admin_actor)
    with pytest.raises(errors.UnitNotFound):
        lifecycle.create(_create_payload(factory.unit(company, is_active=False), tenant.id, today), admin_actor)
    with pytest.raises(errors.InsufficientPermissions):
        lifecycle.create(_create_payload(unit, tenant.id, today), actor_for(company, CompanyRole.STAFF))

    factory.active_lease(unit, factory.tenant(company))
    with pytest.raises(errors.UnitAlreadyLeased):
        lifecycle.create(_create_payload(unit, tenant.id, today), admin_actor)


def test_tenant_of_other_company_is_not_found(lifecycle, factory, company, admin_actor, today):
    stranger = factory.tenant(factory.company("Other"))

    with pytest.raises(errors.TenantNotFound):
        lifecycle.create(_create_payload(factory.unit(company), stranger.id, today), admin_actor)


def test_update_draft_terms(lifecycle, factory, company, admin_actor, today):
    lease = factory.lease(factory.unit(company), factory.tenant(company))

    updated = lifecycle.update(
        lease.id,
        LeaseUpdate(monthly_rent=1800, end_date=today + timedelta(days=180), pet_policy="Cats only"),
        admin_actor,
    )

    assert updated.monthly_rent == Decimal("1800")
    assert updated.end_date == today + timedelta(days=180)
    assert updated.pet_policy == "Cats only"


def test_update_draft_rejects_bad_dates(lifecycle, factory, company, admin_actor, today):
    lease = factory.lease(factory.unit(company), factory.tenant(company))

    with pytest.raises(errors.InvalidLeaseDates):
        lifecycle.update(lease.id, LeaseUpdate(start_date=today + timedelta(days=400)), admin_actor)


def test_update_active_lease_restricted(lifecycle, factory, company, admin_actor, db, today):
    lease = factory.active_lease(factory.unit(company), factory.tenant(company))

    with pytest.raises(errors.CannotUpdateActiveLeaseField) as exc_info:
        lifecycle.update(lease.id, LeaseUpdate(end_date=today + timedelta(days=30)), admin_actor)
    assert exc_info.value.details["field"] == "end_date"

    with pytest.raises(errors.CannotUpdateActiveLeaseField):
        lifecycle.update(lease.id, LeaseUpdate(monthly_rent=99), admin_actor)

    notice = today + timedelta(days=20)
    updated = lifecycle.update(
        lease.id,
        LeaseUpdate(notes="Tenant gave notice", notice_to_vacate_date=notice, start_date=lease.start_date),
        admin_actor,
    )
    assert updated.notes == "Tenant gave notice"
    assert updated.notice_to_vacate_date == notice


def test_update_closed_lease_fails(lifecycle, factory, company, admin_actor):
    lease = factory.lease(factory.unit(company), factory.tenant(company), status=LeaseStatus.TERMINATED)

    with pytest.raises(errors.InvalidLeaseState):
        lifecycle.update(lease.id, LeaseUpdate(notes="late note"), admin_actor)


def test_delete_draft_is_soft(lifecycle, factory, company, admin_actor, db):
    lease = factory.lease(factory.unit(company), factory.tenant(company))

    lifecycle.delete(lease.id, admin_actor)

    db.refresh(lease)
    assert lease.is_active is False
    assert db.get(Lease, lease.id) is not None
    with pytest.raises(errors.LeaseNotFound):
        lifecycle.get(lease.id, admin_actor)


def test_delete_requires_draft(lifecycle, factory, company, admin_actor):
    lease = factory.active_lease(factory.unit(company), factory.tenant(company))

    with pytest.raises(errors.LeaseNotDraft):
        lifecycle.delete(lease.id, admin_actor)


def test_deleting_pending_renewal_releases_unit(lifecycle, factory, company, admin_actor, db, today):
    unit = factory.unit(company)
    old = factory.active_lease(unit, factory.tenant(company))
    successor = lifecycle.renew(old.id, _renewal(today), admin_actor)

    lifecycle.delete(successor.id, admin_actor)

    db.refresh(unit)
    assert unit.status == UnitStatus.AVAILABLE
    fresh = factory.lease(unit, factory.tenant(company))
    assert lifecycle.activate(fresh.id, admin_actor).status == LeaseStatus.ACTIVE


def _activated_under_lock(store, db, monkeypatch):
    """Flip the lease to ACTIVE just before the locked re-read, as a concurrent activate would."""
    real_get_lease = store.get_lease

    def get_lease(lease_id, for_update=False, refresh=False):
        if for_update:
            db.execute(update(Lease).where(Lease.id == lease_id).values(status=LeaseStatus.ACTIVE))
        return real_get_lease(lease_id, for_update=for_update, refresh=refresh)

    monkeypatch.setattr(store, "get_lease", get_lease)


def test_delete_rechecks_status_under_lock(lifecycle, factory, company, admin_actor, store, db, monkeypatch):
    lease = factory.lease(factory.unit(company), factory.tenant(company))
    _activated_under_lock(store, db, monkeypatch)

    with pytest.raises(errors.LeaseNotDraft):
        lifecycle.delete(lease.id, admin_actor)

    db.refresh(lease)
    assert lease.is_active is True


def test_update_rechecks_status_under_lock(lifecycle, factory, company, admin_actor, store, db, monkeypatch, today):
    lease = factory.lease(factory.unit(company), factory.tenant(company))
    original_end = lease.end_date
    _activated_under_lock(store, db, monkeypatch)

    with pytest.raises(errors.CannotUpdateActiveLeaseField):
        lifecycle.update(lease.id, LeaseUpdate(end_date=today + timedelta(days=30)), admin_actor)

    db.refresh(lease)
    assert lease.end_date == original_end


def test_landlord_cannot_delete(lifecycle, factory, company, actor_for):
    lease = factory.lease(factory.unit(company), factory.tenant(company))

    with pytest.raises(errors.InsufficientPermissions):
        lifecycle.delete(lease.id, actor_for(company, CompanyRole.LANDLORD))


# ==================== queries ====================


def test_get_visibility(lifecycle, factory, company, actor_for):
    tenant = factory.tenant(company)
    lease = factory.lease(factory.unit(company), tenant)

    assert lifecycle.get(lease.id, actor_for(company, CompanyRole.STAFF)).id == lease.id
    own = actor_for(factory.company("Unrelated"), CompanyRole.TENANT, user_id=tenant.user_id)
    assert lifecycle.get(lease.id, own).id == lease.id
    with pytest.raises(errors.LeaseNotFound):
        lifecycle.get(lease.id, actor_for(factory.company("Other"), CompanyRole.COMPANY_ADMIN))


def test_unit_history_newest_first(lifecycle, factory, company, admin_actor, actor_for, today):
    unit = factory.unit(company)
    tenant = factory.tenant(company)
    older = factory.lease(unit, tenant, status=LeaseStatus.TERMINATED,
                          start=today - timedelta(days=800), end=today - timedelta(days=435))
    newer = factory.lease(unit, tenant)

    history = lifecycle.history_for_unit(unit.id, admin_actor)

    assert [l.id for l in history] == [newer.id, older.id]
    # Outsiders cannot tell the unit exists
    with pytest.raises(errors.UnitNotFound):
        lifecycle.history_for_unit(unit.id, actor_for(factory.company("Other"), CompanyRole.MANAGER))


def test_tenant_history_limited_to_managed_companies(lifecycle, factory, company, admin_actor, actor_for, super_actor):
    other = factory.company("Other")
    user = factory.user()
    own = factory.lease(factory.unit(company), factory.tenant(company, user=user))
    foreign = factory.lease(factory.unit(other), factory.tenant(other, user=user))

    assert {l.id for l in lifecycle.history_for_tenant(user.id, admin_actor)} == {own.id}
    assert {l.id for l in lifecycle.history_for_tenant(user.id, super_actor)} == {own.id, foreign.id}
    self_actor = actor_for(company, CompanyRole.TENANT, user_id=user.id)
    assert {l.id for l in lifecycle.history_for_tenant(user.id, self_actor)} == {own.id, foreign.id}
    with pytest.raises(errors.InsufficientPermissions):
        lifecycle.history_for_tenant(user.id, actor_for(company, CompanyRole.TENANT))


@pytest.mark.parametrize("role", [CompanyRole.LANDLORD, CompanyRole.STAFF])
def test_tenant_history_needs_admin_or_manager(lifecycle, factory, company, actor_for, role):
    user = factory.user()
    factory.lease(factory.unit(company), factory.tenant(company, user=user))

    with pytest.raises(errors.InsufficientPermissions):
        lifecycle.history_for_tenant(user.id, actor_for(company, role))


def test_renewal_chain_oldest_first(lifecycle, factory, company, admin_actor, today):
    first = factory.active_lease(factory.unit(company), factory.tenant(company))
    second = lifecycle.renew(first.id, _renewal(today), admin_actor)
    lifecycle.activate(second.id, admin_actor)
    third = lifecycle.renew(
        second.id,
        _renewal(today, start_date=today + timedelta(days=730), end_date=today + timedelta(days=1095)),
        admin_actor,
    )

    expected = [first.id, second.id, third.id]
    for lease_id in expected:
        assert [l.id for l in lifecycle.renewal_chain(lease_id, admin_actor)] == expected
