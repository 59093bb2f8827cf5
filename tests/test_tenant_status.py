import logging

import pytest

from rentflow.models.lease import LeaseStatus
from rentflow.models.tenant import TenantStatus
from rentflow.services.tenant_status import TenantStatusResolver

T = TenantStatus


@pytest.mark.parametrize("current,count,expected", [
    (T.PENDING, 0, T.PENDING),
    (T.PENDING, 1, T.ACTIVE),
    (T.ACTIVE, 2, T.ACTIVE),
    (T.ACTIVE, 0, T.FORMER),
    (T.FORMER, 0, T.FORMER),
    (T.FORMER, 1, T.ACTIVE),
])
def test_status_for(current, count, expected):
    assert TenantStatusResolver.status_for(current, count) == expected


def test_apply_persists_changed_status(store, factory, company):
    tenant = factory.tenant(company)
    resolver = TenantStatusResolver(store)

    profile = resolver.apply(tenant.user_id, company.id, 1)
    store.db.commit()

    assert profile.status == T.ACTIVE
    store.db.refresh(tenant)
    assert tenant.status == T.ACTIVE


def test_apply_skips_write_when_unchanged(store, factory, company, monkeypatch):
    tenant = factory.tenant(company, status=T.ACTIVE)
    resolver = TenantStatusResolver(store)
    writes = []
    monkeypatch.setattr(store, "update", lambda entity, **fields: writes.append(fields))

    resolver.apply(tenant.user_id, company.id, 3)

    assert writes == []


def test_apply_without_profile_logs_and_returns_none(store, factory, company, caplog):
    stranger = factory.user()
    resolver = TenantStatusResolver(store)

    with caplog.at_level(logging.WARNING, logger="rentflow.services.tenant_status"):
        assert resolver.apply(stranger.id, company.id, 1) is None
    assert "No profile" in caplog.text


def test_resolve_reads_current_status(store, factory, company):
    tenant = factory.tenant(company, status=T.ACTIVE)
    resolver = TenantStatusResolver(store)

    assert resolver.resolve(tenant.user_id, company.id, 0) == T.FORMER
    assert resolver.resolve(tenant.user_id, company.id, 1) == T.ACTIVE
    # Pure read: nothing persisted
    store.db.refresh(tenant)
    assert tenant.status == T.ACTIVE


def test_recompute_counts_only_active_leases_in_company(store, factory, company):
    other_company = factory.company("Other Co")
    tenant = factory.tenant(company, status=T.ACTIVE)
    unit = factory.unit(company)
    factory.lease(unit, tenant)  # DRAFT does not count
    other_unit = factory.unit(other_company)
    factory.lease(other_unit, tenant, status=LeaseStatus.ACTIVE)

    TenantStatusResolver(store).recompute(tenant.user_id, company.id)
    store.db.commit()

    store.db.refresh(tenant)
    assert tenant.status == T.FORMER
