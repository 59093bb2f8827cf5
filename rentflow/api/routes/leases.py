"""
Lease Lifecycle Routes
All endpoints use JWT auth; the caller's company roles decide what they may do.

  POST   /api/leases/                         – draft a lease
  POST   /api/leases/expire                   – run the expiry sweep now (super admin)
  GET    /api/leases/unit/{unit_id}/history   – leases on a unit, newest first
  GET    /api/leases/tenant/{tenant_id}/history – leases of a tenant, newest first
  GET    /api/leases/{id}                     – lease detail
  PATCH  /api/leases/{id}                     – edit terms (DRAFT) or operational fields (ACTIVE)
  DELETE /api/leases/{id}                     – soft-delete a DRAFT lease
  POST   /api/leases/{id}/activate            – DRAFT → ACTIVE
  POST   /api/leases/{id}/terminate           – ACTIVE → TERMINATED
  POST   /api/leases/{id}/renew               – ACTIVE/EXPIRED → RENEWED + new DRAFT
  POST   /api/leases/{id}/transfer            – terminate + new DRAFT for new tenant/unit
  GET    /api/leases/{id}/renewal-chain       – renewal history, oldest first

Domain errors propagate to the LeaseError handler in main.py.
"""
import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from rentflow.core.deps import get_auth_context, get_lifecycle
from rentflow.models.lease import Lease
from rentflow.schemas.lease import (
    ExpirySweepOut, LeaseCreate, LeaseOut, LeaseUpdate,
    RenewLeaseRequest, TerminateLeaseRequest, TransferLeaseRequest,
)
from rentflow.services.authorization import AuthorizationContext, SuperAdmin
from rentflow.services.errors import InsufficientPermissions
from rentflow.services.lease_lifecycle import LeaseLifecycleOrchestrator

router = APIRouter(tags=["Leases"])
logger = logging.getLogger(__name__)


# ═══════════════════════ HELPERS ═══════════════════════

def _out(lease: Lease) -> dict:
    return LeaseOut.model_validate(lease).model_dump(mode="json")


def _ok(data, message: str = "OK") -> dict:
    return {"success": True, "data": data, "message": message}


# ═══════════════════════ ROUTES ═══════════════════════

# ── Static routes first (before /{lease_id}) ──────────────────────

@router.post("/", status_code=status.HTTP_201_CREATED)
def create_lease(
    payload: LeaseCreate,
    actor: AuthorizationContext = Depends(get_auth_context),
    lifecycle: LeaseLifecycleOrchestrator = Depends(get_lifecycle),
):
    """Create a new lease in DRAFT status."""
    lease = lifecycle.create(payload, actor)
    return _ok(_out(lease), "Lease created")


@router.post("/expire")
def expire_leases(
    today: Optional[date] = Query(None, description="Sweep as of this date (defaults to today)"),
    actor: AuthorizationContext = Depends(get_auth_context),
    lifecycle: LeaseLifecycleOrchestrator = Depends(get_lifecycle),
):
    """Run the expiry sweep now. Super admin only."""
    if not isinstance(actor, SuperAdmin):
        raise InsufficientPermissions("run the lease expiry sweep")
    report = lifecycle.check_and_expire_leases(today)
    data = ExpirySweepOut(**report.to_dict()).model_dump(mode="json")
    return _ok(data, f"{len(report.expired)} lease(s) expired")


@router.get("/unit/{unit_id}/history")
def unit_lease_history(
    unit_id: UUID,
    actor: AuthorizationContext = Depends(get_auth_context),
    lifecycle: LeaseLifecycleOrchestrator = Depends(get_lifecycle),
):
    leases = lifecycle.history_for_unit(unit_id, actor)
    return _ok([_out(l) for l in leases])


@router.get("/tenant/{tenant_id}/history")
def tenant_lease_history(
    tenant_id: UUID,
    actor: AuthorizationContext = Depends(get_auth_context),
    lifecycle: LeaseLifecycleOrchestrator = Depends(get_lifecycle),
):
    leases = lifecycle.history_for_tenant(tenant_id, actor)
    return _ok([_out(l) for l in leases])


# ── Single lease ──────────────────────

@router.get("/{lease_id}")
def get_lease(
    lease_id: UUID,
    actor: AuthorizationContext = Depends(get_auth_context),
    lifecycle: LeaseLifecycleOrchestrator = Depends(get_lifecycle),
):
    return _ok(_out(lifecycle.get(lease_id, actor)))


@router.patch("/{lease_id}")
def update_lease(
    lease_id: UUID,
    payload: LeaseUpdate,
    actor: AuthorizationContext = Depends(get_auth_context),
    lifecycle: LeaseLifecycleOrchestrator = Depends(get_lifecycle),
):
    lease = lifecycle.update(lease_id, payload, actor)
    return _ok(_out(lease), "Lease updated")


@router.delete("/{lease_id}")
def delete_lease(
    lease_id: UUID,
    actor: AuthorizationContext = Depends(get_auth_context),
    lifecycle: LeaseLifecycleOrchestrator = Depends(get_lifecycle),
):
    """Soft-delete a DRAFT lease."""
    lifecycle.delete(lease_id, actor)
    return _ok({"id": str(lease_id)}, "Lease deleted")


@router.post("/{lease_id}/activate")
def activate_lease(
    lease_id: UUID,
    actor: AuthorizationContext = Depends(get_auth_context),
    lifecycle: LeaseLifecycleOrchestrator = Depends(get_lifecycle),
):
    lease = lifecycle.activate(lease_id, actor)
    return _ok(_out(lease), "Lease activated")


@router.post("/{lease_id}/terminate")
def terminate_lease(
    lease_id: UUID,
    payload: TerminateLeaseRequest,
    actor: AuthorizationContext = Depends(get_auth_context),
    lifecycle: LeaseLifecycleOrchestrator = Depends(get_lifecycle),
):
    lease = lifecycle.terminate(lease_id, payload, actor)
    return _ok(_out(lease), "Lease terminated")


@router.post("/{lease_id}/renew", status_code=status.HTTP_201_CREATED)
def renew_lease(
    lease_id: UUID,
    payload: RenewLeaseRequest,
    actor: AuthorizationContext = Depends(get_auth_context),
    lifecycle: LeaseLifecycleOrchestrator = Depends(get_lifecycle),
):
    """Returns the new DRAFT lease."""
    lease = lifecycle.renew(lease_id, payload, actor)
    return _ok(_out(lease), "Lease renewed")


@router.post("/{lease_id}/transfer", status_code=status.HTTP_201_CREATED)
def transfer_lease(
    lease_id: UUID,
    payload: TransferLeaseRequest,
    actor: AuthorizationContext = Depends(get_auth_context),
    lifecycle: LeaseLifecycleOrchestrator = Depends(get_lifecycle),
):
    """Returns the new DRAFT lease."""
    lease = lifecycle.transfer(lease_id, payload, actor)
    return _ok(_out(lease), "Lease transferred")


@router.get("/{lease_id}/renewal-chain")
def renewal_chain(
    lease_id: UUID,
    actor: AuthorizationContext = Depends(get_auth_context),
    lifecycle: LeaseLifecycleOrchestrator = Depends(get_lifecycle),
):
    chain: List[Lease] = lifecycle.renewal_chain(lease_id, actor)
    return _ok([_out(l) for l in chain])
