"""
Lease Domain Errors
Typed exceptions raised by the lease lifecycle engine.
Every error carries an error_code, an HTTP status and structured details;
main.py turns them into the JSON error envelope.
"""
from typing import Any, Dict, Optional
from uuid import UUID


class LeaseError(Exception):
    """Base class for every lease lifecycle error."""

    error_code = "LEASE_ERROR"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error_code": self.error_code,
            "detail": self.message,
            "details": {k: str(v) if isinstance(v, UUID) else v for k, v in self.details.items()},
        }


# ─────────────────────── Not found ───────────────────────

class LeaseNotFound(LeaseError):
    error_code = "LEASE_NOT_FOUND"
    status_code = 404

    def __init__(self, lease_id):
        super().__init__(f"Lease {lease_id} not found", {"lease_id": lease_id})


class UnitNotFound(LeaseError):
    error_code = "UNIT_NOT_FOUND"
    status_code = 404

    def __init__(self, unit_id):
        super().__init__(f"Unit {unit_id} not found", {"unit_id": unit_id})


class TenantNotFound(LeaseError):
    error_code = "TENANT_NOT_FOUND"
    status_code = 404

    def __init__(self, tenant_id, company_id=None):
        details = {"tenant_id": tenant_id}
        if company_id is not None:
            details["company_id"] = company_id
        super().__init__(f"Tenant {tenant_id} not found", details)


# ─────────────────────── Permissions ───────────────────────

class InsufficientPermissions(LeaseError):
    error_code = "INSUFFICIENT_PERMISSIONS"
    status_code = 403

    def __init__(self, action: str, company_id=None):
        super().__init__(
            f"Insufficient permissions to {action}",
            {"action": action, "company_id": company_id},
        )


# ─────────────────────── Preconditions ───────────────────────

class ValidationError(LeaseError):
    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str, **details):
        super().__init__(message, details)


class InvalidLeaseState(LeaseError):
    """Lease status does not allow the requested operation."""
    error_code = "INVALID_LEASE_STATE"

    def __init__(self, lease_id, current_status, message: Optional[str] = None, **details):
        status_value = getattr(current_status, "value", current_status)
        super().__init__(
            message or f"Lease {lease_id} cannot be changed while {status_value}",
            {"lease_id": lease_id, "current_status": status_value, **details},
        )


class LeaseNotDraft(InvalidLeaseState):
    error_code = "LEASE_NOT_DRAFT"

    def __init__(self, lease_id, current_status):
        status_value = getattr(current_status, "value", current_status)
        super().__init__(
            lease_id, current_status,
            f"Lease {lease_id} must be DRAFT (currently {status_value})",
        )


class LeaseNotActive(InvalidLeaseState):
    error_code = "LEASE_NOT_ACTIVE"

    def __init__(self, lease_id, current_status):
        status_value = getattr(current_status, "value", current_status)
        super().__init__(
            lease_id, current_status,
            f"Lease {lease_id} is not active (currently {status_value})",
        )


class LeaseAlreadyActive(InvalidLeaseState):
    error_code = "LEASE_ALREADY_ACTIVE"

    def __init__(self, lease_id):
        super().__init__(lease_id, "ACTIVE", f"Lease {lease_id} is already active")


class UnitAlreadyLeased(LeaseError):
    error_code = "UNIT_ALREADY_LEASED"
    status_code = 409

    def __init__(self, unit_id, active_lease_id=None):
        super().__init__(
            f"Unit {unit_id} already has an active lease",
            {"unit_id": unit_id, "active_lease_id": active_lease_id},
        )


class UnitUnavailable(LeaseError):
    error_code = "UNIT_UNAVAILABLE"

    def __init__(self, unit_id, unit_status, message: Optional[str] = None):
        status_value = getattr(unit_status, "value", unit_status)
        super().__init__(
            message or f"Unit {unit_id} is not available (status {status_value})",
            {"unit_id": unit_id, "unit_status": status_value},
        )


class CannotActivateUnavailableUnit(UnitUnavailable):
    error_code = "CANNOT_ACTIVATE_UNAVAILABLE_UNIT"

    def __init__(self, unit_id, unit_status):
        status_value = getattr(unit_status, "value", unit_status)
        super().__init__(
            unit_id, unit_status,
            f"Cannot activate lease: unit {unit_id} is {status_value}",
        )


class InvalidLeaseDates(LeaseError):
    error_code = "INVALID_LEASE_DATES"

    def __init__(self, start_date, end_date):
        super().__init__(
            "end_date must be after start_date",
            {"start_date": str(start_date), "end_date": str(end_date)},
        )


class CannotUpdateActiveLeaseField(LeaseError):
    error_code = "CANNOT_UPDATE_ACTIVE_LEASE_FIELD"

    def __init__(self, lease_id, field: str):
        super().__init__(
            f"Field '{field}' cannot be changed on an active lease",
            {"lease_id": lease_id, "field": field},
        )
