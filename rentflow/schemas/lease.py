"""
Lease Lifecycle Schemas
Pydantic v2 request/response models for the /api/leases routes.
Date ordering (end_date > start_date) is checked by the lifecycle engine,
which answers with INVALID_LEASE_DATES rather than a generic 422.
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from rentflow.models.lease import LeaseStatus, LeaseType


def _upper_currency(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip().upper()
    if len(v) != 3 or not v.isalpha():
        raise ValueError("currency must be a 3-letter ISO code")
    return v


# ─────────────────────── Lease terms ───────────────────────

class LeaseTerms(BaseModel):
    """Financial and contractual terms shared by create and update."""
    landlord_user_id: Optional[UUID] = None

    signed_date: Optional[date] = None
    move_in_date: Optional[date] = None
    billing_start_date: Optional[date] = None
    prorated_first_month: bool = False
    grace_period_days: int = Field(0, ge=0, le=90)

    security_deposit: Optional[float] = Field(None, ge=0)
    pet_deposit: Optional[float] = Field(None, ge=0)
    pet_rent: Optional[float] = Field(None, ge=0)
    late_fee_amount: Optional[float] = Field(None, ge=0)
    utilities_included: bool = False
    utility_costs: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = None

    lease_term: Optional[int] = Field(None, ge=1)  # months
    renewal_options: Optional[str] = None
    notice_period: Optional[int] = Field(None, ge=0)  # days
    pet_policy: Optional[str] = None
    smoking_policy: Optional[str] = None
    terms: Optional[str] = None

    co_tenants: Optional[List[Dict[str, Any]]] = None
    guarantor_info: Optional[Dict[str, Any]] = None
    documents: Optional[List[Any]] = None
    notes: Optional[str] = None
    tags: Optional[List[str]] = None

    @field_validator("currency")
    @classmethod
    def check_currency(cls, v: Optional[str]) -> Optional[str]:
        return _upper_currency(v)


class LeaseCreate(LeaseTerms):
    """tenant_id may be a tenant-profile id or the tenant's user id."""
    tenant_id: UUID
    unit_id: UUID
    lease_number: Optional[str] = Field(None, max_length=50)
    lease_type: LeaseType = LeaseType.FIXED_TERM
    start_date: date
    end_date: date
    monthly_rent: float = Field(..., gt=0)


class LeaseUpdate(BaseModel):
    """Partial update. Only fields actually sent are applied."""
    landlord_user_id: Optional[UUID] = None
    lease_type: Optional[LeaseType] = None

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    signed_date: Optional[date] = None
    move_in_date: Optional[date] = None
    move_out_date: Optional[date] = None
    renewal_date: Optional[date] = None
    notice_to_vacate_date: Optional[date] = None
    billing_start_date: Optional[date] = None
    prorated_first_month: Optional[bool] = None
    grace_period_days: Optional[int] = Field(None, ge=0, le=90)

    monthly_rent: Optional[float] = Field(None, gt=0)
    security_deposit: Optional[float] = Field(None, ge=0)
    pet_deposit: Optional[float] = Field(None, ge=0)
    pet_rent: Optional[float] = Field(None, ge=0)
    late_fee_amount: Optional[float] = Field(None, ge=0)
    utilities_included: Optional[bool] = None
    utility_costs: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = None

    lease_term: Optional[int] = Field(None, ge=1)
    renewal_options: Optional[str] = None
    notice_period: Optional[int] = Field(None, ge=0)
    pet_policy: Optional[str] = None
    smoking_policy: Optional[str] = None
    terms: Optional[str] = None

    co_tenants: Optional[List[Dict[str, Any]]] = None
    guarantor_info: Optional[Dict[str, Any]] = None
    documents: Optional[List[Any]] = None
    notes: Optional[str] = None
    tags: Optional[List[str]] = None

    @field_validator("currency")
    @classmethod
    def check_currency(cls, v: Optional[str]) -> Optional[str]:
        return _upper_currency(v)


# ─────────────────────── Transitions ───────────────────────

class TerminateLeaseRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=255)
    notes: Optional[str] = None
    actual_termination_date: Optional[date] = None


class RenewLeaseRequest(BaseModel):
    """New terms; anything left out is copied from the lease being renewed."""
    start_date: date
    end_date: date
    monthly_rent: float = Field(..., gt=0)
    security_deposit: Optional[float] = Field(None, ge=0)
    lease_type: Optional[LeaseType] = None
    prorated_first_month: Optional[bool] = None
    grace_period_days: Optional[int] = Field(None, ge=0, le=90)
    notes: Optional[str] = None


class TransferLeaseRequest(BaseModel):
    """At least one target is required; checked by the lifecycle engine."""
    new_tenant_id: Optional[UUID] = None
    new_unit_id: Optional[UUID] = None


# ─────────────────────── Responses ───────────────────────

class LeaseOut(BaseModel):
    id: UUID
    lease_number: Optional[str]
    status: LeaseStatus
    lease_type: LeaseType

    tenant_id: UUID
    unit_id: UUID
    company_id: UUID
    landlord_user_id: Optional[UUID] = None

    start_date: date
    end_date: date
    move_in_date: Optional[date] = None
    move_out_date: Optional[date] = None
    signed_date: Optional[date] = None
    renewal_date: Optional[date] = None
    notice_to_vacate_date: Optional[date] = None
    billing_start_date: Optional[date] = None
    prorated_first_month: bool
    grace_period_days: int

    monthly_rent: float
    security_deposit: Optional[float] = None
    pet_deposit: Optional[float] = None
    pet_rent: Optional[float] = None
    late_fee_amount: Optional[float] = None
    utilities_included: bool
    utility_costs: Optional[float] = None
    currency: str

    termination_reason: Optional[str] = None
    terminated_by: Optional[UUID] = None
    termination_notes: Optional[str] = None
    actual_termination_date: Optional[date] = None

    renewed_from_lease_id: Optional[UUID] = None
    renewed_to_lease_id: Optional[UUID] = None

    lease_term: Optional[int] = None
    renewal_options: Optional[str] = None
    notice_period: Optional[int] = None
    pet_policy: Optional[str] = None
    smoking_policy: Optional[str] = None
    terms: Optional[str] = None
    co_tenants: Optional[List[Dict[str, Any]]] = None
    guarantor_info: Optional[Dict[str, Any]] = None
    documents: Optional[List[Any]] = None
    notes: Optional[str] = None
    tags: Optional[List[str]] = None

    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ExpirySweepOut(BaseModel):
    run_date: date
    expired: List[UUID]
    skipped: List[UUID]
    failed: Dict[str, str]
