"""
Lease Lifecycle Models
Table: leases

Status changes only through the lease lifecycle engine
(rentflow.services.lease_lifecycle); nothing else writes `status`.
"""
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlalchemy import (
    String, Integer, Date, Boolean, ForeignKey, Text, JSON,
    Enum as SQLEnum, Uuid, Index, Numeric, text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
import uuid

from rentflow.db.base import Base, TimestampMixin


class LeaseStatus(str, Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    TERMINATED = "TERMINATED"
    RENEWED = "RENEWED"


class LeaseType(str, Enum):
    FIXED_TERM = "FIXED_TERM"
    MONTH_TO_MONTH = "MONTH_TO_MONTH"
    SHORT_TERM = "SHORT_TERM"
    COMMERCIAL = "COMMERCIAL"


class Lease(Base, TimestampMixin):
    """Occupancy agreement between one tenant and one unit."""
    __tablename__ = "leases"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Immutable once created. tenant_id is the tenant's *user* id.
    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    unit_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("units.id"), nullable=False)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("companies.id"), nullable=False)
    landlord_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("users.id"), nullable=True)

    # Lease information
    lease_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status: Mapped[LeaseStatus] = mapped_column(
        SQLEnum(LeaseStatus), default=LeaseStatus.DRAFT, nullable=False
    )
    lease_type: Mapped[LeaseType] = mapped_column(
        SQLEnum(LeaseType), default=LeaseType.FIXED_TERM, nullable=False
    )

    # Dates
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    move_in_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    move_out_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    signed_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    renewal_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    notice_to_vacate_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Billing controls (snapshot only, no proration here)
    billing_start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    prorated_first_month: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    grace_period_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Financial terms, copied forward on renewal/transfer
    monthly_rent: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    security_deposit: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    pet_deposit: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    pet_rent: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    late_fee_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    utilities_included: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    utility_costs: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), default="KES", nullable=False)

    # Termination metadata
    termination_reason: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    terminated_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    termination_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    actual_termination_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Renewal chain: at most one predecessor and one successor
    renewed_from_lease_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("leases.id", ondelete="SET NULL"), nullable=True
    )
    renewed_to_lease_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("leases.id", ondelete="SET NULL"), nullable=True
    )

    # Terms & conditions
    lease_term: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # months
    renewal_options: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notice_period: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # days
    pet_policy: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    smoking_policy: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    terms: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Additional
    co_tenants: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    guarantor_info: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    documents: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tags: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)

    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    # Soft-delete flag; only DRAFT leases are ever deactivated
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    unit = relationship("Unit", foreign_keys=[unit_id])
    tenant = relationship("User", foreign_keys=[tenant_id])

    __table_args__ = (
        Index("idx_leases_unit_status", "unit_id", "status"),
        Index("idx_leases_tenant_company_status", "tenant_id", "company_id", "status"),
        Index("idx_leases_status_end_date", "status", "end_date"),
        Index("idx_leases_company", "company_id"),
        # At most one ACTIVE lease per unit, enforced by the database as well
        Index(
            "uq_leases_one_active_per_unit",
            "unit_id",
            unique=True,
            postgresql_where=text("status = 'ACTIVE'"),
            sqlite_where=text("status = 'ACTIVE'"),
        ),
    )
