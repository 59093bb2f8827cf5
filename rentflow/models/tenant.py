"""
Tenant Profile Model - Property Management
One profile per (user, company); status is derived from the tenant's active leases
"""
from datetime import date
from enum import Enum
from sqlalchemy import String, Date, Boolean, Text, ForeignKey, Uuid, Enum as SQLEnum, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
import uuid

from rentflow.db.base import Base, TimestampMixin


class TenantStatus(str, Enum):
    PENDING = "PENDING"  # Tenant created, no lease yet
    ACTIVE = "ACTIVE"    # Has an active lease
    FORMER = "FORMER"    # All leases ended


class TenantProfile(Base, TimestampMixin):
    """
    Tenant profile for property management
    Linked to User via user_id, scoped to a single company
    """
    __tablename__ = "tenant_profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("companies.id"), nullable=False, index=True)

    # Contact details
    phone: Mapped[str] = mapped_column(String(20), nullable=True)
    id_number: Mapped[str] = mapped_column(String(50), nullable=True)  # National ID
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=True)
    emergency_contact_name: Mapped[str] = mapped_column(String(255), nullable=True)
    emergency_contact_phone: Mapped[str] = mapped_column(String(20), nullable=True)

    # Written only by the tenant status resolver
    status: Mapped[TenantStatus] = mapped_column(
        SQLEnum(TenantStatus), default=TenantStatus.PENDING, nullable=False, index=True
    )

    notes: Mapped[str] = mapped_column(Text, nullable=True)
    email_notifications: Mapped[bool] = mapped_column(Boolean, default=True)
    sms_notifications: Mapped[bool] = mapped_column(Boolean, default=True)

    # Relationships
    user = relationship("User", back_populates="tenant_profiles")

    __table_args__ = (
        UniqueConstraint("user_id", "company_id", name="uq_tenant_profiles_user_company"),
        Index("idx_tenant_profiles_company_status", "company_id", "status"),
    )
