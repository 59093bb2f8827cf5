"""
Company & Membership Models
A company owns properties, units, tenant profiles and leases.
Users take part in a company through a membership carrying their role.
"""
from enum import Enum
from sqlalchemy import String, Boolean, ForeignKey, Enum as SQLEnum, Uuid, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
import uuid

from rentflow.db.base import Base, TimestampMixin


class CompanyRole(str, Enum):
    COMPANY_ADMIN = "COMPANY_ADMIN"
    MANAGER = "MANAGER"
    LANDLORD = "LANDLORD"
    STAFF = "STAFF"
    TENANT = "TENANT"


class Company(Base, TimestampMixin):
    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    memberships = relationship("CompanyMembership", back_populates="company", cascade="all, delete-orphan")


class CompanyMembership(Base, TimestampMixin):
    """A user's role inside one company."""
    __tablename__ = "company_memberships"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("companies.id"), nullable=False, index=True)
    role: Mapped[CompanyRole] = mapped_column(SQLEnum(CompanyRole), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    company = relationship("Company", back_populates="memberships")
    user = relationship("User", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("user_id", "company_id", name="uq_company_memberships_user_company"),
        Index("idx_company_memberships_company_role", "company_id", "role"),
    )
