from enum import Enum
from sqlalchemy import Column, String, ForeignKey, Integer, Float, Text, Boolean, Numeric, Uuid, Enum as SQLEnum, UniqueConstraint, Index
from sqlalchemy.orm import relationship
import uuid

from rentflow.db.base import Base, TimestampMixin


class UnitStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    MAINTENANCE = "MAINTENANCE"
    UNAVAILABLE = "UNAVAILABLE"


class Property(Base, TimestampMixin):
    __tablename__ = "properties"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(Uuid, ForeignKey("companies.id"), nullable=False, index=True)

    name = Column(String, nullable=False)
    address = Column(String, nullable=False)
    property_type = Column(String)  # residential, commercial, mixed
    description = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    units = relationship("Unit", back_populates="property", cascade="all, delete-orphan")


class Unit(Base, TimestampMixin):
    __tablename__ = "units"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False)
    company_id = Column(Uuid, ForeignKey("companies.id"), nullable=False)

    unit_number = Column(String(50), nullable=False)
    bedrooms = Column(Integer)
    bathrooms = Column(Float)
    square_feet = Column(Integer)
    monthly_rent = Column(Numeric(10, 2))
    # Mirrors the unit's single ACTIVE lease; written only by the lease engine
    status = Column(SQLEnum(UnitStatus), default=UnitStatus.AVAILABLE, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    property = relationship("Property", back_populates="units")

    __table_args__ = (
        UniqueConstraint("property_id", "unit_number", name="uq_units_property_number"),
        Index("idx_units_company_status", "company_id", "status"),
    )
