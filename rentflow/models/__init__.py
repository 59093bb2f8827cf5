# Import all models in correct order so SQLAlchemy can resolve string relationships
from rentflow.models.company import Company, CompanyMembership, CompanyRole
from rentflow.models.user import User
from rentflow.models.property import Property, Unit, UnitStatus
from rentflow.models.tenant import TenantProfile, TenantStatus
from rentflow.models.lease import Lease, LeaseStatus, LeaseType

__all__ = [
    "Company",
    "CompanyMembership",
    "CompanyRole",
    "User",
    "Property",
    "Unit",
    "UnitStatus",
    "TenantProfile",
    "TenantStatus",
    "Lease",
    "LeaseStatus",
    "LeaseType",
]
