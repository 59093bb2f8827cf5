"""
Authorization Context
Who is calling, and with which role in which company.
A super admin bypasses company role checks; everyone else is a company member
whose roles come from their active memberships.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Union
from uuid import UUID

from sqlalchemy.orm import Session

from rentflow.models.company import CompanyMembership, CompanyRole
from rentflow.models.user import User
from rentflow.services.errors import InsufficientPermissions

logger = logging.getLogger(__name__)

# Roles allowed to drive lease transitions
TRANSITION_ROLES = frozenset({CompanyRole.COMPANY_ADMIN, CompanyRole.MANAGER})
# Roles allowed to draft and edit leases
EDIT_ROLES = frozenset({CompanyRole.COMPANY_ADMIN, CompanyRole.MANAGER, CompanyRole.LANDLORD})


@dataclass(frozen=True)
class SuperAdmin:
    user_id: UUID

    def role_in(self, company_id: UUID) -> Optional[CompanyRole]:
        return None


@dataclass(frozen=True)
class CompanyMember:
    user_id: UUID
    roles_by_company: Mapping[UUID, CompanyRole] = field(default_factory=dict)

    def role_in(self, company_id: UUID) -> Optional[CompanyRole]:
        return self.roles_by_company.get(company_id)


AuthorizationContext = Union[SuperAdmin, CompanyMember]


def require_role(
    actor: AuthorizationContext,
    company_id: UUID,
    allowed: Iterable[CompanyRole],
    action: str,
) -> None:
    """Raise InsufficientPermissions unless actor holds one of `allowed` in the company."""
    if isinstance(actor, SuperAdmin):
        return
    role = actor.role_in(company_id)
    if role is None or role not in allowed:
        logger.warning(
            f"[AUTH] User {actor.user_id} denied '{action}' in company {company_id} (role: {role})"
        )
        raise InsufficientPermissions(action, company_id)


def is_company_member(actor: AuthorizationContext, company_id: UUID) -> bool:
    return isinstance(actor, SuperAdmin) or actor.role_in(company_id) is not None


def build_authorization_context(db: Session, user: User) -> AuthorizationContext:
    """Build the caller's context from the user row and its active memberships."""
    if user.is_super_admin:
        return SuperAdmin(user_id=user.id)

    memberships = (
        db.query(CompanyMembership)
        .filter(
            CompanyMembership.user_id == user.id,
            CompanyMembership.is_active == True,  # noqa: E712
        )
        .all()
    )
    return CompanyMember(
        user_id=user.id,
        roles_by_company={m.company_id: m.role for m in memberships},
    )
