"""
Lease State Machine
Owns lease status transition legality. Pure: no unit or tenant knowledge.

    DRAFT ──activate──▶ ACTIVE ──terminate──▶ TERMINATED
      │                   │ └────expire─────▶ EXPIRED ──renew──┐
    delete                └──────renew──────────────────────▶ RENEWED
"""
from typing import Dict, FrozenSet

from rentflow.models.lease import LeaseStatus
from rentflow.services.errors import InvalidLeaseState

_TRANSITIONS: Dict[LeaseStatus, FrozenSet[LeaseStatus]] = {
    LeaseStatus.DRAFT: frozenset({LeaseStatus.ACTIVE}),
    LeaseStatus.ACTIVE: frozenset({LeaseStatus.TERMINATED, LeaseStatus.EXPIRED, LeaseStatus.RENEWED}),
    LeaseStatus.EXPIRED: frozenset({LeaseStatus.RENEWED}),
    LeaseStatus.TERMINATED: frozenset(),
    LeaseStatus.RENEWED: frozenset(),
}

# Fields that stay editable once a lease is live
ACTIVE_EDITABLE_FIELDS = frozenset({
    "notes",
    "tags",
    "documents",
    "move_in_date",
    "move_out_date",
    "renewal_date",
    "notice_to_vacate_date",
    "landlord_user_id",
})

DRAFT_EDITABLE_FIELDS = frozenset({
    "lease_type",
    "start_date",
    "end_date",
    "signed_date",
    "billing_start_date",
    "prorated_first_month",
    "grace_period_days",
    "monthly_rent",
    "security_deposit",
    "pet_deposit",
    "pet_rent",
    "late_fee_amount",
    "utilities_included",
    "utility_costs",
    "currency",
    "lease_term",
    "renewal_options",
    "notice_period",
    "pet_policy",
    "smoking_policy",
    "terms",
    "co_tenants",
    "guarantor_info",
}) | ACTIVE_EDITABLE_FIELDS


class LeaseStateMachine:
    """Transition table for lease statuses."""

    initial = LeaseStatus.DRAFT

    @staticmethod
    def can_transition(current: LeaseStatus, target: LeaseStatus) -> bool:
        return target in _TRANSITIONS.get(current, frozenset())

    @classmethod
    def assert_transition(cls, current: LeaseStatus, target: LeaseStatus, lease_id=None) -> None:
        if not cls.can_transition(current, target):
            raise InvalidLeaseState(
                lease_id,
                current,
                f"Cannot move lease {lease_id} from {current.value} to {target.value}",
                target_status=target.value,
            )

    @staticmethod
    def can_delete(current: LeaseStatus) -> bool:
        return current == LeaseStatus.DRAFT

    @staticmethod
    def editable_fields(current: LeaseStatus) -> FrozenSet[str]:
        if current == LeaseStatus.DRAFT:
            return DRAFT_EDITABLE_FIELDS
        if current == LeaseStatus.ACTIVE:
            return ACTIVE_EDITABLE_FIELDS
        return frozenset()

