"""
Unit Availability Gate
At most one ACTIVE lease per unit; unit status mirrors lease activation,
termination and expiry.
"""
import logging
from typing import Optional
from uuid import UUID

from rentflow.models.property import Unit, UnitStatus
from rentflow.services.errors import CannotActivateUnavailableUnit, UnitAlreadyLeased
from rentflow.services.store import EntityStore

logger = logging.getLogger(__name__)


class UnitAvailabilityGate:
    def __init__(self, store: EntityStore):
        self.store = store

    def assert_no_active_lease(self, unit_id: UUID, exclude_lease_id: Optional[UUID] = None) -> None:
        existing = self.store.active_lease_on_unit(unit_id, exclude_lease_id=exclude_lease_id)
        if existing is not None:
            raise UnitAlreadyLeased(unit_id, existing.id)

    def assert_activatable(self, unit_id: UUID, lease_id: UUID, held_by_renewed_lease: bool = False) -> Unit:
        """
        Lock the unit row and check it can take `lease_id` as its active lease.

        A renewal leaves the unit OCCUPIED under the renewed lease until its
        successor is activated; `held_by_renewed_lease` lets that successor in.
        Returns the locked unit.
        """
        unit = self.store.get_unit(unit_id, for_update=True)
        self.assert_no_active_lease(unit_id, exclude_lease_id=lease_id)
        if unit.status == UnitStatus.AVAILABLE:
            return unit
        if unit.status == UnitStatus.OCCUPIED and held_by_renewed_lease:
            logger.info(f"[UNIT] Unit {unit_id} handed over from renewed lease to {lease_id}")
            return unit
        raise CannotActivateUnavailableUnit(unit_id, unit.status)

    def on_activated(self, unit_id: UUID) -> Unit:
        unit = self.store.get_unit(unit_id)
        self.store.update(unit, status=UnitStatus.OCCUPIED)
        logger.info(f"[UNIT] Unit {unit_id} marked OCCUPIED")
        return unit

    def on_vacated(self, unit_id: UUID) -> Unit:
        unit = self.store.get_unit(unit_id)
        if unit.status == UnitStatus.AVAILABLE:
            return unit
        self.store.update(unit, status=UnitStatus.AVAILABLE)
        logger.info(f"[UNIT] Unit {unit_id} marked AVAILABLE")
        return unit
