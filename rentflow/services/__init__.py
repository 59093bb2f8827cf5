from rentflow.services.lease_lifecycle import LeaseLifecycleOrchestrator, ExpirySweepReport
from rentflow.services.lease_state_machine import LeaseStateMachine
from rentflow.services.store import EntityStore
from rentflow.services.tenant_status import TenantStatusResolver
from rentflow.services.unit_availability import UnitAvailabilityGate

__all__ = [
    "LeaseLifecycleOrchestrator",
    "ExpirySweepReport",
    "LeaseStateMachine",
    "EntityStore",
    "TenantStatusResolver",
    "UnitAvailabilityGate",
]
