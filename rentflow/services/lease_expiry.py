"""
Lease Expiry Scheduling
Runs the expiry sweep on its own database session, either on demand or as the
daily Celery beat task.
"""
import logging
from datetime import date
from typing import Optional

from rentflow.database import SessionLocal
from rentflow.services.lease_lifecycle import ExpirySweepReport, LeaseLifecycleOrchestrator
from rentflow.services.store import EntityStore
from rentflow.worker import celery_app

logger = logging.getLogger(__name__)


def run_expiry_sweep(today: Optional[date] = None, session_factory=None) -> ExpirySweepReport:
    """Open a session, expire overdue leases, close the session."""
    db = (session_factory or SessionLocal)()
    try:
        return LeaseLifecycleOrchestrator(EntityStore(db)).check_and_expire_leases(today)
    finally:
        db.close()


@celery_app.task(name="rentflow.services.lease_expiry.expire_leases")
def expire_leases():
    report = run_expiry_sweep()
    logger.info(
        f"[LEASE][SWEEP] Scheduled run {report.run_date}: {len(report.expired)} expired, "
        f"{len(report.skipped)} skipped, {len(report.failed)} failed"
    )
    return {
        "run_date": report.run_date.isoformat(),
        "expired": [str(lease_id) for lease_id in report.expired],
        "skipped": [str(lease_id) for lease_id in report.skipped],
        "failed": {str(k): v for k, v in report.failed.items()},
    }
