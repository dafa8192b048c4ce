# driverqueue/services/intake_service.py
"""
Driver intake: puts a new driver at the back of the WAITING queue.
Field normalisation (plate upper-case, phone to E.164) happens in DriverCreate;
this module only enforces the one-active-entry-per-plate rule.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from driverqueue.models.driver import ACTIVE_STATUSES, Driver, DriverStatus
from driverqueue.schemas.driver import DriverCreate, DriverOut
from driverqueue.services.queue_errors import DuplicateEntry
from driverqueue.services.queue_service import queue_lock
from driverqueue.utils.logger import get_logger

logger = get_logger(__name__)


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def find_active_by_plate(db: Session, plate: str) -> Optional[Driver]:
    """WAITING or CALLED entry for this plate, if any."""
    return (
        db.query(Driver)
        .filter(Driver.plate == plate, Driver.status.in_(ACTIVE_STATUSES))
        .first()
    )


def add_driver(db: Session, data: DriverCreate, now: Optional[datetime] = None) -> DriverOut:
    entry_time = _as_naive_utc(data.entry_time) if data.entry_time else (now or datetime.utcnow())

    with queue_lock:
        if find_active_by_plate(db, data.plate):
            db.rollback()
            logger.warning(f"[INTAKE] Rejected {data.plate}: already active in the queue")
            raise DuplicateEntry(data.plate)

        driver = Driver(
            name=data.name,
            plate=data.plate,
            phone_number=data.phone_number,
            status=DriverStatus.WAITING,
            entry_time=entry_time,
            call_attempts=0,
        )
        db.add(driver)
        db.commit()
        created = DriverOut.model_validate(driver)

    logger.info(f"[INTAKE] Driver {created.id} added: {created.name} ({created.plate})")
    return created
