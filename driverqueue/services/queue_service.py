# driverqueue/services/queue_service.py
"""
Driver queue state machine.

    WAITING --call_next--> CALLED --mark_attended--> ATTENDED
                           CALLED --mark_no_show---> NO_SHOW
                           CALLED --recall---------> CALLED   (call_attempts + 1)
    WAITING --clear_waiting------------------------> CLEARED

Every write runs under queue_lock and is applied as a guarded UPDATE
(WHERE status = <expected source>), so a second writer sharing the database
can never move the same entry twice. Callers get DriverOut snapshots, never
live ORM rows.
"""

import threading
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from driverqueue.models.driver import Driver, DriverStatus
from driverqueue.schemas.driver import DriverOut, QueueSnapshotOut
from driverqueue.services.queue_errors import EmptyQueue, InvalidTransition, NotFound
from driverqueue.utils.logger import get_logger

logger = get_logger(__name__)

# Serialises every mutating queue operation in this process
queue_lock = threading.Lock()


def _waiting_query(db: Session):
    return (
        db.query(Driver)
        .filter(Driver.status == DriverStatus.WAITING)
        .order_by(Driver.entry_time.asc(), Driver.id.asc())
    )


def _called_query(db: Session):
    return (
        db.query(Driver)
        .filter(Driver.status == DriverStatus.CALLED)
        .order_by(Driver.called_time.asc(), Driver.id.asc())
    )


def _called_at(driver: Driver, now: datetime) -> datetime:
    # called_time may never precede entry_time
    return max(now, driver.entry_time)


def list_waiting(db: Session) -> list[DriverOut]:
    """WAITING drivers in FIFO order (entry_time, then creation order)."""
    return [DriverOut.model_validate(d) for d in _waiting_query(db).all()]


def list_called(db: Session) -> list[DriverOut]:
    return [DriverOut.model_validate(d) for d in _called_query(db).all()]


def queue_snapshot(db: Session, now: Optional[datetime] = None) -> QueueSnapshotOut:
    """
    Both admin lists from a single SELECT, so they always agree with each other.
    Takes no lock; polling clients never wait on writers.
    """
    rows = (
        db.query(Driver)
        .filter(Driver.status.in_((DriverStatus.WAITING, DriverStatus.CALLED)))
        .all()
    )
    waiting = sorted(
        (d for d in rows if d.status == DriverStatus.WAITING),
        key=lambda d: (d.entry_time, d.id),
    )
    called = sorted(
        (d for d in rows if d.status == DriverStatus.CALLED),
        key=lambda d: (d.called_time, d.id),
    )
    return QueueSnapshotOut(
        waiting=[DriverOut.model_validate(d) for d in waiting],
        called=[DriverOut.model_validate(d) for d in called],
        generated_at=now or datetime.utcnow(),
    )


def get_driver(db: Session, driver_id: int) -> DriverOut:
    driver = db.get(Driver, driver_id)
    if driver is None:
        raise NotFound(driver_id)
    return DriverOut.model_validate(driver)


def count_by_status(db: Session) -> dict:
    rows = db.query(Driver.status, func.count(Driver.id)).group_by(Driver.status).all()
    counts = {status.value: 0 for status in DriverStatus}
    for status, total in rows:
        counts[DriverStatus(status).value] = total
    return counts


def call_next(db: Session, now: Optional[datetime] = None) -> DriverOut:
    """
    Claim the oldest WAITING driver and move it to CALLED.
    Raises EmptyQueue when nobody is waiting.
    """
    now = now or datetime.utcnow()
    with queue_lock:
        while True:
            candidate = _waiting_query(db).with_for_update(skip_locked=True).first()
            if candidate is None:
                db.rollback()
                logger.info("[QUEUE] call-next requested but nobody is waiting")
                raise EmptyQueue()

            claimed = (
                db.query(Driver)
                .filter(Driver.id == candidate.id, Driver.status == DriverStatus.WAITING)
                .update(
                    {
                        Driver.status: DriverStatus.CALLED,
                        Driver.called_time: _called_at(candidate, now),
                        Driver.call_attempts: 1,
                    },
                    synchronize_session=False,
                )
            )
            if claimed:
                db.commit()
                called = DriverOut.model_validate(candidate)
                break

            # Another writer took this one between SELECT and UPDATE
            db.rollback()
            logger.debug(f"[QUEUE] Driver {candidate.id} claimed elsewhere, trying next")

    logger.info(f"[QUEUE] Called driver {called.id} ({called.name}, {called.plate})")
    return called


def _transition(
    db: Session,
    driver_id: int,
    action: str,
    source: DriverStatus,
    values: Callable[[Driver], dict],
) -> DriverOut:
    """Apply a single-entry transition from `source`, or raise without mutating anything."""
    with queue_lock:
        driver = db.get(Driver, driver_id, populate_existing=True)
        if driver is None:
            db.rollback()
            raise NotFound(driver_id)
        if driver.status != source:
            current = driver.status
            db.rollback()
            raise InvalidTransition(driver_id, action, current)

        updated = (
            db.query(Driver)
            .filter(Driver.id == driver_id, Driver.status == source)
            .update(values(driver), synchronize_session=False)
        )
        if not updated:
            db.rollback()
            raise InvalidTransition(driver_id, action, driver.status)
        db.commit()
        return DriverOut.model_validate(driver)


def recall(db: Session, driver_id: int, now: Optional[datetime] = None) -> DriverOut:
    """Call a CALLED driver again. Never converts the driver to NO_SHOW."""
    now = now or datetime.utcnow()
    driver = _transition(
        db, driver_id, "recall", DriverStatus.CALLED,
        lambda d: {
            Driver.called_time: _called_at(d, now),
            Driver.call_attempts: Driver.call_attempts + 1,
        },
    )
    logger.info(f"[QUEUE] Recalled driver {driver.id} ({driver.name}), attempt {driver.call_attempts}")
    return driver


def mark_attended(db: Session, driver_id: int) -> DriverOut:
    driver = _transition(
        db, driver_id, "mark attended", DriverStatus.CALLED,
        lambda d: {Driver.status: DriverStatus.ATTENDED},
    )
    logger.info(f"[QUEUE] Driver {driver.id} ({driver.name}) attended")
    return driver


def mark_no_show(db: Session, driver_id: int) -> DriverOut:
    driver = _transition(
        db, driver_id, "mark no-show", DriverStatus.CALLED,
        lambda d: {Driver.status: DriverStatus.NO_SHOW},
    )
    logger.info(f"[QUEUE] Driver {driver.id} ({driver.name}) marked no-show")
    return driver


def clear_waiting(db: Session) -> int:
    """Move every WAITING driver to CLEARED in one statement. Returns the count."""
    with queue_lock:
        cleared = (
            db.query(Driver)
            .filter(Driver.status == DriverStatus.WAITING)
            .update({Driver.status: DriverStatus.CLEARED}, synchronize_session=False)
        )
        db.commit()

    if cleared:
        logger.warning(f"[QUEUE] Waiting list cleared, {cleared} driver(s) set to CLEARED")
    else:
        logger.info("[QUEUE] Clear requested but the waiting list was already empty")
    return cleared
