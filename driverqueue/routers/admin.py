# driverqueue/routers/admin.py
"""
Admin queue endpoints, polled and driven by the admin page.
GET  /admin/queue, /admin/called-drivers, /admin/snapshot: read views
POST /admin/call-next, /admin/clear-queue, /admin/driver/{id}/...: commands
Queue errors raised here are turned into JSON responses by main.py.
"""

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from driverqueue.database import get_db
from driverqueue.schemas.driver import ClearQueueOut, DriverActionOut, DriverOut, QueueSnapshotOut
from driverqueue.services import queue_service
from driverqueue.services.notification_service import notify_driver_called
from driverqueue.utils.logger import get_logger

router = APIRouter(prefix="/admin")
logger = get_logger(__name__)


@router.get("/queue", response_model=list[DriverOut], summary="Waiting drivers, FIFO order")
def get_waiting_queue(db: Session = Depends(get_db)):
    return queue_service.list_waiting(db)


@router.get("/called-drivers", response_model=list[DriverOut], summary="Drivers already called")
def get_called_drivers(db: Session = Depends(get_db)):
    return queue_service.list_called(db)


@router.get("/snapshot", response_model=QueueSnapshotOut, summary="Waiting + called in one read")
def get_queue_snapshot(db: Session = Depends(get_db)):
    return queue_service.queue_snapshot(db)


@router.get("/driver/{driver_id}", response_model=DriverOut, summary="One driver by id")
def get_driver(driver_id: int, db: Session = Depends(get_db)):
    return queue_service.get_driver(db, driver_id)


@router.post("/call-next", response_model=DriverOut, summary="Call the next waiting driver")
def call_next_driver(background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    """Moves the oldest WAITING driver to CALLED and texts them. 404 when nobody is waiting."""
    driver = queue_service.call_next(db)
    background_tasks.add_task(notify_driver_called, driver)
    return driver


@router.post("/driver/{driver_id}/recall", response_model=DriverOut, summary="Call a driver again")
def recall_driver(driver_id: int, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    driver = queue_service.recall(db, driver_id)
    background_tasks.add_task(notify_driver_called, driver)
    return driver


@router.post("/driver/{driver_id}/attended", response_model=DriverActionOut, summary="Driver showed up")
def mark_attended(driver_id: int, db: Session = Depends(get_db)):
    driver = queue_service.mark_attended(db, driver_id)
    return DriverActionOut(
        driver_id=driver.id,
        status=driver.status,
        message=f"Driver {driver.id} ({driver.name}) marked as ATTENDED",
    )


@router.post("/driver/{driver_id}/no-show", response_model=DriverActionOut, summary="Driver did not show up")
def mark_no_show(driver_id: int, db: Session = Depends(get_db)):
    driver = queue_service.mark_no_show(db, driver_id)
    return DriverActionOut(
        driver_id=driver.id,
        status=driver.status,
        message=f"Driver {driver.id} ({driver.name}) marked as NO_SHOW",
    )


@router.post("/clear-queue", response_model=ClearQueueOut, summary="Clear the whole waiting list")
def clear_queue(db: Session = Depends(get_db)):
    """Every WAITING driver becomes CLEARED. Called drivers are untouched. Always succeeds."""
    logger.warning("Clear-queue requested via API")
    cleared = queue_service.clear_waiting(db)
    return ClearQueueOut(
        cleared=cleared,
        message=f"Waiting list cleared. {cleared} driver(s) set to CLEARED.",
    )
