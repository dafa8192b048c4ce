# driverqueue/routers/drivers.py
"""Driver intake. The public form posts here to join the queue."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from driverqueue.database import get_db
from driverqueue.schemas.driver import DriverCreate, DriverOut
from driverqueue.services.intake_service import add_driver

router = APIRouter()


@router.post("/drivers", response_model=DriverOut, status_code=status.HTTP_201_CREATED,
             summary="Join the waiting queue")
def register_driver(body: DriverCreate, db: Session = Depends(get_db)):
    """Validates plate/name/phone and appends the driver to the WAITING queue."""
    return add_driver(db, body)
