# driverqueue/models/driver.py
"""
Driver queue table, one row per driver that joined the queue.
Rows are never deleted by the service; terminal statuses (ATTENDED, NO_SHOW,
CLEARED) simply drop out of the admin views.
"""

import enum

from sqlalchemy import Column, Integer, String, DateTime, Enum
from driverqueue.database import Base


class DriverStatus(str, enum.Enum):
    """
    Queue lifecycle states.

    WAITING -> CALLED (call next)
    CALLED  -> CALLED (recall)
    CALLED  -> ATTENDED | NO_SHOW
    WAITING -> CLEARED (bulk clear)
    """

    WAITING = "WAITING"
    CALLED = "CALLED"
    ATTENDED = "ATTENDED"
    NO_SHOW = "NO_SHOW"
    CLEARED = "CLEARED"


TERMINAL_STATUSES = {DriverStatus.ATTENDED, DriverStatus.NO_SHOW, DriverStatus.CLEARED}
ACTIVE_STATUSES = {DriverStatus.WAITING, DriverStatus.CALLED}


class Driver(Base):
    __tablename__ = "drivers"

    # id doubles as the creation sequence used to break entry_time ties
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    plate = Column(String(20), nullable=False, index=True)
    phone_number = Column(String(20), nullable=False)
    status = Column(
        Enum(DriverStatus, native_enum=False, length=20),
        default=DriverStatus.WAITING,
        nullable=False,
        index=True,
    )
    entry_time = Column(DateTime, nullable=False, index=True)
    called_time = Column(DateTime)
    call_attempts = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return f"<Driver {self.id} plate={self.plate} status={self.status}>"
