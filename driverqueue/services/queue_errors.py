# driverqueue/services/queue_errors.py
"""
Caller-recoverable queue errors.
Each one is a deterministic result of current state plus input; main.py maps
them onto HTTP responses using status_code.
"""

from typing import Optional

from driverqueue.models.driver import DriverStatus


class QueueError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(QueueError):
    status_code = 404

    def __init__(self, driver_id: int):
        super().__init__(f"Driver {driver_id} not found")
        self.driver_id = driver_id


class EmptyQueue(QueueError):
    status_code = 404

    def __init__(self):
        super().__init__("No drivers waiting in the queue")


class InvalidTransition(QueueError):
    status_code = 409

    def __init__(self, driver_id: int, action: str, current: Optional[DriverStatus]):
        status = current.value if current is not None else "unknown"
        super().__init__(f"Cannot {action} driver {driver_id}: status is {status}")
        self.driver_id = driver_id
        self.action = action
        self.current = current


class DuplicateEntry(QueueError):
    status_code = 409

    def __init__(self, plate: str):
        super().__init__(f"Plate {plate} is already in the queue")
        self.plate = plate
