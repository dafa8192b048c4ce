# driverqueue/schemas/driver.py
"""
Request/response shapes for the queue API.
JSON keys are camelCase (phoneNumber, entryTime, ...) because that is what the
admin page reads; request bodies also accept snake_case.
"""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from driverqueue.models.driver import DriverStatus

PLATE_PATTERN = re.compile(r"^[A-Z]{3}-?\d[A-Z0-9]\d{2}$")    # ABC-1234 or ABC1D23
PHONE_PATTERN = re.compile(r"^\+[1-9]\d{10,14}$")              # E.164


class DriverCreate(BaseModel):
    name: str = Field(min_length=3, max_length=100)
    plate: str
    phone_number: str
    entry_time: Optional[datetime] = None    # Intake may stamp its own arrival time

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("plate")
    @classmethod
    def normalise_plate(cls, value: str) -> str:
        plate = value.strip().upper()
        if not plate:
            raise ValueError("Plate is required")
        if not PLATE_PATTERN.match(plate):
            raise ValueError("Invalid plate format (e.g. ABC-1234 or ABC1D23)")
        return plate

    @field_validator("phone_number")
    @classmethod
    def normalise_phone(cls, value: str) -> str:
        phone = re.sub(r"[^0-9+]", "", value)
        if not phone:
            raise ValueError("Phone number is required")
        if not PHONE_PATTERN.match(phone):
            raise ValueError("Invalid phone format, use international form (+5511...)")
        return phone

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class DriverOut(BaseModel):
    id: int
    name: str
    plate: str
    phone_number: str
    status: DriverStatus
    entry_time: datetime
    called_time: Optional[datetime] = None
    call_attempts: int

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True
        frozen = True


class DriverActionOut(BaseModel):
    driver_id: int
    status: DriverStatus
    message: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ClearQueueOut(BaseModel):
    cleared: int
    message: str


class QueueSnapshotOut(BaseModel):
    waiting: list[DriverOut]
    called: list[DriverOut]
    generated_at: datetime

    class Config:
        alias_generator = to_camel
        populate_by_name = True
