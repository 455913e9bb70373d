"""
teammove/models/event.py

Carpooling events and what hangs off them (participants, vehicles).
"""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    location: Optional[str] = None
    starts_at: Optional[datetime] = Field(default=None, alias="startsAt")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be blank")
        return v


class Event(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    event_id: str = Field(alias="eventId")
    company_id: str = Field(alias="companyId")
    title: str
    location: Optional[str] = None
    starts_at: Optional[datetime] = Field(default=None, alias="startsAt")
    created_at: datetime = Field(alias="createdAt")


class ParticipantCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: Optional[str] = None
    role: Literal["driver", "passenger"] = "passenger"


class Participant(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    participant_id: str = Field(alias="participantId")
    event_id: str = Field(alias="eventId")
    name: str
    email: Optional[str] = None
    role: str
    created_at: datetime = Field(alias="createdAt")


class VehicleCreate(BaseModel):
    driver_name: str = Field(min_length=1, max_length=200, alias="driverName")
    seats: int = Field(ge=1, le=60)

    model_config = ConfigDict(populate_by_name=True)


class Vehicle(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    vehicle_id: str = Field(alias="vehicleId")
    event_id: str = Field(alias="eventId")
    driver_name: str = Field(alias="driverName")
    seats: int
    created_at: datetime = Field(alias="createdAt")
