import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from weatherguard.enums import BookingStatus, TrainingLevel


class DepartureLocation(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    name: str


class CreateBooking(BaseModel):
    student_id: uuid.UUID
    scheduled_date: datetime
    departure_location: DepartureLocation
    aircraft_type: str | None = None


class BookingResponse(BaseModel):
    id: uuid.UUID
    student_id: uuid.UUID
    aircraft_type: str | None
    scheduled_date: datetime
    departure_location: DepartureLocation
    status: BookingStatus
    created_at: datetime | None = None


class CreateStudent(BaseModel):
    name: str = Field(min_length=1)
    email: str
    phone: str | None = None
    training_level: TrainingLevel


class StudentResponse(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    phone: str | None
    training_level: TrainingLevel
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
