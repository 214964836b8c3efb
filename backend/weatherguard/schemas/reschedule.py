from datetime import datetime

from pydantic import BaseModel, Field


class RescheduleOption(BaseModel):
    date_time: datetime
    reason: str
    weather_score: float = Field(ge=0, le=10)
    instructor_available: bool


class RescheduleResponse(BaseModel):
    options: list[RescheduleOption]


class RescheduleRequest(BaseModel):
    new_scheduled_date: datetime
    # Options the student was shown, if the new date was picked from suggestions
    offered_options: list[RescheduleOption] | None = None
