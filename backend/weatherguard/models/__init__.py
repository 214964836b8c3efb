from weatherguard.models.student import Student
from weatherguard.models.booking import Booking, RescheduleEvent
from weatherguard.models.alert import WeatherAlert

__all__ = [
    "Booking",
    "RescheduleEvent",
    "Student",
    "WeatherAlert",
]
