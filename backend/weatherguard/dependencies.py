from weatherguard.services.booking_store import BookingStore, booking_store
from weatherguard.services.notification_bus import NotificationBus, notification_bus
from weatherguard.services.reschedule_service import RescheduleService, reschedule_service
from weatherguard.services.weather_client import WeatherClient, weather_client


def get_store() -> BookingStore:
    return booking_store


def get_weather_client() -> WeatherClient:
    return weather_client


def get_reschedule_service() -> RescheduleService:
    return reschedule_service


def get_notification_bus() -> NotificationBus:
    return notification_bus
