"""Error taxonomy shared by services, jobs and the API layer."""

from typing import Any


class WeatherGuardError(Exception):
    """Base exception for WeatherGuard errors."""

    def __init__(
        self,
        message: str,
        code: str = "WEATHERGUARD_ERROR",
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ExternalServiceError(WeatherGuardError):
    """A weather or text-generation provider failed after retries."""

    def __init__(self, service: str, message: str, details: dict[str, Any] | None = None):
        self.service = service
        super().__init__(
            message=f"{service}: {message}",
            code="EXTERNAL_SERVICE_ERROR",
            details={"service": service, **(details or {})},
        )


class DataNotFoundError(WeatherGuardError):
    """A booking or student referenced by id does not exist."""

    def __init__(self, resource: str, identifier: Any):
        self.resource = resource
        self.identifier = identifier
        super().__init__(
            message=f"{resource} not found: {identifier}",
            code="NOT_FOUND",
            details={"resource": resource, "id": str(identifier)},
        )


class ConfigurationError(WeatherGuardError):
    """Static configuration (e.g. the minimums table) is incomplete."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message=message, code="CONFIGURATION_ERROR", details=details)
