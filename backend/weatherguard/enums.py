"""Closed vocabularies shared by the engine, the store and the API."""

import enum


class TrainingLevel(str, enum.Enum):
    STUDENT_PILOT = "STUDENT_PILOT"
    PRIVATE_PILOT = "PRIVATE_PILOT"
    INSTRUMENT_RATED = "INSTRUMENT_RATED"

    @property
    def strictness(self) -> int:
        """Higher means stricter minimums."""
        return _STRICTNESS[self]

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def by_strictness(cls) -> list["TrainingLevel"]:
        """All levels, strictest first."""
        return sorted(cls, key=lambda level: level.strictness, reverse=True)


_STRICTNESS = {
    TrainingLevel.STUDENT_PILOT: 2,
    TrainingLevel.PRIVATE_PILOT: 1,
    TrainingLevel.INSTRUMENT_RATED: 0,
}

_LABELS = {
    TrainingLevel.STUDENT_PILOT: "student pilot",
    TrainingLevel.PRIVATE_PILOT: "private pilot",
    TrainingLevel.INSTRUMENT_RATED: "instrument-rated pilot",
}


class BookingStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    CANCELLED = "CANCELLED"
    RESCHEDULED = "RESCHEDULED"
    COMPLETED = "COMPLETED"


class AlertSeverity(str, enum.Enum):
    CLEAR = "clear"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    SEVERE = "severe"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    AlertSeverity.CLEAR: 0,
    AlertSeverity.LOW: 1,
    AlertSeverity.MODERATE: 2,
    AlertSeverity.HIGH: 3,
    AlertSeverity.SEVERE: 4,
}


class SuggestedBy(str, enum.Enum):
    SYSTEM = "SYSTEM"
    STUDENT = "STUDENT"
    AI = "AI"
