from .tables import (
    Base,
    metadata,
    Hosts,
    AvailabilitySchedules,
    AvailabilityRules,
    DateOverrides,
    EventTypes,
    BookingQuestions,
    Bookings,
    BookingAnswers,
)

__all__ = [
    "Base",
    "metadata",
    "Hosts",
    "AvailabilitySchedules",
    "AvailabilityRules",
    "DateOverrides",
    "EventTypes",
    "BookingQuestions",
    "Bookings",
    "BookingAnswers",
]
