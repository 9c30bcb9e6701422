class BookingError(Exception):
    """Base error type for booking domain errors."""


class NotFoundError(BookingError):
    """Raised when a referenced slot, booking, workshop or review does not exist."""


class SlotNotFound(NotFoundError):
    pass


class BookingNotFound(NotFoundError):
    pass


class WorkshopNotFound(NotFoundError):
    pass


class ReviewNotFound(NotFoundError):
    pass


class InvalidInputError(BookingError):
    """Raised for values that can never be valid (bad capacity, bad participant count)."""


class InvalidCapacity(InvalidInputError):
    pass


class CapacityBelowBooked(InvalidInputError):
    """Raised when a capacity change would drop below the seats already booked."""

    def __init__(self, message: str, *, booked: int):
        super().__init__(message)
        self.booked = booked


class InvalidParticipants(InvalidInputError):
    pass


class WorkshopInactive(InvalidInputError):
    pass


class InsufficientCapacityError(BookingError):
    """Raised when a booking (or booking change) needs more seats than are left."""

    def __init__(self, message: str, *, available: int):
        super().__init__(message)
        self.available = available


class NotEnoughSpots(InsufficientCapacityError):
    @property
    def available_spots(self) -> int:
        return self.available


class InvalidStateTransitionError(BookingError):
    """Raised when a booking status change is not allowed."""


class UseCancelOperation(InvalidStateTransitionError):
    """Raised when a generic update tries to set status=cancelled."""
