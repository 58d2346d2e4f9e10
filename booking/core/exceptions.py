"""
Errors raised by the booking engine.

Raised from booking.scheduling and translated to HTTP responses in
booking.routes.errors.
"""


class BookingError(Exception):
    """Base class for every booking engine error."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BookingValidationError(BookingError):
    """The request violates a temporal rule and can be fixed by the caller."""


class InvalidSlotError(BookingValidationError):
    """Start time is not on the slot grid."""


class BranchClosedError(BookingValidationError):
    """The branch is marked closed on the requested weekday."""


class OutsideOperatingHoursError(BookingValidationError):
    """The requested interval does not fit inside the branch opening hours."""


class InvalidStatusTransitionError(BookingValidationError):
    """The appointment cannot move from its current status to the requested one."""


class BookingConflictError(BookingError):
    """The requested time is taken; the caller should pick another time."""


class CustomerDoubleBookedError(BookingConflictError):
    """The customer already holds an overlapping appointment at some branch."""

    def __init__(self, message: str, branch_name: str):
        super().__init__(message)
        self.branch_name = branch_name


class SlotUnavailableError(BookingConflictError):
    """No consultant was free at pre-check time, or the insert lost a race."""


class NoConsultantAvailableError(BookingConflictError):
    """Consultant assignment found no free consultant."""


class NotFoundError(BookingError):
    """A referenced branch, service or appointment does not exist."""

    def __init__(self, resource: str, identifier):
        super().__init__(f'{resource} not found: {identifier}.')
        self.resource = resource
        self.identifier = identifier


class CodeGenerationExhaustedError(BookingError):
    """Every confirmation code attempt collided with an existing one."""
