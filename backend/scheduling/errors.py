"""Error taxonomy for availability and booking operations.

Every failure leaves this package as a ``BookingError`` subclass carrying a
stable ``kind`` string; the HTTP layer maps kinds to status codes.
"""


class BookingError(Exception):
    kind = 'InternalError'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {'errorKind': self.kind, 'message': self.message}


class InvalidInput(BookingError):
    """Malformed or missing fields, non-future times, bad status transitions."""
    kind = 'InvalidInput'


class InvalidWindow(InvalidInput):
    """A weekly availability window whose start is not before its end."""


class ResourceNotFound(BookingError):
    kind = 'ResourceNotFound'


class DoctorUnavailable(BookingError):
    """Doctor not approved, not accepting patients, or the slot is not bookable."""
    kind = 'DoctorUnavailable'


class BookingConflict(BookingError):
    """The requested interval overlaps an active booking."""
    kind = 'BookingConflict'


class Forbidden(BookingError):
    kind = 'Forbidden'


class RepositoryError(BookingError):
    """The underlying store failed.

    ``ambiguous`` is set when a write may or may not have been applied.
    """
    kind = 'RepositoryError'

    def __init__(self, message: str, *, ambiguous: bool = False):
        super().__init__(message)
        self.ambiguous = ambiguous


class AdmissionCancelled(BookingError):
    kind = 'RequestCancelled'
