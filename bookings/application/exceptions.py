class BookingError(RuntimeError):
    """Base for failures surfaced by the booking core. `classification` drives fallback and HTTP mapping."""

    classification = "internal"


class ValidationError(BookingError):
    """Bad or missing input. Never retried."""

    classification = "validation"


class InvalidTransitionError(ValidationError):
    """Requested occurrence or payment status change is not allowed from the current state."""
    pass


class NotFoundError(BookingError):
    """Referenced lead, series or occurrence does not exist. Never retried."""

    classification = "not-found"


class TransportError(BookingError):
    """Network-level failure reaching the remote function (connection, CORS, gateway)."""

    classification = "transport"


class RemoteTimeoutError(TransportError):
    """Remote function did not answer within the timeout. Outcome unknown."""
    pass


class PersistenceError(BookingError):
    """The data store rejected a read or write."""
    pass


class ExternalServiceError(BookingError):
    """A third-party collaborator (payment links, telephony) failed."""
    pass


class BestEffortFailure(BookingError):
    """Non-fatal side-effect failure. Recorded as a warning, never raised to callers."""
    pass
