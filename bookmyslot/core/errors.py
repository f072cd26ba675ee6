class BookMySlotError(Exception):
    """Base for domain errors; main.py renders them as {"message": ...}."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationFailedError(BookMySlotError):
    status_code = 400

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class CapacityExceededError(BookMySlotError):
    status_code = 400


class VerificationError(BookMySlotError):
    status_code = 400


class NotFoundError(BookMySlotError):
    status_code = 404


class PermissionDeniedError(BookMySlotError):
    status_code = 403


class ConflictError(BookMySlotError):
    status_code = 409


class ServiceUnavailableError(BookMySlotError):
    status_code = 503
