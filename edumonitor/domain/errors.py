class EduMonitorError(Exception):
    """Base class for errors surfaced to callers of the services."""

    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__ or self.__class__.__name__)
        self.message = str(self)


class ValidationError(EduMonitorError):
    """Malformed or missing field."""

    status_code = 400


class Unauthenticated(EduMonitorError):
    """You are not logged in."""

    status_code = 401


class Forbidden(EduMonitorError):
    """Not allowed."""

    status_code = 403


class NotFound(EduMonitorError):
    """Not found."""

    status_code = 404


class Conflict(EduMonitorError):
    """Conflict with the current state of the record."""

    status_code = 409
