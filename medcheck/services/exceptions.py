class BackendError(Exception):
    """Base exception for all backend service failures."""


class RequestError(BackendError):
    """Raised when no response was received (network unreachable, timeout)."""


class ServiceError(BackendError):
    """Raised when the service answered with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ServiceResponseError(ServiceError):
    """Raised when a success response does not have the documented shape."""


class PreconditionError(Exception):
    """Raised when an operation is invoked without its input constraints met.

    This signals a caller defect, not a recoverable service fault.
    """
