"""
Error taxonomy shared by the services, the HTTP layer and the API client.

Services raise these; ``app.main`` renders them as ``{"detail": message}``
with the matching status code, the same body ``HTTPException`` produces.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class AuthorizationError(AppError):
    status_code = 403


class NotFound(AppError):
    status_code = 404


class Conflict(AppError):
    status_code = 409


class InvalidTransition(Conflict):
    """A lifecycle transition that the listing's current status does not allow."""


class Gone(AppError):
    status_code = 410


class TransientNetworkError(AppError):
    """Raised by the client when the request never produced a response."""

    status_code = 503


_BY_STATUS = {
    400: ValidationError,
    401: AuthenticationError,
    403: AuthorizationError,
    404: NotFound,
    409: Conflict,
    410: Gone,
    422: ValidationError,
}


def error_for_status(status_code: int, message: str) -> AppError:
    """Map an HTTP status back to the matching error class."""
    cls = _BY_STATUS.get(status_code, AppError)
    err = cls(message)
    if cls is AppError:
        err.status_code = status_code
    return err
