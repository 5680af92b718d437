"""
Errors raised by the domain services.

Each error carries the HTTP status the request pipeline answers with and a
generic public message. The detailed message (``str(error)``) is only
logged, it never reaches the caller.
"""

from fastapi import status


class ServiceError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message: str = "An error occurred"


class AuthenticationError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    public_message = "No valid authentication token found"


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "Invalid request"


class AtomicityError(ServiceError):
    """Raised when a project would take over tasks of another project."""

    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "Invalid request"


class AuthorizationError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    public_message = "Access forbidden"


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    public_message = "Resource not found"


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    public_message = "Resource conflict"


class PersistenceError(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message = "An error occurred"


# Range of the integer id columns
MIN_ID = -(2**31)
MAX_ID = 2**31 - 1


def parse_id(value: str, kind: str) -> int:
    """Convert an API id into a storage id.

    Non-numeric ids and ids outside the id column range are unknown ids.
    """
    try:
        db_id = int(str(value).strip())
    except (TypeError, ValueError):
        raise NotFoundError(f"{kind} '{value}' does not exist")
    if not MIN_ID <= db_id <= MAX_ID:
        raise NotFoundError(f"{kind} '{value}' does not exist")
    return db_id
