"""Service-layer error taxonomy.

Every kind maps to one HTTP status. Routers translate a ``ServiceError`` into an
``HTTPException`` and the app-level handlers render the response envelope.
"""

from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    kind = "ServiceError"

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotFoundError(ServiceError):
    kind = "NotFound"

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class ForbiddenError(ServiceError):
    kind = "Forbidden"

    def __init__(self, message: str = "Not allowed to access this resource") -> None:
        super().__init__(message, status.HTTP_403_FORBIDDEN)


class RoleMismatchError(ServiceError):
    kind = "RoleMismatch"

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_403_FORBIDDEN)


class InvalidDeadlineError(ServiceError):
    kind = "InvalidDeadline"

    def __init__(self, message: str = "Due date must be in the future") -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class StateError(ServiceError):
    """Operation is not valid for the current lifecycle state of the entity."""

    kind = "StateError"

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class DeadlinePassedError(ServiceError):
    kind = "DeadlinePassed"

    def __init__(self, message: str = "Submission deadline has passed") -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class AttemptsExceededError(ServiceError):
    kind = "AttemptsExceeded"

    def __init__(self, message: str = "Maximum submission attempts exceeded") -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class CapacityExceededError(ServiceError):
    kind = "CapacityExceeded"

    def __init__(self, message: str = "Class has reached its maximum number of students") -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class AlreadyEnrolledError(ServiceError):
    kind = "AlreadyEnrolled"

    def __init__(self, message: str = "Student is already enrolled in a class") -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class OutOfRangeError(ServiceError):
    kind = "OutOfRange"

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)
