"""Exceptions raised by the FileStation clients."""

from enum import Enum
from typing import Dict, Optional, Type


class Outcome(Enum):
    """Closed set of FileStation status outcomes."""

    FAILURE = 0
    SUCCESS = 1
    EXISTS = 2
    NOT_AUTHORIZED = 3
    PERMISSION_DENIED = 4
    NOT_EXISTS = 5
    COMPRESSING = 6
    QUOTA_EXCEEDED = 9
    PARENT_NOT_EXISTS = 25
    FOLDER_EXISTS = 33
    UNKNOWN = -1

    @classmethod
    def from_code(cls, code: int) -> "Outcome":
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN


DESCRIPTIONS: Dict[Outcome, str] = {
    Outcome.FAILURE: "Failure",
    Outcome.SUCCESS: "Success",
    Outcome.EXISTS: "File exists",
    Outcome.NOT_AUTHORIZED: "Not authorized",
    Outcome.PERMISSION_DENIED: "Permission denied",
    Outcome.NOT_EXISTS: "File doesn't exist",
    Outcome.COMPRESSING: "Compressing",
    Outcome.QUOTA_EXCEEDED: "Quota limit exceeded",
    Outcome.PARENT_NOT_EXISTS: "Folder doesn't exist",
    Outcome.FOLDER_EXISTS: "Folder already exists",
    Outcome.UNKNOWN: "Unknown",
}


class FileStationError(Exception):
    """Base class for every error raised by this package."""


class NotAuthenticatedError(FileStationError):
    """Raised when an operation needs a session and there is none."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class InvalidCredentialsError(FileStationError):
    """Raised when the NAS rejects a login."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class InvalidPatternError(FileStationError, ValueError):
    """Raised when a listing filter is not a valid regular expression."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        super().__init__(f"Invalid pattern {pattern!r}: {reason}")


class TransportError(FileStationError):
    """Raised for non-2xx HTTP responses and connection failures.

    Attributes:
        status_code: HTTP status code, or None when no response was received.
        reason: Reason phrase of the response or the connection error text.
    """

    def __init__(self, reason: str, status_code: Optional[int] = None):
        self.reason = reason
        self.status_code = status_code
        if status_code is None:
            super().__init__(reason)
        else:
            super().__init__(f"HTTP {status_code}: {reason}")


class StatusError(FileStationError):
    """Raised when a FileStation response carries a status other than 1."""

    def __init__(self, code: int):
        self.code = code
        self.outcome = Outcome.from_code(code)
        super().__init__(f"Status {code}: {DESCRIPTIONS[self.outcome]}")


class AlreadyExistsError(StatusError):
    pass


class NotAuthorizedError(StatusError):
    pass


class PermissionDeniedError(StatusError):
    pass


class NotFoundError(StatusError):
    pass


class CompressingError(StatusError):
    pass


class QuotaExceededError(StatusError):
    pass


class ParentNotFoundError(StatusError):
    pass


class FolderExistsError(StatusError):
    pass


ERRORS: Dict[Outcome, Type[StatusError]] = {
    Outcome.FAILURE: StatusError,
    Outcome.EXISTS: AlreadyExistsError,
    Outcome.NOT_AUTHORIZED: NotAuthorizedError,
    Outcome.PERMISSION_DENIED: PermissionDeniedError,
    Outcome.NOT_EXISTS: NotFoundError,
    Outcome.COMPRESSING: CompressingError,
    Outcome.QUOTA_EXCEEDED: QuotaExceededError,
    Outcome.PARENT_NOT_EXISTS: ParentNotFoundError,
    Outcome.FOLDER_EXISTS: FolderExistsError,
    Outcome.UNKNOWN: StatusError,
}


def status_error(code: int) -> StatusError:
    """Build the typed exception for a non-success status code."""
    outcome = Outcome.from_code(code)
    if outcome is Outcome.SUCCESS:
        raise ValueError("status 1 is not an error")
    return ERRORS[outcome](code)
