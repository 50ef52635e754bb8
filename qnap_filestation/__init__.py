"""Client library for the QNAP FileStation HTTP API."""

from .aio import AsyncFileStationClient
from .api import FileStationClient
from .errors import (
    AlreadyExistsError,
    CompressingError,
    FileStationError,
    FolderExistsError,
    InvalidCredentialsError,
    InvalidPatternError,
    NotAuthenticatedError,
    NotAuthorizedError,
    NotFoundError,
    Outcome,
    ParentNotFoundError,
    PermissionDeniedError,
    QuotaExceededError,
    StatusError,
    TransportError,
)
from .models import Entry, ListKind, Session, SizeInfo, SortDirection, SortField, StatusEnvelope, TreeNode

__version__ = "0.1.0"

__all__ = [
    "AlreadyExistsError",
    "AsyncFileStationClient",
    "CompressingError",
    "Entry",
    "FileStationClient",
    "FileStationError",
    "FolderExistsError",
    "InvalidCredentialsError",
    "InvalidPatternError",
    "ListKind",
    "NotAuthenticatedError",
    "NotAuthorizedError",
    "NotFoundError",
    "Outcome",
    "ParentNotFoundError",
    "PermissionDeniedError",
    "QuotaExceededError",
    "Session",
    "SizeInfo",
    "SortDirection",
    "SortField",
    "StatusEnvelope",
    "StatusError",
    "TransportError",
    "TreeNode",
]
