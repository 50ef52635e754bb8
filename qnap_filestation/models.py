"""Data models for the QNAP FileStation client."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

MT_FORMATS = ("%Y/%m/%d %H:%M:%S", "%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S")


def parse_mt(data: dict) -> Optional[datetime]:
    """Read the modification time of a listing item."""
    mt = data.get("mt")
    if mt:
        for fmt in MT_FORMATS:
            try:
                return datetime.strptime(str(mt), fmt)
            except ValueError:
                continue
    epoch = data.get("epochmt")
    if epoch not in (None, ""):
        try:
            return datetime.fromtimestamp(int(epoch))
        except (TypeError, ValueError, OverflowError, OSError):
            return None
    return None


def _int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


class ListKind(Enum):
    """Which entries a flat listing keeps."""

    ALL = "all"
    FILE = "file"
    FOLDER = "folder"


class SortField(Enum):
    NAME = "filename"
    SIZE = "filesize"
    MODIFIED = "mt"
    OWNER = "owner"
    GROUP = "group"


class SortDirection(Enum):
    ASC = "ASC"
    DESC = "DESC"


@dataclass(frozen=True)
class Session:
    """Authentication context obtained from a successful login."""

    sid: str
    user: str = ""

    def __repr__(self) -> str:
        return f"Session(user={self.user!r}, sid='{self.sid[:4]}...')"


@dataclass(frozen=True)
class StatusEnvelope:
    status: int = 0
    success: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "StatusEnvelope":
        return cls(status=_int(data.get("status", 0)), success=bool(data.get("success", False)))


@dataclass(frozen=True)
class Entry:
    """Represents a file or folder in a FileStation listing."""

    name: str
    size: int = 0
    is_folder: bool = False
    group: str = ""
    owner: str = ""
    modified: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Entry":
        """Create Entry from a `datas` item of a get_list response."""
        return cls(
            name=str(data.get("filename", "")),
            size=_int(data.get("filesize", 0)),
            is_folder=bool(_int(data.get("isfolder", 0))),
            group=str(data.get("group") or ""),
            owner=str(data.get("owner") or ""),
            modified=parse_mt(data),
        )

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class TreeNode:
    """Folder node returned by a tree listing."""

    id: str
    text: str

    @classmethod
    def from_dict(cls, data: dict) -> "TreeNode":
        return cls(id=str(data.get("id", "")), text=str(data.get("text", "")))

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class SizeInfo:
    """Aggregate size of a file or folder tree."""

    status: int
    size: int = 0
    file_count: int = 0
    folder_count: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "SizeInfo":
        return cls(
            status=_int(data.get("status", 0)),
            size=_int(data.get("size", 0)),
            file_count=_int(data.get("filecnt", 0)),
            folder_count=_int(data.get("foldercnt", 0)),
        )

    @property
    def kb(self) -> float:
        return self.size / 1024

    @property
    def mb(self) -> float:
        return self.size / 1024 ** 2

    @property
    def gb(self) -> float:
        return self.size / 1024 ** 3

    @property
    def tb(self) -> float:
        return self.size / 1024 ** 4
