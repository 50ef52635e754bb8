"""Request building and response decoding for the FileStation CGI API.

Everything here is free of I/O so the blocking and the asyncio clients share
one implementation of the wire format:

- ``build_query`` / ``build_url`` produce the ``utilRequest.cgi`` URLs,
  always led by ``sid`` and ``func``.
- ``parse_envelope`` / ``check_status`` turn ``{"status": n}`` bodies into
  typed exceptions (see ``errors.Outcome``).
- ``decode_*`` helpers turn listing, tree and size bodies into models.
"""

import base64
import json
import mimetypes
import os
import re
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import urlencode
from xml.etree import ElementTree

import httpx

from .errors import (
    InvalidCredentialsError,
    InvalidPatternError,
    NotAuthenticatedError,
    NotFoundError,
    StatusError,
    TransportError,
    status_error,
)
from .models import Entry, ListKind, SizeInfo, SortDirection, SortField, StatusEnvelope, TreeNode

AUTH_PATH = "/cgi-bin/authLogin.cgi"
UTIL_PATH = "/cgi-bin/filemanager/utilRequest.cgi"

JSON_CONTENT_TYPE = "application/json"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

ParamValue = Union[str, int, Sequence[Union[str, int]]]
Params = Union[Mapping[str, ParamValue], Sequence[Tuple[str, Union[str, int]]]]


# Login

def encode_password(password: str) -> str:
    """Base64 of the UTF-8 password, as authLogin.cgi expects it."""
    return base64.b64encode(password.encode("utf-8")).decode("ascii")


def login_params(user: str, password: str) -> dict:
    return {"user": user, "pwd": encode_password(password)}


def parse_login(text: str) -> str:
    """Extract the session id from an authLogin.cgi XML document."""
    try:
        root = ElementTree.fromstring(text)
    except ElementTree.ParseError:
        raise StatusError(0)
    passed = (root.findtext("authPassed") or "").strip()
    if passed == "0":
        raise InvalidCredentialsError()
    sid = root.findtext("authSid")
    if not sid:
        raise InvalidCredentialsError()
    return sid


# Query building

def normalize_params(params: Optional[Params]) -> List[Tuple[str, str]]:
    """Flatten parameters into ordered (name, value) pairs."""
    if not params:
        return []
    items: Iterable[Tuple[str, Any]] = params.items() if isinstance(params, Mapping) else params
    pairs = []
    for key, value in items:
        if isinstance(value, (list, tuple)):
            pairs.extend((key, str(v)) for v in value)
        else:
            pairs.append((key, str(value)))
    return pairs


def build_query(sid: Optional[str], func: str, params: Optional[Params] = None) -> str:
    if not sid:
        raise NotAuthenticatedError()
    return urlencode([("sid", sid), ("func", func)] + normalize_params(params))


def build_url(base_url: str, sid: Optional[str], func: str, params: Optional[Params] = None) -> str:
    return f"{base_url}{UTIL_PATH}?{build_query(sid, func, params)}"


# Status decoding

def raise_for_transport(response: httpx.Response) -> None:
    if not response.is_success:
        raise TransportError(response.reason_phrase, response.status_code)


def parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return None


def is_envelope(data: Any) -> bool:
    return isinstance(data, dict) and "status" in data


def parse_envelope(text: str) -> StatusEnvelope:
    """Decode a status envelope; anything unreadable counts as status 0."""
    data = parse_json(text)
    if not is_envelope(data):
        return StatusEnvelope()
    return StatusEnvelope.from_dict(data)


def check_status(status: int) -> None:
    if status != 1:
        raise status_error(status)


def check_envelope(text: str) -> StatusEnvelope:
    envelope = parse_envelope(text)
    check_status(envelope.status)
    return envelope


# Listing

def list_params(
    path: str,
    limit: int = 500,
    sort: SortField = SortField.NAME,
    direction: SortDirection = SortDirection.ASC,
) -> dict:
    return {
        "path": path,
        "is_iso": "0",
        "list_mode": "all",
        "dir": direction.value,
        "limit": str(limit),
        "sort": sort.value,
    }


def exists_params(path: str, name: str) -> dict:
    return {
        "path": path,
        "is_iso": "0",
        "list_mode": "all",
        "limit": "1",
        "filename": name,
    }


def tree_params(node: str) -> dict:
    return {"node": node, "is_iso": "0"}


def filter_entries(entries: Iterable[Entry], kind: ListKind = ListKind.ALL,
                   pattern: Optional[str] = None) -> List[Entry]:
    if kind is ListKind.FILE:
        entries = [e for e in entries if not e.is_folder]
    elif kind is ListKind.FOLDER:
        entries = [e for e in entries if e.is_folder]
    if pattern:
        try:
            regex = re.compile(pattern)
        except re.error as e:
            raise InvalidPatternError(pattern, str(e)) from e
        entries = [e for e in entries if regex.search(e.name)]
    return list(entries)


def decode_entries(text: str, kind: ListKind = ListKind.ALL,
                   pattern: Optional[str] = None) -> List[Entry]:
    """Decode a get_list body into entries."""
    data = parse_json(text)
    if data is None:
        raise StatusError(0)
    if is_envelope(data):
        check_status(StatusEnvelope.from_dict(data).status)
    if not isinstance(data, dict):
        return []
    items = data.get("datas") or []
    return filter_entries((Entry.from_dict(item) for item in items), kind, pattern)


def decode_tree(text: str) -> List[TreeNode]:
    """Decode a get_tree body into folder nodes."""
    data = parse_json(text)
    if data is None:
        raise StatusError(0)
    if is_envelope(data):
        check_status(StatusEnvelope.from_dict(data).status)
    if not isinstance(data, list):
        return []
    return [TreeNode.from_dict(item) for item in data if isinstance(item, dict)]


def decode_exists(text: str, name: str) -> bool:
    """Whether a filtered get_list body contains ``name`` (case-insensitive).

    A "does not exist" status is a plain negative answer here.
    """
    data = parse_json(text)
    if data is None:
        raise StatusError(0)
    if is_envelope(data):
        status = StatusEnvelope.from_dict(data).status
        if status != 5:
            check_status(status)
        return False
    if not isinstance(data, dict):
        return False
    wanted = name.lower()
    return any(
        str(item.get("filename", "")).lower() == wanted for item in data.get("datas") or []
    )


# Size

def size_params(path: str, name: str) -> dict:
    return {"path": path, "name": name, "total": "1"}


def decode_size(text: str) -> SizeInfo:
    check_envelope(text)
    return SizeInfo.from_dict(parse_json(text))


# Mutations

def delete_params(path: str, names: Union[str, Sequence[str]]) -> List[Tuple[str, str]]:
    if isinstance(names, str):
        names = [names]
    names = list(names)
    pairs = [("path", path)]
    pairs.extend(("file_name", name) for name in names)
    pairs.append(("file_total", str(len(names))))
    return pairs


# Transfers

def download_params(path: str, name: str) -> dict:
    return {
        "source_path": path,
        "source_file": name,
        "isfolder": "0",
        "compress": "0",
        "source_total": "1",
    }


def is_json_response(response: httpx.Response) -> bool:
    content_type = response.headers.get("content-type", "")
    return content_type.split(";")[0].strip().lower() == JSON_CONTENT_TYPE


def check_download_envelope(text: str) -> None:
    """A JSON reply to a download is never content: raise for its status."""
    check_envelope(text)
    raise NotFoundError(5)


def check_content_length(response: httpx.Response) -> None:
    length = response.headers.get("content-length")
    try:
        empty = length is None or int(length) <= 0
    except ValueError:
        empty = True
    if empty:
        raise NotFoundError(5)


def progress_key(dest_folder: str, dest_name: str) -> str:
    return f"{dest_folder}/{dest_name}".replace("/", "-")


def upload_params(dest_folder: str, dest_name: str) -> dict:
    return {
        "dest_path": dest_folder,
        "progress": progress_key(dest_folder, dest_name),
        "type": "standard",
        "overwrite": "1",
    }


def guess_content_type(path: str) -> str:
    content_type, _ = mimetypes.guess_type(path)
    return content_type or DEFAULT_CONTENT_TYPE


def upload_name(source: Union[str, "os.PathLike[str]"], dest_name: Optional[str] = None) -> str:
    return dest_name or os.path.basename(os.fspath(source))
