"""Blocking QNAP FileStation API client."""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

import httpx

from . import protocol
from .errors import InvalidCredentialsError, NotFoundError, TransportError
from .models import Entry, ListKind, Session, SizeInfo, SortDirection, SortField, TreeNode

logger = logging.getLogger(__name__)

PathType = Union[str, "os.PathLike[str]"]


class FileStationClient:
    """QNAP FileStation API client.

    The base URL falls back to the ``QNAP_URL`` environment variable. An
    ``httpx.Client`` may be passed in to control timeouts, TLS and proxies;
    it is then left open by :meth:`close`.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 60.0,
    ):
        self.base_url = (base_url or os.environ.get("QNAP_URL", "")).rstrip("/")
        if not self.base_url:
            raise ValueError("QNAP_URL environment variable required")

        self.session: Optional[Session] = None
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)

    def __enter__(self) -> "FileStationClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    @property
    def authenticated(self) -> bool:
        return self.session is not None

    @property
    def _sid(self) -> Optional[str]:
        return self.session.sid if self.session else None

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send one request; transport failures surface as TransportError."""
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.warning(f"Request to {self.base_url} failed: {e}")
            raise TransportError(str(e)) from e
        protocol.raise_for_transport(response)
        return response

    def _call(self, func: str, params: protocol.Params) -> str:
        url = protocol.build_url(self.base_url, self._sid, func, params)
        logger.debug(f"FileStation GET func={func}")
        return self._request("GET", url).text

    def login(self, user: str, password: str) -> Session:
        """Authenticate and keep the returned session for later calls."""
        self.session = None
        response = self._request(
            "GET",
            f"{self.base_url}{protocol.AUTH_PATH}",
            params=protocol.login_params(user, password),
        )
        try:
            sid = protocol.parse_login(response.text)
        except InvalidCredentialsError:
            logger.warning(f"Login rejected for user {user}")
            raise

        self.session = Session(sid=sid, user=user)
        logger.info(f"Logged in to {self.base_url} as {user}")
        return self.session

    def list(
        self,
        path: str,
        kind: ListKind = ListKind.ALL,
        limit: int = 500,
        sort: SortField = SortField.NAME,
        direction: SortDirection = SortDirection.ASC,
        pattern: Optional[str] = None,
    ) -> List[Entry]:
        """List the entries of a folder, optionally filtered by kind and regex."""
        text = self._call("get_list", protocol.list_params(path, limit, sort, direction))
        return protocol.decode_entries(text, kind, pattern)

    def tree(self, node: str) -> List[TreeNode]:
        """List the sub-folders of a folder as tree nodes."""
        text = self._call("get_tree", protocol.tree_params(node))
        return protocol.decode_tree(text)

    def exists(self, path: str, name: str) -> bool:
        text = self._call("get_list", protocol.exists_params(path, name))
        return protocol.decode_exists(text, name)

    def get_size(self, path: str, name: str) -> SizeInfo:
        text = self._call("get_file_size", protocol.size_params(path, name))
        return protocol.decode_size(text)

    def create_folder(self, parent: str, name: str) -> None:
        protocol.check_envelope(self._call("createdir", {"dest_path": parent, "dest_folder": name}))
        logger.info(f"Created folder {parent}/{name}")

    def rename(self, path: str, source_name: str, dest_name: str) -> None:
        params = {"path": path, "source_name": source_name, "dest_name": dest_name}
        protocol.check_envelope(self._call("rename", params))
        logger.info(f"Renamed {path}/{source_name} to {dest_name}")

    def delete(self, path: str, names: Union[str, Sequence[str]]) -> None:
        """Delete one or several files or folders under ``path``."""
        protocol.check_envelope(self._call("delete", protocol.delete_params(path, names)))
        logger.info(f"Deleted {names!r} from {path}")

    @contextmanager
    def open_download(self, path: str, name: str) -> Iterator[Iterator[bytes]]:
        """Open a file on the NAS and yield an iterator over its bytes.

        The response is closed when the block exits.
        """
        url = protocol.build_url(self.base_url, self._sid, "download", protocol.download_params(path, name))
        logger.debug(f"FileStation GET func=download {path}/{name}")
        try:
            with self._client.stream("GET", url) as response:
                protocol.raise_for_transport(response)
                if protocol.is_json_response(response):
                    response.read()
                    protocol.check_download_envelope(response.text)
                protocol.check_content_length(response)
                yield response.iter_bytes()
        except httpx.RequestError as e:
            logger.warning(f"Download of {path}/{name} failed: {e}")
            raise TransportError(str(e)) from e

    def read(self, path: str, name: str) -> bytes:
        with self.open_download(path, name) as chunks:
            return b"".join(chunks)

    def download(self, path: str, name: str, dest: PathType) -> int:
        """Download a file to ``dest`` and return the number of bytes written."""
        dest = Path(dest)
        written = 0
        with self.open_download(path, name) as chunks:
            with open(dest, "wb") as f:
                for chunk in chunks:
                    f.write(chunk)
                    written += len(chunk)

        if written == 0:
            dest.unlink()
            raise NotFoundError(5)
        logger.info(f"Downloaded {path}/{name} ({written} bytes)")
        return written

    def upload(self, source: PathType, dest_folder: str, dest_name: Optional[str] = None) -> None:
        """Upload a local file into ``dest_folder``, optionally renaming it."""
        source_path = os.fspath(source)
        name = protocol.upload_name(source_path, dest_name)
        url = protocol.build_url(self.base_url, self._sid, "upload", protocol.upload_params(dest_folder, name))

        with open(source_path, "rb") as f:
            files = {name: (source_path, f, protocol.guess_content_type(source_path))}
            logger.debug(f"FileStation POST func=upload {dest_folder}/{name}")
            response = self._request("POST", url, files=files)

        protocol.check_envelope(response.text)
        logger.info(f"Uploaded {source_path} to {dest_folder}/{name}")
