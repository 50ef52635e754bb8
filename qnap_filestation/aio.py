"""Asyncio QNAP FileStation API client.

Same operations as :class:`qnap_filestation.api.FileStationClient`, backed by
``httpx.AsyncClient``.
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, List, Optional, Sequence, Union

import httpx

from . import protocol
from .api import PathType
from .errors import InvalidCredentialsError, NotFoundError, TransportError
from .models import Entry, ListKind, Session, SizeInfo, SortDirection, SortField, TreeNode

logger = logging.getLogger(__name__)


class AsyncFileStationClient:
    """Async QNAP FileStation API client.

    Downloads write to disk in a worker thread. Uploads hand the open source
    file to httpx, which reads it on the event loop while the body is sent.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0,
    ):
        self.base_url = (base_url or os.environ.get("QNAP_URL", "")).rstrip("/")
        if not self.base_url:
            raise ValueError("QNAP_URL environment variable required")

        self.session: Optional[Session] = None
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "AsyncFileStationClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def authenticated(self) -> bool:
        return self.session is not None

    @property
    def _sid(self) -> Optional[str]:
        return self.session.sid if self.session else None

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.warning(f"Request to {self.base_url} failed: {e}")
            raise TransportError(str(e)) from e
        protocol.raise_for_transport(response)
        return response

    async def _call(self, func: str, params: protocol.Params) -> str:
        url = protocol.build_url(self.base_url, self._sid, func, params)
        logger.debug(f"FileStation GET func={func}")
        response = await self._request("GET", url)
        return response.text

    async def login(self, user: str, password: str) -> Session:
        self.session = None
        response = await self._request(
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

    async def list(
        self,
        path: str,
        kind: ListKind = ListKind.ALL,
        limit: int = 500,
        sort: SortField = SortField.NAME,
        direction: SortDirection = SortDirection.ASC,
        pattern: Optional[str] = None,
    ) -> List[Entry]:
        text = await self._call("get_list", protocol.list_params(path, limit, sort, direction))
        return protocol.decode_entries(text, kind, pattern)

    async def tree(self, node: str) -> List[TreeNode]:
        text = await self._call("get_tree", protocol.tree_params(node))
        return protocol.decode_tree(text)

    async def exists(self, path: str, name: str) -> bool:
        text = await self._call("get_list", protocol.exists_params(path, name))
        return protocol.decode_exists(text, name)

    async def get_size(self, path: str, name: str) -> SizeInfo:
        text = await self._call("get_file_size", protocol.size_params(path, name))
        return protocol.decode_size(text)

    async def create_folder(self, parent: str, name: str) -> None:
        text = await self._call("createdir", {"dest_path": parent, "dest_folder": name})
        protocol.check_envelope(text)
        logger.info(f"Created folder {parent}/{name}")

    async def rename(self, path: str, source_name: str, dest_name: str) -> None:
        params = {"path": path, "source_name": source_name, "dest_name": dest_name}
        protocol.check_envelope(await self._call("rename", params))
        logger.info(f"Renamed {path}/{source_name} to {dest_name}")

    async def delete(self, path: str, names: Union[str, Sequence[str]]) -> None:
        protocol.check_envelope(await self._call("delete", protocol.delete_params(path, names)))
        logger.info(f"Deleted {names!r} from {path}")

    @asynccontextmanager
    async def open_download(self, path: str, name: str) -> AsyncIterator[AsyncIterator[bytes]]:
        url = protocol.build_url(self.base_url, self._sid, "download", protocol.download_params(path, name))
        logger.debug(f"FileStation GET func=download {path}/{name}")
        try:
            async with self._client.stream("GET", url) as response:
                protocol.raise_for_transport(response)
                if protocol.is_json_response(response):
                    await response.aread()
                    protocol.check_download_envelope(response.text)
                protocol.check_content_length(response)
                yield response.aiter_bytes()
        except httpx.RequestError as e:
            logger.warning(f"Download of {path}/{name} failed: {e}")
            raise TransportError(str(e)) from e

    async def read(self, path: str, name: str) -> bytes:
        async with self.open_download(path, name) as chunks:
            return b"".join([chunk async for chunk in chunks])

    async def download(self, path: str, name: str, dest: PathType) -> int:
        dest = Path(dest)
        written = 0
        async with self.open_download(path, name) as chunks:
            f = await asyncio.to_thread(open, dest, "wb")
            try:
                async for chunk in chunks:
                    await asyncio.to_thread(f.write, chunk)
                    written += len(chunk)
            finally:
                await asyncio.to_thread(f.close)

        if written == 0:
            dest.unlink()
            raise NotFoundError(5)
        logger.info(f"Downloaded {path}/{name} ({written} bytes)")
        return written

    async def upload(self, source: PathType, dest_folder: str, dest_name: Optional[str] = None) -> None:
        source_path = os.fspath(source)
        name = protocol.upload_name(source_path, dest_name)
        url = protocol.build_url(self.base_url, self._sid, "upload", protocol.upload_params(dest_folder, name))

        with open(source_path, "rb") as f:
            files = {name: (source_path, f, protocol.guess_content_type(source_path))}
            logger.debug(f"FileStation POST func=upload {dest_folder}/{name}")
            response = await self._request("POST", url, files=files)

        protocol.check_envelope(response.text)
        logger.info(f"Uploaded {source_path} to {dest_folder}/{name}")
