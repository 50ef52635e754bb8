"""Shared fixtures: an in-memory QNAP NAS behind httpx.MockTransport."""

from __future__ import annotations

import base64
import json
from email.parser import BytesParser
from email.policy import HTTP
from typing import Any

import httpx
import pytest

from qnap_filestation import AsyncFileStationClient, FileStationClient

BASE_URL = "http://nas.local:8080"
SID = "q8f3k2ld"


def json_response(data: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code=status_code,
        content=json.dumps(data).encode(),
        headers={"content-type": "application/json"},
    )


def login_xml(passed: bool, sid: str = "") -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8" ?>'
        "<QDocRoot version=\"1.0\">"
        f"<authPassed><![CDATA[{1 if passed else 0}]]></authPassed>"
        f"<authSid><![CDATA[{sid}]]></authSid>"
        "</QDocRoot>"
    )


def parse_multipart(request: httpx.Request) -> list[dict]:
    """Split a multipart/form-data body into its parts."""
    head = f"Content-Type: {request.headers['content-type']}\r\n\r\n".encode()
    message = BytesParser(policy=HTTP).parsebytes(head + request.content)
    parts = []
    for part in message.iter_parts():
        parts.append({
            "name": part.get_param("name", header="content-disposition"),
            "filename": part.get_filename(),
            "content_type": part.get_content_type(),
            "content": part.get_payload(decode=True),
        })
    return parts


class FakeNAS:
    """Minimal FileStation: folders map names to bytes (files) or None (folders)."""

    def __init__(self, user: str = "admin", password: str = "secret"):
        self.user = user
        self.password = password
        self.folders: dict[str, dict[str, bytes | None]] = {
            "/Public": {"docs": None, "report1.pdf": b"%PDF-1.4 report", "invoice.pdf": b"%PDF-1.4 invoice"},
            "/Public/docs": {"empty.txt": b""},
        }
        self.requests: list[httpx.Request] = []
        self.uploads: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/cgi-bin/authLogin.cgi":
            return self.login(request)
        params = request.url.params
        if params.get("sid") != SID:
            return json_response({"status": 3, "success": False})
        handler = getattr(self, "func_" + params.get("func", ""), None)
        if handler is None:
            return json_response({"status": 0})
        return handler(params, request)

    def login(self, request: httpx.Request) -> httpx.Response:
        params = request.url.params
        expected = base64.b64encode(self.password.encode("utf-8")).decode()
        passed = params.get("user") == self.user and params.get("pwd") == expected
        return httpx.Response(200, text=login_xml(passed, SID if passed else ""),
                              headers={"content-type": "text/xml"})

    def item(self, folder: str, name: str) -> dict:
        content = self.folders[folder][name]
        return {
            "filename": name,
            "filesize": "0" if content is None else str(len(content)),
            "isfolder": 1 if content is None else 0,
            "owner": "admin",
            "group": "administrators",
            "mt": "2024/01/15 09:30:00",
        }

    def func_get_list(self, params, request):
        path = params["path"]
        if path not in self.folders:
            return json_response({"status": 5, "success": False})
        names = list(self.folders[path])
        if "filename" in params:
            names = [n for n in names if n.lower() == params["filename"].lower()]
        datas = [self.item(path, n) for n in names][: int(params.get("limit", 500))]
        return json_response({"total": len(datas), "datas": datas})

    def func_get_tree(self, params, request):
        node = params["node"]
        if node not in self.folders:
            return json_response({"status": 5, "success": False})
        return json_response([
            {"id": f"{node}/{name}", "text": name, "cls": "r"}
            for name, content in self.folders[node].items() if content is None
        ])

    def func_createdir(self, params, request):
        parent, name = params["dest_path"], params["dest_folder"]
        if parent not in self.folders:
            return json_response({"status": 25, "success": False})
        if name in self.folders[parent]:
            return json_response({"status": 33, "success": False})
        self.folders[parent][name] = None
        self.folders[f"{parent}/{name}"] = {}
        return json_response({"status": 1, "success": True})

    def func_delete(self, params, request):
        path = params["path"]
        names = params.get_list("file_name")
        if path not in self.folders or any(n not in self.folders[path] for n in names):
            return json_response({"status": 5, "success": False})
        for name in names:
            del self.folders[path][name]
            self.folders.pop(f"{path}/{name}", None)
        return json_response({"status": 1, "success": True})

    def func_rename(self, params, request):
        path = params["path"]
        entries = self.folders.get(path, {})
        if params["source_name"] not in entries:
            return json_response({"status": 5, "success": False})
        if params["dest_name"] in entries:
            return json_response({"status": 2, "success": False})
        entries[params["dest_name"]] = entries.pop(params["source_name"])
        return json_response({"status": 1, "success": True})

    def func_get_file_size(self, params, request):
        path, name = params["path"], params["name"]
        if name not in self.folders.get(path, {}):
            return json_response({"status": 5, "success": False})
        full = f"{path}/{name}"
        if full not in self.folders:
            size = len(self.folders[path][name])
            return json_response({"status": 1, "size": str(size), "filecnt": "1", "foldercnt": "0"})
        files = [c for c in self.folders[full].values() if c is not None]
        folders = [c for c in self.folders[full].values() if c is None]
        return json_response({
            "status": 1,
            "size": str(sum(len(c) for c in files)),
            "filecnt": str(len(files)),
            "foldercnt": str(len(folders)),
        })

    def func_download(self, params, request):
        content = self.folders.get(params["source_path"], {}).get(params["source_file"])
        if content is None:
            return json_response({"status": 5, "success": False})
        return httpx.Response(200, content=content, headers={"content-type": "application/octet-stream"})

    def func_upload(self, params, request):
        dest = params["dest_path"]
        if dest not in self.folders:
            return json_response({"status": 25, "success": False})
        for part in parse_multipart(request):
            self.uploads.append(part)
            self.folders[dest][part["name"]] = part["content"]
        return json_response({"status": 1, "success": True})


@pytest.fixture
def nas() -> FakeNAS:
    return FakeNAS()


@pytest.fixture
def client(nas: FakeNAS):
    http_client = httpx.Client(transport=httpx.MockTransport(nas))
    with FileStationClient(BASE_URL, http_client=http_client) as fs:
        yield fs
    http_client.close()


@pytest.fixture
def logged_in(client: FileStationClient, nas: FakeNAS) -> FileStationClient:
    client.login("admin", "secret")
    nas.requests.clear()
    return client


@pytest.fixture
async def async_client(nas: FakeNAS):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(nas))
    async with AsyncFileStationClient(BASE_URL, http_client=http_client) as fs:
        yield fs
    await http_client.aclose()
