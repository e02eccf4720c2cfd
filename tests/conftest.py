"""
Shared fixtures.

Redis is fakeredis (one private server per test); Vimeo is an
httpx.MockTransport stub that records every request it sees.
"""

import os

# Settings are read at import time, so the environment goes first.
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("VIMEO_TOKEN", "test-token")
os.environ.setdefault("VIMEO_FOLDER_ID", "777")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("CRON_SECRET", "")

import re  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
from fakeredis import FakeAsyncRedis, FakeServer  # noqa: E402

from core.vimeo_client import VimeoClient  # noqa: E402
from repository.pending_upload_repository import PendingUploadRepository  # noqa: E402

VIMEO_API = "https://api.vimeo.test"

_VIDEO_PATH = re.compile(r"^/videos/(?P<id>[^/]+)$")
_FOLDER_PATH = re.compile(r"^/me/folders/(?P<folder>[^/]+)/videos/(?P<id>[^/]+)$")


class VimeoStub:
    """Minimal in-process Vimeo: create, add-to-folder, delete, whoami."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.created: list[str] = []
        self.deleted: list[str] = []
        self.create_status = 201
        self.create_body: dict | None = None
        self.folder_status = 204
        self.delete_status: dict[str, int] = {}
        self._next_id = 1000

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path == "/me/videos":
            if self.create_status // 100 != 2:
                return httpx.Response(self.create_status, text="quota exceeded")
            if self.create_body is not None:
                return httpx.Response(self.create_status, json=self.create_body)
            self._next_id += 1
            vid = str(self._next_id)
            self.created.append(vid)
            return httpx.Response(
                self.create_status,
                json={
                    "uri": f"/videos/{vid}",
                    "link": f"https://vimeo.com/{vid}",
                    "upload": {
                        "approach": "tus",
                        "upload_link": f"https://tus.vimeo.test/files/{vid}",
                    },
                },
            )

        if request.method == "PUT" and _FOLDER_PATH.match(path):
            return httpx.Response(self.folder_status)

        m = _VIDEO_PATH.match(path)
        if request.method == "DELETE" and m:
            vid = m.group("id")
            code = self.delete_status.get(vid, 204)
            if code // 100 == 2 or code == 404:
                self.deleted.append(vid)
            return httpx.Response(code, text="" if code < 400 else "upstream says no")

        if request.method == "GET" and path == "/me":
            return httpx.Response(
                200,
                json={
                    "uri": "/users/42",
                    "name": "Relay Bot",
                    "link": "https://vimeo.com/user42",
                    "account": "pro",
                },
            )

        return httpx.Response(404)


@pytest.fixture
def redis():
    return FakeAsyncRedis(server=FakeServer())


@pytest.fixture
def repo(redis):
    return PendingUploadRepository(
        redis=redis, ttl_seconds=3600, confirmed_ttl_seconds=86400
    )


@pytest.fixture
def vimeo_stub():
    return VimeoStub()


@pytest.fixture
def vimeo(vimeo_stub):
    return VimeoClient(
        "test-token",
        api_url=VIMEO_API,
        web_url="https://vimeo.com",
        folder_id="777",
        privacy="unlisted",
        timeout=2.0,
        transport=httpx.MockTransport(vimeo_stub.handler),
    )
