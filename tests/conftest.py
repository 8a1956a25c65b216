"""Shared fixtures for the CitySetu API test suite."""

import base64
import hashlib
from typing import Any, Dict, List, Optional, Tuple

import pytest
import requests
from fastapi.testclient import TestClient

from citysetu_api.app.core.config import Settings
from citysetu_api.app.core.repository import RecordRepository
from citysetu_api.app.core.store import MemoryBlobStore
from citysetu_api.app.main import create_app

ADMIN_TOKEN = "test-admin-token"


# ============================================================================
# Fake GitHub contents API
# ============================================================================

class FakeResponse:
    def __init__(self, status_code: int, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.reason = ""

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class FakeGitHubSession:
    """Stand-in for ``requests.Session`` speaking the repository contents API.

    Files are kept in memory keyed by repository path.  A ``PUT`` with a
    stale or missing ``sha`` is refused the way GitHub refuses it.
    Queue responses or exceptions in :attr:`injected` to override the
    next calls.
    """

    def __init__(self) -> None:
        self.headers: Dict[str, str] = {}
        self.files: Dict[str, Tuple[bytes, str]] = {}
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []
        self.injected: List[Any] = []
        self.closed = False

    @staticmethod
    def _sha(raw: bytes) -> str:
        return hashlib.sha1(b"blob %d\0" % len(raw) + raw).hexdigest()

    def put_file(self, path: str, raw: bytes) -> str:
        sha = self._sha(raw)
        self.files[path] = (raw, sha)
        return sha

    def _path(self, url: str) -> str:
        return url.split("/contents/", 1)[1]

    def request(self, method: str, url: str, timeout: Optional[float] = None, **kwargs: Any) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        if self.injected:
            injected = self.injected.pop(0)
            if isinstance(injected, Exception):
                raise injected
            return injected
        path = self._path(url)
        if method == "GET":
            if path not in self.files:
                return FakeResponse(404, {"message": "Not Found"})
            raw, sha = self.files[path]
            return FakeResponse(
                200,
                {
                    "type": "file",
                    "path": path,
                    "sha": sha,
                    "encoding": "base64",
                    "content": base64.encodebytes(raw).decode("ascii"),
                },
            )
        if method == "PUT":
            body = kwargs["json"]
            current = self.files.get(path)
            if current is not None and "sha" not in body:
                return FakeResponse(422, {"message": 'Invalid request.\n\n"sha" wasn\'t supplied.'})
            if current is not None and body["sha"] != current[1]:
                return FakeResponse(409, {"message": f"{path} does not match {body['sha']}"})
            if current is None and "sha" in body:
                return FakeResponse(409, {"message": f"{path} does not match {body['sha']}"})
            sha = self.put_file(path, base64.b64decode(body["content"]))
            status = 200 if current is not None else 201
            return FakeResponse(status, {"content": {"path": path, "sha": sha}, "commit": {"sha": "c" * 40}})
        raise AssertionError(f"Unexpected method {method}")

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def github_session():
    return FakeGitHubSession()


@pytest.fixture
def github_store(github_session):
    from citysetu_api.app.core.github_store import GitHubContentsStore

    return GitHubContentsStore(
        owner="citysetu",
        repo="data",
        token="gh-test-token",
        branch="main",
        session=github_session,
    )


# ============================================================================
# Storage and repository fixtures
# ============================================================================

@pytest.fixture
def store():
    return MemoryBlobStore()


@pytest.fixture
def repository(store):
    return RecordRepository(store, data_dir="data", max_attempts=5, backoff=0)


@pytest.fixture
def sqlite_store(tmp_path):
    from citysetu_api.app.core.sqlite_store import SqliteBlobStore

    return SqliteBlobStore(str(tmp_path / "citysetu.db"))


# ============================================================================
# Application fixtures
# ============================================================================

@pytest.fixture
def settings():
    return Settings(admin_token=ADMIN_TOKEN, storage_backend="memory", retry_backoff=0)


@pytest.fixture
def app(settings, store):
    return create_app(settings=settings, store=store)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def timeout_error():
    return requests.Timeout("read timed out")
