"""
Document store contract and the in-process backend.

A *document* is one JSON file holding an array of records.  Every
backend answers two calls:

``read(path)``
    Return a :class:`CollectionSnapshot` with the decoded records and
    the document's integrity token (its content hash).  A document
    that has never been written reads as an empty snapshot with no
    token.  Any other failure raises
    :class:`~citysetu_api.app.core.errors.UpstreamUnavailableError`.

``write(path, records, token, message)``
    Commit ``records`` only if the document is still at ``token``
    (``None`` means "must not exist yet").  Returns the new token or
    raises :class:`~citysetu_api.app.core.errors.ConflictError`.

The GitHub backend lives in :mod:`.github_store` and the SQLite backend
in :mod:`.sqlite_store`; :func:`build_store` picks one from settings.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from .config import Settings
from .errors import ConflictError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


@dataclass
class CollectionSnapshot:
    """Records of one document together with the token they were read at."""

    records: List[Record] = field(default_factory=list)
    token: Optional[str] = None

    @property
    def exists(self) -> bool:
        return self.token is not None


class BlobStore(Protocol):
    def read(self, path: str) -> CollectionSnapshot:
        ...

    def write(self, path: str, records: List[Record], token: Optional[str], message: str) -> str:
        ...

    def close(self) -> None:
        ...


def encode_records(records: List[Record]) -> bytes:
    """Serialise records the way they are stored: pretty-printed, newline-terminated."""
    return (json.dumps(records, indent=2, ensure_ascii=False) + "\n").encode("utf-8")


def decode_records(raw: bytes, path: str) -> List[Record]:
    """Parse a stored document.

    Blank documents decode to an empty list.  Anything that is not a
    JSON array of objects is reported as an upstream failure rather
    than replaced with an empty collection.
    """
    try:
        text = raw.decode("utf-8").strip()
    except UnicodeDecodeError as exc:
        raise UpstreamUnavailableError(f"Document {path} is not valid UTF-8", error=str(exc)) from exc
    if not text:
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise UpstreamUnavailableError(f"Document {path} is not valid JSON", error=str(exc)) from exc
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise UpstreamUnavailableError(f"Document {path} does not hold a list of records")
    return data


def content_token(raw: bytes) -> str:
    """Content hash computed like a git blob id."""
    header = f"blob {len(raw)}\0".encode("utf-8")
    return hashlib.sha1(header + raw).hexdigest()


class MemoryBlobStore:
    """Process-local store with the same conditional-write rules.

    Useful for local development and tests; nothing survives a restart.
    Every commit is appended to :attr:`history` as ``(path, token,
    message)``.
    """

    def __init__(self) -> None:
        self._documents: Dict[str, bytes] = {}
        self._lock = threading.Lock()
        self.history: List[tuple] = []

    def read(self, path: str) -> CollectionSnapshot:
        with self._lock:
            raw = self._documents.get(path)
        if raw is None:
            return CollectionSnapshot()
        return CollectionSnapshot(records=decode_records(raw, path), token=content_token(raw))

    def write(self, path: str, records: List[Record], token: Optional[str], message: str) -> str:
        raw = encode_records(records)
        with self._lock:
            current = self._documents.get(path)
            current_token = content_token(current) if current is not None else None
            if current_token != token:
                raise ConflictError(f"Document {path} changed since it was read")
            self._documents[path] = raw
            new_token = content_token(raw)
            self.history.append((path, new_token, message))
        logger.debug("Committed %s at %s: %s", path, new_token, message)
        return new_token

    def close(self) -> None:
        pass


def build_store(settings: Settings) -> BlobStore:
    """Construct the backend named by ``settings.storage_backend``."""
    backend = settings.storage_backend.lower()
    if backend == "github":
        from .github_store import GitHubContentsStore

        if not (settings.github_owner and settings.github_repo):
            logger.warning("GITHUB_OWNER/GITHUB_REPO not set; document store requests will fail")
        return GitHubContentsStore(
            owner=settings.github_owner,
            repo=settings.github_repo,
            token=settings.github_token,
            branch=settings.github_branch,
            api_url=settings.github_api_url,
            timeout=settings.request_timeout,
        )
    if backend == "sqlite":
        from .sqlite_store import SqliteBlobStore

        return SqliteBlobStore(settings.database_url)
    if backend == "memory":
        return MemoryBlobStore()
    raise ValueError(f"Unknown STORAGE_BACKEND {settings.storage_backend!r}")
