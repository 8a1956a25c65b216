"""GitHub repository used as a JSON document store.

Each collection is one file in a GitHub repository, read and written
through the REST "repository contents" API.  The blob ``sha`` GitHub
returns for a file is the integrity token: a ``PUT`` carrying a stale
``sha`` is refused with HTTP 409, which this client reports as
:class:`~citysetu_api.app.core.errors.ConflictError`.  Every write is a
commit, so the repository history doubles as an audit trail of all
changes to the data.

Status handling:

* ``GET`` 404 means the file has never been written and reads as an
  empty collection.
* Every other failure (network error, timeout, 401/403 from a bad
  token or rate limiting, 5xx) raises
  :class:`~citysetu_api.app.core.errors.UpstreamUnavailableError`; the
  client never guesses that data is absent.
* A timed-out ``PUT`` is reported, not retried: the commit may or may
  not have landed.
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Optional

import requests

from .errors import ConflictError, UpstreamUnavailableError
from .store import CollectionSnapshot, Record, decode_records, encode_records

logger = logging.getLogger(__name__)


class GitHubContentsStore:
    """Read and commit JSON documents in one branch of a GitHub repository."""

    def __init__(
        self,
        *,
        owner: str,
        repo: str,
        token: str,
        branch: str = "main",
        api_url: str = "https://api.github.com",
        timeout: float = 15,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialise the client.

        Args:
            owner: Account or organisation owning the repository.
            repo: Repository name.
            token: Personal access or app token with contents write access.
            branch: Branch the documents live on.
            api_url: Base URL of the GitHub REST API.
            timeout: Seconds before a single request is abandoned.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
        """
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
        )
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _contents_url(self, path: str) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}/contents/{path.lstrip('/')}"

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """Send a request, translating transport failures into store errors."""
        logger.debug("Sending %s request to %s", method, url)
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as exc:
            logger.error("GitHub %s %s timed out after %ss", method, url, self.timeout)
            raise UpstreamUnavailableError(
                "Document store timed out", error=str(exc), timed_out=True
            ) from exc
        except requests.RequestException as exc:
            logger.error("GitHub %s %s failed: %s", method, url, exc)
            raise UpstreamUnavailableError("Document store unreachable", error=str(exc)) from exc

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text or response.reason or ""
        if isinstance(payload, dict):
            return str(payload.get("message") or payload)
        return str(payload)

    @classmethod
    def _is_sha_mismatch(cls, response: requests.Response) -> bool:
        """Whether a rejected write means the file moved past our sha.

        GitHub also answers 409 for states no retry can fix, such as an
        empty repository, so the message has to name the sha.
        """
        if response.status_code not in (409, 422):
            return False
        message = cls._error_message(response).lower()
        return "sha" in message or "does not match" in message

    def _upstream_error(self, action: str, path: str, response: requests.Response) -> UpstreamUnavailableError:
        message = self._error_message(response)
        logger.error("GitHub %s of %s failed (%s): %s", action, path, response.status_code, message)
        return UpstreamUnavailableError(
            f"Document store {action} failed for {path}",
            error={"status_code": response.status_code, "message": message},
        )

    # ------------------------------------------------------------------
    # Document operations
    # ------------------------------------------------------------------
    def read(self, path: str) -> CollectionSnapshot:
        """Fetch a document and its blob sha.

        Returns an empty snapshot without a token when the file does
        not exist on the branch.
        """
        response = self._request("GET", self._contents_url(path), params={"ref": self.branch})
        if response.status_code == 404:
            logger.info("Document %s not found on %s; starting empty", path, self.branch)
            return CollectionSnapshot()
        if response.status_code != 200:
            raise self._upstream_error("read", path, response)
        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamUnavailableError(f"Document store returned malformed JSON for {path}") from exc
        if not isinstance(payload, dict) or payload.get("type", "file") != "file":
            raise UpstreamUnavailableError(f"{path} is not a file in the document store")

        sha = payload.get("sha")
        if not sha:
            raise UpstreamUnavailableError(f"Document store returned no sha for {path}")
        content = payload.get("content") or ""
        if not content and payload.get("encoding") == "none":
            # Files over 1 MB come back without inline content.
            content = self._read_blob(sha, path)
        try:
            raw = base64.b64decode(content)
        except ValueError as exc:
            raise UpstreamUnavailableError(f"Document store returned undecodable content for {path}") from exc
        return CollectionSnapshot(records=decode_records(raw, path), token=sha)

    def _read_blob(self, sha: str, path: str) -> str:
        url = f"{self.api_url}/repos/{self.owner}/{self.repo}/git/blobs/{sha}"
        response = self._request("GET", url)
        if response.status_code != 200:
            raise self._upstream_error("read", path, response)
        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamUnavailableError(f"Document store returned malformed JSON for {path}") from exc
        if not isinstance(payload, dict):
            raise UpstreamUnavailableError(f"Document store returned no blob for {path}")
        return payload.get("content") or ""

    def write(self, path: str, records: List[Record], token: Optional[str], message: str) -> str:
        """Commit ``records`` to ``path`` if the file is still at ``token``.

        ``token`` of ``None`` creates the file; GitHub refuses the
        create if someone else created it first.  Returns the sha of
        the committed blob.
        """
        body: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(encode_records(records)).decode("ascii"),
            "branch": self.branch,
        }
        if token:
            body["sha"] = token
        response = self._request("PUT", self._contents_url(path), json=body)
        if response.status_code in (200, 201):
            payload = response.json()
            new_sha = payload["content"]["sha"]
            commit_sha = (payload.get("commit") or {}).get("sha")
            logger.info("Committed %s (%d records) as %s in %s", path, len(records), new_sha, commit_sha)
            return new_sha
        if self._is_sha_mismatch(response):
            logger.warning("GitHub rejected write to %s at %s: document changed", path, token)
            raise ConflictError(f"Document {path} changed since it was read")
        raise self._upstream_error("write", path, response)

    def close(self) -> None:
        self.session.close()
