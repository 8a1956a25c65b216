"""
Record collections on top of a document store.

Every collection (workers, chat bookings, call logs, ...) is a single
JSON document holding an ordered array of records.  All mutations go
through one read-modify-write loop:

1. read the document and its integrity token,
2. apply the change to the freshly read records,
3. write back conditioned on the token.

If the store refuses step 3 because another writer committed first,
the loop starts over from step 1 after a short backoff, up to
``max_attempts`` times.  Generated ids and timestamps are fixed before
the first attempt, so the record returned to the caller is exactly the
one that was committed.

Record ids are ``<PREFIX>-`` followed by six random base36 characters.
Uniqueness is not checked against existing records; at the volumes
this backend is built for (dozens of records a day) a collision among
2.1 billion codes is not a practical concern.
"""

from __future__ import annotations

import logging
import random
import string
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple, TypeVar

from .errors import ConflictError, NotFoundError, RecordValidationError
from .store import BlobStore, Record

logger = logging.getLogger(__name__)

T = TypeVar("T")

ID_ALPHABET = string.digits + string.ascii_uppercase
ID_LENGTH = 6


@dataclass(frozen=True)
class Collection:
    name: str
    id_prefix: str
    label: str


COLLECTIONS: Dict[str, Collection] = {
    c.name: c
    for c in (
        Collection("workers", "WORKER", "worker"),
        Collection("chats", "CHAT", "chat booking"),
        Collection("calls", "CALL", "call log"),
        Collection("signups", "SIGNUP", "worker signup"),
        Collection("leads", "LEAD", "lead"),
        Collection("chat_questions", "QA", "chat question"),
        Collection("chat_sessions", "SESSION", "chat session"),
    )
}


def generate_id(prefix: str) -> str:
    """Return ``<prefix>-`` plus six random characters from ``[0-9A-Z]``."""
    code = "".join(random.choices(ID_ALPHABET, k=ID_LENGTH))
    return f"{prefix}-{code}"


def utc_timestamp() -> str:
    """Current UTC time as ISO‑8601 with millisecond precision and ``Z`` suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class RecordRepository:
    """Append, update, list and remove records in named collections."""

    def __init__(
        self,
        store: BlobStore,
        *,
        data_dir: str = "data",
        max_attempts: int = 5,
        backoff: float = 0.2,
    ) -> None:
        self.store = store
        self.data_dir = data_dir.strip("/")
        self.max_attempts = max(1, max_attempts)
        self.backoff = backoff

    # ------------------------------------------------------------------
    # Collection lookup
    # ------------------------------------------------------------------
    def collection(self, name: str) -> Collection:
        try:
            return COLLECTIONS[name]
        except KeyError:
            raise NotFoundError(f"Unknown collection {name!r}") from None

    def path_for(self, name: str) -> str:
        self.collection(name)
        return f"{self.data_dir}/{name}.json" if self.data_dir else f"{name}.json"

    def collection_for_id(self, record_id: str) -> str:
        """Name of the collection whose id prefix ``record_id`` carries."""
        prefix = record_id.split("-", 1)[0].upper()
        for collection in COLLECTIONS.values():
            if collection.id_prefix == prefix:
                return collection.name
        raise RecordValidationError(f"Unrecognised id prefix in {record_id!r}")

    # ------------------------------------------------------------------
    # Read-modify-write loop
    # ------------------------------------------------------------------
    def _sleep_backoff(self, attempt: int) -> None:
        delay = min(self.backoff * 2 ** (attempt - 1), 5.0) + random.uniform(0, self.backoff)
        logger.warning("Write conflict #%d, sleeping %.2fs before retry", attempt, delay)
        time.sleep(delay)

    def _mutate(
        self,
        path: str,
        change: Callable[[List[Record]], Tuple[Optional[List[Record]], T]],
        message: str,
    ) -> T:
        """Apply ``change`` to the current records of ``path`` and commit.

        ``change`` receives the freshly read records and returns the new
        list together with the value to hand back to the caller; a new
        list of ``None`` means nothing needs writing.  Exceptions raised
        by ``change`` abort the operation without a write.
        """
        for attempt in range(1, self.max_attempts + 1):
            snapshot = self.store.read(path)
            new_records, result = change(snapshot.records)
            if new_records is None:
                return result
            try:
                self.store.write(path, new_records, snapshot.token, message)
                return result
            except ConflictError:
                if attempt == self.max_attempts:
                    logger.error("Giving up on %s after %d conflicting writes", path, attempt)
                    raise
                self._sleep_backoff(attempt)
        raise AssertionError("unreachable")

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def append(self, name: str, fields: Record) -> Record:
        """Add a record with a generated ``id`` and ``timestamp``."""
        collection = self.collection(name)
        record: Record = {"id": generate_id(collection.id_prefix)}
        record.update({k: v for k, v in fields.items() if k not in ("id", "timestamp")})
        record["timestamp"] = utc_timestamp()

        def change(records: List[Record]) -> Tuple[List[Record], Record]:
            return records + [record], record

        committed = self._mutate(
            self.path_for(name), change, f"Add {collection.label} {record['id']}"
        )
        logger.info("Appended %s to %s", record["id"], name)
        return committed

    def find(self, name: str, record_id: str) -> Record:
        for record in self.list(name):
            if record.get("id") == record_id:
                return record
        raise NotFoundError(f"{self.collection(name).label.capitalize()} {record_id} not found")

    def find_and_update(
        self,
        name: str,
        record_id: str,
        patch: Record,
        precondition: Optional[Callable[[Record], None]] = None,
    ) -> Record:
        """Overwrite the fields present in ``patch`` on the record with ``record_id``.

        ``precondition`` is called with the freshly read record on every
        attempt, before the patch is applied; an exception it raises
        aborts the update without a write.
        """
        collection = self.collection(name)
        changes = {k: v for k, v in patch.items() if k != "id"}

        def change(records: List[Record]) -> Tuple[List[Record], Record]:
            for index, record in enumerate(records):
                if record.get("id") == record_id:
                    if precondition is not None:
                        precondition(record)
                    updated = {**record, **changes}
                    return records[:index] + [updated] + records[index + 1:], updated
            raise NotFoundError(f"{collection.label.capitalize()} {record_id} not found")

        fields = ", ".join(sorted(changes)) or "no fields"
        updated = self._mutate(
            self.path_for(name), change, f"Update {collection.label} {record_id} ({fields})"
        )
        logger.info("Updated %s in %s: %s", record_id, name, fields)
        return updated

    def list(self, name: str, predicate: Optional[Callable[[Record], bool]] = None) -> List[Record]:
        """Records of ``name`` in insertion order, optionally filtered."""
        records = self.store.read(self.path_for(name)).records
        if predicate is None:
            return records
        return [record for record in records if predicate(record)]

    def remove(self, name: str, record_id: str) -> bool:
        collection = self.collection(name)

        def change(records: List[Record]) -> Tuple[List[Record], bool]:
            remaining = [record for record in records if record.get("id") != record_id]
            if len(remaining) == len(records):
                raise NotFoundError(f"{collection.label.capitalize()} {record_id} not found")
            return remaining, True

        removed = self._mutate(
            self.path_for(name), change, f"Remove {collection.label} {record_id}"
        )
        logger.info("Removed %s from %s", record_id, name)
        return removed

    def snapshot(self, name: str, target_path: str, message: str) -> int:
        """Copy the current records of ``name`` to ``target_path``.

        The target is overwritten whatever it holds.  Returns the number
        of records copied.
        """
        records = self.list(name)

        def change(_existing: List[Record]) -> Tuple[List[Record], int]:
            return records, len(records)

        count = self._mutate(target_path, change, message)
        logger.info("Copied %d records of %s to %s", count, name, target_path)
        return count
