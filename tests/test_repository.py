"""Tests for the record repository's read-modify-write semantics."""

import asyncio
import re

import pytest

from citysetu_api.app.core.errors import ConflictError, NotFoundError, RecordValidationError
from citysetu_api.app.core.repository import RecordRepository, generate_id, utc_timestamp
from citysetu_api.app.core.store import MemoryBlobStore
from citysetu_api.app.services.worker_service import WorkerService


class InterleavingStore:
    """Wraps a store and lets another writer commit just before our next write."""

    def __init__(self, inner):
        self.inner = inner
        self.before_write = None
        self.writes = 0

    def read(self, path):
        return self.inner.read(path)

    def write(self, path, records, token, message):
        self.writes += 1
        if self.before_write is not None:
            hook, self.before_write = self.before_write, None
            hook()
        return self.inner.write(path, records, token, message)

    def close(self):
        pass


class AlwaysConflictingStore(MemoryBlobStore):
    def __init__(self):
        super().__init__()
        self.attempts = 0

    def write(self, path, records, token, message):
        self.attempts += 1
        raise ConflictError(f"Document {path} changed since it was read")


def test_generated_ids_use_prefix_and_six_base36_chars():
    for _ in range(50):
        assert re.fullmatch(r"CHAT-[A-Z0-9]{6}", generate_id("CHAT"))


def test_timestamp_is_utc_iso8601():
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", utc_timestamp())


def test_append_then_list_round_trip(repository):
    record = repository.append("signups", {"name": "Meena", "phone": "9000000001", "skills": ["Cleaning"]})
    assert re.fullmatch(r"SIGNUP-[A-Z0-9]{6}", record["id"])
    assert record["timestamp"]
    assert repository.list("signups") == [record]


def test_unknown_fields_survive_round_trip(repository):
    record = repository.append("calls", {"callSid": "CA123", "meta": {"agent": "ivr"}})
    assert repository.list("calls")[0]["meta"] == {"agent": "ivr"}
    assert repository.list("calls")[0]["callSid"] == "CA123"
    assert record["id"].startswith("CALL-")


def test_caller_cannot_choose_id_or_timestamp(repository):
    record = repository.append("leads", {"id": "LEAD-HACKED", "timestamp": "1999", "phone": "1"})
    assert record["id"] != "LEAD-HACKED"
    assert record["timestamp"] != "1999"


def test_insertion_order_is_preserved(repository):
    ids = [repository.append("leads", {"phone": str(n)})["id"] for n in range(5)]
    assert [r["id"] for r in repository.list("leads")] == ids


def test_missing_collection_document_lists_empty(repository):
    assert repository.list("workers") == []


def test_repeated_lists_are_identical(repository):
    repository.append("chats", {"customerName": "A"})
    repository.append("chats", {"customerName": "B"})
    assert repository.list("chats") == repository.list("chats")


def test_list_with_predicate(repository):
    repository.append("workers", {"name": "Ravi", "status": "available"})
    repository.append("workers", {"name": "Sunil", "status": "busy"})
    available = repository.list("workers", lambda w: w["status"] == "available")
    assert [w["name"] for w in available] == ["Ravi"]


def test_booking_scenario(repository):
    booking = repository.append(
        "chats",
        {
            "customerName": "Asha",
            "customerPhone": "9990001111",
            "service": "AC Repair",
            "status": "Pending",
            "workerAssigned": "",
        },
    )
    assert re.fullmatch(r"CHAT-[A-Z0-9]{6}", booking["id"])

    updated = repository.find_and_update(
        "chats", booking["id"], {"status": "Confirmed", "workerAssigned": "Ravi"}
    )
    assert updated["status"] == "Confirmed"
    assert updated["workerAssigned"] == "Ravi"
    for field in ("id", "customerName", "customerPhone", "service", "timestamp"):
        assert updated[field] == booking[field]
    assert repository.list("chats") == [updated]


def test_update_only_touches_patched_fields_and_never_id(repository):
    record = repository.append("workers", {"name": "Ravi", "status": "available", "area": "Indiranagar"})
    updated = repository.find_and_update("workers", record["id"], {"id": "WORKER-OTHER", "status": "busy"})
    assert updated == {**record, "status": "busy"}


def test_update_of_missing_id_leaves_collection_untouched(store, repository):
    repository.append("chats", {"customerName": "Asha"})
    before = repository.list("chats")
    commits = len(store.history)

    with pytest.raises(NotFoundError):
        repository.find_and_update("chats", "CHAT-NOPE00", {"status": "Confirmed"})

    assert repository.list("chats") == before
    assert len(store.history) == commits


def test_failed_precondition_aborts_update_without_write(store, repository):
    record = repository.append("signups", {"name": "Meena", "status": "Approved"})
    commits = len(store.history)

    def still_pending(current):
        if current["status"] != "Pending Review":
            raise RecordValidationError("already reviewed")

    with pytest.raises(RecordValidationError):
        repository.find_and_update("signups", record["id"], {"status": "Rejected"}, still_pending)

    assert repository.find("signups", record["id"]) == record
    assert len(store.history) == commits


def test_precondition_sees_the_record_being_updated(repository):
    record = repository.append("signups", {"name": "Meena", "status": "Pending Review"})
    seen = []
    repository.find_and_update("signups", record["id"], {"status": "Approved"}, seen.append)
    assert seen == [record]


def test_find(repository):
    record = repository.append("chat_questions", {"question": "Q", "answer": "A"})
    assert repository.find("chat_questions", record["id"]) == record
    with pytest.raises(NotFoundError):
        repository.find("chat_questions", "QA-000000")


def test_remove(repository):
    keep = repository.append("leads", {"phone": "1"})
    drop = repository.append("leads", {"phone": "2"})
    assert repository.remove("leads", drop["id"]) is True
    assert repository.list("leads") == [keep]


def test_remove_missing_id_raises_and_does_not_write(store, repository):
    repository.append("leads", {"phone": "1"})
    commits = len(store.history)
    with pytest.raises(NotFoundError):
        repository.remove("leads", "LEAD-NOPE00")
    assert len(store.history) == commits


def test_unknown_collection(repository):
    with pytest.raises(NotFoundError):
        repository.append("invoices", {})


def test_collection_for_id(repository):
    assert repository.collection_for_id("CHAT-7K2PQZ") == "chats"
    assert repository.collection_for_id("signup-7K2PQZ") == "signups"
    assert repository.collection_for_id("WORKER-7K2PQZ") == "workers"
    with pytest.raises(RecordValidationError):
        repository.collection_for_id("ORDER-7K2PQZ")


def test_paths_live_under_data_dir(repository):
    assert repository.path_for("chats") == "data/chats.json"


class TestConcurrentWriters:
    def test_both_appends_survive_a_stale_token(self):
        inner = MemoryBlobStore()
        store = InterleavingStore(inner)
        ours = RecordRepository(store, max_attempts=3, backoff=0)
        theirs = RecordRepository(inner, max_attempts=3, backoff=0)
        ours.append("chats", {"customerName": "seed"})

        competing = {}
        # Our read happens first; the other writer commits before our write,
        # leaving us with a stale token.
        store.before_write = lambda: competing.update(theirs.append("chats", {"customerName": "Ravi"}))
        mine = ours.append("chats", {"customerName": "Asha"})

        names = [r["customerName"] for r in ours.list("chats")]
        assert names == ["seed", "Ravi", "Asha"]
        assert mine in ours.list("chats")
        assert competing in ours.list("chats")
        assert store.writes == 3

    def test_retried_append_commits_the_returned_record(self):
        inner = MemoryBlobStore()
        store = InterleavingStore(inner)
        ours = RecordRepository(store, max_attempts=3, backoff=0)
        theirs = RecordRepository(inner, max_attempts=3, backoff=0)
        store.before_write = lambda: theirs.append("signups", {"name": "Other"})

        mine = ours.append("signups", {"name": "Meena"})
        assert ours.find("signups", mine["id"]) == mine

    def test_concurrent_update_is_reapplied_on_fresh_records(self):
        inner = MemoryBlobStore()
        store = InterleavingStore(inner)
        ours = RecordRepository(store, max_attempts=3, backoff=0)
        theirs = RecordRepository(inner, max_attempts=3, backoff=0)
        booking = ours.append("chats", {"customerName": "Asha", "status": "Pending", "workerAssigned": ""})

        store.before_write = lambda: theirs.find_and_update("chats", booking["id"], {"workerAssigned": "Ravi"})
        ours.find_and_update("chats", booking["id"], {"status": "Confirmed"})

        final = ours.find("chats", booking["id"])
        assert final["status"] == "Confirmed"
        assert final["workerAssigned"] == "Ravi"

    def test_conflict_surfaces_after_retries_are_exhausted(self):
        store = AlwaysConflictingStore()
        repository = RecordRepository(store, max_attempts=3, backoff=0)
        with pytest.raises(ConflictError):
            repository.append("chats", {"customerName": "Asha"})
        assert store.attempts == 3

    def test_precondition_is_rechecked_after_a_conflict(self):
        inner = MemoryBlobStore()
        store = InterleavingStore(inner)
        ours = RecordRepository(store, max_attempts=3, backoff=0)
        theirs = RecordRepository(inner, max_attempts=3, backoff=0)
        signup = ours.append("signups", {"name": "Meena", "status": "Pending Review"})
        store.writes = 0

        def still_pending(current):
            if current["status"] != "Pending Review":
                raise RecordValidationError("already reviewed")

        store.before_write = lambda: theirs.find_and_update("signups", signup["id"], {"status": "Approved"})
        with pytest.raises(RecordValidationError):
            ours.find_and_update("signups", signup["id"], {"status": "Rejected"}, still_pending)

        assert ours.find("signups", signup["id"])["status"] == "Approved"
        assert store.writes == 1

    def test_concurrent_approvals_publish_one_worker(self):
        inner = MemoryBlobStore()
        store = InterleavingStore(inner)
        ours = WorkerService(RecordRepository(store, max_attempts=3, backoff=0))
        theirs = WorkerService(RecordRepository(inner, max_attempts=3, backoff=0))
        signup = RecordRepository(inner).append(
            "signups", {"name": "Meena", "phone": "9000000001", "status": "Pending Review"}
        )

        # Both approvals have read the pending signup; the other one commits first.
        approved = {}
        store.before_write = lambda: approved.update(asyncio.run(theirs.approve(signup["id"])))
        with pytest.raises(RecordValidationError):
            asyncio.run(ours.approve(signup["id"]))

        workers = RecordRepository(inner).list("workers")
        assert [w["id"] for w in workers] == [approved["worker"]["id"]]
        assert workers[0]["signupId"] == signup["id"]


def test_snapshot_copies_records(repository):
    repository.append("chats", {"customerName": "A"})
    repository.append("chats", {"customerName": "B"})
    count = repository.snapshot("chats", "data/backups/chats-2026-01-01.json", "backup")
    assert count == 2
    copied = repository.store.read("data/backups/chats-2026-01-01.json").records
    assert copied == repository.list("chats")

    repository.append("chats", {"customerName": "C"})
    assert repository.snapshot("chats", "data/backups/chats-2026-01-01.json", "backup") == 3
