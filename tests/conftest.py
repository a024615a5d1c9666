from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

import pytest

from notesync.core.config import load_config
from notesync.core.exceptions import NotesApplicationError
from notesync.core.models import PageResult
from notesync.core.schemas import Note
from notesync.services.notes_api import INoteRepository
from notesync.sync.mutations import MutationOrchestrator
from notesync.sync.pagination import PaginationController
from notesync.sync.query_cache import ICacheObserver, QueryCache
from notesync.utils.notifier import INotificationObserver, Notifier, ProgressIndicator
from notesync.utils.response_manager import ResponseManager

CREATED = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_note(i: int, **overrides: Any) -> Note:
    data = {
        "id": f"note-{i}",
        "title": f"Note {i}",
        "content": f"Content of note {i}",
        "is_published": False,
        "created_at": CREATED,
        "updated_at": CREATED,
    }
    data.update(overrides)
    return Note(**data)


async def spin(times: int = 5) -> None:
    """Let scheduled tasks run up to their next suspension point."""
    for _ in range(times):
        await asyncio.sleep(0)


async def drain() -> None:
    """Wait until every other task on the loop has finished."""
    while True:
        pending = [t for t in asyncio.all_tasks() if t is not asyncio.current_task() and not t.done()]
        if not pending:
            return
        await asyncio.gather(*pending, return_exceptions=True)


class FakeNotesRepository(INoteRepository):
    """In-memory notes service with per-operation gates and scripted failures."""

    def __init__(self, count: int = 0):
        self.notes: List[Note] = [make_note(i) for i in range(1, count + 1)]
        self.calls: List[Tuple[Any, ...]] = []
        self.failures: Dict[str, List[Exception]] = {}
        self._gates: Dict[str, asyncio.Event] = {}
        self._next_id = count + 1

    def block(self, op: str) -> None:
        self._gates[op] = asyncio.Event()

    def release(self, op: str) -> None:
        gate = self._gates.pop(op, None)
        if gate is not None:
            gate.set()

    def fail_next(self, op: str, exc: Exception) -> None:
        self.failures.setdefault(op, []).append(exc)

    def calls_for(self, op: str) -> List[Tuple[Any, ...]]:
        return [call[1:] for call in self.calls if call[0] == op]

    async def _enter(self, op: str, *args: Any) -> None:
        self.calls.append((op, *args))
        gate = self._gates.get(op)
        if gate is not None:
            await gate.wait()
        pending = self.failures.get(op)
        if pending:
            raise pending.pop(0)

    def _not_found(self) -> NotesApplicationError:
        body = {"status": "fail", "message": "Note not found"}
        return NotesApplicationError("Note not found", status_code=404, payload=body)

    def _index(self, note_id: str) -> int:
        for i, note in enumerate(self.notes):
            if note.id == note_id:
                return i
        raise self._not_found()

    async def list_notes(self, page: int = 1, limit: int = 10) -> PageResult:
        # rows are read when the request arrives, the reply may be held by a gate
        start = (page - 1) * limit
        snapshot = PageResult(notes=tuple(self.notes[start:start + limit]), total_count=len(self.notes))
        await self._enter("list", page, limit)
        return snapshot

    async def get_note(self, note_id: str) -> Note:
        await self._enter("get", note_id)
        return self.notes[self._index(note_id)]

    async def create_note(self, payload: Dict[str, Any]) -> Note:
        await self._enter("create", payload)
        note = make_note(self._next_id, **payload)
        self._next_id += 1
        self.notes.insert(0, note)
        return note

    async def update_note(self, note_id: str, payload: Dict[str, Any]) -> Note:
        await self._enter("update", note_id, payload)
        index = self._index(note_id)
        note = self.notes[index].model_copy(update=payload)
        self.notes[index] = note
        return note

    async def delete_note(self, note_id: str) -> str:
        await self._enter("delete", note_id)
        del self.notes[self._index(note_id)]
        return "Note deleted"


class RecordingNotifications(INotificationObserver):
    def __init__(self):
        self.received = []

    async def on_notification(self, notification):
        self.received.append(notification)

    @property
    def messages(self) -> List[str]:
        return [n.message for n in self.received]


class RecordingCacheObserver(ICacheObserver):
    def __init__(self):
        self.settled = []
        self.failed = []

    async def on_page_settled(self, query, view):
        self.settled.append((query, view))

    async def on_fetch_failed(self, query, error):
        self.failed.append((query, error))


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Stack:
    """Every synchronization component wired around one fake repository."""

    def __init__(self, count: int = 0, stale_time: float = 5.0):
        self.repo = FakeNotesRepository(count)
        self.clock = FakeClock()
        self.cache = QueryCache(self.repo, stale_time=stale_time, clock=self.clock)
        self.cache_events = RecordingCacheObserver()
        self.cache.add_observer(self.cache_events)
        self.notifier = Notifier()
        self.notifications = RecordingNotifications()
        self.notifier.add_observer(self.notifications)
        self.progress = ProgressIndicator()
        self.responses = ResponseManager(load_config())
        self.pagination = PaginationController(self.cache, page_size=10)
        self.mutations = MutationOrchestrator(
            self.repo, self.cache, self.notifier, self.progress, self.responses
        )


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("NOTESYNC_BASE_URL", "NOTESYNC_PAGE_SIZE", "NOTESYNC_REQUEST_TIMEOUT",
                 "NOTESYNC_STALE_TIME", "NOTESYNC_DEBUG"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def stack_factory():
    return Stack
