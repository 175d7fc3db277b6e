"""In-memory stand-ins for the note store and the clock."""

import itertools
from typing import Dict, List, Optional, Tuple

from knotes.core import Note, NoteMetadata
from knotes.core.store import NoteNotFoundError, NoteStoreError

BASE_URL = "http://knotes.test"


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms / 1000.0


class FakeNoteStore:
    """Behaves like NoteStore against a server that keeps notes in a dict."""

    def __init__(self, base_url: str = BASE_URL):
        self.base_url = base_url
        self.notes: Dict[str, str] = {}
        self.calls: List[Tuple[str, ...]] = []
        self.fail_create: Optional[Exception] = None
        self.fail_get: Optional[Exception] = None
        self.fail_update: Optional[Exception] = None
        self.closed = False
        self._ids = itertools.count(1)

    def add(self, note_id: str, content: str) -> str:
        self.notes[note_id] = content
        return note_id

    def create(self, content: str) -> Note:
        self.calls.append(("create", content))
        if self.fail_create:
            raise self.fail_create
        note_id = f"01KD{next(self._ids):022d}"
        self.notes[note_id] = content
        return Note(id=note_id, content=content)

    def get(self, note_id: str) -> Note:
        self.calls.append(("get", note_id))
        if self.fail_get:
            raise self.fail_get
        if note_id not in self.notes:
            raise NoteNotFoundError(f"Note not found: {note_id}", status_code=404)
        return Note(id=note_id, content=self.notes[note_id])

    def update(self, note_id: str, content: str) -> None:
        self.calls.append(("update", note_id, content))
        if self.fail_update:
            raise self.fail_update
        if note_id not in self.notes:
            raise NoteNotFoundError(f"Note not found: {note_id}", status_code=404)
        self.notes[note_id] = content

    def metadata(self, note_id: str) -> NoteMetadata:
        self.calls.append(("metadata", note_id))
        if note_id not in self.notes:
            raise NoteNotFoundError(f"Note not found: {note_id}", status_code=404)
        return NoteMetadata(id=note_id, created_at="2026-01-01T00:00:00Z")

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def calls_of(self, kind: str) -> List[Tuple[str, ...]]:
        return [call for call in self.calls if call[0] == kind]


def transport_error() -> NoteStoreError:
    return NoteStoreError("GET http://knotes.test/api/notes failed: connection refused")


class ManualRunner:
    """Holds submitted store calls until a test completes them, in any order."""

    def __init__(self):
        self.submitted = []

    def submit(self, func, on_done) -> None:
        self.submitted.append((func, on_done))

    def complete(self, index: int = 0) -> None:
        func, on_done = self.submitted.pop(index)
        try:
            result = func()
        except Exception as e:
            on_done(None, e)
            return
        on_done(result, None)

    def complete_all(self) -> None:
        while self.submitted:
            self.complete(0)

    def shutdown(self) -> None:
        pass
