"""
Controller layer for the knotes editor.
Owns the note identity and the auto-save cycle, no Tkinter dependencies.
Uses event system for communication.
"""

import logging
from typing import Callable, Optional
from knotes.core import Note, NoteLocation, NoteMetadata, extract_note_id
from knotes.core.scheduler import InlineRunner, Scheduler, ScheduledTask, TaskRunner
from knotes.core.store import NoteStore, NoteStoreError, NoteNotFoundError
from knotes.events import EventDispatcher

logger = logging.getLogger(__name__)

AUTOSAVE_DELAY_MS = 1000


class NoteSyncController:
    """
    Keeps one note in sync with the remote store.

    Edits are debounced and persisted once typing pauses. A note gets its
    identity from the store, either by loading an existing id or by
    creating a fresh note; a missing or unreachable note silently turns
    into a new one. Store failures are logged and reported as events,
    never raised to the caller.

    Store calls go through the runner, so their results may arrive later
    and in any order. Results belonging to a note the session has since
    switched away from are dropped.
    """

    def __init__(
        self,
        store: NoteStore,
        scheduler: Scheduler,
        event_dispatcher: EventDispatcher = None,
        location: NoteLocation = None,
        autosave_delay_ms: int = AUTOSAVE_DELAY_MS,
        runner: TaskRunner = None
    ):
        self.store = store
        self.scheduler = scheduler
        self.event_dispatcher = event_dispatcher or EventDispatcher()
        self.location = location or NoteLocation(store.base_url)
        self.autosave_delay_ms = autosave_delay_ms
        self.runner = runner or InlineRunner()

        self.current_note_id: Optional[str] = None
        self.last_saved_content = ""
        self._pending_save: Optional[ScheduledTask] = None
        self._pending_text: Optional[str] = None

        # Bumped on every note switch; stale store results are ignored
        self._session = 0
        self._resolving = False
        self._creating = False
        self._text_after_create: Optional[str] = None

    @property
    def note_url(self) -> str:
        return self.location.href

    @property
    def has_pending_save(self) -> bool:
        return self._pending_save is not None and self._pending_save.pending

    @property
    def is_resolving(self) -> bool:
        """True while the session's note is being loaded or created."""
        return self._resolving

    def initialize(self, url_token: Optional[str] = None) -> None:
        """
        Resolve the session's note: load it if a note id can be found in
        url_token, otherwise create a new one.

        Args:
            url_token: A bare id, a path like "/<id>" or a full note URL
        """
        note_id = extract_note_id(url_token)
        if note_id:
            self.load_by_id(note_id)
        else:
            self.create_new()

    def on_content_changed(self, text: str) -> None:
        """Schedule a save of text, replacing any save still waiting."""
        self._cancel_pending()
        self._pending_text = text
        self._pending_save = self.scheduler.call_later(
            self.autosave_delay_ms,
            lambda: self._run_pending(text)
        )

    def persist(self, text: str) -> None:
        """
        Push text to the store unless it is what was last saved.

        last_saved_content moves to text as soon as an update is issued,
        whether or not it later succeeds; the next edit carries any retry.
        """
        if text == self.last_saved_content:
            return

        if self._resolving:
            # The note being resolved replaces the editor content anyway
            logger.debug("Note is still being resolved, not saving yet")
            return

        if self.current_note_id:
            note_id = self.current_note_id
            self.last_saved_content = text
            self.runner.submit(
                lambda: self.store.update(note_id, text),
                lambda _result, error: self._on_updated(note_id, error)
            )
            return

        if self._creating:
            self._text_after_create = text
            return

        self._creating = True
        session = self._session
        self.runner.submit(
            lambda: self.store.create(text),
            lambda note, error: self._on_created(session, text, note, error)
        )

    def load_by_id(self, note_id: str) -> None:
        """
        Load a note into the session, falling back to a new note if it
        cannot be loaded for any reason.
        """
        self._resolving = True
        session = self._session
        self.runner.submit(
            lambda: self.store.get(note_id),
            lambda note, error: self._on_loaded(session, note_id, note, error)
        )

    def create_new(self) -> None:
        """Create an empty note and make it the session's note."""
        self._resolving = True
        session = self._session
        self.runner.submit(
            lambda: self.store.create(""),
            lambda note, error: self._on_new_note(session, note, error)
        )

    def flush(self) -> None:
        """Run a waiting save immediately."""
        if not self.has_pending_save:
            return
        text = self._pending_text
        self._cancel_pending()
        self.persist(text)

    def open_note(self, token_or_url: str) -> None:
        """
        Switch the session to another note, as if the page at "/<input>"
        had been opened. Empty input is ignored.

        The editor is emptied and the identity hidden before the new note
        is resolved, so a failed switch never leaves the old note on screen.
        """
        value = token_or_url.strip()
        if not value:
            return

        self.flush()
        self._session += 1
        self.current_note_id = None
        self.last_saved_content = ""
        self._resolving = False
        self._creating = False
        self._text_after_create = None
        self.location.path = "/"

        self.event_dispatcher.dispatch_content_replaced("")
        self.event_dispatcher.dispatch_location_changed(self.location.href)
        self.event_dispatcher.dispatch_note_id_changed(None)

        self.initialize(value)

    def fetch_metadata(self, on_result: Callable[[Optional[NoteMetadata]], None]) -> None:
        """
        Look up the timestamps of the current note and pass them to
        on_result, or None if there is no note or the lookup failed.
        """
        note_id = self.current_note_id
        if not note_id:
            on_result(None)
            return

        def done(metadata: Optional[NoteMetadata], error: Optional[BaseException]) -> None:
            if error is not None:
                self._reraise_unless_store_error(error)
                logger.warning("Failed to fetch metadata for [%s]: %s", note_id, error)
                self.event_dispatcher.dispatch_error(f"Could not load note info: {error}")
                metadata = None
            on_result(metadata)

        self.runner.submit(lambda: self.store.metadata(note_id), done)

    def _on_updated(self, note_id: str, error: Optional[BaseException]) -> None:
        if error is not None:
            self._reraise_unless_store_error(error)
            logger.warning("Auto-save of note [%s] failed: %s", note_id, error)
            self.event_dispatcher.dispatch_error(f"Auto-save failed: {error}")
            return
        self.event_dispatcher.dispatch_note_saved(note_id)
        self.event_dispatcher.dispatch_status("Saved")

    def _on_created(
        self,
        session: int,
        text: str,
        note: Optional[Note],
        error: Optional[BaseException]
    ) -> None:
        if session != self._session:
            return
        self._creating = False
        waiting, self._text_after_create = self._text_after_create, None

        if error is not None:
            self._reraise_unless_store_error(error)
            # No identity yet, the next save tries to create again
            logger.warning("Auto-save could not create a note: %s", error)
            self.event_dispatcher.dispatch_error(f"Auto-save failed: {error}")
        else:
            self.last_saved_content = text
            self._adopt(note.id)
            self.event_dispatcher.dispatch_note_saved(note.id)
            self.event_dispatcher.dispatch_status("Saved")

        if waiting is not None:
            self.persist(waiting)

    def _on_loaded(
        self,
        session: int,
        note_id: str,
        note: Optional[Note],
        error: Optional[BaseException]
    ) -> None:
        if session != self._session:
            return
        if error is not None:
            self._reraise_unless_store_error(error)
            if isinstance(error, NoteNotFoundError):
                logger.warning("Note [%s] not found, creating a new note", note_id)
            else:
                logger.error("Failed to load note [%s]: %s, creating a new note", note_id, error)
            self.create_new()
            return

        self._resolving = False
        self.last_saved_content = note.content
        self.event_dispatcher.dispatch_content_replaced(note.content)
        self._adopt(note.id)
        self.event_dispatcher.dispatch_status(f"Loaded note {note.id}")

    def _on_new_note(
        self,
        session: int,
        note: Optional[Note],
        error: Optional[BaseException]
    ) -> None:
        if session != self._session:
            return
        self._resolving = False
        if error is not None:
            self._reraise_unless_store_error(error)
            logger.error("Failed to create new note: %s", error)
            self.event_dispatcher.dispatch_error(f"Could not create a note: {error}")
            return

        self.last_saved_content = ""
        self.event_dispatcher.dispatch_content_replaced("", new_note=True)
        self._adopt(note.id)
        self.event_dispatcher.dispatch_status(f"New note {note.id}")

    def _adopt(self, note_id: str) -> None:
        self.current_note_id = note_id
        self.location.replace(note_id)
        self.event_dispatcher.dispatch_location_changed(self.location.href)
        self.event_dispatcher.dispatch_note_id_changed(note_id)

    def _run_pending(self, text: str) -> None:
        self._pending_save = None
        self._pending_text = None
        self.persist(text)

    def _cancel_pending(self) -> None:
        if self._pending_save is not None:
            self.scheduler.cancel(self._pending_save)
        self._pending_save = None
        self._pending_text = None

    @staticmethod
    def _reraise_unless_store_error(error: BaseException) -> None:
        if not isinstance(error, NoteStoreError):
            raise error
