"""
View layer for the knotes editor.
Tkinter widgets and layout, delegates all logic to controller.
Uses event system for communication.
"""

import logging
import queue
import tkinter as tk
from concurrent.futures import Future, ThreadPoolExecutor
from tkinter import ttk, messagebox
from typing import Any, Callable, Optional, Tuple

import pyperclip

from controller import NoteSyncController
from knotes.config.manager import ConfigManager
from knotes.core.scheduler import Scheduler, ScheduledTask, TaskRunner
from knotes.events import EventType, Event

logger = logging.getLogger(__name__)

FEEDBACK_MS = 2000

THEMES = {
    "light": {
        "bg": "#ffffff",
        "fg": "#212529",
        "muted": "#6c757d",
        "accent": "#007bff",
        "insert": "#212529",
    },
    "dark": {
        "bg": "#2d2d2d",
        "fg": "#e0e0e0",
        "muted": "#a0a0a0",
        "accent": "#4dabf7",
        "insert": "#e0e0e0",
    },
}


class TkScheduler(Scheduler):
    """Scheduler backed by the Tk event loop (after / after_cancel)."""

    def __init__(self, root: tk.Misc):
        self.root = root

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ScheduledTask:
        task = ScheduledTask(callback)
        task.handle = self.root.after(delay_ms, task.run)
        return task

    def cancel(self, task: ScheduledTask) -> None:
        super().cancel(task)
        if task.handle is not None:
            self.root.after_cancel(task.handle)
            task.handle = None


class TkThreadRunner(TaskRunner):
    """
    Runs store calls on worker threads and hands results back to the Tk
    loop. Workers never touch Tk; finished futures are queued and drained
    by a short after() poll on the main thread.
    """

    POLL_MS = 50

    def __init__(self, root: tk.Misc, max_workers: int = 4):
        self.root = root
        self.executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="knotes-store"
        )
        self._done: "queue.Queue[Tuple[Future, Callable]]" = queue.Queue()
        self._poll_job = self.root.after(self.POLL_MS, self._poll)

    def submit(
        self,
        func: Callable[[], Any],
        on_done: Callable[[Any, Optional[BaseException]], None]
    ) -> None:
        future = self.executor.submit(func)
        future.add_done_callback(lambda f: self._done.put((f, on_done)))

    def _poll(self) -> None:
        self._poll_job = None
        try:
            while True:
                future, on_done = self._done.get_nowait()
                error = future.exception()
                on_done(None if error else future.result(), error)
        except queue.Empty:
            pass
        finally:
            self._poll_job = self.root.after(self.POLL_MS, self._poll)

    def shutdown(self) -> None:
        """Stop polling and wait for calls already submitted."""
        if self._poll_job is not None:
            self.root.after_cancel(self._poll_job)
            self._poll_job = None
        self.executor.shutdown(wait=True)


class JumpToNote(ttk.Frame):
    """Single-purpose widget: entry + button for opening a note by id."""

    def __init__(self, parent: tk.Widget, on_open: Callable[[str], None], **kwargs):
        super().__init__(parent, **kwargs)
        self.on_open = on_open

        self.entry = ttk.Entry(self, width=30)
        self.entry.pack(side=tk.LEFT, fill=tk.X, expand=True)
        self.entry.bind("<Return>", lambda _event: self._submit())

        self.open_btn = ttk.Button(self, text="Open", command=self._submit, width=6)
        self.open_btn.pack(side=tk.LEFT, padx=(5, 0))

    def _submit(self) -> None:
        value = self.entry.get().strip()
        if value:
            self.entry.delete(0, tk.END)
            self.on_open(value)


class NoteEditorView:
    """
    Main application window for the knotes editor.
    Thin wrapper around Tkinter, delegates all logic to controller.
    Uses event system for communication.
    """

    def __init__(
        self,
        root: tk.Tk,
        controller: NoteSyncController,
        initial_location: Optional[str] = None
    ):
        self.root = root
        self.controller = controller
        self.initial_location = initial_location
        self.theme = ConfigManager.get("theme")
        if self.theme not in THEMES:
            self.theme = "light"

        self._replacing_content = False
        self._feedback_job = None

        self.root.title("knotes")
        self.root.geometry("800x600")
        self.root.minsize(400, 300)
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

        self._setup_event_listeners()
        self._create_widgets()
        self._apply_theme()

    def _setup_event_listeners(self) -> None:
        """Set up event listeners for controller events."""
        dispatcher = self.controller.event_dispatcher
        dispatcher.add_listener(EventType.STATUS_UPDATED, self._on_status_updated)
        dispatcher.add_listener(EventType.ERROR_OCCURRED, self._on_error_occurred)
        dispatcher.add_listener(EventType.CONTENT_REPLACED, self._on_content_replaced)
        dispatcher.add_listener(EventType.NOTE_ID_CHANGED, self._on_note_id_changed)
        dispatcher.add_listener(EventType.LOCATION_CHANGED, self._on_location_changed)

    def _create_widgets(self) -> None:
        """Create and layout all widgets."""
        self.main_frame = tk.Frame(self.root, padx=10, pady=10)
        self.main_frame.grid(row=0, column=0, sticky="nsew")

        self.root.columnconfigure(0, weight=1)
        self.root.rowconfigure(0, weight=1)
        self.main_frame.columnconfigure(0, weight=1)
        self.main_frame.rowconfigure(1, weight=1)  # content area expands

        # === Header ===
        header = tk.Frame(self.main_frame)
        header.grid(row=0, column=0, sticky="ew", pady=(0, 8))
        self.header = header

        # Hidden until the note has an identity
        self.note_id_label = tk.Label(header, text="", cursor="hand2")
        self.note_id_label.bind("<Button-1>", lambda _event: self._copy_note_link())

        self.theme_btn = ttk.Button(header, text="", command=self._toggle_theme, width=8)
        self.theme_btn.pack(side=tk.RIGHT)

        self.info_btn = ttk.Button(header, text="Info", command=self._show_info, width=6)
        self.info_btn.pack(side=tk.RIGHT, padx=(0, 5))

        self.jump = JumpToNote(header, on_open=self._on_open_note)
        self.jump.pack(side=tk.RIGHT, padx=(0, 10))

        # === Content ===
        content_frame = tk.Frame(self.main_frame)
        content_frame.grid(row=1, column=0, sticky="nsew")
        content_frame.columnconfigure(0, weight=1)
        content_frame.rowconfigure(0, weight=1)

        self.content_text = tk.Text(content_frame, wrap=tk.WORD, undo=True, padx=8, pady=8)
        self.content_text.grid(row=0, column=0, sticky="nsew")
        self.content_text.bind("<<Modified>>", self._on_text_modified)

        scrollbar = ttk.Scrollbar(content_frame, orient="vertical", command=self.content_text.yview)
        scrollbar.grid(row=0, column=1, sticky="ns")
        self.content_text.configure(yscrollcommand=scrollbar.set)

        # === Status ===
        self.status_label = tk.Label(self.main_frame, text="Connecting...", anchor="w")
        self.status_label.grid(row=2, column=0, sticky="ew", pady=(5, 0))

    def _apply_theme(self) -> None:
        colors = THEMES[self.theme]
        for widget in (self.root, self.main_frame, self.header):
            widget.configure(bg=colors["bg"])
        self.content_text.configure(
            bg=colors["bg"],
            fg=colors["fg"],
            insertbackground=colors["insert"]
        )
        self.note_id_label.configure(bg=colors["bg"], fg=colors["accent"])
        self.status_label.configure(bg=colors["bg"], fg=colors["muted"])
        self.theme_btn.configure(text="Light" if self.theme == "dark" else "Dark")

    def _toggle_theme(self) -> None:
        self.theme = "light" if self.theme == "dark" else "dark"
        ConfigManager.save(theme=self.theme)
        self._apply_theme()

    def _get_content(self) -> str:
        """Get text from the content area."""
        return self.content_text.get("1.0", "end-1c")

    def _update_status(self, message: str) -> None:
        """Update status bar message."""
        self.status_label.configure(text=message)

    def _on_text_modified(self, _event: tk.Event) -> None:
        if not self.content_text.edit_modified():
            return
        self.content_text.edit_modified(False)
        if not self._replacing_content:
            self.controller.on_content_changed(self._get_content())

    def _on_status_updated(self, event: Event) -> None:
        self._update_status(event.data)

    def _on_error_occurred(self, event: Event) -> None:
        self._update_status(f"Error: {event.data}")

    def _on_content_replaced(self, event: Event) -> None:
        replacement = event.data
        self._replacing_content = True
        try:
            self.content_text.delete("1.0", tk.END)
            self.content_text.insert("1.0", replacement.content)
            self.content_text.edit_reset()
            self.content_text.edit_modified(False)
        finally:
            self._replacing_content = False
        if replacement.new_note:
            self.content_text.focus_set()

    def _on_note_id_changed(self, event: Event) -> None:
        self._cancel_feedback()
        if not event.data:
            self.note_id_label.configure(text="")
            self.note_id_label.pack_forget()
            return
        self.note_id_label.configure(text=event.data, fg=THEMES[self.theme]["accent"])
        if not self.note_id_label.winfo_ismapped():
            self.note_id_label.pack(side=tk.LEFT)

    def _on_location_changed(self, event: Event) -> None:
        self.root.title(f"knotes - {event.data}")

    def _on_open_note(self, value: str) -> None:
        self.controller.open_note(value)

    def _copy_note_link(self) -> None:
        """Copy the note URL and flash feedback in place of the id."""
        note_id = self.controller.current_note_id
        if not note_id:
            return
        try:
            pyperclip.copy(self.controller.note_url)
            self.note_id_label.configure(text="Copied!", fg=THEMES[self.theme]["fg"])
        except pyperclip.PyperclipException as e:
            logger.error("Failed to copy note link: %s", e)
            self.note_id_label.configure(text="Copy failed")
        self._cancel_feedback()
        self._feedback_job = self.root.after(FEEDBACK_MS, self._restore_note_id)

    def _restore_note_id(self) -> None:
        self._feedback_job = None
        self.note_id_label.configure(
            text=self.controller.current_note_id or "",
            fg=THEMES[self.theme]["accent"]
        )

    def _cancel_feedback(self) -> None:
        if self._feedback_job is not None:
            self.root.after_cancel(self._feedback_job)
            self._feedback_job = None

    def _show_info(self) -> None:
        """Show note timestamps in a dialog once they arrive."""
        if self.controller.current_note_id:
            self._update_status("Loading note info...")
        self.controller.fetch_metadata(self._on_metadata)

    def _on_metadata(self, metadata) -> None:
        if metadata is None:
            messagebox.showinfo("Note info", "No information available for this note.")
            return
        self._update_status("Ready")
        messagebox.showinfo(
            "Note info",
            f"Note: {metadata.id}\n"
            f"Link: {self.controller.note_url}\n"
            f"Created: {metadata.created_at or 'unknown'}\n"
            f"Modified: {metadata.modified_at or 'unknown'}"
        )

    def _on_close(self) -> None:
        """Save anything still waiting before the window goes away."""
        self.controller.flush()
        self.controller.runner.shutdown()
        self.controller.store.close()
        self.root.destroy()

    def run(self) -> None:
        """Resolve the note and start the main event loop."""
        self.root.after_idle(lambda: self.controller.initialize(self.initial_location))
        self.root.mainloop()
