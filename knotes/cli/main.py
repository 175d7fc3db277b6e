#!/usr/bin/env python3
"""
Knotes Desk - CLI Entry Point
=============================
Create, read, update and live-sync knotes notes from a terminal.

Usage:
    python -m knotes.cli.main new notes.txt
    python -m knotes.cli.main new --clipboard
    python -m knotes.cli.main show 01KDECFWYDMS857DZMCR680MCY
    python -m knotes.cli.main show https://knotes.example/01KDECFWYDMS857DZMCR680MCY --copy
    python -m knotes.cli.main push 01KDECFWYDMS857DZMCR680MCY notes.txt
    python -m knotes.cli.main info 01KDECFWYDMS857DZMCR680MCY
    python -m knotes.cli.main watch notes.txt --note 01KDECFWYDMS857DZMCR680MCY
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional

import pyperclip

from controller import NoteSyncController
from knotes.config.manager import ConfigManager
from knotes.core import NoteLocation, extract_note_id
from knotes.core.scheduler import LoopScheduler
from knotes.core.store import NoteStore, NoteStoreError
from knotes.events import EventDispatcher, EventType, Event

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.25


def read_input(input_file: Optional[Path], clipboard: bool = False) -> str:
    """Read note content from the clipboard, a file or stdin."""
    if clipboard:
        return pyperclip.paste()
    if input_file:
        if not input_file.exists():
            raise ValueError(f"File not found: {input_file}")
        return input_file.read_text(encoding="utf-8")
    return sys.stdin.read()


def require_note_id(value: str) -> str:
    note_id = extract_note_id(value)
    if not note_id:
        raise ValueError(f"Not a note id or note URL: {value}")
    return note_id


def cmd_new(store: NoteStore, args: argparse.Namespace) -> None:
    content = read_input(args.input_file, clipboard=args.clipboard)
    note = store.create(content)
    print(f"{store.base_url}/{note.id}")


def cmd_show(store: NoteStore, args: argparse.Namespace) -> None:
    note = store.get(require_note_id(args.note))
    if args.copy:
        pyperclip.copy(note.content)
        print(f"Copied {len(note.content)} characters to the clipboard", file=sys.stderr)
    else:
        sys.stdout.write(note.content)
        if note.content and not note.content.endswith("\n"):
            sys.stdout.write("\n")


def cmd_push(store: NoteStore, args: argparse.Namespace) -> None:
    note_id = require_note_id(args.note)
    store.update(note_id, read_input(args.input_file))
    print(f"Updated {store.base_url}/{note_id}")


def cmd_info(store: NoteStore, args: argparse.Namespace) -> None:
    metadata = store.metadata(require_note_id(args.note))
    print(f"Note:     {metadata.id}")
    print(f"Link:     {store.base_url}/{metadata.id}")
    print(f"Created:  {metadata.created_at or 'unknown'}")
    print(f"Modified: {metadata.modified_at or 'unknown'}")


def cmd_watch(
    store: NoteStore,
    args: argparse.Namespace,
    autosave_delay_ms: int,
    max_polls: Optional[int] = None
) -> None:
    """Keep a local file and a note in sync until interrupted.

    With --note the note is loaded into the file first. Without it (or if
    the note cannot be loaded) the note starts from the file's own text.
    """
    path: Path = args.input_file
    dispatcher = EventDispatcher()
    scheduler = LoopScheduler()
    controller = NoteSyncController(
        store,
        scheduler,
        event_dispatcher=dispatcher,
        location=NoteLocation(store.base_url),
        autosave_delay_ms=autosave_delay_ms
    )

    def on_content_replaced(event: Event) -> None:
        # A freshly created note is empty; keep the file's text instead
        if not event.data.new_note:
            path.write_text(event.data.content, encoding="utf-8")

    def on_note_id_changed(event: Event) -> None:
        if not event.data:
            return
        print(f"Syncing {path} to {controller.note_url}", file=sys.stderr)

    def on_error(event: Event) -> None:
        print(f"Warning: {event.data}", file=sys.stderr)

    dispatcher.add_listener(EventType.CONTENT_REPLACED, on_content_replaced)
    dispatcher.add_listener(EventType.NOTE_ID_CHANGED, on_note_id_changed)
    dispatcher.add_listener(EventType.ERROR_OCCURRED, on_error)

    if args.note:
        controller.initialize(require_note_id(args.note))

    last_seen = None
    polls = 0
    try:
        while max_polls is None or polls < max_polls:
            polls += 1
            if path.exists():
                text = path.read_text(encoding="utf-8")
                if text != last_seen:
                    last_seen = text
                    controller.on_content_changed(text)
            scheduler.run_pending()
            time.sleep(POLL_INTERVAL)
    except KeyboardInterrupt:
        pass
    finally:
        controller.flush()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Work with notes on a knotes server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s new notes.txt
  %(prog)s new --clipboard
  %(prog)s show 01KDECFWYDMS857DZMCR680MCY
  %(prog)s push 01KDECFWYDMS857DZMCR680MCY notes.txt
  %(prog)s info 01KDECFWYDMS857DZMCR680MCY
  %(prog)s watch notes.txt --note 01KDECFWYDMS857DZMCR680MCY
        """
    )

    parser.add_argument(
        "--server",
        type=str,
        help="Server URL (overrides saved configuration)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    new_parser = subparsers.add_parser("new", help="Create a note")
    new_parser.add_argument("input_file", nargs="?", type=Path, help="File to read (default: stdin)")
    new_parser.add_argument(
        "--clipboard", "-c",
        action="store_true",
        help="Read the content from the clipboard"
    )

    show_parser = subparsers.add_parser("show", help="Print a note")
    show_parser.add_argument("note", help="Note id or note URL")
    show_parser.add_argument(
        "--copy",
        action="store_true",
        help="Copy the content to the clipboard instead of printing it"
    )

    push_parser = subparsers.add_parser("push", help="Replace a note's content")
    push_parser.add_argument("note", help="Note id or note URL")
    push_parser.add_argument("input_file", nargs="?", type=Path, help="File to read (default: stdin)")

    info_parser = subparsers.add_parser("info", help="Show a note's timestamps")
    info_parser.add_argument("note", help="Note id or note URL")

    watch_parser = subparsers.add_parser("watch", help="Auto-save a local file to a note")
    watch_parser.add_argument("input_file", type=Path, help="File to watch")
    watch_parser.add_argument("--note", "-n", help="Note id or note URL to sync with (default: new note)")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )

    config = ConfigManager.load()
    server_url = args.server or config["server_url"]

    try:
        with NoteStore(server_url, timeout=float(config["request_timeout"])) as store:
            if args.command == "new":
                cmd_new(store, args)
            elif args.command == "show":
                cmd_show(store, args)
            elif args.command == "push":
                cmd_push(store, args)
            elif args.command == "info":
                cmd_info(store, args)
            elif args.command == "watch":
                cmd_watch(store, args, int(config["autosave_delay_ms"]))
    except (NoteStoreError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except pyperclip.PyperclipException as e:
        print(f"Clipboard error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
