#!/usr/bin/env python3
"""
Knotes Desk - GUI Entry Point
=============================
Simple Tkinter front end for a knotes server.

Usage:
    python main.py
    python main.py 01KDECFWYDMS857DZMCR680MCY
    python main.py https://knotes.example/01KDECFWYDMS857DZMCR680MCY
    python main.py --server http://localhost:8080
"""

import argparse
import logging
import tkinter as tk
from controller import NoteSyncController
from view import NoteEditorView, TkScheduler, TkThreadRunner
from knotes.config.manager import ConfigManager
from knotes.core import NoteLocation
from knotes.core.store import NoteStore


def main() -> None:
    """Application entry point - wires layers together."""
    parser = argparse.ArgumentParser(description="Edit a knotes note in a desktop window.")
    parser.add_argument(
        "note",
        nargs="?",
        help="Note id or note URL to open (default: create a new note)"
    )
    parser.add_argument("--server", help="Server URL (overrides saved configuration)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    config = ConfigManager.load()
    server_url = args.server or config["server_url"]

    # Create the root window
    root = tk.Tk()

    # Create controller (logic layer)
    store = NoteStore(server_url, timeout=float(config["request_timeout"]))
    controller = NoteSyncController(
        store,
        TkScheduler(root),
        location=NoteLocation(server_url),
        autosave_delay_ms=int(config["autosave_delay_ms"]),
        runner=TkThreadRunner(root)
    )

    # Create view (presentation layer), inject controller
    app = NoteEditorView(root, controller, initial_location=args.note)

    # Run the application
    app.run()


if __name__ == "__main__":
    main()
