"""
Core Knotes Components
======================

This module contains the core client components:
- models: Note and NoteMetadata
- identity tokens: parsing note ids out of paths and URLs
- location: the visible note URL
- store: HTTP client for the remote note store
- scheduler: cancellable scheduled tasks
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlsplit
import re


NOTE_ID_PATTERN = re.compile(r"^[A-Za-z0-9]{26}$")


@dataclass
class Note:
    """Represents a single note as held by the remote store."""
    id: str
    content: str

    # Metadata (returned by the server, not used for syncing)
    created_at: Optional[str] = None
    modified_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Note":
        """Build a note from a server response body.

        Raises:
            ValueError: If the body has no usable id
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
        note_id = data.get("id")
        if not note_id:
            raise ValueError("Note response has no id")
        return cls(
            id=str(note_id),
            content=data.get("content") or "",
            created_at=data.get("createdAt"),
            modified_at=data.get("modifiedAt"),
        )


@dataclass
class NoteMetadata:
    """Timestamps of a note, without its content."""
    id: str
    created_at: Optional[str] = None
    modified_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NoteMetadata":
        if not isinstance(data, dict) or not data.get("id"):
            raise ValueError("Metadata response has no id")
        return cls(
            id=str(data["id"]),
            created_at=data.get("createdAt"),
            modified_at=data.get("modifiedAt"),
        )


def is_note_id(value: Optional[str]) -> bool:
    """Return True if value is a 26-character alphanumeric note id."""
    return bool(value) and NOTE_ID_PATTERN.match(value) is not None


def extract_note_id(path_or_url: Optional[str]) -> Optional[str]:
    """Find the note id in a path, a full URL or a bare token.

    The path is split on slashes and the first segment that is exactly a
    26-character alphanumeric token wins.

    Args:
        path_or_url: e.g. "/01KDECFWYDMS857DZMCR680MCY" or
            "https://knotes.example/01KDECFWYDMS857DZMCR680MCY"

    Returns:
        The note id, or None if no segment matches
    """
    if not path_or_url:
        return None
    text = path_or_url.strip()
    path = urlsplit(text).path if "://" in text else text
    for part in path.split("/"):
        if is_note_id(part):
            return part
    return None


class NoteLocation:
    """
    The visible address of the current note.
    Desktop stand-in for the browser location bar: replacing it never
    reloads anything, it only changes what is shown and copied.
    """

    def __init__(self, base_url: str, path: str = "/"):
        self.base_url = base_url.rstrip("/")
        self.path = path if path.startswith("/") else f"/{path}"

    def replace(self, note_id: str) -> None:
        """Point the location at a note, in place."""
        self.path = f"/{note_id}"

    @property
    def href(self) -> str:
        return f"{self.base_url}{self.path}"

    def __repr__(self) -> str:
        return f"NoteLocation({self.href!r})"
