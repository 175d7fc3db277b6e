"""
Note Store Client
=================

HTTP client for the remote knotes note store.

    POST /api/notes               {content}       -> {id, content}
    GET  /api/notes/{id}                          -> {id, content}
    GET  /api/notes/{id}/metadata                 -> {id, createdAt, modifiedAt}
    PUT  /api/notes               {id, content}   -> acknowledgement
"""

import logging
from typing import Any, Dict, Optional

import requests

from knotes.core import Note, NoteMetadata

logger = logging.getLogger(__name__)

API_PATH = "/api/notes"
DEFAULT_TIMEOUT = 10.0


class NoteStoreError(Exception):
    """Raised when the note store cannot be reached or answers badly."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NoteNotFoundError(NoteStoreError):
    """Raised when the store has no note with the requested id."""


class NoteStore:
    """Talks to the remote note store over a shared requests session."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session = None
    ):
        """
        Args:
            base_url: Server root, e.g. "http://localhost:8080"
            timeout: Seconds to wait for each request
            session: Optional session override (tests inject a mock)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def api_url(self, path: str = "") -> str:
        return f"{self.base_url}{API_PATH}{path}"

    def create(self, content: str) -> Note:
        """Create a note and return it with its server-assigned id."""
        data = self._request("POST", self.api_url(), json={"content": content})
        note = self._parse(Note, data)
        logger.info("Created note [%s]", note.id)
        return note

    def get(self, note_id: str) -> Note:
        """Fetch a note by id.

        Raises:
            NoteNotFoundError: If the store answers 404
            NoteStoreError: On any other failure
        """
        data = self._request("GET", self.api_url(f"/{note_id}"))
        return self._parse(Note, data)

    def update(self, note_id: str, content: str) -> None:
        """Replace the content of an existing note. The reply body is ignored."""
        self._request(
            "PUT",
            self.api_url(),
            json={"id": note_id, "content": content},
            expect_body=False
        )
        logger.debug("Updated note [%s]", note_id)

    def metadata(self, note_id: str) -> NoteMetadata:
        """Fetch created/modified timestamps of a note."""
        data = self._request("GET", self.api_url(f"/{note_id}/metadata"))
        return self._parse(NoteMetadata, data)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "NoteStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(
        self,
        method: str,
        url: str,
        json: Optional[Dict[str, Any]] = None,
        expect_body: bool = True
    ) -> Any:
        try:
            response = self.session.request(method, url, json=json, timeout=self.timeout)
        except requests.RequestException as e:
            raise NoteStoreError(f"{method} {url} failed: {e}") from e

        if response.status_code == 404:
            raise NoteNotFoundError(f"Note not found: {url}", status_code=404)
        if not response.ok:
            body = response.text or response.reason or "Unknown error"
            raise NoteStoreError(
                f"{method} {url} returned {response.status_code}: {body}",
                status_code=response.status_code
            )

        if not expect_body:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise NoteStoreError(f"Invalid JSON response from {url}: {e}") from e

    @staticmethod
    def _parse(model, data: Any):
        try:
            return model.from_dict(data)
        except ValueError as e:
            raise NoteStoreError(str(e)) from e
