import unittest
from unittest.mock import MagicMock

import requests

from knotes.core.store import NoteNotFoundError, NoteStore, NoteStoreError

NOTE_ID = "01KDECFWYDMS857DZMCR680MCY"


def fake_response(status_code: int = 200, payload=None, text: str = "") -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = text
    response.reason = "Reason"
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


class TestNoteStore(unittest.TestCase):
    def setUp(self) -> None:
        self.session = MagicMock(spec=requests.Session)
        self.store = NoteStore("http://knotes.test/", timeout=3.0, session=self.session)

    def test_create_posts_content(self) -> None:
        self.session.request.return_value = fake_response(200, {"id": NOTE_ID, "content": "hi"})

        note = self.store.create("hi")

        self.session.request.assert_called_once_with(
            "POST", "http://knotes.test/api/notes", json={"content": "hi"}, timeout=3.0
        )
        self.assertEqual(note.id, NOTE_ID)
        self.assertEqual(note.content, "hi")

    def test_get_fetches_by_id(self) -> None:
        self.session.request.return_value = fake_response(
            200,
            {"id": NOTE_ID, "content": "text", "createdAt": "2026-01-01T00:00:00Z"}
        )

        note = self.store.get(NOTE_ID)

        self.session.request.assert_called_once_with(
            "GET", f"http://knotes.test/api/notes/{NOTE_ID}", json=None, timeout=3.0
        )
        self.assertEqual(note.content, "text")
        self.assertEqual(note.created_at, "2026-01-01T00:00:00Z")

    def test_null_content_becomes_empty_string(self) -> None:
        self.session.request.return_value = fake_response(200, {"id": NOTE_ID, "content": None})

        self.assertEqual(self.store.get(NOTE_ID).content, "")

    def test_get_missing_note_raises_not_found(self) -> None:
        self.session.request.return_value = fake_response(404, text="not found")

        with self.assertRaises(NoteNotFoundError) as ctx:
            self.store.get(NOTE_ID)
        self.assertEqual(ctx.exception.status_code, 404)

    def test_server_error_raises_store_error(self) -> None:
        self.session.request.return_value = fake_response(500, text="boom")

        with self.assertRaises(NoteStoreError) as ctx:
            self.store.get(NOTE_ID)
        self.assertNotIsInstance(ctx.exception, NoteNotFoundError)
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertIn("boom", str(ctx.exception))

    def test_transport_failure_raises_store_error(self) -> None:
        self.session.request.side_effect = requests.ConnectionError("refused")

        with self.assertRaises(NoteStoreError):
            self.store.create("")

    def test_invalid_json_raises_store_error(self) -> None:
        self.session.request.return_value = fake_response(200, ValueError("no json"))

        with self.assertRaises(NoteStoreError):
            self.store.get(NOTE_ID)

    def test_body_without_id_raises_store_error(self) -> None:
        self.session.request.return_value = fake_response(200, {"content": "x"})

        with self.assertRaises(NoteStoreError):
            self.store.create("x")

    def test_update_puts_id_and_content_and_ignores_body(self) -> None:
        response = fake_response(200, ValueError("not read"))
        self.session.request.return_value = response

        self.assertIsNone(self.store.update(NOTE_ID, "new text"))

        self.session.request.assert_called_once_with(
            "PUT",
            "http://knotes.test/api/notes",
            json={"id": NOTE_ID, "content": "new text"},
            timeout=3.0
        )
        response.json.assert_not_called()

    def test_metadata(self) -> None:
        self.session.request.return_value = fake_response(
            200,
            {"id": NOTE_ID, "createdAt": "2026-01-01T00:00:00Z", "modifiedAt": "2026-01-02T00:00:00Z"}
        )

        metadata = self.store.metadata(NOTE_ID)

        self.assertEqual(
            self.session.request.call_args.args[1],
            f"http://knotes.test/api/notes/{NOTE_ID}/metadata"
        )
        self.assertEqual(metadata.modified_at, "2026-01-02T00:00:00Z")

    def test_context_manager_closes_session(self) -> None:
        with self.store:
            pass

        self.session.close.assert_called_once_with()


if __name__ == "__main__":
    unittest.main()
