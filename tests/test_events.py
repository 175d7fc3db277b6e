import unittest

from knotes.events import ContentReplacement, Event, EventDispatcher, EventType


class TestEventDispatcher(unittest.TestCase):
    def setUp(self) -> None:
        self.dispatcher = EventDispatcher()
        self.received = []

    def test_dispatch_reaches_listeners_of_that_type(self) -> None:
        self.dispatcher.add_listener(EventType.NOTE_SAVED, self.received.append)

        self.dispatcher.dispatch_note_saved("abc")
        self.dispatcher.dispatch_status("ignored")

        self.assertEqual([e.data for e in self.received], ["abc"])

    def test_content_replaced_carries_new_note_flag(self) -> None:
        self.dispatcher.add_listener(EventType.CONTENT_REPLACED, self.received.append)

        self.dispatcher.dispatch_content_replaced("", new_note=True)
        self.dispatcher.dispatch_content_replaced("loaded text")

        self.assertEqual(
            [e.data for e in self.received],
            [ContentReplacement("", new_note=True), ContentReplacement("loaded text")]
        )

    def test_note_id_changed_may_clear_the_identity(self) -> None:
        self.dispatcher.add_listener(EventType.NOTE_ID_CHANGED, self.received.append)

        self.dispatcher.dispatch_note_id_changed(None)

        self.assertIsNone(self.received[0].data)

    def test_remove_listener(self) -> None:
        self.dispatcher.add_listener(EventType.STATUS_UPDATED, self.received.append)
        self.dispatcher.remove_listener(EventType.STATUS_UPDATED, self.received.append)
        self.dispatcher.remove_listener(EventType.ERROR_OCCURRED, self.received.append)

        self.dispatcher.dispatch_status("nobody listens")

        self.assertEqual(self.received, [])

    def test_failing_listener_does_not_stop_others(self) -> None:
        def broken(event: Event) -> None:
            raise RuntimeError("listener bug")

        self.dispatcher.add_listener(EventType.ERROR_OCCURRED, broken)
        self.dispatcher.add_listener(EventType.ERROR_OCCURRED, self.received.append)

        with self.assertLogs("knotes.events", level="ERROR"):
            self.dispatcher.dispatch_error("oops")

        self.assertEqual([e.data for e in self.received], ["oops"])


if __name__ == "__main__":
    unittest.main()
