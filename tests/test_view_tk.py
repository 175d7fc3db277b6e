import threading
import time
import unittest

try:
    import tkinter as tk
except ImportError:
    raise unittest.SkipTest("tkinter is not available")

from knotes.core.store import NoteStoreError
from view import TkScheduler, TkThreadRunner


class TkTestCase(unittest.TestCase):
    def setUp(self) -> None:
        try:
            self.root = tk.Tk()
        except tk.TclError as e:
            self.skipTest(f"no display: {e}")
        self.root.withdraw()

    def tearDown(self) -> None:
        self.root.destroy()

    def pump(self, until, timeout: float = 2.0) -> None:
        """Run the Tk loop until until() is true or the timeout passes."""
        deadline = time.monotonic() + timeout
        while not until() and time.monotonic() < deadline:
            self.root.update()
            time.sleep(0.01)

    def pump_for(self, seconds: float) -> None:
        self.pump(lambda: False, timeout=seconds)


class TestTkScheduler(TkTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.scheduler = TkScheduler(self.root)
        self.ran = []

    def test_task_runs_after_delay(self) -> None:
        task = self.scheduler.call_later(20, lambda: self.ran.append("saved"))
        self.assertTrue(task.pending)
        self.assertEqual(self.ran, [])

        self.pump(lambda: self.ran)

        self.assertEqual(self.ran, ["saved"])
        self.assertFalse(task.pending)

    def test_cancelled_task_never_runs(self) -> None:
        task = self.scheduler.call_later(20, lambda: self.ran.append("saved"))

        self.scheduler.cancel(task)
        self.pump_for(0.1)

        self.assertEqual(self.ran, [])
        self.assertTrue(task.cancelled)
        self.assertIsNone(task.handle)

    def test_only_the_replacing_task_runs(self) -> None:
        first = self.scheduler.call_later(20, lambda: self.ran.append("first"))
        self.scheduler.cancel(first)
        self.scheduler.call_later(20, lambda: self.ran.append("second"))

        self.pump_for(0.1)

        self.assertEqual(self.ran, ["second"])


class TestTkThreadRunner(TkTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.runner = TkThreadRunner(self.root)
        self.results = []

    def tearDown(self) -> None:
        self.runner.shutdown()
        super().tearDown()

    def on_done(self, result, error) -> None:
        self.results.append((result, error, threading.current_thread()))

    def test_result_is_delivered_on_the_tk_thread(self) -> None:
        worker_threads = []

        def work():
            worker_threads.append(threading.current_thread())
            return "01KDECFWYDMS857DZMCR680MCY"

        self.runner.submit(work, self.on_done)
        self.pump(lambda: self.results)

        result, error, thread = self.results[0]
        self.assertEqual(result, "01KDECFWYDMS857DZMCR680MCY")
        self.assertIsNone(error)
        self.assertIs(thread, threading.main_thread())
        self.assertIsNot(worker_threads[0], threading.main_thread())

    def test_error_is_delivered_instead_of_raised(self) -> None:
        failure = NoteStoreError("connection refused")

        def work():
            raise failure

        self.runner.submit(work, self.on_done)
        self.pump(lambda: self.results)

        result, error, _ = self.results[0]
        self.assertIsNone(result)
        self.assertIs(error, failure)

    def test_shutdown_stops_polling(self) -> None:
        self.runner.shutdown()

        self.assertIsNone(self.runner._poll_job)


if __name__ == "__main__":
    unittest.main()
