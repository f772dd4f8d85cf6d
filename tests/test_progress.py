import io
import unittest

from rich.console import Console

from langsmith_fetch.progress import LazyProgress


def _console(stream: io.StringIO) -> Console:
    return Console(file=stream, force_terminal=False, color_system=None, width=80)


class LazyProgressTests(unittest.TestCase):
    def test_disabled_has_no_callback(self) -> None:
        self.assertIsNone(LazyProgress(enabled=False).callback)

    def test_bar_created_on_first_report(self) -> None:
        stream = io.StringIO()
        progress = LazyProgress(console=_console(stream))

        progress.callback(1, 3)
        progress.callback(3, 3)
        progress.close()

        output = stream.getvalue()
        self.assertIn("Fetching", output)
        self.assertIn("3/3", output)
        self.assertIn("100%", output)

    def test_partial_batch_shows_settled_count(self) -> None:
        stream = io.StringIO()
        progress = LazyProgress(console=_console(stream), description="Threads")

        progress.callback(1, 4)
        progress.callback(2, 4)
        progress.close()

        self.assertIn("Threads", stream.getvalue())
        self.assertIn("2/4", stream.getvalue())
        self.assertIn("50%", stream.getvalue())

    def test_close_is_idempotent(self) -> None:
        stream = io.StringIO()
        progress = LazyProgress(console=_console(stream))
        progress.callback(1, 1)
        progress.close()
        written = stream.getvalue()
        progress.close()

        self.assertEqual(written, stream.getvalue())

    def test_close_without_reports_writes_nothing(self) -> None:
        stream = io.StringIO()
        LazyProgress(console=_console(stream)).close()
        self.assertEqual("", stream.getvalue())


if __name__ == "__main__":
    unittest.main()
