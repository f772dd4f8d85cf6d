import asyncio
import unittest
from typing import Any

import httpx
from loguru import logger

from langsmith_fetch.errors import ApiError
from langsmith_fetch.fetchers import fetch_feedback, fetch_thread, fetch_trace
from langsmith_fetch.models import Feedback


class _FakeClient:
    """Routes requests by path to canned payloads or exceptions."""

    def __init__(self, routes: dict[str, Any]):
        self._routes = routes
        self.calls: list[tuple[str, str, Any, dict | None]] = []

    async def request(self, path: str, method: str = "GET", body: Any = None, params: dict | None = None) -> Any:
        self.calls.append((path, method, body, params))
        response = self._routes[path]
        if isinstance(response, Exception):
            raise response
        return response

    def paths(self) -> list[str]:
        return [call[0] for call in self.calls]


def _run(**overrides: Any) -> dict:
    run = {
        "id": "trace-1",
        "status": "success",
        "start_time": "2025-01-01T00:00:00Z",
        "end_time": "2025-01-01T00:00:01Z",
        "messages": [{"type": "human", "content": "Hello"}, {"type": "ai", "content": "Hi there"}],
        "feedback_stats": {},
    }
    run.update(overrides)
    return run


class FetchTraceTests(unittest.TestCase):
    def test_messages_only_by_default(self) -> None:
        client = _FakeClient({"/runs/trace-1": _run()})

        trace = asyncio.run(fetch_trace(client, "trace-1"))

        self.assertEqual("trace-1", trace.trace_id)
        self.assertEqual(["Hello", "Hi there"], [m["content"] for m in trace.messages])
        self.assertIsNone(trace.metadata)
        self.assertIsNone(trace.feedback)
        self.assertEqual({"trace_id": "trace-1", "messages": trace.messages}, trace.to_dict())
        self.assertEqual(("/runs/trace-1", "GET", None, {"include_messages": "true"}), client.calls[0])

    def test_messages_from_outputs(self) -> None:
        run = _run(outputs={"messages": [{"type": "ai", "content": "Response"}]})
        del run["messages"]
        client = _FakeClient({"/runs/trace-1": run})

        trace = asyncio.run(fetch_trace(client, "trace-1"))

        self.assertEqual([{"type": "ai", "content": "Response"}], trace.messages)

    def test_metadata_requested(self) -> None:
        client = _FakeClient({"/runs/trace-1": _run(total_tokens=30)})

        trace = asyncio.run(fetch_trace(client, "trace-1", include_metadata=True))

        self.assertEqual("success", trace.metadata.status)
        self.assertEqual(1000, trace.metadata.duration_ms)
        self.assertEqual(30, trace.metadata.token_usage.total_tokens)
        self.assertEqual([], trace.feedback)
        self.assertEqual(["/runs/trace-1"], client.paths())

    def test_feedback_fetched_only_when_stats_show_some(self) -> None:
        client = _FakeClient({
            "/runs/trace-1": _run(feedback_stats={"correctness": 1}),
            "/feedback": [{"id": "fb-1", "key": "correctness", "score": 1, "comment": "good"}],
        })

        trace = asyncio.run(fetch_trace(client, "trace-1", include_feedback=True))

        self.assertIsNotNone(trace.metadata)
        self.assertEqual([Feedback(id="fb-1", key="correctness", score=1, comment="good")], trace.feedback)
        self.assertEqual(("/feedback", "GET", None, {"run_id": "trace-1"}), client.calls[1])

    def test_feedback_skipped_when_stats_are_empty(self) -> None:
        client = _FakeClient({"/runs/trace-1": _run(feedback_stats={"correctness": 0})})

        trace = asyncio.run(fetch_trace(client, "trace-1", include_feedback=True))

        self.assertEqual([], trace.feedback)
        self.assertEqual(["/runs/trace-1"], client.paths())

    def test_api_error_propagates(self) -> None:
        client = _FakeClient({"/runs/bad-id": ApiError("not found", 404, "Not found")})

        with self.assertRaises(ApiError):
            asyncio.run(fetch_trace(client, "bad-id"))


class FetchFeedbackTests(unittest.TestCase):
    def test_wrapped_feedback_list(self) -> None:
        client = _FakeClient({"/feedback": {"feedback": [{"id": "a", "key": "k", "correction": {"text": "x"}}]}})

        feedback = asyncio.run(fetch_feedback(client, "run-1"))

        self.assertEqual(1, len(feedback))
        self.assertEqual({"text": "x"}, feedback[0].correction)
        self.assertIsNone(feedback[0].score)

    def test_api_failure_yields_empty_list(self) -> None:
        client = _FakeClient({"/feedback": ApiError("boom", 500, "server error")})
        warnings: list[str] = []
        sink_id = logger.add(lambda msg: warnings.append(str(msg)), level="WARNING", format="{message}")
        try:
            self.assertEqual([], asyncio.run(fetch_feedback(client, "run-1")))
        finally:
            logger.remove(sink_id)
        self.assertTrue(any("run-1" in w for w in warnings))

    def test_transport_failure_yields_empty_list(self) -> None:
        client = _FakeClient({"/feedback": httpx.ConnectError("refused")})
        self.assertEqual([], asyncio.run(fetch_feedback(client, "run-1")))

    def test_invalid_url_yields_empty_list(self) -> None:
        client = _FakeClient({"/feedback": httpx.InvalidURL("bad host")})
        self.assertEqual([], asyncio.run(fetch_feedback(client, "run-1")))

    def test_trace_survives_feedback_failure(self) -> None:
        client = _FakeClient({
            "/runs/trace-1": _run(feedback_stats={"correctness": 2}),
            "/feedback": RuntimeError("connection pool closed"),
        })

        trace = asyncio.run(fetch_trace(client, "trace-1", include_feedback=True))

        self.assertEqual([], trace.feedback)
        self.assertEqual(2, len(trace.messages))

    def test_unexpected_shape_yields_empty_list(self) -> None:
        client = _FakeClient({"/feedback": {"items": []}})
        self.assertEqual([], asyncio.run(fetch_feedback(client, "run-1")))


class FetchThreadTests(unittest.TestCase):
    def test_parses_thread_preview(self) -> None:
        blob = '{"type":"human","content":"Hello"}\n\n{"type":"ai","content":"Hi"}'
        client = _FakeClient({"/runs/threads/thread-1": {"previews": {"all_messages": blob}}})

        thread = asyncio.run(fetch_thread(client, "thread-1", "project-uuid"))

        self.assertEqual("thread-1", thread.thread_id)
        self.assertEqual(["Hello", "Hi"], [m["content"] for m in thread.messages])
        self.assertEqual(
            ("/runs/threads/thread-1", "GET", None, {"select": "all_messages", "session_id": "project-uuid"}),
            client.calls[0],
        )

    def test_thread_id_is_escaped_in_path(self) -> None:
        client = _FakeClient({"/runs/threads/a%2Fb": {"previews": {"all_messages": ""}}})

        thread = asyncio.run(fetch_thread(client, "a/b", "p"))

        self.assertEqual("a/b", thread.thread_id)
        self.assertEqual([], thread.messages)

    def test_missing_preview_gives_no_messages(self) -> None:
        client = _FakeClient({"/runs/threads/t": {}})
        self.assertEqual([], asyncio.run(fetch_thread(client, "t", "p")).messages)

    def test_api_error_propagates(self) -> None:
        client = _FakeClient({"/runs/threads/t": ApiError("forbidden", 403, "")})
        with self.assertRaises(ApiError):
            asyncio.run(fetch_thread(client, "t", "p"))


if __name__ == "__main__":
    unittest.main()
