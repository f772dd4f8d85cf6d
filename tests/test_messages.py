import json
import unittest

from langsmith_fetch.messages import extract_run_messages, parse_message_stream


class ParseMessageStreamTests(unittest.TestCase):
    def test_two_messages_in_order(self) -> None:
        blob = '{"type":"human","content":"Hello"}\n\n{"type":"ai","content":"Hi"}'
        messages = parse_message_stream(blob)
        self.assertEqual(
            [{"type": "human", "content": "Hello"}, {"type": "ai", "content": "Hi"}],
            messages,
        )

    def test_malformed_segment_is_dropped(self) -> None:
        blob = '{"type":"human","content":"Hello"}\n\nnot json\n\n{"type":"ai","content":"Hi"}'
        messages = parse_message_stream(blob)
        self.assertEqual(["Hello", "Hi"], [m["content"] for m in messages])

    def test_blank_segments_and_whitespace_are_ignored(self) -> None:
        blob = '\n\n  {"type":"human","content":"a"}  \n\n\n\n   \n\n{"type":"ai","content":"b"}\n\n'
        messages = parse_message_stream(blob)
        self.assertEqual(["a", "b"], [m["content"] for m in messages])

    def test_escaped_newlines_in_content_survive(self) -> None:
        msg = {"type": "ai", "content": "line one\nline two"}
        messages = parse_message_stream(json.dumps(msg, indent=None))
        self.assertEqual([msg], messages)

    def test_non_object_segments_are_dropped(self) -> None:
        blob = '42\n\n["x"]\n\n{"type":"ai","content":"ok"}'
        self.assertEqual([{"type": "ai", "content": "ok"}], parse_message_stream(blob))

    def test_empty_and_missing_blob(self) -> None:
        self.assertEqual([], parse_message_stream(""))
        self.assertEqual([], parse_message_stream(None))

    def test_structured_content_is_preserved(self) -> None:
        msg = {
            "role": "assistant",
            "content": [{"type": "text", "text": "Checking"}, {"type": "tool_use", "name": "search", "input": {"q": "x"}}],
            "tool_calls": [{"function": {"name": "search", "arguments": "{\"q\": \"x\"}"}}],
        }
        self.assertEqual([msg], parse_message_stream(json.dumps(msg)))


class ExtractRunMessagesTests(unittest.TestCase):
    def test_direct_messages_win(self) -> None:
        run = {
            "id": "r",
            "messages": [{"type": "human", "content": "direct"}],
            "outputs": {"messages": [{"type": "ai", "content": "nested"}]},
        }
        self.assertEqual([{"type": "human", "content": "direct"}], extract_run_messages(run))

    def test_empty_direct_messages_are_not_merged_with_outputs(self) -> None:
        run = {"id": "r", "messages": [], "outputs": {"messages": [{"type": "ai", "content": "nested"}]}}
        self.assertEqual([], extract_run_messages(run))

    def test_falls_back_to_outputs(self) -> None:
        run = {"id": "r", "outputs": {"messages": [{"type": "ai", "content": "nested"}]}}
        self.assertEqual([{"type": "ai", "content": "nested"}], extract_run_messages(run))

    def test_no_messages_anywhere(self) -> None:
        self.assertEqual([], extract_run_messages({"id": "r"}))
        self.assertEqual([], extract_run_messages({"id": "r", "outputs": None}))
        self.assertEqual([], extract_run_messages({"id": "r", "outputs": {"output": "text"}}))


if __name__ == "__main__":
    unittest.main()
