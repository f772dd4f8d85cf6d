from __future__ import annotations

import json
from typing import Any

from rich.style import Style

from langsmith_fetch.models import Feedback, Message, RunMetadata, ThreadData, TraceData

_RULE = "=" * 60
_THIN_RULE = "-" * 60
_HEADER_STYLE = Style(bold=True)


def _section_header(title: str, color: bool) -> str:
    heading = _HEADER_STYLE.render(title) if color else title
    return "\n".join([_RULE, heading, _RULE])


def format_raw(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def format_json(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


def _render_content(content: Any) -> list[str]:
    if content is None:
        return []
    if isinstance(content, str):
        return [content]
    if not isinstance(content, list):
        return [str(content)]

    parts: list[str] = []
    for item in content:
        if not isinstance(item, dict):
            parts.append(str(item))
        elif item.get("text"):
            parts.append(str(item["text"]))
        elif item.get("type") == "tool_use":
            parts.append(f"\nTool Call: {item.get('name') or 'unknown'}")
            if "input" in item:
                parts.append(f"Input: {json.dumps(item['input'], ensure_ascii=False, indent=2)}")
    return parts


def _render_tool_calls(tool_calls: Any) -> list[str]:
    parts: list[str] = []
    for tool_call in tool_calls or []:
        function = tool_call.get("function") if isinstance(tool_call, dict) else None
        if not isinstance(function, dict):
            continue
        parts.append(f"\nTool Call: {function.get('name') or 'unknown'}")
        if function.get("arguments"):
            parts.append(f"Arguments: {function['arguments']}")
    return parts


def format_pretty_messages(messages: list[Message]) -> str:
    parts: list[str] = []
    for index, message in enumerate(messages, 1):
        msg_type = message.get("type") or message.get("role") or "unknown"

        parts.append(_RULE)
        parts.append(f"Message {index}: {msg_type}")
        parts.append(_THIN_RULE)
        parts.extend(_render_content(message.get("content")))
        parts.extend(_render_tool_calls(message.get("tool_calls")))

        if msg_type == "tool" or message.get("name"):
            parts.append(f"Tool: {message.get('name') or 'unknown'}")
        parts.append("")
    return "\n".join(parts)


def _format_cost(value: float) -> str:
    return f"${value:.5f}"


def _format_metadata_section(metadata: RunMetadata, color: bool = False) -> str:
    lines = [_section_header("RUN METADATA", color)]

    if metadata.status:
        lines.append(f"Status: {metadata.status}")
    if metadata.start_time:
        lines.append(f"Start Time: {metadata.start_time}")
    if metadata.end_time:
        lines.append(f"End Time: {metadata.end_time}")
    if metadata.duration_ms is not None:
        lines.append(f"Duration: {metadata.duration_ms}ms")

    usage = metadata.token_usage
    if any(v is not None for v in (usage.prompt_tokens, usage.completion_tokens, usage.total_tokens)):
        lines.append("\nToken Usage:")
        if usage.prompt_tokens is not None:
            lines.append(f"  Prompt: {usage.prompt_tokens}")
        if usage.completion_tokens is not None:
            lines.append(f"  Completion: {usage.completion_tokens}")
        if usage.total_tokens is not None:
            lines.append(f"  Total: {usage.total_tokens}")

    costs = metadata.costs
    if any(v is not None for v in (costs.prompt_cost, costs.completion_cost, costs.total_cost)):
        lines.append("\nCosts:")
        if costs.total_cost is not None:
            lines.append(f"  Total: {_format_cost(costs.total_cost)}")
        if costs.prompt_cost is not None:
            lines.append(f"  Prompt: {_format_cost(costs.prompt_cost)}")
        if costs.completion_cost is not None:
            lines.append(f"  Completion: {_format_cost(costs.completion_cost)}")

    if metadata.custom_metadata:
        lines.append("\nCustom Metadata:")
        for key, value in metadata.custom_metadata.items():
            if isinstance(value, (dict, list)):
                lines.append(f"  {key}: {json.dumps(value, ensure_ascii=False, indent=4)}")
            else:
                lines.append(f"  {key}: {value}")

    if metadata.feedback_stats:
        lines.append("\nFeedback Stats:")
        for key, count in metadata.feedback_stats.items():
            lines.append(f"  {key}: {count}")

    return "\n".join(lines)


def _format_feedback_section(feedback: list[Feedback], color: bool = False) -> str:
    lines = [_section_header("FEEDBACK", color)]
    for index, fb in enumerate(feedback, 1):
        lines.append(f"\nFeedback {index}:")
        lines.append(f"  Key: {fb.key}")
        if fb.score is not None:
            lines.append(f"  Score: {fb.score}")
        if fb.value is not None:
            lines.append(f"  Value: {fb.value}")
        if fb.comment:
            lines.append(f"  Comment: {fb.comment}")
        if fb.correction:
            if isinstance(fb.correction, str):
                lines.append(f"  Correction: {fb.correction}")
            else:
                lines.append(f"  Correction: {json.dumps(fb.correction, ensure_ascii=False, indent=4)}")
        if fb.created_at:
            lines.append(f"  Created: {fb.created_at}")
    return "\n".join(lines)


def _format_pretty_trace(trace: TraceData, color: bool = False) -> str:
    parts: list[str] = []
    if trace.metadata is not None:
        parts.append(_format_metadata_section(trace.metadata, color))
    if trace.feedback:
        parts.append(_format_feedback_section(trace.feedback, color))
    if parts:
        parts.append(_section_header("MESSAGES", color))
    parts.append(format_pretty_messages(trace.messages))
    return "\n\n".join(parts)


def format_messages(messages: list[Message], fmt: str) -> str:
    if fmt == "raw":
        return format_raw(messages)
    if fmt == "json":
        return format_json(messages)
    return format_pretty_messages(messages)


def format_trace(trace: TraceData, fmt: str, *, color: bool = False) -> str:
    """Render a trace. ``color`` bolds the pretty section headers for terminals."""
    if trace.metadata is None:
        return format_messages(trace.messages, fmt)
    if fmt == "raw":
        return format_raw(trace.to_dict())
    if fmt == "json":
        return format_json(trace.to_dict())
    return _format_pretty_trace(trace, color)


def format_thread(thread: ThreadData, fmt: str) -> str:
    return format_messages(thread.messages, fmt)


def trace_output_data(trace: TraceData) -> Any:
    """What gets serialized for a trace in list and directory output."""
    return trace.to_dict() if trace.metadata is not None else trace.messages
