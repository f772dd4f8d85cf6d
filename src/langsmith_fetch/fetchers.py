from __future__ import annotations

from urllib.parse import quote

from loguru import logger

from langsmith_fetch.errors import ApiError
from langsmith_fetch.messages import extract_run_messages, parse_message_stream
from langsmith_fetch.metadata import extract_run_metadata, has_feedback
from langsmith_fetch.models import Feedback, ThreadData, TraceData
from langsmith_fetch.transport import LangSmithClient


def _path_segment(value: str) -> str:
    return quote(str(value), safe="")


async def fetch_feedback(client: LangSmithClient, run_id: str) -> list[Feedback]:
    """Best-effort feedback lookup; any failure is logged and yields an empty list."""
    try:
        data = await client.request("/feedback", params={"run_id": run_id})
    except ApiError as ex:
        logger.warning(f"Failed to fetch feedback for run {run_id}: {ex.status_code}")
        return []
    except Exception as ex:
        logger.warning(f"Failed to fetch feedback for run {run_id}: {ex}")
        return []

    if isinstance(data, dict):
        data = data.get("feedback")
    if not isinstance(data, list):
        return []
    return [Feedback.from_api(item) for item in data if isinstance(item, dict)]


async def fetch_trace(
    client: LangSmithClient,
    trace_id: str,
    *,
    include_metadata: bool = False,
    include_feedback: bool = False,
) -> TraceData:
    run = await client.request(
        f"/runs/{_path_segment(trace_id)}",
        params={"include_messages": "true"},
    )
    messages = extract_run_messages(run)

    if not (include_metadata or include_feedback):
        return TraceData(trace_id=trace_id, messages=messages)

    metadata = extract_run_metadata(run)
    feedback: list[Feedback] = []
    if include_feedback and has_feedback(metadata):
        feedback = await fetch_feedback(client, trace_id)

    return TraceData(
        trace_id=trace_id,
        messages=messages,
        metadata=metadata,
        feedback=feedback,
    )


async def fetch_thread(client: LangSmithClient, thread_id: str, project_uuid: str) -> ThreadData:
    data = await client.request(
        f"/runs/threads/{_path_segment(thread_id)}",
        params={"select": "all_messages", "session_id": project_uuid},
    )
    previews = data.get("previews") if isinstance(data, dict) else None
    blob = previews.get("all_messages") if isinstance(previews, dict) else None
    return ThreadData(thread_id=thread_id, messages=parse_message_stream(blob))
