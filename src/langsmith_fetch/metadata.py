from __future__ import annotations

from datetime import datetime
from typing import Any

from langsmith_fetch.models import Costs, RunMetadata, TokenUsage


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 timestamp, accepting a trailing ``Z``. Returns None on failure."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _duration_ms(start_time: object, end_time: object) -> int | None:
    start = parse_timestamp(start_time)
    end = parse_timestamp(end_time)
    if start is None or end is None:
        return None
    try:
        delta = end - start
    except TypeError:
        # naive and aware timestamps can't be compared
        return None
    return round(delta.total_seconds() * 1000)


def _mapping(value: object) -> dict[str, Any]:
    return dict(value) if isinstance(value, dict) else {}


def extract_run_metadata(run: dict[str, Any]) -> RunMetadata:
    extra = _mapping(run.get("extra"))
    return RunMetadata(
        status=run.get("status"),
        start_time=run.get("start_time"),
        end_time=run.get("end_time"),
        duration_ms=_duration_ms(run.get("start_time"), run.get("end_time")),
        custom_metadata=_mapping(extra.get("metadata")),
        token_usage=TokenUsage(
            prompt_tokens=run.get("prompt_tokens"),
            completion_tokens=run.get("completion_tokens"),
            total_tokens=run.get("total_tokens"),
        ),
        costs=Costs(
            prompt_cost=run.get("prompt_cost"),
            completion_cost=run.get("completion_cost"),
            total_cost=run.get("total_cost"),
        ),
        first_token_time=run.get("first_token_time"),
        feedback_stats=_mapping(run.get("feedback_stats")),
    )


def has_feedback(metadata: RunMetadata) -> bool:
    return any(
        isinstance(count, (int, float)) and not isinstance(count, bool) and count > 0
        for count in metadata.feedback_stats.values()
    )
