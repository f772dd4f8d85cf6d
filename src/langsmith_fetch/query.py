from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

from langsmith_fetch.errors import UsageError
from langsmith_fetch.metadata import parse_timestamp

ROOT_RUNS_FILTER = 'and(eq(is_root, true), neq(status, "pending"))'


def _to_iso_utc(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def resolve_start_time(
    last_n_minutes: int | float | None = None,
    since: str | None = None,
    *,
    now: datetime | None = None,
) -> str | None:
    """Turn the relative or absolute time filter into a UTC ``start_time``.

    The two filters are mutually exclusive. Returns None when neither is given.
    """
    if last_n_minutes is not None and since:
        raise UsageError("--last-n-minutes and --since are mutually exclusive")

    if last_n_minutes is not None:
        current = now or datetime.now(UTC)
        return _to_iso_utc(current - timedelta(minutes=last_n_minutes))

    if since:
        parsed = parse_timestamp(since)
        if parsed is None:
            raise UsageError(f"Invalid --since timestamp: {since!r} (expected ISO 8601)")
        return _to_iso_utc(parsed)

    return None


def build_traces_query(
    *,
    limit: int,
    project_uuid: str | None = None,
    last_n_minutes: int | float | None = None,
    since: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "is_root": True,
        "filter": ROOT_RUNS_FILTER,
        "limit": limit,
    }
    if project_uuid:
        body["session"] = [project_uuid]

    start_time = resolve_start_time(last_n_minutes, since, now=now)
    if start_time is not None:
        body["start_time"] = start_time
    return body


def build_threads_query(
    *,
    project_uuid: str,
    last_n_minutes: int | float | None = None,
    since: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "session": [project_uuid],
        "is_root": True,
    }
    start_time = resolve_start_time(last_n_minutes, since, now=now)
    if start_time is not None:
        body["start_time"] = start_time
    return body


def _thread_id_of(run: dict[str, Any]) -> str | None:
    extra = run.get("extra") if isinstance(run, dict) else None
    metadata = extra.get("metadata") if isinstance(extra, dict) else None
    if not isinstance(metadata, dict):
        return None
    # LangGraph stores the thread under session_id
    thread_id = metadata.get("thread_id")
    if thread_id is None:
        thread_id = metadata.get("session_id")
    return str(thread_id) if thread_id else None


def collect_thread_ids(runs: Iterable[dict[str, Any]], limit: int) -> list[str]:
    """Unique thread ids in first-seen order, capped at ``limit``."""
    seen: dict[str, None] = {}
    if limit <= 0:
        return []
    for run in runs:
        thread_id = _thread_id_of(run)
        if thread_id and thread_id not in seen:
            seen[thread_id] = None
            if len(seen) >= limit:
                break
    return list(seen)
