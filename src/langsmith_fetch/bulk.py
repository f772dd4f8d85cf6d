from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from loguru import logger

from langsmith_fetch.errors import ConfigError, UsageError
from langsmith_fetch.fetchers import fetch_thread, fetch_trace
from langsmith_fetch.models import ThreadData, TraceData
from langsmith_fetch.query import build_threads_query, build_traces_query, collect_thread_ids
from langsmith_fetch.transport import LangSmithClient

T = TypeVar("T")
R = TypeVar("R")

ProgressCallback = Callable[[int, int], None]

DEFAULT_MAX_CONCURRENT = 5


def _no_progress(completed: int, total: int) -> None:
    return


async def gather_bounded(
    items: Sequence[T],
    fetch_one: Callable[[T], Awaitable[R]],
    *,
    max_concurrent: int = DEFAULT_MAX_CONCURRENT,
    on_progress: ProgressCallback | None = None,
    label: str = "item",
) -> list[R]:
    """Run ``fetch_one`` over ``items`` with at most ``max_concurrent`` in flight.

    A failing item is logged and left out; it never fails the batch. Results keep
    the input order. ``on_progress(settled, total)`` fires once per settled item,
    successes and failures alike.
    """
    if max_concurrent < 1:
        raise UsageError(f"max_concurrent must be at least 1 (got {max_concurrent})")

    total = len(items)
    if total == 0:
        return []

    report = on_progress or _no_progress
    semaphore = asyncio.Semaphore(max_concurrent)
    settled = 0

    async def run_one(item: T) -> tuple[bool, R | None]:
        nonlocal settled
        async with semaphore:
            try:
                outcome = True, await fetch_one(item)
            except Exception as ex:
                logger.warning(f"Failed to fetch {label} {item}: {ex}")
                outcome = False, None

            # no await between the increment and the callback
            settled += 1
            try:
                report(settled, total)
            except Exception as ex:
                logger.warning(f"Progress callback failed at {settled}/{total}: {ex}")
            return outcome

    outcomes = await asyncio.gather(*(run_one(item) for item in items))
    return [result for ok, result in outcomes if ok]


async def fetch_traces(
    client: LangSmithClient,
    *,
    limit: int = 1,
    project_uuid: str | None = None,
    last_n_minutes: int | float | None = None,
    since: str | None = None,
    max_concurrent: int = DEFAULT_MAX_CONCURRENT,
    include_metadata: bool = False,
    include_feedback: bool = False,
    on_progress: ProgressCallback | None = None,
) -> list[TraceData]:
    if max_concurrent < 1:
        raise UsageError(f"max_concurrent must be at least 1 (got {max_concurrent})")
    body = build_traces_query(
        limit=limit,
        project_uuid=project_uuid,
        last_n_minutes=last_n_minutes,
        since=since,
    )
    data = await client.request("/runs/query", method="POST", body=body)
    runs = (data.get("runs") or []) if isinstance(data, dict) else []
    run_ids = [run["id"] for run in runs if isinstance(run, dict) and run.get("id")]
    logger.debug(f"Run query matched {len(run_ids)} trace(s)")

    async def fetch_one(run_id: str) -> TraceData:
        return await fetch_trace(
            client,
            run_id,
            include_metadata=include_metadata,
            include_feedback=include_feedback,
        )

    return await gather_bounded(
        run_ids,
        fetch_one,
        max_concurrent=max_concurrent,
        on_progress=on_progress,
        label="trace",
    )


async def fetch_threads(
    client: LangSmithClient,
    *,
    project_uuid: str,
    limit: int = 10,
    last_n_minutes: int | float | None = None,
    since: str | None = None,
    max_concurrent: int = DEFAULT_MAX_CONCURRENT,
    on_progress: ProgressCallback | None = None,
) -> list[ThreadData]:
    if not project_uuid:
        raise ConfigError("A project UUID is required to fetch threads.")
    if max_concurrent < 1:
        raise UsageError(f"max_concurrent must be at least 1 (got {max_concurrent})")
    body = build_threads_query(
        project_uuid=project_uuid,
        last_n_minutes=last_n_minutes,
        since=since,
    )
    data = await client.request("/runs/query", method="POST", body=body)
    runs = (data.get("runs") or []) if isinstance(data, dict) else []
    thread_ids = collect_thread_ids(runs, limit)
    logger.debug(f"Run query matched {len(runs)} run(s), {len(thread_ids)} thread(s)")

    async def fetch_one(thread_id: str) -> ThreadData:
        return await fetch_thread(client, thread_id, project_uuid)

    return await gather_bounded(
        thread_ids,
        fetch_one,
        max_concurrent=max_concurrent,
        on_progress=on_progress,
        label="thread",
    )
