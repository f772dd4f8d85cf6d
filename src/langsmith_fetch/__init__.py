__version__ = "0.1.1"

from langsmith_fetch.bulk import fetch_threads, fetch_traces, gather_bounded
from langsmith_fetch.config import ProjectIdCache
from langsmith_fetch.errors import ApiError, ConfigError, LangSmithError, UsageError
from langsmith_fetch.fetchers import fetch_feedback, fetch_thread, fetch_trace
from langsmith_fetch.models import Costs, Feedback, RunMetadata, ThreadData, TokenUsage, TraceData
from langsmith_fetch.transport import LangSmithClient

__all__ = [
    "ApiError",
    "ConfigError",
    "Costs",
    "Feedback",
    "LangSmithClient",
    "LangSmithError",
    "ProjectIdCache",
    "RunMetadata",
    "ThreadData",
    "TokenUsage",
    "TraceData",
    "UsageError",
    "fetch_feedback",
    "fetch_thread",
    "fetch_threads",
    "fetch_trace",
    "fetch_traces",
    "gather_bounded",
]
