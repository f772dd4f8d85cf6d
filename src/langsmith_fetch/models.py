from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

Message = dict[str, Any]


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None


@dataclass(frozen=True)
class Costs:
    prompt_cost: float | None = None
    completion_cost: float | None = None
    total_cost: float | None = None


@dataclass(frozen=True)
class RunMetadata:
    status: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    duration_ms: int | None = None
    custom_metadata: dict[str, Any] = field(default_factory=dict)
    token_usage: TokenUsage = field(default_factory=TokenUsage)
    costs: Costs = field(default_factory=Costs)
    first_token_time: str | None = None
    feedback_stats: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Feedback:
    id: str | None = None
    key: str | None = None
    score: float | None = None
    value: Any = None
    comment: str | None = None
    correction: Any = None
    created_at: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Feedback:
        return cls(
            id=data.get("id"),
            key=data.get("key"),
            score=data.get("score"),
            value=data.get("value"),
            comment=data.get("comment"),
            correction=data.get("correction"),
            created_at=data.get("created_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TraceData:
    """A single trace. ``metadata``/``feedback`` are None when not requested."""

    trace_id: str
    messages: list[Message] = field(default_factory=list)
    metadata: RunMetadata | None = None
    feedback: list[Feedback] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"trace_id": self.trace_id, "messages": self.messages}
        if self.metadata is not None:
            data["metadata"] = self.metadata.to_dict()
        if self.feedback is not None:
            data["feedback"] = [fb.to_dict() for fb in self.feedback]
        return data


@dataclass(frozen=True)
class ThreadData:
    thread_id: str
    messages: list[Message] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"thread_id": self.thread_id, "messages": self.messages}
