from __future__ import annotations

import json
from typing import Any

from loguru import logger

from langsmith_fetch.models import Message

MESSAGE_SEPARATOR = "\n\n"


def parse_message_stream(blob: object) -> list[Message]:
    """Rebuild a thread's messages from its ``all_messages`` preview.

    The preview holds one JSON-encoded message per segment, segments separated
    by a blank line. Segments that fail to decode, or decode to something other
    than an object, are dropped; the rest keep their original order.
    """
    if not isinstance(blob, str):
        return []

    messages: list[Message] = []
    for segment in blob.split(MESSAGE_SEPARATOR):
        segment = segment.strip()
        if not segment:
            continue
        try:
            decoded = json.loads(segment)
        except json.JSONDecodeError:
            logger.debug(f"Skipping undecodable message segment: {segment[:80]!r}")
            continue
        if isinstance(decoded, dict):
            messages.append(decoded)
    return messages


def extract_run_messages(run: dict[str, Any]) -> list[Message]:
    messages = run.get("messages")
    if messages is None:
        outputs = run.get("outputs")
        if isinstance(outputs, dict):
            messages = outputs.get("messages")
    return list(messages) if isinstance(messages, list) else []
