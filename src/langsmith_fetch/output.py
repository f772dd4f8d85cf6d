from __future__ import annotations

import re
import sys
from pathlib import Path

_UNSAFE_CHARS = re.compile(r"[^\w\-.]", re.ASCII)
_EDGE_DOTS_AND_SPACES = re.compile(r"^[.\s]+|[.\s]+$")
_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

MAX_FILENAME_LENGTH = 255


def sanitize_filename(name: str) -> str:
    safe = _UNSAFE_CHARS.sub("_", name)
    safe = _EDGE_DOTS_AND_SPACES.sub("", safe)
    return safe[:MAX_FILENAME_LENGTH]


def render_filename(pattern: str, key: str, item_id: str, index: int) -> str:
    """Fill ``{<key>}``, ``{index}`` and ``{idx}`` placeholders, then sanitize.

    Placeholders may carry a format suffix (``{index:03d}``); it is ignored.
    The result always ends in ``.json``.
    """
    filename = re.sub(r"\{" + re.escape(key) + r"[^}]*\}", lambda _: item_id, pattern)
    filename = re.sub(r"\{(?:index|idx)[^}]*\}", str(index), filename)
    safe = sanitize_filename(filename)
    if not safe.endswith(".json"):
        safe += ".json"
    return safe


def looks_like_uuid(value: str) -> bool:
    return bool(_UUID_RE.match(value))


def ensure_dir(path: str | Path) -> Path:
    directory = Path(path).resolve()
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def write_output(content: str, path: str | Path | None = None) -> None:
    if path:
        Path(path).write_text(content, encoding="utf-8")
    else:
        sys.stdout.write(content)
