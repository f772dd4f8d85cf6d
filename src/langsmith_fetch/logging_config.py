import sys
from pathlib import Path
from typing import Any, Protocol, TextIO, runtime_checkable

from loguru import logger

from langsmith_fetch.errors import ConfigError

_CONSOLE_FORMAT = "<level>{level:<8}</level> | <level>{message}</level>"
_CONSOLE_DEBUG_FORMAT = "<level>{level:<8}</level> | <cyan>{name}</cyan> - <level>{message}</level>"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} - {message}"

DEFAULT_LOG_FILE = "langsmith-fetch.log"


@runtime_checkable
class LogConsumer(Protocol):
    def register(self, level: str) -> None: ...
    def describe(self, level: str) -> str: ...


class ConsoleLogConsumer:
    """Diagnostics on stderr so stdout stays clean for fetched data."""

    def __init__(self, stream: TextIO | None = None, colorize: bool | None = None):
        self._stream = stream
        self._colorize = colorize

    def register(self, level: str) -> None:
        # Resolved here, not at import, so redirected stderr is honored
        stream = self._stream or sys.stderr
        logger.add(
            stream,
            level=level,
            colorize=self._colorize,
            format=_CONSOLE_DEBUG_FORMAT if level == "DEBUG" else _CONSOLE_FORMAT,
        )

    def describe(self, level: str) -> str:
        target = "stderr" if self._stream is None else "stream"
        return f"console ({target}, {level})"


class FileLogConsumer:
    def __init__(
        self,
        path: str = DEFAULT_LOG_FILE,
        rotation: str = "10 MB",
        retention: int = 3,
        serialize: bool = False,
    ):
        self._path = path
        self._rotation = rotation
        self._retention = retention
        self._serialize = serialize

    def register(self, level: str) -> None:
        Path(self._path).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            self._path,
            level=level,
            format=_FILE_FORMAT,
            rotation=self._rotation,
            retention=self._retention,
            serialize=self._serialize,
        )

    def describe(self, level: str) -> str:
        kind = "jsonl" if self._serialize else "file"
        return f"{kind} ({self._path}, {level})"


_CONSUMER_TYPES: dict[str, type] = {
    "console": ConsoleLogConsumer,
    "file": FileLogConsumer,
}

_DEFAULT_CONSUMERS = [
    {"type": "console"},
]


def default_consumers(log_file: str | None = None) -> list[dict[str, Any]]:
    """Console sink, plus a DEBUG file sink when ``log_file`` is configured.

    A ``.jsonl`` log file gets one serialized record per line.
    """
    consumers = [dict(c) for c in _DEFAULT_CONSUMERS]
    if log_file:
        consumers.append(
            {
                "type": "file",
                "path": log_file,
                "level": "DEBUG",
                "serialize": log_file.endswith(".jsonl"),
            }
        )
    return consumers


def setup_logging(
    level: str = "WARNING",
    consumers: list[dict[str, Any]] | None = None,
) -> list[str]:
    """Configure logging sinks. Returns a description of each registered consumer."""
    logger.remove()

    if consumers is None:
        consumers = _DEFAULT_CONSUMERS

    descriptions: list[str] = []

    for config in consumers:
        sink_type = config.get("type", "")
        cls = _CONSUMER_TYPES.get(sink_type)
        if cls is None:
            logger.warning(f"Unknown log consumer type: {sink_type!r}")
            continue

        kwargs = {k: v for k, v in config.items() if k not in ("type", "level")}
        sink_level = str(config.get("level", level)).upper()

        try:
            consumer = cls(**kwargs)
        except TypeError as ex:
            raise ConfigError(f"Invalid options for log consumer {sink_type!r}: {ex}") from ex
        consumer.register(sink_level)
        descriptions.append(consumer.describe(sink_level))

    return descriptions
