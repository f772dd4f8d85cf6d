from __future__ import annotations

import asyncio
import os
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from langsmith_fetch.errors import ConfigError
from langsmith_fetch.transport import DEFAULT_BASE_URL, LangSmithClient

CONFIG_DIR = Path.home() / ".langsmith-cli"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

OUTPUT_FORMATS = ("raw", "json", "pretty")
DEFAULT_FORMAT = "pretty"
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class FetchConfig:
    api_key: str | None
    base_url: str
    project_uuid: str | None
    project_name: str | None
    config_project_uuid: str | None
    config_project_name: str | None
    default_format: str
    log_level: str
    log_file: str | None

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigError(
                "LANGSMITH_API_KEY not found in environment or config. "
                f"Set the LANGSMITH_API_KEY environment variable or store it in {CONFIG_FILE}"
            )
        return self.api_key


def load_config_file(path: Path = CONFIG_FILE) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as ex:
        logger.warning(f"Ignoring unreadable config file {path}: {ex}")
        return {}
    return data if isinstance(data, dict) else {}


def _config_value(config: Mapping[str, Any], key: str) -> str | None:
    for candidate in (key.replace("_", "-"), key.replace("-", "_")):
        value = config.get(candidate)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def resolve_config(
    file_config: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> FetchConfig:
    """Merge environment and config-file settings; environment wins."""
    cfg = file_config if file_config is not None else load_config_file()
    env = environ if environ is not None else os.environ

    default_format = (_config_value(cfg, "default-format") or DEFAULT_FORMAT).lower()
    if default_format not in OUTPUT_FORMATS:
        default_format = DEFAULT_FORMAT

    return FetchConfig(
        api_key=env.get("LANGSMITH_API_KEY") or _config_value(cfg, "api-key"),
        base_url=env.get("LANGSMITH_ENDPOINT") or _config_value(cfg, "base-url") or DEFAULT_BASE_URL,
        project_uuid=env.get("LANGSMITH_PROJECT_UUID") or None,
        project_name=env.get("LANGSMITH_PROJECT") or None,
        config_project_uuid=_config_value(cfg, "project-uuid"),
        config_project_name=_config_value(cfg, "project-name"),
        default_format=default_format,
        log_level=(env.get("LANGSMITH_FETCH_LOG_LEVEL") or _config_value(cfg, "log-level") or DEFAULT_LOG_LEVEL).upper(),
        log_file=_config_value(cfg, "log-file"),
    )


class ProjectIdCache:
    """Caller-owned cache for project name -> id lookups; each name loads once."""

    def __init__(self) -> None:
        self._ids: dict[str, str] = {}
        self._lock = asyncio.Lock()

    def get(self, name: str) -> str | None:
        return self._ids.get(name)

    async def get_or_load(self, name: str, loader: Callable[[str], Awaitable[str]]) -> str:
        async with self._lock:
            if name not in self._ids:
                self._ids[name] = await loader(name)
            return self._ids[name]


async def lookup_project_uuid(client: LangSmithClient, project_name: str) -> str:
    data = await client.request("/sessions", params={"name": project_name})
    if not isinstance(data, list) or not data or not isinstance(data[0], dict) or not data[0].get("id"):
        raise ConfigError(f'Project "{project_name}" not found')
    return str(data[0]["id"])


async def resolve_project_uuid(
    config: FetchConfig,
    client: LangSmithClient,
    cache: ProjectIdCache,
) -> str | None:
    if config.project_uuid:
        return config.project_uuid

    if config.project_name:
        return await cache.get_or_load(config.project_name, lambda name: lookup_project_uuid(client, name))

    if config.config_project_uuid:
        return config.config_project_uuid

    if config.config_project_name:
        return await cache.get_or_load(config.config_project_name, lambda name: lookup_project_uuid(client, name))

    return None


def _mask_api_key(value: object) -> str:
    text = str(value)
    return text[:10] + "..." if len(text) > 10 else "(not set)"


def describe_config(file_config: Mapping[str, Any], path: Path = CONFIG_FILE) -> list[str]:
    if not file_config:
        return ["No configuration found", f"Config file location: {path}"]

    lines = ["Current configuration:", f"Location: {path}", ""]
    for key, value in file_config.items():
        display = _mask_api_key(value) if key in ("api-key", "api_key") else str(value)
        lines.append(f"  {key}: {display}")
    return lines
