"""Project configuration management."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from tracewatch import paths

logger = logging.getLogger(__name__)


class ProjectConfig:
    """Access to values from the optional ``tracewatch.json`` settings file.

    Every property returns ``None`` when the key is absent so callers can
    layer command-line flags over the file and built-in defaults under it.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._data: dict[str, Any] = {}
        self._loaded = False

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return

        config_path = self._path or paths.get_config_file()
        if config_path.exists():
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as exc:
                # Unreadable config is treated as empty
                logger.warning("Ignoring config file %s: %s", config_path, exc)
                data = {}
            if isinstance(data, dict):
                self._data = data
            else:
                logger.warning("Ignoring config file %s: top level must be an object", config_path)

        self._loaded = True

    @property
    def interval(self) -> Optional[int]:
        """Polling interval in seconds."""
        self._ensure_loaded()
        return self._data.get("interval")

    @property
    def timeout(self) -> Optional[int]:
        """Per-request HTTP timeout in seconds."""
        self._ensure_loaded()
        return self._data.get("timeout")

    @property
    def workers(self) -> Optional[int]:
        """Detail fetch pool size."""
        self._ensure_loaded()
        return self._data.get("workers")

    @property
    def output_dir(self) -> Optional[str]:
        self._ensure_loaded()
        return self._data.get("output_dir")

    @property
    def cache_dir(self) -> Optional[str]:
        self._ensure_loaded()
        return self._data.get("cache_dir")

    @property
    def keywords(self) -> Optional[str | list[str]]:
        """Keywords to scan for, as a list or a comma-separated string."""
        self._ensure_loaded()
        return self._data.get("keywords")

    @property
    def headers(self) -> Optional[str | list[str]]:
        """Extra request headers as ``Name:Value`` entries."""
        self._ensure_loaded()
        return self._data.get("headers")

    @property
    def verbose(self) -> Optional[bool]:
        self._ensure_loaded()
        return self._data.get("verbose")

    def get(self, key: str, default: Any = None) -> Any:
        """Get a raw configuration value."""
        self._ensure_loaded()
        return self._data.get(key, default)


@lru_cache(maxsize=1)
def get_config() -> ProjectConfig:
    """Get the singleton configuration instance."""
    return ProjectConfig()
