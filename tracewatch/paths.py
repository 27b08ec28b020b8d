"""Filesystem locations used by the poller."""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_ENV_VAR = "TRACEWATCH_CONFIG"
_DEFAULT_CONFIG_NAME = "tracewatch.json"


def get_project_root() -> Path:
    """Directory the poller treats as its working root."""
    return Path.cwd()


def get_config_file() -> Path:
    """Location of the optional JSON settings file.

    ``TRACEWATCH_CONFIG`` takes precedence over ``./tracewatch.json``.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return get_project_root() / _DEFAULT_CONFIG_NAME


def get_output_root() -> Path:
    return get_project_root()
