"""Source list loading and URL normalization.

A source list is a newline-delimited file of bare hosts or full URLs, each
pointing at an ASP.NET ``Trace.axd`` endpoint:

    >>> normalize_source("example.com/Trace.axd")
    'https://example.com/Trace.axd'
    >>> normalize_source("http://10.0.0.5:8080/app/trace.axd?id=3#top")
    'http://10.0.0.5:8080/app/trace.axd'
"""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import urlparse, urlunparse

logger = logging.getLogger(__name__)

TRACE_ENDPOINT = "trace.axd"
DEFAULT_SCHEME = "https"
_BOM = "\ufeff"


class SourceListError(Exception):
    """Raised when the source list cannot be read or holds no sources."""


class InvalidSourceURL(SourceListError):
    """Raised when a source line does not reference the Trace.axd endpoint."""

    def __init__(self, line: str) -> None:
        super().__init__(f"Source {line!r} must point to Trace.axd")
        self.line = line


def normalize_source(line: str) -> str:
    """Normalize one source line to ``scheme://host/path``.

    A missing scheme defaults to https. Query string and fragment are
    discarded; a non-default port is kept.

    Raises:
        InvalidSourceURL: If the path does not end at ``Trace.axd``.
    """
    value = line.strip().lstrip(_BOM).strip()
    if "://" not in value:
        value = f"{DEFAULT_SCHEME}://{value}"

    parsed = urlparse(value)
    if not parsed.hostname or not parsed.path.lower().endswith(TRACE_ENDPOINT):
        raise InvalidSourceURL(line.strip())

    try:
        port = parsed.port
    except ValueError as exc:
        raise InvalidSourceURL(line.strip()) from exc

    netloc = parsed.hostname
    if ":" in netloc:
        netloc = f"[{netloc}]"
    if port is not None:
        netloc = f"{netloc}:{port}"

    return urlunparse((parsed.scheme.lower(), netloc, parsed.path, "", "", ""))


def load_sources(path: Path | str) -> list[str]:
    """Read and normalize every source in ``path``.

    Blank lines are skipped and duplicates are collapsed, keeping file order.

    Raises:
        SourceListError: If the file is unreadable or yields no sources.
        InvalidSourceURL: If any line fails validation.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceListError(f"Cannot read source list {path}: {exc}") from exc

    sources: list[str] = []
    for line in text.splitlines():
        if not line.strip().lstrip(_BOM).strip():
            continue
        url = normalize_source(line)
        if url not in sources:
            sources.append(url)

    if not sources:
        raise SourceListError(f"Source list {path} contains no URLs")

    logger.info("Loaded %d source(s) from %s", len(sources), path)
    return sources
