"""Outbound HTTP access for Trace.axd pages."""

from __future__ import annotations

import logging
from typing import Mapping

import requests

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)


class FetchError(Exception):
    """Raised when a GET fails, times out or returns a non-2xx status."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"GET {url}: {message}")
        self.url = url


class TraceClient:
    """Thin wrapper around a shared :class:`requests.Session`.

    One client is shared by every worker of a tick. Each request carries
    ``timeout`` and the extra headers supplied at construction.
    """

    def __init__(
        self,
        timeout: float = 15.0,
        headers: Mapping[str, str] | None = None,
        session: requests.Session | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers["User-Agent"] = user_agent
        if headers:
            self._session.headers.update(headers)

    def get_bytes(self, url: str) -> bytes:
        """Fetch ``url`` and return the raw response body."""
        logger.debug("GET %s", url)
        try:
            response = self._session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.Timeout as exc:
            raise FetchError(url, f"timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise FetchError(url, str(exc)) from exc
        return response.content

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "TraceClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def parse_header_args(values: list[str]) -> dict[str, str]:
    """Turn ``Name:Value`` strings into a header mapping.

    Raises:
        ValueError: If an entry has no colon or an empty name.
    """
    headers: dict[str, str] = {}
    for raw in values:
        name, sep, value = raw.partition(":")
        name = name.strip()
        if not sep or not name:
            raise ValueError(f"Invalid header {raw!r}: expected Name:Value")
        headers[name] = value.strip()
    return headers


def split_csv(value: str | list[str] | None) -> list[str]:
    """Split a comma-separated string, trimming and dropping empty items."""
    if value is None:
        return []
    items = value if isinstance(value, list) else value.split(",")
    return [item.strip() for item in items if item and item.strip()]
