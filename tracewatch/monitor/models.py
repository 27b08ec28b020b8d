"""Records produced and consumed by a poll tick."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator

# Time of Request format used by Trace.axd pages
TIMESTAMP_FORMAT = "%d/%m/%Y %H:%M:%S"
ZERO_TIMESTAMP = datetime.min


def parse_timestamp(value: str) -> datetime | None:
    """Parse a Trace.axd timestamp, returning ``None`` when malformed."""
    try:
        return datetime.strptime(value.strip(), TIMESTAMP_FORMAT)
    except (ValueError, AttributeError):
        return None


@dataclass(frozen=True, slots=True)
class StartEntry:
    """One summary row of a Trace.axd index page."""

    identifier: int
    timestamp: datetime = ZERO_TIMESTAMP

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.identifier, "timestamp": self.timestamp.isoformat()}


@dataclass(frozen=True, slots=True)
class Watermark:
    """Highest identifier confirmed logged as of the last completed tick."""

    identifier: int = 0
    timestamp: datetime = ZERO_TIMESTAMP

    @classmethod
    def from_entry(cls, entry: StartEntry) -> "Watermark":
        return cls(identifier=entry.identifier, timestamp=entry.timestamp)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.identifier, "timestamp": self.timestamp.isoformat()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Watermark":
        timestamp = ZERO_TIMESTAMP
        if data.get("timestamp"):
            timestamp = datetime.fromisoformat(data["timestamp"])
        return cls(identifier=int(data["id"]), timestamp=timestamp)


@dataclass(frozen=True, slots=True)
class JobRange:
    """Identifiers ``(since, until]`` to fetch from one source."""

    source: str
    since: int
    until: int

    def __len__(self) -> int:
        return max(self.until - self.since, 0)

    def identifiers(self) -> Iterator[int]:
        return iter(range(self.since + 1, self.until + 1))


@dataclass(slots=True)
class FullEntry:
    """Detail record of one logged request.

    ``source`` is the base URL the record was fetched from; together with
    ``identifier`` it keys the record when several sources are monitored.
    """

    identifier: int
    source: str = ""
    session_id: str | None = None
    method: str | None = None
    url: str | None = None
    status_code: int | None = None
    request_time: datetime | None = None
    trace_info: list[dict[str, str]] = field(default_factory=list)
    headers: dict[str, str] = field(default_factory=dict)
    cookies: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_fields(cls, identifier: int, source: str, fields: dict[str, Any]) -> "FullEntry":
        """Build an entry from the flattened detail page fields."""
        status_code = None
        raw_status = fields.get("statusCode")
        if raw_status:
            try:
                status_code = int(str(raw_status).split()[0])
            except ValueError:
                status_code = None

        request_time = None
        if fields.get("requestTime"):
            request_time = parse_timestamp(fields["requestTime"])

        return cls(
            identifier=identifier,
            source=source,
            session_id=fields.get("sessionId") or None,
            method=fields.get("method") or None,
            url=fields.get("url") or None,
            status_code=status_code,
            request_time=request_time,
            trace_info=list(fields.get("traceInfo", [])),
            headers=dict(fields.get("headers", {})),
            cookies=dict(fields.get("cookies", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for a batch artifact, omitting empty optional fields."""
        payload: dict[str, Any] = {"id": self.identifier}
        if self.source:
            payload["source"] = self.source
        if self.session_id:
            payload["sessionId"] = self.session_id
        if self.method:
            payload["method"] = self.method
        if self.url:
            payload["url"] = self.url
        if self.status_code:
            payload["statusCode"] = self.status_code
        if self.request_time:
            payload["requestTime"] = self.request_time.isoformat()
        if self.trace_info:
            payload["traceInfo"] = self.trace_info
        if self.headers:
            payload["headers"] = self.headers
        if self.cookies:
            payload["cookies"] = self.cookies
        return payload
