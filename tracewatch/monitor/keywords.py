"""Keyword scan over fetched detail entries."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

from .models import FullEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class KeywordHit:
    """A keyword found in one field of an entry.

    ``location`` names the field, e.g. ``url``, ``header:Authorization``
    or ``cookie:ASP.NET_SessionId``.
    """

    identifier: int
    source: str
    keyword: str
    location: str
    value: str

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.identifier,
            "source": self.source,
            "keyword": self.keyword,
            "location": self.location,
            "value": self.value,
        }


def _searchable_fields(entry: FullEntry) -> Iterator[tuple[str, str]]:
    if entry.url:
        yield "url", entry.url
    for name, value in entry.headers.items():
        yield f"header:{name}", f"{name}: {value}"
    for name, value in entry.cookies.items():
        yield f"cookie:{name}", f"{name}={value}"
    for index, row in enumerate(entry.trace_info):
        for column, value in row.items():
            yield f"trace[{index}].{column}", value


def scan_entry(entry: FullEntry, keywords: Sequence[str]) -> list[KeywordHit]:
    """Case-insensitive search of ``keywords`` through one entry."""
    needles = [(keyword, keyword.lower()) for keyword in keywords if keyword]
    hits: list[KeywordHit] = []
    for location, text in _searchable_fields(entry):
        haystack = text.lower()
        for keyword, needle in needles:
            if needle in haystack:
                hits.append(KeywordHit(entry.identifier, entry.source, keyword, location, text))
    return hits


def scan_entries(entries: Iterable[FullEntry], keywords: Sequence[str]) -> list[KeywordHit]:
    """Scan a batch and log every hit."""
    if not keywords:
        return []
    hits: list[KeywordHit] = []
    for entry in entries:
        for hit in scan_entry(entry, keywords):
            logger.warning(
                "Keyword %r in entry %d (%s) %s",
                hit.keyword,
                hit.identifier,
                hit.source,
                hit.location,
            )
            hits.append(hit)
    return hits
