"""Watermark Tracker: decide which identifiers are new since the last tick."""

from __future__ import annotations

import logging
from typing import Sequence

from .models import JobRange, StartEntry, Watermark

logger = logging.getLogger(__name__)


class NoEntriesFound(Exception):
    """Raised when no source yielded a single start entry."""


def select_candidate(entries: Sequence[StartEntry]) -> StartEntry:
    """Return the entry with the highest identifier.

    Raises:
        NoEntriesFound: If ``entries`` is empty.
    """
    if not entries:
        raise NoEntriesFound("no start entries found")
    ordered = sorted(entries, key=lambda entry: entry.identifier)
    return ordered[-1]


def delta_range(current: Watermark, candidate: StartEntry) -> tuple[int, int] | None:
    """Return ``(since, until)`` when ``candidate`` is past ``current``."""
    if candidate.identifier <= current.identifier:
        return None
    return current.identifier, candidate.identifier


def plan_jobs(sources: Sequence[str], since: int, until: int) -> list[JobRange]:
    """One range per source; an empty range yields no work."""
    if since >= until:
        return []
    return [JobRange(source=source, since=since, until=until) for source in sources]


def advance(current: Watermark, candidate: StartEntry) -> Watermark:
    """Next watermark; never moves backwards."""
    if candidate.identifier <= current.identifier:
        return current
    return Watermark.from_entry(candidate)
