"""Entry Lister: collect summary rows from every monitored source."""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING, Sequence

from tracewatch.parsing.html import HtmlParseError, extract_rows, parse_document
from tracewatch.parsing.http import FetchError

from .models import ZERO_TIMESTAMP, StartEntry, parse_timestamp

if TYPE_CHECKING:
    from bs4 import BeautifulSoup

    from tracewatch.parsing.http import TraceClient

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"\+?[0-9]+")


def parse_start_entries(tree: "BeautifulSoup") -> list[StartEntry]:
    """Turn index page rows into start entries.

    Rows need at least two cells. A first cell that is not a base-10
    integer drops the row; a malformed timestamp keeps the row with the
    zero timestamp.
    """
    entries: list[StartEntry] = []
    for cells in extract_rows(tree):
        if len(cells) < 2:
            continue
        id_text = cells[0].strip()
        if not _IDENTIFIER_RE.fullmatch(id_text):
            logger.debug("Skipping row with non-numeric id %r", id_text)
            continue
        timestamp = parse_timestamp(cells[1]) or ZERO_TIMESTAMP
        entries.append(StartEntry(identifier=int(id_text), timestamp=timestamp))
    return entries


def fetch_source_entries(source: str, client: "TraceClient") -> list[StartEntry]:
    """Fetch and parse the index page of one source."""
    raw = client.get_bytes(source)
    return parse_start_entries(parse_document(raw))


def list_start_entries(
    sources: Sequence[str],
    client: "TraceClient",
) -> list[StartEntry]:
    """Query every source concurrently and merge their start entries.

    One thread per source. A source that fails to fetch or parse is logged
    and contributes nothing; it never affects the other sources. Merge order
    is not meaningful.
    """
    if not sources:
        return []

    merged: list[StartEntry] = []
    with ThreadPoolExecutor(max_workers=len(sources), thread_name_prefix="lister") as executor:
        future_to_source = {
            executor.submit(fetch_source_entries, source, client): source
            for source in sources
        }
        for future in as_completed(future_to_source):
            source = future_to_source[future]
            try:
                entries = future.result()
            except (FetchError, HtmlParseError) as e:
                logger.warning("Listing %s failed: %s", source, e)
                continue
            except Exception as e:
                logger.error("Unexpected error listing %s: %s", source, e)
                continue
            logger.debug("Listed %d entries from %s", len(entries), source)
            merged.extend(entries)

    return merged
