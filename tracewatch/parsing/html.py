"""HTML extraction for Trace.axd index and detail pages.

The index page is a table whose rows start with the request number and the
time of request. A detail page is a sequence of titled tables ("Request
Details", "Trace Information", "Headers Collection", ...) that are flattened
here into plain field values.
"""

from __future__ import annotations

import codecs
from typing import Any

from bs4 import BeautifulSoup, Tag

# Request Details labels mapped to detail field names
_REQUEST_DETAIL_LABELS = {
    "session id": "sessionId",
    "request type": "method",
    "status code": "statusCode",
    "time of request": "requestTime",
    "url": "url",
    "request url": "url",
}

_TRACE_SECTIONS = ("trace information",)
_HEADER_SECTIONS = ("headers collection", "request headers collection")
_COOKIE_SECTIONS = ("request cookies collection", "cookies collection")
_SERVER_VARIABLE_SECTIONS = ("server variables",)


class HtmlParseError(Exception):
    """Raised when a response body cannot be turned into a document tree."""


class DetailParseError(HtmlParseError):
    """Raised when a document carries none of the expected detail sections."""


def parse_document(raw: bytes) -> BeautifulSoup:
    """Parse a raw response body into a navigable tree."""
    if not raw or not raw.strip():
        raise HtmlParseError("empty response body")
    html, _ = _decode_html(raw)
    soup = BeautifulSoup(html, "html.parser")
    if soup.find() is None:
        raise HtmlParseError("response body contains no HTML elements")
    return soup


def extract_rows(tree: BeautifulSoup | Tag) -> list[list[str]]:
    """Return every table row as its direct ``<td>`` cell texts.

    Rows made only of ``<th>`` cells (table headings) are dropped.
    """
    rows: list[list[str]] = []
    for row in tree.find_all("tr"):
        cells = [_cell_text(cell) for cell in row.find_all("td", recursive=False)]
        if cells:
            rows.append(cells)
    return rows


def extract_detail_fields(tree: BeautifulSoup | Tag) -> dict[str, Any]:
    """Flatten a detail page into field values.

    Scalar fields (``sessionId``, ``method``, ``url``, ``statusCode``,
    ``requestTime``) are returned as text. ``traceInfo`` is a list of
    ``{column: value}`` rows; ``headers`` and ``cookies`` map names to values.

    Raises:
        DetailParseError: If no recognised section is present.
    """
    fields: dict[str, Any] = {}
    server_variables: dict[str, str] = {}
    found = False

    for title, table in _iter_sections(tree):
        key = title.lower().rstrip(":")
        if key == "request details":
            found = True
            for label, value in _label_pairs(table):
                name = _REQUEST_DETAIL_LABELS.get(label.lower())
                if name and value:
                    fields[name] = value
        elif key in _TRACE_SECTIONS:
            found = True
            fields["traceInfo"] = _table_records(table)
        elif key in _HEADER_SECTIONS:
            found = True
            fields.setdefault("headers", {}).update(_name_value_map(table))
        elif key in _COOKIE_SECTIONS:
            found = True
            fields.setdefault("cookies", {}).update(_name_value_map(table))
        elif key in _SERVER_VARIABLE_SECTIONS:
            found = True
            server_variables.update(_name_value_map(table))

    if not found:
        raise DetailParseError("no trace detail sections found")

    if "url" not in fields:
        path = server_variables.get("URL") or server_variables.get("PATH_INFO")
        if path:
            query = server_variables.get("QUERY_STRING")
            fields["url"] = f"{path}?{query}" if query else path

    return fields


def _iter_sections(tree: BeautifulSoup | Tag):
    """Yield ``(title, table)`` for every ``<h3>``-titled table."""
    seen: set[int] = set()
    for heading in tree.find_all("h3"):
        table = heading.find_parent("table") or heading.find_next("table")
        if table is None or id(table) in seen:
            continue
        seen.add(id(table))
        title = _cell_text(heading)
        if title:
            yield title, table


def _own_rows(table: Tag) -> list[Tag]:
    # Skip rows that belong to nested tables
    return [row for row in table.find_all("tr") if row.find_parent("table") is table]


def _label_pairs(table: Tag) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for row in _own_rows(table):
        cells = row.find_all(["th", "td"], recursive=False)
        for label_cell, value_cell in zip(cells, cells[1:]):
            if label_cell.name != "th" or value_cell.name != "td":
                continue
            label = _cell_text(label_cell).rstrip(":").strip()
            if label:
                pairs.append((label, _cell_text(value_cell)))
    return pairs


def _table_records(table: Tag) -> list[dict[str, str]]:
    """Read a headed table into one mapping per data row."""
    columns: list[str] = []
    records: list[dict[str, str]] = []
    for row in _own_rows(table):
        cells = row.find_all(["th", "td"], recursive=False)
        if not cells:
            continue
        if all(cell.name == "th" for cell in cells):
            # The title row holds the <h3>; the next <th> row names the columns
            if len(cells) > 1 or not row.find("h3"):
                columns = [_cell_text(cell) for cell in cells]
            continue
        values = [_cell_text(cell) for cell in cells]
        names = columns if len(columns) >= len(values) else _positional_names(len(values))
        records.append(dict(zip(names, values)))
    return records


def _name_value_map(table: Tag) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for record in _table_records(table):
        values = list(record.values())
        if len(values) >= 2 and values[0]:
            mapping[values[0]] = values[1]
    return mapping


def _positional_names(count: int) -> list[str]:
    base = ["Name", "Value"]
    return base[:count] + [f"Column{i}" for i in range(len(base), count)]


def _cell_text(cell: Tag) -> str:
    return _normalize_whitespace(cell.get_text(" ", strip=True))


def _decode_html(data: bytes) -> tuple[str, str]:
    if data.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        return data.decode("utf-16"), "utf-16"
    for encoding in ("utf-8", "cp1252"):
        try:
            return data.decode(encoding), encoding
        except UnicodeDecodeError:
            continue
    return data.decode("latin-1"), "latin-1"


def _normalize_whitespace(value: str) -> str:
    return " ".join(value.split())


__all__ = [
    "DetailParseError",
    "HtmlParseError",
    "extract_detail_fields",
    "extract_rows",
    "parse_document",
]
