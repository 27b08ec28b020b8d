"""HTTP access, HTML extraction and source list handling."""

from .html import (
    DetailParseError,
    HtmlParseError,
    extract_detail_fields,
    extract_rows,
    parse_document,
)
from .http import FetchError, TraceClient
from .sources import InvalidSourceURL, SourceListError, load_sources, normalize_source

__all__ = [
    "DetailParseError",
    "FetchError",
    "HtmlParseError",
    "InvalidSourceURL",
    "SourceListError",
    "TraceClient",
    "extract_detail_fields",
    "extract_rows",
    "load_sources",
    "normalize_source",
    "parse_document",
]
