"""Tests for the Entry Lister."""

from __future__ import annotations

from datetime import datetime

from tracewatch.monitor.lister import list_start_entries, parse_start_entries
from tracewatch.monitor.models import ZERO_TIMESTAMP, StartEntry
from tracewatch.parsing.html import parse_document
from tracewatch.parsing.http import FetchError

A = "https://a.test/Trace.axd"
B = "https://b.test/Trace.axd"
C = "https://c.test/Trace.axd"


class TestParseStartEntries:
    """Tests for parse_start_entries."""

    def test_parses_rows(self, index_page) -> None:
        tree = parse_document(index_page([("5", "01/02/2026 10:00:00"), ("7", "01/02/2026 10:00:09")]))

        assert parse_start_entries(tree) == [
            StartEntry(5, datetime(2026, 2, 1, 10, 0, 0)),
            StartEntry(7, datetime(2026, 2, 1, 10, 0, 9)),
        ]

    def test_non_numeric_id_skipped(self, index_page) -> None:
        """Rows whose first cell is not an integer are dropped."""
        tree = parse_document(index_page([("abc", "01/02/2026 10:00:00"), ("-1", "x"), ("3", "01/02/2026 10:00:00")]))

        assert [entry.identifier for entry in parse_start_entries(tree)] == [3]

    def test_only_ascii_digits_accepted(self, index_page) -> None:
        """Non-ASCII digits are rejected; a leading plus sign is allowed."""
        tree = parse_document(index_page([
            ("\u0663", "01/02/2026 10:00:00"),
            ("\uff15", "01/02/2026 10:00:00"),
            ("+4", "01/02/2026 10:00:00"),
        ]))

        assert [entry.identifier for entry in parse_start_entries(tree)] == [4]

    def test_bad_timestamp_gets_zero_value(self, index_page) -> None:
        """An unparsable timestamp keeps the row with the zero timestamp."""
        tree = parse_document(index_page([("8", "10/17/2026 1:00:00 PM")]))

        assert parse_start_entries(tree) == [StartEntry(8, ZERO_TIMESTAMP)]

    def test_short_rows_ignored(self) -> None:
        """Rows with fewer than two cells are not entries."""
        tree = parse_document(b"<table><tr><td>1</td></tr></table>")
        assert parse_start_entries(tree) == []


class TestListStartEntries:
    """Tests for list_start_entries."""

    def test_merges_all_sources(self, index_page, make_client) -> None:
        """Output size is the sum of rows parsed per source."""
        client = make_client({
            A: index_page([("1", "01/02/2026 10:00:00"), ("2", "01/02/2026 10:00:01")]),
            B: index_page([("9", "01/02/2026 10:00:02")]),
        })

        entries = list_start_entries([A, B], client)

        assert sorted(entry.identifier for entry in entries) == [1, 2, 9]
        assert sorted(client.calls) == [A, B]

    def test_failing_source_contributes_nothing(self, index_page, make_client) -> None:
        """Network and parse failures are isolated per source."""
        client = make_client({
            A: index_page([("1", "01/02/2026 10:00:00")]),
            B: FetchError(B, "timed out after 15s"),
            C: b"",
        })

        entries = list_start_entries([A, B, C], client)

        assert [entry.identifier for entry in entries] == [1]

    def test_unexpected_error_isolated(self, index_page, make_client) -> None:
        """Even unexpected exceptions do not abort other sources."""
        client = make_client({
            A: RuntimeError("boom"),
            B: index_page([("4", "01/02/2026 10:00:00")]),
        })

        assert [entry.identifier for entry in list_start_entries([A, B], client)] == [4]

    def test_no_sources(self, make_client) -> None:
        assert list_start_entries([], make_client()) == []
