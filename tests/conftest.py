"""Shared fixtures: canned Trace.axd pages and an in-memory HTTP client."""

from __future__ import annotations

import threading
from typing import Callable

import pytest

from tracewatch.parsing.http import FetchError


def _index_page(rows: list[tuple[str, str]]) -> bytes:
    body = "".join(
        f"<tr><td>{number}</td><td>{when}</td><td>/default.aspx</td>"
        f"<td>200</td><td>GET</td><td><a href=\"Trace.axd?id={number}\">View Details</a></td></tr>"
        for number, when in rows
    )
    return f"""
    <html><body>
      <table class="viewmenu"><tr><td><a href="Trace.axd?clear=1">[ clear current trace ]</a></td></tr></table>
      <table cellspacing="0" cellpadding="0">
        <tr><th class="alt" colspan="6"><h3><b>Requests to this Application</b></h3></th></tr>
        <tr class="subhead"><th>No.</th><th>Time of Request</th><th>File</th>
          <th>Status Code</th><th>Verb</th><th>&nbsp;</th></tr>
        {body}
      </table>
    </body></html>
    """.encode("utf-8")


def _detail_page(
    session_id: str = "abc123",
    method: str = "GET",
    status: str = "200",
    when: str = "17/10/2026 10:15:30",
    trace: list[tuple[str, str]] | None = None,
    headers: dict[str, str] | None = None,
    cookies: dict[str, str] | None = None,
    server_variables: dict[str, str] | None = None,
) -> bytes:
    trace = trace if trace is not None else [("aspx.page", "Begin PreInit"), ("aspx.page", "End Render")]
    headers = headers if headers is not None else {"Host": "a.test", "Authorization": "Bearer xyz"}
    cookies = cookies if cookies is not None else {"ASP.NET_SessionId": session_id}
    server_variables = (
        server_variables
        if server_variables is not None
        else {"URL": "/login.aspx", "QUERY_STRING": "next=home"}
    )

    def name_value_table(title: str, values: dict[str, str], extra_column: bool = False) -> str:
        head = "<th>Name</th><th>Value</th>" + ("<th>Size</th>" if extra_column else "")
        rows = "".join(
            f"<tr><td>{name}</td><td>{value}</td>" + ("<td>10</td>" if extra_column else "") + "</tr>"
            for name, value in values.items()
        )
        return (
            f"<table><tr><th class=\"alt\" colspan=\"3\"><h3><b>{title}</b></h3></th></tr>"
            f"<tr class=\"subhead\">{head}</tr>{rows}</table>"
        )

    trace_rows = "".join(
        f"<tr><td>{category}</td><td>{message}</td><td>0.001</td><td></td></tr>"
        for category, message in trace
    )
    return f"""
    <html><body>
      <table cellspacing="0" cellpadding="0" style="width:100%">
        <tr><th class="alt" colspan="10" align="left"><h3><b>Request Details</b></h3></th></tr>
        <tr><th>Session Id:</th><td>{session_id}</td><th>Request Type:</th><td>{method}</td></tr>
        <tr><th>Time of Request:</th><td>{when}</td><th>Status Code:</th><td>{status}</td></tr>
        <tr><th>Request Encoding:</th><td>Unicode (UTF-8)</td><th>Response Encoding:</th><td>Unicode (UTF-8)</td></tr>
      </table>
      <table>
        <tr><th class="alt" colspan="4"><h3><b>Trace Information</b></h3></th></tr>
        <tr class="subhead"><th>Category</th><th>Message</th><th>From First(s)</th><th>From Last(s)</th></tr>
        {trace_rows}
      </table>
      {name_value_table("Request Cookies Collection", cookies, extra_column=True)}
      {name_value_table("Headers Collection", headers)}
      {name_value_table("Server Variables", server_variables)}
    </body></html>
    """.encode("utf-8")


class FakeClient:
    """Serves canned bodies by URL; unknown URLs fail like a 404."""

    def __init__(self, pages: dict[str, bytes | Exception] | None = None) -> None:
        self.pages = dict(pages or {})
        self.calls: list[str] = []
        self._lock = threading.Lock()
        self.closed = False

    def get_bytes(self, url: str) -> bytes:
        with self._lock:
            self.calls.append(url)
        page = self.pages.get(url)
        if page is None:
            raise FetchError(url, "404 Client Error: Not Found")
        if isinstance(page, Exception):
            raise page
        return page

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def index_page() -> Callable[[list[tuple[str, str]]], bytes]:
    """Builder for a Trace.axd index page from ``(number, time)`` rows."""
    return _index_page


@pytest.fixture
def detail_page() -> Callable[..., bytes]:
    """Builder for a Trace.axd detail page."""
    return _detail_page


@pytest.fixture
def make_client() -> Callable[..., FakeClient]:
    return FakeClient
