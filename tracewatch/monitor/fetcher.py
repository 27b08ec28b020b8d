"""Detail Fetcher: bounded-concurrency retrieval of trace detail pages.

A fixed number of worker threads drain one FIFO queue of
``(source, identifier)`` jobs. Workers never raise; each job either adds a
:class:`FullEntry` to the shared result collection or records a failure.
The call returns once every queued job has been attempted.
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Sequence

from tracewatch.parsing.html import HtmlParseError, extract_detail_fields, parse_document
from tracewatch.parsing.http import FetchError

from .config import DEFAULT_MAX_WORKERS
from .models import FullEntry, JobRange
from .watermark import plan_jobs

if TYPE_CHECKING:
    from tracewatch.parsing.http import TraceClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DetailJob:
    """One detail request for a one-based ``identifier`` on ``source``."""

    source: str
    identifier: int

    @property
    def request_index(self) -> int:
        # Detail pages are indexed from zero, summary ids from one
        return self.identifier - 1

    @property
    def url(self) -> str:
        return detail_url(self.source, self.identifier)


def detail_url(source: str, identifier: int) -> str:
    """URL of the detail page for one-based ``identifier``."""
    return f"{source}?id={identifier - 1}"


@dataclass
class FetchReport:
    """Outcome of one detail fetch batch.

    Attributes:
        jobs_dispatched: Number of jobs queued.
        entries: Successfully parsed entries, in completion order.
        failures: Jobs that produced nothing, with the error text.
    """

    jobs_dispatched: int = 0
    entries: list[FullEntry] = field(default_factory=list)
    failures: list[tuple[DetailJob, str]] = field(default_factory=list)

    @property
    def missing_identifiers(self) -> list[int]:
        return sorted({job.identifier for job, _ in self.failures})

    def to_dict(self) -> dict:
        """Serialize to dictionary for logging/reporting."""
        return {
            "jobs_dispatched": self.jobs_dispatched,
            "entries": len(self.entries),
            "failures": len(self.failures),
        }


class _ResultCollector:
    """Lock-guarded sink shared by the workers of one batch."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: list[FullEntry] = []
        self._failures: list[tuple[DetailJob, str]] = []

    def add(self, entry: FullEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def fail(self, job: DetailJob, error: str) -> None:
        with self._lock:
            self._failures.append((job, error))

    def drain_into(self, report: FetchReport) -> FetchReport:
        # Only called after every worker has joined
        report.entries = list(self._entries)
        report.failures = list(self._failures)
        return report


def fetch_detail(job: DetailJob, client: "TraceClient") -> FullEntry:
    """Fetch and parse one detail page, tagging it with the one-based id."""
    raw = client.get_bytes(job.url)
    fields = extract_detail_fields(parse_document(raw))
    return FullEntry.from_fields(job.identifier, job.source, fields)


def fetch_details(
    ranges: Sequence[JobRange],
    client: "TraceClient",
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> FetchReport:
    """Fetch every identifier of every range through a fixed worker pool."""
    jobs: queue.Queue[DetailJob] = queue.Queue()
    report = FetchReport()
    for job_range in ranges:
        for identifier in job_range.identifiers():
            jobs.put(DetailJob(source=job_range.source, identifier=identifier))
            report.jobs_dispatched += 1

    if report.jobs_dispatched == 0:
        return report

    collector = _ResultCollector()

    def worker() -> None:
        while True:
            try:
                job = jobs.get_nowait()
            except queue.Empty:
                return
            try:
                entry = fetch_detail(job, client)
            except (FetchError, HtmlParseError) as e:
                logger.warning("Detail %s (id %d) failed: %s", job.url, job.identifier, e)
                collector.fail(job, str(e))
            except Exception as e:
                logger.error("Unexpected error fetching %s: %s", job.url, e)
                collector.fail(job, str(e))
            else:
                collector.add(entry)
            finally:
                jobs.task_done()

    worker_count = min(max_workers, report.jobs_dispatched)
    logger.debug(
        "Dispatching %d detail job(s) to %d worker(s)",
        report.jobs_dispatched,
        worker_count,
    )
    with ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="detail") as executor:
        for _ in range(worker_count):
            executor.submit(worker)
    # Leaving the executor joins every worker

    return collector.drain_into(report)


def fetch_range(
    sources: Sequence[str],
    since: int,
    until: int,
    client: "TraceClient",
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> FetchReport:
    """Fetch identifiers ``(since, until]`` from every source."""
    return fetch_details(plan_jobs(sources, since, until), client, max_workers=max_workers)
