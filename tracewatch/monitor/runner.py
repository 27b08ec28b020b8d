"""Poll loop tying entry listing, watermark tracking and detail fetching.

Each tick:
1. Lists start entries from every source
2. Compares the highest identifier with the current watermark
3. Fetches details for the new identifiers and writes a batch artifact
4. Advances and persists the watermark

The watermark lives in an explicit :class:`PollState` passed into and
returned from every tick.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from tracewatch.parsing.http import TraceClient
from tracewatch.storage import ArtifactStore, bootstrap_batch_filename, range_batch_filename

from .config import PollerConfig
from .fetcher import FetchReport, fetch_range
from .keywords import scan_entries
from .lister import list_start_entries
from .models import FullEntry, Watermark
from .scheduler import IntervalTimer, TickTimer
from .watermark import NoEntriesFound, advance, delta_range, select_candidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PollState:
    """State carried from one tick to the next."""

    watermark: Watermark = field(default_factory=Watermark)
    ticks: int = 0


@dataclass
class TickResult:
    """Result of one tick.

    Attributes:
        status: "bootstrap", "advanced", "unchanged", "no_entries" or "error".
        since: Exclusive lower bound of the fetched range.
        until: Inclusive upper bound of the fetched range.
        artifact: Name of the batch file written, if any.
    """

    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None
    status: str = "unchanged"
    since: int | None = None
    until: int | None = None
    jobs_dispatched: int = 0
    entries_fetched: int = 0
    jobs_failed: int = 0
    keyword_hits: int = 0
    artifact: str | None = None
    error: str | None = None

    @property
    def duration_seconds(self) -> float:
        if self.completed_at is None:
            return 0.0
        return (self.completed_at - self.started_at).total_seconds()

    def record_fetch(self, report: FetchReport) -> None:
        self.jobs_dispatched = report.jobs_dispatched
        self.entries_fetched = len(report.entries)
        self.jobs_failed = len(report.failures)

    def finish(self, status: str) -> "TickResult":
        self.status = status
        self.completed_at = datetime.now(timezone.utc)
        return self

    def to_dict(self) -> dict:
        """Serialize to dictionary for logging/reporting."""
        return {
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "status": self.status,
            "since": self.since,
            "until": self.until,
            "jobs_dispatched": self.jobs_dispatched,
            "entries_fetched": self.entries_fetched,
            "jobs_failed": self.jobs_failed,
            "keyword_hits": self.keyword_hits,
            "artifact": self.artifact,
            "error": self.error,
        }

    def summary(self) -> str:
        """Generate a human-readable summary."""
        lines = [f"Tick {self.status} in {self.duration_seconds:.1f}s"]
        if self.until is not None:
            lines.append(f"  Range: ({self.since}, {self.until}]")
        if self.jobs_dispatched:
            lines.extend([
                f"  Jobs dispatched: {self.jobs_dispatched}",
                f"    - Fetched: {self.entries_fetched}",
                f"    - Failed: {self.jobs_failed}",
                f"  Keyword hits: {self.keyword_hits}",
            ])
        if self.artifact:
            lines.append(f"  Artifact: {self.artifact}")
        if self.error:
            lines.append(f"  Error: {self.error}")
        return "\n".join(lines)


def _ordered(entries: list[FullEntry]) -> list[FullEntry]:
    return sorted(entries, key=lambda entry: (entry.identifier, entry.source))


def run_bootstrap(
    config: PollerConfig,
    client: TraceClient,
    store: ArtifactStore,
    now: Callable[[], float] = time.time,
) -> tuple[PollState, TickResult]:
    """Unconditional first tick covering ``(0, highest identifier]``.

    Previous artifacts are rotated into the cache directory first.

    Raises:
        NoEntriesFound: If no source lists a single entry.
    """
    result = TickResult()
    try:
        store.rotate()
    except OSError as e:
        logger.warning("rotate cache failed: %s", e)

    entries = list_start_entries(config.sources, client)
    candidate = select_candidate(entries)
    logger.info(
        "Bootstrap: %d entries listed, highest id %d",
        len(entries),
        candidate.identifier,
    )

    result.since, result.until = 0, candidate.identifier
    report = fetch_range(
        config.sources,
        0,
        candidate.identifier,
        client,
        max_workers=config.max_workers,
    )
    result.record_fetch(report)
    result.keyword_hits = len(scan_entries(report.entries, config.keywords))

    filename = bootstrap_batch_filename(now())
    store.write_snapshot(_ordered(report.entries), filename)
    result.artifact = filename

    state = PollState(watermark=Watermark.from_entry(candidate), ticks=1)
    store.save_watermark(state.watermark)

    logger.info("Saved %d entries to %s", len(report.entries), filename)
    return state, result.finish("bootstrap")


def run_tick(
    state: PollState,
    config: PollerConfig,
    client: TraceClient,
    store: ArtifactStore,
) -> tuple[PollState, TickResult]:
    """One periodic tick. Returns the next state and what happened."""
    result = TickResult()
    next_state = PollState(watermark=state.watermark, ticks=state.ticks + 1)

    entries = list_start_entries(config.sources, client)
    try:
        candidate = select_candidate(entries)
    except NoEntriesFound:
        logger.warning("No entries listed from any source; skipping tick")
        return next_state, result.finish("no_entries")

    span = delta_range(state.watermark, candidate)
    if span is None:
        if config.verbose:
            logger.info("No new entries (watermark %d)", state.watermark.identifier)
        else:
            logger.debug("No new entries (watermark %d)", state.watermark.identifier)
        return next_state, result.finish("unchanged")

    since, until = span
    result.since, result.until = since, until
    report = fetch_range(config.sources, since, until, client, max_workers=config.max_workers)
    result.record_fetch(report)
    if report.failures:
        logger.warning(
            "%d of %d detail job(s) failed; missing ids %s",
            len(report.failures),
            report.jobs_dispatched,
            report.missing_identifiers,
        )
    result.keyword_hits = len(scan_entries(report.entries, config.keywords))

    filename = range_batch_filename(since, until)
    store.write_snapshot(_ordered(report.entries), filename)
    result.artifact = filename

    # Advance only after every job has been attempted
    next_state = PollState(watermark=advance(state.watermark, candidate), ticks=next_state.ticks)
    store.save_watermark(next_state.watermark)

    logger.info("Saved %d new entries to %s", len(report.entries), filename)
    return next_state, result.finish("advanced")


class Poller:
    """Bootstrap once, then tick on a timer until stopped.

    Usage:
        poller = Poller(config)
        poller.run_forever()
    """

    def __init__(
        self,
        config: PollerConfig,
        client: TraceClient | None = None,
        store: ArtifactStore | None = None,
        timer: TickTimer | None = None,
    ) -> None:
        self.config = config
        self.client = client or TraceClient(
            timeout=config.timeout_seconds,
            headers=config.headers,
        )
        self.store = store or ArtifactStore(config.output_dir, cache_dirname=config.cache_dir)
        self.timer = timer or IntervalTimer(interval=config.interval_seconds)
        self.state: PollState | None = None

    def bootstrap(self) -> TickResult:
        """Run the startup tick. Errors propagate; they are fatal here."""
        self.state, result = run_bootstrap(self.config, self.client, self.store)
        return result

    def tick(self) -> TickResult:
        """Run one periodic tick, never raising."""
        if self.state is None:
            raise RuntimeError("Poller.tick() called before bootstrap()")
        try:
            self.state, result = run_tick(self.state, self.config, self.client, self.store)
        except Exception as e:
            logger.exception("Tick failed: %s", e)
            result = TickResult(error=str(e)).finish("error")
        return result

    def run_forever(self, max_ticks: int | None = None) -> PollState | None:
        """Bootstrap if needed, then tick until the timer stops.

        Args:
            max_ticks: Stop after this many periodic ticks.
        """
        if self.state is None:
            self.bootstrap()

        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            if not self.timer.wait():
                logger.info("Poller stopped")
                break
            self.tick()
            ticks += 1
        return self.state

    def stop(self) -> None:
        self.timer.stop()
