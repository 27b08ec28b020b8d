"""Incremental change detection and detail retrieval for Trace.axd sources.

Usage:
    from tracewatch.monitor.runner import Poller
    from tracewatch.monitor import PollerConfig

    config = PollerConfig(sources=["https://example.com/Trace.axd"])
    Poller(config).run_forever()
"""

from .config import PollerConfig
from .fetcher import DetailJob, FetchReport, detail_url, fetch_details, fetch_range
from .lister import list_start_entries, parse_start_entries
from .models import FullEntry, JobRange, StartEntry, Watermark
from .watermark import NoEntriesFound, advance, delta_range, plan_jobs, select_candidate

__all__ = [
    # Config
    "PollerConfig",
    # Models
    "FullEntry",
    "JobRange",
    "StartEntry",
    "Watermark",
    # Entry lister
    "list_start_entries",
    "parse_start_entries",
    # Watermark tracker
    "NoEntriesFound",
    "advance",
    "delta_range",
    "plan_jobs",
    "select_candidate",
    # Detail fetcher
    "DetailJob",
    "FetchReport",
    "detail_url",
    "fetch_details",
    "fetch_range",
]
