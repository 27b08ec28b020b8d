"""CLI commands for the Trace.axd poller.

Commands:
- run: Bootstrap, then poll every ``--interval`` seconds until interrupted
- once: Bootstrap only (rotate, list, fetch everything, write artifacts)
- status: Show the persisted watermark and batch files
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from tracewatch.config import ProjectConfig, get_config
from tracewatch.monitor.config import (
    DEFAULT_CACHE_DIR,
    DEFAULT_INTERVAL_SECONDS,
    DEFAULT_KEYWORDS,
    DEFAULT_MAX_WORKERS,
    DEFAULT_TIMEOUT_SECONDS,
    PollerConfig,
)
from tracewatch.monitor.watermark import NoEntriesFound
from tracewatch.parsing.http import parse_header_args, split_csv
from tracewatch.parsing.sources import SourceListError, load_sources
from tracewatch.storage import ArtifactStore

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def register_commands(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    """Add poller subcommands to the main CLI parser."""

    def add_poll_args(parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--list",
            type=Path,
            required=True,
            dest="list_path",
            help="Path to file with Trace.axd URLs to monitor.",
        )
        parser.add_argument(
            "--timeout",
            type=float,
            help=f"HTTP timeout for requests in seconds (default: {DEFAULT_TIMEOUT_SECONDS}).",
        )
        parser.add_argument(
            "--workers",
            type=int,
            help=f"Detail fetch worker pool size (default: {DEFAULT_MAX_WORKERS}).",
        )
        parser.add_argument(
            "--keywords",
            help=f"Comma-separated keywords to scan (default: {','.join(DEFAULT_KEYWORDS)}).",
        )
        parser.add_argument(
            "--headers",
            help="Comma-separated HTTP headers (Name:Value).",
        )
        parser.add_argument(
            "--output-dir",
            type=Path,
            help="Directory for watermark and batch files (default: current directory).",
        )
        parser.add_argument(
            "--verbose",
            action="store_true",
            default=None,
            help="Verbose logging.",
        )

    run_parser = subparsers.add_parser(
        "run",
        description="Bootstrap, then poll Trace.axd sources for new requests.",
        help="Poll sources until interrupted.",
    )
    add_poll_args(run_parser)
    run_parser.add_argument(
        "--interval",
        type=float,
        help=f"Polling interval in seconds (default: {DEFAULT_INTERVAL_SECONDS}).",
    )
    run_parser.set_defaults(func=poll_run_cli, command="run")

    once_parser = subparsers.add_parser(
        "once",
        description="Fetch every logged request once and exit.",
        help="Run the bootstrap tick only.",
    )
    add_poll_args(once_parser)
    once_parser.add_argument(
        "--json",
        action="store_true",
        dest="output_json",
        help="Output the tick result in JSON format.",
    )
    once_parser.set_defaults(func=poll_once_cli, command="once")

    status_parser = subparsers.add_parser(
        "status",
        description="Show the persisted watermark and batch artifacts.",
        help="Display poller status.",
    )
    status_parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory holding watermark and batch files.",
    )
    status_parser.add_argument(
        "--json",
        action="store_true",
        dest="output_json",
        help="Output in JSON format.",
    )
    status_parser.set_defaults(func=poll_status_cli, command="status")


def _pick(*values):
    for value in values:
        if value is not None:
            return value
    return None


def _coerce(name: str, value, kind: type):
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid {name}: {value!r}") from exc


def build_poller_config(
    args: argparse.Namespace,
    project: ProjectConfig | None = None,
) -> PollerConfig:
    """Layer CLI flags over the config file over defaults.

    Raises:
        SourceListError: If the source list is unreadable, empty or invalid.
        ValueError: If a header is malformed or a numeric setting invalid.
    """
    project = project or get_config()
    keywords = _pick(args.keywords, project.keywords)
    headers = _pick(getattr(args, "headers", None), project.headers)

    return PollerConfig(
        sources=load_sources(args.list_path),
        interval_seconds=_coerce(
            "interval",
            _pick(getattr(args, "interval", None), project.interval, DEFAULT_INTERVAL_SECONDS),
            float,
        ),
        timeout_seconds=_coerce("timeout", _pick(args.timeout, project.timeout, DEFAULT_TIMEOUT_SECONDS), float),
        max_workers=_coerce("workers", _pick(args.workers, project.workers, DEFAULT_MAX_WORKERS), int),
        output_dir=Path(_pick(args.output_dir, project.output_dir, ".")),
        cache_dir=_pick(project.cache_dir, DEFAULT_CACHE_DIR),
        keywords=split_csv(keywords) if keywords is not None else list(DEFAULT_KEYWORDS),
        headers=parse_header_args(split_csv(headers)),
        verbose=bool(_pick(args.verbose, project.verbose, False)),
    )


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=_LOG_FORMAT)
    # urllib3 connection chatter drowns the tick log at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def _load_config(args: argparse.Namespace) -> PollerConfig | None:
    try:
        return build_poller_config(args)
    except (SourceListError, ValueError) as exc:
        logger.error("%s", exc)
        return None


def poll_run_cli(args: argparse.Namespace) -> int:
    """Bootstrap, then tick on the configured interval until interrupted."""
    from tracewatch.monitor.runner import Poller

    configure_logging(bool(_pick(args.verbose, get_config().verbose, False)))
    config = _load_config(args)
    if config is None:
        return 1

    poller = Poller(config)
    logger.info(
        "Monitoring %d source(s) every %ss with %d worker(s)",
        len(config.sources),
        config.interval_seconds,
        config.max_workers,
    )
    try:
        try:
            result = poller.bootstrap()
        except NoEntriesFound as exc:
            logger.error("Initial fetch failed: %s", exc)
            return 1
        logger.info("%s", result.summary())
        poller.run_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        poller.stop()
    finally:
        poller.client.close()
    return 0


def poll_once_cli(args: argparse.Namespace) -> int:
    """Run only the bootstrap tick."""
    from tracewatch.monitor.runner import Poller

    configure_logging(bool(_pick(args.verbose, get_config().verbose, False)))
    config = _load_config(args)
    if config is None:
        return 1

    poller = Poller(config)
    try:
        result = poller.bootstrap()
    except NoEntriesFound as exc:
        logger.error("Initial fetch failed: %s", exc)
        return 1
    finally:
        poller.client.close()

    if args.output_json:
        print(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        print(result.summary())
    return 0


def poll_status_cli(args: argparse.Namespace) -> int:
    """Display the persisted watermark and the batch files on disk."""
    project = get_config()
    output_dir = Path(_pick(args.output_dir, project.output_dir, "."))
    store = ArtifactStore(output_dir, cache_dirname=_pick(project.cache_dir, DEFAULT_CACHE_DIR))

    watermark = store.load_watermark()
    batches = store.list_batches()

    status = {
        "output_dir": str(store.root),
        "watermark": watermark.to_dict() if watermark else None,
        "batches": [path.name for path in batches],
    }

    if args.output_json:
        print(json.dumps(status, indent=2, default=str))
        return 0

    print(f"Output directory: {status['output_dir']}")
    if watermark is None:
        print("Watermark: none (poller has not completed a bootstrap)")
    else:
        print(f"Watermark: id {watermark.identifier} at {watermark.timestamp.isoformat()}")
    print(f"Batch files: {len(batches)}")
    for name in status["batches"][-20:]:
        print(f"  - {name}")
    if len(batches) > 20:
        print(f"... and {len(batches) - 20} earlier files")
    return 0
