"""Configuration for the Trace.axd poller."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_INTERVAL_SECONDS = 60
DEFAULT_TIMEOUT_SECONDS = 15
DEFAULT_MAX_WORKERS = 5
DEFAULT_KEYWORDS = ("session", "auth", "token")
DEFAULT_CACHE_DIR = "cache"


@dataclass
class PollerConfig:
    """Settings for one poller process.

    Attributes:
        sources: Normalized Trace.axd base URLs to monitor.
        interval_seconds: Delay between the start of consecutive ticks.
        timeout_seconds: Timeout applied to every outbound request.
        max_workers: Size of the detail fetch worker pool. Independent of
            the number of sources and of the range being fetched.
        output_dir: Directory receiving the watermark and batch files.
        cache_dir: Directory (relative to ``output_dir``) that old
            artifacts are rotated into before the bootstrap tick.
        keywords: Case-insensitive terms scanned for in fetched entries.
        headers: Extra headers sent with every request.
        verbose: Log ticks that find nothing new.
    """

    sources: list[str] = field(default_factory=list)
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_workers: int = DEFAULT_MAX_WORKERS
    output_dir: Path = field(default_factory=lambda: Path("."))
    cache_dir: str = DEFAULT_CACHE_DIR
    keywords: list[str] = field(default_factory=lambda: list(DEFAULT_KEYWORDS))
    headers: dict[str, str] = field(default_factory=dict)
    verbose: bool = False

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.interval_seconds <= 0:
            raise ValueError(f"Invalid interval: {self.interval_seconds}. Must be positive")
        if self.timeout_seconds <= 0:
            raise ValueError(f"Invalid timeout: {self.timeout_seconds}. Must be positive")
        if self.max_workers < 1:
            raise ValueError(f"Invalid worker count: {self.max_workers}. Must be at least 1")
        self.output_dir = Path(self.output_dir)
