"""Persistence of watermark and batch artifacts.

All artifacts are indented JSON written atomically into the output
directory:

- ``laststart.json``: the current watermark.
- ``log_update_<unix>.json``: the bootstrap batch.
- ``log_update_<first>_<last>.json``: an incremental batch.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any

from tracewatch.monitor.models import Watermark

logger = logging.getLogger(__name__)

WATERMARK_FILENAME = "laststart.json"
BATCH_PREFIX = "log_update"
ROTATED_PATTERNS = (WATERMARK_FILENAME, f"{BATCH_PREFIX}_*.json")


def bootstrap_batch_filename(now: float | None = None) -> str:
    stamp = int(time.time() if now is None else now)
    return f"{BATCH_PREFIX}_{stamp}.json"


def range_batch_filename(since: int, until: int) -> str:
    """Name of the batch covering identifiers ``since+1`` through ``until``."""
    return f"{BATCH_PREFIX}_{since + 1}_{until}.json"


class ArtifactStore:
    """Reads and writes poller artifacts under one directory."""

    def __init__(self, root: Path | str, cache_dirname: str = "cache") -> None:
        self.root = Path(root)
        self.root = self.root if self.root.is_absolute() else self.root.resolve()
        self.cache_dir = self.root / cache_dirname
        self.root.mkdir(parents=True, exist_ok=True)

    def write_snapshot(self, value: Any, filename: str) -> Path:
        """Serialize ``value`` as indented JSON to ``filename``.

        Objects exposing ``to_dict`` are converted first, including inside
        lists.
        """
        path = self.root / filename
        content = json.dumps(_to_jsonable(value), indent=2, ensure_ascii=False)

        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_text(content + "\n", encoding="utf-8")
        tmp_path.replace(path)
        logger.debug("Wrote %s", path)
        return path

    def rotate(self, patterns: tuple[str, ...] = ROTATED_PATTERNS) -> list[Path]:
        """Move the poller's own top-level artifacts into the cache directory.

        Only the watermark and batch files match by default; other JSON
        files in the output directory, such as a config file, stay put.

        Each file is renamed ``<name>_<time_ns>`` so repeated rotations never
        collide.
        """
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        moved: list[Path] = []
        candidates = {path for pattern in patterns for path in self.root.glob(pattern)}
        for path in sorted(candidates):
            if not path.is_file():
                continue
            target = self.cache_dir / f"{path.name}_{time.time_ns()}"
            path.replace(target)
            moved.append(target)
        if moved:
            logger.info("Rotated %d previous artifact(s) into %s", len(moved), self.cache_dir)
        return moved

    def save_watermark(self, watermark: Watermark) -> Path:
        return self.write_snapshot(watermark, WATERMARK_FILENAME)

    def load_watermark(self) -> Watermark | None:
        """Read the persisted watermark, or ``None`` if absent or corrupt."""
        path = self.root / WATERMARK_FILENAME
        if not path.exists():
            return None
        try:
            return Watermark.from_dict(json.loads(path.read_text(encoding="utf-8")))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring unreadable watermark %s: %s", path, exc)
            return None

    def list_batches(self) -> list[Path]:
        return sorted(self.root.glob(f"{BATCH_PREFIX}_*.json"))


def _to_jsonable(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(item) for item in value]
    return value
