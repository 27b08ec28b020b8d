"""Unit tests for artifact storage."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pytest

from tracewatch.monitor.models import FullEntry, Watermark
from tracewatch.storage import (
    ArtifactStore,
    bootstrap_batch_filename,
    range_batch_filename,
)


@pytest.fixture
def store(tmp_path: Path) -> ArtifactStore:
    return ArtifactStore(tmp_path)


class TestFilenames:
    """Tests for artifact naming."""

    def test_range_batch_encodes_first_and_last(self) -> None:
        """A batch for (3, 7] is named 4_7."""
        assert range_batch_filename(3, 7) == "log_update_4_7.json"

    def test_bootstrap_uses_unix_time(self) -> None:
        assert bootstrap_batch_filename(1700000000.9) == "log_update_1700000000.json"


class TestWriteSnapshot:
    """Tests for write_snapshot."""

    def test_writes_indented_json(self, store: ArtifactStore, tmp_path: Path) -> None:
        path = store.write_snapshot([FullEntry(identifier=2, method="GET")], "batch.json")

        text = path.read_text(encoding="utf-8")
        assert path == tmp_path / "batch.json"
        assert json.loads(text) == [{"id": 2, "method": "GET"}]
        assert '\n  {\n    "id": 2' in text

    def test_no_temp_file_left(self, store: ArtifactStore, tmp_path: Path) -> None:
        store.write_snapshot({"a": 1}, "x.json")
        assert sorted(p.name for p in tmp_path.iterdir()) == ["x.json"]

    def test_overwrites(self, store: ArtifactStore) -> None:
        store.write_snapshot({"a": 1}, "x.json")
        path = store.write_snapshot({"a": 2}, "x.json")
        assert json.loads(path.read_text(encoding="utf-8")) == {"a": 2}


class TestRotate:
    """Tests for rotate."""

    def test_moves_json_into_cache(self, store: ArtifactStore, tmp_path: Path) -> None:
        (tmp_path / "laststart.json").write_text("{}", encoding="utf-8")
        (tmp_path / "log_update_1.json").write_text("[]", encoding="utf-8")
        (tmp_path / "urls.txt").write_text("a.test/Trace.axd", encoding="utf-8")

        moved = store.rotate()

        assert len(moved) == 2
        assert all(path.parent == tmp_path / "cache" for path in moved)
        assert sorted(p.name for p in tmp_path.iterdir()) == ["cache", "urls.txt"]

    def test_leaves_other_json_files(self, store: ArtifactStore, tmp_path: Path) -> None:
        """A config file sharing the output directory is not rotated."""
        (tmp_path / "tracewatch.json").write_text('{"interval": 30}', encoding="utf-8")
        (tmp_path / "log_update_4_7.json").write_text("[]", encoding="utf-8")

        moved = store.rotate()

        assert [path.name.rsplit("_", 1)[0] for path in moved] == ["log_update_4_7.json"]
        assert (tmp_path / "tracewatch.json").read_text(encoding="utf-8") == '{"interval": 30}'

    def test_repeated_rotation_never_collides(self, store: ArtifactStore, tmp_path: Path) -> None:
        for _ in range(3):
            (tmp_path / "laststart.json").write_text("{}", encoding="utf-8")
            store.rotate()

        assert len(list((tmp_path / "cache").iterdir())) == 3

    def test_nothing_to_rotate(self, store: ArtifactStore, tmp_path: Path) -> None:
        assert store.rotate() == []
        assert (tmp_path / "cache").is_dir()


class TestWatermarkPersistence:
    """Tests for save_watermark and load_watermark."""

    def test_save_and_load(self, store: ArtifactStore) -> None:
        watermark = Watermark(identifier=12, timestamp=datetime(2026, 10, 17, 8, 30))
        store.save_watermark(watermark)

        assert store.load_watermark() == watermark

    def test_missing(self, store: ArtifactStore) -> None:
        assert store.load_watermark() is None

    def test_corrupt(self, store: ArtifactStore, tmp_path: Path) -> None:
        (tmp_path / "laststart.json").write_text("{not json", encoding="utf-8")
        assert store.load_watermark() is None

    def test_list_batches(self, store: ArtifactStore) -> None:
        store.write_snapshot([], "log_update_5_6.json")
        store.write_snapshot([], "log_update_1_4.json")
        store.save_watermark(Watermark(6))

        assert [p.name for p in store.list_batches()] == ["log_update_1_4.json", "log_update_5_6.json"]
