"""Shared fixtures for pagewatch tests."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Sequence

import pytest

from pagewatch.config import FieldDescriptor, FieldKind, SourceConfig, WatchConfig
from pagewatch.engine import Record
from pagewatch.engine.record import make_record
from pagewatch.report import BaseReporter


class StubExtractor:
    """Serve scripted extraction results, one entry per call for each source.

    An entry may be a list of records or an exception instance to raise.
    """

    def __init__(self, script: dict[str, list[Any]]) -> None:
        self.script = {name: list(entries) for name, entries in script.items()}
        self.calls: list[str] = []

    def extract(self, source: SourceConfig) -> list[Record]:
        self.calls.append(source.name)
        entries = self.script.get(source.name) or [[]]
        entry = entries.pop(0) if len(entries) > 1 else entries[0]
        if isinstance(entry, Exception):
            raise entry
        return list(entry)


class RecordingReporter(BaseReporter):
    """Keep every reported batch in memory."""

    def __init__(self) -> None:
        self.batches: list[tuple[list[Record], datetime]] = []
        self.closed = False

    def report(self, records: Sequence[Record], timestamp: datetime) -> None:
        self.batches.append((list(records), timestamp))

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("PAGEWATCH_HOME", str(tmp_path))
    monkeypatch.delenv("PAGEWATCH_CONFIG", raising=False)
    return tmp_path


@pytest.fixture
def sample_source_config() -> Callable[..., SourceConfig]:
    def _builder(**overrides: Any) -> SourceConfig:
        base: dict[str, Any] = {
            "name": "Blog",
            "active": True,
            "url": "https://blog.example.com/index",
            "item_path": "article.post",
            "title_path": "h2",
            "footer_path": "footer",
            "contents": [
                FieldDescriptor(name="body", path="p.body", kind=FieldKind.TEXT),
                FieldDescriptor(name="link", path="a.link", kind=FieldKind.URL),
            ],
        }
        base.update(overrides)
        return SourceConfig(**base)

    return _builder


@pytest.fixture
def sample_watch_config(sample_source_config, tmp_path: Path) -> Callable[..., WatchConfig]:
    def _builder(sources: list[SourceConfig] | None = None, **overrides: Any) -> WatchConfig:
        base: dict[str, Any] = {
            "check_interval": 5,
            "sources": sources if sources is not None else [sample_source_config()],
            "state_path": tmp_path / "seen.json",
        }
        base.update(overrides)
        return WatchConfig(**base)

    return _builder


@pytest.fixture
def blog_record() -> Callable[..., Record]:
    def _builder(title: str = "Post1", body: str = "X", link: str = "http://a/1?t=1") -> Record:
        return make_record(title, "Blog", [("body", body), ("link", link)])

    return _builder


@pytest.fixture
def recording_reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def stub_extractor() -> type[StubExtractor]:
    return StubExtractor
