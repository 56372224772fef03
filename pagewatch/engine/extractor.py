"""Extraction collaborator: source schema in, raw records out."""

from __future__ import annotations

from typing import Protocol

import structlog

from ..config import SourceConfig
from .fetcher import PageFetcher
from .parser import Parser
from .record import Record


class Extractor(Protocol):
    """Behaviour the poller expects from an extraction collaborator."""

    def extract(self, source: SourceConfig) -> list[Record]:
        """Return the records currently on the source page; raise on failure."""


class PageExtractor:
    """Fetch a source page and parse it into records."""

    def __init__(self, fetcher: PageFetcher, parser: Parser | None = None) -> None:
        self.fetcher = fetcher
        self.parser = parser or Parser()
        self.logger = structlog.get_logger("pagewatch.extractor").bind(component="extractor")

    def extract(self, source: SourceConfig) -> list[Record]:
        response = self.fetcher.fetch(source)
        try:
            records = self.parser.parse_items(source, response.text, source.url)
        except Exception as exc:  # noqa: BLE001
            raise RuntimeError(f"Cannot parse page for {source.name}: {exc}") from exc
        self.logger.debug(
            "page_extracted", source=source.name, url=response.url, records=len(records)
        )
        return records

    def release_worker(self) -> None:
        """Drop resources bound to the calling worker thread."""

        self.fetcher.release_thread_session()

    def close(self) -> None:
        self.fetcher.close()


__all__ = ["Extractor", "PageExtractor"]
