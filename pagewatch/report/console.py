"""Console announcements for newly seen records."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from rich.console import Console

from ..engine.record import Record
from .base import BaseReporter

BANNER_WIDTH = 58
RULE = "=" * 40
# RFC 822 layout: "02 Jan 06 15:04 MST"
TIMESTAMP_FORMAT = "%d %b %y %H:%M %Z"


def format_timestamp(timestamp: datetime) -> str:
    return timestamp.strftime(TIMESTAMP_FORMAT).strip()


def format_banner(timestamp: datetime) -> list[str]:
    return [
        "*" * BANNER_WIDTH,
        " Refresh ".center(BANNER_WIDTH, "*"),
        f" {format_timestamp(timestamp)} ".center(BANNER_WIDTH, "*"),
        "*" * BANNER_WIDTH,
    ]


def format_record(record: Record) -> list[str]:
    lines = [RULE, f"{'Source':<12} - {record.source}", f"{'Title':<12} - {record.title}"]
    for item in record.fields:
        if item.value:
            lines.append(f"{item.name:<12} - {item.value}")
    return lines


class ConsoleReporter(BaseReporter):
    """Print a refresh banner followed by every new record."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(highlight=False, soft_wrap=True, emoji=False)

    def report(self, records: Sequence[Record], timestamp: datetime) -> None:
        if not records:
            return
        self.console.print()
        for line in format_banner(timestamp):
            self.console.print(line, markup=False, soft_wrap=True)
        self.console.print()
        for record in records:
            for line in format_record(record):
                self.console.print(line, markup=False, emoji=False, soft_wrap=True)
            self.console.print()


__all__ = ["ConsoleReporter", "format_banner", "format_record", "format_timestamp"]
