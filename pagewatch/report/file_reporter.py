"""Append newly seen records to a JSON-lines file."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Sequence

from ..engine.record import Record
from .base import BaseReporter


class JsonLinesReporter(BaseReporter):
    """Write one JSON object per record, stamped with the cycle time."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self.path.open("a", encoding="utf-8")

    def report(self, records: Sequence[Record], timestamp: datetime) -> None:
        seen_at = timestamp.isoformat(timespec="seconds")
        for record in records:
            payload = record.to_dict()
            payload["seen_at"] = seen_at
            json.dump(payload, self._file, ensure_ascii=False)
            self._file.write("\n")
        self._file.flush()

    def close(self) -> None:
        self._file.close()


__all__ = ["JsonLinesReporter"]
