"""Per-source memory of already reported records."""

from __future__ import annotations

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

import structlog

from ..infra.storage import SQLiteManager
from .record import Record


class SeenStore(ABC):
    """Mapping of source name to the records already reported for it.

    Lookups and appends work on the in-memory mapping; ``load`` and
    ``persist`` move it to and from durable storage.
    """

    def __init__(self) -> None:
        self._records: dict[str, list[Record]] = {}
        self.logger = structlog.get_logger("pagewatch.dedup").bind(component="dedup")

    def contains(self, source_id: str, record: Record) -> bool:
        return record.is_known_in(self._records.get(source_id, ()))

    def append(self, source_id: str, record: Record) -> None:
        # Callers check ``contains`` first; no second check here.
        self._records.setdefault(source_id, []).append(record)

    def records(self, source_id: str) -> list[Record]:
        return list(self._records.get(source_id, ()))

    def sources(self) -> list[str]:
        return list(self._records)

    def snapshot(self) -> dict[str, list[Record]]:
        return {source_id: list(records) for source_id, records in self._records.items()}

    def reset(self, source_id: str | None = None) -> None:
        if source_id is None:
            self._records.clear()
        else:
            self._records.pop(source_id, None)

    def load(self) -> None:
        """Replace the in-memory mapping with the stored one; never raises."""

        try:
            self._records = self._read()
        except Exception as exc:  # noqa: BLE001
            self.logger.warning("state_load_failed", error=str(exc))
            self._records = {}
        else:
            self.logger.info(
                "state_loaded",
                sources=len(self._records),
                records=sum(len(items) for items in self._records.values()),
            )

    def close(self) -> None:
        """Release the backing storage; the in-memory mapping stays usable."""

    @abstractmethod
    def persist(self) -> None:
        """Write the full mapping to durable storage."""

    @abstractmethod
    def _read(self) -> dict[str, list[Record]]:
        """Return the stored mapping, raising on any problem."""


class JsonSeenStore(SeenStore):
    """Human readable JSON file backend."""

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = path

    def _read(self) -> dict[str, list[Record]]:
        if not self.path.exists():
            return {}
        payload = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError(f"State file must contain a mapping: {self.path}")
        return {
            str(source_id): [Record.from_dict(item) for item in items]
            for source_id, items in payload.items()
        }

    def persist(self) -> None:
        payload = {
            source_id: [record.to_dict() for record in records]
            for source_id, records in self._records.items()
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as stream:
                json.dump(payload, stream, indent=2, ensure_ascii=False)
                stream.write("\n")
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class SQLiteSeenStore(SeenStore):
    """SQLite backend; one row per record, ordered by discovery position."""

    def __init__(self, manager: SQLiteManager, db_path: Path) -> None:
        super().__init__()
        self.manager = manager
        self.db_path = db_path

    def _read(self) -> dict[str, list[Record]]:
        if not self.db_path.exists():
            return {}
        conn = self.manager.connect(self.db_path)
        rows = conn.execute(
            "SELECT source, title, fields FROM seen_records ORDER BY source_order, position"
        ).fetchall()
        mapping: dict[str, list[Record]] = {}
        for row in rows:
            record = Record.from_dict(
                {"title": row["title"], "source": row["source"], "fields": json.loads(row["fields"])}
            )
            mapping.setdefault(row["source"], []).append(record)
        return mapping

    def close(self) -> None:
        self.manager.close(self.db_path)

    def persist(self) -> None:
        with self.manager.transaction(self.db_path) as conn:
            conn.execute("DELETE FROM seen_records")
            conn.executemany(
                "INSERT INTO seen_records(source, source_order, position, title, fields) "
                "VALUES (?, ?, ?, ?, ?)",
                [
                    (
                        source_id,
                        source_order,
                        position,
                        record.title,
                        json.dumps(record.to_dict()["fields"], ensure_ascii=False),
                    )
                    for source_order, (source_id, records) in enumerate(self._records.items())
                    for position, record in enumerate(records)
                ],
            )


def build_store(backend: str, path: Path, manager: SQLiteManager | None = None) -> SeenStore:
    if backend == "json":
        return JsonSeenStore(path)
    if backend == "sqlite":
        return SQLiteSeenStore(manager or SQLiteManager(), path)
    raise ValueError(f"Unsupported state backend: {backend}")


__all__ = ["JsonSeenStore", "SQLiteSeenStore", "SeenStore", "build_store"]
