"""Extracted records and the relation used to recognise already seen items."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

URL_PREFIX = "http"


@dataclass(frozen=True, slots=True)
class Field:
    """A named value taken from one item."""

    name: str
    value: str

    @property
    def is_volatile(self) -> bool:
        """URLs may carry per-render tokens, so they never count as a difference."""

        return len(self.value) > len(URL_PREFIX) and self.value.startswith(URL_PREFIX)

    def present_in(self, fields: Iterable["Field"]) -> bool:
        if self.is_volatile:
            return True
        return any(self == other for other in fields)


@dataclass(frozen=True, slots=True)
class Record:
    """One logical item found on a watched page."""

    title: str
    source: str
    fields: tuple[Field, ...] = field(default_factory=tuple)

    def matches(self, other: "Record") -> bool:
        """Return True when ``other`` describes the same item.

        Titles must be identical and each of our fields must be present in
        ``other``'s fields, position ignored. Field values starting with
        ``http`` always count as present.
        """
        if self.title != other.title:
            return False
        return all(item.present_in(other.fields) for item in self.fields)

    def is_known_in(self, records: Iterable["Record"]) -> bool:
        return any(self.matches(record) for record in records)

    def value(self, name: str, default: str = "") -> str:
        for item in self.fields:
            if item.name == name:
                return item.value
        return default

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "source": self.source,
            "fields": [{"name": item.name, "value": item.value} for item in self.fields],
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Record":
        fields = tuple(
            Field(name=str(entry["name"]), value=str(entry.get("value") or ""))
            for entry in payload.get("fields") or []
        )
        return cls(title=str(payload["title"]), source=str(payload.get("source") or ""), fields=fields)


def make_record(title: str, source: str, values: Iterable[tuple[str, str]]) -> Record:
    return Record(title=title, source=source, fields=tuple(Field(name, value) for name, value in values))


__all__ = ["Field", "Record", "URL_PREFIX", "make_record"]
