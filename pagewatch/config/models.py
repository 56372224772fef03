"""Pydantic models describing watched sources and daemon settings."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class FieldKind(str, Enum):
    """How a field value is pulled out of an item element."""

    TEXT = "text"
    URL = "url"
    LIST = "list"
    LIST_INLINE = "list-inline"


class FieldDescriptor(BaseModel):
    """One named value extracted from every item."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    path: str
    kind: FieldKind = Field(default=FieldKind.TEXT, alias="type")

    @field_validator("name", "path")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("field name and path cannot be empty")
        return value


class SourceConfig(BaseModel):
    """A monitored page together with its extraction schema."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    active: bool = True
    url: str
    item_path: str = Field(alias="itemPath")
    title_path: str = Field(alias="titlePath")
    # Scrolled into view before reading the page so lazy content renders
    footer_path: str | None = Field(default=None, alias="footerPath")
    contents: list[FieldDescriptor] = Field(default_factory=list)
    use_browser: bool = Field(default=True, alias="useBrowser")

    @field_validator("footer_path", mode="before")
    @classmethod
    def _blank_footer(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _validate_selectors(self) -> "SourceConfig":
        if not self.name.strip():
            raise ValueError("source name cannot be empty")
        if not self.url.startswith(("http://", "https://")):
            raise ValueError(f"source url must be http(s): {self.url}")
        if not self.item_path.strip() or not self.title_path.strip():
            raise ValueError("itemPath and titlePath cannot be empty")
        return self

    @property
    def ready_selector(self) -> str:
        """Selector that must match before the rendered page is read."""

        return f"{self.item_path} {self.title_path}"


class WatchConfig(BaseModel):
    """Top level configuration: poll interval, sources and daemon settings."""

    model_config = ConfigDict(populate_by_name=True)

    check_interval: int = Field(default=5, alias="checkInterval")
    sources: list[SourceConfig] = Field(default_factory=list)
    state_path: Path = Field(default=Path("data/seen.json"), alias="statePath")
    state_backend: Literal["json", "sqlite"] = Field(default="json", alias="stateBackend")
    page_timeout: float = Field(default=30.0, alias="pageTimeout")
    max_workers: int = Field(default=1, alias="maxWorkers")
    headless: bool = True
    user_agent: str | None = Field(default=None, alias="userAgent")

    @field_validator("state_path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Any:
        # Anything but str/PathLike is left to pydantic to reject
        if isinstance(value, (str, os.PathLike)):
            return Path(value)
        return value

    @model_validator(mode="after")
    def _validate_settings(self) -> "WatchConfig":
        if self.check_interval < 1:
            raise ValueError("checkInterval must be >= 1 minute")
        if self.page_timeout <= 0:
            raise ValueError("pageTimeout must be positive")
        if self.max_workers < 1:
            raise ValueError("maxWorkers must be >= 1")
        seen: set[str] = set()
        for source in self.sources:
            if source.name in seen:
                raise ValueError(f"duplicate source name: {source.name}")
            seen.add(source.name)
        return self

    def active_sources(self) -> list[SourceConfig]:
        return [source for source in self.sources if source.active]

    def get_source(self, name: str) -> SourceConfig:
        for source in self.sources:
            if source.name == name:
                return source
        raise KeyError(name)

    def resolved_state_path(self, base_dir: Path) -> Path:
        """Return dedup state path relative to the configuration directory."""

        if not self.state_path.is_absolute():
            return (base_dir / self.state_path).resolve()
        return self.state_path


__all__ = ["FieldDescriptor", "FieldKind", "SourceConfig", "WatchConfig"]
