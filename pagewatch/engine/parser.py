"""Turn rendered page markup into records according to a source schema."""

from __future__ import annotations

from urllib.parse import urlparse

from selectolax.parser import HTMLParser, Node

from ..config import FieldDescriptor, FieldKind, SourceConfig
from .record import Field, Record

TRIM_CHARS = " \t\r\n"
MISSING_LINK = "No link found!"
# Continuation lines of a ``list`` value line up under the report value column
LIST_SEPARATOR = "\n" + " " * 15
INLINE_SEPARATOR = "  "
TEXT_NODE_TAG = "-text"


class Parser:
    """Apply item/title/field selectors to a page."""

    def parse_items(self, source: SourceConfig, html: str, page_url: str | None = None) -> list[Record]:
        """Return one record per item element that has a non-empty title."""

        page_url = page_url or source.url
        tree = HTMLParser(html)
        records: list[Record] = []
        for item in tree.css(source.item_path):
            title = self._text(item, source.title_path)
            if not title:
                continue
            fields = tuple(
                Field(descriptor.name, self.extract_field(item, descriptor, page_url))
                for descriptor in source.contents
            )
            records.append(Record(title=title, source=source.name, fields=fields))
        return records

    def extract_field(self, item: Node, descriptor: FieldDescriptor, page_url: str) -> str:
        if descriptor.kind is FieldKind.TEXT:
            return self._text(item, descriptor.path)
        if descriptor.kind is FieldKind.URL:
            return self._link(item, descriptor.path, page_url)
        if descriptor.kind is FieldKind.LIST:
            return LIST_SEPARATOR.join(self._first_child_texts(item, descriptor.path))
        if descriptor.kind is FieldKind.LIST_INLINE:
            return INLINE_SEPARATOR.join(self._first_child_texts(item, descriptor.path))
        raise ValueError(f"Unknown field kind: {descriptor.kind}")

    @staticmethod
    def _text(item: Node, selector: str) -> str:
        return "".join(node.text() for node in item.css(selector)).strip(TRIM_CHARS)

    @staticmethod
    def _link(item: Node, selector: str, page_url: str) -> str:
        node = item.css_first(selector)
        href = node.attributes.get("href") if node is not None else None
        if href is None:
            return MISSING_LINK
        return resolve_link(href, page_url)

    @staticmethod
    def _first_child_texts(item: Node, selector: str) -> list[str]:
        """First child of each match: a text node as is, an element by its full text."""

        entries = []
        for node in item.css(selector):
            child = node.child
            if child is None:
                entries.append("")
            elif child.tag == TEXT_NODE_TAG:
                entries.append(child.text(deep=False))
            else:
                entries.append(child.text())
        return entries


def resolve_link(href: str, page_url: str) -> str:
    """Anchor root-relative links at the page's scheme and host."""

    if not href.startswith("/"):
        return href
    page = urlparse(page_url)
    if href.startswith("//"):
        return f"{page.scheme}:{href}"
    return f"{page.scheme}://{page.netloc}{href}"


__all__ = ["INLINE_SEPARATOR", "LIST_SEPARATOR", "MISSING_LINK", "Parser", "resolve_link"]
