from __future__ import annotations

import pytest
from selectolax.parser import HTMLParser

from pagewatch.config import FieldDescriptor, FieldKind
from pagewatch.engine import Parser
from pagewatch.engine.parser import LIST_SEPARATOR, MISSING_LINK, resolve_link

PAGE = """
<html><body>
<article class="post">
  <h2>  Post1 </h2>
  <p class="body">
    X
  </p>
  <a class="link" href="/posts/1?t=1">more</a>
  <ul class="tags"><li>alpha</li><li>beta</li></ul>
</article>
<article class="post">
  <h2>   </h2>
  <p class="body">orphan</p>
</article>
<article class="post">
  <h2>Post2</h2>
  <p class="body">Y</p>
  <a class="link" href="https://other.example/2">more</a>
  <ul class="tags"><li>gamma</li></ul>
</article>
<article class="post"><h2>Post3</h2></article>
<footer>end</footer>
</body></html>
"""


@pytest.fixture
def source(sample_source_config):
    return sample_source_config(
        contents=[
            FieldDescriptor(name="body", path="p.body", kind=FieldKind.TEXT),
            FieldDescriptor(name="link", path="a.link", kind=FieldKind.URL),
            FieldDescriptor(name="tags", path="ul.tags li", kind=FieldKind.LIST),
            FieldDescriptor(name="inline", path="ul.tags li", kind=FieldKind.LIST_INLINE),
        ]
    )


def test_parse_items_applies_every_field_kind(source) -> None:
    records = Parser().parse_items(source, PAGE)
    assert [record.title for record in records] == ["Post1", "Post2", "Post3"]
    first = records[0]
    assert first.source == "Blog"
    assert [item.name for item in first.fields] == ["body", "link", "tags", "inline"]
    assert first.value("body") == "X"
    assert first.value("link") == "https://blog.example.com/posts/1?t=1"
    assert first.value("tags") == "alpha" + LIST_SEPARATOR + "beta"
    assert first.value("tags") == "alpha\n               beta"
    assert first.value("inline") == "alpha  beta"


def test_single_entry_lists_have_no_separator(source) -> None:
    second = Parser().parse_items(source, PAGE)[1]
    assert second.value("link") == "https://other.example/2"
    assert second.value("tags") == "gamma"
    assert second.value("inline") == "gamma"


def test_missing_fields_yield_empty_values_and_link_sentinel(source) -> None:
    third = Parser().parse_items(source, PAGE)[2]
    assert third.value("body") == ""
    assert third.value("link") == MISSING_LINK
    assert third.value("tags") == ""
    assert third.value("inline") == ""


def test_empty_title_items_are_skipped(source) -> None:
    records = Parser().parse_items(source, PAGE)
    assert all(record.value("body") != "orphan" for record in records)


def test_anchor_without_href_uses_sentinel(sample_source_config) -> None:
    source = sample_source_config()
    html = '<article class="post"><h2>T</h2><a class="link">x</a></article>'
    record = Parser().parse_items(source, html)[0]
    assert record.value("link") == MISSING_LINK


def test_no_items_returns_empty(source) -> None:
    assert Parser().parse_items(source, "<html><body><p>nothing</p></body></html>") == []


@pytest.mark.parametrize(
    ("href", "expected"),
    [
        ("/a/b?c=1", "https://host.example:8443/a/b?c=1"),
        ("//cdn.example/x", "https://cdn.example/x"),
        ("http://elsewhere/y", "http://elsewhere/y"),
        ("relative/z", "relative/z"),
    ],
)
def test_resolve_link(href: str, expected: str) -> None:
    assert resolve_link(href, "https://host.example:8443/listing?page=2") == expected


@pytest.mark.parametrize(
    ("markup", "expected"),
    [
        ("<li>alpha</li>", ["alpha"]),
        ("<li><a href='#'>x</a> y</li>", ["x"]),
        ("<li><a><b>deep</b> text</a> tail</li>", ["deep text"]),
        ("<li>\n <b>x</b></li>", ["\n "]),
        ("<li></li>", [""]),
        ("<li>one</li><li><i>two</i></li>", ["one", "two"]),
    ],
)
def test_first_child_texts(markup: str, expected: list[str]) -> None:
    item = HTMLParser(f"<ul>{markup}</ul>").css_first("ul")
    assert Parser._first_child_texts(item, "li") == expected


def test_list_kinds_join_first_child_texts(sample_source_config) -> None:
    source = sample_source_config(
        contents=[
            FieldDescriptor(name="tags", path="li", kind=FieldKind.LIST),
            FieldDescriptor(name="inline", path="li", kind=FieldKind.LIST_INLINE),
        ]
    )
    html = '<article class="post"><h2>T</h2><ul><li><a>x</a> y</li><li>z</li></ul></article>'
    record = Parser().parse_items(source, html)[0]
    assert record.value("tags") == "x" + LIST_SEPARATOR + "z"
    assert record.value("inline") == "x  z"
