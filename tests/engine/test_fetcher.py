from __future__ import annotations

from threading import Thread, get_ident

import httpx
import pytest

from pagewatch.engine import FetchResponse, PageExtractor, PageFetcher


def test_http_fetch_uses_client(monkeypatch: pytest.MonkeyPatch, sample_watch_config, sample_source_config) -> None:
    source = sample_source_config(use_browser=False)
    fetcher = PageFetcher(sample_watch_config(page_timeout=7))
    captured: dict = {}

    def fake_get(url, **kwargs):
        captured["url"] = url
        captured.update(kwargs)
        return httpx.Response(200, request=httpx.Request("GET", url), text="<html>ok</html>")

    monkeypatch.setattr(fetcher._client, "get", fake_get)
    response = fetcher.fetch(source)
    fetcher.close()
    assert captured == {"url": source.url, "timeout": 7}
    assert response.text == "<html>ok</html>"
    assert response.status_code == 200


def test_http_error_becomes_runtime_error(monkeypatch: pytest.MonkeyPatch, sample_watch_config, sample_source_config) -> None:
    source = sample_source_config(use_browser=False)
    fetcher = PageFetcher(sample_watch_config())

    def fake_get(url, **_kwargs):
        return httpx.Response(503, request=httpx.Request("GET", url))

    monkeypatch.setattr(fetcher._client, "get", fake_get)
    with pytest.raises(RuntimeError):
        fetcher.fetch(source)
    fetcher.close()


def test_browser_sources_are_rendered(monkeypatch: pytest.MonkeyPatch, sample_watch_config, sample_source_config) -> None:
    source = sample_source_config()
    fetcher = PageFetcher(sample_watch_config())
    calls: list = []

    class FakeSession:
        def render(self, url, *, footer_selector, ready_selector, timeout):
            calls.append((url, footer_selector, ready_selector, timeout))
            return FetchResponse(url=url, status_code=200, text="<html></html>")

        def close(self):
            calls.append("closed")

    monkeypatch.setattr(fetcher, "_ensure_browser_session", lambda: FakeSession())
    fetcher.fetch(source)
    assert calls == [(source.url, "footer", "article.post h2", 30.0)]


def test_extractor_parses_fetched_page(sample_watch_config, sample_source_config) -> None:
    source = sample_source_config()
    html = '<article class="post"><h2>Hello</h2><p class="body">B</p></article>'

    class FakeFetcher:
        closed = False

        def fetch(self, _source):
            return FetchResponse(url=source.url, status_code=200, text=html)

        def close(self):
            FakeFetcher.closed = True

    extractor = PageExtractor(FakeFetcher())
    records = extractor.extract(source)
    extractor.close()
    assert [(r.title, r.value("body"), r.value("link")) for r in records] == [
        ("Hello", "B", "No link found!")
    ]
    assert FakeFetcher.closed


def test_browser_sessions_close_only_on_owning_thread(monkeypatch: pytest.MonkeyPatch, sample_watch_config) -> None:
    closed: list[tuple[int, int]] = []

    class FakeSession:
        def __init__(self, user_agent, headless=True):
            self.owner = get_ident()

        def close(self):
            closed.append((self.owner, get_ident()))

    monkeypatch.setattr("pagewatch.engine.fetcher._PlaywrightSession", FakeSession)
    fetcher = PageFetcher(sample_watch_config())
    owners: list[int] = []

    def releasing_worker():
        owners.append(fetcher._ensure_browser_session().owner)
        assert fetcher._ensure_browser_session().owner == owners[0]
        fetcher.release_thread_session()

    def abandoning_worker():
        fetcher._ensure_browser_session()

    for target in (releasing_worker, abandoning_worker):
        thread = Thread(target=target)
        thread.start()
        thread.join()

    main_owner = fetcher._ensure_browser_session().owner
    fetcher.close()
    assert closed == [(owners[0], owners[0]), (main_owner, main_owner)]
