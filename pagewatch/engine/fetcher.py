"""Page retrieval: headless browser rendering or plain HTTP."""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock, Thread, current_thread, get_ident
from typing import Dict

import httpx
import structlog

from ..config import SourceConfig, WatchConfig


@dataclass(slots=True)
class FetchResponse:
    """Standardised response wrapper."""

    url: str
    status_code: int
    text: str
    headers: Dict[str, str] = field(default_factory=dict)


class PageFetcher:
    """Retrieve page markup for a source, rendering JavaScript when required."""

    def __init__(self, config: WatchConfig, logger: structlog.BoundLogger | None = None) -> None:
        self.config = config
        self.timeout = config.page_timeout
        self.logger = logger or structlog.get_logger("pagewatch.fetcher")
        self._client = httpx.Client(
            follow_redirects=True,
            timeout=self.timeout,
            headers={"User-Agent": config.user_agent} if config.user_agent else None,
        )
        # Playwright sync objects are bound to the thread that created them
        self._browser_sessions: dict[int, tuple[Thread, _PlaywrightSession]] = {}
        self._browser_lock = Lock()

    def close(self) -> None:
        """Close the HTTP client and the caller's browser session.

        Sessions of other threads must be released on those threads first
        with ``release_thread_session``; leftovers are only reported.
        """
        self._client.close()
        self.release_thread_session()
        with self._browser_lock:
            leftovers = [owner.name for owner, _ in self._browser_sessions.values()]
            self._browser_sessions.clear()
        if leftovers:
            self.logger.warning("browser_sessions_not_released", threads=leftovers)

    def fetch(self, source: SourceConfig) -> FetchResponse:
        if source.use_browser:
            return self._fetch_via_browser(source)
        return self._fetch_via_http(source)

    def _fetch_via_http(self, source: SourceConfig) -> FetchResponse:
        try:
            response = self._client.get(source.url, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise RuntimeError(f"HTTP fetch failed for {source.url}: {exc}") from exc
        return FetchResponse(
            url=str(response.url),
            status_code=response.status_code,
            text=response.text,
            headers=dict(response.headers),
        )

    def _fetch_via_browser(self, source: SourceConfig) -> FetchResponse:
        return self._ensure_browser_session().render(
            source.url,
            footer_selector=source.footer_path,
            ready_selector=source.ready_selector,
            timeout=self.timeout,
        )

    def release_thread_session(self) -> None:
        """Close the browser session owned by the calling thread, if any."""

        with self._browser_lock:
            entry = self._browser_sessions.pop(get_ident(), None)
        if entry is None:
            return
        owner, session = entry
        if owner is current_thread():
            session.close()

    def _ensure_browser_session(self) -> "_PlaywrightSession":
        thread = current_thread()
        with self._browser_lock:
            entry = self._browser_sessions.get(thread.ident)
            if entry is not None and entry[0] is not thread:
                # Thread id reused after the owner exited; its session is unusable here
                self.logger.warning("browser_session_orphaned", thread=thread.name)
                entry = None
            if entry is None:
                session = _PlaywrightSession(self.config.user_agent, headless=self.config.headless)
                entry = (thread, session)
                self._browser_sessions[thread.ident] = entry
            return entry[1]


class _PlaywrightSession:
    def __init__(self, user_agent: str | None, headless: bool = True) -> None:
        self._user_agent = user_agent
        self._headless = headless
        self._lock = Lock()
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

    def _ensure_started(self) -> None:
        if self._playwright is not None:
            return
        from playwright.sync_api import sync_playwright

        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(headless=self._headless)
        self._context = self._browser.new_context(user_agent=self._user_agent)
        self._page = self._context.new_page()

    def render(
        self,
        url: str,
        *,
        footer_selector: str | None,
        ready_selector: str,
        timeout: float,
    ) -> FetchResponse:
        from playwright.sync_api import Error as PlaywrightError
        from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

        timeout_ms = int(timeout * 1000)
        with self._lock:
            self._ensure_started()
            try:
                response = self._page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
                if footer_selector:
                    self._page.locator(footer_selector).first.scroll_into_view_if_needed(
                        timeout=timeout_ms
                    )
                self._page.wait_for_selector(ready_selector, state="attached", timeout=timeout_ms)
                content = self._page.content()
            except PlaywrightTimeoutError as exc:
                raise RuntimeError(f"Playwright timeout rendering {url}: {exc}") from exc
            except PlaywrightError as exc:
                raise RuntimeError(f"Playwright failed rendering {url}: {exc}") from exc
            return FetchResponse(
                url=self._page.url,
                status_code=response.status if response else 200,
                text=content,
                headers=dict(response.headers) if response else {},
            )

    def close(self) -> None:
        with self._lock:
            if self._page is not None:
                self._page.close()
                self._page = None
            if self._context is not None:
                self._context.close()
                self._context = None
            if self._browser is not None:
                self._browser.close()
                self._browser = None
            if self._playwright is not None:
                self._playwright.stop()
                self._playwright = None


__all__ = ["FetchResponse", "PageFetcher"]
