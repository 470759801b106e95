from __future__ import annotations

import pytest
import respx
from httpx import Response
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from structlog.testing import capture_logs

import stillbrook.render.browser as browser
from stillbrook.errors import RenderError
from stillbrook.fetch.http import FetchSettings
from stillbrook.render.browser import (
    FALLBACK_FAILED_MESSAGE,
    RenderOptions,
    count_image_sources,
    is_image_search_url,
    render_html,
    selectors_to_wait_for,
)

SNAPSHOT_URL = "https://serpapi.com/searches/abc/raw.html"
IMAGE_URL = "https://www.google.com/search?q=acme&tbm=isch"


class _FakeLocator:
    def count(self) -> int:
        return 3


class _FakePage:
    def __init__(self, html: str, *, fail_goto: bool, selector_times_out: bool) -> None:
        self._html = html
        self._fail_goto = fail_goto
        self._selector_times_out = selector_times_out
        self.waits: list[int] = []
        self.evaluated: list[object] = []

    def goto(self, url: str, *, wait_until: str, timeout: int) -> None:
        if self._fail_goto:
            raise PlaywrightError("net::ERR_NAME_NOT_RESOLVED")

    def wait_for_selector(self, selector: str, *, timeout: int) -> None:
        if self._selector_times_out:
            raise PlaywrightTimeoutError(f"waiting for {selector} timed out")

    def locator(self, selector: str) -> _FakeLocator:
        return _FakeLocator()

    def wait_for_timeout(self, ms: int) -> None:
        self.waits.append(ms)

    def evaluate(self, script: str, arg: object) -> int:
        self.evaluated.append(arg)
        return 0

    def content(self) -> str:
        return self._html


class _FakeContext:
    def __init__(self, page: _FakePage) -> None:
        self._page = page

    def new_page(self) -> _FakePage:
        return self._page


class _FakeBrowser:
    def __init__(self, page: _FakePage, *, fail_close: bool) -> None:
        self.page = page
        self.closed = False
        self._fail_close = fail_close
        self.context_args: dict[str, object] = {}

    def new_context(self, **kwargs: object) -> _FakeContext:
        self.context_args = kwargs
        return _FakeContext(self.page)

    def close(self) -> None:
        self.closed = True
        if self._fail_close:
            raise PlaywrightError("browser already closed")


class _FakeChromium:
    def __init__(self, fake_browser: _FakeBrowser) -> None:
        self._browser = fake_browser
        self.launch_args: dict[str, object] = {}

    def launch(self, **kwargs: object) -> _FakeBrowser:
        self.launch_args = kwargs
        return self._browser


class _FakePlaywrightManager:
    def __init__(self, chromium: _FakeChromium) -> None:
        self.chromium = chromium

    def __enter__(self) -> _FakePlaywrightManager:
        return self

    def __exit__(self, *exc: object) -> bool:
        return False


def _install_browser(
    monkeypatch: pytest.MonkeyPatch,
    *,
    html: str = "<html><body>rendered</body></html>",
    fail_goto: bool = False,
    fail_close: bool = False,
    selector_times_out: bool = False,
) -> tuple[_FakeBrowser, _FakeChromium]:
    page = _FakePage(html, fail_goto=fail_goto, selector_times_out=selector_times_out)
    fake_browser = _FakeBrowser(page, fail_close=fail_close)
    chromium = _FakeChromium(fake_browser)
    monkeypatch.setattr(browser, "sync_playwright", lambda: _FakePlaywrightManager(chromium))
    return fake_browser, chromium


def _fast_options(**overrides: object) -> RenderOptions:
    values: dict[str, object] = {"image_load_delay_ms": 5, "scroll_delay_ms": 7}
    values.update(overrides)
    return RenderOptions(**values)  # type: ignore[arg-type]


def test_render_with_browser_returns_page_content(monkeypatch: pytest.MonkeyPatch) -> None:
    fake_browser, chromium = _install_browser(monkeypatch)

    result = render_html(SNAPSHOT_URL, options=_fast_options())

    assert result.method == "browser"
    assert result.html == "<html><body>rendered</body></html>"
    assert fake_browser.closed is True
    assert chromium.launch_args["headless"] is True
    assert fake_browser.context_args["viewport"] == {"width": 1280, "height": 800}
    # not an image search: image delay only, no scrolling
    assert fake_browser.page.waits == [5]
    assert fake_browser.page.evaluated == []


def test_image_search_scrolls_for_lazy_images(monkeypatch: pytest.MonkeyPatch) -> None:
    fake_browser, _ = _install_browser(monkeypatch, selector_times_out=True)

    result = render_html(IMAGE_URL, options=_fast_options())

    assert result.method == "browser"
    assert fake_browser.page.evaluated == [[100, 100, 300]]
    assert fake_browser.page.waits == [5, 7]


def test_browser_failure_falls_back_to_http_verbatim(monkeypatch: pytest.MonkeyPatch) -> None:
    fake_browser, _ = _install_browser(monkeypatch, fail_goto=True)
    body = "<html><body><div class='MjjYud'>snapshot</div></body></html>"

    with respx.mock:
        respx.get(SNAPSHOT_URL).mock(return_value=Response(200, text=body))
        result = render_html(
            SNAPSHOT_URL, options=_fast_options(), fetch_settings=FetchSettings(timeout=5.0)
        )

    assert result.method == "http"
    assert result.html == body
    assert fake_browser.closed is True


def test_browser_launch_failure_falls_back_to_http(monkeypatch: pytest.MonkeyPatch) -> None:
    def missing_driver():
        raise OSError("driver executable missing")

    monkeypatch.setattr(browser, "sync_playwright", missing_driver)

    with respx.mock, capture_logs() as logs:
        respx.get(SNAPSHOT_URL).mock(return_value=Response(200, text="<html>fallback</html>"))
        result = render_html(SNAPSHOT_URL, options=_fast_options())

    assert result.method == "http"
    assert result.html == "<html>fallback</html>"
    failure = next(log for log in logs if log["event"].startswith("browser render failed"))
    assert failure["error_type"] == "OSError"


def test_browser_and_fallback_failure_raise_single_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    fake_browser, _ = _install_browser(monkeypatch, fail_goto=True)

    with respx.mock:
        respx.get(SNAPSHOT_URL).mock(return_value=Response(500))
        with pytest.raises(RenderError) as exc:
            render_html(SNAPSHOT_URL, options=_fast_options())

    assert exc.value.message == FALLBACK_FAILED_MESSAGE
    assert exc.value.code == "render_failed"
    assert fake_browser.closed is True


def test_close_failure_does_not_mask_result(monkeypatch: pytest.MonkeyPatch) -> None:
    fake_browser, _ = _install_browser(monkeypatch, fail_close=True)

    result = render_html(SNAPSHOT_URL, options=_fast_options())

    assert result.method == "browser"
    assert fake_browser.closed is True


def test_count_image_sources() -> None:
    html = (
        '<img src="https://cdn.example.com/a.jpg">'
        "<img src='data:image/gif;base64,R0lGOD'>"
        '<img alt="no source">'
        '<IMG SRC="http://cdn.example.com/b.png">'
    )
    stats = count_image_sources(html)
    assert stats.real == 2
    assert stats.placeholders == 1


def test_wait_selectors_and_image_detection() -> None:
    assert selectors_to_wait_for("https://www.google.com/search?q=x") == ["[data-rpos]"]
    assert selectors_to_wait_for(SNAPSHOT_URL) == ["[data-rpos]"]
    assert selectors_to_wait_for("https://example.com/page") == []
    assert selectors_to_wait_for("https://example.com", ("#main",)) == ["#main"]

    assert is_image_search_url(IMAGE_URL) is True
    assert is_image_search_url("https://images.google.com/") is True
    assert is_image_search_url(SNAPSHOT_URL) is False
