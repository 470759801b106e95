from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from stillbrook.errors import ExitCode, RenderError, StillbrookError
from stillbrook.fetch.http import DEFAULT_USER_AGENT, FetchSettings, fetch_html
from stillbrook.logging import get_logger
from stillbrook.urlutil import redact_url

logger = get_logger("stillbrook.render.browser")

FALLBACK_FAILED_MESSAGE = "Both browser rendering and fallback failed"

_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-web-security",
    "--disable-features=VizDisplayCompositor",
    "--allow-running-insecure-content",
]

_DYNAMIC_RESULT_SELECTOR = "[data-rpos]"
_DYNAMIC_HOST_RE = re.compile(r"google\.", re.IGNORECASE)

_IMG_TAG_RE = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
_SRC_ATTR_RE = re.compile(r"""\bsrc\s*=\s*["']([^"']*)["']""", re.IGNORECASE)

# Resolves once the page has been scrolled to its bottom, or after maxSteps ticks.
_SCROLL_SCRIPT = """
([distance, interval, maxSteps]) => new Promise((resolve) => {
  let total = 0;
  let steps = 0;
  const timer = setInterval(() => {
    const height = document.body ? document.body.scrollHeight : 0;
    window.scrollBy(0, distance);
    total += distance;
    steps += 1;
    if (total >= height || steps >= maxSteps) {
      clearInterval(timer);
      resolve(total);
    }
  }, interval);
})
"""


@dataclass(frozen=True, slots=True)
class RenderOptions:
    viewport_width: int = 1280
    viewport_height: int = 800
    timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    headless: bool = True
    proxy: str | None = None
    wait_for_images: bool = True
    image_load_delay_ms: int = 8000
    scroll_for_lazy_load: bool = True
    scroll_delay_ms: int = 4000
    scroll_step_px: int = 100
    scroll_interval_ms: int = 100
    scroll_max_steps: int = 300
    wait_for_selectors: tuple[str, ...] = ()
    wait_for_selector_timeout_ms: int = 12000


@dataclass(frozen=True, slots=True)
class ImageStats:
    real: int = 0
    placeholders: int = 0


@dataclass(frozen=True, slots=True)
class RenderResult:
    url: str
    html: str
    method: str
    image_stats: ImageStats = field(default_factory=ImageStats)


def is_dynamic_search_url(url: str) -> bool:
    return bool(_DYNAMIC_HOST_RE.search(url)) or "serpapi.com/searches" in url


def is_image_search_url(url: str) -> bool:
    return "tbm=isch" in url or ("google" in url and "images" in url)


def selectors_to_wait_for(url: str, configured: tuple[str, ...] = ()) -> list[str]:
    if configured:
        return list(configured)
    if is_dynamic_search_url(url):
        return [_DYNAMIC_RESULT_SELECTOR]
    return []


def count_image_sources(html: str) -> ImageStats:
    """Count <img> tags with absolute sources versus base64 placeholders."""
    real = 0
    placeholders = 0
    for tag in _IMG_TAG_RE.findall(html):
        match = _SRC_ATTR_RE.search(tag)
        src = match.group(1) if match else ""
        if src.startswith(("http://", "https://")):
            real += 1
        elif src.startswith("data:image") and ";base64" in src:
            placeholders += 1
    return ImageStats(real=real, placeholders=placeholders)


def render_html(
    url: str,
    *,
    options: RenderOptions | None = None,
    fetch_settings: FetchSettings | None = None,
) -> RenderResult:
    options = options or RenderOptions()
    try:
        html = _render_with_browser(url, options)
        method = "browser"
    except Exception as exc:
        logger.warning(
            "browser render failed, falling back to HTTP",
            url=redact_url(url),
            error=str(exc),
            error_type=type(exc).__name__,
        )
        html = _fallback_fetch(url, options, fetch_settings)
        method = "http"

    stats = count_image_sources(html)
    logger.info(
        "rendered html",
        url=redact_url(url),
        method=method,
        chars=len(html),
        real_images=stats.real,
        placeholder_images=stats.placeholders,
    )
    return RenderResult(url=url, html=html, method=method, image_stats=stats)


def _fallback_fetch(
    url: str, options: RenderOptions, fetch_settings: FetchSettings | None
) -> str:
    settings = fetch_settings or FetchSettings(timeout=options.timeout, proxy=options.proxy)
    try:
        return fetch_html(url, settings=settings).html
    except StillbrookError as exc:
        logger.error("fallback fetch failed", url=redact_url(url), error=exc.message)
        raise RenderError(
            code="render_failed",
            message=FALLBACK_FAILED_MESSAGE,
            exit_code=ExitCode.RUNTIME_ERROR,
            details={"url": redact_url(url), "fallback_error": exc.message},
        ) from exc


def _render_with_browser(url: str, options: RenderOptions) -> str:
    timeout_ms = int(options.timeout * 1000)
    launch_args: dict[str, Any] = {
        "headless": options.headless,
        "args": _LAUNCH_ARGS,
        "timeout": timeout_ms,
    }
    if options.proxy:
        launch_args["proxy"] = {"server": options.proxy}

    with sync_playwright() as playwright:
        browser = playwright.chromium.launch(**launch_args)
        try:
            context = browser.new_context(
                viewport={"width": options.viewport_width, "height": options.viewport_height},
                user_agent=options.user_agent,
            )
            page = context.new_page()
            logger.debug("navigating", url=redact_url(url))
            page.goto(url, wait_until="networkidle", timeout=timeout_ms)

            _wait_for_dynamic_content(page, url, options)

            if options.wait_for_images and options.image_load_delay_ms > 0:
                page.wait_for_timeout(options.image_load_delay_ms)

            if options.scroll_for_lazy_load and is_image_search_url(url):
                logger.debug("image search detected, scrolling for lazy images")
                page.evaluate(
                    _SCROLL_SCRIPT,
                    [options.scroll_step_px, options.scroll_interval_ms, options.scroll_max_steps],
                )
                if options.scroll_delay_ms > 0:
                    page.wait_for_timeout(options.scroll_delay_ms)

            return page.content()
        finally:
            _close_quietly(browser)


def _wait_for_dynamic_content(page: Any, url: str, options: RenderOptions) -> None:
    selectors = selectors_to_wait_for(url, options.wait_for_selectors)
    if not selectors:
        return

    timeout_ms = options.wait_for_selector_timeout_ms
    for selector in selectors:
        try:
            page.wait_for_selector(selector, timeout=timeout_ms)
        except PlaywrightTimeoutError:
            logger.warning("selector did not appear", selector=selector, timeout_ms=timeout_ms)
            continue
        logger.debug("selector appeared", selector=selector, count=page.locator(selector).count())
        return

    logger.warning("no dynamic selectors appeared, proceeding with captured HTML")


def _close_quietly(browser: Any) -> None:
    try:
        browser.close()
    except Exception as exc:
        logger.warning("failed to close browser", error=str(exc))
