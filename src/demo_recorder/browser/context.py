"""
Browser Context - Demo-paced UI helpers over a Playwright page.

Lookups are best-effort: a missing or slow element logs a warning and
yields a failed ActionResult so the take keeps rolling. Navigation
failures raise, since nothing after them would be worth recording.
"""

import asyncio
from typing import Any, Optional, Callable, Awaitable
from dataclasses import dataclass
import time
import structlog

from playwright.async_api import (
    Page,
    Locator,
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
)

from ..core.config import DemoConfig
from ..core.errors import BrowserError

logger = structlog.get_logger()


LOADING_SELECTORS = (
    '[class*="loadingAnimation"]',
    '[class*="LoadingAnimation"]',
    'img[alt="Loading"]',
)

HIGHLIGHT_SCRIPT = """
(el, opts) => {
    el.style.transition = 'box-shadow 0.3s ease';
    el.style.boxShadow = `0 0 0 3px ${opts.color}, 0 0 20px ${opts.glow}`;
    setTimeout(() => { el.style.boxShadow = ''; }, opts.duration);
}
"""

ELEMENT_SCROLL_SCRIPT = "(el, d) => el.scrollBy({ top: d, behavior: 'smooth' })"
WINDOW_SCROLL_SCRIPT = "(d) => window.scrollBy({ top: d, behavior: 'smooth' })"
SCROLL_TOP_SCRIPT = "() => window.scrollTo({ top: 0, behavior: 'smooth' })"


@dataclass
class ActionResult:
    """Result of a browser action."""
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    duration_ms: float = 0


class BrowserContext:
    """
    Execution context for the scripted walkthrough.

    Wraps a Playwright page with:
    - Content-ready waits that outlast loading animations
    - Highlight-then-click for viewer cues
    - Human-speed typing
    - Smooth scrolling with a settle pause
    """

    def __init__(self, page: Page, config: DemoConfig):
        """
        Initialize browser context.

        Args:
            page: Playwright page being recorded
            config: Recorder configuration (pacing, timeouts, highlight)
        """
        self.page = page
        self.config = config
        self.delays = config.delays
        self.timeouts = config.timeouts

        self._action_count = 0
        self._failure_count = 0

    # -- navigation (raises) ------------------------------------------------

    async def navigate(self, path: str = "") -> None:
        """Go to an app route (or absolute URL)."""
        url = path if path.startswith("http") else self.config.url(path)
        try:
            await self.page.goto(url)
            self._action_count += 1
        except Exception as e:
            raise BrowserError(f"Navigation failed: {e}", url=url) from e

    async def reload(self) -> None:
        try:
            await self.page.reload()
            self._action_count += 1
        except Exception as e:
            raise BrowserError(f"Reload failed: {e}", url=self.page.url) from e

    async def wait_for_url(self, pattern: str, timeout: Optional[int] = None) -> None:
        """Wait until the page URL matches a glob pattern."""
        try:
            await self.page.wait_for_url(pattern, timeout=timeout or self.timeouts.login_redirect)
        except Exception as e:
            raise BrowserError(f"URL never matched {pattern}: {e}", url=self.page.url) from e

    async def wait_for(
        self,
        selector: str,
        state: str = "visible",
        timeout: Optional[int] = None,
    ) -> None:
        """Wait for the first match to reach a state (attached, detached, visible, hidden)."""
        try:
            await self.page.locator(selector).first.wait_for(
                state=state,
                timeout=timeout or self.timeouts.element,
            )
        except Exception as e:
            raise BrowserError(
                f"{selector} did not become {state}: {e}", selector=selector
            ) from e

    # -- pacing -------------------------------------------------------------

    async def pause(self, ms: int) -> None:
        """Hold the current frame for the viewer."""
        if ms > 0:
            await self.page.wait_for_timeout(ms)

    async def wait_for_content_ready(self) -> ActionResult:
        """Wait for network idle and for loading animations to disappear."""
        async def run():
            try:
                await self.page.wait_for_load_state("networkidle")
            except PlaywrightTimeoutError as e:
                logger.warning("network_idle_timeout", url=self.page.url, error=str(e))

            for selector in LOADING_SELECTORS:
                loading = self.page.locator(selector)
                try:
                    if await self._visible_now(loading):
                        await loading.first.wait_for(
                            state="hidden", timeout=self.timeouts.loading_hidden
                        )
                except PlaywrightError:
                    # Still spinning, record it rather than stall
                    logger.debug("loading_indicator_persisted", selector=selector)

            await self.pause(self.delays.short)
            return {"url": self.page.url}

        return await self._attempt("content_ready", None, run)

    # -- best-effort interactions -------------------------------------------

    async def is_visible(self, selector: str, timeout: Optional[int] = None) -> bool:
        """True if the first match becomes visible within the timeout."""
        return await self._visible_within(
            self.page.locator(selector), timeout or self.timeouts.presence
        )

    async def is_visible_now(self, selector: str) -> bool:
        """True if the first match is visible right now, without waiting."""
        return await self._visible_now(self.page.locator(selector))

    async def highlight_and_click(self, selector: str, delay: Optional[int] = None) -> ActionResult:
        """Flash a gold glow on the element, then click it."""
        async def run():
            locator = self.page.locator(selector).first
            await locator.wait_for(state="visible", timeout=self.timeouts.element)
            await locator.scroll_into_view_if_needed()
            await locator.evaluate(HIGHLIGHT_SCRIPT, {
                "color": self.config.highlight.color,
                "glow": self.config.highlight.glow,
                "duration": self.config.highlight.duration_ms,
            })
            await self.pause(self.config.highlight.pre_click_pause_ms)
            await locator.click()
            await self.pause(self.delays.short if delay is None else delay)
            return {"selector": selector, "action": "click"}

        return await self._attempt("click", selector, run)

    async def click(self, selector: str, delay: Optional[int] = None) -> ActionResult:
        """Plain click on the first match, no highlight."""
        async def run():
            await self.page.locator(selector).first.click(timeout=self.timeouts.element)
            if delay:
                await self.pause(delay)
            return {"selector": selector, "action": "click"}

        return await self._attempt("click", selector, run)

    async def type_text(
        self,
        selector: str,
        text: str,
        type_delay: Optional[int] = None,
        delay: Optional[int] = None,
    ) -> ActionResult:
        """
        Type text with realistic typing speed.

        Args:
            selector: Input selector (first match is used)
            text: Text to type
            type_delay: Delay between keystrokes in ms
            delay: Pause after typing in ms
        """
        async def run():
            locator = self.page.locator(selector).first
            await locator.wait_for(state="visible", timeout=self.timeouts.element)
            await locator.clear()
            await locator.press_sequentially(
                text,
                delay=self.config.typing.default_delay if type_delay is None else type_delay,
            )
            await self.pause(self.delays.short if delay is None else delay)
            return {"selector": selector, "action": "type", "length": len(text)}

        return await self._attempt("type", selector, run)

    async def hover(self, selector: str, delay: Optional[int] = None) -> ActionResult:
        async def run():
            await self.page.locator(selector).first.hover(timeout=self.timeouts.element)
            await self.pause(self.delays.medium if delay is None else delay)
            return {"selector": selector, "action": "hover"}

        return await self._attempt("hover", selector, run)

    async def press(self, key: str, delay: Optional[int] = None) -> ActionResult:
        """Press a keyboard key on the page."""
        async def run():
            await self.page.keyboard.press(key)
            if delay:
                await self.pause(delay)
            return {"key": key, "action": "press"}

        return await self._attempt("press", None, run)

    async def smooth_scroll(self, selector: Optional[str] = None, distance: int = 300) -> ActionResult:
        """Smooth scroll within an element or the page."""
        async def run():
            if selector:
                await self.page.locator(selector).first.evaluate(
                    ELEMENT_SCROLL_SCRIPT, distance, timeout=self.timeouts.element
                )
            else:
                await self.page.evaluate(WINDOW_SCROLL_SCRIPT, distance)
            await self.pause(self.delays.medium)
            return {"selector": selector, "distance": distance}

        return await self._attempt("scroll", selector, run)

    async def scroll_to_top(self) -> ActionResult:
        async def run():
            await self.page.evaluate(SCROLL_TOP_SCRIPT)
            await self.pause(self.delays.medium)
            return {"distance": "top"}

        return await self._attempt("scroll", None, run)

    async def remove_local_storage(self, key: str) -> ActionResult:
        async def run():
            await self.page.evaluate("(k) => localStorage.removeItem(k)", key)
            return {"key": key, "action": "remove"}

        return await self._attempt("local_storage", None, run)

    async def set_local_storage(self, key: str, value: str) -> ActionResult:
        async def run():
            await self.page.evaluate(
                "([k, v]) => localStorage.setItem(k, v)", [key, value]
            )
            return {"key": key, "action": "set"}

        return await self._attempt("local_storage", None, run)

    # -- internals ----------------------------------------------------------

    async def _visible_within(self, locator: Locator, timeout: int) -> bool:
        try:
            await locator.first.wait_for(state="visible", timeout=timeout)
            return True
        except PlaywrightError:
            return False

    async def _visible_now(self, locator: Locator) -> bool:
        try:
            return await locator.first.is_visible()
        except PlaywrightError:
            return False

    async def _attempt(
        self,
        action: str,
        selector: Optional[str],
        run: Callable[[], Awaitable[Any]],
    ) -> ActionResult:
        """Run one UI step, converting failures into a logged, failed result."""
        start_time = time.monotonic()
        try:
            data = await run()
            self._action_count += 1
            return ActionResult(
                success=True,
                data=data,
                duration_ms=(time.monotonic() - start_time) * 1000,
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._failure_count += 1
            logger.warning("ui_action_failed", action=action, selector=selector, error=str(e))
            return ActionResult(
                success=False,
                error=str(e),
                duration_ms=(time.monotonic() - start_time) * 1000,
            )

    @property
    def url(self) -> str:
        """Get current page URL."""
        return self.page.url

    @property
    def action_count(self) -> int:
        """Get total successful action count."""
        return self._action_count

    @property
    def failure_count(self) -> int:
        """Get count of steps that were skipped."""
        return self._failure_count
