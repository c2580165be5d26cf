"""
Browser Manager - Owns the single recording browser session.

One browser, one context with video recording enabled, one page.
Everything opened in initialize() is released in shutdown().
"""

import asyncio
from typing import Optional
from pathlib import Path
import structlog

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright

from ..core.errors import BrowserError

logger = structlog.get_logger()


class BrowserManager:
    """
    Manages the browser session used for one continuous take.

    Features:
    - Headed Chromium with slow-mo for watchable pacing
    - Context-level video recording at viewport size
    - Ordered teardown that tolerates partially opened sessions
    - Post-close rename of Playwright's temporary video file
    """

    def __init__(
        self,
        video_dir: str,
        headless: bool = False,
        slow_mo: int = 30,
        viewport_width: int = 1280,
        viewport_height: int = 720,
        user_agent: Optional[str] = None,
    ):
        """
        Initialize browser manager.

        Args:
            video_dir: Directory Playwright writes the recording into
            headless: Run browser in headless mode
            slow_mo: Delay added to every Playwright operation (ms)
            viewport_width: Browser viewport and video width
            viewport_height: Browser viewport and video height
            user_agent: Optional user agent override
        """
        self.video_dir = str(video_dir)
        self.headless = headless
        self.slow_mo = slow_mo
        self.viewport = {"width": viewport_width, "height": viewport_height}
        self.user_agent = user_agent

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self._lock = asyncio.Lock()
        self._initialized = False

    async def __aenter__(self) -> "BrowserManager":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()

    async def initialize(self) -> None:
        """Launch browser, create the recording context and open a page."""
        async with self._lock:
            if self._initialized:
                return

            logger.info(
                "browser_initializing",
                headless=self.headless,
                slow_mo=self.slow_mo,
                video_dir=self.video_dir,
            )

            Path(self.video_dir).mkdir(parents=True, exist_ok=True)

            self._playwright = await async_playwright().start()

            self._browser = await self._playwright.chromium.launch(
                headless=self.headless,
                slow_mo=self.slow_mo,
            )

            self._context = await self._browser.new_context(
                viewport=self.viewport,
                record_video_dir=self.video_dir,
                record_video_size=self.viewport,
                user_agent=self.user_agent,
            )

            self._page = await self._context.new_page()

            self._initialized = True
            logger.info("browser_initialized")

    async def shutdown(self) -> None:
        """
        Close page, context, browser and Playwright in that order.

        Each handle is closed independently so a failure closing one
        never leaks the others. The video file is flushed when the
        context closes.
        """
        async with self._lock:
            logger.info("browser_shutting_down")

            for name, closer in (
                ("page", self._close_page),
                ("context", self._close_context),
                ("browser", self._close_browser),
                ("playwright", self._stop_playwright),
            ):
                try:
                    await closer()
                except Exception as e:
                    logger.error("browser_shutdown_error", handle=name, error=str(e))

            self._initialized = False
            logger.info("browser_shutdown_complete")

    async def _close_page(self) -> None:
        page, self._page = self._page, None
        if page and not page.is_closed():
            await page.close()

    async def _close_context(self) -> None:
        context, self._context = self._context, None
        if context:
            await context.close()

    async def _close_browser(self) -> None:
        browser, self._browser = self._browser, None
        if browser:
            await browser.close()

    async def _stop_playwright(self) -> None:
        playwright, self._playwright = self._playwright, None
        if playwright:
            await playwright.stop()

    @property
    def page(self) -> Page:
        """The recording page."""
        if not self._initialized or self._page is None:
            raise BrowserError("Browser session is not initialized")
        return self._page

    async def video_path(self) -> Optional[str]:
        """
        Temporary path Playwright assigned to the recording.

        Must be read before the page closes.
        """
        if self._page is None or self._page.video is None:
            return None
        try:
            return str(await self._page.video.path())
        except Exception as e:
            logger.warning("video_path_unavailable", error=str(e))
            return None

    @staticmethod
    def finalize_video(temp_path: Optional[str], final_path: Path) -> Optional[Path]:
        """
        Move the finished recording to its fixed output path.

        Call after shutdown(); the file is incomplete while the context is open.

        Returns:
            The final path, or None when no recording was produced
        """
        if not temp_path or not Path(temp_path).exists():
            logger.warning("video_missing", temp_path=temp_path)
            return None

        final_path = Path(final_path)
        final_path.parent.mkdir(parents=True, exist_ok=True)
        Path(temp_path).replace(final_path)

        size_mb = final_path.stat().st_size / (1024 * 1024)
        logger.info("video_finalized", path=str(final_path), size_mb=round(size_mb, 2))
        return final_path

    @property
    def is_initialized(self) -> bool:
        """Check if browser is initialized."""
        return self._initialized
