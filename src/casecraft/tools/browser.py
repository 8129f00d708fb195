"""
CaseCraft Browser Tool

Playwright browser lifecycle, page screenshot capture and test case
execution.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from playwright.async_api import Browser, Page, async_playwright
from playwright.async_api import Error as PlaywrightError

from casecraft import __version__
from casecraft.core.config import BrowserType, settings
from casecraft.core.exceptions import BrowserError, CaptureError
from casecraft.core.models import TestCaseDescriptor, TestRunResult
from casecraft.tools.actions import ActionExecutor
from casecraft.tools.dom import PlaywrightDomSession
from casecraft.tools.resolver import ActionResolver

logger = logging.getLogger(__name__)


def screenshot_path(directory: Optional[str] = None, prefix: str = "screenshot") -> Path:
    """A unique PNG path under the screenshot directory."""
    folder = Path(directory or settings.screenshot_dir)
    folder.mkdir(parents=True, exist_ok=True)
    return folder / f"{prefix}-{uuid.uuid4().hex[:12]}.png"


class BrowserTool:
    """
    Browser automation tool using Playwright.

    Provides methods for:
    - Screenshot capture for test case generation
    - Test case execution through the resolution engine
    """

    def __init__(
        self,
        headless: Optional[bool] = None,
        browser_type: Optional[BrowserType] = None,
    ):
        self.headless = settings.headless if headless is None else headless
        self.browser_type = browser_type or settings.browser_type

    @asynccontextmanager
    async def get_browser(self) -> AsyncIterator[Browser]:
        """Context manager for browser instance."""
        async with async_playwright() as p:
            launcher = getattr(p, self.browser_type.value)
            browser = await launcher.launch(headless=self.headless)
            try:
                yield browser
            finally:
                await browser.close()

    @asynccontextmanager
    async def get_page(self, browser: Browser) -> AsyncIterator[Page]:
        """Context manager for page instance."""
        context = await browser.new_context(
            viewport={"width": settings.viewport_width, "height": settings.viewport_height},
            user_agent=f"CaseCraft/{__version__} (Test Case Runner)",
        )
        page = await context.new_page()
        page.set_default_timeout(settings.action_timeout_ms)
        try:
            yield page
        finally:
            await context.close()

    async def take_screenshot(self, url: str, path: Optional[str] = None) -> str:
        """
        Take a full-page screenshot of a URL.

        Args:
            url: The URL to screenshot
            path: Where to save the screenshot; a unique name is chosen
                under the screenshot directory when omitted

        Returns:
            Path to the saved screenshot

        Raises:
            CaptureError: If the page cannot be loaded or captured
        """
        target = Path(path) if path else screenshot_path(prefix="capture")
        logger.info(f"Capturing screenshot of {url}")
        try:
            async with self.get_browser() as browser:
                async with self.get_page(browser) as page:
                    await page.goto(url, wait_until="networkidle", timeout=settings.default_timeout * 1000)
                    await page.screenshot(path=str(target), full_page=True)
        except PlaywrightError as e:
            target.unlink(missing_ok=True)
            raise CaptureError(f"Failed to capture screenshot of {url}: {e}", details={"url": url}) from e

        logger.info(f"Screenshot saved: {target}")
        return str(target)

    async def run_test_case(
        self,
        test_case: TestCaseDescriptor,
        stop_on_failure: bool = True,
        resolver: Optional[ActionResolver] = None,
    ) -> TestRunResult:
        """
        Execute a test case in a fresh browser.

        A screenshot is captured when the run fails.

        Args:
            test_case: The test case to execute
            stop_on_failure: Whether to stop on the first failed step
            resolver: Resolution engine to use

        Returns:
            TestRunResult with per-step results
        """
        async with self.get_browser() as browser:
            async with self.get_page(browser) as page:
                session = PlaywrightDomSession(page)
                executor = ActionExecutor(session, resolver=resolver)
                result = await executor.run(test_case, stop_on_failure=stop_on_failure)

                if not result.passed:
                    try:
                        result.screenshot_path = await session.screenshot(
                            str(screenshot_path(prefix="error"))
                        )
                        logger.info(f"Error screenshot saved: {result.screenshot_path}")
                    except BrowserError as e:
                        logger.warning(f"Failed to capture error screenshot: {e.message}")

        return result
