"""
CaseCraft DOM Session

The contract the resolution engine uses to query and act on a live DOM,
and its Playwright implementation. Every call takes a timeout in
milliseconds; expiry raises BrowserTimeoutError, any other driver
failure raises BrowserError.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Optional, TypeVar

from playwright.async_api import ElementHandle, Page
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from casecraft.core.exceptions import BrowserError, BrowserNavigationError, BrowserTimeoutError
from casecraft.core.models import SelectOption
from casecraft.tools.prioritizer import ElementCategory, categorize

T = TypeVar("T")


@dataclass
class DomElement:
    """An element returned by a DOM query, with the facts used for ranking."""

    handle: Any
    tag_name: str
    role: Optional[str] = None
    input_type: Optional[str] = None
    text: str = ""
    category: ElementCategory = field(init=False)

    def __post_init__(self):
        self.category = categorize(self.tag_name, self.role, self.input_type)

    def describe(self) -> str:
        kind = self.tag_name
        if self.input_type:
            kind += f"[type={self.input_type}]"
        if self.role:
            kind += f"[role={self.role}]"
        return f'{kind} "{self.text[:50]}"' if self.text else kind


class DomSession(ABC):
    """Query and act on one page. One session per test case execution."""

    @abstractmethod
    async def find_all(self, selector: str, timeout_ms: int) -> list[DomElement]:
        """All elements matching the selector, in document order."""

    @abstractmethod
    async def get_options(self, element: DomElement, timeout_ms: int) -> list[SelectOption]:
        """The (value, label) pairs of a select element, in document order."""

    @abstractmethod
    async def set_value(self, element: DomElement, option_value: str, timeout_ms: int) -> None:
        """Select the option with the given underlying value."""

    @abstractmethod
    async def click(self, element: DomElement, timeout_ms: int) -> None:
        """Click an element."""

    @abstractmethod
    async def fill(self, element: DomElement, value: str, timeout_ms: int) -> None:
        """Replace the content of an input element."""

    @abstractmethod
    async def check(self, element: DomElement, checked: bool, timeout_ms: int) -> None:
        """Check or uncheck a checkbox or radio."""

    @abstractmethod
    async def hover(self, element: DomElement, timeout_ms: int) -> None:
        """Move the pointer over an element."""

    @abstractmethod
    async def is_visible(self, element: DomElement, timeout_ms: int) -> bool:
        """Whether an element becomes visible within the timeout."""

    @abstractmethod
    async def text_content(self, element: DomElement, timeout_ms: int) -> str:
        """The text content of an element."""

    @abstractmethod
    async def navigate(self, url: str, timeout_ms: int) -> None:
        """Load a URL."""

    @abstractmethod
    async def wait(self, ms: int) -> None:
        """Pause for a number of milliseconds."""

    @abstractmethod
    async def scroll(self) -> None:
        """Scroll to the bottom of the page."""

    @abstractmethod
    async def scroll_into_view(self, element: DomElement, timeout_ms: int) -> None:
        """Scroll until the element is in the viewport."""

    @abstractmethod
    async def current_url(self) -> str:
        """The URL currently loaded."""

    @abstractmethod
    async def screenshot(self, path: str, full_page: bool = True) -> str:
        """Save a screenshot and return its path."""


_DESCRIBE_JS = """
el => ({
    tag: el.tagName.toLowerCase(),
    role: el.getAttribute('role'),
    type: el.getAttribute('type'),
    text: ((el.innerText || el.textContent || el.value || '') + '').trim().slice(0, 200),
})
"""

_OPTIONS_JS = """
el => Array.from(el.options || []).map(o => ({
    value: o.value,
    label: (o.label || o.textContent || '').trim(),
}))
"""


class PlaywrightDomSession(DomSession):
    """DomSession over a Playwright async Page."""

    def __init__(self, page: Page):
        self.page = page

    async def _bounded(self, awaitable: Awaitable[T], timeout_ms: int, what: str) -> T:
        """Run a driver call that has no timeout parameter of its own."""
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout_ms / 1000)
        except asyncio.TimeoutError as e:
            raise BrowserTimeoutError(
                f"{what} timed out after {timeout_ms}ms", tool_name="playwright"
            ) from e
        except PlaywrightError as e:
            raise BrowserError(f"{what} failed: {e}", tool_name="playwright") from e

    async def _call(self, awaitable: Awaitable[T], what: str) -> T:
        """Run a driver call that enforces its own timeout."""
        try:
            return await awaitable
        except PlaywrightTimeoutError as e:
            raise BrowserTimeoutError(f"{what} timed out", tool_name="playwright") from e
        except PlaywrightError as e:
            raise BrowserError(f"{what} failed: {e}", tool_name="playwright") from e

    async def find_all(self, selector: str, timeout_ms: int) -> list[DomElement]:
        try:
            await self.page.wait_for_selector(selector, state="attached", timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise BrowserTimeoutError(
                f"No element matched {selector!r} within {timeout_ms}ms",
                tool_name="playwright",
                details={"selector": selector},
            ) from e
        except PlaywrightError:
            # Invalid selector syntax matches nothing
            return []

        handles: list[ElementHandle] = await self._call(
            self.page.query_selector_all(selector), f"query {selector!r}"
        )
        elements = []
        for handle in handles:
            info = await self._bounded(handle.evaluate(_DESCRIBE_JS), timeout_ms, "describe element")
            elements.append(
                DomElement(
                    handle=handle,
                    tag_name=info["tag"],
                    role=info.get("role"),
                    input_type=info.get("type"),
                    text=info.get("text") or "",
                )
            )
        return elements

    async def get_options(self, element: DomElement, timeout_ms: int) -> list[SelectOption]:
        raw = await self._bounded(element.handle.evaluate(_OPTIONS_JS), timeout_ms, "read options")
        return [SelectOption(value=o["value"], label=o["label"]) for o in raw]

    async def set_value(self, element: DomElement, option_value: str, timeout_ms: int) -> None:
        await self._call(
            element.handle.select_option(value=option_value, timeout=timeout_ms),
            f"select {option_value!r}",
        )

    async def click(self, element: DomElement, timeout_ms: int) -> None:
        await self._call(element.handle.click(timeout=timeout_ms), f"click {element.describe()}")

    async def fill(self, element: DomElement, value: str, timeout_ms: int) -> None:
        await self._call(element.handle.fill(value, timeout=timeout_ms), f"fill {element.describe()}")

    async def check(self, element: DomElement, checked: bool, timeout_ms: int) -> None:
        if checked:
            await self._call(element.handle.check(timeout=timeout_ms), "check")
        else:
            await self._call(element.handle.uncheck(timeout=timeout_ms), "uncheck")

    async def hover(self, element: DomElement, timeout_ms: int) -> None:
        await self._call(element.handle.hover(timeout=timeout_ms), "hover")

    async def is_visible(self, element: DomElement, timeout_ms: int) -> bool:
        try:
            await element.handle.wait_for_element_state("visible", timeout=timeout_ms)
        except PlaywrightTimeoutError:
            return False
        except PlaywrightError as e:
            raise BrowserError(f"visibility check failed: {e}", tool_name="playwright") from e
        return True

    async def text_content(self, element: DomElement, timeout_ms: int) -> str:
        text = await self._bounded(element.handle.text_content(), timeout_ms, "read text")
        return text or ""

    async def navigate(self, url: str, timeout_ms: int) -> None:
        try:
            await self.page.goto(url, wait_until="networkidle", timeout=timeout_ms)
        except PlaywrightError as e:
            raise BrowserNavigationError(
                f"Failed to navigate to {url}: {e}",
                tool_name="playwright",
                details={"url": url},
            ) from e

    async def wait(self, ms: int) -> None:
        await self.page.wait_for_timeout(ms)

    async def scroll(self) -> None:
        await self._call(
            self.page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)"),
            "scroll",
        )

    async def scroll_into_view(self, element: DomElement, timeout_ms: int) -> None:
        await self._call(
            element.handle.scroll_into_view_if_needed(timeout=timeout_ms),
            f"scroll to {element.describe()}",
        )

    async def current_url(self) -> str:
        return self.page.url

    async def screenshot(self, path: str, full_page: bool = True) -> str:
        await self._call(self.page.screenshot(path=path, full_page=full_page), "screenshot")
        return path
