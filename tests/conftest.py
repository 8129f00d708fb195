"""Shared fixtures: a scripted DOM session and a recording chat model."""

from dataclasses import dataclass, field
from typing import Any, Optional

import pytest
from PIL import Image

from casecraft.core.exceptions import BrowserError, BrowserTimeoutError
from casecraft.core.models import SelectOption
from casecraft.tools.dom import DomElement, DomSession


def element(
    handle: str,
    tag: str = "div",
    role: Optional[str] = None,
    input_type: Optional[str] = None,
    text: str = "",
) -> DomElement:
    return DomElement(handle=handle, tag_name=tag, role=role, input_type=input_type, text=text)


def options(*pairs: tuple[str, str]) -> list[SelectOption]:
    return [SelectOption(value=v, label=l) for v, l in pairs]


@dataclass
class FakeDomSession(DomSession):
    """DomSession over an in-memory page description."""

    elements: dict[str, list[DomElement]] = field(default_factory=dict)
    select_options: dict[str, list[SelectOption]] = field(default_factory=dict)
    timeouts: set[str] = field(default_factory=set)
    option_timeouts: set[str] = field(default_factory=set)
    failing: set[str] = field(default_factory=set)
    hidden: set[str] = field(default_factory=set)
    texts: dict[str, str] = field(default_factory=dict)
    url: str = "about:blank"
    calls: list[tuple[Any, ...]] = field(default_factory=list)
    timeouts_seen: list[int] = field(default_factory=list)

    async def find_all(self, selector, timeout_ms):
        self.calls.append(("find_all", selector))
        self.timeouts_seen.append(timeout_ms)
        if selector in self.timeouts:
            raise BrowserTimeoutError(f"No element matched {selector!r} within {timeout_ms}ms")
        return list(self.elements.get(selector, []))

    async def get_options(self, element, timeout_ms):
        self.calls.append(("get_options", element.handle))
        if element.handle in self.option_timeouts:
            raise BrowserTimeoutError("read options timed out")
        return list(self.select_options.get(element.handle, []))

    def _act(self, name, element, *args):
        self.calls.append((name, element.handle, *args))
        if element.handle in self.failing:
            raise BrowserError(f"{name} failed on {element.handle}")

    async def set_value(self, element, option_value, timeout_ms):
        self._act("set_value", element, option_value)

    async def click(self, element, timeout_ms):
        self._act("click", element)

    async def fill(self, element, value, timeout_ms):
        self._act("fill", element, value)

    async def check(self, element, checked, timeout_ms):
        self._act("check", element, checked)

    async def hover(self, element, timeout_ms):
        self._act("hover", element)

    async def is_visible(self, element, timeout_ms):
        self.calls.append(("is_visible", element.handle))
        return element.handle not in self.hidden

    async def text_content(self, element, timeout_ms):
        self.calls.append(("text_content", element.handle))
        return self.texts.get(element.handle, element.text)

    async def navigate(self, url, timeout_ms):
        self.calls.append(("navigate", url))
        self.url = url

    async def wait(self, ms):
        self.calls.append(("wait", ms))

    async def scroll(self):
        self.calls.append(("scroll",))

    async def scroll_into_view(self, element, timeout_ms):
        self._act("scroll_into_view", element)

    async def current_url(self):
        return self.url

    async def screenshot(self, path, full_page=True):
        self.calls.append(("screenshot", path))
        return path

    def performed(self, name: str) -> list[tuple[Any, ...]]:
        return [c for c in self.calls if c[0] == name]


@dataclass
class Reply:
    content: Any


class RecordingChatModel:
    """Chat model stand-in that returns scripted replies and keeps the requests."""

    def __init__(self, *replies: Any):
        self.replies = list(replies)
        self.requests: list[list[Any]] = []

    async def ainvoke(self, messages):
        self.requests.append(messages)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return Reply(content=reply)


@pytest.fixture
def dom() -> FakeDomSession:
    return FakeDomSession()


@pytest.fixture
def make_image(tmp_path):
    """Write a real image of the given size and return its path."""

    def _make(width: int, height: int, name: str = "shot.png", fmt: str = "PNG"):
        path = tmp_path / name
        Image.new("RGB", (width, height), color=(200, 30, 30)).save(path, format=fmt)
        return path

    return _make
