"""
CaseCraft Asyncio Compatibility Module

Handles platform-specific asyncio configuration, particularly for Windows
where Playwright requires special event loop handling.
"""

import asyncio
import concurrent.futures
import sys
from typing import Any, Coroutine, TypeVar

T = TypeVar("T")


def configure_event_loop() -> None:
    """
    Configure the event loop for the current platform.

    On Windows, Playwright launches its driver as a subprocess, which only
    the ProactorEventLoop supports.
    """
    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run a coroutine from synchronous code.

    Falls back to a worker thread when called from inside a running loop.

    Args:
        coro: The coroutine to run

    Returns:
        The result of the coroutine
    """
    configure_event_loop()

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(asyncio.run, coro)
        return future.result()
