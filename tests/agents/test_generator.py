"""Tests for the screenshot to test case pipeline."""

import asyncio
import json

import pytest

from casecraft.agents.base import RetryConfig
from casecraft.agents.generator import TestCaseGenerator, build_basic_test_case
from casecraft.core.exceptions import (
    AIResponseMalformedJSONError,
    AIResponseNoJSONError,
    CaptureError,
    ValidationFailedError,
)
from casecraft.generation.validator import validate_test_case
from casecraft.tools.imaging import ScreenshotPreprocessor, resized_path_for
from tests.conftest import RecordingChatModel

REPLY = """I analyzed the page. Here is the test case:
{
  "testCase": {
    "name": "Teacher signup",
    "description": "Fill the signup form",
    "url": "https://example.test/signup",
    "actions": [
      {"type": "fill", "locator": "#name", "value": "Ada", "description": "Enter name"},
      {"type": "select", "selector": "#teachergrade, select[name=teachergrade]", "value": "Level-01",
       "description": "Pick grade"},
      {"type": "click", "selector": "text=Register", "elementType": "button", "description": "Submit"}
    ]
  }
}
Let me know if you need more."""


class FakeBrowser:
    def __init__(self, make_image, fail=False):
        self.make_image = make_image
        self.fail = fail
        self.captured = []

    async def take_screenshot(self, url, path=None):
        if self.fail:
            raise CaptureError(f"Failed to capture screenshot of {url}")
        path = self.make_image(1600, 900, name="capture.png")
        self.captured.append(path)
        return str(path)


def make_generator(*replies, browser=None):
    return TestCaseGenerator(
        llm=RecordingChatModel(*replies),
        preprocessor=ScreenshotPreprocessor(max_dimension=500),
        browser=browser,
        retry_config=RetryConfig(max_retries=0),
    )


async def test_generate_end_to_end(make_image):
    generator = make_generator(REPLY)
    source = make_image(1920, 1080)

    test_case = await generator.generate(source, url="https://example.test/signup")

    assert test_case.name == "Teacher signup"
    assert [a.type for a in test_case.actions] == ["fill", "select", "click"]
    assert test_case.actions[0].selector == "#name"
    assert test_case.actions[2].element_type == "button"

    request = generator.llm.requests[0]
    parts = request[-1].content
    image_url = next(p for p in parts if p["type"] == "image_url")["image_url"]["url"]
    assert image_url.startswith("data:image/jpeg;base64,")
    assert not resized_path_for(source).exists()
    assert source.exists()


async def test_small_screenshot_keeps_png_mime(make_image):
    generator = make_generator(REPLY)

    await generator.generate(make_image(400, 300))

    parts = generator.llm.requests[0][-1].content
    assert parts[1]["image_url"]["url"].startswith("data:image/png;base64,")


async def test_flat_reply_and_missing_url_are_accepted(make_image):
    flat = json.dumps({
        "name": "Flat",
        "actions": [{"type": "click", "selector": "#go", "description": "go"}],
    })
    generator = make_generator(flat)

    test_case = await generator.generate(make_image(100, 100), url="https://example.test")

    assert test_case.url == "https://example.test"


@pytest.mark.parametrize(
    "reply,error",
    [
        ("Sorry, I cannot help with that.", AIResponseNoJSONError),
        ('{"testCase": {"name": "x",}', AIResponseMalformedJSONError),
        ('{"testCase": {"name": "x", "url": "u", "actions": [{"type": "select", "description": "d"}]}}',
         ValidationFailedError),
        ('{"testCase": {"name": "x", "url": "u", "actions": [{"type": {"k": 1}, "description": "d"}]}}',
         ValidationFailedError),
    ],
)
async def test_each_failure_has_its_own_error(make_image, reply, error):
    generator = make_generator(reply)
    source = make_image(1920, 1080)

    with pytest.raises(error):
        await generator.generate(source)

    assert not resized_path_for(source).exists()


async def test_validation_error_lists_issues(make_image):
    reply = '{"testCase": {"name": "x", "url": "u", "actions": [{"type": "select", "description": "d"}]}}'
    generator = make_generator(reply)

    with pytest.raises(ValidationFailedError) as exc_info:
        await generator.generate(make_image(100, 100))

    assert [i.action_index for i in exc_info.value.issues] == [0]


async def test_generate_from_url_removes_capture(make_image):
    browser = FakeBrowser(make_image)
    generator = make_generator(REPLY, browser=browser)

    await generator.generate_from_url("https://example.test/signup")

    assert browser.captured
    assert not browser.captured[0].exists()
    assert not resized_path_for(browser.captured[0]).exists()


async def test_generate_from_url_removes_capture_on_failure(make_image):
    browser = FakeBrowser(make_image)
    generator = make_generator("no json here", browser=browser)

    with pytest.raises(AIResponseNoJSONError):
        await generator.generate_from_url("https://example.test")

    assert not browser.captured[0].exists()


async def test_capture_failure_propagates(make_image):
    generator = make_generator(REPLY, browser=FakeBrowser(make_image, fail=True))

    with pytest.raises(CaptureError):
        await generator.generate_from_url("https://example.test")

    assert generator.llm.requests == []


async def test_cancellation_cleans_up(make_image):
    class SlowModel(RecordingChatModel):
        async def ainvoke(self, messages):
            await asyncio.sleep(10)

    source = make_image(1920, 1080)
    generator = TestCaseGenerator(llm=SlowModel(REPLY), preprocessor=ScreenshotPreprocessor(500))

    task = asyncio.create_task(generator.generate(source))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert not resized_path_for(source).exists()


@pytest.mark.parametrize(
    "url,expected_type",
    [
        ("https://github.com/org/repo", "click"),
        ("https://www.google.com/", "fill"),
        ("https://shop.example.test/", "click"),
    ],
)
def test_basic_test_case_is_valid(url, expected_type):
    test_case = build_basic_test_case(url)

    assert validate_test_case(test_case.to_dict()) == []
    assert test_case.actions[-1].type == expected_type
    assert test_case.url == url


def test_basic_test_case_strips_www():
    assert build_basic_test_case("https://www.example.test").name == "Basic Test for example.test"
