"""
CaseCraft Test Case Executor

Runs the actions of a TestCaseDescriptor one after another against a
single DomSession. Element-targeting actions go through the resolution
engine; page-level actions (navigate, wait without selector, scroll,
verify) are handled here.
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from casecraft.core.config import settings
from casecraft.core.exceptions import BrowserError, TestCaseLoadError, ValidationFailedError
from casecraft.core.models import (
    ActionDescriptor,
    ActionType,
    StepResult,
    StepStatus,
    TestCaseDescriptor,
    TestRunResult,
)
from casecraft.generation.normalizer import normalize_action
from casecraft.generation.validator import validate_test_case
from casecraft.tools.dom import DomSession
from casecraft.tools.resolver import ActionResolver

logger = logging.getLogger(__name__)

# Wait values below this are read as seconds, at or above as milliseconds
SECONDS_THRESHOLD = 100
DEFAULT_WAIT_MS = 1000


def wait_duration_ms(value: Optional[str]) -> int:
    """
    Milliseconds to pause for a selector-less wait action.

    Generated test cases give waits in seconds ("2"), hand-written ones in
    milliseconds ("1500").
    """
    if not value:
        return DEFAULT_WAIT_MS
    try:
        amount = float(value)
    except ValueError:
        logger.debug(f"Non-numeric wait value {value!r}, using {DEFAULT_WAIT_MS}ms")
        return DEFAULT_WAIT_MS
    if amount < 0:
        return 0
    if amount < SECONDS_THRESHOLD:
        return int(amount * 1000)
    return int(amount)


def load_test_case(source: Union[str, Path, dict[str, Any]]) -> TestCaseDescriptor:
    """
    Load a test case from a JSON file or an already parsed mapping.

    A top-level "testCase" wrapper is unwrapped. Actions are normalized
    before validation.

    Raises:
        TestCaseLoadError: If the file cannot be read or is not JSON
        ValidationFailedError: If the test case has the wrong shape
    """
    if isinstance(source, dict):
        data = source
    else:
        path = Path(source)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise TestCaseLoadError(f"Cannot read test case file: {e}", details={"path": str(path)}) from e
        except json.JSONDecodeError as e:
            raise TestCaseLoadError(f"Test case file is not valid JSON: {e}", details={"path": str(path)}) from e

    if isinstance(data, dict) and isinstance(data.get("testCase"), dict):
        data = data["testCase"]

    if isinstance(data, dict) and isinstance(data.get("actions"), list):
        data = {
            **data,
            "actions": [normalize_action(a) if isinstance(a, dict) else a for a in data["actions"]],
        }

    issues = validate_test_case(data)
    if issues:
        raise ValidationFailedError("Invalid test case", issues=issues)

    try:
        return TestCaseDescriptor.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationFailedError(f"Invalid test case: {e}") from e


class ActionExecutor:
    """
    Executes test case actions on one DOM session.

    Actions run strictly in order; a failed step stops the run unless
    stop_on_failure is off.
    """

    def __init__(
        self,
        session: DomSession,
        resolver: Optional[ActionResolver] = None,
        navigation_timeout_ms: Optional[int] = None,
    ):
        """
        Initialize the action executor.

        Args:
            session: DOM session of the page under test
            resolver: Resolution engine for element actions
            navigation_timeout_ms: Timeout for navigate actions
        """
        self.session = session
        self.resolver = resolver or ActionResolver()
        self.navigation_timeout_ms = navigation_timeout_ms or settings.default_timeout * 1000

    async def execute(self, action: ActionDescriptor, index: int = 0) -> StepResult:
        """
        Execute a single action.

        Args:
            action: The action to execute
            index: Position of the action in its test case

        Returns:
            StepResult with status and, for element actions, the resolution outcome
        """
        start = time.monotonic()
        step = StepResult(
            index=index,
            action_type=action.type,
            description=action.description,
            status=StepStatus.PASSED,
        )

        try:
            if action.type == ActionType.NAVIGATE.value:
                url = action.value or action.target
                if not url:
                    step.status = StepStatus.FAILED
                    step.message = "Navigate action has no URL"
                else:
                    await self.session.navigate(url, self.navigation_timeout_ms)
                    step.message = f"Navigated to {url}"
            elif action.type == ActionType.WAIT.value and not action.target:
                ms = wait_duration_ms(action.value)
                await self.session.wait(ms)
                step.message = f"Waited {ms}ms"
            elif action.type == ActionType.SCROLL.value and not action.target:
                await self.session.scroll()
                step.message = "Scrolled to bottom"
            elif action.type == ActionType.VERIFY.value and not action.target:
                current = await self.session.current_url()
                expected = action.value or ""
                if expected not in current:
                    step.status = StepStatus.FAILED
                    step.message = f"Expected URL containing {expected!r}, got {current!r}"
                else:
                    step.message = f"URL contains {expected!r}"
            elif action.action_type is None:
                step.status = StepStatus.FAILED
                step.message = f"Unknown action type: {action.type}"
            else:
                outcome = await self.resolver.resolve(action, self.session)
                step.outcome = outcome
                if outcome.success:
                    step.message = f"Resolved via {outcome.matched_candidate}"
                else:
                    step.status = StepStatus.FAILED
                    step.message = outcome.error_message or "Action could not be resolved"
        except BrowserError as e:
            step.status = StepStatus.FAILED
            step.message = e.message

        step.duration_ms = int((time.monotonic() - start) * 1000)
        if step.passed:
            logger.info(f"Step {index + 1} [{action.type}] passed: {action.description}")
        else:
            logger.warning(f"Step {index + 1} [{action.type}] failed: {step.message}")
        return step

    async def execute_sequence(
        self,
        actions: list[ActionDescriptor],
        stop_on_failure: bool = True,
    ) -> list[StepResult]:
        """
        Execute a sequence of actions.

        Args:
            actions: List of actions to execute
            stop_on_failure: Whether to stop on first failure

        Returns:
            One StepResult per action; actions after a stopping failure
            are reported as skipped
        """
        results: list[StepResult] = []
        stopped = False
        for index, action in enumerate(actions):
            if stopped:
                results.append(
                    StepResult(
                        index=index,
                        action_type=action.type,
                        description=action.description,
                        status=StepStatus.SKIPPED,
                    )
                )
                continue

            result = await self.execute(action, index)
            results.append(result)

            if not result.passed and stop_on_failure:
                stopped = True

        return results

    async def run(self, test_case: TestCaseDescriptor, stop_on_failure: bool = True) -> TestRunResult:
        """
        Navigate to the test case URL and execute its actions.

        Returns:
            TestRunResult with one step result per action
        """
        run = TestRunResult(name=test_case.name, url=test_case.url)
        start = time.monotonic()
        logger.info(f"Running test case {test_case.name!r} ({len(test_case.actions)} actions)")

        actions = list(test_case.actions)
        first = actions[0] if actions else None
        if first is None or first.type != ActionType.NAVIGATE.value:
            try:
                await self.session.navigate(test_case.url, self.navigation_timeout_ms)
            except BrowserError as e:
                run.error_message = e.message
                run.duration_ms = int((time.monotonic() - start) * 1000)
                return run

        run.steps = await self.execute_sequence(actions, stop_on_failure=stop_on_failure)
        failed = next((s for s in run.steps if s.status == StepStatus.FAILED), None)
        if failed is not None:
            run.error_message = f"Step {failed.index + 1} failed: {failed.message}"

        run.duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(f"Test case {test_case.name!r} {'passed' if run.passed else 'failed'}")
        return run
