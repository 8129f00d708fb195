"""
CaseCraft Action Resolution Engine

Maps an action descriptor onto one concrete operation against a live DOM.

Each candidate of the selector expression is tried in order. A candidate
that matches nothing, times out, or (for select actions) offers no option
matching the target value is logged and the next candidate is tried. The
first success wins; when every candidate fails the outcome carries the
last error and the complete attempt log.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from casecraft.core.config import settings
from casecraft.core.exceptions import (
    AllCandidatesExhaustedError,
    BrowserError,
    BrowserTimeoutError,
    ErrorKind,
)
from casecraft.core.models import (
    ActionDescriptor,
    ActionType,
    AttemptStatus,
    CandidateAttempt,
    MatchStrategy,
    ResolutionOutcome,
    SelectOption,
)
from casecraft.tools.dom import DomElement, DomSession
from casecraft.tools.prioritizer import prioritize
from casecraft.tools.selectors import SelectorExpression, is_text_query, parse_selector_expression

logger = logging.getLogger(__name__)


OptionPredicate = Callable[[SelectOption, str], bool]

# Evaluated in this order; the first strategy with a matching option wins.
STRATEGY_CASCADE: tuple[tuple[MatchStrategy, OptionPredicate], ...] = (
    (MatchStrategy.EXACT_VALUE, lambda option, target: option.value == target),
    (MatchStrategy.EXACT_LABEL, lambda option, target: option.label == target),
    (
        MatchStrategy.CASE_INSENSITIVE_VALUE,
        lambda option, target: option.value.casefold() == target.casefold(),
    ),
    (
        MatchStrategy.CASE_INSENSITIVE_LABEL,
        lambda option, target: option.label.casefold() == target.casefold(),
    ),
)


@dataclass(frozen=True)
class StrategyResult:
    """Result of evaluating one strategy over the option list."""

    strategy: MatchStrategy
    option: Optional[SelectOption] = None

    @property
    def matched(self) -> bool:
        return self.option is not None


def run_cascade(options: Sequence[SelectOption], target: str) -> list[StrategyResult]:
    """
    Evaluate the strategy cascade until one strategy matches.

    Args:
        options: Select options in document order
        target: The value the test wants selected

    Returns:
        One result per strategy evaluated; only the last can be a match
    """
    results = []
    for strategy, predicate in STRATEGY_CASCADE:
        option = next((o for o in options if predicate(o, target)), None)
        results.append(StrategyResult(strategy=strategy, option=option))
        if option is not None:
            break
    return results


def match_option(options: Sequence[SelectOption], target: str) -> Optional[StrategyResult]:
    """The winning strategy and option, or None if no strategy matches."""
    results = run_cascade(options, target)
    if results and results[-1].matched:
        return results[-1]
    return None


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class ActionResolver:
    """
    Resolves action descriptors against a DomSession.

    Holds configuration only, so one resolver can serve concurrent
    executions that each own their DOM session.
    """

    def __init__(self, timeout_ms: Optional[int] = None):
        """
        Initialize the resolver.

        Args:
            timeout_ms: Default bound for each DOM query or action
        """
        self.timeout_ms = settings.action_timeout_ms if timeout_ms is None else timeout_ms

    async def resolve(self, action: ActionDescriptor, session: DomSession) -> ResolutionOutcome:
        """
        Resolve and perform one action.

        Args:
            action: The action descriptor
            session: DOM session of the page under test

        Returns:
            ResolutionOutcome with the matched candidate or the attempt log
        """
        expression = parse_selector_expression(action.target)
        return await self.resolve_expression(expression, action, session)

    async def resolve_or_raise(self, action: ActionDescriptor, session: DomSession) -> ResolutionOutcome:
        """Like resolve, but raise AllCandidatesExhaustedError on failure."""
        outcome = await self.resolve(action, session)
        if not outcome.success:
            raise AllCandidatesExhaustedError(
                f"Could not resolve {action.type} on {action.target!r}: {outcome.error_message}",
                outcome=outcome,
                details={"selector": action.target, "value": action.value},
            )
        return outcome

    async def resolve_expression(
        self,
        expression: SelectorExpression,
        action: ActionDescriptor,
        session: DomSession,
    ) -> ResolutionOutcome:
        """Try each candidate of an already parsed expression."""
        if not expression:
            logger.warning(f"No candidate selectors for {action.type} action: {action.description!r}")
            return ResolutionOutcome(
                success=False,
                error=ErrorKind.ALL_CANDIDATES_EXHAUSTED,
                error_message="no candidates",
                no_candidates=True,
            )

        timeout_ms = self.timeout_ms if action.timeout is None else action.timeout
        attempts: list[CandidateAttempt] = []

        for candidate in expression:
            attempt = await self._try_candidate(candidate, action, session, timeout_ms)
            attempts.append(attempt)

            if attempt.succeeded:
                logger.info(
                    f"Resolved {action.type} via {candidate!r}"
                    + (f" ({attempt.strategy.value})" if attempt.strategy else "")
                )
                return ResolutionOutcome(
                    success=True,
                    matched_candidate=candidate,
                    matched_strategy=attempt.strategy,
                    matched_value=attempt.attempted_value,
                    attempts=tuple(attempts),
                )

            logger.debug(f"Candidate {candidate!r} failed: {attempt.status.value} {attempt.message}")

        last = attempts[-1]
        logger.warning(
            f"All {len(attempts)} candidate(s) failed for {action.type} on {expression.raw!r}"
        )
        return ResolutionOutcome(
            success=False,
            error=last.error,
            error_message=last.message,
            attempts=tuple(attempts),
        )

    async def _try_candidate(
        self,
        candidate: str,
        action: ActionDescriptor,
        session: DomSession,
        timeout_ms: int,
    ) -> CandidateAttempt:
        start = time.monotonic()

        try:
            elements = await session.find_all(candidate, timeout_ms)
        except BrowserTimeoutError as e:
            return CandidateAttempt(
                candidate=candidate,
                status=AttemptStatus.TIMEOUT,
                error=ErrorKind.ELEMENT_NOT_FOUND,
                message=e.message,
                elapsed_ms=_elapsed_ms(start),
            )
        except BrowserError as e:
            return CandidateAttempt(
                candidate=candidate,
                status=AttemptStatus.ELEMENT_NOT_FOUND,
                error=ErrorKind.ELEMENT_NOT_FOUND,
                message=e.message,
                elapsed_ms=_elapsed_ms(start),
            )

        if not elements:
            return CandidateAttempt(
                candidate=candidate,
                status=AttemptStatus.ELEMENT_NOT_FOUND,
                error=ErrorKind.ELEMENT_NOT_FOUND,
                message=f"No element matches {candidate!r}",
                elapsed_ms=_elapsed_ms(start),
            )

        if action.type == ActionType.SELECT.value:
            return await self._select(candidate, elements, action, session, timeout_ms, start)

        try:
            return await self._act(candidate, elements, action, session, timeout_ms, start)
        except BrowserTimeoutError as e:
            return CandidateAttempt(
                candidate=candidate,
                status=AttemptStatus.TIMEOUT,
                error=ErrorKind.ACTION_FAILED,
                message=e.message,
                attempted_value=action.value,
                elapsed_ms=_elapsed_ms(start),
            )
        except BrowserError as e:
            return CandidateAttempt(
                candidate=candidate,
                status=AttemptStatus.ACTION_FAILED,
                error=ErrorKind.ACTION_FAILED,
                message=e.message,
                attempted_value=action.value,
                elapsed_ms=_elapsed_ms(start),
            )

    async def _select(
        self,
        candidate: str,
        elements: list[DomElement],
        action: ActionDescriptor,
        session: DomSession,
        timeout_ms: int,
        start: float,
    ) -> CandidateAttempt:
        """Apply the strategy cascade to the first select-like match."""
        element = prioritize(elements, action.element_type or "select")[0]
        target = action.value or ""

        try:
            options = await session.get_options(element, timeout_ms)
        except BrowserTimeoutError as e:
            return CandidateAttempt(
                candidate=candidate,
                status=AttemptStatus.TIMEOUT,
                error=ErrorKind.NO_STRATEGY_MATCHED,
                message=e.message,
                attempted_value=target,
                elapsed_ms=_elapsed_ms(start),
            )
        except BrowserError as e:
            return CandidateAttempt(
                candidate=candidate,
                status=AttemptStatus.NO_STRATEGY_MATCHED,
                error=ErrorKind.NO_STRATEGY_MATCHED,
                message=e.message,
                attempted_value=target,
                elapsed_ms=_elapsed_ms(start),
            )

        results = run_cascade(options, target)
        tried = tuple(r.strategy for r in results)
        winner = results[-1] if results and results[-1].matched else None

        if winner is None:
            return CandidateAttempt(
                candidate=candidate,
                status=AttemptStatus.NO_STRATEGY_MATCHED,
                error=ErrorKind.NO_STRATEGY_MATCHED,
                message=f"No option matches {target!r}",
                strategies_tried=tried,
                attempted_value=target,
                available_options=tuple(options),
                elapsed_ms=_elapsed_ms(start),
            )

        try:
            await session.set_value(element, winner.option.value, timeout_ms)
        except BrowserError as e:
            status = AttemptStatus.TIMEOUT if isinstance(e, BrowserTimeoutError) else AttemptStatus.ACTION_FAILED
            return CandidateAttempt(
                candidate=candidate,
                status=status,
                error=ErrorKind.ACTION_FAILED,
                message=e.message,
                strategy=winner.strategy,
                strategies_tried=tried,
                attempted_value=target,
                available_options=tuple(options),
                elapsed_ms=_elapsed_ms(start),
            )

        return CandidateAttempt(
            candidate=candidate,
            status=AttemptStatus.MATCHED,
            strategy=winner.strategy,
            strategies_tried=tried,
            attempted_value=winner.option.value,
            elapsed_ms=_elapsed_ms(start),
        )

    async def _act(
        self,
        candidate: str,
        elements: list[DomElement],
        action: ActionDescriptor,
        session: DomSession,
        timeout_ms: int,
        start: float,
    ) -> CandidateAttempt:
        """Perform a non-select action on the right element."""
        action_type = action.type
        element = elements[0]
        value = action.value

        if action_type == ActionType.CLICK.value:
            if len(elements) > 1 and (is_text_query(candidate) or action.element_type):
                element = prioritize(elements, action.element_type)[0]
                logger.debug(
                    f"{len(elements)} matches for {candidate!r}, clicking {element.describe()}"
                )
            await session.click(element, timeout_ms)
        elif action_type == ActionType.FILL.value:
            await session.fill(element, value or "", timeout_ms)
        elif action_type == ActionType.CHECK.value:
            await session.check(element, True, timeout_ms)
        elif action_type == ActionType.UNCHECK.value:
            await session.check(element, False, timeout_ms)
        elif action_type == ActionType.HOVER.value:
            await session.hover(element, timeout_ms)
        elif action_type in (ActionType.ASSERT_VISIBLE.value, ActionType.WAIT.value):
            if not await session.is_visible(element, timeout_ms):
                return self._failed(candidate, f"{element.describe()} is not visible", value, start)
        elif action_type in (ActionType.ASSERT_TEXT.value, ActionType.VERIFY.value):
            text = await session.text_content(element, timeout_ms)
            if value and value not in text:
                return self._failed(
                    candidate, f"Expected text {value!r} but got {text[:100]!r}", value, start
                )
        elif action_type == ActionType.SCROLL.value:
            await session.scroll_into_view(element, timeout_ms)
        else:
            return self._failed(candidate, f"Unsupported action {action_type!r} on an element", value, start)

        return CandidateAttempt(
            candidate=candidate,
            status=AttemptStatus.MATCHED,
            attempted_value=value,
            message=element.describe(),
            elapsed_ms=_elapsed_ms(start),
        )

    def _failed(self, candidate: str, message: str, value: Optional[str], start: float) -> CandidateAttempt:
        return CandidateAttempt(
            candidate=candidate,
            status=AttemptStatus.ACTION_FAILED,
            error=ErrorKind.ACTION_FAILED,
            message=message,
            attempted_value=value,
            elapsed_ms=_elapsed_ms(start),
        )
