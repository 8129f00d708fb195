"""
CaseCraft Tools Module

Contains the browser-facing components:
- Selectors: Comma-separated candidate selector expressions
- Prioritizer: Element-type ranking for ambiguous clicks
- DOM: Session contract and its Playwright binding
- Resolver: Candidate fallback and select-option strategy cascade
- Actions: Test case execution
- Browser: Browser lifecycle and screenshot capture
- Imaging: Screenshot resizing and encoding for vision models
- Report: HTML rendering of test run results
"""

from casecraft.tools.selectors import SelectorExpression, parse_selector_expression
from casecraft.tools.prioritizer import ElementCategory, categorize, prioritize
from casecraft.tools.dom import DomElement, DomSession, PlaywrightDomSession
from casecraft.tools.resolver import ActionResolver, STRATEGY_CASCADE, match_option
from casecraft.tools.actions import ActionExecutor, load_test_case
from casecraft.tools.browser import BrowserTool
from casecraft.tools.imaging import EncodedImage, ImageAsset, ScreenshotPreprocessor
from casecraft.tools.report import render_html_report, save_html_report

__all__ = [
    # Selectors
    "SelectorExpression",
    "parse_selector_expression",
    # Prioritizer
    "ElementCategory",
    "categorize",
    "prioritize",
    # DOM
    "DomElement",
    "DomSession",
    "PlaywrightDomSession",
    # Resolver
    "ActionResolver",
    "STRATEGY_CASCADE",
    "match_option",
    # Execution
    "ActionExecutor",
    "load_test_case",
    "BrowserTool",
    # Imaging
    "EncodedImage",
    "ImageAsset",
    "ScreenshotPreprocessor",
    # Report
    "render_html_report",
    "save_html_report",
]
