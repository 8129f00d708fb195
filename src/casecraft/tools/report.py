"""
CaseCraft HTML Report

Renders test run results into a standalone HTML page.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from jinja2 import Environment, PackageLoader, select_autoescape

from casecraft.core.error_handler import ErrorRecord
from casecraft.core.models import StepStatus, TestRunResult

logger = logging.getLogger(__name__)

REPORT_TEMPLATE = "report.html"
DEFAULT_TITLE = "Web Testing Report"


def _environment() -> Environment:
    return Environment(
        loader=PackageLoader("casecraft", "templates"),
        autoescape=select_autoescape(["html"]),
    )


def _result_context(result: TestRunResult) -> dict[str, Any]:
    data = result.to_dict()
    for step, row in zip(result.steps, data["steps"]):
        row.pop("outcome", None)
        if step.status == StepStatus.FAILED and step.outcome is not None and not step.outcome.success:
            row["attempts"] = ErrorRecord.from_outcome(step.outcome).render()
    return data


def summarize(results: list[TestRunResult]) -> dict[str, int]:
    """Totals and success rate (whole percent) over a set of runs."""
    total = len(results)
    passed = sum(1 for r in results if r.passed)
    return {
        "total": total,
        "passed": passed,
        "failed": total - passed,
        "success_rate": round(passed * 100 / total) if total else 0,
    }


def render_html_report(
    results: Iterable[TestRunResult],
    title: str = DEFAULT_TITLE,
    generated_at: Optional[datetime] = None,
) -> str:
    """
    Render run results as an HTML document.

    Args:
        results: Test runs to include, in display order
        title: Report heading
        generated_at: Timestamp shown in the header (defaults to now)

    Returns:
        The HTML text; every value from the runs is escaped
    """
    results = list(results)
    template = _environment().get_template(REPORT_TEMPLATE)
    return template.render(
        report_title=title,
        generation_date=(generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S"),
        results=[_result_context(r) for r in results],
        **summarize(results),
    )


def save_html_report(
    results: Iterable[TestRunResult],
    path: Union[str, Path],
    title: str = DEFAULT_TITLE,
) -> Path:
    """Render run results and write them to path, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_html_report(results, title=title), encoding="utf-8")
    logger.info(f"HTML report generated at: {path}")
    return path
