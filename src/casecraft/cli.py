"""
CaseCraft CLI

Command-line interface for authoring and running browser test cases.
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.text import Text

from casecraft import __version__
from casecraft.core.asyncio_compat import run_async
from casecraft.core.config import LLMProvider, settings
from casecraft.core.error_handler import ErrorRecord, handle_error
from casecraft.core.exceptions import CaseCraftError, LLMError
from casecraft.core.models import StepStatus, TestCaseDescriptor, TestRunResult

app = typer.Typer(
    name="casecraft",
    help="Author and run browser UI test cases from JSON, instructions or screenshots",
    add_completion=False,
)
console = Console()


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=verbose, show_path=verbose)],
        force=True,
    )


def show_error(record: ErrorRecord) -> None:
    console.print(Panel(Text(record.render()), title=f"[bold red]{record.error_type}[/bold red]"))


def show_test_case(test_case: TestCaseDescriptor, output: Optional[Path]) -> None:
    text = json.dumps({"testCase": test_case.to_dict()}, indent=2)
    if output:
        output.write_text(text + "\n", encoding="utf-8")
        console.print(f"[green]Test case written to {output}[/green]")
    console.print(
        Panel(
            Syntax(text, "json", word_wrap=True),
            title=f"[bold blue]{escape(test_case.name)}[/bold blue]",
        )
    )


def show_run(result: TestRunResult) -> None:
    status_color = "green" if result.passed else "red"
    icons = {
        StepStatus.PASSED: "[green]PASS[/green]",
        StepStatus.FAILED: "[red]FAIL[/red]",
        StepStatus.SKIPPED: "[dim]SKIP[/dim]",
    }

    lines = []
    for step in result.steps:
        lines.append(f"  {icons[step.status]} {step.index + 1}. {escape(f'[{step.action_type}] {step.description}')}")
        if step.status == StepStatus.FAILED:
            if step.outcome is not None and not step.outcome.success:
                for row in ErrorRecord.from_outcome(step.outcome).render().splitlines():
                    lines.append(f"       [dim]{escape(row)}[/dim]")
            elif step.message:
                lines.append(f"       [dim]{escape(step.message)}[/dim]")

    passed = sum(1 for s in result.steps if s.status == StepStatus.PASSED)
    summary = f"""[bold]URL:[/bold] {result.url}
[bold]Steps:[/bold] {passed}/{len(result.steps)} passed in {result.duration_ms}ms"""
    if result.error_message:
        summary += f"\n[bold]Error:[/bold] {escape(result.error_message)}"
    if result.screenshot_path:
        summary += f"\n[bold]Screenshot:[/bold] {result.screenshot_path}"

    console.print(
        Panel(
            summary + "\n\n[bold]Details:[/bold]\n" + "\n".join(lines),
            title=f"[bold {status_color}]{escape(result.name)}[/bold {status_color}]",
        )
    )


def write_report(result: TestRunResult, path: Path) -> None:
    if path.suffix.lower() in (".html", ".htm"):
        from casecraft.tools.report import save_html_report

        save_html_report([result], path)
    else:
        path.write_text(json.dumps(result.to_dict(), indent=2) + "\n", encoding="utf-8")


def provider_option():
    return typer.Option(
        None, "--provider", "-p",
        help=f"LLM provider ({', '.join(p.value for p in LLMProvider)})",
    )


@app.command()
def version() -> None:
    """Show CaseCraft version."""
    console.print(f"CaseCraft v{__version__}")


@app.command()
def config() -> None:
    """Show current configuration (without sensitive data)."""

    def status(configured: bool) -> str:
        return "[green]configured[/green]" if configured else "[red]not configured[/red]"

    console.print(
        Panel(
            f"""[bold]CaseCraft Configuration[/bold]

Default LLM Provider: {settings.default_llm_provider.value}
Default Model: {settings.default_model or "provider default"}
Log Level: {settings.log_level}
Browser: {settings.browser_type.value} ({"headless" if settings.headless else "headed"})
Navigation Timeout: {settings.default_timeout}s
Action Timeout: {settings.action_timeout_ms}ms
Screenshot Max Dimension: {settings.image_max_dimension}px

[dim]Provider Status:[/dim]
  Anthropic: {status(settings.validate_provider_config(LLMProvider.ANTHROPIC))}
  OpenAI: {status(settings.validate_provider_config(LLMProvider.OPENAI))}
  Google: {status(settings.validate_provider_config(LLMProvider.GOOGLE))}
  Groq: {status(settings.validate_provider_config(LLMProvider.GROQ))}
  xAI: {status(settings.validate_provider_config(LLMProvider.XAI))}
""",
            title="[bold blue]CaseCraft[/bold blue]",
        )
    )


@app.command()
def validate(
    path: Path = typer.Argument(..., help="Test case JSON file"),
) -> None:
    """Validate a test case file."""
    from casecraft.tools.actions import load_test_case

    setup_logging(False)
    try:
        test_case = load_test_case(path)
    except CaseCraftError as e:
        show_error(handle_error(e, "validate"))
        raise typer.Exit(1)

    console.print(f"[green]Valid:[/green] {escape(test_case.name)} ({len(test_case.actions)} actions)")


@app.command()
def run(
    path: Path = typer.Argument(..., help="Test case JSON file"),
    headed: bool = typer.Option(False, "--headed", help="Show the browser window"),
    keep_going: bool = typer.Option(False, "--keep-going", help="Continue after a failed step"),
    report: Optional[Path] = typer.Option(None, "--report", "-r", help="Write the run result (.html for an HTML report, JSON otherwise)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed output"),
) -> None:
    """Run a test case file in a browser."""
    from casecraft.tools.actions import load_test_case
    from casecraft.tools.browser import BrowserTool

    setup_logging(verbose)
    try:
        test_case = load_test_case(path)
        browser = BrowserTool(headless=False if headed else None)
        result = run_async(browser.run_test_case(test_case, stop_on_failure=not keep_going))
    except CaseCraftError as e:
        show_error(handle_error(e, "run"))
        raise typer.Exit(1)

    show_run(result)
    if report:
        write_report(result, report)
        console.print(f"[green]Report written to {report}[/green]")
    if not result.passed:
        raise typer.Exit(1)


@app.command()
def generate(
    url: str = typer.Argument(..., help="URL of the page to capture"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the test case to a file"),
    provider: Optional[str] = provider_option(),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model name"),
    fallback: bool = typer.Option(False, "--fallback", help="Use a URL-pattern test case if the AI call fails"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed output"),
) -> None:
    """Capture a page and generate a test case from its screenshot."""
    from casecraft.agents.generator import TestCaseGenerator, build_basic_test_case

    setup_logging(verbose)
    try:
        generator = TestCaseGenerator.from_options(provider=provider, model=model)
        test_case = run_async(generator.generate_from_url(url))
    except LLMError as e:
        record = handle_error(e, "generate")
        if not fallback:
            show_error(record)
            raise typer.Exit(1)
        console.print(f"[yellow]AI generation failed ({escape(record.message)}); using URL-pattern test case[/yellow]")
        test_case = build_basic_test_case(url)
    except CaseCraftError as e:
        show_error(handle_error(e, "generate"))
        raise typer.Exit(1)

    show_test_case(test_case, output)


@app.command("analyze-image")
def analyze_image(
    image: Path = typer.Argument(..., help="Screenshot file"),
    url: Optional[str] = typer.Option(None, "--url", "-u", help="URL of the captured page"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the test case to a file"),
    provider: Optional[str] = provider_option(),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed output"),
) -> None:
    """Generate a test case from an existing screenshot."""
    from casecraft.agents.generator import TestCaseGenerator

    setup_logging(verbose)
    try:
        generator = TestCaseGenerator.from_options(provider=provider, model=model)
        test_case = run_async(generator.generate(image, url=url))
    except CaseCraftError as e:
        show_error(handle_error(e, "analyze-image"))
        raise typer.Exit(1)

    show_test_case(test_case, output)


@app.command()
def parse(
    instructions: str = typer.Argument(..., help="Instruction text, or @path to read it from a file"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the test case to a file"),
    no_ai: bool = typer.Option(False, "--no-ai", help="Use the rule-based parser only"),
    provider: Optional[str] = provider_option(),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed output"),
) -> None:
    """Turn natural-language instructions into a test case."""
    from casecraft.agents.instructions import InstructionAgent

    setup_logging(verbose)
    if instructions.startswith("@"):
        instructions = Path(instructions[1:]).read_text(encoding="utf-8")

    try:
        agent = InstructionAgent.from_options(provider=provider)
        use_llm = not no_ai and settings.validate_provider_config(agent.provider)
        test_case = run_async(agent.parse(instructions, use_llm=use_llm))
    except CaseCraftError as e:
        show_error(handle_error(e, "parse"))
        raise typer.Exit(1)

    show_test_case(test_case, output)


if __name__ == "__main__":
    app()
