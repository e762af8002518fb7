"""Main CLI entry point for quorum."""

import asyncio
import base64
import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .cache import build_result_cache
from .config import settings
from .consensus import ConsensusStrategy
from .dispatch import Dispatcher
from .errors import QuorumError
from .events import ProgressStage
from .generator import AppGenerator, GenerationOptions
from .models import GenerationRequest, ResultStatus, TaskType
from .orchestrator import OrchestrationResult, Orchestrator
from .packager import package_as_zip
from .policy import EnforcementResult, enforce, handle_manual_flag
from .registry import is_configured, iter_models

console = Console()

STATUS_STYLES = {
    ResultStatus.OK: "green",
    ResultStatus.ERROR: "red",
    ResultStatus.TIMEOUT: "yellow",
}


def build_dispatcher() -> Dispatcher:
    return Dispatcher(cache=build_result_cache())


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)
        ],
        force=True,
    )
    # Request lines from httpx are noise at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Multi-provider generation with consensus.

    Send one prompt to several AI models and reconcile their answers.
    """
    _configure_logging(verbose)


@main.command()
@click.argument("prompt")
@click.option("--model", "-m", "models", multiple=True, required=True, help="Model id (repeatable)")
@click.option("--framework", default=None, help="Target framework, e.g. nextjs or fastapi")
@click.option("--feature", "features", multiple=True, help="Feature to include (repeatable)")
@click.option("--database", is_flag=True, help="Include database schema and migrations")
@click.option("--auth", is_flag=True, help="Include authentication")
@click.option("--payments", is_flag=True, help="Include payment integration")
@click.option("--tier", type=click.IntRange(1, 5), default=None, help="Content policy tier")
@click.option("--max-parallel", type=click.IntRange(min=1), default=None, help="Models per batch")
@click.option("--stream", is_flag=True, help="Show staged progress while generating")
@click.option(
    "--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Zip file to write"
)
def generate(
    prompt: str,
    models: tuple[str, ...],
    framework: str | None,
    features: tuple[str, ...],
    database: bool,
    auth: bool,
    payments: bool,
    tier: int | None,
    max_parallel: int | None,
    stream: bool,
    output: Path | None,
) -> None:
    """Generate an application and package it as a zip archive.

    PROMPT: Description of the application to build
    """
    options = GenerationOptions(
        prompt=prompt,
        models=models,
        framework=framework,
        features=features,
        max_parallel=max_parallel,
        require_database=database,
        require_auth=auth,
        require_payments=payments,
        tier=tier,
    )

    async def run_batch() -> tuple[str, bytes, dict]:
        dispatcher = build_dispatcher()
        try:
            app = await AppGenerator(options, dispatcher=dispatcher).generate()
        finally:
            await dispatcher.adapters.aclose()
        return app.name, package_as_zip(app), app.summary()

    async def run_stream() -> tuple[str, bytes, dict]:
        dispatcher = build_dispatcher()
        try:
            async for event in AppGenerator(options, dispatcher=dispatcher).generate_stream():
                if event.stage == ProgressStage.ERROR:
                    raise QuorumError(event.message)
                console.print(f"[cyan]{event.progress:>3}%[/cyan] {event.message}")
                if event.stage == ProgressStage.COMPLETE:
                    summary = event.data["app"]
                    return summary["name"], base64.b64decode(event.data["zip"]), summary
        finally:
            await dispatcher.adapters.aclose()
        raise QuorumError("Generation stream ended without a result")

    name, archive, summary = asyncio.run(run_stream() if stream else run_batch())
    target = output or Path(f"{name}.zip")
    target.write_bytes(archive)

    meta = summary["meta"]
    console.print(
        Panel(
            f"[bold]{summary['name']}[/bold]\n\n"
            f"Framework: {summary['framework']}\n"
            f"Files: {summary['filesCount']}\n"
            f"Dependencies: {summary['dependenciesCount']}\n"
            f"Environment variables: {summary['envVarsCount']}\n"
            f"Tokens: {meta['totalTokens']}  Cost: {meta['totalCost']}\n"
            f"Archive: [cyan]{target}[/cyan]",
            title="Generated application",
        )
    )


@main.command()
@click.argument("prompt")
@click.option("--model", "-m", "models", multiple=True, required=True, help="Model id (repeatable)")
@click.option(
    "--task-type",
    type=click.Choice([t.value for t in TaskType]),
    default=TaskType.TEXT.value,
    help="Scoring heuristics to apply",
)
@click.option(
    "--strategy",
    type=click.Choice([s.value for s in ConsensusStrategy]),
    default=ConsensusStrategy.HYBRID.value,
    help="Consensus strategy",
)
@click.option("--system", default=None, help="System instruction")
@click.option("--temperature", type=float, default=None, help="Sampling temperature (0-2)")
@click.option("--max-tokens", type=click.IntRange(min=1), default=None, help="Output token budget")
@click.option("--max-parallel", type=click.IntRange(min=1), default=None, help="Models per batch")
@click.option("--json", "as_json", is_flag=True, help="Print the raw result as JSON")
def compare(
    prompt: str,
    models: tuple[str, ...],
    task_type: str,
    strategy: str,
    system: str | None,
    temperature: float | None,
    max_tokens: int | None,
    max_parallel: int | None,
    as_json: bool,
) -> None:
    """Send PROMPT to several models and show their consensus."""
    request = GenerationRequest(
        prompt=prompt,
        models=models,
        system=system,
        temperature=settings.default_temperature if temperature is None else temperature,
        max_tokens=max_tokens or settings.default_max_tokens,
        max_parallel=max_parallel,
    )

    async def run() -> OrchestrationResult:
        dispatcher = build_dispatcher()
        try:
            return await Orchestrator(dispatcher).run(
                request, task_type=task_type, strategy=strategy
            )
        finally:
            await dispatcher.adapters.aclose()

    outcome = asyncio.run(run())
    if as_json:
        click.echo(json.dumps(outcome.to_dict(), indent=2))
        return

    table = Table(title="Model results")
    table.add_column("Model", style="cyan")
    table.add_column("Provider")
    table.add_column("Status")
    table.add_column("Score", justify="right")
    table.add_column("Confidence", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Notes")

    for r in outcome.results:
        style = STATUS_STYLES.get(r.status, "white")
        table.add_row(
            r.model,
            r.provider,
            f"[{style}]{r.status}[/{style}]",
            f"{r.score:.2f}",
            f"{r.confidence:.2f}" if r.confidence is not None else "-",
            f"{r.response_time_ms}ms" if r.response_time_ms is not None else "-",
            r.reasoning,
        )
    console.print(table)

    consensus = outcome.consensus
    console.print(
        Panel(
            f"{consensus.consensus or '[dim](empty)[/dim]'}\n\n"
            f"[dim]{consensus.reasoning}[/dim]",
            title=(
                f"Consensus ({consensus.strategy}) from {consensus.winner.model}: "
                f"agreement {consensus.agreement:.0%}, confidence {consensus.confidence:.0%}"
            ),
        )
    )


@main.command()
def providers() -> None:
    """List known models and whether their provider is configured."""
    table = Table(title="Models")
    table.add_column("Provider", style="cyan")
    table.add_column("Model")
    table.add_column("Kind")
    table.add_column("Cost", justify="right")
    table.add_column("Speed", justify="right")
    table.add_column("Configured")

    for info in iter_models():
        caps = info.capabilities
        configured = is_configured(info.provider)
        table.add_row(
            info.provider,
            info.model,
            caps.kind,
            f"{caps.cost:g}",
            f"{caps.speed:g}",
            "[green]yes[/green]" if configured else "[red]no[/red]",
        )
    console.print(table)


def _print_enforcement(result: EnforcementResult) -> None:
    scan = result.scan_result
    color = "green" if result.allowed else "red"
    console.print(
        Panel(
            f"[bold {color}]{'Allowed' if result.allowed else 'Blocked'}[/bold {color}]\n\n"
            f"{result.message}\n\n"
            f"Lines scanned: {scan.total_lines}\n"
            f"Offending lines: {scan.offending_lines}\n"
            f"Scan confidence: {scan.confidence:.2f}\n"
            f"Credits awarded: {result.credits_awarded}\n"
            f"Regeneration required: {'yes' if result.requires_regeneration else 'no'}",
            title="Content policy",
        )
    )

    if scan.findings:
        table = Table(title="Findings")
        table.add_column("Line", justify="right", style="cyan")
        table.add_column("Severity")
        table.add_column("Text")
        for finding in scan.findings:
            table.add_row(str(finding.line), finding.severity, finding.text.strip())
        console.print(table)


@main.command(name="policy-check")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--tier", type=int, default=3, help="Subscription tier (1-5)")
def policy_check(file: Path, tier: int) -> None:
    """Run the content policy for TIER over FILE."""
    result = enforce(file.read_text(encoding="utf-8"), tier)
    _print_enforcement(result)
    if not result.allowed:
        raise SystemExit(1)


@main.command(name="manual-flag")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--tier", type=int, default=3, help="Subscription tier (1-5)")
@click.option("--notes", default=None, help="Why the code was flagged")
def manual_flag(file: Path, tier: int, notes: str | None) -> None:
    """Flag FILE as mock/demo code by hand."""
    result = handle_manual_flag(file.read_text(encoding="utf-8"), tier, notes)
    _print_enforcement(result)


if __name__ == "__main__":
    main()
