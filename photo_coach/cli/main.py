"""
CLI interface for Photo Coach.

Provides command-line access to photo analysis, mentor chat and the
cost scale simulator.
"""

import asyncio
import logging
import mimetypes
import sys
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from photo_coach.config.loader import (
    CoachConfig,
    CoachConfigurationError,
    default_config,
    load_coach_config,
)
from photo_coach.core.cost import CostRecord, compute_cost
from photo_coach.core.errors import FatalRequestError, TransientRequestError
from photo_coach.core.ledger import SessionLedger
from photo_coach.core.pricing import TOKENS_PER_MILLION
from photo_coach.core.simulation import ScaleSimulationResult, SimulationVerdict, simulate_scale
from photo_coach.core.token_counter import UsageMetadata
from photo_coach.sdk.gemini_client import GeminiCoachClient
from photo_coach.sdk.models import PhotoAnalysis
from photo_coach.sdk.prompts import STATIC_PROMPT_TOKEN_ESTIMATE
from photo_coach.sdk.session import CoachSession

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

EXIT_WORDS = {"exit", "quit"}

CONFIG_OPTION = typer.Option(None, "--config", "-c", help="Path to YAML configuration file")


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """Photo Coach CLI."""
    if ctx.invoked_subcommand is None:
        console.print("Photo Coach - Use --help to see available commands")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def _load_config(path: Optional[str]) -> CoachConfig:
    """Load config from file, or defaults. Exits on invalid configuration."""
    if path is None:
        return default_config()
    try:
        return load_coach_config(path)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Configuration error:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)


def _build_session(config: CoachConfig) -> CoachSession:
    client = GeminiCoachClient(
        analysis_model=config.model.analysis_model,
        image_model=config.model.image_model,
        retry=config.retry
    )
    return CoachSession(client, pricing=config.pricing_entry())


def _mime_type(path: Path) -> str:
    mime_type, _ = mimetypes.guess_type(str(path))
    return mime_type or "image/jpeg"


def _format_currency(amount: float, places: int = 2) -> str:
    """Format currency with proper symbols and formatting."""
    return f"${abs(amount):,.{places}f}"


def _report_request_error(e: Exception) -> None:
    if isinstance(e, FatalRequestError):
        console.print(f"[red]Access error:[/] {escape(str(e))}")
        console.print("Check your API key and that the project has access to the model and billing enabled.")
    elif isinstance(e, TransientRequestError):
        console.print(f"[red]The model service is busy:[/] {escape(str(e))}")
        console.print(f"Gave up after {e.attempts} attempts. Please try again.")
    else:
        console.print(f"[red]Error:[/] {escape(str(e))}")


@app.command()
def pricing(config_path: Optional[str] = CONFIG_OPTION):
    """Show the pricing rate card (per 1M tokens)."""
    config = _load_config(config_path)

    table = Table(title="Pricing (per 1M tokens)")
    table.add_column("Tier")
    table.add_column("Input", justify="right")
    table.add_column("Cached input", justify="right")
    table.add_column("Output", justify="right")
    for tier in config.pricing_table.tiers:
        entry = config.pricing_table.rate_for(tier)
        marker = " *" if tier == config.model.tier else ""
        table.add_row(
            f"{tier}{marker}",
            _format_currency(entry.input_rate * TOKENS_PER_MILLION, 5),
            _format_currency(entry.cached_input_rate * TOKENS_PER_MILLION, 5),
            _format_currency(entry.output_rate * TOKENS_PER_MILLION, 5),
        )
    console.print(table)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def estimate(
    prompt_tokens: int = typer.Option(..., "--prompt-tokens", "-p", min=0, help="Prompt tokens reported"),
    output_tokens: int = typer.Option(..., "--output-tokens", "-o", min=0, help="Output tokens reported"),
    cached_tokens: int = typer.Option(0, "--cached-tokens", min=0, help="Prompt tokens served from cache"),
    static_tokens: int = typer.Option(
        STATIC_PROMPT_TOKEN_ESTIMATE,
        "--static-tokens",
        min=0,
        help="Estimated size of the cacheable static prompt"
    ),
    tier: Optional[str] = typer.Option(None, "--tier", "-t", help="Pricing tier"),
    volume: Optional[int] = typer.Option(None, "--volume", "-v", min=1, help="Requests to project to"),
    config_path: Optional[str] = CONFIG_OPTION
):
    """
    Estimate real and projected cost for a request's token counts.

    Offline: no model call is made.
    """
    config = _load_config(config_path)
    try:
        entry = config.pricing_table.rate_for(tier or config.model.tier)
    except ValueError as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)

    usage = UsageMetadata(
        raw_prompt_tokens=prompt_tokens,
        output_tokens=output_tokens,
        cached_prompt_tokens=cached_tokens,
        total_tokens=prompt_tokens + output_tokens
    )
    record = compute_cost(usage, entry, static_tokens)
    _display_cost(record)

    ledger = SessionLedger()
    ledger.append(record)
    _display_projection(simulate_scale(ledger, volume or config.scale.volume))
    sys.exit(EXIT_CODE_PASS)


async def _analyze_all(session: CoachSession, images: List[Path], fix_dir: Optional[Path]) -> None:
    for path in images:
        analysis = await session.analyze(path.read_bytes(), _mime_type(path))
        _display_analysis(path, analysis)
        if fix_dir is not None:
            fixed = await session.generate_fix()
            out_path = fix_dir / f"{path.stem}_fixed.png"
            out_path.write_bytes(fixed)
            console.print(f"[green]✓[/] Corrected image written to {out_path}")


@app.command()
def analyze(
    images: List[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Photos to analyse"),
    fix: Optional[Path] = typer.Option(
        None, "--fix", "-f", file_okay=False, help="Write corrected images to this directory"
    ),
    volume: Optional[int] = typer.Option(None, "--volume", "-v", min=1, help="Requests to project to"),
    config_path: Optional[str] = CONFIG_OPTION,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging")
):
    """
    Analyse photos and report the session's cost at scale.

    All photos share one session, so the closing projection averages
    across every analysis.
    """
    _configure_logging(verbose)
    config = _load_config(config_path)

    try:
        session = _build_session(config)
        if fix is not None:
            fix.mkdir(parents=True, exist_ok=True)
        asyncio.run(_analyze_all(session, images, fix))
    except CoachConfigurationError as e:
        console.print(f"[red]Configuration error:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)
    except Exception as e:
        _report_request_error(e)
        sys.exit(EXIT_CODE_FAIL)

    _display_projection(session.simulate(volume or config.scale.volume))
    sys.exit(EXIT_CODE_PASS)


@app.command()
def chat(
    image: Path = typer.Argument(..., exists=True, dir_okay=False, help="Photo to discuss"),
    config_path: Optional[str] = CONFIG_OPTION,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging")
):
    """Analyse a photo, then ask the mentor follow-up questions."""
    _configure_logging(verbose)
    config = _load_config(config_path)

    try:
        session = _build_session(config)
        analysis = asyncio.run(session.analyze(image.read_bytes(), _mime_type(image)))
    except CoachConfigurationError as e:
        console.print(f"[red]Configuration error:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)
    except Exception as e:
        _report_request_error(e)
        sys.exit(EXIT_CODE_FAIL)

    _display_analysis(image, analysis)
    console.print("\nAsk the mentor a question (empty line or 'exit' to finish).")

    while True:
        question = typer.prompt("You", default="", show_default=False).strip()
        if not question or question.lower() in EXIT_WORDS:
            break
        try:
            reply = asyncio.run(session.ask(question))
        except (FatalRequestError, TransientRequestError, RuntimeError, ValueError) as e:
            _report_request_error(e)
            continue
        console.print(f"[bold]Mentor:[/bold] {escape(reply.answer)}")
        console.print(f"[dim]Cost: {_format_currency(reply.cost.real_cost, 5)}[/]")

    sys.exit(EXIT_CODE_PASS)


def _display_analysis(path: Path, analysis: PhotoAnalysis) -> None:
    """Display the critique, scores and per-request cost."""
    console.print(f"\n[bold]Photo:[/bold] {escape(path.name)}")
    console.print("-" * 40)

    scores = Table(show_header=False)
    for label, value in (
        ("Composition", analysis.scores.composition),
        ("Lighting", analysis.scores.lighting),
        ("Creativity", analysis.scores.creativity),
        ("Technique", analysis.scores.technique),
        ("Subject impact", analysis.scores.subject_impact),
    ):
        scores.add_row(label, f"{value:g}")
    console.print(scores)

    console.print(f"\n[bold]Overall:[/bold] {escape(analysis.critique.overall)}")
    if analysis.strengths:
        console.print("\n[bold]Strengths:[/bold]")
        for item in analysis.strengths:
            console.print(f"  + {escape(item)}")
    if analysis.improvements:
        console.print("\n[bold]Improvements:[/bold]")
        for item in analysis.improvements:
            console.print(f"  - {escape(item)}")
    if analysis.bounding_boxes:
        console.print("\n[bold]Flagged areas:[/bold]")
    for box in analysis.bounding_boxes:
        console.print(escape(
            f"  [{box.severity}] {box.type} at ({box.x:.0f}%, {box.y:.0f}%): "
            f"{box.description} -> {box.suggestion}"
        ))

    if analysis.cost is not None:
        _display_cost(analysis.cost)


def _display_cost(record: CostRecord) -> None:
    """Display real vs projected cost for one request."""
    console.print("\n[bold]Request cost[/bold]")
    console.print(f"Actual cached tokens: {record.real_cached_tokens:,}")
    console.print(f"Actual new tokens: {record.real_new_tokens:,}")
    console.print(f"Real cost: {_format_currency(record.real_cost, 5)}")
    console.print(f"Projected cached tokens: {record.projected_cached_tokens:,}")
    console.print(f"Projected cost with cache: {_format_currency(record.projected_cost_with_cache, 5)}")
    console.print(f"Projected savings: {_format_currency(record.projected_savings, 5)}")


def _display_projection(result: ScaleSimulationResult) -> None:
    """Display session totals and the at-scale projection."""
    console.print("\n[bold]Scale Simulation[/bold]")
    console.print("-" * 40)

    if result.verdict == SimulationVerdict.EMPTY:
        console.print("[dim]No cost data recorded in this session.[/]")
        return

    console.print(
        f"Session savings: {_format_currency(result.totals.sum_savings, 5)} "
        f"({result.session_savings_percent:.1f}%)"
    )
    projection = result.projection
    console.print(f"Real cost at {projection.volume:,} requests: {_format_currency(projection.real_at_scale)}")
    console.print(f"With caching: {_format_currency(projection.projected_at_scale)}")
    console.print(
        f"Scale savings: {_format_currency(projection.savings_at_scale)} "
        f"(-{projection.savings_percent:.1f}%)"
    )
    if result.verdict == SimulationVerdict.SINGLE_SAMPLE:
        console.print("[dim]Based on a single request; analyse more photos for a steadier projection.[/]")


if __name__ == "__main__":
    app()
