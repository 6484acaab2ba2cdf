"""Command-line interface for NoteSense."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import structlog
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from notesense.config import GeneratorConfig, build_config, get_settings, validate_thresholds
from notesense.exceptions import SuggestionEngineError
from notesense.models import GeneratorResult, NoteInput
from notesense.pipeline import analyze_threshold_sensitivity, generate_suggestions
from notesense.processing import get_type_prefix, group_suggestions_for_display

# Configure structlog for CLI
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="notesense",
    help="NoteSense - Turn meeting notes into actionable product suggestions",
    add_completion=False,
)
console = Console()


def _set_log_level(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, get_settings().log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level)


def _parse_thresholds(pairs: Optional[list[str]]) -> dict[str, float]:
    overrides: dict[str, float] = {}
    for pair in pairs or []:
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise typer.BadParameter(f"Expected NAME=VALUE, got {pair!r}", param_hint="--threshold")
        try:
            overrides[name.strip()] = float(value)
        except ValueError:
            raise typer.BadParameter(f"{name.strip()} must be a number, got {value!r}", param_hint="--threshold")
    return overrides


def _load_note(path: Path, note_id: Optional[str]) -> NoteInput:
    return NoteInput(
        note_id=note_id or path.stem,
        raw_markdown=path.read_text(encoding="utf-8"),
    )


def _load_initiatives(path: Optional[Path]) -> list[dict]:
    if path is None:
        return []
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise typer.BadParameter("Initiatives file must contain a JSON list", param_hint="--initiatives")
    return data


@app.command()
def analyze(
    note_path: Path = typer.Argument(
        ...,
        help="Path to the markdown note",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    note_id: Optional[str] = typer.Option(
        None,
        "--note-id",
        help="Note id (default: file name without extension)",
    ),
    initiatives: Optional[Path] = typer.Option(
        None,
        "--initiatives",
        help="JSON list of existing initiatives for routing",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file path for the JSON result (default: <note_name>_suggestions.json)",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Include the debug ledger in the output",
    ),
    max_suggestions: Optional[int] = typer.Option(
        None,
        "--max-suggestions",
        min=0,
        help="Cap on idea suggestions",
    ),
    threshold: Optional[list[str]] = typer.Option(
        None,
        "--threshold",
        help="Threshold override as NAME=VALUE (repeatable)",
    ),
    pretty: bool = typer.Option(
        True,
        "--pretty/--compact",
        help="Pretty-print JSON output",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """Generate suggestions for a markdown note and write them as JSON."""
    _set_log_level(verbose)

    overrides: dict = {"thresholds": _parse_thresholds(threshold)}
    if debug:
        overrides["enable_debug"] = True
    if max_suggestions is not None:
        overrides["max_suggestions"] = max_suggestions

    if output is None:
        output = note_path.with_name(f"{note_path.stem}_suggestions.json")

    console.print(f"[dim]Input:[/dim] {note_path}")
    console.print(f"[dim]Output:[/dim] {output}\n")

    try:
        config = build_config(overrides, base=GeneratorConfig.from_settings())
        for warning in validate_thresholds(config):
            console.print(f"[yellow]Warning:[/yellow] {warning}")

        result = generate_suggestions(
            _load_note(note_path, note_id),
            _load_initiatives(initiatives),
            config,
        )

        with open(output, "w", encoding="utf-8") as f:
            if pretty:
                json.dump(result.to_payload(), f, indent=2, ensure_ascii=False)
            else:
                json.dump(result.to_payload(), f, ensure_ascii=False)

        _display_summary(result)

        console.print(f"\n[green]Suggestions saved to:[/green] {output}")

    except (SuggestionEngineError, OSError, json.JSONDecodeError) as e:
        console.print(f"\n[red]Error:[/red] {e}")
        if verbose:
            console.print_exception()
        sys.exit(1)


@app.command()
def sweep(
    note_paths: list[Path] = typer.Argument(
        ...,
        help="Markdown notes to evaluate",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    threshold: str = typer.Option(
        "T_action",
        "--threshold",
        help="Threshold to sweep",
    ),
    values: str = typer.Option(
        "0.3,0.4,0.5,0.6,0.7",
        "--values",
        help="Comma-separated values to try",
    ),
) -> None:
    """Show how the number of suggestions changes across threshold values."""
    _set_log_level(False)

    try:
        swept = [float(v) for v in values.split(",") if v.strip()]
    except ValueError:
        raise typer.BadParameter(f"Values must be numbers, got {values!r}", param_hint="--values")

    notes = [_load_note(path, None) for path in note_paths]
    try:
        sensitivity = analyze_threshold_sensitivity(
            notes, threshold, swept, config=GeneratorConfig.from_settings()
        )
    except SuggestionEngineError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    table = Table(title=f"{threshold} sensitivity ({len(notes)} notes)")
    table.add_column("Value", justify="right")
    table.add_column("Suggestions", justify="right")
    for value, count in zip(sensitivity.values, sensitivity.suggestions_counts):
        table.add_row(f"{value:g}", str(count))
    console.print(table)

    if sensitivity.recommendation:
        console.print(f"\n[bold]Recommendation:[/bold] {sensitivity.recommendation}")


@app.command()
def info() -> None:
    """Display system information and configuration."""
    from notesense import __version__

    settings = get_settings()
    config = GeneratorConfig.from_settings(settings)

    console.print(
        Panel.fit(
            "[bold blue]NoteSense[/bold blue]",
            border_style="blue",
        )
    )

    table = Table(show_header=False, box=None)
    table.add_column("Setting", style="dim")
    table.add_column("Value")

    table.add_row("Version", __version__)
    table.add_row("Max Suggestions", str(config.max_suggestions))
    table.add_row("Debug", str(config.enable_debug))
    for name, value in config.thresholds.model_dump().items():
        table.add_row(name, str(value))

    console.print(table)

    for warning in validate_thresholds(config):
        console.print(f"[yellow]Warning:[/yellow] {warning}")


def _display_summary(result: GeneratorResult) -> None:
    """Display a summary of the generated suggestions.

    Args:
        result: The generator result.
    """
    console.print("\n[bold]Suggestion Summary[/bold]")
    console.print("-" * 40)

    if not result.suggestions:
        console.print("[dim]No actionable suggestions found.[/dim]")

    grouped = group_suggestions_for_display(result.suggestions)
    for bucket in grouped.buckets:
        table = Table(title=f"{bucket.title} ({bucket.total})", show_lines=False)
        table.add_column("Title")
        table.add_column("Score", justify="right")
        table.add_column("Flags", style="dim")
        for suggestion in bucket.shown:
            flags = []
            if suggestion.needs_clarification:
                flags.append("needs clarification")
            if not suggestion.routing.create_new:
                flags.append(f"-> {suggestion.routing.target_initiative_id}")
            table.add_row(
                f"{get_type_prefix(suggestion.type)}: {suggestion.title}",
                f"{suggestion.scores.overall:.2f}",
                ", ".join(flags),
            )
        console.print(table)
        if bucket.hidden_count:
            console.print(f"[dim]  +{bucket.hidden_count} more[/dim]")

    if result.debug is not None:
        debug = result.debug
        console.print(
            f"\n[dim]{debug.sections_count} sections, {debug.actionable_sections_count} actionable, "
            f"{len(debug.dropped_suggestions)} dropped[/dim]"
        )


if __name__ == "__main__":
    app()
