"""valuetrace CLI - typer application entry point."""

from __future__ import annotations

import atexit
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from valuetrace.config import RenderConfig, load_config
from valuetrace.demos import SCENARIOS, run_scenario
from valuetrace.export import export_graph, render_image
from valuetrace.graph.errors import ConfigError, RenderError
from valuetrace.observability import close_file_logging, configure_logging, get_logger

# Load environment variables (VT_DOT_EXECUTABLE, VT_OUTPUT_FORMAT) from .env
load_dotenv()

app = typer.Typer(
    name="vt",
    help="valuetrace: Visualize the lifecycle of tracked values as Graphviz diagrams.",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def main(
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity: -v for INFO, -vv for DEBUG.",
        ),
    ] = 0,
    log: Annotated[
        bool,
        typer.Option(
            "--log",
            help="Enable file logging to ./logs/debug.jsonl.",
        ),
    ] = False,
) -> None:
    """valuetrace: Visualize the lifecycle of tracked values as Graphviz diagrams."""
    configure_logging(verbosity=verbose, log_to_file=log, log_dir=Path() if log else None)
    if log:
        atexit.register(close_file_logging)


def _load_config_or_exit(config_file: Path | None, output_format: str | None) -> RenderConfig:
    """Load render settings, exiting with a diagnostic on failure."""
    try:
        config = load_config(config_file)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    if output_format:
        config = config.model_copy(update={"output_format": output_format})
    return config


@app.command()
def version() -> None:
    """Show version information."""
    from valuetrace import __version__

    console.print(f"valuetrace v{__version__}")


@app.command()
def scenarios() -> None:
    """List the built-in demo scenarios."""
    table = Table(title="Scenarios")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    for scenario in SCENARIOS.values():
        table.add_row(scenario.name, scenario.description)
    console.print(table)


@app.command()
def demo(
    scenario: Annotated[str, typer.Argument(help="Scenario to run (see 'vt scenarios').")],
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Render an image here instead of printing DOT to stdout.",
        ),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="YAML render configuration."),
    ] = None,
    output_format: Annotated[
        str | None,
        typer.Option("--format", "-f", help="Graphviz output format (png, svg, pdf, ...)."),
    ] = None,
    named_only: Annotated[
        bool,
        typer.Option("--named-only", help="Hide anonymous values and their edges."),
    ] = False,
) -> None:
    """Run a built-in scenario and show its value graph.

    Examples:
        vt demo arithmetic
        vt demo swap --output swap.svg
    """
    log = get_logger(__name__)

    if scenario not in SCENARIOS:
        console.print(f"[red]Error:[/red] Unknown scenario '{scenario}'")
        console.print(f"Valid scenarios: {', '.join(sorted(SCENARIOS))}")
        raise typer.Exit(1)

    config = _load_config_or_exit(config_file, output_format)
    if named_only:
        config = config.model_copy(update={"show_named_only": True})

    graph = run_scenario(scenario)
    log.debug("demo_graph", graph=repr(graph))

    if output is None:
        # Plain print keeps the DOT text free of rich markup and wrapping
        typer.echo(graph.render(config), nl=False)
        return

    try:
        image = export_graph(graph, output, config, fmt=output_format)
    except RenderError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    console.print(f"[green]✓[/green] Wrote [cyan]{image}[/cyan]")


@app.command()
def render(
    dot_file: Annotated[Path, typer.Argument(help="DOT document to render.")],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Image path (default: next to the DOT file)."),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="YAML render configuration."),
    ] = None,
    output_format: Annotated[
        str | None,
        typer.Option("--format", "-f", help="Graphviz output format (png, svg, pdf, ...)."),
    ] = None,
) -> None:
    """Render an existing DOT document with Graphviz."""
    if not dot_file.exists():
        console.print(f"[red]Error:[/red] File not found: {dot_file}")
        raise typer.Exit(1)

    config = _load_config_or_exit(config_file, output_format)
    target = output or dot_file.with_suffix(f".{config.output_format}")

    try:
        render_image(
            dot_file.read_text(encoding="utf-8"),
            target,
            fmt=output_format or target.suffix.lstrip(".") or config.output_format,
            executable=config.dot_executable,
            timeout=config.timeout_seconds,
        )
    except RenderError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    console.print(f"[green]✓[/green] Wrote [cyan]{target}[/cyan]")


if __name__ == "__main__":
    app()
