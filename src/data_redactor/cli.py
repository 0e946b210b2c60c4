"""Command-line interface for data-redactor.

Commands:
    scan      Scan files for sensitive content
    profiles  List available redaction profiles
    entropy   Print the Shannon entropy of a string

Configuration:
    Supports config files: redactor.toml, .redactor.yml, etc.
    CLI flags override config file values.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .config_loader import ConfigFileError, ProfileError, load_settings
from .entropy import calculate_entropy
from .redactor import Redactor
from .scanner import STATUS_FINDINGS, STATUS_SKIPPED, ScanResult, Scanner
from .utils import truncate_path

# Initialize CLI app
app = typer.Typer(
    name="redactor",
    help="""Detect and mask sensitive data in structured data and files.

Examples:
    redactor scan ./config ./storage/logs
    redactor scan app.env --profile strict --bail
    redactor profiles
""",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


class OutputFormat(str, Enum):
    """Output format for scan results."""

    TABLE = "table"
    JSON = "json"


STATUS_STYLES = {
    STATUS_SKIPPED: "[yellow]SKIPPED[/yellow]",
    STATUS_FINDINGS: "[red]FINDINGS[/red]",
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"redactor version {__version__}")
        raise typer.Exit()


@app.callback()
def root(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Detect and mask sensitive data."""


def create_progress() -> Progress:
    """Create a rich progress bar for file scanning."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(bar_width=30),
        MofNCompleteColumn(),
        console=console,
        transient=True,
    )


def render_table(results: list[ScanResult]) -> Table:
    """Build the per-file results table."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Status")
    table.add_column("Findings", justify="right")
    table.add_column("File Path")

    for result in results:
        status = STATUS_STYLES.get(result.status, "[green]CLEAN[/green]")
        findings = "-" if result.skipped else str(len(result.findings))
        table.add_row(status, findings, truncate_path(result.path, 60))

    return table


@app.command()
def scan(
    paths: list[Path] | None = typer.Argument(
        None,
        help="Files or directories to scan. [default: current directory]",
    ),
    profile: str | None = typer.Option(
        None,
        "--profile",
        "-p",
        help="Redaction profile to use. [default: scan.profile from config, or file_scan]",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a config file (redactor.toml or redactor.yml).",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
    bail: bool = typer.Option(
        False,
        "--bail",
        help="Exit with code 1 if findings are detected.",
    ),
    summary_only: bool = typer.Option(
        False,
        "--summary-only",
        help="Do not display per-file results.",
    ),
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--output",
        "-o",
        help="Output format: table or json.",
        case_sensitive=False,
    ),
) -> None:
    """Scan files for sensitive content.

    Each file's content is run through the redaction profile; files whose
    content would be redacted are reported as findings.

    \b
    EXAMPLES:
      redactor scan
      redactor scan ./storage/logs --profile strict
      redactor scan .env config/ --bail --output json
    """
    try:
        settings = load_settings(config_path=config_file)
    except ConfigFileError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1) from None

    profile_name = profile or settings.scan.profile
    scan_paths = paths or [Path.cwd()]
    is_json = output == OutputFormat.JSON

    valid_paths = []
    for path in scan_paths:
        if path.exists():
            valid_paths.append(path)
        elif not is_json:
            console.print(
                f"[yellow]Warning: Path not found or not accessible: {escape(str(path))}[/yellow]"
            )

    if not is_json:
        console.print(
            f"[cyan]Scanning paths: {', '.join(str(p) for p in scan_paths)} "
            f"with profile: {profile_name}[/cyan]"
        )

    scanner = Scanner(Redactor(settings), max_workers=settings.scan.max_workers)

    try:
        if is_json:
            results = scanner.scan_paths(
                valid_paths,
                profile=profile_name,
                exclude_patterns=settings.scan.exclude_patterns,
                max_file_size=settings.scan.max_file_size,
            )
        else:
            with create_progress() as progress:
                task = progress.add_task("Scanning files...", total=None)

                def on_progress(completed: int, total: int) -> None:
                    progress.update(task, completed=completed, total=total)

                results = scanner.scan_paths(
                    valid_paths,
                    profile=profile_name,
                    exclude_patterns=settings.scan.exclude_patterns,
                    max_file_size=settings.scan.max_file_size,
                    progress_callback=on_progress,
                )
    except ProfileError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1) from None

    with_findings = [r for r in results if r.has_findings]

    if is_json:
        typer.echo(json.dumps([r.to_dict() for r in results], indent=4))
    else:
        if not summary_only:
            console.print(render_table(results))
        console.print()
        console.print(f"[green]✓[/green] Scan complete. Files scanned: {len(results)}")
        console.print(f"  Files with findings: {len(with_findings)}")

    if bail and with_findings:
        raise typer.Exit(1)


@app.command()
def profiles(
    config_file: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a config file (redactor.toml or redactor.yml).",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
) -> None:
    """List available redaction profiles."""
    try:
        settings = load_settings(config_path=config_file)
    except ConfigFileError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1) from None

    if settings._config_file:
        console.print(f"[dim]Using config: {settings._config_file.name}[/dim]")

    for name in settings.profile_names():
        marker = " [cyan](default)[/cyan]" if name == settings.default_profile else ""
        console.print(f"  {name}{marker}")


@app.command()
def entropy(
    text: str = typer.Argument(..., help="String to measure."),
) -> None:
    """Print the Shannon entropy (bits per byte) of a string."""
    console.print(f"{calculate_entropy(text):.4f}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
