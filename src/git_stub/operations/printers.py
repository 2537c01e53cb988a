"""
Human-readable output formatting.

Centralizes all CLI output formatting so CLI commands stay thin. Paths and
JSON go to stdout through ``typer.echo`` so they can be piped; tables and
errors are rendered with Rich.
"""
from __future__ import annotations

from pathlib import Path
from typing import List, Tuple

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..models import CheckReport

_console = Console()
_err_console = Console(stderr=True)


def print_materialized(results: List[Tuple[str, Path]], verbose: bool = False) -> None:
    """
    Print materialized output paths, one per line.

    Args:
        results: (stub path, output path) pairs
        verbose: Also show which stub produced each path
    """
    for stub_path, output_path in results:
        if verbose:
            typer.echo(f"{stub_path} -> {output_path}")
        else:
            typer.echo(str(output_path))


def print_check_report(report: CheckReport, verbose: bool = False) -> None:
    """
    Print stub check results.

    Only stubs needing a rewrite are listed unless ``verbose`` is set.
    """
    rows = [r for r in report.results if verbose or r.needs_rewrite]
    if rows:
        table = Table(title="Git stubs")
        table.add_column("Stub", style="cyan", overflow="fold")
        table.add_column("Commit", style="yellow")
        table.add_column("Path", overflow="fold")
        table.add_column("Status")
        for r in rows:
            status = "[red]needs rewrite[/]" if r.needs_rewrite else "[green]ok[/]"
            table.add_row(escape(r.stub_path), r.commit[:12], escape(r.path), status)
        _console.print(table)

    total = len(report.results)
    if report.needs_rewrite_count:
        typer.echo(f"{report.needs_rewrite_count} of {total} stubs need rewriting (run `git-stub fix`)")
    else:
        typer.echo(f"All {total} stubs are canonical")


def print_check_json(report: CheckReport) -> None:
    """Print stub check results as JSON."""
    typer.echo(report.model_dump_json(indent=2))


def print_fixed(rewritten: List[str], total: int) -> None:
    """Print the stubs rewritten by ``fix``."""
    for stub_path in rewritten:
        typer.echo(f"Rewrote {stub_path}")
    typer.echo(f"{len(rewritten)} of {total} stubs rewritten")


def print_error(exc: BaseException) -> None:
    """Print an error, including wrapped causes not already in its message."""
    message = str(exc)
    _err_console.print(f"[bold red]error:[/] {escape(message)}", soft_wrap=True)
    cause = exc.__cause__
    while cause is not None:
        if str(cause) not in message:
            _err_console.print(f"  [dim]caused by:[/] {escape(str(cause))}", soft_wrap=True)
        cause = cause.__cause__
