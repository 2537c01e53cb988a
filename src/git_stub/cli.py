"""
git-stub CLI

Implements 3 CLI verbs with Operations facade integration:
- materialize: Resolve stubs and write the referenced files
- check: Report stubs that are not in canonical form
- fix: Rewrite non-canonical stubs in place
"""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from .logging import configure_logging
from .operations import Operations, OpsConfig, run_and_exit
from .operations.mappers import EXIT_NEEDS_REWRITE
from .operations.printers import print_check_json, print_check_report, print_fixed, print_materialized

app = typer.Typer(name="git-stub", help="Materialize files referenced by git stubs", no_args_is_help=True)

_REPO_ROOT_HELP = "Repository root; stub paths are relative to it"


@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Materialize files referenced by git stubs."""
    configure_logging(verbose=debug)


@app.command()
def materialize(
    stubs: List[str] = typer.Argument(..., help="Stub files (*.gitstub), relative to the repository root"),
    repo_root: Path = typer.Option(Path("."), "--repo-root", "-C", help=_REPO_ROOT_HELP),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Directory to write materialized files to"),
    build_script: bool = typer.Option(
        False, "--build-script",
        help="Build-script mode: output under $OUT_DIR, repo root relative to $CARGO_MANIFEST_DIR",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show which stub produced each file"),
) -> None:
    """Materialize stubs into real files."""

    def _materialize() -> None:
        ops = Operations(OpsConfig(repo_root=repo_root, verbose=verbose))
        results = ops.materialize(stubs, output_dir, build_script=build_script)
        if not build_script:
            print_materialized(results, verbose=verbose)

    run_and_exit(_materialize)


@app.command()
def check(
    stubs: List[str] = typer.Argument(..., help="Stub files, relative to the repository root"),
    repo_root: Path = typer.Option(Path("."), "--repo-root", "-C", help=_REPO_ROOT_HELP),
    json_output: bool = typer.Option(False, "--json", help="Print results as JSON"),
    verbose: bool = typer.Option(False, "--verbose", help="List canonical stubs too"),
) -> None:
    """Check that stubs parse and are in canonical form."""

    def _check():
        ops = Operations(OpsConfig(repo_root=repo_root, verbose=verbose))
        return ops.check(stubs)

    report = run_and_exit(_check)
    if json_output:
        print_check_json(report)
    else:
        print_check_report(report, verbose=verbose)
    if report.needs_rewrite_count:
        raise typer.Exit(code=EXIT_NEEDS_REWRITE)


@app.command()
def fix(
    stubs: List[str] = typer.Argument(..., help="Stub files, relative to the repository root"),
    repo_root: Path = typer.Option(Path("."), "--repo-root", "-C", help=_REPO_ROOT_HELP),
) -> None:
    """Rewrite non-canonical stubs in canonical form."""

    def _fix() -> None:
        ops = Operations(OpsConfig(repo_root=repo_root))
        rewritten = ops.fix(stubs)
        print_fixed(rewritten, total=len(stubs))

    run_and_exit(_fix)


if __name__ == "__main__":
    app()
