"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and CLI command wrappers
to ensure consistent error handling across all Typer commands.
"""
from __future__ import annotations

import typer
from typing import Callable, TypeVar

T = TypeVar('T')

# Stubs parsed but are not in canonical form (check command)
EXIT_NEEDS_REWRITE = 1

# Exit codes keyed by exception class name; the most specific class in the
# exception's MRO wins
EXIT_CODES = {
    "StubParseError": 2,
    "InvalidStub": 2,
    "NotAStub": 2,
    "InvalidStubPath": 2,
    "BuildEnvironmentError": 2,
    "ValueError": 2,
    "VcsError": 3,
    "MaterializationFailed": 3,
    "MaterializeError": 4,
    "AtomicWriteError": 4,
}

FALLBACK_EXIT_CODE = 4


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    Returns:
    - 2: Invalid input (bad stub, bad path, missing build environment)
    - 3: VCS error (no repository, missing executable, shallow clone,
      commit or path not found)
    - 4: Filesystem error, or any other failure

    Args:
        exc: Exception to map

    Returns:
        Exit code (2-4, with 4 as fallback for unknown exceptions)
    """
    for cls in type(exc).__mro__:
        code = EXIT_CODES.get(cls.__name__)
        if code is not None:
            return code
    return FALLBACK_EXIT_CODE


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function and maps any exceptions to appropriate
    exit codes using typer.Exit, after printing the error message. This
    centralizes error handling so CLI commands don't need individual
    try/except blocks.

    Args:
        func: Function to execute

    Returns:
        Function result if successful

    Raises:
        typer.Exit: With appropriate exit code if function raises exception
    """
    try:
        return func()
    except Exception as e:
        from .printers import print_error
        print_error(e)
        raise typer.Exit(code=exit_code_for(e)) from e
