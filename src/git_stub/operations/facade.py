"""
Operations Facade - Application service layer.

Provides a clean interface between CLI and library APIs, centralizing
command orchestration and configuration while keeping CLI commands thin
and testable.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from ..errors import InvalidStub, StubFileUnreadable, StubParseError
from ..materialize import Materializer
from ..models import CheckReport, StubCheckResult
from ..settings import BuildScriptSettings, VcsSettings
from ..stub import canonicalize_stub_file, read_stub_file

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpsConfig:
    """
    Configuration for Operations facade.

    Centralizes policy decisions shared by all commands.
    """
    repo_root: Path = Path(".")    # Stub paths are relative to this
    verbose: bool = False          # Show detailed output


class Operations:
    """
    Application service facade for CLI operations.

    One method per CLI verb. Exceptions bubble up for central mapping to
    exit codes in ``run_and_exit``.
    """

    def __init__(
        self,
        config: OpsConfig,
        settings: Optional[VcsSettings] = None,
        build_settings: Optional[BuildScriptSettings] = None,
    ):
        """
        Initialize Operations facade.

        Args:
            config: Configuration settings
            settings: VCS executable settings (if None, loaded from environment)
            build_settings: Build environment for build-script mode (if None,
                loaded from environment when needed)
        """
        self.cfg = config
        self.settings = settings
        self.build_settings = build_settings

    def materialize(
        self,
        stub_paths: Iterable[str],
        output_dir: Optional[Path] = None,
        *,
        build_script: bool = False,
    ) -> List[Tuple[str, Path]]:
        """
        Materialize stubs.

        Args:
            stub_paths: Stub paths relative to the repository root
            output_dir: Output directory (ignored in build-script mode)
            build_script: Use build-script mode (repo root relative to the
                manifest directory, dependency announcements on stdout)

        Returns:
            (stub path, output path) for each stub, in order

        Raises:
            ValueError: If output_dir is missing outside build-script mode
        """
        if build_script:
            materializer = Materializer.for_build_script(
                self.cfg.repo_root,
                build_settings=self.build_settings,
                settings=self.settings,
            )
        else:
            if output_dir is None:
                raise ValueError("output directory is required (use --output-dir)")
            materializer = Materializer.standard(self.cfg.repo_root, output_dir, settings=self.settings)

        return [(stub_path, materializer.materialize(stub_path)) for stub_path in stub_paths]

    def check(self, stub_paths: Iterable[str]) -> CheckReport:
        """
        Parse stubs and report which ones are not in canonical form.

        Raises:
            StubFileUnreadable: If a stub cannot be read
            InvalidStub: If a stub does not parse
        """
        report = CheckReport()
        for stub_path in stub_paths:
            full_path = self.cfg.repo_root / stub_path
            try:
                stub = read_stub_file(full_path)
            except OSError as e:
                raise StubFileUnreadable(full_path, e) from e
            except StubParseError as e:
                raise InvalidStub(full_path, e) from e
            report.results.append(StubCheckResult.from_stub(Path(stub_path), stub))
        return report

    def fix(self, stub_paths: Iterable[str]) -> List[str]:
        """
        Rewrite non-canonical stubs in place.

        Returns:
            Stub paths that were rewritten

        Raises:
            StubFileUnreadable: If a stub cannot be read or rewritten
            InvalidStub: If a stub does not parse (it is left untouched)
        """
        rewritten = []
        for stub_path in stub_paths:
            full_path = self.cfg.repo_root / stub_path
            try:
                changed = canonicalize_stub_file(full_path)
            except OSError as e:
                raise StubFileUnreadable(full_path, e) from e
            except StubParseError as e:
                raise InvalidStub(full_path, e) from e
            if changed:
                logger.debug(f"Rewrote {full_path} in canonical form")
                rewritten.append(stub_path)
        return rewritten
