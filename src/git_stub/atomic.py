"""
Atomic file writes.

Content is written to a temporary file in the destination directory and then
renamed into place, so a reader of the destination sees either the previous
file (or no file) or the complete new content, never a partial write.
"""
from __future__ import annotations

import logging
import os
import stat
import uuid
from pathlib import Path
from typing import Tuple

from .errors import AtomicWriteError

__all__ = ["write_bytes_atomically", "TEMP_PREFIX"]

logger = logging.getLogger(__name__)

# Prefix of temporary files; a crash between write and rename can leave one behind
TEMP_PREFIX = ".gitstub.tmp."


def _keep_existing_mode(target_path: Path, fd: int) -> None:
    try:
        mode = stat.S_IMODE(os.stat(target_path).st_mode)
    except FileNotFoundError:
        return
    os.fchmod(fd, mode)


def _open_temp_file(target_path: Path) -> Tuple[int, Path]:
    """
    Create a uniquely named temporary file next to ``target_path``.

    ``tempfile.mkstemp`` always creates mode 0600; opening with 0666 lets the
    process umask decide, as for any newly created file.
    """
    while True:
        temp_path = target_path.parent / f"{TEMP_PREFIX}{os.getpid()}.{uuid.uuid4().hex}"
        try:
            return os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o666), temp_path
        except FileExistsError:
            continue


def write_bytes_atomically(target_path: Path, content: bytes) -> None:
    """
    Write file content atomically using temp file + rename.

    The parent directory must already exist. An existing file at
    ``target_path`` is replaced and its permission bits are kept; a new
    file gets the default mode for the process umask.

    Args:
        target_path: Final path for the file
        content: Content bytes to write

    Raises:
        AtomicWriteError: With phase "write" if writing the temporary file
            failed, or phase "rename" if creating it or renaming it into
            place failed. The temporary file is removed in both cases.
    """
    target_path = Path(target_path)
    try:
        fd, temp_path = _open_temp_file(target_path)
    except OSError as e:
        raise AtomicWriteError(target_path, "rename", e) from e

    try:
        try:
            with os.fdopen(fd, "wb") as out:
                _keep_existing_mode(target_path, out.fileno())
                out.write(content)
                out.flush()
                os.fsync(out.fileno())
        except OSError as e:
            raise AtomicWriteError(target_path, "write", e) from e

        try:
            os.replace(temp_path, target_path)
        except OSError as e:
            raise AtomicWriteError(target_path, "rename", e) from e
    except Exception:
        # Clean up temp file on any error
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
        raise

    logger.debug(f"Wrote {len(content)} bytes to {target_path}")
