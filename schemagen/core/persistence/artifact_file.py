"""
Artifact file persistence — atomic read/write for the generated module.

The aggregator is the only durable state the tool has.  Writes are
atomic (write to temp file, then rename) so a crash mid-write never
leaves a truncated module behind.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

from schemagen.core.errors import EmissionError

logger = logging.getLogger(__name__)


def read_artifact(path: Path) -> str | None:
    """Read the persisted artifact.

    Returns:
        File content, or None if the file doesn't exist.

    Raises:
        EmissionError: If the file exists but cannot be read.
    """
    if not path.is_file():
        return None
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise EmissionError(f"Cannot read {path}: {e}") from e


def write_artifact(path: Path, content: str) -> None:
    """Write the artifact (atomic write).

    Uses write-to-temp-then-rename to prevent corruption.

    Raises:
        EmissionError: If the directory or file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise EmissionError(f"Cannot create directory {path.parent}: {e}") from e

    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=".schemagen_",
            suffix=".tmp",
        )
    except OSError as e:
        raise EmissionError(f"Cannot write {path}: {e}") from e

    tmp = Path(tmp_path)
    try:
        with open(fd, "w", encoding="utf-8", newline="\n") as fh:
            fh.write(content)
        tmp.chmod(0o644)  # mkstemp creates 0600
        tmp.replace(path)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        logger.error("Failed to write %s: %s", path, e)
        raise EmissionError(f"Cannot write {path}: {e}") from e

    logger.debug("Artifact written to %s (%d bytes)", path, len(content.encode()))


def remove_artifact(path: Path) -> bool:
    """Delete the artifact.

    Returns:
        True if a file was removed, False if there was nothing to remove.

    Raises:
        EmissionError: If the file exists but cannot be removed.
    """
    if not path.exists():
        return False
    try:
        path.unlink()
    except OSError as e:
        raise EmissionError(f"Cannot remove {path}: {e}") from e
    logger.info("Removed %s", path)
    return True
