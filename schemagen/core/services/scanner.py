"""
Source scanner — enumerate candidate table modules under the schema dir.

Walks the tree depth-first with directory entries sorted, so two runs
over the same tree visit modules in the same order.  That order is the
order declarations appear in the generated artifact.
"""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from schemagen.core.errors import ScanError
from schemagen.core.models.config import GenerationConfig

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".ts"

# Our own output file name, skipped whatever the excludes say.
GENERATED_FILE = "generated-schema.ts"

_SKIP_DIRS = {"node_modules", ".git"}


def scan_modules(config: GenerationConfig) -> list[Path]:
    """List the source modules the extractor should read.

    Args:
        config: Generation config (schema_dir, exclude_patterns, output_file).

    Returns:
        Absolute module paths in walk order.

    Raises:
        ScanError: If schema_dir is missing or cannot be listed.
    """
    root = config.schema_dir
    if not root.is_dir():
        raise ScanError(f"Schema directory not found: {root}")

    output_file = config.output_file.resolve()
    modules: list[Path] = []

    for path in _walk(root):
        if path.name == GENERATED_FILE or path.resolve() == output_file:
            logger.debug("Skipping generated file %s", path)
            continue
        if is_excluded(path, root, config.exclude_patterns):
            logger.debug("Excluded %s", path)
            continue
        modules.append(path)

    logger.info("Found %d schema module(s) under %s", len(modules), root)
    return modules


def is_excluded(path: Path, root: Path, patterns: Iterable[str]) -> bool:
    """Whether ``path`` matches any exclude glob.

    Relative patterns are matched against the path relative to ``root``,
    absolute ones against the absolute path.  Matching is per path
    segment: ``*``, ``?`` and ``[...]`` never cross a ``/``, and a ``**``
    segment matches zero or more directories, so ``**/index.ts``
    excludes ``<root>/index.ts`` as well as ``<root>/a/b/index.ts``.
    """
    absolute = path.as_posix()
    try:
        relative = path.relative_to(root).as_posix()
    except ValueError:
        relative = absolute

    for pattern in patterns:
        pattern = pattern.replace("\\", "/")
        target = absolute if pattern.startswith("/") else relative
        if _match_segments(target.strip("/").split("/"), pattern.strip("/").split("/")):
            return True
    return False


def _match_segments(parts: list[str], segments: list[str]) -> bool:
    if not segments:
        return not parts
    head, rest = segments[0], segments[1:]
    if head == "**":
        return any(_match_segments(parts[i:], rest) for i in range(len(parts) + 1))
    if not parts:
        return False
    return fnmatch.fnmatchcase(parts[0], head) and _match_segments(parts[1:], rest)


def _walk(directory: Path) -> Iterator[Path]:
    try:
        entries = sorted(directory.iterdir())
    except OSError as e:
        raise ScanError(f"Cannot list {directory}: {e}") from e

    for entry in entries:
        if entry.is_dir():
            if entry.name in _SKIP_DIRS:
                continue
            yield from _walk(entry)
        elif entry.is_file() and entry.name.endswith(SOURCE_SUFFIX):
            yield entry.absolute()
