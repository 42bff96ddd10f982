"""
Import path resolver — the specifier the aggregator imports a module by.

Relative paths are always computed from the *configured* output file's
directory, which callers pass in explicitly.  Validation renders into
memory rather than a scratch file, but it still resolves against the
real output directory so its text matches what ``generate`` writes.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from pathlib import Path

from schemagen.core.models.artifact import DeclarationUnit
from schemagen.core.services.scanner import SOURCE_SUFFIX


def resolve_import_path(
    module_path: Path,
    output_dir: Path,
    mapping: Mapping[str, str] | None = None,
) -> str:
    """Compute the module specifier for ``module_path``.

    Args:
        module_path: Absolute path of the source module.
        output_dir: Directory of the configured output file.
        mapping: Ordered ``substring → specifier`` overrides; the first key
            contained in the module's POSIX path wins and is returned as-is.

    Returns:
        A ``./`` or ``../`` relative specifier without the source suffix,
        or the matching override.
    """
    normalized = str(module_path).replace("\\", "/")

    for needle, override in (mapping or {}).items():
        if needle in normalized:
            return override

    relative = os.path.relpath(module_path, output_dir).replace("\\", "/")
    if relative.endswith(SOURCE_SUFFIX):
        relative = relative[: -len(SOURCE_SUFFIX)]
    if not relative.startswith(("./", "../")):
        relative = f"./{relative}"
    return relative


def resolve_units(
    units: Iterable[DeclarationUnit],
    output_dir: Path,
    mapping: Mapping[str, str] | None = None,
) -> list[DeclarationUnit]:
    """Return copies of ``units`` with ``import_path`` filled in."""
    cache: dict[Path, str] = {}
    resolved: list[DeclarationUnit] = []
    for unit in units:
        if unit.module_path not in cache:
            cache[unit.module_path] = resolve_import_path(unit.module_path, output_dir, mapping)
        resolved.append(unit.model_copy(update={"import_path": cache[unit.module_path]}))
    return resolved
