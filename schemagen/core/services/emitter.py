"""
Module emitter — render the aggregator module from resolved units.

Layout of the generated file:

    header comment (with the generation timestamp)
    one ``import { ... } from '<path>';`` per distinct import path
    ``export const <aggregate> = { ... };`` listing every table
    one ``export * from "<path>";`` per distinct import path
    optional ``DbSchema`` type alias
    optional ``tableNames`` tuple and ``TableName`` union type

Units keep discovery order throughout; nothing is sorted by name.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence
from datetime import UTC, datetime

from schemagen.core.errors import DuplicateSymbolError, EmissionError
from schemagen.core.models.artifact import AggregationArtifact, DeclarationUnit
from schemagen.core.models.config import GenerationConfig

logger = logging.getLogger(__name__)


def group_by_import_path(units: Sequence[DeclarationUnit]) -> dict[str, list[str]]:
    """Map import path → symbol names, both in first-seen order."""
    groups: dict[str, list[str]] = {}
    for unit in units:
        groups.setdefault(unit.import_path, []).append(unit.symbol_name)
    return groups


def find_duplicates(units: Sequence[DeclarationUnit]) -> dict[str, list[str]]:
    """Symbol names declared more than once, with the modules declaring them."""
    seen: dict[str, list[str]] = defaultdict(list)
    for unit in units:
        seen[unit.symbol_name].append(unit.module_path.as_posix())
    return {name: modules for name, modules in seen.items() if len(modules) > 1}


def type_alias_name(aggregate_name: str) -> str:
    """``dbSchema`` → ``DbSchema``."""
    return aggregate_name[:1].upper() + aggregate_name[1:]


def render_body(units: Sequence[DeclarationUnit], config: GenerationConfig) -> str:
    """Render everything below the header. Ends with a single newline."""
    groups = group_by_import_path(units)
    names = [u.symbol_name for u in units]
    aggregate = config.aggregate_name

    imports = "\n".join(
        f"import {{ {', '.join(symbols)} }} from '{path}';"
        for path, symbols in groups.items()
    )
    members = "\n".join(f"  {name}," for name in names)
    sections = [
        imports,
        f"export const {aggregate} = {{\n{members}\n}};",
        "// Re-export every scanned schema module\n"
        + "\n".join(f'export * from "{path}";' for path in groups),
    ]

    if config.generate_types:
        sections.append(
            "/**\n * Database schema type\n */\n"
            f"export type {type_alias_name(aggregate)} = typeof {aggregate};"
        )

    if config.generate_table_names:
        quoted = ", ".join(f"'{name}'" for name in names)
        sections.append(
            "/**\n * Names of all tables\n */\n"
            f"export const tableNames = [{quoted}] as const;"
        )
        sections.append(
            "/**\n * Table name type\n */\n"
            "export type TableName = typeof tableNames[number];"
        )

    return "\n\n".join(sections) + "\n"


def emit_artifact(
    units: Sequence[DeclarationUnit],
    config: GenerationConfig,
    *,
    generated_at: datetime | None = None,
) -> AggregationArtifact:
    """Render the aggregator for resolved units.

    Args:
        units: Accepted units with ``import_path`` set, in discovery order.
        config: Generation config.
        generated_at: Timestamp for the header (default: now, UTC).

    Raises:
        EmissionError: No units, or a unit without an import path.
        DuplicateSymbolError: Two units share a name and duplicates are
            not allowed by the config.
    """
    if not units:
        raise EmissionError("Nothing to emit: no table declarations")

    unresolved = [u.symbol_name for u in units if not u.import_path]
    if unresolved:
        raise EmissionError(f"Unresolved import path for: {', '.join(unresolved)}")

    duplicates = find_duplicates(units)
    if duplicates:
        if not config.allow_duplicate_symbols:
            raise DuplicateSymbolError(duplicates)
        logger.warning(
            "Duplicate table symbols (later ones shadow earlier ones): %s",
            ", ".join(sorted(duplicates)),
        )

    body = render_body(units, config)
    return AggregationArtifact(
        body=body,
        generated_at=generated_at or datetime.now(UTC),
        units=tuple(units),
    )
