"""
Declaration extractor — pick the table bindings out of one module.

A binding qualifies when it is exported under a name other than
``default``, has an initializer, and the initializer text contains the
factory marker (``pgTable(`` by default).
Qualifying names then go through the name policy:

    1. any exclude pattern matches  → reject
    2. any include pattern matches  → accept
    3. otherwise                    → reject
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from schemagen.core.models.artifact import DeclarationUnit
from schemagen.core.models.config import GenerationConfig
from schemagen.core.services.ts_source import SourceModule

logger = logging.getLogger(__name__)


def should_include(
    symbol_name: str,
    include_patterns: Iterable[str],
    exclude_patterns: Iterable[str],
) -> bool:
    """Apply the name policy. Excludes always win over includes."""
    if any(re.search(p, symbol_name) for p in exclude_patterns):
        return False
    return any(re.search(p, symbol_name) for p in include_patterns)


def extract_declarations(
    module: SourceModule,
    config: GenerationConfig,
) -> list[DeclarationUnit]:
    """Return the accepted table declarations of a module, in source order.

    The returned units have no ``import_path`` yet; see
    ``schemagen.core.services.import_paths.resolve_units``.
    """
    units: list[DeclarationUnit] = []

    for decl in module.declarations:
        if decl.initializer is None or not decl.exported:
            continue
        if config.factory_marker not in decl.initializer:
            continue

        symbol = decl.export_name or decl.name
        if symbol == "default":
            # `import { default }` is not valid TypeScript
            logger.debug("Skipping default export %s in %s", decl.name, module.path)
            continue
        if should_include(
            symbol,
            config.include_table_patterns,
            config.exclude_table_patterns,
        ):
            logger.info("Found table %s in %s", symbol, module.path)
            units.append(DeclarationUnit(symbol_name=symbol, module_path=module.path))
        else:
            logger.debug("Skipping table %s in %s (filtered by name patterns)", symbol, module.path)

    return units
