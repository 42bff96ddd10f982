"""
Pipeline — scan → extract → resolve → emit, as plain function calls.

``generate`` and ``validate`` both go through ``build_artifact`` so the
text they compare is produced by exactly the same code path.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from schemagen.core.models.artifact import AggregationArtifact, DeclarationUnit
from schemagen.core.models.config import GenerationConfig
from schemagen.core.services.emitter import emit_artifact
from schemagen.core.services.extractor import extract_declarations
from schemagen.core.services.import_paths import resolve_units
from schemagen.core.services.scanner import scan_modules
from schemagen.core.services.ts_source import load_module

logger = logging.getLogger(__name__)


def collect_units(
    config: GenerationConfig,
    *,
    output_dir: Path | None = None,
) -> list[DeclarationUnit]:
    """Scan the schema dir and return resolved units in discovery order.

    Args:
        config: Generation config.
        output_dir: Directory import paths are computed from.  Defaults to
            the configured output file's directory and should only be
            overridden by callers that deliberately target another file.
    """
    if output_dir is None:
        output_dir = config.output_dir

    units: list[DeclarationUnit] = []
    for path in scan_modules(config):
        module = load_module(path)
        units.extend(extract_declarations(module, config))

    logger.info("Found %d table declaration(s) in total", len(units))
    return resolve_units(units, output_dir, config.import_path_mapping)


def build_artifact(
    config: GenerationConfig,
    *,
    output_dir: Path | None = None,
    generated_at: datetime | None = None,
) -> AggregationArtifact | None:
    """Run the full pipeline in memory.

    Returns:
        The rendered artifact, or None when no declarations qualified.
        The emitter is never called with an empty unit list.
    """
    units = collect_units(config, output_dir=output_dir)
    if not units:
        return None
    return emit_artifact(units, config, generated_at=generated_at)
