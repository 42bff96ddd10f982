"""
Generate use case — rebuild the aggregator and write it to disk.

With no qualifying declarations nothing is written and an existing
output file is left exactly as it was.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from schemagen.core.models.artifact import AggregationArtifact
from schemagen.core.models.config import GenerationConfig
from schemagen.core.persistence.artifact_file import read_artifact, write_artifact
from schemagen.core.services.pipeline import build_artifact
from schemagen.core.services.validator import normalize_content

logger = logging.getLogger(__name__)


@dataclass
class GenerateResult:
    """Result of the generate use case."""

    output_file: Path | None = None
    artifact: AggregationArtifact | None = None
    written: bool = False
    unchanged: bool = False
    warnings: list[str] = field(default_factory=list)

    @property
    def table_names(self) -> list[str]:
        return self.artifact.symbol_names if self.artifact else []

    def to_dict(self) -> dict:
        return {
            "output_file": str(self.output_file) if self.output_file else None,
            "written": self.written,
            "unchanged": self.unchanged,
            "table_count": len(self.table_names),
            "tables": self.table_names,
            "modules": self.artifact.import_paths if self.artifact else [],
            "generated_at": (
                self.artifact.generated_at.isoformat() if self.artifact else None
            ),
            "warnings": self.warnings,
        }


def run_generate(config: GenerationConfig) -> GenerateResult:
    """Scan, render and write the aggregator.

    Raises:
        SchemagenError: Scan, duplicate or write failures.
    """
    result = GenerateResult(output_file=config.output_file)

    artifact = build_artifact(config)
    if artifact is None:
        msg = f"No table declarations found under {config.schema_dir}; nothing written"
        logger.warning(msg)
        result.warnings.append(msg)
        return result

    result.artifact = artifact

    previous = read_artifact(config.output_file)
    if previous is not None and normalize_content(previous) == normalize_content(artifact.text):
        result.unchanged = True

    write_artifact(config.output_file, artifact.text)
    result.written = True
    logger.info(
        "Wrote %s with %d table(s)", config.output_file, len(artifact.units),
    )
    return result
