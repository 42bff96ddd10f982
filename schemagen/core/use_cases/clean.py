"""
Clean use case — delete the generated aggregator.
"""

from __future__ import annotations

from schemagen.core.models.config import GenerationConfig
from schemagen.core.persistence.artifact_file import remove_artifact


def run_clean(config: GenerationConfig) -> bool:
    """Remove the output file. Returns False if there was nothing to remove."""
    return remove_artifact(config.output_file)
