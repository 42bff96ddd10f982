"""
Domain models — Pydantic types for the generator.

All models are re-exported here for convenient access:

    from schemagen.core.models import GenerationConfig, DeclarationUnit
"""

from schemagen.core.models.artifact import AggregationArtifact, DeclarationUnit
from schemagen.core.models.config import GenerationConfig

__all__ = [
    "AggregationArtifact",
    "DeclarationUnit",
    "GenerationConfig",
]
