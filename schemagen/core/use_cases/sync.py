"""
Sync use case — validate, and generate only when out of date.
"""

from __future__ import annotations

from dataclasses import dataclass

from schemagen.core.models.config import GenerationConfig
from schemagen.core.services.validator import ValidationResult, validate_artifact
from schemagen.core.use_cases.generate import GenerateResult, run_generate


@dataclass
class SyncResult:
    validation: ValidationResult
    generation: GenerateResult | None = None

    @property
    def in_sync(self) -> bool:
        if self.validation.is_valid:
            return True
        return self.generation is not None and self.generation.written

    def to_dict(self) -> dict:
        return {
            "was_valid": self.validation.is_valid,
            "message": self.validation.message,
            "generated": self.generation.to_dict() if self.generation else None,
            "in_sync": self.in_sync,
        }


def run_sync(config: GenerationConfig) -> SyncResult:
    validation = validate_artifact(config)
    if validation.is_valid:
        return SyncResult(validation=validation)
    return SyncResult(validation=validation, generation=run_generate(config))
