"""
Validate use case — drift check, optionally followed by a fix.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from schemagen.core.models.config import GenerationConfig
from schemagen.core.services.validator import ValidationResult, validate_artifact
from schemagen.core.use_cases.generate import GenerateResult, run_generate

logger = logging.getLogger(__name__)


@dataclass
class ValidateResult:
    """A validation, plus the regeneration ``--fix`` triggered (if any)."""

    validation: ValidationResult
    fix: GenerateResult | None = None

    @property
    def ok(self) -> bool:
        """Valid, or invalid but successfully repaired."""
        if self.validation.is_valid:
            return True
        return self.fix is not None and self.fix.written

    def to_dict(self) -> dict:
        data = self.validation.to_dict()
        data["fixed"] = self.fix.to_dict() if self.fix else None
        return data


def run_validate(config: GenerationConfig, *, fix: bool = False) -> ValidateResult:
    """Check the artifact for drift; with ``fix``, regenerate when invalid."""
    validation = validate_artifact(config)
    result = ValidateResult(validation=validation)

    if not validation.is_valid and fix:
        logger.info("Fixing drift by regenerating %s", config.output_file)
        result.fix = run_generate(config)

    return result
