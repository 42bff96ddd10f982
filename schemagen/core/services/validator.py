"""
Drift validator — does the persisted aggregator match the live tree?

Regenerates the artifact in memory (never touching disk) with the real
config, reads the persisted file, and compares both after normalization:

    - the ``Generated at:`` header line is dropped
    - CRLF / CR line endings become LF
    - surrounding whitespace is trimmed
"""

from __future__ import annotations

import difflib
import logging
import re
from dataclasses import dataclass, field

from schemagen.core.models.artifact import TIMESTAMP_LABEL
from schemagen.core.models.config import GenerationConfig
from schemagen.core.persistence.artifact_file import read_artifact
from schemagen.core.services.pipeline import build_artifact

logger = logging.getLogger(__name__)

_TIMESTAMP_LINE = re.compile(
    r"^[ \t]*\*[ \t]*" + re.escape(TIMESTAMP_LABEL) + r".*(?:\n|$)",
    re.MULTILINE,
)


@dataclass
class ValidationDetails:
    """What the comparison saw."""

    has_file: bool = False
    content_match: bool = False
    expected_content: str | None = None
    actual_content: str | None = None

    def to_dict(self) -> dict:
        return {
            "has_file": self.has_file,
            "content_match": self.content_match,
            "expected_content": self.expected_content,
            "actual_content": self.actual_content,
        }


@dataclass
class ValidationResult:
    """Result of one drift check."""

    is_valid: bool = False
    message: str = ""
    details: ValidationDetails = field(default_factory=ValidationDetails)

    def unified_diff(self, context: int = 3) -> list[str]:
        """Line diff from the persisted artifact to the expected one."""
        expected = self.details.expected_content
        actual = self.details.actual_content
        if expected is None or actual is None:
            return []
        return list(difflib.unified_diff(
            actual.splitlines(),
            expected.splitlines(),
            fromfile="persisted",
            tofile="expected",
            lineterm="",
            n=context,
        ))

    def to_dict(self) -> dict:
        diff = self.unified_diff()
        return {
            "is_valid": self.is_valid,
            "message": self.message,
            "details": self.details.to_dict(),
            "lines_added": sum(1 for l in diff if l.startswith("+") and not l.startswith("+++")),
            "lines_removed": sum(1 for l in diff if l.startswith("-") and not l.startswith("---")),
        }


def normalize_content(content: str) -> str:
    """Drop the timestamp line, unify line endings, trim whitespace."""
    content = content.replace("\r\n", "\n").replace("\r", "\n")
    content = _TIMESTAMP_LINE.sub("", content, count=1)
    return content.strip()


def validate_artifact(config: GenerationConfig) -> ValidationResult:
    """Compare the persisted artifact against a fresh in-memory generation.

    Never writes.  Scan and read failures propagate to the caller.
    """
    logger.info("Validating %s against %s", config.output_file, config.schema_dir)

    # Import paths resolve against the real output dir, not a scratch one.
    artifact = build_artifact(config, output_dir=config.output_dir)
    actual = read_artifact(config.output_file)

    if artifact is None:
        return ValidationResult(
            is_valid=False,
            message=f"No table declarations found under {config.schema_dir}",
            details=ValidationDetails(
                has_file=actual is not None,
                actual_content=normalize_content(actual) if actual is not None else None,
            ),
        )

    expected = normalize_content(artifact.text)

    if actual is None:
        return ValidationResult(
            is_valid=False,
            message=(
                f"Generated schema file {config.output_file} does not exist; "
                "run `schemagen generate`"
            ),
            details=ValidationDetails(
                has_file=False,
                content_match=False,
                expected_content=expected,
            ),
        )

    normalized_actual = normalize_content(actual)
    if expected == normalized_actual:
        logger.info("Artifact is in sync (%d tables)", len(artifact.units))
        return ValidationResult(
            is_valid=True,
            message="Schema file is in sync with the current table definitions",
            details=ValidationDetails(has_file=True, content_match=True),
        )

    logger.info("Drift detected in %s", config.output_file)
    return ValidationResult(
        is_valid=False,
        message=(
            f"Drift detected: {config.output_file} is out of date; "
            "run `schemagen generate` to update it"
        ),
        details=ValidationDetails(
            has_file=True,
            content_match=False,
            expected_content=expected,
            actual_content=normalized_actual,
        ),
    )
