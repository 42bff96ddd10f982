"""
Declaration and artifact models — what the pipeline passes between stages.

The generation timestamp lives beside the generated body rather than
inside it.  Only ``AggregationArtifact.text`` joins the two, and the
timestamp line it produces is the one line drift checks ignore.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict

TIMESTAMP_LABEL = "Generated at:"

_HEADER_TEMPLATE = """\
/**
 * Auto-generated database schema aggregate.
 * Do not edit this file by hand; run `schemagen generate` to regenerate.
 * {label} {timestamp}
 */
"""


class DeclarationUnit(BaseModel):
    """One exported table binding found in a source module.

    ``import_path`` is empty until the import path resolver fills it in.
    """

    model_config = ConfigDict(frozen=True)

    symbol_name: str
    module_path: Path
    import_path: str = ""


class AggregationArtifact(BaseModel):
    """A rendered aggregator module plus the units it includes."""

    model_config = ConfigDict(frozen=True)

    body: str
    generated_at: datetime
    units: tuple[DeclarationUnit, ...] = ()

    @property
    def header(self) -> str:
        return render_header(self.generated_at)

    @property
    def text(self) -> str:
        """Full file content: header comment, blank line, body."""
        return f"{self.header}\n{self.body}"

    @property
    def symbol_names(self) -> list[str]:
        return [u.symbol_name for u in self.units]

    @property
    def import_paths(self) -> list[str]:
        """Distinct import paths in first-seen order."""
        return list(dict.fromkeys(u.import_path for u in self.units))


def render_header(generated_at: datetime) -> str:
    """Render the header comment carrying the generation timestamp."""
    timestamp = generated_at.isoformat(timespec="milliseconds")
    return _HEADER_TEMPLATE.format(label=TIMESTAMP_LABEL, timestamp=timestamp)
