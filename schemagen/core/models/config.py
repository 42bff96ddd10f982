"""
Generation config — the single immutable value threaded through a run.

Built by ``schemagen.core.config.loader`` from a preset, an optional
``schemagen.yml`` and CLI overrides.  Every pipeline stage receives this
object instead of reading ambient settings.
"""

from __future__ import annotations

import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_FACTORY_MARKER = "pgTable("
DEFAULT_AGGREGATE_NAME = "dbSchema"


class GenerationConfig(BaseModel):
    """Everything a generate/validate run needs to know.

    Attributes:
        schema_dir:              Root of the tree scanned for table modules.
        output_file:             Path of the generated aggregator module.
        exclude_patterns:        Glob patterns of modules to skip.
        include_table_patterns:  Regexes a symbol must match to be included.
        exclude_table_patterns:  Regexes that always reject a symbol.
        generate_types:          Emit the ``DbSchema`` type alias.
        generate_table_names:    Emit the ``tableNames`` tuple and union type.
        import_path_mapping:     Ordered substring → import path overrides.
        factory_marker:          Initializer substring marking a table.
        aggregate_name:          Name of the exported aggregate object.
        allow_duplicate_symbols: Emit duplicate names instead of failing.
    """

    model_config = ConfigDict(frozen=True)

    schema_dir: Path
    output_file: Path
    exclude_patterns: tuple[str, ...] = ()
    include_table_patterns: tuple[str, ...] = (".*",)
    exclude_table_patterns: tuple[str, ...] = ()
    generate_types: bool = True
    generate_table_names: bool = True
    import_path_mapping: dict[str, str] = Field(default_factory=dict)
    factory_marker: str = DEFAULT_FACTORY_MARKER
    aggregate_name: str = DEFAULT_AGGREGATE_NAME
    allow_duplicate_symbols: bool = False

    @field_validator("include_table_patterns", "exclude_table_patterns")
    @classmethod
    def _check_regexes(cls, patterns: tuple[str, ...]) -> tuple[str, ...]:
        for pattern in patterns:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"invalid regex {pattern!r}: {e}") from e
        return patterns

    @field_validator("aggregate_name")
    @classmethod
    def _check_identifier(cls, name: str) -> str:
        if not re.fullmatch(r"[A-Za-z_$][\w$]*", name):
            raise ValueError(f"not a valid identifier: {name!r}")
        return name

    @field_validator("factory_marker")
    @classmethod
    def _check_marker(cls, marker: str) -> str:
        if not marker:
            raise ValueError("factory_marker must not be empty")
        return marker

    @property
    def output_dir(self) -> Path:
        """Directory every relative import path is computed from."""
        return self.output_file.parent

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")
