"""
Tests for the module emitter — grouping, ordering and optional sections.
"""

from datetime import UTC, datetime
from pathlib import Path

import pytest

from schemagen.core.errors import DuplicateSymbolError, EmissionError
from schemagen.core.models.artifact import DeclarationUnit
from schemagen.core.services.emitter import (
    emit_artifact,
    find_duplicates,
    group_by_import_path,
    render_body,
    type_alias_name,
)

ROOT = Path("/repo/schema")
FIXED_TIME = datetime(2024, 5, 1, 12, 30, 0, tzinfo=UTC)


def _unit(name: str, module: str) -> DeclarationUnit:
    return DeclarationUnit(
        symbol_name=name,
        module_path=ROOT / f"{module}.ts",
        import_path=f"./{module}",
    )


UNITS = [
    _unit("posts", "posts"),
    _unit("users", "users"),
    _unit("comments", "posts"),
]

EXPECTED_BODY = """\
import { posts, comments } from './posts';
import { users } from './users';

export const dbSchema = {
  posts,
  users,
  comments,
};

// Re-export every scanned schema module
export * from "./posts";
export * from "./users";

/**
 * Database schema type
 */
export type DbSchema = typeof dbSchema;

/**
 * Names of all tables
 */
export const tableNames = ['posts', 'users', 'comments'] as const;

/**
 * Table name type
 */
export type TableName = typeof tableNames[number];
"""


class TestGrouping:
    def test_group_order(self):
        groups = group_by_import_path(UNITS)
        assert list(groups) == ["./posts", "./users"]
        assert groups["./posts"] == ["posts", "comments"]

    def test_find_duplicates(self):
        units = [_unit("a", "x"), _unit("b", "x"), _unit("a", "y")]
        dupes = find_duplicates(units)
        assert list(dupes) == ["a"]
        assert dupes["a"] == ["/repo/schema/x.ts", "/repo/schema/y.ts"]

    def test_type_alias_name(self):
        assert type_alias_name("dbSchema") == "DbSchema"
        assert type_alias_name("Tables") == "Tables"


class TestRenderBody:
    def test_full_body(self, make_config):
        assert render_body(UNITS, make_config(ROOT)) == EXPECTED_BODY

    def test_without_optional_sections(self, make_config):
        config = make_config(ROOT, generate_types=False, generate_table_names=False)
        body = render_body(UNITS, config)
        assert body.endswith('export * from "./users";\n')
        assert "DbSchema" not in body
        assert "tableNames" not in body

    def test_types_only(self, make_config):
        config = make_config(ROOT, generate_table_names=False)
        body = render_body(UNITS, config)
        assert body.endswith("export type DbSchema = typeof dbSchema;\n")

    def test_custom_aggregate_name(self, make_config):
        config = make_config(ROOT, aggregate_name="tables")
        body = render_body(UNITS, config)
        assert "export const tables = {" in body
        assert "export type Tables = typeof tables;" in body

    def test_one_import_and_reexport_per_module(self, make_config):
        body = render_body(UNITS, make_config(ROOT))
        assert body.count("from './posts';") == 1
        assert body.count('export * from "./posts";') == 1


class TestEmitArtifact:
    def test_header_and_text(self, make_config):
        artifact = emit_artifact(UNITS, make_config(ROOT), generated_at=FIXED_TIME)
        assert artifact.body == EXPECTED_BODY
        assert artifact.text.startswith("/**\n * Auto-generated database schema aggregate.")
        assert " * Generated at: 2024-05-01T12:30:00.000+00:00\n" in artifact.text
        assert artifact.text.endswith(EXPECTED_BODY)
        assert artifact.symbol_names == ["posts", "users", "comments"]
        assert artifact.import_paths == ["./posts", "./users"]

    def test_default_timestamp_is_now(self, make_config):
        before = datetime.now(UTC)
        artifact = emit_artifact(UNITS, make_config(ROOT))
        assert artifact.generated_at >= before

    def test_empty_units(self, make_config):
        with pytest.raises(EmissionError):
            emit_artifact([], make_config(ROOT))

    def test_unresolved_units(self, make_config):
        unit = DeclarationUnit(symbol_name="a", module_path=ROOT / "a.ts")
        with pytest.raises(EmissionError, match="Unresolved"):
            emit_artifact([unit], make_config(ROOT))

    def test_duplicates_fail_fast(self, make_config):
        units = [_unit("users", "a"), _unit("users", "b")]
        with pytest.raises(DuplicateSymbolError) as exc_info:
            emit_artifact(units, make_config(ROOT))
        assert "users" in exc_info.value.duplicates

    def test_duplicates_allowed(self, make_config, caplog):
        units = [_unit("users", "a"), _unit("users", "b")]
        config = make_config(ROOT, allow_duplicate_symbols=True)
        artifact = emit_artifact(units, config)
        assert artifact.body.count("  users,") == 2
        assert "Duplicate table symbols" in caplog.text
