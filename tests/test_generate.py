"""
Tests for the generate, validate, sync and clean use cases.
"""

import textwrap

import pytest

from schemagen.core.errors import DuplicateSymbolError
from schemagen.core.use_cases.clean import run_clean
from schemagen.core.use_cases.generate import run_generate
from schemagen.core.use_cases.sync import run_sync
from schemagen.core.use_cases.validate import run_validate


class TestRunGenerate:
    def test_writes_aggregator(self, schema_dir, make_config):
        config = make_config(schema_dir)
        result = run_generate(config)

        assert result.written is True
        assert result.unchanged is False
        assert result.table_names == ["posts", "comments", "users"]
        text = config.output_file.read_text()
        assert "import { posts, comments } from './posts';" in text
        assert "import { users } from './users';" in text
        assert "usersRelations" not in text
        assert "export const tableNames = ['posts', 'comments', 'users'] as const;" in text

    def test_idempotent_modulo_timestamp(self, schema_dir, make_config):
        config = make_config(schema_dir)
        run_generate(config)
        first = config.output_file.read_text()
        result = run_generate(config)
        second = config.output_file.read_text()

        assert result.unchanged is True
        strip = lambda t: [l for l in t.splitlines() if "Generated at:" not in l]
        assert strip(first) == strip(second)

    def test_no_declarations_leaves_existing_file(self, tmp_path, make_config):
        root = tmp_path / "schema"
        root.mkdir()
        (root / "helpers.ts").write_text("export const helper = () => 1;\n")
        out = root / "index.ts"
        out.write_text("// hand written\n")

        result = run_generate(make_config(root))
        assert result.written is False
        assert result.warnings
        assert out.read_text() == "// hand written\n"

    def test_to_dict(self, schema_dir, make_config):
        data = run_generate(make_config(schema_dir)).to_dict()
        assert data["written"] is True
        assert data["table_count"] == 3
        assert data["modules"] == ["./posts", "./users"]

    def test_single_table(self, tmp_path, make_config):
        root = tmp_path / "schema"
        root.mkdir()
        (root / "users.ts").write_text(
            'export const users = pgTable("users", { id: serial("id") });\n'
        )
        config = make_config(root)
        run_generate(config)
        text = config.output_file.read_text()
        assert "import { users } from './users';" in text
        assert 'export * from "./users";' in text
        assert "export const dbSchema = {\n  users,\n};" in text

    def test_nested_modules(self, tmp_path, make_config):
        root = tmp_path / "schema"
        (root / "auth").mkdir(parents=True)
        (root / "auth" / "sessions.ts").write_text(textwrap.dedent("""\
            export const sessions = pgTable("sessions", {
              id: text("id"),
            });
        """))
        config = make_config(root)
        run_generate(config)
        assert "import { sessions } from './auth/sessions';" in config.output_file.read_text()

    def test_excluded_test_files(self, tmp_path, make_config):
        root = tmp_path / "schema"
        root.mkdir()
        (root / "users.ts").write_text('export const users = pgTable("users", {});\n')
        (root / "users.test.ts").write_text('export const fake = pgTable("fake", {});\n')
        config = make_config(root, exclude_patterns=("**/index.ts", "**/*.test.ts"))
        result = run_generate(config)
        assert result.table_names == ["users"]

    def test_duplicates_write_nothing(self, tmp_path, make_config):
        root = tmp_path / "schema"
        root.mkdir()
        (root / "a.ts").write_text('export const users = pgTable("a", {});\n')
        (root / "b.ts").write_text('export const users = pgTable("b", {});\n')
        config = make_config(root)
        with pytest.raises(DuplicateSymbolError):
            run_generate(config)
        assert not config.output_file.exists()


class TestRunValidate:
    def test_fix_repairs_drift(self, schema_dir, make_config):
        config = make_config(schema_dir)
        result = run_validate(config, fix=True)
        assert result.validation.is_valid is False
        assert result.fix is not None and result.fix.written
        assert result.ok is True
        assert run_validate(config).ok is True

    def test_without_fix_does_not_write(self, schema_dir, make_config):
        config = make_config(schema_dir)
        result = run_validate(config)
        assert result.ok is False
        assert result.fix is None
        assert not config.output_file.exists()


class TestRunSync:
    def test_generates_when_stale(self, schema_dir, make_config):
        config = make_config(schema_dir)
        result = run_sync(config)
        assert result.generation is not None
        assert result.in_sync is True
        assert config.output_file.exists()

    def test_skips_when_in_sync(self, schema_dir, make_config):
        config = make_config(schema_dir)
        run_generate(config)
        before = config.output_file.read_text()
        result = run_sync(config)
        assert result.generation is None
        assert result.to_dict()["was_valid"] is True
        assert config.output_file.read_text() == before


class TestRunClean:
    def test_removes_output(self, schema_dir, make_config):
        config = make_config(schema_dir)
        run_generate(config)
        assert run_clean(config) is True
        assert not config.output_file.exists()
        assert run_clean(config) is False
