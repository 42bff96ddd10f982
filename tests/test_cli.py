"""
Tests for the CLI — commands, exit codes, output.

Each test runs from a temporary project root laid out like the default
preset (``src/db/schema``).
"""

import json

import pytest
from click.testing import CliRunner

from schemagen import __version__
from schemagen.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def project(schema_dir, tmp_path, monkeypatch):
    """cwd = a project root whose schema lives at the default location."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SCHEMAGEN_ENV", raising=False)
    monkeypatch.delenv("SCHEMAGEN_LOG_FILE", raising=False)
    return tmp_path


def _output(project):
    return project / "src" / "db" / "schema" / "index.ts"


class TestCliBasics:
    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("generate", "validate", "watch", "sync", "clean", "info", "help"):
            assert command in result.output

    def test_help_command(self, runner):
        result = runner.invoke(cli, ["help"])
        assert result.exit_code == 0
        assert "generate" in result.output
        assert "--env" in result.output
        assert "watch" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_unknown_command(self, runner):
        result = runner.invoke(cli, ["frobnicate"])
        assert result.exit_code != 0

    def test_bad_env(self, runner, project):
        result = runner.invoke(cli, ["--env", "staging", "info"])
        assert result.exit_code != 0


class TestGenerateCommand:
    def test_generate(self, runner, project):
        result = runner.invoke(cli, ["generate"])
        assert result.exit_code == 0, result.output
        assert "✅ Generated" in result.output
        assert "Tables (3): posts, comments, users" in result.output
        assert _output(project).is_file()

    def test_generate_twice_reports_no_changes(self, runner, project):
        runner.invoke(cli, ["generate"])
        result = runner.invoke(cli, ["generate"])
        assert "(no changes)" in result.output

    def test_generate_json(self, runner, project):
        result = runner.invoke(cli, ["generate", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["written"] is True
        assert data["tables"] == ["posts", "comments", "users"]

    def test_generate_options(self, runner, project):
        out = project / "out" / "schema.ts"
        result = runner.invoke(cli, ["generate", "--output", str(out), "--no-types"])
        assert result.exit_code == 0, result.output
        text = out.read_text()
        assert "from '../src/db/schema/posts'" in text
        assert "DbSchema" not in text
        assert "tableNames" in text

    def test_output_relative_to_cwd(self, runner, project, monkeypatch):
        (project / "schemagen.yml").write_text("generate_types: true\n")
        tools = project / "tools"
        tools.mkdir()
        monkeypatch.chdir(tools)

        result = runner.invoke(cli, ["generate", "--output", "out.ts"])
        assert result.exit_code == 0, result.output
        assert (tools / "out.ts").is_file()
        assert not (project / "out.ts").exists()
        assert "from '../src/db/schema/users'" in (tools / "out.ts").read_text()

    def test_no_declarations(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        empty = tmp_path / "empty"
        empty.mkdir()
        result = runner.invoke(cli, ["generate", "--schema-dir", "empty"])
        assert result.exit_code == 0
        assert "No table declarations" in result.output
        assert not (tmp_path / "src" / "db" / "schema" / "index.ts").exists()

    def test_missing_schema_dir(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(cli, ["generate"])
        assert result.exit_code == 1
        assert "❌" in result.output


class TestValidateCommand:
    def test_missing_output(self, runner, project):
        result = runner.invoke(cli, ["validate"])
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_after_generate(self, runner, project):
        runner.invoke(cli, ["generate"])
        result = runner.invoke(cli, ["validate"])
        assert result.exit_code == 0
        assert "in sync" in result.output

    def test_diff(self, runner, project):
        runner.invoke(cli, ["generate"])
        out = _output(project)
        out.write_text(out.read_text().replace("  users,\n", ""))

        result = runner.invoke(cli, ["validate", "--diff"])
        assert result.exit_code == 1
        assert "Drift detected" in result.output
        assert "📊 Stats:" in result.output
        assert "+  users," in result.output

    def test_fix(self, runner, project):
        result = runner.invoke(cli, ["validate", "--fix"])
        assert result.exit_code == 0, result.output
        assert "✅ Fixed" in result.output
        assert runner.invoke(cli, ["validate"]).exit_code == 0

    def test_json(self, runner, project):
        result = runner.invoke(cli, ["validate", "--json"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["is_valid"] is False
        assert data["details"]["has_file"] is False


class TestSyncCommand:
    def test_sync_generates(self, runner, project):
        result = runner.invoke(cli, ["sync"])
        assert result.exit_code == 0, result.output
        assert "regenerating" in result.output
        assert _output(project).is_file()

    def test_sync_noop(self, runner, project):
        runner.invoke(cli, ["generate"])
        result = runner.invoke(cli, ["sync"])
        assert result.exit_code == 0
        assert "already in sync" in result.output


class TestCleanCommand:
    def test_clean(self, runner, project):
        runner.invoke(cli, ["generate"])
        result = runner.invoke(cli, ["clean"])
        assert result.exit_code == 0
        assert "Removed" in result.output
        assert not _output(project).exists()

    def test_nothing_to_clean(self, runner, project):
        result = runner.invoke(cli, ["clean"])
        assert result.exit_code == 0
        assert "Nothing to clean" in result.output


class TestInfoCommand:
    def test_info(self, runner, project):
        result = runner.invoke(cli, ["info"])
        assert result.exit_code == 0
        assert "Current configuration" in result.output

    def test_info_json(self, runner, project):
        result = runner.invoke(cli, ["--env", "dev", "info", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["env"] == "dev"
        assert data["aggregate_name"] == "dbSchema"
        assert data["schema_dir"].endswith("src/db/schema")

    def test_config_file(self, runner, project):
        (project / "schemagen.yml").write_text("aggregate_name: tables\n")
        result = runner.invoke(cli, ["info", "--json"])
        assert json.loads(result.output)["aggregate_name"] == "tables"

    def test_bad_config(self, runner, project):
        (project / "schemagen.yml").write_text("nonsense_key: 1\n")
        result = runner.invoke(cli, ["info"])
        assert result.exit_code == 1
        assert "Unknown config keys" in result.output


class TestEnvOption:
    def test_sync_env(self, runner, project):
        result = runner.invoke(cli, ["sync", "--env", "dev"])
        assert result.exit_code == 0, result.output
        assert _output(project).is_file()

    @pytest.mark.parametrize("command", ["generate", "validate", "watch", "clean", "info"])
    def test_accepted_by_command(self, runner, command):
        result = runner.invoke(cli, [command, "--env", "prod", "--help"])
        assert result.exit_code == 0
        assert "--env" in result.output

    def test_command_env_wins(self, runner, project):
        result = runner.invoke(cli, ["--env", "dev", "info", "--env", "prod", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["env"] == "prod"

    def test_environment_section_applied(self, runner, project):
        (project / "schemagen.yml").write_text(
            "environments:\n  prod:\n    generate_table_names: false\n"
        )
        runner.invoke(cli, ["generate", "--env", "prod"])
        assert "tableNames" not in _output(project).read_text()

    def test_bad_command_env(self, runner, project):
        result = runner.invoke(cli, ["info", "--env", "staging"])
        assert result.exit_code != 0
