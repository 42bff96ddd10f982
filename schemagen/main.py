"""
schemagen — CLI entrypoint.

Usage:
    schemagen --help
    schemagen generate
    schemagen validate --diff
    schemagen sync --env dev
    python -m schemagen.main watch
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import NoReturn

import click

from schemagen import __version__
from schemagen.core.config.loader import ENVIRONMENTS, load_config
from schemagen.core.errors import SchemagenError
from schemagen.core.models.config import GenerationConfig
from schemagen.core.observability.logging_config import configure_cli_logging

logger = logging.getLogger(__name__)

_DIFF_PREVIEW_CHARS = 100
_DIFF_MAX_LINES = 50


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="schemagen")
@click.option(
    "--env",
    type=click.Choice(ENVIRONMENTS),
    default=None,
    help="Config preset (default: $SCHEMAGEN_ENV or 'default').",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to schemagen.yml (default: auto-detect).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(
    ctx: click.Context,
    env: str | None,
    config_path: str | None,
    verbose: bool,
    quiet: bool,
    debug: bool,
) -> None:
    """schemagen — aggregate pgTable definitions into one schema module."""
    ctx.ensure_object(dict)
    ctx.obj["env"] = env or os.environ.get("SCHEMAGEN_ENV", "default")
    ctx.obj["config_path"] = Path(config_path) if config_path else None
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    configure_cli_logging(debug=debug, verbose=verbose, quiet=quiet)


# ── Helpers ─────────────────────────────────────────────────────


def _env_option(func):
    """Per-command --env; wins over the group-level one."""
    return click.option(
        "--env", "env", type=click.Choice(ENVIRONMENTS), default=None,
        help="Config preset for this command (overrides the global --env).",
    )(func)


def _generation_options(func):
    """Options that override the generation config for one command."""
    func = click.option(
        "--no-table-names", "no_table_names", is_flag=True,
        help="Don't emit the tableNames list and TableName type.",
    )(func)
    func = click.option(
        "--no-types", "no_types", is_flag=True,
        help="Don't emit the schema type alias.",
    )(func)
    func = click.option(
        "--output", "output_file", default=None,
        help="Output file path.",
    )(func)
    func = click.option(
        "--schema-dir", "schema_dir", default=None,
        help="Directory containing the table modules.",
    )(func)
    return _env_option(func)


def _load(
    ctx: click.Context,
    env: str | None = None,
    schema_dir: str | None = None,
    output_file: str | None = None,
    no_types: bool = False,
    no_table_names: bool = False,
) -> GenerationConfig:
    if env:
        ctx.obj["env"] = env
    overrides = {
        "schema_dir": schema_dir,
        "output_file": output_file,
        "generate_types": False if no_types else None,
        "generate_table_names": False if no_table_names else None,
    }
    return load_config(
        env=ctx.obj["env"],
        config_path=ctx.obj.get("config_path"),
        overrides=overrides,
    )


def _fail(error: Exception) -> NoReturn:
    logger.debug("Command failed", exc_info=error)
    click.secho(f"❌ {error}", fg="red", err=True)
    sys.exit(1)


def _quiet(ctx: click.Context) -> bool:
    return bool(ctx.obj.get("quiet"))


def _echo_generate(ctx: click.Context, result, config: GenerationConfig) -> None:
    for warning in result.warnings:
        click.secho(f"⚠️  {warning}", fg="yellow")
    if not result.written or _quiet(ctx):
        return

    state = " (no changes)" if result.unchanged else ""
    click.secho(f"✅ Generated {config.output_file}{state}", fg="green", bold=True)
    click.echo(f"   Tables ({len(result.table_names)}): {', '.join(result.table_names)}")

    if ctx.obj.get("verbose"):
        click.echo()
        click.secho("📋 Generation config:", fg="cyan")
        click.echo(f"   Schema dir:  {config.schema_dir}")
        click.echo(f"   Output file: {config.output_file}")
        click.echo(f"   Types:       {'yes' if config.generate_types else 'no'}")
        click.echo(f"   Table names: {'yes' if config.generate_table_names else 'no'}")


def _echo_differences(validation) -> None:
    """Print previews, line counts and a unified diff of a mismatch."""
    details = validation.details
    if details.expected_content is None or details.actual_content is None:
        return

    click.echo()
    click.secho("📋 Differences:", fg="cyan", bold=True)
    click.echo(f"\nExpected (first {_DIFF_PREVIEW_CHARS} chars):")
    click.echo(f"{details.expected_content[:_DIFF_PREVIEW_CHARS]}...")
    click.echo(f"\nActual (first {_DIFF_PREVIEW_CHARS} chars):")
    click.echo(f"{details.actual_content[:_DIFF_PREVIEW_CHARS]}...")

    expected_lines = len(details.expected_content.splitlines())
    actual_lines = len(details.actual_content.splitlines())
    click.echo()
    click.secho("📊 Stats:", fg="cyan")
    click.echo(f"   Expected lines: {expected_lines}")
    click.echo(f"   Actual lines:   {actual_lines}")
    if expected_lines != actual_lines:
        click.secho("   ⚠️  Line count mismatch", fg="yellow")

    diff = validation.unified_diff()
    if diff:
        click.echo()
        for line in diff[:_DIFF_MAX_LINES]:
            color = None
            if line.startswith("+") and not line.startswith("+++"):
                color = "green"
            elif line.startswith("-") and not line.startswith("---"):
                color = "red"
            click.secho(line, fg=color)
        if len(diff) > _DIFF_MAX_LINES:
            click.echo(f"... ({len(diff) - _DIFF_MAX_LINES} more lines)")


# ── Commands ────────────────────────────────────────────────────


@cli.command()
@_generation_options
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def generate(
    ctx: click.Context,
    env: str | None,
    schema_dir: str | None,
    output_file: str | None,
    no_types: bool,
    no_table_names: bool,
    as_json: bool,
) -> None:
    """Scan table modules and write the schema aggregator."""
    from schemagen.core.use_cases.generate import run_generate

    try:
        config = _load(ctx, env, schema_dir, output_file, no_types, no_table_names)
        if not as_json and not _quiet(ctx):
            click.secho(f"🚀 Scanning {config.schema_dir} ...", fg="cyan")
        result = run_generate(config)
    except SchemagenError as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    _echo_generate(ctx, result, config)


@cli.command()
@_generation_options
@click.option("--diff", "show_diff", is_flag=True, help="Show detailed differences.")
@click.option("--fix", is_flag=True, help="Regenerate when out of sync.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def validate(
    ctx: click.Context,
    env: str | None,
    schema_dir: str | None,
    output_file: str | None,
    no_types: bool,
    no_table_names: bool,
    show_diff: bool,
    fix: bool,
    as_json: bool,
) -> None:
    """Check whether the generated aggregator is in sync."""
    from schemagen.core.use_cases.validate import run_validate

    try:
        config = _load(ctx, env, schema_dir, output_file, no_types, no_table_names)
        result = run_validate(config, fix=fix)
    except SchemagenError as e:
        _fail(e)

    validation = result.validation

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if not _quiet(ctx) or not validation.is_valid:
        icon, color = ("✅", "green") if validation.is_valid else ("❌", "red")
        click.secho(f"{icon} {validation.message}", fg=color)

    if not validation.is_valid and show_diff:
        _echo_differences(validation)

    if result.fix is not None:
        click.secho("🔧 Fixing...", fg="cyan")
        _echo_generate(ctx, result.fix, config)
        if result.fix.written:
            click.secho("✅ Fixed", fg="green")

    if not result.ok:
        sys.exit(1)


@cli.command()
@_generation_options
@click.pass_context
def sync(
    ctx: click.Context,
    env: str | None,
    schema_dir: str | None,
    output_file: str | None,
    no_types: bool,
    no_table_names: bool,
) -> None:
    """Validate, and regenerate only if out of sync."""
    from schemagen.core.use_cases.sync import run_sync

    try:
        config = _load(ctx, env, schema_dir, output_file, no_types, no_table_names)
        if not _quiet(ctx):
            click.secho("🔄 Syncing schema...", fg="cyan")
        result = run_sync(config)
    except SchemagenError as e:
        _fail(e)

    if result.generation is None:
        if not _quiet(ctx):
            click.secho("✅ Schema already in sync, nothing to generate", fg="green")
        return

    if not _quiet(ctx):
        click.secho("🔧 Schema out of sync, regenerating...", fg="yellow")
    _echo_generate(ctx, result.generation, config)

    if not result.in_sync:
        sys.exit(1)


@cli.command()
@_generation_options
@click.option(
    "--interval", type=float, default=1.0, show_default=True,
    help="Seconds between polls.",
)
@click.option(
    "--debounce", type=float, default=0.5, show_default=True,
    help="Quiet period before regenerating.",
)
@click.pass_context
def watch(
    ctx: click.Context,
    env: str | None,
    schema_dir: str | None,
    output_file: str | None,
    no_types: bool,
    no_table_names: bool,
    interval: float,
    debounce: float,
) -> None:
    """Regenerate whenever table modules change (Ctrl+C to stop)."""
    from schemagen.core.services.watcher import SchemaWatcher
    from schemagen.core.use_cases.generate import run_generate

    try:
        config = _load(ctx, env, schema_dir, output_file, no_types, no_table_names)
        _echo_generate(ctx, run_generate(config), config)
    except SchemagenError as e:
        _fail(e)

    def regenerate(cfg: GenerationConfig) -> None:
        _echo_generate(ctx, run_generate(cfg), cfg)

    watcher = SchemaWatcher(config, regenerate, poll_interval=interval, debounce=debounce)
    click.secho(f"👀 Watching {config.schema_dir} (Ctrl+C to stop)", fg="cyan")
    try:
        watcher.start()
    except KeyboardInterrupt:
        watcher.stop()
        click.echo("\n👋 Stopped watching")


@cli.command()
@_env_option
@click.pass_context
def clean(ctx: click.Context, env: str | None) -> None:
    """Delete the generated aggregator."""
    from schemagen.core.use_cases.clean import run_clean

    try:
        config = _load(ctx, env)
        removed = run_clean(config)
    except SchemagenError as e:
        _fail(e)

    if removed:
        click.secho(f"🗑️  Removed {config.output_file}", fg="green")
    elif not _quiet(ctx):
        click.echo("📁 Nothing to clean")


@cli.command()
@_env_option
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def info(ctx: click.Context, env: str | None, as_json: bool) -> None:
    """Show the effective configuration."""
    try:
        config = _load(ctx, env)
    except SchemagenError as e:
        _fail(e)

    if as_json:
        data = {"env": ctx.obj["env"], **config.to_dict()}
        click.echo(json.dumps(data, indent=2))
        return

    click.secho("📋 Current configuration:", fg="cyan", bold=True)
    click.echo(f"   Environment:            {ctx.obj['env']}")
    click.echo(f"   Schema dir:             {config.schema_dir}")
    click.echo(f"   Output file:            {config.output_file}")
    click.echo(f"   Generate types:         {'yes' if config.generate_types else 'no'}")
    click.echo(f"   Generate table names:   {'yes' if config.generate_table_names else 'no'}")
    click.echo(f"   Exclude file patterns:  {', '.join(config.exclude_patterns)}")
    click.echo(f"   Include table patterns: {', '.join(config.include_table_patterns)}")
    click.echo(f"   Exclude table patterns: {', '.join(config.exclude_table_patterns)}")
    if config.import_path_mapping:
        click.echo("   Import path mapping:")
        for needle, target in config.import_path_mapping.items():
            click.echo(f"     • {needle} → {target}")


@cli.command("help")
@click.pass_context
def help_(ctx: click.Context) -> None:
    """Show this help message."""
    click.echo(ctx.find_root().get_help())


if __name__ == "__main__":
    cli()
