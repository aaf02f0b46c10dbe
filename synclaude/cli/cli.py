"""Main CLI entry point for Synclaude.

Thin wrapper over the settings store and the model catalog; all failure
handling lives in :mod:`synclaude.core.config` and :mod:`synclaude.catalog`.
"""

import json
import sys
from pathlib import Path
from typing import Any, List, Optional, Sequence

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from synclaude import __version__
from synclaude.catalog import CatalogEntry, CatalogManager
from synclaude.core.config import ConfigManager, Settings, dump_settings, resolve_setting_key
from synclaude.core.errors import CatalogApiError, ConfigSaveError, ConfigValidationError
from synclaude.utils.coerce import coerce_to_annotation
from synclaude.utils.log import get_logger


console = Console()
logger = get_logger()


def _config_manager(ctx: click.Context) -> ConfigManager:
    manager = ctx.find_object(ConfigManager)
    if manager is None:
        manager = ConfigManager()
        ctx.obj = manager
    return manager


def _fetch_entries(manager: CatalogManager, refresh: bool) -> List[CatalogEntry]:
    try:
        return manager.fetch(force_refresh=refresh)
    except CatalogApiError as exc:
        raise click.ClickException(str(exc)) from exc


def _print_entries(entries: Sequence[CatalogEntry], as_json: bool, title: str) -> None:
    if as_json:
        click.echo(json.dumps([entry.to_json_dict() for entry in entries], indent=2))
        return
    if not entries:
        console.print("[yellow]No models found.[/yellow]")
        return

    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("ID")
    table.add_column("Provider")
    table.add_column("Name")
    table.add_column("Owner")
    for entry in entries:
        table.add_row(
            escape(entry.id),
            escape(entry.provider),
            escape(entry.name),
            escape(entry.owner or ""),
        )
    console.print(table)


def _coerce_setting_value(field_name: str, raw_value: str) -> Any:
    annotation = Settings.model_fields[field_name].annotation
    try:
        return coerce_to_annotation(raw_value, annotation)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="VALUE") from exc


@click.group(invoke_without_command=True)
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-error output")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="SYNCLAUDE_CONFIG_DIR",
    help="Directory holding config.json and the model cache",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write debug logs to this file",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    config_dir: Optional[Path],
    log_file: Optional[Path],
) -> None:
    """Synclaude - pick a Synthetic model for Claude Code"""
    logger.set_console_level(verbose=verbose, quiet=quiet)
    if log_file:
        logger.attach_file_handler(log_file)

    ctx.obj = ConfigManager(config_dir)
    logger.debug(
        "[cli] Starting CLI invocation",
        extra={"config_dir": str(ctx.obj.config_dir), "command": ctx.invoked_subcommand},
    )

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command(name="models")
@click.option("--refresh", is_flag=True, help="Force refresh model cache")
@click.option("--json", "as_json", is_flag=True, help="Print models as JSON")
@click.pass_context
def models_cmd(ctx: click.Context, refresh: bool, as_json: bool) -> None:
    """List available models"""
    manager = CatalogManager.from_config(_config_manager(ctx))
    entries = _fetch_entries(manager, refresh)
    _print_entries(manager.list(entries), as_json, title="Available models")


@cli.command(name="search")
@click.argument("query")
@click.option("--refresh", is_flag=True, help="Force refresh model cache")
@click.option("--json", "as_json", is_flag=True, help="Print matches as JSON")
@click.pass_context
def search_cmd(ctx: click.Context, query: str, refresh: bool, as_json: bool) -> None:
    """Search models by name or provider"""
    manager = CatalogManager.from_config(_config_manager(ctx))
    entries = _fetch_entries(manager, refresh)
    _print_entries(manager.search(query, entries), as_json, title=f"Models matching '{query}'")


@cli.group(name="config")
def config_group() -> None:
    """Manage configuration"""


@config_group.command(name="show")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON (API key masked)")
@click.pass_context
def config_show_cmd(ctx: click.Context, as_json: bool) -> None:
    """Show current configuration"""
    manager = _config_manager(ctx)
    settings = manager.config
    if as_json:
        click.echo(dump_settings(settings))
        return

    console.print("\n[bold]Configuration[/bold]\n")
    console.print(f"Version: {__version__}")
    console.print(f"Config file: {escape(str(manager.config_path))}")
    console.print(f"API Key: {'***' if settings.api_key else 'Not set'}")
    console.print(f"Base URL: {escape(settings.base_url)}")
    console.print(f"Anthropic Base URL: {escape(settings.anthropic_base_url)}")
    console.print(f"Models URL: {escape(settings.catalog_url)}")
    console.print(f"Cache Duration: {settings.cache_duration_hours} hours")
    console.print(f"Selected Model: {escape(settings.selected_entry) or 'None'}")
    console.print(f"First Run Completed: {settings.first_run_completed}")
    console.print(f"Auto Update Check: {settings.auto_update_check}\n")


@config_group.command(name="set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set_cmd(ctx: click.Context, key: str, value: str) -> None:
    """Set configuration value"""
    field_name = resolve_setting_key(key)
    if field_name is None:
        valid = ", ".join(field.alias or name for name, field in Settings.model_fields.items())
        raise click.ClickException(f"Unknown configuration key '{key}'. Valid keys: {valid}")

    coerced = _coerce_setting_value(field_name, value)
    try:
        _config_manager(ctx).update({field_name: coerced})
    except (ConfigValidationError, ConfigSaveError) as exc:
        raise click.ClickException(str(exc)) from exc
    shown = "***" if field_name == "api_key" else value
    console.print(f"[green]Set {escape(key)} = {escape(str(shown))}[/green]")


@config_group.command(name="reset")
@click.pass_context
def config_reset_cmd(ctx: click.Context) -> None:
    """Reset configuration to defaults"""
    try:
        _config_manager(ctx).reset()
    except ConfigSaveError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print("[green]Configuration reset to defaults[/green]")


@cli.group(name="cache")
def cache_group() -> None:
    """Manage model cache"""


@cache_group.command(name="info")
@click.option("--json", "as_json", is_flag=True, help="Print cache info as JSON")
@click.pass_context
def cache_info_cmd(ctx: click.Context, as_json: bool) -> None:
    """Show cache information"""
    info = CatalogManager.from_config(_config_manager(ctx)).cache_info()
    if as_json:
        click.echo(info.model_dump_json(indent=2))
        return
    if not info.exists:
        console.print("[yellow]No model cache found.[/yellow]")
        return
    console.print("\n[bold]Model Cache[/bold]\n")
    console.print(f"File: {escape(info.file_path or '')}")
    console.print(f"Modified: {info.modified_time}")
    console.print(f"Size: {info.size_bytes} bytes")
    console.print(f"Models: {info.entry_count}")
    console.print(f"Valid: {info.is_valid}\n")


@cache_group.command(name="clear")
@click.pass_context
def cache_clear_cmd(ctx: click.Context) -> None:
    """Clear model cache"""
    if CatalogManager.from_config(_config_manager(ctx)).clear_cache():
        console.print("[green]Model cache cleared[/green]")
    else:
        console.print("[yellow]No model cache to clear[/yellow]")


@cli.command(name="version")
def version_cmd() -> None:
    """Show version information"""
    console.print(f"Synclaude version {__version__}")


def main() -> None:
    """Main entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)
    except SystemExit:
        raise
    except (RuntimeError, ValueError, TypeError, OSError) as e:
        console.print(f"[red]Fatal error: {escape(str(e))}[/red]")
        logger.warning(
            "[cli] Fatal error in main CLI entrypoint: %s: %s",
            type(e).__name__,
            e,
        )
        sys.exit(1)


if __name__ == "__main__":
    main()
