#!/usr/bin/env python3
"""
Notion → Jekyll Sync CLI

Usage:
    python sync.py              # Publish pages flagged for deployment
    python sync.py --dry-run    # Preview without writing or unchecking
    python sync.py --debug      # Show tracebacks and per-page detail
    python sync.py status       # List pages flagged for deployment
    python sync.py version      # Show version
"""

import sys

import click
from rich.console import Console

from notion_sync import __version__
from notion_sync.config import Config
from notion_sync.sync_engine import SyncEngine

console = Console()


def load_config(ctx: click.Context) -> Config:
    """Build the configuration, exiting on missing or invalid settings."""
    try:
        config = Config.from_env()
    except ValueError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        console.print("\n[dim]Make sure you have created a .env file with your credentials.[/dim]")
        console.print("[dim]See .env.example for the required variables.[/dim]")
        sys.exit(1)

    # Apply CLI overrides
    if ctx.obj.get("dry_run"):
        config.dry_run = True
    if ctx.obj.get("debug"):
        config.debug = True

    return config


@click.group(invoke_without_command=True)
@click.option("--dry-run", is_flag=True, help="Preview changes without writing or unchecking")
@click.option("--debug", is_flag=True, help="Enable debug output")
@click.pass_context
def cli(ctx, dry_run: bool, debug: bool):
    """
    Notion → Jekyll Sync

    Publishes Notion database pages flagged for deployment as Jekyll posts.
    """
    ctx.ensure_object(dict)
    ctx.obj["dry_run"] = dry_run
    ctx.obj["debug"] = debug

    # If no subcommand, run sync
    if ctx.invoked_subcommand is None:
        ctx.invoke(sync)


@cli.command()
@click.pass_context
def sync(ctx):
    """Publish pages flagged for deployment."""
    config = load_config(ctx)

    try:
        SyncEngine(config).sync()
    except KeyboardInterrupt:
        console.print("\n[yellow]Sync cancelled.[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error:[/red] {type(e).__name__}: {e}")
        if config.debug:
            console.print_exception()
        sys.exit(1)


@cli.command()
@click.pass_context
def status(ctx):
    """Show pages currently flagged for deployment."""
    config = load_config(ctx)

    try:
        SyncEngine(config).status()
    except Exception as e:
        console.print(f"[red]Error:[/red] {type(e).__name__}: {e}")
        if config.debug:
            console.print_exception()
        sys.exit(1)


@cli.command()
def version():
    """Show version information."""
    console.print(f"Notion → Jekyll Sync v{__version__}")


if __name__ == "__main__":
    cli()
