#!/usr/bin/env python3
"""
remind-at CLI

Command line entry point
"""

import asyncio
import sys
from pathlib import Path

import click
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from remind_at import __version__
from remind_at.app import RemindAtApp
from remind_at.config import Config
from remind_at.parser import ReminderParseError, parse_reminder

console = Console()


def setup_logging(config: Config, verbose: bool = False):
    """Replace loguru's default sink with ours"""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else config.logging.level)
    if config.logging.file:
        logger.add(config.logging.file, level="DEBUG", rotation=config.logging.rotation)


@click.group()
@click.version_option(version=__version__, prog_name="remind-at")
@click.option("--config", "-c", "config_path", help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def cli(ctx, config_path, verbose):
    """remind-at - "remind me about x at y" in your terminal"""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path

    # quiet until the config says otherwise
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")

    config = Config.load(config_path)
    setup_logging(config, verbose)
    ctx.obj["config"] = config


@cli.command()
@click.option("--backend", "-b", type=click.Choice(["console", "desktop"]),
              help="Notification backend")
@click.pass_context
def run(ctx, backend):
    """Start the interactive reminder shell"""
    config: Config = ctx.obj["config"]
    if backend:
        config.notifier.backend = backend

    console.print(Panel.fit(
        f"⏰ remind-at v{__version__}\n"
        f"Notifications: {config.notifier.backend}",
        title="Start",
        border_style="green"
    ))

    try:
        app = RemindAtApp(config, console=console)
        asyncio.run(app.run())
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped[/yellow]")
    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise click.Abort()


@cli.command()
@click.argument("text")
@click.pass_context
def parse(ctx, text):
    """Show how TEXT would be scheduled"""
    config: Config = ctx.obj["config"]
    try:
        label, due_at = parse_reminder(
            text,
            roll_past_to_tomorrow=config.parser.roll_past_to_tomorrow,
            split_on_last=config.parser.split_on_last,
        )
    except ReminderParseError as e:
        console.print(f"[red]{type(e).__name__}: {escape(e.reason)}[/red]")
        ctx.exit(1)

    console.print(f"[bold]{escape(label)}[/bold] -> {due_at.strftime('%Y-%m-%d %H:%M')}")


@cli.command()
@click.option("--path", "-p", default="config/config.yaml", show_default=True,
              help="Where to write the config")
def init(path):
    """Write a default config file"""
    config_path = Path(path)

    if config_path.exists():
        console.print(f"[yellow]Config file already exists: {config_path}[/yellow]")
        if not click.confirm("Overwrite?"):
            return

    Config().save(str(config_path))

    console.print(f"[green]✓ Config file created: {config_path}[/green]")
    console.print("[dim]Edit it, then run: remind-at run[/dim]")


def main():
    """Entry point"""
    cli()


if __name__ == "__main__":
    main()
