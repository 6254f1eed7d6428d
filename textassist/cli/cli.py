"""Main CLI entry point for TextAssist.

Exposes the settings store to scripts and terminals; the desktop UI calls the
same :class:`~textassist.core.settings_service.SettingsService` operations.
"""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from textassist import __version__
from textassist.cli.settings_cli import settings_group
from textassist.core.errors import SettingsError
from textassist.utils.log import get_logger, init_logger


console = Console(stderr=True)
logger = get_logger()


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Settings folder (defaults to $TEXTASSIST_CONFIG_DIR or the OS config directory).",
)
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Also write debug logs to this folder.",
)
@click.pass_context
def cli(ctx: click.Context, config_dir: Optional[Path], log_dir: Optional[Path]) -> None:
    """TextAssist - settings for LLM-backed text processing"""
    if log_dir is not None:
        init_logger(log_dir=log_dir)
    ctx.ensure_object(dict)
    ctx.obj["config_dir"] = config_dir
    logger.debug(
        "[cli] Starting CLI invocation",
        extra={"config_dir": str(config_dir) if config_dir else None},
    )


cli.add_command(settings_group)


@cli.command(name="version")
def version_cmd() -> None:
    """Show version information"""
    click.echo(f"TextAssist version {__version__}")


def main() -> None:
    """Main entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)
    except SystemExit:
        raise
    except (SettingsError, OSError, ValueError) as e:
        console.print(f"[red]Fatal error: {escape(str(e))}[/red]")
        logger.warning(
            "[cli] Fatal error in main CLI entrypoint: %s: %s",
            type(e).__name__,
            e,
        )
        sys.exit(1)
