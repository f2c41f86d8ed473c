#!/usr/bin/env python3
"""staticdeploy CLI - Main entry point"""

import functools
import sys

import rich_click as click
from click.exceptions import Abort, ClickException, MissingParameter, UsageError
from rich.console import Console

from staticdeploy import __version__
from staticdeploy.commands.config import config_show
from staticdeploy.commands.deploy import deploy
from staticdeploy.commands.logs import logs
from staticdeploy.commands.secrets import secrets_init, secrets_status
from staticdeploy.commands.test import test
from staticdeploy.commands.validate import validate

click.rich_click.USE_RICH_MARKUP = True
click.rich_click.USE_MARKDOWN = False
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.MAX_WIDTH = 100

click.rich_click.STYLE_COMMAND = "bold cyan"
click.rich_click.STYLE_OPTION = "bold magenta"
click.rich_click.STYLE_SWITCH = "bold green"
click.rich_click.STYLE_ARGUMENT = "bold yellow"
click.rich_click.STYLE_HEADER_TEXT = "bold cyan"
click.rich_click.STYLE_USAGE = "bold yellow"
click.rich_click.STYLE_USAGE_COMMAND = "bold cyan"
click.rich_click.STYLE_HELPTEXT_FIRST_LINE = "bold white"
click.rich_click.STYLE_HELPTEXT = ""
click.rich_click.STYLE_METAVAR = "bold yellow"
click.rich_click.STYLE_OPTION_DEFAULT = "dim cyan"
click.rich_click.STYLE_OPTIONS_PANEL_BORDER = "cyan"
click.rich_click.STYLE_COMMANDS_PANEL_BORDER = "cyan"
click.rich_click.ALIGN_OPTIONS_PANEL = "left"
click.rich_click.ALIGN_ERRORS_PANEL = "left"
click.rich_click.ERRORS_EPILOGUE = ""

console = Console()

BANNER = """
[bold cyan]staticdeploy[/bold cyan] - static site container behind Traefik
"""


def handle_cli_errors(func):
    """Decorator to handle CLI errors gracefully."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (MissingParameter, UsageError) as e:
            console.print(f"\n[bold red]✗ Error:[/bold red] {e.format_message()}\n")
            if e.ctx and e.ctx.command:
                console.print(
                    f"[dim]Run[/dim] [cyan]staticdeploy {e.ctx.command.name} --help[/cyan] [dim]for usage information[/dim]\n"
                )
            sys.exit(1)
        except ClickException as e:
            e.show()
            sys.exit(e.exit_code)
        except Abort:
            console.print("\n\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            sys.exit(130)
        except KeyboardInterrupt:
            console.print("\n\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            sys.exit(130)

    return wrapper


@click.group(invoke_without_command=True)
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """
    staticdeploy - Deploy a static site container behind Traefik.

    \b
    Quick Start:
      staticdeploy secrets:init     # Create the vault from its example
      staticdeploy secrets:status   # Check encryption and password
      staticdeploy config:show      # Review the resolved configuration
      staticdeploy deploy --check   # Preflight only
      staticdeploy deploy           # Provision and wait until ready

    \b
    After Deploying:
      staticdeploy validate         # Readiness probes
      staticdeploy test             # Integration checks
      staticdeploy logs -n 100      # Container logs
    """
    if ctx.invoked_subcommand is None:
        console.print(BANNER)
        console.print("[yellow]Run 'staticdeploy --help' for usage[/yellow]\n")


cli.add_command(deploy)
cli.add_command(validate)
cli.add_command(test)
cli.add_command(logs)
# Colon-named commands
cli.add_command(config_show)
cli.add_command(secrets_init)
cli.add_command(secrets_status)


@handle_cli_errors
def main():
    """Main entry point with error handling."""
    return cli(standalone_mode=False)


if __name__ == "__main__":
    main()
