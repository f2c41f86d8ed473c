"""
Base Command Class

Abstract base for all staticdeploy CLI commands.
Provides common functionality and structure.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.markup import escape

from staticdeploy.exceptions import StaticDeployError
from staticdeploy.logger import DeployLogger
from staticdeploy.models.config import ProjectPaths
from staticdeploy.ui_components import show_header
from staticdeploy.utils import get_project_root


class BaseCommand(ABC):
    """
    Abstract base command class.

    Provides:
    - Logger initialization
    - Header display
    - Error handling (StaticDeployError → labeled message, exit 1)
    - JSON output support
    """

    def __init__(
        self,
        project_dir: Optional[str] = None,
        verbose: bool = False,
        json_output: bool = False,
    ):
        self.verbose = verbose
        self.json_output = json_output
        self.console = Console()
        self.project_root: Path = get_project_root(project_dir)
        self.logger: Optional[DeployLogger] = None

    def init_logger(
        self, scope: str, command_name: str, level: str = "DEBUG"
    ) -> Optional[DeployLogger]:
        """
        Initialize command logger (skip in JSON mode).

        Args:
            scope: Log folder name (the domain, or "global")
            command_name: Command name
            level: Minimum level written to the log file

        Returns:
            DeployLogger instance or None if JSON mode
        """
        if self.json_output:
            return None
        self.logger = DeployLogger(
            scope,
            command_name,
            logs_dir=ProjectPaths(self.project_root).logs_dir,
            verbose=self.verbose,
            level=level,
        )
        return self.logger

    def output_json(self, data: Dict[str, Any], exit_code: int = 0) -> None:
        """
        Output data as JSON and exit.

        Args:
            data: Data to output as JSON
            exit_code: Exit code (0 for success, non-zero for error)
        """
        print(json.dumps(data, indent=2))
        if exit_code != 0:
            raise SystemExit(exit_code)

    def output_json_error(
        self, error: str, details: Optional[Dict[str, Any]] = None, exit_code: int = 1
    ) -> None:
        error_data: Dict[str, Any] = {"error": error}
        if details:
            error_data["details"] = details
        self.output_json(error_data, exit_code=exit_code)

    def show_header(
        self,
        title: str,
        subtitle: Optional[str] = None,
        target: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Show command header (skip in JSON or verbose mode)."""
        if not self.verbose and not self.json_output:
            show_header(
                title=title,
                subtitle=subtitle,
                target=target,
                details=details,
                console=self.console,
            )

    def print_success(self, message: str) -> None:
        """Print success message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[green]✓ {escape(message)}[/green]")

    def print_error(self, message: str) -> None:
        """Print error message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[red]✗ {escape(message)}[/red]")

    def print_warning(self, message: str) -> None:
        """Print warning message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[yellow]⚠ {escape(message)}[/yellow]")

    def print_dim(self, message: str) -> None:
        """Print dim message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[dim]{escape(message)}[/dim]")

    def handle_error(self, error: StaticDeployError) -> None:
        """
        Report a StaticDeployError as "✗ <ErrorName>: message".

        Args:
            error: The error to report
        """
        if self.json_output:
            self.output_json_error(
                error.message,
                details={"type": error.label, "context": error.context},
            )
            return

        if self.logger:
            self.logger.log_error(error.message, context=error.context, label=error.label)
        else:
            self.console.print(
                f"\n[bold red]✗ {error.label}:[/bold red] {escape(error.message)}",
                highlight=False,
            )
            if error.context:
                self.console.print(f"  [color(208)]{escape(error.context)}[/color(208)]")

    def show_log_path(self) -> None:
        if self.logger:
            self.console.print(f"\n[dim]Logs saved to:[/dim] {self.logger.log_path}\n")

    def exit_with_error(self, message: str, code: int = 1) -> None:
        """Print error and exit."""
        self.print_error(message)
        raise SystemExit(code)

    @abstractmethod
    def execute(self) -> None:
        """
        Execute command logic.

        Must be implemented by subclasses.
        """
        pass

    def run(self) -> None:
        """Run command with error handling."""
        try:
            self.execute()
        except KeyboardInterrupt:
            self.console.print("\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            self.show_log_path()
            raise SystemExit(130)
        except SystemExit:
            raise
        except StaticDeployError as e:
            self.handle_error(e)
            self.show_log_path()
            raise SystemExit(1)
        except PermissionError as e:
            self.console.print(f"\n[bold red]✗ Permission denied:[/bold red] {escape(str(e))}\n")
            if self.logger:
                self.logger.log_error(f"Permission error: {e}")
            self.show_log_path()
            raise SystemExit(1)
        finally:
            if self.logger:
                self.logger.close()
