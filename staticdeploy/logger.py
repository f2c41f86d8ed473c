"""
Logging system for staticdeploy
Writes a run log per operation and keeps console output short
"""

import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional, TextIO

from rich.console import Console
from rich.markup import escape

from staticdeploy.constants import LOG_DATE_FORMAT, LOG_TIME_FORMAT
from staticdeploy.models.config import MASK

console = Console()

ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")
LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


class DeployLogger:
    """
    Manages logging for deployment operations
    - Writes all output to log files in real-time
    - Shows clean progress UI in console (unless verbose)
    - Captures errors with context
    """

    def __init__(
        self,
        scope: str,
        operation: str,
        logs_dir: Path,
        verbose: bool = False,
        level: str = "DEBUG",
    ):
        """
        Initialize logger

        Args:
            scope: Log folder name (the domain, or 'global')
            operation: Operation name (e.g., 'deploy', 'test')
            logs_dir: Root logs directory
            verbose: If True, show all output in console
            level: Minimum level written to the log file
        """
        self.scope = scope
        self.operation = operation
        self.verbose = verbose
        self.level = LEVELS.get(level.upper(), LEVELS["DEBUG"])
        self.log_file: Optional[TextIO] = None
        self.current_step = ""
        self.has_errors = False
        self.redactions: List[str] = []

        # Structure: logs/{scope}/{date}/{time}_{operation}.log
        now = datetime.now()
        run_dir = Path(logs_dir) / scope / now.strftime(LOG_DATE_FORMAT)
        run_dir.mkdir(parents=True, exist_ok=True)
        self.log_path = run_dir / f"{now.strftime(LOG_TIME_FORMAT)}_{operation}.log"

        self.log_file = open(self.log_path, "w", buffering=1)
        self._write_log_header()

    def _write_log_header(self):
        """Write log file header"""
        header = f"""
{"=" * 80}
staticdeploy run log
{"=" * 80}
Scope: {self.scope}
Operation: {self.operation}
Started: {datetime.now().isoformat()}
{"=" * 80}

"""
        self.log_file.write(header)

    def redact(self, *values: str):
        """Mask these values in every line written from now on (file and console)."""
        for value in values:
            if value and value not in self.redactions:
                self.redactions.append(value)
        # Longest first so a value containing another is masked whole
        self.redactions.sort(key=len, reverse=True)

    def scrub(self, text: str) -> str:
        for value in self.redactions:
            text = text.replace(value, MASK)
        return text

    def log(self, message: str, level: str = "INFO"):
        """
        Log a message to file and optionally console

        Args:
            message: Message to log
            level: Log level (INFO, WARNING, ERROR, DEBUG)
        """
        message = self.scrub(message)
        if LEVELS.get(level, 20) < self.level:
            return

        timestamp = datetime.now().strftime("%H:%M:%S")
        if self.log_file:
            self.log_file.write(f"[{timestamp}] [{level}] {message}\n")

        if self.verbose:
            if level == "ERROR":
                console.print(f"[red]{escape(message)}[/red]")
            elif level == "WARNING":
                console.print(f"[yellow]{escape(message)}[/yellow]")
            elif level == "DEBUG":
                console.print(f"[dim]{escape(message)}[/dim]")
            else:
                console.print(message, markup=False)

    def log_command(self, command: str):
        """Log a command being executed"""
        self.log(f"Executing: {command}", "DEBUG")

    def log_output(self, output: str, stream: str = "stdout"):
        """
        Log command output (file only, console when verbose)

        Args:
            output: Command output (single line or multiline)
            stream: Stream name (stdout, stderr)
        """
        if not output:
            return

        output = self.scrub(output)
        clean_output = ANSI_ESCAPE.sub("", output)
        if self.log_file:
            for line in clean_output.splitlines():
                self.log_file.write(f"  [{stream}] {line}\n")

        if self.verbose:
            console.print(output, markup=False)

    def log_error(self, error: str, context: Optional[str] = None, label: Optional[str] = None):
        """
        Log an error with context

        Args:
            error: Error message
            context: Additional context (e.g., command that failed)
            label: Error name shown before the message
        """
        self.has_errors = True
        error = self.scrub(error)
        context = self.scrub(context) if context else context
        headline = f"{label}: {error}" if label else error

        error_block = f"""
{"!" * 80}
ERROR OCCURRED
{"!" * 80}
{headline}
"""
        if context:
            error_block += f"\nContext: {context}\n"
        error_block += f"{'!' * 80}\n\n"

        if self.log_file:
            self.log_file.write(error_block)

        if not self.verbose:
            console.print()

        console.print(f"[bold red]✗ {escape(headline)}[/bold red]", highlight=False)
        if context:
            console.print(f"  [color(208)]{escape(context)}[/color(208)]", highlight=False)

    def step(self, step_name: str):
        """
        Start a new step

        Args:
            step_name: Name of the step
        """
        step_name = self.scrub(step_name)
        if self.current_step and not self.verbose:
            console.print()

        self.current_step = step_name
        self.log(f"Step: {step_name}", "INFO")

        if not self.verbose:
            console.print(f"[color(214)]▶[/color(214)] [white]{escape(step_name)}[/white]")

    def success(self, message: str):
        """Log a success message"""
        message = self.scrub(message)
        self.log(message, "INFO")

        if not self.verbose:
            console.print(f"  [dim]✓ {escape(message)}[/dim]")

    def warning(self, message: str):
        """Log a warning message"""
        message = self.scrub(message)
        self.log(message, "WARNING")

        if not self.verbose:
            console.print(f"  [yellow]⚠[/yellow] [dim]{escape(message)}[/dim]")

    def close(self):
        """Close log file"""
        if self.log_file:
            footer = f"""
{"=" * 80}
Completed: {datetime.now().isoformat()}
Status: {"FAILED" if self.has_errors else "SUCCESS"}
{"=" * 80}
"""
            self.log_file.write(footer)
            self.log_file.close()
            self.log_file = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, _exc_tb):
        if exc_type is not None and exc_type is not SystemExit:
            label = getattr(exc_val, "label", exc_type.__name__)
            message = getattr(exc_val, "message", None) or str(exc_val) or "Operation failed"
            self.log_error(message, context=getattr(exc_val, "context", None), label=label)
        self.close()
        return False
