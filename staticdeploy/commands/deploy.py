"""
Deploy Command

Runs the full pipeline: secrets → config → preflight → provision → readiness.
"""

from typing import Sequence

import click
from rich.markup import escape

from staticdeploy.base import BaseCommand
from staticdeploy.constants import ENV_LOG_LEVEL
from staticdeploy.core.config_resolver import read_env_file
from staticdeploy.core.pipeline import DeploymentPipeline, PipelineOutcome
from staticdeploy.models.config import ProjectPaths


class DeployCommand(BaseCommand):
    """Provision (or replace) the static web container and wait until it serves."""

    def __init__(
        self,
        project_dir: str = None,
        extra_vars: Sequence[str] = (),
        check_mode: bool = False,
        verbose: bool = False,
    ):
        super().__init__(project_dir=project_dir, verbose=verbose)
        self.paths = ProjectPaths(self.project_root)
        self.extra_vars = list(extra_vars)
        self.check_mode = check_mode

    def execute(self) -> None:
        self.show_header(
            title="Deploy",
            subtitle="Check mode: no changes will be made" if self.check_mode else None,
            details={"Project": self.project_root},
        )

        # Domain is only known after the vault is open, so runs log under "global"
        level = read_env_file(self.paths.env_file).get(ENV_LOG_LEVEL) or "INFO"
        self.init_logger("global", "deploy", level=level.upper())

        pipeline = DeploymentPipeline(
            self.paths,
            extra_vars=self.extra_vars,
            check_mode=self.check_mode,
            logger=self.logger,
        )
        outcome = pipeline.run()
        outcome.raise_for_error()
        self._summary(outcome)

    def _summary(self, outcome: PipelineOutcome) -> None:
        config = outcome.config
        self.console.print()
        if self.check_mode:
            self.print_success(
                f"Preflight passed for {config.display('container_name')} "
                f"on {config.display('server_address')}"
            )
            self.print_dim("Check mode: nothing was changed on the target")
        else:
            container = outcome.container
            validation = outcome.validation
            self.print_success(f"{config.display('container_name')} is {container.state.value}")
            self.console.print(f"  [dim]Container:[/dim] {escape(container.short_id)}")
            self.console.print(f"  [dim]Host port:[/dim] {container.host_port}")
            self.console.print(f"  [dim]Readiness:[/dim] {escape(validation.summary())}")
            self.console.print(f"  [dim]URL:[/dim] [cyan]https://{escape(config.display('domain'))}/[/cyan]")
        self.show_log_path()


@click.command(name="deploy")
@click.option(
    "-e",
    "--extra-var",
    "extra_vars",
    multiple=True,
    metavar="KEY=VALUE",
    help="Override a configuration value (highest precedence, repeatable)",
)
@click.option("--check", "check_mode", is_flag=True, help="Stop after preflight, change nothing")
@click.option("--project-dir", type=click.Path(file_okay=False), help="Deployment project directory")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
def deploy(extra_vars, check_mode, project_dir, verbose):
    """
    Deploy the static web container

    Decrypts the vault, resolves configuration, checks the target, replaces
    the container and waits until it serves the expected content.

    \b
    Examples:
      staticdeploy deploy
      staticdeploy deploy --check
      staticdeploy deploy -e host_port=8081 -v
    """
    cmd = DeployCommand(
        project_dir=project_dir,
        extra_vars=extra_vars,
        check_mode=check_mode,
        verbose=verbose,
    )
    cmd.run()
