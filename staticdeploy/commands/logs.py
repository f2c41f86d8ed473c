"""
Logs Command - Recent output of the static web container
"""

import click

from staticdeploy.base import ProjectCommand
from staticdeploy.constants import READINESS_LOG_TAIL


class LogsCommand(ProjectCommand):
    """Print the container's log tail."""

    def __init__(self, project_dir=None, tail: int = READINESS_LOG_TAIL, verbose: bool = False):
        super().__init__(project_dir=project_dir, verbose=verbose)
        self.tail = tail

    def execute(self) -> None:
        config = self.resolve_config()
        self.show_header(
            title="Logs", target=config.display("container_name"), details={"Lines": self.tail}
        )
        docker = self.ensure_docker()

        if not docker.container_exists(config.container_name):
            self.exit_with_error(
                f"Container {config.display('container_name')} not found on {config.display('server_address')}"
            )

        output = docker.container_logs(config.container_name, self.tail)
        self.console.print(output.rstrip("\n"), markup=False, highlight=False)


@click.command(name="logs")
@click.option("-n", "--tail", type=int, default=READINESS_LOG_TAIL, show_default=True, help="Number of lines")
@click.option("--project-dir", type=click.Path(file_okay=False), help="Deployment project directory")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
def logs(tail, project_dir, verbose):
    """📜 Show recent container logs"""
    cmd = LogsCommand(project_dir=project_dir, tail=tail, verbose=verbose)
    cmd.run()
