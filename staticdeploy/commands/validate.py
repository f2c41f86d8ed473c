"""
Validate Command

Readiness check against an already deployed container.
"""

import click
from rich.markup import escape

from staticdeploy.base import ProjectCommand
from staticdeploy.core.readiness import ReadinessValidator
from staticdeploy.services.http_probe import HostHttpProbe


class ValidateCommand(ProjectCommand):
    """Poll the deployed container until it serves the expected content."""

    def __init__(self, project_dir=None, port: int = None, verbose: bool = False):
        super().__init__(project_dir=project_dir, verbose=verbose)
        self.port = port

    def execute(self) -> None:
        config = self.resolve_config()
        self.show_header(title="Validate", target=config.display("container_name"))
        self.init_project_logger("validate")
        docker = self.ensure_docker()

        self.logger.step("Readiness")
        validator = ReadinessValidator(
            docker,
            HostHttpProbe(self.executor, config.server_address),
            config,
            logger=self.logger,
        )
        # deploy may have fallen back to alternate_host_port
        port = (
            self.port
            or docker.published_port(config.container_name, config.container_port)
            or config.host_port
        )
        result = validator.wait(host_port=port)

        for probe in result.probes:
            self.console.print(f"  [dim]{escape(probe.describe())}[/dim]")
        self.print_success(f"{config.display('container_name')} is ready on port {port}")
        self.show_log_path()


@click.command(name="validate")
@click.option("--port", type=int, help="Published host port (default: read from docker inspect)")
@click.option("--project-dir", type=click.Path(file_okay=False), help="Deployment project directory")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
def validate(port, project_dir, verbose):
    """
    Check that the deployed container serves the expected content

    Probes the published port on the host loopback and the container's
    address on the shared network until both return 200 with the marker.
    """
    cmd = ValidateCommand(project_dir=project_dir, port=port, verbose=verbose)
    cmd.run()
