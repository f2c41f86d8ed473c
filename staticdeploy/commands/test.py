"""
Test Command

Integration checks against the deployed site (container, network, ssl,
diagnostics). Every check runs; the command fails if any check failed.
"""

import click

from staticdeploy.base import ProjectCommand
from staticdeploy.core.integration import IntegrationTestRunner
from staticdeploy.services.https_service import HttpsChecker
from staticdeploy.ui_components import report_table


class IntegrationTestCommand(ProjectCommand):
    """Run the integration test suite against the deployed target."""

    def execute(self) -> None:
        config = self.resolve_config()
        self.show_header(title="Integration Tests", target=config.display("container_name"))
        self.init_project_logger("test")
        docker = self.ensure_docker()

        if self.logger:
            self.logger.step("Integration checks")
        runner = IntegrationTestRunner(docker, config, HttpsChecker(), logger=self.logger)
        report = runner.run()

        if self.json_output:
            self.output_json(report.to_dict(), exit_code=0 if report.passed else 1)
            return

        self.console.print()
        self.console.print(report_table(report))
        self.console.print()
        report.raise_for_failures()
        self.print_success("All integration checks passed")
        self.show_log_path()


@click.command(name="test")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.option("--project-dir", type=click.Path(file_okay=False), help="Deployment project directory")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
def test(json_output, project_dir, verbose):
    """
    Run integration tests against the deployed site

    \b
    Categories:
      container    exists, running, restart policy
      network      shared network, edge proxy, internal reachability
      ssl          HTTP → HTTPS redirect, certificate validity
      diagnostics  log alarms, runtime version, uptime
    """
    cmd = IntegrationTestCommand(
        project_dir=project_dir, verbose=verbose, json_output=json_output
    )
    cmd.run()
