"""
Config Commands

config:show prints the resolved configuration. Values that came from the
vault are masked.
"""

import click
from rich.markup import escape
from rich.table import Table

from staticdeploy.base import ProjectCommand


class ConfigShowCommand(ProjectCommand):
    """Show the resolved DeploymentConfig."""

    def execute(self) -> None:
        config = self.resolve_config()
        data = config.to_dict(mask_secrets=True)

        if self.json_output:
            self.output_json(
                {
                    "config": data,
                    "masked": sorted(config.secret_fields),
                }
            )
            return

        self.show_header(
            title="Configuration",
            target=data["container_name"],
            details={"Environment": config.environment},
        )

        table = Table(title="Resolved configuration", padding=(0, 1))
        table.add_column("Key", style="cyan", no_wrap=True)
        table.add_column("Value", style="green")
        table.add_column("Source", style="dim")

        for key, value in sorted(data.items()):
            if value is None:
                continue
            source = "vault" if key in config.secret_fields else ""
            table.add_row(key, escape(str(value)), source)

        self.console.print(table)
        self.console.print()
        self.print_dim(f"{len(config.secret_fields)} value(s) from the vault are masked")


@click.command(name="config:show")
@click.option("-e", "--extra-var", "extra_vars", multiple=True, metavar="KEY=VALUE", help="Override a configuration value")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.option("--project-dir", type=click.Path(file_okay=False), help="Deployment project directory")
def config_show(extra_vars, json_output, project_dir):
    """
    Show the resolved configuration

    Merges defaults, inventory, env file, vault and -e overrides exactly as
    deploy does. Vault-sourced values are masked.
    """
    cmd = ConfigShowCommand(
        project_dir=project_dir, extra_vars=extra_vars, json_output=json_output
    )
    cmd.run()
