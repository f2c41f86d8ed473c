"""
Secrets Commands

secrets:init creates the vault file from its example.
secrets:status reports whether the vault is encrypted and decrypts.
"""

import shutil

import click
from rich.markup import escape

from staticdeploy.base import BaseCommand
from staticdeploy.constants import HINT_SETUP_ENV
from staticdeploy.core.secret_gate import SecretGate, decrypt_vault, read_password
from staticdeploy.exceptions import ConfigMissing
from staticdeploy.models.config import ProjectPaths

VAULT_VARIABLES = {
    "vault_vps_server_ip": "Your VPS IP address",
    "vault_initial_deployment_user": "Your initial username (sudo access)",
    "vault_initial_deployment_ssh_key": "Path to your initial SSH key",
    "vault_containers_deployment_user": "Your Docker user (Docker access)",
    "vault_containers_deployment_ssh_key": "Path to your Docker SSH key",
    "vault_traefik_domain": "Your domain name",
}


class SecretsInitCommand(BaseCommand):
    """Create vault.yml from vault.example.yml (never overwrites)."""

    def execute(self) -> None:
        paths = ProjectPaths(self.project_root)
        self.show_header(title="Secrets Setup", details={"Project": self.project_root})

        if not paths.secrets_dir.is_dir():
            raise ConfigMissing(paths.secrets_dir, hint="Create the secrets/ directory first")

        if paths.vault_file.exists():
            self.print_warning(f"vault.yml already exists at: {paths.vault_file}")
            self.print_dim("Delete it first to recreate it. The current file is preserved.")
            return

        if not paths.vault_example_file.is_file():
            raise ConfigMissing(paths.vault_example_file, hint="The vault template is required")

        shutil.copyfile(paths.vault_example_file, paths.vault_file)
        self.print_success(f"vault.yml created at: {paths.vault_file}")
        self._next_steps(paths)

    def _next_steps(self, paths: ProjectPaths) -> None:
        vault = escape(str(paths.vault_file))
        password = escape(str(paths.vault_pass_file))

        self.console.print("\n[bold]Next steps:[/bold]")
        self.console.print("  1. Edit the vault file with your actual values:")
        self.console.print(f"     [cyan]ansible-vault edit {vault}[/cyan]")
        self.console.print("  2. Customize these variables:")
        for key, description in VAULT_VARIABLES.items():
            self.console.print(f"     [cyan]{key}[/cyan] [dim]{description}[/dim]")
        self.console.print("  3. Create the vault password file:")
        self.console.print(f"     [cyan]echo 'your-secure-password' > {password}[/cyan]")
        self.console.print(f"     [cyan]chmod 600 {password}[/cyan]")
        self.console.print("  4. Encrypt the vault file:")
        self.console.print(f"     [cyan]ansible-vault encrypt {vault}[/cyan]")
        self.console.print("  5. Put plain settings (LOG_LEVEL, DEPLOY_ENV, STATIC_WEB_*) in:")
        self.console.print(f"     [cyan]{escape(str(paths.env_file))}[/cyan]")
        self.console.print()
        self.print_warning("vault.yml holds credentials: keep it encrypted and out of git")


class SecretsStatusCommand(BaseCommand):
    """Report vault encryption and decryptability."""

    def execute(self) -> None:
        paths = ProjectPaths(self.project_root)
        gate = SecretGate(paths)
        self.show_header(title="Vault Status", details={"Vault": paths.vault_file})

        if not paths.vault_file.is_file():
            raise ConfigMissing(paths.vault_file, hint=HINT_SETUP_ENV)

        if not gate.is_encrypted():
            vault = escape(str(paths.vault_file))
            self.print_warning("Vault file is not encrypted")
            self.console.print("\nTo encrypt the vault file:")
            self.console.print(f"  1. [cyan]echo 'your-secure-password' > {escape(str(paths.vault_pass_file))}[/cyan]")
            self.console.print(f"  2. [cyan]ansible-vault encrypt {vault}[/cyan]")
            self.console.print("  3. [cyan]staticdeploy secrets:status[/cyan]")
            return

        self.print_success("Vault file is encrypted")

        if not paths.vault_pass_file.is_file():
            raise ConfigMissing(paths.vault_pass_file, hint="Write the vault password to this file (chmod 600)")
        values = decrypt_vault(paths.vault_file, read_password(paths.vault_pass_file))
        self.print_success(f"Vault decrypts with {paths.vault_pass_file.name} ({len(values)} key(s))")
        self.console.print("\nAvailable commands:")
        for action in ("edit", "view", "rekey"):
            self.console.print(f"  [cyan]ansible-vault {action} {escape(str(paths.vault_file))}[/cyan]")


@click.command(name="secrets:init")
@click.option("--project-dir", type=click.Path(file_okay=False), help="Deployment project directory")
def secrets_init(project_dir):
    """
    Create secrets/vault.yml from secrets/vault.example.yml

    Never overwrites an existing vault file.
    """
    cmd = SecretsInitCommand(project_dir=project_dir)
    cmd.run()


@click.command(name="secrets:status")
@click.option("--project-dir", type=click.Path(file_okay=False), help="Deployment project directory")
def secrets_status(project_dir):
    """Show whether the vault is encrypted and decrypts"""
    cmd = SecretsStatusCommand(project_dir=project_dir)
    cmd.run()
