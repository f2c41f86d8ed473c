"""
SSH Models

Connection settings of the deployment account on the target host.
"""

from dataclasses import dataclass
from pathlib import Path

from staticdeploy.constants import SSH_CONNECT_TIMEOUT

# Non-interactive: never prompt for passwords or unknown host keys
SSH_OPTIONS = (
    "StrictHostKeyChecking=accept-new",
    "BatchMode=yes",
    f"ConnectTimeout={SSH_CONNECT_TIMEOUT}",
    "LogLevel=QUIET",
)


@dataclass(frozen=True)
class SSHConfig:
    """Private key and user the docker commands run as."""

    key_path: str
    user: str
    port: int = 22

    @classmethod
    def for_deployment(cls, config) -> "SSHConfig":
        """Build from a resolved DeploymentConfig (ssh_user, ssh_key_path)."""
        return cls(key_path=config.ssh_key_path, user=config.ssh_user)

    @property
    def private_key(self) -> Path:
        return Path(self.key_path).expanduser()

    def __repr__(self) -> str:
        return f"SSHConfig(user={self.user}, key={self.key_path})"


@dataclass(frozen=True)
class SSHConnection:
    host: str
    config: SSHConfig

    @property
    def destination(self) -> str:
        return f"{self.config.user}@{self.host}"

    def argv(self, remote_command: str) -> list[str]:
        """ssh argument vector running remote_command on the host."""
        argv = ["ssh", "-i", str(self.config.private_key), "-p", str(self.config.port)]
        for option in SSH_OPTIONS:
            argv += ["-o", option]
        return argv + [self.destination, remote_command]
