"""SSH service for executing commands on the target host."""

import subprocess
import time
from typing import Optional

from staticdeploy.constants import SSH_COMMAND_TIMEOUT
from staticdeploy.exceptions import ConfigMissing, RuntimeUnreachable
from staticdeploy.models.results import SSHResult
from staticdeploy.models.ssh import SSHConfig, SSHConnection

# ssh exits with 255 when the connection itself failed
SSH_CONNECTION_FAILED = 255


class SSHService:
    """Service for SSH operations."""

    def __init__(self, config: SSHConfig, logger=None):
        """
        Initialize SSH service.

        Args:
            config: SSH configuration
            logger: Optional DeployLogger for command tracing
        """
        self.config = config
        self.logger = logger

    def execute_command(
        self,
        host: str,
        command: str,
        timeout: Optional[int] = SSH_COMMAND_TIMEOUT,
        stdin: Optional[str] = None,
        description: Optional[str] = None,
    ) -> SSHResult:
        """
        Execute command on remote host via SSH.

        Args:
            host: Host IP or hostname
            command: Command to execute
            timeout: Command timeout in seconds
            stdin: Text written to the command's standard input
            description: Logged instead of the command (for commands carrying content)

        Returns:
            SSHResult with execution details

        Raises:
            RuntimeUnreachable: If the SSH connection fails or times out
        """
        connection = SSHConnection(host=host, config=self.config)
        return self._run(connection.argv(command), host, command, timeout, stdin, description)

    def _run(
        self,
        argv: list[str],
        host: str,
        command: str,
        timeout: Optional[int],
        stdin: Optional[str],
        description: Optional[str],
    ) -> SSHResult:
        if self.logger:
            self.logger.log_command(f"[{host}] {description or command}")

        start_time = time.time()
        try:
            result = subprocess.run(
                argv,
                input=stdin,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            raise RuntimeUnreachable(
                f"Command timed out after {timeout}s",
                context=f"Host: {host}, Command: {description or command}",
            )
        except FileNotFoundError as e:
            raise RuntimeUnreachable(
                f"Executable not found: {e.filename}",
                context=f"Host: {host}",
            )

        duration = time.time() - start_time
        ssh_result = SSHResult(
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
            host=host,
            command=command,
            duration_seconds=duration,
        )

        if self.logger:
            self.logger.log_output(result.stdout, "stdout")
            self.logger.log_output(result.stderr, "stderr")

        if argv[0] == "ssh" and result.returncode == SSH_CONNECTION_FAILED:
            raise RuntimeUnreachable(
                f"SSH connection to {host} failed",
                context=result.stderr.strip() or "ssh exited with status 255",
            )

        return ssh_result


class LocalService(SSHService):
    """Runs the same commands on this machine (target is localhost)."""

    def __init__(self, logger=None):
        super().__init__(SSHConfig(key_path="", user="local"), logger=logger)

    def execute_command(
        self,
        host: str,
        command: str,
        timeout: Optional[int] = SSH_COMMAND_TIMEOUT,
        stdin: Optional[str] = None,
        description: Optional[str] = None,
    ) -> SSHResult:
        return self._run(["sh", "-c", command], host, command, timeout, stdin, description)


def build_executor(config, logger=None) -> SSHService:
    """
    Executor for the configured target.

    Raises:
        ConfigMissing: The SSH private key does not exist
    """
    if config.is_local:
        return LocalService(logger=logger)

    ssh_config = SSHConfig.for_deployment(config)
    if not ssh_config.private_key.exists():
        raise ConfigMissing(
            ssh_config.private_key,
            hint="Set ssh_key_path in the vault or STATIC_WEB_SSH_KEY_PATH in secrets/.env",
        )
    return SSHService(ssh_config, logger=logger)
