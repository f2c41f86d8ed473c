"""
Preflight Checker

Runtime reachable → shared network present → directories exist.
The first failing check aborts; nothing here is retried.
"""

from dataclasses import dataclass, field
from typing import List

from staticdeploy.exceptions import NetworkNotFound
from staticdeploy.models.config import DeploymentConfig
from staticdeploy.services.docker_service import DockerService


@dataclass
class PreflightReport:
    """Facts gathered during preflight."""

    runtime_version: str
    network_name: str
    directories: List[str] = field(default_factory=list)


class PreflightChecker:
    """Fail-fast checks against the target host before any mutation."""

    def __init__(self, docker: DockerService, config: DeploymentConfig, logger=None):
        self.docker = docker
        self.config = config
        self.logger = logger

    def required_directories(self) -> List[str]:
        return [self.config.deploy_dir, self.config.html_dir]

    def check_runtime(self) -> str:
        version = self.docker.version()
        self._success(f"Docker {version} reachable on {self.config.server_address}")
        return version

    def check_network(self) -> None:
        networks = self.docker.list_networks()
        if self.config.network_name not in networks:
            raise NetworkNotFound(self.config.network_name, networks)
        self._success(f"Network '{self.config.network_name}' present")

    def ensure_directories(self) -> List[str]:
        directories = self.required_directories()
        for directory in directories:
            self.docker.ensure_directory(directory)
        self._success(f"Directory {self.config.deploy_dir} ready")
        return directories

    def run(self, create_directories: bool = True) -> PreflightReport:
        """
        Run all checks in order.

        Args:
            create_directories: False in check mode (report only, no mkdir)

        Raises:
            RuntimeUnreachable: Docker did not answer
            NetworkNotFound: Shared network missing
            TargetFilesystemError: Directory creation failed
        """
        version = self.check_runtime()
        self.check_network()
        if create_directories:
            directories = self.ensure_directories()
        else:
            directories = self.required_directories()
            self._success(f"Would create {', '.join(directories)}")
        return PreflightReport(
            runtime_version=version,
            network_name=self.config.network_name,
            directories=directories,
        )

    def _success(self, message: str) -> None:
        if self.logger:
            self.logger.success(message)
