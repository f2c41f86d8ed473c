"""
Project Command Base Class

Base class for commands that act on a deployed target.
Opens the vault, resolves config and connects through the same stages
the deploy pipeline runs.
"""

from typing import Optional, Sequence

from staticdeploy.base.base_command import BaseCommand
from staticdeploy.constants import ENV_LOG_LEVEL
from staticdeploy.core.config_resolver import read_env_file
from staticdeploy.core.pipeline import DeploymentPipeline
from staticdeploy.models.config import DeploymentConfig, ProjectPaths
from staticdeploy.services.docker_service import DockerService
from staticdeploy.services.ssh_service import SSHService, build_executor


class ProjectCommand(BaseCommand):
    """
    Base class for project commands.

    Provides:
    - ProjectPaths for the project directory
    - Resolved DeploymentConfig (gate → resolver)
    - Executor and DockerService for the target
    """

    def __init__(
        self,
        project_dir: Optional[str] = None,
        extra_vars: Sequence[str] = (),
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(project_dir=project_dir, verbose=verbose, json_output=json_output)
        self.paths = ProjectPaths(self.project_root)
        self.pipeline = DeploymentPipeline(
            self.paths,
            extra_vars=extra_vars,
            executor_factory=build_executor,
            docker_factory=DockerService,
        )

        self.config: Optional[DeploymentConfig] = None
        self.executor: Optional[SSHService] = None
        self.docker: Optional[DockerService] = None

    def log_level(self) -> str:
        return (read_env_file(self.paths.env_file).get(ENV_LOG_LEVEL) or "INFO").upper()

    def resolve_config(self) -> DeploymentConfig:
        """
        Open the vault and resolve the configuration.

        Raises:
            ConfigMissing, DecryptionError: From the secret gate
            MissingRequiredValue, InvalidConfigValue: From the resolver
        """
        if self.config is None:
            self.pipeline.verify_secrets()
            self.config = self.pipeline.resolve_config()
        return self.config

    def ensure_docker(self) -> DockerService:
        """DockerService on the configured target (resolves config first)."""
        if self.docker is None:
            self.resolve_config()
            self.pipeline.logger = self.logger
            self.docker = self.pipeline.connect()
            self.executor = self.pipeline.executor
        return self.docker

    def init_project_logger(self, command_name: str):
        """Logger scoped to the domain (or "global"), with vault values masked."""
        config = self.resolve_config()
        logger = self.init_logger(config.log_scope, command_name, level=self.log_level())
        if logger:
            logger.redact(*config.secret_values())
        return logger
