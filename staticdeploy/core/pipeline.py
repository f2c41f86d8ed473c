"""
Deployment Pipeline

Ordered, named stages with tagged results:

    INIT → SECRETS_VERIFIED → CONFIG_RESOLVED → PREFLIGHT_PASSED
         → PROVISIONED → VALIDATED

The first failing stage moves the run to ABORTED with its error attached
and no later stage runs. There is no retry across stages.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

from staticdeploy.core.config_resolver import ConfigResolver, default_sources, read_env_file
from staticdeploy.core.preflight import PreflightChecker, PreflightReport
from staticdeploy.core.provisioner import Provisioner
from staticdeploy.core.readiness import ReadinessValidator
from staticdeploy.core.secret_gate import SecretGate
from staticdeploy.core.templates import TemplateRenderer
from staticdeploy.exceptions import StaticDeployError
from staticdeploy.models.config import DeploymentConfig, ProjectPaths
from staticdeploy.models.container import ProvisionedContainer
from staticdeploy.models.results import ValidationResult
from staticdeploy.models.secrets import SecretBundle
from staticdeploy.services.docker_service import DockerService
from staticdeploy.services.http_probe import HostHttpProbe
from staticdeploy.services.ssh_service import SSHService, build_executor


class PipelineState(Enum):
    INIT = "init"
    SECRETS_VERIFIED = "secrets_verified"
    CONFIG_RESOLVED = "config_resolved"
    PREFLIGHT_PASSED = "preflight_passed"
    PROVISIONED = "provisioned"
    VALIDATED = "validated"
    ABORTED = "aborted"


@dataclass
class StageResult:
    """Tagged outcome of one stage: ok with a value, or failed with an error."""

    ok: bool
    value: Any = None
    error: Optional[StaticDeployError] = None

    @classmethod
    def success(cls, value: Any = None) -> "StageResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: StaticDeployError) -> "StageResult":
        return cls(ok=False, error=error)


@dataclass
class Stage:
    name: str
    func: Callable[[], Any]
    reaches: PipelineState


@dataclass
class PipelineOutcome:
    """Everything a run produced, up to the point it stopped."""

    state: PipelineState = PipelineState.INIT
    error: Optional[StaticDeployError] = None
    failed_stage: Optional[str] = None
    history: List[PipelineState] = field(default_factory=lambda: [PipelineState.INIT])
    bundle: Optional[SecretBundle] = field(default=None, repr=False)
    config: Optional[DeploymentConfig] = None
    preflight: Optional[PreflightReport] = None
    container: Optional[ProvisionedContainer] = None
    validation: Optional[ValidationResult] = None

    @property
    def succeeded(self) -> bool:
        return self.state is not PipelineState.ABORTED

    def advance(self, state: PipelineState) -> None:
        self.state = state
        self.history.append(state)

    def abort(self, stage: str, error: StaticDeployError) -> None:
        self.failed_stage = stage
        self.error = error
        self.advance(PipelineState.ABORTED)

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


class DeploymentPipeline:
    """Gate → Resolver → Preflight → Provisioner → Validator, fail fast."""

    def __init__(
        self,
        paths: ProjectPaths,
        extra_vars: Sequence[str] = (),
        check_mode: bool = False,
        logger=None,
        executor_factory: Callable[..., SSHService] = build_executor,
        docker_factory: Callable[[SSHService, str], DockerService] = DockerService,
        probe_factory: Callable[[SSHService, str], HostHttpProbe] = HostHttpProbe,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.paths = paths
        self.extra_vars = list(extra_vars)
        self.check_mode = check_mode
        self.logger = logger
        self.executor_factory = executor_factory
        self.docker_factory = docker_factory
        self.probe_factory = probe_factory
        self.clock = clock
        self.sleep = sleep

        self.outcome = PipelineOutcome()
        self.docker: Optional[DockerService] = None
        self.executor: Optional[SSHService] = None

    def stages(self) -> List[Stage]:
        stages = [
            Stage("secrets", self.verify_secrets, PipelineState.SECRETS_VERIFIED),
            Stage("config", self.configure, PipelineState.CONFIG_RESOLVED),
            Stage("preflight", self.preflight, PipelineState.PREFLIGHT_PASSED),
        ]
        if not self.check_mode:
            stages += [
                Stage("provision", self.provision, PipelineState.PROVISIONED),
                Stage("readiness", self.validate, PipelineState.VALIDATED),
            ]
        return stages

    def run(self) -> PipelineOutcome:
        """
        Run every stage in order, stopping at the first failure.

        Returns:
            PipelineOutcome (state ABORTED with error set on failure)
        """
        for stage in self.stages():
            self._step(stage.name)
            result = self._execute(stage)
            if not result.ok:
                self.outcome.abort(stage.name, result.error)
                break
            self.outcome.advance(stage.reaches)
        return self.outcome

    def _execute(self, stage: Stage) -> StageResult:
        try:
            return StageResult.success(stage.func())
        except StaticDeployError as e:
            return StageResult.failure(e)

    # ------------------------------------------------------------------
    # stages
    # ------------------------------------------------------------------

    def verify_secrets(self) -> SecretBundle:
        bundle = SecretGate(self.paths).open()
        self.outcome.bundle = bundle
        self._success(f"Vault decrypted ({len(bundle)} value(s))")
        return bundle

    def resolve_config(self) -> DeploymentConfig:
        sources = default_sources(
            self.paths.inventory_dir,
            read_env_file(self.paths.env_file),
            self.outcome.bundle,
            self.extra_vars,
        )
        config = ConfigResolver(sources).resolve()
        self.outcome.config = config
        if self.logger:
            self.logger.redact(*config.secret_values())
        self._success(f"{config.container_name} → {config.server_address} ({config.environment})")
        return config

    def connect(self) -> DockerService:
        """Executor and DockerService for the resolved target, built once."""
        if self.docker is None:
            config = self.outcome.config
            self.executor = self.executor_factory(config, logger=self.logger)
            self.docker = self.docker_factory(self.executor, config.server_address)
        return self.docker

    def configure(self) -> DeploymentConfig:
        config = self.resolve_config()
        self.connect()
        return config

    def preflight(self) -> PreflightReport:
        checker = PreflightChecker(self.docker, self.outcome.config, logger=self.logger)
        report = checker.run(create_directories=not self.check_mode)
        self.outcome.preflight = report
        return report

    def provision(self) -> ProvisionedContainer:
        provisioner = Provisioner(
            self.docker,
            self.outcome.config,
            renderer=TemplateRenderer(self.paths.templates_dir),
            logger=self.logger,
        )
        container = provisioner.provision()
        self.outcome.container = container
        return container

    def validate(self) -> ValidationResult:
        config = self.outcome.config
        validator = ReadinessValidator(
            self.docker,
            self.probe_factory(self.executor, config.server_address),
            config,
            clock=self.clock,
            sleep=self.sleep,
            logger=self.logger,
        )
        result = validator.wait(container=self.outcome.container)
        self.outcome.validation = result
        return result

    def _step(self, name: str) -> None:
        if self.logger:
            self.logger.step(name.capitalize())

    def _success(self, message: str) -> None:
        if self.logger:
            self.logger.success(message)
