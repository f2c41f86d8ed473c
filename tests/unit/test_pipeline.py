"""Unit tests for the deployment pipeline state machine."""

import pytest
from conftest import FakeDocker, FakeProbe

from staticdeploy.core.pipeline import DeploymentPipeline, PipelineState, StageResult
from staticdeploy.exceptions import (
    ConfigMissing,
    DecryptionError,
    NetworkNotFound,
    ReadinessTimeout,
)
from staticdeploy.logger import DeployLogger


class FakeTarget:
    """Factories handing the pipeline in-memory services; counts remote connections."""

    def __init__(self, docker: FakeDocker, clock, ready_at=0):
        self.docker = docker
        self.probe = FakeProbe(clock, ready_at)
        self.connections = 0

    def executor(self, config, logger=None):
        self.connections += 1
        return object()

    def docker_factory(self, executor, host):
        return self.docker

    def probe_factory(self, executor, host):
        return self.probe


def pipeline(paths, target, clock, **kwargs):
    return DeploymentPipeline(
        paths,
        executor_factory=target.executor,
        docker_factory=target.docker_factory,
        probe_factory=target.probe_factory,
        clock=clock,
        sleep=clock.sleep,
        **kwargs,
    )


class TestStageResult:
    def test_tags(self):
        assert StageResult.success(1).ok
        failure = StageResult.failure(ConfigMissing("x"))
        assert not failure.ok
        assert isinstance(failure.error, ConfigMissing)


class TestPipeline:
    def test_full_run(self, project, docker, clock):
        target = FakeTarget(docker, clock, ready_at=4)

        outcome = pipeline(project, target, clock).run()

        assert outcome.succeeded
        assert outcome.history == [
            PipelineState.INIT,
            PipelineState.SECRETS_VERIFIED,
            PipelineState.CONFIG_RESOLVED,
            PipelineState.PREFLIGHT_PASSED,
            PipelineState.PROVISIONED,
            PipelineState.VALIDATED,
        ]
        assert outcome.config.container_name == "static-web-example.com"
        assert outcome.container.state.value == "healthy"
        assert outcome.validation.passed

    def test_missing_vault_aborts_before_remote_calls(self, project, docker, clock):
        project.vault_file.unlink()
        target = FakeTarget(docker, clock)

        outcome = pipeline(project, target, clock).run()

        assert outcome.state is PipelineState.ABORTED
        assert outcome.failed_stage == "secrets"
        assert isinstance(outcome.error, ConfigMissing)
        assert target.connections == 0
        assert docker.calls == []

    def test_wrong_password_aborts(self, project, docker, clock):
        project.vault_pass_file.write_text("wrong\n")
        target = FakeTarget(docker, clock)

        outcome = pipeline(project, target, clock).run()

        assert isinstance(outcome.error, DecryptionError)
        assert outcome.history == [PipelineState.INIT, PipelineState.ABORTED]

    def test_missing_network_never_provisions(self, project, clock):
        docker = FakeDocker(networks=("bridge",))
        target = FakeTarget(docker, clock)

        outcome = pipeline(project, target, clock).run()

        assert isinstance(outcome.error, NetworkNotFound)
        assert outcome.failed_stage == "preflight"
        assert docker.runs == []
        assert docker.files == {}
        assert outcome.container is None

    def test_check_mode_stops_after_preflight(self, project, docker, clock):
        target = FakeTarget(docker, clock)

        outcome = pipeline(project, target, clock, check_mode=True).run()

        assert outcome.succeeded
        assert outcome.state is PipelineState.PREFLIGHT_PASSED
        assert docker.directories == []
        assert docker.runs == []

    def test_readiness_timeout_aborts(self, project, docker, clock):
        target = FakeTarget(docker, clock, ready_at=None)

        outcome = pipeline(project, target, clock).run()

        assert isinstance(outcome.error, ReadinessTimeout)
        assert outcome.failed_stage == "readiness"
        assert outcome.container is not None
        assert clock.now == 60

    def test_extra_vars_reach_config(self, project, docker, clock):
        target = FakeTarget(docker, clock)

        outcome = pipeline(project, target, clock, extra_vars=["host_port=9000"]).run()

        assert outcome.container.host_port == 9000

    def test_raise_for_error(self, project, docker, clock):
        project.env_file.unlink()
        outcome = pipeline(project, FakeTarget(docker, clock), clock).run()

        with pytest.raises(ConfigMissing):
            outcome.raise_for_error()

    def test_run_log_holds_no_vault_values(self, project, docker, clock):
        """Server address and domain came from the vault: the log file masks them."""
        target = FakeTarget(docker, clock)

        with DeployLogger("global", "deploy", logs_dir=project.logs_dir) as logger:
            outcome = pipeline(project, target, clock, logger=logger).run()

        assert outcome.succeeded
        text = logger.log_path.read_text()
        assert "203.0.113.10" not in text
        assert "example.com" not in text
        assert "ops@example.com" not in text
        assert "Docker 24.0.7 reachable on ********" in text

    def test_log_scope_is_global_for_vault_domain(self, project, docker, clock):
        outcome = pipeline(project, FakeTarget(docker, clock), clock, check_mode=True).run()

        assert outcome.config.log_scope == "global"
        assert outcome.config.secret_values()[:2] == ["203.0.113.10", "example.com"]

    def test_missing_ssh_key_fails_config_stage(self, project, docker, clock):
        def missing_key(config, logger=None):
            raise ConfigMissing("/keys/static_web")

        target = FakeTarget(docker, clock)
        outcome = DeploymentPipeline(
            project,
            executor_factory=missing_key,
            docker_factory=target.docker_factory,
            probe_factory=target.probe_factory,
            clock=clock,
            sleep=clock.sleep,
        ).run()

        assert outcome.failed_stage == "config"
        assert docker.calls == []
