"""
Readiness Validator

Fixed-interval polling of the new container from two vantage points on
the target host. The loop tracks elapsed time explicitly against an
injectable clock so the worst-case duration is bounded and testable.
"""

import time
from typing import Callable, List, Optional

from staticdeploy.constants import READINESS_LOG_TAIL
from staticdeploy.exceptions import ReadinessTimeout
from staticdeploy.models.config import DeploymentConfig
from staticdeploy.models.container import ContainerState, ProvisionedContainer
from staticdeploy.models.results import ProbeResponse, ValidationResult
from staticdeploy.services.docker_service import DockerService
from staticdeploy.services.http_probe import HostHttpProbe

LOOPBACK = "loopback"
INTERNAL = "internal"


class ReadinessValidator:
    """Waits until the container serves HTTP 200 with the expected marker."""

    def __init__(
        self,
        docker: DockerService,
        probe: HostHttpProbe,
        config: DeploymentConfig,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        logger=None,
    ):
        self.docker = docker
        self.probe = probe
        self.config = config
        self.clock = clock
        self.sleep = sleep
        self.logger = logger

    def probe_once(self, host_port: int, budget: Optional[float] = None) -> List[ProbeResponse]:
        """Query the published port on loopback and the container address."""
        responses = [
            self.probe.get(LOOPBACK, f"http://127.0.0.1:{host_port}/", timeout=budget)
        ]

        address = self.docker.container_ip(self.config.container_name, self.config.network_name)
        if address:
            responses.append(
                self.probe.get(
                    INTERNAL, f"http://{address}:{self.config.container_port}/", timeout=budget
                )
            )
        else:
            responses.append(
                ProbeResponse(
                    vantage=INTERNAL,
                    url=f"{self.config.container_name}@{self.config.network_name}",
                    error="container has no address on the shared network yet",
                )
            )
        return responses

    def wait(
        self,
        host_port: Optional[int] = None,
        container: Optional[ProvisionedContainer] = None,
    ) -> ValidationResult:
        """
        Poll until ready or until the timeout is reached.

        Args:
            host_port: Published port to check (defaults to the configured one)
            container: Marked HEALTHY on success

        Returns:
            The first passing ValidationResult

        Raises:
            ReadinessTimeout: No passing attempt within readiness_timeout;
                carries the container's recent log lines
        """
        port = host_port or (container.host_port if container else self.config.host_port)
        timeout = self.config.readiness_timeout
        interval = self.config.readiness_interval
        marker = self.config.expected_marker

        start = self.clock()
        attempt = 0
        last: Optional[ValidationResult] = None

        while True:
            attempt += 1
            elapsed = self.clock() - start
            # Each request is capped at the time left, one second at least
            budget = max(1.0, timeout - elapsed)
            last = ValidationResult.from_probes(self.probe_once(port, budget), marker, attempt, elapsed)

            if last.passed:
                if container:
                    container.mark(ContainerState.HEALTHY)
                self._log(
                    f"Ready after {last.elapsed_seconds:.1f}s ({attempt} attempt(s))"
                )
                return last

            self._debug(f"Attempt {attempt}: {last.summary()}")

            elapsed = self.clock() - start
            if elapsed >= timeout:
                break
            self.sleep(min(interval, timeout - elapsed))

        raise ReadinessTimeout(
            container_name=self.config.container_name,
            timeout=timeout,
            attempts=attempt,
            log_tail=self.docker.container_logs(self.config.container_name, READINESS_LOG_TAIL),
            last_observation=last.summary() if last else None,
        )

    def _log(self, message: str) -> None:
        if self.logger:
            self.logger.success(message)

    def _debug(self, message: str) -> None:
        if self.logger:
            self.logger.log(message, "DEBUG")
