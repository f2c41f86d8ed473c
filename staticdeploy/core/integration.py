"""
Integration Test Runner

Re-validates an already deployed site. Unlike the provisioning pipeline it
never stops at the first failure: every check runs and lands in one report
grouped by category (container, network, ssl, diagnostics).
"""

from datetime import datetime, timezone
from typing import Callable, Optional

import requests

from staticdeploy.constants import (
    CERT_EXPIRY_WARNING_DAYS,
    DEFAULT_RESTART_POLICY,
    LOG_ALARM_MARKERS,
    PROBE_IMAGE,
    READINESS_LOG_TAIL,
    TRAEFIK_CONTAINER_HINTS,
)
from staticdeploy.exceptions import StaticDeployError
from staticdeploy.models.config import DeploymentConfig
from staticdeploy.models.results import CheckCategory, CheckResult, IntegrationReport
from staticdeploy.services.docker_service import DockerService
from staticdeploy.services.https_service import HttpsChecker


class IntegrationTestRunner:
    """Runs every integration check and aggregates the results."""

    def __init__(
        self,
        docker: DockerService,
        config: DeploymentConfig,
        https: Optional[HttpsChecker] = None,
        probe_image: str = PROBE_IMAGE,
        logger=None,
    ):
        self.docker = docker
        self.config = config
        self.https = https or HttpsChecker()
        self.probe_image = probe_image
        self.logger = logger
        self._inspect = None

    def run(self) -> IntegrationReport:
        """Run all categories; exceptions inside a check become failed results."""
        report = IntegrationReport(target=self.config.container_name)
        self._inspect = None

        for category, checks in (
            (CheckCategory.CONTAINER, (self.check_exists, self.check_running, self.check_restart_policy)),
            (CheckCategory.NETWORK, (self.check_network_membership, self.check_edge_proxy, self.check_internal_reachability)),
            (CheckCategory.SSL, (self.check_https_redirect, self.check_certificate, self.check_https_content)),
            (CheckCategory.DIAGNOSTICS, (self.check_runtime_version, self.check_logs, self.check_uptime)),
        ):
            for check in checks:
                result = self._guard(check)
                report.add(category, result)
                self._record(category, result)

        return report

    # ------------------------------------------------------------------
    # container
    # ------------------------------------------------------------------

    def _container(self) -> Optional[dict]:
        if self._inspect is None:
            self._inspect = self.docker.inspect_container(self.config.container_name) or {}
        return self._inspect or None

    def check_exists(self) -> CheckResult:
        data = self._container()
        if not data:
            return CheckResult("exists", False, f"Container {self.config.container_name} not found")
        return CheckResult("exists", True, "Container exists", details=data.get("Id", "")[:12])

    def check_running(self) -> CheckResult:
        state = (self._container() or {}).get("State") or {}
        status = state.get("Status", "absent")
        if not state.get("Running"):
            return CheckResult("running", False, f"Container is {status}")
        return CheckResult("running", True, "Container is running")

    def check_restart_policy(self) -> CheckResult:
        host_config = (self._container() or {}).get("HostConfig") or {}
        policy = (host_config.get("RestartPolicy") or {}).get("Name", "")
        return CheckResult(
            "restart_policy",
            policy == DEFAULT_RESTART_POLICY,
            f"Restart policy is '{policy or 'none'}'",
        )

    # ------------------------------------------------------------------
    # network
    # ------------------------------------------------------------------

    def check_network_membership(self) -> CheckResult:
        networks = ((self._container() or {}).get("NetworkSettings") or {}).get("Networks") or {}
        joined = self.config.network_name in networks
        return CheckResult(
            "network_membership",
            joined,
            f"{'Attached to' if joined else 'Not attached to'} {self.config.network_name}",
            details=", ".join(sorted(networks)) or None,
        )

    def check_edge_proxy(self) -> CheckResult:
        members = self.docker.network_containers(self.config.network_name)
        proxies = [m for m in members if any(h in m.lower() for h in TRAEFIK_CONTAINER_HINTS)]
        if not proxies:
            return CheckResult(
                "edge_proxy",
                False,
                f"No edge proxy container on {self.config.network_name}",
                details=", ".join(members) or None,
            )
        return CheckResult("edge_proxy", True, f"Edge proxy present: {', '.join(proxies)}")

    def check_internal_reachability(self) -> CheckResult:
        url = f"http://{self.config.container_name}:{self.config.container_port}/"
        status = self.docker.run_probe(self.config.network_name, self.probe_image, url)
        return CheckResult(
            "internal_reachability",
            status == 200,
            f"{url} → {status if status is not None else 'unreachable'}",
        )

    # ------------------------------------------------------------------
    # ssl
    # ------------------------------------------------------------------

    def check_https_redirect(self) -> CheckResult:
        redirect = self.https.check_redirect(self.config.domain)
        if redirect.error:
            return CheckResult("https_redirect", False, "HTTP endpoint unreachable", details=redirect.error)
        return CheckResult(
            "https_redirect",
            redirect.redirects_to_https,
            f"HTTP {redirect.status_code} → {redirect.location or 'no Location header'}",
        )

    def check_certificate(self) -> CheckResult:
        cert = self.https.check_certificate(self.config.domain)
        if not cert.valid:
            return CheckResult("certificate", False, "Certificate not valid", details=cert.error)

        days = cert.days_remaining
        message = f"Valid certificate from {cert.issuer or 'unknown issuer'}"
        if days is not None:
            message += f", {days} day(s) remaining"
        if days is not None and days < 0:
            return CheckResult("certificate", False, "Certificate expired", details=message)
        details = None
        if days is not None and days < CERT_EXPIRY_WARNING_DAYS:
            details = f"Expires in less than {CERT_EXPIRY_WARNING_DAYS} days"
        return CheckResult("certificate", True, message, details=details)

    def check_https_content(self) -> CheckResult:
        try:
            response = self.https.fetch(self.config.domain)
        except requests.exceptions.RequestException as e:
            return CheckResult("https_content", False, "HTTPS request failed", details=str(e))
        found = self.config.expected_marker in response.text
        return CheckResult(
            "https_content",
            response.status_code == 200 and found,
            f"HTTPS {response.status_code}, marker {'found' if found else 'missing'}",
        )

    # ------------------------------------------------------------------
    # diagnostics
    # ------------------------------------------------------------------

    def check_runtime_version(self) -> CheckResult:
        return CheckResult("runtime_version", True, f"Docker {self.docker.version()}")

    def check_logs(self) -> CheckResult:
        logs = self.docker.container_logs(self.config.container_name, READINESS_LOG_TAIL)
        alarms = [
            line for line in logs.splitlines()
            if any(marker in line for marker in LOG_ALARM_MARKERS)
        ]
        if alarms:
            return CheckResult(
                "logs", False, f"{len(alarms)} alarming log line(s)", details="\n".join(alarms[-5:])
            )
        return CheckResult("logs", True, f"{len(logs.splitlines())} recent log line(s), no alarms")

    def check_uptime(self) -> CheckResult:
        state = (self._container() or {}).get("State") or {}
        started = _parse_docker_time(state.get("StartedAt"))
        if not started:
            return CheckResult("uptime", False, "Start time unknown")
        uptime = datetime.now(timezone.utc) - started
        return CheckResult(
            "uptime",
            True,
            f"Up {int(uptime.total_seconds())}s, restarts: {(self._container() or {}).get('RestartCount', 0)}",
        )

    # ------------------------------------------------------------------

    def _guard(self, check: Callable[[], CheckResult]) -> CheckResult:
        name = check.__name__.replace("check_", "")
        try:
            return check()
        except StaticDeployError as e:
            return CheckResult(name, False, f"{e.label}: {e.message}", details=e.context)
        except requests.exceptions.RequestException as e:
            return CheckResult(name, False, "HTTP request failed", details=str(e))
        except Exception as e:
            # Unexpected errors fail this check only
            return CheckResult(name, False, f"{type(e).__name__}: {e}")

    def _record(self, category: CheckCategory, result: CheckResult) -> None:
        if not self.logger:
            return
        text = f"[{category.value}] {result.name}: {result.message}"
        if result.passed:
            self.logger.success(text)
        else:
            self.logger.warning(text)


def _parse_docker_time(value: Optional[str]) -> Optional[datetime]:
    """Parse Docker's RFC 3339 timestamps (nanosecond precision, Z suffix)."""
    if not value or value.startswith("0001-"):
        return None
    head, _, rest = value.partition(".")
    if not rest:
        head = value.rstrip("Z")
    try:
        return datetime.strptime(head.rstrip("Z"), "%Y-%m-%dT%H:%M:%S").replace(tzinfo=timezone.utc)
    except ValueError:
        return None
