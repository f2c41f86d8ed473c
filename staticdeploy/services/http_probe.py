"""HTTP probes issued from the target host."""

import shlex
from typing import Optional

from staticdeploy.constants import HTTP_PROBE_TIMEOUT, SSH_CONNECT_TIMEOUT
from staticdeploy.exceptions import RuntimeUnreachable
from staticdeploy.models.results import ProbeResponse
from staticdeploy.services.ssh_service import SSHService

STATUS_MARKER = "__STATICDEPLOY_HTTP_STATUS__:"


class HostHttpProbe:
    """
    Fetches URLs with curl on the target host.

    The container's published port is bound on the host's loopback and the
    container address is only routable from the host, so both vantage
    points are reached from there rather than from the operator machine.
    """

    def __init__(self, executor: SSHService, host: str, timeout: int = HTTP_PROBE_TIMEOUT):
        self.executor = executor
        self.host = host
        self.timeout = timeout

    def get(self, vantage: str, url: str, timeout: Optional[float] = None) -> ProbeResponse:
        """
        Issue one GET and return the observation (never raises for HTTP errors).

        Args:
            timeout: Upper bound in seconds for this request, capped at the
                probe's own timeout
        """
        limit = self.timeout if timeout is None else max(1, min(self.timeout, int(timeout)))
        command = (
            f"curl -s -S -m {int(limit)} "
            f"-w {shlex.quote(chr(10) + STATUS_MARKER + '%{http_code}')} "
            f"{shlex.quote(url)}"
        )
        try:
            result = self.executor.execute_command(
                self.host, command, timeout=int(limit) + SSH_CONNECT_TIMEOUT
            )
        except RuntimeUnreachable as e:
            return ProbeResponse(vantage=vantage, url=url, error=e.message)

        body, _, status = result.stdout.rpartition(STATUS_MARKER)
        status = status.strip()
        if result.is_failure or not status.isdigit() or status == "000":
            error = result.stderr.strip() or f"curl exited with {result.returncode}"
            return ProbeResponse(vantage=vantage, url=url, error=error)

        return ProbeResponse(
            vantage=vantage,
            url=url,
            status_code=int(status),
            body=body.rstrip("\n"),
        )
