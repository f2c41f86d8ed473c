"""Docker service: the container runtime on the target, driven through its CLI."""

import json
import shlex
from typing import Any, Dict, List, Optional

from staticdeploy.exceptions import (
    ContainerCreateError,
    RuntimeUnreachable,
    TargetFilesystemError,
)
from staticdeploy.models.container import ContainerSpec
from staticdeploy.models.results import SSHResult
from staticdeploy.services.ssh_service import SSHService

PORT_CONFLICT_MARKERS = (
    "port is already allocated",
    "address already in use",
    "bind for",
)


class DockerService:
    """
    Container runtime operations on one host.

    Every call goes through the executor (SSH, or local shell for localhost),
    so the same code serves remote and local targets.
    """

    def __init__(self, executor: SSHService, host: str):
        self.executor = executor
        self.host = host

    def _docker(self, *args: str, timeout: Optional[int] = None, **kwargs) -> SSHResult:
        command = " ".join(["docker"] + [shlex.quote(a) for a in args])
        if timeout is None:
            return self.executor.execute_command(self.host, command, **kwargs)
        return self.executor.execute_command(self.host, command, timeout=timeout, **kwargs)

    # ------------------------------------------------------------------
    # Runtime / networks
    # ------------------------------------------------------------------

    def version(self) -> str:
        """
        Query the runtime server version.

        Raises:
            RuntimeUnreachable: If the daemon does not answer
        """
        result = self._docker("version", "--format", "{{.Server.Version}}", timeout=30)
        version = result.stdout.strip()
        if result.is_failure or not version:
            raise RuntimeUnreachable(
                f"Docker daemon on {self.host} did not respond",
                context=result.stderr.strip() or "docker version returned no server version",
            )
        return version

    def list_networks(self) -> List[str]:
        """List network names on the host."""
        result = self._docker("network", "ls", "--format", "{{.Name}}")
        if result.is_failure:
            raise RuntimeUnreachable(
                f"Could not list Docker networks on {self.host}",
                context=result.stderr.strip(),
            )
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def network_containers(self, network: str) -> List[str]:
        """Names of containers attached to a network (empty if it is missing)."""
        result = self._docker(
            "network",
            "inspect",
            network,
            "--format",
            "{{range .Containers}}{{.Name}} {{end}}",
        )
        if result.is_failure:
            return []
        return result.stdout.split()

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    def inspect_container(self, name: str) -> Optional[Dict[str, Any]]:
        """Return `docker inspect` data for a container, or None if absent."""
        result = self._docker("inspect", "--type", "container", name)
        if result.is_failure:
            return None
        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError:
            return None
        return data[0] if data else None

    def container_exists(self, name: str) -> bool:
        return self.inspect_container(name) is not None

    def container_ip(self, name: str, network: str) -> Optional[str]:
        """IP address of a container on a given network."""
        data = self.inspect_container(name)
        if not data:
            return None
        networks = data.get("NetworkSettings", {}).get("Networks") or {}
        address = (networks.get(network) or {}).get("IPAddress")
        return address or None

    def published_port(self, name: str, container_port: int) -> Optional[int]:
        """Host port the container's port is published on, or None."""
        return published_port(self.inspect_container(name), container_port)

    def remove_container(self, name: str) -> bool:
        """
        Force-remove a container.

        Returns:
            True if a container was removed, False if none existed
        """
        result = self._docker("rm", "-f", name)
        if result.is_success:
            return True
        if "no such container" in result.stderr.lower():
            return False
        raise ContainerCreateError(
            f"Could not remove existing container '{name}'",
            context=result.stderr.strip(),
        )

    def run_container(self, spec: ContainerSpec) -> str:
        """
        Create and start a container.

        Returns:
            Container ID

        Raises:
            ContainerCreateError: If docker run fails (port_conflict flag set
                when the host port is taken)
        """
        result = self._docker("run", *spec.to_run_args(), timeout=300)
        if result.is_failure:
            stderr = result.stderr.strip()
            conflict = any(marker in stderr.lower() for marker in PORT_CONFLICT_MARKERS)
            raise ContainerCreateError(
                f"Failed to start container '{spec.name}'"
                + (f" (host port {spec.host_port} in use)" if conflict else ""),
                context=stderr,
                port_conflict=conflict,
            )
        return result.stdout.strip().splitlines()[-1] if result.stdout.strip() else ""

    def container_logs(self, name: str, tail: int = 50) -> str:
        """Recent log lines (stdout and stderr merged)."""
        command = f"docker logs --tail {int(tail)} {shlex.quote(name)} 2>&1"
        result = self.executor.execute_command(self.host, command)
        if result.is_failure:
            return ""
        return result.stdout

    def run_probe(self, network: str, image: str, url: str, timeout: int = 5) -> Optional[int]:
        """
        Fetch a URL from a throwaway container on a network.

        Returns:
            HTTP status code, or None if the request failed
        """
        result = self._docker(
            "run",
            "--rm",
            "--network",
            network,
            image,
            "-s",
            "-o",
            "/dev/null",
            "-w",
            "%{http_code}",
            "-m",
            str(timeout),
            url,
            timeout=120,
        )
        code = result.stdout.strip()
        if result.is_failure or not code.isdigit() or code == "000":
            return None
        return int(code)

    # ------------------------------------------------------------------
    # Filesystem on the host
    # ------------------------------------------------------------------

    def ensure_directory(self, path: str) -> None:
        """Create a directory on the host (idempotent)."""
        result = self.executor.execute_command(self.host, f"mkdir -p {shlex.quote(path)}")
        if result.is_failure:
            raise TargetFilesystemError(
                f"Could not create directory {path} on {self.host}",
                context=result.stderr.strip(),
            )

    def write_file(self, path: str, content: str) -> None:
        """Write a file on the host from stdin (content is never logged)."""
        result = self.executor.execute_command(
            self.host,
            f"cat > {shlex.quote(path)}",
            stdin=content,
            description=f"write {path} ({len(content.encode())} bytes)",
        )
        if result.is_failure:
            raise TargetFilesystemError(
                f"Could not write {path} on {self.host}",
                context=result.stderr.strip(),
            )


def published_port(data: Optional[Dict[str, Any]], container_port: int) -> Optional[int]:
    """
    Host port bound to a container port in `docker inspect` data.

    Reads the live NetworkSettings.Ports first, then the requested
    HostConfig.PortBindings (a created but stopped container has only those).
    """
    if not data:
        return None
    key = f"{container_port}/tcp"
    for bindings in (
        (data.get("NetworkSettings") or {}).get("Ports") or {},
        (data.get("HostConfig") or {}).get("PortBindings") or {},
    ):
        for binding in bindings.get(key) or []:
            port = str(binding.get("HostPort") or "")
            if port.isdigit():
                return int(port)
    return None
