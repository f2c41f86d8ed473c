"""Pytest configuration and shared fixtures for staticdeploy tests."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import yaml
from ansible.parsing.vault import VaultLib, VaultSecret

from staticdeploy.exceptions import ContainerCreateError, RuntimeUnreachable
from staticdeploy.models.config import DeploymentConfig, ProjectPaths
from staticdeploy.models.container import ContainerSpec
from staticdeploy.models.results import ProbeResponse, SSHResult
from staticdeploy.services.docker_service import published_port

VAULT_PASSWORD = b"correct horse battery staple"

VAULT_VALUES = {
    "vault_vps_server_ip": "203.0.113.10",
    "vault_traefik_domain": "example.com",
    "vault_containers_deployment_user": "docker",
    "vault_containers_deployment_ssh_key": "~/.ssh/static_web",
    "vault_initial_deployment_user": "admin",
    "vault_traefik_email": "ops@example.com",
}


def encrypt_vault(values: Dict[str, Any], password: bytes = VAULT_PASSWORD) -> bytes:
    """Encrypt a mapping the way `ansible-vault encrypt` does."""
    plaintext = yaml.safe_dump(values, default_flow_style=False)
    return VaultLib([]).encrypt(plaintext, VaultSecret(password))


def write_project(
    root: Path,
    vault_values: Optional[Dict[str, Any]] = None,
    env_lines: Optional[List[str]] = None,
    password: bytes = VAULT_PASSWORD,
) -> ProjectPaths:
    """Lay out a deployment project: env file, encrypted vault, password, inventory."""
    paths = ProjectPaths(root)
    paths.secrets_dir.mkdir(parents=True, exist_ok=True)
    paths.env_file.write_text("\n".join(env_lines or ["LOG_LEVEL=INFO"]) + "\n")
    paths.vault_file.write_bytes(encrypt_vault(VAULT_VALUES if vault_values is None else vault_values))
    paths.vault_pass_file.write_bytes(password + b"\n")

    paths.inventory_dir.mkdir(parents=True, exist_ok=True)
    (paths.inventory_dir / "hosts.yml").write_text(
        yaml.safe_dump(
            {
                "all": {
                    "hosts": {
                        "web": {
                            "ansible_host": "{{ vault_vps_server_ip }}",
                            "ansible_user": "{{ vault_containers_deployment_user }}",
                        }
                    }
                }
            }
        )
    )
    return paths


@pytest.fixture
def project(tmp_path) -> ProjectPaths:
    """A complete project directory with an encrypted vault."""
    return write_project(tmp_path)


@pytest.fixture
def config() -> DeploymentConfig:
    return DeploymentConfig(
        server_address="203.0.113.10",
        domain="example.com",
        readiness_timeout=60,
        readiness_interval=2,
    )


class FakeClock:
    """Monotonic clock that only moves when sleep() is called."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class FakeProbe:
    """HostHttpProbe stand-in that starts answering once the clock passes ready_at."""

    def __init__(self, clock: FakeClock, ready_at: Optional[float], marker: str = "static-web-ok"):
        self.clock = clock
        self.ready_at = ready_at
        self.marker = marker
        self.requests: List[tuple] = []
        self.timeouts: List[Optional[float]] = []

    def get(self, vantage: str, url: str, timeout: Optional[float] = None) -> ProbeResponse:
        self.requests.append((self.clock(), vantage, url))
        self.timeouts.append(timeout)
        if self.ready_at is None or self.clock() < self.ready_at:
            return ProbeResponse(vantage=vantage, url=url, error="Connection refused")
        return ProbeResponse(
            vantage=vantage,
            url=url,
            status_code=200,
            body=f"<html><!-- {self.marker} --></html>",
        )


class FakeDocker:
    """
    In-memory DockerService with the same method surface.

    Containers are stored as `docker inspect`-shaped dictionaries.
    """

    def __init__(self, networks=("traefik-network", "bridge"), version: Optional[str] = "24.0.7"):
        self.networks = list(networks)
        self.server_version = version
        self.containers: Dict[str, Dict[str, Any]] = {}
        self.files: Dict[str, str] = {}
        self.directories: List[str] = []
        self.calls: List[str] = []
        self.run_errors: List[ContainerCreateError] = []
        self.runs: List[ContainerSpec] = []
        self.logs = "172.18.0.2 - - GET / HTTP/1.1 200\n"
        self.network_members = ["traefik", "static-web-example.com"]
        self.probe_status: Optional[int] = 200

    def version(self) -> str:
        self.calls.append("version")
        if self.server_version is None:
            raise RuntimeUnreachable("Docker daemon on test did not respond")
        return self.server_version

    def list_networks(self) -> List[str]:
        self.calls.append("list_networks")
        return list(self.networks)

    def network_containers(self, network: str) -> List[str]:
        self.calls.append("network_containers")
        return list(self.network_members) if network in self.networks else []

    def inspect_container(self, name: str) -> Optional[Dict[str, Any]]:
        self.calls.append("inspect_container")
        return self.containers.get(name)

    def container_exists(self, name: str) -> bool:
        return name in self.containers

    def container_ip(self, name: str, network: str) -> Optional[str]:
        data = self.containers.get(name) or {}
        networks = data.get("NetworkSettings", {}).get("Networks", {})
        return (networks.get(network) or {}).get("IPAddress")

    def published_port(self, name: str, container_port: int) -> Optional[int]:
        return published_port(self.containers.get(name), container_port)

    def remove_container(self, name: str) -> bool:
        self.calls.append(f"remove:{name}")
        return self.containers.pop(name, None) is not None

    def run_container(self, spec: ContainerSpec) -> str:
        self.calls.append(f"run:{spec.host_port}")
        self.runs.append(spec)
        if self.run_errors:
            raise self.run_errors.pop(0)
        container_id = f"{len(self.runs):012d}abcdef"
        self.containers[spec.name] = make_inspect(
            container_id,
            spec.network,
            spec.restart_policy,
            labels=spec.labels,
            host_port=spec.host_port,
            container_port=spec.container_port,
        )
        return container_id

    def container_logs(self, name: str, tail: int = 50) -> str:
        self.calls.append("logs")
        return self.logs

    def run_probe(self, network: str, image: str, url: str, timeout: int = 5) -> Optional[int]:
        self.calls.append(f"probe:{url}")
        return self.probe_status

    def ensure_directory(self, path: str) -> None:
        self.calls.append(f"mkdir:{path}")
        self.directories.append(path)

    def write_file(self, path: str, content: str) -> None:
        self.calls.append(f"write:{path}")
        self.files[path] = content


def make_inspect(
    container_id: str = "0123456789abcdef",
    network: str = "traefik-network",
    restart_policy: str = "unless-stopped",
    running: bool = True,
    labels: Optional[Dict[str, str]] = None,
    started_at: str = "2024-01-01T00:00:00.123456789Z",
    host_port: int = 8080,
    container_port: int = 80,
) -> Dict[str, Any]:
    binding = {f"{container_port}/tcp": [{"HostIp": "", "HostPort": str(host_port)}]}
    return {
        "Id": container_id,
        "State": {
            "Status": "running" if running else "exited",
            "Running": running,
            "StartedAt": started_at,
        },
        "RestartCount": 0,
        "HostConfig": {"RestartPolicy": {"Name": restart_policy}, "PortBindings": binding},
        "Config": {"Labels": labels or {}},
        "NetworkSettings": {
            "Networks": {network: {"IPAddress": "172.18.0.5"}},
            "Ports": binding if running else {},
        },
    }


@pytest.fixture
def docker() -> FakeDocker:
    return FakeDocker()


class RecordingExecutor:
    """SSHService stand-in: replies by command prefix and records every call."""

    def __init__(self, replies: Optional[Dict[str, SSHResult]] = None):
        self.replies = replies or {}
        self.commands: List[str] = []
        self.stdin: List[Optional[str]] = []

    def execute_command(self, host, command, timeout=None, stdin=None, description=None):
        self.commands.append(command)
        self.stdin.append(stdin)
        for prefix, reply in self.replies.items():
            if command.startswith(prefix):
                return reply
        return ok("")


def ok(stdout: str = "", stderr: str = "") -> SSHResult:
    return SSHResult(returncode=0, stdout=stdout, stderr=stderr, host="test", command="")


def failed(stderr: str = "", returncode: int = 1, stdout: str = "") -> SSHResult:
    return SSHResult(returncode=returncode, stdout=stdout, stderr=stderr, host="test", command="")


def inspect_json(data: Dict[str, Any]) -> str:
    return json.dumps([data])
