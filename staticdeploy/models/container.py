"""
Container Models

Desired state of the static web container and its observed lifecycle.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from staticdeploy.constants import DEFAULT_RESTART_POLICY


class ContainerState(Enum):
    """Lifecycle of the provisioned container."""

    ABSENT = "absent"
    CREATED = "created"
    RUNNING = "running"
    HEALTHY = "healthy"
    REMOVED = "removed"


@dataclass
class ContainerSpec:
    """Arguments for creating the container."""

    name: str
    image: str
    network: str
    host_port: int
    container_port: int
    labels: Dict[str, str] = field(default_factory=dict)
    volumes: List[str] = field(default_factory=list)
    restart_policy: str = DEFAULT_RESTART_POLICY
    memory_limit: Optional[str] = None
    cpu_limit: Optional[str] = None

    def to_run_args(self) -> List[str]:
        """Build `docker run` arguments (without the leading `docker run`)."""
        args = [
            "-d",
            "--name",
            self.name,
            "--network",
            self.network,
            "-p",
            f"{self.host_port}:{self.container_port}",
            "--restart",
            self.restart_policy,
        ]
        if self.memory_limit:
            args.extend(["--memory", self.memory_limit])
        if self.cpu_limit:
            args.extend(["--cpus", str(self.cpu_limit)])
        for volume in self.volumes:
            args.extend(["-v", volume])
        for key in sorted(self.labels):
            args.extend(["--label", f"{key}={self.labels[key]}"])
        args.append(self.image)
        return args


@dataclass
class ProvisionedContainer:
    """Container created by the provisioner."""

    name: str
    network: str
    host_port: int
    labels: Dict[str, str] = field(default_factory=dict)
    container_id: Optional[str] = None
    state: ContainerState = ContainerState.ABSENT
    replaced_existing: bool = False

    def mark(self, state: ContainerState) -> None:
        """Move to a new lifecycle state."""
        self.state = state

    @property
    def short_id(self) -> str:
        return (self.container_id or "")[:12]

    def __repr__(self) -> str:
        return f"ProvisionedContainer(name={self.name}, state={self.state.value}, port={self.host_port})"
