"""
staticdeploy Services Layer

Access to the target host: shell/SSH execution, the Docker CLI, HTTP probes.
"""

from .docker_service import DockerService
from .http_probe import HostHttpProbe
from .https_service import HttpsChecker
from .ssh_service import LocalService, SSHService, build_executor

__all__ = [
    "DockerService",
    "HostHttpProbe",
    "HttpsChecker",
    "LocalService",
    "SSHService",
    "build_executor",
]
