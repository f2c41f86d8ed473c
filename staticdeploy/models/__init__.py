"""
staticdeploy Domain Models

Dataclass-based models for configuration, secrets, containers and results.
"""

from .config import DeploymentConfig, ProjectPaths
from .container import ContainerSpec, ContainerState, ProvisionedContainer
from .results import (
    CheckCategory,
    CheckResult,
    IntegrationReport,
    ProbeResponse,
    SSHResult,
    ValidationResult,
)
from .secrets import SecretBundle
from .ssh import SSHConfig, SSHConnection

__all__ = [
    # Config
    "DeploymentConfig",
    "ProjectPaths",
    # Secrets
    "SecretBundle",
    # Containers
    "ContainerSpec",
    "ContainerState",
    "ProvisionedContainer",
    # Results
    "CheckCategory",
    "CheckResult",
    "IntegrationReport",
    "ProbeResponse",
    "SSHResult",
    "ValidationResult",
    # SSH
    "SSHConfig",
    "SSHConnection",
]
