"""
Deployment Configuration Models

Immutable configuration assembled once per run by the config resolver.
"""

import re
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional

from staticdeploy.constants import (
    CONTAINER_NAME_PATTERN,
    CONTAINER_NAME_PREFIX,
    DEFAULT_CONTAINER_PORT,
    DEFAULT_CPU_LIMIT,
    DEFAULT_DEPLOY_ROOT,
    DEFAULT_EXPECTED_MARKER,
    DEFAULT_HOST_PORT,
    DEFAULT_IMAGE,
    DEFAULT_MEMORY_LIMIT,
    DEFAULT_NETWORK,
    DEFAULT_SSH_KEY_PATH,
    DEFAULT_SSH_USER,
    ENV_FILE,
    GLOBAL_LOG_SCOPE,
    HOSTNAME_LABEL_PATTERN,
    HOSTNAME_MAX_LENGTH,
    INVENTORY_DIR,
    LOCAL_HOSTS,
    LOGS_DIR,
    READINESS_INTERVAL,
    READINESS_TIMEOUT,
    SECRETS_DIR,
    TEMPLATES_DIR,
    TRAEFIK_CERT_RESOLVER,
    TRAEFIK_SECURE_ENTRYPOINT,
    VAULT_EXAMPLE_FILE,
    VAULT_FILE,
    VAULT_PASS_FILE,
)

MASK = "********"

# Vault-sourced fields scrubbed from run logs (ssh_user usually equals "docker")
REDACTED_FIELDS = (
    "server_address",
    "domain",
    "notification_email",
    "ssh_key_path",
    "initial_user",
    "initial_ssh_key_path",
)


def derive_container_name(domain: str) -> str:
    """Container name used for a domain (e.g. static-web-example.com)."""
    return f"{CONTAINER_NAME_PREFIX}{domain}"


def is_valid_container_name(name: str) -> bool:
    """Check a name against the Docker container naming rule."""
    return bool(re.match(CONTAINER_NAME_PATTERN, name))


def is_valid_hostname(name: str) -> bool:
    """DNS hostname check: dot-separated labels of 1-63 letters, digits or hyphens."""
    if not name or len(name) > HOSTNAME_MAX_LENGTH:
        return False
    return all(re.match(HOSTNAME_LABEL_PATTERN, label) for label in name.split("."))


@dataclass(frozen=True)
class DeploymentConfig:
    """Resolved configuration for one deployment run."""

    server_address: str
    domain: str
    ssh_user: str = DEFAULT_SSH_USER
    ssh_key_path: str = DEFAULT_SSH_KEY_PATH
    initial_user: Optional[str] = None
    initial_ssh_key_path: Optional[str] = None
    notification_email: Optional[str] = None
    network_name: str = DEFAULT_NETWORK
    image: str = DEFAULT_IMAGE
    host_port: int = DEFAULT_HOST_PORT
    alternate_host_port: Optional[int] = None
    container_port: int = DEFAULT_CONTAINER_PORT
    memory_limit: str = DEFAULT_MEMORY_LIMIT
    cpu_limit: str = DEFAULT_CPU_LIMIT
    deploy_root: str = DEFAULT_DEPLOY_ROOT
    entrypoint: str = TRAEFIK_SECURE_ENTRYPOINT
    cert_resolver: str = TRAEFIK_CERT_RESOLVER
    expected_marker: str = DEFAULT_EXPECTED_MARKER
    site_title: Optional[str] = None
    readiness_timeout: float = READINESS_TIMEOUT
    readiness_interval: float = READINESS_INTERVAL
    environment: str = "production"
    log_level: str = "INFO"
    secret_fields: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def container_name(self) -> str:
        """Derived container name (fixed prefix + domain)."""
        return derive_container_name(self.domain)

    @property
    def router_name(self) -> str:
        """Traefik router/service name (dots are not allowed in label keys)."""
        return re.sub(r"[^a-zA-Z0-9-]", "-", self.container_name)

    @property
    def deploy_dir(self) -> str:
        """Directory on the target holding rendered files."""
        return f"{self.deploy_root.rstrip('/')}/{self.domain}"

    @property
    def html_dir(self) -> str:
        return f"{self.deploy_dir}/html"

    @property
    def is_local(self) -> bool:
        """True when the container runtime runs on this machine."""
        return self.server_address in LOCAL_HOSTS

    @property
    def log_scope(self) -> str:
        """Log folder name: the domain, unless the domain came from the vault."""
        return GLOBAL_LOG_SCOPE if "domain" in self.secret_fields else self.domain

    def secret_values(self) -> List[str]:
        """Vault-sourced values that must never reach a log file."""
        return [
            str(getattr(self, name))
            for name in REDACTED_FIELDS
            if name in self.secret_fields and getattr(self, name)
        ]

    def display(self, name: str) -> str:
        """Value of a field (or derived property) for console output, masked if vault-sourced."""
        return str(self.to_dict(mask_secrets=True).get(name, getattr(self, name)))

    def to_dict(self, mask_secrets: bool = True) -> Dict[str, Any]:
        """
        Convert to a plain dictionary for display.

        Args:
            mask_secrets: Replace values that came from the vault with a mask

        Returns:
            Dictionary including derived fields
        """
        data = asdict(self)
        data.pop("secret_fields")
        if mask_secrets:
            for key in self.secret_fields:
                if data.get(key) is not None:
                    data[key] = MASK
        data["container_name"] = (
            MASK
            if mask_secrets and "domain" in self.secret_fields
            else self.container_name
        )
        return data

    def __repr__(self) -> str:
        return (
            f"DeploymentConfig(container={self.container_name}, "
            f"network={self.network_name}, environment={self.environment})"
        )


@dataclass(frozen=True)
class ProjectPaths:
    """File layout of a deployment project directory."""

    root: Path

    @property
    def env_file(self) -> Path:
        return self.root / ENV_FILE

    @property
    def vault_file(self) -> Path:
        return self.root / VAULT_FILE

    @property
    def vault_example_file(self) -> Path:
        return self.root / VAULT_EXAMPLE_FILE

    @property
    def vault_pass_file(self) -> Path:
        return self.root / VAULT_PASS_FILE

    @property
    def secrets_dir(self) -> Path:
        return self.root / SECRETS_DIR

    @property
    def inventory_dir(self) -> Path:
        return self.root / INVENTORY_DIR

    @property
    def logs_dir(self) -> Path:
        return self.root / LOGS_DIR

    @property
    def templates_dir(self) -> Path:
        """Optional project-level template overrides."""
        return self.root / TEMPLATES_DIR
