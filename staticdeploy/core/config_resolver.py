"""
Inventory/Config Resolver

Builds one immutable DeploymentConfig from an ordered list of sources.
Sources are merged left to right; later sources override earlier ones:

    defaults → host_vars → environment (group_vars, env file) → vault → extra vars
"""

from abc import ABC, abstractmethod
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

import yaml
from dotenv import dotenv_values

from staticdeploy.constants import (
    ENV_CONFIG_PREFIX,
    ENV_DEPLOY_ENVIRONMENT,
    ENV_LOG_LEVEL,
)
from staticdeploy.exceptions import InvalidConfigValue, MissingRequiredValue
from staticdeploy.models.config import (
    DeploymentConfig,
    derive_container_name,
    is_valid_container_name,
    is_valid_hostname,
)
from staticdeploy.models.secrets import SecretBundle

REQUIRED_FIELDS = ("server_address", "domain")
INT_FIELDS = ("host_port", "alternate_host_port", "container_port")
FLOAT_FIELDS = ("readiness_timeout", "readiness_interval")

# Names used by the vault file and inventory variables
KEY_ALIASES = {
    "vps_server_ip": "server_address",
    "server_ip": "server_address",
    "ansible_host": "server_address",
    "traefik_domain": "domain",
    "containers_deployment_user": "ssh_user",
    "containers_deployment_ssh_key": "ssh_key_path",
    "ansible_user": "ssh_user",
    "ansible_ssh_private_key_file": "ssh_key_path",
    "initial_deployment_user": "initial_user",
    "initial_deployment_ssh_key": "initial_ssh_key_path",
    "traefik_email": "notification_email",
    "acme_email": "notification_email",
    "traefik_network": "network_name",
    "static_web_image": "image",
    "static_web_port": "host_port",
}

CONFIG_FIELDS = frozenset(
    f.name for f in fields(DeploymentConfig) if f.name != "secret_fields"
)


def normalize_key(key: str) -> Optional[str]:
    """
    Map a raw variable name to a DeploymentConfig field.

    Strips the `vault_` / `static_web_` prefixes and applies aliases.
    Returns None for keys that do not configure a field.
    """
    name = str(key).strip().lower()
    for prefix in ("vault_", "static_web_"):
        if name.startswith(prefix) and name not in KEY_ALIASES:
            name = name[len(prefix):]
    name = KEY_ALIASES.get(name, name)
    return name if name in CONFIG_FIELDS else None


def normalize(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Normalize a raw mapping, dropping unknown keys and empty values."""
    result: Dict[str, Any] = {}
    for key, value in raw.items():
        field_name = normalize_key(key)
        if field_name is None or value is None or value == "":
            continue
        result[field_name] = value
    return result


def load_yaml_mapping(path: Path) -> Dict[str, Any]:
    """Load a YAML file that must contain a mapping (missing file → empty)."""
    if not path.is_file():
        return {}
    with open(path, "r") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidConfigValue(
            f"Expected a mapping in {path}", context=f"Got {type(data).__name__}"
        )
    return data


def read_env_file(path: Path) -> Dict[str, str]:
    """Read the plain key/value env file (missing file → empty)."""
    if not path.is_file():
        return {}
    return {k: v for k, v in dotenv_values(path).items() if v is not None}


def inventory_host(inventory_dir: Path) -> Optional[str]:
    """
    First host name declared in inventory/hosts.yml.

    Looks at `all.hosts` and then at each `all.children.<group>.hosts`.
    """
    inventory = load_yaml_mapping(inventory_dir / "hosts.yml")
    root = inventory.get("all", inventory)
    if not isinstance(root, dict):
        return None

    candidates = [root.get("hosts")]
    for group in (root.get("children") or {}).values():
        if isinstance(group, dict):
            candidates.append(group.get("hosts"))

    for hosts in candidates:
        if isinstance(hosts, dict) and hosts:
            return next(iter(hosts))
    return None


class ConfigSource(ABC):
    """A provider contributing a partial configuration mapping."""

    name: str = "source"
    is_secret: bool = False

    @abstractmethod
    def load(self) -> Dict[str, Any]:
        """Return normalized field → value pairs."""


class DefaultsSource(ConfigSource):
    """Built-in defaults are the dataclass defaults; nothing to add."""

    name = "defaults"

    def load(self) -> Dict[str, Any]:
        return {}


class HostVarsSource(ConfigSource):
    """Per-host overrides: the inventory host entry plus host_vars/<host>.yml."""

    name = "host_vars"

    def __init__(self, inventory_dir: Path, host: Optional[str] = None):
        self.inventory_dir = inventory_dir
        self.host = host

    def load(self) -> Dict[str, Any]:
        host = self.host or inventory_host(self.inventory_dir)
        if not host:
            return {}

        merged: Dict[str, Any] = {}
        inventory = load_yaml_mapping(self.inventory_dir / "hosts.yml")
        entry = _find_host_entry(inventory, host)
        if entry:
            merged.update(_plain_values(entry))
        merged.update(load_yaml_mapping(self.inventory_dir / "host_vars" / f"{host}.yml"))
        return normalize(merged)


class EnvironmentSource(ConfigSource):
    """
    Environment-scoped variables.

    group_vars/all.yml, then group_vars/<environment>.yml, then STATIC_WEB_*
    keys of the env file. LOG_LEVEL and DEPLOY_ENV come from the env file.
    """

    name = "environment"

    def __init__(self, inventory_dir: Path, env_values: Mapping[str, str]):
        self.inventory_dir = inventory_dir
        self.env_values = dict(env_values)

    @property
    def environment(self) -> str:
        return self.env_values.get(ENV_DEPLOY_ENVIRONMENT) or "production"

    def load(self) -> Dict[str, Any]:
        group_vars = self.inventory_dir / "group_vars"
        merged: Dict[str, Any] = {}
        merged.update(load_yaml_mapping(group_vars / "all.yml"))
        merged.update(load_yaml_mapping(group_vars / f"{self.environment}.yml"))

        result = normalize(merged)
        result.update(
            normalize(
                {
                    key: value
                    for key, value in self.env_values.items()
                    if key.startswith(ENV_CONFIG_PREFIX)
                }
            )
        )
        result["environment"] = self.environment
        if self.env_values.get(ENV_LOG_LEVEL):
            result["log_level"] = self.env_values[ENV_LOG_LEVEL].upper()
        return result


class SecretSource(ConfigSource):
    """Decrypted vault values (highest precedence among files)."""

    name = "vault"
    is_secret = True

    def __init__(self, bundle: SecretBundle):
        self.bundle = bundle

    def load(self) -> Dict[str, Any]:
        return normalize(self.bundle.values)


class ExtraVarsSource(ConfigSource):
    """KEY=VALUE overrides passed on the command line."""

    name = "extra_vars"

    def __init__(self, pairs: Sequence[str]):
        self.pairs = list(pairs)

    def load(self) -> Dict[str, Any]:
        raw: Dict[str, str] = {}
        for pair in self.pairs:
            key, sep, value = pair.partition("=")
            if not sep or not key.strip():
                raise InvalidConfigValue(
                    f"Invalid extra variable '{pair}'", context="Expected KEY=VALUE"
                )
            if normalize_key(key) is None:
                raise InvalidConfigValue(f"Unknown configuration key '{key.strip()}'")
            raw[key.strip()] = value.strip()
        return normalize(raw)


def _find_host_entry(inventory: Dict[str, Any], host: str) -> Optional[Dict[str, Any]]:
    root = inventory.get("all", inventory)
    if not isinstance(root, dict):
        return None
    groups = [root] + [g for g in (root.get("children") or {}).values() if isinstance(g, dict)]
    for group in groups:
        hosts = group.get("hosts") or {}
        if isinstance(hosts, dict) and isinstance(hosts.get(host), dict):
            return hosts[host]
    return None


def _plain_values(mapping: Dict[str, Any]) -> Dict[str, Any]:
    """Drop Jinja expressions (`{{ vault_x }}`); the vault source supplies those."""
    return {
        k: v
        for k, v in mapping.items()
        if not (isinstance(v, str) and "{{" in v)
    }


def _coerce(values: Dict[str, Any]) -> Dict[str, Any]:
    coerced = dict(values)
    for name in INT_FIELDS:
        if name in coerced:
            try:
                coerced[name] = int(coerced[name])
            except (TypeError, ValueError):
                raise InvalidConfigValue(
                    f"'{name}' must be an integer", context=f"Got {coerced[name]!r}"
                ) from None
    for name in FLOAT_FIELDS:
        if name in coerced:
            try:
                coerced[name] = float(coerced[name])
            except (TypeError, ValueError):
                raise InvalidConfigValue(
                    f"'{name}' must be a number", context=f"Got {coerced[name]!r}"
                ) from None
            if coerced[name] <= 0:
                raise InvalidConfigValue(f"'{name}' must be positive")
    for name, value in coerced.items():
        if name not in INT_FIELDS and name not in FLOAT_FIELDS and not isinstance(value, str):
            coerced[name] = str(value)
    return coerced


class ConfigResolver:
    """Merges ordered config sources into a DeploymentConfig."""

    def __init__(self, sources: List[ConfigSource]):
        self.sources = list(sources)

    def merge(self) -> Tuple[Dict[str, Any], FrozenSet[str]]:
        """
        Merge all sources left to right.

        Returns:
            (merged values, names of fields whose final value came from a secret source)
        """
        merged: Dict[str, Any] = {}
        secret_fields = set()
        for source in self.sources:
            for key, value in source.load().items():
                merged[key] = value
                if source.is_secret:
                    secret_fields.add(key)
                else:
                    secret_fields.discard(key)
        return merged, frozenset(secret_fields)

    def resolve(self) -> DeploymentConfig:
        """
        Build the DeploymentConfig.

        Raises:
            MissingRequiredValue: server_address or domain unset
            InvalidConfigValue: malformed values or container name
        """
        merged, secret_fields = self.merge()

        missing = [name for name in REQUIRED_FIELDS if not str(merged.get(name, "")).strip()]
        if missing:
            raise MissingRequiredValue(missing)

        values = _coerce(merged)
        values["domain"] = values["domain"].strip().lower()
        values["server_address"] = values["server_address"].strip()

        if not is_valid_hostname(values["domain"]):
            raise InvalidConfigValue(
                "Domain is not a valid hostname",
                context="Labels must be 1-63 letters, digits or hyphens, separated by dots",
            )

        container_name = derive_container_name(values["domain"])
        if not is_valid_container_name(container_name):
            raise InvalidConfigValue(
                "Domain does not produce a valid container name",
                context=f"Derived name: {container_name}",
            )

        return DeploymentConfig(secret_fields=secret_fields, **values)


def default_sources(
    inventory_dir: Path,
    env_values: Mapping[str, str],
    bundle: SecretBundle,
    extra_vars: Sequence[str] = (),
) -> List[ConfigSource]:
    """Standard source order for a project."""
    return [
        DefaultsSource(),
        HostVarsSource(inventory_dir),
        EnvironmentSource(inventory_dir, env_values),
        SecretSource(bundle),
        ExtraVarsSource(extra_vars),
    ]
