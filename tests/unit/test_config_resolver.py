"""Unit tests for the inventory/config resolver.

Tests cover:
- Container name derivation from the domain
- Source precedence (defaults < host vars < environment < vault < extra vars)
- Tracking of vault-sourced fields for masking
- Missing and malformed values
- Deterministic resolution
"""

import pytest
import yaml
from conftest import write_project

from staticdeploy.core.config_resolver import (
    ConfigResolver,
    DefaultsSource,
    EnvironmentSource,
    ExtraVarsSource,
    HostVarsSource,
    SecretSource,
    default_sources,
    inventory_host,
    normalize_key,
    read_env_file,
)
from staticdeploy.core.secret_gate import SecretGate
from staticdeploy.exceptions import InvalidConfigValue, MissingRequiredValue
from staticdeploy.models.config import MASK
from staticdeploy.models.secrets import SecretBundle


def resolve(paths, extra_vars=()):
    bundle = SecretGate(paths).open()
    sources = default_sources(paths.inventory_dir, read_env_file(paths.env_file), bundle, extra_vars)
    return ConfigResolver(sources).resolve()


def bundle_of(values, tmp_path):
    return SecretBundle(tmp_path / "vault.yml", tmp_path / ".vault_pass", values)


class TestKeyNormalization:
    def test_vault_prefix_and_alias(self):
        assert normalize_key("vault_vps_server_ip") == "server_address"
        assert normalize_key("vault_traefik_domain") == "domain"

    def test_env_prefix(self):
        assert normalize_key("STATIC_WEB_HOST_PORT") == "host_port"
        assert normalize_key("static_web_port") == "host_port"

    def test_unknown_key(self):
        assert normalize_key("vault_database_password") is None


class TestResolution:
    def test_container_name_derived_from_domain(self, project):
        """The vault domain yields the prefixed container name."""
        config = resolve(project)

        assert config.domain == "example.com"
        assert config.container_name == "static-web-example.com"
        assert config.server_address == "203.0.113.10"
        assert config.ssh_user == "docker"
        assert config.network_name == "traefik-network"

    def test_domain_is_lowercased(self, tmp_path):
        paths = write_project(
            tmp_path, vault_values={"vault_vps_server_ip": "10.0.0.1", "vault_traefik_domain": "Example.COM"}
        )

        assert resolve(paths).container_name == "static-web-example.com"

    def test_deterministic(self, project):
        assert resolve(project) == resolve(project)

    def test_missing_required_values(self, tmp_path):
        paths = write_project(tmp_path, vault_values={"vault_vps_server_ip": "10.0.0.1"})

        with pytest.raises(MissingRequiredValue) as exc_info:
            resolve(paths)

        assert exc_info.value.fields == ["domain"]

    def test_invalid_domain_for_container_name(self, tmp_path):
        paths = write_project(
            tmp_path, vault_values={"vault_vps_server_ip": "10.0.0.1", "vault_traefik_domain": "bad domain!"}
        )

        with pytest.raises(InvalidConfigValue):
            resolve(paths)

    @pytest.mark.parametrize(
        "domain",
        ["a" * 64 + ".com", "under_score.example.com", "example..com", "-lead.example.com"],
    )
    def test_domain_must_be_a_hostname(self, project, domain):
        """Names docker accepts but DNS does not are refused before any request."""
        with pytest.raises(InvalidConfigValue, match="hostname"):
            resolve(project, extra_vars=[f"domain={domain}"])

    def test_longest_label_accepted(self, project):
        domain = "a" * 63 + ".com"

        assert resolve(project, extra_vars=[f"domain={domain}"]).domain == domain

    def test_non_integer_port(self, project):
        with pytest.raises(InvalidConfigValue, match="host_port"):
            resolve(project, extra_vars=["host_port=eighty"])

    def test_non_positive_timeout(self, project):
        with pytest.raises(InvalidConfigValue, match="readiness_timeout"):
            resolve(project, extra_vars=["readiness_timeout=0"])


class TestPrecedence:
    def test_environment_overrides_group_vars(self, tmp_path):
        paths = write_project(tmp_path, env_lines=["STATIC_WEB_HOST_PORT=8082"])
        group_vars = paths.inventory_dir / "group_vars"
        group_vars.mkdir()
        (group_vars / "all.yml").write_text(yaml.safe_dump({"static_web_port": 8081, "image": "nginx:1.25"}))

        config = resolve(paths)

        assert config.host_port == 8082
        assert config.image == "nginx:1.25"

    def test_environment_specific_group_vars(self, tmp_path):
        paths = write_project(tmp_path, env_lines=["DEPLOY_ENV=staging"])
        group_vars = paths.inventory_dir / "group_vars"
        group_vars.mkdir()
        (group_vars / "all.yml").write_text(yaml.safe_dump({"memory_limit": "128m"}))
        (group_vars / "staging.yml").write_text(yaml.safe_dump({"memory_limit": "64m"}))

        config = resolve(paths)

        assert config.environment == "staging"
        assert config.memory_limit == "64m"

    def test_host_vars_below_environment(self, tmp_path):
        paths = write_project(tmp_path, env_lines=["STATIC_WEB_CPU_LIMIT=1.0"])
        host_vars = paths.inventory_dir / "host_vars"
        host_vars.mkdir()
        (host_vars / "web.yml").write_text(yaml.safe_dump({"cpu_limit": "0.25", "container_port": 8080}))

        config = resolve(paths)

        assert config.cpu_limit == "1.0"
        assert config.container_port == 8080

    def test_vault_overrides_environment(self, tmp_path):
        paths = write_project(tmp_path, env_lines=["STATIC_WEB_DOMAIN=from-env.org"])

        assert resolve(paths).domain == "example.com"

    def test_extra_vars_override_vault(self, project):
        config = resolve(project, extra_vars=["domain=override.net", "host_port=9090"])

        assert config.domain == "override.net"
        assert config.host_port == 9090
        assert "domain" not in config.secret_fields

    def test_hosts_entry_templates_are_ignored(self, project):
        """`{{ vault_* }}` references in hosts.yml never shadow vault values."""
        assert HostVarsSource(project.inventory_dir).load() == {}
        assert inventory_host(project.inventory_dir) == "web"

    def test_log_level_from_env_file(self, tmp_path):
        paths = write_project(tmp_path, env_lines=["LOG_LEVEL=debug"])

        assert resolve(paths).log_level == "DEBUG"


class TestSources:
    def test_merge_tracks_secret_fields(self, tmp_path):
        resolver = ConfigResolver(
            [
                DefaultsSource(),
                EnvironmentSource(tmp_path, {"STATIC_WEB_SERVER_ADDRESS": "10.0.0.9"}),
                SecretSource(bundle_of({"vault_traefik_domain": "example.com"}, tmp_path)),
            ]
        )

        merged, secret_fields = resolver.merge()

        assert merged["server_address"] == "10.0.0.9"
        assert secret_fields == frozenset({"domain"})

    def test_extra_var_without_equals(self):
        with pytest.raises(InvalidConfigValue, match="KEY=VALUE"):
            ExtraVarsSource(["domain"]).load()

    def test_extra_var_unknown_key(self):
        with pytest.raises(InvalidConfigValue, match="Unknown configuration key"):
            ExtraVarsSource(["colour=blue"]).load()

    def test_malformed_yaml_mapping(self, project):
        group_vars = project.inventory_dir / "group_vars"
        group_vars.mkdir()
        (group_vars / "all.yml").write_text("- not\n- a mapping\n")

        with pytest.raises(InvalidConfigValue, match="Expected a mapping"):
            resolve(project)

    def test_masked_display(self, project):
        config = resolve(project)
        data = config.to_dict(mask_secrets=True)

        assert data["server_address"] == MASK
        assert data["domain"] == MASK
        assert data["image"] == "nginx:alpine"
        assert "203.0.113.10" not in repr(config)
