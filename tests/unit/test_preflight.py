"""Unit tests for the preflight checker."""

import pytest
from conftest import FakeDocker

from staticdeploy.core.preflight import PreflightChecker
from staticdeploy.exceptions import NetworkNotFound, RuntimeUnreachable


class TestPreflight:
    def test_all_checks_pass(self, docker, config):
        report = PreflightChecker(docker, config).run()

        assert report.runtime_version == "24.0.7"
        assert report.network_name == "traefik-network"
        assert docker.directories == [
            "/opt/static-web/example.com",
            "/opt/static-web/example.com/html",
        ]

    def test_runtime_unreachable_stops_before_network(self, config):
        docker = FakeDocker(version=None)

        with pytest.raises(RuntimeUnreachable):
            PreflightChecker(docker, config).run()

        assert "list_networks" not in docker.calls

    def test_missing_network(self, config):
        """Without the shared network nothing is created on the target."""
        docker = FakeDocker(networks=("bridge", "host"))

        with pytest.raises(NetworkNotFound) as exc_info:
            PreflightChecker(docker, config).run()

        assert exc_info.value.network_name == "traefik-network"
        assert "bridge" in exc_info.value.context
        assert docker.directories == []

    def test_check_mode_creates_nothing(self, docker, config):
        report = PreflightChecker(docker, config).run(create_directories=False)

        assert docker.directories == []
        assert report.directories == ["/opt/static-web/example.com", "/opt/static-web/example.com/html"]
