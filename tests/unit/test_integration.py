"""Unit tests for the integration test runner.

Tests cover:
- All four categories passing against a healthy deployment
- Failures recorded per check without aborting the run
- Exceptions inside a check turned into failed results
- Report aggregation and IntegrationCheckFailure
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
import requests
from conftest import make_inspect
from urllib3.exceptions import LocationParseError

from staticdeploy.core.integration import IntegrationTestRunner, _parse_docker_time
from staticdeploy.exceptions import IntegrationCheckFailure
from staticdeploy.models.results import CheckCategory
from staticdeploy.services.https_service import CertificateInfo, RedirectCheck


def https_checker(days_left=60, redirect_location="https://example.com/", body="<!-- static-web-ok -->"):
    checker = MagicMock()
    checker.check_redirect.return_value = RedirectCheck(status_code=308, location=redirect_location)
    checker.check_certificate.return_value = CertificateInfo(
        hostname="example.com",
        valid=True,
        issuer="R11",
        subject="example.com",
        expires=datetime.now(timezone.utc) + timedelta(days=days_left, hours=1),
    )
    checker.fetch.return_value = MagicMock(status_code=200, text=body)
    return checker


@pytest.fixture
def healthy(docker, config):
    docker.containers[config.container_name] = make_inspect()
    return docker


def check(report, category, name):
    return next(c for c in report.categories[category] if c.name == name)


class TestHealthyDeployment:
    def test_all_categories_pass(self, healthy, config):
        report = IntegrationTestRunner(healthy, config, https_checker()).run()

        assert report.passed, report.failures
        for category in CheckCategory:
            assert report.category_passed(category)
        report.raise_for_failures()

    def test_internal_probe_uses_container_name(self, healthy, config):
        IntegrationTestRunner(healthy, config, https_checker()).run()

        assert "probe:http://static-web-example.com:80/" in healthy.calls

    def test_certificate_days_reported(self, healthy, config):
        report = IntegrationTestRunner(healthy, config, https_checker(days_left=60)).run()

        certificate = check(report, CheckCategory.SSL, "certificate")
        assert "60 day(s) remaining" in certificate.message
        assert certificate.details is None

    def test_certificate_expiring_soon_is_flagged(self, healthy, config):
        report = IntegrationTestRunner(healthy, config, https_checker(days_left=5)).run()

        certificate = check(report, CheckCategory.SSL, "certificate")
        assert certificate.passed
        assert "14 days" in certificate.details

    def test_to_dict(self, healthy, config):
        data = IntegrationTestRunner(healthy, config, https_checker()).run().to_dict()

        assert data["target"] == "static-web-example.com"
        assert set(data["categories"]) == {"container", "network", "ssl", "diagnostics"}


class TestFailures:
    def test_missing_container_does_not_abort(self, docker, config):
        """Every category still runs when the container is gone."""
        report = IntegrationTestRunner(docker, config, https_checker()).run()

        assert not report.passed
        assert "container:exists" in report.failures
        assert "container:running" in report.failures
        assert all(report.categories[c] for c in CheckCategory)

    def test_stopped_container(self, docker, config):
        docker.containers[config.container_name] = make_inspect(running=False)

        report = IntegrationTestRunner(docker, config, https_checker()).run()

        assert "container:running" in report.failures
        assert "container:exists" not in report.failures

    def test_wrong_restart_policy(self, docker, config):
        docker.containers[config.container_name] = make_inspect(restart_policy="no")

        report = IntegrationTestRunner(docker, config, https_checker()).run()

        assert report.failures == ["container:restart_policy"]

    def test_no_edge_proxy(self, healthy, config):
        healthy.network_members = ["static-web-example.com"]

        report = IntegrationTestRunner(healthy, config, https_checker()).run()

        assert "network:edge_proxy" in report.failures

    def test_internal_unreachable(self, healthy, config):
        healthy.probe_status = None

        report = IntegrationTestRunner(healthy, config, https_checker()).run()

        assert report.failures == ["network:internal_reachability"]

    def test_no_https_redirect(self, healthy, config):
        checker = https_checker()
        checker.check_redirect.return_value = RedirectCheck(status_code=200)

        report = IntegrationTestRunner(healthy, config, checker).run()

        assert report.failures == ["ssl:https_redirect"]

    def test_invalid_certificate(self, healthy, config):
        checker = https_checker()
        checker.check_certificate.return_value = CertificateInfo(
            hostname="example.com", valid=False, error="self-signed certificate"
        )

        report = IntegrationTestRunner(healthy, config, checker).run()

        certificate = check(report, CheckCategory.SSL, "certificate")
        assert not certificate.passed
        assert certificate.details == "self-signed certificate"

    def test_https_request_error(self, healthy, config):
        checker = https_checker()
        checker.fetch.side_effect = requests.exceptions.ConnectionError("refused")

        report = IntegrationTestRunner(healthy, config, checker).run()

        assert report.failures == ["ssl:https_content"]

    def test_alarming_log_lines(self, healthy, config):
        healthy.logs = "ok\n2024/01/01 [emerg] 1#1: bind() failed\n"

        report = IntegrationTestRunner(healthy, config, https_checker()).run()

        logs = check(report, CheckCategory.DIAGNOSTICS, "logs")
        assert not logs.passed
        assert "[emerg]" in logs.details

    def test_exception_in_check_becomes_failure(self, healthy, config):
        healthy.server_version = None

        report = IntegrationTestRunner(healthy, config, https_checker()).run()

        runtime = check(report, CheckCategory.DIAGNOSTICS, "runtime_version")
        assert not runtime.passed
        assert runtime.message.startswith("RuntimeUnreachable:")

    def test_unexpected_errors_still_complete_report(self, healthy, config):
        """Errors outside requests' hierarchy fail their check, later checks still run."""
        checker = https_checker()
        checker.check_redirect.side_effect = LocationParseError("label empty or too long")
        checker.check_certificate.side_effect = UnicodeError("label empty or too long")

        report = IntegrationTestRunner(healthy, config, checker).run()

        assert report.failures == ["ssl:https_redirect", "ssl:certificate"]
        redirect = check(report, CheckCategory.SSL, "https_redirect")
        assert redirect.message.startswith("LocationParseError:")
        assert check(report, CheckCategory.DIAGNOSTICS, "uptime").passed

    def test_raise_for_failures(self, docker, config):
        report = IntegrationTestRunner(docker, config, https_checker()).run()

        with pytest.raises(IntegrationCheckFailure) as exc_info:
            report.raise_for_failures()

        assert "container:exists" in exc_info.value.failed_checks


class TestDockerTime:
    def test_nanosecond_timestamp(self):
        parsed = _parse_docker_time("2024-03-05T10:20:30.123456789Z")

        assert parsed == datetime(2024, 3, 5, 10, 20, 30, tzinfo=timezone.utc)

    def test_zero_time(self):
        assert _parse_docker_time("0001-01-01T00:00:00Z") is None
