"""
Unit tests for the deploy-admin CLI.

Commands that talk to the CI server are pointed at the in-memory fake by
patching the client factory.
"""

import json
import logging
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from deploy_admin.cli import LOG_FORMAT, cli, get_config


@pytest.fixture
def runner():
    return CliRunner()


def parse_json(output):
    """Decode the indented JSON document printed by the run command."""
    return json.loads(output[output.index("{\n"):])


@pytest.fixture
def fake_server(deploy_config, jenkins_client):
    """Route every JenkinsClient the CLI creates to the in-memory CI server."""
    with patch("deploy_admin.cli.get_config", return_value=deploy_config), patch(
        "deploy_admin.cli.JenkinsClient", return_value=jenkins_client
    ):
        yield


class TestRender:
    def test_prints_definition(self, runner):
        result = runner.invoke(
            cli, ["render", "https://github.com/acme/widgets", "--email", "dev@acme.io"]
        )

        assert result.exit_code == 0
        assert result.output.startswith("<?xml")
        assert "<defaultValue>dev@acme.io</defaultValue>" in result.output

    def test_requires_email(self, runner):
        result = runner.invoke(cli, ["render", "https://github.com/acme/widgets"])

        assert result.exit_code != 0
        assert "--email" in result.output

    def test_invalid_repository(self, runner):
        result = runner.invoke(cli, ["render", "not-a-url", "--email", "dev@acme.io"])

        assert result.exit_code == 1
        assert "Invalid repository URL" in result.output


class TestCrumb:
    def test_issued(self, runner, fake_server):
        result = runner.invoke(cli, ["crumb"])

        assert result.exit_code == 0
        assert "Jenkins-Crumb" in result.output

    def test_disabled(self, runner, fake_server, fake_jenkins):
        fake_jenkins.crumb_enabled = False

        result = runner.invoke(cli, ["crumb"])

        assert result.exit_code == 0
        assert "No crumb issued" in result.output


class TestExists:
    def test_missing(self, runner, fake_server):
        result = runner.invoke(cli, ["exists", "widgets"])

        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_present(self, runner, fake_server, fake_jenkins):
        fake_jenkins.add_job("widgets")

        result = runner.invoke(cli, ["exists", "widgets"])

        assert result.exit_code == 0
        assert "✓ Job widgets exists" in result.output


class TestRun:
    def test_runs_workflow(self, runner, fake_server, fake_jenkins):
        result = runner.invoke(
            cli, ["run", "https://github.com/acme/widgets", "--email", "dev@acme.io"]
        )

        assert result.exit_code == 0
        data = parse_json(result.output)
        assert data["success"] is True
        assert data["buildNumber"] == 7
        assert fake_jenkins.created == ["widgets"]

    def test_reports_failure_as_json(self, runner, fake_server, fake_jenkins):
        fake_jenkins.create_status = 500
        fake_jenkins.create_body = "boom"

        result = runner.invoke(
            cli, ["run", "https://github.com/acme/widgets", "--email", "dev@acme.io"]
        )

        assert result.exit_code == 1
        data = parse_json(result.output)
        assert data["success"] is False
        assert "HTTP 500" in data["error"]


class TestGlobalOptions:
    """Test suite for options shared by every admin command."""

    def test_jenkins_url_wins_over_environment(self, monkeypatch):
        monkeypatch.setenv("JENKINS_URL", "http://env.ci:8080")

        assert get_config().jenkins_url == "http://env.ci:8080"
        assert get_config("http://cli.ci:8080/").jenkins_url == "http://cli.ci:8080"

    def test_jenkins_url_reaches_commands(self, runner, deploy_config, jenkins_client):
        with patch("deploy_admin.cli.get_config", return_value=deploy_config) as mock_config, patch(
            "deploy_admin.cli.JenkinsClient", return_value=jenkins_client
        ):
            runner.invoke(cli, ["--jenkins-url", "http://cli.ci:8080", "exists", "widgets"])

        mock_config.assert_called_once_with("http://cli.ci:8080")

    def test_log_level_configures_logging(self, runner):
        with patch("deploy_admin.cli.logging.basicConfig") as mock_basic_config:
            result = runner.invoke(
                cli,
                [
                    "--log-level",
                    "DEBUG",
                    "render",
                    "https://github.com/acme/widgets",
                    "--email",
                    "dev@acme.io",
                ],
            )

        assert result.exit_code == 0
        mock_basic_config.assert_called_once_with(level=logging.DEBUG, format=LOG_FORMAT)

    def test_rejects_unknown_log_level(self, runner):
        result = runner.invoke(cli, ["--log-level", "LOUD", "crumb"])

        assert result.exit_code != 0
