"""
Unit tests for deploy_client.client module.

Tests the HTTP client functions with requests mocked out.
"""

from unittest.mock import Mock, patch

import pytest
import requests

from deploy_client.client import check_job, submit_deployment


def make_response(status_code=200, json_data=None, reason="OK"):
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.reason = reason
    if json_data is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = json_data
    return response


class TestSubmitDeployment:
    """Test suite for submit_deployment function."""

    @patch("deploy_client.client.requests.post")
    def test_successful_submission(self, mock_post):
        result = {"success": True, "jobName": "widgets", "buildNumber": 7}
        mock_post.return_value = make_response(json_data=result)

        data = submit_deployment(
            "https://github.com/acme/widgets", ["dev@acme.io"], "http://test-server:8000"
        )

        assert data == result
        args, kwargs = mock_post.call_args
        assert args[0] == "http://test-server:8000/api/deploy"
        assert kwargs["json"] == {
            "repoUrl": "https://github.com/acme/widgets",
            "notifyEmails": ["dev@acme.io"],
        }

    @patch("deploy_client.client.requests.post")
    def test_network_error_raises_exception(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError("Connection failed")

        with pytest.raises(RuntimeError, match="Error submitting to deploy server"):
            submit_deployment("https://github.com/acme/widgets", ["dev@acme.io"])

    @patch("deploy_client.client.requests.post")
    def test_server_error_message_is_surfaced(self, mock_post):
        mock_post.return_value = make_response(
            502,
            {"success": False, "error": "Job creation failed: HTTP 500: boom"},
            reason="Bad Gateway",
        )

        with pytest.raises(RuntimeError, match="502: Job creation failed: HTTP 500: boom"):
            submit_deployment("https://github.com/acme/widgets", ["dev@acme.io"])

    @patch("deploy_client.client.requests.post")
    def test_non_json_error(self, mock_post):
        mock_post.return_value = make_response(503, None, reason="Service Unavailable")

        with pytest.raises(RuntimeError, match="503 Service Unavailable"):
            submit_deployment("https://github.com/acme/widgets", ["dev@acme.io"])


class TestCheckJob:
    """Test suite for check_job function."""

    @patch("deploy_client.client.requests.post")
    def test_exists(self, mock_post):
        mock_post.return_value = make_response(json_data={"exists": True})

        assert check_job("widgets", "http://test-server:8000") is True
        args, kwargs = mock_post.call_args
        assert args[0] == "http://test-server:8000/api/check-job"
        assert kwargs["json"] == {"jobName": "widgets"}

    @patch("deploy_client.client.requests.post")
    def test_network_error(self, mock_post):
        mock_post.side_effect = requests.exceptions.Timeout("timed out")

        with pytest.raises(RuntimeError, match="Error checking job"):
            check_job("widgets")
