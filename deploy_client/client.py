import logging
from typing import Any

import requests

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "http://localhost:8000"


def _error_message(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return f"{response.status_code} {response.reason}"
    if isinstance(data, dict) and data.get("error"):
        return f"{response.status_code}: {data['error']}"
    return f"{response.status_code} {response.reason}"


def submit_deployment(
    repo_url: str,
    notify_emails: list[str],
    server_url: str = DEFAULT_SERVER_URL,
) -> dict[str, Any]:
    """
    Submit a repository to the deploy server and wait for the build number.

    Args:
        repo_url: Repository URL to analyze
        notify_emails: Addresses that receive the analysis report
        server_url: Base URL of the deploy server

    Returns:
        dict: BuildResult JSON with success, jobName, jobUrl, jobCreated,
            buildNumber, queueLocation and an optional warning

    Raises:
        RuntimeError: If the server rejected the request or could not be reached

    The server resolves the queued build before answering, which can take
    around half a minute, so the timeout is generous.
    """
    logger.debug(f"Submitting {repo_url} to {server_url}")
    try:
        response = requests.post(
            f"{server_url}/api/deploy",
            json={"repoUrl": repo_url, "notifyEmails": notify_emails},
            timeout=120,
        )
    except requests.exceptions.RequestException as e:
        raise RuntimeError(f"Error submitting to deploy server: {e}")

    if not response.ok:
        logger.debug(f"Deploy server answered HTTP {response.status_code}")
        raise RuntimeError(
            f"Error submitting to deploy server: {_error_message(response)}"
        )
    return response.json()


def check_job(job_name: str, server_url: str = DEFAULT_SERVER_URL) -> bool:
    """
    Ask the deploy server whether a job exists on the CI server.

    Raises:
        RuntimeError: If the server rejected the request or could not be reached
    """
    try:
        response = requests.post(
            f"{server_url}/api/check-job",
            json={"jobName": job_name},
            timeout=30,
        )
    except requests.exceptions.RequestException as e:
        raise RuntimeError(f"Error checking job: {e}")

    if not response.ok:
        raise RuntimeError(f"Error checking job: {_error_message(response)}")
    return bool(response.json().get("exists", False))
