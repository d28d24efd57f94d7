"""
Process-wide configuration for the deployer.

A DeployConfig is built once at process entry and handed to every component
that needs it; business logic never reads the environment directly.

Environment variables:
    JENKINS_URL: Base URL of the CI server (default: http://localhost:8080)
    JENKINS_USER: User name attached to every CI server request
    JENKINS_API_TOKEN: API token attached to every CI server request
    JENKINS_PUBLIC_URL: Browser-facing CI server URL for job links (default: JENKINS_URL)
    DEPLOY_POLL_INTERVAL: Seconds between queue polls (default: 1.0)
    DEPLOY_POLL_ATTEMPTS: Maximum queue polls before giving up (default: 30)
    DEPLOY_HTTP_TIMEOUT: Per-request timeout in seconds (default: 30.0)
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import quote

logger = logging.getLogger(__name__)

DEFAULT_JENKINS_URL = "http://localhost:8080"
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_POLL_ATTEMPTS = 30
DEFAULT_HTTP_TIMEOUT = 30.0


def _positive_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw}, using default {default}")
        return default
    if value <= 0:
        logger.warning(f"Invalid {name}={value}, using default {default}")
        return default
    return value


def _positive_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw}, using default {default}")
        return default
    if value <= 0:
        logger.warning(f"Invalid {name}={value}, using default {default}")
        return default
    return value


@dataclass(frozen=True)
class DeployConfig:
    """Connection and polling settings for one deployer process."""

    jenkins_url: str = DEFAULT_JENKINS_URL
    jenkins_user: str = ""
    jenkins_api_token: str = ""
    public_url: str | None = None
    poll_interval: float = DEFAULT_POLL_INTERVAL
    poll_attempts: int = DEFAULT_POLL_ATTEMPTS
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    def __post_init__(self) -> None:
        object.__setattr__(self, "jenkins_url", self.jenkins_url.rstrip("/"))
        if self.public_url:
            object.__setattr__(self, "public_url", self.public_url.rstrip("/"))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "DeployConfig":
        """
        Build the configuration from environment variables.

        Args:
            environ: Mapping to read instead of os.environ (useful for testing)

        Returns:
            DeployConfig with defaults for anything unset or invalid
        """
        if environ is None:
            environ = os.environ

        return cls(
            jenkins_url=environ.get("JENKINS_URL") or DEFAULT_JENKINS_URL,
            jenkins_user=environ.get("JENKINS_USER", ""),
            jenkins_api_token=environ.get("JENKINS_API_TOKEN", ""),
            public_url=environ.get("JENKINS_PUBLIC_URL") or None,
            poll_interval=_positive_float(
                environ, "DEPLOY_POLL_INTERVAL", DEFAULT_POLL_INTERVAL
            ),
            poll_attempts=_positive_int(
                environ, "DEPLOY_POLL_ATTEMPTS", DEFAULT_POLL_ATTEMPTS
            ),
            http_timeout=_positive_float(
                environ, "DEPLOY_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT
            ),
        )

    def job_url(self, job_name: str) -> str:
        """Browser-facing URL of a job on the CI server."""
        base = self.public_url or self.jenkins_url
        return f"{base}/job/{quote(job_name, safe='')}/"
