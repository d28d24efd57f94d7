"""
Credential header for requests to the CI server.

The CI server authenticates API calls with HTTP Basic credentials made of a
user name and an API token.
"""

import base64

from deploy_common.config import DeployConfig


class Authenticator:
    """Produces the Authorization header value attached to every CI request."""

    def __init__(self, user: str, api_token: str):
        """
        Args:
            user: CI server user name
            api_token: API token issued to that user
        """
        credentials = f"{user}:{api_token}".encode()
        self._header = f"Basic {base64.b64encode(credentials).decode('ascii')}"

    @classmethod
    def from_config(cls, config: DeployConfig) -> "Authenticator":
        return cls(config.jenkins_user, config.jenkins_api_token)

    def header(self) -> str:
        """
        Return the credential header value.

        Example:
            >>> Authenticator("deployer", "s3cret").header()
            'Basic ZGVwbG95ZXI6czNjcmV0'
        """
        return self._header

    def __repr__(self) -> str:
        return "Authenticator(<redacted>)"
