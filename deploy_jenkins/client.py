"""
Transport wrapper for the CI server's REST interface.

Every response is returned as a tagged CIResponse (status, content type,
body, headers); each component decides how to interpret the body based on
the declared content type. Network-level failures surface as
CITransportError.
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from deploy_common.config import DeployConfig
from deploy_common.exceptions import CITransportError

from .auth import Authenticator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CIResponse:
    """A CI server response, tagged with its declared content type."""

    status: int
    content_type: str
    body: str
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def is_json(self) -> bool:
        media_type = self.content_type.split(";", 1)[0].strip().lower()
        return media_type == "application/json" or media_type.endswith("+json")

    def json(self) -> Any:
        """
        Decode the body as JSON.

        Raises:
            ValueError: If the response is not declared as JSON or does not parse
        """
        if not self.is_json:
            raise ValueError(f"Response is not JSON (content type: {self.content_type!r})")
        return json.loads(self.body)

    def json_or_none(self) -> Any:
        """Decode the body as JSON, or return None if it is not declared/valid JSON."""
        if not self.is_json:
            return None
        try:
            return json.loads(self.body)
        except ValueError:
            return None

    def header(self, name: str) -> str | None:
        for key, value in self.headers.items():
            if key.lower() == name.lower():
                return value
        return None

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> "CIResponse":
        return cls(
            status=response.status_code,
            content_type=response.headers.get("content-type", ""),
            body=response.text,
            headers=dict(response.headers),
        )


class JenkinsClient:
    """
    Async client for the CI server.

    Attaches the credential header to every request. Redirects are never
    followed; callers inspect redirect responses themselves.
    """

    def __init__(
        self,
        config: DeployConfig,
        authenticator: Authenticator | None = None,
        http: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the client.

        Args:
            config: Process configuration (server URL, timeout)
            authenticator: Credential source (default: built from config)
            http: Pre-built httpx client, e.g. one backed by a mock transport
        """
        self.config = config
        self.authenticator = authenticator or Authenticator.from_config(config)
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            base_url=config.jenkins_url,
            timeout=config.http_timeout,
            follow_redirects=False,
        )

    @property
    def base_url(self) -> str:
        return self.config.jenkins_url

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
        content: str | bytes | None = None,
    ) -> CIResponse:
        """
        Send one request to the CI server.

        Args:
            method: HTTP method
            path: Path relative to the CI server base URL (already URL-encoded)
            params: Query parameters
            headers: Extra headers (crumb, content type)
            content: Request body

        Returns:
            CIResponse for any HTTP status, including redirects and errors

        Raises:
            CITransportError: If the request never produced an HTTP response
        """
        url = f"{self.base_url}{path}"
        request_headers = {"Authorization": self.authenticator.header()}
        if headers:
            request_headers.update(headers)

        try:
            response = await self._http.request(
                method,
                url,
                params=params,
                headers=request_headers,
                content=content,
                follow_redirects=False,
            )
        except httpx.TransportError as e:
            logger.error(f"{method} {path} transport failure: {e!r}")
            raise CITransportError(method, path, repr(e)) from e

        logger.debug(f"{method} {path} -> {response.status_code}")
        return CIResponse.from_httpx(response)

    async def get(self, path: str, **kwargs: Any) -> CIResponse:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> CIResponse:
        return await self.request("POST", path, **kwargs)

    async def close(self) -> None:
        """Close the underlying connection pool if this client created it."""
        if self._owns_http:
            await self._http.aclose()
