"""
Anti-forgery crumb lookup.

CI servers with CSRF protection enabled require a crumb header on every
mutating request. Servers with the feature disabled answer the crumb
endpoint with 404. Neither a missing crumb nor a failed lookup aborts the
workflow: the mutating call that needed it reports the real failure.
"""

import logging

from deploy_common.exceptions import CITransportError
from deploy_common.models import Crumb

from .client import JenkinsClient

logger = logging.getLogger(__name__)

CRUMB_PATH = "/crumbIssuer/api/json"


class CrumbProvider:
    """Fetches a fresh crumb for each mutating request."""

    def __init__(self, client: JenkinsClient):
        self.client = client

    async def fetch(self) -> Crumb | None:
        """
        Fetch a crumb from the CI server.

        Returns:
            Crumb if the server issued one, None if crumb issuing is disabled
            or the lookup failed for any reason
        """
        try:
            response = await self.client.get(CRUMB_PATH)
        except CITransportError as e:
            logger.warning(f"Crumb unavailable, continuing without one: {e.detail}")
            return None

        if response.status == 404:
            logger.debug("Crumb issuing disabled on CI server")
            return None

        if not response.ok:
            logger.warning(
                f"Crumb unavailable, continuing without one: HTTP {response.status}"
            )
            return None

        data = response.json_or_none()
        if not isinstance(data, dict):
            logger.warning(
                "Crumb unavailable, continuing without one: response is not a JSON object"
            )
            return None

        field_name = data.get("crumbRequestField")
        value = data.get("crumb")
        if not field_name or not value:
            logger.warning(
                "Crumb unavailable, continuing without one: response lacks crumb fields"
            )
            return None

        return Crumb(field_name=str(field_name), value=str(value))
