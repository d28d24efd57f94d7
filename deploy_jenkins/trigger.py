"""
Build triggering.

A parameterized trigger is normally answered with a redirect whose Location
header points at the queue entry created for the build. The redirect is
inspected, never followed.
"""

import logging
import re
from collections.abc import Mapping

from deploy_common.exceptions import CITransportError, TriggerFailed
from deploy_common.models import ImmediateBuild, QueueTicket

from .client import JenkinsClient
from .crumbs import CrumbProvider
from .jobs import job_path

logger = logging.getLogger(__name__)

ACCEPTED_STATUSES = frozenset({200, 201, 302})
QUEUE_LOCATION_PATTERN = re.compile(r"/queue/item/(\d+)")


def parse_queue_id(location: str) -> int | None:
    """Extract the queue id from a queue entry URL, or None if it has another shape."""
    match = QUEUE_LOCATION_PATTERN.search(location)
    if match is None:
        return None
    return int(match.group(1))


class BuildTrigger:
    """Starts builds of a job with runtime parameters."""

    def __init__(self, client: JenkinsClient, crumbs: CrumbProvider):
        self.client = client
        self.crumbs = crumbs

    async def trigger(
        self, job_name: str, runtime_params: Mapping[str, str]
    ) -> QueueTicket | ImmediateBuild:
        """
        Trigger a build.

        Args:
            job_name: Name of the job to build
            runtime_params: Build parameters, sent as the query string

        Returns:
            QueueTicket when the server reported a queue entry to poll;
            ImmediateBuild otherwise (best-effort build number, or the raw
            location when it could not be parsed)

        Raises:
            TriggerFailed: If the server answered outside {200, 201, 302}
                or could not be reached
        """
        headers = {}
        crumb = await self.crumbs.fetch()
        if crumb is not None:
            headers.update(crumb.as_header())

        try:
            response = await self.client.post(
                f"{job_path(job_name)}/buildWithParameters",
                params=dict(runtime_params),
                headers=headers,
            )
        except CITransportError as e:
            raise TriggerFailed(None, e.detail) from e

        if response.status not in ACCEPTED_STATUSES:
            logger.error(f"Triggering job {job_name} failed with HTTP {response.status}")
            raise TriggerFailed(response.status, response.body)

        location = response.header("Location")
        if not location:
            build_number = await self._next_build_number(job_name)
            logger.info(
                f"Job {job_name} accepted trigger without queue location, "
                f"next build number: {build_number}"
            )
            return ImmediateBuild(build_number=build_number)

        queue_id = parse_queue_id(location)
        if queue_id is None:
            logger.warning(
                f"Job {job_name} trigger returned unrecognized location: {location}"
            )
            return ImmediateBuild(build_number=None, queue_location=location)

        logger.info(f"Job {job_name} queued as item {queue_id}")
        return QueueTicket(location_url=location, queue_id=queue_id)

    async def _next_build_number(self, job_name: str) -> int | None:
        try:
            response = await self.client.get(f"{job_path(job_name)}/api/json")
        except CITransportError as e:
            logger.warning(f"Could not read next build number of {job_name}: {e.detail}")
            return None

        if not response.ok:
            return None
        data = response.json_or_none()
        if not isinstance(data, dict):
            return None
        number = data.get("nextBuildNumber")
        return number if isinstance(number, int) and number > 0 else None
