"""
Job registration on the CI server: existence checks and job creation.
"""

import logging
from urllib.parse import quote

from deploy_common.exceptions import CITransportError, ExistenceCheckFailed, JobCreationFailed

from .client import JenkinsClient
from .crumbs import CrumbProvider

logger = logging.getLogger(__name__)

JOB_DEFINITION_CONTENT_TYPE = "application/xml"


def job_path(job_name: str) -> str:
    """URL path of a job, with the name percent-encoded as one segment."""
    return f"/job/{quote(job_name, safe='')}"


class JobExistenceChecker:
    """Determines whether a named job is registered on the CI server."""

    def __init__(self, client: JenkinsClient):
        self.client = client

    async def exists(self, job_name: str) -> bool:
        """
        Check whether a job exists.

        Args:
            job_name: Name of the job

        Returns:
            True for any 2xx answer from the job's metadata endpoint,
            False for any other status (including 404)

        Raises:
            ExistenceCheckFailed: If the CI server could not be reached
        """
        try:
            response = await self.client.get(f"{job_path(job_name)}/api/json")
        except CITransportError as e:
            raise ExistenceCheckFailed(job_name, e.detail) from e

        exists = response.ok
        logger.info(f"Job {job_name} exists: {exists}")
        return exists


class JobCreator:
    """
    Registers new jobs on the CI server.

    Creation is not idempotent: creating a name twice fails the second time
    with a server-reported conflict.
    """

    def __init__(self, client: JenkinsClient, crumbs: CrumbProvider):
        self.client = client
        self.crumbs = crumbs

    async def create(self, job_name: str, definition: str) -> None:
        """
        Submit a new job definition.

        Args:
            job_name: Name to register the job under
            definition: Job definition document

        Raises:
            JobCreationFailed: On any non-2xx response or transport failure
        """
        headers = {"Content-Type": JOB_DEFINITION_CONTENT_TYPE}
        crumb = await self.crumbs.fetch()
        if crumb is not None:
            headers.update(crumb.as_header())

        try:
            response = await self.client.post(
                "/createItem",
                params={"name": job_name},
                headers=headers,
                content=definition.encode("utf-8"),
            )
        except CITransportError as e:
            raise JobCreationFailed(None, e.detail) from e

        if not response.ok:
            logger.error(f"Creating job {job_name} failed with HTTP {response.status}")
            raise JobCreationFailed(response.status, response.body)

        logger.info(f"Created job {job_name}")
