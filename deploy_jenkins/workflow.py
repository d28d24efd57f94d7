"""
Deploy workflow orchestration.

Sequences the existence check, optional job creation, build trigger and
queue resolution for one submitted repository, tracking the workflow state:

    idle -> checking -> [creating] -> triggering -> [resolving] -> succeeded
    (any step failure ends the run in failed)

A DeployWorkflow instance serves exactly one run; concurrent submissions use
separate instances and share nothing mutable.
"""

import asyncio
import logging

from deploy_common.config import DeployConfig
from deploy_common.exceptions import WorkflowCancelled
from deploy_common.models import (
    RESOLUTION_TIMEOUT_WARNING,
    BuildResult,
    JobParameters,
    QueueTicket,
    WorkflowState,
)

from .client import JenkinsClient
from .crumbs import CrumbProvider
from .definition import JobDefinitionBuilder
from .jobs import JobCreator, JobExistenceChecker
from .queue import QueueResolver
from .trigger import BuildTrigger

logger = logging.getLogger(__name__)


class DeployWorkflow:
    """
    Runs the check / create / trigger / resolve sequence against a CI server.

    Partial progress is never rolled back: a job created before a failed
    trigger stays registered, and a retried run finds it through the
    existence check.
    """

    def __init__(
        self,
        config: DeployConfig,
        client: JenkinsClient,
        definition_builder: JobDefinitionBuilder | None = None,
    ):
        """
        Initialize the workflow.

        Args:
            config: Process configuration (polling bounds, public URL)
            client: CI server client shared by all steps
            definition_builder: Job definition renderer (default: package template)
        """
        self.config = config
        crumbs = CrumbProvider(client)
        self.checker = JobExistenceChecker(client)
        self.builder = definition_builder or JobDefinitionBuilder()
        self.creator = JobCreator(client, crumbs)
        self.trigger = BuildTrigger(client, crumbs)
        self.resolver = QueueResolver(
            client, interval=config.poll_interval, attempts=config.poll_attempts
        )

        self.state = WorkflowState.IDLE
        self.history: list[WorkflowState] = [WorkflowState.IDLE]

    def _transition(self, state: WorkflowState) -> None:
        logger.debug(f"Workflow state: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    async def run(
        self, params: JobParameters, cancel_event: asyncio.Event | None = None
    ) -> BuildResult:
        """
        Run the workflow for one repository.

        Args:
            params: Repository URL and notification addresses
            cancel_event: Optional event that aborts the run at the next step
                boundary or during queue polling

        Returns:
            BuildResult with success=True; build_number is None when the
            build was accepted but its number could not be observed

        Raises:
            ExistenceCheckFailed: If the CI server could not be reached for the check
            JobCreationFailed: If the job was absent and could not be created
            TriggerFailed: If the build could not be triggered
            WorkflowCancelled: If cancel_event was set before completion
            RuntimeError: If this instance already ran
        """
        if self.state != WorkflowState.IDLE:
            raise RuntimeError("DeployWorkflow instances run only once")

        try:
            return await self._run(params, cancel_event)
        except asyncio.CancelledError:
            self._transition(WorkflowState.FAILED)
            logger.warning(f"Deploy workflow for {params.job_name} was interrupted")
            raise
        except Exception as e:
            self._transition(WorkflowState.FAILED)
            logger.error(f"Deploy workflow for {params.job_name} failed: {e}")
            raise

    async def _run(
        self, params: JobParameters, cancel_event: asyncio.Event | None
    ) -> BuildResult:
        job_name = params.job_name
        result = BuildResult(
            success=True, job_name=job_name, job_url=self.config.job_url(job_name)
        )

        _check_cancelled(cancel_event)
        self._transition(WorkflowState.CHECKING)
        exists = await self.checker.exists(job_name)

        if not exists:
            _check_cancelled(cancel_event)
            self._transition(WorkflowState.CREATING)
            definition = self.builder.render(params)
            await self.creator.create(job_name, definition)
            result.job_created = True

        _check_cancelled(cancel_event)
        self._transition(WorkflowState.TRIGGERING)
        outcome = await self.trigger.trigger(job_name, params.runtime_params())

        if isinstance(outcome, QueueTicket):
            self._transition(WorkflowState.RESOLVING)
            result.queue_location = outcome.location_url
            result.build_number = await self.resolver.resolve(
                outcome.queue_id, cancel_event
            )
            if result.build_number is None:
                result.warning = RESOLUTION_TIMEOUT_WARNING
        else:
            result.build_number = outcome.build_number
            result.queue_location = outcome.queue_location

        self._transition(WorkflowState.SUCCEEDED)
        logger.info(
            f"Deploy workflow for {job_name} succeeded "
            f"(created={result.job_created}, build={result.build_number})"
        )
        return result


def _check_cancelled(cancel_event: asyncio.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise WorkflowCancelled("Deploy workflow cancelled")


async def run_workflow(
    config: DeployConfig,
    client: JenkinsClient,
    params: JobParameters,
    cancel_event: asyncio.Event | None = None,
) -> BuildResult:
    """Run a fresh DeployWorkflow for params."""
    return await DeployWorkflow(config, client).run(params, cancel_event)
