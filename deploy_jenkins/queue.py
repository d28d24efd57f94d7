"""
Queue entry resolution.

The CI server assigns queued builds to executors asynchronously and offers no
push notification, so the resolver polls the queue entry at a fixed interval
for a bounded number of attempts.
"""

import asyncio
import logging

from deploy_common.exceptions import CITransportError, WorkflowCancelled

from .client import JenkinsClient

logger = logging.getLogger(__name__)


class QueueResolver:
    """Polls a queue entry until it resolves to a build number."""

    def __init__(self, client: JenkinsClient, interval: float = 1.0, attempts: int = 30):
        """
        Args:
            client: CI server client
            interval: Seconds to wait between polls
            attempts: Maximum number of polls
        """
        self.client = client
        self.interval = interval
        self.attempts = attempts

    async def resolve(
        self, queue_id: int, cancel_event: asyncio.Event | None = None
    ) -> int | None:
        """
        Wait for a queue entry to be scheduled.

        The first poll reporting ``executable.number`` wins. A failed poll
        (transport error, non-2xx, unparsed body) counts as an attempt.

        Args:
            queue_id: Queue entry id from the trigger's Location header
            cancel_event: Optional event that aborts the wait when set

        Returns:
            Build number, or None once all attempts are exhausted

        Raises:
            WorkflowCancelled: If cancel_event is set while waiting
        """
        path = f"/queue/item/{queue_id}/api/json"

        for attempt in range(1, self.attempts + 1):
            if cancel_event is not None and cancel_event.is_set():
                raise WorkflowCancelled(f"Cancelled while waiting for queue item {queue_id}")

            build_number = await self._poll(path)
            if build_number is not None:
                logger.info(
                    f"Queue item {queue_id} resolved to build {build_number} "
                    f"after {attempt} attempt(s)"
                )
                return build_number

            if attempt < self.attempts:
                await self._pause(queue_id, cancel_event)

        logger.warning(
            f"Queue item {queue_id} not scheduled after {self.attempts} attempts"
        )
        return None

    async def _poll(self, path: str) -> int | None:
        try:
            response = await self.client.get(path)
        except CITransportError as e:
            logger.warning(f"Queue poll failed: {e.detail}")
            return None

        if not response.ok:
            logger.debug(f"Queue poll returned HTTP {response.status}")
            return None

        data = response.json_or_none()
        if not isinstance(data, dict):
            return None
        executable = data.get("executable")
        if not isinstance(executable, dict):
            return None
        number = executable.get("number")
        return number if isinstance(number, int) else None

    async def _pause(self, queue_id: int, cancel_event: asyncio.Event | None) -> None:
        if cancel_event is None:
            await asyncio.sleep(self.interval)
            return

        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=self.interval)
        except asyncio.TimeoutError:
            return
        raise WorkflowCancelled(f"Cancelled while waiting for queue item {queue_id}")
