# services/poll_scheduler.py

"""
Poll scheduler - advances in-flight jobs by re-checking the provider on a fixed interval
"""

import asyncio
import logging
from typing import Any, Dict

from video_relay.core.errors import TransientPollError, VideoRelayException
from video_relay.models.job import JobState, normalize_progress, normalize_status
from video_relay.services.job_store import JobStore
from video_relay.services.provider_client import ProviderClient

logger = logging.getLogger(__name__)


def changes_from_status(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Translate a provider status response into record field changes"""
    changes: Dict[str, Any] = {}

    status = normalize_status(payload.get("status"))
    if status is not None:
        changes["status"] = status

    progress = normalize_progress(payload.get("progress"))
    if progress is not None:
        changes["progress"] = progress

    seconds = payload.get("seconds", payload.get("duration_seconds"))
    if seconds:
        try:
            changes["seconds"] = int(float(seconds))
        except (TypeError, ValueError, OverflowError):
            logger.debug(f"Ignoring unusable duration {seconds!r}")

    size = payload.get("size") or payload.get("resolution")
    if isinstance(size, str) and size:
        changes["size"] = size

    error = payload.get("error")
    if error:
        changes["status"] = JobState.FAILED
        if isinstance(error, dict) and error.get("message"):
            changes["error_message"] = str(error["message"])
        else:
            changes["error_message"] = str(error)

    return changes


class PollScheduler:
    """Keeps at most one polling task per job id.

    Each task loops: wait one interval, run a tick, stop once the tick says
    the job no longer needs polling. Ticks for one job therefore never
    overlap, and scheduling a job that already has a task is a no-op.
    """

    def __init__(self, store: JobStore, client: ProviderClient, interval_seconds: float = 5.0):
        self._store = store
        self._client = client
        self.interval_seconds = interval_seconds
        self._tasks: Dict[str, asyncio.Task] = {}

    @property
    def pending_count(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    def is_scheduled(self, job_id: str) -> bool:
        task = self._tasks.get(job_id)
        return task is not None and not task.done()

    def schedule(self, job_id: str) -> bool:
        """Arm polling for a job. Returns False if a task is already pending."""
        if self.is_scheduled(job_id):
            return False

        task = asyncio.get_running_loop().create_task(
            self._run(job_id), name=f"poll-{job_id}"
        )
        self._tasks[job_id] = task
        logger.debug(f"Scheduled polling for job {job_id} every {self.interval_seconds}s")
        return True

    def cancel(self, job_id: str) -> bool:
        task = self._tasks.pop(job_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        logger.debug(f"Cancelled polling for job {job_id}")
        return True

    def cancel_all(self) -> int:
        """Cancel every pending task; safe when nothing is scheduled"""
        tasks = list(self._tasks.values())
        self._tasks.clear()

        cancelled = 0
        for task in tasks:
            if not task.done():
                task.cancel()
                cancelled += 1

        if cancelled:
            logger.info(f"Cancelled {cancelled} polling task(s)")
        return cancelled

    async def shutdown(self):
        tasks = list(self._tasks.values())
        self.cancel_all()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(self, job_id: str):
        try:
            while True:
                await asyncio.sleep(self.interval_seconds)
                if not await self.poll_once(job_id):
                    break
        finally:
            if self._tasks.get(job_id) is asyncio.current_task():
                del self._tasks[job_id]

    async def poll_once(self, job_id: str) -> bool:
        """Run one status check. Returns True if the job should be polled again."""
        record = self._store.get(job_id)
        if record is None:
            logger.debug(f"Job {job_id} no longer exists, stopping polling")
            return False
        if not record.is_pollable:
            return False

        try:
            payload = await self._client.fetch_status(record.provider_job_id)
        except VideoRelayException as e:
            error = TransientPollError(job_id, e)
            logger.warning(f"Status check for job {job_id} failed, will retry: {error.message}")
            # The record may have changed or vanished while we were waiting
            updated = self._store.update(job_id, last_error=error.message)
            return updated is not None and updated.is_pollable
        except Exception as e:
            error = TransientPollError(job_id, e)
            logger.error(f"Unexpected error polling job {job_id}: {e}", exc_info=True)
            updated = self._store.update(job_id, last_error=error.message)
            return updated is not None and updated.is_pollable

        if not isinstance(payload, dict):
            updated = self._store.update(job_id, last_error="unexpected status payload from provider")
            return updated is not None and updated.is_pollable

        logger.debug(f"Status for job {job_id}: {payload}")
        try:
            updated = self._store.update(job_id, **changes_from_status(payload))
        except Exception as e:
            error = TransientPollError(job_id, e)
            logger.error(f"Could not apply status for job {job_id}: {e}", exc_info=True)
            updated = self._store.update(job_id, last_error=error.message)
            return updated is not None and updated.is_pollable

        if updated is None:
            return False
        if updated.is_terminal:
            logger.info(f"Job {job_id} finished with status {updated.status.value}, polling stopped")
            return False
        return True
