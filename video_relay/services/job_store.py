# services/job_store.py

"""
Job store - in-memory source of truth for generation job records
"""

import logging
from typing import Any, Dict, List, Optional

from video_relay.models.job import JobRecord, JobState, utcnow

logger = logging.getLogger(__name__)

# Fields fixed at creation; updates touching them are ignored
IMMUTABLE_FIELDS = {"id", "prompt", "model", "aspect_ratio", "seed", "created_at", "metadata"}


class JobStore:
    """Maps job id to its current record.

    Records are immutable snapshots: every write replaces the stored
    record with an updated copy, so a reference held across an await
    never changes under the holder. All access happens on the event loop,
    which is why there is no lock.
    """

    def __init__(self):
        self._jobs: Dict[str, JobRecord] = {}

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        return job_id in self._jobs

    def put(self, record: JobRecord) -> JobRecord:
        self._jobs[record.id] = record
        logger.debug(f"Stored job {record.id} (status={record.status.value})")
        return record

    def get(self, job_id: str) -> Optional[JobRecord]:
        return self._jobs.get(job_id)

    def list(self) -> List[JobRecord]:
        """All records, newest first"""
        # Reversed insertion order keeps ties on created_at newest-first too
        return sorted(
            reversed(list(self._jobs.values())),
            key=lambda record: record.created_at,
            reverse=True
        )

    def remove(self, job_id: str) -> Optional[JobRecord]:
        return self._jobs.pop(job_id, None)

    def update(self, job_id: str, **changes: Any) -> Optional[JobRecord]:
        """Apply field changes to a record and stamp updated_at.

        Returns None when the job is unknown. Terminal records are frozen
        and come back unchanged. A status that would move the job back
        toward queued is dropped, and a provider id, once set, is kept.
        """
        record = self._jobs.get(job_id)
        if record is None:
            return None

        if record.is_terminal:
            logger.debug(f"Ignoring update for terminal job {job_id}: {sorted(changes)}")
            return record

        for name in IMMUTABLE_FIELDS & changes.keys():
            logger.warning(f"Refusing to change immutable field '{name}' of job {job_id}")
            changes.pop(name)

        if record.provider_job_id and "provider_job_id" in changes:
            changes.pop("provider_job_id")

        status = changes.get("status")
        if status is not None:
            status = JobState(status)
            if status.rank < record.status.rank:
                logger.debug(f"Ignoring status regression {record.status.value} -> {status.value} for job {job_id}")
                changes.pop("status")
            else:
                changes["status"] = status

        changes["updated_at"] = utcnow()
        updated = record.model_copy(update=changes)
        self._jobs[job_id] = updated

        if updated.status != record.status:
            logger.info(f"Job {job_id}: {record.status.value} -> {updated.status.value}")
        return updated
