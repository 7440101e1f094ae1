# services/video_service.py

"""
Video service - the job lifecycle tracker exposed to the routers
"""

import logging
from typing import Any, Dict, List, Optional

from video_relay.core.config import Settings, settings as default_settings
from video_relay.core.errors import JobNotFoundError
from video_relay.models.job import JobRecord, JobState, normalize_progress, normalize_status
from video_relay.models.video import VideoParams
from video_relay.services.content_relay import ContentRelay, RelayResponse
from video_relay.services.job_store import JobStore
from video_relay.services.poll_scheduler import PollScheduler
from video_relay.services.provider_client import ProviderClient

logger = logging.getLogger(__name__)


def _provider_job_id(response: Dict[str, Any]) -> Optional[str]:
    for key in ("id", "video_id", "videoId"):
        value = response.get(key)
        if value:
            return str(value)
    return None


class VideoService:
    """Owns the job store, the poll scheduler and the provider client.

    One instance is created per process in the app lifespan; tests build
    fresh instances with a fake transport.
    """

    def __init__(
            self,
            client: Optional[ProviderClient] = None,
            store: Optional[JobStore] = None,
            poll_interval_seconds: Optional[float] = None,
            config: Optional[Settings] = None
    ):
        config = config or default_settings
        self.client = client or ProviderClient(
            api_key=config.openai_api_key,
            base_url=config.provider_base_url,
            timeout=config.request_timeout_seconds,
            chunk_size=config.content_chunk_size
        )
        self.store = store or JobStore()
        if poll_interval_seconds is None:
            poll_interval_seconds = config.poll_interval_seconds
        self.scheduler = PollScheduler(self.store, self.client, poll_interval_seconds)
        self.relay = ContentRelay(self.client, chunk_size=self.client.chunk_size)

    def has_credential(self) -> bool:
        return self.client.has_credential

    async def submit(self, params: VideoParams) -> JobRecord:
        """Create the job at the provider, store it and start polling.

        ConfigError and ProviderError propagate to the caller; nothing is
        stored for a rejected submission.
        """
        logger.info(f"Submitting video job: model={params.model}, size={params.size}, seconds={params.seconds}")
        response = await self.client.create(params)

        progress = normalize_progress(response.get("progress"))
        metadata = response.get("metadata")
        record = JobRecord(
            provider_job_id=_provider_job_id(response),
            status=normalize_status(response.get("status")) or JobState.QUEUED,
            progress=progress if progress is not None else 0.0,
            prompt=params.prompt,
            model=params.model,
            size=params.size,
            seconds=params.seconds,
            aspect_ratio=params.aspect_ratio,
            seed=params.seed,
            metadata=metadata if isinstance(metadata, dict) else {}
        )
        self.store.put(record)

        if record.is_pollable:
            self.scheduler.schedule(record.id)
        elif not record.provider_job_id:
            logger.warning(f"Provider returned no job id for {record.id}; it will not be polled")

        logger.info(f"Created job {record.id} (provider id={record.provider_job_id}, status={record.status.value})")
        return record

    def get_status(self, job_id: str) -> JobRecord:
        record = self.store.get(job_id)
        if record is None:
            raise JobNotFoundError(job_id)
        return record

    def list(self) -> List[JobRecord]:
        return self.store.list()

    def refresh(self) -> List[JobRecord]:
        """Restart polling from a clean slate and return the full list.

        Every pending task is cancelled before any new one is armed, so a
        job never ends up with two pollers.
        """
        self.scheduler.cancel_all()
        records = self.store.list()
        armed = sum(1 for record in records if record.is_pollable and self.scheduler.schedule(record.id))
        logger.info(f"Refreshed job list: {len(records)} job(s), {armed} being polled")
        return records

    async def stream_content(self, job_id: str, range_header: Optional[str] = None) -> RelayResponse:
        record = self.get_status(job_id)
        return await self.relay.relay(record, range_header)

    async def shutdown(self):
        await self.scheduler.shutdown()
        await self.client.aclose()
        logger.info("VideoService shut down")
