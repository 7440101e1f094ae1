# services/__init__.py

from .job_store import JobStore
from .provider_client import ProviderClient, ProviderContent
from .poll_scheduler import PollScheduler
from .content_relay import ContentRelay, RelayResponse, iter_byte_chunks
from .video_service import VideoService

__all__ = [
    'JobStore',
    'ProviderClient',
    'ProviderContent',
    'PollScheduler',
    'ContentRelay',
    'RelayResponse',
    'iter_byte_chunks',
    'VideoService'
]
