# models/__init__.py

from .job import JobRecord, JobState, normalize_progress, normalize_status
from .video import (
    ALLOWED_MODELS,
    ALLOWED_SECONDS,
    VideoCreateRequest,
    VideoParams,
    sanitize_video_params
)

__all__ = [
    'JobRecord',
    'JobState',
    'normalize_progress',
    'normalize_status',
    'ALLOWED_MODELS',
    'ALLOWED_SECONDS',
    'VideoCreateRequest',
    'VideoParams',
    'sanitize_video_params'
]
