# routers/settings_router.py

"""
Settings API Routes
"""

import logging
from fastapi import APIRouter, Depends

from video_relay.routers.dependencies import get_video_service
from video_relay.services.video_service import VideoService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/settings", tags=["Settings"])


@router.get("")
async def get_settings(service: VideoService = Depends(get_video_service)):
    """Tell the UI whether a provider credential is configured"""
    has_api_key = service.has_credential()
    logger.debug(f"GET /api/settings - hasApiKey={has_api_key}")
    return {"hasApiKey": has_api_key}
