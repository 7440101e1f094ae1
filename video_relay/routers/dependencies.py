# routers/dependencies.py

"""
Shared router dependencies
"""

from fastapi import HTTPException, Request

from video_relay.services.video_service import VideoService


def get_video_service(request: Request) -> VideoService:
    """The VideoService created in the app lifespan"""
    service = getattr(request.app.state, "video_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Video service not initialized")
    return service
