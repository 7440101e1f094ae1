# routers/video_router.py

"""
Video Job API Routes
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import JSONResponse, StreamingResponse

from video_relay.models.video import VideoCreateRequest
from video_relay.routers.dependencies import get_video_service
from video_relay.services.video_service import VideoService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/videos", tags=["Videos"])


@router.get("")
async def list_videos(
        refresh: bool = Query(False, description="Restart polling for in-flight jobs"),
        service: VideoService = Depends(get_video_service)
):
    """List all jobs, newest first"""
    records = service.refresh() if refresh else service.list()
    logger.info(f"GET /api/videos - {len(records)} job(s), refresh={refresh}")
    return {"videos": [record.to_wire() for record in records]}


@router.post("", status_code=201)
async def create_video(
        request: Optional[VideoCreateRequest] = None,
        service: VideoService = Depends(get_video_service)
):
    """Validate parameters, submit the job to the provider and start polling"""
    request = request or VideoCreateRequest()
    logger.info("POST /api/videos - Received creation request")
    logger.debug(f"Request details: {request.model_dump()}")

    params = request.to_params()
    record = await service.submit(params)

    logger.info(f"Video job created: id={record.id}, status={record.status.value}")
    return {"videoId": record.id, "video": record.to_wire()}


@router.get("/{video_id}/status")
async def get_video_status(video_id: str, service: VideoService = Depends(get_video_service)):
    """Current state of one job"""
    record = service.get_status(video_id)
    return {"video": record.to_wire()}


@router.get("/{video_id}/content")
async def get_video_content(
        video_id: str,
        range_header: Optional[str] = Header(None, alias="Range"),
        service: VideoService = Depends(get_video_service)
):
    """Relay the finished asset, honouring byte-range requests"""
    logger.info(f"GET /api/videos/{video_id}/content - range={range_header!r}")
    relayed = await service.stream_content(video_id, range_header)

    if relayed.body is None:
        return JSONResponse(
            status_code=relayed.status_code,
            content=relayed.json_body or {"message": ""}
        )

    return StreamingResponse(
        relayed.body,
        status_code=relayed.status_code,
        headers=relayed.headers
    )
