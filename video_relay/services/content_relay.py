# services/content_relay.py

"""
Content relay - streams a finished asset from the provider to the caller
"""

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Dict, Mapping, Optional

from starlette.concurrency import iterate_in_threadpool, run_in_threadpool

from video_relay.core.errors import JobNotReadyError
from video_relay.models.job import JobRecord
from video_relay.services.provider_client import ProviderClient

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "video/mp4"
DEFAULT_CHUNK_SIZE = 64 * 1024

# Provider headers echoed to the caller, in response order
PASSTHROUGH_HEADERS = ("Content-Length", "Accept-Ranges", "Content-Range")


async def _maybe_await(value):
    if inspect.isawaitable(value):
        return await value
    return value


async def _close_source(source: Any, close: Optional[Callable] = None):
    if close is not None:
        await _maybe_await(close())
        return
    for name in ("aclose", "close"):
        method = getattr(source, name, None)
        if callable(method):
            await _maybe_await(method())
            return


async def iter_byte_chunks(
        source: Any,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        close: Optional[Callable] = None
) -> AsyncIterator[bytes]:
    """Adapt any byte source to a lazy, finite, single-use async chunk stream.

    Accepts push-style async iterables (e.g. `httpx.Response.aiter_bytes()`),
    pull-style readers exposing `read(n)` (plain or coroutine) and ordinary
    iterables of bytes. Blocking sources are drained in the threadpool.
    The source is closed when iteration finishes, fails or is abandoned.
    """
    try:
        if isinstance(source, (bytes, bytearray, memoryview)):
            if source:
                yield bytes(source)
        elif hasattr(source, "__aiter__"):
            async for chunk in source:
                if chunk:
                    yield bytes(chunk)
        elif callable(getattr(source, "read", None)):
            read_is_async = inspect.iscoroutinefunction(source.read)
            while True:
                if read_is_async:
                    chunk = await source.read(chunk_size)
                else:
                    chunk = await run_in_threadpool(source.read, chunk_size)
                if not chunk:
                    break
                yield bytes(chunk)
        elif hasattr(source, "__iter__"):
            async for chunk in iterate_in_threadpool(iter(source)):
                if chunk:
                    yield bytes(chunk)
        else:
            raise TypeError(f"Cannot stream bytes from {type(source).__name__}")
    finally:
        await _close_source(source, close)


@dataclass
class RelayResponse:
    """HTTP-shaped result handed to the router: either a byte stream or a JSON error body"""
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[AsyncIterator[bytes]] = None
    json_body: Optional[Dict[str, Any]] = None

    @property
    def media_type(self) -> Optional[str]:
        return self.headers.get("Content-Type")


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def passthrough_headers(provider_headers: Mapping[str, str]) -> Dict[str, str]:
    headers = {
        "Content-Type": _header(provider_headers, "Content-Type") or DEFAULT_CONTENT_TYPE
    }
    for name in PASSTHROUGH_HEADERS:
        value = _header(provider_headers, name)
        if value:
            headers[name] = value
    return headers


class ContentRelay:
    def __init__(self, client: ProviderClient, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self._client = client
        self.chunk_size = chunk_size

    async def relay(self, record: JobRecord, range_header: Optional[str] = None) -> RelayResponse:
        """Open the provider stream for a job and shape it for the caller"""
        if not record.provider_job_id:
            raise JobNotReadyError(record.id)

        logger.info(f"Relaying content for job {record.id} (range={range_header or 'full'})")
        content = await self._client.fetch_content(record.provider_job_id, range_header)

        if not content.ok:
            logger.warning(f"Provider refused content for job {record.id}: {content.status_code}")
            return RelayResponse(
                status_code=content.status_code,
                headers={"Content-Type": "application/json; charset=utf-8"},
                json_body={"message": content.error_body or ""}
            )

        return RelayResponse(
            status_code=content.status_code,
            headers=passthrough_headers(content.headers),
            body=iter_byte_chunks(content.stream or b"", self.chunk_size, close=content.aclose)
        )
