# services/provider_client.py

"""
Provider client - the three remote calls against the video generation API
"""

import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional

import httpx

from video_relay.core.config import settings
from video_relay.core.errors import ConfigError, ProviderConnectionError, ProviderError
from video_relay.models.video import VideoParams

logger = logging.getLogger(__name__)


@dataclass
class ProviderContent:
    """Response of the content endpoint.

    For success responses `stream` yields the body lazily and `aclose`
    must run once the caller is done with it. Error responses are fully
    read into `error_body` and need no cleanup.
    """
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    stream: Optional[AsyncIterator[bytes]] = None
    error_body: Optional[str] = None
    aclose: Optional[Callable[[], Awaitable[None]]] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class ProviderClient:
    def __init__(
            self,
            api_key: Optional[str] = None,
            base_url: Optional[str] = None,
            timeout: Optional[float] = None,
            chunk_size: Optional[int] = None,
            http_client: Optional[httpx.AsyncClient] = None
    ):
        self.api_key = api_key
        self.base_url = (base_url or settings.provider_base_url).rstrip("/")
        self.chunk_size = chunk_size or settings.content_chunk_size
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        # Content downloads may run far longer than a status call
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, read=None)
        )

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)

    def _auth_headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ConfigError()
        return {"Authorization": f"Bearer {self.api_key}"}

    async def _request_json(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        headers = self._auth_headers()
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url}")

        try:
            response = await self._client.request(
                method, url, headers=headers, timeout=self.timeout, **kwargs
            )
        except httpx.HTTPError as e:
            raise ProviderConnectionError(f"{type(e).__name__}: {e}") from e

        if response.is_error:
            raise ProviderError(response.status_code, response.text)

        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderConnectionError(f"invalid JSON from provider: {e}") from e
        if not isinstance(payload, dict):
            raise ProviderConnectionError(f"unexpected response shape from provider: {type(payload).__name__}")
        return payload

    async def create(self, params: VideoParams) -> Dict[str, Any]:
        """Submit a generation job"""
        logger.info(f"Creating video: model={params.model}, size={params.size}, seconds={params.seconds}")
        return await self._request_json("POST", "/videos", json=params.to_provider_payload())

    async def fetch_status(self, provider_job_id: str) -> Dict[str, Any]:
        """Fetch the provider's view of a job"""
        return await self._request_json("GET", f"/videos/{provider_job_id}")

    async def fetch_content(
            self,
            provider_job_id: str,
            range_header: Optional[str] = None
    ) -> ProviderContent:
        """Open the asset stream, forwarding an optional byte-range request.

        Non-success responses are returned rather than raised so their
        status and body can be relayed unchanged.
        """
        headers = self._auth_headers()
        headers["Accept-Encoding"] = "identity"
        if range_header:
            headers["Range"] = range_header

        url = f"{self.base_url}/videos/{provider_job_id}/content"
        logger.debug(f"GET {url} range={range_header!r}")

        request = self._client.build_request("GET", url, headers=headers)
        try:
            response = await self._client.send(request, stream=True, follow_redirects=True)
        except httpx.HTTPError as e:
            raise ProviderConnectionError(f"{type(e).__name__}: {e}") from e

        if response.is_error:
            try:
                await response.aread()
            finally:
                await response.aclose()
            logger.warning(f"Content request for {provider_job_id} failed with {response.status_code}")
            return ProviderContent(
                status_code=response.status_code,
                headers=dict(response.headers),
                error_body=response.text
            )

        return ProviderContent(
            status_code=response.status_code,
            headers=dict(response.headers),
            stream=response.aiter_bytes(self.chunk_size),
            aclose=response.aclose
        )

    async def aclose(self):
        await self._client.aclose()
