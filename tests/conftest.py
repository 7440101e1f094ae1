import json
from typing import Any, Dict, List, Optional, Tuple, Union

import httpx
import pytest

from video_relay.services.provider_client import ProviderClient
from video_relay.services.video_service import VideoService

BASE_URL = "https://provider.test/v1"

StatusReply = Union[Tuple[int, Any], Exception]


class FakeProvider:
    """in-memory stand-in for the video generation API, served through httpx.MockTransport"""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.create_reply: Tuple[int, Any] = (200, {"id": "video_abc", "status": "queued", "progress": 0})
        self.status_replies: List[StatusReply] = [(200, {"id": "video_abc", "status": "queued", "progress": 0})]
        self.content_status = 200
        self.content_headers: Dict[str, str] = {"content-type": "video/mp4"}
        self.content_body = b"\x00\x00\x00\x18ftypmp42" * 64

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path.endswith("/videos"):
            status, payload = self.create_reply
            return httpx.Response(status, json=payload)

        if path.endswith("/content"):
            return httpx.Response(
                self.content_status,
                headers=self.content_headers,
                content=self.content_body
            )

        # status call; the last reply repeats forever
        reply = self.status_replies[0] if len(self.status_replies) == 1 else self.status_replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        status, payload = reply
        if isinstance(payload, str):
            return httpx.Response(status, text=payload)
        return httpx.Response(status, json=payload)

    def calls(self, suffix: str = "", method: Optional[str] = None) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if r.url.path.endswith(suffix) and (method is None or r.method == method)
        ]

    def status_calls(self) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == "GET" and not r.url.path.endswith("/content")
        ]

    def created_payload(self) -> Dict[str, Any]:
        return json.loads(self.calls("/videos", "POST")[-1].content)


def build_client(provider: FakeProvider, api_key: Optional[str] = "sk-test") -> ProviderClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(provider.handler))
    return ProviderClient(api_key=api_key, base_url=BASE_URL, chunk_size=128, http_client=http_client)


def build_service(
        provider: FakeProvider,
        api_key: Optional[str] = "sk-test",
        interval: float = 0.01
) -> VideoService:
    return VideoService(client=build_client(provider, api_key), poll_interval_seconds=interval)


@pytest.fixture(name="provider")
def provider_fixture():
    return FakeProvider()
