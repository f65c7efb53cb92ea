"""
Test configuration and shared fixtures.
Every upstream (ZeroBin API, image host, sentiment services) is simulated
with httpx.MockTransport; the web service runs in-process via ASGITransport.
"""
from __future__ import annotations

import inspect
import json
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from zerobin.clients.image_host import ImageFile, ImageHostClient
from zerobin.clients.sentiment import SentimentClient
from zerobin.clients.zerobin_api import ZeroBinClient
from zerobin.core.config import Settings
from zerobin.core.dependencies import get_settings
from zerobin.core.session import Session
from zerobin.schemas.user import SessionUser
from zerobin.state.feedback import FeedbackChannel

API_BASE = "http://api.test"
IMAGE_HOST = "http://storage.test/v0/b/zerobin-test/o"
HF_URL = "http://hf.test/inference"
BANGLA_URL = "http://bangla.test/predict"

Handler = Callable[[httpx.Request], "httpx.Response | Awaitable[httpx.Response]"]


class Upstream:
    """
    Request router for MockTransport.
    Routes are keyed by (method, path); unmatched requests get a JSON 404.
    Every request is recorded with its body already read.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Handler] = {}
        self.calls: list[httpx.Request] = []

    def on(
        self,
        method: str,
        path: str,
        *,
        status: int = 200,
        json_body: Any = None,
        text: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        def respond(request: httpx.Request) -> httpx.Response:
            if text is not None:
                return httpx.Response(status, text=text, headers=headers)
            return httpx.Response(status, json=json_body, headers=headers)

        self.routes[(method, path)] = respond

    def handle(self, method: str, path: str, handler: Handler) -> None:
        self.routes[(method, path)] = handler

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"detail": "Not Found"})
        result = handler(request)
        if inspect.isawaitable(result):
            result = await result
        return result

    def requests(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.calls if r.method == method and r.url.path == path]

    def last_json(self, method: str, path: str) -> Any:
        return json.loads(self.requests(method, path)[-1].content)


# ── Settings and clients ──────────────────────────────────────────────────────

@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        API_BASE_URL=API_BASE,
        IMAGE_HOST_URL=IMAGE_HOST,
        IMAGE_UPLOAD_PREFIX="waste-reports",
        UPLOAD_CHUNK_SIZE=8,
        HUGGINGFACE_API_KEY="hf-test-key",
        HF_INFERENCE_URL=HF_URL,
        BANGLA_SENTIMENT_URL=BANGLA_URL,
        NOTIFICATION_POLL_SECONDS=0.01,
    )


@pytest.fixture
def upstream() -> Upstream:
    return Upstream()


@pytest_asyncio.fixture
async def http(upstream: Upstream) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream)) as client:
        yield client


@pytest.fixture
def collector_session() -> Session:
    return Session(
        token="collector-token",
        user=SessionUser(
            id="collector-1",
            email="collector@example.com",
            full_name="Collector One",
            user_type="collector",
        ),
    )


@pytest.fixture
def api(http: httpx.AsyncClient, collector_session: Session) -> ZeroBinClient:
    return ZeroBinClient(
        http, base_url=API_BASE, session=collector_session, send_tunnel_header=True
    )


@pytest.fixture
def uploader(http: httpx.AsyncClient, test_settings: Settings) -> ImageHostClient:
    return ImageHostClient(http, test_settings)


@pytest.fixture
def sentiment(http: httpx.AsyncClient, test_settings: Settings) -> SentimentClient:
    return SentimentClient(http, test_settings)


@pytest.fixture
def feedback() -> FeedbackChannel:
    return FeedbackChannel()


@pytest.fixture
def photo() -> ImageFile:
    return ImageFile(filename="trash.jpg", content=b"\xff\xd8" + b"x" * 38, content_type="image/jpeg")


@pytest.fixture
def image_host(upstream: Upstream) -> Upstream:
    """Image host that accepts every upload and answers like Firebase Storage."""

    def store(request: httpx.Request) -> httpx.Response:
        name = request.url.params["name"]
        return httpx.Response(200, json={"name": name, "downloadTokens": "tok-1"})

    upstream.handle("POST", "/v0/b/zerobin-test/o", store)
    return upstream


# ── Web service ───────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def client(
    http: httpx.AsyncClient, test_settings: Settings
) -> AsyncGenerator[AsyncClient, None]:
    """Async test client for the web service, wired to the mocked upstreams."""
    from zerobin.main import app

    app.state.http = http
    app.dependency_overrides[get_settings] = lambda: test_settings

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.http = None
