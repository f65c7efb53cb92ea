"""
Image host and sentiment client tests.
"""
from __future__ import annotations

import httpx
import pytest

from zerobin.clients.image_host import ImageFile, ImageHostClient
from zerobin.clients.sentiment import SentimentClient, SentimentUpstreamError, normalise_hf_output
from zerobin.core.exceptions import NetworkError, UploadError

from conftest import IMAGE_HOST, Upstream

pytestmark = pytest.mark.asyncio


class TestImageHost:
    async def test_upload_reports_progress(
        self, uploader: ImageHostClient, image_host: Upstream, photo: ImageFile
    ) -> None:
        seen: list[int] = []

        url = await uploader.upload(photo, seen.append)

        assert seen == [20, 40, 60, 80, 100]
        request = image_host.requests("POST", "/v0/b/zerobin-test/o")[0]
        name = request.url.params["name"]
        assert name.startswith("waste-reports/") and name.endswith("_trash.jpg")
        assert request.content == photo.content
        assert request.headers["Content-Type"] == "image/jpeg"
        assert url.startswith(f"{IMAGE_HOST}/waste-reports%2F")
        assert url.endswith("?alt=media&token=tok-1")

    async def test_download_url_preferred(
        self, uploader: ImageHostClient, upstream: Upstream, photo: ImageFile
    ) -> None:
        upstream.on(
            "POST", "/v0/b/zerobin-test/o", json_body={"downloadUrl": "https://cdn.test/trash.jpg"}
        )
        assert await uploader.upload(photo) == "https://cdn.test/trash.jpg"

    async def test_host_error(self, uploader: ImageHostClient, upstream: Upstream, photo: ImageFile) -> None:
        upstream.on("POST", "/v0/b/zerobin-test/o", status=403, text="forbidden")
        with pytest.raises(UploadError) as exc_info:
            await uploader.upload(photo)
        assert exc_info.value.status_code == 403

    async def test_empty_file(self, uploader: ImageHostClient, upstream: Upstream) -> None:
        with pytest.raises(UploadError):
            await uploader.upload(ImageFile(filename="empty.jpg", content=b""))
        assert upstream.calls == []


class TestSentimentClient:
    async def test_bare_score_list(self) -> None:
        label, scores = normalise_hf_output([0.1, 0.2, 0.7])
        assert label == "positive"
        assert scores == [0.1, 0.2, 0.7]

    async def test_labelled_output_any_order(self) -> None:
        label, scores = normalise_hf_output(
            [[{"label": "Positive", "score": 0.1}, {"label": "NEUTRAL", "score": 0.6}, {"label": "negative", "score": 0.3}]]
        )
        assert label == "neutral"
        assert scores == [0.3, 0.6, 0.1]

    async def test_unknown_shape(self) -> None:
        assert normalise_hf_output({"error": "loading"}) == (None, None)

    async def test_unknown_shape_response(self, sentiment: SentimentClient, upstream: Upstream) -> None:
        upstream.on("POST", "/inference", json_body={"error": "loading"})
        response = await sentiment.analyze("hello")
        assert response.result.sentiment is None
        assert response.result.confidence is None

    async def test_bangla_error(self, sentiment: SentimentClient, upstream: Upstream) -> None:
        upstream.on("POST", "/predict", status=500, text="space sleeping")
        with pytest.raises(SentimentUpstreamError) as exc_info:
            await sentiment.analyze("ময়লা", "bn")
        assert exc_info.value.detail == "Bangla API error"
        assert exc_info.value.details == "space sleeping"

    async def test_network_error(self, sentiment: SentimentClient, upstream: Upstream) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        upstream.handle("POST", "/inference", refuse)
        with pytest.raises(NetworkError):
            await sentiment.analyze("hello")
