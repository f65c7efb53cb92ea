"""
Sentiment analysis client.
Bangla text goes to a dedicated Hugging Face Space; everything else goes to the
Hugging Face inference router using a three-class Twitter RoBERTa model.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

from zerobin.core.config import Settings, settings
from zerobin.core.exceptions import (
    NetworkError,
    ServiceNotConfiguredException,
    ZeroBinException,
)
from zerobin.schemas.complaint import SentimentLabel, SentimentResponse, SentimentResult

logger = logging.getLogger(__name__)

# Order in which the cardiffnlp model reports its classes
LABELS: tuple[SentimentLabel, ...] = ("negative", "neutral", "positive")


class SentimentUpstreamError(ZeroBinException):
    def __init__(self, source: str, details: str) -> None:
        super().__init__(
            status_code=502,
            detail=f"{source} API error",
            error_code="SENTIMENT_UPSTREAM_ERROR",
            details=details,
        )


def label_for_scores(scores: list[float]) -> SentimentLabel:
    return LABELS[scores.index(max(scores))]


def normalise_hf_output(data: Any) -> tuple[SentimentLabel | None, list[float] | None]:
    """
    Accept either ``[[{label, score}, ...]]`` or a bare ``[neg, neu, pos]``
    score list and return the winning label plus the ordered scores.
    """
    if isinstance(data, list) and data and isinstance(data[0], list):
        by_label: dict[str, float] = {}
        for item in data[0]:
            if isinstance(item, dict) and isinstance(item.get("label"), str) and isinstance(item.get("score"), (int, float)):
                by_label[item["label"].lower()] = float(item["score"])
        scores = [by_label.get(label, 0.0) for label in LABELS]
        return label_for_scores(scores), scores
    if isinstance(data, list) and len(data) == 3 and all(isinstance(x, (int, float)) for x in data):
        scores = [float(x) for x in data]
        return label_for_scores(scores), scores
    return None, None


class SentimentClient:
    def __init__(self, http: httpx.AsyncClient, config: Settings = settings) -> None:
        self._http = http
        self.config = config

    async def analyze(self, text: str, language: str = "") -> SentimentResponse:
        if language == "bn":
            return await self._analyze_bangla(text)
        return await self._analyze_huggingface(text)

    async def _post(self, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._http.post(url, **kwargs)
        except httpx.TransportError as exc:
            logger.error("Sentiment request to %s failed: %r", url, exc)
            raise NetworkError(str(exc) or "Sentiment service unreachable") from exc

    async def _analyze_bangla(self, text: str) -> SentimentResponse:
        response = await self._post(
            self.config.BANGLA_SENTIMENT_URL,
            json={"text": text},
            headers={"accept": "application/json"},
        )
        if not response.is_success:
            logger.warning("Bangla sentiment API returned %s", response.status_code)
            raise SentimentUpstreamError("Bangla", response.text)
        data = response.json()
        return SentimentResponse(
            source="bangla",
            result=SentimentResult(
                text=data.get("text", text),
                sentiment=data.get("sentiment"),
                confidence=data.get("confidence"),
                raw=data,
            ),
        )

    async def _analyze_huggingface(self, text: str) -> SentimentResponse:
        if not self.config.HUGGINGFACE_API_KEY:
            raise ServiceNotConfiguredException("Hugging Face API key not configured")

        response = await self._post(
            self.config.HF_INFERENCE_URL,
            json={"model": self.config.HF_SENTIMENT_MODEL, "inputs": text},
            headers={"Authorization": f"Bearer {self.config.HUGGINGFACE_API_KEY}"},
        )
        if not response.is_success:
            logger.warning("Hugging Face inference returned %s", response.status_code)
            raise SentimentUpstreamError("HF", response.text)

        data = response.json()
        label, scores = normalise_hf_output(data)
        return SentimentResponse(
            source="huggingface",
            result=SentimentResult(
                text=text,
                sentiment=label,
                confidence=max(scores) if scores else None,
                scores=scores,
                raw=data,
            ),
        )
