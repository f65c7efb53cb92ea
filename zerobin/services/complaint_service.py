"""
Complaint desk: analyse the sentiment of a complaint, derive its severity,
submit it to the external API and reload the list.
"""
from __future__ import annotations

import logging
import re

from zerobin.clients.sentiment import SentimentClient
from zerobin.clients.zerobin_api import ZeroBinClient
from zerobin.core.exceptions import ZeroBinException
from zerobin.schemas.complaint import (
    Complaint,
    ComplaintCreate,
    ComplaintSeverity,
    SentimentResult,
    severity_for_confidence,
)

logger = logging.getLogger(__name__)

BENGALI_SCRIPT = re.compile(r"[\u0980-\u09FF]")


def detect_language(text: str) -> str:
    return "bn" if BENGALI_SCRIPT.search(text) else "en"


class ComplaintDesk:

    def __init__(self, client: ZeroBinClient, sentiment: SentimentClient) -> None:
        self.client = client
        self.sentiment = sentiment
        self.text = ""
        self.language = "en"
        self.result: SentimentResult | None = None
        self.severity: ComplaintSeverity = "low"
        self.complaints: list[Complaint] = []
        self.error: str | None = None
        self.submitted = False
        self.loading = False

    def set_text(self, text: str) -> None:
        self.text = text
        self.language = detect_language(text)

    @property
    def can_submit(self) -> bool:
        return bool(self.text.strip()) and self.result is not None

    async def analyze(self) -> SentimentResult | None:
        self.loading = True
        self.error = None
        try:
            response = await self.sentiment.analyze(self.text, self.language)
        except ZeroBinException as exc:
            self.error = exc.detail or "Sentiment failed"
            return None
        finally:
            self.loading = False

        result = response.result
        self.result = SentimentResult(
            text=result.text or self.text,
            sentiment=result.sentiment or "neutral",
            confidence=result.confidence or 0,
            scores=result.scores,
            raw=result.raw,
        )
        self.severity = severity_for_confidence(self.result.confidence or 0)
        return self.result

    async def submit(self) -> bool:
        if not self.can_submit or self.result is None:
            return False
        payload = ComplaintCreate(
            text=self.result.text,
            language=self.language,
            sentiment=self.result.sentiment or "neutral",
            confidence=self.result.confidence or 0,
            severity=self.severity,
        )
        self.loading = True
        self.error = None
        try:
            await self.client.create_complaint(payload)
        except ZeroBinException as exc:
            self.error = exc.detail
            return False
        finally:
            self.loading = False

        self.submitted = True
        self.text = ""
        self.result = None
        self.severity = "low"
        await self.load()
        return True

    async def load(self) -> list[Complaint]:
        try:
            self.complaints = await self.client.list_complaints()
        except ZeroBinException as exc:
            logger.warning("Failed to load complaints: %s", exc.detail)
        return self.complaints
