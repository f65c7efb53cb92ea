"""
Sentiment analysis route.
POST /sentiment classifies complaint text: Bangla goes to the dedicated
space, everything else to the Hugging Face inference router.
"""

import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from zerobin.clients.sentiment import SentimentUpstreamError
from zerobin.core.config import settings
from zerobin.core.dependencies import Sentiment
from zerobin.core.exceptions import ServiceNotConfiguredException, ZeroBinException
from zerobin.schemas.complaint import SentimentRequest, SentimentResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sentiment", tags=["Sentiment"])

limiter = Limiter(key_func=get_remote_address)


@router.post(
    "",
    response_model=SentimentResponse,
    summary="Classify the sentiment of a complaint",
)
@limiter.limit(settings.RATE_LIMIT_SENTIMENT)
async def analyze_sentiment(
    request: Request,
    body: SentimentRequest,
    sentiment: Sentiment,
) -> SentimentResponse | JSONResponse:
    if not body.text.strip():
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Text is required"}
        )

    try:
        return await sentiment.analyze(body.text, body.language)
    except SentimentUpstreamError as exc:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"error": exc.detail, "details": exc.details},
        )
    except ServiceNotConfiguredException as exc:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": exc.detail}
        )
    except ZeroBinException as exc:
        logger.error("Sentiment analysis failed: %s", exc.detail)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Unexpected error", "details": exc.detail},
        )
