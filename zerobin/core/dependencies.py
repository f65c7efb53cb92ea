"""
FastAPI dependency injection functions.
Provides the settings, the caller's session and the upstream clients built
over the application's shared httpx client.
"""
from __future__ import annotations

from typing import Annotated

import httpx
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from zerobin.clients.sentiment import SentimentClient
from zerobin.clients.zerobin_api import ZeroBinClient
from zerobin.core.config import Settings, settings
from zerobin.core.session import ANONYMOUS, Session

__all__ = [
    "get_settings",
    "get_session",
    "get_http_client",
    "get_api_client",
    "get_sentiment_client",
    "AppSettings",
    "CurrentSession",
    "HttpClient",
    "ApiClient",
    "Sentiment",
]

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings() -> Settings:
    return settings


async def get_session(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ] = None,
) -> Session:
    """
    Build the caller's session from the bearer token, if any.
    The token is passed through to the external API, which validates it.
    """
    if credentials is None:
        return ANONYMOUS
    return Session(token=credentials.credentials)


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http


def get_api_client(
    http: Annotated[httpx.AsyncClient, Depends(get_http_client)],
    session: Annotated[Session, Depends(get_session)],
    config: Annotated[Settings, Depends(get_settings)],
) -> ZeroBinClient:
    return ZeroBinClient(
        http,
        base_url=config.API_BASE_URL,
        session=session,
        send_tunnel_header=config.SEND_TUNNEL_HEADER,
    )


def get_sentiment_client(
    http: Annotated[httpx.AsyncClient, Depends(get_http_client)],
    config: Annotated[Settings, Depends(get_settings)],
) -> SentimentClient:
    return SentimentClient(http, config)


# Convenience type aliases for route signatures
AppSettings = Annotated[Settings, Depends(get_settings)]
CurrentSession = Annotated[Session, Depends(get_session)]
HttpClient = Annotated[httpx.AsyncClient, Depends(get_http_client)]
ApiClient = Annotated[ZeroBinClient, Depends(get_api_client)]
Sentiment = Annotated[SentimentClient, Depends(get_sentiment_client)]
