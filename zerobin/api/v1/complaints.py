"""
Complaint proxy routes.
GET/POST /complaints forward to the external API unchanged; upstream errors
are wrapped as ``{"error": "Upstream error", "details": ...}`` with the
upstream status, transport failures as ``{"error": "Proxy error"}``.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from zerobin.core.dependencies import AppSettings, HttpClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/complaints", tags=["Complaints"])


def _body_of(response: httpx.Response) -> Any:
    if "application/json" in response.headers.get("content-type", ""):
        try:
            return response.json()
        except ValueError:
            pass
    return response.text


async def _forward(
    http: httpx.AsyncClient,
    config: AppSettings,
    method: str,
    payload: Any = None,
) -> JSONResponse:
    if not config.API_BASE_URL:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "NEXT_PUBLIC_API_BASE_URL not set"},
        )

    headers = {"accept": "application/json"}
    if config.SEND_TUNNEL_HEADER:
        headers["ngrok-skip-browser-warning"] = "true"
    try:
        response = await http.request(
            method, f"{config.API_BASE_URL}/complaints", json=payload, headers=headers
        )
    except httpx.HTTPError as exc:
        logger.error("Complaints proxy %s failed: %r", method, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Proxy error", "details": str(exc)},
        )

    body = _body_of(response)
    if not response.is_success:
        logger.warning("Complaints upstream returned %s", response.status_code)
        return JSONResponse(
            status_code=response.status_code,
            content={"error": "Upstream error", "details": body},
        )
    return JSONResponse(content=body)


@router.get("", summary="List complaints")
async def list_complaints(http: HttpClient, config: AppSettings) -> JSONResponse:
    return await _forward(http, config, "GET")


@router.post("", summary="Submit a complaint")
async def create_complaint(
    request: Request, http: HttpClient, config: AppSettings
) -> JSONResponse:
    try:
        payload = await request.json()
    except ValueError as exc:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Proxy error", "details": str(exc)},
        )
    return await _forward(http, config, "POST", payload)
