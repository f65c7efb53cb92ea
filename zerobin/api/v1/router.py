"""
Aggregates all v1 API routers into a single APIRouter.
"""
from __future__ import annotations

from fastapi import APIRouter

from zerobin.api.v1 import complaints, dashboard, sentiment

api_router = APIRouter()

api_router.include_router(complaints.router)
api_router.include_router(sentiment.router)
api_router.include_router(dashboard.router)
