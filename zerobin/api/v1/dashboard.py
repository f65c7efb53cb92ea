"""
Dashboard view routes.
Each section is loaded with the fallback loader and tagged ``is_fallback``
so clients can show an unavailable state next to substituted numbers.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from zerobin.core.dependencies import ApiClient
from zerobin.schemas.dashboard import (
    AdminOverview,
    Analytics,
    DashboardSection,
    EWasteAnalytics,
    HeatmapPoint,
    LeaderboardEntry,
)
from zerobin.services.dashboard_service import AdminDashboard
from zerobin.state.loader import LoadResult

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def _section(result: LoadResult[Any]) -> dict[str, Any]:
    return {"data": result.data, "is_fallback": result.is_fallback, "error": result.banner}


@router.get(
    "/overview",
    response_model=AdminOverview,
    summary="Admin analytics, heatmap and leaderboard",
)
async def admin_overview(client: ApiClient) -> AdminOverview:
    dashboard = AdminDashboard(client)
    await dashboard.load_overview()
    return AdminOverview(
        analytics=_section(dashboard.analytics),
        heatmap=_section(dashboard.heatmap),
        leaderboard=_section(dashboard.leaderboard),
    )


@router.get(
    "/analytics",
    response_model=DashboardSection[Analytics],
    summary="Platform analytics",
)
async def analytics(client: ApiClient) -> DashboardSection[Analytics]:
    result = await AdminDashboard(client).load_analytics()
    return DashboardSection[Analytics](**_section(result))


@router.get(
    "/heatmap",
    response_model=DashboardSection[list[HeatmapPoint]],
    summary="Waste report heatmap points",
)
async def heatmap(client: ApiClient) -> DashboardSection[list[HeatmapPoint]]:
    result = await AdminDashboard(client).load_heatmap()
    return DashboardSection[list[HeatmapPoint]](**_section(result))


@router.get(
    "/leaderboard",
    response_model=DashboardSection[list[LeaderboardEntry]],
    summary="Top collectors",
)
async def leaderboard(client: ApiClient) -> DashboardSection[list[LeaderboardEntry]]:
    result = await AdminDashboard(client).load_leaderboard()
    return DashboardSection[list[LeaderboardEntry]](**_section(result))


@router.get(
    "/informatics",
    response_model=DashboardSection[EWasteAnalytics],
    summary="E-waste marketplace informatics",
)
async def informatics(client: ApiClient) -> DashboardSection[EWasteAnalytics]:
    result = await AdminDashboard(client).load_ewaste()
    return DashboardSection[EWasteAnalytics](**_section(result))
