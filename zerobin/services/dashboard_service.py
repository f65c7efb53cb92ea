"""
Admin dashboards.
Analytics, heatmap, leaderboard and e-waste informatics are loaded with the
fallback loader: a failing endpoint yields the documented fallback dataset,
flagged stale, plus an error banner instead of an empty view.
"""
from __future__ import annotations

import asyncio
import logging

from zerobin.clients.zerobin_api import ZeroBinClient
from zerobin.schemas.dashboard import Analytics, EWasteAnalytics, HeatmapPoint, LeaderboardEntry
from zerobin.state import fallbacks
from zerobin.state.feedback import FeedbackChannel
from zerobin.state.loader import LoadResult, TaskScope, load_with_fallback

logger = logging.getLogger(__name__)


class AdminDashboard:

    def __init__(
        self,
        client: ZeroBinClient,
        feedback: FeedbackChannel | None = None,
        *,
        heatmap_limit: int = 500,
        leaderboard_limit: int = 10,
    ) -> None:
        self.client = client
        self.feedback = feedback or FeedbackChannel()
        self.heatmap_limit = heatmap_limit
        self.leaderboard_limit = leaderboard_limit
        self.scope = TaskScope()

        self.analytics: LoadResult[Analytics] | None = None
        self.heatmap: LoadResult[list[HeatmapPoint]] | None = None
        self.leaderboard: LoadResult[list[LeaderboardEntry]] | None = None
        self.ewaste: LoadResult[EWasteAnalytics] | None = None

    async def load_analytics(self) -> LoadResult[Analytics]:
        result = await load_with_fallback(
            self.client.get_analytics,
            fallbacks.analytics,
            resource="analytics",
            feedback=self.feedback,
        )
        if not self.scope.closed:
            self.analytics = result
        return result

    async def load_heatmap(self) -> LoadResult[list[HeatmapPoint]]:
        result = await load_with_fallback(
            lambda: self.client.get_heatmap(limit=self.heatmap_limit),
            fallbacks.heatmap,
            resource="heatmap",
            feedback=self.feedback,
        )
        if not self.scope.closed:
            self.heatmap = result
        return result

    async def load_leaderboard(self) -> LoadResult[list[LeaderboardEntry]]:
        result = await load_with_fallback(
            lambda: self.client.get_leaderboard(limit=self.leaderboard_limit),
            fallbacks.leaderboard,
            resource="leaderboard",
            feedback=self.feedback,
        )
        if not self.scope.closed:
            self.leaderboard = result
        return result

    async def load_ewaste(self) -> LoadResult[EWasteAnalytics]:
        result = await load_with_fallback(
            self.client.get_ewaste_analytics,
            fallbacks.ewaste_analytics,
            resource="e-waste analytics",
            feedback=self.feedback,
        )
        if not self.scope.closed:
            self.ewaste = result
        return result

    async def load_overview(self) -> None:
        """Admin home: analytics, heatmap and leaderboard side by side."""
        await asyncio.gather(self.load_analytics(), self.load_heatmap(), self.load_leaderboard())

    def start(self) -> asyncio.Task[None]:
        return self.scope.spawn(self.load_overview())

    @property
    def is_fallback(self) -> bool:
        loaded = (self.analytics, self.heatmap, self.leaderboard, self.ewaste)
        return any(r is not None and r.is_fallback for r in loaded)

    @property
    def banners(self) -> list[str]:
        loaded = (self.analytics, self.heatmap, self.leaderboard, self.ewaste)
        return [r.banner for r in loaded if r is not None and r.banner]

    async def close(self) -> None:
        await self.scope.close()
