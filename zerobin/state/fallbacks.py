"""
Fallback datasets shown when a dashboard fetch fails.
Each factory returns a fresh copy so views may mutate what they receive.
Anything built here is rendered together with an "unavailable" banner and
``is_fallback=True``; it is never mistaken for live numbers.
"""
from __future__ import annotations

from datetime import datetime, timezone

from zerobin.schemas.dashboard import (
    Analytics,
    EWasteAnalytics,
    HeatmapPoint,
    LeaderboardEntry,
    RecentListing,
)
from zerobin.schemas.notification import Notification, NotificationMetadata, NotificationPage
from zerobin.schemas.user import UserSummary


def analytics() -> Analytics:
    return Analytics(
        total_users=4,
        total_collectors=1,
        total_kabadiwalas=1,
        total_quests=4,
        quests_completed=0,
        quests_pending=4,
        total_listings=4,
        listings_active=2,
        total_transactions_value=0,
        total_waste_collected_kg=0,
    )


def heatmap() -> list[HeatmapPoint]:
    return [
        HeatmapPoint(
            id="b0990934-5392-41ce-b6fe-4b98d69c20b8",
            latitude=23.790575019718442,
            longitude=90.4063720702751,
            waste_type="general",
            severity="high",
            status="assigned",
            created_at=datetime.fromisoformat("2025-12-02T08:58:54.313838"),
        ),
        HeatmapPoint(
            id="3ca053d0-1499-45af-bc15-631fbcedeb35",
            latitude=23.8103,
            longitude=90.4125,
            waste_type="general",
            severity="medium",
            status="reported",
            created_at=datetime.fromisoformat("2025-12-02T08:55:11.516513"),
        ),
        HeatmapPoint(
            id="5350603c-90e8-4ca7-a540-50746387cd96",
            latitude=23.805,
            longitude=90.415,
            waste_type="recyclable",
            severity="medium",
            status="reported",
            created_at=datetime.fromisoformat("2025-12-02T08:51:26.198777"),
        ),
        HeatmapPoint(
            id="16ac2fc6-1b86-4084-a6d7-c0ff7154111b",
            latitude=23.809,
            longitude=90.418,
            waste_type="e_waste",
            severity="high",
            status="reported",
            created_at=datetime.fromisoformat("2025-12-02T08:51:26.198777"),
        ),
    ]


def leaderboard() -> list[LeaderboardEntry]:
    return [
        LeaderboardEntry(
            rank=1,
            user=UserSummary(
                id="b1cde4fb-5e69-4bf6-976e-190f47d60a0c",
                full_name="Collector Beta",
                user_type="collector",
                reputation_score=0,
            ),
            quests_completed=0,
            total_bounty_earned=0,
            badges_count=1,
        )
    ]


def ewaste_analytics() -> EWasteAnalytics:
    return EWasteAnalytics(
        total_listings=4,
        active_listings=2,
        completed_listings=0,
        device_type_breakdown={"mobile": 3, "laptop": 1},
        total_estimated_value_min=1855,
        total_estimated_value_max=2880,
        total_realized_value=502,
        average_listing_value=591.875,
        recent_listings=[
            RecentListing(
                id="3505fddb-67e5-4fa2-8e47-fc0d94c8a964",
                device_type="mobile",
                device_name="iPhone 12",
                condition="working",
                estimated_value_min=350,
                estimated_value_max=550,
                status="picked_up",
                created_at=datetime.fromisoformat("2025-12-02T09:49:04.834674"),
            )
        ],
    )


# ── Notifications ─────────────────────────────────────────────────────────────

def notifications() -> NotificationPage:
    """Shown when the first notification load fails."""
    item = Notification(
        id="dummy-1",
        notification_type="quest_assigned",
        title="New Quest Assigned! (Dummy)",
        message="You've been assigned a new cleanup quest: Mixed and Plastic (dummy)",
        related_quest_id="dummy-quest-123",
        metadata=NotificationMetadata(quest_bounty=30, waste_type="general", severity="high"),
        is_read=False,
        created_at=datetime.now(timezone.utc),
    )
    return NotificationPage(items=[item], total=1, unread_count=1)


def refreshed_notifications() -> NotificationPage:
    """Shown when a manual refresh fails."""
    item = Notification(
        id="dummy-refresh",
        notification_type="quest_assigned",
        title="Dummy Notification",
        message="Fallback: assigned quest while fetching failed",
        related_quest_id="dummy-refresh-quest",
        metadata=NotificationMetadata(quest_bounty=20, waste_type="recyclable", severity="low"),
        is_read=False,
        created_at=datetime.now(timezone.utc),
    )
    return NotificationPage(items=[item], total=1, unread_count=1)
