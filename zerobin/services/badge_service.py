"""
Badge showcase: earned badges, reputation and the badges still to unlock.
"""
from __future__ import annotations

import logging

from zerobin.clients.zerobin_api import ZeroBinClient
from zerobin.core.exceptions import ZeroBinException
from zerobin.schemas.badge import Badge, BadgeCriteria, UserBadges, badge_label

logger = logging.getLogger(__name__)

EARNED_FALLBACK_DESCRIPTION = "Achievement unlocked!"


class BadgeShowcase:

    def __init__(self, client: ZeroBinClient) -> None:
        self.client = client
        self.badges: UserBadges | None = None
        self.criteria: BadgeCriteria = {}
        self.loading = False
        self.error: str | None = None

    async def load(self) -> UserBadges | None:
        """Fetch the user's badges, then the criteria; either failing leaves nothing shown."""
        self.client.session.require_token()
        self.loading = True
        self.error = None
        try:
            badges = await self.client.my_badges()
            criteria = await self.client.badge_criteria()
        except ZeroBinException as exc:
            self.error = exc.detail or "Failed to load badges"
            logger.warning("Badge load failed: %s", self.error)
            return None
        finally:
            self.loading = False

        self.badges = badges
        self.criteria = criteria
        return badges

    @property
    def earned(self) -> list[Badge]:
        return self.badges.badges if self.badges else []

    @property
    def earned_types(self) -> set[str]:
        return {badge.badge_type for badge in self.earned}

    def description_for(self, badge: Badge) -> str:
        criterion = self.criteria.get(badge.badge_type)
        return criterion.description if criterion else EARNED_FALLBACK_DESCRIPTION

    def available(self) -> list[tuple[str, str]]:
        """``(label, description)`` for every badge the user has not earned yet."""
        earned = self.earned_types
        return [
            (badge_label(badge_type), criterion.description)
            for badge_type, criterion in self.criteria.items()
            if badge_type not in earned
        ]

    def stats(self) -> dict[str, float]:
        if self.badges is None:
            return {}
        return {
            "earned": len(self.earned),
            "reputation_score": self.badges.reputation_score,
            "to_unlock": len(self.available()),
            "total_transactions": self.badges.total_transactions,
        }
