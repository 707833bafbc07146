"""
NormalizationService - Views and engagement relative to audience size.

Normalises a video's reach by the follower count the creator had on the
day it was published.
"""

import logging
from typing import Optional

from ..core.models import Video
from .followers_service import FollowersService
from .models import NormalizedMetrics, ViralityStatus

logger = logging.getLogger(__name__)

VIRAL_NORM_THRESHOLD = 0.1

# (minimum views_norm, tier, badge), checked top-down
VIRALITY_TIERS = (
    (0.08, "viral", "Viral"),
    (0.04, "good", "Good"),
    (0.02, "medium", "Medium"),
)


class NormalizationService:
    """Normalises video metrics by followers at post time."""

    def __init__(self, followers_service: Optional[FollowersService] = None):
        self.followers_service = followers_service or FollowersService()

    @staticmethod
    def normalize(video: Video, followers_at_post: int) -> NormalizedMetrics:
        """Pure normalisation given a known follower count."""
        denominator = max(followers_at_post, 1)
        has_data = followers_at_post > 0

        return NormalizedMetrics(
            views_norm=video.views / denominator,
            engagement_norm=(video.likes + video.comments + video.shares) / denominator,
            followers_at_post=followers_at_post,
            has_sufficient_data=has_data,
            viral_threshold=VIRAL_NORM_THRESHOLD if has_data else 0.0,
        )

    def normalize_video(self, video: Video) -> NormalizedMetrics:
        """Look up followers on the publish date, then normalise."""
        followers = 0
        if video.published_date:
            followers = self.followers_service.get_count_on(video.published_date[:10])
        return self.normalize(video, followers)

    @staticmethod
    def get_virality_status(normalized: NormalizedMetrics) -> ViralityStatus:
        if not normalized.has_sufficient_data:
            return ViralityStatus(tier="medium", badge="No follower history for this date")

        for minimum, tier, badge in VIRALITY_TIERS:
            if normalized.views_norm >= minimum:
                return ViralityStatus(tier=tier, is_viral=(tier == "viral"), badge=badge)

        return ViralityStatus(tier="low", badge="Low")
