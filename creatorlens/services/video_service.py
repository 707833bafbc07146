"""
VideoService - Video catalogue CRUD and overview analytics.

All queries are scoped to the creator's user id.
"""

import logging
from typing import List, Dict, Optional, Any

from supabase import Client

from ..core.config import Config
from ..core.database import get_supabase_client, get_creator_user_id
from ..core.models import Video
from .models import AnalyticsSummary
from .scoring_service import ScoringService

logger = logging.getLogger(__name__)

VIDEOS_TABLE = "videos"


class VideoService:
    """Service for the creator's video catalogue."""

    def __init__(self, supabase: Optional[Client] = None, user_id: Optional[str] = None):
        """
        Initialize VideoService.

        Args:
            supabase: Optional Supabase client. If not provided, creates one.
            user_id: Creator account id. Defaults to CREATOR_USER_ID.
        """
        self.supabase = supabase or get_supabase_client()
        self.user_id = get_creator_user_id(user_id)

    # =========================================================================
    # CRUD
    # =========================================================================

    def list_videos(self) -> List[Video]:
        """All videos, newest first."""
        result = self.supabase.table(VIDEOS_TABLE).select("*").eq(
            "user_id", self.user_id
        ).order("published_date", desc=True).execute()
        return [Video(**row) for row in (result.data or [])]

    def get_video(self, video_id: str) -> Video:
        """
        Get a single video.

        Raises:
            LookupError: If the video does not exist for this user
        """
        result = self.supabase.table(VIDEOS_TABLE).select("*").eq(
            "id", video_id
        ).eq("user_id", self.user_id).execute()

        if not result.data:
            raise LookupError(f"Video not found: {video_id}")
        return Video(**result.data[0])

    def add_video(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one video row for this user."""
        row = {**data, "user_id": self.user_id}
        result = self.supabase.table(VIDEOS_TABLE).insert(row).execute()
        logger.info(f"Added video: {data.get('title', '(untitled)')}")
        return result.data[0] if result.data else {}

    def add_videos(self, rows: List[Dict[str, Any]]) -> int:
        """
        Insert several video rows in a single request.

        Returns:
            Number of rows inserted
        """
        if not rows:
            return 0
        payload = [{**row, "user_id": self.user_id} for row in rows]
        result = self.supabase.table(VIDEOS_TABLE).insert(payload).execute()
        return len(result.data or payload)

    def update_video(self, video_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        result = self.supabase.table(VIDEOS_TABLE).update(updates).eq(
            "id", video_id
        ).eq("user_id", self.user_id).execute()
        logger.info(f"Updated video: {video_id}")
        return result.data[0] if result.data else None

    def delete_video(self, video_id: str) -> bool:
        self.supabase.table(VIDEOS_TABLE).delete().eq(
            "id", video_id
        ).eq("user_id", self.user_id).execute()
        logger.info(f"Deleted video: {video_id}")
        return True

    # =========================================================================
    # Analytics
    # =========================================================================

    def get_analytics(self, videos: Optional[List[Video]] = None) -> AnalyticsSummary:
        """
        Catalogue overview.

        Args:
            videos: Pre-fetched catalogue (newest first); fetched when omitted

        Returns:
            AnalyticsSummary, zeroed for an empty catalogue
        """
        if videos is None:
            videos = self.list_videos()

        if not videos:
            return AnalyticsSummary()

        scored = ScoringService().enrich_videos(videos)
        count = len(videos)
        total_views = sum(v.views for v in videos)

        top_performers = sorted(
            scored, key=lambda s: s.metrics.performance_score, reverse=True
        )[:5]

        return AnalyticsSummary(
            total_videos=count,
            total_views=total_views,
            total_likes=sum(v.likes for v in videos),
            total_comments=sum(v.comments for v in videos),
            total_shares=sum(v.shares for v in videos),
            avg_views=int(total_views / count + 0.5),
            avg_engagement=sum(s.metrics.engagement_rate for s in scored) / count,
            viral_count=sum(1 for v in videos if v.views >= Config.VIRAL_VIEWS_SUMMARY),
            top_performers=top_performers,
            recent_videos=scored[:5],
        )
