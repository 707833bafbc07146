"""
FollowersService - Daily follower count history.

One row per (user_id, entry_date) in followers_history. Dates are calendar
days in the creator's timezone.
"""

import logging
from datetime import date, timedelta
from typing import List, Optional, Union

from supabase import Client

from ..core.config import Config
from ..core.database import get_supabase_client, get_creator_user_id
from ..core.models import FollowerEntry
from ..utils.dates import local_today
from .models import FollowersPoint

logger = logging.getLogger(__name__)

FOLLOWERS_TABLE = "followers_history"


def _iso(day: Union[date, str]) -> str:
    return day.isoformat() if isinstance(day, date) else str(day)[:10]


class FollowersService:
    """Service for the creator's follower count history."""

    def __init__(self, supabase: Optional[Client] = None, user_id: Optional[str] = None):
        self.supabase = supabase or get_supabase_client()
        self.user_id = get_creator_user_id(user_id)

    def today(self) -> date:
        return local_today()

    def get_today(self) -> FollowerEntry:
        """
        Today's entry, created with DEFAULT_FOLLOWERS_COUNT when missing.

        Returns:
            FollowerEntry for today
        """
        today = _iso(self.today())

        result = self.supabase.table(FOLLOWERS_TABLE).select(
            "entry_date, followers_count"
        ).eq("user_id", self.user_id).eq("entry_date", today).limit(1).execute()

        if result.data:
            return FollowerEntry(user_id=self.user_id, **result.data[0])

        row = {
            "user_id": self.user_id,
            "entry_date": today,
            "followers_count": Config.DEFAULT_FOLLOWERS_COUNT,
        }
        inserted = self.supabase.table(FOLLOWERS_TABLE).insert(row).execute()
        logger.info(f"Created followers entry for {today}")
        return FollowerEntry(**(inserted.data[0] if inserted.data else row))

    def upsert_for_date(self, entry_date: Union[date, str], followers_count: int) -> bool:
        """
        Record the follower count for a day.

        Raises:
            ValueError: If followers_count is not a non-negative integer

        Returns:
            True on success, False when the database rejects the write
        """
        if isinstance(followers_count, bool) or not isinstance(followers_count, int) or followers_count < 0:
            raise ValueError("Followers count must be a non-negative integer")

        try:
            self.supabase.table(FOLLOWERS_TABLE).upsert(
                {
                    "user_id": self.user_id,
                    "entry_date": _iso(entry_date),
                    "followers_count": followers_count,
                },
                on_conflict="user_id,entry_date",
            ).execute()
            return True
        except Exception as e:
            logger.error(f"Error upserting followers history: {e}")
            return False

    def get_count_on(self, on_date: Union[date, str]) -> int:
        """
        Follower count on a day.

        Uses the latest entry on or before the day; before the first entry,
        carries the first known count backwards. 0 without history.
        """
        try:
            result = self.supabase.table(FOLLOWERS_TABLE).select("followers_count").eq(
                "user_id", self.user_id
            ).lte("entry_date", _iso(on_date)).order("entry_date", desc=True).limit(1).execute()

            if result.data:
                return int(result.data[0]["followers_count"] or 0)

            first = self.supabase.table(FOLLOWERS_TABLE).select("followers_count").eq(
                "user_id", self.user_id
            ).order("entry_date").limit(1).execute()

            if first.data:
                return int(first.data[0]["followers_count"] or 0)
            return 0
        except Exception as e:
            logger.error(f"Error getting followers count: {e}")
            return 0

    def get_series(self, days: int) -> List[FollowersPoint]:
        """
        One point per day for the last ``days`` days, ending today.

        Days without an entry repeat the last known count (0 before the first
        entry in the window).
        """
        today = self.today()
        start = today - timedelta(days=days - 1)

        try:
            result = self.supabase.table(FOLLOWERS_TABLE).select(
                "entry_date, followers_count"
            ).eq("user_id", self.user_id).gte(
                "entry_date", start.isoformat()
            ).lte("entry_date", today.isoformat()).order("entry_date").execute()
        except Exception as e:
            logger.error(f"Error getting followers series: {e}")
            return []

        by_date = {
            _iso(row["entry_date"]): int(row["followers_count"] or 0)
            for row in (result.data or [])
        }

        series = []
        last_known = 0
        for offset in range(days):
            day = (start + timedelta(days=offset)).isoformat()
            if day in by_date:
                last_known = by_date[day]
            series.append(FollowersPoint(date=day, count=last_known))

        return series
