"""
KPIService - Dashboard KPIs and chart series.

Each ratio KPI compares the current window (published in the last N days)
against the window before it ([today - 2N, today - N)). When the previous
window has no views the previous value falls back to the current one, so
the delta is 0.
"""

import logging
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from supabase import Client

from ..core.database import get_supabase_client, get_creator_user_id
from ..core.models import Period
from ..utils.dates import local_today
from .models import (
    FollowersPoint,
    KPIDashboard,
    KPIValue,
    SparkPoint,
    TopBottom,
    TopBottomItem,
    TrafficSlice,
    VideoAggregation,
)
from .metrics_service import safe_ratio

logger = logging.getLogger(__name__)

KPI_VIDEO_COLUMNS = (
    "id, title, published_date, views, likes, comments, shares, saves, new_followers, "
    "traffic_for_you, traffic_profile, traffic_hashtag, traffic_sound, traffic_search, "
    "avg_time_watched, duration_seconds"
)

TRAFFIC_LABELS = (
    ("For You", "total_traffic_for_you"),
    ("Profile", "total_traffic_profile"),
    ("Hashtag", "total_traffic_hashtag"),
    ("Sound", "total_traffic_sound"),
    ("Search", "total_traffic_search"),
)

FOLLOWERS_DELTA_DAYS = 7
SPARK_POINTS = 30
TOP_BOTTOM_SIZE = 5


def to_period(period: Union[Period, str]) -> Period:
    """Coerce '7d' / '30d' / '90d' into a Period."""
    return period if isinstance(period, Period) else Period(period)


def kpi_from_values(value: float, previous: float) -> KPIValue:
    delta = value - previous
    return KPIValue(
        value=value,
        delta_abs=delta,
        delta_pct=(delta / previous * 100) if previous > 0 else 0.0,
    )


class KPIService:
    """Computes dashboard KPIs from videos and followers_history."""

    def __init__(self, supabase: Optional[Client] = None, user_id: Optional[str] = None):
        self.supabase = supabase or get_supabase_client()
        self.user_id = get_creator_user_id(user_id)

    def today(self) -> date:
        return local_today()

    # =========================================================================
    # Data access
    # =========================================================================

    def _fetch_videos(self, from_date: date, to_date: Optional[date] = None) -> List[Dict[str, Any]]:
        """Videos published on/after from_date and, when given, strictly before to_date."""
        query = self.supabase.table("videos").select(KPI_VIDEO_COLUMNS).eq(
            "user_id", self.user_id
        ).gte("published_date", from_date.isoformat())

        if to_date is not None:
            query = query.lt("published_date", to_date.isoformat())

        result = query.execute()
        return result.data or []

    def _windows(self, period: Union[Period, str]) -> Tuple[VideoAggregation, VideoAggregation]:
        """Aggregations for the current and the previous window."""
        days = to_period(period).days
        today = self.today()

        current = self.aggregate_videos(self._fetch_videos(today - timedelta(days=days)))
        previous = self.aggregate_videos(self._fetch_videos(
            today - timedelta(days=days * 2),
            today - timedelta(days=days),
        ))
        return current, previous

    def _latest_followers(self, on_or_before: Optional[date] = None) -> Optional[int]:
        query = self.supabase.table("followers_history").select(
            "followers_count, entry_date"
        ).eq("user_id", self.user_id)

        if on_or_before is not None:
            query = query.lte("entry_date", on_or_before.isoformat())

        result = query.order("entry_date", desc=True).limit(1).execute()
        if not result.data:
            return None
        return int(result.data[0].get("followers_count") or 0)

    @staticmethod
    def aggregate_videos(rows: List[Dict[str, Any]]) -> VideoAggregation:
        """
        Sum counters and view-weighted watch time over a set of video rows.

        Missing duration counts as 1 second in the weighting.
        """
        agg = VideoAggregation()
        for row in rows:
            views = row.get("views") or 0
            agg.total_views += views
            agg.total_likes += row.get("likes") or 0
            agg.total_comments += row.get("comments") or 0
            agg.total_shares += row.get("shares") or 0
            agg.total_saves += row.get("saves") or 0
            agg.total_new_followers += row.get("new_followers") or 0
            agg.total_traffic_for_you += row.get("traffic_for_you") or 0
            agg.total_traffic_profile += row.get("traffic_profile") or 0
            agg.total_traffic_hashtag += row.get("traffic_hashtag") or 0
            agg.total_traffic_sound += row.get("traffic_sound") or 0
            agg.total_traffic_search += row.get("traffic_search") or 0
            agg.weighted_avg_time += (row.get("avg_time_watched") or 0) * views
            agg.weighted_duration += (row.get("duration_seconds") or 1) * views
            agg.video_count += 1
        return agg

    # =========================================================================
    # Followers KPIs
    # =========================================================================

    def followers_now(self) -> KPIValue:
        """Latest follower count, change against a week ago, oldest 30 entries as spark."""
        current = self._latest_followers() or 0
        previous = self._latest_followers(self.today() - timedelta(days=FOLLOWERS_DELTA_DAYS)) or current

        spark_result = self.supabase.table("followers_history").select(
            "entry_date, followers_count"
        ).eq("user_id", self.user_id).order("entry_date").limit(SPARK_POINTS).execute()

        kpi = kpi_from_values(current, previous)
        kpi.spark = [
            SparkPoint(x=str(row["entry_date"])[:10], y=row.get("followers_count") or 0)
            for row in (spark_result.data or [])
        ]
        return kpi

    def new_followers(self) -> KPIValue:
        """
        Today's gain (today - yesterday), compared with yesterday's gain.

        The percentage change is relative to the absolute size of yesterday's gain.
        """
        today = self.today()
        current = self._latest_followers() or 0
        yesterday = self._latest_followers(today - timedelta(days=1)) or current
        day_before = self._latest_followers(today - timedelta(days=2)) or yesterday

        value = current - yesterday
        previous_diff = yesterday - day_before
        delta = value - previous_diff

        return KPIValue(
            value=value,
            delta_abs=delta,
            delta_pct=(delta / abs(previous_diff) * 100) if previous_diff != 0 else 0.0,
        )

    # =========================================================================
    # Video KPIs
    # =========================================================================

    def _ratio_kpi(
        self,
        period: Union[Period, str],
        ratio: Callable[[VideoAggregation], float],
        has_data: Callable[[VideoAggregation], bool]
    ) -> KPIValue:
        current, previous = self._windows(period)
        value = ratio(current) if has_data(current) else 0.0
        previous_value = ratio(previous) if has_data(previous) else value
        return kpi_from_values(value, previous_value)

    def followers_yield(self, period: Union[Period, str] = Period.LAST_30_DAYS) -> KPIValue:
        """New followers per 1K views"""
        return self._ratio_kpi(
            period,
            lambda a: safe_ratio(a.total_new_followers, a.total_views, 1000),
            lambda a: a.total_views > 0,
        )

    def retention_avg(self, period: Union[Period, str] = Period.LAST_30_DAYS) -> KPIValue:
        """View-weighted average retention %"""
        return self._ratio_kpi(
            period,
            lambda a: safe_ratio(a.weighted_avg_time, a.weighted_duration, 100),
            lambda a: a.weighted_duration > 0,
        )

    def saves_per_1k(self, period: Union[Period, str] = Period.LAST_30_DAYS) -> KPIValue:
        return self._ratio_kpi(
            period,
            lambda a: safe_ratio(a.total_saves, a.total_views, 1000),
            lambda a: a.total_views > 0,
        )

    def for_you_share(self, period: Union[Period, str] = Period.LAST_30_DAYS) -> KPIValue:
        """For You traffic as % of views"""
        return self._ratio_kpi(
            period,
            lambda a: safe_ratio(a.total_traffic_for_you, a.total_views, 100),
            lambda a: a.total_views > 0,
        )

    def get_dashboard(self, period: Union[Period, str] = Period.LAST_30_DAYS) -> KPIDashboard:
        """
        All headline KPIs for a period.

        A KPI that fails is logged and reported as zero instead of failing
        the whole dashboard.
        """
        period = to_period(period)
        calculators: Dict[str, Callable[[], KPIValue]] = {
            "followers_now": self.followers_now,
            "new_followers": self.new_followers,
            "followers_yield": lambda: self.followers_yield(period),
            "retention_avg": lambda: self.retention_avg(period),
            "saves_per_1k": lambda: self.saves_per_1k(period),
            "for_you_share": lambda: self.for_you_share(period),
        }

        values = {}
        for name, calculate in calculators.items():
            try:
                values[name] = calculate()
            except Exception as e:
                logger.error(f"Error calculating KPI {name}: {e}")
                values[name] = KPIValue()

        return KPIDashboard(period=period.value, **values)

    # =========================================================================
    # Charts
    # =========================================================================

    def followers_trend(self, period: Union[Period, str] = Period.LAST_30_DAYS) -> List[FollowersPoint]:
        from_date = self.today() - timedelta(days=to_period(period).days)
        result = self.supabase.table("followers_history").select(
            "entry_date, followers_count"
        ).eq("user_id", self.user_id).gte(
            "entry_date", from_date.isoformat()
        ).order("entry_date").execute()

        return [
            FollowersPoint(date=str(row["entry_date"])[:10], count=row.get("followers_count") or 0)
            for row in (result.data or [])
        ]

    def top_vs_bottom(self, period: Union[Period, str] = Period.LAST_30_DAYS) -> TopBottom:
        """Five best and five worst videos by retention among videos with views."""
        from_date = self.today() - timedelta(days=to_period(period).days)
        rows = [r for r in self._fetch_videos(from_date) if (r.get("views") or 0) > 0]

        items = []
        for row in rows:
            views = row.get("views") or 0
            items.append(TopBottomItem(
                id=str(row["id"]),
                title=row.get("title") or "Untitled",
                retention=safe_ratio(row.get("avg_time_watched") or 0, row.get("duration_seconds") or 0, 100),
                saves_per_1k=safe_ratio(row.get("saves") or 0, views, 1000),
                views=views,
            ))

        ranked = sorted(items, key=lambda i: i.retention, reverse=True)
        return TopBottom(
            top=ranked[:TOP_BOTTOM_SIZE],
            bottom=list(reversed(ranked[-TOP_BOTTOM_SIZE:])),
        )

    def traffic_donut(self, period: Union[Period, str] = Period.LAST_30_DAYS) -> List[TrafficSlice]:
        """Share of each traffic source; empty without traffic."""
        from_date = self.today() - timedelta(days=to_period(period).days)
        agg = self.aggregate_videos(self._fetch_videos(from_date))

        total = sum(getattr(agg, field) for _, field in TRAFFIC_LABELS)
        if total == 0:
            return []

        slices = [
            TrafficSlice(label=label, value=getattr(agg, field) / total * 100)
            for label, field in TRAFFIC_LABELS
        ]
        return [s for s in slices if s.value > 0]
