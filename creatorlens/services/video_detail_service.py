"""
VideoDetailService - One video against the rest of the catalogue.

Compares a video's derived metrics with the average and the top-10%
threshold of the creator's other videos, then turns the comparison into
rule-based "what worked / what to improve / next actions" lists.
"""

import logging
from typing import Dict, List, Optional

from supabase import Client

from ..core.database import get_supabase_client, get_creator_user_id
from ..core.models import Video
from .metrics_service import MetricsService
from .models import DetailInsights, METRIC_KEYS, MetricComparison, VideoDetail, VideoMetrics
from .stats_service import StatsService
from .video_service import VideoService

logger = logging.getLogger(__name__)

COMPARISON_COLUMNS = (
    "id, views, likes, comments, shares, saves, new_followers, "
    "avg_time_watched, duration_seconds, traffic_for_you"
)

DEFAULT_ACTIONS = [
    "Experiment with hooks that ask the viewer a direct question",
    "Try an earlier follow CTA in upcoming videos",
    "Find the exact moment where retention drops",
]


def build_comparison(current: float, reference: float) -> MetricComparison:
    delta = current - reference
    return MetricComparison(
        value=reference,
        delta=delta,
        delta_pct=(delta / reference * 100) if reference > 0 else 0.0,
    )


class VideoDetailService:
    """Builds the detail view of a single video."""

    def __init__(
        self,
        supabase: Optional[Client] = None,
        user_id: Optional[str] = None,
        video_service: Optional[VideoService] = None
    ):
        self.supabase = supabase or get_supabase_client()
        self.user_id = get_creator_user_id(user_id)
        self.video_service = video_service or VideoService(self.supabase, self.user_id)

    def _population(self, video_id: str) -> List[VideoMetrics]:
        """Metrics of every other video with views."""
        result = self.supabase.table("videos").select(COMPARISON_COLUMNS).eq(
            "user_id", self.user_id
        ).neq("id", video_id).gt("views", 0).execute()

        return [MetricsService.compute(Video(**row)) for row in (result.data or [])]

    @staticmethod
    def compare(
        metrics: VideoMetrics,
        population: List[VideoMetrics]
    ) -> Dict[str, Dict[str, MetricComparison]]:
        """
        Comparisons against the population average and top-10% threshold.

        Returns:
            {"vs_avg": {metric: MetricComparison}, "vs_top10": {...}};
            all zeros for an empty population
        """
        if not population:
            zero = {key: MetricComparison() for key in METRIC_KEYS}
            return {"vs_avg": dict(zero), "vs_top10": dict(zero)}

        vs_avg = {}
        vs_top10 = {}
        for key in METRIC_KEYS:
            column = [m.get(key) for m in population]
            current = metrics.get(key)
            vs_avg[key] = build_comparison(current, StatsService.calculate_mean(column))
            vs_top10[key] = build_comparison(current, StatsService.calculate_top_threshold(column, 0.1))

        return {"vs_avg": vs_avg, "vs_top10": vs_top10}

    @staticmethod
    def generate_insights(
        video: Video,
        metrics: VideoMetrics,
        vs_avg: Dict[str, MetricComparison],
        vs_top10: Dict[str, MetricComparison]
    ) -> DetailInsights:
        """Rule-based insights; always returns at least one action."""
        worked = []
        improve = []
        actions = []

        avg_retention = vs_avg["retention_rate"].value
        avg_f1k = vs_avg["f_per_1k"].value

        if metrics.retention_rate > avg_retention:
            worked.append(f"Retention above average ({metrics.retention_rate:.1f}%)")
        if metrics.saves_per_1k > vs_avg["saves_per_1k"].value:
            worked.append(f"Saves above average ({metrics.saves_per_1k:.1f}/1k)")
        if metrics.f_per_1k >= vs_top10["f_per_1k"].value:
            worked.append(f"F/1k in the top 10%, strong follower conversion ({metrics.f_per_1k:.1f}/1k)")
        if metrics.for_you_percentage > vs_avg["for_you_percentage"].value:
            worked.append(f"Good For You distribution ({metrics.for_you_percentage:.1f}%)")
        if video.views > 1000:
            worked.append("Meaningful reach, the content is getting traction")

        if metrics.retention_rate < avg_retention * 0.8:
            improve.append(
                f"Low retention ({metrics.retention_rate:.1f}% vs {avg_retention:.1f}% average)"
            )
        if metrics.f_per_1k < avg_f1k:
            improve.append("F/1k below average, few viewers convert to followers")
        if video.duration_seconds > 40:
            improve.append("Too long, consider a tighter cut")
        if metrics.for_you_percentage < 30:
            improve.append("Low For You distribution, improve early engagement")

        if metrics.f_per_1k < avg_f1k:
            actions.append("Follow CTA in the first 2-3 seconds")
            actions.append('Promise future value explicitly ("Follow for more tips like this")')
        if metrics.retention_rate < 40:
            actions.append("Open on a more expressive, eye-catching first frame")
            actions.append("Change pace every 3-5 seconds to hold attention")
        if video.duration_seconds > 30 and metrics.retention_rate < 50:
            actions.append("Trim the edit, remove unnecessary seconds")

        if not actions:
            actions = list(DEFAULT_ACTIONS)

        return DetailInsights(worked=worked, improve=improve, actions=actions)

    def load(self, video_id: str) -> VideoDetail:
        """
        Full detail for one video.

        Raises:
            LookupError: If the video does not exist
        """
        video = self.video_service.get_video(video_id)
        metrics = MetricsService.compute(video)
        comparisons = self.compare(metrics, self._population(video_id))
        insights = self.generate_insights(video, metrics, comparisons["vs_avg"], comparisons["vs_top10"])

        logger.info(f"Loaded detail for video {video_id}")
        return VideoDetail(
            video=video,
            metrics=metrics,
            vs_avg=comparisons["vs_avg"],
            vs_top10=comparisons["vs_top10"],
            insights=insights,
        )
