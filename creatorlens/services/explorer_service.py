"""
VideoExplorerService - Filter, sort and compare scored videos.

Loads the catalogue once, scores it with ScoringService and then works
entirely in memory.
"""

import logging
import re
from typing import Dict, List, Optional, Sequence

from ..core.models import DurationBucket, Signal, Video
from .models import (
    ExplorerFilters,
    ExplorerResult,
    GroupComparison,
    MetricDelta,
    METRIC_KEYS,
    PerformanceBadge,
    ScoredVideo,
)
from .scoring_service import ScoringService
from .stats_service import StatsService
from .video_service import VideoService

logger = logging.getLogger(__name__)

# Minimum percentile rank for each signal filter
SIGNAL_THRESHOLDS: Dict[Signal, tuple] = {
    Signal.TOP_RETENTION: ("retention_rate", 90),
    Signal.TOP_SAVES: ("saves_per_1k", 90),
    Signal.HIGH_FOR_YOU: ("for_you_percentage", 75),
    Signal.TOP_F1K: ("f_per_1k", 90),
}

SORT_OPTIONS = (
    "published_date_desc",
    "saves_per_1k_desc",
    "engagement_rate_desc",
    "performance_score_desc",
    "views_desc",
    "viral_index_desc",
)

HOOK_TYPES = ("question", "number", "how_to")

_QUESTION_CUES = ("?", "¿cómo", "¿qué", "¿por qué", "¿cuál")
_NUMBER_CUES = ("top ", " formas", " pasos", " tips", " ways", " steps", " reasons")
_HOW_TO_CUES = ("cómo", "how to")
_HOW_TO_PREFIXES = ("aprende", "descubre", "learn")


def detect_hook_types(hook: Optional[str]) -> List[str]:
    """
    Classify a hook line.

    A hook can carry several types at once.

    Example:
        >>> detect_hook_types("¿Cómo ahorrar 5 pasos?")
        ['question', 'number', 'how_to']
    """
    if not hook:
        return []

    lower = hook.lower()
    types = []

    if any(cue in lower for cue in _QUESTION_CUES):
        types.append("question")

    if re.match(r"^\d+\s", lower) or any(cue in lower for cue in _NUMBER_CUES):
        types.append("number")

    if any(cue in lower for cue in _HOW_TO_CUES) or lower.startswith(_HOW_TO_PREFIXES):
        types.append("how_to")

    return types


def duration_bucket(duration: int) -> DurationBucket:
    if duration < 20:
        return DurationBucket.SHORT
    if duration <= 40:
        return DurationBucket.MEDIUM
    return DurationBucket.LONG


class VideoExplorerService:
    """In-memory explorer over the scored catalogue."""

    def __init__(
        self,
        video_service: Optional[VideoService] = None,
        scoring_service: Optional[ScoringService] = None
    ):
        self.video_service = video_service or VideoService()
        self.scoring_service = scoring_service or ScoringService()

    def load_videos(self) -> ExplorerResult:
        """Fetch and score the whole catalogue."""
        videos = self.video_service.list_videos()
        scored = self.scoring_service.enrich_videos(videos)
        logger.info(f"Loaded {len(scored)} videos into explorer")
        return ExplorerResult(
            videos=scored,
            percentiles=ScoringService.percentile_bands(scored),
        )

    # =========================================================================
    # Filtering
    # =========================================================================

    @staticmethod
    def _matches(item: ScoredVideo, filters: ExplorerFilters) -> bool:
        video = item.video

        if filters.date_start or filters.date_end:
            day = video.published_day
            if day is None:
                return False
            if filters.date_start and day < filters.date_start:
                return False
            if filters.date_end and day > filters.date_end:
                return False

        if filters.duration and duration_bucket(video.duration_seconds) not in filters.duration:
            return False

        if filters.video_types and video.video_type not in filters.video_types:
            return False
        if filters.themes and video.video_theme not in filters.themes:
            return False
        if filters.cta_types and video.cta_type not in filters.cta_types:
            return False
        if filters.editing_styles and video.editing_style not in filters.editing_styles:
            return False

        if filters.hook_types:
            detected = detect_hook_types(video.hook)
            if not any(t in detected for t in filters.hook_types):
                return False

        for signal in filters.signals:
            # HIGH_VELOCITY has no data behind it and never excludes
            if signal not in SIGNAL_THRESHOLDS:
                continue
            metric, minimum = SIGNAL_THRESHOLDS[signal]
            if item.percentiles.get(metric, 0) < minimum:
                return False

        if filters.search:
            needle = filters.search.lower()
            haystacks = (video.title, video.hook, video.guion)
            if not any(h and needle in h.lower() for h in haystacks):
                return False

        return True

    def filter_videos(
        self,
        videos: Sequence[ScoredVideo],
        filters: Optional[ExplorerFilters] = None
    ) -> List[ScoredVideo]:
        """
        Apply explorer filters.

        Args:
            videos: Scored videos from load_videos()
            filters: Filters; None keeps everything

        Returns:
            Matching videos in input order
        """
        if filters is None:
            return list(videos)
        return [v for v in videos if self._matches(v, filters)]

    @staticmethod
    def sort_videos(videos: Sequence[ScoredVideo], sort_by: str = "published_date_desc") -> List[ScoredVideo]:
        """
        Sort scored videos.

        Raises:
            ValueError: For an unknown sort option
        """
        if sort_by not in SORT_OPTIONS:
            raise ValueError(f"Invalid sort option: {sort_by}. Choose from {', '.join(SORT_OPTIONS)}")

        if sort_by == "published_date_desc":
            return sorted(videos, key=lambda s: s.video.published_date or "", reverse=True)
        if sort_by == "views_desc":
            return sorted(videos, key=lambda s: s.video.views, reverse=True)
        if sort_by == "viral_index_desc":
            return sorted(videos, key=lambda s: s.viral_index, reverse=True)

        metric = sort_by[:-len("_desc")]
        return sorted(videos, key=lambda s: s.metrics.get(metric), reverse=True)

    # =========================================================================
    # Comparison & badges
    # =========================================================================

    @staticmethod
    def compare_groups(group_a: Sequence[ScoredVideo], group_b: Sequence[ScoredVideo]) -> GroupComparison:
        """
        Average every metric in both groups and report A's change against B.

        The relative delta is 0 when B's average is 0.
        """
        metrics = {}
        for key in METRIC_KEYS:
            avg_a = StatsService.calculate_mean([s.metrics.get(key) for s in group_a])
            avg_b = StatsService.calculate_mean([s.metrics.get(key) for s in group_b])
            delta = avg_a - avg_b
            metrics[key] = MetricDelta(
                group_a=avg_a,
                group_b=avg_b,
                delta_abs=delta,
                delta_pct=(delta / avg_b * 100) if avg_b > 0 else 0.0,
            )

        return GroupComparison(count_a=len(group_a), count_b=len(group_b), metrics=metrics)

    @staticmethod
    def performance_badge(item: ScoredVideo, population: Sequence[ScoredVideo]) -> PerformanceBadge:
        """Top 10% / Good / Average / Low by performance score."""
        scores = [s.metrics.performance_score for s in population]
        score = item.metrics.performance_score

        if score >= StatsService.calculate_top_threshold(scores, 0.1):
            return PerformanceBadge(label="Top 10%", percentile=90)
        if score >= StatsService.calculate_top_threshold(scores, 0.3):
            return PerformanceBadge(label="Good", percentile=70)
        if score >= StatsService.calculate_top_threshold(scores, 0.6):
            return PerformanceBadge(label="Average", percentile=40)
        return PerformanceBadge(label="Low", percentile=0)

    @staticmethod
    def filter_options(videos: Sequence[Video]) -> Dict[str, List[str]]:
        """Distinct non-empty themes, CTA types and editing styles."""
        return {
            "themes": sorted({v.video_theme for v in videos if v.video_theme}),
            "cta_types": sorted({v.cta_type for v in videos if v.cta_type}),
            "editing_styles": sorted({v.editing_style for v in videos if v.editing_style}),
        }
