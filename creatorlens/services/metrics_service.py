"""
MetricsService - Derived per-video metrics.

Every metric is recomputed from the raw counters; stored rates are never
trusted. A zero denominator always yields 0.
"""

from typing import Union

from ..core.models import Video
from .models import VideoMetrics, METRIC_KEYS


def safe_ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    """numerator / denominator * scale, or 0 when the denominator is not positive."""
    if not denominator or denominator <= 0:
        return 0.0
    return float(numerator) / float(denominator) * scale


class MetricsService:
    """Pure metric calculations for a single video."""

    @staticmethod
    def engagement_rate(video: Video) -> float:
        """(likes + comments + shares) / views * 100"""
        return safe_ratio(video.likes + video.comments + video.shares, video.views, 100)

    @staticmethod
    def retention_rate(video: Video) -> float:
        """avg_time_watched / duration * 100; 0 for unwatched videos"""
        if video.views <= 0:
            return 0.0
        return safe_ratio(video.avg_time_watched, video.duration_seconds, 100)

    @staticmethod
    def saves_per_1k(video: Video) -> float:
        return safe_ratio(video.saves, video.views, 1000)

    @staticmethod
    def for_you_percentage(video: Video) -> float:
        return safe_ratio(video.traffic_for_you, video.views, 100)

    @staticmethod
    def f_per_1k(video: Video) -> float:
        """New followers per thousand views"""
        return safe_ratio(video.new_followers, video.views, 1000)

    @classmethod
    def compute(cls, video: Union[Video, dict]) -> VideoMetrics:
        """
        Derive all metrics for a video.

        Args:
            video: Video model or raw row dict

        Returns:
            VideoMetrics with performance_score = mean of the five rates
        """
        if isinstance(video, dict):
            video = Video(**video)

        values = {
            "engagement_rate": cls.engagement_rate(video),
            "retention_rate": cls.retention_rate(video),
            "saves_per_1k": cls.saves_per_1k(video),
            "for_you_percentage": cls.for_you_percentage(video),
            "f_per_1k": cls.f_per_1k(video),
        }
        score = sum(values[k] for k in METRIC_KEYS) / len(METRIC_KEYS)

        return VideoMetrics(performance_score=score, **values)
