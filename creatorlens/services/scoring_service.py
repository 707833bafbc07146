"""
ScoringService - Percentile ranks and viral index over a catalogue.

Enrichment is a pure function: a population of videos goes in, the same
videos come out with derived metrics, percentile ranks, z-scores and a
viral index relative to that population.
"""

import logging
import math
from typing import Dict, List, Optional, Sequence

from ..core.config import Config
from ..core.models import Video
from .metrics_service import MetricsService
from .models import METRIC_KEYS, PercentileBand, ScoredVideo, VideoMetrics
from .stats_service import StatsService

logger = logging.getLogger(__name__)

# Weighted z-score components of the viral index
VIRAL_WEIGHTS: Dict[str, float] = {
    "log_views": 0.35,
    "retention_rate": 0.25,
    "saves_per_1k": 0.15,
    "f_per_1k": 0.15,
    "for_you_percentage": 0.10,
}

VIRAL_INDEX_BASE = 5.0
VIRAL_INDEX_MIN = 0.0
VIRAL_INDEX_MAX = 10.0

RANKED_METRICS = METRIC_KEYS + ("performance_score",)


class ScoringService:
    """Scores videos against the creator's own catalogue."""

    def __init__(
        self,
        viral_threshold: Optional[float] = None,
        viral_min_views: Optional[int] = None
    ):
        self.viral_threshold = Config.VIRAL_INDEX_THRESHOLD if viral_threshold is None else viral_threshold
        self.viral_min_views = Config.VIRAL_MIN_VIEWS if viral_min_views is None else viral_min_views

    @staticmethod
    def calculate_viral_index(z_scores: Dict[str, float]) -> float:
        """
        5 + weighted sum of z-scores, clamped to [0, 10].

        Args:
            z_scores: keys of VIRAL_WEIGHTS; missing keys count as 0

        Returns:
            Viral index
        """
        weighted = sum(weight * z_scores.get(key, 0.0) for key, weight in VIRAL_WEIGHTS.items())
        index = VIRAL_INDEX_BASE + weighted
        if math.isnan(index):
            return VIRAL_INDEX_BASE
        return max(VIRAL_INDEX_MIN, min(VIRAL_INDEX_MAX, index))

    def is_viral(self, viral_index: float, views: int) -> bool:
        return viral_index >= self.viral_threshold and views >= self.viral_min_views

    def enrich_videos(self, videos: Sequence[Video]) -> List[ScoredVideo]:
        """
        Score every video against the population it belongs to.

        Args:
            videos: The population (usually the creator's whole catalogue)

        Returns:
            ScoredVideo per input video, same order
        """
        metrics: List[VideoMetrics] = [MetricsService.compute(v) for v in videos]

        columns: Dict[str, List[float]] = {
            key: [m.get(key) for m in metrics] for key in RANKED_METRICS
        }
        columns["log_views"] = [math.log1p(max(v.views, 0)) for v in videos]

        z_columns = {
            key: StatsService.calculate_zscores(columns[key]) for key in VIRAL_WEIGHTS
        }

        scored = []
        for i, (video, video_metrics) in enumerate(zip(videos, metrics)):
            percentiles = {
                key: StatsService.calculate_percentile(columns[key][i], columns[key])
                for key in RANKED_METRICS
            }
            z_scores = {key: z_columns[key][i] for key in VIRAL_WEIGHTS}
            viral_index = self.calculate_viral_index(z_scores)

            scored.append(ScoredVideo(
                video=video,
                metrics=video_metrics,
                percentiles=percentiles,
                z_scores=z_scores,
                viral_index=viral_index,
                is_viral=self.is_viral(viral_index, video.views),
            ))

        logger.debug(f"Scored {len(scored)} videos")
        return scored

    @staticmethod
    def percentile_bands(scored: Sequence[ScoredVideo]) -> Dict[str, PercentileBand]:
        """p10 / p50 / p90 of every ranked metric across the scored videos"""
        return {
            key: StatsService.calculate_percentile_band([s.metrics.get(key) for s in scored])
            for key in RANKED_METRICS
        }
