"""
Services layer for CreatorLens.

Pure analytics (MetricsService, ScoringService, StatsService) are kept
apart from data access (VideoService, FollowersService, KPIService) and
AI operations (AIInsightsService, ContentIdeasService, BrainService).
"""

from .models import (
    VideoMetrics,
    ScoredVideo,
    ExplorerFilters,
    ExplorerResult,
    KPIValue,
    KPIDashboard,
    VideoInsights,
    ContentIdea,
    ContentIdeasResult,
    IdeaOutcome,
    BrainSearchResult,
    ImportResult,
)

from .metrics_service import MetricsService
from .scoring_service import ScoringService
from .stats_service import StatsService
from .video_service import VideoService
from .explorer_service import VideoExplorerService
from .followers_service import FollowersService
from .kpi_service import KPIService

__all__ = [
    "VideoMetrics",
    "ScoredVideo",
    "ExplorerFilters",
    "ExplorerResult",
    "KPIValue",
    "KPIDashboard",
    "VideoInsights",
    "ContentIdea",
    "ContentIdeasResult",
    "IdeaOutcome",
    "BrainSearchResult",
    "ImportResult",
    "MetricsService",
    "ScoringService",
    "StatsService",
    "VideoService",
    "VideoExplorerService",
    "FollowersService",
    "KPIService",
]
