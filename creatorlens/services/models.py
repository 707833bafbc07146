"""
Pydantic models for CreatorLens services.

These models provide type-safe, validated data structures for:
- Derived per-video metrics and scoring (VideoMetrics, ScoredVideo)
- Explorer filters and group comparison (ExplorerFilters, GroupComparison)
- Dashboard KPIs and charts (KPIValue, KPIDashboard, TrafficSlice)
- Video detail comparisons and rule-based insights
- AI outputs with their fallback provenance (VideoInsights, ContentIdea,
  GeneratedScript, StrategicInsights)
- CSV import results (ImportResult)

All models use Pydantic v2.
"""

from datetime import date
from typing import List, Optional, Dict, Any

from pydantic import BaseModel, Field

from ..core.models import Video, DurationBucket, Signal, IdeaType, IdeaMode, IdeaOutcomeType


# ============================================================================
# Metrics & Scoring
# ============================================================================

METRIC_KEYS = (
    "engagement_rate",
    "retention_rate",
    "saves_per_1k",
    "for_you_percentage",
    "f_per_1k",
)


class VideoMetrics(BaseModel):
    """Derived metrics for a single video. Every rate is 0 when views is 0."""
    engagement_rate: float = 0.0
    retention_rate: float = 0.0
    saves_per_1k: float = 0.0
    for_you_percentage: float = 0.0
    f_per_1k: float = 0.0
    performance_score: float = 0.0

    def get(self, key: str) -> float:
        return float(getattr(self, key))


class PercentileBand(BaseModel):
    """p10 / p50 / p90 cut points of one metric across the catalogue"""
    p10: float = 0.0
    p50: float = 0.0
    p90: float = 0.0


class ScoredVideo(BaseModel):
    """A video with its derived metrics, percentile ranks and viral index."""
    video: Video
    metrics: VideoMetrics
    percentiles: Dict[str, int] = Field(default_factory=dict, description="metric -> 0..100 rank")
    z_scores: Dict[str, float] = Field(default_factory=dict)
    viral_index: float = Field(default=5.0, ge=0, le=10)
    is_viral: bool = False

    @property
    def id(self) -> str:
        return self.video.id


# ============================================================================
# Explorer
# ============================================================================

class ExplorerFilters(BaseModel):
    """Filters applied by VideoExplorerService.filter_videos"""
    date_start: Optional[date] = None
    date_end: Optional[date] = None
    duration: List[DurationBucket] = Field(default_factory=list)
    video_types: List[str] = Field(default_factory=list)
    themes: List[str] = Field(default_factory=list)
    cta_types: List[str] = Field(default_factory=list)
    editing_styles: List[str] = Field(default_factory=list)
    hook_types: List[str] = Field(default_factory=list)
    signals: List[Signal] = Field(default_factory=list)
    search: str = ""


class ExplorerResult(BaseModel):
    videos: List[ScoredVideo] = Field(default_factory=list)
    percentiles: Dict[str, PercentileBand] = Field(default_factory=dict)


class PerformanceBadge(BaseModel):
    """Catalogue-relative performance label"""
    label: str
    percentile: int = 0


class MetricDelta(BaseModel):
    """Group A vs group B for one metric"""
    group_a: float = 0.0
    group_b: float = 0.0
    delta_abs: float = 0.0
    delta_pct: float = 0.0


class GroupComparison(BaseModel):
    count_a: int = 0
    count_b: int = 0
    metrics: Dict[str, MetricDelta] = Field(default_factory=dict)


# ============================================================================
# Dashboard
# ============================================================================

class SparkPoint(BaseModel):
    x: str
    y: float


class KPIValue(BaseModel):
    """A headline number with its change against the comparison window"""
    value: float = 0.0
    delta_abs: float = 0.0
    delta_pct: float = 0.0
    spark: List[SparkPoint] = Field(default_factory=list)


class VideoAggregation(BaseModel):
    total_views: int = 0
    total_likes: int = 0
    total_comments: int = 0
    total_shares: int = 0
    total_saves: int = 0
    total_new_followers: int = 0
    total_traffic_for_you: int = 0
    total_traffic_profile: int = 0
    total_traffic_hashtag: int = 0
    total_traffic_sound: int = 0
    total_traffic_search: int = 0
    weighted_avg_time: float = 0.0
    weighted_duration: float = 0.0
    video_count: int = 0


class KPIDashboard(BaseModel):
    period: str
    followers_now: KPIValue = Field(default_factory=KPIValue)
    new_followers: KPIValue = Field(default_factory=KPIValue)
    followers_yield: KPIValue = Field(default_factory=KPIValue)
    retention_avg: KPIValue = Field(default_factory=KPIValue)
    saves_per_1k: KPIValue = Field(default_factory=KPIValue)
    for_you_share: KPIValue = Field(default_factory=KPIValue)


class FollowersPoint(BaseModel):
    date: str
    count: int = 0


class TopBottomItem(BaseModel):
    id: str
    title: str = "Untitled"
    retention: float = 0.0
    saves_per_1k: float = 0.0
    views: int = 0


class TopBottom(BaseModel):
    top: List[TopBottomItem] = Field(default_factory=list)
    bottom: List[TopBottomItem] = Field(default_factory=list)


class TrafficSlice(BaseModel):
    label: str
    value: float = Field(..., description="Share of total traffic, 0-100")


class AnalyticsSummary(BaseModel):
    """Catalogue totals for the overview command"""
    total_videos: int = 0
    total_views: int = 0
    total_likes: int = 0
    total_comments: int = 0
    total_shares: int = 0
    avg_views: int = 0
    avg_engagement: float = 0.0
    viral_count: int = 0
    top_performers: List[ScoredVideo] = Field(default_factory=list)
    recent_videos: List[ScoredVideo] = Field(default_factory=list)


# ============================================================================
# Normalisation & Detail
# ============================================================================

class NormalizedMetrics(BaseModel):
    views_norm: float = 0.0
    engagement_norm: float = 0.0
    followers_at_post: int = 0
    has_sufficient_data: bool = False
    viral_threshold: float = 0.0


class ViralityStatus(BaseModel):
    tier: str = Field(..., description="viral, good, medium or low")
    is_viral: bool = False
    badge: str = ""


class MetricComparison(BaseModel):
    """current vs reference: value is the reference, delta is current - reference"""
    value: float = 0.0
    delta: float = 0.0
    delta_pct: float = 0.0


class DetailInsights(BaseModel):
    worked: List[str] = Field(default_factory=list)
    improve: List[str] = Field(default_factory=list)
    actions: List[str] = Field(default_factory=list)


class VideoDetail(BaseModel):
    video: Video
    metrics: VideoMetrics
    vs_avg: Dict[str, MetricComparison] = Field(default_factory=dict)
    vs_top10: Dict[str, MetricComparison] = Field(default_factory=dict)
    insights: DetailInsights = Field(default_factory=DetailInsights)


# ============================================================================
# Content Patterns
# ============================================================================

class ContentPattern(BaseModel):
    category: str = Field(..., description="theme, cta, editing_style or hook_type")
    pattern: str
    video_count: int = 0
    avg_engagement: float = 0.0
    avg_views: float = 0.0
    improvement_pct: float = 0.0


class PerformanceScores(BaseModel):
    content_quality: int = 0
    viral_potential: int = 0
    monetization_readiness: int = 0
    overall_growth: int = 0


class PatternInsight(BaseModel):
    id: str
    type: str = Field(..., description="pattern, recommendation, opportunity or strategy")
    title: str
    description: str
    impact: str = "medium"
    confidence: int = 0
    metrics: Optional[Dict[str, str]] = None


# ============================================================================
# AI Outputs
# ============================================================================

class VideoInsights(BaseModel):
    """Claude analysis of a single video"""
    what_worked: List[str] = Field(default_factory=list)
    what_to_improve: List[str] = Field(default_factory=list)
    hook_ideas: List[str] = Field(default_factory=list)
    suggested_cta: str = ""
    next_experiment: str = ""
    confidence: int = Field(default=85, ge=0, le=100)
    source: str = Field(default="ai_analysis", description="ai_analysis or fallback")


class HistoricalSummary(BaseModel):
    """Catalogue averages and patterns fed to Claude generation prompts"""
    video_count: int = 0
    total_views: int = 0
    total_new_followers: int = 0
    avg_retention: float = 0.0
    avg_saves_per_1k: float = 0.0
    avg_f_per_1k: float = 0.0
    avg_for_you_percentage: float = 0.0
    avg_engagement_rate: float = 0.0
    optimal_duration_min: int = 15
    optimal_duration_max: int = 60
    best_hooks: List[str] = Field(default_factory=list, description="Opening words of above-average F/1k hooks")


class ScriptInsights(BaseModel):
    duration_recommendation: str = ""
    hook_strategy: str = ""
    expected_f1k: str = ""


class GeneratedScript(BaseModel):
    """Claude-written hook / development / CTA script"""
    hook: str
    development: str
    cta: str
    estimated_duration: str = ""
    insights: ScriptInsights = Field(default_factory=ScriptInsights)
    source: str = Field(default="ai", description="ai or fallback")


class VideoExample(BaseModel):
    title: str
    reason: str = ""
    metrics: str = ""


class StrategicInsights(BaseModel):
    """Claude answer to a strategy question about the account"""
    analysis: str
    recommendations: List[str] = Field(default_factory=list)
    video_examples: List[VideoExample] = Field(default_factory=list)
    note: Optional[str] = None
    source: str = Field(default="ai", description="ai or fallback")


class IdeaExample(BaseModel):
    """Indexed chunk that backs an idea"""
    content: str
    video_id: str
    metrics: Dict[str, float] = Field(default_factory=dict)


class ContentIdea(BaseModel):
    id: str
    type: IdeaType
    mode: IdeaMode
    text: str
    justification: str = ""
    confidence: float = Field(default=0.7, ge=0, le=1)
    examples: List[IdeaExample] = Field(default_factory=list)


class ContentIdeasResult(BaseModel):
    ideas: List[ContentIdea] = Field(default_factory=list)
    facets: Dict[str, List[str]] = Field(default_factory=dict)
    total_generated: int = 0
    source: str = Field(default="ai", description="ai or fallback")


class IdeaOutcome(BaseModel):
    """Feedback on a published idea"""
    idea_id: str
    idea_text: str
    idea_type: IdeaType
    idea_mode: IdeaMode
    outcome: IdeaOutcomeType
    published_video_id: Optional[str] = None
    expected_metrics: Optional[Dict[str, float]] = None
    actual_metrics: Optional[Dict[str, float]] = None
    feedback_notes: Optional[str] = None


class BrainChunk(BaseModel):
    content_type: str = Field(..., description="hook, guion or cta")
    section_tag: str = Field(..., description="hook_0_3s, setup, proof or cta_strong")
    content: str


class BrainSearchResult(BaseModel):
    id: Optional[str] = None
    video_id: str
    content_type: str
    content: str
    similarity: float = 0.0
    score: float = 0.0
    views: int = 0
    saves_per_1k: float = 0.0
    f_per_1k: float = 0.0
    retention_pct: float = 0.0
    section_tag: Optional[str] = None
    video_theme: Optional[str] = None
    published_date: Optional[str] = None


# ============================================================================
# Import
# ============================================================================

class ImportResult(BaseModel):
    success: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)
