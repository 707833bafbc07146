"""
Pydantic models for database tables
"""

from typing import Optional, Dict, Any, List
from datetime import date
from pydantic import BaseModel, Field, field_validator
from enum import Enum


# ============================================================================
# Enums
# ============================================================================

class Period(str, Enum):
    """Dashboard reporting windows"""
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"

    @property
    def days(self) -> int:
        return int(self.value[:-1])


class DurationBucket(str, Enum):
    """Video length buckets used by the explorer filters"""
    SHORT = "short"    # < 20s
    MEDIUM = "medium"  # 20-40s
    LONG = "long"      # > 40s


class Signal(str, Enum):
    """Explorer shortcut filters based on percentile rank"""
    TOP_RETENTION = "top_retention"
    TOP_SAVES = "top_saves"
    HIGH_FOR_YOU = "high_for_you"
    TOP_F1K = "top_f1k"
    HIGH_VELOCITY = "high_velocity"


class IdeaType(str, Enum):
    HOOK = "hook"
    GUION = "guion"
    CTA = "cta"


class IdeaMode(str, Enum):
    EXPLOIT = "exploit"
    EXPLORE = "explore"
    MIXED = "mixed"


class IdeaOutcomeType(str, Enum):
    WIN = "win"
    LOSS = "loss"
    NEUTRAL = "neutral"


# ============================================================================
# Base Models
# ============================================================================

COUNTER_FIELDS = (
    "views", "likes", "comments", "shares", "saves", "new_followers", "reach",
    "traffic_for_you", "traffic_follow", "traffic_profile", "traffic_hashtag",
    "traffic_sound", "traffic_search", "duration_seconds", "total_time_watched",
)

RATE_FIELDS = ("avg_time_watched", "full_video_watch_rate", "engagement_rate")


class Video(BaseModel):
    """
    Row of the videos table.

    Counters missing in storage read as 0. Stored engagement_rate is whatever
    the CSV export carried; derived metrics are always recomputed from the
    counters (see MetricsService).
    """
    id: str
    user_id: Optional[str] = None
    title: Optional[str] = None
    published_date: Optional[str] = None

    # Counters
    views: int = 0
    likes: int = 0
    comments: int = 0
    shares: int = 0
    saves: int = 0
    new_followers: int = 0
    reach: int = 0

    # Traffic sources
    traffic_for_you: int = 0
    traffic_follow: int = 0
    traffic_profile: int = 0
    traffic_hashtag: int = 0
    traffic_sound: int = 0
    traffic_search: int = 0

    # Watch time
    duration_seconds: int = 0
    total_time_watched: int = 0
    avg_time_watched: float = 0.0
    full_video_watch_rate: float = 0.0
    engagement_rate: float = 0.0

    # Content metadata
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    external_link: Optional[str] = None
    video_type: Optional[str] = None
    hook: Optional[str] = None
    guion: Optional[str] = None
    video_theme: Optional[str] = None
    cta_type: Optional[str] = None
    editing_style: Optional[str] = None

    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator(*COUNTER_FIELDS, mode="before")
    @classmethod
    def _counter_or_zero(cls, v: Any) -> int:
        if v is None or v == "":
            return 0
        return int(float(v))

    @field_validator(*RATE_FIELDS, mode="before")
    @classmethod
    def _rate_or_zero(cls, v: Any) -> float:
        if v is None or v == "":
            return 0.0
        return float(v)

    @field_validator("id", "published_date", "created_at", "updated_at", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        if isinstance(v, date):
            return v.isoformat()
        return str(v)

    @property
    def published_day(self) -> Optional[date]:
        """Publication date without time component"""
        if not self.published_date:
            return None
        try:
            return date.fromisoformat(self.published_date[:10])
        except ValueError:
            return None


class FollowerEntry(BaseModel):
    """Row of the followers_history table"""
    user_id: Optional[str] = None
    entry_date: str
    followers_count: int = Field(default=0, ge=0)

    @field_validator("entry_date", mode="before")
    @classmethod
    def _iso_date(cls, v: Any) -> str:
        if isinstance(v, date):
            return v.isoformat()
        return str(v)[:10]


class SavedView(BaseModel):
    """Row of the saved_views table"""
    id: Optional[str] = None
    user_id: Optional[str] = None
    name: str
    filters: Dict[str, Any] = Field(default_factory=dict)
    sort_by: Optional[str] = None
    normalize_by_1k: bool = False
    created_at: Optional[str] = None


class AccountContext(BaseModel):
    """
    Row of the tiktok_account_contexts table (one per user).

    Strategy notes that steer AI generation. weights holds the metric
    weights learned from idea feedback.
    """
    user_id: Optional[str] = None
    mission: Optional[str] = None
    brand_pillars: List[str] = Field(default_factory=list)
    positioning: Optional[str] = None
    audience_personas: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="[{persona, pains: [...], desires: [...]}]"
    )
    do_not_do: List[str] = Field(default_factory=list)
    tone_guide: Optional[str] = None
    content_themes: List[str] = Field(default_factory=list)
    north_star_metric: Optional[str] = None
    secondary_metrics: List[str] = Field(default_factory=list)
    strategic_bets: List[str] = Field(default_factory=list)
    negative_keywords: List[str] = Field(default_factory=list)
    weights: Optional[Dict[str, float]] = None
    updated_at: Optional[str] = None

    @field_validator(
        "brand_pillars", "audience_personas", "do_not_do", "content_themes",
        "secondary_metrics", "strategic_bets", "negative_keywords",
        mode="before"
    )
    @classmethod
    def _list_or_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("updated_at", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)
