"""
ContentPatternService - Which themes, CTAs, editing styles and hooks work.

Groups the catalogue by content attributes, compares each group's
engagement with the overall average and derives headline growth scores and
rule-based insights. Pure: operates on a list of videos already fetched.
"""

import logging
from collections import Counter, defaultdict
from typing import Dict, List, Optional, Sequence

from ..core.models import Video
from .metrics_service import MetricsService
from .models import ContentPattern, PatternInsight, PerformanceScores

logger = logging.getLogger(__name__)

MIN_GROUP_SIZE = 2
MAX_INSIGHTS = 6
RECENT_WINDOW = 10
VIRAL_POTENTIAL_VIEWS = 50_000
VIRAL_STRATEGY_VIEWS = 100_000
VIEWS_CAP = 1_000_000

GROUPED_FIELDS = (
    ("video_theme", "theme"),
    ("cta_type", "cta"),
    ("editing_style", "editing_style"),
)


def categorize_hook(hook: str) -> str:
    """
    Bucket a hook line by its opening word and cue words.

    Example:
        >>> categorize_hook("Why nobody tells you this")
        'Question Hook'
    """
    lower = hook.lower()
    words = lower.split(" ")
    first_word = words[0] if words else ""

    if any(w in lower for w in ("how", "tutorial", "learn")):
        return "How-to/Tutorial"
    if first_word in ("what", "why", "when", "where", "who"):
        return "Question Hook"
    if any(w in lower for w in ("don't", "never", "stop", "avoid")):
        return "Negative Hook"
    if first_word in ("did", "can", "will", "are"):
        return "Direct Question"
    if first_word in ("this", "here", "check"):
        return "Demonstrative"
    return "Statement Hook"


class ContentPatternService:
    """Content pattern analysis over videos that have views."""

    def __init__(self, videos: Sequence[Video]):
        ordered = sorted(videos, key=lambda v: v.published_date or "", reverse=True)
        self.videos: List[Video] = [v for v in ordered if v.views > 0]
        self._engagement: Dict[str, float] = {
            v.id: MetricsService.engagement_rate(v) for v in self.videos
        }

    def _avg_engagement(self, videos: Sequence[Video]) -> float:
        if not videos:
            return 0.0
        return sum(self._engagement[v.id] for v in videos) / len(videos)

    def _group_metrics(self, groups: Dict[str, List[Video]], category: str) -> List[ContentPattern]:
        overall = self._avg_engagement(self.videos)
        patterns = []
        for value, members in groups.items():
            if len(members) < MIN_GROUP_SIZE:
                continue
            avg_engagement = self._avg_engagement(members)
            patterns.append(ContentPattern(
                category=category,
                pattern=value,
                video_count=len(members),
                avg_engagement=avg_engagement,
                avg_views=sum(v.views for v in members) / len(members),
                improvement_pct=((avg_engagement - overall) / overall * 100) if overall > 0 else 0.0,
            ))
        return patterns

    def analyze_content_patterns(self) -> List[ContentPattern]:
        """Groups of two or more videos, best average engagement first."""
        patterns: List[ContentPattern] = []

        for field, category in GROUPED_FIELDS:
            groups: Dict[str, List[Video]] = defaultdict(list)
            for video in self.videos:
                value = getattr(video, field)
                if value:
                    groups[value].append(video)
            patterns.extend(self._group_metrics(groups, category))

        hook_groups: Dict[str, List[Video]] = defaultdict(list)
        for video in self.videos:
            if video.hook:
                hook_groups[categorize_hook(video.hook)].append(video)
        patterns.extend(self._group_metrics(hook_groups, "hook_type"))

        return sorted(patterns, key=lambda p: p.avg_engagement, reverse=True)

    def calculate_performance_scores(self) -> PerformanceScores:
        """
        Headline 0-100 scores.

        - content_quality: engagement and average watch time
        - viral_potential: share of the 10 most recent videos above 50K views
          and their average (capped) views
        - monetization_readiness: saves and profile traffic share
        - overall_growth: 0.3 / 0.4 / 0.3 weighted blend of the three
        """
        if not self.videos:
            return PerformanceScores()

        count = len(self.videos)
        avg_engagement = self._avg_engagement(self.videos)
        avg_watch_time = sum(v.avg_time_watched for v in self.videos) / count
        content_quality = min(100.0, avg_engagement * 50 + avg_watch_time / 30 * 50)

        recent = self.videos[:RECENT_WINDOW]
        viral_recent = sum(1 for v in recent if v.views > VIRAL_POTENTIAL_VIEWS)
        avg_recent_views = sum(min(v.views, VIEWS_CAP) for v in recent) / len(recent)
        viral_potential = min(100.0, viral_recent / len(recent) * 40 + avg_recent_views / 10000 * 60)

        avg_saves = sum(v.saves for v in self.videos) / count
        profile_traffic = sum(v.traffic_profile for v in self.videos)
        total_traffic = sum(
            v.traffic_for_you + v.traffic_follow + v.traffic_hashtag
            + v.traffic_sound + v.traffic_profile + v.traffic_search
            for v in self.videos
        )
        profile_pct = profile_traffic / total_traffic * 100 if total_traffic > 0 else 0.0
        monetization = min(100.0, avg_saves / 100 * 40 + profile_pct * 60)

        overall = content_quality * 0.3 + viral_potential * 0.4 + monetization * 0.3

        return PerformanceScores(
            content_quality=int(content_quality + 0.5),
            viral_potential=int(viral_potential + 0.5),
            monetization_readiness=int(monetization + 0.5),
            overall_growth=int(overall + 0.5),
        )

    @staticmethod
    def _most_common(videos: Sequence[Video], field: str) -> Optional[str]:
        counts = Counter(getattr(v, field) for v in videos if getattr(v, field))
        if not counts:
            return None
        return counts.most_common(1)[0][0]

    def generate_insights(self) -> List[PatternInsight]:
        """At most six insights drawn from patterns and scores."""
        insights: List[PatternInsight] = []
        patterns = self.analyze_content_patterns()

        best_theme = next((p for p in patterns if p.category == "theme"), None)
        if best_theme:
            improvement = round(best_theme.improvement_pct)
            insights.append(PatternInsight(
                id="best-theme",
                type="pattern",
                title=f"{best_theme.pattern} content performs best",
                description=(
                    f"Your {best_theme.pattern.lower()} videos get {best_theme.avg_engagement:.1f}% "
                    f"engagement rate, {improvement}% above average."
                ),
                impact="high",
                confidence=min(95, best_theme.video_count * 15),
                metrics={
                    "improvement": f"+{improvement}%",
                    "baseline": f"{best_theme.avg_engagement:.1f}% engagement",
                },
            ))

        best_cta = next((p for p in patterns if p.category == "cta"), None)
        if best_cta:
            insights.append(PatternInsight(
                id="best-cta",
                type="recommendation",
                title=f'"{best_cta.pattern}" CTA drives most engagement',
                description=(
                    f'Videos with "{best_cta.pattern}" call-to-action get '
                    f"{best_cta.avg_views:,.0f} average views."
                ),
                impact="medium",
                confidence=min(90, best_cta.video_count * 12),
                metrics={
                    "improvement": f"+{round(best_cta.improvement_pct)}%",
                    "baseline": f"{best_cta.avg_views:,.0f} avg views",
                },
            ))

        if self.calculate_performance_scores().monetization_readiness < 60:
            insights.append(PatternInsight(
                id="monetization-opportunity",
                type="opportunity",
                title="Improve monetization readiness",
                description="Focus on content that drives profile visits and saves to increase monetization potential.",
                impact="high",
                confidence=85,
            ))

        viral_videos = [v for v in self.videos if v.views > VIRAL_STRATEGY_VIEWS]
        if viral_videos:
            common_theme = self._most_common(viral_videos, "video_theme")
            if common_theme:
                share = round(len(viral_videos) / len(self.videos) * 100)
                insights.append(PatternInsight(
                    id="viral-pattern",
                    type="strategy",
                    title=f"{common_theme} content has viral potential",
                    description=f"{share}% of your videos went viral, most of them {common_theme.lower()}-themed.",
                    impact="high",
                    confidence=80,
                ))

        return insights[:MAX_INSIGHTS]
