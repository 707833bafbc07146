"""
AIInsightsService - Claude analysis of a single video.

Builds a prompt from the video's derived metrics, asks Claude for a
structured critique and parses the markdown sections into VideoInsights.
Any failure (missing key, API error, unparseable output) degrades to
canned insights tagged source="fallback".
"""

import logging
import re
from typing import Dict, List, Optional

import anthropic

from ..core.config import Config
from .models import ScoredVideo, VideoInsights

logger = logging.getLogger(__name__)

MAX_TOKENS = 1200

LIST_SECTIONS = ("what_worked", "what_to_improve", "hook_ideas")

# (section, header cues), checked in order
SECTION_HEADERS = (
    ("what_worked", ("what worked",)),
    ("what_to_improve", ("what to improve", "to improve")),
    ("hook_ideas", ("hook ideas", "a/b hook")),
    ("suggested_cta", ("suggested cta", "call-to-action")),
    ("next_experiment", ("next experiment", "experiment")),
)

DEFAULT_SECTIONS: Dict[str, object] = {
    "what_worked": [
        "The video holds viewers well through playback",
        "The content earns saves, a sign of perceived value",
        "For You distribution was effective",
    ],
    "what_to_improve": [
        "Sharpen the opening hook for more impact",
        "Add a clearer, earlier CTA",
        "Tighten the timing of key moments",
    ],
    "hook_ideas": [
        "Direct question hook to spark curiosity",
        "Immediate-benefit hook aimed at the audience",
        "Counter-intuitive hook to grab attention",
    ],
    "suggested_cta": "Follow for more content like this",
    "next_experiment": "Test hook variations in the next videos",
}

FALLBACK_INSIGHTS = VideoInsights(
    what_worked=[
        "Retention suggests a solid opening",
        "Content that earns saves shows perceived value",
        "For You distribution is driving organic reach",
    ],
    what_to_improve=[
        "Optimise the first 3 seconds for retention",
        "Move the CTA earlier to grow follows",
        "Try more direct hook variations",
    ],
    hook_ideas=[
        'Direct question hook: "Did you know...?"',
        'Benefit hook: "In 30 seconds you will learn..."',
        'Contrarian hook: "Everything you were told about X is wrong"',
    ],
    suggested_cta="Follow for more content like this",
    next_experiment="Test hooks of at most 2 seconds in the next 3 videos",
    confidence=75,
    source="fallback",
)

_BULLET_RE = re.compile(r"^(?:[-•*]|\d+\.)\s*")


def build_video_prompt(scored: ScoredVideo) -> str:
    """Interpolate a video's metrics into the analysis prompt."""
    video = scored.video
    metrics = scored.metrics

    lines = [
        "You are an expert TikTok content strategist analyzing a specific video's performance.",
        "",
        "Video Data:",
        f'- Title: "{video.title or "Untitled"}"',
        f"- Views: {video.views:,}",
        f"- Duration: {video.duration_seconds} seconds",
        f"- Engagement Rate: {metrics.engagement_rate:.1f}%",
        f"- Retention Rate: {metrics.retention_rate:.1f}%",
        f"- Saves per 1K: {metrics.saves_per_1k:.1f}",
        f"- Follows per 1K: {metrics.f_per_1k:.1f}",
        f"- For You Page %: {metrics.for_you_percentage:.1f}%",
        f"- Viral Index: {scored.viral_index:.1f}/10",
    ]
    if video.hook:
        lines.append(f'- Hook: "{video.hook}"')
    if video.video_type:
        lines.append(f"- Type: {video.video_type}")

    lines.extend([
        "",
        "Based on this performance data, provide SPECIFIC, ACTIONABLE insights in the following format:",
        "",
        "**What Worked:**",
        "- [Specific element that contributed to performance]",
        "- [Another specific successful element]",
        "- [Third successful element]",
        "",
        "**What to Improve:**",
        "- [Specific improvement suggestion with reasoning]",
        "- [Another improvement with actionable steps]",
        "- [Third improvement recommendation]",
        "",
        "**A/B Hook Ideas:**",
        "- [Specific alternative hook concept with example]",
        "- [Second hook variation with different approach]",
        "- [Third hook idea with tactical reasoning]",
        "",
        "**Suggested CTA:**",
        "[One specific call-to-action recommendation]",
        "",
        "**Next Experiment:**",
        "[One specific experiment to try in the next video]",
        "",
        "Make your recommendations specific to this video's metrics and performance patterns. "
        "Focus on actionable tactics, not generic advice.",
    ])
    return "\n".join(lines)


def _is_header(line: str) -> bool:
    return line.startswith(("**", "#")) or line.endswith(":")


def _section_for(line: str) -> Optional[str]:
    lower = line.lower()
    for section, cues in SECTION_HEADERS:
        if any(cue in lower for cue in cues):
            return section
    return None


def parse_video_insights(text: str) -> VideoInsights:
    """
    Split Claude's markdown answer into sections.

    Bullet lines feed the list sections; the first non-bullet line after the
    CTA / experiment header fills the single-line sections. Any section left
    empty gets a default.
    """
    sections: Dict[str, object] = {key: [] for key in LIST_SECTIONS}
    sections["suggested_cta"] = ""
    sections["next_experiment"] = ""
    current: Optional[str] = None

    for raw in (text or "").splitlines():
        line = raw.strip()
        if not line:
            continue

        if _is_header(line):
            section = _section_for(line)
            if section:
                current = section
                continue

        if current is None:
            continue

        content = _BULLET_RE.sub("", line).strip().strip("*").strip()
        if not content:
            continue

        if current in LIST_SECTIONS:
            if _BULLET_RE.match(line):
                sections[current].append(content)
        elif not sections[current]:
            sections[current] = content

    merged = {
        key: sections[key] or DEFAULT_SECTIONS[key]
        for key in DEFAULT_SECTIONS
    }
    return VideoInsights(confidence=85, source="ai_analysis", **merged)


class AIInsightsService:
    """Claude-backed per-video insights with a canned fallback."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        """
        Initialize AIInsightsService.

        Args:
            api_key: Optional API key (defaults to ANTHROPIC_API_KEY)
            model: Claude model (defaults to the configured insights model)
        """
        api_key = api_key or Config.ANTHROPIC_API_KEY
        if not api_key:
            logger.warning("ANTHROPIC_API_KEY not set - video insights will use fallback content")
            self.client = None
        else:
            self.client = anthropic.Anthropic(api_key=api_key)
        self.model = model or Config.get_model("insights")

    def _ensure_client(self):
        if self.client is None:
            raise ValueError("ANTHROPIC_API_KEY is not configured")

    def analyze_video(self, scored: ScoredVideo) -> VideoInsights:
        """
        Ask Claude for insights on a scored video.

        Never raises: errors are logged and replaced by FALLBACK_INSIGHTS.
        """
        try:
            self._ensure_client()
            response = self.client.messages.create(
                model=self.model,
                max_tokens=MAX_TOKENS,
                messages=[{"role": "user", "content": build_video_prompt(scored)}],
            )
            text = response.content[0].text
            insights = parse_video_insights(text)
            logger.info(f"Generated insights for video {scored.video.id}")
            return insights
        except Exception as e:
            logger.error(f"Error generating video insights: {e}")
            return FALLBACK_INSIGHTS.model_copy(deep=True)
