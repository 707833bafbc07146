"""
AIGenerateService - Claude script generation and strategy answers.

Each prompt is enriched with three blocks of account knowledge:
- the account context (mission, tone, banned words, metric weights)
- the best indexed brain chunks, ranked by saves/1K + F/1k + retention/10
- a summary of the creator's historical metrics

Responses are JSON; anything that cannot be produced or parsed degrades to
canned content tagged source="fallback".
"""

import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

import anthropic
from supabase import Client

from ..core.config import Config
from ..core.database import get_supabase_client, get_creator_user_id
from ..core.models import AccountContext, Video
from .account_context_service import AccountContextService
from .content_ideas_service import _join, example_rank, parse_json_response
from .idea_feedback_service import DEFAULT_WEIGHTS
from .metrics_service import MetricsService
from .models import (
    GeneratedScript,
    HistoricalSummary,
    ScriptInsights,
    StrategicInsights,
    VideoExample,
    VideoMetrics,
)
from .video_service import VideoService

logger = logging.getLogger(__name__)

MAX_TOKENS = 4000
BRAIN_EXAMPLES = 8
TOP_PERFORMERS = 10

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F-\x9F]")

SCRIPT_FORMAT = """Required structure:
1. HOOK (first 3-5 seconds) - must grab attention immediately
2. DEVELOPMENT (main body) - keep the pace, a new beat every 3-5 seconds
3. FINAL CTA - optimised to convert viewers into followers

Respond ONLY with valid JSON in this format:
{"script": {"hook": "...", "development": "...", "cta": "...",
 "estimated_duration": "seconds",
 "insights": {"duration_recommendation": "...", "hook_strategy": "...", "expected_f1k": "..."}}}"""

STRATEGY_FORMAT = """Respond with:
1. A clear analysis grounded in the real data
2. 3-5 specific, actionable recommendations
3. Examples of my own videos as reference
4. Key metrics to track

Respond ONLY with valid JSON in this format:
{"analysis": "...", "recommendations": ["...", "..."],
 "video_examples": [{"title": "...", "reason": "...", "metrics": "..."}]}"""

FALLBACK_RECOMMENDATIONS = [
    "Open with the payoff in the first 2 seconds",
    "Keep one idea per video and cut everything else",
    "Close with a specific follow reason, not a generic CTA",
    "Repeat the formats of your top saves/1K videos before testing new ones",
]


def summarize_history(videos: Sequence[Video]) -> HistoricalSummary:
    """
    Averages over the catalogue plus patterns of above-average F/1k videos.

    Duration range defaults to 15-60s when no top performer has a duration.
    """
    if not videos:
        return HistoricalSummary()

    rows = [(v, MetricsService.compute(v)) for v in videos]
    n = len(rows)

    def avg(key: str) -> float:
        return sum(m.get(key) for _, m in rows) / n

    summary = HistoricalSummary(
        video_count=n,
        total_views=sum(v.views for v, _ in rows),
        total_new_followers=sum(v.new_followers for v, _ in rows),
        avg_retention=avg("retention_rate"),
        avg_saves_per_1k=avg("saves_per_1k"),
        avg_f_per_1k=avg("f_per_1k"),
        avg_for_you_percentage=avg("for_you_percentage"),
        avg_engagement_rate=avg("engagement_rate"),
    )

    top = sorted(
        (r for r in rows if r[1].f_per_1k > summary.avg_f_per_1k),
        key=lambda r: r[1].f_per_1k,
        reverse=True,
    )[:TOP_PERFORMERS]

    hooks: List[str] = []
    for video, _ in top:
        hook = (video.hook or "")[:20] or "No hook"
        if hook not in hooks:
            hooks.append(hook)
    summary.best_hooks = hooks

    durations = [v.duration_seconds for v, _ in top if v.duration_seconds > 0]
    if durations:
        summary.optimal_duration_min = min(durations)
        summary.optimal_duration_max = max(durations)

    return summary


def format_personas(personas: List[Dict[str, Any]]) -> str:
    return " | ".join(
        f"{p.get('persona', '')} (pains: {_join(p.get('pains'), '-')}, "
        f"desires: {_join(p.get('desires'), '-')})"
        for p in personas
    )


def build_context_block(
    context: Optional[AccountContext],
    examples: List[Dict[str, Any]],
    summary: Optional[HistoricalSummary]
) -> str:
    """Account context, brain patterns and history appended to every prompt."""
    parts = []

    if context:
        weights = context.weights or DEFAULT_WEIGHTS
        parts.append("\n".join([
            "=== ACCOUNT CONTEXT (CRITICAL) ===",
            f"Mission: {context.mission or 'Not defined'}",
            f"Brand pillars: {_join(context.brand_pillars, 'Not defined')}",
            f"Positioning: {context.positioning or 'Not defined'}",
            f"Target audience: {format_personas(context.audience_personas) or 'Not defined'}",
            f"Content themes: {_join(context.content_themes, 'General')}",
            f"Tone guide: {context.tone_guide or 'Professional but approachable'}",
            f"North star metric: {context.north_star_metric or 'engagement'}",
            f"Secondary metrics: {_join(context.secondary_metrics, 'Not defined')}",
            f"Strategic bets: {_join(context.strategic_bets, 'Not defined')}",
            "",
            f"CRITICAL - NEVER use these words or concepts: {_join(context.negative_keywords, 'No restrictions')}",
            f"CRITICAL - Do not: {_join(context.do_not_do, 'Nothing specific')}",
            "",
            "Metric weights:",
            f"- Retention: {weights.get('retention', 0) * 100:.0f}%",
            f"- Saves: {weights.get('saves', 0) * 100:.0f}%",
            f"- Follows: {weights.get('follows', 0) * 100:.0f}%",
        ]))

    if examples:
        lines = ["=== TIKTOK BRAIN - REAL WINNING PATTERNS ===", "Your highest-performing content:"]
        for i, ex in enumerate(examples[:BRAIN_EXAMPLES], 1):
            lines.extend([
                f"{i}. TYPE: {(ex.get('content_type') or 'content').upper()}",
                f"   TEXT: \"{(ex.get('content') or '')[:120]}\"",
                f"   METRICS: F/1k: {float(ex.get('f_per_1k') or 0):.1f} | "
                f"Retention: {float(ex.get('retention_pct') or 0):.1f}% | "
                f"Saves/1k: {float(ex.get('saves_per_1k') or 0):.1f}",
                f"   DURATION: {ex.get('duration_seconds') or 'N/A'}s",
            ])
        lines.append("Use these patterns as the reference for what already works on this account.")
        parts.append("\n".join(lines))

    if summary and summary.video_count:
        parts.append("\n".join([
            "=== HISTORICAL DATA SUMMARY ===",
            f"- {summary.video_count} videos analysed",
            f"- Average retention: {summary.avg_retention:.1f}%",
            f"- Average F/1k: {summary.avg_f_per_1k:.1f}",
            f"- Average saves/1k: {summary.avg_saves_per_1k:.1f}",
            f"- Average For You: {summary.avg_for_you_percentage:.1f}%",
        ]))

    parts.append("\n".join([
        "=== FINAL INSTRUCTIONS ===",
        "1. ALWAYS respect the account context and the winning patterns",
        "2. NEVER use words or concepts from the negative list",
        "3. Keep the tone defined in the guide",
        "4. Optimise for the prioritised metrics",
        "5. Build on the content patterns that have worked",
    ]))
    return "\n\n".join(parts)


def _top_by_f1k(scored: Sequence[Tuple[Video, VideoMetrics]], count: int, reverse: bool = True):
    return sorted(scored, key=lambda r: r[1].f_per_1k, reverse=reverse)[:count]


def build_script_prompt(
    description: str,
    vertical: str,
    summary: Optional[HistoricalSummary],
    scored: Sequence[Tuple[Video, VideoMetrics]]
) -> str:
    lines = [f'Generate a structured TikTok script about: "{description}"', f"Vertical: {vertical}"]
    if summary and summary.video_count:
        lines.extend([
            "",
            "BASED ON THIS REAL HISTORICAL DATA:",
            f"- Retention: {summary.avg_retention:.1f}%",
            f"- F/1k: {summary.avg_f_per_1k:.1f}",
            f"- Optimal duration: {summary.optimal_duration_min}-{summary.optimal_duration_max}s",
            "Successful reference videos:",
        ])
        for video, _ in _top_by_f1k(scored, 2):
            lines.append(f'- "{video.title or "Untitled"}" (Hook: "{(video.hook or "No hook")[:50]}")')
        lines.append("GENERATE A SCRIPT that applies these winning patterns.")
    lines.extend(["", SCRIPT_FORMAT])
    return "\n".join(lines)


def build_strategy_prompt(
    question: str,
    summary: Optional[HistoricalSummary],
    scored: Sequence[Tuple[Video, VideoMetrics]]
) -> str:
    lines = [f'Analyse this strategic TikTok question: "{question}"']
    if summary and summary.video_count:
        def describe(rows):
            return [
                f'{i}. "{v.title or "Untitled"}" - F/1k: {m.f_per_1k:.1f}, '
                f"Retention: {m.retention_rate:.1f}%, Views: {v.views:,}"
                for i, (v, m) in enumerate(rows, 1)
            ]

        lines.extend([
            "",
            "USE THIS REAL HISTORICAL DATA FOR YOUR ANALYSIS:",
            f"- {summary.video_count} videos published",
            f"- {summary.total_views:,} total views",
            f"- {summary.total_new_followers:,} followers gained",
            f"- Average retention: {summary.avg_retention:.1f}%",
            f"- Average F/1k: {summary.avg_f_per_1k:.1f}",
            "",
            "Top 3 videos by F/1k:",
            *describe(_top_by_f1k(scored, 3)),
            "",
            "Bottom 3 videos by F/1k:",
            *describe(_top_by_f1k(scored, 3, reverse=False)),
            "",
            STRATEGY_FORMAT,
        ])
    else:
        lines.extend([
            "",
            "No historical data is available. Give general but useful advice.",
            'Respond ONLY with valid JSON: {"analysis": "...", "recommendations": ["...", "..."], "note": "..."}',
        ])
    return "\n".join(lines)


def parse_script(parsed: Optional[Dict[str, Any]]) -> GeneratedScript:
    """
    Raises:
        ValueError: When the response has no usable script
    """
    script = (parsed or {}).get("script")
    if not isinstance(script, dict) or not all(script.get(k) for k in ("hook", "development", "cta")):
        raise ValueError("Response has no complete script")
    insights = script.get("insights") if isinstance(script.get("insights"), dict) else {}
    return GeneratedScript(
        hook=str(script["hook"]).strip(),
        development=str(script["development"]).strip(),
        cta=str(script["cta"]).strip(),
        estimated_duration=str(script.get("estimated_duration") or ""),
        insights=ScriptInsights(**{k: str(v) for k, v in insights.items() if k in ScriptInsights.model_fields}),
        source="ai",
    )


def parse_strategy(parsed: Optional[Dict[str, Any]]) -> StrategicInsights:
    """
    Raises:
        ValueError: When the response has no analysis
    """
    if not parsed or not parsed.get("analysis"):
        raise ValueError("Response has no analysis")
    examples = [
        VideoExample(
            title=str(ex.get("title") or "Untitled"),
            reason=str(ex.get("reason") or ""),
            metrics=str(ex.get("metrics") or ""),
        )
        for ex in (parsed.get("video_examples") or [])
        if isinstance(ex, dict)
    ]
    return StrategicInsights(
        analysis=str(parsed["analysis"]).strip(),
        recommendations=[str(r) for r in (parsed.get("recommendations") or [])],
        video_examples=examples,
        note=parsed.get("note"),
        source="ai",
    )


def fallback_script(description: str) -> GeneratedScript:
    return GeneratedScript(
        hook=f"Nobody tells you this about {description}...",
        development=(
            "State the problem in one line, then give three quick points, one every "
            "3-5 seconds, each with a concrete example from your own experience."
        ),
        cta="Follow for part 2",
        estimated_duration="30-45",
        insights=ScriptInsights(
            duration_recommendation="30-45 seconds keeps pace without dropping retention",
            hook_strategy="Curiosity gap hook that promises hidden information",
            expected_f1k="Unknown without account data",
        ),
        source="fallback",
    )


def fallback_strategy() -> StrategicInsights:
    return StrategicInsights(
        analysis="AI analysis is unavailable. These are general TikTok growth practices.",
        recommendations=list(FALLBACK_RECOMMENDATIONS),
        note="Import your TikTok data and set the account context for account-specific analysis",
        source="fallback",
    )


class AIGenerateService:
    """Claude generation enriched with account context, brain and history."""

    def __init__(
        self,
        supabase: Optional[Client] = None,
        user_id: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        video_service: Optional[VideoService] = None
    ):
        self.supabase = supabase or get_supabase_client()
        self.user_id = get_creator_user_id(user_id)
        self.contexts = AccountContextService(self.supabase, self.user_id)
        self.video_service = video_service or VideoService(self.supabase, self.user_id)

        api_key = api_key or Config.ANTHROPIC_API_KEY
        if not api_key:
            logger.warning("ANTHROPIC_API_KEY not set - script and strategy generation will use fallback content")
            self.client = None
        else:
            self.client = anthropic.Anthropic(api_key=api_key)
        self.model = model or Config.get_model("generate")

    def _ensure_client(self):
        if self.client is None:
            raise ValueError("ANTHROPIC_API_KEY is not configured")

    # =========================================================================
    # Context
    # =========================================================================

    def get_brain_examples(self, limit: int = 12) -> List[Dict[str, Any]]:
        """Best indexed chunks with content."""
        result = self.supabase.table("tiktok_brain_vectors").select(
            "content, content_type, saves_per_1k, f_per_1k, retention_pct, views, duration_seconds"
        ).eq("user_id", self.user_id).eq("is_duplicate", False).execute()
        rows = [r for r in (result.data or []) if r.get("content")]
        return sorted(rows, key=example_rank, reverse=True)[:limit]

    def load_history(self) -> Tuple[Optional[HistoricalSummary], List[Tuple[Video, VideoMetrics]]]:
        """(summary, [(video, metrics)]); (None, []) when videos cannot be loaded."""
        try:
            videos = self.video_service.list_videos()
        except Exception as e:
            logger.warning(f"Could not load historical data: {e}")
            return None, []
        return summarize_history(videos), [(v, MetricsService.compute(v)) for v in videos]

    def enhance_prompt(self, prompt: str, summary: Optional[HistoricalSummary]) -> str:
        """Append the context block; the bare prompt is used if loading context fails."""
        try:
            context = self.contexts.get_context()
            examples = self.get_brain_examples()
        except Exception as e:
            logger.warning(f"Error enhancing prompt (continuing with original): {e}")
            return prompt
        return f"{prompt}\n\n{build_context_block(context, examples, summary)}"

    def _generate(self, prompt: str) -> str:
        self._ensure_client()
        response = self.client.messages.create(
            model=self.model,
            max_tokens=MAX_TOKENS,
            messages=[{"role": "user", "content": prompt}],
        )
        return _CONTROL_CHARS.sub("", response.content[0].text)

    # =========================================================================
    # Generation
    # =========================================================================

    def generate_script(
        self,
        description: str,
        vertical: str = "general",
        use_history: bool = True
    ) -> GeneratedScript:
        """
        Write a hook / development / CTA script.

        Raises:
            ValueError: For an empty description
        """
        if not description or not description.strip():
            raise ValueError("Script description is required")
        description = description.strip()

        try:
            summary, scored = self.load_history() if use_history else (None, [])
            prompt = self.enhance_prompt(build_script_prompt(description, vertical, summary, scored), summary)
            script = parse_script(parse_json_response(self._generate(prompt)))
            logger.info("Generated script")
            return script
        except Exception as e:
            logger.error(f"Error generating script: {e}")
            return fallback_script(description)

    def generate_strategy(self, question: str) -> StrategicInsights:
        """
        Answer a strategy question with the account's own data.

        Raises:
            ValueError: For an empty question
        """
        if not question or not question.strip():
            raise ValueError("Strategy question is required")

        try:
            summary, scored = self.load_history()
            prompt = self.enhance_prompt(build_strategy_prompt(question.strip(), summary, scored), summary)
            insights = parse_strategy(parse_json_response(self._generate(prompt)))
            logger.info("Generated strategic insights")
            return insights
        except Exception as e:
            logger.error(f"Error generating strategic insights: {e}")
            return fallback_strategy()
