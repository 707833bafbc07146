"""
ContentIdeasService - OpenAI-generated hooks, scripts and CTAs.

Grounds each generation in three kinds of context:
- the account context (mission, pillars, tone, banned words)
- the creator's best indexed chunks from tiktok_brain_vectors
- previous idea feedback (wins the model should lean on)

Falls back to canned ideas, tagged source="fallback", when generation fails.
"""

import json
import logging
import re
import time
from typing import Any, Dict, List, Optional, Union

from openai import OpenAI
from supabase import Client

from ..core.config import Config
from ..core.database import get_supabase_client, get_creator_user_id
from ..core.models import IdeaMode, IdeaOutcomeType, IdeaType
from .models import ContentIdea, ContentIdeasResult, IdeaExample

logger = logging.getLogger(__name__)

IDEAS_PER_REQUEST = 5
MAX_EXAMPLES = 20
MIN_EXAMPLE_SAVES_PER_1K = 1.5
FEEDBACK_WINDOW = 50
MAX_TOKENS = 2000
TEMPERATURE = 0.7

# Brain chunk types that feed each idea type
CONTENT_TYPES: Dict[IdeaType, List[str]] = {
    IdeaType.HOOK: ["hook"],
    IdeaType.GUION: ["guion"],
    IdeaType.CTA: ["cta"],
}

FALLBACK_IDEAS: Dict[IdeaType, List[Dict[str, str]]] = {
    IdeaType.HOOK: [
        {"text": "Nobody tells you this about {topic}...", "mode": "explore"},
        {"text": "3 mistakes I made with {topic} so you don't have to", "mode": "exploit"},
        {"text": "Did you know that {topic} can change in 30 seconds?", "mode": "explore"},
    ],
    IdeaType.GUION: [
        {"text": "Problem in one line, three quick proofs, one takeaway to save", "mode": "exploit"},
        {"text": "Before / after story with the turning point in the middle", "mode": "explore"},
    ],
    IdeaType.CTA: [
        {"text": "Follow for part 2", "mode": "exploit"},
        {"text": "Save this so you have it when you need it", "mode": "exploit"},
        {"text": "Comment the word 'guide' and I'll make the next video about it", "mode": "explore"},
    ],
}


def parse_json_response(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse JSON from a model response, handling markdown code blocks."""
    if not text:
        return None

    json_match = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text)
    if json_match:
        text = json_match.group(1)

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse JSON response: {e}")
        return None


def example_rank(row: Dict[str, Any]) -> float:
    """saves/1K + F/1k + retention/10 of a brain chunk row"""
    return (
        (row.get("saves_per_1k") or 0)
        + (row.get("f_per_1k") or 0)
        + (row.get("retention_pct") or 0) / 10
    )


def _join(values: Optional[List[str]], default: str) -> str:
    return ", ".join(values) if values else default


def build_system_prompt(
    idea_type: IdeaType,
    context: Optional[Dict[str, Any]],
    examples: List[Dict[str, Any]],
    wins: List[Dict[str, Any]]
) -> str:
    """System prompt with account context, top examples and past wins."""
    context = context or {}
    lines = [
        f"You are an expert in viral TikTok content for this specific account. Generate {idea_type.value} ideas that:",
        "1. Fit the account context:",
        f"   - Mission: {context.get('mission') or 'Not defined'}",
        f"   - Brand pillars: {_join(context.get('brand_pillars'), 'Not defined')}",
        f"   - Positioning: {context.get('positioning') or 'Not defined'}",
        f"   - Content themes: {_join(context.get('content_themes'), 'General')}",
        f"   - Tone guide: {context.get('tone_guide') or 'Professional but approachable'}",
        f"   - North star metric: {context.get('north_star_metric') or 'engagement'}",
        f"   - Strategic bets: {_join(context.get('strategic_bets'), 'Not defined')}",
        f"   - NEVER use these words or concepts: {_join(context.get('negative_keywords'), 'No restrictions')}",
        f"   - Do not: {_join(context.get('do_not_do'), 'Nothing specific')}",
        "2. Build on patterns from real high-engagement examples.",
        "3. Are labelled EXPLOIT (proven patterns) or EXPLORE (new angles).",
        "4. Include a clear justification of why they could work.",
        "",
        "High-performing examples:",
    ]
    for ex in examples:
        lines.append(
            f'- "{ex.get("content")}" (saves: {ex.get("saves_per_1k") or 0}/1k, '
            f'follows: {ex.get("f_per_1k") or 0}/1k)'
        )
    if wins:
        lines.append("")
        lines.append("Previous winning ideas: " + "; ".join(w.get("idea_text", "") for w in wins))

    lines.extend([
        "",
        "Respond ONLY with valid JSON in this format:",
        '{"ideas": [{"text": "...", "justification": "...", "mode": "exploit" or "explore", '
        '"confidence": number between 0.0 and 1.0}]}',
    ])
    return "\n".join(lines)


def match_examples(idea_text: str, examples: List[Dict[str, Any]], limit: int = 3) -> List[IdeaExample]:
    """Examples sharing at least one word longer than 3 characters with the idea."""
    idea_words = [w for w in idea_text.lower().split(" ") if len(w) > 3]
    matched = []
    for ex in examples:
        example_words = (ex.get("content") or "").lower().split(" ")
        if any(word in ew for word in idea_words for ew in example_words):
            matched.append(IdeaExample(
                content=ex.get("content") or "",
                video_id=str(ex.get("video_id")),
                metrics={
                    "saves_per_1k": float(ex.get("saves_per_1k") or 0),
                    "f_per_1k": float(ex.get("f_per_1k") or 0),
                    "retention_pct": float(ex.get("retention_pct") or 0),
                    "views": float(ex.get("views") or 0),
                },
            ))
        if len(matched) >= limit:
            break
    return matched


def build_facets(examples: List[Dict[str, Any]]) -> Dict[str, List[str]]:
    """Distinct themes / CTA types / editing styles seen in the examples, first-seen order."""
    def distinct(field: str, limit: int) -> List[str]:
        seen: List[str] = []
        for ex in examples:
            value = ex.get(field)
            if value and value not in seen:
                seen.append(value)
        return seen[:limit]

    return {
        "themes": distinct("video_theme", 10),
        "cta_types": distinct("cta_type", 5),
        "editing_styles": distinct("editing_style", 5),
    }


class ContentIdeasService:
    """Generates content ideas with OpenAI chat completions."""

    def __init__(
        self,
        supabase: Optional[Client] = None,
        user_id: Optional[str] = None,
        openai_api_key: Optional[str] = None,
        model: Optional[str] = None
    ):
        self.supabase = supabase or get_supabase_client()
        self.user_id = get_creator_user_id(user_id)

        api_key = openai_api_key or Config.OPENAI_API_KEY
        if not api_key:
            logger.warning("OPENAI_API_KEY not set - content ideas will use fallback content")
            self.openai = None
        else:
            self.openai = OpenAI(api_key=api_key)
        self.model = model or Config.get_model("ideas")

    def _ensure_openai(self) -> None:
        if not self.openai:
            raise ValueError("OPENAI_API_KEY is not configured")

    # =========================================================================
    # Context
    # =========================================================================

    def get_account_context(self) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("tiktok_account_contexts").select("*").eq(
            "user_id", self.user_id
        ).limit(1).execute()
        return result.data[0] if result.data else None

    def get_winning_feedback(self, idea_type: IdeaType) -> List[Dict[str, Any]]:
        """Recent ideas of this type that were marked as wins."""
        result = self.supabase.table("content_ideas_feedback").select("*").eq(
            "user_id", self.user_id
        ).eq("idea_type", idea_type.value).order(
            "created_at", desc=True
        ).limit(FEEDBACK_WINDOW).execute()
        return [f for f in (result.data or []) if f.get("outcome") == IdeaOutcomeType.WIN.value]

    def get_high_performing_examples(self, idea_type: IdeaType) -> List[Dict[str, Any]]:
        """
        Best non-duplicate chunks of the matching content type.

        Ranked by saves/1K + F/1k + retention/10, top 20.
        """
        result = self.supabase.table("tiktok_brain_vectors").select(
            "video_id, content, saves_per_1k, f_per_1k, retention_pct, views, "
            "video_theme, cta_type, editing_style"
        ).eq("user_id", self.user_id).in_(
            "content_type", CONTENT_TYPES[idea_type]
        ).eq("is_duplicate", False).gt("saves_per_1k", MIN_EXAMPLE_SAVES_PER_1K).execute()

        return sorted(result.data or [], key=example_rank, reverse=True)[:MAX_EXAMPLES]

    # =========================================================================
    # Generation
    # =========================================================================

    def _to_ideas(self, parsed: Dict[str, Any], idea_type: IdeaType) -> List[ContentIdea]:
        stamp = int(time.time() * 1000)
        ideas = []
        for index, raw in enumerate(parsed.get("ideas") or []):
            text = (raw.get("text") or "").strip()
            if not text:
                continue
            mode = raw.get("mode") if raw.get("mode") in (IdeaMode.EXPLOIT.value, IdeaMode.EXPLORE.value) else IdeaMode.EXPLORE.value
            try:
                confidence = float(raw.get("confidence") or 0.7)
            except (TypeError, ValueError):
                confidence = 0.7
            ideas.append(ContentIdea(
                id=f"idea_{stamp}_{index}",
                type=idea_type,
                mode=IdeaMode(mode),
                text=text,
                justification=raw.get("justification") or "",
                confidence=max(0.0, min(1.0, confidence)),
            ))
        return ideas

    def fallback_ideas(self, idea_type: IdeaType, query: Optional[str] = None) -> ContentIdeasResult:
        topic = query or "your niche"
        ideas = [
            ContentIdea(
                id=f"fallback_{idea_type.value}_{i}",
                type=idea_type,
                mode=IdeaMode(item["mode"]),
                text=item["text"].format(topic=topic),
                justification="Generic pattern that tends to work on TikTok",
                confidence=0.5,
            )
            for i, item in enumerate(FALLBACK_IDEAS[idea_type])
        ]
        return ContentIdeasResult(ideas=ideas, total_generated=len(ideas), source="fallback")

    def generate_ideas(
        self,
        idea_type: Union[IdeaType, str],
        mode: Union[IdeaMode, str] = IdeaMode.MIXED,
        query: Optional[str] = None,
        top_k: Optional[int] = None
    ) -> ContentIdeasResult:
        """
        Generate ideas of one type.

        Args:
            idea_type: hook, guion or cta
            mode: exploit / explore keeps only that mode; mixed keeps all
            query: Optional topic to steer generation
            top_k: Maximum ideas returned

        Returns:
            ContentIdeasResult; source="fallback" when generation failed

        Raises:
            ValueError: For an unknown idea type or mode
        """
        idea_type = IdeaType(idea_type)
        mode = IdeaMode(mode)

        try:
            self._ensure_openai()
            context = self.get_account_context()
            wins = self.get_winning_feedback(idea_type)
            examples = self.get_high_performing_examples(idea_type)

            user_message = (
                f"Generate {IDEAS_PER_REQUEST} {idea_type.value} ideas about: {query}"
                if query else
                f"Generate {IDEAS_PER_REQUEST} {idea_type.value} ideas based on the account context and its winning patterns"
            )

            response = self.openai.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": build_system_prompt(idea_type, context, examples, wins)},
                    {"role": "user", "content": user_message},
                ],
                temperature=TEMPERATURE,
                max_tokens=MAX_TOKENS,
            )
            parsed = parse_json_response(response.choices[0].message.content)
            if not parsed:
                raise ValueError("Model returned no parseable ideas")

            ideas = self._to_ideas(parsed, idea_type)
            if mode != IdeaMode.MIXED:
                ideas = [i for i in ideas if i.mode == mode]
            if top_k:
                ideas = ideas[:top_k]
            for idea in ideas:
                idea.examples = match_examples(idea.text, examples)

            logger.info(f"Generated {len(ideas)} {idea_type.value} ideas")
            return ContentIdeasResult(
                ideas=ideas,
                facets=build_facets(examples),
                total_generated=len(ideas),
                source="ai",
            )
        except Exception as e:
            logger.error(f"Error generating content ideas: {e}")
            return self.fallback_ideas(idea_type, query)
