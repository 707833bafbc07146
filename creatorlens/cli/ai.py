"""
AI CLI Commands

Claude video insights, scripts and strategy, OpenAI content ideas, idea
feedback and the account context that steers generation.
"""

import json
import logging
from typing import Optional

import click
from pydantic import ValidationError

from ..core.models import IdeaMode, IdeaOutcomeType, IdeaType
from ..services.account_context_service import AccountContextService
from ..services.ai_generate_service import AIGenerateService
from ..services.ai_insights_service import AIInsightsService
from ..services.content_ideas_service import ContentIdeasService
from ..services.explorer_service import VideoExplorerService
from ..services.idea_feedback_service import IdeaFeedbackService
from ..services.models import IdeaOutcome


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

logger = logging.getLogger(__name__)


def parse_metrics(value: Optional[str]) -> Optional[dict]:
    """JSON object of metric -> number, e.g. '{"saves_per_1k": 3.1}'."""
    if not value:
        return None
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"Invalid JSON: {e}")
    if not isinstance(parsed, dict):
        raise click.BadParameter("Expected a JSON object")
    try:
        return {k: float(v) for k, v in parsed.items()}
    except (TypeError, ValueError) as e:
        raise click.BadParameter(f"Metric values must be numbers: {e}")


@click.group(name="ai")
def ai_group():
    """AI insights and content ideas."""
    pass


@ai_group.command(name="insights")
@click.argument("video_id")
def insights(video_id: str):
    """
    Ask Claude for a critique of one video.

    Example:
        creatorlens ai insights 3f1c...
    """
    click.echo("📊 Scoring catalogue...")
    result = VideoExplorerService().load_videos()
    scored = next((s for s in result.videos if s.id == video_id), None)

    if scored is None:
        click.echo(f"❌ Video not found: {video_id}", err=True)
        raise click.Abort()

    click.echo(f"🤖 Analyzing: {scored.video.title or 'Untitled'}")
    analysis = AIInsightsService().analyze_video(scored)

    if analysis.source == "fallback":
        click.echo("⚠️  AI unavailable, showing generic insights")

    click.echo(f"\n{'='*60}")
    click.echo(f"💡 VIDEO INSIGHTS (confidence {analysis.confidence}%)")
    click.echo(f"{'='*60}\n")

    for title, items in (
        ("✅ WHAT WORKED", analysis.what_worked),
        ("⚠️  WHAT TO IMPROVE", analysis.what_to_improve),
        ("🪝 A/B HOOK IDEAS", analysis.hook_ideas),
    ):
        click.echo(title)
        for item in items:
            click.echo(f"  - {item}")
        click.echo()

    click.echo(f"📣 SUGGESTED CTA: {analysis.suggested_cta}")
    click.echo(f"🧪 NEXT EXPERIMENT: {analysis.next_experiment}")


@ai_group.command(name="ideas")
@click.option("--type", "idea_type", type=click.Choice([t.value for t in IdeaType]), default=IdeaType.HOOK.value, help="Idea type")
@click.option("--mode", type=click.Choice([m.value for m in IdeaMode]), default=IdeaMode.MIXED.value, help="Exploit proven patterns, explore new angles, or both")
@click.option("--query", help="Topic to generate ideas about")
@click.option("--top-k", type=int, help="Maximum ideas to show")
def ideas(idea_type: str, mode: str, query: Optional[str], top_k: Optional[int]):
    """
    Generate hooks, scripts or CTAs grounded in your best content.

    Example:
        creatorlens ai ideas --type hook --mode exploit --query "ahorro"
    """
    result = ContentIdeasService().generate_ideas(idea_type, mode=mode, query=query, top_k=top_k)

    if result.source == "fallback":
        click.echo("⚠️  AI unavailable, showing generic ideas")

    if not result.ideas:
        click.echo("No ideas generated")
        return

    click.echo(f"\n💡 {result.total_generated} {idea_type} ideas\n")
    for idea in result.ideas:
        click.echo(f"[{idea.mode.value.upper()}] {idea.text}  ({idea.confidence:.0%})")
        click.echo(f"    id: {idea.id}")
        if idea.justification:
            click.echo(f"    why: {idea.justification}")
        for example in idea.examples:
            click.echo(f"    ↳ \"{example.content[:60]}\" ({example.metrics.get('saves_per_1k', 0):.1f} S/1K)")
        click.echo()

    if result.facets.get("themes"):
        click.echo(f"Themes in top examples: {', '.join(result.facets['themes'])}")


@ai_group.command(name="feedback")
@click.option("--idea-id", required=True, help="Idea id from `ai ideas`")
@click.option("--text", "idea_text", required=True, help="Idea text")
@click.option("--type", "idea_type", type=click.Choice([t.value for t in IdeaType]), required=True, help="Idea type")
@click.option("--mode", "idea_mode", type=click.Choice([IdeaMode.EXPLOIT.value, IdeaMode.EXPLORE.value]), required=True, help="Idea mode")
@click.option("--outcome", type=click.Choice([o.value for o in IdeaOutcomeType]), required=True, help="How the idea performed")
@click.option("--video-id", help="Published video id")
@click.option("--expected", help='Expected metrics as JSON, e.g. \'{"saves_per_1k": 2}\'')
@click.option("--actual", help='Actual metrics as JSON, e.g. \'{"saves_per_1k": 3.4, "f_per_1k": 1.2}\'')
@click.option("--notes", help="Free-form notes")
def feedback(
    idea_id: str,
    idea_text: str,
    idea_type: str,
    idea_mode: str,
    outcome: str,
    video_id: Optional[str],
    expected: Optional[str],
    actual: Optional[str],
    notes: Optional[str]
):
    """Record how a published idea performed."""
    record = IdeaOutcome(
        idea_id=idea_id,
        idea_text=idea_text,
        idea_type=IdeaType(idea_type),
        idea_mode=IdeaMode(idea_mode),
        outcome=IdeaOutcomeType(outcome),
        published_video_id=video_id,
        expected_metrics=parse_metrics(expected),
        actual_metrics=parse_metrics(actual),
        feedback_notes=notes,
    )
    IdeaFeedbackService().record_outcome(record)
    click.echo(f"✅ Recorded {outcome} for idea {idea_id}")


@ai_group.command(name="feedback-history")
def feedback_history():
    """Recent idea feedback."""
    history = IdeaFeedbackService().get_feedback_history()
    if not history:
        click.echo("No feedback yet")
        return
    for row in history:
        click.echo(
            f"{str(row.get('created_at') or '')[:10]}  [{row.get('outcome')}] "
            f"{row.get('idea_type')}: {(row.get('idea_text') or '')[:60]}"
        )


# ============================================================================
# Account context
# ============================================================================

@ai_group.group(name="context")
def context_group():
    """Account context used by AI generation."""
    pass


@context_group.command(name="show")
def context_show():
    """Show the stored account context."""
    context = AccountContextService().get_context()
    if context is None:
        click.echo("No account context yet. Create one with `ai context set`.")
        return

    click.echo(f"\n{'='*60}")
    click.echo("🧭 ACCOUNT CONTEXT")
    click.echo(f"{'='*60}\n")
    click.echo(f"Mission:      {context.mission or '-'}")
    click.echo(f"Positioning:  {context.positioning or '-'}")
    click.echo(f"Tone:         {context.tone_guide or '-'}")
    click.echo(f"North star:   {context.north_star_metric or '-'}")
    for label, values in (
        ("Pillars", context.brand_pillars),
        ("Themes", context.content_themes),
        ("Secondary", context.secondary_metrics),
        ("Bets", context.strategic_bets),
        ("Never say", context.negative_keywords),
        ("Do not", context.do_not_do),
    ):
        click.echo(f"{label + ':':<13} {', '.join(values) if values else '-'}")
    for persona in context.audience_personas:
        click.echo(f"Persona:      {persona.get('persona', '')}")
    if context.weights:
        weights = ", ".join(f"{k} {v:.0%}" for k, v in context.weights.items())
        click.echo(f"Weights:      {weights}")


@context_group.command(name="set")
@click.option("--mission", help="Account mission")
@click.option("--positioning", help="How the account is positioned")
@click.option("--tone", "tone_guide", help="Tone guide")
@click.option("--north-star", "north_star_metric", help="North star metric, e.g. f_per_1k")
@click.option("--pillar", "brand_pillars", multiple=True, help="Brand pillar (repeatable)")
@click.option("--theme", "content_themes", multiple=True, help="Content theme (repeatable)")
@click.option("--secondary-metric", "secondary_metrics", multiple=True, help="Secondary metric (repeatable)")
@click.option("--bet", "strategic_bets", multiple=True, help="Strategic bet (repeatable)")
@click.option("--negative", "negative_keywords", multiple=True, help="Word or concept to never use (repeatable)")
@click.option("--do-not", "do_not_do", multiple=True, help="Thing to avoid (repeatable)")
@click.option("--personas", help='Audience personas as JSON, e.g. \'[{"persona": "Students", "pains": ["debt"]}]\'')
def context_set(personas: Optional[str], **fields):
    """
    Create or update the account context.

    Only the given options change; everything else keeps its stored value.

    Example:
        creatorlens ai context set --mission "Teach money habits" --negative crypto --negative "get rich"
    """
    updates = {k: (list(v) if isinstance(v, tuple) else v) for k, v in fields.items() if v}
    if personas:
        try:
            updates["audience_personas"] = json.loads(personas)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"Invalid JSON: {e}", param_hint="--personas")

    if not updates:
        click.echo("❌ Nothing to update", err=True)
        raise click.Abort()

    service = AccountContextService()
    current = service.get_context()
    merged = current.model_dump() if current else {}
    merged.update(updates)

    try:
        saved = service.save_context(merged)
    except ValidationError as e:
        click.echo(f"❌ Invalid account context: {e}", err=True)
        raise click.Abort()

    click.echo(f"✅ Account context saved ({', '.join(sorted(updates))})")
    if saved.negative_keywords:
        click.echo(f"   Never say: {', '.join(saved.negative_keywords)}")


# ============================================================================
# Scripts and strategy
# ============================================================================

@ai_group.command(name="script")
@click.argument("description")
@click.option("--vertical", default="general", help="Content vertical, e.g. finance")
@click.option("--no-history", is_flag=True, help="Do not feed historical metrics to the prompt")
def script(description: str, vertical: str, no_history: bool):
    """
    Write a hook / development / CTA script with Claude.

    Example:
        creatorlens ai script "3 errores al ahorrar" --vertical finanzas
    """
    try:
        result = AIGenerateService().generate_script(description, vertical=vertical, use_history=not no_history)
    except ValueError as e:
        click.echo(f"❌ {e}", err=True)
        raise click.Abort()

    if result.source == "fallback":
        click.echo("⚠️  AI unavailable, showing a template script")

    click.echo(f"\n{'='*60}")
    click.echo(f"🎬 SCRIPT ({result.estimated_duration or '?'}s)")
    click.echo(f"{'='*60}\n")
    click.echo(f"🪝 HOOK:\n{result.hook}\n")
    click.echo(f"📖 DEVELOPMENT:\n{result.development}\n")
    click.echo(f"📣 CTA:\n{result.cta}\n")

    insights = result.insights
    if insights.duration_recommendation:
        click.echo(f"⏱️  {insights.duration_recommendation}")
    if insights.hook_strategy:
        click.echo(f"🎯 {insights.hook_strategy}")
    if insights.expected_f1k:
        click.echo(f"📈 Expected F/1k: {insights.expected_f1k}")


@ai_group.command(name="strategy")
@click.argument("question")
def strategy(question: str):
    """
    Ask Claude a strategy question answered with your own data.

    Example:
        creatorlens ai strategy "¿Qué tipo de video me trae más seguidores?"
    """
    try:
        result = AIGenerateService().generate_strategy(question)
    except ValueError as e:
        click.echo(f"❌ {e}", err=True)
        raise click.Abort()

    if result.source == "fallback":
        click.echo("⚠️  AI unavailable, showing general advice")

    click.echo(f"\n{'='*60}")
    click.echo("🧠 STRATEGY")
    click.echo(f"{'='*60}\n")
    click.echo(result.analysis)
    click.echo()
    for i, recommendation in enumerate(result.recommendations, 1):
        click.echo(f"{i}. {recommendation}")
    if result.video_examples:
        click.echo("\n📹 Reference videos:")
        for example in result.video_examples:
            click.echo(f"  - {example.title}: {example.reason} ({example.metrics})")
    if result.note:
        click.echo(f"\n📝 {result.note}")
