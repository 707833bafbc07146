"""
Video CLI Commands

Explore, inspect, compare and export the creator's video catalogue.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

import click

from ..core.models import DurationBucket, Signal
from ..services.models import ExplorerFilters, ScoredVideo
from ..services.explorer_service import VideoExplorerService, SORT_OPTIONS, HOOK_TYPES
from ..services.video_service import VideoService
from ..services.video_detail_service import VideoDetailService
from ..services.normalization_service import NormalizationService
from ..services.content_pattern_service import ContentPatternService
from ..services.saved_view_service import SavedViewService
from ..utils.csv_export import export_videos_csv, default_filename


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

logger = logging.getLogger(__name__)

# CLI option -> video attribute used by `videos compare`
GROUP_FIELDS = {
    "theme": "video_theme",
    "cta": "cta_type",
    "style": "editing_style",
    "type": "video_type",
}


def filter_options(func):
    """Shared explorer filter options."""
    options = [
        click.option("--from", "date_start", type=click.DateTime(formats=["%Y-%m-%d"]), help="Published on or after (YYYY-MM-DD)"),
        click.option("--to", "date_end", type=click.DateTime(formats=["%Y-%m-%d"]), help="Published on or before (YYYY-MM-DD)"),
        click.option("--duration", multiple=True, type=click.Choice([d.value for d in DurationBucket]), help="Duration bucket (repeatable)"),
        click.option("--type", "video_types", multiple=True, help="Video type (repeatable)"),
        click.option("--theme", "themes", multiple=True, help="Theme (repeatable)"),
        click.option("--cta", "cta_types", multiple=True, help="CTA type (repeatable)"),
        click.option("--style", "editing_styles", multiple=True, help="Editing style (repeatable)"),
        click.option("--hook-type", "hook_types", multiple=True, type=click.Choice(HOOK_TYPES), help="Hook type (repeatable)"),
        click.option("--signal", "signals", multiple=True, type=click.Choice([s.value for s in Signal]), help="Percentile signal (repeatable)"),
        click.option("--search", default="", help="Text search over title, hook and script"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_filters(
    date_start: Optional[datetime] = None,
    date_end: Optional[datetime] = None,
    duration: Sequence[str] = (),
    video_types: Sequence[str] = (),
    themes: Sequence[str] = (),
    cta_types: Sequence[str] = (),
    editing_styles: Sequence[str] = (),
    hook_types: Sequence[str] = (),
    signals: Sequence[str] = (),
    search: str = "",
) -> ExplorerFilters:
    return ExplorerFilters(
        date_start=date_start.date() if date_start else None,
        date_end=date_end.date() if date_end else None,
        duration=[DurationBucket(d) for d in duration],
        video_types=list(video_types),
        themes=list(themes),
        cta_types=list(cta_types),
        editing_styles=list(editing_styles),
        hook_types=list(hook_types),
        signals=[Signal(s) for s in signals],
        search=search,
    )


def print_video_row(item: ScoredVideo, population: Sequence[ScoredVideo]):
    video = item.video
    metrics = item.metrics
    badge = VideoExplorerService.performance_badge(item, population)
    viral = " 🔥" if item.is_viral else ""
    click.echo(
        f"{(video.published_date or '')[:10]}  {(video.title or 'Untitled')[:40]:40s}  "
        f"{video.views:>9,} views  ER {metrics.engagement_rate:5.2f}%  "
        f"S/1K {metrics.saves_per_1k:5.1f}  F/1k {metrics.f_per_1k:5.1f}  "
        f"VI {item.viral_index:4.1f}  [{badge.label}]{viral}"
    )
    click.echo(f"    id: {video.id}")


def explore(filters: ExplorerFilters, sort_by: str) -> Tuple[List[ScoredVideo], List[ScoredVideo]]:
    """(matching videos sorted, whole scored catalogue)"""
    explorer = VideoExplorerService()
    result = explorer.load_videos()
    matching = explorer.filter_videos(result.videos, filters)
    return explorer.sort_videos(matching, sort_by), result.videos


@click.group(name="videos")
def videos_group():
    """Explore and analyze your video catalogue."""
    pass


@videos_group.command(name="list")
@filter_options
@click.option("--sort", "sort_by", type=click.Choice(SORT_OPTIONS), default="published_date_desc", help="Sort order")
@click.option("--view", "view_name", help="Apply a saved view by name (overrides other filters)")
@click.option("--limit", type=int, default=50, help="Maximum number of videos to show")
def list_videos(sort_by: str, view_name: Optional[str], limit: int, **filter_kwargs):
    """
    List videos with explorer filters and sorting.

    Example:
        creatorlens videos list --theme finanzas --signal top_saves --sort saves_per_1k_desc
    """
    filters = build_filters(**filter_kwargs)

    if view_name:
        views = {v.name: v for v in SavedViewService().list_views()}
        if view_name not in views:
            click.echo(f"❌ Saved view not found: {view_name}", err=True)
            raise click.Abort()
        view = views[view_name]
        filters = ExplorerFilters(**view.filters)
        sort_by = view.sort_by or sort_by
        click.echo(f"📁 Using saved view: {view.name}")

    click.echo("📊 Loading videos...")
    matching, population = explore(filters, sort_by)

    if not matching:
        click.echo("No videos match these filters")
        return

    click.echo(f"✅ {len(matching)} of {len(population)} videos\n")
    for item in matching[:limit]:
        print_video_row(item, population)

    if len(matching) > limit:
        click.echo(f"\n... and {len(matching) - limit} more (use --limit)")


@videos_group.command(name="show")
@click.argument("video_id")
def show_video(video_id: str):
    """Show metrics, comparisons and rule-based insights for one video."""
    try:
        detail = VideoDetailService().load(video_id)
    except LookupError as e:
        click.echo(f"❌ {e}", err=True)
        raise click.Abort()

    video = detail.video
    metrics = detail.metrics

    click.echo(f"\n{'='*60}")
    click.echo(f"🎬 {video.title or 'Untitled'}")
    click.echo(f"{'='*60}\n")
    click.echo(f"Published: {(video.published_date or 'N/A')[:10]}")
    click.echo(f"Views: {video.views:,}  Likes: {video.likes:,}  Comments: {video.comments:,}  Shares: {video.shares:,}")
    click.echo(f"Duration: {video.duration_seconds}s")
    if video.hook:
        click.echo(f"Hook: \"{video.hook}\"")
    click.echo()

    labels = {
        "engagement_rate": "Engagement %",
        "retention_rate": "Retention %",
        "saves_per_1k": "Saves / 1K",
        "for_you_percentage": "For You %",
        "f_per_1k": "Follows / 1K",
    }
    click.echo(f"{'METRIC':15s} {'VALUE':>8s} {'VS AVG':>16s} {'VS TOP 10%':>16s}")
    click.echo("-" * 60)
    for key, label in labels.items():
        avg = detail.vs_avg[key]
        top = detail.vs_top10[key]
        click.echo(
            f"{label:15s} {metrics.get(key):8.2f} "
            f"{avg.delta:+8.2f} ({avg.delta_pct:+5.0f}%) "
            f"{top.delta:+8.2f} ({top.delta_pct:+5.0f}%)"
        )
    click.echo()

    normalization = NormalizationService()
    normalized = normalization.normalize_video(video)
    status = normalization.get_virality_status(normalized)
    if normalized.has_sufficient_data:
        click.echo(
            f"Followers at post: {normalized.followers_at_post:,}  "
            f"Views/follower: {normalized.views_norm:.3f}  [{status.badge}]"
        )
    else:
        click.echo(f"ℹ️  {status.badge}")
    click.echo()

    sections = (
        ("✅ WHAT WORKED", detail.insights.worked),
        ("⚠️  TO IMPROVE", detail.insights.improve),
        ("🎯 ACTIONS", detail.insights.actions),
    )
    for title, items in sections:
        if items:
            click.echo(title)
            for item in items:
                click.echo(f"  - {item}")
            click.echo()


@videos_group.command(name="summary")
def summary():
    """Catalogue totals, top performers and recent videos."""
    analytics = VideoService().get_analytics()

    if not analytics.total_videos:
        click.echo("No videos yet. Import a TikTok Studio CSV with: creatorlens import-csv FILE")
        return

    click.echo(f"\n{'='*60}")
    click.echo("📊 CATALOGUE SUMMARY")
    click.echo(f"{'='*60}\n")
    click.echo(f"Videos:          {analytics.total_videos:,}")
    click.echo(f"Total views:     {analytics.total_views:,}")
    click.echo(f"Average views:   {analytics.avg_views:,}")
    click.echo(f"Avg engagement:  {analytics.avg_engagement:.2f}%")
    click.echo(f"100K+ videos:    {analytics.viral_count}")
    click.echo()

    click.echo("🏆 TOP PERFORMERS")
    for item in analytics.top_performers:
        click.echo(f"  {item.metrics.performance_score:6.1f}  {(item.video.title or 'Untitled')[:50]}")
    click.echo()

    click.echo("🕒 RECENT")
    for item in analytics.recent_videos:
        click.echo(f"  {(item.video.published_date or '')[:10]}  {(item.video.title or 'Untitled')[:50]}")


@videos_group.command(name="export")
@filter_options
@click.option("--sort", "sort_by", type=click.Choice(SORT_OPTIONS), default="published_date_desc", help="Sort order")
@click.option("--output", help="Output CSV file path (default: videos_export_<date>.csv)")
def export_videos(sort_by: str, output: Optional[str], **filter_kwargs):
    """
    Export filtered videos with derived metrics to CSV.

    Example:
        creatorlens videos export --from 2025-01-01 --output q1.csv
    """
    matching, _ = explore(build_filters(**filter_kwargs), sort_by)

    if not matching:
        click.echo("❌ No videos to export", err=True)
        raise click.Abort()

    output = output or default_filename()
    export_videos_csv(matching, output)
    click.echo(f"✅ Exported {len(matching)} videos to {output}")


@videos_group.command(name="compare")
@click.option("--by", "field", type=click.Choice(list(GROUP_FIELDS)), required=True, help="Attribute to group by")
@click.option("--a", "value_a", required=True, help="Value for group A")
@click.option("--b", "value_b", required=True, help="Value for group B")
def compare(field: str, value_a: str, value_b: str):
    """
    Compare average metrics of two groups.

    Example:
        creatorlens videos compare --by theme --a finanzas --b productividad
    """
    _, population = explore(ExplorerFilters(), "published_date_desc")
    attribute = GROUP_FIELDS[field]
    group_a = [s for s in population if getattr(s.video, attribute) == value_a]
    group_b = [s for s in population if getattr(s.video, attribute) == value_b]

    if not group_a or not group_b:
        click.echo(f"❌ Both groups need videos (A: {len(group_a)}, B: {len(group_b)})", err=True)
        raise click.Abort()

    comparison = VideoExplorerService.compare_groups(group_a, group_b)

    click.echo(f"\n{field}: {value_a} ({comparison.count_a} videos) vs {value_b} ({comparison.count_b} videos)\n")
    click.echo(f"{'METRIC':20s} {'A':>10s} {'B':>10s} {'DELTA':>10s} {'%':>8s}")
    click.echo("-" * 62)
    for key, delta in comparison.metrics.items():
        click.echo(
            f"{key:20s} {delta.group_a:10.2f} {delta.group_b:10.2f} "
            f"{delta.delta_abs:+10.2f} {delta.delta_pct:+7.1f}%"
        )


@videos_group.command(name="patterns")
def patterns():
    """Content patterns, performance scores and strategy insights."""
    service = ContentPatternService(VideoService().list_videos())

    found = service.analyze_content_patterns()
    scores = service.calculate_performance_scores()
    insights = service.generate_insights()

    click.echo(f"\n{'='*60}")
    click.echo("🧩 CONTENT PATTERNS")
    click.echo(f"{'='*60}\n")

    if found:
        for pattern in found:
            click.echo(
                f"[{pattern.category}] {pattern.pattern}: {pattern.video_count} videos, "
                f"{pattern.avg_engagement:.2f}% ER, {pattern.avg_views:,.0f} avg views, "
                f"{pattern.improvement_pct:+.0f}% vs overall"
            )
    else:
        click.echo("Not enough videos per group to detect patterns")
    click.echo()

    click.echo("📈 PERFORMANCE SCORES")
    click.echo(f"  Content quality:        {scores.content_quality}/100")
    click.echo(f"  Viral potential:        {scores.viral_potential}/100")
    click.echo(f"  Monetization readiness: {scores.monetization_readiness}/100")
    click.echo(f"  Overall growth:         {scores.overall_growth}/100")
    click.echo()

    if insights:
        click.echo("💡 INSIGHTS")
        for insight in insights:
            click.echo(f"  [{insight.type} | {insight.impact} impact | {insight.confidence}%] {insight.title}")
            click.echo(f"    {insight.description}")


# ============================================================================
# Saved views
# ============================================================================

@videos_group.group(name="views")
def views_group():
    """Manage saved explorer views."""
    pass


@views_group.command(name="list")
def list_views():
    """List saved views."""
    views = SavedViewService().list_views()
    if not views:
        click.echo("No saved views")
        return
    for view in views:
        active = {k: v for k, v in view.filters.items() if v}
        click.echo(f"📁 {view.name}  (sort: {view.sort_by}, id: {view.id})")
        if active:
            click.echo(f"    filters: {active}")


@views_group.command(name="save")
@click.argument("name")
@filter_options
@click.option("--sort", "sort_by", type=click.Choice(SORT_OPTIONS), default="published_date_desc", help="Sort order")
@click.option("--per-1k", "normalize_by_1k", is_flag=True, help="Show metrics normalised per 1K views")
def save_view(name: str, sort_by: str, normalize_by_1k: bool, **filter_kwargs):
    """Save the given filters under NAME."""
    filters: Dict = build_filters(**filter_kwargs).model_dump(mode="json", exclude_defaults=True)
    try:
        view = SavedViewService().save_view(name, filters, sort_by=sort_by, normalize_by_1k=normalize_by_1k)
    except ValueError as e:
        click.echo(f"❌ {e}", err=True)
        raise click.Abort()
    click.echo(f"✅ Saved view: {view.name}")


@views_group.command(name="rename")
@click.argument("view_id")
@click.argument("name")
def rename_view(view_id: str, name: str):
    """Rename a saved view."""
    try:
        view = SavedViewService().rename_view(view_id, name)
    except ValueError as e:
        click.echo(f"❌ {e}", err=True)
        raise click.Abort()
    if view is None:
        click.echo(f"❌ Saved view not found: {view_id}", err=True)
        raise click.Abort()
    click.echo(f"✅ Renamed to: {view.name}")


@views_group.command(name="delete")
@click.argument("view_id")
def delete_view(view_id: str):
    """Delete a saved view."""
    SavedViewService().delete_view(view_id)
    click.echo(f"✅ Deleted view: {view_id}")
