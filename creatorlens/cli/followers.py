"""
Followers CLI Commands

Record daily follower counts and normalise video reach by audience size.
"""

import logging
from datetime import datetime
from typing import Optional

import click

from ..services.followers_service import FollowersService
from ..services.normalization_service import NormalizationService
from ..services.video_service import VideoService


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

logger = logging.getLogger(__name__)


@click.group(name="followers")
def followers_group():
    """Track follower counts."""
    pass


@followers_group.command(name="today")
def today():
    """Show today's follower entry, creating it if missing."""
    entry = FollowersService().get_today()
    click.echo(f"👥 {entry.entry_date}: {entry.followers_count:,} followers")


@followers_group.command(name="set")
@click.argument("count", type=int)
@click.option("--date", "entry_date", type=click.DateTime(formats=["%Y-%m-%d"]), help="Entry date (default: today)")
def set_count(count: int, entry_date: Optional[datetime]):
    """
    Record the follower COUNT for a date.

    Example:
        creatorlens followers set 5230 --date 2025-03-01
    """
    service = FollowersService()
    day = entry_date.date() if entry_date else service.today()

    try:
        saved = service.upsert_for_date(day, count)
    except ValueError as e:
        click.echo(f"❌ {e}", err=True)
        raise click.Abort()

    if saved:
        click.echo(f"✅ {day.isoformat()}: {count:,} followers")
    else:
        click.echo(f"❌ Could not save follower count for {day.isoformat()}", err=True)
        raise click.Abort()


@followers_group.command(name="series")
@click.option("--days", type=int, default=30, help="Number of days ending today")
def series(days: int):
    """Daily follower series with gaps filled forward."""
    points = FollowersService().get_series(days)
    if not points:
        click.echo("No follower data")
        return
    for point in points:
        click.echo(f"{point.date}  {point.count:>10,}")


@followers_group.command(name="normalize")
@click.argument("video_id")
def normalize(video_id: str):
    """Views and engagement per follower at the time VIDEO_ID was posted."""
    try:
        video = VideoService().get_video(video_id)
    except LookupError as e:
        click.echo(f"❌ {e}", err=True)
        raise click.Abort()

    service = NormalizationService()
    normalized = service.normalize_video(video)
    status = service.get_virality_status(normalized)

    click.echo(f"🎬 {video.title or 'Untitled'}")
    click.echo(f"Followers at post:     {normalized.followers_at_post:,}")
    click.echo(f"Views per follower:    {normalized.views_norm:.3f}")
    click.echo(f"Engagement per follower: {normalized.engagement_norm:.4f}")
    click.echo(f"Status: {status.badge} ({status.tier})")
