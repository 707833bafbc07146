"""
Brain CLI Commands

Index the creator's hooks, scripts and CTAs and search them semantically.
"""

import logging
from datetime import datetime
from typing import Optional, Tuple

import click
from tqdm import tqdm

from ..services.brain_service import BrainService


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

logger = logging.getLogger(__name__)


@click.group(name="brain")
def brain_group():
    """Semantic index over your content."""
    pass


@brain_group.command(name="index")
@click.option("--video-id", help="Index a single video (default: reindex everything)")
def index(video_id: Optional[str]):
    """
    Build or refresh the content index.

    Example:
        creatorlens brain index
    """
    service = BrainService()

    if video_id:
        try:
            stored = service.index_video_by_id(video_id)
        except LookupError as e:
            click.echo(f"❌ {e}", err=True)
            raise click.Abort()
        click.echo(f"✅ Indexed {stored} chunks for video {video_id}")
        return

    videos = service.video_service.list_videos()
    click.echo(f"🧠 Indexing {len(videos)} videos...")
    with tqdm(total=len(videos), desc="Indexing videos") as pbar:
        indexed = service.reindex_all(progress=pbar.update)
    click.echo(f"✅ Indexed {indexed} of {len(videos)} videos")


@brain_group.command(name="search")
@click.argument("query")
@click.option("--top-k", type=int, default=10, help="Number of results")
@click.option("--content-type", "content_types", multiple=True, type=click.Choice(["hook", "guion", "cta"]), help="Restrict to a content type (repeatable)")
@click.option("--min-views", type=int, help="Minimum video views")
@click.option("--from", "date_from", type=click.DateTime(formats=["%Y-%m-%d"]), help="Published on or after")
@click.option("--to", "date_to", type=click.DateTime(formats=["%Y-%m-%d"]), help="Published on or before")
@click.option("--language", type=click.Choice(["es", "en"]), default="es", help="Embedding space to search")
def search(
    query: str,
    top_k: int,
    content_types: Tuple[str, ...],
    min_views: Optional[int],
    date_from: Optional[datetime],
    date_to: Optional[datetime],
    language: str
):
    """
    Search indexed content.

    Example:
        creatorlens brain search "ahorrar dinero" --content-type hook
    """
    try:
        results = BrainService().search(
            query,
            top_k=top_k,
            content_types=list(content_types) or None,
            min_views=min_views,
            date_from=date_from.date().isoformat() if date_from else None,
            date_to=date_to.date().isoformat() if date_to else None,
            language=language,
        )
    except ValueError as e:
        click.echo(f"❌ {e}", err=True)
        raise click.Abort()

    if not results:
        click.echo("No results")
        return

    for rank, result in enumerate(results, 1):
        click.echo(
            f"{rank:2d}. [{result.content_type}/{result.section_tag or '-'}] score {result.score:.3f} "
            f"(sim {result.similarity:.3f})"
        )
        click.echo(f"    \"{result.content[:100]}\"")
        click.echo(
            f"    {result.views:,} views  {result.saves_per_1k:.1f} S/1K  "
            f"{result.f_per_1k:.1f} F/1k  video {result.video_id}"
        )
