"""
CSV Import CLI Command

Imports a TikTok Studio CSV export into the videos table.
"""

import logging
from typing import Optional

import click
from tqdm import tqdm

from ..importers.csv_importer import CSVVideoImporter, map_row, read_csv


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

logger = logging.getLogger(__name__)


@click.command(name="import-csv")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--batch-size", type=int, help="Rows per insert batch (default: IMPORT_BATCH_SIZE)")
@click.option("--dry-run", is_flag=True, help="Map and preview rows without inserting")
def import_csv_command(csv_file: str, batch_size: Optional[int], dry_run: bool):
    """
    Import videos from a TikTok Studio CSV export.

    Example:
        creatorlens import-csv ~/Downloads/tiktok_export.csv
    """
    try:
        rows = read_csv(csv_file)
    except ValueError as e:
        click.echo(f"❌ {e}", err=True)
        raise click.Abort()

    click.echo(f"📄 Read {len(rows)} rows from {csv_file}")

    if dry_run:
        for index, row in enumerate(rows[:5]):
            video = map_row(row, index)
            click.echo(
                f"  {video['published_date']}  {video['title'][:40]:40s}  "
                f"{video['views']:>9,} views  theme={video.get('video_theme', '-')}"
            )
        if len(rows) > 5:
            click.echo(f"  ... and {len(rows) - 5} more")
        click.echo("ℹ️  Dry run, nothing imported")
        return

    importer = CSVVideoImporter(batch_size=batch_size)
    with tqdm(total=len(rows), desc="Importing videos") as pbar:
        result = importer.import_rows(rows, progress=pbar.update)

    click.echo(f"\n✅ Imported: {result.success}")
    if result.failed:
        click.echo(f"❌ Failed: {result.failed}")
        for error in result.errors:
            click.echo(f"   - {error}")
