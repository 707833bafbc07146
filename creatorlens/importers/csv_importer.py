"""
CSV importer for TikTok Studio exports

Maps export columns (English or Spanish headers) onto the videos table,
coerces numbers, percentages and dates, and inserts the rows in small
batches. Bad rows and failed batches are counted, never fatal.
"""

import logging
import re
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import pandas as pd

from ..core.config import Config
from ..services.models import ImportResult
from ..services.video_service import VideoService
from ..utils.dates import local_today

logger = logging.getLogger(__name__)


# Export header -> videos column
COLUMN_MAPPING: Dict[str, str] = {
    'Image': 'image_url',
    'URL': 'video_url',
    'Title': 'title',
    'Date': 'published_date',
    'Link': 'external_link',
    'Type': 'video_type',
    'Views': 'views',
    'Likes': 'likes',
    'Comments': 'comments',
    'Shares': 'shares',
    'Reach': 'reach',
    'Duration': 'duration_seconds',
    'Engagement': 'engagement_rate',
    'Full video watched rate': 'full_video_watch_rate',
    'Total time watched seconds': 'total_time_watched',
    'Avg. time watched seconds': 'avg_time_watched',
    'For You': 'traffic_for_you',
    'Follow': 'traffic_follow',
    'Hashtag': 'traffic_hashtag',
    'Sound': 'traffic_sound',
    'Personal profile': 'traffic_profile',
    'Search': 'traffic_search',
    'Saves': 'saves',
    'New Followers': 'new_followers',
    'Guion': 'guion',
    'Hook': 'hook',
    'Theme': 'video_theme',
    'Tema': 'video_theme',
    'CTA': 'cta_type',
    'Editing Style': 'editing_style',
    'Estilo de Edicion': 'editing_style',
}

INTEGER_FIELDS = (
    'views', 'likes', 'comments', 'shares', 'reach', 'duration_seconds',
    'total_time_watched', 'traffic_for_you', 'traffic_follow',
    'traffic_hashtag', 'traffic_sound', 'traffic_profile',
    'traffic_search', 'saves', 'new_followers',
)
PERCENTAGE_FIELDS = ('engagement_rate', 'full_video_watch_rate')
DECIMAL_FIELDS = ('avg_time_watched',)

# Counters defaulted to 0 when the export lacks them
DEFAULT_ZERO_FIELDS = tuple(f for f in INTEGER_FIELDS if f != 'duration_seconds')

_LEADING_INT = re.compile(r'^[-+]?\d+')
_LEADING_FLOAT = re.compile(r'^[-+]?(?:\d+\.?\d*|\.\d+)')


def _leading_number(pattern: re.Pattern, text: str) -> float:
    match = pattern.match(text.strip())
    return float(match.group(0)) if match else 0


def parse_value(value: Any, field: str, today: Optional[date] = None) -> Any:
    """
    Coerce one CSV cell for a videos column.

    Args:
        value: Raw cell text
        field: Target column
        today: Fallback for unparseable dates (creator-local today by default)

    Returns:
        None for blank cells, otherwise the coerced value
    """
    if value is None or str(value).strip() == '':
        return None
    text = str(value)

    if field in INTEGER_FIELDS:
        return int(_leading_number(_LEADING_INT, re.sub(r'[,\s%]', '', text)))

    if field in PERCENTAGE_FIELDS:
        return float(_leading_number(_LEADING_FLOAT, text.replace('%', '')))

    if field in DECIMAL_FIELDS:
        return float(_leading_number(_LEADING_FLOAT, text))

    if field == 'published_date':
        try:
            parsed = pd.to_datetime(text.strip(), errors='coerce')
        except (ValueError, TypeError, OverflowError):
            parsed = pd.NaT
        if pd.isna(parsed):
            return (today or local_today()).isoformat()
        return parsed.date().isoformat()

    return text.strip()


def map_row(row: Dict[str, Any], index: int, today: Optional[date] = None) -> Dict[str, Any]:
    """
    Map one CSV row to a videos insert payload.

    Unknown columns are ignored. Title defaults to "Video {index + 1}",
    the publish date to today and counters to 0.
    """
    today = today or local_today()
    video: Dict[str, Any] = {}

    for column, field in COLUMN_MAPPING.items():
        if column in row:
            parsed = parse_value(row[column], field, today)
            if parsed is not None:
                video[field] = parsed

    if not (video.get('title') or '').strip():
        video['title'] = f"Video {index + 1}"
    if not video.get('published_date'):
        video['published_date'] = today.isoformat()

    for field in DEFAULT_ZERO_FIELDS:
        video.setdefault(field, 0)

    return video


def read_csv(path: Union[str, Path]) -> List[Dict[str, str]]:
    """
    Read an export into a list of header -> cell dicts.

    Raises:
        ValueError: Not a .csv file, unparseable, or no data rows
    """
    path = Path(path)
    if path.suffix.lower() != '.csv':
        raise ValueError(f"Invalid file type: {path.name} (expected a .csv file)")

    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False, skip_blank_lines=True)
    except pd.errors.EmptyDataError:
        raise ValueError(f"Empty CSV file: {path.name}")
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise ValueError(f"CSV parsing error in {path.name}: {e}")

    if df.empty:
        raise ValueError(f"Empty CSV file: {path.name}")

    df.columns = [str(c).strip() for c in df.columns]
    return df.to_dict(orient='records')


class CSVVideoImporter:
    """Import mapped CSV rows into the videos table in batches."""

    def __init__(self, video_service: Optional[VideoService] = None, batch_size: Optional[int] = None):
        self.video_service = video_service or VideoService()
        self.batch_size = batch_size or Config.IMPORT_BATCH_SIZE

    def import_rows(
        self,
        rows: List[Dict[str, Any]],
        today: Optional[date] = None,
        progress: Optional[Callable[[int], Any]] = None
    ) -> ImportResult:
        """
        Map and insert rows.

        Args:
            rows: Raw CSV rows (as returned by read_csv)
            today: Fallback date for rows without a valid date
            progress: Optional callable receiving the size of each finished batch

        Returns:
            ImportResult with success / failed counts and error messages
        """
        today = today or local_today()
        result = ImportResult()
        mapped: List[Dict[str, Any]] = []

        for index, row in enumerate(rows):
            try:
                mapped.append(map_row(row, index, today))
                result.success += 1
            except Exception as e:
                result.failed += 1
                result.errors.append(f"Row {index + 1}: {e}")

        for start in range(0, len(mapped), self.batch_size):
            batch = mapped[start:start + self.batch_size]
            batch_number = start // self.batch_size + 1
            try:
                self.video_service.add_videos(batch)
            except Exception as e:
                logger.error(f"Batch {batch_number} import error: {e}")
                result.failed += len(batch)
                result.success -= len(batch)
                result.errors.append(f"Batch {batch_number}: Import failed - {e}")
            if progress:
                progress(len(batch))

        logger.info(f"CSV import finished: {result.success} imported, {result.failed} failed")
        return result

    def import_file(self, path: Union[str, Path], progress: Optional[Callable[[int], Any]] = None) -> ImportResult:
        """read_csv + import_rows."""
        return self.import_rows(read_csv(path), progress=progress)
