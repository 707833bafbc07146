"""
CSV export of scored videos
"""

import csv
import io
import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from ..services.models import ScoredVideo
from .dates import local_today

logger = logging.getLogger(__name__)

# (source, header); source is a Video field or a derived metric
EXPORT_COLUMNS = [
    ('title', 'Title'),
    ('published_date', 'Published date'),
    ('views', 'Views'),
    ('likes', 'Likes'),
    ('comments', 'Comments'),
    ('shares', 'Shares'),
    ('saves', 'Saves'),
    ('engagement_rate', 'Engagement Rate (%)'),
    ('saves_per_1k', 'Saves per 1K'),
    ('performance_score', 'Performance Score'),
    ('video_theme', 'Theme'),
    ('cta_type', 'CTA type'),
    ('editing_style', 'Editing style'),
    ('hook', 'Hook'),
    ('duration_seconds', 'Duration (seconds)'),
    ('traffic_for_you', 'Traffic For You'),
    ('traffic_follow', 'Traffic Follow'),
    ('traffic_hashtag', 'Traffic Hashtag'),
    ('traffic_sound', 'Traffic Sound'),
    ('traffic_profile', 'Traffic Profile'),
    ('traffic_search', 'Traffic Search'),
]

# Derived metrics and their decimal places
METRIC_PRECISION = {
    'engagement_rate': 2,
    'saves_per_1k': 1,
    'performance_score': 0,
}


def default_filename() -> str:
    return f"videos_export_{local_today().isoformat()}.csv"


def export_row(item: ScoredVideo) -> dict:
    row = {}
    for key, header in EXPORT_COLUMNS:
        if key in METRIC_PRECISION:
            value = f"{item.metrics.get(key):.{METRIC_PRECISION[key]}f}"
        else:
            value = getattr(item.video, key, None)
        row[header] = '' if value is None else value
    return row


def export_videos_csv(videos: Sequence[ScoredVideo], path: Optional[Union[str, Path]] = None) -> str:
    """
    Render scored videos as CSV.

    Args:
        videos: Rows to export, in output order
        path: When given, the CSV is also written there

    Returns:
        The CSV text
    """
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=[header for _, header in EXPORT_COLUMNS], lineterminator='\n')
    writer.writeheader()
    for item in videos:
        writer.writerow(export_row(item))

    content = buffer.getvalue()
    if path is not None:
        with open(path, 'w', newline='', encoding='utf-8') as f:
            f.write(content)
        logger.info(f"Exported {len(videos)} videos to {path}")
    return content
