"""
Tests for CSV export of scored videos.
"""

from datetime import date
from unittest.mock import patch

from creatorlens.core.models import Video
from creatorlens.services.models import ScoredVideo, VideoMetrics
from creatorlens.utils.csv_export import default_filename, export_row, export_videos_csv


def make_scored(**video_fields):
    return ScoredVideo(
        video=Video(id="v1", **video_fields),
        metrics=VideoMetrics(engagement_rate=5.123, saves_per_1k=12.34, performance_score=78.6),
    )


class TestExportRow:
    def test_metric_precision(self):
        row = export_row(make_scored(title="Hola", views=1000))
        assert row["Engagement Rate (%)"] == "5.12"
        assert row["Saves per 1K"] == "12.3"
        assert row["Performance Score"] == "79"
        assert row["Views"] == 1000

    def test_missing_values_are_blank(self):
        row = export_row(make_scored())
        assert row["Title"] == ""
        assert row["Theme"] == ""


class TestExportVideosCSV:
    def test_header_and_quoting(self):
        content = export_videos_csv([make_scored(title="Hola, mundo")])
        lines = content.splitlines()

        assert lines[0].startswith("Title,Published date,Views,Likes")
        assert lines[1].startswith('"Hola, mundo",')
        assert len(lines) == 2

    def test_writes_file(self, tmp_path):
        path = tmp_path / "out.csv"
        content = export_videos_csv([make_scored(title="Hola")], path)
        assert path.read_text(encoding="utf-8") == content

    def test_empty_export_has_header(self):
        assert export_videos_csv([]).count("\n") == 1


def test_default_filename():
    with patch("creatorlens.utils.csv_export.local_today", return_value=date(2025, 3, 31)):
        assert default_filename() == "videos_export_2025-03-31.csv"
