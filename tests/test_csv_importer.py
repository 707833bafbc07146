"""
Tests for the TikTok Studio CSV importer.
"""

from datetime import date
from unittest.mock import MagicMock

import pytest

from creatorlens.importers.csv_importer import (
    CSVVideoImporter,
    map_row,
    parse_value,
    read_csv,
)


TODAY = date(2025, 3, 31)


class TestParseValue:
    def test_blank_is_none(self):
        assert parse_value("", "views") is None
        assert parse_value("   ", "title") is None
        assert parse_value(None, "views") is None

    def test_integer_with_thousands_separator(self):
        assert parse_value("1,234", "views") == 1234
        assert parse_value("12.7", "likes") == 12

    def test_invalid_integer_is_zero(self):
        assert parse_value("abc", "views") == 0

    def test_percentage(self):
        assert parse_value("12.5%", "engagement_rate") == 12.5
        assert parse_value("n/a", "full_video_watch_rate") == 0

    def test_decimal(self):
        assert parse_value("7.25", "avg_time_watched") == 7.25

    def test_date(self):
        assert parse_value("2025-03-04", "published_date", TODAY) == "2025-03-04"

    def test_invalid_date_uses_today(self):
        assert parse_value("not a date", "published_date", TODAY) == "2025-03-31"

    def test_text_is_stripped(self):
        assert parse_value("  Hola  ", "title") == "Hola"


class TestMapRow:
    def test_defaults(self):
        video = map_row({"Views": "1,000", "Title": ""}, 2, TODAY)

        assert video["title"] == "Video 3"
        assert video["published_date"] == "2025-03-31"
        assert video["views"] == 1000
        assert video["likes"] == 0
        assert video["new_followers"] == 0
        assert "duration_seconds" not in video

    def test_spanish_headers(self):
        video = map_row({"Tema": "finanzas", "Estilo de Edicion": "talking head"}, 0, TODAY)
        assert video["video_theme"] == "finanzas"
        assert video["editing_style"] == "talking head"

    def test_unknown_columns_ignored(self):
        video = map_row({"Title": "Hola", "Whatever": "x"}, 0, TODAY)
        assert "Whatever" not in video
        assert video["title"] == "Hola"


class TestReadCSV:
    def test_rejects_other_extensions(self, tmp_path):
        path = tmp_path / "export.txt"
        path.write_text("Title\nHola\n")
        with pytest.raises(ValueError, match="Invalid file type"):
            read_csv(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("")
        with pytest.raises(ValueError, match="Empty CSV file"):
            read_csv(path)

    def test_header_only(self, tmp_path):
        path = tmp_path / "header.csv"
        path.write_text("Title,Views\n")
        with pytest.raises(ValueError, match="Empty CSV file"):
            read_csv(path)

    def test_reads_rows_as_text(self, tmp_path):
        path = tmp_path / "export.csv"
        path.write_text('Title,Views\nHola,"1,234"\n', encoding="utf-8")
        assert read_csv(path) == [{"Title": "Hola", "Views": "1,234"}]


class TestImportRows:
    def test_failed_batch_is_counted(self):
        video_service = MagicMock()
        video_service.add_videos.side_effect = [2, Exception("db down")]
        importer = CSVVideoImporter(video_service=video_service, batch_size=2)
        progress = MagicMock()

        rows = [{"Title": f"Video {i}", "Views": "10"} for i in range(3)]
        result = importer.import_rows(rows, today=TODAY, progress=progress)

        assert result.success == 2
        assert result.failed == 1
        assert result.errors == ["Batch 2: Import failed - db down"]
        assert video_service.add_videos.call_count == 2
        assert [c.args[0] for c in progress.call_args_list] == [2, 1]

    def test_bad_row_is_counted(self):
        video_service = MagicMock()
        importer = CSVVideoImporter(video_service=video_service, batch_size=5)

        result = importer.import_rows([None, {"Title": "Hola"}], today=TODAY)

        assert result.success == 1
        assert result.failed == 1
        assert result.errors[0].startswith("Row 1:")
        batch = video_service.add_videos.call_args.args[0]
        assert batch[0]["title"] == "Hola"

    def test_import_file(self, tmp_path):
        path = tmp_path / "export.csv"
        path.write_text("Title,Views,Date\nHola,100,2025-01-02\n", encoding="utf-8")
        video_service = MagicMock()

        result = CSVVideoImporter(video_service=video_service, batch_size=5).import_file(path)

        assert result.success == 1
        row = video_service.add_videos.call_args.args[0][0]
        assert row["published_date"] == "2025-01-02"
        assert row["views"] == 100
