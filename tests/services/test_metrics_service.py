"""
Tests for MetricsService - derived per-video metrics.
"""

import pytest

from creatorlens.core.models import Video
from creatorlens.services.metrics_service import MetricsService, safe_ratio


def make_video(**overrides):
    data = {
        "id": "v1",
        "views": 1000,
        "likes": 20,
        "comments": 5,
        "shares": 2,
        "saves": 12,
        "new_followers": 3,
        "traffic_for_you": 800,
        "avg_time_watched": 9.0,
        "duration_seconds": 30,
    }
    data.update(overrides)
    return Video(**data)


class TestSafeRatio:
    def test_zero_denominator(self):
        assert safe_ratio(5, 0, 100) == 0.0

    def test_negative_denominator(self):
        assert safe_ratio(5, -1) == 0.0

    def test_scaled(self):
        assert safe_ratio(1, 4, 100) == pytest.approx(25.0)


class TestMetricsService:
    def test_engagement_rate(self):
        assert MetricsService.engagement_rate(make_video()) == pytest.approx(2.7)

    def test_retention_rate(self):
        assert MetricsService.retention_rate(make_video()) == pytest.approx(30.0)

    def test_per_thousand_metrics(self):
        video = make_video()
        assert MetricsService.saves_per_1k(video) == pytest.approx(12.0)
        assert MetricsService.f_per_1k(video) == pytest.approx(3.0)
        assert MetricsService.for_you_percentage(video) == pytest.approx(80.0)

    def test_zero_views_gives_zero_rates(self):
        metrics = MetricsService.compute(make_video(views=0))
        assert metrics.engagement_rate == 0
        assert metrics.retention_rate == 0
        assert metrics.saves_per_1k == 0
        assert metrics.for_you_percentage == 0
        assert metrics.f_per_1k == 0
        assert metrics.performance_score == 0

    def test_zero_duration_gives_zero_retention(self):
        assert MetricsService.retention_rate(make_video(duration_seconds=0)) == 0

    def test_performance_score_is_mean(self):
        metrics = MetricsService.compute(make_video())
        expected = (2.7 + 30.0 + 12.0 + 80.0 + 3.0) / 5
        assert metrics.performance_score == pytest.approx(expected)

    def test_compute_accepts_row_dict(self):
        metrics = MetricsService.compute({"id": "v2", "views": "1000", "likes": None, "saves": "5"})
        assert metrics.saves_per_1k == pytest.approx(5.0)
        assert metrics.engagement_rate == 0

    def test_stored_engagement_rate_is_ignored(self):
        metrics = MetricsService.compute(make_video(engagement_rate=99.0))
        assert metrics.engagement_rate == pytest.approx(2.7)
