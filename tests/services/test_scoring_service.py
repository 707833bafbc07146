"""
Tests for ScoringService - viral index and catalogue enrichment.
"""

import pytest

from creatorlens.core.models import Video
from creatorlens.services.scoring_service import ScoringService, VIRAL_WEIGHTS


def make_video(video_id, views, saves=0, new_followers=0, traffic_for_you=0,
               avg_time_watched=0.0, duration_seconds=30, published_date="2025-01-01"):
    return Video(
        id=video_id,
        views=views,
        saves=saves,
        new_followers=new_followers,
        traffic_for_you=traffic_for_you,
        avg_time_watched=avg_time_watched,
        duration_seconds=duration_seconds,
        published_date=published_date,
    )


@pytest.fixture
def service():
    return ScoringService(viral_threshold=6.5, viral_min_views=10000)


# ============================================================================
# calculate_viral_index
# ============================================================================

class TestViralIndex:
    def test_all_zero_is_five(self):
        assert ScoringService.calculate_viral_index({}) == 5.0

    def test_weighted_sum(self):
        z = {key: 1.0 for key in VIRAL_WEIGHTS}
        assert ScoringService.calculate_viral_index(z) == pytest.approx(6.0)

    def test_clamped_high(self):
        z = {key: 100.0 for key in VIRAL_WEIGHTS}
        assert ScoringService.calculate_viral_index(z) == 10.0

    def test_clamped_low(self):
        z = {key: -100.0 for key in VIRAL_WEIGHTS}
        assert ScoringService.calculate_viral_index(z) == 0.0

    def test_nan_falls_back_to_base(self):
        assert ScoringService.calculate_viral_index({"log_views": float("nan")}) == 5.0

    def test_weights_sum_to_one(self):
        assert sum(VIRAL_WEIGHTS.values()) == pytest.approx(1.0)


class TestIsViral:
    def test_needs_index_and_views(self, service):
        assert service.is_viral(7.0, 20000) is True
        assert service.is_viral(7.0, 5000) is False
        assert service.is_viral(6.0, 20000) is False

    def test_threshold_inclusive(self, service):
        assert service.is_viral(6.5, 10000) is True


# ============================================================================
# enrich_videos
# ============================================================================

class TestEnrichVideos:
    def test_empty_catalogue(self, service):
        assert service.enrich_videos([]) == []

    def test_preserves_order_and_ids(self, service):
        videos = [make_video("a", 100), make_video("b", 1000), make_video("c", 10)]
        scored = service.enrich_videos(videos)
        assert [s.id for s in scored] == ["a", "b", "c"]

    def test_identical_videos_score_five(self, service):
        videos = [make_video(str(i), 500, saves=5) for i in range(4)]
        for item in service.enrich_videos(videos):
            assert item.viral_index == 5.0
            assert all(z == 0.0 for z in item.z_scores.values())

    def test_viral_index_in_bounds(self, service):
        videos = [
            make_video("a", 1_000_000, saves=50000, new_followers=9000, traffic_for_you=990000, avg_time_watched=29),
            make_video("b", 10),
            make_video("c", 0),
            make_video("d", 200, saves=1),
        ]
        for item in service.enrich_videos(videos):
            assert 0.0 <= item.viral_index <= 10.0

    def test_best_video_ranks_highest(self, service):
        videos = [
            make_video("best", 500_000, saves=20000, new_followers=3000, traffic_for_you=450000, avg_time_watched=25),
            make_video("mid", 5_000, saves=50, new_followers=5, traffic_for_you=2500, avg_time_watched=10),
            make_video("low", 300, saves=0, new_followers=0, traffic_for_you=30, avg_time_watched=3),
            make_video("low2", 300, saves=0, new_followers=0, traffic_for_you=30, avg_time_watched=3),
            make_video("low3", 300, saves=0, new_followers=0, traffic_for_you=30, avg_time_watched=3),
        ]
        scored = {s.id: s for s in service.enrich_videos(videos)}
        assert scored["best"].viral_index > scored["mid"].viral_index > scored["low"].viral_index
        assert scored["best"].percentiles["saves_per_1k"] == 100
        assert scored["best"].is_viral is True
        assert scored["low"].is_viral is False

    def test_zero_views_video_has_zero_rates(self, service):
        scored = service.enrich_videos([make_video("z", 0, saves=3), make_video("y", 100)])
        assert scored[0].metrics.saves_per_1k == 0
        assert scored[0].metrics.retention_rate == 0

    def test_percentile_bands(self, service):
        videos = [make_video(str(i), 1000, saves=i) for i in range(1, 11)]
        bands = ScoringService.percentile_bands(service.enrich_videos(videos))
        assert bands["saves_per_1k"].p10 == pytest.approx(2.0)
        assert bands["saves_per_1k"].p90 == pytest.approx(10.0)
