"""
Tests for NormalizationService - reach relative to followers at post time.
"""

from unittest.mock import MagicMock

import pytest

from creatorlens.core.models import Video
from creatorlens.services.models import NormalizedMetrics
from creatorlens.services.normalization_service import NormalizationService


@pytest.fixture
def followers_service():
    return MagicMock()


@pytest.fixture
def service(followers_service):
    return NormalizationService(followers_service=followers_service)


def make_video(**overrides):
    data = {"id": "v1", "views": 500, "likes": 30, "comments": 10, "shares": 10,
            "published_date": "2025-03-01T18:30:00"}
    data.update(overrides)
    return Video(**data)


class TestNormalize:
    def test_with_followers(self):
        result = NormalizationService.normalize(make_video(), 1000)
        assert result.views_norm == pytest.approx(0.5)
        assert result.engagement_norm == pytest.approx(0.05)
        assert result.has_sufficient_data is True
        assert result.viral_threshold == pytest.approx(0.1)

    def test_without_followers(self):
        result = NormalizationService.normalize(make_video(), 0)
        assert result.views_norm == 500
        assert result.has_sufficient_data is False
        assert result.viral_threshold == 0


class TestNormalizeVideo:
    def test_looks_up_publish_day(self, service, followers_service):
        followers_service.get_count_on.return_value = 2000
        result = service.normalize_video(make_video())
        followers_service.get_count_on.assert_called_once_with("2025-03-01")
        assert result.followers_at_post == 2000
        assert result.views_norm == pytest.approx(0.25)

    def test_no_publish_date(self, service, followers_service):
        result = service.normalize_video(make_video(published_date=None))
        followers_service.get_count_on.assert_not_called()
        assert result.has_sufficient_data is False


class TestViralityStatus:
    @pytest.mark.parametrize("views_norm,tier", [
        (0.09, "viral"),
        (0.08, "viral"),
        (0.05, "good"),
        (0.03, "medium"),
        (0.01, "low"),
    ])
    def test_tiers(self, views_norm, tier):
        normalized = NormalizedMetrics(views_norm=views_norm, has_sufficient_data=True, followers_at_post=1)
        status = NormalizationService.get_virality_status(normalized)
        assert status.tier == tier
        assert status.is_viral is (tier == "viral")

    def test_no_follower_history(self):
        status = NormalizationService.get_virality_status(NormalizedMetrics(views_norm=5.0))
        assert status.tier == "medium"
        assert status.is_viral is False
        assert status.badge == "No follower history for this date"
