"""
Tests for ContentPatternService - pattern grouping, growth scores and insights.
"""

import pytest

from creatorlens.core.models import Video
from creatorlens.services.content_pattern_service import ContentPatternService, categorize_hook


def make_video(video_id, views, likes=0, **overrides):
    data = {"id": video_id, "views": views, "likes": likes, "published_date": f"2025-01-0{video_id}"}
    data.update(overrides)
    return Video(**data)


@pytest.fixture
def catalogue():
    return [
        make_video("1", 1000, likes=100, video_theme="Finanzas", cta_type="follow", hook="How I saved money"),
        make_video("2", 2000, likes=160, video_theme="Finanzas", cta_type="follow", hook="Why nobody saves"),
        make_video("3", 1000, likes=20, video_theme="Humor", hook="This is my cat"),
        make_video("4", 500, likes=0, video_theme="Humor"),
        make_video("5", 0, likes=0, video_theme="Humor"),
    ]


class TestCategorizeHook:
    @pytest.mark.parametrize("hook,expected", [
        ("How to cook rice", "How-to/Tutorial"),
        ("Why nobody tells you this", "Question Hook"),
        ("Never do this at the gym", "Negative Hook"),
        ("Did you know this trick", "Direct Question"),
        ("Here is the trick", "Demonstrative"),
        ("Best pasta ever", "Statement Hook"),
    ])
    def test_categories(self, hook, expected):
        assert categorize_hook(hook) == expected


class TestAnalyzeContentPatterns:
    def test_excludes_unwatched_videos(self, catalogue):
        service = ContentPatternService(catalogue)
        assert [v.id for v in service.videos] == ["4", "3", "2", "1"]

    def test_groups_with_two_or_more(self, catalogue):
        patterns = ContentPatternService(catalogue).analyze_content_patterns()
        found = {(p.category, p.pattern) for p in patterns}
        assert found == {("theme", "Finanzas"), ("cta", "follow"), ("theme", "Humor")}

    def test_sorted_by_engagement(self, catalogue):
        patterns = ContentPatternService(catalogue).analyze_content_patterns()
        assert patterns[0].avg_engagement == pytest.approx(9.0)
        assert patterns[-1].pattern == "Humor"

    def test_improvement_vs_overall(self, catalogue):
        patterns = ContentPatternService(catalogue).analyze_content_patterns()
        finanzas = next(p for p in patterns if p.pattern == "Finanzas")
        assert finanzas.video_count == 2
        assert finanzas.avg_views == pytest.approx(1500.0)
        assert finanzas.improvement_pct == pytest.approx(80.0)

    def test_empty_catalogue(self):
        assert ContentPatternService([]).analyze_content_patterns() == []


class TestPerformanceScores:
    def test_empty_catalogue_is_zero(self):
        scores = ContentPatternService([]).calculate_performance_scores()
        assert scores.overall_growth == 0

    def test_single_video(self):
        video = make_video(
            "1", 1000, likes=10, avg_time_watched=15, saves=50,
            traffic_profile=10, traffic_for_you=90,
        )
        scores = ContentPatternService([video]).calculate_performance_scores()
        assert scores.content_quality == 75
        assert scores.viral_potential == 6
        assert scores.monetization_readiness == 100
        assert scores.overall_growth == 55


class TestGenerateInsights:
    def test_insight_ids(self, catalogue):
        insights = ContentPatternService(catalogue).generate_insights()
        assert [i.id for i in insights] == ["best-theme", "best-cta", "monetization-opportunity"]

    def test_best_theme_details(self, catalogue):
        best = ContentPatternService(catalogue).generate_insights()[0]
        assert best.title == "Finanzas content performs best"
        assert best.confidence == 30
        assert best.metrics["improvement"] == "+80%"

    def test_viral_strategy(self):
        videos = [
            make_video("1", 200_000, likes=10, video_theme="Finanzas"),
            make_video("2", 150_000, likes=10, video_theme="Finanzas"),
        ]
        insights = ContentPatternService(videos).generate_insights()
        viral = next(i for i in insights if i.id == "viral-pattern")
        assert viral.title == "Finanzas content has viral potential"
        assert "100%" in viral.description

    def test_at_most_six(self, catalogue):
        assert len(ContentPatternService(catalogue).generate_insights()) <= 6
