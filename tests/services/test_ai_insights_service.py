"""
Tests for AIInsightsService - Claude video analysis and its fallback.
"""

from unittest.mock import MagicMock, patch

import pytest

from creatorlens.core.models import Video
from creatorlens.services.ai_insights_service import (
    AIInsightsService,
    DEFAULT_SECTIONS,
    FALLBACK_INSIGHTS,
    build_video_prompt,
    parse_video_insights,
)
from creatorlens.services.scoring_service import ScoringService


SAMPLE_RESPONSE = """
**What Worked:**
- Strong visual hook in the first second
- Clear payoff at 0:12

**What to Improve:**
1. Cut the intro by 2 seconds

**A/B Hook Ideas:**
- "Nadie te dice esto sobre el ahorro"

**Suggested CTA:**
Follow for the budgeting template

**Next Experiment:**
Open with the result, then explain
"""


@pytest.fixture
def scored():
    video = Video(id="v1", title="Ahorro 101", views=12000, likes=600, duration_seconds=25,
                  avg_time_watched=12, hook="¿Sabías esto?", video_type="tutorial")
    return ScoringService().enrich_videos([video])[0]


class TestBuildPrompt:
    def test_includes_metrics(self, scored):
        prompt = build_video_prompt(scored)
        assert '- Title: "Ahorro 101"' in prompt
        assert "- Views: 12,000" in prompt
        assert "- Engagement Rate: 5.0%" in prompt
        assert '- Hook: "¿Sabías esto?"' in prompt
        assert "**A/B Hook Ideas:**" in prompt


class TestParseVideoInsights:
    def test_sections(self):
        insights = parse_video_insights(SAMPLE_RESPONSE)
        assert insights.what_worked == ["Strong visual hook in the first second", "Clear payoff at 0:12"]
        assert insights.what_to_improve == ["Cut the intro by 2 seconds"]
        assert insights.hook_ideas == ['"Nadie te dice esto sobre el ahorro"']
        assert insights.suggested_cta == "Follow for the budgeting template"
        assert insights.next_experiment == "Open with the result, then explain"
        assert insights.confidence == 85
        assert insights.source == "ai_analysis"

    def test_missing_sections_use_defaults(self):
        insights = parse_video_insights("**What Worked:**\n- Only this")
        assert insights.what_worked == ["Only this"]
        assert insights.what_to_improve == DEFAULT_SECTIONS["what_to_improve"]
        assert insights.suggested_cta == DEFAULT_SECTIONS["suggested_cta"]

    def test_empty_text(self):
        insights = parse_video_insights("")
        assert insights.hook_ideas == DEFAULT_SECTIONS["hook_ideas"]


class TestAnalyzeVideo:
    def test_without_key_falls_back(self, scored):
        with patch("creatorlens.services.ai_insights_service.Config") as config:
            config.ANTHROPIC_API_KEY = None
            config.get_model.return_value = "claude-test"
            service = AIInsightsService()

        result = service.analyze_video(scored)
        assert result.source == "fallback"
        assert result.confidence == 75
        assert result == FALLBACK_INSIGHTS

    def test_success(self, scored):
        with patch("creatorlens.services.ai_insights_service.anthropic") as anthropic_mod:
            client = anthropic_mod.Anthropic.return_value
            client.messages.create.return_value = MagicMock(content=[MagicMock(text=SAMPLE_RESPONSE)])
            service = AIInsightsService(api_key="test-key", model="claude-test")
            result = service.analyze_video(scored)

        assert result.source == "ai_analysis"
        assert result.suggested_cta == "Follow for the budgeting template"
        call = client.messages.create.call_args
        assert call.kwargs["model"] == "claude-test"
        assert "Ahorro 101" in call.kwargs["messages"][0]["content"]

    def test_api_error_falls_back(self, scored):
        with patch("creatorlens.services.ai_insights_service.anthropic") as anthropic_mod:
            anthropic_mod.Anthropic.return_value.messages.create.side_effect = Exception("overloaded")
            service = AIInsightsService(api_key="test-key")
            result = service.analyze_video(scored)

        assert result.source == "fallback"

    def test_fallback_is_a_copy(self, scored):
        service = AIInsightsService(api_key=None)
        service.client = None
        result = service.analyze_video(scored)
        result.what_worked.append("mutated")
        assert "mutated" not in FALLBACK_INSIGHTS.what_worked
