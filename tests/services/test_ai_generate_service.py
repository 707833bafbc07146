"""
Tests for AIGenerateService - enriched Claude scripts, strategy answers and fallbacks.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from creatorlens.core.models import AccountContext, Video
from creatorlens.services.ai_generate_service import (
    AIGenerateService,
    build_context_block,
    build_strategy_prompt,
    parse_script,
    summarize_history,
)
from creatorlens.services.metrics_service import MetricsService
from creatorlens.services.models import HistoricalSummary


VIDEOS = [
    Video(id="v1", title="Ahorro 101", views=10000, new_followers=50, saves=80, hook="Nadie te dice esto sobre el ahorro",
          duration_seconds=30, traffic_for_you=8000),
    Video(id="v2", title="Mi rutina", views=10000, new_followers=5, saves=10, hook="Mi rutina de mañana",
          duration_seconds=90),
    Video(id="v3", title="Deudas", views=5000, new_followers=40, saves=30, hook=None, duration_seconds=45),
]

SCRIPT_RESPONSE = {
    "script": {
        "hook": "Nadie te dice esto sobre el ahorro",
        "development": "Three quick points",
        "cta": "Follow for part 2",
        "estimated_duration": 35,
        "insights": {"duration_recommendation": "30-40s", "hook_strategy": "Curiosity gap", "expected_f1k": "4-6"},
    }
}

BRAIN_ROWS = [
    {"content": "low", "content_type": "hook", "saves_per_1k": 1.0, "f_per_1k": 0.5, "retention_pct": 10},
    {"content": "", "content_type": "hook", "saves_per_1k": 99.0},
    {"content": "best hook", "content_type": "hook", "saves_per_1k": 9.0, "f_per_1k": 4.0,
     "retention_pct": 50, "duration_seconds": 30},
]


def claude_reply(text):
    return MagicMock(content=[MagicMock(text=text)])


@pytest.fixture
def mock_db():
    """Supabase mock with a context row and brain rows."""
    db = MagicMock()
    contexts = MagicMock()
    contexts.select.return_value.eq.return_value.limit.return_value.execute.return_value = MagicMock(
        data=[{"user_id": "user-1", "mission": "Teach money habits", "negative_keywords": ["crypto"],
               "weights": {"retention": 0.2, "saves": 0.6, "follows": 0.2}}]
    )
    vectors = MagicMock()
    vectors.select.return_value.eq.return_value.eq.return_value.execute.return_value = MagicMock(data=BRAIN_ROWS)
    db.table.side_effect = lambda name: contexts if name == "tiktok_account_contexts" else vectors
    return db


@pytest.fixture
def video_service():
    videos = MagicMock()
    videos.list_videos.return_value = VIDEOS
    return videos


@pytest.fixture
def anthropic_mod():
    with patch("creatorlens.services.ai_generate_service.anthropic") as mod:
        yield mod


@pytest.fixture
def service(mock_db, video_service, anthropic_mod):
    with patch("creatorlens.services.ai_generate_service.get_supabase_client", return_value=mock_db):
        return AIGenerateService(user_id="user-1", api_key="test-key", model="claude-test",
                                 video_service=video_service)


def sent_prompt(service):
    return service.client.messages.create.call_args.kwargs["messages"][0]["content"]


# ============================================================================
# Historical summary
# ============================================================================

class TestSummarizeHistory:
    def test_empty(self):
        summary = summarize_history([])
        assert summary.video_count == 0
        assert summary.optimal_duration_min == 15
        assert summary.optimal_duration_max == 60

    def test_averages_and_totals(self):
        summary = summarize_history(VIDEOS)
        assert summary.video_count == 3
        assert summary.total_views == 25000
        assert summary.total_new_followers == 95
        expected = sum(MetricsService.compute(v).f_per_1k for v in VIDEOS) / 3
        assert summary.avg_f_per_1k == pytest.approx(expected)

    def test_top_performer_patterns(self):
        summary = summarize_history(VIDEOS)
        # v3 (8.0 F/1k) and v1 (5.0) beat the average; v2 (0.5) does not
        assert summary.best_hooks == ["No hook", "Nadie te dice esto s"]
        assert summary.optimal_duration_min == 30
        assert summary.optimal_duration_max == 45


# ============================================================================
# Prompt building
# ============================================================================

class TestBuildContextBlock:
    def test_account_context(self):
        context = AccountContext(
            mission="Teach money habits",
            negative_keywords=["crypto", "get rich"],
            audience_personas=[{"persona": "Students", "pains": ["debt"], "desires": ["freedom"]}],
            weights={"retention": 0.25, "saves": 0.5, "follows": 0.25},
        )
        block = build_context_block(context, [], None)
        assert "Mission: Teach money habits" in block
        assert "NEVER use these words or concepts: crypto, get rich" in block
        assert "Students (pains: debt, desires: freedom)" in block
        assert "- Retention: 25%" in block
        assert "=== TIKTOK BRAIN" not in block

    def test_missing_weights_use_defaults(self):
        block = build_context_block(AccountContext(), [], None)
        assert "- Saves: 50%" in block
        assert "Tone guide: Professional but approachable" in block

    def test_examples_and_history(self):
        summary = HistoricalSummary(video_count=4, avg_f_per_1k=2.5)
        block = build_context_block(None, [BRAIN_ROWS[2]], summary)
        assert "=== ACCOUNT CONTEXT" not in block
        assert '1. TYPE: HOOK' in block
        assert 'TEXT: "best hook"' in block
        assert "- 4 videos analysed" in block
        assert "- Average F/1k: 2.5" in block
        assert block.rstrip().endswith("5. Build on the content patterns that have worked")


class TestBuildStrategyPrompt:
    def test_without_history(self):
        prompt = build_strategy_prompt("When should I post?", None, [])
        assert "No historical data is available" in prompt
        assert '"note"' in prompt

    def test_top_and_bottom_videos(self):
        scored = [(v, MetricsService.compute(v)) for v in VIDEOS]
        prompt = build_strategy_prompt("What works?", summarize_history(VIDEOS), scored)
        top = prompt.split("Top 3 videos by F/1k:")[1].split("Bottom 3")[0]
        bottom = prompt.split("Bottom 3 videos by F/1k:")[1]
        assert top.index('"Deudas"') < top.index('"Ahorro 101"')
        assert bottom.index('"Mi rutina"') < bottom.index('"Deudas"')
        assert "25,000 total views" in prompt


# ============================================================================
# Parsing
# ============================================================================

class TestParseScript:
    def test_complete(self):
        script = parse_script(SCRIPT_RESPONSE)
        assert script.hook == "Nadie te dice esto sobre el ahorro"
        assert script.estimated_duration == "35"
        assert script.insights.expected_f1k == "4-6"
        assert script.source == "ai"

    def test_incomplete_raises(self):
        with pytest.raises(ValueError):
            parse_script({"script": {"hook": "Only a hook"}})
        with pytest.raises(ValueError):
            parse_script(None)


# ============================================================================
# Generation
# ============================================================================

class TestGenerateScript:
    def test_parses_fenced_json(self, service):
        service.client.messages.create.return_value = claude_reply(
            "```json\n" + json.dumps(SCRIPT_RESPONSE) + "\n```"
        )

        script = service.generate_script("saving money", vertical="finance")

        assert script.source == "ai"
        assert script.cta == "Follow for part 2"
        call = service.client.messages.create.call_args
        assert call.kwargs["model"] == "claude-test"
        assert call.kwargs["max_tokens"] == 4000

    def test_prompt_is_enriched(self, service):
        service.client.messages.create.return_value = claude_reply(json.dumps(SCRIPT_RESPONSE))
        service.generate_script("saving money")

        prompt = sent_prompt(service)
        assert 'about: "saving money"' in prompt
        assert "Mission: Teach money habits" in prompt
        assert "NEVER use these words or concepts: crypto" in prompt
        assert "- Saves: 60%" in prompt
        # brain examples ranked by saves/1K + F/1k + retention/10, blanks dropped
        assert prompt.index('"best hook"') < prompt.index('"low"')
        assert "Optimal duration: 30-45s" in prompt

    def test_control_characters_are_stripped(self, service):
        service.client.messages.create.return_value = claude_reply("\x07" + json.dumps(SCRIPT_RESPONSE) + "\x00")
        assert service.generate_script("saving money").source == "ai"

    def test_without_history(self, service, video_service):
        service.client.messages.create.return_value = claude_reply(json.dumps(SCRIPT_RESPONSE))
        service.generate_script("saving money", use_history=False)

        video_service.list_videos.assert_not_called()
        assert "BASED ON THIS REAL HISTORICAL DATA" not in sent_prompt(service)

    def test_context_failure_uses_plain_prompt(self, service, mock_db):
        mock_db.table.side_effect = Exception("connection reset")
        service.client.messages.create.return_value = claude_reply(json.dumps(SCRIPT_RESPONSE))

        assert service.generate_script("saving money").source == "ai"
        assert "=== FINAL INSTRUCTIONS ===" not in sent_prompt(service)

    def test_unparseable_response_falls_back(self, service):
        service.client.messages.create.return_value = claude_reply("Sorry, I can't help with that")
        script = service.generate_script("saving money")
        assert script.source == "fallback"
        assert "saving money" in script.hook

    def test_api_error_falls_back(self, service):
        service.client.messages.create.side_effect = Exception("overloaded")
        assert service.generate_script("saving money").source == "fallback"

    def test_without_key_falls_back(self, mock_db, video_service):
        with patch("creatorlens.services.ai_generate_service.get_supabase_client", return_value=mock_db), \
                patch("creatorlens.services.ai_generate_service.Config") as config:
            config.ANTHROPIC_API_KEY = None
            config.get_model.return_value = "claude-test"
            service = AIGenerateService(user_id="user-1", video_service=video_service)

        assert service.client is None
        assert service.generate_script("saving money").source == "fallback"

    def test_empty_description_raises(self, service):
        with pytest.raises(ValueError):
            service.generate_script("   ")


class TestGenerateStrategy:
    def test_parses_response(self, service):
        service.client.messages.create.return_value = claude_reply(json.dumps({
            "analysis": "Finance tutorials convert best",
            "recommendations": ["Post more tutorials", "Shorten intros"],
            "video_examples": [{"title": "Deudas", "reason": "Top F/1k", "metrics": "8.0 F/1k"}],
        }))

        insights = service.generate_strategy("What should I post more of?")

        assert insights.source == "ai"
        assert insights.recommendations == ["Post more tutorials", "Shorten intros"]
        assert insights.video_examples[0].title == "Deudas"
        assert "Top 3 videos by F/1k" in sent_prompt(service)

    def test_history_failure_still_answers(self, service, video_service):
        video_service.list_videos.side_effect = Exception("timeout")
        service.client.messages.create.return_value = claude_reply(
            json.dumps({"analysis": "General advice", "recommendations": [], "note": "Import data"})
        )

        insights = service.generate_strategy("How do I grow?")

        assert insights.note == "Import data"
        assert "No historical data is available" in sent_prompt(service)

    def test_missing_analysis_falls_back(self, service):
        service.client.messages.create.return_value = claude_reply(json.dumps({"recommendations": ["x"]}))
        insights = service.generate_strategy("How do I grow?")
        assert insights.source == "fallback"
        assert insights.recommendations

    def test_empty_question_raises(self, service):
        with pytest.raises(ValueError):
            service.generate_strategy("")
