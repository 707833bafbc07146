"""
Tests for IdeaFeedbackService - idea outcomes and metric weight learning.
"""

from unittest.mock import MagicMock, patch

import pytest

from creatorlens.core.models import IdeaMode, IdeaOutcomeType, IdeaType
from creatorlens.services.idea_feedback_service import (
    DEFAULT_WEIGHTS,
    IdeaFeedbackService,
    adjust_weights,
)
from creatorlens.services.models import IdeaOutcome


@pytest.fixture
def mock_db():
    """Create a mock Supabase client."""
    return MagicMock()


@pytest.fixture
def service(mock_db):
    """Create service with mocked DB."""
    with patch(
        "creatorlens.services.idea_feedback_service.get_supabase_client",
        return_value=mock_db,
    ):
        svc = IdeaFeedbackService(user_id="user-1")
    return svc


def make_outcome(outcome=IdeaOutcomeType.WIN, actual=None):
    return IdeaOutcome(
        idea_id="idea_1",
        idea_text="Nadie te dice esto",
        idea_type=IdeaType.HOOK,
        idea_mode=IdeaMode.EXPLORE,
        outcome=outcome,
        actual_metrics=actual,
    )


# ============================================================================
# adjust_weights
# ============================================================================

class TestAdjustWeights:
    def test_no_improvement_keeps_defaults(self):
        weights = adjust_weights(DEFAULT_WEIGHTS, {"saves_per_1k": 1})
        assert weights == pytest.approx(DEFAULT_WEIGHTS)

    def test_bumps_saves(self):
        weights = adjust_weights(DEFAULT_WEIGHTS, {"saves_per_1k": 3})
        assert weights["saves"] == pytest.approx(0.55 / 1.05)
        assert sum(weights.values()) == pytest.approx(1.0)

    def test_bumps_several(self):
        weights = adjust_weights(None, {"saves_per_1k": 3, "f_per_1k": 2, "retention_pct": 80})
        assert weights["retention"] == pytest.approx(0.35 / 1.15)
        assert weights["follows"] == pytest.approx(0.25 / 1.15)
        assert weights["fyp"] == 0

    def test_zero_weights_start_from_defaults(self):
        weights = adjust_weights({"retention": 0, "saves": 0, "follows": 0, "fyp": 0}, {})
        assert weights == pytest.approx(DEFAULT_WEIGHTS)


# ============================================================================
# record_outcome
# ============================================================================

class TestRecordOutcome:
    def test_stores_row(self, service, mock_db):
        assert service.record_outcome(make_outcome(IdeaOutcomeType.LOSS)) is True
        row = mock_db.table.return_value.insert.call_args.args[0]
        assert row["user_id"] == "user-1"
        assert row["outcome"] == "loss"
        assert row["idea_type"] == "hook"

    def test_win_with_metrics_updates_weights(self, service):
        service.update_context_weights = MagicMock()
        service.record_outcome(make_outcome(actual={"saves_per_1k": 3.0}))
        service.update_context_weights.assert_called_once_with({"saves_per_1k": 3.0})

    def test_loss_does_not_update_weights(self, service):
        service.update_context_weights = MagicMock()
        service.record_outcome(make_outcome(IdeaOutcomeType.LOSS, actual={"saves_per_1k": 3.0}))
        service.update_context_weights.assert_not_called()

    def test_insert_error_propagates(self, service, mock_db):
        mock_db.table.return_value.insert.return_value.execute.side_effect = Exception("boom")
        with pytest.raises(Exception, match="boom"):
            service.record_outcome(make_outcome())


class TestUpdateContextWeights:
    def test_updates_stored_weights(self, service, mock_db):
        chain = mock_db.table.return_value.select.return_value.eq.return_value.limit.return_value
        chain.execute.return_value = MagicMock(data=[{"user_id": "user-1", "weights": dict(DEFAULT_WEIGHTS)}])

        weights = service.update_context_weights({"saves_per_1k": 3})

        mock_db.table.return_value.upsert.assert_called_once_with(
            {"user_id": "user-1", "weights": weights}, on_conflict="user_id"
        )
        assert weights["saves"] > DEFAULT_WEIGHTS["saves"]

    def test_missing_context_creates_weights_row(self, service, mock_db):
        chain = mock_db.table.return_value.select.return_value.eq.return_value.limit.return_value
        chain.execute.return_value = MagicMock(data=[])

        weights = service.update_context_weights({"saves_per_1k": 5.0})

        assert weights is not None
        assert weights["saves"] == pytest.approx(0.55 / 1.05)
        payload = mock_db.table.return_value.upsert.call_args.args[0]
        assert payload == {"user_id": "user-1", "weights": weights}

    def test_win_without_context_row_learns(self, service, mock_db):
        chain = mock_db.table.return_value.select.return_value.eq.return_value.limit.return_value
        chain.execute.return_value = MagicMock(data=[])

        service.record_outcome(make_outcome(actual={"saves_per_1k": 5.0}))

        mock_db.table.return_value.upsert.assert_called_once()

    def test_error_is_logged(self, service, mock_db):
        mock_db.table.side_effect = Exception("boom")
        assert service.update_context_weights({"saves_per_1k": 3}) is None


class TestFeedbackHistory:
    def test_error_returns_empty(self, service, mock_db):
        mock_db.table.side_effect = Exception("boom")
        assert service.get_feedback_history() == []
