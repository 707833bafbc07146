"""
IdeaFeedbackService - Record how published ideas performed.

Winning ideas with measured results nudge the account's metric weights
toward whatever metric the win excelled at.
"""

import logging
from typing import Any, Dict, List, Optional

from supabase import Client

from ..core.database import get_supabase_client, get_creator_user_id
from ..core.models import IdeaOutcomeType
from .account_context_service import AccountContextService
from .models import IdeaOutcome

logger = logging.getLogger(__name__)

DEFAULT_WEIGHTS: Dict[str, float] = {
    "retention": 0.3,
    "saves": 0.5,
    "follows": 0.2,
    "fyp": 0.0,
}

LEARNING_RATE = 0.05
HISTORY_LIMIT = 50

# (actual metric, threshold, weight bumped)
WEIGHT_RULES = (
    ("saves_per_1k", 2, "saves"),
    ("f_per_1k", 1, "follows"),
    ("retention_pct", 70, "retention"),
)


def adjust_weights(weights: Optional[Dict[str, float]], actual: Dict[str, float]) -> Dict[str, float]:
    """
    Bump each weight whose metric beat its threshold, then renormalise.

    Zero or missing weights start from the defaults. Each bump is capped at
    1.0 before normalisation; the result sums to 1.
    """
    weights = weights or {}
    updated = {key: float(weights.get(key) or default) for key, default in DEFAULT_WEIGHTS.items()}

    for metric, threshold, key in WEIGHT_RULES:
        value = actual.get(metric)
        if value and value > threshold:
            updated[key] = min(1.0, updated[key] + LEARNING_RATE)

    total = sum(updated.values())
    if total > 0:
        updated = {key: value / total for key, value in updated.items()}

    return updated


class IdeaFeedbackService:
    """Stores idea outcomes in content_ideas_feedback."""

    def __init__(self, supabase: Optional[Client] = None, user_id: Optional[str] = None):
        self.supabase = supabase or get_supabase_client()
        self.user_id = get_creator_user_id(user_id)
        self.contexts = AccountContextService(self.supabase, self.user_id)

    def record_outcome(self, outcome: IdeaOutcome) -> bool:
        """
        Save feedback and, for wins with actual metrics, update weights.

        Returns:
            True once the feedback row is stored; database errors propagate
        """
        row = {"user_id": self.user_id, **outcome.model_dump(mode="json")}
        self.supabase.table("content_ideas_feedback").insert(row).execute()
        logger.info(f"Recorded {outcome.outcome.value} for idea {outcome.idea_id}")

        if outcome.outcome == IdeaOutcomeType.WIN and outcome.actual_metrics:
            self.update_context_weights(outcome.actual_metrics)

        return True

    def update_context_weights(self, actual: Dict[str, float]) -> Optional[Dict[str, float]]:
        """
        Apply adjust_weights to the stored account weights.

        An account without a context row starts from DEFAULT_WEIGHTS and gets
        a row holding only the weights. Failures are logged, not raised.
        """
        try:
            context = self.contexts.get_context()
            new_weights = adjust_weights(context.weights if context else None, actual)
            self.contexts.save_weights(new_weights)
            logger.info(f"Updated metric weights: {new_weights}")
            return new_weights
        except Exception as e:
            logger.error(f"Error updating weights: {e}")
            return None

    def get_feedback_history(self) -> List[Dict[str, Any]]:
        """Last 50 feedback rows, newest first; [] on error."""
        try:
            result = self.supabase.table("content_ideas_feedback").select("*").eq(
                "user_id", self.user_id
            ).order("created_at", desc=True).limit(HISTORY_LIMIT).execute()
            return result.data or []
        except Exception as e:
            logger.error(f"Error fetching feedback history: {e}")
            return []
