"""
AccountContextService - The creator's strategy notes.

One tiktok_account_contexts row per user holds the mission, brand pillars,
audience, tone and banned words that AI generation must respect, plus the
metric weights learned from idea feedback.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from supabase import Client

from ..core.database import get_supabase_client, get_creator_user_id
from ..core.models import AccountContext

logger = logging.getLogger(__name__)

CONTEXTS_TABLE = "tiktok_account_contexts"

# Text fields: blank is stored as NULL
TEXT_FIELDS = ("mission", "positioning", "tone_guide", "north_star_metric")

LIST_FIELDS = (
    "brand_pillars",
    "audience_personas",
    "do_not_do",
    "content_themes",
    "secondary_metrics",
    "strategic_bets",
    "negative_keywords",
)


class AccountContextService:
    """Get and save the account context row."""

    def __init__(self, supabase: Optional[Client] = None, user_id: Optional[str] = None):
        self.supabase = supabase or get_supabase_client()
        self.user_id = get_creator_user_id(user_id)

    def get_context(self) -> Optional[AccountContext]:
        """The stored context, or None when the account has none yet."""
        result = self.supabase.table(CONTEXTS_TABLE).select("*").eq(
            "user_id", self.user_id
        ).limit(1).execute()
        return AccountContext(**result.data[0]) if result.data else None

    def save_context(self, context: Union[AccountContext, Dict[str, Any]]) -> AccountContext:
        """
        Create or replace the context (upsert on user_id).

        Every field is written; fields missing from context are cleared.

        Args:
            context: AccountContext or a dict of its fields

        Returns:
            The stored context

        Raises:
            pydantic.ValidationError: For malformed field values
        """
        if not isinstance(context, AccountContext):
            context = AccountContext(**context)

        row: Dict[str, Any] = {"user_id": self.user_id}
        for field in TEXT_FIELDS:
            value = getattr(context, field)
            row[field] = value.strip() if value and value.strip() else None
        for field in LIST_FIELDS:
            row[field] = getattr(context, field)
        row["weights"] = context.weights or None
        row["updated_at"] = datetime.now(timezone.utc).isoformat()

        result = self.supabase.table(CONTEXTS_TABLE).upsert(
            row, on_conflict="user_id"
        ).execute()
        logger.info(f"Saved account context for user {self.user_id}")
        return AccountContext(**(result.data[0] if result.data else row))

    def save_weights(self, weights: Dict[str, float]) -> None:
        """Write only the weights, creating the row when missing."""
        self.supabase.table(CONTEXTS_TABLE).upsert(
            {"user_id": self.user_id, "weights": weights},
            on_conflict="user_id"
        ).execute()
