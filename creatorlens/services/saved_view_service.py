"""
SavedViewService - Named explorer filter presets.
"""

import logging
from typing import Any, Dict, List, Optional

from supabase import Client

from ..core.database import get_supabase_client, get_creator_user_id
from ..core.models import SavedView
from .explorer_service import SORT_OPTIONS

logger = logging.getLogger(__name__)

SAVED_VIEWS_TABLE = "saved_views"


class SavedViewService:
    """CRUD for the saved_views table."""

    def __init__(self, supabase: Optional[Client] = None, user_id: Optional[str] = None):
        self.supabase = supabase or get_supabase_client()
        self.user_id = get_creator_user_id(user_id)

    def list_views(self) -> List[SavedView]:
        """Saved views, newest first."""
        result = self.supabase.table(SAVED_VIEWS_TABLE).select("*").eq(
            "user_id", self.user_id
        ).order("created_at", desc=True).execute()
        return [SavedView(**row) for row in (result.data or [])]

    def save_view(
        self,
        name: str,
        filters: Dict[str, Any],
        sort_by: str = "published_date_desc",
        normalize_by_1k: bool = False
    ) -> SavedView:
        """
        Store a filter preset.

        Raises:
            ValueError: For an empty name or unknown sort option
        """
        if not name or not name.strip():
            raise ValueError("View name is required")
        if sort_by not in SORT_OPTIONS:
            raise ValueError(f"Invalid sort option: {sort_by}")

        row = {
            "user_id": self.user_id,
            "name": name.strip(),
            "filters": filters,
            "sort_by": sort_by,
            "normalize_by_1k": normalize_by_1k,
        }
        result = self.supabase.table(SAVED_VIEWS_TABLE).insert(row).execute()
        logger.info(f"Saved view: {name}")
        return SavedView(**(result.data[0] if result.data else row))

    def rename_view(self, view_id: str, name: str) -> Optional[SavedView]:
        if not name or not name.strip():
            raise ValueError("View name is required")
        result = self.supabase.table(SAVED_VIEWS_TABLE).update({"name": name.strip()}).eq(
            "id", view_id
        ).eq("user_id", self.user_id).execute()
        return SavedView(**result.data[0]) if result.data else None

    def delete_view(self, view_id: str) -> bool:
        self.supabase.table(SAVED_VIEWS_TABLE).delete().eq(
            "id", view_id
        ).eq("user_id", self.user_id).execute()
        logger.info(f"Deleted view: {view_id}")
        return True
