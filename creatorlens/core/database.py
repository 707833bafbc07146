"""
Supabase access for CreatorLens

One service-role client is shared by every service; each query is then
scoped to the creator account resolved by get_creator_user_id().
"""

from typing import Optional
from supabase import create_client, Client
from .config import Config


_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Return the shared CreatorLens Supabase client, creating it on first use.

    Raises:
        ValueError: If SUPABASE_URL or SUPABASE_SERVICE_KEY is missing
    """
    global _supabase_client

    if _supabase_client is None:
        Config.validate()
        _supabase_client = create_client(
            Config.SUPABASE_URL,
            Config.SUPABASE_SERVICE_KEY
        )

    return _supabase_client


def reset_supabase_client():
    """Drop the shared client so the next call reconnects."""
    global _supabase_client
    _supabase_client = None


def get_creator_user_id(user_id: Optional[str] = None) -> str:
    """
    Resolve the creator account every query is scoped to.

    Args:
        user_id: Explicit user id; falls back to CREATOR_USER_ID

    Returns:
        User id string

    Raises:
        ValueError: If no user id is configured
    """
    resolved = user_id or Config.CREATOR_USER_ID
    if not resolved:
        raise ValueError("Missing required configuration: CREATOR_USER_ID")
    return resolved
