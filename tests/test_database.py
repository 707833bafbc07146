"""
Tests for the shared Supabase client and creator account resolution.
"""

from unittest.mock import patch

import pytest

from creatorlens.core import database
from creatorlens.core.database import get_creator_user_id, get_supabase_client, reset_supabase_client


@pytest.fixture(autouse=True)
def fresh_client():
    reset_supabase_client()
    yield
    reset_supabase_client()


class TestGetSupabaseClient:
    def test_created_once_and_shared(self):
        with patch.object(database.Config, "SUPABASE_URL", "https://example.supabase.co"), \
                patch.object(database.Config, "SUPABASE_SERVICE_KEY", "service-key"), \
                patch("creatorlens.core.database.create_client") as create:
            first = get_supabase_client()
            second = get_supabase_client()

        assert first is second
        create.assert_called_once_with("https://example.supabase.co", "service-key")

    def test_reset_reconnects(self):
        with patch.object(database.Config, "SUPABASE_URL", "https://example.supabase.co"), \
                patch.object(database.Config, "SUPABASE_SERVICE_KEY", "service-key"), \
                patch("creatorlens.core.database.create_client") as create:
            get_supabase_client()
            reset_supabase_client()
            get_supabase_client()

        assert create.call_count == 2

    def test_missing_credentials(self):
        with patch.object(database.Config, "SUPABASE_URL", ""), \
                patch("creatorlens.core.database.create_client") as create:
            with pytest.raises(ValueError, match="SUPABASE_URL"):
                get_supabase_client()

        create.assert_not_called()


class TestGetCreatorUserId:
    def test_explicit_id_wins(self):
        with patch.object(database.Config, "CREATOR_USER_ID", "env-user"):
            assert get_creator_user_id("user-1") == "user-1"

    def test_falls_back_to_config(self):
        with patch.object(database.Config, "CREATOR_USER_ID", "env-user"):
            assert get_creator_user_id() == "env-user"

    def test_missing(self):
        with patch.object(database.Config, "CREATOR_USER_ID", ""):
            with pytest.raises(ValueError, match="CREATOR_USER_ID"):
                get_creator_user_id()
