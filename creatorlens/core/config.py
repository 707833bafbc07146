"""
Configuration management for CreatorLens
"""

import os
from typing import Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Application configuration"""

    # Supabase
    SUPABASE_URL: str = os.getenv('SUPABASE_URL', '')
    SUPABASE_SERVICE_KEY: str = os.getenv('SUPABASE_SERVICE_KEY', '')

    # Creator account all queries are scoped to
    CREATOR_USER_ID: str = os.getenv('CREATOR_USER_ID', '')
    CREATOR_TIMEZONE: str = os.getenv('CREATOR_TIMEZONE', 'America/Bogota')

    # Anthropic / OpenAI
    ANTHROPIC_API_KEY: str = os.getenv('ANTHROPIC_API_KEY', '') or os.getenv('CLAUDE_API_KEY', '')
    OPENAI_API_KEY: str = os.getenv('OPENAI_API_KEY', '')

    # CSV import
    IMPORT_BATCH_SIZE: int = int(os.getenv('IMPORT_BATCH_SIZE', '5'))

    # Viral index cutoffs
    VIRAL_INDEX_THRESHOLD: float = float(os.getenv('VIRAL_INDEX_THRESHOLD', '6.5'))
    VIRAL_MIN_VIEWS: int = int(os.getenv('VIRAL_MIN_VIEWS', '10000'))

    # Analytics summary: a video counts as viral above this many views
    VIRAL_VIEWS_SUMMARY: int = int(os.getenv('VIRAL_VIEWS_SUMMARY', '100000'))

    # Seed value written when today's follower entry is missing
    DEFAULT_FOLLOWERS_COUNT: int = int(os.getenv('DEFAULT_FOLLOWERS_COUNT', '0'))

    @classmethod
    def validate(cls) -> bool:
        """Validate required configuration"""
        required = {
            'SUPABASE_URL': cls.SUPABASE_URL,
            'SUPABASE_SERVICE_KEY': cls.SUPABASE_SERVICE_KEY,
        }

        missing = [k for k, v in required.items() if not v]

        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")

        return True

    @classmethod
    def get(cls, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get configuration value"""
        return getattr(cls, key, default)

    # ========================================================================
    # Model Configuration
    # ========================================================================

    DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
    IDEAS_MODEL = "gpt-4o-mini"
    TRANSLATION_MODEL = "gpt-4o-mini"
    EMBEDDING_MODEL = "text-embedding-3-small"

    @classmethod
    def get_model(cls, key: str) -> str:
        """
        Get the configured LLM model for a specific component.

        Resolution Order:
        1. Environment Variable: {KEY}_MODEL (e.g. INSIGHTS_MODEL)
        2. Default mapping in this method
        3. Config.DEFAULT_MODEL

        Args:
            key: component name (e.g., 'insights', 'ideas', 'embedding').
                 Keys are case-insensitive.

        Returns:
            Model string identifier
        """
        key_upper = key.upper()

        env_model = os.getenv(f"{key_upper}_MODEL")
        if env_model:
            return env_model

        mappings = {
            "INSIGHTS": cls.DEFAULT_MODEL,
            "IDEAS": cls.IDEAS_MODEL,
            "TRANSLATION": cls.TRANSLATION_MODEL,
            "EMBEDDING": cls.EMBEDDING_MODEL,
        }

        return mappings.get(key_upper, cls.DEFAULT_MODEL)
