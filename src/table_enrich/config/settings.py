"""
Configuration settings for table enrichment.
Load configuration from environment variables or a .env file.
"""
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_file = Path(__file__).parent.parent.parent.parent / '.env'
if env_file.exists():
    load_dotenv(env_file)


class Settings:
    """Application settings loaded from environment variables."""

    PROJECT_ROOT = Path(__file__).parent.parent.parent.parent

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_DIR = os.getenv('TABLE_ENRICH_LOG_DIR', '')

    # ============================================================================
    # Gemini Configuration
    # ============================================================================
    FAST_MODEL = os.getenv('TABLE_ENRICH_FAST_MODEL', 'gemini-2.5-flash')
    THINKING_MODEL = os.getenv('TABLE_ENRICH_THINKING_MODEL', 'gemini-3-pro-preview')
    THINKING_BUDGET = int(os.getenv('TABLE_ENRICH_THINKING_BUDGET', '32768'))
    FAST_TEMPERATURE = float(os.getenv('TABLE_ENRICH_FAST_TEMPERATURE', '0.1'))

    @classmethod
    def get_api_key(cls) -> Optional[str]:
        """Read the provider key at call time so tests and .env changes are honoured."""
        return os.getenv('GEMINI_API_KEY') or os.getenv('GOOGLE_API_KEY') or None

    @classmethod
    def get_log_dir(cls) -> Optional[Path]:
        log_dir = os.getenv('TABLE_ENRICH_LOG_DIR', cls.LOG_DIR)
        return Path(log_dir) if log_dir else None

    @classmethod
    def validate_required_settings(cls) -> list[str]:
        """
        Validate that all required settings are configured.
        Returns list of missing required settings.
        """
        missing = []

        if not cls.get_api_key():
            missing.append('GEMINI_API_KEY')

        return missing


# Create settings instance
settings = Settings()
