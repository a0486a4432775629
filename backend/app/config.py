"""
Application configuration.

Settings are built from HIGHLIGHT_* environment variables on first use.
Services never read this module directly; the dependency providers pass
the settings in.
"""

import logging
from functools import lru_cache

from pydantic import ValidationError

from app.models.settings_types import HighlightSettings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_settings() -> HighlightSettings:
    """
    Return the cached HighlightSettings.

    Call ``get_settings.cache_clear()`` in tests to reset.

    Raises:
        ValidationError: If an environment variable holds an invalid value
    """
    try:
        return HighlightSettings()
    except ValidationError as e:
        logger.error(f"Invalid HIGHLIGHT_* configuration: {e}")
        raise
