"""
Settings Type Definitions

Runtime configuration passed explicitly into the extraction and
annotation services. Values come from HIGHLIGHT_* environment variables
(or a .env file) when the settings are built by app.config.
"""

import logging
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class HighlightSettings(BaseSettings):
    """
    Settings shared by the highlight services.

    exclude_patterns is a multi-line blob; each non-blank line is one
    path rule (exact path, directory prefix or glob). A single-line value
    may separate rules with ";". When exclude_file is set, its contents
    replace exclude_patterns.
    """

    model_config = SettingsConfigDict(
        env_prefix="HIGHLIGHT_",
        env_file=".env",
        extra="ignore",
    )

    exclude_patterns: str = ""
    exclude_file: str | None = None
    max_cache_size: int = Field(default=100, ge=1)
    performance_threshold_ms: float = Field(default=100.0, ge=0)
    db_path: str = "data/highlight_comments.db"
    vault_dir: str = "vault"

    @field_validator("exclude_patterns")
    @classmethod
    def split_inline_rules(cls, v: str) -> str:
        return v.replace(";", "\n")

    @model_validator(mode="after")
    def read_exclude_file(self) -> "HighlightSettings":
        """Load exclude rules from exclude_file when one is configured"""
        if not self.exclude_file:
            return self

        try:
            self.exclude_patterns = Path(self.exclude_file).read_text(
                encoding="utf-8"
            )
        except OSError as e:
            logger.warning(f"Could not read exclude file {self.exclude_file}: {e}")
        return self
