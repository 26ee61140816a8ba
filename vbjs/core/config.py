"""
Transpiler configuration.

Centralized configuration management with environment variables.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class TranspilerSettings(BaseSettings):
    """Transpiler settings"""

    model_config = SettingsConfigDict(
        env_prefix="VBJS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "vbjs"
    APP_VERSION: str = "0.1.0"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # json or text
    LOG_FILE: Optional[str] = None

    # Output shape
    INDENT: str = "  "
    EMIT_HEADER: bool = True
    CONTAINER_KEYWORD: str = "let"

    # Browser mappings
    ALERT_FUNCTION: str = "alert"
    PROMPT_FUNCTION: str = "prompt"

    # Form objects whose indexed members live in an element collection,
    # e.g. k.r62(1).checked -> k.elements.r62[1].checked when "k" is listed
    FORM_NAMES: list[str] = []
    ELEMENT_COLLECTION: str = "elements"


@lru_cache()
def get_settings() -> TranspilerSettings:
    """Get cached settings instance"""
    return TranspilerSettings()
