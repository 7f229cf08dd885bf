"""Runtime configuration read from ``FENIXPDF_*`` environment variables."""

from __future__ import annotations

import dataclasses
import logging
import os

LOGGER = logging.getLogger("fenixpdf.config")

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError:
        LOGGER.warning("Ignoring non-integer value %r for %s", value, name)
        return default


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def env_flag(name: str, default: bool = False) -> bool:
    """Return ``True`` when the environment variable *name* is truthy."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclasses.dataclass(frozen=True, slots=True)
class Settings:
    """Tunable limits used by the loader, workspace and conversion layers."""

    max_upload_bytes: int = 50 * 1024 * 1024
    history_limit: int = 50
    reader_cache_size: int = 10
    ocr_language: str = "por+eng"
    native_text_min_chars: int = 100
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        return cls(
            max_upload_bytes=_env_int("FENIXPDF_MAX_UPLOAD_BYTES", defaults.max_upload_bytes),
            history_limit=_env_int("FENIXPDF_HISTORY_LIMIT", defaults.history_limit),
            reader_cache_size=_env_int("FENIXPDF_READER_CACHE_SIZE", defaults.reader_cache_size),
            ocr_language=_env_str("FENIXPDF_OCR_LANGUAGE", defaults.ocr_language),
            native_text_min_chars=_env_int(
                "FENIXPDF_NATIVE_TEXT_MIN_CHARS", defaults.native_text_min_chars
            ),
            log_level=_env_str("FENIXPDF_LOG_LEVEL", defaults.log_level).upper(),
        )


def get_settings() -> Settings:
    """Return settings for the current environment."""

    return Settings.from_env()


__all__ = ["Settings", "env_flag", "get_settings"]
