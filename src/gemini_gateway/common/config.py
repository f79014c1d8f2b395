"""Startup configuration read from the environment (and an optional .env file)."""
from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Mapping

from dotenv import load_dotenv

DEFAULT_MODEL_ID = "gemini-1.5-flash"
DEFAULT_PORT = 3000
MIN_API_KEY_LENGTH = 20
MAX_BODY_BYTES = 10 * 1024 * 1024
APP_VERSION = "1.0.0"


class SettingsError(RuntimeError):
    """Raised when the process cannot start with the given configuration."""


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, loaded once and never mutated."""
    api_key: str
    model_id: str = DEFAULT_MODEL_ID
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    max_body_bytes: int = MAX_BODY_BYTES
    version: str = APP_VERSION


def load_settings(env: Mapping[str, str] | None = None, dotenv: bool = True) -> Settings:
    """
    Build settings from environment variables.

    Args:
        env: Mapping to read from; defaults to ``os.environ``.
        dotenv: Load a ``.env`` file into ``os.environ`` first (only when
            reading from ``os.environ``).

    Returns:
        Validated settings.

    Raises:
        SettingsError: if API_KEY is missing, too short, or PORT is not a number.
    """
    if env is None:
        if dotenv:
            load_dotenv()
        env = os.environ

    api_key = env.get("API_KEY", "")
    if not api_key:
        raise SettingsError("API_KEY is not set in environment variables")
    if len(api_key) < MIN_API_KEY_LENGTH:
        raise SettingsError("API_KEY appears to be invalid (too short)")

    raw_port = env.get("PORT") or str(DEFAULT_PORT)
    try:
        port = int(raw_port)
    except ValueError:
        raise SettingsError(f"PORT must be an integer, got {raw_port!r}") from None

    return Settings(
        api_key=api_key,
        model_id=env.get("GEMINI_MODEL") or DEFAULT_MODEL_ID,
        host=env.get("HOST") or "0.0.0.0",
        port=port,
        log_level=env.get("LOG_LEVEL") or "INFO",
    )
