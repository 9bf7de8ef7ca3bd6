"""Runtime settings, read from the environment (and an optional .env file)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from lokatranslator.core.errors import ConfigError
from lokatranslator.core.models import Timings

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = (
    "You are a professional software localizer. Translate each item's \"text\" "
    "into the target language of the project. Keep placeholders, HTML tags, "
    "punctuation and line breaks exactly as in the source."
)


@dataclass
class Settings:
    """Everything a run needs; every field has a default."""

    gemini_api_key: str = ""
    input_file: Path = Path("projects.txt")
    auth_state_file: Path = Path("auth.json")
    max_concurrency: int = 1
    target_lang_id: str = "748"
    model: str = "gemini-2.5-flash"
    prompt: str = DEFAULT_PROMPT
    tg_bot_token: str = ""
    chat_id: str = ""
    base_url: str = "https://app.lokalise.com"
    gemini_api_base: str = "https://generativelanguage.googleapis.com"
    headless: bool = False
    timings: Timings = field(default_factory=Timings)

    def with_overrides(self, **changes: object) -> Settings:
        """Copy with the non-None keyword arguments applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def validate(self) -> None:
        if self.max_concurrency < 1:
            raise ConfigError(f"MAX_CONCURRENCY must be >= 1, got {self.max_concurrency}")
        if not self.target_lang_id:
            raise ConfigError("TARGET_LANG_ID must not be empty")


def _env(key: str, fallback: str) -> str:
    return os.environ.get(key, fallback)


def _env_int(key: str, fallback: int) -> int:
    value = os.environ.get(key)
    if value is None:
        return fallback
    try:
        return int(value)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", key, value, fallback)
        return fallback


def _env_bool(key: str, fallback: bool) -> bool:
    value = os.environ.get(key)
    if value is None:
        return fallback
    return value.strip().lower() in ("1", "true", "yes", "on")


def _read_prompt(path: Path) -> str:
    try:
        text = path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        logger.info("%s not found, using the built-in translation instructions", path)
        return DEFAULT_PROMPT
    except OSError as e:
        raise ConfigError(f"Could not read prompt file {path}: {e}") from e
    return text or DEFAULT_PROMPT


def load_settings(env_file: Path | None = None) -> Settings:
    """Build Settings from environment variables.

    Variables already set in the process take precedence over the .env file.
    Malformed integers fall back to their defaults.
    """
    if env_file is not None:
        if not env_file.exists():
            raise ConfigError(f"Env file not found: {env_file}")
        load_dotenv(env_file)
    else:
        load_dotenv(find_dotenv(usecwd=True))

    defaults = Timings()
    settings = Settings(
        gemini_api_key=_env("GEMINI_API_KEY", ""),
        input_file=Path(_env("INPUT_FILE", "projects.txt")),
        auth_state_file=Path(_env("AUTH_STATE_FILE", "auth.json")),
        max_concurrency=_env_int("MAX_CONCURRENCY", 1),
        target_lang_id=_env("TARGET_LANG_ID", "748"),
        model=_env("MODEL", "gemini-2.5-flash"),
        prompt=_read_prompt(Path(_env("PROMPT_FILE", "prompt.txt"))),
        tg_bot_token=_env("TG_BOT_TOKEN", ""),
        chat_id=_env("CHAT_ID", ""),
        base_url=_env("BASE_URL", "https://app.lokalise.com").rstrip("/"),
        gemini_api_base=_env("GEMINI_API_BASE", "https://generativelanguage.googleapis.com"),
        headless=_env_bool("HEADLESS", False),
        timings=Timings(
            scroll_ms=_env_int("SCROLL_DELAY_MS", defaults.scroll_ms),
            editor_load_ms=_env_int("EDITOR_LOAD_DELAY_MS", defaults.editor_load_ms),
            focus_ms=_env_int("FOCUS_DELAY_MS", defaults.focus_ms),
            before_save_ms=_env_int("BEFORE_SAVE_DELAY_MS", defaults.before_save_ms),
            row_next_ms=_env_int("ROW_NEXT_DELAY_MS", defaults.row_next_ms),
        ),
    )
    settings.validate()
    return settings
