"""Shared test fixtures for lokatranslator tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from lokatranslator.config import Settings
from lokatranslator.core.models import Timings


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with zero delays and files under tmp_path."""
    return Settings(
        gemini_api_key="test-key",
        input_file=tmp_path / "projects.txt",
        auth_state_file=tmp_path / "auth.json",
        prompt="Translate into Polish.",
        timings=Timings.instant(),
    )


@pytest.fixture
def worklist_file(tmp_path: Path) -> Path:
    path = tmp_path / "projects.txt"
    path.write_text(
        "https://app.lokalise.com/project/A\n"
        "\n"
        "# staging projects\n"
        "https://app.lokalise.com/project/B\n"
        "https://app.lokalise.com/project/C\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def no_sleep():
    """A sleep replacement that records requested delays."""
    calls: list[float] = []

    def _sleep(seconds: float) -> None:
        calls.append(seconds)

    _sleep.calls = calls  # type: ignore[attr-defined]
    return _sleep


@pytest.fixture
def tmp_cache(tmp_path: Path):
    """Create a temporary translation cache."""
    from lokatranslator.translation.cache import TranslationCache
    cache = TranslationCache(db_path=tmp_path / "test_cache.db")
    yield cache
    cache.close()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path: Path):
    """Keep real .env files and settings out of the tests."""
    for key in (
        "GEMINI_API_KEY", "INPUT_FILE", "AUTH_STATE_FILE", "MAX_CONCURRENCY",
        "TARGET_LANG_ID", "MODEL", "PROMPT_FILE", "TG_BOT_TOKEN", "CHAT_ID",
        "BASE_URL", "GEMINI_API_BASE", "HEADLESS", "SCROLL_DELAY_MS",
        "EDITOR_LOAD_DELAY_MS", "FOCUS_DELAY_MS", "BEFORE_SAVE_DELAY_MS",
        "ROW_NEXT_DELAY_MS",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
