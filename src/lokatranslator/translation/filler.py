"""Type translations into the editor, one row at a time."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Protocol

from lokatranslator.core.errors import InteractionError
from lokatranslator.core.models import Timings, TranslationItem

logger = logging.getLogger(__name__)

EDITOR_POLL_ATTEMPTS = 10
EDITOR_POLL_INTERVAL = 0.2


class Interaction(Protocol):
    def scroll_to_row(self, row_id: str) -> None: ...

    def open_editor(self, row_id: str) -> None: ...

    def type_text(self, text: str) -> None: ...

    def click_save(self) -> None: ...

    def editor_visible(self) -> bool: ...


def _wait_editor_closed(
    interaction: Interaction,
    attempts: int,
    interval: float,
    sleep: Callable[[float], None],
) -> bool:
    for _ in range(attempts):
        if not interaction.editor_visible():
            return True
        sleep(interval)
    return False


def fill_translations(
    interaction: Interaction,
    items: list[TranslationItem],
    timings: Timings,
    *,
    poll_attempts: int = EDITOR_POLL_ATTEMPTS,
    poll_interval: float = EDITOR_POLL_INTERVAL,
    sleep: Callable[[float], None] = time.sleep,
    on_saved: Callable[[TranslationItem], None] | None = None,
) -> int:
    """Apply *items* in order and return how many were saved.

    The first failure raises InteractionError and leaves the remaining items
    untouched; rows saved before it stay saved.
    """
    logger.info("Filling %d translation(s)", len(items))
    saved = 0

    for n, item in enumerate(items, 1):
        try:
            interaction.scroll_to_row(item.id)
            sleep(timings.focus)
            interaction.open_editor(item.id)
            sleep(timings.editor_load)
            interaction.type_text(item.translation)
            sleep(timings.before_save)
            interaction.click_save()
        except InteractionError:
            raise
        except Exception as e:
            raise InteractionError(f"Row {item.id}: {e}") from e

        if not _wait_editor_closed(interaction, poll_attempts, poll_interval, sleep):
            logger.debug("Editor still visible after saving row %s", item.id)

        saved += 1
        logger.debug("[%d/%d] saved row %s", n, len(items), item.id)
        if on_saved is not None:
            on_saved(item)
        sleep(timings.row_next)

    return saved
