"""Collect empty target-language rows from a virtualized list.

The editor only renders rows near the viewport, so a single pass sees a
fraction of the list. The collector keeps scrolling until several passes in a
row bring no unseen row ids, which tolerates slow rendering without scanning
forever once the list really ends.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from typing import Protocol

from lokatranslator.core.models import Batch, TranslationItem

logger = logging.getLogger(__name__)

SCROLL_STEP = 800.0
MAX_STALLS = 5


class RowHandle(Protocol):
    def id(self) -> str: ...

    def is_target_empty(self, lang: str) -> bool: ...

    def source_text(self) -> str: ...


class RowProvider(Protocol):
    def list_rows(self) -> Sequence[RowHandle]: ...

    def scroll_by(self, delta: float) -> None: ...


def collect_empty_rows(
    provider: RowProvider,
    lang: str,
    *,
    settle_seconds: float = 2.0,
    scroll_step: float = SCROLL_STEP,
    max_stalls: int = MAX_STALLS,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "",
) -> list[TranslationItem]:
    """Scroll through the list and return ``{id, original}`` for every empty row.

    A row is classified once, on its first sighting; if it scrolls out and back
    in later its first classification is kept. Errors while reading rows end
    the scan early and whatever was collected so far is returned. The viewport
    is always scrolled back to where it started.
    """
    batch = Batch()
    seen: set[str] = set()
    stalls = 0
    total_scrolled = 0.0

    logger.info("Scanning for empty rows%s", f" in {label}" if label else "")

    try:
        while stalls < max_stalls:
            new_this_step = 0

            for row in provider.list_rows():
                row_id = row.id()
                if not row_id or row_id in seen:
                    continue
                seen.add(row_id)
                new_this_step += 1

                if row.is_target_empty(lang):
                    batch.add(TranslationItem(id=row_id, original=row.source_text().strip()))

            if new_this_step > 0:
                stalls = 0
            else:
                stalls += 1

            provider.scroll_by(scroll_step)
            total_scrolled += scroll_step
            sleep(settle_seconds)
    except Exception as e:
        logger.warning("Row scan stopped early after %d rows: %s", len(seen), e)
    finally:
        if total_scrolled:
            try:
                provider.scroll_by(-total_scrolled)
            except Exception as e:
                logger.warning("Could not restore scroll position: %s", e)

    logger.info("Scan finished%s: checked=%d collected=%d",
                f" for {label}" if label else "", len(seen), len(batch))
    return batch.to_list()
