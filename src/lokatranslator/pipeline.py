"""Per-project pipeline: Navigate → Collect → Translate → Fill.

Used by the orchestrator, one instance shared by all worker threads. Each
``run`` call owns its own browser session and returns a PipelineOutcome
instead of raising, so one project's failure never reaches its siblings.
"""

from __future__ import annotations

import logging
import time as _time
from collections.abc import Callable
from contextlib import AbstractContextManager
from threading import Event
from typing import Protocol

from lokatranslator.backends.base import TranslationBackend
from lokatranslator.config import Settings
from lokatranslator.core.errors import CancelledError
from lokatranslator.core.models import PipelineOutcome, TranslationItem, UnitState, WorkUnit
from lokatranslator.translation.cache import TranslationCache, cache_context
from lokatranslator.translation.collector import RowProvider, collect_empty_rows
from lokatranslator.translation.filler import Interaction, fill_translations

logger = logging.getLogger(__name__)


class ProjectSession(Protocol):
    def display_name(self) -> str: ...

    def rows(self) -> RowProvider: ...

    def interaction(self) -> Interaction: ...


SessionFactory = Callable[[Settings, WorkUnit], AbstractContextManager[ProjectSession]]


def _check_cancel(cancel_event: Event | None) -> None:
    """Raise CancelledError if the cancel event is set."""
    if cancel_event is not None and cancel_event.is_set():
        raise CancelledError("Run cancelled")


# ── Backend creation ──


def create_backend(backend_name: str, settings: Settings) -> TranslationBackend:
    """Create a translation backend instance.

    Raises:
        ConfigError: If Gemini is selected without an API key.
    """
    if backend_name == "dummy":
        from lokatranslator.backends.dummy import DummyBackend
        return DummyBackend(tag="dry")

    from lokatranslator.backends.gemini import GeminiBackend
    return GeminiBackend(
        settings.gemini_api_key,
        model=settings.model,
        api_base=settings.gemini_api_base,
    )


# ── Translation with cache ──


def accept_translations(
    requested: list[TranslationItem],
    returned: list[TranslationItem],
) -> list[TranslationItem]:
    """Keep returned items whose id was requested and whose translation is non-empty.

    Output follows the order of *requested*; originals are carried over.
    """
    by_id = {i.id: i for i in returned}
    requested_ids = {r.id for r in requested}
    unknown = [i.id for i in returned if i.id not in requested_ids]
    if unknown:
        logger.warning("Ignoring %d translation(s) for unknown ids: %s",
                       len(unknown), ", ".join(unknown[:10]))

    accepted: list[TranslationItem] = []
    missing = 0
    for req in requested:
        got = by_id.get(req.id)
        if got is None or not got.translation.strip():
            missing += 1
            continue
        accepted.append(TranslationItem(id=req.id, original=req.original,
                                        translation=got.translation))
    if missing:
        logger.warning("%d row(s) came back without a translation", missing)
    return accepted


class UnitPipeline:
    """Runs one project through the stages and reports its outcome."""

    def __init__(
        self,
        settings: Settings,
        backend: TranslationBackend,
        session_factory: SessionFactory,
        *,
        cache: TranslationCache | None = None,
        cancel_event: Event | None = None,
        dry_run: bool = False,
        sleep: Callable[[float], None] = _time.sleep,
    ) -> None:
        self.settings = settings
        self.backend = backend
        self.session_factory = session_factory
        self.cache = cache
        self.cancel_event = cancel_event
        self.dry_run = dry_run
        self._sleep = sleep

    def __call__(self, unit: WorkUnit) -> PipelineOutcome:
        return self.run(unit)

    def run(self, unit: WorkUnit) -> PipelineOutcome:
        outcome = PipelineOutcome(unit=unit)
        t0 = _time.monotonic()
        try:
            self._run_stages(unit, outcome)
            outcome.state = UnitState.done
            outcome.success = True
        except Exception as e:
            logger.error("Failed %s at %s: %s", outcome.label, outcome.state.value, e)
            logger.debug("Failure detail for %s", unit, exc_info=True)
            outcome.state = UnitState.failed
            outcome.error = f"{type(e).__name__}: {e}"
        outcome.elapsed_seconds = _time.monotonic() - t0
        return outcome

    def _run_stages(self, unit: WorkUnit, outcome: PipelineOutcome) -> None:
        settings = self.settings
        _check_cancel(self.cancel_event)

        with self.session_factory(settings, unit) as session:
            outcome.display_name = session.display_name()
            outcome.state = UnitState.navigated
            logger.info("Opened %s (%s)", outcome.display_name, unit)

            _check_cancel(self.cancel_event)
            batch = collect_empty_rows(
                session.rows(),
                settings.target_lang_id,
                settle_seconds=settings.timings.scroll,
                sleep=self._sleep,
                label=outcome.display_name,
            )
            outcome.collected = len(batch)
            outcome.state = UnitState.collected
            if not batch:
                logger.info("No empty rows in %s", outcome.label)
                return

            _check_cancel(self.cancel_event)
            translated = self._translate(batch, outcome)
            outcome.translated = len(translated)
            outcome.state = UnitState.translated
            if not translated:
                logger.warning("Nothing to fill in %s", outcome.label)
                return

            if self.dry_run:
                for item in translated:
                    logger.info("[dry run] %s: %r -> %r", item.id, item.original, item.translation)
                return

            _check_cancel(self.cancel_event)
            outcome.filled = fill_translations(
                session.interaction(),
                translated,
                settings.timings,
                sleep=self._sleep,
            )
            outcome.state = UnitState.filled

    def _translate(
        self,
        batch: list[TranslationItem],
        outcome: PipelineOutcome,
    ) -> list[TranslationItem]:
        """Serve what the cache knows, ask the backend for the rest."""
        lang = self.settings.target_lang_id
        context = cache_context(self.backend.label, self.settings.prompt)
        cached: dict[str, str] = {}
        if self.cache is not None:
            cached = self.cache.get_batch(list({i.original for i in batch}), lang, context=context)

        hits = [TranslationItem(id=i.id, original=i.original, translation=cached[i.original])
                for i in batch if i.original in cached]
        misses = [i for i in batch if i.original not in cached]
        outcome.from_cache = len(hits)

        fresh: list[TranslationItem] = []
        if misses:
            returned = self.backend.translate_items(misses, self.settings.prompt)
            fresh = accept_translations(misses, returned)
            if self.cache is not None and fresh:
                self.cache.put_batch([(i.original, i.translation) for i in fresh], lang,
                                     backend=self.backend.label, context=context)

        by_id = {i.id: i for i in hits + fresh}
        return [by_id[i.id] for i in batch if i.id in by_id]
