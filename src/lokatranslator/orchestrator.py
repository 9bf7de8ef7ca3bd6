"""Dispatch projects to pipelines under a concurrency cap.

The orchestrator admits units in work-list order through a counting
semaphore, so at most ``limit`` pipelines run at once. Completion order is
free. Every finished unit gets exactly one notification; succeeded units are
removed from the work-list, failed ones stay for the next run.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from threading import Event, Thread

from lokatranslator.core.errors import StoreError
from lokatranslator.core.models import PipelineOutcome, UnitState, WorkUnit
from lokatranslator.core.worklist import WorkList
from lokatranslator.notify.telegram import Notifier, format_outcome

logger = logging.getLogger(__name__)

ProcessUnit = Callable[[WorkUnit], PipelineOutcome]


class BoundedRunner:
    """Fixed-size token pool over plain threads.

    ``submit`` blocks until a token is free, then starts the task in a new
    thread; the token is released when the task ends, whatever the result.
    An optional ``admit`` check runs once the token is held; when it returns
    False the token goes back and nothing is started.
    """

    def __init__(self, limit: int, name: str = "unit") -> None:
        if limit < 1:
            raise ValueError(f"Concurrency limit must be >= 1, got {limit}")
        self.limit = limit
        self._name = name
        self._tokens = threading.BoundedSemaphore(limit)
        self._threads: list[Thread] = []
        self._count = 0

    def submit(self, fn: Callable[[], None], *, admit: Callable[[], bool] | None = None) -> bool:
        self._tokens.acquire()
        if admit is not None and not admit():
            self._tokens.release()
            return False
        self._count += 1
        thread = Thread(target=self._run, args=(fn,), name=f"{self._name}-{self._count}",
                        daemon=True)
        self._threads.append(thread)
        try:
            thread.start()
        except RuntimeError:
            self._tokens.release()
            raise
        return True

    def _run(self, fn: Callable[[], None]) -> None:
        try:
            fn()
        finally:
            self._tokens.release()

    def join(self) -> None:
        for thread in self._threads:
            thread.join()


class Orchestrator:
    """Runs every unit through ``process_unit`` and records the outcomes."""

    def __init__(
        self,
        process_unit: ProcessUnit,
        store: WorkList,
        notifier: Notifier,
        limit: int = 1,
        *,
        cancel_event: Event | None = None,
        remove_on_success: bool = True,
        on_outcome: Callable[[PipelineOutcome], None] | None = None,
    ) -> None:
        self.process_unit = process_unit
        self.store = store
        self.notifier = notifier
        self.limit = limit
        self.cancel_event = cancel_event
        self.remove_on_success = remove_on_success
        self.on_outcome = on_outcome
        self._outcomes: list[PipelineOutcome] = []
        self._outcomes_lock = threading.Lock()

    def run(self, units: list[WorkUnit]) -> list[PipelineOutcome]:
        """Process *units* and return their outcomes in completion order."""
        self._outcomes = []
        runner = BoundedRunner(self.limit)
        logger.info("Processing %d project(s) with %d worker(s)", len(units), self.limit)

        for unit in units:
            started = runner.submit(lambda unit=unit: self._handle(unit), admit=self._admit)
            if not started:
                logger.warning("Cancelled, %s not started", unit)

        runner.join()
        return list(self._outcomes)

    def _admit(self) -> bool:
        return self.cancel_event is None or not self.cancel_event.is_set()

    def _handle(self, unit: WorkUnit) -> None:
        logger.info("Starting %s", unit)
        try:
            outcome = self.process_unit(unit)
        except Exception as e:
            logger.exception("Pipeline crashed for %s", unit)
            outcome = PipelineOutcome(unit=unit, state=UnitState.failed,
                                      error=f"{type(e).__name__}: {e}")

        if outcome.success:
            if self.remove_on_success:
                try:
                    self.store.remove(unit)
                except StoreError as e:
                    logger.warning("Could not remove %s from the work-list: %s", unit, e)
            logger.info("Finished %s: filled %d of %d empty row(s)",
                        outcome.label, outcome.filled, outcome.collected)
        else:
            logger.error("Failed %s: %s", outcome.label, outcome.error)

        self._notify(outcome)

        with self._outcomes_lock:
            self._outcomes.append(outcome)
        if self.on_outcome is not None:
            self.on_outcome(outcome)

    def _notify(self, outcome: PipelineOutcome) -> None:
        try:
            self.notifier.send(format_outcome(outcome))
        except Exception as e:
            logger.error("Notification for %s failed: %s", outcome.unit, e)
