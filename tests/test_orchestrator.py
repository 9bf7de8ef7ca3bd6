"""Tests for the bounded orchestrator."""

import threading
import time

import pytest

from lokatranslator.core.models import PipelineOutcome, UnitState
from lokatranslator.core.worklist import WorkList
from lokatranslator.notify.telegram import Notifier
from lokatranslator.orchestrator import BoundedRunner, Orchestrator

A = "https://app.lokalise.com/project/A"
B = "https://app.lokalise.com/project/B"
C = "https://app.lokalise.com/project/C"


class RecordingNotifier(Notifier):
    def __init__(self, fail: bool = False) -> None:
        self.messages: list[str] = []
        self.fail = fail
        self._lock = threading.Lock()

    def send(self, message: str) -> None:
        with self._lock:
            self.messages.append(message)
        if self.fail:
            raise RuntimeError("chat unreachable")


class ConcurrencyProbe:
    """Pipeline double that records how many calls overlap."""

    def __init__(self, delay: float = 0.05, failing: set[str] | None = None) -> None:
        self.delay = delay
        self.failing = failing or set()
        self.active = 0
        self.peak = 0
        self.started: list[str] = []
        self._lock = threading.Lock()

    def __call__(self, unit: str) -> PipelineOutcome:
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
            self.started.append(unit)
        time.sleep(self.delay)
        with self._lock:
            self.active -= 1
        if unit in self.failing:
            return PipelineOutcome(unit=unit, state=UnitState.failed, error="boom")
        return PipelineOutcome(unit=unit, success=True, state=UnitState.done)


def _units(n: int) -> list[str]:
    return [f"https://app.lokalise.com/project/{i}" for i in range(n)]


def _store(tmp_path, units: list[str]) -> WorkList:
    path = tmp_path / "projects.txt"
    path.write_text("".join(f"{u}\n" for u in units), encoding="utf-8")
    return WorkList(path)


class TestConcurrencyBound:
    @pytest.mark.parametrize("limit", [1, 2, 3])
    def test_never_exceeds_limit(self, tmp_path, limit):
        units = _units(8)
        probe = ConcurrencyProbe()
        orch = Orchestrator(probe, _store(tmp_path, units), RecordingNotifier(), limit)

        outcomes = orch.run(units)

        assert len(outcomes) == 8
        assert probe.peak <= limit
        assert probe.peak == limit

    def test_admits_in_worklist_order(self, tmp_path):
        units = _units(5)
        probe = ConcurrencyProbe(delay=0.0)
        Orchestrator(probe, _store(tmp_path, units), RecordingNotifier(), 1).run(units)
        assert probe.started == units

    def test_more_workers_than_units(self, tmp_path):
        probe = ConcurrencyProbe()
        outcomes = Orchestrator(probe, _store(tmp_path, [A]), RecordingNotifier(), 5).run([A])
        assert [o.unit for o in outcomes] == [A]


class TestWorklistUpdates:
    def test_successes_removed_failures_kept(self, tmp_path):
        store = _store(tmp_path, [A, B, C])
        probe = ConcurrencyProbe(delay=0.0, failing={B})

        Orchestrator(probe, store, RecordingNotifier(), 2).run([A, B, C])

        assert store.load() == [B]

    def test_remove_disabled(self, tmp_path):
        store = _store(tmp_path, [A, B])
        Orchestrator(ConcurrencyProbe(delay=0.0), store, RecordingNotifier(), 2,
                     remove_on_success=False).run([A, B])
        assert store.load() == [A, B]

    def test_missing_store_file_does_not_fail_the_run(self, tmp_path):
        store = WorkList(tmp_path / "gone.txt")
        outcomes = Orchestrator(ConcurrencyProbe(delay=0.0), store, RecordingNotifier(), 1).run([A])
        assert outcomes[0].success


class TestNotifications:
    def test_one_message_per_unit(self, tmp_path):
        notifier = RecordingNotifier()
        probe = ConcurrencyProbe(delay=0.0, failing={C})
        Orchestrator(probe, _store(tmp_path, [A, B, C]), notifier, 3).run([A, B, C])

        assert len(notifier.messages) == 3
        assert sum("Done" in m for m in notifier.messages) == 2
        assert sum("Failed" in m for m in notifier.messages) == 1

    def test_notifier_failure_is_swallowed(self, tmp_path):
        store = _store(tmp_path, [A, B])
        notifier = RecordingNotifier(fail=True)
        outcomes = Orchestrator(ConcurrencyProbe(delay=0.0), store, notifier, 1).run([A, B])

        assert all(o.success for o in outcomes)
        assert len(notifier.messages) == 2
        assert store.load() == []


class TestFailureIsolation:
    def test_crash_becomes_failed_outcome(self, tmp_path):
        def process(unit: str) -> PipelineOutcome:
            if unit == B:
                raise RuntimeError("browser died")
            return PipelineOutcome(unit=unit, success=True, state=UnitState.done)

        store = _store(tmp_path, [A, B, C])
        notifier = RecordingNotifier()
        outcomes = Orchestrator(process, store, notifier, 2).run([A, B, C])

        by_unit = {o.unit: o for o in outcomes}
        assert by_unit[B].state == UnitState.failed
        assert "RuntimeError: browser died" in by_unit[B].error
        assert by_unit[A].success and by_unit[C].success
        assert store.load() == [B]
        assert len(notifier.messages) == 3

    def test_on_outcome_callback(self, tmp_path):
        seen: list[str] = []
        Orchestrator(ConcurrencyProbe(delay=0.0), _store(tmp_path, [A, B]), RecordingNotifier(), 1,
                     on_outcome=lambda o: seen.append(o.unit)).run([A, B])
        assert seen == [A, B]


class TestCancellation:
    def test_no_new_admissions_after_cancel(self, tmp_path):
        cancel = threading.Event()
        units = _units(4)

        def process(unit: str) -> PipelineOutcome:
            cancel.set()
            return PipelineOutcome(unit=unit, success=True, state=UnitState.done)

        notifier = RecordingNotifier()
        outcomes = Orchestrator(process, _store(tmp_path, units), notifier, 1,
                                cancel_event=cancel).run(units)

        # with one worker the next admission waits for the first unit to finish
        assert [o.unit for o in outcomes] == units[:1]
        assert len(notifier.messages) == 1

    def test_cancelled_before_run_starts_nothing(self, tmp_path):
        cancel = threading.Event()
        cancel.set()
        probe = ConcurrencyProbe(delay=0.0)
        outcomes = Orchestrator(probe, _store(tmp_path, [A]), RecordingNotifier(), 1,
                                cancel_event=cancel).run([A])
        assert outcomes == []
        assert probe.started == []


class TestBoundedRunner:
    @pytest.mark.parametrize("limit", [0, -1])
    def test_rejects_limit_below_one(self, limit):
        with pytest.raises(ValueError):
            BoundedRunner(limit)

    @pytest.mark.filterwarnings("ignore::pytest.PytestUnhandledThreadExceptionWarning")
    def test_token_released_when_task_raises(self):
        runner = BoundedRunner(1)
        done = threading.Event()

        def boom() -> None:
            raise RuntimeError("task failed")

        runner.submit(boom)
        runner.submit(done.set)
        runner.join()
        assert done.is_set()

    def test_refused_admission_returns_token(self):
        runner = BoundedRunner(1)
        ran: list[str] = []
        assert not runner.submit(lambda: ran.append("skipped"), admit=lambda: False)
        assert runner.submit(lambda: ran.append("ran"))
        runner.join()
        assert ran == ["ran"]
