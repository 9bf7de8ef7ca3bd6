"""Run report data model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from lokatranslator.core.models import PipelineOutcome


@dataclass
class RunReport:
    """Collects the outcomes of one orchestrator run."""

    input_file: str = ""
    target_lang: str = ""
    backend: str = ""
    concurrency: int = 1
    units_total: int = 0

    started_at: datetime = field(default_factory=datetime.now)
    finished_at: datetime | None = None

    outcomes: list[PipelineOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)

    @property
    def not_started(self) -> int:
        return self.units_total - len(self.outcomes)

    @property
    def rows_collected(self) -> int:
        return sum(o.collected for o in self.outcomes)

    @property
    def rows_filled(self) -> int:
        return sum(o.filled for o in self.outcomes)

    @property
    def rows_from_cache(self) -> int:
        return sum(o.from_cache for o in self.outcomes)

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    def finish(self) -> None:
        self.finished_at = datetime.now()

    def to_dict(self) -> dict:
        return {
            "input_file": self.input_file,
            "target_lang": self.target_lang,
            "backend": self.backend,
            "concurrency": self.concurrency,
            "units_total": self.units_total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "not_started": self.not_started,
            "rows_collected": self.rows_collected,
            "rows_filled": self.rows_filled,
            "rows_from_cache": self.rows_from_cache,
            "duration_seconds": self.duration_seconds,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }
