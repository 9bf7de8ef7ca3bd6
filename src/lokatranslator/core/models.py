"""Data model shared by the collector, extractor, filler and pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# A work unit is the project URL exactly as it appears in the work-list file.
WorkUnit = str


@dataclass
class TranslationItem:
    """One row of the editor: its key id, source text and (once known) translation."""

    id: str
    original: str = ""
    translation: str = ""

    def to_request(self) -> dict[str, str]:
        """Shape sent to the model: ``{"id", "text"}``."""
        return {"id": self.id, "text": self.original}


class UnitState(str, Enum):
    """Stages a project goes through in the unit pipeline."""
    pending = "pending"
    navigated = "navigated"
    collected = "collected"
    translated = "translated"
    filled = "filled"
    done = "done"
    failed = "failed"


@dataclass
class PipelineOutcome:
    """Terminal result of one unit pipeline."""

    unit: WorkUnit
    display_name: str = ""
    success: bool = False
    error: str | None = None
    state: UnitState = UnitState.pending
    collected: int = 0
    translated: int = 0
    from_cache: int = 0
    filled: int = 0
    elapsed_seconds: float = 0.0

    @property
    def label(self) -> str:
        """Display name when known, otherwise the unit itself."""
        return self.display_name or self.unit

    def to_dict(self) -> dict:
        return {
            "unit": self.unit,
            "display_name": self.display_name,
            "success": self.success,
            "error": self.error,
            "state": self.state.value,
            "collected": self.collected,
            "translated": self.translated,
            "from_cache": self.from_cache,
            "filled": self.filled,
            "elapsed_seconds": self.elapsed_seconds,
        }


@dataclass(frozen=True)
class Timings:
    """UI settle delays, in milliseconds."""

    scroll_ms: int = 2000
    editor_load_ms: int = 1500
    focus_ms: int = 300
    before_save_ms: int = 800
    row_next_ms: int = 600

    @property
    def scroll(self) -> float:
        return self.scroll_ms / 1000

    @property
    def editor_load(self) -> float:
        return self.editor_load_ms / 1000

    @property
    def focus(self) -> float:
        return self.focus_ms / 1000

    @property
    def before_save(self) -> float:
        return self.before_save_ms / 1000

    @property
    def row_next(self) -> float:
        return self.row_next_ms / 1000

    @classmethod
    def instant(cls) -> Timings:
        """All delays zero (dry runs and tests)."""
        return cls(0, 0, 0, 0, 0)


@dataclass
class Batch:
    """Append-only, id-keyed collection of translation items for one unit."""

    items: dict[str, TranslationItem] = field(default_factory=dict)

    def add(self, item: TranslationItem) -> bool:
        """Append *item* unless its id is already present. Returns True if added."""
        if item.id in self.items:
            return False
        self.items[item.id] = item
        return True

    def __contains__(self, item_id: object) -> bool:
        return item_id in self.items

    def __len__(self) -> int:
        return len(self.items)

    def to_list(self) -> list[TranslationItem]:
        return list(self.items.values())
