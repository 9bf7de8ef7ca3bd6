"""Line-oriented work-list file shared by all pipelines."""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

from lokatranslator.core.errors import StoreError
from lokatranslator.core.models import WorkUnit

logger = logging.getLogger(__name__)


def parse_worklist(text: str) -> list[WorkUnit]:
    """Return the unit references in *text*, in order.

    Blank lines, ``#`` comments and repeated references are dropped.
    """
    units: list[WorkUnit] = []
    seen: set[str] = set()
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or line in seen:
            continue
        seen.add(line)
        units.append(line)
    return units


class WorkList:
    """Pending projects, one URL per line.

    Every mutation is a full read-filter-rewrite under one lock, so removals
    coming from concurrent pipelines always see the latest file contents.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def load(self) -> list[WorkUnit]:
        with self._lock:
            return self._read()

    def remove(self, unit: WorkUnit) -> list[WorkUnit]:
        """Drop *unit* from the file. Returns the units left."""
        with self._lock:
            remaining = [u for u in self._read() if u != unit]
            self._write(remaining)
        logger.debug("Removed %s from %s (%d left)", unit, self.path, len(remaining))
        return remaining

    def _read(self) -> list[WorkUnit]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StoreError(f"Could not read {self.path}: {e}") from e
        return parse_worklist(text)

    def _write(self, units: list[WorkUnit]) -> None:
        content = "".join(f"{u}\n" for u in units)
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            tmp.write_text(content, encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise StoreError(f"Could not rewrite {self.path}: {e}") from e
