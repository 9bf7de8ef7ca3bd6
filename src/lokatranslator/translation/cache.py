"""SQLite cache for translations to avoid asking the model twice for the same text.

Entries are scoped by a context fingerprint of the backend label (which names
the model) and the instruction text, so changing either one misses the cache.
"""

from __future__ import annotations

import hashlib
import sqlite3
import threading
from pathlib import Path

DEFAULT_CACHE_DIR = Path.home() / ".lokatranslator"
DEFAULT_CACHE_DB = DEFAULT_CACHE_DIR / "cache.db"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS translations (
    original TEXT NOT NULL,
    target_lang TEXT NOT NULL,
    context TEXT NOT NULL DEFAULT '',
    translated TEXT NOT NULL,
    backend TEXT NOT NULL DEFAULT 'gemini',
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (original, target_lang, context)
);
"""


def cache_context(backend_label: str, instructions: str) -> str:
    """Short fingerprint of what produced a translation."""
    digest = hashlib.sha256(f"{backend_label}\n{instructions.strip()}".encode("utf-8"))
    return digest.hexdigest()[:16]


class TranslationCache:
    """Persistent SQLite cache mapping (original, target_lang, context) → translated text.

    Shared by all pipeline threads; every statement runs under one lock.
    """

    def __init__(self, db_path: str | Path | None = None) -> None:
        if db_path is None:
            db_path = DEFAULT_CACHE_DB
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._drop_unscoped_table()
        self._conn.executescript(_SCHEMA)

    def _drop_unscoped_table(self) -> None:
        # Caches written before entries carried a context cannot be attributed.
        columns = {row[1] for row in self._conn.execute("PRAGMA table_info(translations)")}
        if columns and "context" not in columns:
            self._conn.execute("DROP TABLE translations")
            self._conn.commit()

    @property
    def path(self) -> Path:
        return self._db_path

    def get(self, original: str, target_lang: str, context: str = "") -> str | None:
        """Look up a cached translation. Returns None if not found."""
        with self._lock:
            cursor = self._conn.execute(
                "SELECT translated FROM translations "
                "WHERE original = ? AND target_lang = ? AND context = ?",
                (original, target_lang, context),
            )
            row = cursor.fetchone()
        return row[0] if row else None

    def get_batch(
        self,
        originals: list[str],
        target_lang: str,
        context: str = "",
    ) -> dict[str, str]:
        """Look up multiple texts at once. Returns dict of found {original: translated}."""
        if not originals:
            return {}
        # SQLite has a limit of ~999 variables; chunk to stay well within it
        chunk_size = 900
        result: dict[str, str] = {}
        with self._lock:
            for i in range(0, len(originals), chunk_size):
                chunk = originals[i : i + chunk_size]
                placeholders = ",".join("?" for _ in chunk)
                cursor = self._conn.execute(
                    f"SELECT original, translated FROM translations "
                    f"WHERE original IN ({placeholders}) AND target_lang = ? AND context = ?",
                    [*chunk, target_lang, context],
                )
                result.update({row[0]: row[1] for row in cursor.fetchall()})
        return result

    def put_batch(
        self,
        entries: list[tuple[str, str]],
        target_lang: str,
        backend: str = "gemini",
        context: str = "",
    ) -> None:
        """Store multiple translations. Each entry: (original, translated)."""
        with self._lock:
            self._conn.executemany(
                "INSERT OR REPLACE INTO translations "
                "(original, target_lang, context, translated, backend) VALUES (?, ?, ?, ?, ?)",
                [(orig, target_lang, context, trans, backend) for orig, trans in entries],
            )
            self._conn.commit()

    def count(self) -> int:
        """Return total number of cached translations."""
        with self._lock:
            cursor = self._conn.execute("SELECT COUNT(*) FROM translations")
            return cursor.fetchone()[0]  # type: ignore[no-any-return]

    def count_by_lang(self) -> dict[str, int]:
        """Number of cached translations per target language id."""
        with self._lock:
            cursor = self._conn.execute(
                "SELECT target_lang, COUNT(*) FROM translations "
                "GROUP BY target_lang ORDER BY target_lang"
            )
            return {row[0]: row[1] for row in cursor.fetchall()}

    def clear(self) -> int:
        """Clear all cached translations. Returns number of entries deleted."""
        with self._lock:
            cursor = self._conn.execute("DELETE FROM translations")
            self._conn.commit()
        return cursor.rowcount

    def close(self) -> None:
        with self._lock:
            self._conn.close()
