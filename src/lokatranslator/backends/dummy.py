"""Dummy translation backend for dry runs. Prefixes strings with a [XX] tag."""

from __future__ import annotations

from lokatranslator.backends.base import TranslationBackend
from lokatranslator.core.models import TranslationItem


class DummyBackend(TranslationBackend):
    """Offline backend that prefixes each original with a tag.

    Example: "Save changes" → "[PL] Save changes"
    """

    label = "dummy"

    def __init__(self, tag: str = "XX") -> None:
        self.tag = tag
        self.calls = 0

    def translate_items(
        self,
        items: list[TranslationItem],
        instructions: str,
    ) -> list[TranslationItem]:
        self.calls += 1
        prefix = f"[{self.tag.upper()}]"
        return [TranslationItem(id=i.id, original=i.original, translation=f"{prefix} {i.original}")
                for i in items]
