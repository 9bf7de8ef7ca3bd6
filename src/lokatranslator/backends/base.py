"""Abstract base class for translation backends."""

from __future__ import annotations

from abc import ABC, abstractmethod

from lokatranslator.core.models import TranslationItem


class TranslationBackend(ABC):
    """Interface for translation backends."""

    label: str = "backend"

    @abstractmethod
    def translate_items(
        self,
        items: list[TranslationItem],
        instructions: str,
    ) -> list[TranslationItem]:
        """Translate a batch of collected rows.

        Args:
            items: Rows with ``id`` and ``original`` set.
            instructions: Free-form translation instructions for the model.

        Returns:
            Items carrying ``id`` and ``translation``. Ids are not guaranteed
            to match the request; callers filter unknown ones.
        """
        ...

    def close(self) -> None:
        """Release any held resources. Default implementation does nothing."""
