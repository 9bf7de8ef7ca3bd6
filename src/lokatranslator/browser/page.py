"""Playwright adapters for the Lokalise editor page.

These classes implement the row-provider protocol used by the collector and
the interaction protocol used by the filler.
"""

from __future__ import annotations

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator, Page

from lokatranslator.core.errors import InteractionError, NavigationError

ROW_SELECTOR = ".row-key[data-id]"
SOURCE_CELL = ".base-cell-trans"
SOURCE_HIGHLIGHT = ".base-cell-trans .highlight"
EMPTY_MARKER = ".empty"
EMPTY_PLACEHOLDER = "Empty"
EMPTY_AFFORDANCE = "text=Empty"
SAVE_BUTTON = "button.save.btn-primary"
EDITOR_SELECTOR = ".ace_text-input, textarea:not([style*='display: none']), [contenteditable='true']"
FILENAME_SELECTOR = "button[id='1'] strong"


def row_selector(row_id: str) -> str:
    return f".row-key[data-id='{row_id}']"


def target_cell_selector(lang: str) -> str:
    return f".cell-trans[data-lang-id='{lang}']"


def clean_display_name(raw: str) -> str:
    """Normalize the file name shown in the editor header."""
    name = raw.replace("\u00a0", " ").strip()
    name = name.removeprefix("Filename: ")
    return name.strip()


class PlaywrightRow:
    """One rendered key row."""

    def __init__(self, locator: Locator) -> None:
        self._row = locator

    def id(self) -> str:
        return self._row.get_attribute("data-id") or ""

    def is_target_empty(self, lang: str) -> bool:
        cell = self._row.locator(target_cell_selector(lang)).first
        # No cell for this language: treat as filled so the row is never typed into.
        if cell.count() == 0:
            return False
        if cell.locator(EMPTY_MARKER).count() > 0:
            return True
        text = cell.inner_text().strip()
        return text in ("", EMPTY_PLACEHOLDER)

    def source_text(self) -> str:
        highlight = self._row.locator(SOURCE_HIGHLIGHT).first
        if highlight.count() > 0:
            text = highlight.inner_text()
            if text.strip():
                return text
        return self._row.locator(SOURCE_CELL).first.inner_text()


class PlaywrightRowProvider:
    """Snapshot of the currently rendered rows plus mouse-wheel scrolling."""

    def __init__(self, page: Page) -> None:
        self._page = page

    def list_rows(self) -> list[PlaywrightRow]:
        return [PlaywrightRow(loc) for loc in self._page.locator(ROW_SELECTOR).all()]

    def scroll_by(self, delta: float) -> None:
        self._page.mouse.wheel(0, delta)


class PlaywrightInteraction:
    """Editor actions used while filling translations."""

    def __init__(self, page: Page) -> None:
        self._page = page

    def scroll_to_row(self, row_id: str) -> None:
        try:
            self._page.locator(row_selector(row_id)).scroll_into_view_if_needed()
        except PlaywrightError as e:
            raise InteractionError(f"Could not scroll to row {row_id}: {e}") from e

    def open_editor(self, row_id: str) -> None:
        try:
            self._page.locator(row_selector(row_id)).locator(EMPTY_AFFORDANCE).click()
        except PlaywrightError as e:
            raise InteractionError(f"Could not open editor for row {row_id}: {e}") from e

    def type_text(self, text: str) -> None:
        try:
            self._page.keyboard.type(text)
        except PlaywrightError as e:
            raise InteractionError(f"Could not type translation: {e}") from e

    def click_save(self) -> None:
        try:
            self._page.locator(SAVE_BUTTON).click()
        except PlaywrightError as e:
            raise InteractionError(f"Could not click save: {e}") from e

    def editor_visible(self) -> bool:
        try:
            return self._page.is_visible(EDITOR_SELECTOR)
        except PlaywrightError:
            return False


class ProjectPage:
    """An opened project editor in its own browser context."""

    def __init__(self, page: Page) -> None:
        self.page = page

    def display_name(self) -> str:
        try:
            raw = self.page.locator(FILENAME_SELECTOR).inner_text()
        except PlaywrightError as e:
            raise NavigationError(f"Could not read the file name: {e}") from e
        return clean_display_name(raw)

    def rows(self) -> PlaywrightRowProvider:
        return PlaywrightRowProvider(self.page)

    def interaction(self) -> PlaywrightInteraction:
        return PlaywrightInteraction(self.page)
