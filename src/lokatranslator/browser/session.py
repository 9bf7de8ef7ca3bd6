"""Browser lifecycle: one-time interactive login and per-project sessions.

Playwright's sync API is bound to the thread that started it, so every
project gets its own Playwright instance, browser and context. This also keeps
one project's navigation from ever touching another project's page.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from playwright.sync_api import Browser, sync_playwright
from playwright.sync_api import Error as PlaywrightError

from lokatranslator.browser.page import ProjectPage
from lokatranslator.config import Settings
from lokatranslator.core.errors import NavigationError
from lokatranslator.core.models import WorkUnit

logger = logging.getLogger(__name__)

COOKIE_ACCEPT_SELECTOR = "[id='onetrust-accept-btn-handler']"
COOKIE_TIMEOUT_MS = 5000


@contextmanager
def open_browser(headless: bool = False) -> Iterator[Browser]:
    """Start Playwright and launch Chromium for the current thread."""
    try:
        pw = sync_playwright().start()
    except Exception as e:
        raise NavigationError(f"Could not start Playwright: {e}") from e
    try:
        try:
            browser = pw.chromium.launch(headless=headless)
        except PlaywrightError as e:
            raise NavigationError(f"Could not launch Chromium: {e}") from e
        try:
            yield browser
        finally:
            browser.close()
    finally:
        pw.stop()


def ensure_login(settings: Settings, confirm: Callable[[], None]) -> bool:
    """Make sure a saved session exists, asking a human to log in if not.

    The browser is launched even when the session file exists, so a broken
    Playwright installation is reported before any project is dispatched.
    Returns True when a new session was recorded.
    """
    with open_browser(settings.headless) as browser:
        if settings.auth_state_file.exists():
            logger.info("Found saved session %s, skipping login", settings.auth_state_file)
            return False

        logger.warning("No saved session found, interactive login required")
        context = browser.new_context()
        try:
            page = context.new_page()
            try:
                page.goto(f"{settings.base_url}/signin")
            except PlaywrightError as e:
                raise NavigationError(f"Could not open the sign-in page: {e}") from e

            try:
                page.locator(COOKIE_ACCEPT_SELECTOR).click(timeout=COOKIE_TIMEOUT_MS)
            except PlaywrightError as e:
                logger.warning("Could not dismiss the cookie banner: %s", e)

            confirm()

            settings.auth_state_file.parent.mkdir(parents=True, exist_ok=True)
            context.storage_state(path=str(settings.auth_state_file))
        finally:
            context.close()

    logger.info("Session saved to %s", settings.auth_state_file)
    return True


@contextmanager
def open_project(settings: Settings, unit: WorkUnit) -> Iterator[ProjectPage]:
    """Open *unit* in a fresh browser context restored from the saved session."""
    with open_browser(settings.headless) as browser:
        try:
            context = browser.new_context(storage_state=str(settings.auth_state_file))
        except PlaywrightError as e:
            raise NavigationError(f"Could not create browser context: {e}") from e
        try:
            try:
                page = context.new_page()
                page.goto(unit)
            except PlaywrightError as e:
                raise NavigationError(f"Could not open {unit}: {e}") from e
            yield ProjectPage(page)
        finally:
            context.close()
