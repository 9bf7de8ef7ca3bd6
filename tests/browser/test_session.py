"""Tests for the browser lifecycle (Playwright mocked)."""

from unittest.mock import MagicMock, patch

import pytest
from playwright.sync_api import Error as PlaywrightError

from lokatranslator.browser.page import ProjectPage
from lokatranslator.browser.session import COOKIE_ACCEPT_SELECTOR, ensure_login, open_project
from lokatranslator.core.errors import NavigationError


@pytest.fixture
def playwright():
    """Patch sync_playwright and return the mocked Playwright instance."""
    with patch("lokatranslator.browser.session.sync_playwright") as factory:
        pw = factory.return_value.start.return_value
        yield pw


def _browser(pw) -> MagicMock:
    return pw.chromium.launch.return_value


class TestEnsureLogin:
    def test_existing_session_skips_login(self, settings, playwright):
        settings.auth_state_file.write_text("{}", encoding="utf-8")
        confirm = MagicMock()

        assert ensure_login(settings, confirm) is False

        confirm.assert_not_called()
        playwright.chromium.launch.assert_called_once_with(headless=False)
        _browser(playwright).new_context.assert_not_called()
        _browser(playwright).close.assert_called_once()
        playwright.stop.assert_called_once()

    def test_interactive_login_saves_state(self, settings, playwright):
        confirm = MagicMock()

        assert ensure_login(settings, confirm) is True

        context = _browser(playwright).new_context.return_value
        page = context.new_page.return_value
        page.goto.assert_called_once_with("https://app.lokalise.com/signin")
        page.locator.assert_called_with(COOKIE_ACCEPT_SELECTOR)
        confirm.assert_called_once()
        context.storage_state.assert_called_once_with(path=str(settings.auth_state_file))
        context.close.assert_called_once()

    def test_cookie_banner_failure_is_not_fatal(self, settings, playwright):
        context = _browser(playwright).new_context.return_value
        page = context.new_page.return_value
        page.locator.return_value.click.side_effect = PlaywrightError("timeout")

        assert ensure_login(settings, MagicMock()) is True
        context.storage_state.assert_called_once()

    def test_launch_failure(self, settings, playwright):
        playwright.chromium.launch.side_effect = PlaywrightError("no chromium")
        with pytest.raises(NavigationError, match="launch"):
            ensure_login(settings, MagicMock())
        playwright.stop.assert_called_once()


class TestOpenProject:
    def test_yields_project_page_and_cleans_up(self, settings, playwright):
        unit = "https://app.lokalise.com/project/A"
        with open_project(settings, unit) as project:
            assert isinstance(project, ProjectPage)

        browser = _browser(playwright)
        browser.new_context.assert_called_once_with(storage_state=str(settings.auth_state_file))
        context = browser.new_context.return_value
        context.new_page.return_value.goto.assert_called_once_with(unit)
        context.close.assert_called_once()
        browser.close.assert_called_once()

    def test_navigation_failure(self, settings, playwright):
        context = _browser(playwright).new_context.return_value
        context.new_page.return_value.goto.side_effect = PlaywrightError("net::ERR")

        with pytest.raises(NavigationError, match="Could not open"):
            with open_project(settings, "https://bad"):
                pass
        context.close.assert_called_once()

    def test_context_closed_when_body_raises(self, settings, playwright):
        with pytest.raises(RuntimeError):
            with open_project(settings, "https://app.lokalise.com/project/A"):
                raise RuntimeError("collector blew up")
        _browser(playwright).new_context.return_value.close.assert_called_once()
