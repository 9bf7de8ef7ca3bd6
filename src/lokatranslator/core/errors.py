"""Exception hierarchy.

Unit-fatal errors (navigation, extraction, remote call, interaction) end only
the pipeline of the project they happened in. ``StoreError`` is logged by the
orchestrator and leaves the project in the work-list for the next run.
"""

from __future__ import annotations


class LokaError(Exception):
    """Base class for all lokatranslator errors."""


class ConfigError(LokaError):
    """Invalid or missing configuration."""


class NavigationError(LokaError):
    """Browser could not be started, the page could not be opened or read."""


class RemoteCallError(LokaError):
    """Model request failed or its response envelope is malformed."""


class ExtractionError(LokaError):
    """The model's text does not contain a parseable results object."""

    def __init__(self, message: str, sanitized: str = "") -> None:
        self.sanitized = sanitized
        if sanitized:
            message = f"{message}\nText after sanitization: {sanitized}"
        super().__init__(message)


class InteractionError(LokaError):
    """A row or control was not actionable while filling translations."""


class StoreError(LokaError):
    """Reading or rewriting the work-list file failed."""


class CancelledError(LokaError):
    """Raised between stages once a shutdown has been requested."""
