"""Run notifications. Delivery is best-effort: failures are logged, never raised."""

from __future__ import annotations

import html
import logging
from abc import ABC, abstractmethod

import requests

from lokatranslator.core.models import PipelineOutcome

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org"


def format_outcome(outcome: PipelineOutcome) -> str:
    """HTML message linking to the project, named by its display name."""
    head = "✅ Done:" if outcome.success else "❌ Failed:"
    link = f'<a href="{html.escape(outcome.unit, quote=True)}">{html.escape(outcome.label)}</a>'
    return f"{head}\n{link}"


class Notifier(ABC):
    """Sink for per-unit messages."""

    @abstractmethod
    def send(self, message: str) -> None:
        """Deliver one message."""


class LogNotifier(Notifier):
    """Writes messages to the log; used when no chat credentials are configured."""

    def send(self, message: str) -> None:
        logger.info("Notification: %s", message.replace("\n", " "))


class TelegramNotifier(Notifier):
    """Posts messages to a Telegram chat through the Bot API."""

    def __init__(
        self,
        token: str,
        chat_id: str,
        api_base: str = TELEGRAM_API,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self._url = f"{api_base.rstrip('/')}/bot{token}/sendMessage"
        self.chat_id = chat_id
        self.timeout = timeout
        self._session = session or requests.Session()

    def send(self, message: str) -> None:
        try:
            resp = self._session.post(
                self._url,
                json={
                    "chat_id": self.chat_id,
                    "text": message,
                    "parse_mode": "HTML",
                    "disable_web_page_preview": True,
                },
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            # Token is part of the URL; keep it out of the log.
            logger.error("Telegram notification failed: %s", type(e).__name__)
            logger.debug("Telegram error detail: %s", str(e).replace(self._url, "<sendMessage>"))


def create_notifier(token: str, chat_id: str) -> Notifier:
    if token and chat_id:
        return TelegramNotifier(token, chat_id)
    logger.info("Telegram credentials not set, notifications go to the log only")
    return LogNotifier()
