"""Gemini generateContent translation backend."""

from __future__ import annotations

import json
import logging
import time
from typing import Any

import requests

from lokatranslator.backends.base import TranslationBackend
from lokatranslator.core.errors import ConfigError, RemoteCallError
from lokatranslator.core.models import TranslationItem
from lokatranslator.translation.extractor import extract_translations

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://generativelanguage.googleapis.com"
DEFAULT_TIMEOUT = 300.0
MAX_RETRIES = 3
RETRY_SECONDS = 2.0
_RETRY_STATUSES = {429, 500, 502, 503, 504}
API_KEY_HEADER = "x-goog-api-key"

RESPONSE_CONTRACT = """IMPORTANT: Respond ONLY with a valid JSON object.
Do NOT repeat the translation twice in the output string.
Structure: {"results": [{"id": "ID_HERE", "translation": "TRANSLATED_TEXT_HERE"}, ...]}"""


def build_prompt(items: list[TranslationItem], instructions: str) -> str:
    """Render the instructions and the rows into a single prompt."""
    payload = json.dumps([i.to_request() for i in items], ensure_ascii=False)
    return f"{instructions.strip()}\n\n{RESPONSE_CONTRACT}\n\nData to translate: {payload}"


def unwrap_generated_text(payload: Any) -> str:
    """Return ``candidates[0].content.parts[0].text`` from a Gemini response.

    Raises RemoteCallError if any level of the envelope is missing or has an
    unexpected type.
    """
    if not isinstance(payload, dict):
        raise RemoteCallError(f"Unexpected response type: {type(payload).__name__}")

    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        feedback = payload.get("promptFeedback") or payload.get("error")
        raise RemoteCallError(f"No candidates in response: {feedback or payload}")

    candidate = candidates[0]
    content = candidate.get("content") if isinstance(candidate, dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list) or not parts:
        reason = candidate.get("finishReason") if isinstance(candidate, dict) else None
        raise RemoteCallError(f"Candidate has no content parts (finishReason={reason})")

    text = parts[0].get("text") if isinstance(parts[0], dict) else None
    if not isinstance(text, str):
        raise RemoteCallError("First content part carries no text")
    return text


class GeminiBackend(TranslationBackend):
    """Translation backend calling the Gemini REST API."""

    label = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        api_base: str = DEFAULT_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        if not api_key:
            raise ConfigError("Gemini API key required. Set GEMINI_API_KEY.")
        self.api_key = api_key
        self.model = model
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self.label = f"gemini:{model}"

    @property
    def url(self) -> str:
        return f"{self.api_base}/v1/models/{self.model}:generateContent"

    def translate_items(
        self,
        items: list[TranslationItem],
        instructions: str,
    ) -> list[TranslationItem]:
        if not items:
            return []

        logger.info("Requesting %d translation(s) from %s", len(items), self.model)
        body = {"contents": [{"parts": [{"text": build_prompt(items, instructions)}]}]}
        payload = self._post_with_retry(body)
        text = unwrap_generated_text(payload)
        logger.debug("Raw model text: %s", text)
        return extract_translations(text)

    def _redact(self, text: str) -> str:
        return text.replace(self.api_key, "***")

    def _post_with_retry(self, body: dict) -> Any:
        """POST the request, retrying on rate limits and transient failures."""
        for attempt in range(MAX_RETRIES):
            try:
                resp = self._session.post(
                    self.url,
                    headers={API_KEY_HEADER: self.api_key},
                    json=body,
                    timeout=self.timeout,
                )
            except (requests.ConnectionError, requests.Timeout) as e:
                if attempt < MAX_RETRIES - 1:
                    logger.warning("Gemini request failed (%s), retrying", self._redact(str(e)))
                    time.sleep(RETRY_SECONDS * (attempt + 1))
                    continue
                raise RemoteCallError(f"Gemini request failed: {self._redact(str(e))}") from None
            except requests.RequestException as e:
                raise RemoteCallError(f"Gemini request failed: {self._redact(str(e))}") from None

            if resp.status_code in _RETRY_STATUSES and attempt < MAX_RETRIES - 1:
                logger.warning("Gemini returned HTTP %d, retrying", resp.status_code)
                time.sleep(RETRY_SECONDS * (attempt + 1))
                continue

            if not resp.ok:
                raise RemoteCallError(
                    f"Gemini returned HTTP {resp.status_code}: {self._redact(resp.text[:500])}"
                )
            try:
                return resp.json()
            except ValueError as e:
                raise RemoteCallError(
                    f"Gemini response is not JSON: {self._redact(resp.text[:500])}"
                ) from e

        raise RemoteCallError("Gemini request failed after retries")  # unreachable
