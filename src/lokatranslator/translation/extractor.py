"""Recover the translation results from free-form model output.

Models are asked to answer with bare JSON but regularly wrap it in a markdown
fence or surround it with commentary. Fence stripping has to happen before the
brace slice, since a fenced block may itself carry prose around the object.
"""

from __future__ import annotations

import json

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from lokatranslator.core.errors import ExtractionError
from lokatranslator.core.models import TranslationItem

_FENCE = "```"


class ResultEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    translation: str


class ModelResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    results: list[ResultEntry]


def sanitize_response(text: str) -> str:
    """Strip markdown fencing and any prose around the outermost JSON object."""
    text = text.strip()

    if text.startswith(_FENCE):
        if text.startswith(_FENCE + "json"):
            text = text[len(_FENCE + "json"):]
        else:
            text = text[len(_FENCE):]
        if text.endswith(_FENCE):
            text = text[: -len(_FENCE)]
        text = text.strip()

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end != -1 and end > start:
        text = text[start : end + 1]

    return text


def extract_translations(text: str) -> list[TranslationItem]:
    """Parse a model answer into translation items.

    Duplicate ids keep their first occurrence. An empty ``results`` list is a
    valid answer; anything that cannot be parsed raises ExtractionError.
    """
    clean = sanitize_response(text)

    try:
        data = json.loads(clean)
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Could not parse model response: {e}", clean) from e

    try:
        parsed = ModelResponse.model_validate(data)
    except ValidationError as e:
        raise ExtractionError(
            f"Model response does not match the results schema: {e.error_count()} error(s)",
            clean,
        ) from e

    items: dict[str, TranslationItem] = {}
    for entry in parsed.results:
        if entry.id not in items:
            items[entry.id] = TranslationItem(id=entry.id, translation=entry.translation)
    return list(items.values())


def dump_translations(items: list[TranslationItem]) -> str:
    """Serialize items in the same shape the model is asked to answer with."""
    return json.dumps(
        {"results": [{"id": i.id, "translation": i.translation} for i in items]},
        ensure_ascii=False,
    )
