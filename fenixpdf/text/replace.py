"""Case-insensitive literal find/replace driven by ``{old, new}`` pairs."""

from __future__ import annotations

import logging
import re
from typing import Iterable

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .exceptions import InvalidEditsError

LOGGER = logging.getLogger("fenixpdf.text")


class TextEdit(BaseModel):
    """A single substitution. ``antigo``/``novo`` are accepted as aliases."""

    old: str = Field("", validation_alias=AliasChoices("old", "antigo"))
    new: str = Field("", validation_alias=AliasChoices("new", "novo"))

    model_config = ConfigDict(frozen=True)


_EDITS = TypeAdapter(list[TextEdit])


def parse_edits(raw_value: str | None) -> list[TextEdit]:
    """Parse a JSON encoded list of edits; blank input means no edits."""

    if raw_value is None or not raw_value.strip():
        return []
    try:
        return _EDITS.validate_json(raw_value)
    except ValidationError as exc:
        raise InvalidEditsError(
            "Edits must be a JSON list of objects with 'old' and 'new' strings."
        ) from exc


def apply_replacements(text: str, edits: Iterable[TextEdit]) -> str:
    """Apply every edit to *text* in order.

    ``old`` is matched literally and case-insensitively; ``new`` is inserted
    verbatim. Edits with an empty ``old`` or ``new`` are skipped.
    """

    result = text
    for edit in edits:
        if not edit.old or not edit.new:
            LOGGER.debug("Skipping incomplete edit %r", edit)
            continue
        pattern = re.compile(re.escape(edit.old), re.IGNORECASE)
        result, count = pattern.subn(lambda _match, value=edit.new: value, result)
        LOGGER.debug("Replaced %d occurrence(s) of %r", count, edit.old)
    return result


__all__ = ["TextEdit", "apply_replacements", "parse_edits"]
