"""Extraction of a JSON document from free-form model text."""

from __future__ import annotations

_FENCE = "```"


def clean_json_text(text: str) -> str:
    """Strip Markdown code fences or surrounding prose from a JSON response.

    A fenced block (for example one opened with a json fence) yields the text
    between the line after the first fence and the last fence, trimmed.
    Otherwise the text from the first ``{`` or ``[`` to the last ``}`` or ``]``
    is returned. If neither applies, the trimmed text is returned as is.
    """
    text = text.strip()

    start = text.find(_FENCE)
    if start != -1:
        end = text.rfind(_FENCE)
        if start < end:
            newline = text.find("\n", start, end)
            if newline != -1 and newline + 1 < end:
                return text[newline + 1 : end].strip()

    openers = [index for index in (text.find("{"), text.find("[")) if index != -1]
    if openers:
        first = min(openers)
        last = max(text.rfind("}"), text.rfind("]"))
        if last != -1 and first <= last:
            return text[first : last + 1]

    return text