"""
LeadEngine response parser - best-effort JSON array extraction.

The model is asked for a JSON array but frequently wraps it in prose or
markdown fences. Parsing never raises: anything unusable degrades to an
empty list ("no leads found").
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from .models import RawLead


def _find_balanced(text: str, start: int) -> int:
    """Return the index just past the bracket group opening at text[start], or -1."""
    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch in "[{":
            depth += 1
        elif ch in "]}":
            depth -= 1
            if depth == 0:
                return i + 1
    return -1


def extract_json_array(text: str) -> str | None:
    """
    Find the first balanced `[ { ... } ]` substring in free text.

    Brackets inside JSON strings are ignored. Returns None when no
    array of objects is present.
    """
    if not text:
        return None

    pos = text.find("[")
    while pos != -1:
        # Must look like an array of objects: next non-space char is "{"
        rest = text[pos + 1 :].lstrip()
        if rest.startswith("{"):
            end = _find_balanced(text, pos)
            if end != -1:
                return text[pos:end]
        pos = text.find("[", pos + 1)
    return None


def _load(text: str) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None


def _as_records(data: Any) -> list[Any]:
    """Accept a bare array or an object wrapping one under 'leads'."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("leads"), list):
        return data["leads"]
    return []


def parse_leads(text: str | None, structured: bool = False) -> list[RawLead]:
    """
    Parse raw model output into RawLead records.

    Args:
        text: The model's response text.
        structured: True when the provider enforced a strict schema; the
            text is then parsed directly, falling back to scanning.

    Returns:
        Zero or more RawLead records. Items that are not objects, or fail
        validation, are skipped.
    """
    if not text:
        return []

    data = None
    if structured:
        data = _load(text.strip())

    if data is None or not _as_records(data):
        snippet = extract_json_array(text)
        if snippet is None:
            return []
        data = _load(snippet)

    leads = []
    for item in _as_records(data):
        if not isinstance(item, dict):
            continue
        try:
            leads.append(RawLead.model_validate(item))
        except ValidationError:
            continue
    return leads
