"""Defensive JSON parsing.

``parse_broken_json`` recovers a structured value from model output that is
frequently almost, but not quite, valid JSON:

1. the trimmed text is parsed strictly;
2. with a delimiter ``pair`` the first balanced span is extracted (the whole
   text when there is no opening delimiter, the remainder from the opening
   delimiter when it is never closed);
3. the candidate goes through ``json_repair`` (trailing commas, unquoted
   keys, unbalanced brackets, truncated strings, markdown fences,
   surrounding prose) and is parsed again;
4. anything else yields ``None``.

The function never raises. ``None`` means "could not extract" and the caller
decides what to do about it.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Tuple

from json_repair import repair_json

from ..utils.strings import find_first_pair

logger = logging.getLogger(__name__)


def parse_broken_json(text: Optional[str], *, pair: Optional[Tuple[str, str]] = None) -> Any:
    """
    Best-effort extraction of a JSON value from ``text``.

    Args:
        text: Raw text; ``None`` is treated as an empty string.
        pair: Optional ``(open, close)`` delimiters bounding the JSON span,
            e.g. ``("{", "}")``.

    Returns:
        The parsed value, or ``None`` when nothing could be recovered.
    """
    try:
        source = (text if isinstance(text, str) else "").strip()
        if not source:
            return None

        try:
            return json.loads(source)
        except ValueError:
            pass

        candidate = source
        if pair:
            span = find_first_pair(source, pair)
            if span is not None:
                candidate = span.outer
            else:
                start = source.find(pair[0])
                if start >= 0:
                    candidate = source[start:]

        return _repair(candidate)
    except Exception as e:
        logger.debug(f"Could not recover JSON: {e}")
        return None


def _repair(candidate: str) -> Any:
    candidate = candidate.strip()
    repaired = repair_json(candidate, skip_json_loads=True)
    if not isinstance(repaired, str) or not repaired.strip():
        return None
    value = json.loads(repaired)
    if value == "" and candidate not in ('""', '"'):
        return None
    return value
