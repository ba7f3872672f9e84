"""String helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class PairSpan:
    """A balanced delimiter span inside a text."""

    start: int
    end: int
    inner: str
    outer: str


def find_first_pair(text: str, pair: Tuple[str, str]) -> Optional[PairSpan]:
    """
    Find the first balanced span delimited by ``pair``.

    Delimiters inside double-quoted strings are ignored unless the pair itself
    is made of quote characters.

    Args:
        text: The text to scan.
        pair: ``(open, close)`` delimiter strings.

    Returns:
        The span (``end`` is exclusive), or ``None`` when no opening delimiter
        is found or it is never closed.
    """
    opening, closing = pair
    if not opening or not closing:
        raise ValueError("pair delimiters must be non-empty")

    track_strings = '"' not in opening and '"' not in closing
    depth = 0
    start = -1
    in_string = False
    escaped = False
    i = 0
    while i < len(text):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            i += 1
            continue
        if track_strings and ch == '"' and depth > 0:
            in_string = True
            i += 1
            continue
        if opening != closing and text.startswith(opening, i):
            if depth == 0:
                start = i
            depth += 1
            i += len(opening)
            continue
        if text.startswith(closing, i) and (depth > 0 or opening == closing):
            if opening == closing and depth == 0:
                start = i
                depth = 1
                i += len(closing)
                continue
            depth -= 1
            i += len(closing)
            if depth == 0:
                return PairSpan(
                    start=start,
                    end=i,
                    inner=text[start + len(opening) : i - len(closing)],
                    outer=text[start:i],
                )
            continue
        i += 1
    return None
