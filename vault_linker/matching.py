"""Pattern and span helpers used when inserting wiki-links into text."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, Pattern, Tuple

# anything other than word characters and whitespace defeats ``\b`` at the edges
_SPECIAL_CHARS_RE = re.compile(r"[^\w\s]")


@lru_cache(maxsize=4096)
def build_matcher(term: str) -> Pattern[str]:
    """
    Compile a case-insensitive whole-term pattern for ``term``.

    Plain terms use ``\\b`` boundaries. Terms with punctuation (``C++``,
    ``Test-Driven-Development``, ``J. Smith``) are instead bounded by "no word
    character immediately before or after", so they still match as one unit.
    The term text is always escaped.
    """

    escaped = re.escape(term)
    if _SPECIAL_CHARS_RE.search(term):
        pattern = rf"(?<!\w){escaped}(?!\w)"
    else:
        pattern = rf"\b{escaped}\b"
    return re.compile(pattern, re.IGNORECASE)


def is_inside_existing_link(text: str, start: int, end: int) -> bool:
    """
    True when ``text[start:end]`` sits inside ``[[...]]`` or a ``[label](url)`` link.
    """

    before = text[:start]

    if before.count("[[") > before.count("]]"):
        return True

    last_open_bracket = before.rfind("[")
    last_close_bracket = before.rfind("]")
    last_open_paren = before.rfind("](")
    last_close_paren = before.rfind(")")

    # link label
    if last_open_bracket > last_close_bracket and last_open_bracket > last_close_paren:
        close_idx = text.find("]", start)
        if close_idx != -1 and close_idx >= end:
            return True

    # link target
    if last_open_paren > last_close_paren:
        close_idx = text.find(")", start)
        if close_idx != -1 and close_idx >= end:
            return True

    return False


def overlaps(start: int, end: int, spans: Iterable[Tuple[int, int]]) -> bool:
    return any(start < span_end and end > span_start for span_start, span_end in spans)


def format_link(name: str, original_text: str) -> str:
    """
    ``[[name]]`` when the text already reads exactly as the note name, otherwise
    ``[[name|original_text]]`` so the sentence keeps its wording.
    """

    if original_text == name:
        return f"[[{name}]]"
    return f"[[{name}|{original_text}]]"


__all__ = [
    "build_matcher",
    "format_link",
    "is_inside_existing_link",
    "overlaps",
]
