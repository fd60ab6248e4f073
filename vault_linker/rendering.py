"""Markdown output for terms that could not be linked automatically."""

from __future__ import annotations

from typing import Iterable

from .resolver import Suggestion

SUGGESTIONS_HEADING = "## Suggested Links"
SUGGESTIONS_INTRO = "*The following terms might refer to existing notes:*"


def render_suggestions(suggestions: Iterable[Suggestion]) -> str:
    """Return a ``## Suggested Links`` section, or an empty string when there is nothing to suggest."""

    bullets = []
    for suggestion in suggestions:
        candidates = ", ".join(f"[[{name}]]" for name in suggestion.candidates)
        bullets.append(f'- **"{suggestion.term}"** might refer to: {candidates}')
    if not bullets:
        return ""
    return "\n".join([SUGGESTIONS_HEADING, "", SUGGESTIONS_INTRO, "", *bullets])


def append_suggestions(text: str, suggestions: Iterable[Suggestion]) -> str:
    section = render_suggestions(suggestions)
    if not section:
        return text
    return text.rstrip("\n") + "\n\n" + section + "\n"


__all__ = ["append_suggestions", "render_suggestions"]
