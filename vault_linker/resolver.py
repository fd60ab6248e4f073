"""Rewrite free text with wiki-links to the notes its terms resolve to."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Tuple

from .corpus_index import CorpusIndex, IndexSnapshot
from .matching import build_matcher, format_link, is_inside_existing_link, overlaps
from .settings import ConfigurationError

MIN_TERM_LENGTH = 3
DEFAULT_MAX_CANDIDATES = 3


@dataclass(frozen=True)
class LinkMatch:
    term: str
    start: int
    end: int
    identifier: str
    original_text: str


@dataclass
class Suggestion:
    term: str
    candidates: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"term": self.term, "candidates": list(self.candidates)}


@dataclass
class ResolveResult:
    rewritten_text: str
    suggestions: List[Suggestion] = field(default_factory=list)
    links: List[LinkMatch] = field(default_factory=list)


def _validate_max_candidates(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(f"max_candidates_before_skip must be a positive integer, got {value!r}")
    return value


def _has_suggestion(suggestions: Iterable[Suggestion], term: str) -> bool:
    folded = term.lower()
    return any(s.term.lower() == folded for s in suggestions)


def _is_covered(term: str, matches: Iterable[LinkMatch]) -> bool:
    return any(term in match.term and term != match.term for match in matches)


def resolve_with_snapshot(text: str, snapshot: IndexSnapshot, max_candidates_before_skip: int) -> ResolveResult:
    """
    Link the first eligible occurrence of every known term in ``text``.

    Terms are tried longest first. Occurrences inside existing links, overlapping
    a link already placed, or of a term already linked are skipped and the scan
    moves on to the next occurrence. The first remaining occurrence decides the
    term: an exact match is linked, an ambiguous match with at most
    ``max_candidates_before_skip`` candidates becomes a suggestion, anything else
    is left alone. Either way no later occurrence of that term is considered.
    """

    if not text:
        return ResolveResult(rewritten_text=text)

    matches: List[LinkMatch] = []
    suggestions: List[Suggestion] = []
    linked_terms = set()

    for term in snapshot.sorted_terms:
        if len(term) < MIN_TERM_LENGTH:
            continue
        if _is_covered(term, matches):
            continue

        folded = term.lower()
        for found in build_matcher(term).finditer(text):
            start, end = found.span()
            if is_inside_existing_link(text, start, end):
                continue
            if overlaps(start, end, ((m.start, m.end) for m in matches)):
                continue
            if folded in linked_terms:
                continue

            original_text = found.group(0)
            identifier = snapshot.lookup_exact(term)
            if identifier:
                matches.append(LinkMatch(folded, start, end, identifier, original_text))
                linked_terms.add(folded)
            else:
                candidates = snapshot.lookup_ambiguous(term)
                if 0 < len(candidates) <= max_candidates_before_skip and not _has_suggestion(suggestions, term):
                    suggestions.append(
                        Suggestion(term=original_text, candidates=[snapshot.display_name(c) for c in candidates])
                    )
            break

    rewritten = text
    for match in sorted(matches, key=lambda m: m.start, reverse=True):
        link = format_link(snapshot.display_name(match.identifier), match.original_text)
        rewritten = rewritten[: match.start] + link + rewritten[match.end :]

    return ResolveResult(
        rewritten_text=rewritten,
        suggestions=suggestions,
        links=sorted(matches, key=lambda m: m.start),
    )


class ReferenceResolver:
    """
    Applies :func:`resolve_with_snapshot` against the live :class:`CorpusIndex`.

    Each call reads the index snapshot once, so a rebuild published mid-call does
    not affect that call. The resolver never modifies the index.
    """

    def __init__(self, index: CorpusIndex, max_candidates_before_skip: int = DEFAULT_MAX_CANDIDATES) -> None:
        self.index = index
        self.max_candidates_before_skip = _validate_max_candidates(max_candidates_before_skip)

    def set_max_candidates(self, value: int) -> None:
        self.max_candidates_before_skip = _validate_max_candidates(value)

    def resolve(self, text: str) -> ResolveResult:
        return resolve_with_snapshot(text, self.index.snapshot, self.max_candidates_before_skip)

    def resolve_many(self, texts: Iterable[str]) -> Tuple[List[str], List[Suggestion]]:
        """
        Link each of ``texts`` on its own, such as the cues of one transcript.

        Suggestions are merged across texts, keeping the first per term
        (case-insensitive).
        """

        snapshot = self.index.snapshot
        rewritten: List[str] = []
        suggestions: List[Suggestion] = []
        for text in texts:
            result = resolve_with_snapshot(text, snapshot, self.max_candidates_before_skip)
            rewritten.append(result.rewritten_text)
            for suggestion in result.suggestions:
                if not _has_suggestion(suggestions, suggestion.term):
                    suggestions.append(suggestion)
        logging.getLogger(__name__).debug(
            "Linked %d texts, %d suggestions", len(rewritten), len(suggestions)
        )
        return rewritten, suggestions


def resolve(text: str, index: CorpusIndex, max_candidates_before_skip: int = DEFAULT_MAX_CANDIDATES) -> ResolveResult:
    """One-off resolve; the threshold is checked by :class:`ReferenceResolver`."""

    return ReferenceResolver(index, max_candidates_before_skip).resolve(text)


__all__ = [
    "LinkMatch",
    "ReferenceResolver",
    "ResolveResult",
    "Suggestion",
    "resolve",
    "resolve_with_snapshot",
]
