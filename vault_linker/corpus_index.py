"""
Term index over a corpus of titled documents.

Every title, explicit alias and (optionally) significant title word is folded to
lower case and mapped to the documents that declare it. Terms claimed by one
document are exact matches; terms claimed by several are ambiguous and are only
ever offered as suggestions. Snapshots are immutable: a rebuild produces a new
:class:`IndexSnapshot` and :class:`CorpusIndex` swaps its reference in one step.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .documents import DEFAULT_NOTE_EXTENSION, Document, normalise_aliases
from .scheduling import Debouncer, TimerFactory

IMPLICIT_ALIAS_MIN_LENGTH = 4
DEFAULT_DEBOUNCE_SECONDS = 0.5

MetadataReader = Callable[[Document], Any]
DocumentSource = Callable[[], Iterable[Document]]


def normalise_term(term: str) -> str:
    return term.strip().lower()


def is_excluded(identifier: str, excluded_prefixes: Iterable[str]) -> bool:
    """
    True when ``identifier`` sits in one of ``excluded_prefixes``.

    Matching is on folder boundaries: ``"Archive"`` excludes ``"Archive/Old.md"``
    but not ``"ArchiveX/Old.md"``.
    """

    for prefix in excluded_prefixes:
        prefix = prefix.strip("/")
        if not prefix:
            continue
        if identifier == prefix or identifier.startswith(prefix + "/"):
            return True
    return False


def display_name(identifier: str, note_extension: str = DEFAULT_NOTE_EXTENSION) -> str:
    """``"People/Sarah Chen.md"`` -> ``"Sarah Chen"``."""

    stem = identifier
    if note_extension and stem.endswith(note_extension):
        stem = stem[: -len(note_extension)]
    return stem.rsplit("/", 1)[-1] or identifier


@dataclass
class _TermEntry:
    # dict keys keep registration order and act as an ordered set
    identifiers: Dict[str, None] = field(default_factory=dict)
    is_explicit: bool = False


@dataclass(frozen=True)
class IndexSnapshot:
    exact_matches: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    ambiguous_matches: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: MappingProxyType({}))
    sorted_terms: Tuple[str, ...] = ()
    note_extension: str = DEFAULT_NOTE_EXTENSION
    document_count: int = 0
    build_ms: float = 0.0
    last_updated: Optional[datetime] = None

    def lookup_exact(self, term: str) -> Optional[str]:
        return self.exact_matches.get(normalise_term(term))

    def lookup_ambiguous(self, term: str) -> List[str]:
        return list(self.ambiguous_matches.get(normalise_term(term), ()))

    def has_matches(self, term: str) -> bool:
        key = normalise_term(term)
        return key in self.exact_matches or key in self.ambiguous_matches

    def display_name(self, identifier: str) -> str:
        return display_name(identifier, self.note_extension)

    def stats(self) -> Dict[str, Any]:
        return {
            "documents": self.document_count,
            "exact": len(self.exact_matches),
            "ambiguous": len(self.ambiguous_matches),
            "terms": len(self.sorted_terms),
            "build_ms": round(self.build_ms, 2),
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }


def _register(entries: Dict[str, _TermEntry], term: str, identifier: str, is_explicit: bool) -> None:
    if not term:
        return
    entry = entries.setdefault(term, _TermEntry())
    entry.identifiers[identifier] = None
    if is_explicit:
        entry.is_explicit = True


def _document_aliases(
    document: Document,
    metadata_reader: Optional[MetadataReader],
) -> List[str]:
    aliases = normalise_aliases(document.aliases)
    if metadata_reader is None:
        return aliases
    try:
        aliases.extend(normalise_aliases(metadata_reader(document)))
    except Exception as exc:
        logging.getLogger(__name__).warning(
            "Could not read aliases for %s; indexing title only: %s", document.identifier, exc
        )
    return aliases


def build_snapshot(
    documents: Iterable[Document],
    excluded_prefixes: Sequence[str] = (),
    generate_implicit_aliases: bool = True,
    note_extension: str = DEFAULT_NOTE_EXTENSION,
    metadata_reader: Optional[MetadataReader] = None,
) -> IndexSnapshot:
    """
    Index ``documents`` into a fresh :class:`IndexSnapshot`.

    Never raises for bad documents: a failing ``metadata_reader`` is logged and the
    document is indexed without the extra aliases.
    """

    logger = logging.getLogger(__name__)
    started = time.perf_counter()
    entries: Dict[str, _TermEntry] = {}
    indexed = 0

    for document in documents:
        if is_excluded(document.identifier, excluded_prefixes):
            continue
        indexed += 1
        title = document.title.strip()
        _register(entries, normalise_term(title), document.identifier, True)

        for alias in _document_aliases(document, metadata_reader):
            _register(entries, normalise_term(alias), document.identifier, True)

        if generate_implicit_aliases and any(ch.isspace() for ch in title):
            for word in title.split():
                if len(word) >= IMPLICIT_ALIAS_MIN_LENGTH:
                    _register(entries, word.lower(), document.identifier, False)

    exact: Dict[str, str] = {}
    ambiguous: Dict[str, Tuple[str, ...]] = {}
    for term, entry in entries.items():
        identifiers = tuple(entry.identifiers)
        # provenance does not change classification; cardinality alone decides
        if len(identifiers) == 1:
            exact[term] = identifiers[0]
        elif len(identifiers) > 1:
            ambiguous[term] = identifiers

    all_terms = list(exact) + list(ambiguous)
    sorted_terms = tuple(sorted(all_terms, key=len, reverse=True))

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.debug(
        "Index built in %.1fms from %d documents: %d exact, %d ambiguous",
        elapsed_ms,
        indexed,
        len(exact),
        len(ambiguous),
    )
    return IndexSnapshot(
        exact_matches=MappingProxyType(exact),
        ambiguous_matches=MappingProxyType(ambiguous),
        sorted_terms=sorted_terms,
        note_extension=note_extension,
        document_count=indexed,
        build_ms=elapsed_ms,
        last_updated=datetime.now(),
    )


class CorpusIndex:
    """
    Holder of the current :class:`IndexSnapshot`.

    Configuration changes apply on the next build. Builds assemble a new snapshot
    off to the side and publish it under a lock, so readers always see either the
    old or the new index. Before the first build every lookup is empty.
    """

    def __init__(
        self,
        document_source: Optional[DocumentSource] = None,
        *,
        excluded_prefixes: Sequence[str] = (),
        generate_implicit_aliases: bool = True,
        note_extension: str = DEFAULT_NOTE_EXTENSION,
        metadata_reader: Optional[MetadataReader] = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        timer_factory: Optional[TimerFactory] = None,
    ) -> None:
        self.document_source = document_source
        self.excluded_prefixes: Tuple[str, ...] = tuple(excluded_prefixes)
        self.generate_implicit_aliases = generate_implicit_aliases
        self.note_extension = note_extension
        self.metadata_reader = metadata_reader
        self._lock = threading.Lock()
        self._build_lock = threading.Lock()
        self._snapshot = IndexSnapshot(note_extension=note_extension)
        self._debouncer = Debouncer(self._rebuild_from_source, debounce_seconds, timer_factory)

    @classmethod
    def from_settings(cls, settings: Any, document_source: Optional[DocumentSource] = None, **kwargs: Any) -> "CorpusIndex":
        return cls(
            document_source,
            excluded_prefixes=settings.excluded_folders,
            generate_implicit_aliases=settings.generate_implicit_aliases,
            note_extension=settings.note_extension,
            debounce_seconds=settings.debounce_seconds,
            **kwargs,
        )

    def configure(self, excluded_prefixes: Sequence[str], generate_implicit_aliases: bool) -> None:
        self.excluded_prefixes = tuple(excluded_prefixes)
        self.generate_implicit_aliases = generate_implicit_aliases

    @property
    def snapshot(self) -> IndexSnapshot:
        with self._lock:
            return self._snapshot

    @property
    def last_updated(self) -> Optional[datetime]:
        return self.snapshot.last_updated

    def build_index(self, documents: Optional[Iterable[Document]] = None) -> IndexSnapshot:
        """
        Rebuild from ``documents``, or from ``document_source`` when omitted.
        """

        if documents is None and self.document_source is None:
            raise ValueError("No documents given and no document source configured.")

        # builds run one at a time; the last one started publishes last
        with self._build_lock:
            if documents is None:
                documents = self.document_source()
            snapshot = build_snapshot(
                documents,
                excluded_prefixes=self.excluded_prefixes,
                generate_implicit_aliases=self.generate_implicit_aliases,
                note_extension=self.note_extension,
                metadata_reader=self.metadata_reader,
            )
            with self._lock:
                self._snapshot = snapshot
        return snapshot

    def schedule_incremental_update(self) -> None:
        """
        Request a rebuild once change notifications go quiet.

        Calls inside the debounce window collapse into a single rebuild.
        """

        self._debouncer.trigger()

    def flush_pending_update(self) -> bool:
        return self._debouncer.flush()

    def cancel_pending_update(self) -> None:
        self._debouncer.cancel()

    @property
    def update_pending(self) -> bool:
        return self._debouncer.pending

    def _rebuild_from_source(self) -> None:
        self.build_index()

    def lookup_exact(self, term: str) -> Optional[str]:
        return self.snapshot.lookup_exact(term)

    def lookup_ambiguous(self, term: str) -> List[str]:
        return self.snapshot.lookup_ambiguous(term)

    def has_matches(self, term: str) -> bool:
        return self.snapshot.has_matches(term)

    def get_sorted_terms(self) -> List[str]:
        return list(self.snapshot.sorted_terms)

    def get_display_name(self, identifier: str) -> str:
        return display_name(identifier, self.note_extension)

    def stats(self) -> Dict[str, Any]:
        return self.snapshot.stats()


__all__ = [
    "CorpusIndex",
    "IMPLICIT_ALIAS_MIN_LENGTH",
    "IndexSnapshot",
    "build_snapshot",
    "display_name",
    "is_excluded",
    "normalise_term",
]
