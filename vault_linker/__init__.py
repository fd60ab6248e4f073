"""
Index the notes of a vault by title and alias, and link mentions of them in text.

The public surface is small: build a :class:`CorpusIndex`, hand it to a
:class:`ReferenceResolver`, and resolve text.
"""

from .corpus_index import CorpusIndex, IndexSnapshot, build_snapshot  # noqa: F401
from .documents import Document, load_vault_documents, vault_document_source  # noqa: F401
from .resolver import ReferenceResolver, ResolveResult, Suggestion, resolve  # noqa: F401
from .settings import ConfigurationError, LinkerSettings, load_settings  # noqa: F401

__all__ = [
    "ConfigurationError",
    "CorpusIndex",
    "Document",
    "IndexSnapshot",
    "LinkerSettings",
    "ReferenceResolver",
    "ResolveResult",
    "Suggestion",
    "build_snapshot",
    "load_settings",
    "load_vault_documents",
    "resolve",
    "vault_document_source",
]
