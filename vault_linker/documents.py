"""Documents and vault ingestion for the corpus index."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import yaml

DEFAULT_NOTE_EXTENSION = ".md"
ALIAS_KEYS = ("aliases", "alias")


class FrontmatterError(ValueError):
    """Raised when a note's YAML frontmatter cannot be parsed."""


@dataclass(frozen=True)
class Document:
    identifier: str
    title: str
    # loaders pass a tuple; a bare string or None is also accepted when indexing
    aliases: Optional[Union[Tuple[str, ...], str]] = ()


def normalise_aliases(value: Any) -> List[str]:
    """
    Coerce a frontmatter alias field into a list of non-blank strings.

    Obsidian accepts both ``aliases: Foo`` and ``aliases: [Foo, Bar]``; anything
    that is not a string is ignored.
    """

    if value is None:
        return []
    if isinstance(value, str):
        items = [value]
    elif isinstance(value, (list, tuple, set)):
        items = list(value)
    else:
        return []
    return [item.strip() for item in items if isinstance(item, str) and item.strip()]


def split_frontmatter(text: str) -> Tuple[Dict[str, Any], str, str]:
    """
    Split ``text`` into ``(metadata, body, frontmatter_block)``.

    ``frontmatter_block`` is the raw text including both ``---`` fences so callers
    can write the note back untouched. Text without a closed fence has no metadata.
    """

    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != "---":
        return {}, text, ""

    for idx in range(1, len(lines)):
        if lines[idx].strip() == "---":
            break
    else:
        return {}, text, ""

    raw_yaml = "".join(lines[1:idx])
    try:
        metadata = yaml.safe_load(raw_yaml) or {}
    except yaml.YAMLError as exc:
        raise FrontmatterError(f"Malformed frontmatter: {exc}") from exc
    if not isinstance(metadata, dict):
        raise FrontmatterError("Frontmatter must be a mapping.")

    block = "".join(lines[: idx + 1])
    body = "".join(lines[idx + 1 :])
    return metadata, body, block


def aliases_from_metadata(metadata: Dict[str, Any]) -> List[str]:
    aliases: List[str] = []
    for key in ALIAS_KEYS:
        aliases.extend(normalise_aliases(metadata.get(key)))
    return aliases


def load_vault_documents(vault_path: Path, note_extension: str = DEFAULT_NOTE_EXTENSION) -> List[Document]:
    """
    Walk ``vault_path`` and build a :class:`Document` for every note.

    Hidden directories (``.obsidian``, ``.trash``) are skipped. A note whose file or
    frontmatter cannot be read is still indexed by title, with no aliases.
    """

    logger = logging.getLogger(__name__)
    vault_path = Path(vault_path)
    documents: List[Document] = []

    for note_path in sorted(vault_path.rglob(f"*{note_extension}")):
        relative = note_path.relative_to(vault_path)
        if any(part.startswith(".") for part in relative.parts[:-1]):
            continue
        if not note_path.is_file():
            continue

        aliases: List[str] = []
        try:
            metadata, _, _ = split_frontmatter(note_path.read_text(encoding="utf-8"))
            aliases = aliases_from_metadata(metadata)
        except (OSError, UnicodeDecodeError, FrontmatterError) as exc:
            logger.warning("Could not read metadata for %s: %s", relative.as_posix(), exc)

        title = note_path.name[: -len(note_extension)] if note_extension else note_path.stem
        documents.append(Document(identifier=relative.as_posix(), title=title, aliases=tuple(aliases)))

    logger.debug("Loaded %d documents from %s", len(documents), vault_path)
    return documents


def vault_document_source(
    vault_path: Path,
    note_extension: str = DEFAULT_NOTE_EXTENSION,
) -> Callable[[], List[Document]]:
    """Return a zero-argument callable that rescans ``vault_path`` on every call."""

    def _source() -> List[Document]:
        return load_vault_documents(vault_path, note_extension)

    return _source


__all__ = [
    "DEFAULT_NOTE_EXTENSION",
    "Document",
    "FrontmatterError",
    "aliases_from_metadata",
    "load_vault_documents",
    "normalise_aliases",
    "split_frontmatter",
    "vault_document_source",
]
