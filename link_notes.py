#!/usr/bin/env python3
"""
Link mentions of vault notes in a Markdown file or WebVTT transcript.

Examples:
    # Show how many titles/aliases the vault contributes
    python link_notes.py index ~/Vault --terms

    # Link a meeting note in place, appending a "Suggested Links" section
    python link_notes.py link ~/Vault "Meetings/2024-05-02 Standup.md" --in-place

    # Link a transcript and print the result
    python link_notes.py link ~/Vault call.vtt --exclude Templates,Archive
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from vault_linker.corpus_index import CorpusIndex
from vault_linker.documents import FrontmatterError, split_frontmatter, vault_document_source
from vault_linker.rendering import append_suggestions
from vault_linker.resolver import ReferenceResolver
from vault_linker.settings import ConfigurationError, LinkerSettings, load_settings
from vault_linker.transcripts import link_vtt_transcript


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("vault", type=Path, help="Root folder of the vault to index")
    parser.add_argument("--config", type=Path, help="YAML settings file")
    parser.add_argument("--env-file", type=Path, help="Optional .env file with VAULT_LINKER_* variables")
    parser.add_argument("--exclude", help="Comma-separated folders to leave out of the index")
    parser.add_argument("--max-candidates", type=int, help="Largest ambiguous match still offered as a suggestion")
    parser.add_argument(
        "--no-implicit-aliases",
        action="store_true",
        help="Do not index individual words of multi-word titles",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")


def _settings_from_args(args: argparse.Namespace) -> LinkerSettings:
    overrides = {
        "excluded_folders": args.exclude,
        "max_candidates_before_skip": args.max_candidates,
        "generate_implicit_aliases": False if args.no_implicit_aliases else None,
    }
    return load_settings(config_path=args.config, env_file=args.env_file, overrides=overrides)


def _build_index(vault: Path, settings: LinkerSettings) -> CorpusIndex:
    index = CorpusIndex.from_settings(settings, vault_document_source(vault, settings.note_extension))
    index.build_index()
    return index


def link_markdown(text: str, resolver: ReferenceResolver) -> str:
    """Link the body of a note, leaving any frontmatter block untouched."""

    try:
        _, body, frontmatter = split_frontmatter(text)
    except FrontmatterError as exc:
        logging.getLogger("link_notes").warning("Treating note as plain text: %s", exc)
        body, frontmatter = text, ""
    result = resolver.resolve(body)
    return frontmatter + append_suggestions(result.rewritten_text, result.suggestions)


def cmd_index(args: argparse.Namespace, settings: LinkerSettings) -> int:
    index = _build_index(args.vault, settings)
    stats = index.stats()
    print(f"Documents: {stats['documents']}")
    print(f"Exact terms: {stats['exact']}")
    print(f"Ambiguous terms: {stats['ambiguous']}")
    print(f"Built in {stats['build_ms']}ms")
    if args.terms:
        snapshot = index.snapshot
        for term in snapshot.sorted_terms:
            target = snapshot.lookup_exact(term)
            if target:
                print(f"  {term} -> {target}")
            else:
                print(f"  {term} -> ambiguous: {', '.join(snapshot.lookup_ambiguous(term))}")
    return 0


def cmd_link(args: argparse.Namespace, settings: LinkerSettings) -> int:
    source: Path = args.input
    if not source.exists():
        print(f"[error] Input file not found: {source}", file=sys.stderr)
        return 1

    if source.suffix.lower() == ".vtt":
        if args.in_place:
            print("[error] --in-place is not supported for WebVTT input", file=sys.stderr)
            return 2
        if settings.auto_linking_enabled:
            index = _build_index(args.vault, settings)
            resolver = ReferenceResolver(index, settings.max_candidates_before_skip)
            transcript = link_vtt_transcript(source, resolver)
            output = append_suggestions(transcript.text, transcript.suggestions)
        else:
            output = source.read_text(encoding="utf-8")
    else:
        text = source.read_text(encoding="utf-8")
        if settings.auto_linking_enabled:
            index = _build_index(args.vault, settings)
            resolver = ReferenceResolver(index, settings.max_candidates_before_skip)
            output = link_markdown(text, resolver)
        else:
            logging.getLogger("link_notes").info("Auto-linking disabled; passing text through")
            output = text

    destination: Optional[Path] = source if args.in_place else args.output
    if destination is None:
        sys.stdout.write(output)
    else:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(output, encoding="utf-8")
        print(f"[info] Wrote {destination}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Auto-link vault notes in text.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    index_p = subparsers.add_parser("index", help="Build the vault index and print statistics")
    _add_common_args(index_p)
    index_p.add_argument("--terms", action="store_true", help="Also list every indexed term, longest first")
    index_p.set_defaults(func=cmd_index)

    link_p = subparsers.add_parser("link", help="Insert [[wiki-links]] into a note or transcript")
    _add_common_args(link_p)
    link_p.add_argument("input", type=Path, help="Markdown, text or .vtt file to link")
    target = link_p.add_mutually_exclusive_group()
    target.add_argument("-o", "--output", type=Path, help="Write the result here instead of stdout")
    target.add_argument("--in-place", action="store_true", help="Overwrite the input note")
    link_p.set_defaults(func=cmd_link)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    if not args.vault.is_dir():
        print(f"[error] Vault folder not found: {args.vault}", file=sys.stderr)
        return 1

    try:
        settings = _settings_from_args(args)
    except ConfigurationError as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 2

    return args.func(args, settings)


if __name__ == "__main__":
    raise SystemExit(main())
