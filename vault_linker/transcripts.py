"""Link the cues of a WebVTT transcript against the corpus index."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

import webvtt

from .resolver import ReferenceResolver, Suggestion

COLON_SPEAKER_PATTERN = re.compile(r"^\s*([^:]{1,100})\s*:\s*(.+)$", re.DOTALL)


@dataclass
class LinkedTranscript:
    lines: List[str] = field(default_factory=list)
    suggestions: List[Suggestion] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(self.lines) + ("\n" if self.lines else "")


def split_speaker(cue_text: str) -> Tuple[Optional[str], str]:
    """``"Sarah: hello"`` -> ``("Sarah", "hello")``; no prefix -> ``(None, text)``."""

    text = " ".join(line.strip() for line in cue_text.splitlines() if line.strip())
    match = COLON_SPEAKER_PATTERN.match(text)
    if match:
        return match.group(1).strip(), match.group(2).strip()
    return None, text


def link_vtt_transcript(path: Path, resolver: ReferenceResolver) -> LinkedTranscript:
    """
    Read ``path`` with ``webvtt`` and link the spoken text of every cue.

    Speaker prefixes are kept out of linking so a speaker's name is not linked on
    every line. Cues are linked independently, like transcript segments.
    """

    logger = logging.getLogger(__name__)
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"WebVTT file {path} not found.")

    speakers: List[Optional[str]] = []
    texts: List[str] = []
    for caption in webvtt.read(str(path)):
        speaker, text = split_speaker(caption.text)
        if not text:
            continue
        speakers.append(speaker)
        texts.append(text)

    linked, suggestions = resolver.resolve_many(texts)
    lines = [f"{speaker}: {text}" if speaker else text for speaker, text in zip(speakers, linked)]
    logger.info("Linked %d cues from %s", len(lines), path.name)
    return LinkedTranscript(lines=lines, suggestions=suggestions)


__all__ = ["LinkedTranscript", "link_vtt_transcript", "split_speaker"]
