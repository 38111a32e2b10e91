"""
Transcript audit trail.

Reads Claude Code's .jsonl session transcript and answers one question:
has a given skill been loaded in this session?

RULES:
  1. The transcript is owned by Claude Code. Never write to it.
  2. Presence only. Position and count of the marker do not matter.
  3. Fail closed. A missing or unreadable transcript means "not loaded".
  4. A marker is `"skill": "<name>"` or `"skill":"<name>"`. Nothing looser.
"""

import json
import logging
import re
import sys
from pathlib import Path
from typing import Iterable, Iterator, Optional, Protocol, Union

logger = logging.getLogger(__name__)

DEFAULT_MARKER_KEY = "skill"

# One optional space after the colon covers both the pretty form written by
# json.dumps and the compact form written by tool inputs.
_MARKER_SEPARATOR = r": ?"
_JSON_STRING = r'"(?:[^"\\]|\\.)*"'


class AuditTrail(Protocol):
    """Read-only view of acknowledgment events recorded by the host."""

    def has_occurred(self, category: str) -> bool:
        ...


def _encode(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def marker_pattern(category: str, marker_key: str = DEFAULT_MARKER_KEY) -> re.Pattern:
    """Compile the pattern matching both encodings of one acknowledgment."""
    return re.compile(
        re.escape(_encode(marker_key)) + _MARKER_SEPARATOR + re.escape(_encode(category))
    )


def _iter_lines(path: Union[str, Path]) -> Iterator[str]:
    """Yield transcript lines. Undecodable bytes are replaced, not fatal."""
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        yield from f


# =============================================================================
# FILE-BACKED TRAIL
# =============================================================================

class TranscriptAuditTrail:
    """Audit trail backed by a transcript file on disk.

    The file is re-read on every lookup so that each decision reflects the
    transcript as it is at call time.
    """

    def __init__(self, path: Optional[Union[str, Path]], marker_key: str = DEFAULT_MARKER_KEY):
        self.path = Path(path) if path else None
        self.marker_key = marker_key

    def has_occurred(self, category: str) -> bool:
        if not category or self.path is None:
            return False

        pattern = marker_pattern(category, self.marker_key)
        try:
            for line in _iter_lines(self.path):
                if pattern.search(line):
                    return True
        except OSError as e:
            logger.debug("Transcript %s unreadable, treating %s as not loaded: %s",
                         self.path, category, e)
            return False
        return False

    def __repr__(self) -> str:
        return f"TranscriptAuditTrail({str(self.path)!r}, marker_key={self.marker_key!r})"


def find_loaded_skills(
    path: Optional[Union[str, Path]],
    marker_key: str = DEFAULT_MARKER_KEY,
) -> list[str]:
    """List every acknowledged category in a transcript.

    Unique names in order of first appearance. Empty if the transcript is
    missing or unreadable.
    """
    if not path:
        return []

    pattern = re.compile(
        re.escape(_encode(marker_key)) + _MARKER_SEPARATOR + "(" + _JSON_STRING + ")"
    )
    seen = set()
    skills = []
    try:
        for line in _iter_lines(path):
            for match in pattern.finditer(line):
                try:
                    name = json.loads(match.group(1))
                except json.JSONDecodeError:
                    continue
                if name and name not in seen:
                    seen.add(name)
                    skills.append(name)
    except OSError as e:
        logger.debug("Transcript %s unreadable: %s", path, e)
        return []
    return skills


# =============================================================================
# IN-MEMORY TRAIL
# =============================================================================

class InMemoryAuditTrail:
    """Audit trail held in memory, for embedding and tests."""

    def __init__(self, categories: Iterable[str] = ()):
        self._categories = set(categories)

    def record(self, category: str) -> None:
        self._categories.add(category)

    def has_occurred(self, category: str) -> bool:
        return category in self._categories


# =============================================================================
# CLI ENTRY POINT
# =============================================================================

if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: transcript.py <transcript_path> [marker_key]", file=sys.stderr)
        sys.exit(1)

    key = sys.argv[2] if len(sys.argv) > 2 else DEFAULT_MARKER_KEY
    for skill in find_loaded_skills(sys.argv[1], key):
        print(skill)
