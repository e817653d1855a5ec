"""
Project directory name decoding.

Claude Code stores each project's transcripts in a directory named after the
project's absolute path with every separator replaced by ``-``. Since ``-``
is also legal inside path segments the encoding is lossy, so decoding
searches the live filesystem for the path the name most plausibly came from.
"""

from __future__ import annotations

import os
from pathlib import Path

DELIMITER = "-"

# Longer names fall back to the naive decode without searching
MAX_DECODE_SEGMENTS = 64


def encode_project_path(path: str | Path) -> str:
    """Encode an absolute path the way Claude Code names project directories."""
    return str(path).replace(os.sep, DELIMITER)


def decode_project_path(encoded: str, root: str | Path = os.sep) -> str:
    """
    Decode a project directory name back into an absolute path.

    Names that don't start with the delimiter aren't encoded paths and are
    returned unchanged. Otherwise the naive decode wins if it exists; failing
    that, a backtracking search from ``root`` decides, for each delimiter,
    whether it was a separator or a literal ``-``. If nothing on disk matches,
    the naive decode is returned even though it doesn't exist.

    Args:
        encoded: The project directory name.
        root: Where the search starts. Only tests should need to change it.
    """
    if not encoded.startswith(DELIMITER):
        return encoded

    root = str(root)
    segments = encoded[1:].split(DELIMITER)
    naive = os.path.join(root, *segments)

    if os.path.exists(naive):
        return naive
    if len(segments) > MAX_DECODE_SEGMENTS:
        return naive

    return _find_valid_path(root, segments) or naive


def _find_valid_path(base: str, remaining: list[str]) -> str | None:
    if not remaining:
        return base if os.path.exists(base) else None

    head = os.path.join(base, remaining[0])
    if os.path.exists(head):
        found = _find_valid_path(head, remaining[1:])
        if found:
            return found

    if len(remaining) >= 2:
        # Undo one split: treat this delimiter as part of the segment name
        merged = remaining[0] + DELIMITER + remaining[1]
        found = _find_valid_path(base, [merged, *remaining[2:]])
        if found:
            return found

    if len(remaining) == 1 and os.path.exists(head):
        return head

    return None
