# File: schemaguard/utils.py
"""
NexaFlow SchemaGuard - Utility Functions & Helpers
===================================================
String case converters shared by the rule primitives and the suggestion
generator, plus the small amount of file I/O and timing support used by
the CLI.

Performance strategy:
- ALL string-conversion functions are decorated with ``@lru_cache(maxsize=None)``
  so the repeated calls made while validating every column of a large
  project are amortised to O(1) after the first invocation.
- The converters are intentionally simple character-class transforms, not
  dictionary-aware word splitters: ``to_pascal_case`` and ``to_snake_case``
  are *not* inverses of each other, and ``to_snake_case("USER")`` yields
  ``"u_s_e_r"``.  Suggestions built on them are one-way best effort.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import List

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemaguard.utils")

# ---------------------------------------------------------------------------
# Word-boundary patterns
# ---------------------------------------------------------------------------

_SEGMENT_DELIMITER_RE: re.Pattern[str] = re.compile(r"[^A-Za-z0-9]+")
_UPPER_LETTER_RE: re.Pattern[str] = re.compile(r"([A-Z])")
_LOWER_THEN_UPPER_RE: re.Pattern[str] = re.compile(r"([a-z])([A-Z])")


# ---------------------------------------------------------------------------
# Case converters (memoised)
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def to_pascal_case(name: str) -> str:
    """
    Capitalise the first letter of every delimiter-separated segment and
    strip the delimiters.

    Any character outside ``[A-Za-z0-9]`` counts as a delimiter.  The rest of
    each segment is left untouched.

    Examples:
        >>> to_pascal_case("user_name")
        'UserName'
        >>> to_pascal_case("order item")
        'OrderItem'
        >>> to_pascal_case("userName")
        'UserName'
        >>> to_pascal_case("USER_ID")
        'USERID'
    """
    if not name:
        return ""
    segments: List[str] = [s for s in _SEGMENT_DELIMITER_RE.split(name) if s]
    return "".join(s[0].upper() + s[1:] for s in segments)


@functools.lru_cache(maxsize=None)
def to_snake_case(name: str) -> str:
    """
    Insert ``_`` before every uppercase letter, lowercase the result and drop
    one leading underscore.

    Examples:
        >>> to_snake_case("UserName")
        'user_name'
        >>> to_snake_case("orderItem")
        'order_item'
        >>> to_snake_case("USER")
        'u_s_e_r'
    """
    if not name:
        return ""
    s: str = _UPPER_LETTER_RE.sub(r"_\1", name).lower()
    if s.startswith("_"):
        s = s[1:]
    return s


@functools.lru_cache(maxsize=None)
def to_upper_snake_case(name: str) -> str:
    """
    Split lower→upper transitions with ``_`` and uppercase everything.

    Examples:
        >>> to_upper_snake_case("userName")
        'USER_NAME'
        >>> to_upper_snake_case("order_item")
        'ORDER_ITEM'
    """
    return _LOWER_THEN_UPPER_RE.sub(r"\1_\2", name).upper()


# ---------------------------------------------------------------------------
# Export file output
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create *path* and any missing parents."""
    if not path.is_dir():
        path.mkdir(parents=True, exist_ok=True)
        logger.debug("Created output directory %s", path)


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write an export artifact to *path* as UTF-8 and return its size in bytes.

    With *atomic* set, the payload goes to a hidden sibling file that is then
    moved over *path*; an existing export is either fully replaced or left
    untouched.
    """
    ensure_directory(path.parent)
    payload: bytes = content.encode("utf-8")

    if not atomic:
        path.write_bytes(payload)
    else:
        handle, staging = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".part")
        staging_path = Path(staging)
        try:
            with os.fdopen(handle, "wb") as fh:
                fh.write(payload)
            staging_path.replace(path)
        except OSError:
            staging_path.unlink(missing_ok=True)
            raise

    logger.debug("Wrote %s (%d bytes)", path, len(payload))
    return len(payload)


# ---------------------------------------------------------------------------
# Artifact fingerprints
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Hex SHA-256 of the UTF-8 encoded *content*."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Number of lines in *content*; a trailing newline does not open a new line."""
    if not content:
        return 0
    newlines: int = content.count("\n")
    return newlines if content.endswith("\n") else newlines + 1


# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------


class Timer:
    """
    Wall-clock timer for the CLI's validation and export phases.

        with Timer("validation") as t:
            report = validate_project(project)
        t.elapsed  # seconds
    """

    __slots__ = ("label", "_started", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self._started: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self._started = time.perf_counter()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.elapsed = time.perf_counter() - self._started
        logger.info("%s took %.4f s", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"Timer(label={self.label!r}, elapsed={self.elapsed:.4f})"


__all__: List[str] = [
    "to_pascal_case",
    "to_snake_case",
    "to_upper_snake_case",
    "ensure_directory",
    "write_file",
    "sha256_hex",
    "count_lines",
    "Timer",
]

logger.debug("schemaguard.utils loaded — %d public symbols.", len(__all__))
