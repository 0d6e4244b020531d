"""Text normalization utilities for embedding input and identifiers.

Three concerns live here:

1. **Embedding input normalization** -- trims and collapses whitespace runs
   so the same logical text always produces the same provider request.
2. **Identifier derivation** -- turns a human content-type label such as
   ``"AI Content"`` into a kebab-case identifier (``"ai-content"``).
3. **Fuzzy identifier suggestions** -- rapidfuzz-backed "did you mean"
   hints when a profile slug or name lookup misses.
"""

import re

from rapidfuzz import fuzz, process

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Trim *text* and collapse every whitespace run to a single space.

    Args:
        text: Raw text as read from a content field or a search request.

    Returns:
        The normalized text; may be empty.
    """
    return _WHITESPACE_RE.sub(" ", text).strip()


def is_usable_text(value: object) -> bool:
    """Return True if *value* is a string with non-whitespace content."""
    return isinstance(value, str) and bool(value.strip())


def to_kebab_case(label: str) -> str:
    """Lower-case *label* and join its whitespace-separated words with hyphens."""
    return _WHITESPACE_RE.sub("-", label.strip().lower())


def suggest_identifier(
    query: str,
    candidates: list[str],
    threshold: float = 0.7,
) -> str | None:
    """Return the candidate closest to *query*, or None below *threshold*.

    Uses rapidfuzz ``ratio`` on lower-cased strings, so ``"Blog-Post"``
    suggests ``"blog-posts"``.
    """
    if not candidates:
        return None

    result = process.extractOne(
        query.lower(),
        candidates,
        scorer=fuzz.ratio,
        processor=str.lower,
        score_cutoff=threshold * 100,
    )
    if result is None:
        return None
    return result[0]
