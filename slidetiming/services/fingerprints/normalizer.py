"""
Text normalization shared by the write path, the query path and the SQLite store.

There must be exactly one implementation: fingerprints written with one
normalizer and queried with another silently stop matching.
"""
import re
from typing import Optional

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize(text: Optional[str]) -> str:
    """
    Canonicalize text for trigram comparison.

    Trim, lowercase, drop every character that is neither a word character
    nor whitespace, then collapse whitespace runs to a single space. Edges are
    trimmed again after stripping so the result is a fixed point
    (``normalize(normalize(x)) == normalize(x)``).

    Args:
        text: Raw title or content text, may be None

    Returns:
        Normalized text, "" for None or empty input
    """
    if not text:
        return ""
    lowered = text.strip().lower()
    stripped = _NON_WORD.sub("", lowered)
    return _WHITESPACE.sub(" ", stripped).strip()
