"""
Trigram-set Jaccard similarity and an inverted trigram index.

similarity(A, B) = |T(A) & T(B)| / |T(A) | T(B)|, where T(x) is the set of
3-character substrings of the normalized text padded with two leading spaces
and one trailing space. Padding lets word starts and very short titles
("ml", "qa") contribute trigrams.
"""
from collections import defaultdict
from functools import lru_cache
from typing import Hashable, Iterable


@lru_cache(maxsize=8192)
def trigrams(text: str) -> frozenset[str]:
    """Return the trigram set of an already normalized string."""
    if not text:
        return frozenset()
    padded = f"  {text} "
    return frozenset(padded[i:i + 3] for i in range(len(padded) - 2))


def jaccard(left: frozenset[str], right: frozenset[str]) -> float:
    """Jaccard overlap of two sets; 0.0 when either is empty."""
    if not left or not right:
        return 0.0
    intersection = len(left & right)
    return intersection / (len(left) + len(right) - intersection)


def trigram_similarity(left: str, right: str) -> float:
    """Trigram similarity in [0, 1] between two normalized strings."""
    return jaccard(trigrams(left or ""), trigrams(right or ""))


class TrigramIndex:
    """
    Inverted index from trigram to the keys whose text contains it.

    Only keys sharing at least one trigram with the query can score above
    zero, so candidate generation never scans unrelated entries.
    Not thread-safe; callers guard it.
    """

    def __init__(self):
        self._postings: dict[str, set[Hashable]] = defaultdict(set)
        self._grams: dict[Hashable, frozenset[str]] = {}

    def __len__(self) -> int:
        return len(self._grams)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._grams

    def add(self, key: Hashable, text: str) -> None:
        """Index (or re-index) a key's normalized text."""
        self.discard(key)
        grams = trigrams(text)
        self._grams[key] = grams
        for gram in grams:
            self._postings[gram].add(key)

    def discard(self, key: Hashable) -> None:
        """Remove a key if present."""
        grams = self._grams.pop(key, None)
        if grams is None:
            return
        for gram in grams:
            keys = self._postings.get(gram)
            if keys is None:
                continue
            keys.discard(key)
            if not keys:
                del self._postings[gram]

    def candidates(self, grams: Iterable[str]) -> set[Hashable]:
        """Keys sharing at least one trigram with the query."""
        found: set[Hashable] = set()
        for gram in grams:
            found.update(self._postings.get(gram, ()))
        return found

    def search(self, text: str, threshold: float) -> list[tuple[Hashable, float]]:
        """
        Keys whose similarity to ``text`` is strictly greater than ``threshold``.

        Returns:
            (key, score) pairs sorted by descending score
        """
        query = trigrams(text)
        if not query:
            return []
        hits = []
        for key in self.candidates(query):
            score = jaccard(query, self._grams[key])
            if score > threshold:
                hits.append((key, score))
        hits.sort(key=lambda hit: (-hit[1], str(hit[0])))
        return hits
