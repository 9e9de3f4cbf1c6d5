# spell_corrector.py
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from rapidfuzz.distance import OSA

# Largest edit distance (insert/delete/substitute/adjacent swap) still treated as a typo
MAX_EDIT_DISTANCE = 2


class SpellCorrector:
    def __init__(self, vocabulary: Iterable[str], max_distance: int = MAX_EDIT_DISTANCE):
        """
        vocabulary: normalized dictionary words.
        max_distance: inclusive edit-distance threshold.
        """
        self.vocab = frozenset(v for v in vocabulary if v)
        self.max_distance = max_distance
        # length -> sorted words; only lengths within max_distance can ever match
        buckets: Dict[int, List[str]] = defaultdict(list)
        for word in self.vocab:
            buckets[len(word)].append(word)
        self._by_length = {n: sorted(words) for n, words in buckets.items()}

    def __len__(self) -> int:
        return len(self.vocab)

    def __contains__(self, word: str) -> bool:
        return word in self.vocab

    def _within(self, word: str, max_distance: int) -> Iterable[Tuple[int, str]]:
        """(distance, candidate) for every dictionary word within max_distance."""
        n = len(word)
        for length in range(max(1, n - max_distance), n + max_distance + 1):
            for candidate in self._by_length.get(length, ()):
                d = OSA.distance(word, candidate, score_cutoff=max_distance)
                if d <= max_distance:
                    yield d, candidate

    def nearest(self, word: str) -> Optional[Tuple[int, str]]:
        """Closest dictionary word as (distance, word); ties go to the smallest word."""
        if word in self.vocab:
            return 0, word
        return min(self._within(word, self.max_distance), default=None)

    def correct_word(self, word: str) -> str:
        if not word:
            return word
        match = self.nearest(word)
        if match is None:
            return word  # nothing close enough; keep as typed
        return match[1]

    def correct_query(self, tokens: Iterable[str]) -> List[str]:
        return [self.correct_word(t) for t in tokens]

    def near_words(self, word: str, limit: int = 5) -> List[str]:
        """Up to `limit` dictionary words within the threshold, closest first."""
        if not word or limit <= 0:
            return []
        ranked = sorted(self._within(word, self.max_distance))
        return [w for _, w in ranked[:limit]]
