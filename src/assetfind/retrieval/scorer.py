# src/assetfind/retrieval/scorer.py
"""
Deterministic relevance scoring.

For each (field, token) pair the first matching tier wins:
  exact whole word  -> weight * 6
  word prefix       -> weight * 4
  substring         -> weight * 2
  near-miss (<= 1 edit, title/keywords only) -> floor(weight * 0.8)
On top of that: a phrase bonus, an AND-completeness (or partial) bonus and a
small recency bonus. Weights are tuning constants.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from rapidfuzz.distance import OSA

from ..data.records import AssetRecord
from ..utils.normalizer import normalize_words, tokenize

FIELD_WEIGHTS: Dict[str, int] = {
    "title": 10,
    "keywords": 7,
    "tags": 7,
    "category": 5,
    "secondary_category": 4,
    "name": 3,
    "description": 2,
    "alt": 2,
}

EXACT_MULTIPLIER = 6
PREFIX_MULTIPLIER = 4
SUBSTRING_MULTIPLIER = 2
NEAR_MISS_MULTIPLIER = 0.8
NEAR_MISS_DISTANCE = 1
NEAR_MISS_FIELDS = ("title", "keywords")
PHRASE_FIELDS = ("title", "keywords")

PHRASE_BONUS = 50
AND_BONUS = 40
PARTIAL_BONUS_PER_TOKEN = 5

RECENCY_WINDOW = timedelta(days=30)
RECENCY_MAX_BONUS = 10


@dataclass(frozen=True)
class ScoredCandidate:
    record: AssetRecord
    score: int


class _FieldView:
    """Pre-split text of one record field."""

    __slots__ = ("texts", "words", "prefix_words", "phrases")

    def __init__(self, values: Sequence[str]):
        self.texts = [v.lower() for v in values]
        # one normalized word list per value, so phrases never span two tags
        self.phrases = [normalize_words(v) for v in values]
        self.words = {w for phrase in self.phrases for w in phrase}
        # raw and singular forms, so "cars" and "car" both serve prefix checks
        self.prefix_words = self.words | {w for v in values for w in tokenize(v)}

    def tier_score(self, token: str, weight: int, near_miss: bool) -> int:
        if token in self.words:
            return weight * EXACT_MULTIPLIER
        if any(w.startswith(token) for w in self.prefix_words):
            return weight * PREFIX_MULTIPLIER
        if any(token in t for t in self.texts):
            return weight * SUBSTRING_MULTIPLIER
        if near_miss and self._near(token):
            return math.floor(weight * NEAR_MISS_MULTIPLIER)
        return 0

    def _near(self, token: str) -> bool:
        for w in self.words:
            if abs(len(w) - len(token)) > NEAR_MISS_DISTANCE:
                continue
            if OSA.distance(token, w, score_cutoff=NEAR_MISS_DISTANCE) <= NEAR_MISS_DISTANCE:
                return True
        return False

    def has_phrase(self, tokens: Sequence[str]) -> bool:
        n = len(tokens)
        target = list(tokens)
        for words in self.phrases:
            for i in range(len(words) - n + 1):
                if words[i:i + n] == target:
                    return True
        return False


class RelevanceScorer:
    def __init__(self, weights: Optional[Dict[str, int]] = None):
        self.weights = dict(weights or FIELD_WEIGHTS)

    def score(self, record: AssetRecord, tokens: Sequence[str], now: Optional[datetime] = None) -> int:
        if not tokens:
            return 0
        now = now or datetime.now(timezone.utc)
        views = {f: _FieldView(record.field_values(f)) for f in self.weights}

        total = 0
        matched = set()
        for field, weight in self.weights.items():
            view = views[field]
            if not view.texts:
                continue
            for token in tokens:
                points = view.tier_score(token, weight, field in NEAR_MISS_FIELDS)
                if points > 0:
                    matched.add(token)
                    total += points

        # ---------- Bonuses ----------
        if len(tokens) > 1 and any(views[f].has_phrase(tokens) for f in PHRASE_FIELDS if f in views):
            total += PHRASE_BONUS
        if len(matched) == len(set(tokens)):
            total += AND_BONUS
        else:
            total += PARTIAL_BONUS_PER_TOKEN * len(matched)
        total += self.recency_bonus(record.created_at, now)
        return total

    @staticmethod
    def recency_bonus(created_at: Optional[datetime], now: datetime) -> int:
        if created_at is None:
            return 0
        age = max(now - created_at, timedelta(0))
        if age >= RECENCY_WINDOW:
            return 0
        return math.floor(RECENCY_MAX_BONUS * (1 - age / RECENCY_WINDOW))

    def rank(
        self,
        records: Iterable[AssetRecord],
        tokens: Sequence[str],
        now: Optional[datetime] = None,
    ) -> List[ScoredCandidate]:
        """Score, dedupe by id, and order: score desc, newest first, then id desc."""
        now = now or datetime.now(timezone.utc)
        seen = set()
        scored: List[ScoredCandidate] = []
        for record in records:
            if record.id in seen:
                continue
            seen.add(record.id)
            scored.append(ScoredCandidate(record, self.score(record, tokens, now)))
        scored.sort(key=_order_key, reverse=True)
        return scored


def _order_key(candidate: ScoredCandidate):
    created = candidate.record.created_at
    return (
        candidate.score,
        created.timestamp() if created is not None else float("-inf"),
        candidate.record.id,
    )
