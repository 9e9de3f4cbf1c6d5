# src/assetfind/retrieval/candidates.py
from typing import List, Optional, Sequence

from ..config import CANDIDATE_CAP
from ..data.records import AssetRecord, SEARCH_FIELDS
from ..data.store import CatalogFilter, CatalogStore, MatchKind, Predicate
from ..exceptions import StoreUnavailableError
from ..logger import get_logger
from ..utils.normalizer import surface_forms
from ..utils.spell_corrector import SpellCorrector

logger = get_logger("retrieval.candidates")

# Near words gathered per token for the fallback query
NEAR_WORDS_PER_TOKEN = 5


def _any_field(word: str, fields: Sequence[str] = SEARCH_FIELDS) -> List[Predicate]:
    # substring subsumes word-boundary and prefix matches for coarse filtering
    return [
        Predicate(f, MatchKind.CONTAINS, form)
        for form in surface_forms(word)
        for f in fields
    ]


class CandidateRetriever:
    """Fetches a capped candidate pool from the catalog store."""

    def __init__(
        self,
        store: CatalogStore,
        cap: int = CANDIDATE_CAP,
        near_limit: int = NEAR_WORDS_PER_TOKEN,
    ):
        self.store = store
        self.cap = cap
        self.near_limit = near_limit

    def build_filter(self, tokens: Sequence[str]) -> CatalogFilter:
        """Every token must appear in at least one searchable field."""
        return CatalogFilter(clauses=tuple(tuple(_any_field(t)) for t in tokens))

    def build_fallback_filter(
        self, tokens: Sequence[str], corrector: SpellCorrector
    ) -> Optional[CatalogFilter]:
        """Any near word of any token in any field; None when no token has near words."""
        words: List[str] = []
        for token in tokens:
            for word in corrector.near_words(token, limit=self.near_limit):
                if word not in words:
                    words.append(word)
        if not words:
            return None
        return CatalogFilter.any_of(p for w in words for p in _any_field(w))

    async def _find(self, catalog_filter: CatalogFilter) -> List[AssetRecord]:
        try:
            return await self.store.find(catalog_filter, self.cap)
        except (ConnectionError, TimeoutError, OSError) as e:
            raise StoreUnavailableError("candidate retrieval", str(e)) from e

    async def retrieve(self, tokens: Sequence[str], corrector: SpellCorrector) -> List[AssetRecord]:
        if not tokens:
            return []
        candidates = await self._find(self.build_filter(tokens))
        if candidates:
            return candidates

        # ---------- Fallback: one looser retry on near words ----------
        fallback = self.build_fallback_filter(tokens, corrector)
        if fallback is None:
            return []
        logger.info(f"No candidates for {list(tokens)}; retrying with near words")
        return await self._find(fallback)
