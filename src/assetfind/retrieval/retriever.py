# src/assetfind/retrieval/retriever.py
"""
SearchService
- Normalizes + spell-corrects queries against the catalog dictionary
- Retrieves a capped candidate pool from the catalog store
- Scores and ranks candidates, caches the ranked list per query
- Serves pages of the cached list through integer cursors
- Title suggestions for search-as-you-type
- Newest-first catalog listing for browse pages
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from ..config import (
    CACHE_CAPACITY,
    CACHE_TTL_SECONDS,
    CANDIDATE_CAP,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    MIN_PAGE_SIZE,
)
from ..data.records import AssetRecord
from ..data.store import CatalogFilter, CatalogStore, MatchKind, Predicate
from ..exceptions import InvalidCursorError, StaleCursorError, StoreUnavailableError
from ..logger import get_logger
from ..utils.normalizer import normalize_query
from .cache import CacheEntry, ResultCache
from .candidates import CandidateRetriever
from .dictionary import DictionaryBuilder
from .scorer import RelevanceScorer

logger = get_logger("retrieval.retriever")

SUGGEST_FIELDS = ("title", "name", "tags", "keywords")
SUGGEST_MIN_LENGTH = 2
SUGGEST_LIMIT = 10

LATEST_DEFAULT_LIMIT = 12
LATEST_MAX_LIMIT = 50


@dataclass
class SearchPage:
    items: List[AssetRecord] = field(default_factory=list)
    cursor: Optional[int] = None
    total: int = 0
    query: str = ""


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return DEFAULT_PAGE_SIZE
    return max(MIN_PAGE_SIZE, min(MAX_PAGE_SIZE, int(limit)))


def clamp_latest(page: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    """1-based page and a limit within [1, LATEST_MAX_LIMIT]."""
    page = max(int(page or 1), 1)
    limit = max(1, min(int(limit or LATEST_DEFAULT_LIMIT), LATEST_MAX_LIMIT))
    return page, limit


def _page(entry: CacheEntry, cursor: int, limit: int) -> SearchPage:
    end = cursor + limit
    items = [c.record for c in entry.items[cursor:end]]
    return SearchPage(
        items=items,
        cursor=end if end < len(entry) else None,
        total=len(entry),
        query=entry.key,
    )


class SearchService:
    def __init__(
        self,
        store: CatalogStore,
        candidate_cap: int = CANDIDATE_CAP,
        cache_ttl_seconds: float = CACHE_TTL_SECONDS,
        cache_capacity: int = CACHE_CAPACITY,
        scorer: Optional[RelevanceScorer] = None,
        cache: Optional[ResultCache] = None,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        """
        Args:
            store: read-only catalog store
            candidate_cap: max records fetched per query before scoring
            cache_ttl_seconds: lifetime of a cached ranked list
            cache_capacity: max cached queries (oldest inserted evicted first)
            scorer: relevance scorer (default weights if omitted)
            cache: pre-built result cache; overrides the two cache_* arguments
            now: wall clock used for the recency bonus
        """
        self.store = store
        self.dictionary = DictionaryBuilder(store)
        self.retriever = CandidateRetriever(store, cap=candidate_cap)
        self.scorer = scorer or RelevanceScorer()
        if cache is None:
            cache = ResultCache(ttl_seconds=cache_ttl_seconds, capacity=cache_capacity)
        self.cache = cache
        self._now = now

    # ---------- Query key ----------
    async def resolve_query(self, query: str) -> List[str]:
        """Normalized, spell-corrected tokens for a raw query ([] for blank input)."""
        tokens = normalize_query(query)
        if not tokens:
            return []
        corrector = await self.dictionary.ensure_built()
        corrected = corrector.correct_query(tokens)
        if corrected != tokens:
            logger.info(f"[SpellCorrector] {tokens} -> {corrected}")
        return corrected

    async def _ranked(self, tokens: List[str]) -> CacheEntry:
        key = " ".join(tokens)
        entry = self.cache.get(key)
        if entry is not None:
            logger.debug(f"Cache hit for {key!r}")
            return entry

        corrector = await self.dictionary.ensure_built()
        candidates = await self.retriever.retrieve(tokens, corrector)
        ranked = self.scorer.rank(candidates, tokens, now=self._now())
        logger.info(f"Query {key!r}: {len(candidates)} candidates, {len(ranked)} ranked")
        return self.cache.put(key, ranked)

    # ---------- Public search ----------
    async def search_first(self, query: str, limit: Optional[int] = None) -> SearchPage:
        limit = clamp_limit(limit)
        tokens = await self.resolve_query(query)
        if not tokens:
            return SearchPage()
        entry = await self._ranked(tokens)
        return _page(entry, 0, limit)

    async def search_next(self, query: str, cursor: int, limit: Optional[int] = None) -> SearchPage:
        limit = clamp_limit(limit)
        if cursor is None or cursor < 0:
            raise InvalidCursorError(cursor)
        tokens = await self.resolve_query(query)
        if not tokens:
            return SearchPage()
        key = " ".join(tokens)
        entry = self.cache.get(key)
        if entry is None:
            raise StaleCursorError(key)
        return _page(entry, cursor, limit)

    # ---------- Suggestions ----------
    async def suggest(self, prefix: str, limit: int = SUGGEST_LIMIT) -> List[str]:
        """Distinct titles of records whose title/name/tags/keywords start with `prefix`."""
        q = (prefix or "").strip().lower()
        if len(q) < SUGGEST_MIN_LENGTH:
            return []
        catalog_filter = CatalogFilter.any_of(
            Predicate(f, MatchKind.PREFIX, q) for f in SUGGEST_FIELDS
        )
        # callers can lower the cap, never raise it
        limit = max(1, min(int(limit), SUGGEST_LIMIT))
        records = await self._find("suggest", catalog_filter, limit)
        return list(dict.fromkeys(r.title for r in records if r.title))

    # ---------- Latest ----------
    async def latest(self, page: int = 1, limit: int = LATEST_DEFAULT_LIMIT) -> List[AssetRecord]:
        """One page of the whole catalog, newest first (page is 1-based)."""
        page, limit = clamp_latest(page, limit)
        skip = (page - 1) * limit
        # an empty filter matches every record
        records = await self._find("latest", CatalogFilter(clauses=()), skip + limit)
        return records[skip:skip + limit]

    async def _find(self, operation: str, catalog_filter: CatalogFilter, cap: int) -> List[AssetRecord]:
        try:
            return await self.store.find(catalog_filter, cap)
        except (ConnectionError, TimeoutError, OSError) as e:
            raise StoreUnavailableError(operation, str(e)) from e
