# src/assetfind/retrieval/dictionary.py
import asyncio
from typing import Any, Iterable, Optional, Sequence, Set

from ..data.records import DICTIONARY_FIELDS
from ..data.store import CatalogStore
from ..exceptions import StoreUnavailableError
from ..logger import get_logger
from ..utils.normalizer import normalize_words
from ..utils.spell_corrector import SpellCorrector

logger = get_logger("retrieval.dictionary")


def _field_texts(value: Any) -> Iterable[str]:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value if v]
    return (str(value),)


def build_vocabulary(rows: Iterable[dict], fields: Sequence[str] = DICTIONARY_FIELDS) -> Set[str]:
    """Union of normalized words over the given fields of every row."""
    vocab: Set[str] = set()
    for row in rows:
        for field in fields:
            for text in _field_texts(row.get(field)):
                vocab.update(normalize_words(text))
    return vocab


class DictionaryBuilder:
    """
    Lazily builds the spelling dictionary from one full catalog scan.

    The result is kept for the lifetime of the builder and never invalidated:
    records added to the catalog later do not contribute words until restart.
    """

    def __init__(self, store: CatalogStore, fields: Sequence[str] = DICTIONARY_FIELDS):
        self.store = store
        self.fields = tuple(fields)
        self._corrector: Optional[SpellCorrector] = None
        self._lock = asyncio.Lock()

    @property
    def is_built(self) -> bool:
        return self._corrector is not None

    async def ensure_built(self) -> SpellCorrector:
        if self._corrector is not None:
            return self._corrector
        async with self._lock:
            if self._corrector is None:
                try:
                    rows = await self.store.scan_all(self.fields)
                except (ConnectionError, TimeoutError, OSError) as e:
                    raise StoreUnavailableError("dictionary build", str(e)) from e
                vocab = build_vocabulary(rows, self.fields)
                self._corrector = SpellCorrector(vocab)
                logger.info(f"Dictionary built: {len(vocab):,} words from {len(rows):,} records")
        return self._corrector
