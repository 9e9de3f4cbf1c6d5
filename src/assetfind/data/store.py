# src/assetfind/data/store.py
"""
Catalog Store contract and an in-memory implementation.

The search core only ever reads from the store through two calls:
  - find(filter, cap): records matching an AND-of-ORs filter, at most `cap`
  - scan_all(fields): projection of every record, used to build the dictionary
"""

import re
from dataclasses import dataclass, field as dataclass_field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple, Union

from .records import AssetRecord, SEARCH_FIELDS


class MatchKind(str, Enum):
    WORD = "word"          # case-insensitive word-boundary match
    PREFIX = "prefix"      # value (or list element) starts with the text
    CONTAINS = "contains"  # case-insensitive substring


@dataclass(frozen=True)
class Predicate:
    field: str
    kind: MatchKind
    value: str
    _pattern: "re.Pattern[str]" = dataclass_field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.field not in SEARCH_FIELDS:
            raise ValueError(f"Unknown search field: {self.field}")
        escaped = re.escape(self.value)
        if self.kind is MatchKind.WORD:
            pattern = rf"\b{escaped}\b"
        elif self.kind is MatchKind.PREFIX:
            pattern = rf"^{escaped}"
        else:
            pattern = escaped
        object.__setattr__(self, "_pattern", re.compile(pattern, re.IGNORECASE))

    def matches(self, record: AssetRecord) -> bool:
        return any(self._pattern.search(v) for v in record.field_values(self.field))


@dataclass(frozen=True)
class CatalogFilter:
    """Conjunction of clauses; each clause is a disjunction of predicates."""

    clauses: Tuple[Tuple[Predicate, ...], ...]

    @classmethod
    def any_of(cls, predicates: Iterable[Predicate]) -> "CatalogFilter":
        return cls(clauses=(tuple(predicates),))

    def matches(self, record: AssetRecord) -> bool:
        return all(any(p.matches(record) for p in clause) for clause in self.clauses)


class CatalogStore(Protocol):
    """Read-only view of the asset catalog."""

    async def find(self, catalog_filter: CatalogFilter, cap: int) -> List[AssetRecord]:
        """Return at most `cap` records matching the filter, newest first."""
        ...

    async def scan_all(self, fields: Sequence[str]) -> List[Dict[str, Any]]:
        """Return a projection of `fields` for every record."""
        ...


class InMemoryCatalogStore:
    """Catalog held in process memory, e.g. loaded from an export file."""

    def __init__(self, records: Iterable[AssetRecord] = ()):
        # newest first, mirroring the document store's default sort
        self._records: List[AssetRecord] = sorted(
            records, key=_recency_key, reverse=True
        )

    @classmethod
    def from_file(cls, filename: Union[str, Path], data_dir: Optional[str] = None) -> "InMemoryCatalogStore":
        from .loader import load_catalog, records_from_frame

        return cls(records_from_frame(load_catalog(filename, data_dir=data_dir)))

    def __len__(self) -> int:
        return len(self._records)

    async def find(self, catalog_filter: CatalogFilter, cap: int) -> List[AssetRecord]:
        out: List[AssetRecord] = []
        for record in self._records:
            if len(out) >= cap:
                break
            if catalog_filter.matches(record):
                out.append(record)
        return out

    async def scan_all(self, fields: Sequence[str]) -> List[Dict[str, Any]]:
        return [{f: getattr(r, f, None) for f in fields} for r in self._records]


def _recency_key(record: AssetRecord):
    return (record.created_at is not None, record.created_at or 0, record.id)
