# src/assetfind/data/records.py
"""
Asset records as the search core sees them.

Catalog documents come in several legacy shapes (camelCase vs snake_case keys,
extended-JSON wrappers, tags stored as a comma string, missing fields).
`record_from_document` folds all of them into one fixed AssetRecord so nothing
downstream has to guess at shapes.
"""

import numbers
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
from urllib.parse import quote

# Fields the candidate filter and the scorer look at
SEARCH_FIELDS: Tuple[str, ...] = (
    "title",
    "name",
    "description",
    "category",
    "secondary_category",
    "alt",
    "tags",
    "keywords",
)

# Fields the spelling dictionary is built from
DICTIONARY_FIELDS: Tuple[str, ...] = (
    "title",
    "category",
    "secondary_category",
    "tags",
    "keywords",
)

LIST_FIELDS = frozenset({"tags", "keywords"})

# document key -> record attribute; first present key wins
_ALIASES: Dict[str, Tuple[str, ...]] = {
    "id": ("_id", "id"),
    "title": ("title",),
    "name": ("name",),
    "description": ("description",),
    "category": ("category",),
    "secondary_category": ("secondary_category", "secondaryCategory"),
    "alt": ("alt",),
    "tags": ("tags",),
    "keywords": ("keywords",),
    "file_name": ("file_name", "fileName"),
    "thumbnail_file_name": ("thumbnail_file_name", "thumbnailFileName"),
    "url": ("url",),
    "thumbnail_url": ("thumbnail_url", "thumbnailUrl"),
    "slug": ("slug",),
    "created_at": ("created_at", "uploadedAt", "createdAt"),
}


@dataclass(frozen=True)
class AssetRecord:
    id: str
    title: str = ""
    name: str = ""
    description: str = ""
    category: str = ""
    secondary_category: str = ""
    alt: str = ""
    tags: Tuple[str, ...] = ()
    keywords: Tuple[str, ...] = ()
    file_name: str = ""
    thumbnail_file_name: str = ""
    url: str = ""
    thumbnail_url: str = ""
    slug: str = ""
    created_at: Optional[datetime] = None

    def field_values(self, field: str) -> List[str]:
        """Non-empty string values of a searchable field (lists are flattened)."""
        value = getattr(self, field)
        if field in LIST_FIELDS:
            return [v for v in value if v]
        return [value] if value else []

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "secondary_category": self.secondary_category,
            "alt": self.alt,
            "tags": list(self.tags),
            "keywords": list(self.keywords),
            "file_name": self.file_name,
            "thumbnail_file_name": self.thumbnail_file_name,
            "url": self.url,
            "thumbnail_url": self.thumbnail_url,
            "slug": self.slug,
            "created_at": self.created_at,
        }


# ---------- Value coercion ----------
def unwrap_extended_json(value: Any) -> Any:
    # Mongo extended JSON: {"$oid": ...}, {"$date": ...}
    if isinstance(value, Mapping):
        for key in ("$oid", "$date"):
            if key in value:
                return value[key]
    return value


def _is_missing(value: Any) -> bool:
    # NaN is the only value not equal to itself
    return value is None or (isinstance(value, float) and value != value)


def _as_text(value: Any) -> str:
    value = unwrap_extended_json(value)
    if _is_missing(value):
        return ""
    return str(value).strip()


def _as_list(value: Any) -> Tuple[str, ...]:
    value = unwrap_extended_json(value)
    if _is_missing(value):
        return ()
    if isinstance(value, str):
        parts: Iterable[Any] = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        parts = value
    else:
        parts = [value]
    return tuple(t for t in (_as_text(p) for p in parts) if t)


def parse_datetime(value: Any) -> Optional[datetime]:
    value = unwrap_extended_json(value)
    if _is_missing(value) or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, numbers.Real):
        # epoch milliseconds, as exported by the document store
        dt = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _lookup(doc: Mapping[str, Any], attr: str) -> Any:
    for key in _ALIASES[attr]:
        if key in doc:
            return doc[key]
    return None


def record_from_document(doc: Mapping[str, Any]) -> AssetRecord:
    """Normalize one catalog document into an AssetRecord.

    Raises:
        ValueError: if the document carries no usable id.
    """
    record_id = _as_text(_lookup(doc, "id"))
    if not record_id:
        raise ValueError(f"Catalog document without id: {dict(doc)!r}"[:200])

    values: Dict[str, Any] = {"id": record_id}
    for attr in _ALIASES:
        if attr == "id":
            continue
        raw = _lookup(doc, attr)
        if attr in LIST_FIELDS:
            values[attr] = _as_list(raw)
        elif attr == "created_at":
            values[attr] = parse_datetime(raw)
        else:
            values[attr] = _as_text(raw)
    return AssetRecord(**values)


def attach_urls(record: AssetRecord, cdn_base_url: str) -> AssetRecord:
    """Fill in public file URLs from the CDN base when the record lacks them."""
    if not cdn_base_url or not record.file_name:
        return record
    base = cdn_base_url.rstrip("/")
    url = record.url or f"{base}/{quote(record.file_name, safe='')}"
    thumb_name = record.thumbnail_file_name or f"thumb_{record.file_name}"
    thumbnail_url = record.thumbnail_url or f"{base}/{quote(thumb_name, safe='')}"
    return replace(record, url=url, thumbnail_url=thumbnail_url)
