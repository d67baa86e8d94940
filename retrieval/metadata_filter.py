"""
Metadata filtering for hybrid retrieval.

Each filter field is an equality constraint. A document passes a field
when the constraint is absent, when the document does not carry that
field, or when the values are equal. Fields are ANDed.

Missing fields pass so that partially tagged documents stay searchable;
a document with no metadata at all passes every filter.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple, TypeVar

from shared.schemas import SearchFilter

T = TypeVar("T")

# Filter field -> metadata keys, first present wins
FIELD_KEYS: Dict[str, Tuple[str, ...]] = {
    "year": ("year",),
    "month": ("month",),
    "category": ("category", "category_lvl1"),
    "merchant": ("merchant",),
    "currency": ("currency",),
}

_MISSING = object()


def _lookup(metadata: Dict[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        if metadata.get(key) is not None:
            return metadata[key]
    return _MISSING


def matches(metadata: Optional[Dict[str, Any]], search_filter: Optional[SearchFilter]) -> bool:
    """Check one document's metadata against the filter."""
    if search_filter is None:
        return True

    metadata = metadata or {}
    for name, expected in search_filter.model_dump(exclude_none=True).items():
        actual = _lookup(metadata, FIELD_KEYS[name])
        if actual is _MISSING:
            continue
        if actual != expected:
            return False
    return True


def apply_filter(documents: Sequence[T], search_filter: Optional[SearchFilter]) -> List[T]:
    """
    Keep documents whose metadata satisfies the filter.

    Args:
        documents: Chunks (or anything with a `metadata` attribute)
        search_filter: Equality constraints, None for no filtering

    Returns:
        Subset in original order
    """
    if search_filter is None or search_filter.is_empty():
        return list(documents)
    return [
        doc for doc in documents if matches(getattr(doc, "metadata", None), search_filter)
    ]
