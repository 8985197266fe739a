# storefront/filters.py
"""
Listing filters and sort order, kept in the URL query string.

The query string is the source of truth for what the listing shows, so every
filter toggle is a pure function from one query string to the next. Parameters
this module does not know about are carried through untouched.
"""
import enum
from collections.abc import Mapping
from typing import Optional, List, Tuple
from urllib.parse import parse_qsl, urlencode

from pydantic import BaseModel, ConfigDict

LISTING_PATH = "/products"
FLAG_PARAMS = ("on_sale", "is_new")
TRUE = "true"


class SortKey(str, enum.Enum):
    NEWEST = "newest"
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortKey":
        """Unknown or missing values fall back to newest."""
        try:
            return cls(value)
        except ValueError:
            return cls.NEWEST

    @property
    def order_by(self) -> Tuple[str, bool]:
        """(column name, descending) for this sort."""
        return _ORDER_BY[self]

    @property
    def label(self) -> str:
        return _LABELS[self]


_ORDER_BY = {
    SortKey.NEWEST: ("created_at", True),
    SortKey.PRICE_ASC: ("price_ttd", False),
    SortKey.PRICE_DESC: ("price_ttd", True),
}

_LABELS = {
    SortKey.NEWEST: "Newest",
    SortKey.PRICE_ASC: "Price: Low to High",
    SortKey.PRICE_DESC: "Price: High to Low",
}


def _pairs(query) -> List[Tuple[str, str]]:
    if query is None:
        return []
    if isinstance(query, str):
        return parse_qsl(query.lstrip("?"), keep_blank_values=True)
    if hasattr(query, "multi_items"):
        return list(query.multi_items())
    if isinstance(query, Mapping):
        return [(k, v) for k, v in query.items() if v is not None]
    return list(query)


def _get(pairs, name: str) -> Optional[str]:
    for key, value in pairs:
        if key == name:
            return value
    return None


def _set(pairs, name: str, value: str):
    # URLSearchParams.set: first occurrence is replaced, the rest dropped
    out, done = [], False
    for key, old in pairs:
        if key != name:
            out.append((key, old))
        elif not done:
            out.append((key, value))
            done = True
    if not done:
        out.append((name, value))
    return out


def _delete(pairs, name: str):
    return [(k, v) for k, v in pairs if k != name]


def _parse_page(raw: Optional[str]) -> int:
    try:
        page = int(raw)
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


class FilterState(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: Optional[str] = None
    on_sale: bool = False
    is_new: bool = False
    sort: SortKey = SortKey.NEWEST
    page: int = 1

    @classmethod
    def from_query(cls, query) -> "FilterState":
        pairs = _pairs(query)
        return cls(
            category=_get(pairs, "category") or None,
            on_sale=_get(pairs, "on_sale") == TRUE,
            is_new=_get(pairs, "is_new") == TRUE,
            sort=SortKey.parse(_get(pairs, "sort")),
            page=_parse_page(_get(pairs, "page")),
        )

    def to_query(self) -> str:
        pairs = []
        if self.category:
            pairs.append(("category", self.category))
        if self.on_sale:
            pairs.append(("on_sale", TRUE))
        if self.is_new:
            pairs.append(("is_new", TRUE))
        if self.sort is not SortKey.NEWEST:
            pairs.append(("sort", self.sort.value))
        if self.page > 1:
            pairs.append(("page", str(self.page)))
        return urlencode(pairs)

    @property
    def signature(self) -> Tuple[Optional[str], bool, bool, SortKey]:
        """Everything except the page; a change here restarts pagination."""
        return (self.category, self.on_sale, self.is_new, self.sort)

    def query_args(self, page: Optional[int] = None) -> dict:
        """Keyword arguments for crud.list_products."""
        return {
            "page": page or self.page,
            "category": self.category,
            "on_sale": TRUE if self.on_sale else None,
            "is_new": TRUE if self.is_new else None,
            "sort": self.sort.value,
        }


def toggle_category(query, slug: str) -> str:
    """Single-select: picking the active category clears it."""
    pairs = _pairs(query)
    if _get(pairs, "category") == slug:
        pairs = _delete(pairs, "category")
    else:
        pairs = _set(pairs, "category", slug)
    return urlencode(_delete(pairs, "page"))


def toggle_flag(query, name: str) -> str:
    if name not in FLAG_PARAMS:
        raise ValueError(f"not a boolean filter: {name}")
    pairs = _pairs(query)
    if _get(pairs, name) == TRUE:
        pairs = _delete(pairs, name)
    else:
        pairs = _set(pairs, name, TRUE)
    return urlencode(_delete(pairs, "page"))


def set_sort(query, value: str) -> str:
    sort = SortKey(value)
    pairs = _set(_pairs(query), "sort", sort.value)
    return urlencode(_delete(pairs, "page"))


def navigate(query: str) -> str:
    return f"{LISTING_PATH}?{query}" if query else LISTING_PATH
