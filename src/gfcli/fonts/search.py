"""
Catalog views and the search/filter engine.

A view is an ordered list of catalog entries plus the field and term that
produced it. Filtering never copies entries; it builds a new list over the
same entry objects.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence

from .interfaces import CatalogEntry, SearchField


def search_entries(
    entries: Sequence[CatalogEntry], term: str, search_field: SearchField
) -> List[CatalogEntry]:
    """
    Return entries whose field contains every whitespace-separated token of `term`.

    Matching is case-insensitive and order-independent. A term that is empty after
    trimming matches nothing.
    """
    tokens = term.strip().lower().split()
    if not tokens:
        return []
    matches = []
    for entry in entries:
        value = search_field.value_of(entry).lower()
        if all(token in value for token in tokens):
            matches.append(entry)
    return matches


def exact_match_entries(
    entries: Sequence[CatalogEntry], term: str, search_field: SearchField
) -> List[CatalogEntry]:
    """Return entries whose lower-cased field equals the trimmed, lower-cased term."""
    wanted = term.strip().lower()
    return [
        entry for entry in entries if search_field.value_of(entry).lower() == wanted
    ]


@dataclass
class CatalogView:
    """
    An ordered selection of catalog entries.

    `filter_field` and `filter_term` are only set on views produced by a search
    or exact match, so a renderer can say what the results are for.
    """

    entries: List[CatalogEntry] = field(default_factory=list)
    filter_field: Optional[SearchField] = None
    filter_term: Optional[str] = None

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self.entries)

    def first(self) -> Optional[CatalogEntry]:
        return self.entries[0] if self.entries else None

    def is_single(self) -> bool:
        return len(self.entries) == 1

    def search(self, term: str, search_field: SearchField) -> "CatalogView":
        """Fuzzy multi-token search over this view."""
        return CatalogView(
            search_entries(self.entries, term, search_field), search_field, term
        )

    def exact_match(self, term: str, search_field: SearchField) -> "CatalogView":
        """Case-insensitive exact match over this view."""
        return CatalogView(
            exact_match_entries(self.entries, term, search_field), search_field, term
        )

    def search_by_name(self, term: str) -> "CatalogView":
        return self.search(term, SearchField.FAMILY)

    def search_by_category(self, term: str) -> "CatalogView":
        return self.search(term, SearchField.CATEGORY)

    def get_by_name(self, term: str) -> "CatalogView":
        return self.exact_match(term, SearchField.FAMILY)

    def get_by_category(self, term: str) -> "CatalogView":
        return self.exact_match(term, SearchField.CATEGORY)
