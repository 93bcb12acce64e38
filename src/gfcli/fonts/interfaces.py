"""
Core Interfaces for the gfcli Fonts Subsystem

This module defines the data structures shared by the catalog loader, the
search engine and the retrieval orchestrator.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from gfcli.constants import FONT_DETAIL_URL, GOOGLE_FONTS_CSS_URL

Pathish = Union[str, Path]

_WHITESPACE = re.compile(r"\s")
_SPLIT_LOWER_UPPER = re.compile(r"([a-z0-9])([A-Z])")
_SPLIT_UPPER_UPPER = re.compile(r"([A-Z])([A-Z][a-z])")
_STRIP_NON_ALNUM = re.compile(r"[^A-Za-z0-9]+")


class FontFormat(str, Enum):
    """File format requested from the per-font detail endpoint."""

    TTF = "ttf"
    WOFF2 = "woff2"


class SearchField(Enum):
    """Catalog entry field a search or exact match runs against."""

    FAMILY = "family"
    CATEGORY = "category"

    def value_of(self, entry: "CatalogEntry") -> str:
        """
        Return the entry's value for this field, or an empty string when it is missing.
        """
        if self is SearchField.FAMILY:
            return entry.family or ""
        return entry.category or ""


class DestinationKind(Enum):
    FOLDER = "folder"
    CURRENT_DIRECTORY = "cwd"
    SYSTEM = "system"


@dataclass(frozen=True)
class Destination:
    """Where retrieved font files end up."""

    kind: DestinationKind
    folder: Optional[Path] = None

    @classmethod
    def at(cls, folder: Optional[Pathish]) -> "Destination":
        """Place files in `folder`, or in the current directory when it is empty."""
        if not folder:
            return cls(DestinationKind.CURRENT_DIRECTORY)
        return cls(DestinationKind.FOLDER, Path(folder))

    @classmethod
    def here(cls) -> "Destination":
        return cls(DestinationKind.CURRENT_DIRECTORY)

    @classmethod
    def system(cls) -> "Destination":
        return cls(DestinationKind.SYSTEM)


def pascal_case(text: str) -> str:
    """
    Convert text to PascalCase.

    Words are split on lower/upper case changes and on any non-alphanumeric run.
    Every word keeps its first character upper-cased and the rest lower-cased; a
    word other than the first that starts with a digit is prefixed with "_".

    Examples:
        "Source Sans Pro" -> "SourceSansPro"
        "PT Serif" -> "PtSerif"
        "M PLUS 1p" -> "MPlus_1p"
    """
    spaced = _SPLIT_LOWER_UPPER.sub(r"\1 \2", text)
    spaced = _SPLIT_UPPER_UPPER.sub(r"\1 \2", spaced)
    words = [word for word in _STRIP_NON_ALNUM.split(spaced) if word]

    parts = []
    for index, word in enumerate(words):
        first, rest = word[0], word[1:].lower()
        if index > 0 and first.isdigit():
            parts.append(f"_{first}{rest}")
        else:
            parts.append(f"{first.upper()}{rest}")
    return "".join(parts)


@dataclass(frozen=True)
class CatalogEntry:
    """
    One font family from the catalog.

    Identity data (stylesheet URL, detail URL, file stem) is always derived from
    `family`; the raw record is kept so callers can reach fields this model does
    not name.
    """

    family: str
    category: Optional[str] = None
    variants: Tuple[str, ...] = ()
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "CatalogEntry":
        """
        Build an entry from one raw catalog record.

        The family comes from `familyName`, then `family`, then an empty string.
        Variants may be a list of ids or a mapping keyed by variant id.
        """
        family = record.get("familyName") or record.get("family") or ""
        if not isinstance(family, str):
            family = str(family)

        category = record.get("category")
        if category is not None and not isinstance(category, str):
            category = str(category)

        raw_variants = record.get("variants")
        if isinstance(raw_variants, Mapping):
            variants = tuple(str(key) for key in raw_variants.keys())
        elif isinstance(raw_variants, (list, tuple)):
            variants = tuple(str(item) for item in raw_variants)
        else:
            variants = ()

        return cls(family=family, category=category, variants=variants, raw=record)

    @property
    def stylesheet_url(self) -> str:
        return self.css_url()

    def css_url(self, variants: Optional[Sequence[str]] = None) -> str:
        """
        Return the Google Fonts stylesheet URL for this family.

        Spaces in the family become "+"; nothing else is escaped. When `variants`
        is given, ":<comma-joined variants>" is appended.
        """
        url = GOOGLE_FONTS_CSS_URL + _WHITESPACE.sub("+", self.family)
        if variants:
            url = f"{url}:{','.join(variants)}"
        return url

    @property
    def detail_url(self) -> str:
        return FONT_DETAIL_URL + _WHITESPACE.sub("-", self.family.lower())

    @property
    def canonical_file_stem(self) -> str:
        return pascal_case(self.family)


@dataclass(frozen=True)
class RetrievalResult:
    """One variant that was retrieved, validated and placed."""

    family: str
    variant: str
    path: str


@dataclass(frozen=True)
class LoadOutcome:
    """Result of a catalog load."""

    from_cache: bool


@dataclass
class FetchResult:
    """
    Successful outcome of a single logical GET.

    Attributes:
        url: Final URL after redirects.
        status: HTTP status of the final response (always 200).
        body: Full response body.
        content_type: MIME type sniffed from the body, or None when unknown.
        headers: Headers of the final response.
    """

    url: str
    status: int
    body: bytes
    content_type: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")
