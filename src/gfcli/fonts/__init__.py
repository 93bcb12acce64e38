"""
gfcli Fonts Subsystem

This package resolves font families against the cached font catalog and
retrieves their variant files.

Core Components:
- interfaces: Shared data structures
- transport: Async HTTP retrieval
- cache: On-disk catalog snapshot
- catalog: Catalog loading and single-font resolution
- search: Catalog views and the search/filter engine
- entry: Variant normalization and file-map resolution
- files: Content sniffing, validation and moves
- system: OS font installers
- placement: Staging and placement of font files
- orchestrator: Multi-variant retrieval
"""

from .cache import CatalogCache
from .catalog import CatalogLoader, LoaderState
from .entry import normalize_variant_id, resolve_file_map
from .interfaces import (
    CatalogEntry,
    Destination,
    DestinationKind,
    FetchResult,
    FontFormat,
    LoadOutcome,
    RetrievalResult,
    SearchField,
)
from .orchestrator import FontRetrievalOrchestrator
from .placement import FontPlacement
from .search import CatalogView
from .system import SystemFontInstaller, get_system_installer
from .transport import FontRequestClient

__all__ = [
    # Interfaces
    "CatalogEntry",
    "CatalogView",
    "Destination",
    "DestinationKind",
    "FetchResult",
    "FontFormat",
    "LoadOutcome",
    "RetrievalResult",
    "SearchField",
    # Core components
    "FontRequestClient",
    "CatalogCache",
    "CatalogLoader",
    "LoaderState",
    "FontPlacement",
    "FontRetrievalOrchestrator",
    "SystemFontInstaller",
    "get_system_installer",
    # Helpers
    "normalize_variant_id",
    "resolve_file_map",
]
