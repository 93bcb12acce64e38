"""
Catalog Loader for the gfcli Fonts Subsystem

The loader owns the in-memory catalog. A load tries the on-disk cache first,
then fetches the catalog endpoint, parses it, caches it and populates the
model. Concurrent loads share one in-flight operation.
"""

import asyncio
import json
from enum import Enum
from typing import Any, List, Mapping, Optional

from gfcli.constants import FONT_LIST_URL
from gfcli.exceptions import AmbiguousFontError, CatalogFormatError, FontNotFoundError
from gfcli.log_utils import logger

from .cache import CatalogCache
from .interfaces import CatalogEntry, LoadOutcome, SearchField
from .search import CatalogView
from .transport import FontRequestClient


class LoaderState(Enum):
    IDLE = "idle"
    LOADING = "loading"


def parse_catalog(raw_data: str) -> List[Any]:
    """
    Parse the catalog response body.

    Raises:
        CatalogFormatError: If the body is not JSON or its root is not an array.
    """
    try:
        records = json.loads(raw_data)
    except ValueError as e:
        raise CatalogFormatError(
            "Failed to parse font catalog JSON", details=str(e)
        ) from e
    if not isinstance(records, list):
        raise CatalogFormatError(
            "Invalid font catalog JSON format",
            details=f"expected an array, got {type(records).__name__}",
        )
    return records


class CatalogLoader:
    """
    Loads the font catalog and answers search queries over it.

    Example:
        async with FontRequestClient() as client:
            loader = CatalogLoader(client)
            outcome = await loader.load()
            view = loader.search_by_name("source sans")
    """

    def __init__(
        self,
        client: FontRequestClient,
        cache: Optional[CatalogCache] = None,
        cache_enabled: bool = True,
        catalog_url: str = FONT_LIST_URL,
    ) -> None:
        self.client = client
        self.cache = cache if cache is not None else CatalogCache()
        self.cache_enabled = cache_enabled
        self.catalog_url = catalog_url
        self.entries: List[CatalogEntry] = []
        self.loaded = False
        self._pending: Optional["asyncio.Future[LoadOutcome]"] = None

    @property
    def state(self) -> LoaderState:
        return LoaderState.LOADING if self._pending is not None else LoaderState.IDLE

    async def load(self, force_refresh: bool = False) -> LoadOutcome:
        """
        Load the catalog, from the cache when allowed and fresh, otherwise from the network.

        Calls made while a load is in flight await that same load and receive the
        same outcome (or the same exception); their `force_refresh` is ignored.

        Parameters:
            force_refresh (bool): Skip the cache and always fetch the catalog.

        Returns:
            LoadOutcome: `from_cache` tells whether the cache satisfied the load.

        Raises:
            TransportError: If the catalog request fails.
            CatalogFormatError: If the catalog body is not a JSON array.
        """
        if self._pending is None:
            pending = asyncio.ensure_future(self._load(force_refresh))
            pending.add_done_callback(self._finish_load)
            self._pending = pending
        else:
            logger.debug("Catalog load already in progress; joining it")
        return await asyncio.shield(self._pending)

    def _finish_load(self, pending: "asyncio.Future[LoadOutcome]") -> None:
        if self._pending is pending:
            self._pending = None

    async def _load(self, force_refresh: bool) -> LoadOutcome:
        if not force_refresh and self.cache_enabled:
            cached = await self.cache.read()
            if cached is not None:
                self.populate(cached)
                return LoadOutcome(from_cache=True)

        logger.info("Downloading Google Font List...")
        try:
            raw_data = await self.client.fetch_text(self.catalog_url)
            records = parse_catalog(raw_data)
        except Exception as e:
            logger.error(f"Could not load font catalog: {e}")
            raise

        if self.cache_enabled:
            await self.cache.write(records)
        self.populate(records)
        return LoadOutcome(from_cache=False)

    def populate(self, records: List[Any]) -> None:
        """Replace the in-memory catalog with entries built from raw records."""
        entries = []
        for record in records:
            if not isinstance(record, Mapping):
                logger.warning(
                    f"Skipping malformed catalog record: expected object, "
                    f"got {type(record).__name__}"
                )
                continue
            entries.append(CatalogEntry.from_record(record))
        self.entries = entries
        self.loaded = True
        logger.debug(f"Catalog populated with {len(entries)} fonts")

    @property
    def catalog(self) -> CatalogView:
        """The whole catalog as an unfiltered view."""
        return CatalogView(list(self.entries))

    def search(self, term: str, search_field: SearchField) -> CatalogView:
        return self.catalog.search(term, search_field)

    def exact_match(self, term: str, search_field: SearchField) -> CatalogView:
        return self.catalog.exact_match(term, search_field)

    def search_by_name(self, term: str) -> CatalogView:
        return self.catalog.search_by_name(term)

    def search_by_category(self, term: str) -> CatalogView:
        return self.catalog.search_by_category(term)

    def get_by_name(self, term: str) -> CatalogView:
        return self.catalog.get_by_name(term)

    def get_by_category(self, term: str) -> CatalogView:
        return self.catalog.get_by_category(term)

    def resolve_font(self, name: str) -> CatalogEntry:
        """
        Resolve a family name to exactly one catalog entry.

        Raises:
            FontNotFoundError: If no family matches `name` exactly.
            AmbiguousFontError: If more than one family matches.
        """
        view = self.get_by_name(name)
        if not view.entries:
            raise FontNotFoundError(
                f'Unable to find font family "{name}"', term=name, view=view
            )
        if not view.is_single():
            raise AmbiguousFontError(
                f'"{name}" matches {len(view)} font families', term=name, view=view
            )
        return view.entries[0]
