"""
Tests for the catalog loader.

Covers cache-first loading, network fallback, catalog parsing errors,
single-flight concurrent loads and single-font resolution.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from gfcli.exceptions import (
    AmbiguousFontError,
    CatalogFormatError,
    ConnectionFailedError,
    FontNotFoundError,
)
from gfcli.fonts.cache import CatalogCache
from gfcli.fonts.catalog import CatalogLoader, LoaderState, parse_catalog
from gfcli.fonts.interfaces import LoadOutcome, SearchField

pytestmark = [pytest.mark.unit, pytest.mark.fonts]

NOW = 1_700_000_000_000


@pytest.fixture
def fake_client(mocker, sample_catalog_records):
    client = mocker.MagicMock()
    client.fetch_text = AsyncMock(return_value=json.dumps(sample_catalog_records))
    return client


@pytest.fixture
def cache(tmp_path):
    return CatalogCache(tmp_path / "cache.json", clock=lambda: NOW)


class TestParseCatalog:
    def test_array_is_returned(self):
        assert parse_catalog('[{"family": "Lato"}]') == [{"family": "Lato"}]

    def test_invalid_json_is_flagged(self):
        with pytest.raises(CatalogFormatError) as exc_info:
            parse_catalog("<html>oops</html>")

        assert exc_info.value.is_invalid_json is True
        assert exc_info.value.message == "Failed to parse font catalog JSON"

    def test_non_array_root_is_rejected(self):
        with pytest.raises(CatalogFormatError) as exc_info:
            parse_catalog('{"items": []}')

        assert exc_info.value.message == "Invalid font catalog JSON format"


@pytest.mark.asyncio
class TestCatalogLoad:
    """Test loading the catalog."""

    async def test_network_load_populates_and_caches(self, fake_client, cache):
        loader = CatalogLoader(fake_client, cache=cache)

        outcome = await loader.load()

        assert outcome == LoadOutcome(from_cache=False)
        assert loader.loaded is True
        assert [entry.family for entry in loader.entries][:2] == [
            "Source Sans Pro",
            "Source Serif Pro",
        ]
        assert await cache.read() is not None
        fake_client.fetch_text.assert_awaited_once_with(loader.catalog_url)

    async def test_fresh_cache_skips_network(self, fake_client, cache):
        await cache.write([{"family": "Cached Sans", "category": "sans-serif"}])
        loader = CatalogLoader(fake_client, cache=cache)

        outcome = await loader.load()

        assert outcome.from_cache is True
        assert [entry.family for entry in loader.entries] == ["Cached Sans"]
        fake_client.fetch_text.assert_not_awaited()

    async def test_force_refresh_bypasses_cache(self, fake_client, cache):
        await cache.write([{"family": "Cached Sans"}])
        loader = CatalogLoader(fake_client, cache=cache)

        outcome = await loader.load(force_refresh=True)

        assert outcome.from_cache is False
        assert "Cached Sans" not in [entry.family for entry in loader.entries]
        fake_client.fetch_text.assert_awaited_once()

    async def test_disabled_cache_is_neither_read_nor_written(self, fake_client, cache):
        await cache.write([{"family": "Cached Sans"}])
        loader = CatalogLoader(fake_client, cache=cache, cache_enabled=False)

        outcome = await loader.load()

        assert outcome.from_cache is False
        assert await cache.read() == [{"family": "Cached Sans"}]

    async def test_reload_replaces_entries(self, fake_client, cache):
        loader = CatalogLoader(fake_client, cache=cache)

        await loader.load()
        await loader.load(force_refresh=True)

        assert len(loader.entries) == 5

    async def test_invalid_json_fails_and_leaves_model_empty(self, fake_client, cache):
        fake_client.fetch_text.return_value = "<html>maintenance</html>"
        loader = CatalogLoader(fake_client, cache=cache)

        with pytest.raises(CatalogFormatError) as exc_info:
            await loader.load()

        assert exc_info.value.is_invalid_json is True
        assert loader.entries == []
        assert loader.loaded is False
        assert await cache.read() is None

    async def test_non_array_catalog_fails(self, fake_client, cache):
        fake_client.fetch_text.return_value = '{"fonts": []}'
        loader = CatalogLoader(fake_client, cache=cache)

        with pytest.raises(CatalogFormatError):
            await loader.load()

    async def test_transport_error_propagates(self, fake_client, cache):
        fake_client.fetch_text.side_effect = ConnectionFailedError(
            "Connection to gwfh.mranftl.com failed: refused", host="gwfh.mranftl.com"
        )
        loader = CatalogLoader(fake_client, cache=cache)

        with pytest.raises(ConnectionFailedError):
            await loader.load()

        assert loader.state is LoaderState.IDLE

    async def test_malformed_records_are_skipped(self, fake_client, cache):
        fake_client.fetch_text.return_value = json.dumps(
            [{"family": "Lato"}, 42, None, {"familyName": "Inter"}]
        )
        loader = CatalogLoader(fake_client, cache=cache)

        await loader.load()

        assert [entry.family for entry in loader.entries] == ["Lato", "Inter"]

    async def test_malformed_record_warning_names_the_type(self, mocker, cache):
        warning = mocker.patch("gfcli.fonts.catalog.logger.warning")
        loader = CatalogLoader(mocker.MagicMock(), cache=cache)

        loader.populate([{"family": "Lato"}, 42])

        warning.assert_called_once_with(
            "Skipping malformed catalog record: expected object, got int"
        )

    async def test_concurrent_loads_share_one_fetch(self, fake_client, cache):
        release = asyncio.Event()
        body = fake_client.fetch_text.return_value

        async def slow_fetch(_url):
            await release.wait()
            return body

        fake_client.fetch_text = AsyncMock(side_effect=slow_fetch)
        loader = CatalogLoader(fake_client, cache=cache)

        first = asyncio.ensure_future(loader.load(force_refresh=True))
        second = asyncio.ensure_future(loader.load())
        await asyncio.sleep(0)
        assert loader.state is LoaderState.LOADING
        release.set()
        outcomes = await asyncio.gather(first, second)

        assert outcomes[0] == outcomes[1] == LoadOutcome(from_cache=False)
        assert fake_client.fetch_text.await_count == 1
        assert loader.state is LoaderState.IDLE

    async def test_concurrent_loads_share_one_failure(self, fake_client, cache):
        fake_client.fetch_text.return_value = "not json"
        loader = CatalogLoader(fake_client, cache=cache)

        results = await asyncio.gather(
            loader.load(), loader.load(), return_exceptions=True
        )

        assert all(isinstance(result, CatalogFormatError) for result in results)
        assert results[0] is results[1]
        assert fake_client.fetch_text.await_count == 1

    async def test_load_after_completion_starts_new_load(self, fake_client, cache):
        loader = CatalogLoader(fake_client, cache=cache, cache_enabled=False)

        await loader.load()
        await loader.load()

        assert fake_client.fetch_text.await_count == 2


@pytest.mark.asyncio
class TestResolveFont:
    """Test resolving a family name to one entry."""

    async def test_exact_case_insensitive_match(self, fake_client, cache):
        loader = CatalogLoader(fake_client, cache=cache)
        await loader.load()

        entry = loader.resolve_font("  open SANS ")

        assert entry.family == "Open Sans"

    async def test_unknown_family_raises_not_found(self, fake_client, cache):
        loader = CatalogLoader(fake_client, cache=cache)
        await loader.load()

        with pytest.raises(FontNotFoundError) as exc_info:
            loader.resolve_font("Source")

        assert exc_info.value.term == "Source"
        assert len(exc_info.value.view) == 0
        assert exc_info.value.view.filter_field is SearchField.FAMILY

    async def test_duplicate_families_are_ambiguous(self, mocker, cache):
        client = mocker.MagicMock()
        client.fetch_text = AsyncMock(
            return_value=json.dumps([{"family": "Lato"}, {"familyName": "lato"}])
        )
        loader = CatalogLoader(client, cache=cache)
        await loader.load()

        with pytest.raises(AmbiguousFontError) as exc_info:
            loader.resolve_font("Lato")

        assert len(exc_info.value.view) == 2

    async def test_loader_delegates_search(self, fake_client, cache):
        loader = CatalogLoader(fake_client, cache=cache)
        await loader.load()

        assert len(loader.search_by_name("source")) == 3
        assert len(loader.search("pro code", SearchField.FAMILY)) == 1
        assert len(loader.get_by_category("SERIF")) == 1
        assert len(loader.catalog) == 5
