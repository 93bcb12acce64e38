"""
Tests for multi-variant retrieval and placement.
"""

import json
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from gfcli.exceptions import (
    ConnectionFailedError,
    CorruptedFontError,
    FontDetailError,
    HTTPStatusError,
    VariantRetrievalError,
)
from gfcli.fonts.interfaces import CatalogEntry, Destination, FetchResult
from gfcli.fonts.orchestrator import FontRetrievalOrchestrator
from gfcli.fonts.placement import FontPlacement

pytestmark = [pytest.mark.unit, pytest.mark.fonts]

TTF_BYTES = b"\x00\x01\x00\x00glyf"


@pytest.fixture
def entry():
    return CatalogEntry("Open Sans", "sans-serif", ("regular", "italic", "700"))


@pytest.fixture
def fake_client(mocker, sample_detail_document):
    """Transport fake serving the detail document and writing TTF bytes for downloads."""
    client = mocker.MagicMock()
    client.fetch = AsyncMock(
        return_value=FetchResult(
            url="https://gwfh.mranftl.com/api/fonts/open-sans",
            status=200,
            body=json.dumps(sample_detail_document).encode(),
        )
    )
    client.downloaded = []

    async def download_to(url, target_path):
        client.downloaded.append(url)
        Path(target_path).write_bytes(TTF_BYTES)
        return FetchResult(
            url=url, status=200, body=TTF_BYTES, content_type="application/font-sfnt"
        )

    client.download_to = AsyncMock(side_effect=download_to)
    return client


@pytest.fixture
def orchestrator(fake_client, tmp_path):
    placement = FontPlacement(fake_client, staging_root=tmp_path / "staging")
    return FontRetrievalOrchestrator(placement)


@pytest.mark.asyncio
class TestRetrieveVariants:
    """Test retrieving several variants of one family."""

    async def test_requested_variants_in_order(self, orchestrator, entry, tmp_path):
        out = tmp_path / "out"

        results = await orchestrator.save_at(entry, ["700", "regular"], out)

        assert [r.variant for r in results] == ["700", "regular"]
        assert [Path(r.path).name for r in results] == [
            "OpenSans-700.ttf",
            "OpenSans-regular.ttf",
        ]
        assert all(r.family == "Open Sans" for r in results)
        assert all(Path(r.path).read_bytes() == TTF_BYTES for r in results)

    async def test_unknown_variant_is_skipped_silently(
        self, orchestrator, entry, tmp_path
    ):
        results = await orchestrator.save_at(
            entry, ["regular", "bogus", "700"], tmp_path / "out"
        )

        assert [r.variant for r in results] == ["regular", "700"]

    async def test_all_variants_when_none_requested(
        self, orchestrator, entry, tmp_path
    ):
        results = await orchestrator.save_at(entry, None, tmp_path / "out")

        assert [r.variant for r in results] == ["regular", "italic", "700"]

    async def test_aliases_and_duplicates(self, orchestrator, fake_client, entry, tmp_path):
        results = await orchestrator.save_at(
            entry, ["400", "regular", "400italic"], tmp_path / "out"
        )

        assert [r.variant for r in results] == ["regular", "italic"]
        assert len(fake_client.downloaded) == 2

    async def test_woff2_format(self, orchestrator, entry, tmp_path):
        results = await orchestrator.save_at(
            entry, ["regular", "700"], tmp_path / "out", "woff2"
        )

        assert [Path(r.path).name for r in results] == ["OpenSans-regular.woff2"]

    async def test_default_destination_is_current_directory(
        self, orchestrator, entry, tmp_path, monkeypatch
    ):
        monkeypatch.chdir(tmp_path)

        results = await orchestrator.retrieve_variants(entry, ["regular"])

        assert Path(results[0].path).parent == tmp_path.resolve()

    async def test_one_failure_is_aggregated(
        self, orchestrator, fake_client, entry, tmp_path
    ):
        original = fake_client.download_to.side_effect

        async def flaky_download(url, target_path):
            if "italic" in url:
                raise ConnectionFailedError("Connection to fonts.gstatic.com failed: reset")
            return await original(url, target_path)

        fake_client.download_to.side_effect = flaky_download

        with pytest.raises(VariantRetrievalError) as exc_info:
            await orchestrator.save_at(
                entry, ["regular", "italic", "700"], tmp_path / "out"
            )

        error = exc_info.value
        assert error.failure_count == 1
        assert list(error.failures) == ["italic"]
        assert [r.variant for r in error.results] == ["regular", "700"]
        assert error.family == "Open Sans"
        assert "1 of 3 variant(s) failed" in str(error)

    async def test_validation_failure_is_aggregated(
        self, orchestrator, fake_client, entry, sample_detail_document, tmp_path
    ):
        sample_detail_document["variants"][1]["ttf"] = (
            "https://fonts.gstatic.com/s/opensans/v1/italic.bin"
        )
        fake_client.fetch.return_value = FetchResult(
            url="https://gwfh.mranftl.com/api/fonts/open-sans",
            status=200,
            body=json.dumps(sample_detail_document).encode(),
        )
        original = fake_client.download_to.side_effect

        async def html_for_bin(url, target_path):
            if url.endswith(".bin"):
                Path(target_path).write_bytes(b"<html>")
                return FetchResult(url=url, status=200, body=b"<html>", content_type=None)
            return await original(url, target_path)

        fake_client.download_to.side_effect = html_for_bin
        out = tmp_path / "out"

        with pytest.raises(VariantRetrievalError) as exc_info:
            await orchestrator.save_at(entry, ["regular", "italic", "700"], out)

        error = exc_info.value
        assert list(error.failures) == ["italic"]
        assert isinstance(error.failures["italic"], CorruptedFontError)
        assert [r.variant for r in error.results] == ["regular", "700"]
        assert not (out / "OpenSans-italic.bin").exists()

    async def test_every_failure_is_reported(
        self, orchestrator, fake_client, entry, tmp_path
    ):
        fake_client.download_to.side_effect = HTTPStatusError(
            "Bad response: 500", status_code=500
        )

        with pytest.raises(VariantRetrievalError) as exc_info:
            await orchestrator.save_at(entry, ["regular", "700"], tmp_path / "out")

        assert exc_info.value.failure_count == 2
        assert exc_info.value.results == []

    async def test_detail_failure_stops_before_downloads(
        self, orchestrator, fake_client, entry, tmp_path
    ):
        fake_client.fetch.side_effect = HTTPStatusError("Bad response: 404", status_code=404)

        with pytest.raises(FontDetailError):
            await orchestrator.save_at(entry, ["regular"], tmp_path / "out")

        fake_client.download_to.assert_not_awaited()

    async def test_staging_is_cleaned_up(self, orchestrator, entry, tmp_path):
        await orchestrator.save_at(entry, ["regular"], tmp_path / "out")

        assert list((tmp_path / "staging").iterdir()) == []


@pytest.mark.asyncio
class TestInstall:
    async def test_install_uses_system_destination_and_ttf(
        self, orchestrator, mocker, entry
    ):
        place = mocker.patch.object(
            orchestrator.placement, "place", AsyncMock(return_value="installed")
        )

        results = await orchestrator.install(entry, ["regular"])

        assert results[0].path == "installed"
        url, file_name, destination, _staging = place.await_args.args
        assert url.endswith("regular.ttf")
        assert file_name == "OpenSans-regular"
        assert destination == Destination.system()
