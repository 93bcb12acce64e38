from unittest.mock import AsyncMock

import platformdirs
import pytest

_ASYNC_NETWORK_BLOCK_MSG = (
    "Async network access is blocked during tests. Mock aiohttp.ClientSession."
)


async def _async_block_network(*_args, **_kwargs):
    """
    Prevent async network calls during tests by raising a RuntimeError.

    Intended to replace aiohttp.ClientSession methods so tests do not perform real
    HTTP requests.

    Raises:
        RuntimeError: `_ASYNC_NETWORK_BLOCK_MSG` suggesting to mock `aiohttp.ClientSession`.
    """
    raise RuntimeError(_ASYNC_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """
    Register the markers used across the test suite.

    Parameters:
        config: pytest.Config
            The pytest configuration object used to register markers.
    """
    config.addinivalue_line(
        "markers", "asyncio: mark test as an asyncio test (auto-detected)"
    )
    config.addinivalue_line("markers", "unit: fast tests without I/O beyond tmp_path")
    config.addinivalue_line("markers", "fonts: tests of the fonts subsystem")
    config.addinivalue_line("markers", "cli: command-line interface tests")


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point every platformdirs location used by gfcli into a temporary directory tree.

    Also clears the gfcli environment overrides so a developer's settings cannot
    leak into test runs.
    """
    base = tmp_path_factory.mktemp("gfcli")
    cache_dir = base / "cache"
    config_dir = base / "config"
    log_dir = base / "log"

    for path in (cache_dir, config_dir, log_dir):
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_CACHE_HOME", str(cache_dir))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.delenv("GFCLI_CONFIG", raising=False)
    monkeypatch.delenv("GFCLI_LOG_LEVEL", raising=False)

    monkeypatch.setattr(
        platformdirs, "user_cache_dir", lambda *_args, **_kwargs: str(cache_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_log_dir", lambda *_args, **_kwargs: str(log_dir)
    )


def pytest_runtest_setup():
    """
    Prevent real network requests during tests by replacing aiohttp entry points with an async blocker.
    """
    import aiohttp

    aiohttp.request = _async_block_network
    aiohttp.ClientSession.request = _async_block_network  # type: ignore[assignment]
    aiohttp.ClientSession.get = _async_block_network  # type: ignore[assignment]
    aiohttp.ClientSession.head = _async_block_network  # type: ignore[assignment]


# =============================================================================
# Async Test Fixtures
# =============================================================================


async def _async_iter_chunks(chunks):
    for chunk in chunks:
        yield chunk


@pytest.fixture
def mock_aiohttp_session(mocker):
    """
    Provide a mock aiohttp.ClientSession whose `get` is a plain MagicMock.

    Tests configure `mock_aiohttp_session.get.return_value` (or `side_effect`) with
    responses built by `mock_async_response`.
    """
    mock_session = mocker.MagicMock()
    mock_session.closed = False
    mock_session.get = mocker.MagicMock()
    mock_session.close = AsyncMock()
    yield mock_session


@pytest.fixture
def mock_async_response(mocker):
    """
    Provide a factory that creates mock aiohttp responses usable as async context managers.

    Returns:
        factory (callable): `factory(status=200, headers=None, content_chunks=None)` returns a
        mock with `status`, `headers` and `content.iter_chunked` yielding `content_chunks`.
    """

    def _create_response(status=200, headers=None, content_chunks=None):
        response = mocker.MagicMock()
        response.status = status
        response.headers = headers or {}

        mock_content = mocker.MagicMock()
        mock_content.iter_chunked = mocker.Mock(
            return_value=_async_iter_chunks(content_chunks or [])
        )
        response.content = mock_content

        response.__aenter__ = AsyncMock(return_value=response)
        response.__aexit__ = AsyncMock(return_value=None)
        return response

    return _create_response


@pytest.fixture
def sample_catalog_records():
    """Fixture providing raw catalog records as served by the catalog endpoint."""
    return [
        {
            "id": "source-sans-pro",
            "family": "Source Sans Pro",
            "category": "sans-serif",
            "variants": ["200", "regular", "italic", "700"],
        },
        {
            "id": "source-serif-pro",
            "family": "Source Serif Pro",
            "category": "serif",
            "variants": ["regular", "700"],
        },
        {
            "id": "source-code-pro",
            "family": "Source Code Pro",
            "category": "monospace",
            "variants": ["regular"],
        },
        {
            "id": "open-sans",
            "family": "Open Sans",
            "category": "sans-serif",
            "variants": ["regular", "italic", "700"],
        },
        {
            "id": "roboto",
            "familyName": "Roboto",
            "category": "sans-serif",
            "variants": {"regular": {}, "700": {}},
        },
    ]


@pytest.fixture
def sample_detail_document():
    """Fixture providing a per-font detail document for Open Sans."""
    return {
        "id": "open-sans",
        "family": "Open Sans",
        "variants": [
            {
                "id": "regular",
                "ttf": "https://fonts.gstatic.com/s/opensans/v1/regular.ttf",
                "woff2": "https://fonts.gstatic.com/s/opensans/v1/regular.woff2",
            },
            {
                "id": "italic",
                "ttf": "https://fonts.gstatic.com/s/opensans/v1/italic.ttf",
                "woff2": "https://fonts.gstatic.com/s/opensans/v1/italic.woff2",
            },
            {
                "id": "700",
                "ttf": "https://fonts.gstatic.com/s/opensans/v1/700.ttf",
            },
        ],
    }
