"""
Async HTTP transport for gfcli

This module performs single logical GET requests using aiohttp: redirect
following with a bounded budget, an inactivity timeout, buffered body
collection and best-effort content sniffing. The same request can be
consumed as text, or streamed chunk by chunk into a file sink.
"""

import asyncio
import importlib.metadata
import inspect
from pathlib import Path
from typing import Any, Callable, Dict, Optional
from urllib.parse import urljoin, urlsplit

import aiofiles  # type: ignore[import-untyped]
import aiohttp
from aiohttp import ClientSession, ClientTimeout, TCPConnector

from gfcli.constants import (
    ALLOWED_URL_SCHEMES,
    APP_NAME,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_REQUEST_TIMEOUT,
    REDIRECT_STATUSES,
)
from gfcli.exceptions import (
    ConnectionFailedError,
    HTTPStatusError,
    InvalidURLError,
    RequestTimeoutError,
)
from gfcli.log_utils import logger

from .files import remove_quietly, sniff_content_type
from .interfaces import FetchResult, Pathish

ChunkSink = Callable[[bytes], Any]

_USER_AGENT_CACHE: Optional[str] = None


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    Returns:
        The string `gfcli/{version}`, or `gfcli/unknown` when the package metadata is missing.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        try:
            app_version = importlib.metadata.version(APP_NAME)
        except importlib.metadata.PackageNotFoundError:
            app_version = "unknown"
        _USER_AGENT_CACHE = f"{APP_NAME}/{app_version}"

    return _USER_AGENT_CACHE


def validate_url(url: Any) -> str:
    """
    Check that `url` is an absolute http(s) URL with a host.

    Raises:
        InvalidURLError: If the URL cannot be used.
    """
    try:
        parts = urlsplit(url) if isinstance(url, str) else None
        host = parts.hostname if parts else None
    except ValueError:
        parts, host = None, None
    if parts is None or parts.scheme not in ALLOWED_URL_SCHEMES or not host:
        raise InvalidURLError(f"{url} is an invalid url.", url=str(url))
    return url


class FontRequestClient:
    """
    Asynchronous HTTP client for catalog, detail and font file requests.

    Example:
        async with FontRequestClient() as client:
            result = await client.fetch("https://gwfh.mranftl.com/api/fonts")
            fonts = json.loads(result.text)
    """

    def __init__(
        self,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        session: Optional[ClientSession] = None,
    ) -> None:
        """
        Parameters:
            timeout (float): Seconds without any data (connect or read) before a request is aborted.
            max_redirects (int): Redirect budget for each logical request.
            session (Optional[ClientSession]): Session to reuse; one is created lazily otherwise.
        """
        self.timeout = ClientTimeout(total=None, sock_connect=timeout, sock_read=timeout)
        self.max_redirects = max(0, int(max_redirects))
        self._session: Optional[ClientSession] = session
        self._owns_session = session is None

    async def __aenter__(self) -> "FontRequestClient":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _ensure_session(self) -> ClientSession:
        """
        Ensure a session exists, creating one if needed.

        Returns:
            ClientSession: The active aiohttp session.
        """
        if self._session is None or self._session.closed:
            self._session = ClientSession(
                connector=TCPConnector(enable_cleanup_closed=True),
                timeout=self.timeout,
                headers=self._get_default_headers(),
            )
            self._owns_session = True
        return self._session

    def _get_default_headers(self) -> Dict[str, str]:
        return {"User-Agent": get_user_agent()}

    async def close(self) -> None:
        """Close the client session if this client created it."""
        if self._session and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def fetch(self, url: str, sink: Optional[ChunkSink] = None) -> FetchResult:
        """
        Perform one logical GET and collect the full body.

        Redirect statuses (301, 302, 303, 307, 308) with a Location header are
        followed while the redirect budget lasts; relative locations are resolved
        against the URL that produced them. Anything that is not a 200 after that
        is an error.

        Parameters:
            url (str): Absolute http(s) URL.
            sink (Optional[ChunkSink]): Called with every body chunk as it arrives; may be a
                coroutine function. Errors raised by the sink propagate.

        Returns:
            FetchResult: Final URL, status, body and the sniffed content type.

        Raises:
            InvalidURLError: If `url` is not an absolute http(s) URL.
            ConnectionFailedError: If the host cannot be reached.
            RequestTimeoutError: If the inactivity timeout elapses.
            HTTPStatusError: For a non-200 final status.
        """
        validate_url(url)
        session = await self._ensure_session()
        redirects_left = self.max_redirects
        current_url = url

        while True:
            host = urlsplit(current_url).hostname
            try:
                async with session.get(current_url, allow_redirects=False) as response:
                    location = response.headers.get("Location")
                    if (
                        response.status in REDIRECT_STATUSES
                        and location
                        and redirects_left > 0
                    ):
                        redirects_left -= 1
                        next_url = urljoin(current_url, location)
                        logger.debug(
                            f"Following {response.status} redirect from {current_url} to {next_url}"
                        )
                        current_url = validate_url(next_url)
                        continue

                    if response.status != 200:
                        raise HTTPStatusError(
                            f"Bad response: {response.status}",
                            status_code=response.status,
                            url=current_url,
                        )

                    chunks = []
                    async for chunk in response.content.iter_chunked(DEFAULT_CHUNK_SIZE):
                        chunks.append(chunk)
                        if sink is not None:
                            result = sink(chunk)
                            if inspect.isawaitable(result):
                                await result
                    headers = dict(response.headers)
            except asyncio.TimeoutError as e:
                logger.debug(f"Request to {current_url} timed out")
                raise RequestTimeoutError("Request timeout.", url=current_url) from e
            except aiohttp.ClientError as e:
                raise ConnectionFailedError(
                    f"Connection to {host} failed: {e}",
                    host=host,
                    url=current_url,
                ) from e

            body = b"".join(chunks)
            return FetchResult(
                url=current_url,
                status=200,
                body=body,
                content_type=self._sniff(body),
                headers=headers,
            )

    def _sniff(self, body: bytes) -> Optional[str]:
        try:
            return sniff_content_type(body)
        except (TypeError, ValueError) as e:
            logger.debug(f"Content sniffing failed: {e}")
            return None

    async def fetch_text(self, url: str) -> str:
        """Fetch `url` and return the body decoded as UTF-8."""
        result = await self.fetch(url)
        return result.text

    async def download_to(self, url: str, target_path: Pathish) -> FetchResult:
        """
        Stream `url` into `target_path` while collecting the body and content type.

        The target file is removed if the request fails.
        """
        target = Path(target_path)
        try:
            async with aiofiles.open(target, "wb") as f:
                result = await self.fetch(url, sink=f.write)
        except BaseException:
            remove_quietly(target)
            raise
        logger.debug(f"Downloaded {url} to {target} ({len(result.body)} bytes)")
        return result
