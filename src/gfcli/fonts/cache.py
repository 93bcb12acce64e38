"""
Cache Management for the gfcli Fonts Subsystem

This module stores a TTL-bound snapshot of the raw catalog records on disk.
Caching is an optimization only: reads that fail return None and writes that
fail are logged and ignored.
"""

import json
import math
import os
import time
from pathlib import Path
from typing import Any, Callable, List, Optional

import aiofiles  # type: ignore[import-untyped]

from gfcli.constants import APP_NAME, CACHE_FILE_NAME, CACHE_TTL_MS
from gfcli.log_utils import logger

from .interfaces import Pathish


def _now_ms() -> int:
    return int(time.time() * 1000)


def get_default_cache_file() -> Path:
    """
    Get the platform-appropriate cache file path for gfcli.

    Returns:
        Path: `cache.json` inside the user cache directory.
    """
    import platformdirs

    return Path(platformdirs.user_cache_dir(APP_NAME)) / CACHE_FILE_NAME


class CatalogCache:
    """
    Reads and writes the `{fetchedAt, fonts}` catalog snapshot.

    Attributes:
        cache_file: Location of the JSON snapshot.
        ttl_ms: Maximum snapshot age in milliseconds.
    """

    def __init__(
        self,
        cache_file: Optional[Pathish] = None,
        ttl_ms: int = CACHE_TTL_MS,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        """
        Parameters:
            cache_file (Optional[Pathish]): Snapshot location; defaults to the user cache directory.
            ttl_ms (int): Maximum age in milliseconds before a snapshot is considered stale.
            clock (Callable[[], int]): Returns the current epoch time in milliseconds.
        """
        self.cache_file = Path(cache_file) if cache_file else get_default_cache_file()
        self.ttl_ms = ttl_ms
        self._clock = clock

    async def read(self) -> Optional[List[Any]]:
        """
        Return the cached raw records if the snapshot is present, well-formed and fresh.

        Returns:
            The stored `fonts` list unchanged, or None on a missing, unreadable,
            malformed or expired snapshot.
        """
        try:
            async with aiofiles.open(self.cache_file, "r", encoding="utf-8") as f:
                content = await f.read()
            payload = json.loads(content)
        except FileNotFoundError:
            logger.debug(f"Catalog cache miss: {self.cache_file} does not exist")
            return None
        except (OSError, UnicodeDecodeError, ValueError) as e:
            logger.debug(f"Could not read catalog cache {self.cache_file}: {e}")
            return None

        if not isinstance(payload, dict):
            logger.debug("Ignoring catalog cache with non-object payload")
            return None
        fonts = payload.get("fonts")
        fetched_at = payload.get("fetchedAt")
        if not isinstance(fonts, list) or not _is_number(fetched_at):
            logger.debug("Ignoring catalog cache with missing or invalid fields")
            return None

        age = self._clock() - fetched_at
        if age > self.ttl_ms:
            logger.debug(f"Catalog cache expired ({age} ms old)")
            return None

        logger.debug(f"Catalog cache hit: {len(fonts)} fonts from {self.cache_file}")
        return fonts

    async def write(self, fonts: List[Any]) -> None:
        """
        Overwrite the snapshot with `fonts`, stamped with the current time.

        Directory creation and write errors are logged at debug level and suppressed.
        """
        try:
            os.makedirs(self.cache_file.parent, exist_ok=True)
        except OSError as e:
            logger.debug(f"Could not create cache directory {self.cache_file.parent}: {e}")

        payload = {"fetchedAt": self._clock(), "fonts": fonts}
        try:
            content = json.dumps(payload)
            async with aiofiles.open(self.cache_file, "w", encoding="utf-8") as f:
                await f.write(content)
        except (OSError, TypeError, ValueError) as e:
            logger.debug(f"Could not write catalog cache {self.cache_file}: {e}")
            return
        logger.debug(f"Wrote {len(fonts)} fonts to catalog cache {self.cache_file}")


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)
