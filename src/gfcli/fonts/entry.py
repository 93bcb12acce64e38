"""
Per-entry variant handling: variant id normalization and file-map resolution
against the per-font detail endpoint.
"""

import json
from typing import Any, Dict, Union

from gfcli.constants import DEFAULT_VARIANT_ALIASES
from gfcli.exceptions import FontDetailError, HTTPStatusError
from gfcli.log_utils import logger

from .interfaces import CatalogEntry, FontFormat
from .transport import FontRequestClient


def normalize_variant_id(raw: Any) -> str:
    """
    Normalize a variant id the way the catalog labels files.

    The id is trimmed and lower-cased; "400"/"normal" become "regular" and
    "400italic"/"normalitalic" become "italic". Everything else passes through.
    """
    variant = str(raw).strip().lower()
    return DEFAULT_VARIANT_ALIASES.get(variant, variant)


async def resolve_file_map(
    client: FontRequestClient,
    entry: CatalogEntry,
    font_format: Union[FontFormat, str] = FontFormat.TTF,
) -> Dict[str, str]:
    """
    Map each variant of `entry` that has a file in `font_format` to that file's URL.

    The detail document is fetched on every call. Variants without a file in the
    requested format are left out.

    Parameters:
        client (FontRequestClient): Transport used for the detail request.
        entry (CatalogEntry): Font family to resolve.
        font_format (FontFormat | str): "ttf" (default) or "woff2".

    Returns:
        Dict[str, str]: Normalized variant id -> file URL, in detail-document order.

    Raises:
        FontDetailError: If the detail request fails or the document has an unexpected shape.
        TransportError: For connection failures, timeouts and invalid URLs.
    """
    fmt = FontFormat(font_format).value
    family = entry.family

    try:
        result = await client.fetch(entry.detail_url)
    except HTTPStatusError as e:
        raise FontDetailError(
            f"Font API returned {e.status_code} for {family}",
            family=family,
            status_code=e.status_code,
        ) from e

    try:
        document = json.loads(result.text)
    except ValueError as e:
        raise FontDetailError(
            "Failed to parse font detail JSON response", family=family, details=str(e)
        ) from e

    variants = document.get("variants") if isinstance(document, dict) else None
    if not isinstance(variants, list):
        raise FontDetailError(
            "Failed to parse font detail JSON response",
            family=family,
            details="missing variants list",
        )

    files: Dict[str, str] = {}
    for variant in variants:
        if not isinstance(variant, dict) or "id" not in variant:
            raise FontDetailError(
                "Failed to parse font detail JSON response",
                family=family,
                details=f"malformed variant {variant!r}",
            )
        url = variant.get(fmt)
        if isinstance(url, str) and url:
            files[normalize_variant_id(variant["id"])] = url

    logger.debug(f"{family}: {len(files)} {fmt} file(s) available")
    return files
