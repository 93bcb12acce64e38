"""
Variant Retrieval & Placement Orchestrator

For one catalog entry and a set of requested variants, this module resolves
the entry's file map, retrieves and places each variant in order, and
aggregates per-variant failures without stopping the batch.
"""

from typing import Dict, List, Optional, Sequence, Union

from gfcli.exceptions import GfcliError, VariantRetrievalError
from gfcli.log_utils import logger

from .entry import normalize_variant_id, resolve_file_map
from .interfaces import (
    CatalogEntry,
    Destination,
    FontFormat,
    Pathish,
    RetrievalResult,
)
from .placement import FontPlacement


class FontRetrievalOrchestrator:
    """
    Retrieves font variants and places them at a destination.

    Example:
        orchestrator = FontRetrievalOrchestrator(placement)
        results = await orchestrator.save_at(entry, ["regular", "700"], "./fonts")
    """

    def __init__(
        self,
        placement: FontPlacement,
        default_format: Union[FontFormat, str] = FontFormat.TTF,
    ) -> None:
        self.placement = placement
        self.client = placement.client
        self.default_format = FontFormat(default_format)

    async def retrieve_variants(
        self,
        entry: CatalogEntry,
        variants: Optional[Sequence[str]] = None,
        destination: Optional[Destination] = None,
        font_format: Optional[Union[FontFormat, str]] = None,
    ) -> List[RetrievalResult]:
        """
        Retrieve the requested variants of `entry` and place them at `destination`.

        Variants are processed one at a time in the requested order. A variant
        whose normalized id has no file in the requested format is skipped
        silently. Each placed file is named
        `<canonical file stem>-<normalized variant id><remote extension>`.

        Parameters:
            entry (CatalogEntry): Font family to retrieve.
            variants (Optional[Sequence[str]]): Variant ids; every available variant when empty.
            destination (Optional[Destination]): Defaults to the current working directory.
            font_format (Optional[FontFormat | str]): Defaults to the orchestrator's format.

        Returns:
            List[RetrievalResult]: One result per placed variant, in requested order.

        Raises:
            FontDetailError: If the entry's file map cannot be resolved.
            TransportError: If the detail request fails at the transport level.
            VariantRetrievalError: If one or more variants failed; carries the
                successful results and the per-variant failures.
        """
        fmt = FontFormat(font_format) if font_format else self.default_format
        destination = destination or Destination.here()

        file_map = await resolve_file_map(self.client, entry, fmt)
        requested = list(variants) if variants else list(file_map)

        results: List[RetrievalResult] = []
        failures: Dict[str, Exception] = {}
        seen = set()

        with self.placement.staging() as staging_dir:
            for raw_variant in requested:
                variant = normalize_variant_id(raw_variant)
                if variant in seen:
                    continue
                seen.add(variant)

                url = file_map.get(variant)
                if not url:
                    logger.debug(f"{entry.family} has no {fmt.value} file for variant {variant}")
                    continue

                file_name = f"{entry.canonical_file_stem}-{variant}"
                try:
                    path = await self.placement.place(
                        url, file_name, destination, staging_dir
                    )
                except (GfcliError, OSError) as e:
                    logger.warning(f"Failed to retrieve {entry.family} {variant}: {e}")
                    failures[variant] = e
                    continue

                logger.info(f"Processed {entry.family} {variant}: {path}")
                results.append(
                    RetrievalResult(family=entry.family, variant=variant, path=path)
                )

        if failures:
            raise VariantRetrievalError(results, failures, family=entry.family)
        return results

    async def save_at(
        self,
        entry: CatalogEntry,
        variants: Optional[Sequence[str]] = None,
        dest_folder: Optional[Pathish] = None,
        font_format: Optional[Union[FontFormat, str]] = None,
    ) -> List[RetrievalResult]:
        """Retrieve variants into `dest_folder` (current directory when empty)."""
        return await self.retrieve_variants(
            entry, variants, Destination.at(dest_folder), font_format
        )

    async def install(
        self,
        entry: CatalogEntry,
        variants: Optional[Sequence[str]] = None,
    ) -> List[RetrievalResult]:
        """Retrieve TTF variants and install them as system fonts."""
        return await self.retrieve_variants(
            entry, variants, Destination.system(), FontFormat.TTF
        )
