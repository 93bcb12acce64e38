# src/gfcli/cli.py

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import platformdirs

from gfcli import log_utils
from gfcli.config import FONT_FORMAT_CHOICES, load_config
from gfcli.constants import APP_NAME
from gfcli.exceptions import (
    ConfigurationError,
    GfcliError,
    NoSingleMatchError,
    VariantRetrievalError,
)
from gfcli.fonts import (
    CatalogCache,
    CatalogLoader,
    CatalogView,
    Destination,
    DestinationKind,
    FontPlacement,
    FontRequestClient,
    FontRetrievalOrchestrator,
    RetrievalResult,
)

logger = log_utils.logger


def split_families(family_args: Sequence[str]) -> List[str]:
    """
    Join positional words and split them on commas into family names.

    Example:
        ["Open", "Sans,", "Roboto"] -> ["Open Sans", "Roboto"]
    """
    joined = " ".join(family_args)
    return [name.strip() for name in joined.split(",") if name.strip()]


def split_variants(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    variants = [variant.strip() for variant in value.split(",") if variant.strip()]
    return variants or None


def print_font_list(view: CatalogView, message: str = "Search results for:") -> None:
    """Log the entries of a view along with the term that produced it."""
    if not view.entries:
        logger.info(f"[red]No results found for: {view.filter_term}[/red]")
        return

    logger.info(f'[green]{message} "[bold blue]{view.filter_term}[/bold blue]"[/green]')
    for entry in view:
        logger.info(f"[bold blue] * {entry.family}[/bold blue]")
        logger.info(f"    Category: {entry.category}")
        logger.info(f"    Variants: {', '.join(entry.variants)}")
        logger.info(f"    CSS Url:  {entry.stylesheet_url}")


def print_results(results: List[RetrievalResult]) -> None:
    for result in results:
        logger.info(
            f"[green][bold]{result.family}[/bold] variant [bold]{result.variant}[/bold] "
            f"processed: [underline]{result.path}[/underline][/green]"
        )


def handle_match_error(
    action: str, term: str, error: Exception, loader: CatalogLoader
) -> None:
    """Report a failed lookup; for a non-single match also show fuzzy results for the term."""
    if isinstance(error, NoSingleMatchError):
        logger.error(f'{action} failed: unable to find font family "{term}"')
        print_font_list(loader.search_by_name(term))
    else:
        logger.error(f"{action} failed for {term}: {error}")


async def ensure_fonts_loaded(loader: CatalogLoader, refresh_cache: bool) -> bool:
    """
    Load the catalog, logging the failure instead of raising.

    Returns:
        bool: True if the catalog is available.
    """
    if refresh_cache:
        logger.info("Refreshing Google Font List cache...")
    try:
        outcome = await loader.load(force_refresh=refresh_cache)
    except GfcliError as e:
        logger.error("Error loading font list!")
        logger.error(str(e))
        return False
    logger.debug(
        f"Font list loaded from {'cache' if outcome.from_cache else 'network'}"
    )
    return True


async def run_search(loader: CatalogLoader, family: Sequence[str]) -> int:
    term = " ".join(family) if family else ""
    print_font_list(loader.search_by_name(term))
    return 0


async def run_retrieval(
    loader: CatalogLoader,
    orchestrator: FontRetrievalOrchestrator,
    families: List[str],
    variants: Optional[List[str]],
    destination: Destination,
    font_format: str,
) -> int:
    """
    Retrieve every requested family, reporting successes and failures per family.

    Returns:
        int: Process exit status; 1 when every family failed.
    """
    action = "Installation" if destination.kind is DestinationKind.SYSTEM else "Download"
    all_results: List[RetrievalResult] = []
    success_count = 0
    fail_count = 0

    for term in families:
        try:
            entry = loader.resolve_font(term)
            results = await orchestrator.retrieve_variants(
                entry, variants, destination, font_format
            )
        except VariantRetrievalError as e:
            logger.error(str(e))
            all_results.extend(e.results)
            fail_count += 1
            continue
        except GfcliError as e:
            handle_match_error(action, term, e, loader)
            fail_count += 1
            continue
        all_results.extend(results)
        success_count += 1

    if all_results:
        print_results(all_results)

    verb = "installed" if action == "Installation" else "downloaded"
    if fail_count > 0 and success_count == 0:
        logger.error(f"All {fail_count} font {action.lower()}(s) failed.")
        return 1
    if fail_count > 0:
        logger.warning(
            f"{success_count} font(s) {verb} successfully, {fail_count} failed."
        )
    return 0


async def run_copy(
    loader: CatalogLoader, family: Sequence[str], variants: Optional[List[str]]
) -> int:
    """Print the stylesheet URL of a single family."""
    term = " ".join(family)
    try:
        entry = loader.resolve_font(term)
    except NoSingleMatchError as e:
        handle_match_error("Copy", term, e, loader)
        return 1
    print(entry.css_url(variants))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="gfcli - Search, download and install fonts from Google Fonts",
    )
    parser.add_argument(
        "--refresh-cache",
        action="store_true",
        help="Refresh the cached Google font list",
    )
    parser.add_argument(
        "--log-level",
        metavar="LEVEL",
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    subparsers = parser.add_subparsers(dest="command")

    search_parser = subparsers.add_parser("search", help="Search for a font family")
    search_parser.add_argument("family", nargs="*", help="Search terms")

    download_parser = subparsers.add_parser("download", help="Download a font family")
    download_parser.add_argument("family", nargs="+", help="Comma-separated families")
    download_parser.add_argument("-d", "--dest", help="Specify destination folder")
    download_parser.add_argument(
        "-v", "--variants", help="Variants separated by comma"
    )
    format_group = download_parser.add_mutually_exclusive_group()
    format_group.add_argument(
        "--ttf",
        dest="font_format",
        action="store_const",
        const="ttf",
        help="Download TTF format (default)",
    )
    format_group.add_argument(
        "--woff2",
        dest="font_format",
        action="store_const",
        const="woff2",
        help="Download WOFF2 format",
    )

    install_parser = subparsers.add_parser(
        "install", help="Install a font family to the system"
    )
    install_parser.add_argument("family", nargs="+", help="Comma-separated families")
    install_parser.add_argument("-v", "--variants", help="Variants separated by comma")

    copy_parser = subparsers.add_parser(
        "copy", help="Print the Google Fonts stylesheet URL of a family"
    )
    copy_parser.add_argument("family", nargs="+", help="Font family")
    copy_parser.add_argument("-v", "--variants", help="Variants separated by comma")

    return parser


async def run_command(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    """Build the services from configuration and dispatch the parsed command."""
    async with FontRequestClient(
        timeout=config["REQUEST_TIMEOUT"], max_redirects=config["MAX_REDIRECTS"]
    ) as client:
        cache = CatalogCache(ttl_ms=int(config["CACHE_TTL_HOURS"] * 60 * 60 * 1000))
        loader = CatalogLoader(
            client, cache=cache, cache_enabled=config["CACHE_ENABLED"]
        )
        if not await ensure_fonts_loaded(loader, args.refresh_cache):
            return 1

        if args.command == "search":
            return await run_search(loader, args.family)
        if args.command == "copy":
            return await run_copy(loader, args.family, split_variants(args.variants))

        placement = FontPlacement(client)
        orchestrator = FontRetrievalOrchestrator(
            placement, default_format=config["FONT_FORMAT"]
        )
        families = split_families(args.family)
        variants = split_variants(args.variants)
        if args.command == "install":
            return await run_retrieval(
                loader, orchestrator, families, variants, Destination.system(), "ttf"
            )
        font_format = args.font_format or config["FONT_FORMAT"]
        if font_format not in FONT_FORMAT_CHOICES:
            font_format = "ttf"
        return await run_retrieval(
            loader,
            orchestrator,
            families,
            variants,
            Destination.at(args.dest or config["DOWNLOAD_DIR"]),
            font_format,
        )


def main(argv: Optional[Sequence[str]] = None) -> None:
    """
    Entry point for the gfcli command-line interface.

    Parses arguments, applies configuration (log level, file logging, cache and
    network settings) and runs the selected command. Exits with status 1 when
    the command fails.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    try:
        config = load_config()
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(1)

    level = args.log_level or config.get("LOG_LEVEL")
    if level:
        log_utils.set_log_level(level)
    if config.get("LOG_TO_FILE"):
        log_utils.add_file_logging(
            Path(platformdirs.user_log_dir(APP_NAME)), level or "INFO"
        )

    exit_code = asyncio.run(run_command(args, config))
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
