"""Main entry point with CLI."""
import argparse
import asyncio
import logging
import sys

from catalog_refresh.config import config, Config
from catalog_refresh.logging_conf import setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Vehicle catalog importer")

    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument(
        "--once",
        action="store_true",
        help="Crawl the catalog now and write both artifacts",
    )
    mode.add_argument(
        "--from-raw",
        action="store_true",
        help="Rebuild the problem document from the saved raw snapshot (no network)",
    )
    mode.add_argument(
        "--last-refresh",
        action="store_true",
        help="Print the time of the last successful refresh",
    )
    mode.add_argument(
        "--serve",
        action="store_true",
        help="Run the API with the periodic refresh check",
    )

    parser.add_argument(
        "--dev",
        action="store_true",
        help="Verbose logs",
    )
    parser.add_argument(
        "--year",
        type=int,
        default=None,
        help=f"Catalog year (default: {config.CATALOG_YEAR})",
    )
    parser.add_argument(
        "--interval-ms",
        type=int,
        default=None,
        help=f"Milliseconds between requests (default: {config.TIME_BETWEEN_REQ_MS})",
    )

    return parser.parse_args(argv)


async def run_once() -> int:
    """Run one refresh to completion. Returns the exit status."""
    from catalog_refresh.api.main import build_refresh_service

    service = build_refresh_service()
    service.trigger_refresh()
    await service.wait_for_refresh()
    if service.last_error:
        logger.error(f"Refresh failed: {service.last_error}")
        return 1
    return 0


async def remap_raw() -> int:
    """Map the saved raw snapshot onto the template and write the document."""
    from catalog_refresh.exceptions import CatalogError
    from catalog_refresh.mapping.problem import load_template, map_catalog
    from catalog_refresh.store.artifacts import ArtifactStore

    store = ArtifactStore()
    try:
        makes = await store.read_raw()
        template = await load_template(config.TEMPLATE_FILE)
    except (OSError, ValueError, CatalogError) as e:
        logger.error(f"Cannot rebuild problem document: {e}")
        return 1
    await store.write_problem(map_catalog(makes, template))
    return 0


async def print_last_refresh() -> int:
    from catalog_refresh.api.main import format_timestamp
    from catalog_refresh.store.artifacts import ArtifactStore

    print(format_timestamp(await ArtifactStore().last_modified()))
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging("DEBUG" if args.dev else None)

    if args.year:
        Config.CATALOG_YEAR = args.year
    if args.interval_ms:
        Config.TIME_BETWEEN_REQ_MS = args.interval_ms

    if args.once or args.serve:
        try:
            Config.validate()
        except ValueError as e:
            logger.error(f"Configuration error: {e}")
            sys.exit(1)

    if args.serve:
        import uvicorn
        logger.info(f"Serving on {config.HOST}:{config.PORT}")
        uvicorn.run("catalog_refresh.api.main:app", host=config.HOST, port=config.PORT)
        return

    logger.info("=" * 60)
    logger.info(f"Catalog year: {config.CATALOG_YEAR}")
    logger.info(f"Time between requests: {config.TIME_BETWEEN_REQ_MS}ms")
    logger.info(f"Problem file: {config.PROBLEM_FILE}")
    logger.info("=" * 60)

    if args.once:
        command = run_once()
    elif args.from_raw:
        command = remap_raw()
    else:
        command = print_last_refresh()

    try:
        status = asyncio.run(command)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)
    sys.exit(status)


if __name__ == "__main__":
    main()
