"""Composition root for the Wishkeeper catalog service.

Builds the configured document store, wires repositories into a
CatalogService, and runs it behind the HTTP server or the interactive
CLI. Logging is configured here as text or JSON lines.
"""

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any

from wishkeeper.adapters.api.server import CatalogHTTPServer
from wishkeeper.adapters.cli.commands import CLICommandHandler
from wishkeeper.config import Settings, load_settings
from wishkeeper.core.catalog_service import CatalogService
from wishkeeper.core.hydrator import ProductHydrator
from wishkeeper.core.models import (
    CATEGORY_COLLECTION,
    PRODUCT_COLLECTION,
    SOURCE_COLLECTION,
    WISHLIST_COLLECTION,
    Category,
    Product,
    Source,
    Wishlist,
)
from wishkeeper.core.ports import DocumentStorePort
from wishkeeper.core.repository import EntityRepository
from wishkeeper.core.wishlist_aggregator import WishlistAggregator


def build_catalog(store: DocumentStorePort) -> CatalogService:
    """Wire repositories, hydrator and aggregator into a CatalogService.

    Args:
        store: DocumentStorePort the catalog reads from.

    Returns:
        A ready CatalogService.
    """
    wishlists = EntityRepository(store, WISHLIST_COLLECTION, Wishlist.from_document)
    products = EntityRepository(store, PRODUCT_COLLECTION, Product.from_document)
    sources = EntityRepository(store, SOURCE_COLLECTION, Source.from_document)
    categories = EntityRepository(store, CATEGORY_COLLECTION, Category.from_document)

    hydrator = ProductHydrator(sources)
    aggregator = WishlistAggregator(wishlists, products, hydrator)
    return CatalogService(aggregator, products, categories, hydrator)


def build_store(settings: Settings) -> DocumentStorePort:
    """Instantiate the document store adapter selected by configuration.

    Raises:
        ValueError: If the configured backend is unknown.
    """
    if settings.store_backend == "mongodb":
        # Lazy import for the MongoDB driver
        from wishkeeper.adapters.store.mongodb import MongoDocumentStore

        return MongoDocumentStore(
            url=settings.mongodb_url,
            database=settings.database_name,
        )
    if settings.store_backend == "sqlite":
        from wishkeeper.adapters.store.sqlite import SQLiteDocumentStore

        return SQLiteDocumentStore(db_path=settings.store_sqlite_path)
    raise ValueError(f"Unknown store backend: {settings.store_backend}")


CommandRunner = Callable[[CLICommandHandler, dict[str, Any]], Awaitable[dict[str, Any]]]


def _require_name(args: dict[str, Any]) -> str:
    if "name" not in args:
        raise ValueError("Missing required parameter: name")
    return str(args["name"])


# Command name -> (runner, usage line shown by "help")
CLI_COMMANDS: dict[str, tuple[CommandRunner, str]] = {
    "wishlist": (
        lambda handler, args: handler.get_last_wishlist(),
        "wishlist                       latest wishlist with products and sources",
    ),
    "newest": (
        lambda handler, args: handler.get_newest_products(),
        "newest                         the 10 newest products",
    ),
    "archived": (
        lambda handler, args: handler.get_archived_products(
            offset=args.get("offset", 0), per_page=args.get("per_page")
        ),
        'archived {"offset": 0, "per_page": 20}   products no longer wishlisted',
    ),
    "archived-count": (
        lambda handler, args: handler.get_archived_product_count(),
        "archived-count                 number of archived products",
    ),
    "categories": (
        lambda handler, args: handler.get_categories(),
        "categories                     all categories",
    ),
    "category": (
        lambda handler, args: handler.get_products_by_category(_require_name(args)),
        'category {"name": "Electronics"}         products in a category ("null" = none)',
    ),
}


def _parse_cli_line(line: str) -> tuple[str, dict[str, Any]]:
    """Split a REPL line into a command name and its JSON object arguments.

    Raises:
        ValueError: If the arguments are not a JSON object.
    """
    command, _, raw_args = line.strip().partition(" ")
    if not raw_args.strip():
        return command.lower(), {}
    try:
        args = json.loads(raw_args)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON arguments: {e.msg}") from e
    if not isinstance(args, dict):
        raise ValueError("Arguments must be a JSON object")
    return command.lower(), args


async def _execute_cli_command(
    cli_handler: CLICommandHandler,
    command: str,
    args: dict[str, Any],
) -> dict[str, Any]:
    """Run one catalog command.

    Raises:
        ValueError: If the command is unknown or a required argument is missing.
    """
    entry = CLI_COMMANDS.get(command)
    if entry is None:
        raise ValueError(f"Unknown command: {command}. Use 'help' for available commands.")
    runner, _ = entry
    return await runner(cli_handler, args)


def _print_cli_help() -> None:
    lines = ["Commands (arguments are a JSON object):"]
    lines.extend(f"  {usage}" for _, usage in CLI_COMMANDS.values())
    lines.append("  help | exit")
    print("\n".join(lines))


async def _run_cli_interactive(cli_handler: CLICommandHandler) -> None:
    """Read commands from stdin until 'exit' or EOF and print JSON results."""
    logger = logging.getLogger(__name__)
    loop = asyncio.get_running_loop()
    logger.info("Interactive catalog CLI ready; type 'help' for commands")

    while True:
        try:
            line = await loop.run_in_executor(None, input, "wishkeeper> ")
        except EOFError:
            break

        if not line.strip():
            continue
        try:
            command, args = _parse_cli_line(line)
            if command == "exit":
                break
            if command == "help":
                _print_cli_help()
                continue
            result = await _execute_cli_command(cli_handler, command, args)
        except ValueError as e:
            result = {"status": "error", "code": "invalid_request", "message": str(e)}
        print(json.dumps(result, indent=2, default=str))

    logger.info("Interactive catalog CLI closed")


# Attributes every LogRecord carries; anything else came from extra={...}
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}


class JsonLogFormatter(logging.Formatter):
    """Render each record as one JSON object, including its extra fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRIBUTES and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(log_level: str, log_format: str) -> None:
    """Send application logs to stdout as JSON lines or plain text.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: "json" or "text".
    """
    handler = logging.StreamHandler(sys.stdout)
    if log_format == "json":
        handler.setFormatter(JsonLogFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    logging.basicConfig(level=getattr(logging, log_level, logging.INFO), handlers=[handler])


async def _serve_http(catalog: CatalogService, settings: Settings) -> None:
    http_server = CatalogHTTPServer(
        catalog=catalog,
        host=settings.http_host,
        port=settings.http_port,
        default_per_page=settings.default_per_page,
    )
    await http_server.start()
    try:
        await asyncio.Event().wait()
    finally:
        await http_server.stop()


async def bootstrap() -> None:
    """Load settings, wire the store and catalog, and run the configured mode.

    The store is closed on the way out whatever the mode's outcome.
    """
    settings = load_settings()
    configure_logging("DEBUG" if settings.debug else settings.log_level, settings.log_format)
    logger = logging.getLogger(__name__)

    store = build_store(settings)
    catalog = build_catalog(store)
    logger.info(
        f"Wishkeeper starting in {settings.run_mode} mode",
        extra={"store_backend": settings.store_backend, "database": settings.database_name},
    )

    try:
        if settings.run_mode == "http":
            await _serve_http(catalog, settings)
        else:
            cli_handler = CLICommandHandler(catalog, default_per_page=settings.default_per_page)
            await _run_cli_interactive(cli_handler)
    finally:
        await store.close()


def main() -> None:
    """Console entry point.

    Exits 0 on a clean stop, 130 when interrupted, 1 on any other failure.
    """
    try:
        asyncio.run(bootstrap())
    except KeyboardInterrupt:
        logging.getLogger(__name__).warning("Interrupted, shutting down")
        sys.exit(130)
    except Exception as e:
        logging.getLogger(__name__).critical(f"Wishkeeper stopped: {e}", exc_info=True)
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
