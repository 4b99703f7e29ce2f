"""HTTP server adapter for the catalog read views.

Provides a simple HTTP server using Python's built-in http.server module,
with requests bridged onto the application's asyncio event loop.

All endpoints are GET and return JSON:

    /health                      liveness check
    /wishlist/last               latest wishlist, products hydrated
    /products/newest             newest products
    /products/archived           archived products (?offset=&per_page=)
    /products/archived/count     number of archived products
    /categories                  every category
    /products?category=<name>    products in a category
"""

import asyncio
import json
import logging
import urllib.parse
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any

from wishkeeper.core.errors import EmptyResultError
from wishkeeper.core.models import DEFAULT_PER_PAGE, Pagination
from wishkeeper.core.ports import CatalogPort

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 30


def _single(query: dict[str, list[str]], name: str) -> str | None:
    values = query.get(name)
    return values[0] if values else None


def _parse_pagination(query: dict[str, list[str]], default_per_page: int) -> Pagination:
    """Build a Pagination from query parameters.

    Raises:
        ValueError: If a parameter is not an integer or out of range.
    """
    offset = _single(query, "offset")
    per_page = _single(query, "per_page")
    return Pagination(
        offset=int(offset) if offset is not None else 0,
        per_page=int(per_page) if per_page is not None else default_per_page,
    )


async def dispatch(
    catalog: CatalogPort,
    raw_path: str,
    default_per_page: int = DEFAULT_PER_PAGE,
) -> tuple[int, dict[str, Any]]:
    """Route a GET request to the catalog and build the JSON response.

    Args:
        catalog: CatalogPort serving the read views.
        raw_path: Request path including any query string.
        default_per_page: Page size when the request gives none.

    Returns:
        Tuple of (HTTP status code, JSON-ready body).
    """
    parsed = urllib.parse.urlsplit(raw_path)
    path = parsed.path.rstrip("/") or "/"
    query = urllib.parse.parse_qs(parsed.query)

    try:
        if path == "/health":
            return 200, {"status": "healthy"}

        if path == "/wishlist/last":
            wishlist = await catalog.get_last_wishlist_hydrated()
            return 200, wishlist.to_dict()

        if path == "/products/newest":
            products = await catalog.get_newest_products()
            return 200, {"products": [p.to_dict() for p in products]}

        if path == "/products/archived":
            pagination = _parse_pagination(query, default_per_page)
            products = await catalog.get_archived_products(pagination)
            return 200, {
                "offset": pagination.offset,
                "per_page": pagination.per_page,
                "products": [p.to_dict() for p in products],
            }

        if path == "/products/archived/count":
            count = await catalog.get_archived_product_count()
            return 200, {"count": count}

        if path == "/categories":
            categories = await catalog.get_categories()
            return 200, {"categories": [c.to_dict() for c in categories]}

        if path == "/products":
            name = _single(query, "category")
            if name is None:
                return 400, {"error": "Missing category parameter"}
            products = await catalog.get_products_by_category_name(name)
            return 200, {"category": name, "products": [p.to_dict() for p in products]}

        return 404, {"error": "Not found"}

    except EmptyResultError as e:
        return 404, {"error": str(e)}
    except ValueError as e:
        return 400, {"error": f"Invalid request: {e}"}
    except Exception as e:
        # Log full exception server-side; return generic error to client
        logger.error(f"Error handling {path}: {e}", exc_info=True)
        return 500, {"error": "Internal server error"}


def make_catalog_handler(
    catalog: CatalogPort,
    event_loop: asyncio.AbstractEventLoop,
    default_per_page: int,
) -> type[BaseHTTPRequestHandler]:
    """Factory to create a CatalogHTTPHandler class bound to a catalog.

    Args:
        catalog: CatalogPort serving the read views.
        event_loop: Event loop that owns the store connections.
        default_per_page: Page size when a request gives none.

    Returns:
        A CatalogHTTPHandler class configured with the provided dependencies
    """

    class CatalogHTTPHandler(BaseHTTPRequestHandler):
        """HTTP request handler for catalog endpoints."""

        def do_GET(self) -> None:
            """Handle GET requests by dispatching onto the event loop."""
            future = asyncio.run_coroutine_threadsafe(
                dispatch(catalog, self.path, default_per_page), event_loop
            )
            try:
                status, body = future.result(timeout=REQUEST_TIMEOUT_SECONDS)
            except Exception as e:
                logger.error(f"Error handling request {self.path}: {e}", exc_info=True)
                status, body = 500, {"error": "Internal server error"}
            self._send_json(status, body)

        def _send_json(self, status: int, data: dict[str, Any]) -> None:
            """Send JSON response."""
            payload = json.dumps(data, default=str).encode()
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            self.wfile.write(payload)

        def log_message(self, format: str, *args: Any) -> None:
            """Log HTTP request."""
            logger.debug(f"HTTP {self.client_address[0]}: {format % args}")

    return CatalogHTTPHandler


class CatalogHTTPServer:
    """Read-only HTTP server over CatalogPort."""

    def __init__(
        self,
        catalog: CatalogPort,
        host: str = "0.0.0.0",
        port: int = 8080,
        default_per_page: int = DEFAULT_PER_PAGE,
    ):
        """Initialize the HTTP server.

        Args:
            catalog: CatalogPort instance to serve.
            host: Host to listen on (default 0.0.0.0).
            port: Port to listen on (default 8080).
            default_per_page: Page size when a request gives none.
        """
        if default_per_page <= 0:
            raise ValueError(f"default_per_page must be positive, got {default_per_page}")
        self.catalog = catalog
        self.host = host
        self.port = port
        self.default_per_page = default_per_page
        self.server: HTTPServer | None = None
        self._server_task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        """Start the HTTP server."""
        logger.info(f"Starting catalog HTTP server on {self.host}:{self.port}")

        handler_class = make_catalog_handler(
            catalog=self.catalog,
            event_loop=asyncio.get_running_loop(),
            default_per_page=self.default_per_page,
        )
        self.server = HTTPServer((self.host, self.port), handler_class)

        # Blocking server loop runs in a worker thread
        self._server_task = asyncio.create_task(self._run_server())
        logger.info("Catalog HTTP server started")

    async def _run_server(self) -> None:
        """Run the HTTP server loop in a thread pool."""
        if not self.server:
            return

        try:
            await asyncio.to_thread(self.server.serve_forever)
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error(f"Catalog HTTP server error: {e}", exc_info=True)

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self.server:
            self.server.shutdown()
            self.server.server_close()
        if self._server_task:
            self._server_task.cancel()
            try:
                await self._server_task
            except asyncio.CancelledError:
                pass
        logger.info("Catalog HTTP server stopped")
