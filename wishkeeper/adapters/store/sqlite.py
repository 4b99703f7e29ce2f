"""SQLite document store adapter.

Implements DocumentStorePort using SQLite with aiosqlite for async access.
Documents are stored as JSON bodies in a single table keyed by
(collection, id), giving a zero-config, single-file alternative to MongoDB.

Filters are compiled to SQL so predicates (including the negated
membership used for archived products) are evaluated by SQLite, not in
Python. Projection is applied per row after decoding.
"""

import asyncio
import json
import logging
import re
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import aiosqlite

from wishkeeper.core.errors import DocumentDecodeError, StorageError
from wishkeeper.core.models import Document
from wishkeeper.core.ports import DocumentStorePort
from wishkeeper.core.query import (
    ASCENDING,
    ID_FIELD,
    Filter,
    FindOptions,
    apply_projection,
)

logger = logging.getLogger(__name__)

_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _column(field_name: str) -> str:
    """Return the SQL expression selecting ``field_name``.

    Rows whose body is not valid JSON read every field as NULL, so they
    never fail a query; ``find`` skips them when decoding.
    """
    if field_name == ID_FIELD:
        return "id"
    if not _FIELD_NAME.match(field_name):
        raise ValueError(f"Unsupported field name: {field_name!r}")
    return f"CASE WHEN json_valid(body) THEN json_extract(body, '$.{field_name}') END"


def _sql_value(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float)):
        return value
    return str(value)


def _membership(column: str, values: Any, negate: bool) -> tuple[str, list[Any]]:
    if not isinstance(values, (list, tuple)):
        raise ValueError("$in/$nin operand must be a list")
    if not values:
        # x IN () matches nothing; x NOT IN () matches everything
        return ("1" if negate else "0"), []
    placeholders = ", ".join("?" for _ in values)
    params = [_sql_value(v) for v in values]
    if negate:
        # Documents without the field also match a negated membership test
        return f"({column} IS NULL OR {column} NOT IN ({placeholders}))", params
    return f"{column} IN ({placeholders})", params


def compile_filter(filter: Filter | None) -> tuple[str, list[Any]]:
    """Compile a document filter into a SQL WHERE clause and parameters.

    Supports field equality, ``$in``, ``$nin`` and ``{"$not": {"$in": ...}}``.

    Raises:
        ValueError: If the filter uses an unsupported operator.
    """
    if not filter:
        return "1", []

    clauses: list[str] = []
    params: list[Any] = []
    for field_name, condition in filter.items():
        column = _column(field_name)
        if isinstance(condition, dict):
            if set(condition) == {"$in"}:
                clause, values = _membership(column, condition["$in"], negate=False)
            elif set(condition) == {"$nin"}:
                clause, values = _membership(column, condition["$nin"], negate=True)
            elif (
                set(condition) == {"$not"}
                and isinstance(condition["$not"], dict)
                and set(condition["$not"]) == {"$in"}
            ):
                clause, values = _membership(
                    column, condition["$not"]["$in"], negate=True
                )
            else:
                raise ValueError(f"Unsupported filter operator: {condition!r}")
        elif condition is None:
            clause, values = f"{column} IS NULL", []
        else:
            clause, values = f"{column} = ?", [_sql_value(condition)]
        clauses.append(clause)
        params.extend(values)

    return " AND ".join(clauses), params


def compile_options(options: FindOptions | None) -> tuple[str, list[Any]]:
    """Compile sort/skip/limit into ORDER BY and LIMIT/OFFSET clauses."""
    if options is None:
        return "", []

    sql = ""
    params: list[Any] = []
    if options.sort:
        order = ", ".join(
            f"{_column(name)} {'ASC' if direction == ASCENDING else 'DESC'}"
            for name, direction in options.sort
        )
        sql += f" ORDER BY {order}"
    if options.limit is not None or options.skip:
        # LIMIT -1 means no limit in SQLite
        sql += " LIMIT ? OFFSET ?"
        params.extend(
            [options.limit if options.limit is not None else -1, options.skip]
        )
    return sql, params


class SQLiteDocumentStore(DocumentStorePort):
    """SQLite-backed document store with connection pooling and async access."""

    def __init__(self, db_path: str, pool_size: int = 5):
        """Initialize SQLite store with connection pooling.

        Args:
            db_path: Path to SQLite database file.
            pool_size: Number of connections to maintain in the pool.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._pool: list[aiosqlite.Connection] = []
        self._pool_lock = asyncio.Lock()
        self._pool_size = pool_size
        self._schema_initialized = False

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get a connection from the pool or create a new one."""
        async with self._pool_lock:
            if self._pool:
                return self._pool.pop()
        return await aiosqlite.connect(str(self.db_path))

    async def _return_connection(self, conn: aiosqlite.Connection) -> None:
        """Return a connection to the pool."""
        async with self._pool_lock:
            if len(self._pool) < self._pool_size:
                self._pool.append(conn)
                return
        await conn.close()

    async def close(self) -> None:
        """Close all pooled connections."""
        async with self._pool_lock:
            for conn in self._pool:
                await conn.close()
            self._pool.clear()

    async def _init_schema(self) -> None:
        """Create the documents table on first use.

        Only runs once per instance. Subsequent calls are no-ops.
        """
        if self._schema_initialized:
            return

        conn = await self._get_connection()
        try:
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    body TEXT NOT NULL,
                    PRIMARY KEY (collection, id)
                )
                """
            )
            await conn.commit()
            self._schema_initialized = True
        finally:
            await self._return_connection(conn)

    @staticmethod
    def _row_to_document(row: tuple[Any, ...], options: FindOptions | None) -> Document:
        """Convert an (id, body) row into a projected document.

        Raises:
            ValueError: If the body is not a JSON object.
        """
        doc_id, body = row
        document = json.loads(body)
        if not isinstance(document, dict):
            raise ValueError(f"Document {doc_id} body is not a JSON object")
        document[ID_FIELD] = doc_id
        return apply_projection(document, options.projection if options else None)

    def _select(
        self, collection: str, filter: Filter | None, options: FindOptions | None
    ) -> tuple[str, list[Any]]:
        where, params = compile_filter(filter)
        tail, tail_params = compile_options(options)
        sql = f"SELECT id, body FROM documents WHERE collection = ? AND {where}{tail}"
        return sql, [collection, *params, *tail_params]

    async def find_one(
        self,
        collection: str,
        filter: Filter | None = None,
        options: FindOptions | None = None,
    ) -> Document | None:
        """Return the first matching document, or None."""
        await self._init_schema()

        options = FindOptions(
            sort=options.sort if options else (),
            projection=options.projection if options else None,
            skip=options.skip if options else 0,
            limit=1,
        )
        sql, params = self._select(collection, filter, options)

        conn = await self._get_connection()
        try:
            cursor = await conn.execute(sql, params)
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            logger.error(f"find_one on '{collection}' failed: {e}")
            raise StorageError(f"find_one on '{collection}' failed: {e}") from e
        finally:
            await self._return_connection(conn)

        if row is None:
            return None
        try:
            return self._row_to_document(row, options)
        except ValueError as e:
            raise DocumentDecodeError(
                f"Unreadable document in '{collection}': {e}"
            ) from e

    async def find(
        self,
        collection: str,
        filter: Filter | None = None,
        options: FindOptions | None = None,
    ) -> AsyncIterator[Document]:
        """Stream matching documents row by row.

        A row whose body is not valid JSON is logged and skipped.
        """
        await self._init_schema()
        sql, params = self._select(collection, filter, options)

        conn = await self._get_connection()
        try:
            cursor = await conn.execute(sql, params)
            async for row in cursor:
                try:
                    document = self._row_to_document(row, options)
                except (json.JSONDecodeError, ValueError) as e:
                    logger.warning(f"Skipping unreadable row in '{collection}': {e}")
                    continue
                yield document
        except aiosqlite.Error as e:
            logger.error(f"find on '{collection}' failed: {e}")
            raise StorageError(f"find on '{collection}' failed: {e}") from e
        finally:
            await self._return_connection(conn)

    async def count(self, collection: str, filter: Filter | None = None) -> int:
        """Count matching documents.

        Rows with an unreadable body are left out, matching what ``find``
        yields.
        """
        await self._init_schema()
        where, params = compile_filter(filter)

        conn = await self._get_connection()
        try:
            cursor = await conn.execute(
                "SELECT COUNT(*) FROM documents"
                f" WHERE collection = ? AND json_valid(body) AND {where}",
                [collection, *params],
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            logger.error(f"count on '{collection}' failed: {e}")
            raise StorageError(f"count on '{collection}' failed: {e}") from e
        finally:
            await self._return_connection(conn)
        return row[0]
