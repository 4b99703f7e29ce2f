"""Per-call memoization of source lookups.

A SourceResolutionCache lives for exactly one hydration call. Each distinct
source id costs at most one store round-trip; repeated ids are served from
the cache. Nothing is shared across calls, so there is no staleness window.
"""

import logging

from .models import DocumentId, Source
from .query import id_equals
from .repository import EntityRepository

logger = logging.getLogger(__name__)


class SourceResolutionCache:
    """Resolve source ids to Source entities, fetching each id once."""

    def __init__(self, sources: EntityRepository[Source]):
        """Initialize an empty cache.

        Args:
            sources: Repository over the source collection.
        """
        self.sources = sources
        self._resolved: dict[DocumentId, Source] = {}

    async def resolve(self, source_id: DocumentId) -> Source:
        """Return the Source for ``source_id``.

        The first request for an id performs a store lookup; later requests
        return the same instance.

        Raises:
            EmptyResultError: If no source has this id.
            StorageError: If the store fails.
        """
        cached = self._resolved.get(source_id)
        if cached is not None:
            logger.debug(f"Source {source_id} served from cache")
            return cached

        source = await self.sources.find_one(id_equals(source_id))
        self._resolved[source_id] = source
        return source

    def __contains__(self, source_id: object) -> bool:
        return source_id in self._resolved

    def __len__(self) -> int:
        return len(self._resolved)
