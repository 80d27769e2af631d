"""Process-wide cache of HubSpot association type ids.

Association type ids are stable for a portal, so each (from, to) pair is
resolved once and kept for the life of the process. Concurrent first lookups
of the same pair share a single remote call.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from src.integrations.crm.hubspot import HubSpotClient


logger = logging.getLogger(__name__)


class AssociationTypeCache:
    """Lazily resolved association type ids keyed by object type pair."""

    def __init__(self) -> None:
        self._type_ids: dict[tuple[str, str], int] = {}
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}

    async def get(
        self,
        client: HubSpotClient,
        from_object_type: str,
        to_object_type: str,
    ) -> int:
        key = (from_object_type, to_object_type)
        cached = self._type_ids.get(key)
        if cached is not None:
            return cached

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            # Another task may have resolved it while we waited
            cached = self._type_ids.get(key)
            if cached is not None:
                return cached

            type_id = await client.get_default_association_type_id(from_object_type, to_object_type)
            self._type_ids[key] = type_id
            logger.info(
                "[HUBSPOT] Cached association type %s -> %s = %s",
                from_object_type,
                to_object_type,
                type_id,
            )
            return type_id

    def clear(self) -> None:
        self._type_ids.clear()
        self._locks.clear()


association_types = AssociationTypeCache()
