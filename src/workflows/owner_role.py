"""Primary/secondary owner role reconciliation.

When a record's role property is set to the primary marker, every other record
sharing its grouping key is demoted to the secondary marker, so each group has
a single primary.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

from src.conf.config import settings
from src.integrations.crm.hubspot import get_hubspot_client
from src.workflows.events import HubSpotEvent, normalize

logger = logging.getLogger(__name__)

class _GroupLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


# grouping key -> lock held while that group's siblings are read and demoted;
# an entry lives only while some task holds or waits on it
_group_locks: dict[str, _GroupLock] = {}


@asynccontextmanager
async def _group_lock(group_id: str) -> AsyncIterator[None]:
    entry = _group_locks.setdefault(group_id, _GroupLock())
    entry.users += 1
    try:
        async with entry.lock:
            yield
    finally:
        entry.users -= 1
        if not entry.users:
            del _group_locks[group_id]


def is_primary_event(event: HubSpotEvent) -> bool:
    """True for a role property change whose new value is the primary marker."""
    return (
        event.is_property_change
        and (event.property_name or "") == settings.OWNER_ROLE_PROP
        and normalize(event.property_value) == normalize(settings.PRIMARY_VALUE)
    )


async def demote_siblings(lead_id: str) -> int:
    """Demote every sibling of ``lead_id`` that is not yet secondary.

    Reads the record's grouping key from HubSpot instead of trusting the
    webhook payload. Returns the number of records updated.
    """
    client = get_hubspot_client()
    object_type = settings.LEADS_OBJECT
    role_prop = settings.OWNER_ROLE_PROP
    group_prop = settings.REAL_ESTATE_ID_PROP
    secondary = settings.SECONDARY_VALUE

    lead = await client.get_object(object_type, lead_id, [group_prop, role_prop])
    group_id = ((lead or {}).get("properties") or {}).get(group_prop)

    logger.info("[OWNER_ROLE] lead %s %s=%s", lead_id, group_prop, group_id)

    if not group_id:
        logger.info(
            "[OWNER_ROLE] Skip lead %s: missing %s (upstream workflow may not have run yet)",
            lead_id,
            group_prop,
        )
        return 0

    async with _group_lock(str(group_id)):
        siblings = await client.search_all(object_type, group_prop, group_id, [role_prop, group_prop])
        logger.info("[OWNER_ROLE] %s %s => %d record(s)", group_prop, group_id, len(siblings))

        updated = 0
        for sibling in siblings:
            sibling_id = str(sibling.get("id"))
            if sibling_id == lead_id:
                continue

            current = (sibling.get("properties") or {}).get(role_prop)
            if normalize(current) == normalize(secondary):
                continue

            await client.update_object(object_type, sibling_id, {role_prop: secondary})
            updated += 1
            logger.info("[OWNER_ROLE] Set lead %s => %s", sibling_id, secondary)

    return updated


async def primary_secondary_owner_role(events: Sequence[HubSpotEvent]) -> None:
    """Workflow: enforce a single primary per grouping key."""
    primary_events = [e for e in events if is_primary_event(e)]
    if not primary_events:
        return

    delay = settings.processing_delay_seconds
    if delay > 0:
        await asyncio.sleep(delay)

    # One event at a time, in input order
    for event in primary_events:
        lead_id = event.object_id
        logger.info("[OWNER_ROLE] %s set on lead %s", settings.PRIMARY_VALUE, lead_id)

        updated = await demote_siblings(lead_id)

        logger.info(
            "[OWNER_ROLE] lead %s confirmed primary; updated %d sibling(s) to %s",
            lead_id,
            updated,
            settings.SECONDARY_VALUE,
        )
