"""Mirror deal/contract contacts onto newly created tasks.

When a task is created and it is associated to deals or contract records,
associate the task to every contact of those deals/contracts as well.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from src.conf.config import settings
from src.integrations.crm.association_cache import association_types
from src.integrations.crm.hubspot import HubSpotClient, get_hubspot_client
from src.workflows.events import HubSpotEvent

logger = logging.getLogger(__name__)

TASKS_OBJECT = "tasks"
DEALS_OBJECT = "deals"
CONTACTS_OBJECT = "contacts"

# objectTypeId values HubSpot uses for tasks
TASK_OBJECT_TYPE_IDS = frozenset({"0-27", "task", "tasks"})


def is_task_created_event(event: HubSpotEvent) -> bool:
    """True for a creation notification about a task.

    Events without an objectTypeId are accepted: subscriptions of this app
    are scoped to tasks.
    """
    if not event.is_creation:
        return False
    if event.object_type_id is None:
        return True
    return event.object_type_id.strip().lower() in TASK_OBJECT_TYPE_IDS


async def _task_contract_ids(client: HubSpotClient, task_id: str) -> list[str]:
    contract_type = settings.contract_object_type
    if not contract_type:
        return []
    return await client.list_associations(TASKS_OBJECT, task_id, contract_type)


async def collect_contact_ids(
    client: HubSpotClient,
    deal_ids: Sequence[str],
    contract_ids: Sequence[str],
) -> list[str]:
    """Contacts of the given deals and contracts, each id once, first-seen order."""
    contact_ids: dict[str, None] = {}

    for deal_id in deal_ids:
        contact_ids.update(
            dict.fromkeys(await client.list_associations(DEALS_OBJECT, deal_id, CONTACTS_OBJECT))
        )

    contract_type = settings.contract_object_type
    if contract_type:
        for contract_id in contract_ids:
            contact_ids.update(
                dict.fromkeys(
                    await client.list_associations(contract_type, contract_id, CONTACTS_OBJECT)
                )
            )

    return list(contact_ids)


async def mirror_task_contacts(task_id: str) -> int:
    """Associate one task to the contacts of its deals/contracts.

    Returns the number of associations created.
    """
    client = get_hubspot_client()

    deal_ids, contract_ids = await asyncio.gather(
        client.list_associations(TASKS_OBJECT, task_id, DEALS_OBJECT),
        _task_contract_ids(client, task_id),
    )

    if not deal_ids and not contract_ids:
        logger.debug("[TASK_MIRROR] task %s has no deal/contract associations", task_id)
        return 0

    contact_ids = await collect_contact_ids(client, deal_ids, contract_ids)
    if not contact_ids:
        logger.debug("[TASK_MIRROR] task %s: no contacts on %d deal(s), %d contract(s)",
                     task_id, len(deal_ids), len(contract_ids))
        return 0

    linked = 0
    for contact_id in contact_ids:
        type_id = await association_types.get(client, TASKS_OBJECT, CONTACTS_OBJECT)
        await client.associate(TASKS_OBJECT, task_id, CONTACTS_OBJECT, contact_id, type_id)
        linked += 1

    return linked


async def task_mirror_to_associated_contacts(events: Sequence[HubSpotEvent]) -> None:
    """Workflow: link new tasks to the contacts of their deals and contracts."""
    task_events = [e for e in events if is_task_created_event(e)]
    if not task_events:
        return

    delay = settings.task_association_delay_seconds
    if delay > 0:
        await asyncio.sleep(delay)

    for event in task_events:
        task_id = event.object_id
        linked = await mirror_task_contacts(task_id)
        if linked:
            logger.info("[TASK_MIRROR] task %s linked to %d contact(s)", task_id, linked)
