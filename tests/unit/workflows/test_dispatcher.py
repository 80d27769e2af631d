"""
Unit tests for the workflow dispatcher.
"""

import logging
from unittest.mock import AsyncMock

import pytest

from src.workflows.dispatcher import WORKFLOWS, run_workflows, workflow_name
from src.workflows.owner_role import primary_secondary_owner_role
from src.workflows.task_mirror import task_mirror_to_associated_contacts


pytestmark = pytest.mark.unit


def _named(name, **kwargs):
    workflow = AsyncMock(**kwargs)
    workflow.__name__ = name
    return workflow


class TestRegistry:
    def test_registry_order(self):
        assert WORKFLOWS == [primary_secondary_owner_role, task_mirror_to_associated_contacts]

    def test_workflow_name(self):
        assert workflow_name(primary_secondary_owner_role) == "primary_secondary_owner_role"


class TestRunWorkflows:
    @pytest.mark.asyncio
    async def test_every_workflow_gets_the_same_batch(self, make_event):
        first = _named("first")
        second = _named("second")
        events = [make_event(subscriptionType="object.creation", objectId="T1")]

        await run_workflows(events, [first, second])

        first.assert_awaited_once_with(events)
        second.assert_awaited_once_with(events)

    @pytest.mark.asyncio
    async def test_failure_does_not_affect_other_workflows(self, make_event, caplog):
        failing = _named("failing", side_effect=RuntimeError("boom"))
        healthy = _named("healthy")
        events = [make_event(subscriptionType="object.creation", objectId="T1")]

        with caplog.at_level(logging.ERROR, logger="src.workflows.dispatcher"):
            await run_workflows(events, [failing, healthy])

        healthy.assert_awaited_once_with(events)
        assert "[WORKFLOW ERROR] failing: boom" in caplog.text

    @pytest.mark.asyncio
    async def test_all_failures_are_logged_and_not_raised(self, make_event, caplog):
        first = _named("first", side_effect=RuntimeError("one"))
        second = _named("second", side_effect=ValueError("two"))

        with caplog.at_level(logging.ERROR, logger="src.workflows.dispatcher"):
            await run_workflows([make_event(objectId="1")], [first, second])

        assert "[WORKFLOW ERROR] first: one" in caplog.text
        assert "[WORKFLOW ERROR] second: two" in caplog.text

    @pytest.mark.asyncio
    async def test_hubspot_error_logged_with_root_cause(self, make_event, caplog):
        from src.integrations.crm.base import HubSpotAPIError

        failing = _named(
            "failing", side_effect=HubSpotAPIError.from_status(429, "Too Many Requests", "slow down")
        )

        with caplog.at_level(logging.ERROR, logger="src.workflows.dispatcher"):
            await run_workflows([make_event(objectId="1")], [failing])

        assert "[ROOT_CAUSE: HUBSPOT_RATE_LIMIT]" in caplog.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize("events", [[], None])
    async def test_empty_batch_runs_nothing(self, events):
        workflow = _named("workflow")

        await run_workflows(events, [workflow])

        workflow.assert_not_awaited()
