"""HubSpot webhook event model and batch parsing."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


def normalize(value: Any) -> str:
    """Case- and whitespace-insensitive form used for marker comparisons."""
    return ("" if value is None else str(value)).strip().lower()


class HubSpotEvent(BaseModel):
    """One change notification from a HubSpot webhook delivery.

    HubSpot sends camelCase keys; ids and property values are normalised to
    strings because they arrive as numbers, strings or booleans.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="allow")

    subscription_type: str = Field(default="", alias="subscriptionType")
    object_id: str = Field(alias="objectId", min_length=1)
    property_name: str | None = Field(default=None, alias="propertyName")
    property_value: str | None = Field(default=None, alias="propertyValue")

    event_id: int | str | None = Field(default=None, alias="eventId")
    subscription_id: int | str | None = Field(default=None, alias="subscriptionId")
    portal_id: int | str | None = Field(default=None, alias="portalId")
    app_id: int | str | None = Field(default=None, alias="appId")
    occurred_at: int | str | None = Field(default=None, alias="occurredAt")
    attempt_number: int | None = Field(default=None, alias="attemptNumber")
    object_type_id: str | None = Field(default=None, alias="objectTypeId")
    change_source: str | None = Field(default=None, alias="changeSource")

    @field_validator("subscription_type", mode="before")
    @classmethod
    def _subscription_type_to_str(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("object_id", mode="before")
    @classmethod
    def _object_id_to_str(cls, value: Any) -> Any:
        return value if value is None else str(value).strip()

    @field_validator("property_name", "property_value", "object_type_id", mode="before")
    @classmethod
    def _optional_to_str(cls, value: Any) -> str | None:
        return None if value is None else str(value)

    @property
    def is_property_change(self) -> bool:
        return "propertychange" in self.subscription_type.lower()

    @property
    def is_creation(self) -> bool:
        kind = self.subscription_type.lower()
        return "creation" in kind or "created" in kind

    def summary(self) -> dict[str, Any]:
        """Compact dict used in log previews."""
        return self.model_dump(by_alias=True, exclude_none=True, include={
            "subscription_type",
            "object_id",
            "object_type_id",
            "property_name",
            "property_value",
        })


def parse_events(payload: Any) -> list[HubSpotEvent]:
    """Parse a webhook body into events, keeping input order.

    A body that is not a list yields no events; items that are not objects or
    fail validation are dropped with a warning.
    """
    if not isinstance(payload, list):
        if payload is not None:
            logger.warning("[WEBHOOK] Expected a JSON array, got %s", type(payload).__name__)
        return []

    events: list[HubSpotEvent] = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            logger.warning("[WEBHOOK] Dropping event #%d: not an object", index)
            continue
        try:
            events.append(HubSpotEvent.model_validate(item))
        except ValidationError as e:
            logger.warning(
                "[WEBHOOK] Dropping event #%d: %s",
                index,
                "; ".join(err["msg"] for err in e.errors()),
            )

    return events
