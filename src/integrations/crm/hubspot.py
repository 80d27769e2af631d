"""HubSpot CRM client implementation.

Thin async wrapper over the HubSpot REST API covering what the workflows need:
object reads and partial updates, equality search with cursor pagination,
association listing and association creation.

Environment variables required:
- HUBSPOT_PRIVATE_APP_TOKEN: private app token (Bearer credential)
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from src.conf.config import settings
from src.integrations.crm.base import (
    AssociationTypeNotFoundError,
    CRMErrorType,
    HubSpotAPIError,
    HubSpotConfigError,
)


logger = logging.getLogger(__name__)


def _next_cursor(page: dict[str, Any] | None) -> str | None:
    """Return the ``paging.next.after`` cursor of a page, if any."""
    paging = (page or {}).get("paging") or {}
    after = (paging.get("next") or {}).get("after")
    return str(after) if after else None


def _cursor_repeated(after: str, seen: set[str], what: str) -> bool:
    """Record ``after``; True if it was already returned for this listing."""
    if after in seen:
        logger.warning("[HUBSPOT] Cursor %s repeated during %s; stopping pagination", after, what)
        return True
    seen.add(after)
    return False


def _result_ids(page: dict[str, Any] | None) -> list[str]:
    """Extract record ids from an association listing page (v3 or v4 shape)."""
    ids: list[str] = []
    for result in (page or {}).get("results") or []:
        record_id = result.get("toObjectId") or result.get("id")
        if record_id:
            ids.append(str(record_id))
    return ids


class HubSpotClient:
    """HubSpot CRM API client.

    Usage:
        async with HubSpotClient() as client:
            lead = await client.get_object("leads", "123", ["owner_role"])
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        search_limit: int | None = None,
        association_limit: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize HubSpot client.

        Args:
            token: Private app token (default from settings)
            base_url: API base URL (default from settings)
            timeout: Request timeout in seconds (default from settings)
            search_limit: Search page size (default from settings)
            association_limit: Association listing page size (default from settings)
            transport: Optional httpx transport, mainly for tests
        """
        self.token = token or settings.HUBSPOT_PRIVATE_APP_TOKEN.get_secret_value()
        if not self.token:
            raise HubSpotConfigError("Missing HUBSPOT_PRIVATE_APP_TOKEN")

        self.base_url = (base_url or settings.HUBSPOT_API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.HUBSPOT_TIMEOUT_SECONDS
        self.search_limit = search_limit or settings.SEARCH_PAGE_LIMIT
        self.association_limit = association_limit or settings.MAX_ASSOCIATIONS

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {self.token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the decoded body (None for empty responses).

        Raises:
            HubSpotAPIError: on a non-2xx status, a timeout or a transport failure
        """
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.TimeoutException as e:
            logger.error("[HUBSPOT] Timeout: %s %s", method, path)
            raise HubSpotAPIError(
                f"HubSpot request timed out: {method} {path}",
                error_type=CRMErrorType.CONNECTION,
            ) from e
        except httpx.RequestError as e:
            logger.error("[HUBSPOT] Connection error: %s %s: %s", method, path, e)
            raise HubSpotAPIError(
                f"HubSpot connection error: {e}",
                error_type=CRMErrorType.CONNECTION,
            ) from e

        if not response.is_success:
            logger.warning(
                "[HUBSPOT] %s %s -> %d",
                method,
                path,
                response.status_code,
            )
            raise HubSpotAPIError.from_status(
                response.status_code, response.reason_phrase, response.text
            )

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # ─── Objects ────────────────────────────────────────────────────────────

    async def get_object(
        self,
        object_type: str,
        object_id: str,
        properties: list[str] | tuple[str, ...],
    ) -> dict[str, Any]:
        """Fetch a single record with the requested properties."""
        return await self._request(
            "GET",
            f"/crm/v3/objects/{object_type}/{object_id}",
            params={"properties": ",".join(properties)},
        )

    async def update_object(
        self,
        object_type: str,
        object_id: str,
        properties: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Partially update a record's properties."""
        return await self._request(
            "PATCH",
            f"/crm/v3/objects/{object_type}/{object_id}",
            json={"properties": properties},
        )

    # ─── Search ─────────────────────────────────────────────────────────────

    async def search_page(
        self,
        object_type: str,
        property_name: str,
        value: Any,
        properties: list[str] | tuple[str, ...],
        after: str | None = None,
    ) -> dict[str, Any]:
        """Return one page of records whose ``property_name`` equals ``value``."""
        body: dict[str, Any] = {
            "filterGroups": [
                {
                    "filters": [
                        {
                            "propertyName": property_name,
                            "operator": "EQ",
                            "value": str(value),
                        }
                    ]
                }
            ],
            "properties": list(properties),
            "limit": self.search_limit,
        }
        if after:
            body["after"] = after

        return await self._request("POST", f"/crm/v3/objects/{object_type}/search", json=body)

    async def search_all(
        self,
        object_type: str,
        property_name: str,
        value: Any,
        properties: list[str] | tuple[str, ...],
    ) -> list[dict[str, Any]]:
        """Return every record matching the equality filter, following cursors."""
        records: list[dict[str, Any]] = []
        after: str | None = None
        seen: set[str] = set()

        while True:
            page = await self.search_page(object_type, property_name, value, properties, after=after)
            records.extend((page or {}).get("results") or [])
            after = _next_cursor(page)
            if not after or _cursor_repeated(after, seen, f"search {object_type}"):
                break

        return records

    # ─── Associations ───────────────────────────────────────────────────────

    async def list_associations(
        self,
        from_object_type: str,
        from_id: str,
        to_object_type: str,
    ) -> list[str]:
        """Return ids of ``to_object_type`` records associated to a record.

        Ids appear once even when several association labels link the same pair.
        """
        ids: dict[str, None] = {}
        after: str | None = None
        seen: set[str] = set()

        while True:
            params: dict[str, Any] = {"limit": self.association_limit}
            if after:
                params["after"] = after

            page = await self._request(
                "GET",
                f"/crm/v3/objects/{from_object_type}/{from_id}/associations/{to_object_type}",
                params=params,
            )
            ids.update(dict.fromkeys(_result_ids(page)))
            after = _next_cursor(page)
            if not after or _cursor_repeated(
                after, seen, f"associations {from_object_type}/{from_id} -> {to_object_type}"
            ):
                break

        return list(ids)

    async def get_default_association_type_id(
        self,
        from_object_type: str,
        to_object_type: str,
    ) -> int:
        """Resolve the association type id HubSpot uses between two object types.

        Uses the first label returned by the v4 labels endpoint. Not cached here;
        see ``association_cache`` for the process-wide cache.
        """
        data = await self._request(
            "GET", f"/crm/v4/associations/{from_object_type}/{to_object_type}/labels"
        )
        results = (data or {}).get("results") or []
        first = results[0] if results else None
        if not first or first.get("typeId") is None:
            raise AssociationTypeNotFoundError(from_object_type, to_object_type)
        return int(first["typeId"])

    async def associate(
        self,
        from_object_type: str,
        from_id: str,
        to_object_type: str,
        to_id: str,
        association_type_id: int,
    ) -> None:
        """Create an association between two existing records."""
        await self._request(
            "PUT",
            f"/crm/v3/objects/{from_object_type}/{from_id}/associations/"
            f"{to_object_type}/{to_id}/{association_type_id}",
        )


# Global client instance
_hubspot_client: HubSpotClient | None = None


def get_hubspot_client() -> HubSpotClient:
    """Get global HubSpot client instance."""
    global _hubspot_client
    if _hubspot_client is None:
        _hubspot_client = HubSpotClient()
    return _hubspot_client


async def close_hubspot_client() -> None:
    """Close the global client, if one was created."""
    global _hubspot_client
    if _hubspot_client is not None:
        await _hubspot_client.aclose()
        _hubspot_client = None
