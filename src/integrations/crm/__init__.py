"""CRM integrations package."""
from src.integrations.crm.base import (
    AssociationTypeNotFoundError,
    CRMErrorType,
    HubSpotAPIError,
    HubSpotConfigError,
    HubSpotError,
)
from src.integrations.crm.hubspot import HubSpotClient, get_hubspot_client

__all__ = [
    "AssociationTypeNotFoundError",
    "CRMErrorType",
    "HubSpotAPIError",
    "HubSpotClient",
    "HubSpotConfigError",
    "HubSpotError",
    "get_hubspot_client",
]
