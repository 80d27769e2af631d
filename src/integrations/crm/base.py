"""Shared CRM error types.

HubSpot calls raise instead of returning result objects: a workflow's remote
failure must abort the rest of its batch and surface at the dispatcher.
"""

from __future__ import annotations

from enum import Enum


class CRMErrorType(str, Enum):
    """Types of CRM errors."""

    CONNECTION = "connection"
    AUTHENTICATION = "authentication"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"


def classify_status(status_code: int) -> CRMErrorType:
    """Map an HTTP status code to a CRM error type."""
    if status_code in (401, 403):
        return CRMErrorType.AUTHENTICATION
    if status_code == 404:
        return CRMErrorType.NOT_FOUND
    if status_code in (400, 409, 422):
        return CRMErrorType.VALIDATION
    if status_code == 429:
        return CRMErrorType.RATE_LIMIT
    if status_code >= 500:
        return CRMErrorType.SERVER_ERROR
    return CRMErrorType.UNKNOWN


class HubSpotError(Exception):
    """Base exception for HubSpot integration failures."""


class HubSpotConfigError(HubSpotError, RuntimeError):
    """Raised when the client is used without required configuration."""


class HubSpotAPIError(HubSpotError):
    """Raised when HubSpot answers with a non-success status or cannot be reached."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        reason: str = "",
        body: str = "",
        error_type: CRMErrorType | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.body = body
        if error_type is None:
            error_type = classify_status(status_code) if status_code is not None else CRMErrorType.UNKNOWN
        self.error_type = error_type

    @classmethod
    def from_status(cls, status_code: int, reason: str, body: str) -> HubSpotAPIError:
        return cls(
            f"{status_code} {reason}: {body}",
            status_code=status_code,
            reason=reason,
            body=body,
        )


class AssociationTypeNotFoundError(HubSpotError):
    """Raised when HubSpot reports no association type between two object types."""

    def __init__(self, from_object_type: str, to_object_type: str):
        super().__init__(
            f"Could not determine {from_object_type}<->{to_object_type} association typeId"
        )
        self.from_object_type = from_object_type
        self.to_object_type = to_object_type
