"""
Shared request/response building blocks.

Request bodies for stored entities derive from `DocumentIn`: declared fields
are validated, and any additional fields are accepted and kept as loose
document fields (`loose_fields()`), matching the bag-of-fields nature of the
stored documents.
"""

from typing import Annotated, Any, Dict, Iterable, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field


def _normalize_email(value: str) -> str:
    value = value.strip().lower()
    local, _, domain = value.partition("@")
    if not local or not domain or " " in value:
        raise ValueError("must be an email address")
    return value


# Lower-cased, trimmed email address
Email = Annotated[str, AfterValidator(_normalize_email)]


class DocumentIn(BaseModel):
    """Base for create/update bodies that accept extra document fields."""

    model_config = ConfigDict(extra="allow", use_enum_values=True)

    def declared_fields(self, exclude_unset: bool = False) -> Dict[str, Any]:
        return self.model_dump(
            include=set(type(self).model_fields),
            exclude_unset=exclude_unset,
        )

    def loose_fields(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class InsertedResponse(BaseModel):
    """Returned by create endpoints."""

    inserted_id: str = Field(description="Identifier of the new document")


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """
    Error body shared by every non-2xx response.

    Example:
        {
            "error": "validation_error",
            "message": "'abc' is not a valid parcel_id",
            "details": {"field": "parcel_id"},
            "request_id": "1f0c2a9b"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    realtime_listeners: int = Field(description="Connected notification sockets")
    uptime_seconds: float = Field(description="Seconds since service started")


class DeletedResponse(BaseModel):
    deleted_count: int = Field(description="Number of documents removed")


def to_documents(entities: Iterable[Any]) -> List[Dict[str, Any]]:
    """Serializes ORM entities into the flat document dicts the API returns."""
    return [entity.to_document() for entity in entities]
