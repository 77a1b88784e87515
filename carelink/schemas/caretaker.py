"""
CareLink Services — Pydantic Request/Response Schemas
======================================================

What:  Pydantic models defining the API contract with the middleware tier.
How:   FastAPI parses request bodies into these models and serializes responses
       from them. Python attributes are snake_case; the JSON is camelCase
       (patientId, createdAt) through an alias generator.

Why request fields are Optional:
    Required-field checks belong to the services, which answer 400 with the
    list of missing fields. Declaring the fields required here would make
    FastAPI answer 422 before the service runs.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        """The submitted fields as the caller sent them (camelCase, unset omitted)."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class CamelRequest(CamelModel):
    """
    Request body base. Unknown keys are kept so the audit trail records the
    body as submitted; numbers sent for text fields are read as strings.
    """

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class CaretakerCreate(CamelRequest):
    """Body of POST /api/caretaker/add. All five fields are required by the service."""
    patient_id: Optional[str] = None
    name: Optional[str] = None
    relation: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class CaretakerUpdate(CamelRequest):
    """
    Body of POST /api/caretaker/update.

    id and patientId are required. Of the four mutable fields only those
    present in the body are written; an omitted field keeps its stored value.
    """
    id: Optional[str] = None
    patient_id: Optional[str] = None
    name: Optional[str] = None
    relation: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class CaretakerDelete(CamelRequest):
    """Body of DELETE /api/caretaker/delete."""
    id: Optional[str] = None
    patient_id: Optional[str] = None


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class CaretakerResponse(CamelModel):
    """
    One stored caretaker record.

    Extra fields written by other services are passed through unchanged.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str = Field(description="Document id assigned by the store")
    patient_id: Optional[str] = None
    name: Optional[str] = None
    relation: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CaretakerCreatedResponse(CamelModel):
    message: str = Field(default="Caretaker added successfully")
    id: str


class MessageResponse(CamelModel):
    message: str


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "forbidden",
            "message": "Unauthorized to update this caretaker",
            "details": null,
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Static liveness payload returned by GET /health."""
    status: str = Field(description="Always 'ok' while the process is serving")
    service: str = Field(description="Deployed service: caretaker, partner or all")
    version: str = Field(description="Application version")
    uptime_seconds: float = Field(description="Seconds since service started")

