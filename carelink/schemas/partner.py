"""
CareLink Services — Partner Code Schemas
==========================================

What:  Request/response models for the /partner endpoints.
How:   Same camelCase convention as the caretaker schemas (userId, partnerCode).
"""

from typing import Optional

from pydantic import Field

from carelink.schemas.caretaker import CamelModel, CamelRequest


class PartnerCodeRequest(CamelRequest):
    """Body of POST /partner/generate. userId is required by the service."""
    user_id: Optional[str] = None


class PartnerCodeResponse(CamelModel):
    message: str = Field(default="Partner code generated successfully")
    user_id: str
    partner_code: str = Field(description="6-character uppercase hexadecimal code")


class PartnerCodeLookupResponse(CamelModel):
    message: str = Field(default="Partner code is valid")
    user_id: str
