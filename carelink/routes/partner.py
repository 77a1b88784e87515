"""
CareLink Services — Partner Code Route Handlers
=================================================

What:  Generate a partner linking code for a user and resolve a code back.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from carelink.routes.deps import get_partner_service
from carelink.schemas.caretaker import ErrorResponse
from carelink.schemas.partner import (
    PartnerCodeLookupResponse,
    PartnerCodeRequest,
    PartnerCodeResponse,
)
from carelink.services.partner_service import PartnerCodeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/partner", tags=["Partner Codes"])


@router.post(
    "/generate",
    response_model=PartnerCodeResponse,
    responses={400: {"description": "userId missing", "model": ErrorResponse}},
    summary="Generate a partner code for a user",
)
async def generate_partner_code(
    payload: Optional[PartnerCodeRequest] = None,
    service: PartnerCodeService = Depends(get_partner_service),
) -> PartnerCodeResponse:
    user_id = payload.user_id if payload else None
    code = await service.generate(user_id)
    return PartnerCodeResponse(user_id=user_id, partner_code=code)


@router.get(
    "/{code}",
    response_model=PartnerCodeLookupResponse,
    responses={404: {"description": "Invalid or expired partner code", "model": ErrorResponse}},
    summary="Resolve a partner code to its user id",
)
async def resolve_partner_code(
    code: str,
    service: PartnerCodeService = Depends(get_partner_service),
) -> PartnerCodeLookupResponse:
    user_id = await service.resolve(code)
    return PartnerCodeLookupResponse(user_id=user_id)
