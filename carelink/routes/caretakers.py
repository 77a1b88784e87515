"""
CareLink Services — Caretaker Route Handlers
==============================================

What:  HTTP surface of the caretaker service.
How:   Parses JSON bodies / query strings, delegates to CaretakerService,
       returns JSON. Errors are raised by the service and formatted by the
       global exception handlers in main.py.

Request bodies are optional at the HTTP level so that an empty or partial
body reaches the service and is answered with 400, not FastAPI's 422.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from carelink.routes.deps import get_caretaker_service
from carelink.schemas.caretaker import (
    CaretakerCreate,
    CaretakerCreatedResponse,
    CaretakerDelete,
    CaretakerResponse,
    CaretakerUpdate,
    ErrorResponse,
    MessageResponse,
)
from carelink.services.caretaker_service import CaretakerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Caretakers"])

_ERRORS = {
    400: {"description": "Missing required field", "model": ErrorResponse},
    500: {"description": "Document store error", "model": ErrorResponse},
}
_OWNERSHIP_ERRORS = {
    **_ERRORS,
    403: {"description": "Caretaker belongs to another patient", "model": ErrorResponse},
    404: {"description": "Caretaker not found", "model": ErrorResponse},
}


@router.post(
    "/caretaker/add",
    response_model=CaretakerCreatedResponse,
    responses=_ERRORS,
    summary="Add a caretaker for a patient",
)
async def add_caretaker(
    payload: Optional[CaretakerCreate] = None,
    service: CaretakerService = Depends(get_caretaker_service),
) -> CaretakerCreatedResponse:
    caretaker_id = await service.add(payload or CaretakerCreate())
    return CaretakerCreatedResponse(id=caretaker_id)


@router.get(
    "/caretaker/get",
    response_model=List[CaretakerResponse],
    responses=_ERRORS,
    summary="List a patient's caretakers",
)
async def get_caretakers(
    patient_id: Optional[str] = Query(default=None, alias="patientId"),
    service: CaretakerService = Depends(get_caretaker_service),
):
    return await service.list_for_patient(patient_id)


@router.post(
    "/caretaker/update",
    response_model=MessageResponse,
    responses=_OWNERSHIP_ERRORS,
    summary="Update a caretaker owned by the patient",
)
async def update_caretaker(
    payload: Optional[CaretakerUpdate] = None,
    service: CaretakerService = Depends(get_caretaker_service),
) -> MessageResponse:
    await service.update(payload or CaretakerUpdate())
    return MessageResponse(message="Caretaker updated successfully")


@router.delete(
    "/caretaker/delete",
    response_model=MessageResponse,
    responses=_OWNERSHIP_ERRORS,
    summary="Delete a caretaker owned by the patient",
)
async def delete_caretaker(
    payload: Optional[CaretakerDelete] = None,
    service: CaretakerService = Depends(get_caretaker_service),
) -> MessageResponse:
    await service.delete(payload or CaretakerDelete())
    return MessageResponse(message="Caretaker deleted successfully")


@router.get(
    "/caretakers/all",
    response_model=List[CaretakerResponse],
    responses=_ERRORS,
    summary="List every caretaker of an organization's patients",
)
async def get_organization_caretakers(
    organization_id: Optional[str] = Query(default=None, alias="organizationId"),
    service: CaretakerService = Depends(get_caretaker_service),
):
    return await service.list_for_organization(organization_id)
