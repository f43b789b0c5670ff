"""Clinical record router - FastAPI endpoints for clinical records"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor
from ...database import get_db
from ...schemas import MessageResponse
from .schemas import ClinicalRecordCreate, ClinicalRecordPage, ClinicalRecordResponse, ClinicalRecordUpdate
from .service import ClinicalRecordService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clinical-records", tags=["Clinical Records"])


def get_clinical_record_service(db: Session = Depends(get_db)) -> ClinicalRecordService:
    """Dependency injection for ClinicalRecordService"""
    return ClinicalRecordService(db)


@router.post("", response_model=ClinicalRecordResponse, status_code=201)
async def create_clinical_record(
    data: ClinicalRecordCreate,
    actor: Actor = Depends(get_current_actor),
    service: ClinicalRecordService = Depends(get_clinical_record_service),
):
    return service.create_record(data, actor)


@router.get("", response_model=list[ClinicalRecordResponse])
async def list_clinical_records(
    client: Optional[int] = Query(None, description="Client id; defaults to the current user"),
    actor: Actor = Depends(get_current_actor),
    service: ClinicalRecordService = Depends(get_clinical_record_service),
):
    return service.list_for_client(client if client is not None else actor.id, actor)


@router.get("/specialist/{specialist_id}", response_model=ClinicalRecordPage)
async def list_specialist_clinical_records(
    specialist_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    actor: Actor = Depends(get_current_actor),
    service: ClinicalRecordService = Depends(get_clinical_record_service),
):
    return service.list_for_specialist(specialist_id, actor, page=page, limit=limit)


@router.get("/{record_id}", response_model=ClinicalRecordResponse)
async def get_clinical_record(
    record_id: int,
    actor: Actor = Depends(get_current_actor),
    service: ClinicalRecordService = Depends(get_clinical_record_service),
):
    return service.get_record(record_id, actor)


@router.put("/{record_id}", response_model=ClinicalRecordResponse)
async def update_clinical_record(
    record_id: int,
    data: ClinicalRecordUpdate,
    actor: Actor = Depends(get_current_actor),
    service: ClinicalRecordService = Depends(get_clinical_record_service),
):
    return service.update_record(record_id, data, actor)


@router.delete("/{record_id}", response_model=MessageResponse)
async def delete_clinical_record(
    record_id: int,
    actor: Actor = Depends(get_current_actor),
    service: ClinicalRecordService = Depends(get_clinical_record_service),
):
    service.delete_record(record_id, actor)
    return {"message": "Clinical record deleted successfully"}
