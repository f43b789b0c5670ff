"""Catalog routers - FastAPI endpoints for businesses, services and specialists"""

import logging
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_optional_user, require_roles
from ...database import get_db
from ...models import User
from ...schemas import MessageResponse
from ..scheduling.service import BookingService, parse_date
from .schemas import (
    BusinessCreate,
    BusinessResponse,
    BusinessUpdate,
    ServiceCreate,
    ServiceResponse,
    ServiceUpdate,
    SlotResponse,
    SpecialistCreate,
    SpecialistResponse,
    SpecialistUpdate,
)
from .service import CatalogService, specialist_view

logger = logging.getLogger(__name__)

business_router = APIRouter(prefix="/businesses", tags=["Businesses"])
service_router = APIRouter(prefix="/services", tags=["Services"])
specialist_router = APIRouter(prefix="/specialists", tags=["Specialists"])

require_manager = require_roles("admin", "owner")


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


# ============================================================================
# BUSINESSES
# ============================================================================


@business_router.post("", response_model=BusinessResponse, status_code=201)
async def create_business(
    data: BusinessCreate,
    current_user: User = Depends(require_manager),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.create_business(data, current_user)


@business_router.get("", response_model=list[BusinessResponse])
async def list_businesses(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    service: CatalogService = Depends(get_catalog_service),
):
    """List active businesses (public)"""
    return service.list_businesses(skip=skip, limit=limit)


@business_router.get("/mine", response_model=list[BusinessResponse])
async def list_my_businesses(
    current_user: User = Depends(require_manager),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.list_owned_businesses(current_user)


@business_router.get("/{business_id}", response_model=BusinessResponse)
async def get_business(business_id: int, service: CatalogService = Depends(get_catalog_service)):
    return service.get_business(business_id)


@business_router.put("/{business_id}", response_model=BusinessResponse)
async def update_business(
    business_id: int,
    data: BusinessUpdate,
    current_user: User = Depends(require_manager),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.update_business(business_id, data, current_user)


@business_router.delete("/{business_id}", response_model=MessageResponse)
async def deactivate_business(
    business_id: int,
    current_user: User = Depends(require_manager),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.deactivate_business(business_id, current_user)


@business_router.get("/{business_id}/services", response_model=list[ServiceResponse])
async def list_business_services(
    business_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    service: CatalogService = Depends(get_catalog_service),
):
    """Active services; managers also see inactive ones"""
    return service.list_services(business_id, current_user)


@business_router.get("/{business_id}/specialists", response_model=list[SpecialistResponse])
async def list_business_specialists(
    business_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    service: CatalogService = Depends(get_catalog_service),
):
    return [specialist_view(s) for s in service.list_specialists(business_id, current_user)]


# ============================================================================
# SERVICES
# ============================================================================


@service_router.post("", response_model=ServiceResponse, status_code=201)
async def create_service(
    data: ServiceCreate,
    current_user: User = Depends(require_manager),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.create_service(data, current_user)


@service_router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(service_id: int, service: CatalogService = Depends(get_catalog_service)):
    return service.get_service(service_id)


@service_router.put("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: int,
    data: ServiceUpdate,
    current_user: User = Depends(require_manager),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.update_service(service_id, data, current_user)


@service_router.delete("/{service_id}", response_model=MessageResponse)
async def deactivate_service(
    service_id: int,
    current_user: User = Depends(require_manager),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.deactivate_service(service_id, current_user)


# ============================================================================
# SPECIALISTS
# ============================================================================


@specialist_router.post("", response_model=SpecialistResponse, status_code=201)
async def create_specialist(
    data: SpecialistCreate,
    current_user: User = Depends(require_manager),
    service: CatalogService = Depends(get_catalog_service),
):
    """Add an existing user to a business; client accounts become specialists"""
    return specialist_view(service.create_specialist(data, current_user))


@specialist_router.get("/{specialist_id}", response_model=SpecialistResponse)
async def get_specialist(specialist_id: int, service: CatalogService = Depends(get_catalog_service)):
    return specialist_view(service.get_specialist(specialist_id))


@specialist_router.put("/{specialist_id}", response_model=SpecialistResponse)
async def update_specialist(
    specialist_id: int,
    data: SpecialistUpdate,
    current_user: User = Depends(require_manager),
    service: CatalogService = Depends(get_catalog_service),
):
    """Update profile, weekly availability or offered services"""
    return specialist_view(service.update_specialist(specialist_id, data, current_user))


@specialist_router.delete("/{specialist_id}", response_model=MessageResponse)
async def deactivate_specialist(
    specialist_id: int,
    current_user: User = Depends(require_manager),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.deactivate_specialist(specialist_id, current_user)


@specialist_router.get("/{specialist_id}/available-slots", response_model=list[SlotResponse])
async def get_available_slots(
    specialist_id: int,
    service_id: int = Query(..., alias="service"),
    date: str = Query(...),
    db: Session = Depends(get_db),
):
    """Free slots of a specialist for a day, with their end times"""
    availability = BookingService(db).check_availability(specialist_id, service_id, parse_date(date))
    duration = timedelta(minutes=availability.slot_duration_minutes)
    return [SlotResponse(start_time=start, end_time=start + duration) for start in availability.available_starts]
