"""Catalog service - Business logic for businesses, services and specialists"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Business, Service, Specialist, User
from .repository import CatalogRepository
from .schemas import (
    BusinessCreate,
    BusinessUpdate,
    ServiceCreate,
    ServiceUpdate,
    SpecialistCreate,
    SpecialistUpdate,
)

logger = logging.getLogger(__name__)


def specialist_view(specialist: Specialist) -> dict:
    user = specialist.user
    return {
        "id": specialist.id,
        "user_id": specialist.user_id,
        "business_id": specialist.business_id,
        "name": user.name if user else None,
        "email": user.email if user else None,
        "specialty": specialist.specialty,
        "license_number": specialist.license_number,
        "bio": specialist.bio,
        "availability": specialist.availability or [],
        "service_ids": sorted(s.id for s in specialist.services),
        "is_active": specialist.is_active,
        "created_at": specialist.created_at,
    }


class CatalogService:
    """Service layer for catalog management"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    @staticmethod
    def can_manage(business: Business, user: Optional[User]) -> bool:
        if user is None:
            return False
        return user.role == "admin" or business.owner_id == user.id

    def _ensure_manager(self, business: Business, user: User) -> None:
        if not self.can_manage(business, user):
            logger.warning(f"User {user.id} tried to manage business {business.id} without ownership")
            raise HTTPException(status_code=403, detail="You do not manage this business")

    # ------------------------------------------------------------------
    # Businesses
    # ------------------------------------------------------------------

    def create_business(self, data: BusinessCreate, user: User) -> Business:
        owner_id = user.id
        if user.role == "admin" and data.owner_id is not None:
            owner = self.repo.get_user(self.db, data.owner_id)
            if not owner:
                raise HTTPException(status_code=404, detail="Owner not found")
            if owner.role != "owner":
                raise HTTPException(status_code=400, detail="User must have owner role to own a business")
            owner_id = owner.id

        if self.repo.get_business_by_ruc(self.db, data.ruc):
            raise HTTPException(status_code=409, detail="A business with this RUC already exists")

        business = self.repo.create_business(
            self.db,
            owner_id=owner_id,
            **data.model_dump(exclude={"owner_id"}),
        )
        logger.info(f"Business {business.id} created for owner {owner_id}")
        return business

    def list_businesses(self, skip: int = 0, limit: int = 50) -> list[Business]:
        return self.repo.list_businesses(self.db, active_only=True, skip=skip, limit=limit)

    def list_owned_businesses(self, user: User) -> list[Business]:
        return self.repo.list_businesses_by_owner(self.db, user.id)

    def get_business(self, business_id: int) -> Business:
        business = self.repo.get_business(self.db, business_id)
        if not business:
            raise HTTPException(status_code=404, detail="Business not found")
        return business

    def update_business(self, business_id: int, data: BusinessUpdate, user: User) -> Business:
        business = self.get_business(business_id)
        self._ensure_manager(business, user)
        return self.repo.update(self.db, business, **data.model_dump(exclude_unset=True))

    def deactivate_business(self, business_id: int, user: User) -> dict:
        business = self.get_business(business_id)
        self._ensure_manager(business, user)
        self.repo.update(self.db, business, is_active=False)
        logger.info(f"Business {business.id} deactivated by user {user.id}")
        return {"message": "Business deactivated"}

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    def create_service(self, data: ServiceCreate, user: User) -> Service:
        business = self.get_business(data.business_id)
        self._ensure_manager(business, user)
        service = self.repo.create_service(self.db, **data.model_dump())
        logger.info(f"Service {service.id} ({service.duration_minutes} min) created for business {business.id}")
        return service

    def list_services(self, business_id: int, user: Optional[User] = None) -> list[Service]:
        business = self.get_business(business_id)
        active_only = not self.can_manage(business, user)
        return self.repo.list_services(self.db, business.id, active_only=active_only)

    def get_service(self, service_id: int) -> Service:
        service = self.repo.get_service(self.db, service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")
        return service

    def update_service(self, service_id: int, data: ServiceUpdate, user: User) -> Service:
        service = self.get_service(service_id)
        self._ensure_manager(service.business, user)
        return self.repo.update(self.db, service, **data.model_dump(exclude_unset=True))

    def deactivate_service(self, service_id: int, user: User) -> dict:
        service = self.get_service(service_id)
        self._ensure_manager(service.business, user)
        self.repo.update(self.db, service, is_active=False)
        return {"message": "Service deactivated"}

    # ------------------------------------------------------------------
    # Specialists
    # ------------------------------------------------------------------

    def _resolve_services(self, business_id: int, service_ids: list[int]) -> list[Service]:
        unique_ids = sorted(set(service_ids))
        services = self.repo.get_services_by_ids(self.db, business_id, unique_ids)
        if len(services) != len(unique_ids):
            raise HTTPException(status_code=400, detail="All services must belong to the specialist's business")
        return services

    def create_specialist(self, data: SpecialistCreate, user: User) -> Specialist:
        """Attach an existing user to a business as a specialist"""
        business = self.get_business(data.business_id)
        self._ensure_manager(business, user)

        member = self.repo.get_user(self.db, data.user_id)
        if not member:
            raise HTTPException(status_code=404, detail="User not found")
        if not member.is_active:
            raise HTTPException(status_code=400, detail="User account is deactivated")
        if self.repo.get_specialist_by_user(self.db, business.id, member.id):
            raise HTTPException(status_code=409, detail="User is already a specialist of this business")

        services = self._resolve_services(business.id, data.service_ids)

        if member.role == "client":
            member.role = "specialist"
            logger.info(f"User {member.id} promoted to specialist")

        specialist = self.repo.create_specialist(
            self.db,
            services=services,
            user_id=member.id,
            business_id=business.id,
            specialty=data.specialty,
            license_number=data.license_number,
            bio=data.bio,
            availability=[entry.model_dump() for entry in data.availability],
        )
        logger.info(f"Specialist {specialist.id} added to business {business.id}")
        return specialist

    def list_specialists(self, business_id: int, user: Optional[User] = None) -> list[Specialist]:
        business = self.get_business(business_id)
        active_only = not self.can_manage(business, user)
        return self.repo.list_specialists(self.db, business.id, active_only=active_only)

    def get_specialist(self, specialist_id: int) -> Specialist:
        specialist = self.repo.get_specialist(self.db, specialist_id)
        if not specialist:
            raise HTTPException(status_code=404, detail="Specialist not found")
        return specialist

    def update_specialist(self, specialist_id: int, data: SpecialistUpdate, user: User) -> Specialist:
        specialist = self.get_specialist(specialist_id)
        self._ensure_manager(specialist.business, user)

        updates = data.model_dump(exclude_unset=True, exclude={"availability", "service_ids"})
        if data.availability is not None:
            # JSON column: assign a new list so the change is detected
            updates["availability"] = [entry.model_dump() for entry in data.availability]
        if data.service_ids is not None:
            specialist.services = self._resolve_services(specialist.business_id, data.service_ids)

        return self.repo.update(self.db, specialist, **updates)

    def deactivate_specialist(self, specialist_id: int, user: User) -> dict:
        specialist = self.get_specialist(specialist_id)
        self._ensure_manager(specialist.business, user)
        self.repo.update(self.db, specialist, is_active=False)
        logger.info(f"Specialist {specialist.id} deactivated by user {user.id}")
        return {"message": "Specialist deactivated"}
