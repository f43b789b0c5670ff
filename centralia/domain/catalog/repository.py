"""Catalog repository - Database operations for businesses, services and specialists"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Business, Service, Specialist, User


class CatalogRepository:
    """Repository for catalog database operations"""

    # Businesses

    @staticmethod
    def get_business(db: Session, business_id: int) -> Optional[Business]:
        return db.query(Business).filter(Business.id == business_id).first()

    @staticmethod
    def get_business_by_ruc(db: Session, ruc: str) -> Optional[Business]:
        return db.query(Business).filter(Business.ruc == ruc).first()

    @staticmethod
    def list_businesses(db: Session, active_only: bool = True, skip: int = 0, limit: int = 50) -> list[Business]:
        query = db.query(Business)
        if active_only:
            query = query.filter(Business.is_active.is_(True))
        return query.order_by(Business.name).offset(skip).limit(limit).all()

    @staticmethod
    def list_businesses_by_owner(db: Session, owner_id: int) -> list[Business]:
        return db.query(Business).filter(Business.owner_id == owner_id).order_by(Business.name).all()

    @staticmethod
    def create_business(db: Session, **business_data) -> Business:
        business = Business(**business_data)
        db.add(business)
        db.commit()
        db.refresh(business)
        return business

    # Services

    @staticmethod
    def get_service(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_services_by_ids(db: Session, business_id: int, service_ids: list[int]) -> list[Service]:
        if not service_ids:
            return []
        return (
            db.query(Service)
            .filter(Service.business_id == business_id, Service.id.in_(service_ids))
            .all()
        )

    @staticmethod
    def list_services(db: Session, business_id: int, active_only: bool = True) -> list[Service]:
        query = db.query(Service).filter(Service.business_id == business_id)
        if active_only:
            query = query.filter(Service.is_active.is_(True))
        return query.order_by(Service.name).all()

    @staticmethod
    def create_service(db: Session, **service_data) -> Service:
        service = Service(**service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    # Specialists

    @staticmethod
    def get_specialist(db: Session, specialist_id: int) -> Optional[Specialist]:
        return (
            db.query(Specialist)
            .options(joinedload(Specialist.user), joinedload(Specialist.services))
            .filter(Specialist.id == specialist_id)
            .first()
        )

    @staticmethod
    def get_specialist_by_user(db: Session, business_id: int, user_id: int) -> Optional[Specialist]:
        return (
            db.query(Specialist)
            .filter(Specialist.business_id == business_id, Specialist.user_id == user_id)
            .first()
        )

    @staticmethod
    def list_specialists(db: Session, business_id: int, active_only: bool = True) -> list[Specialist]:
        query = db.query(Specialist).filter(Specialist.business_id == business_id)
        if active_only:
            query = query.filter(Specialist.is_active.is_(True))
        return query.order_by(Specialist.id).all()

    @staticmethod
    def create_specialist(db: Session, services: list[Service], **specialist_data) -> Specialist:
        specialist = Specialist(**specialist_data)
        specialist.services = services
        db.add(specialist)
        db.commit()
        db.refresh(specialist)
        return specialist

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    # Shared

    @staticmethod
    def update(db: Session, instance, **updates):
        """Apply non-None updates to any catalog record"""
        for key, value in updates.items():
            if value is not None and hasattr(instance, key):
                setattr(instance, key, value)

        db.commit()
        db.refresh(instance)
        return instance
