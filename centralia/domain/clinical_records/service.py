"""Clinical record service - Access rules and record keeping"""

import logging
import math
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...auth import Actor
from ...errors import Conflict, InvalidInput, Mismatch, NotFound, Unauthorized
from ...models import ClinicalRecord, Specialist
from .repository import ClinicalRecordRepository
from .schemas import ClinicalRecordCreate, ClinicalRecordUpdate

logger = logging.getLogger(__name__)


def compute_bmi(weight: Optional[float], height: Optional[float]) -> Optional[float]:
    """BMI from kg and cm, one decimal"""
    if not weight or not height:
        return None
    meters = height / 100
    return round(weight / (meters * meters), 1)


class ClinicalRecordService:
    """Service layer for clinical records"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClinicalRecordRepository()

    def _staff_business_ids(self, actor: Actor) -> Optional[list[int]]:
        """Businesses whose records the actor may read; None means all"""
        if actor.is_admin:
            return None
        if actor.role == "owner":
            return self.repo.get_owned_business_ids(self.db, actor.id)
        if actor.role == "specialist":
            return sorted({p.business_id for p in self.repo.get_specialist_profiles(self.db, actor.id)})
        return []

    def _can_view(self, record: ClinicalRecord, actor: Actor) -> bool:
        if record.client_id == actor.id:
            return True
        business_ids = self._staff_business_ids(actor)
        return business_ids is None or record.business_id in business_ids

    def _can_edit(self, record: ClinicalRecord, actor: Actor) -> bool:
        if actor.is_admin:
            return True
        if record.specialist and record.specialist.user_id == actor.id:
            return True
        return actor.role == "owner" and record.business.owner_id == actor.id

    def _resolve_author(self, data: ClinicalRecordCreate, actor: Actor) -> Specialist:
        """Specialist profile the record is written under"""
        if actor.role == "specialist":
            profiles = self.repo.get_specialist_profiles(self.db, actor.id)
            if not profiles:
                raise NotFound("Specialist profile not found")
            if data.specialist_id is None:
                return profiles[0]
            for profile in profiles:
                if profile.id == data.specialist_id:
                    return profile
            raise Unauthorized("You can only write records under your own specialist profile")

        if actor.role not in ("owner", "admin"):
            raise Unauthorized("Only specialists can create clinical records")
        if data.specialist_id is None:
            raise InvalidInput("specialist_id is required")

        specialist = self.repo.get_specialist(self.db, data.specialist_id)
        if not specialist:
            raise NotFound("Specialist not found")
        if actor.role == "owner" and specialist.business.owner_id != actor.id:
            raise Unauthorized("You do not manage this specialist's business")
        return specialist

    def create_record(self, data: ClinicalRecordCreate, actor: Actor) -> ClinicalRecord:
        specialist = self._resolve_author(data, actor)

        client = self.repo.get_user(self.db, data.client_id)
        if not client:
            raise NotFound("Client not found")

        if data.reservation_id is not None:
            reservation = self.repo.get_reservation(self.db, data.reservation_id)
            if not reservation:
                raise NotFound("Reservation not found")
            if reservation.client_id != client.id:
                raise Mismatch("Reservation does not belong to this client")
            if reservation.business_id != specialist.business_id:
                raise Mismatch("Reservation does not belong to this business")
            if reservation.specialist_id != specialist.id:
                raise Mismatch("Reservation does not belong to this specialist")
            if self.repo.get_record_by_reservation(self.db, reservation.id):
                raise Conflict("Clinical record already exists for this reservation")

        record_data = data.model_dump(exclude={"specialist_id", "client_id"})
        if record_data.get("bmi") is None:
            record_data["bmi"] = compute_bmi(data.weight, data.height)

        try:
            record = self.repo.create_record(
                self.db,
                client_id=client.id,
                specialist_id=specialist.id,
                business_id=specialist.business_id,
                **record_data,
            )
        except IntegrityError:
            self.db.rollback()
            raise Conflict("Clinical record already exists for this reservation") from None

        logger.info(f"Clinical record {record.id} created by specialist {specialist.id} for client {client.id}")
        return record

    def get_record(self, record_id: int, actor: Actor) -> ClinicalRecord:
        record = self.repo.get_record(self.db, record_id)
        if not record:
            raise NotFound("Clinical record not found")
        if not self._can_view(record, actor):
            raise Unauthorized("Not authorized to view this record")
        return record

    def get_by_reservation(self, reservation_id: int, actor: Actor) -> ClinicalRecord:
        record = self.repo.get_record_by_reservation(self.db, reservation_id)
        if not record:
            raise NotFound("Clinical record not found for this reservation")
        if not self._can_view(record, actor):
            raise Unauthorized("Not authorized to view this record")
        return record

    def list_for_client(self, client_id: int, actor: Actor) -> list[ClinicalRecord]:
        """A client's history; staff only see what their businesses wrote"""
        if client_id == actor.id:
            return self.repo.list_records_for_client(self.db, client_id)

        business_ids = self._staff_business_ids(actor)
        if business_ids == [] and actor.role not in ("owner", "specialist"):
            raise Unauthorized("Not authorized to view these records")
        return self.repo.list_records_for_client(self.db, client_id, business_ids)

    def update_record(self, record_id: int, data: ClinicalRecordUpdate, actor: Actor) -> ClinicalRecord:
        record = self.repo.get_record(self.db, record_id)
        if not record:
            raise NotFound("Clinical record not found")
        if not self._can_edit(record, actor):
            raise Unauthorized("Not authorized to update this record")

        updates = data.model_dump(exclude_unset=True)
        if "bmi" not in updates and ("weight" in updates or "height" in updates):
            weight = updates.get("weight") or record.weight
            height = updates.get("height") or record.height
            updates["bmi"] = compute_bmi(weight, height)

        record = self.repo.update_record(self.db, record, **updates)
        logger.info(f"Clinical record {record.id} updated by user {actor.id}")
        return record

    def list_for_specialist(self, specialist_id: int, actor: Actor, page: int = 1, limit: int = 10) -> dict:
        """Paginated records written by one specialist, newest first"""
        specialist = self.repo.get_specialist(self.db, specialist_id)
        if not specialist:
            raise NotFound("Specialist not found")

        allowed = (
            actor.is_admin
            or specialist.user_id == actor.id
            or (actor.role == "owner" and specialist.business.owner_id == actor.id)
        )
        if not allowed:
            raise Unauthorized("Not authorized to view these clinical records")

        records, total = self.repo.list_records_for_specialist(
            self.db, specialist.id, offset=(page - 1) * limit, limit=limit
        )
        return {
            "records": records,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit),
            },
        }

    def delete_record(self, record_id: int, actor: Actor) -> None:
        """Only admins and the specialist who wrote the record may delete it"""
        record = self.repo.get_record(self.db, record_id)
        if not record:
            raise NotFound("Clinical record not found")
        if not actor.is_admin and not (record.specialist and record.specialist.user_id == actor.id):
            raise Unauthorized("Not authorized to delete this clinical record")

        self.repo.delete_record(self.db, record)
        logger.info(f"Clinical record {record_id} deleted by user {actor.id}")
