"""Clinical record repository - Database operations for clinical records"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Business, ClinicalRecord, Reservation, Specialist, User


class ClinicalRecordRepository:
    """Repository for clinical record database operations"""

    @staticmethod
    def get_record(db: Session, record_id: int) -> Optional[ClinicalRecord]:
        return db.query(ClinicalRecord).filter(ClinicalRecord.id == record_id).first()

    @staticmethod
    def get_record_by_reservation(db: Session, reservation_id: int) -> Optional[ClinicalRecord]:
        return db.query(ClinicalRecord).filter(ClinicalRecord.reservation_id == reservation_id).first()

    @staticmethod
    def list_records_for_client(
        db: Session, client_id: int, business_ids: Optional[list[int]] = None
    ) -> list[ClinicalRecord]:
        """Newest first; restricted to the given businesses when provided"""
        query = db.query(ClinicalRecord).filter(ClinicalRecord.client_id == client_id)
        if business_ids is not None:
            query = query.filter(ClinicalRecord.business_id.in_(business_ids))
        return query.order_by(ClinicalRecord.created_at.desc(), ClinicalRecord.id.desc()).all()

    @staticmethod
    def list_records_for_specialist(
        db: Session, specialist_id: int, offset: int, limit: int
    ) -> tuple[list[ClinicalRecord], int]:
        """One page of a specialist's records, newest first, plus the total count"""
        query = db.query(ClinicalRecord).filter(ClinicalRecord.specialist_id == specialist_id)
        total = query.count()
        records = (
            query.order_by(ClinicalRecord.created_at.desc(), ClinicalRecord.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return records, total

    @staticmethod
    def create_record(db: Session, **record_data) -> ClinicalRecord:
        record = ClinicalRecord(**record_data)
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def update_record(db: Session, record: ClinicalRecord, **updates) -> ClinicalRecord:
        for key, value in updates.items():
            if value is not None and hasattr(record, key):
                setattr(record, key, value)

        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def delete_record(db: Session, record: ClinicalRecord) -> None:
        db.delete(record)
        db.commit()

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_reservation(db: Session, reservation_id: int) -> Optional[Reservation]:
        return db.query(Reservation).filter(Reservation.id == reservation_id).first()

    @staticmethod
    def get_specialist(db: Session, specialist_id: int) -> Optional[Specialist]:
        return db.query(Specialist).filter(Specialist.id == specialist_id).first()

    @staticmethod
    def get_specialist_profiles(db: Session, user_id: int) -> list[Specialist]:
        return db.query(Specialist).filter(Specialist.user_id == user_id).order_by(Specialist.id).all()

    @staticmethod
    def get_owned_business_ids(db: Session, owner_id: int) -> list[int]:
        rows = db.query(Business.id).filter(Business.owner_id == owner_id).all()
        return [row[0] for row in rows]
