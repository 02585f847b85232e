"""Service record repository"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import ServiceRecord


class ServiceRecordRepository:
    @staticmethod
    def get_services(
        db: Session, user_id: int, piano_id: Optional[int] = None, client_id: Optional[int] = None
    ) -> list[ServiceRecord]:
        """Service history, newest first"""
        query = db.query(ServiceRecord).filter(ServiceRecord.user_id == user_id)
        if piano_id is not None:
            query = query.filter(ServiceRecord.piano_id == piano_id)
        if client_id is not None:
            query = query.filter(ServiceRecord.client_id == client_id)
        return query.order_by(ServiceRecord.date.desc(), ServiceRecord.id.desc()).all()

    @staticmethod
    def get_service_by_id(db: Session, service_id: int, user_id: int) -> Optional[ServiceRecord]:
        return (
            db.query(ServiceRecord)
            .filter(ServiceRecord.id == service_id, ServiceRecord.user_id == user_id)
            .first()
        )

    @staticmethod
    def create_service(db: Session, **service_data) -> ServiceRecord:
        record = ServiceRecord(**service_data)
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def update_service(db: Session, record: ServiceRecord, **updates) -> ServiceRecord:
        for key, value in updates.items():
            if hasattr(record, key):
                setattr(record, key, value)
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def delete_service(db: Session, record: ServiceRecord) -> None:
        db.delete(record)
        db.commit()
