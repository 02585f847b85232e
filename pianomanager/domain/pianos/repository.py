"""Piano repository - Database operations for pianos"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Piano


class PianoRepository:
    @staticmethod
    def get_pianos(db: Session, user_id: int, client_id: Optional[int] = None) -> list[Piano]:
        query = db.query(Piano).filter(Piano.user_id == user_id)
        if client_id is not None:
            query = query.filter(Piano.client_id == client_id)
        return query.order_by(Piano.brand.asc(), Piano.id.asc()).all()

    @staticmethod
    def get_piano_by_id(db: Session, piano_id: int, user_id: int) -> Optional[Piano]:
        return db.query(Piano).filter(Piano.id == piano_id, Piano.user_id == user_id).first()

    @staticmethod
    def create_piano(db: Session, user_id: int, partner_id: int, **piano_data) -> Piano:
        piano = Piano(user_id=user_id, partner_id=partner_id, **piano_data)
        db.add(piano)
        db.commit()
        db.refresh(piano)
        return piano

    @staticmethod
    def update_piano(db: Session, piano: Piano, **updates) -> Piano:
        for key, value in updates.items():
            if hasattr(piano, key):
                setattr(piano, key, value)
        db.commit()
        db.refresh(piano)
        return piano

    @staticmethod
    def delete_piano(db: Session, piano: Piano) -> None:
        db.delete(piano)
        db.commit()
