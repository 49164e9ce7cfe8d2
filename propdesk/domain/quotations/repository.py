"""Quotation repository"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models_quotation import Quotation


class QuotationRepository:
    @staticmethod
    def list_query(db: Session, agency_id: int):
        return db.query(Quotation).options(joinedload(Quotation.unit)).filter(Quotation.agency_id == agency_id)

    @staticmethod
    def get_by_id(db: Session, quotation_id: int, agency_id: int) -> Optional[Quotation]:
        return (
            db.query(Quotation)
            .filter(Quotation.id == quotation_id, Quotation.agency_id == agency_id)
            .first()
        )

    @staticmethod
    def get_by_public_id(db: Session, public_id: str) -> Optional[Quotation]:
        return db.query(Quotation).filter(Quotation.public_id == public_id).first()

    @staticmethod
    def create(db: Session, **data) -> Quotation:
        quotation = Quotation(**data)
        db.add(quotation)
        db.commit()
        db.refresh(quotation)
        return quotation

    @staticmethod
    def delete(db: Session, quotation: Quotation) -> None:
        db.delete(quotation)
        db.commit()
