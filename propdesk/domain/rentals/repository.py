"""Rental contract repository"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models_rental import RentalContract


class RentalRepository:
    @staticmethod
    def list_query(db: Session, agency_id: int):
        return (
            db.query(RentalContract)
            .options(joinedload(RentalContract.unit), joinedload(RentalContract.tenant), joinedload(RentalContract.seller))
            .filter(RentalContract.agency_id == agency_id)
        )

    @staticmethod
    def get_by_id(db: Session, contract_id: int, agency_id: int) -> Optional[RentalContract]:
        return (
            db.query(RentalContract)
            .filter(RentalContract.id == contract_id, RentalContract.agency_id == agency_id)
            .first()
        )

    @staticmethod
    def get_active_for_unit(db: Session, unit_id: int, exclude_id: Optional[int] = None) -> Optional[RentalContract]:
        query = db.query(RentalContract).filter(RentalContract.unit_id == unit_id, RentalContract.status == "active")
        if exclude_id is not None:
            query = query.filter(RentalContract.id != exclude_id)
        return query.first()

    @staticmethod
    def list_for_tenant(db: Session, tenant_id: int) -> list[RentalContract]:
        return (
            db.query(RentalContract)
            .options(joinedload(RentalContract.unit))
            .filter(RentalContract.tenant_id == tenant_id, RentalContract.status.in_(["active", "completed"]))
            .order_by(RentalContract.lease_start_date.desc(), RentalContract.id.desc())
            .all()
        )

    @staticmethod
    def activated_between(
        db: Session, agency_id: int, start: datetime, end: datetime, seller_id: Optional[int] = None
    ) -> list[RentalContract]:
        """Contracts that went active inside [start, end) and were not cancelled"""
        query = db.query(RentalContract).filter(
            RentalContract.agency_id == agency_id,
            RentalContract.status.in_(["active", "completed"]),
            RentalContract.activated_at >= start,
            RentalContract.activated_at < end,
        )
        if seller_id is not None:
            query = query.filter(RentalContract.seller_id == seller_id)
        return query.all()

    @staticmethod
    def expired_active(db: Session, today: date) -> list[RentalContract]:
        return (
            db.query(RentalContract)
            .filter(RentalContract.status == "active", RentalContract.lease_end_date < today)
            .all()
        )

    @staticmethod
    def create(db: Session, **data) -> RentalContract:
        contract = RentalContract(**data)
        db.add(contract)
        db.commit()
        db.refresh(contract)
        return contract

    @staticmethod
    def delete(db: Session, contract: RentalContract) -> None:
        db.delete(contract)
        db.commit()
