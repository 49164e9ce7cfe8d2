"""Property repository - condominium and unit queries"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import ExternalAgency
from ...models_property import Condominium, Unit
from ...models_ticket import MaintenanceTicket

OPEN_TICKET_STATUSES = ["open", "in_progress", "on_hold"]


class PropertyRepository:
    # ===== CONDOMINIUMS =====

    @staticmethod
    def list_condominiums(db: Session, agency_id: Optional[int] = None) -> list[tuple[Condominium, int]]:
        """Condominiums with their unit counts, alphabetical"""
        unit_counts = (
            db.query(Unit.condominium_id, func.count(Unit.id).label("unit_count"))
            .group_by(Unit.condominium_id)
            .subquery()
        )
        query = db.query(Condominium, func.coalesce(unit_counts.c.unit_count, 0)).outerjoin(
            unit_counts, unit_counts.c.condominium_id == Condominium.id
        )
        if agency_id is not None:
            query = query.filter(Condominium.agency_id == agency_id)
        return query.order_by(Condominium.name.asc()).all()

    @staticmethod
    def list_public_condominiums(db: Session, agency_id: Optional[int] = None) -> list[Condominium]:
        """Condominiums that have at least one published, available unit"""
        query = (
            db.query(Condominium)
            .join(Unit, Unit.condominium_id == Condominium.id)
            .join(ExternalAgency, ExternalAgency.id == Condominium.agency_id)
            .filter(Unit.is_published.is_(True), Unit.status == "available", ExternalAgency.is_active.is_(True))
        )
        if agency_id is not None:
            query = query.filter(Condominium.agency_id == agency_id)
        return query.distinct().order_by(Condominium.name.asc()).all()

    @staticmethod
    def get_condominium(db: Session, condominium_id: int, agency_id: int) -> Optional[Condominium]:
        return (
            db.query(Condominium)
            .filter(Condominium.id == condominium_id, Condominium.agency_id == agency_id)
            .first()
        )

    @staticmethod
    def count_units(db: Session, condominium_id: int) -> int:
        return db.query(Unit).filter(Unit.condominium_id == condominium_id).count()

    # ===== UNITS =====

    @staticmethod
    def units_query(db: Session, agency_id: int):
        return (
            db.query(Unit)
            .options(joinedload(Unit.condominium))
            .filter(Unit.agency_id == agency_id)
        )

    @staticmethod
    def get_unit(db: Session, unit_id: int, agency_id: int) -> Optional[Unit]:
        return db.query(Unit).filter(Unit.id == unit_id, Unit.agency_id == agency_id).first()

    @staticmethod
    def get_public_unit(db: Session, public_id: str) -> Optional[Unit]:
        return (
            db.query(Unit)
            .join(ExternalAgency, ExternalAgency.id == Unit.agency_id)
            .filter(
                Unit.public_id == public_id,
                Unit.is_published.is_(True),
                Unit.status == "available",
                ExternalAgency.is_active.is_(True),
            )
            .first()
        )

    @staticmethod
    def search_query(db: Session):
        return (
            db.query(Unit)
            .options(joinedload(Unit.condominium))
            .join(ExternalAgency, ExternalAgency.id == Unit.agency_id)
            .filter(Unit.is_published.is_(True), Unit.status == "available", ExternalAgency.is_active.is_(True))
        )

    @staticmethod
    def count_tickets(db: Session, unit_id: int) -> int:
        return db.query(MaintenanceTicket).filter(MaintenanceTicket.unit_id == unit_id).count()

    @staticmethod
    def owner_units_with_open_tickets(db: Session, owner_id: int) -> list[tuple[Unit, int]]:
        open_counts = (
            db.query(MaintenanceTicket.unit_id, func.count(MaintenanceTicket.id).label("open_count"))
            .filter(MaintenanceTicket.status.in_(OPEN_TICKET_STATUSES))
            .group_by(MaintenanceTicket.unit_id)
            .subquery()
        )
        return (
            db.query(Unit, func.coalesce(open_counts.c.open_count, 0))
            .outerjoin(open_counts, open_counts.c.unit_id == Unit.id)
            .options(joinedload(Unit.condominium))
            .filter(Unit.owner_id == owner_id)
            .order_by(Unit.name.asc())
            .all()
        )
