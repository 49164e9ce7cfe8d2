"""Maintenance ticket repository"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models_quotation import Quotation
from ...models_ticket import MaintenanceTicket, TicketPhoto, TicketUpdate


class TicketRepository:
    @staticmethod
    def base_query(db: Session):
        return db.query(MaintenanceTicket).options(
            joinedload(MaintenanceTicket.unit),
            joinedload(MaintenanceTicket.condominium),
            joinedload(MaintenanceTicket.reported_by),
            joinedload(MaintenanceTicket.assigned_to),
        )

    @staticmethod
    def get_by_id(db: Session, ticket_id: int) -> Optional[MaintenanceTicket]:
        return TicketRepository.base_query(db).filter(MaintenanceTicket.id == ticket_id).first()

    @staticmethod
    def create(db: Session, **data) -> MaintenanceTicket:
        ticket = MaintenanceTicket(**data)
        db.add(ticket)
        db.flush()
        return ticket

    @staticmethod
    def add_update(
        db: Session,
        ticket_id: int,
        type: str,
        author_id: Optional[int] = None,
        notes: Optional[str] = None,
        old_status: Optional[str] = None,
        new_status: Optional[str] = None,
    ) -> TicketUpdate:
        entry = TicketUpdate(
            ticket_id=ticket_id,
            author_id=author_id,
            type=type,
            notes=notes,
            old_status=old_status,
            new_status=new_status,
        )
        db.add(entry)
        return entry

    @staticmethod
    def get_updates(db: Session, ticket_id: int) -> list[TicketUpdate]:
        return (
            db.query(TicketUpdate)
            .options(joinedload(TicketUpdate.author))
            .filter(TicketUpdate.ticket_id == ticket_id)
            .order_by(TicketUpdate.id.asc())
            .all()
        )

    @staticmethod
    def add_photo(db: Session, **data) -> TicketPhoto:
        photo = TicketPhoto(**data)
        db.add(photo)
        return photo

    @staticmethod
    def get_photos(db: Session, ticket_id: int) -> list[TicketPhoto]:
        return (
            db.query(TicketPhoto)
            .filter(TicketPhoto.ticket_id == ticket_id)
            .order_by(TicketPhoto.id.asc())
            .all()
        )

    @staticmethod
    def period_tickets(
        db: Session, agency_id: int, start: datetime, end_exclusive: datetime, category: Optional[str] = None
    ) -> list[MaintenanceTicket]:
        query = db.query(MaintenanceTicket).filter(
            MaintenanceTicket.agency_id == agency_id,
            MaintenanceTicket.created_at >= start,
            MaintenanceTicket.created_at < end_exclusive,
        )
        if category:
            query = query.filter(MaintenanceTicket.category == category)
        return query.all()

    @staticmethod
    def delete(db: Session, ticket: MaintenanceTicket) -> list[int]:
        """Delete a ticket; quotations converted into it go back to approved"""
        quotations = db.query(Quotation).filter(Quotation.ticket_id == ticket.id).all()
        for quotation in quotations:
            quotation.ticket_id = None
            if quotation.status == "converted_to_ticket":
                quotation.status = "approved"
        db.flush()
        db.delete(ticket)
        db.commit()
        return [q.id for q in quotations]
