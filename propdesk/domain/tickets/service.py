"""Ticket service - maintenance / cleaning ticket workflow"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import case, or_
from sqlalchemy.orm import Session

from ...auth import EXTERNAL_ADMIN_ROLES, EXTERNAL_SELLER_ROLES, get_user_agency_id
from ...email_service import send_ticket_status_email
from ...models import ExternalAgency, User
from ...models_property import Unit
from ...models_ticket import MaintenanceTicket
from ...services import notification_service
from ...services.commission_calculator import calculate_maintenance_charge, round_money
from ...shared.pagination import PageParams, paginate
from ...shared.periods import BiweeklyPeriod
from ...utils.sanitization import sanitize_string
from ..commissions.service import agency_maintenance_percent
from .repository import TicketRepository
from .schemas import TicketAssign, TicketCreate, TicketPhotoCreate, TicketStatusChange, TicketUpdateFields
from .workflow import (
    DONE_STATUSES,
    MAINTENANCE_ROLE,
    OPEN_STATUSES,
    can_view,
    ensure_admin,
    ensure_can_add_photo,
    ensure_can_change_status,
    ensure_can_comment,
    ensure_can_edit,
    validate_status_transition,
)

logger = logging.getLogger(__name__)

PRIORITY_ORDER = case(
    {"low": 1, "medium": 2, "high": 3, "urgent": 4},
    value=MaintenanceTicket.priority,
    else_=0,
)

TICKET_SORT_COLUMNS = {
    "created": MaintenanceTicket.created_at,
    "priority": PRIORITY_ORDER,
    "status": MaintenanceTicket.status,
    "scheduled": MaintenanceTicket.scheduled_date,
}

ASSIGNABLE_ROLES = [MAINTENANCE_ROLE, *EXTERNAL_ADMIN_ROLES]


def display_name(user: Optional[User]) -> Optional[str]:
    if not user:
        return None
    return user.full_name or user.email


def ticket_charge(ticket: MaintenanceTicket) -> tuple[float, float]:
    return calculate_maintenance_charge(ticket.actual_cost, ticket.commission_percent)


class TicketService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = TicketRepository()

    # ===== QUERIES =====

    def list_tickets(
        self,
        user: User,
        params: PageParams,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        condominium_id: Optional[int] = None,
        unit_id: Optional[int] = None,
        assigned_to_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> dict:
        query = self.repo.base_query(self.db)

        if user.role == "tenant":
            query = query.filter(MaintenanceTicket.reported_by_id == user.id)
        else:
            query = query.filter(MaintenanceTicket.agency_id == get_user_agency_id(user))
            if user.role == MAINTENANCE_ROLE:
                query = query.filter(MaintenanceTicket.assigned_to_id == user.id)

        if status:
            query = query.filter(MaintenanceTicket.status.in_(status.split(",")))
        if priority:
            query = query.filter(MaintenanceTicket.priority == priority)
        if category:
            query = query.filter(MaintenanceTicket.category == category)
        if condominium_id:
            query = query.filter(MaintenanceTicket.condominium_id == condominium_id)
        if unit_id:
            query = query.filter(MaintenanceTicket.unit_id == unit_id)
        if assigned_to_id:
            query = query.filter(MaintenanceTicket.assigned_to_id == assigned_to_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(MaintenanceTicket.title.ilike(pattern), MaintenanceTicket.description.ilike(pattern))
            )

        return paginate(query, params, TICKET_SORT_COLUMNS, "created", tiebreaker=MaintenanceTicket.id.desc())

    def get_ticket(self, ticket_id: int, user: User) -> MaintenanceTicket:
        """Ticket visible to the user; other agencies' tickets are reported as missing"""
        ticket = self.repo.get_by_id(self.db, ticket_id)
        if not ticket or not can_view(user, ticket):
            raise HTTPException(status_code=404, detail="Ticket not found")
        return ticket

    def list_reported_tickets(self, user: User) -> list[MaintenanceTicket]:
        return (
            self.repo.base_query(self.db)
            .filter(MaintenanceTicket.reported_by_id == user.id)
            .order_by(MaintenanceTicket.created_at.desc(), MaintenanceTicket.id.desc())
            .all()
        )

    def get_updates(self, ticket_id: int, user: User):
        ticket = self.get_ticket(ticket_id, user)
        return self.repo.get_updates(self.db, ticket.id)

    def get_photos(self, ticket_id: int, user: User):
        ticket = self.get_ticket(ticket_id, user)
        return self.repo.get_photos(self.db, ticket.id)

    # ===== CORE CRUD OPERATIONS =====

    def _resolve_unit(self, data: TicketCreate, user: User) -> Unit:
        if user.role == "tenant":
            query = self.db.query(Unit).filter(Unit.tenant_id == user.id)
            if data.unitId is not None:
                query = query.filter(Unit.id == data.unitId)
            unit = query.order_by(Unit.id.asc()).first()
            if not unit:
                raise HTTPException(status_code=403, detail="You can only report issues for the unit you rent")
            return unit

        if user.role not in EXTERNAL_SELLER_ROLES:
            raise HTTPException(status_code=403, detail="You cannot create tickets")
        if data.unitId is None:
            raise HTTPException(status_code=400, detail="unitId is required")

        unit = (
            self.db.query(Unit)
            .filter(Unit.id == data.unitId, Unit.agency_id == get_user_agency_id(user))
            .first()
        )
        if not unit:
            raise HTTPException(status_code=404, detail="Unit not found")
        return unit

    def _get_assignee(self, user_id: int, agency_id: int) -> User:
        assignee = (
            self.db.query(User)
            .filter(
                User.id == user_id,
                User.external_agency_id == agency_id,
                User.role.in_(ASSIGNABLE_ROLES),
                User.is_active.is_(True),
            )
            .first()
        )
        if not assignee:
            raise HTTPException(status_code=400, detail="Assignee must be active maintenance staff of this agency")
        return assignee

    async def create_ticket(self, data: TicketCreate, user: User) -> MaintenanceTicket:
        unit = self._resolve_unit(data, user)
        agency = self.db.query(ExternalAgency).filter(ExternalAgency.id == unit.agency_id).first()

        assignee = None
        if data.assignedToId is not None:
            if user.role not in EXTERNAL_ADMIN_ROLES:
                raise HTTPException(status_code=403, detail="Only agency admins can assign tickets")
            assignee = self._get_assignee(data.assignedToId, unit.agency_id)

        ticket = self.repo.create(
            self.db,
            agency_id=unit.agency_id,
            unit_id=unit.id,
            condominium_id=unit.condominium_id,
            reported_by_id=user.id,
            assigned_to_id=assignee.id if assignee else None,
            title=sanitize_string(data.title),
            description=sanitize_string(data.description),
            category=data.category,
            priority=data.priority,
            status="open",
            scheduled_date=data.scheduledDate,
            scheduled_time=data.scheduledTime,
            estimated_cost=data.estimatedCost,
            commission_percent=agency_maintenance_percent(agency),
        )
        self.repo.add_update(self.db, ticket.id, "created", author_id=user.id, new_status="open")
        if assignee:
            self.repo.add_update(
                self.db, ticket.id, "assignment", author_id=user.id, notes=f"Assigned to {display_name(assignee)}"
            )
        self.db.commit()
        self.db.refresh(ticket)
        logger.info(f"🛠️ Ticket {ticket.id} ({ticket.category}/{ticket.priority}) created for unit {unit.id} by {user.email}")

        if assignee:
            await notification_service.notify_ticket_update(
                self.db,
                [assignee.id],
                ticket,
                type="ticket_assigned",
                title="New ticket assigned",
                body=f"#{ticket.id} {ticket.title} ({unit.name})",
                actor=user,
            )
        return ticket

    def update_ticket(self, ticket_id: int, data: TicketUpdateFields, user: User) -> MaintenanceTicket:
        ticket = self.get_ticket(ticket_id, user)
        if ticket.status == "closed":
            raise HTTPException(status_code=400, detail="Closed tickets cannot be edited")

        updates = {
            "title": sanitize_string(data.title),
            "description": sanitize_string(data.description),
            "category": data.category,
            "priority": data.priority,
            "scheduled_date": data.scheduledDate,
            "scheduled_time": data.scheduledTime,
            "estimated_cost": data.estimatedCost,
            "actual_cost": data.actualCost,
        }
        updates = {key: value for key, value in updates.items() if value is not None}
        if not updates:
            return ticket
        ensure_can_edit(user, ticket, set(updates))

        cost_notes = []
        for field in ("estimated_cost", "actual_cost"):
            if field in updates and updates[field] != getattr(ticket, field):
                label = field.replace("_", " ")
                cost_notes.append(f"{label}: {getattr(ticket, field) or 0:,.2f} → {updates[field]:,.2f}")

        for key, value in updates.items():
            setattr(ticket, key, value)

        if cost_notes:
            self.repo.add_update(self.db, ticket.id, "cost_update", author_id=user.id, notes="; ".join(cost_notes))

        self.db.commit()
        self.db.refresh(ticket)
        return ticket

    async def change_status(self, ticket_id: int, data: TicketStatusChange, user: User) -> MaintenanceTicket:
        ticket = self.get_ticket(ticket_id, user)
        ensure_can_change_status(user, ticket, data.status)

        old_status = ticket.status
        if old_status == data.status:
            return ticket

        is_valid, error = validate_status_transition(old_status, data.status)
        if not is_valid:
            raise HTTPException(status_code=400, detail=error)

        now = datetime.utcnow()
        ticket.status = data.status
        if data.status == "resolved":
            ticket.resolved_at = now
        elif data.status == "closed":
            ticket.closed_at = now
        elif old_status == "resolved":
            ticket.resolved_at = None

        notes = sanitize_string(data.notes)
        self.repo.add_update(
            self.db, ticket.id, "status_change", author_id=user.id, notes=notes, old_status=old_status, new_status=data.status
        )
        self.db.commit()
        self.db.refresh(ticket)
        logger.info(f"✅ Ticket {ticket.id} transitioned: {old_status} → {data.status} by {user.email}")

        label = data.status.replace("_", " ")
        await notification_service.notify_ticket_update(
            self.db,
            [ticket.reported_by_id, ticket.assigned_to_id],
            ticket,
            type="ticket_status_changed",
            title=f"Ticket #{ticket.id} is now {label}",
            body=notes or f"{ticket.title}: {old_status.replace('_', ' ')} → {label}",
            actor=user,
        )

        agency = self.db.query(ExternalAgency).filter(ExternalAgency.id == ticket.agency_id).first()
        if agency and agency.notification_email:
            try:
                await send_ticket_status_email(
                    to=agency.notification_email,
                    ticket_id=ticket.id,
                    ticket_title=ticket.title,
                    new_status=ticket.status,
                    unit_name=ticket.unit.name if ticket.unit else None,
                    notes=notes,
                )
            except Exception as e:
                logger.error(f"❌ Failed to email status of ticket {ticket.id} to {agency.notification_email}: {e}")
        return ticket

    async def assign_ticket(self, ticket_id: int, data: TicketAssign, user: User) -> MaintenanceTicket:
        ticket = self.get_ticket(ticket_id, user)
        ensure_admin(user)
        if ticket.status == "closed":
            raise HTTPException(status_code=400, detail="Closed tickets cannot be reassigned")

        assignee = self._get_assignee(data.assignedToId, ticket.agency_id) if data.assignedToId else None
        if (assignee.id if assignee else None) == ticket.assigned_to_id:
            return ticket

        ticket.assigned_to_id = assignee.id if assignee else None
        notes = f"Assigned to {display_name(assignee)}" if assignee else "Unassigned"
        if data.notes:
            notes = f"{notes}: {sanitize_string(data.notes)}"
        self.repo.add_update(self.db, ticket.id, "assignment", author_id=user.id, notes=notes)
        self.db.commit()
        self.db.refresh(ticket)
        logger.info(f"👷 Ticket {ticket.id} {notes.lower()} by {user.email}")

        if assignee:
            await notification_service.notify_ticket_update(
                self.db,
                [assignee.id],
                ticket,
                type="ticket_assigned",
                title="New ticket assigned",
                body=f"#{ticket.id} {ticket.title}",
                actor=user,
            )
        return ticket

    async def add_comment(self, ticket_id: int, notes: str, user: User):
        ticket = self.get_ticket(ticket_id, user)
        ensure_can_comment(user, ticket)

        entry = self.repo.add_update(self.db, ticket.id, "comment", author_id=user.id, notes=sanitize_string(notes))
        self.db.commit()
        self.db.refresh(entry)

        await notification_service.notify_ticket_update(
            self.db,
            [ticket.reported_by_id, ticket.assigned_to_id],
            ticket,
            type="ticket_comment",
            title=f"New comment on ticket #{ticket.id}",
            body=f"{display_name(user)}: {entry.notes[:200]}",
            actor=user,
        )
        return entry

    def add_photo(self, ticket_id: int, data: TicketPhotoCreate, user: User):
        ticket = self.get_ticket(ticket_id, user)
        ensure_can_add_photo(user, ticket)

        photo = self.repo.add_photo(
            self.db,
            ticket_id=ticket.id,
            uploaded_by_id=user.id,
            url=data.url,
            phase=data.phase,
            caption=sanitize_string(data.caption),
        )
        self.repo.add_update(self.db, ticket.id, "photo", author_id=user.id, notes=f"{data.phase} photo added")
        self.db.commit()
        self.db.refresh(photo)
        return photo

    async def mark_paid(self, ticket_id: int, is_paid: bool, user: User) -> MaintenanceTicket:
        ticket = self.get_ticket(ticket_id, user)
        ensure_admin(user)
        if is_paid and ticket.status not in DONE_STATUSES:
            raise HTTPException(status_code=400, detail="Only resolved or closed tickets can be marked as paid")
        if ticket.is_paid == is_paid:
            return ticket

        ticket.is_paid = is_paid
        ticket.paid_at = datetime.utcnow() if is_paid else None
        _, total_charge = ticket_charge(ticket)
        self.repo.add_update(
            self.db,
            ticket.id,
            "payment",
            author_id=user.id,
            notes=f"Marked as paid (${total_charge:,.2f})" if is_paid else "Payment reverted",
        )
        self.db.commit()
        self.db.refresh(ticket)

        if ticket.assigned_to_id and ticket.assigned_to_id != user.id:
            await notification_service.notify_payment_status(
                self.db,
                recipient_user_id=ticket.assigned_to_id,
                status="paid" if is_paid else "reverted",
                amount=total_charge,
                description=f"Ticket #{ticket.id} {ticket.title}",
                payload={"ticketId": ticket.id},
            )
        return ticket

    def delete_ticket(self, ticket_id: int, user: User) -> dict:
        ticket = self.get_ticket(ticket_id, user)
        ensure_admin(user)
        detached = self.repo.delete(self.db, ticket)
        if detached:
            logger.info(f"🔗 Quotations {detached} detached from deleted ticket {ticket_id}")
        logger.info(f"🗑️ Ticket {ticket_id} deleted by {user.email}")
        return {"message": "Ticket deleted"}

    # ===== REPORTING =====

    def biweekly_stats(self, user: User, period: BiweeklyPeriod, category: Optional[str] = None) -> dict:
        """
        Cost and commission totals for tickets created inside a biweekly period.
        Commission uses each ticket's snapshot percent.
        """
        tickets = self.repo.period_tickets(
            self.db, get_user_agency_id(user), period.start_datetime, period.end_datetime_exclusive, category
        )

        actual_cost = commission = total_charge = paid_total = 0.0
        open_count = resolved_count = 0
        for ticket in tickets:
            if ticket.status in OPEN_STATUSES:
                open_count += 1
            elif ticket.status in DONE_STATUSES:
                resolved_count += 1
            ticket_commission, ticket_total = ticket_charge(ticket)
            actual_cost += ticket.actual_cost or 0
            commission += ticket_commission
            total_charge += ticket_total
            if ticket.is_paid:
                paid_total += ticket_total

        return {
            "period": period.to_dict(),
            "category": category,
            "total": len(tickets),
            "open": open_count,
            "resolved": resolved_count,
            "actualCost": round_money(actual_cost),
            "commission": round_money(commission),
            "totalCharge": round_money(total_charge),
            "paidTotal": round_money(paid_total),
        }
